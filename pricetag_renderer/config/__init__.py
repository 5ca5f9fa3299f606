"""
Configuration Management
=======================

Environment-based configuration using Pydantic Settings.

Components:
- settings: Paths, server, browser and worker configuration
- logging: Structured logging configuration
"""
