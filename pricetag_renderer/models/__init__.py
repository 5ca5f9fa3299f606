"""
Data Models
===========

Pydantic data models for product records, work items and worker reporting.

Models:
- schemas: Product, work item, template context and worker message models
"""
