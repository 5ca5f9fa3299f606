"""
Shared Utilities
===============

Common helper functions used across the application.

Modules:
- digits: Arabic-indic digit conversion and price formatting
"""
