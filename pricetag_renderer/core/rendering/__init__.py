"""
Rendering Module
===============

HTML generation and image capture with browser automation.

Components:
- html_generator: Price tag HTML from a typed context
- capture: Playwright screenshot capture to WebP files
"""
