"""
Price Tag Renderer
==================

Batch renderer that turns product records into price-tag images by serving
a templated HTML page per product and screenshotting it with a headless
browser.

This package provides:
- Product store with price-change detection
- Jinja2 price tag template rendering
- FastAPI page server for the rendered tags
- Playwright capture workers running in parallel processes
"""

__version__ = "1.0.0"
__author__ = "Price Tag Renderer Team"
