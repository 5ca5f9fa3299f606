"""
Page Server
===========

FastAPI application serving rendered price tags and product images, plus the
uvicorn runner used during a batch.
"""
