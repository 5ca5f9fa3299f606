"""
FastAPI Application
==================

Page server used by the capture workers. Renders the price tag of a product
addressed by its index in the full collection and serves the product photos
and the working directory as static files.
"""

from pathlib import Path
from typing import Any, List

from fastapi import FastAPI, Request
from fastapi.responses import HTMLResponse, Response
from fastapi.staticfiles import StaticFiles

from pricetag_renderer.config.logging import get_logger
from pricetag_renderer.core.rendering.html_generator import (
    build_price_tag_context,
    render_price_tag,
)
from pricetag_renderer.models.schemas import Product

logger = get_logger(__name__)


def create_app(products: List[Product], images_dir: Path, static_dir: Path) -> FastAPI:
    """
    Application factory for the page server.

    Args:
        products: Full product collection, read-only for the server
        images_dir: Directory mounted under /images
        static_dir: Directory mounted at the site root

    Returns:
        FastAPI application instance
    """
    app = FastAPI(
        title="Price Tag Renderer",
        description="Renders product price tags for browser capture",
        version="1.0.0",
        docs_url=None,
        redoc_url=None,
        openapi_url=None,
    )
    app.state.products = products

    @app.get("/health", tags=["Health"])
    async def health_check(request: Request) -> dict[str, Any]:
        """Basic health check endpoint."""
        return {"status": "healthy", "products": len(request.app.state.products)}

    @app.get("/product/{index}", response_class=HTMLResponse, tags=["Rendering"])
    async def product_page(index: str, request: Request) -> Response:
        """
        Render the price tag of the product at ``index``.

        Non-numeric, negative and out-of-range indexes get an empty 404.
        """
        catalog: List[Product] = request.app.state.products
        position = len(catalog)
        if index.isascii() and index.isdecimal():
            try:
                position = int(index)
            except ValueError:
                # past the interpreter's integer digit limit
                pass
        if position >= len(catalog):
            logger.debug("Product not found", index=index[:32])
            return Response(status_code=404)

        product = catalog[position]
        html = render_price_tag(build_price_tag_context(product))
        logger.debug("Rendered product page", index=index, product=product.image_stem)
        return HTMLResponse(html)

    app.mount("/images", StaticFiles(directory=str(images_dir)), name="images")
    app.mount("/", StaticFiles(directory=str(static_dir)), name="static")

    return app
