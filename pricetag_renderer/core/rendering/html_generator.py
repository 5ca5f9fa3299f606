"""
HTML Generator
==============

Render the price tag page: a full-viewport product photo with a rotated
circular price badge overlaid on it. The template lives in this module and
is rendered with Jinja2.
"""

from typing import Any

import jinja2

from pricetag_renderer.config.logging import get_logger
from pricetag_renderer.models.schemas import PriceTagContext, Product
from pricetag_renderer.utils.digits import format_arabic_price

logger = get_logger(__name__)

TEMPLATE_NAME = "price_tag.html"

PRICE_TAG_TEMPLATE = """\
<!DOCTYPE html>
<html lang="ar" dir="rtl">
  <head>
    <meta charset="UTF-8" />
    <meta name="viewport" content="width=device-width, initial-scale=1.0" />
    <title>بطاقة المنتج</title>
    <style>
      * {
        margin: 0;
        padding: 0;
        box-sizing: border-box;
        font-family: 'Arial', sans-serif;
      }

      body {
        background-color: white;
        width: 100vw;
        height: 100vh;
        overflow: hidden;
        display: grid;
        place-items: center;
      }

      .product-card {
        width: 100dvw;
        height: 100dvh;
        position: relative;
        overflow: hidden;
        background: transparent;
        border-radius: 10px;
      }

      .product-image {
        width: 100%;
        height: 100%;
        position: relative;
      }

      .product-image img {
        width: 100%;
        height: 100%;
        object-fit: contain;
      }

      .price-circle {
        position: absolute;
        top: 200px;
        right: 30px;
        width: 150px;
        height: 150px;
        background-color: black;
        border: 5px solid white;
        border-radius: 50%;
        display: flex;
        flex-direction: column;
        justify-content: center;
        align-items: center;
        color: white;
        font-weight: bold;
        z-index: 10;
        box-shadow: 0 6px 12px rgba(0, 0, 0, 0.4);
        transform: rotate(30deg);
      }

      .price-value {
        font-size: 36px;
        line-height: 1;
        margin-bottom: 4px;
        text-shadow: 0 1px 2px rgba(0, 0, 0, 0.2);
      }
    </style>
  </head>
  <body>
    <div class="product-card">
      <div class="product-image">
        <img src="{{ image_url }}" alt="صورة المنتج" />
        <div class="price-circle">
          <div class="price-value">{{ price_text }}</div>
        </div>
      </div>
    </div>
  </body>
</html>
"""


class HTMLGenerationError(Exception):
    """Exception raised when HTML generation fails."""

    pass


def _create_environment() -> jinja2.Environment:
    """Setup Jinja2 environment holding the price tag template."""
    return jinja2.Environment(
        loader=jinja2.DictLoader({TEMPLATE_NAME: PRICE_TAG_TEMPLATE}),
        autoescape=jinja2.select_autoescape(["html", "xml"]),
        undefined=jinja2.StrictUndefined,
    )


_environment = _create_environment()


def render_price_tag(context: PriceTagContext) -> str:
    """
    Render the price tag HTML document.

    Args:
        context: Image URL and formatted price

    Returns:
        Complete HTML document

    Raises:
        HTMLGenerationError: If template rendering fails
    """
    log: Any = logger.bind(generator="jinja2")
    try:
        template = _environment.get_template(TEMPLATE_NAME)
        html = template.render(**context.model_dump())
    except jinja2.TemplateError as e:
        error_msg = f"Template rendering failed: {e}"
        log.error("HTML generation failed", error=error_msg)
        raise HTMLGenerationError(error_msg)

    log.debug("HTML generation completed", image_url=context.image_url, html_length=len(html))
    return html


def build_price_tag_context(product: Product) -> PriceTagContext:
    """Template parameters for a product: its photo under /images and its price."""
    return PriceTagContext(
        image_url=f"/images/{product.image_stem}.jpg",
        price_text=format_arabic_price(product.current_price),
    )
