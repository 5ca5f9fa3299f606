"""
Command Line Entry Point
========================

``python -m pricetag_renderer`` renders the price tags of every product whose
price changed. Configuration comes from ``PRICE_TAGS_*`` environment
variables or a ``.env`` file.
"""

import asyncio
import sys

from pricetag_renderer.api.server import PageServerError
from pricetag_renderer.config.logging import get_logger, setup_logging
from pricetag_renderer.config.settings import get_settings
from pricetag_renderer.core.orchestrator import BatchOrchestrator
from pricetag_renderer.core.store import ProductStoreError

logger = get_logger(__name__)


def main() -> None:
    """Run one batch, exiting with status 1 on fatal startup errors."""
    settings = get_settings()
    setup_logging(settings)

    try:
        result = asyncio.run(BatchOrchestrator(settings).run())
    except ProductStoreError as e:
        logger.error("Error reading products file", error=str(e))
        sys.exit(1)
    except PageServerError as e:
        logger.error("Page server could not start", error=str(e))
        sys.exit(1)

    logger.info(
        "Batch finished",
        total=result.total,
        pending=result.pending,
        captured=len(result.captured),
        failed_workers=len(result.failed_workers),
    )


if __name__ == "__main__":
    main()
