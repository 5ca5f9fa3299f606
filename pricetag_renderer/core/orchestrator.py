"""
Batch Orchestrator
==================

Runs one batch: load products, select the changed ones, serve their price
tags, capture them in parallel workers and persist the new baseline prices.
"""

from typing import Any, Callable, List, Optional, Protocol
from pathlib import Path

from fastapi import FastAPI

from pricetag_renderer.api.main import create_app
from pricetag_renderer.api.server import PageServer
from pricetag_renderer.config.logging import get_logger
from pricetag_renderer.config.settings import Settings, get_settings
from pricetag_renderer.core.partition import compute_worker_count, partition_work
from pricetag_renderer.core.store import ProductStore, select_pending
from pricetag_renderer.core.workers import WorkerDispatcher
from pricetag_renderer.models.schemas import BatchResult, CaptureOptions, WorkerReport, WorkItem

logger = get_logger(__name__)


class Dispatcher(Protocol):
    async def dispatch(self, groups: List[List[WorkItem]], base_url: str) -> List[WorkerReport]:
        ...


def capture_options_from_settings(settings: Settings) -> CaptureOptions:
    """Capture options handed to every worker process."""
    return CaptureOptions(
        output_dir=settings.output_dir.resolve(),
        viewport_width=settings.viewport_width,
        viewport_height=settings.viewport_height,
        device_scale_factor=settings.device_scale_factor,
        headless=settings.playwright_headless,
        timeout=settings.playwright_timeout,
        webp_quality=settings.webp_quality,
    )


class BatchOrchestrator:
    """Wires the store, page server and capture workers into one run."""

    def __init__(
        self,
        settings: Optional[Settings] = None,
        store: Optional[ProductStore] = None,
        dispatcher: Optional[Dispatcher] = None,
        server_factory: Callable[[FastAPI, str, int], PageServer] = PageServer,
    ):
        self.settings = settings or get_settings()
        self.store = store or ProductStore(self.settings.products_file)
        self.dispatcher = dispatcher or WorkerDispatcher(
            capture_options_from_settings(self.settings),
            timeout=self.settings.worker_timeout,
            start_method=self.settings.worker_start_method,
        )
        self.server_factory = server_factory
        self.logger: Any = logger.bind(component="orchestrator")

    async def run(self) -> BatchResult:
        """
        Execute the batch.

        Returns:
            Summary of the run

        Raises:
            ProductStoreError: If the products file cannot be loaded
            PageServerError: If the page server cannot bind its port
        """
        products = self.store.load()
        self._ensure_directories()

        pending = select_pending(products)
        self.logger.info(
            "Found products with price changes that need image generation", pending=len(pending)
        )

        if not pending:
            self.logger.info("No product price changes detected. No images need to be generated.")
            return BatchResult(total=len(products), pending=0)

        worker_count = self.settings.worker_count or compute_worker_count(
            fraction=self.settings.worker_fraction
        )
        self.logger.info("Starting capture", workers=worker_count)

        app = create_app(products, self.settings.images_dir, self.settings.static_dir)
        server = self.server_factory(app, self.settings.host, self.settings.port)
        await server.start()
        try:
            groups = partition_work(products, pending, worker_count)
            reports = await self.dispatcher.dispatch(groups, server.base_url)
        finally:
            await server.stop()

        result = BatchResult(total=len(products), pending=len(pending), workers=reports)
        self._report(result)

        if self.settings.persist_only_captured:
            self.store.persist(products, caught_up=set(result.captured))
        else:
            # failed workers' products are marked caught up as well
            self.store.persist(products)
        result.persisted = True

        return result

    def _ensure_directories(self) -> None:
        for directory in (self.settings.output_dir, self.settings.images_dir):
            directory = Path(directory)
            if not directory.exists():
                directory.mkdir(parents=True, exist_ok=True)
                self.logger.info("Created directory", path=str(directory))

    def _report(self, result: BatchResult) -> None:
        self.logger.info(
            "Generated product card images",
            captured=len(result.captured),
            pending=result.pending,
            output_dir=str(self.settings.output_dir),
        )
        for report in result.failed_workers:
            self.logger.warning(
                "Worker did not complete its products",
                worker=report.worker_id,
                assigned=report.assigned,
                captured=len(report.captured),
                error=report.error,
                timed_out=report.timed_out,
                persist_only_captured=self.settings.persist_only_captured,
            )
