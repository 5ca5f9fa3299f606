"""
End-to-End Pipeline Tests
=========================

Runs the orchestrator against a real page server. Capture is replaced by a
dispatcher that fetches each work item's page over HTTP, so no browser is
needed.
"""

from typing import List

import httpx
import pytest
from unittest.mock import patch

from pricetag_renderer.__main__ import main
from pricetag_renderer.api.server import PageServerError
from pricetag_renderer.core.orchestrator import BatchOrchestrator, capture_options_from_settings
from pricetag_renderer.core.store import ProductStoreError
from pricetag_renderer.core.workers import WorkerDispatcher
from pricetag_renderer.models.schemas import WorkerReport, WorkItem
from pricetag_renderer.utils.digits import format_arabic_price

from tests.utils.helpers import make_record, read_products, write_products


class HTTPDispatcher:
    """Fetches every assigned page instead of screenshotting it."""

    def __init__(self, fail_worker: int = 0):
        self.fail_worker = fail_worker
        self.groups: List[List[WorkItem]] = []
        self.pages = {}

    async def dispatch(self, groups, base_url):
        self.groups = groups
        reports = []
        async with httpx.AsyncClient(base_url=base_url) as client:
            for worker_id, group in enumerate(groups, 1):
                if not group:
                    continue
                report = WorkerReport(worker_id=worker_id, assigned=len(group))
                if worker_id == self.fail_worker:
                    report.error = "Error: browser crashed"
                    report.exit_code = 1
                    reports.append(report)
                    continue
                for item in group:
                    response = await client.get(item.page_path)
                    response.raise_for_status()
                    self.pages[item.product.image_stem] = response.text
                    report.captured.append(item.product.image_stem)
                report.completed = True
                report.exit_code = 0
                reports.append(report)
        return reports


@pytest.mark.integration
class TestBatchOrchestrator:
    """Test the full batch run."""

    @pytest.mark.asyncio
    async def test_renders_changed_products_and_persists(self, test_settings):
        dispatcher = HTTPDispatcher()

        result = await BatchOrchestrator(test_settings, dispatcher=dispatcher).run()

        assert set(dispatcher.pages) == {"B2_red", "C3"}
        assert format_arabic_price(19.9) in dispatcher.pages["C3"]
        assert "/images/B2_red.jpg" in dispatcher.pages["B2_red"]
        assert result.total == 3
        assert result.pending == 2
        assert sorted(result.captured) == ["B2_red", "C3"]
        assert result.persisted

        records = read_products(test_settings.products_file)
        assert all(r["previous_price"] == r["current_price"] for r in records)
        assert test_settings.output_dir.is_dir()
        assert test_settings.images_dir.is_dir()

    @pytest.mark.asyncio
    async def test_items_carry_original_indexes(self, test_settings):
        dispatcher = HTTPDispatcher()

        await BatchOrchestrator(test_settings, dispatcher=dispatcher).run()

        assert [[item.index for item in group] for group in dispatcher.groups] == [[1], [2]]

    @pytest.mark.asyncio
    async def test_nothing_pending_skips_server_and_store(self, test_settings):
        write_products(
            test_settings.products_file,
            [make_record("A1", 1.0, previous=1.0), make_record("B2", 2.0, previous=2.0)],
        )
        before = test_settings.products_file.read_bytes()
        dispatcher = HTTPDispatcher()

        with patch("pricetag_renderer.core.orchestrator.PageServer") as server_cls:
            orchestrator = BatchOrchestrator(
                test_settings, dispatcher=dispatcher, server_factory=server_cls
            )
            result = await orchestrator.run()

        server_cls.assert_not_called()
        assert dispatcher.groups == []
        assert result.pending == 0
        assert not result.persisted
        assert test_settings.products_file.read_bytes() == before

    @pytest.mark.asyncio
    async def test_failed_worker_still_marks_everything_caught_up(self, test_settings):
        result = await BatchOrchestrator(
            test_settings, dispatcher=HTTPDispatcher(fail_worker=2)
        ).run()

        assert [r.worker_id for r in result.failed_workers] == [2]
        records = {r["productCode"]: r for r in read_products(test_settings.products_file)}
        # C3 has no image, yet its price is recorded as rendered
        assert records["C3"]["previous_price"] == records["C3"]["current_price"]

    @pytest.mark.asyncio
    async def test_persist_only_captured_keeps_failed_items_pending(self, test_settings):
        test_settings.persist_only_captured = True

        await BatchOrchestrator(test_settings, dispatcher=HTTPDispatcher(fail_worker=2)).run()

        records = {r["productCode"]: r for r in read_products(test_settings.products_file)}
        assert records["B2"]["previous_price"] == 7.25
        assert records["C3"]["previous_price"] == 21.0

    @pytest.mark.asyncio
    async def test_missing_products_file(self, test_settings):
        test_settings.products_file.unlink()

        with pytest.raises(ProductStoreError):
            await BatchOrchestrator(test_settings, dispatcher=HTTPDispatcher()).run()

    @pytest.mark.asyncio
    async def test_dispatch_failure_stops_server_without_persisting(self, test_settings):
        before = test_settings.products_file.read_bytes()

        class BrokenDispatcher:
            async def dispatch(self, groups, base_url):
                raise RuntimeError("cannot spawn")

        with pytest.raises(RuntimeError, match="cannot spawn"):
            await BatchOrchestrator(test_settings, dispatcher=BrokenDispatcher()).run()

        assert test_settings.products_file.read_bytes() == before

    def test_default_dispatcher_uses_settings(self, test_settings):
        test_settings.worker_timeout = 12.5
        orchestrator = BatchOrchestrator(test_settings)

        assert isinstance(orchestrator.dispatcher, WorkerDispatcher)
        assert orchestrator.dispatcher.timeout == 12.5
        assert orchestrator.dispatcher.start_method == "fork"
        options = capture_options_from_settings(test_settings)
        assert options.output_dir == test_settings.output_dir.resolve()
        assert (options.viewport_width, options.viewport_height) == (1368, 768)
        assert options.device_scale_factor == 2.0


class TestMain:
    """Test the command line exit codes."""

    def test_unreadable_products_file_exits_1(self, test_settings):
        test_settings.products_file.write_text("not json", encoding="utf-8")

        with patch("pricetag_renderer.__main__.get_settings", return_value=test_settings), \
                patch("pricetag_renderer.__main__.setup_logging"):
            with pytest.raises(SystemExit) as exc_info:
                main()

        assert exc_info.value.code == 1

    def test_port_unavailable_exits_1(self, test_settings):
        with patch("pricetag_renderer.__main__.get_settings", return_value=test_settings), \
                patch("pricetag_renderer.__main__.setup_logging"), \
                patch(
                    "pricetag_renderer.core.orchestrator.PageServer.start",
                    side_effect=PageServerError("Cannot bind 127.0.0.1:3000"),
                ):
            with pytest.raises(SystemExit) as exc_info:
                main()

        assert exc_info.value.code == 1
