"""
Capture Workers
===============

Runs one capture process per work group. Each process owns one browser and
reports back through a queue of :class:`WorkerMessage` notifications; the
coordinator relays them to the log and joins every process.
"""

from typing import Any, Callable, Dict, List, Optional
import asyncio
import multiprocessing
import sys

from pricetag_renderer.config.logging import get_logger, setup_logging
from pricetag_renderer.core.rendering.capture import capture_items
from pricetag_renderer.models.schemas import (
    CaptureOptions,
    MessageKind,
    WorkerMessage,
    WorkerReport,
    WorkItem,
)

logger = get_logger(__name__)

WorkerTarget = Callable[[int, List[WorkItem], str, CaptureOptions, Any], None]


def run_capture_worker(
    worker_id: int,
    items: List[WorkItem],
    base_url: str,
    options: CaptureOptions,
    messages: Any,
) -> None:
    """
    Process entry point of a capture worker.

    Posts a status and a captured message per item and a done message at the
    end. On the first error it posts an error message and exits with status 1
    without touching the remaining items.
    """
    setup_logging()
    log: Any = logger.bind(worker=worker_id)

    def post(kind: MessageKind, text: str, image_stem: Optional[str] = None) -> None:
        messages.put(
            WorkerMessage(worker_id=worker_id, kind=kind, text=text, image_stem=image_stem)
        )

    try:
        asyncio.run(
            capture_items(
                base_url,
                items,
                options,
                on_status=lambda text: post(MessageKind.STATUS, text),
                on_captured=lambda item, path: post(
                    MessageKind.CAPTURED, f"Generated image: {path}", item.product.image_stem
                ),
            )
        )
    except Exception as e:
        log.error("Worker error", error=str(e))
        post(MessageKind.ERROR, f"Error: {e}")
        sys.exit(1)

    post(MessageKind.DONE, "DONE")


class WorkerDispatcher:
    """Spawns capture processes for work groups and waits for all of them."""

    def __init__(
        self,
        options: CaptureOptions,
        timeout: Optional[float] = None,
        start_method: str = "spawn",
        target: WorkerTarget = run_capture_worker,
    ):
        self.options = options
        self.timeout = timeout
        self.start_method = start_method
        self.target = target
        self.logger: Any = logger.bind(component="dispatcher")

    async def dispatch(self, groups: List[List[WorkItem]], base_url: str) -> List[WorkerReport]:
        """
        Run one worker per non-empty group and collect their reports.

        Without a timeout this waits for every worker process to exit, however
        long that takes. With a timeout, workers still running when it elapses
        are terminated and reported as timed out.

        Args:
            groups: Work groups from the partitioner, empty ones are skipped
            base_url: Page server root URL

        Returns:
            One report per started worker, in worker order
        """
        assignments = [(worker_id, group) for worker_id, group in enumerate(groups, 1) if group]
        if not assignments:
            self.logger.info("No work assigned, batch complete")
            return []

        context = multiprocessing.get_context(self.start_method)
        messages = context.Queue()
        reports: Dict[int, WorkerReport] = {}
        processes: Dict[int, Any] = {}

        for worker_id, group in assignments:
            reports[worker_id] = WorkerReport(worker_id=worker_id, assigned=len(group))
            process = context.Process(
                target=self.target,
                args=(worker_id, group, base_url, self.options, messages),
                name=f"capture-worker-{worker_id}",
            )
            process.start()
            processes[worker_id] = process

        self.logger.info("Started capture workers", workers=len(processes))
        relay = asyncio.create_task(self._relay(messages, reports))

        try:
            await asyncio.wait_for(
                asyncio.gather(*(asyncio.to_thread(p.join) for p in processes.values())),
                timeout=self.timeout,
            )
        except asyncio.TimeoutError:
            self.logger.error("Capture workers timed out", timeout=self.timeout)
            for worker_id, process in processes.items():
                if process.is_alive():
                    process.terminate()
                    reports[worker_id].timed_out = True
            await asyncio.gather(*(asyncio.to_thread(p.join) for p in processes.values()))
        finally:
            # sentinel is queued after everything the exited workers flushed
            messages.put(None)
            await relay
            messages.close()

        for worker_id, process in processes.items():
            reports[worker_id].exit_code = process.exitcode
            if process.exitcode != 0 and not reports[worker_id].error:
                reports[worker_id].error = f"Worker exited with status {process.exitcode}"

        return [reports[worker_id] for worker_id, _ in assignments]

    async def _relay(self, messages: Any, reports: Dict[int, WorkerReport]) -> None:
        """Log worker notifications and fold them into the reports."""
        while True:
            message: Optional[WorkerMessage] = await asyncio.to_thread(messages.get)
            if message is None:
                break

            report = reports[message.worker_id]
            if message.kind == MessageKind.ERROR:
                report.error = message.text
                self.logger.error("Worker failed", worker=message.worker_id, error=message.text)
                continue

            if message.kind == MessageKind.CAPTURED and message.image_stem:
                report.captured.append(message.image_stem)
            elif message.kind == MessageKind.DONE:
                report.completed = True
            self.logger.info("Worker says", worker=message.worker_id, message=message.text)
