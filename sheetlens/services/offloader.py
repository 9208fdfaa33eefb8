from __future__ import annotations

import logging
import multiprocessing
import queue
from dataclasses import dataclass
from multiprocessing.process import BaseProcess
from typing import Any

from ..excel.reader import ProgressCallback, detect_file_kind
from ..models.config_models import AppConfig
from ..models.dataset import ProcessedDataset
from ..models.messages import (
    ErrorMessage,
    ParseRequest,
    ParseStage,
    ProgressMessage,
    ReadyMessage,
    ResultMessage,
)
from ..models.schema import DataSchema
from .pipeline import run_pipeline

"""Parse offloading: run the decode/infer/normalize pipeline in a worker process.

Worker protocol (one worker per parse, messages in this order on the outbox):
    ready -> (request on the inbox) -> progress* -> result | error -> exit

When no worker can be started the same pipeline runs inline with coarser progress
events. Both paths return the same ProcessedDataset and raise the same errors, so
callers cannot tell which one ran. There is no cancellation.
"""

__all__ = [
    "ParseFailedError",
    "ParseOffloader",
    "UnsupportedFileError",
    "worker_main",
]

logger = logging.getLogger(__name__)

# Seconds between liveness checks while waiting on the worker
POLL_INTERVAL = 0.2
# Seconds to wait for a finished worker to exit before terminating it
JOIN_TIMEOUT = 5.0


class UnsupportedFileError(Exception):
    """The file kind cannot be decoded; raised before any work is dispatched."""


class ParseFailedError(Exception):
    """The pipeline failed, inline or inside the worker."""

    def __init__(self, message: str, stack: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.stack = stack


def worker_main(inbox: Any, outbox: Any, config: AppConfig, schema: DataSchema | None) -> None:
    """Worker process entry point."""
    outbox.put(ReadyMessage())
    request: ParseRequest = inbox.get()

    def report(stage: ParseStage, percent: int, message: str) -> None:
        outbox.put(ProgressMessage(stage=stage, percent=percent, message=message))

    report(ParseStage.READING, 10, "Reading file...")
    try:
        result = run_pipeline(request, config=config, schema=schema, report=report)
    except Exception as e:
        outbox.put(ErrorMessage.from_exception(e))
        return
    outbox.put(result)


@dataclass
class _Worker:
    process: BaseProcess
    inbox: Any
    outbox: Any


class ParseOffloader:
    """Runs parses in an isolated worker process, or inline as a fallback.

    Args:
        config: application config; ``offload`` decides when a worker is used
        start_method: multiprocessing start method, platform default when None
    """

    def __init__(self, config: AppConfig | None = None, *, start_method: str | None = None) -> None:
        self.config = config or AppConfig()
        self.start_method = start_method

    def should_offload(self, size: int, use_worker: bool | None = None) -> bool:
        if use_worker is not None:
            return use_worker
        return self.config.offload.enabled and size >= self.config.offload.min_bytes

    def parse(
        self,
        data: bytes,
        file_name: str,
        mime_type: str | None = None,
        *,
        on_progress: ProgressCallback | None = None,
        schema: DataSchema | None = None,
        use_worker: bool | None = None,
    ) -> ProcessedDataset:
        """Parse file bytes into a ProcessedDataset.

        Args:
            data: raw file content
            file_name: used to pick the decode branch and recorded as source name
            mime_type: optional MIME type (CSV detection)
            on_progress: receives (stage, percent, message) events
            schema: externally supplied schema, skips inference
            use_worker: force (True) or forbid (False) the worker; None decides by size

        Returns:
            The processed dataset

        Raises:
            UnsupportedFileError: the file kind is not xlsx, xls or csv
            ParseFailedError: the pipeline failed or the worker died
        """
        kind = detect_file_kind(file_name, mime_type)
        if kind is None:
            raise UnsupportedFileError(f"Unsupported file type: {file_name}")
        request = ParseRequest(file_bytes=data, file_name=file_name, file_kind=kind)

        if self.should_offload(len(data), use_worker):
            try:
                worker = self._start_worker(schema)
            except (OSError, ImportError, NotImplementedError) as e:
                logger.warning("parse worker unavailable, parsing inline: %s", e)
            else:
                logger.debug("parsing %s in worker pid=%s", file_name, worker.process.pid)
                return self._parse_in_worker(worker, request, on_progress).to_dataset()
        return self._parse_inline(request, on_progress, schema).to_dataset()

    # ------------------------------------------------------------------
    # Worker path
    # ------------------------------------------------------------------

    def _start_worker(self, schema: DataSchema | None) -> _Worker:
        ctx = multiprocessing.get_context(self.start_method)
        inbox = ctx.Queue()
        outbox = ctx.Queue()
        process = ctx.Process(
            target=worker_main,
            args=(inbox, outbox, self.config, schema),
            name="sheetlens-parse-worker",
            daemon=True,
        )
        process.start()
        return _Worker(process=process, inbox=inbox, outbox=outbox)

    def _receive(self, worker: _Worker) -> Any:
        while True:
            try:
                return worker.outbox.get(timeout=POLL_INTERVAL)
            except queue.Empty:
                if worker.process.is_alive():
                    continue
            # the worker may have flushed its last message right before exiting
            try:
                return worker.outbox.get(timeout=POLL_INTERVAL)
            except queue.Empty:
                raise ParseFailedError(
                    f"Parse worker exited unexpectedly (exit code {worker.process.exitcode})"
                ) from None

    def _parse_in_worker(
        self,
        worker: _Worker,
        request: ParseRequest,
        on_progress: ProgressCallback | None,
    ) -> ResultMessage:
        try:
            message = self._receive(worker)
            if not isinstance(message, ReadyMessage):
                raise ParseFailedError(f"Unexpected worker message before ready: {type(message).__name__}")
            worker.inbox.put(request)
            while True:
                message = self._receive(worker)
                if isinstance(message, ProgressMessage):
                    if on_progress is not None:
                        on_progress(message.stage, message.percent, message.message)
                elif isinstance(message, ResultMessage):
                    return message
                elif isinstance(message, ErrorMessage):
                    raise ParseFailedError(message.message, message.stack)
                else:
                    raise ParseFailedError(f"Unexpected worker message: {type(message).__name__}")
        finally:
            self._shutdown(worker)

    def _shutdown(self, worker: _Worker) -> None:
        worker.process.join(JOIN_TIMEOUT)
        if worker.process.is_alive():
            logger.warning("parse worker pid=%s did not exit, terminating", worker.process.pid)
            worker.process.terminate()
            worker.process.join()

    # ------------------------------------------------------------------
    # Inline path
    # ------------------------------------------------------------------

    def _parse_inline(
        self,
        request: ParseRequest,
        on_progress: ProgressCallback | None,
        schema: DataSchema | None,
    ) -> ResultMessage:
        def notify(stage: ParseStage, percent: int, message: str) -> None:
            if on_progress is not None:
                on_progress(stage, percent, message)

        notify(ParseStage.READING, 0, "Starting...")
        notify(ParseStage.PARSING, 50, "Processing...")
        try:
            result = run_pipeline(request, config=self.config, schema=schema)
        except Exception as e:
            error = ErrorMessage.from_exception(e)
            raise ParseFailedError(error.message, error.stack) from e
        notify(ParseStage.COMPLETE, 100, "Done")
        return result
