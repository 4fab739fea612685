"""Raw diff stream capture.

This module drains the paginated diff stream of a snapshot pair into
numbered local page files. Page opens that fail because the page is not
materialized yet, and reads that break mid-page, are retried within a
bounded budget.
"""

from __future__ import annotations

from functools import partial
from pathlib import Path
from typing import BinaryIO, Callable

from tenacity import (
    RetryCallState,
    Retrying,
    retry_if_exception_type,
    stop_after_attempt,
    wait_fixed,
)

from core.constants import END_OF_FILE_MARKER, READ_CHUNK_SIZE, START_COOKIE
from core.errors import SnapdiffFramingError, SnapdiffIOError, SnapdiffTransientResourceError
from core.logging_config import get_logger
from ingest.page_framing import scan_page_framing
from ingest.page_source import DiffPageSource

_LOGGER = get_logger(__name__)


class _PageReadInterrupted(SnapdiffIOError):
    """Raised when the source stream breaks before a page is complete."""


class StreamReader:
    """Copies every page of a diff stream into ``raw/<index>`` files."""

    def __init__(
        self,
        source: DiffPageSource,
        raw_dir: Path,
        max_retries: int,
        retry_delay_seconds: float,
    ) -> None:
        self._source = source
        self._raw_dir = raw_dir
        self._max_retries = max_retries
        self._retry_delay_seconds = retry_delay_seconds

    def read_pages(self) -> int:
        """Capture pages until the stream reports end of file.

        Returns:
            Number of page files written, named ``0`` to ``count - 1``.

        Raises:
            SnapdiffIOError: If a page cannot be opened, read, or stored.
            SnapdiffFramingError: If a page has no termination marker.
        """
        cookie = START_COOKIE
        page_count = 0
        while True:
            page_path = self._raw_dir / str(page_count)
            self._capture_page(cookie, page_path)
            framing = scan_page_framing(page_path)
            page_count += 1
            if framing.marker == END_OF_FILE_MARKER:
                return page_count
            if framing.next_cookie is None:
                raise SnapdiffFramingError(
                    f"Diff page {page_path} ended with EOB but carries no continuation "
                    "cookie. The snapshot diff stream is malformed."
                )
            cookie = framing.next_cookie

    def _capture_page(self, cookie: str, page_path: Path) -> None:
        locator = self._source.describe(cookie)
        _LOGGER.info("raw_page_capture_started", locator=locator, page_path=str(page_path))
        retrying = self._build_retrying(
            _PageReadInterrupted,
            partial(_log_retry, "diff_page_read_retry", locator),
        )
        try:
            retrying(self._capture_page_once, cookie, page_path)
        except _PageReadInterrupted as error:
            _LOGGER.error("diff_page_read_failed", locator=locator, max_retries=self._max_retries)
            raise SnapdiffIOError(
                f"Read snapdiff failed for {locator}: exceeded maximum retries "
                f"({self._max_retries}). Last error: {error}"
            ) from error

    def _capture_page_once(self, cookie: str, page_path: Path) -> None:
        source_stream = self._open_page(cookie)
        with source_stream, _open_local_page(page_path) as local_file:
            while True:
                try:
                    chunk = source_stream.read(READ_CHUNK_SIZE)
                except OSError as error:
                    raise _PageReadInterrupted(
                        f"Reading snapdiff stream {self._source.describe(cookie)} failed: {error}"
                    ) from error
                if not chunk:
                    return
                _write_chunk(local_file, page_path, chunk)

    def _open_page(self, cookie: str) -> BinaryIO:
        locator = self._source.describe(cookie)
        _LOGGER.info("diff_page_opening", locator=locator)
        retrying = self._build_retrying(
            SnapdiffTransientResourceError,
            partial(_log_retry, "diff_page_open_retry", locator),
        )
        try:
            return retrying(self._open_page_once, cookie)
        except SnapdiffTransientResourceError as error:
            _LOGGER.error("diff_page_open_failed", locator=locator, max_retries=self._max_retries)
            raise SnapdiffIOError(
                f"Could not open snapshot diff {locator}: page was not available after "
                f"{self._max_retries} retries."
            ) from error

    def _open_page_once(self, cookie: str) -> BinaryIO:
        locator = self._source.describe(cookie)
        try:
            return self._source.open_page(cookie)
        except FileNotFoundError as error:
            raise SnapdiffTransientResourceError(
                f"Snapshot diff page {locator} is not available yet: {error.strerror}"
            ) from error
        except OSError as error:
            _LOGGER.error("diff_page_open_failed", locator=locator, error=str(error))
            raise SnapdiffIOError(f"Could not open snapshot diff {locator}: {error}.") from error

    def _build_retrying(
        self,
        error_type: type[BaseException],
        on_retry: Callable[[RetryCallState], None],
    ) -> Retrying:
        return Retrying(
            reraise=True,
            stop=stop_after_attempt(self._max_retries + 1),
            wait=wait_fixed(self._retry_delay_seconds),
            retry=retry_if_exception_type(error_type),
            before_sleep=on_retry,
        )


def _open_local_page(page_path: Path) -> BinaryIO:
    """Create or truncate a local page file."""
    try:
        return page_path.open("wb")
    except OSError as error:
        raise SnapdiffIOError(f"Could not open file {page_path}: {error}.") from error


def _write_chunk(local_file: BinaryIO, page_path: Path, chunk: bytes) -> None:
    """Append one chunk of stream bytes to the local page file."""
    try:
        local_file.write(chunk)
    except OSError as error:
        raise SnapdiffIOError(f"Could not write file {page_path}: {error}.") from error


def _log_retry(event: str, locator: str, retry_state: RetryCallState) -> None:
    """Log one failed attempt before the next retry."""
    error = retry_state.outcome.exception() if retry_state.outcome else None
    _LOGGER.error(
        event,
        locator=locator,
        attempt=retry_state.attempt_number,
        error=str(error),
    )
