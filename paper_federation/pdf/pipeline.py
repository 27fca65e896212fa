"""PDF retrieval: direct fetch with CORS-proxy fallback, caching and progress."""

import asyncio
import logging
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import BinaryIO, Callable, Literal
from urllib.parse import quote

import httpx

from ..config.loader import PdfConfig
from ..errors import (
    FederationError,
    HttpError,
    NetworkError,
    PdfValidationError,
    RetriesExhausted,
)
from ..models import DownloadProgress, DownloadStatus
from ..retry import is_network_error, linear_backoff, retry_async
from .validation import extract_file_name, is_pdf_response

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[DownloadProgress], None]

# Progress bands
CONNECT_START = 5
CONNECT_SPAN = 70
HEADERS_RECEIVED = 80
STREAM_SPAN = 19
UNKNOWN_LENGTH = 85


@dataclass
class PdfDocument:
    """PDF bytes held in memory, ready to hand to a viewer."""

    paper_id: str
    data: bytes
    file_name: str
    content_type: str = "application/pdf"
    source_url: str | None = None
    origin: Literal["api", "upload"] = "api"

    @property
    def size(self) -> int:
        return len(self.data)


@dataclass
class _DownloadRecord:
    """Latest progress for a paper plus when its current download started."""

    progress: DownloadProgress
    started_at: float = field(default_factory=time.monotonic)

    def is_stale(self, timeout: float) -> bool:
        return (
            self.progress.status == DownloadStatus.DOWNLOADING
            and time.monotonic() - self.started_at > timeout
        )


class PdfRetriever:
    """
    Acquires PDFs for papers and keeps them in an in-memory cache.

    Strategy ladder: direct fetch, then each configured CORS proxy in order.
    Each strategy retries network failures with linear backoff; any other
    failure (HTTP error, redirect loop, a payload that is not a PDF) moves
    straight to the next strategy. Every download that starts ends in a
    ``completed`` or ``error`` event.

    Usage:
        async with PdfRetriever(config) as retriever:
            unsubscribe = retriever.on_progress(print)
            document = await retriever.download("oa_W123", "https://x.org/a.pdf")
    """

    def __init__(
        self,
        config: PdfConfig | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self._config = config or PdfConfig()
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

        self._cache: dict[str, PdfDocument] = {}
        self._downloads: dict[str, _DownloadRecord] = {}
        self._listeners: list[ProgressCallback] = []
        self._tasks: dict[str, asyncio.Task] = {}
        self._cancelled: set[asyncio.Task] = set()

    async def __aenter__(self) -> "PdfRetriever":
        self._client = httpx.AsyncClient(
            timeout=self._config.timeout,
            follow_redirects=True,
            headers={"Accept": "application/pdf, */*"},
            transport=self._transport,
        )
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        for task in list(self._tasks.values()):
            task.cancel()
        if self._client:
            await self._client.aclose()
            self._client = None

    @property
    def client(self) -> httpx.AsyncClient:
        if self._client is None:
            raise RuntimeError(
                "Retriever not initialized. Use 'async with' context manager."
            )
        return self._client

    # Progress bookkeeping

    def on_progress(self, callback: ProgressCallback) -> Callable[[], None]:
        """Subscribe to progress events. Returns an unsubscribe function."""
        self._listeners.append(callback)

        def unsubscribe() -> None:
            if callback in self._listeners:
                self._listeners.remove(callback)

        return unsubscribe

    def _notify(self, progress: DownloadProgress) -> None:
        record = self._downloads.get(progress.paper_id)
        restarting = (
            progress.status == DownloadStatus.DOWNLOADING
            and progress.progress == 0
        )
        if record is None or restarting or record.progress.status != DownloadStatus.DOWNLOADING:
            self._downloads[progress.paper_id] = _DownloadRecord(progress)
        else:
            record.progress = progress

        for callback in list(self._listeners):
            try:
                callback(progress)
            except Exception as e:
                logger.warning(f"Progress listener failed: {e}")

    def _emit(
        self,
        paper_id: str,
        progress: int,
        status: DownloadStatus,
        message: str | None = None,
        attempt: int | None = None,
        total_attempts: int | None = None,
    ) -> None:
        self._notify(
            DownloadProgress(
                paper_id=paper_id,
                progress=max(0, min(progress, 100)),
                status=status,
                status_message=message,
                attempt_number=attempt,
                total_attempts=total_attempts,
            )
        )

    def get_status(self, paper_id: str) -> DownloadProgress | None:
        """Latest progress event for a paper, if any."""
        record = self._downloads.get(paper_id)
        return record.progress if record else None

    def clear_status(self, paper_id: str) -> None:
        self._downloads.pop(paper_id, None)

    # Cache

    def get_cached(self, paper_id: str) -> PdfDocument | None:
        return self._cache.get(paper_id)

    def evict(self, paper_id: str) -> None:
        """Release a cached PDF."""
        self._cache.pop(paper_id, None)

    # Download

    def _strategies(self, pdf_url: str) -> list[tuple[str, str]]:
        """(label, target URL) pairs: direct first, then proxies in order."""
        strategies = [("direct", pdf_url)]
        for index, proxy in enumerate(self._config.cors_proxies, start=1):
            strategies.append((f"proxy {index}", f"{proxy}{quote(pdf_url, safe='')}"))
        return strategies

    async def download(
        self,
        paper_id: str,
        pdf_url: str,
        file_name: str | None = None,
        force_refresh: bool = False,
    ) -> PdfDocument | None:
        """
        Download a PDF for ``paper_id`` from ``pdf_url``.

        Returns:
            The cached or freshly downloaded PdfDocument, or None when every
            strategy failed, a download is already running, or the download
            was cancelled. A terminal progress event is always emitted for
            attempts that actually start.
        """
        cached = self._cache.get(paper_id)
        if cached is not None and not force_refresh:
            self._emit(paper_id, 100, DownloadStatus.COMPLETED, "Loaded from cache")
            return cached

        record = self._downloads.get(paper_id)
        if record is not None and record.progress.status == DownloadStatus.DOWNLOADING:
            if not record.is_stale(self._config.stale_after):
                logger.info(f"Download already in progress for {paper_id}")
                return None
            logger.warning(f"Overriding stale download for {paper_id}")
            stale_task = self._tasks.get(paper_id)
            if stale_task is not None and not stale_task.done():
                self._cancelled.add(stale_task)
                stale_task.cancel()

        self._emit(paper_id, 0, DownloadStatus.DOWNLOADING, "Starting download")

        task = asyncio.create_task(self._run_strategies(paper_id, pdf_url, file_name))
        self._tasks[paper_id] = task
        try:
            return await task
        except asyncio.CancelledError:
            if task in self._cancelled:
                self._cancelled.discard(task)
                return None
            raise
        finally:
            if self._tasks.get(paper_id) is task:
                del self._tasks[paper_id]
                # Never leave a record stuck in "downloading"
                record = self._downloads.get(paper_id)
                if record is not None and record.progress.status == DownloadStatus.DOWNLOADING:
                    self._emit(paper_id, 0, DownloadStatus.ERROR, "Download interrupted")

    async def _run_strategies(
        self,
        paper_id: str,
        pdf_url: str,
        file_name: str | None,
    ) -> PdfDocument | None:
        strategies = self._strategies(pdf_url)
        attempts_per_strategy = self._config.max_retries + 1
        total_attempts = len(strategies) * attempts_per_strategy
        attempt_number = 0
        last_error: Exception | None = None

        for label, target_url in strategies:

            async def attempt_fetch(retry_index: int) -> tuple[bytes, str]:
                nonlocal attempt_number
                attempt_number += 1
                self._emit(
                    paper_id,
                    CONNECT_START + CONNECT_SPAN * (attempt_number - 1) // total_attempts,
                    DownloadStatus.DOWNLOADING,
                    f"Connecting ({label}, attempt {attempt_number}/{total_attempts})",
                    attempt_number,
                    total_attempts,
                )
                return await self._fetch(
                    paper_id, target_url, pdf_url, attempt_number, total_attempts
                )

            try:
                data, content_type = await retry_async(
                    attempt_fetch,
                    max_attempts=attempts_per_strategy,
                    should_retry=is_network_error,
                    backoff=linear_backoff(self._config.retry_delay),
                    description=f"PDF {label} for {paper_id}",
                )
            except RetriesExhausted as e:
                last_error = e.last_error or e
                continue
            except Exception as e:
                last_error = e
                logger.warning(f"PDF {label} failed for {paper_id}: {e}")
                continue

            document = PdfDocument(
                paper_id=paper_id,
                data=data,
                file_name=file_name or extract_file_name(pdf_url, paper_id),
                content_type="application/pdf",
                source_url=pdf_url,
            )
            self._cache[paper_id] = document
            self._emit(
                paper_id,
                100,
                DownloadStatus.COMPLETED,
                f"Downloaded {document.size} bytes ({label})",
                attempt_number,
                total_attempts,
            )
            return document

        message = str(last_error) if last_error else "Download failed after all attempts"
        logger.error(f"PDF download failed for {paper_id}: {message}")
        self._emit(
            paper_id, 0, DownloadStatus.ERROR, message, attempt_number, total_attempts
        )
        return None

    async def _fetch(
        self,
        paper_id: str,
        target_url: str,
        source_url: str,
        attempt_number: int,
        total_attempts: int,
    ) -> tuple[bytes, str]:
        """One GET of ``target_url``, streaming the body when its size is known."""
        try:
            async with self.client.stream("GET", target_url) as response:
                if not response.is_success:
                    raise HttpError(response.status_code)

                content_type = response.headers.get("Content-Type", "")
                content_length = response.headers.get("Content-Length", "")
                total_bytes = int(content_length) if content_length.isdigit() else 0

                self._emit(
                    paper_id,
                    HEADERS_RECEIVED,
                    DownloadStatus.DOWNLOADING,
                    "Receiving data",
                    attempt_number,
                    total_attempts,
                )

                if total_bytes > 0:
                    chunks: list[bytes] = []
                    received = 0
                    async for chunk in response.aiter_bytes(self._config.chunk_size):
                        chunks.append(chunk)
                        received += len(chunk)
                        self._emit(
                            paper_id,
                            min(HEADERS_RECEIVED + received * STREAM_SPAN // total_bytes, 99),
                            DownloadStatus.DOWNLOADING,
                            f"Downloading {received}/{total_bytes} bytes",
                            attempt_number,
                            total_attempts,
                        )
                    data = b"".join(chunks)
                else:
                    self._emit(
                        paper_id,
                        UNKNOWN_LENGTH,
                        DownloadStatus.DOWNLOADING,
                        "Downloading (size unknown)",
                        attempt_number,
                        total_attempts,
                    )
                    data = await response.aread()
        except httpx.TransportError as e:
            raise NetworkError(f"{type(e).__name__}: {e}") from e
        except httpx.HTTPError as e:
            # Redirect loops, bad URLs, undecodable bodies: not worth retrying
            raise FederationError(f"{type(e).__name__}: {e}") from e

        if not is_pdf_response(content_type, source_url, len(data), self._config.min_size):
            raise PdfValidationError(
                f"Downloaded file is not a valid PDF "
                f"({content_type or 'no content type'}, {len(data)} bytes)"
            )
        return data, content_type

    def cancel(self, paper_id: str) -> None:
        """Abort an active download; the caller of ``download`` gets None."""
        task = self._tasks.get(paper_id)
        if task is not None and not task.done():
            self._cancelled.add(task)
            task.cancel()

        record = self._downloads.get(paper_id)
        if record is not None and record.progress.status == DownloadStatus.DOWNLOADING:
            self._emit(paper_id, 0, DownloadStatus.ERROR, "Download cancelled")

    # Manual upload

    async def upload(
        self,
        paper_id: str,
        file: str | Path | BinaryIO,
        file_name: str | None = None,
        content_type: str | None = None,
    ) -> PdfDocument | None:
        """Register a user-supplied PDF. No retries apply."""
        try:
            if isinstance(file, (str, Path)):
                path = Path(file)
                name = file_name or path.name
                data = await asyncio.to_thread(path.read_bytes)
            else:
                name = file_name or Path(getattr(file, "name", "") or f"{paper_id}.pdf").name
                data = await asyncio.to_thread(file.read)
        except OSError as e:
            logger.error(f"PDF upload failed for {paper_id}: {e}")
            self._emit(paper_id, 0, DownloadStatus.ERROR, f"Upload failed: {e}")
            return None

        if "pdf" not in (content_type or "").lower() and not name.lower().endswith(".pdf"):
            self._emit(paper_id, 0, DownloadStatus.ERROR, "File is not a PDF")
            return None

        document = PdfDocument(
            paper_id=paper_id,
            data=data,
            file_name=name,
            origin="upload",
        )
        self._cache[paper_id] = document
        self._emit(paper_id, 100, DownloadStatus.COMPLETED, f"Uploaded {name}")
        return document
