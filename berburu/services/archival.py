"""Background archival of original listing photos.

Selected image URLs are downloaded again at full quality and stored under a
per-analysis bucket key. Archival runs as tracked background tasks that the
request path never awaits; failures are only logged.
"""

import asyncio
import hashlib
import logging
import os
import secrets
import time
from pathlib import Path
from typing import Protocol

import aiohttp

from ..config import config
from ..errors import ImageDownloadError
from ..scrapers.fetcher import USER_AGENT

logger = logging.getLogger(__name__)

IMAGE_EXTENSIONS = ("jpg", "jpeg", "png", "webp", "gif")


def generate_bucket_key(title: str) -> str:
    """Generate a unique archive key for one analysis.

    Args:
        title: Listing title.

    Returns:
        16 hex characters derived from the title, time, randomness and process id.
    """
    timestamp = int(time.time() * 1000)
    seed = f"{title}_{timestamp}_{secrets.token_hex(3)}_{os.getpid()}"
    return hashlib.md5(seed.encode("utf-8")).hexdigest()[:16]


def referer_for_url(url: str) -> str:
    """Pick a Referer header the image CDN accepts."""
    if "icarcdn.com" in url:
        return "https://www.mobil123.com/"
    if "apollo.olx.co.id" in url:
        return "https://www.olx.co.id/"
    return "https://www.google.com/"


def file_extension(content_type: str, url: str) -> str:
    """Derive a file extension from the Content-Type header, then the URL.

    Args:
        content_type: Response Content-Type, may be empty.
        url: Image URL.

    Returns:
        Extension without dot, 'jpg' when unknown.
    """
    content_type = content_type.lower()
    if "jpeg" in content_type or "jpg" in content_type:
        return "jpg"
    for ext in ("png", "webp", "gif"):
        if ext in content_type:
            return ext

    url_extension = url.split("?", 1)[0].rsplit(".", 1)[-1].lower()
    if url_extension in IMAGE_EXTENSIONS:
        return url_extension
    return "jpg"


class ArchivalSink(Protocol):
    """Destination for original listing photos."""

    async def archive(self, urls: list[str], bucket_key: str) -> list[str]:
        """Store images under a bucket key and return the stored locations."""
        ...


class FilesystemArchivalSink:
    """Archival sink storing originals on the local filesystem.

    Files land in <root_dir>/<bucket_key>/img_<index>_<timestamp>_<random>.<ext>.
    """

    def __init__(
        self,
        root_dir: str | Path | None = None,
        batch_size: int | None = None,
        max_attempts: int | None = None,
        timeout: float | None = None,
        backoff_base: float = 1.0,
    ) -> None:
        self.root_dir = Path(root_dir or config.archive.root_dir)
        self.batch_size = batch_size or config.archive.batch_size
        self.max_attempts = max_attempts or config.archive.max_attempts
        self.timeout = timeout or config.archive.timeout
        self.backoff_base = backoff_base
        self._initialized = False
        self._init_lock = asyncio.Lock()

    async def ensure_storage(self) -> None:
        """Create the storage root once, safe under concurrent callers."""
        if self._initialized:
            return
        async with self._init_lock:
            if self._initialized:
                return
            await asyncio.to_thread(self.root_dir.mkdir, parents=True, exist_ok=True)
            logger.info(f"Archive storage ready at {self.root_dir}")
            self._initialized = True

    async def archive(
        self, urls: list[str], bucket_key: str, session: aiohttp.ClientSession | None = None
    ) -> list[str]:
        """Download and store images in batches.

        Args:
            urls: Original image URLs.
            bucket_key: Per-analysis archive key.
            session: HTTP session, a temporary one is created when omitted.

        Returns:
            Paths of stored files.
        """
        await self.ensure_storage()
        if session is None:
            async with aiohttp.ClientSession(
                timeout=aiohttp.ClientTimeout(total=self.timeout)
            ) as own_session:
                return await self._archive_batches(urls, bucket_key, own_session)
        return await self._archive_batches(urls, bucket_key, session)

    async def _archive_batches(
        self, urls: list[str], bucket_key: str, session: aiohttp.ClientSession
    ) -> list[str]:
        stored: list[str] = []
        for start in range(0, len(urls), self.batch_size):
            batch = urls[start:start + self.batch_size]
            results = await asyncio.gather(
                *(
                    self._store(url, bucket_key, start + offset, session)
                    for offset, url in enumerate(batch)
                ),
                return_exceptions=True,
            )
            for offset, result in enumerate(results):
                if isinstance(result, BaseException):
                    logger.error(f"Failed to archive image {start + offset}: {result}")
                else:
                    stored.append(result)

        logger.info(f"Image archival summary: {len(stored)}/{len(urls)} images stored for {bucket_key}")
        return stored

    async def _store(
        self, url: str, bucket_key: str, index: int, session: aiohttp.ClientSession
    ) -> str:
        content, content_type = await self._download_with_retry(url, session)
        ext = file_extension(content_type, url)
        name = f"img_{index}_{int(time.time() * 1000)}_{secrets.token_hex(3)}.{ext}"
        path = self.root_dir / bucket_key / name
        await asyncio.to_thread(self._write_file, path, content)
        return str(path)

    @staticmethod
    def _write_file(path: Path, content: bytes) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(content)

    async def _download_with_retry(
        self, url: str, session: aiohttp.ClientSession
    ) -> tuple[bytes, str]:
        headers = {"User-Agent": USER_AGENT, "Referer": referer_for_url(url)}
        last_error: Exception | None = None

        for attempt in range(self.max_attempts):
            try:
                async with session.get(
                    url, headers=headers, timeout=aiohttp.ClientTimeout(total=self.timeout)
                ) as response:
                    if response.status == 200:
                        content = await response.read()
                        return content, response.headers.get("Content-Type", "")
                    last_error = ImageDownloadError(f"HTTP {response.status} for {url}")
            except (aiohttp.ClientError, asyncio.TimeoutError) as e:
                last_error = ImageDownloadError(f"Download failed for {url}: {e}")

            if attempt + 1 < self.max_attempts:
                await asyncio.sleep(self.backoff_base * 2 ** (attempt + 1))

        raise last_error or ImageDownloadError(f"Download failed for {url}")


class BackgroundArchiver:
    """Fire-and-forget scheduler for archival jobs.

    Keeps a strong reference to every running task until it finishes so jobs
    are not garbage collected mid-flight, and drains them on shutdown.
    """

    def __init__(self, sink: ArchivalSink) -> None:
        self.sink = sink
        self._tasks: set[asyncio.Task] = set()

    @property
    def pending(self) -> int:
        return len(self._tasks)

    def submit(self, urls: list[str], bucket_key: str) -> asyncio.Task | None:
        """Schedule archival without waiting for it.

        Args:
            urls: Image URLs to archive.
            bucket_key: Per-analysis archive key.

        Returns:
            The scheduled task, None when there was nothing to archive.
        """
        if not urls:
            return None
        task = asyncio.create_task(self.sink.archive(urls, bucket_key))
        self._tasks.add(task)
        task.add_done_callback(self._on_done)
        logger.debug(f"Scheduled archival of {len(urls)} images for {bucket_key}")
        return task

    def _on_done(self, task: asyncio.Task) -> None:
        self._tasks.discard(task)
        if task.cancelled():
            logger.warning("Archival task cancelled")
            return
        error = task.exception()
        if error is not None:
            logger.error(f"Background archival failed: {error}")

    async def shutdown(self, timeout: float | None = None) -> None:
        """Wait for pending archival tasks, cancelling what is left at timeout."""
        if not self._tasks:
            return
        timeout = timeout if timeout is not None else config.archive.shutdown_timeout
        tasks = list(self._tasks)
        logger.info(f"Waiting for {len(tasks)} archival tasks")
        _, still_running = await asyncio.wait(tasks, timeout=timeout)
        for task in still_running:
            task.cancel()
        if still_running:
            logger.warning(f"Cancelled {len(still_running)} unfinished archival tasks")
