"""Image acquisition for the vision classifier.

Downloads selected listing photos in small concurrent batches, shrinks and
recompresses them with Pillow and returns base64 JPEG payloads. Individual
failures are logged and dropped; the surviving images keep their input order.
"""

import asyncio
import base64
import logging
from io import BytesIO

import aiohttp
from PIL import Image, UnidentifiedImageError

from ..config import config
from ..errors import ImageDownloadError
from ..models import ProcessedImage
from ..scrapers.fetcher import DEFAULT_HEADERS, create_session

logger = logging.getLogger(__name__)


def recompress_image(content: bytes, max_width: int, quality: int) -> tuple[str, int, int]:
    """Downscale and re-encode raw image bytes as base64 JPEG.

    Runs in a worker thread; Pillow work is CPU bound.

    Args:
        content: Raw downloaded image bytes.
        max_width: Width cap, smaller images are never upscaled.
        quality: JPEG quality.

    Returns:
        Tuple of (base64 data, width, height).

    Raises:
        ImageDownloadError: If the bytes are not a decodable image.
    """
    try:
        with Image.open(BytesIO(content)) as im:
            image = im.convert("RGB")
    except (UnidentifiedImageError, OSError) as e:
        raise ImageDownloadError(f"Cannot decode image: {e}") from e

    if image.width > max_width:
        height = max(1, round(image.height * max_width / image.width))
        image = image.resize((max_width, height), Image.Resampling.LANCZOS)

    buffer = BytesIO()
    image.save(buffer, format="JPEG", quality=quality, progressive=True, optimize=True)
    return base64.b64encode(buffer.getvalue()).decode("ascii"), image.width, image.height


class ImageAcquisitionPipeline:
    """Batched downloader and recompressor for listing photos."""

    def __init__(
        self,
        batch_size: int | None = None,
        per_image_timeout: float | None = None,
        inter_batch_delay: float | None = None,
        max_width: int | None = None,
        jpeg_quality: int | None = None,
    ):
        settings = config.images
        self.batch_size = batch_size or settings.batch_size
        self.per_image_timeout = per_image_timeout or settings.per_image_timeout
        self.inter_batch_delay = (
            inter_batch_delay if inter_batch_delay is not None else settings.inter_batch_delay
        )
        self.max_width = max_width or settings.max_width
        self.jpeg_quality = jpeg_quality or settings.jpeg_quality

    async def acquire(
        self, urls: list[str], session: aiohttp.ClientSession | None = None
    ) -> list[ProcessedImage]:
        """Download and recompress images batch by batch.

        Batches run strictly one after another; images inside a batch are
        downloaded concurrently.

        Args:
            urls: Image URLs in relevance order.
            session: HTTP session, a temporary one is created when omitted.

        Returns:
            Processed images in input order, failed images omitted.
        """
        if not urls:
            return []

        if session is None:
            async with create_session(timeout=self.per_image_timeout) as own_session:
                return await self._acquire_batches(urls, own_session)
        return await self._acquire_batches(urls, session)

    async def _acquire_batches(
        self, urls: list[str], session: aiohttp.ClientSession
    ) -> list[ProcessedImage]:
        processed: list[ProcessedImage] = []
        failures = 0

        for start in range(0, len(urls), self.batch_size):
            batch = urls[start:start + self.batch_size]
            results = await asyncio.gather(
                *(self._process(url, session) for url in batch), return_exceptions=True
            )
            for url, result in zip(batch, results):
                if isinstance(result, ProcessedImage):
                    processed.append(result)
                else:
                    failures += 1
                    logger.warning(f"Image skipped {url}: {result}")

            if start + self.batch_size < len(urls) and self.inter_batch_delay > 0:
                await asyncio.sleep(self.inter_batch_delay)

        if not processed:
            logger.warning(f"No usable images out of {len(urls)} candidates")
        elif failures:
            logger.warning(f"Partial image failure: {failures}/{len(urls)} images dropped")
        else:
            logger.info(f"Processed all {len(processed)} images")
        return processed

    async def _process(self, url: str, session: aiohttp.ClientSession) -> ProcessedImage:
        try:
            content = await asyncio.wait_for(
                self._download(url, session), timeout=self.per_image_timeout
            )
        except asyncio.TimeoutError as e:
            raise ImageDownloadError(f"Timed out after {self.per_image_timeout}s") from e

        data, width, height = await asyncio.to_thread(
            recompress_image, content, self.max_width, self.jpeg_quality
        )
        return ProcessedImage(source_url=url, data=data, width=width, height=height)

    async def _download(self, url: str, session: aiohttp.ClientSession) -> bytes:
        headers = {**DEFAULT_HEADERS, "Accept": "image/webp,image/apng,image/*,*/*;q=0.8"}
        try:
            async with session.get(url, headers=headers) as response:
                if response.status != 200:
                    raise ImageDownloadError(f"HTTP {response.status}")
                return await response.read()
        except aiohttp.ClientError as e:
            raise ImageDownloadError(str(e)) from e
