"""Download and decode album artwork.

Each :class:`~fmcollage.core.models.AlbumImageRef` with a URL is fetched and
decoded into a :class:`~fmcollage.core.models.DecodedImage`.  Downloads are
independent, so they run on a small bounded thread pool.  Every reference is
assigned its result slot before dispatch, which keeps the output in album
order regardless of which download finishes first, without any locking.

Failure policy
--------------
Fetching is fail-fast: the first reference (in album order) whose download or
decode fails aborts the whole run with
:class:`~fmcollage.core.errors.ImageFetchFailed`, and downloads that have not
started yet are cancelled.  A partial collage with holes where broken covers
should be is never produced.

Concurrency
-----------
All workers share one :class:`requests.Session`.  A session the fetcher
creates itself gets an adapter whose connection pool holds one connection per
worker.  An injected session is used as-is; callers sharing one across
threads are responsible for its pool size.
"""

from __future__ import annotations

import io
import logging
import threading
from collections.abc import Sequence
from concurrent.futures import Future, ThreadPoolExecutor

import requests
from PIL import Image, UnidentifiedImageError
from requests.adapters import HTTPAdapter

from .errors import GenerationCancelled, ImageFetchFailed, NoImagesAvailable
from .models import AlbumImageRef, DecodedImage

logger = logging.getLogger(__name__)


class ImageFetcher:
    """Fetch album covers over HTTP and decode them with Pillow.

    Attributes:
        timeout: Default per-image timeout in seconds
        max_workers: Upper bound on concurrent downloads (1 = sequential)
    """

    def __init__(
        self,
        session: requests.Session | None = None,
        timeout: float = 10.0,
        max_workers: int = 4,
        user_agent: str | None = None,
    ) -> None:
        if max_workers < 1:
            raise ValueError(f"max_workers must be at least 1, got {max_workers}")

        self.timeout = timeout
        self.max_workers = max_workers
        self.user_agent = user_agent

        self._owns_session = session is None
        if session is None:
            session = requests.Session()
            # One pooled connection per worker.
            adapter = HTTPAdapter(pool_maxsize=max_workers)
            session.mount("http://", adapter)
            session.mount("https://", adapter)
        self._session = session

    def fetch_one(self, ref: AlbumImageRef, timeout: float | None = None) -> DecodedImage:
        """Download and decode a single cover.

        Args:
            ref: Reference with a non-empty ``image_url``
            timeout: Timeout in seconds (defaults to ``self.timeout``)

        Returns:
            Decoded RGB image

        Raises:
            ImageFetchFailed: If the download fails or the bytes are not an image
        """
        url = ref.image_url or ""
        headers = {"User-Agent": self.user_agent} if self.user_agent else None

        try:
            response = self._session.get(
                url,
                headers=headers,
                timeout=self.timeout if timeout is None else timeout,
            )
            try:
                response.raise_for_status()
                content = response.content
            finally:
                response.close()

            with Image.open(io.BytesIO(content)) as raw:
                raw.load()
                image = raw.convert("RGB")
        except (
            requests.exceptions.RequestException,
            UnidentifiedImageError,
            Image.DecompressionBombError,
            OSError,
            ValueError,
        ) as e:
            logger.warning("Failed to fetch album #%d artwork from %s: %s", ref.album_index, url, e)
            raise ImageFetchFailed(url, e) from e

        logger.debug("Decoded %s (%dx%d)", url, image.width, image.height)
        return DecodedImage(album_index=ref.album_index, url=url, image=image)

    def fetch_all(
        self,
        refs: Sequence[AlbumImageRef],
        username: str,
        timeout: float | None = None,
        cancel_event: threading.Event | None = None,
    ) -> list[DecodedImage]:
        """Fetch every cover in *refs*, preserving their order.

        References without a URL are ignored.

        Args:
            refs: Artwork references in album order
            username: Requested username, used for error reporting
            timeout: Per-image timeout in seconds
            cancel_event: When set, downloads that have not started are abandoned

        Returns:
            Decoded images in album order

        Raises:
            ImageFetchFailed: On the first failing cover, in album order
            NoImagesAvailable: If there is nothing to fetch
            GenerationCancelled: If *cancel_event* was set mid-stage
        """
        pending = [ref for ref in refs if ref.has_image]
        if not pending:
            raise NoImagesAvailable(username)

        workers = min(self.max_workers, len(pending))
        logger.info("Fetching %d covers with %d worker(s)", len(pending), workers)

        if workers == 1:
            images = [self._fetch_checked(ref, timeout, cancel_event) for ref in pending]
        else:
            images = self._fetch_parallel(pending, workers, timeout, cancel_event)

        if not images:
            raise NoImagesAvailable(username)
        return images

    def _fetch_parallel(
        self,
        refs: list[AlbumImageRef],
        workers: int,
        timeout: float | None,
        cancel_event: threading.Event | None,
    ) -> list[DecodedImage]:
        slots: list[DecodedImage | None] = [None] * len(refs)
        executor = ThreadPoolExecutor(max_workers=workers, thread_name_prefix="fmcollage-fetch")
        try:
            futures: list[Future[DecodedImage]] = [
                executor.submit(self._fetch_checked, ref, timeout, cancel_event) for ref in refs
            ]
            # Collect in submission order so the reported failure is the
            # first one in album order, not the first one to finish.
            for slot, future in enumerate(futures):
                slots[slot] = future.result()
        finally:
            executor.shutdown(wait=True, cancel_futures=True)

        return [image for image in slots if image is not None]

    def _fetch_checked(
        self,
        ref: AlbumImageRef,
        timeout: float | None,
        cancel_event: threading.Event | None,
    ) -> DecodedImage:
        if cancel_event is not None and cancel_event.is_set():
            raise GenerationCancelled("image fetch")
        return self.fetch_one(ref, timeout)

    def close(self) -> None:
        """Release the underlying session if this fetcher created it."""
        if self._owns_session:
            self._session.close()
