"""End-to-end collage generation.

:class:`CollageGenerator` wires the stages together::

    CollageRequest
      -> ParameterMapper      labels to tokens, grid math
      -> LastFMClient         GET with form body, status classification
      -> parse_top_albums     XML to ordered artwork references
      -> ImageFetcher         bounded parallel download + decode
      -> CollageComposer      row-major blit
      -> Collage

Every stage fails fast and the first error ends the run; nothing is retried.
Retry policy, if wanted, belongs to the caller.

Interactive callers should not block their event thread on a run.  They can
either call :meth:`CollageGenerator.generate` from a worker of their own, or
use :meth:`CollageGenerator.submit`, which returns a
:class:`concurrent.futures.Future` and optionally invokes a callback when the
run finishes.  Passing a :class:`threading.Event` lets the caller cancel a run
between stages; in-flight network calls are bounded by the timeout instead.

Usage
-----
::

    from fmcollage.core.config import config
    from fmcollage.core.models import CollageRequest
    from fmcollage.core.pipeline import CollageGenerator

    with CollageGenerator(config) as generator:
        collage = generator.generate(
            CollageRequest("rj", period="1 Month", dimension="3x3", image_size="Large")
        )
        collage.save(config.outputs_dir / "rj.png")
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable
from concurrent.futures import Future, ThreadPoolExecutor

from .api_client import LastFMClient
from .composer import CollageComposer
from .config import CollageConfig
from .errors import GenerationCancelled
from .image_fetcher import ImageFetcher
from .models import Collage, CollageRequest
from .options import DEFAULT_TABLES, OptionTables, ParameterMapper
from .response_parser import parse_top_albums

logger = logging.getLogger(__name__)


class CollageGenerator:
    """Run the collage pipeline for a :class:`CollageRequest`.

    Collaborators default to instances built from *config*; tests and callers
    with special needs can inject their own.
    """

    def __init__(
        self,
        config: CollageConfig,
        tables: OptionTables = DEFAULT_TABLES,
        client: LastFMClient | None = None,
        fetcher: ImageFetcher | None = None,
        composer: CollageComposer | None = None,
    ) -> None:
        self._config = config
        self.mapper = ParameterMapper(tables)
        self.client = client or LastFMClient(
            api_url=config.api_url,
            api_key=config.api_key,
            timeout=config.request_timeout,
            user_agent=config.user_agent,
        )
        self.fetcher = fetcher or ImageFetcher(
            timeout=config.image_timeout,
            max_workers=config.fetch_workers,
            user_agent=config.user_agent,
        )
        self.composer = composer or CollageComposer(background=config.collage_background)

        # Created on first submit() so blocking callers never start a thread.
        self._executor: ThreadPoolExecutor | None = None
        self._executor_lock = threading.Lock()

    @property
    def tables(self) -> OptionTables:
        return self.mapper.tables

    def generate(
        self,
        request: CollageRequest,
        *,
        timeout: float | None = None,
        cancel_event: threading.Event | None = None,
    ) -> Collage:
        """Produce a collage for *request*.

        Args:
            request: Labels selected by the user
            timeout: Per-call network timeout in seconds (defaults from config)
            cancel_event: Checked between stages; when set the run stops

        Returns:
            The composed collage

        Raises:
            CoreError: The first failure of any stage (see ``fmcollage.core.errors``)
        """
        _check_cancel(cancel_event, "parameter mapping")
        params = self.mapper.map_request(request)
        logger.info(
            "Generating %dx%d collage for '%s' (period=%s, size=%s)",
            params.grid_dim,
            params.grid_dim,
            params.username,
            params.period,
            params.image_size,
        )

        _check_cancel(cancel_event, "API request")
        body = self.client.fetch_top_albums(params, timeout=timeout)

        _check_cancel(cancel_event, "response parsing")
        refs = parse_top_albums(body, params.image_size, params.username)

        _check_cancel(cancel_event, "image fetch")
        images = self.fetcher.fetch_all(
            refs,
            params.username,
            timeout=timeout,
            cancel_event=cancel_event,
        )

        _check_cancel(cancel_event, "composition")
        return self.composer.compose(images, params.grid_dim)

    def submit(
        self,
        request: CollageRequest,
        *,
        timeout: float | None = None,
        cancel_event: threading.Event | None = None,
        callback: Callable[[Future[Collage]], None] | None = None,
    ) -> Future[Collage]:
        """Run :meth:`generate` on a background thread.

        Args:
            request: Labels selected by the user
            timeout: Per-call network timeout in seconds
            cancel_event: Event the caller can set to stop the run between stages
            callback: Invoked with the finished future (on the worker thread)

        Returns:
            Future resolving to the collage or raising the run's ``CoreError``
        """
        with self._executor_lock:
            if self._executor is None:
                self._executor = ThreadPoolExecutor(
                    max_workers=1, thread_name_prefix="fmcollage-run"
                )
            executor = self._executor

        future = executor.submit(
            self.generate, request, timeout=timeout, cancel_event=cancel_event
        )
        if callback is not None:
            future.add_done_callback(callback)
        return future

    def close(self) -> None:
        """Stop the background worker and release HTTP sessions."""
        with self._executor_lock:
            if self._executor is not None:
                self._executor.shutdown(wait=True)
                self._executor = None
        self.client.close()
        self.fetcher.close()

    def __enter__(self) -> CollageGenerator:
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()


def _check_cancel(cancel_event: threading.Event | None, stage: str) -> None:
    if cancel_event is not None and cancel_event.is_set():
        logger.info("Cancelled before %s", stage)
        raise GenerationCancelled(stage)
