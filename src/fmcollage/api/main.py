"""fmcollage — FastAPI Application.

This module defines the FastAPI ``app`` instance and the REST API routes that
put the collage pipeline behind HTTP.  It is a thin caller of the core: it
turns JSON bodies into :class:`~fmcollage.core.models.CollageRequest` values,
runs the pipeline off the event loop, and maps core errors to HTTP statuses.

Architecture
------------
- **Collage generation** is performed by a single
  :class:`~fmcollage.core.pipeline.CollageGenerator` created in the lifespan
  handler and stored on ``app.state``.  Each run executes in a worker thread
  so the event loop is never blocked by network I/O.
- **Options persistence** uses a single ``options.json`` file holding the
  four last-used friendly labels.  A successful collage run saves them.
- **Errors** raised by the core are turned into JSON bodies of the form
  ``{"error": <kind>, "detail": <message>}`` by one exception handler.

Endpoints
---------
========  ============================  ====================================
Method    Path                          Purpose
========  ============================  ====================================
GET       ``/api/config``               Version, option labels, defaults
GET       ``/api/options``              Saved options
PUT       ``/api/options``              Validate and save options
POST      ``/api/collage``              Render a collage as PNG
========  ============================  ====================================

Error Status Mapping
--------------------
===================  ======
Kind                 Status
===================  ======
UnknownOption        400
InvalidUser          404
NoRecentPlays        422
NoImagesAvailable    422
RequestFailed        502
NetworkError         502
ResponseMalformed    502
ImageFetchFailed     502
===================  ======
"""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.concurrency import run_in_threadpool
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response

from fmcollage import __version__
from fmcollage.api.models import CollageBody, OptionsBody
from fmcollage.api.options_store import load_options, save_options
from fmcollage.core.config import config
from fmcollage.core.errors import (
    CoreError,
    ImageFetchFailed,
    InvalidUser,
    NetworkError,
    NoImagesAvailable,
    NoRecentPlays,
    RequestFailed,
    ResponseMalformed,
    UnknownOption,
)
from fmcollage.core.options import DEFAULT_TABLES
from fmcollage.core.pipeline import CollageGenerator

logger = logging.getLogger(__name__)

ERROR_STATUS: dict[type[CoreError], int] = {
    UnknownOption: 400,
    InvalidUser: 404,
    NoRecentPlays: 422,
    NoImagesAvailable: 422,
    RequestFailed: 502,
    NetworkError: 502,
    ResponseMalformed: 502,
    ImageFetchFailed: 502,
}


def status_for(error: CoreError) -> int:
    """Return the HTTP status that represents *error*."""
    for error_type, status in ERROR_STATUS.items():
        if isinstance(error, error_type):
            return status
    return 500


# ---------------------------------------------------------------------------
# Application lifecycle: generator setup and teardown.
# ---------------------------------------------------------------------------


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Create the collage generator on startup and release it on shutdown.

    Args:
        app: The FastAPI application instance.

    Yields:
        Control back to the application for the duration of its lifetime.
    """
    tables = DEFAULT_TABLES.with_default_username(config.default_username)
    app.state.generator = CollageGenerator(config, tables=tables)
    app.state.options_file = config.options_file
    logger.info("CollageGenerator initialised (options file: %s).", config.options_file)

    yield

    app.state.generator.close()
    logger.info("CollageGenerator closed on shutdown.")


app = FastAPI(
    title="fmcollage",
    description="Render Last.fm top-album collages.",
    version=__version__,
    lifespan=lifespan,
)

# Browser frontends are typically served from another port in development.
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=["X-Collage-Grid", "X-Collage-Albums"],
)


@app.exception_handler(CoreError)
async def core_error_handler(request: Request, exc: CoreError) -> JSONResponse:
    """Translate a core error into a JSON error body."""
    status = status_for(exc)
    logger.info("%s %s failed with %s: %s", request.method, request.url.path, exc.kind, exc)
    return JSONResponse(
        status_code=status,
        content={"error": exc.kind, "detail": str(exc)},
    )


# ---------------------------------------------------------------------------
# Routes.
# ---------------------------------------------------------------------------


@app.get("/api/config")
async def get_config(request: Request) -> dict:
    """Return everything a frontend needs to build its option form.

    Returns:
        Dictionary with keys ``version``, ``labels`` (label lists per table,
        in display order), ``defaults``, and ``options`` (the saved options).
    """
    generator: CollageGenerator = request.app.state.generator
    tables = generator.tables
    return {
        "version": __version__,
        "labels": tables.labels(),
        "defaults": tables.defaults(),
        "options": load_options(request.app.state.options_file, tables),
    }


@app.get("/api/options")
async def get_options(request: Request) -> dict:
    """Return the saved options, falling back to defaults."""
    generator: CollageGenerator = request.app.state.generator
    return load_options(request.app.state.options_file, generator.tables)


@app.put("/api/options")
async def put_options(body: OptionsBody, request: Request) -> dict:
    """Validate and persist the four options.

    Raises:
        UnknownOption: (as 400) if a label is not in its table.
    """
    generator: CollageGenerator = request.app.state.generator
    collage_request = body.to_request()

    # Reject labels the pipeline would reject.
    generator.mapper.map_request(collage_request)

    options = collage_request.to_options()
    save_options(request.app.state.options_file, options)
    return options


@app.post("/api/collage")
async def create_collage(body: CollageBody, request: Request) -> Response:
    """Render a collage for the given labels and return it as PNG.

    The pipeline runs in a worker thread.  On success the labels are saved
    as the new options.

    Returns:
        ``image/png`` response with ``X-Collage-Grid`` (e.g. ``3x3``) and
        ``X-Collage-Albums`` (covers placed) headers.
    """
    generator: CollageGenerator = request.app.state.generator
    collage_request = body.to_request()

    collage = await run_in_threadpool(generator.generate, collage_request, timeout=body.timeout)
    png = await run_in_threadpool(collage.to_png_bytes)

    try:
        save_options(request.app.state.options_file, collage_request.to_options())
    except OSError:
        logger.exception("Failed to save options after rendering a collage.")

    return Response(
        content=png,
        media_type="image/png",
        headers={
            "X-Collage-Grid": f"{collage.grid_dim}x{collage.grid_dim}",
            "X-Collage-Albums": str(collage.album_count),
        },
    )
