"""Core collage pipeline.

This package turns a ``(username, period, grid size, image size)`` request
into a composed bitmap of the user's top Last.fm albums.

Architecture Overview
---------------------
The core is a chain of small stages, leaf-first:

1. **Option tables** (options.py):
   - Immutable label -> token tables and the ParameterMapper
   - Grid math: ``grid_dim = floor(sqrt(limit))``

2. **Request builder** (request_builder.py):
   - ``user.getTopAlbums`` parameters, form-encoded

3. **API client** (api_client.py):
   - GET with a form body, status classification, network errors

4. **Response parser** (response_parser.py):
   - XML to ordered artwork references

5. **Image fetcher** (image_fetcher.py):
   - Bounded parallel download and decode, fail-fast

6. **Composer** (composer.py):
   - Row-major blit onto a square canvas

The stages are wired together by CollageGenerator (pipeline.py).  All
failures derive from CoreError (errors.py), and configuration comes from
CollageConfig (config.py).

Usage Example
-------------
    from fmcollage.core import CollageGenerator, CollageRequest, config

    with CollageGenerator(config) as generator:
        collage = generator.generate(
            CollageRequest("rj", period="Week", dimension="3x3", image_size="Large")
        )
"""

from fmcollage.core.config import CollageConfig, config
from fmcollage.core.errors import CoreError
from fmcollage.core.models import Collage, CollageRequest
from fmcollage.core.options import DEFAULT_TABLES, OptionTables, ParameterMapper
from fmcollage.core.pipeline import CollageGenerator

__all__ = [
    "Collage",
    "CollageConfig",
    "CollageGenerator",
    "CollageRequest",
    "CoreError",
    "DEFAULT_TABLES",
    "OptionTables",
    "ParameterMapper",
    "config",
]
