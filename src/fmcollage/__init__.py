"""fmcollage - Last.fm top-albums collage generator."""

__version__ = "0.1.0"

from fmcollage.core.config import CollageConfig, config
from fmcollage.core.errors import CoreError
from fmcollage.core.models import Collage, CollageRequest
from fmcollage.core.pipeline import CollageGenerator

__all__ = [
    "Collage",
    "CollageConfig",
    "CollageGenerator",
    "CollageRequest",
    "CoreError",
    "config",
]
