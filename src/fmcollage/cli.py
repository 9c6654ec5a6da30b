"""Command-line entry point.

Examples::

    fmcollage serve --port 8000
    fmcollage render rj --period "1 Month" --dimension 5x5 --image-size Large
    fmcollage render --output ~/Pictures/week.png

``render`` fills any option it is not given from the saved options, and saves
the options it used once the collage has been written.  Core errors are
printed as ``[Kind] - message`` and exit with status 1.  An output path whose
suffix Pillow cannot write is refused before anything is fetched.
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

from PIL import Image

from fmcollage import __version__
from fmcollage.api.options_store import load_options, save_options
from fmcollage.core.config import CollageConfig, config
from fmcollage.core.errors import CoreError
from fmcollage.core.models import (
    DIMENSION_KEY,
    IMAGE_SIZE_KEY,
    PERIOD_KEY,
    USERNAME_KEY,
    CollageRequest,
)
from fmcollage.core.options import DEFAULT_TABLES
from fmcollage.core.pipeline import CollageGenerator

logger = logging.getLogger(__name__)


def sanitize_filename_input(text: str) -> str:
    """Make a username safe to embed in a filename."""
    invalid_chars = '<>:"/\\|?* '
    for char in invalid_chars:
        text = text.replace(char, "_")
    return text[:100]


def build_parser() -> argparse.ArgumentParser:
    tables = DEFAULT_TABLES
    parser = argparse.ArgumentParser(
        prog="fmcollage",
        description="Render a grid of a Last.fm user's top album covers.",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    subparsers = parser.add_subparsers(dest="command", required=True)

    serve = subparsers.add_parser("serve", help="Run the REST API server")
    serve.add_argument("--host", default=None, help="Bind address (default from config)")
    serve.add_argument("--port", type=int, default=None, help="Port (default from config)")

    render = subparsers.add_parser("render", help="Render a collage to an image file")
    render.add_argument("username", nargs="?", default=None, help="Last.fm username")
    render.add_argument("--period", choices=list(tables.periods), default=None)
    render.add_argument("--dimension", choices=list(tables.dimensions), default=None)
    render.add_argument("--image-size", dest="image_size", choices=list(tables.image_sizes), default=None)
    render.add_argument("-o", "--output", type=Path, default=None, help="Output image path")
    render.add_argument("--timeout", type=float, default=None, help="Network timeout in seconds")

    return parser


def render(args: argparse.Namespace, cfg: CollageConfig) -> int:
    """Render a collage from parsed arguments and write it to disk."""
    tables = DEFAULT_TABLES.with_default_username(cfg.default_username)
    saved = load_options(cfg.options_file, tables)
    overrides = {
        USERNAME_KEY: args.username,
        PERIOD_KEY: args.period,
        DIMENSION_KEY: args.dimension,
        IMAGE_SIZE_KEY: args.image_size,
    }
    request = CollageRequest.from_options(overrides, saved)

    output = args.output or cfg.outputs_dir / f"{sanitize_filename_input(request.username)}-collage.png"
    if Image.registered_extensions().get(output.suffix.lower()) not in Image.SAVE:
        print(f"Unsupported output format: '{output.suffix or output.name}'", file=sys.stderr)
        return 1

    with CollageGenerator(cfg, tables=tables) as generator:
        try:
            collage = generator.generate(request, timeout=args.timeout)
        except CoreError as e:
            print(f"[{e.kind}] - {e}", file=sys.stderr)
            return 1

    try:
        collage.save(output)
    except (OSError, ValueError) as e:
        print(f"Could not write {output}: {e}", file=sys.stderr)
        return 1

    save_options(cfg.options_file, request.to_options())
    print(output)
    return 0


def serve(args: argparse.Namespace, cfg: CollageConfig) -> int:
    """Launch the uvicorn ASGI server."""
    import uvicorn

    uvicorn.run(
        "fmcollage.api.main:app",
        host=args.host or cfg.server_host,
        port=args.port or cfg.server_port,
        reload=False,
    )
    return 0


def main(argv: list[str] | None = None) -> int:
    """Parse *argv* and dispatch to the selected command.

    Registered as the ``fmcollage`` console script in ``pyproject.toml``.
    """
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    if args.command == "serve":
        return serve(args, config)
    return render(args, config)


if __name__ == "__main__":
    sys.exit(main())
