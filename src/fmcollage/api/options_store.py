"""Persistence helpers for the last-used collage options.

The store is a single flat JSON object with exactly four keys, ``username``,
``period``, ``dimension`` and ``image-size``, whose values are the friendly
labels shown to the user (never API tokens).  Keeping labels on disk means
the options survive any change in how labels map to provider tokens.

Loading is forgiving, in the same way the rest of the service treats its
JSON files:

- if the file is missing or invalid, the defaults are returned
- unknown keys are ignored
- a value that is not a known label for its table falls back to the default
- a blank username falls back to the default username
"""

from __future__ import annotations

import json
import logging
from collections.abc import Mapping
from pathlib import Path

from fmcollage.core.models import OPTION_KEYS, USERNAME_KEY
from fmcollage.core.options import OptionTables

logger = logging.getLogger(__name__)


def load_options(options_file: Path, tables: OptionTables) -> dict[str, str]:
    """Load saved options, reconciling them against the option tables.

    Args:
        options_file: Path to ``options.json``.
        tables: Option tables used to validate the stored labels.

    Returns:
        Dictionary with a valid value for every key in ``OPTION_KEYS``.
    """
    defaults = tables.defaults()

    if options_file.exists():
        try:
            with open(options_file, encoding="utf-8") as handle:
                raw = json.load(handle)
        except (OSError, ValueError) as e:
            logger.warning("Could not read options from %s: %s", options_file, e)
            raw = {}
    else:
        logger.info("Options file %s not found, using defaults", options_file)
        raw = {}

    if not isinstance(raw, dict):
        raw = {}

    return reconcile_options(raw, tables, defaults)


def reconcile_options(
    raw: Mapping[str, object],
    tables: OptionTables,
    defaults: Mapping[str, str] | None = None,
) -> dict[str, str]:
    """Keep the known keys of *raw* whose values are valid, default the rest."""
    defaults = defaults or tables.defaults()
    valid_labels = tables.labels()

    options: dict[str, str] = {}
    for key in OPTION_KEYS:
        value = raw.get(key)
        if not isinstance(value, str):
            options[key] = defaults[key]
            continue

        if key == USERNAME_KEY:
            options[key] = value if value.strip() else defaults[key]
        elif value in valid_labels[key]:
            options[key] = value
        else:
            logger.warning("Ignoring unknown %s option %r", key, value)
            options[key] = defaults[key]

    return options


def save_options(options_file: Path, options: Mapping[str, str]) -> None:
    """Persist the four option keys to disk.

    Args:
        options_file: Path to ``options.json``.
        options: Mapping holding at least every key in ``OPTION_KEYS``.
    """
    options_file.parent.mkdir(parents=True, exist_ok=True)
    payload = {key: options[key] for key in OPTION_KEYS}
    with open(options_file, "w", encoding="utf-8") as handle:
        json.dump(payload, handle, indent=2, ensure_ascii=False)
