"""Load asterisms from a text file of Hipparcos ids.

One asterism per line, ids separated by commas, e.g. ``24436,27366,26727``.
Blank lines and lines starting with ``#`` are ignored. Stars must already
be in the builder (load the HYG file first).
"""
from __future__ import annotations

import logging
from typing import Iterator, TextIO

from skyview.catalog import Asterism, StarCatalogueBuilder
from skyview.errors import InvalidInputError

LOG = logging.getLogger(__name__)


def iter_asterism_ids(stream: TextIO) -> Iterator[tuple[int, list[int]]]:
    """Yield (line number, Hipparcos ids) for every asterism line."""
    for lineno, line in enumerate(stream, start=1):
        line = line.strip()
        if not line or line.startswith("#"):
            continue
        try:
            ids = [int(token) for token in line.split(",") if token.strip()]
        except ValueError as exc:
            raise InvalidInputError(f"line {lineno}: bad Hipparcos id ({exc})") from exc
        yield lineno, ids


class AsterismLoader:
    def load(self, stream: TextIO, builder: StarCatalogueBuilder) -> None:
        by_hip = {}
        for star in builder.stars:
            by_hip.setdefault(star.hipparcos_id, star)

        count = 0
        for lineno, ids in iter_asterism_ids(stream):
            missing = [hip for hip in ids if hip not in by_hip]
            if missing:
                raise InvalidInputError(f"line {lineno}: unknown Hipparcos ids {missing}")
            builder.add_asterism(Asterism(tuple(by_hip[hip] for hip in ids), name=f"asterism-{lineno}"))
            count += 1
        LOG.debug("Asterism loader read %d asterisms", count)


ASTERISM_LOADER = AsterismLoader()


__all__ = ["ASTERISM_LOADER", "AsterismLoader", "iter_asterism_ids"]
