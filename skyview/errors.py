"""Error taxonomy shared by the snapshot builder, the canvas graph and the app.

"Nothing found" is not an error: lookups return ``None``.
"""


class SkyViewError(Exception):
    """Base class for every error raised by skyview."""


class InvalidInputError(SkyViewError, ValueError):
    """Malformed observer coordinates, missing projection or catalogue, etc.

    Rejected at the boundary where the value enters, never clamped.
    """


class ConfigurationError(SkyViewError):
    """Canvas size or field of view that makes the pixel transform non-invertible."""
