"""Error taxonomy shared by the Wadokei core."""

from __future__ import annotations


class WadokeiError(RuntimeError):
    """Base class for every error raised by the Wadokei core."""


class ProviderUnavailable(WadokeiError):
    """Raised when the astronomical provider cannot answer a query."""


class NoTwilightFound(WadokeiError):
    """Raised when a twilight search window yields no altitude samples."""


class DegenerateDayLength(WadokeiError):
    """Raised when the day length is zero or spans the whole day (polar conditions)."""
