"""Locating, and if necessary downloading, the SPK kernel the provider reads."""

from __future__ import annotations

import json
import logging
import os
from pathlib import Path

import httpx

LOGGER = logging.getLogger(__name__)

DEFAULT_EPHEMERIS_URL = (
    "https://naif.jpl.nasa.gov/pub/naif/generic_kernels/spk/planets/de440s.bsp"
)
DEFAULT_EPHEMERIS_FILENAME = "de440s.bsp"
DEFAULT_CACHE_DIR = Path.home() / ".wadokei" / "kernels"

EPHEMERIS_ENV_VAR = "DE_BSP"
CACHE_DIR_ENV_VAR = "DE_BSP_CACHE_DIR"


class EphemerisAcquisitionError(RuntimeError):
    """Raised when the default ephemeris cannot be acquired."""


def _download_file(url: str, destination: Path) -> None:
    destination.parent.mkdir(parents=True, exist_ok=True)
    LOGGER.info(
        json.dumps({"event": "ephemeris_downloading", "url": url, "destination": str(destination)})
    )
    try:
        with httpx.stream("GET", url, timeout=httpx.Timeout(120.0, connect=30.0)) as response:
            response.raise_for_status()
            total = int(response.headers.get("Content-Length", "0")) or None
            received = 0
            with destination.open("wb") as handle:
                for chunk in response.iter_bytes(chunk_size=1 << 20):
                    handle.write(chunk)
                    received += len(chunk)
    except (httpx.HTTPError, OSError) as exc:
        if destination.exists():
            destination.unlink()
        raise EphemerisAcquisitionError(f"Failed to download ephemeris from {url}: {exc}") from exc

    LOGGER.info(
        json.dumps(
            {
                "event": "ephemeris_downloaded",
                "url": url,
                "destination": str(destination),
                "bytes": received,
                "total": total,
            }
        )
    )


def ensure_ephemeris(path: Path, url: str = DEFAULT_EPHEMERIS_URL) -> Path:
    """Return a directory holding at least one ``.bsp`` kernel.

    *path* may name a kernel file, a directory, or a location that does not exist
    yet; missing kernels are downloaded from *url*.
    """

    if path.is_file():
        if path.suffix.lower() != ".bsp":
            raise EphemerisAcquisitionError(f"Ephemeris file must have .bsp extension: {path}")
        return path.parent

    if path.exists() and not path.is_dir():
        raise EphemerisAcquisitionError(f"Ephemeris path is not a file or directory: {path}")

    if path.suffix.lower() == ".bsp":
        _download_file(url, path)
        return path.parent

    if path.is_dir() and any(path.glob("*.bsp")):
        return path

    path.mkdir(parents=True, exist_ok=True)
    _download_file(url, path / DEFAULT_EPHEMERIS_FILENAME)
    return path


def resolve_ephemeris_source() -> Path:
    """Directory with a usable ephemeris kernel, downloading one if necessary."""

    override = os.environ.get(EPHEMERIS_ENV_VAR)
    if override:
        return ensure_ephemeris(Path(override).expanduser())

    cache_root = Path(os.environ.get(CACHE_DIR_ENV_VAR, str(DEFAULT_CACHE_DIR))).expanduser()
    return ensure_ephemeris(cache_root)
