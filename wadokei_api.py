"""FastAPI application exposing the unequal-hour dial state."""

from __future__ import annotations

import json
import logging
import time
from collections import OrderedDict
from contextlib import asynccontextmanager
from datetime import UTC, datetime
from threading import Lock
from typing import Tuple

from fastapi import Depends, FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import ValidationError

from models import ErrorResponse, HealthResponse, WadokeiQueryParams, WadokeiResponse
from wadokei import (
    DegenerateDayLength,
    DialMode,
    ProviderUnavailable,
    SpiceSunProvider,
    WadokeiClock,
    WadokeiConfig,
    load_config,
    load_ephemeris,
)
from wadokei.astro import EphemerisError, loaded_kernels
from wadokei.ephemeris import EphemerisAcquisitionError, resolve_ephemeris_source

logging.basicConfig(level=logging.INFO, format="%(message)s")
LOGGER = logging.getLogger("wadokei-api")

APP_DESCRIPTION = (
    "Edo-period unequal-hour (不定時法) clock readings based on JPL DE ephemerides"
)

MAX_CLOCKS = 64

ClockKey = Tuple[float, float, str, DialMode, float]


class ClockPool:
    """Bounded LRU of clocks, one per location, so each keeps its own day cache."""

    def __init__(self, base: WadokeiConfig, maxsize: int = MAX_CLOCKS) -> None:
        self.base = base
        self.maxsize = maxsize
        self._clocks: "OrderedDict[ClockKey, WadokeiClock]" = OrderedDict()
        self._lock = Lock()

    def get(self, params: WadokeiQueryParams) -> WadokeiClock:
        key: ClockKey = (params.lat, params.lon, params.tz, params.dial_mode, params.elev_m)
        with self._lock:
            clock = self._clocks.get(key)
            if clock is not None:
                self._clocks.move_to_end(key)
                return clock
            config = self.base.model_copy(
                update={
                    "lat": params.lat,
                    "lon": params.lon,
                    "timezone": params.tz,
                    "dial_mode": params.dial_mode,
                    "elevation_m": params.elev_m,
                }
            )
            clock = WadokeiClock(config, SpiceSunProvider(elev_m=params.elev_m))
            self._clocks[key] = clock
            if len(self._clocks) > self.maxsize:
                self._clocks.popitem(last=False)
            return clock


@asynccontextmanager
async def lifespan(app: FastAPI):  # pragma: no cover - exercised in integration tests
    try:
        source_path = resolve_ephemeris_source()
    except EphemerisAcquisitionError as exc:
        LOGGER.error(json.dumps({"event": "ephemeris_acquire_failed", "error": str(exc)}))
        raise
    LOGGER.info(json.dumps({"event": "startup", "ephemeris_source": str(source_path)}))
    try:
        load_ephemeris(str(source_path))
    except EphemerisError as exc:
        LOGGER.error(json.dumps({"event": "ephemeris_load_failed", "error": str(exc)}))
        raise
    app.state.clocks = ClockPool(load_config())
    yield


app = FastAPI(
    title="Wadokei API",
    description=APP_DESCRIPTION,
    version="1.0.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["GET"],
    allow_headers=["*"],
)


def _error_response(status_code: int, code: str, message: str) -> JSONResponse:
    payload = ErrorResponse(code=code, error=message)
    LOGGER.error(
        json.dumps({"event": "error", "code": code, "message": message}, ensure_ascii=False)
    )
    return JSONResponse(status_code=status_code, content=payload.model_dump())


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    messages = ", ".join(error["msg"] for error in exc.errors())
    return _error_response(422, "validation_error", messages)


@app.exception_handler(ValidationError)
async def model_validation_exception_handler(
    request: Request, exc: ValidationError
) -> JSONResponse:
    messages = ", ".join(error["msg"] for error in exc.errors())
    return _error_response(422, "validation_error", messages)


@app.exception_handler(DegenerateDayLength)
async def degenerate_day_handler(request: Request, exc: DegenerateDayLength) -> JSONResponse:
    return _error_response(422, "degenerate_day_length", str(exc))


@app.exception_handler(ProviderUnavailable)
async def provider_unavailable_handler(
    request: Request, exc: ProviderUnavailable
) -> JSONResponse:
    return _error_response(503, "provider_unavailable", str(exc))


@app.exception_handler(HTTPException)
async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    detail = exc.detail
    if isinstance(detail, dict):
        message = detail.get("error") or detail.get("message") or str(detail)
    elif isinstance(detail, list):
        message = ", ".join(str(item) for item in detail)
    else:
        message = str(detail)
    return _error_response(exc.status_code, f"http_{exc.status_code}", message)


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    LOGGER.exception("Unhandled exception", exc_info=exc)
    return _error_response(500, "internal_error", "Unhandled server error")


def get_clocks(request: Request) -> ClockPool:
    clocks = getattr(request.app.state, "clocks", None)
    if clocks is None:
        clocks = request.app.state.clocks = ClockPool(load_config())
    return clocks


@app.get("/health", response_model=HealthResponse)
def health() -> HealthResponse:
    files = loaded_kernels()
    return HealthResponse(ok=True, ephemeris_loaded=bool(files), files=files)


@app.get(
    "/wadokei",
    response_model=WadokeiResponse,
    responses={
        400: {"model": ErrorResponse},
        422: {"model": ErrorResponse},
        500: {"model": ErrorResponse},
        503: {"model": ErrorResponse},
    },
)
def wadokei_endpoint(
    params: WadokeiQueryParams = Depends(),
    clocks: ClockPool = Depends(get_clocks),
) -> WadokeiResponse:
    start_time = time.perf_counter()
    now = params.at or datetime.now(UTC)
    try:
        reading = clocks.get(params).reading(now)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc))

    response = WadokeiResponse.from_reading(reading, params.lat, params.lon, params.tz)
    duration_ms = (time.perf_counter() - start_time) * 1000.0
    LOGGER.info(
        json.dumps(
            {
                "event": "wadokei",
                "lat": params.lat,
                "lon": params.lon,
                "tz": params.tz,
                "at": now.isoformat(),
                "koku": reading.koku.label,
                "sekki": reading.term.name,
                "duration_ms": round(duration_ms, 3),
            },
            ensure_ascii=False,
        )
    )
    return response
