"""HTTP surface for the browser controls and the 3D scene.

Usage:
    uvicorn tastecore.server:create_app --factory --port 5001
"""

from __future__ import annotations

import logging
import time
from typing import Any, Callable, Dict, List, Optional

from fastapi import Body, Depends, FastAPI, Header, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict, Field

from . import __version__
from .aggregate import TrackFeatures, aggregate_taste
from .buckets import SpeedTier
from .errors import InvalidParametersError
from .logging_utils import log_request
from .params import parse_taste
from .service import DEFAULT_IDENTITY, ProfileService
from .settings import ServerSettings

_LOGGER = logging.getLogger("tastecore.server")

_SPEED_TIERS: tuple[SpeedTier, ...] = ("slow", "medium", "fast")


class TasteRequest(BaseModel):
    taste: Dict[str, Any] = Field(default_factory=dict)
    changed_field: Optional[str] = Field(default=None, alias="changedField")

    model_config = ConfigDict(populate_by_name=True)


class TracksRequest(BaseModel):
    tracks: List[TrackFeatures] = Field(default_factory=list)


def _service(request: Request) -> ProfileService:
    return request.app.state.service


def _identity(x_user_id: Optional[str] = Header(default=None)) -> str:
    return x_user_id or DEFAULT_IDENTITY


def _success(data: Dict[str, Any]) -> Dict[str, Any]:
    return {"status": "success", "data": data}


def _speed_endpoint(tier: SpeedTier) -> Callable[..., JSONResponse]:
    def check(
        service: ProfileService = Depends(_service),
        identity: str = Depends(_identity),
    ) -> JSONResponse:
        result = service.check_speed(tier, identity)
        return JSONResponse(
            status_code=200 if result.success else 403,
            content={
                "success": result.success,
                "message": result.message,
                "speedValue": result.speed,
            },
        )

    check.__name__ = f"speed_{tier}"
    return check


def create_app(
    service: ProfileService | None = None,
    settings: ServerSettings | None = None,
) -> FastAPI:
    settings = settings or ServerSettings.from_env()
    if service is None:
        service = ProfileService(settings.build_store())

    app = FastAPI(title="tastecore", version=__version__)
    app.state.service = service
    app.state.settings = settings
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.middleware("http")
    async def log_requests(request: Request, call_next):  # type: ignore[no-untyped-def]
        started = time.perf_counter()
        response = await call_next(request)
        elapsed_ms = (time.perf_counter() - started) * 1000.0
        log_request(_LOGGER, request.method, request.url.path, response.status_code, elapsed_ms)
        return response

    @app.exception_handler(InvalidParametersError)
    async def invalid_parameters(request: Request, exc: InvalidParametersError) -> JSONResponse:
        return JSONResponse(status_code=400, content={"status": "error", "message": str(exc)})

    @app.exception_handler(Exception)
    async def internal_error(request: Request, exc: Exception) -> JSONResponse:
        _LOGGER.error("Error processing %s %s: %s", request.method, request.url.path, exc, exc_info=True)
        return JSONResponse(
            status_code=500,
            content={"status": "error", "message": "An internal server error occurred"},
        )

    # ------------------------------------------------------------------ api v1
    @app.get("/api/v1/values")
    def api_values(
        service: ProfileService = Depends(_service),
        identity: str = Depends(_identity),
    ) -> Dict[str, Any]:
        return _success(service.get_values(identity).to_wire())

    @app.put("/api/v1/update")
    def api_update(
        payload: Dict[str, Any] = Body(...),
        service: ProfileService = Depends(_service),
        identity: str = Depends(_identity),
    ) -> Dict[str, Any]:
        return _success(service.update(payload, identity).to_wire())

    @app.put("/api/v1/taste")
    def api_taste(
        body: TasteRequest,
        service: ProfileService = Depends(_service),
        identity: str = Depends(_identity),
    ) -> Dict[str, Any]:
        taste = parse_taste(body.taste)
        if body.changed_field is None:
            params = service.apply_taste_profile(taste, identity)
        else:
            params = service.apply_taste(taste, body.changed_field, identity)
        return _success(params.to_wire())

    @app.put("/api/v1/taste/tracks")
    def api_taste_tracks(
        body: TracksRequest,
        service: ProfileService = Depends(_service),
        identity: str = Depends(_identity),
    ) -> Dict[str, Any]:
        taste = aggregate_taste(body.tracks)
        params = service.apply_taste_profile(taste, identity)
        return {"status": "success", "data": params.to_wire(), "taste": taste.to_wire()}

    # ------------------------------------------------------------------ spline
    @app.get("/spline/values")
    def spline_values(
        service: ProfileService = Depends(_service),
        identity: str = Depends(_identity),
    ) -> Dict[str, Any]:
        return service.get_values(identity).to_wire()

    @app.put("/spline/update")
    def spline_update(
        payload: Dict[str, Any] = Body(...),
        service: ProfileService = Depends(_service),
        identity: str = Depends(_identity),
    ) -> Dict[str, Any]:
        return service.update(payload, identity, out_of_range="clamp").to_wire()

    @app.get("/spline/speed")
    def spline_get_speed(
        service: ProfileService = Depends(_service),
        identity: str = Depends(_identity),
    ) -> Dict[str, Any]:
        return {"speedValue": service.get_speed(identity)}

    @app.put("/spline/speed")
    def spline_set_speed(
        payload: Dict[str, Any] = Body(...),
        service: ProfileService = Depends(_service),
        identity: str = Depends(_identity),
    ) -> JSONResponse:
        try:
            speed = service.set_speed(payload.get("value"), identity)
        except InvalidParametersError:
            return JSONResponse(status_code=400, content={"error": "Invalid speed value"})
        return JSONResponse(content={"success": True, "speedValue": speed})

    for tier in _SPEED_TIERS:
        app.add_api_route(f"/spline/{tier}", _speed_endpoint(tier), methods=["GET"])

    return app


__all__ = ["create_app"]
