from __future__ import annotations

import logging
from typing import Optional

from dotenv import load_dotenv
from fastapi import FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .config import ROOT, EngineSettings
from .errors import NoCandidateAvailable, UnknownComponentError
from .schemas import (
    CATEGORIES,
    SUPPORTED_REGIONS,
    BuildRequest,
    CompatibilityRequest,
    LearnedRequest,
    ObservationRequest,
    Region,
)
from .service import BuildService

load_dotenv(ROOT / ".env")

settings = EngineSettings.from_env()
logging.basicConfig(
    level=getattr(logging, settings.log_level, logging.INFO),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


def create_app(service: BuildService) -> FastAPI:
    app = FastAPI(title="BuildForge")
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.state.service = service

    @app.exception_handler(NoCandidateAvailable)
    async def no_candidate(request: Request, err: NoCandidateAvailable):
        logger.warning("build failed: %s", err)
        return JSONResponse(status_code=422, content={"detail": err.to_dict()})

    @app.exception_handler(UnknownComponentError)
    async def unknown_component(request: Request, err: UnknownComponentError):
        return JSONResponse(
            status_code=404,
            content={"detail": str(err), "unknown_ids": err.component_ids},
        )

    @app.post("/api/builds")
    def generate_build(payload: BuildRequest):
        return service.generate(payload.budget, payload.region).model_dump(mode="json")

    @app.post("/api/compatibility")
    def check_compatibility(payload: CompatibilityRequest):
        if payload.build is not None:
            build = payload.build
            result = service.check(build)
        else:
            try:
                build, result = service.check_ids(payload.component_ids)
            except ValueError as err:
                raise HTTPException(status_code=400, detail=str(err)) from err
        return {
            "compatibility": result.model_dump(mode="json"),
            "total_price": build.total_price(payload.region),
        }

    @app.post("/api/learned")
    def learned(payload: LearnedRequest):
        return service.learned(payload.component_a, payload.component_b).model_dump(mode="json")

    @app.post("/api/observations")
    def record_observation(payload: ObservationRequest):
        pattern = service.record(
            payload.component_a,
            payload.component_b,
            payload.compatible,
            verified=payload.verified,
            build_id=payload.build_id,
        )
        return pattern.to_dict()

    @app.get("/api/components")
    def list_components(category: Optional[str] = None, region: Region = "US"):
        if category is not None and category not in CATEGORIES:
            raise HTTPException(status_code=400, detail=f"unknown category: {category}")
        return [c.model_dump(mode="json") for c in service.components(category, region)]

    @app.get("/api/budget/{total}")
    def budget(total: int):
        if total <= 0:
            raise HTTPException(status_code=400, detail="budget must be positive")
        allocation = service.allocation(total)
        return {
            "total_budget": allocation.total_budget,
            "envelopes": allocation.to_dict(),
            "remainder": allocation.remainder,
        }

    @app.get("/api/regions")
    def regions():
        return list(SUPPORTED_REGIONS)

    return app


service = BuildService.from_settings(settings)
app = create_app(service)
