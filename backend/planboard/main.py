from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from planboard.api.analytics import router as analytics_router
from planboard.api.milestones import router as milestones_router
from planboard.api.tasks import router as tasks_router
from planboard.api.users import router as users_router
from planboard.config import load_app_config
from planboard.db.base import Base
from planboard.db.session import get_engine
from planboard.hierarchy.errors import CyclicHierarchyError
from planboard.services.errors import ApiError


def create_app() -> FastAPI:
    config = load_app_config()
    logging.basicConfig(level=config.log_level)

    app = FastAPI(title="Planboard API", version="0.1.0")
    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(ApiError)
    async def handle_api_error(_: Request, exc: ApiError) -> JSONResponse:
        return JSONResponse(
            status_code=exc.status_code,
            content={"error": {"code": exc.code, "message": exc.message}},
        )

    @app.exception_handler(CyclicHierarchyError)
    async def handle_cyclic_hierarchy(
        _: Request, exc: CyclicHierarchyError
    ) -> JSONResponse:
        return JSONResponse(
            status_code=409,
            content={"error": {"code": "MILESTONE_CYCLE", "message": str(exc)}},
        )

    @app.exception_handler(RequestValidationError)
    async def handle_validation_error(
        _: Request, exc: RequestValidationError
    ) -> JSONResponse:
        return JSONResponse(
            status_code=422,
            content={
                "error": {
                    "code": "REQUEST_VALIDATION_ERROR",
                    "message": "Request validation failed",
                    "details": _jsonable_errors(exc),
                }
            },
        )

    @app.on_event("startup")
    def init_schema() -> None:
        if load_app_config().auto_create_schema:
            Base.metadata.create_all(bind=get_engine())

    @app.get("/health", tags=["system"])
    def health() -> dict[str, str]:
        return {"status": "ok"}

    app.include_router(users_router)
    app.include_router(tasks_router)
    app.include_router(milestones_router)
    app.include_router(analytics_router)
    return app


def _jsonable_errors(exc: RequestValidationError) -> list[dict]:
    return [
        {key: value for key, value in error.items() if key in {"loc", "msg", "type"}}
        for error in exc.errors()
    ]


app = create_app()
