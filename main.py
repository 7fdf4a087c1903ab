from __future__ import annotations

import logging
import time
import uuid
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from jotter_api.config import Settings
from jotter_api.dependencies import get_settings
from jotter_api.interface.api.routes import router
from jotter_api.session import NotesSession, build_session


def create_app(settings: Settings | None = None, session: NotesSession | None = None) -> FastAPI:
    settings = settings or get_settings()
    session = session or build_session(settings)
    logger = logging.getLogger("jotter.api")

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        await session.start()
        try:
            yield
        finally:
            await session.close()

    app = FastAPI(title="Jotter API", version="0.1.0", lifespan=lifespan)
    app.state.settings = settings
    app.state.session = session

    @app.middleware("http")
    async def request_id_and_logging(request: Request, call_next):
        request_id = request.headers.get("x-request-id") or str(uuid.uuid4())
        request.state.request_id = request_id
        start = time.perf_counter()

        if settings.api_auth_mode == "bearer" and request.url.path != "/health":
            token = settings.api_auth_token or ""
            auth = request.headers.get("authorization") or ""
            if not token or auth != f"Bearer {token}":
                return JSONResponse(
                    status_code=401,
                    content={"detail": "unauthorized"},
                    headers={"X-Request-ID": request_id},
                )

        try:
            response = await call_next(request)
        except Exception:
            dt_ms = (time.perf_counter() - start) * 1000.0
            logger.exception("request_error", extra={"rid": request_id, "path": request.url.path, "ms": dt_ms})
            return JSONResponse(
                status_code=500,
                content={"detail": "internal_error", "request_id": request_id},
                headers={"X-Request-ID": request_id},
            )

        dt_ms = (time.perf_counter() - start) * 1000.0
        extra = {
            "rid": request_id,
            "method": request.method,
            "path": request.url.path,
            "status": response.status_code,
            "ms": dt_ms,
        }
        if settings.api_debug_log:
            extra["query"] = request.url.query
        logger.info("request", extra=extra)
        response.headers["X-Request-ID"] = request_id
        return response

    app.include_router(router)
    return app
