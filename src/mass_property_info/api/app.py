from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from mass_property_info.config import Settings, get_settings


def health():
    return {"status": "ok", "timestamp": datetime.now(timezone.utc).isoformat()}


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    settings = settings or get_settings()
    app = FastAPI(title="Mass Property Info API")

    app.add_middleware(
        CORSMiddleware,
        allow_origins=list(settings.allowed_origins),
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    from mass_property_info.api.routes.property import router as property_router

    app.include_router(property_router, prefix="/api")

    @app.get("/health")
    def health_route():
        return health()

    @app.on_event("startup")
    def _log_startup():
        logger = logging.getLogger("mpi.startup")
        logger.info(
            "startup: form_url=%s headless=%s origins=%s",
            settings.form_url,
            settings.headless,
            ",".join(settings.allowed_origins),
        )

    return app


app = create_app()
