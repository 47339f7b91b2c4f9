from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

from fastapi import FastAPI, HTTPException
from starlette.middleware.trustedhost import TrustedHostMiddleware

from .autoloader import VirtualHostAutoloader
from .config import Settings, settings as default_settings
from .errors import register_exception_handlers
from .health import readiness_state
from .observability import configure_structured_logging
from .router import as_router


@asynccontextmanager
async def _lifespan(server: FastAPI) -> AsyncIterator[None]:
    cfg: Settings = server.state.settings
    if cfg.scan_on_startup:
        server.state.scan_outcomes = await server.state.autoloader.scan(
            server, {"base_folder": cfg.folder, "debug": cfg.debug}
        )
    yield


def _admin_app(server: FastAPI) -> FastAPI:
    admin = FastAPI(openapi_url=None)
    register_exception_handlers(admin)

    @admin.get("/health")
    def health():
        return {"status": "ok"}

    @admin.get("/ready")
    def ready():
        is_ready, domains = readiness_state(server.state.scan_outcomes)
        if not is_ready:
            raise HTTPException(
                status_code=503,
                detail={
                    "detail": "Virtual hosts scan has not completed",
                    "error_code": "service_not_ready",
                },
            )
        return {"status": "ok", "domains": domains}

    return admin


def create_app(cfg: Optional[Settings] = None) -> FastAPI:
    cfg = cfg or default_settings
    configure_structured_logging(logging.DEBUG if cfg.debug else logging.INFO)

    server = FastAPI(lifespan=_lifespan, openapi_url=None)
    server.state.settings = cfg
    server.state.autoloader = VirtualHostAutoloader(logging.getLogger("vhostloader"))
    server.state.scan_outcomes = None
    register_exception_handlers(server)

    if cfg.trusted_hosts:
        server.add_middleware(TrustedHostMiddleware, allowed_hosts=cfg.trusted_hosts)

    # Mounted first so a domain folder with the same name cannot shadow it.
    if cfg.admin_host:
        as_router(server).mount(cfg.admin_host, _admin_app(server))

    return server


app = create_app()
