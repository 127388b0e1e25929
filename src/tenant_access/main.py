import time

import httpx
from fastapi import Depends, FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from tenant_access.auth.dependencies import require_feature
from tenant_access.auth.models import Principal
from tenant_access.configs.logging_config import get_logger, setup_logging
from tenant_access.configs.settings import Settings, get_settings
from tenant_access.errors import AppError
from tenant_access.routers.health_router import router as health_router
from tenant_access.routers.navigation_router import router as navigation_router
from tenant_access.utils.response import failure, success

log = get_logger(__name__)


def _cors_origins(settings: Settings) -> list[str]:
    # .env can provide a comma-separated string
    raw_origins = settings.CORS_ORIGINS
    if isinstance(raw_origins, str):
        return [o.strip() for o in raw_origins.split(",") if o.strip()]
    if isinstance(raw_origins, (list, tuple, set)):
        return list(raw_origins)
    return []


def create_app(settings: Settings | None = None) -> FastAPI:
    app = FastAPI(title="tenant_access", version="0.1.0")
    settings = settings or get_settings()
    app.state.settings = settings

    app.add_middleware(
        CORSMiddleware,
        allow_origins=_cors_origins(settings),
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.middleware("http")
    async def request_logging_middleware(request: Request, call_next):
        start = time.perf_counter()
        method = request.method
        path = request.url.path
        request_id = request.headers.get("x-request-id") or request.headers.get("x-correlation-id")

        log.info("request.start method=%s path=%s request_id=%s", method, path, request_id)
        status_code = "unknown"
        try:
            response = await call_next(request)
            status_code = response.status_code
        finally:
            elapsed_ms = int((time.perf_counter() - start) * 1000)
            log.info(
                "request.end method=%s path=%s status=%s request_id=%s elapsed_ms=%s",
                method,
                path,
                status_code,
                request_id,
                elapsed_ms,
            )
        return response

    app.include_router(health_router)
    app.include_router(navigation_router)

    @app.get("/users/access")
    async def users_access(principal: Principal = Depends(require_feature("users"))) -> dict:
        return success({"feature": "users", "role": principal.role.value})

    @app.get("/inventory/access")
    async def inventory_access(principal: Principal = Depends(require_feature("inventory"))) -> dict:
        return success({"feature": "inventory", "role": principal.role.value})

    @app.exception_handler(AppError)
    async def app_error_handler(_: Request, exc: AppError) -> JSONResponse:
        log.info("request.error type=app_error status=%s message=%s", exc.http_status, exc.message)
        return JSONResponse(status_code=exc.http_status, content=failure(exc.message))

    @app.exception_handler(Exception)
    async def unhandled_error_handler(_: Request, exc: Exception) -> JSONResponse:
        log.exception("Unhandled error: %s", str(exc))
        return JSONResponse(status_code=500, content=failure("internal server error"))

    @app.on_event("startup")
    async def startup() -> None:
        setup_logging(settings.log_level)
        # shared pool for outbound capability reads; sessions borrow it per request
        if getattr(app.state, "http_client", None) is None:
            app.state.http_client = httpx.AsyncClient(timeout=settings.http_timeout)
        log.info("startup.done api_base_url=%s fence_refetch=%s", settings.api_base_url, settings.fence_refetch)

    @app.on_event("shutdown")
    async def shutdown() -> None:
        log.info("shutdown.begin")
        http_client = getattr(app.state, "http_client", None)
        if http_client is not None:
            await http_client.aclose()
        log.info("shutdown.done")

    return app


app = create_app()
