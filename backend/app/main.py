from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from app.api.routers import health as health_router
from app.api.routers import uploads as uploads_router
from app.core.config import Settings, get_settings
from app.core.exceptions import UploadError

CORS_ALLOW_HEADERS = "authorization, x-client-info, apikey, content-type"


def cors_headers(settings: Settings) -> dict[str, str]:
    return {
        "Access-Control-Allow-Origin": settings.cors_allow_origin,
        "Access-Control-Allow-Headers": CORS_ALLOW_HEADERS,
        "Access-Control-Allow-Methods": "POST, OPTIONS",
    }


async def upload_error_handler(request: Request, exc: UploadError) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content={"error": exc.message})


def create_app() -> FastAPI:
    settings = get_settings()
    app = FastAPI(
        debug=settings.debug,
        title="Rollcall API",
    )

    @app.middleware("http")
    async def add_cors_headers(request: Request, call_next):
        response = await call_next(request)
        response.headers.update(cors_headers(settings))
        return response

    app.add_exception_handler(UploadError, upload_error_handler)

    app.include_router(health_router.router)
    app.include_router(uploads_router.router)

    return app


app = create_app()
