from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from fastapi.middleware.cors import CORSMiddleware
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from starlette.exceptions import HTTPException as StarletteHTTPException
import logging

from core.config import settings, setup_logging
from core.errors import CookFeedError
from core.limiter import limiter
from api.routes import router as recipes_router
from api.user_routes import router as users_router
from api.collection_routes import router as collections_router
from api.auth_routes import router as auth_router

logger = logging.getLogger(__name__)


async def cookfeed_error_handler(request: Request, exc: CookFeedError):
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


async def http_error_handler(request: Request, exc: StarletteHTTPException):
    return JSONResponse(status_code=exc.status_code, content={"ok": False, "error": exc.detail})


async def validation_error_handler(request: Request, exc: RequestValidationError):
    first = exc.errors()[0] if exc.errors() else {}
    field = ".".join(str(p) for p in first.get("loc", ()) if p not in ("body", "query", "path"))
    message = first.get("msg", "Invalid input")
    return JSONResponse(
        status_code=400,
        content={"ok": False, "error": f"{field}: {message}" if field else message},
    )


async def unhandled_error_handler(request: Request, exc: Exception):
    logger.exception(f"Unhandled error on {request.method} {request.url.path}: {exc}")
    return JSONResponse(status_code=500, content={"ok": False, "error": "Internal server error"})


def create_app() -> FastAPI:
    app = FastAPI(
        title="CookFeed",
        description="Share recipes, follow cooks, and collaborate on recipes with editors",
        version="1.0.0",
    )

    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)
    app.add_exception_handler(CookFeedError, cookfeed_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(recipes_router, prefix="/api/v1")
    app.include_router(users_router, prefix="/api/v1")
    app.include_router(collections_router, prefix="/api/v1")
    app.include_router(auth_router, prefix="/api/v1/auth", tags=["authentication"])

    @app.get("/health")
    @app.get("/api/v1/health")
    async def health_check():
        return {"status": "healthy", "message": "Server is running"}

    return app


setup_logging()
app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("main:app", host="127.0.0.1", port=8000, reload=True)
