"""
Main FastAPI application entry point.
"""
from contextlib import asynccontextmanager
from typing import Optional
from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
import sys

from skillora.core.config import Settings, settings as default_settings
from skillora.core.exceptions import SkilloraError
from skillora.core.logging import audit_log
from skillora.db.mongodb import MongoDB
from skillora.services.storage_service import StorageService

# Import routers
from skillora.api.auth import router as auth_router
from skillora.api.courses import router as courses_router
from skillora.api.modules import router as modules_router


def _mask_url(url: str) -> str:
    """Mask password in database URLs for logging."""
    if '@' in url:
        # Split at @ to separate credentials from host
        parts = url.split('@')
        creds = parts[0]
        host = '@'.join(parts[1:])
        # Mask the password
        if ':' in creds:
            scheme_user = creds.rsplit(':', 1)[0]
            return f"{scheme_user}:****@{host}"
    return url


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan handler.
    Opens the MongoDB connection and closes it on shutdown.
    Fails fast if the database is unreachable.
    """
    settings: Settings = app.state.settings

    # Startup
    print("=" * 50)
    print(f"Starting {settings.APP_NAME} v{settings.APP_VERSION}")
    print(f"Debug mode: {settings.DEBUG}")
    print(f"MongoDB: {_mask_url(settings.mongo_url)} (db: {settings.MONGO_DB})")
    print(f"Uploads: {settings.UPLOAD_DIR} -> {settings.UPLOAD_URL_PREFIX}")
    print("=" * 50)

    try:
        print("Connecting to MongoDB...")
        await app.state.mongodb.connect()
        print("✓ MongoDB connected")
    except Exception as e:
        print(f"✗ MongoDB connection failed: {e}")
        sys.exit(1)

    StorageService(settings).ensure_directories()
    print("Server ready.")

    yield

    # Shutdown
    print("Shutting down...")
    await app.state.mongodb.close()
    print("All connections closed")


async def skillora_error_handler(request: Request, exc: SkilloraError) -> JSONResponse:
    """Render domain errors with the same body shape as HTTPException."""
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    """Log unexpected failures and answer with a generic 500."""
    audit_log.error(
        "request.unhandled_error",
        error=f"{type(exc).__name__}: {exc}",
        details={"method": request.method, "path": request.url.path}
    )
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": "Internal server error"}
    )


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """
    Build the application around explicit settings.
    The settings and MongoDB manager live on app.state; dependencies read them from there.
    """
    settings = settings or default_settings

    app = FastAPI(
        title=settings.APP_NAME,
        version=settings.APP_VERSION,
        description="Skillora learning platform API",
        lifespan=lifespan
    )
    app.state.settings = settings
    app.state.mongodb = MongoDB(settings)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origin_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(SkilloraError, skillora_error_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)

    # Include routers
    app.include_router(auth_router)
    app.include_router(courses_router)
    app.include_router(modules_router)

    # Uploaded thumbnails and content files; the directories are created at startup
    app.mount(
        settings.UPLOAD_URL_PREFIX,
        StaticFiles(directory=settings.UPLOAD_DIR, check_dir=False),
        name="uploads"
    )

    @app.get("/")
    async def root():
        """Health check endpoint."""
        return {
            "name": settings.APP_NAME,
            "version": settings.APP_VERSION,
            "status": "running"
        }

    @app.get("/health")
    async def health_check(request: Request):
        """
        Detailed health check that verifies the database connection.
        """
        health = {
            "status": "healthy",
            "databases": {}
        }

        try:
            await request.app.state.mongodb.db.command("ping")
            health["databases"]["mongodb"] = "connected"
        except Exception as e:
            health["databases"]["mongodb"] = f"error: {str(e)}"
            health["status"] = "unhealthy"

        return health

    return app


app = create_app()
