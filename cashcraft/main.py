from contextlib import asynccontextmanager
from datetime import timedelta
import logging
import traceback

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.openapi.utils import get_openapi
from starlette.exceptions import HTTPException as StarletteHTTPException

from cashcraft.config import Settings, settings as default_settings
from cashcraft.core.errors import AppError, ServerError
from cashcraft.core.responses import err
from cashcraft.database import create_engine_from_settings, create_sessionmaker, create_tables
from cashcraft.routes import auth, health
from cashcraft.utils.security import PasswordHasher
from cashcraft.utils.tokens import SessionIssuer

logger = logging.getLogger(__name__)

PROTECTED_PATHS = ("/auth/me", "/auth/refresh-token")


def create_app(settings: Settings | None = None) -> FastAPI:
    settings = settings or default_settings
    logging.basicConfig(level=settings.LOG_LEVEL)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        app.state.session_issuer = SessionIssuer(
            settings.JWT_SECRET_KEY,
            algorithm=settings.JWT_ALGORITHM,
            expires_delta=timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES),
        )
        app.state.password_hasher = PasswordHasher(rounds=settings.BCRYPT_ROUNDS)
        app.state.engine = create_engine_from_settings(settings)
        app.state.sessionmaker = create_sessionmaker(app.state.engine)
        if settings.AUTO_CREATE_TABLES:
            await create_tables(app.state.engine)
        logger.info(f"{settings.PROJECT_NAME} started ({settings.ENVIRONMENT})")
        try:
            yield
        finally:
            await app.state.engine.dispose()

    app = FastAPI(title=settings.PROJECT_NAME, version=settings.PROJECT_VERSION, lifespan=lifespan)
    app.state.settings = settings

    app.include_router(auth.router, prefix=settings.API_PREFIX)
    app.include_router(health.router, prefix=settings.API_PREFIX)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=[settings.FRONTEND_URL],
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
        allow_headers=["Content-Type", "Authorization"],
    )

    register_exception_handlers(app, settings)
    app.openapi = lambda: custom_openapi(app, settings)
    return app


def register_exception_handlers(app: FastAPI, settings: Settings) -> None:
    @app.exception_handler(AppError)
    async def app_error_handler(request: Request, exc: AppError):
        extra = exc.extra()
        if isinstance(exc, ServerError) and exc.stack and settings.is_development:
            extra["stack"] = exc.stack
        return err(exc.message, http_status=exc.status_code, **extra)

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError):
        errors = [
            {"message": e["msg"], "path": [str(part) for part in e["loc"] if part != "body"]}
            for e in exc.errors()
        ]
        return err("Validation error", http_status=400, errors=errors)

    @app.exception_handler(StarletteHTTPException)
    async def http_error_handler(request: Request, exc: StarletteHTTPException):
        if exc.status_code == 404:
            path = request.url.path
            if path == settings.API_PREFIX or path.startswith(settings.API_PREFIX + "/"):
                return err(f"API endpoint not found under {settings.API_PREFIX}", http_status=404)
            return err(
                f"Resource not found. You tried to access {request.method} {path}",
                http_status=404,
            )
        return err(str(exc.detail), http_status=exc.status_code)

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception):
        logger.exception(f"Unhandled error: {exc}")
        extra = {"stack": "".join(traceback.format_exception(exc))} if settings.is_development else {}
        return err("Internal server error", http_status=500, **extra)


# Advertise bearer auth in Swagger for the protected routes
def custom_openapi(app: FastAPI, settings: Settings):
    if app.openapi_schema:
        return app.openapi_schema
    openapi_schema = get_openapi(
        title=settings.PROJECT_NAME,
        version=settings.PROJECT_VERSION,
        description="Authentication and account API for CashCraft Loans",
        routes=app.routes,
    )
    openapi_schema.setdefault("components", {})["securitySchemes"] = {
        "BearerAuth": {
            "type": "http",
            "scheme": "bearer",
            "bearerFormat": "JWT",
        }
    }
    for path in openapi_schema["paths"]:
        if not path.endswith(PROTECTED_PATHS):
            continue
        for method in openapi_schema["paths"][path]:
            openapi_schema["paths"][path][method]["security"] = [{"BearerAuth": []}]
    app.openapi_schema = openapi_schema
    return app.openapi_schema


app = create_app()
