import logging
import os
from contextlib import asynccontextmanager
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from taskhub.middleware.ratelimit import RateLimitMiddleware, make_key_func
from taskhub.middleware.auth import auth_middleware
from taskhub.config import settings
from taskhub.db.session import init_db
from taskhub.logging_setup import setup_logging
from taskhub.auth.routes import router as auth_router
from taskhub.tasks.routes import router as tasks_router
from taskhub.users.routes import router as users_router
from taskhub.utils.security import ALGORITHM

logger = logging.getLogger(__name__)

@asynccontextmanager
async def lifespan(app: FastAPI):
    init_db()
    logger.info("%s started (env=%s)", settings.app_name, settings.app_env)
    yield

async def validation_exception_handler(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    message = "Invalid request"
    if errors:
        err = errors[0]
        loc = [str(p) for p in err.get("loc", ()) if p not in ("body", "query", "path")]
        message = f"Invalid {'.'.join(loc) or 'request'}: {err.get('msg', 'bad value')}"
    return JSONResponse(status_code=400, content={"detail": message})

def create_app() -> FastAPI:
    setup_logging()
    app = FastAPI(title=settings.app_name, lifespan=lifespan)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=[o.strip() for o in settings.cors_origins.split(",") if o.strip()],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_middleware(
        RateLimitMiddleware,
        window_seconds=settings.rate_limit_window_seconds,
        max_calls=settings.rate_limit_max_calls,
        key_func=make_key_func(settings.secret_key, ALGORITHM),
        include_path_prefixes=("/auth/login", "/auth/register", "/tasks"),
    )
    app.middleware("http")(auth_middleware)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)

    app.include_router(auth_router)
    app.include_router(tasks_router)
    app.include_router(users_router)

    os.makedirs(settings.upload_dir, exist_ok=True)
    app.mount(settings.uploads_url_prefix, StaticFiles(directory=settings.upload_dir), name="uploads")

    @app.get("/", tags=["root"])
    def root():
        return {"name": settings.app_name, "env": settings.app_env}

    return app

app = create_app()
