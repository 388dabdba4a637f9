# accesszen/main.py

from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from accesszen.core.config import settings
from accesszen.core import celery_app  # noqa: F401  binds shared tasks to the configured broker
from accesszen.core.db import init_db
from accesszen.utils.logger import setup_app_logging, get_logger
# Local application imports - Routes
from accesszen.access_forms.router import router as access_form_routes
from accesszen.estates.router import router as estate_routes


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Create tables on startup
    """
    init_db()
    yield


# Create the FastAPI app
accesszen_app = FastAPI(
    title=f"AccessZen - {settings.environment}",
    description="Estate access form generation API",
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan
)

# Configure logging
if settings.environment.lower() != "production":
    setup_app_logging(
        accesszen_app,
        log_level=settings.log_level,
        use_json=settings.log_json,
        log_file=settings.log_file,
        app_name=settings.app_name,
        environment=settings.environment,
    )
else:
    setup_app_logging(
        accesszen_app,
        log_level=settings.log_level,
        use_json=True,
        log_file=settings.log_file,
        app_name=settings.app_name,
        environment="production",
    )
logger = get_logger(__name__)

# Add CORS middleware
accesszen_app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.allowed_cors_urls.split(","),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
accesszen_app.include_router(access_form_routes)
accesszen_app.include_router(estate_routes)


# Root API to check if the server is up
@accesszen_app.get("/", tags=["Base"])
async def health_check():
    """
    Root API to check if the server is up
    """
    logger.info("Calling root API for testing")
    return {"status": "ok"}
