"""FastAPI application entry point."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles

from recipehub.api import auth, ingredients, recipes, search, tags, upload
from recipehub.api.responses import register_exception_handlers
from recipehub.config import get_settings
from recipehub.database import init_db
from recipehub.services.images import ensure_upload_dirs

settings = get_settings()

logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Handle application startup and shutdown events."""
    init_db()
    ensure_upload_dirs()
    logger.info(f"RecipeHub API started ({settings.environment})")
    yield


app = FastAPI(
    title="RecipeHub API",
    description="Share, search and rate recipes",
    version="0.1.0",
    lifespan=lifespan,
)

# CORS middleware for development
if settings.is_development:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=[
            "http://localhost:3000",
            "http://localhost:5173",
        ],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

register_exception_handlers(app)

# Register routers
app.include_router(auth.router)
app.include_router(recipes.router)
app.include_router(ingredients.router)
app.include_router(tags.router)
app.include_router(search.router)
app.include_router(upload.router)

app.mount("/uploads", StaticFiles(directory=settings.upload_path, check_dir=False), name="uploads")


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "healthy", "environment": settings.environment}
