import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from app.config import configure_logging, settings
from app.database import engine
from app.exceptions import register_exception_handlers
from app.middleware import RequestLoggingMiddleware
from app.routers import categories, comments, posts, tags, users

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    configure_logging()
    logger.info("Starting blog API (env=%s)", settings.APP_ENV)
    yield
    await engine.dispose()


app = FastAPI(
    title="Blog API",
    description="Blog API with role-gated posts and legacy content migration",
    version="1.0.0",
    lifespan=lifespan,
)

register_exception_handlers(app)

# Middleware
app.add_middleware(RequestLoggingMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials="*" not in settings.CORS_ORIGINS,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Routers
app.include_router(posts.router)
app.include_router(comments.router)
app.include_router(categories.router)
app.include_router(tags.router)
app.include_router(users.router)


@app.get("/health")
async def health():
    return {"status": "healthy", "version": "1.0.0"}
