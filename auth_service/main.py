"""
Auth Service - FastAPI application bootstrap
"""
from contextlib import asynccontextmanager
import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import PlainTextResponse

from .config import settings
from .db import connect_db
from .routes import auth_routes, dev_monitor, health

API_PREFIX = "/api/v1/auth"

logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    datefmt='%Y-%m-%d %H:%M:%S'
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(_app: FastAPI):
    """Connect to the database on startup"""
    connect_db()
    logger.info("✅ Auth service running on port %s", settings.PORT)
    yield


app = FastAPI(
    title="Auth Service",
    description="User registration, login and password reset",
    version="1.0.0",
    lifespan=lifespan
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(auth_routes.router, prefix=API_PREFIX)
app.include_router(health.router)
app.include_router(dev_monitor.router)


@app.get("/", response_class=PlainTextResponse)
def root():
    return "✅ Auth Service Running"
