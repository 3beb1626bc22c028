"""
Run the Auth Service: python -m auth_service
"""
import uvicorn

from .config import settings
from .main import app


def run() -> None:
    uvicorn.run(app, host=settings.HOST, port=settings.PORT, log_level=settings.LOG_LEVEL.lower())


if __name__ == "__main__":
    run()
