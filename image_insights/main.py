"""
Purpose:
- FastAPI application factory and router mounts for the insights relay.
- Adds CORS so the Streamlit front end (or any browser app) can post directly.
- Run with: uvicorn image_insights.main:app --host 0.0.0.0 --port 8000
"""

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from .core.logging import configure_logging
from .core.settings import settings
from .api.health import router as health_router
from .api.insights import router as insights_router

def create_app() -> FastAPI:
    configure_logging(settings.log_level)
    app = FastAPI(title="Image Insights Relay", version="0.1.0")
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_allow_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.include_router(health_router)
    app.include_router(insights_router)
    return app


app = create_app()
