"""
FastAPI application serving template recommendations.

Run with: uvicorn template_feed.main:app
"""
import asyncio
import logging
from contextlib import asynccontextmanager
from typing import Optional

from dotenv import load_dotenv
from fastapi import FastAPI

from template_feed import __version__
from template_feed.api import router as templates_router
from template_feed.orchestrator import TemplateOrchestrator, create_orchestrator

load_dotenv()

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


def create_app(orchestrator: Optional[TemplateOrchestrator] = None) -> FastAPI:
    """Build the app. A prebuilt orchestrator may be injected (tests)."""

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Handle application lifecycle events."""
        instance = orchestrator or create_orchestrator()

        try:
            await asyncio.to_thread(instance.store.ensure_schema)
        except Exception as e:
            logger.error(f"[template_feed] Could not ensure cache schema: {e}")

        if instance.config.background_enabled:
            instance.start()
        else:
            logger.info("[template_feed] Background maintenance disabled")

        app.state.orchestrator = instance
        yield

        await instance.shutdown()
        app.state.orchestrator = None

    app = FastAPI(title="Template Feed API", version=__version__, lifespan=lifespan)
    app.include_router(templates_router)

    @app.get("/health")
    async def health():
        return {"status": "ok", "version": __version__}

    return app


app = create_app()
