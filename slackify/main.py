from contextlib import asynccontextmanager
from typing import Optional
from fastapi import FastAPI
from slackify.api.api import api_router
from slackify.core.config import get_settings
from slackify.core.context import AppContext, build_context
from slackify.db.init_db import init_db
from slackify.utils.logging import setup_logger
import logging

logger = logging.getLogger(__name__)

def create_app(context: Optional[AppContext] = None) -> FastAPI:
    """Create the FastAPI application.

    Args:
        context: Prebuilt components, built from settings when omitted
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Lifespan events for the FastAPI application."""
        ctx: AppContext = app.state.context
        # Startup
        try:
            logger.info("Loading document stores...")
            has_config = init_db(ctx.config_engine, ctx.tracks_engine)
            if has_config:
                await ctx.auth_service.initialise()
            logger.info("Document stores loaded successfully")
        except Exception as e:
            logger.error(f"Error during startup: {e}")
            raise

        yield

        # Shutdown
        try:
            logger.info("Stopping scheduled jobs...")
            await ctx.scheduler.shutdown()

            logger.info("Closing database connections...")
            ctx.config_engine.dispose()
            ctx.tracks_engine.dispose()
        except Exception as e:
            logger.error(f"Error during shutdown: {e}")
            raise

    if context is None:
        settings = get_settings()
        setup_logger("slackify", settings.LOG_LEVEL, settings.LOG_DIR)
        context = build_context(settings)

    app = FastAPI(
        title=context.settings.PROJECT_NAME,
        version=context.settings.APP_VERSION,
        lifespan=lifespan
    )
    app.state.context = context
    app.include_router(api_router)

    @app.get("/health")
    async def health_check():
        return {"status": "healthy"}

    return app

if __name__ == "__main__":
    import uvicorn

    settings = get_settings()
    uvicorn.run(create_app(), host=settings.HOST, port=settings.PORT)
