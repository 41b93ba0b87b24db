"""
Parrotchain HTTP service
Main application entry point
"""

from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from parrotchain.api.routers import markov_router
from parrotchain.config import Settings, settings
from parrotchain.services.ingest import feed_file
from parrotchain.services.markov import ChainConfig, ChainModel
from parrotchain.services.store import create_store
from parrotchain.utils.logger import setup_logger

logger = setup_logger(__name__)


def create_app(app_settings: Optional[Settings] = None) -> FastAPI:
    """Build the FastAPI application around one chain model."""
    app_settings = app_settings or settings

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        store = None
        logger.info("[BOOT] Starting parrotchain...")
        try:
            store = create_store(app_settings.DATABASE_URL)
            config = ChainConfig.from_settings(app_settings)
            app.state.chain_model = await ChainModel.create(store, config)
            logger.info(
                f"[BOOT] Chain ready: type={config.markov_type.value}, "
                f"reply_mode={config.reply_mode.value}"
            )

            if app_settings.CORPUS_PATH:
                await feed_file(app_settings.CORPUS_PATH, app.state.chain_model, progress=False)

            yield
        except Exception as e:
            logger.error(f"[ERR] Failed to initialize: {e}", exc_info=True)
            raise
        finally:
            logger.info("[SHUTDOWN] Closing store...")
            if store is not None:
                await store.close()
            app.state.chain_model = None

    app = FastAPI(
        title="Parrotchain",
        description="Markov chain chat text generator",
        version=app_settings.SERVICE_VERSION,
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=app_settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception):
        logger.error(f"[ERR] Unhandled exception: {exc}", exc_info=True)
        return JSONResponse(
            status_code=500,
            content={
                "ok": False,
                "error": {
                    "code": "PARROTCHAIN_ERROR",
                    "message": "Internal server error occurred",
                    "details": {"type": type(exc).__name__},
                },
            },
        )

    @app.get("/health")
    async def health_check():
        """Health check endpoint"""
        model = getattr(app.state, "chain_model", None)
        data = {
            "status": "healthy" if model is not None else "starting",
            "service": app_settings.SERVICE_NAME,
            "version": app_settings.SERVICE_VERSION,
        }
        if model is not None:
            data["words"] = await model.store.word_count()
            data["markov_type"] = model.config.markov_type.value
        return {"ok": True, "data": data}

    app.include_router(markov_router.router)
    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "parrotchain.app:app",
        host=settings.HOST,
        port=settings.PORT,
        log_level=settings.LOG_LEVEL,
    )
