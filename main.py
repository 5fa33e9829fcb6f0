import logging
from contextlib import asynccontextmanager

from dotenv import load_dotenv
from fastapi import FastAPI, Request
from openai import AsyncOpenAI

from dal.caption_dal import CaptionDAL
from routes.frame_route import router as frame_router
from routes.settings_route import router as settings_router
from routes.token_route import router as token_router
from services.openai.realtime_tokens import RealtimeTokenService
from utils.database_init import AsyncDatabaseInitializer
from utils.logging_setup import setup_logging
from utils.settings import RuntimeToggles, ServerSettings

load_dotenv()

logger = logging.getLogger(__name__)


async def _delete_caption_log(app: FastAPI) -> None:
    if not app.state.toggles.delete_logs_on_exit:
        logger.info("Caption log deletion is disabled; keeping %s", app.state.db_initializer.db_path)
        return
    try:
        if app.state.db_initializer.delete_database():
            logger.info("Caption log deleted")
    except OSError as exc:
        logger.error("Error deleting caption log: %s", exc)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Build the shared state on startup:
      - settings and the mutable runtime toggles
      - the caption log database under DATABASE_DIR (kept entries survive restarts)
      - the OpenAI async client (frame captioning) and the realtime token service
    On shutdown, remove the caption log if deletion is enabled and close the client.
    """
    settings = ServerSettings.from_env()
    setup_logging(settings.log_level)
    app.state.settings = settings
    app.state.toggles = RuntimeToggles.from_settings(settings)

    db_initializer = AsyncDatabaseInitializer()
    await db_initializer.ensure_database()
    app.state.db_initializer = db_initializer

    app.state.openai_client = AsyncOpenAI(api_key=settings.openai_api_key)
    app.state.token_service = RealtimeTokenService(
        app.state.openai_client,
        model=settings.realtime_model,
        voice=settings.realtime_voice,
    )
    logger.info("Server ready (realtime model %s)", settings.realtime_model)

    try:
        yield
    finally:
        await _delete_caption_log(app)
        try:
            await app.state.openai_client.close()
        except Exception as exc:
            logger.warning("Error closing OpenAI client: %s", exc)


def create_app() -> FastAPI:
    app = FastAPI(title="Realtime Vision Console", lifespan=lifespan)

    @app.get("/health")
    async def health(request: Request):
        """Report whether the shared clients are up, analysis is on, and how many captions are logged."""
        state = request.app.state
        toggles = getattr(state, "toggles", None)
        db_initializer = getattr(state, "db_initializer", None)
        return {
            "ok": True,
            "db_initialized": db_initializer is not None,
            "caption_count": await CaptionDAL(db_initializer).count() if db_initializer else 0,
            "openai_available": getattr(state, "openai_client", None) is not None,
            "analysis_enabled": bool(toggles and toggles.frame_analysis_enabled),
        }

    app.include_router(token_router)
    app.include_router(frame_router)
    app.include_router(settings_router)
    return app


app = create_app()
