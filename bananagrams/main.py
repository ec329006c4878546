from fastapi import FastAPI
import logging

from bananagrams import __version__
from bananagrams.api.routes import router
from bananagrams.game_store import get_registry, init_registry
from bananagrams.settings import settings_from_env

app = FastAPI(title="bananagrams", version=__version__)
app.include_router(router)
logger = logging.getLogger(__name__)


@app.on_event("startup")
async def _startup() -> None:
    settings = settings_from_env()
    logging.basicConfig(level=getattr(logging, settings.log_level, logging.INFO))

    registry = init_registry(settings=settings)
    # Tests may install a registry with a ready word list.
    if not registry.dictionary.is_loaded:
        await registry.load_dictionary()
    logger.info("bananagrams %s ready (board %dx%d)", __version__, settings.board_size, settings.board_size)


@app.on_event("shutdown")
async def _shutdown() -> None:
    get_registry().shutdown()


@app.get("/info")
async def info() -> dict[str, str]:
    return {"name": "bananagrams", "version": __version__}
