import logging
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import Depends, FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import HTMLResponse
from fastapi.templating import Jinja2Templates
from starlette.requests import Request

from app.api.routes import router
from app.core.db import get_settings, open_store
from app.core.logger import EndpointFilter, get_logger, setup_web_logging
from trade_journal.settings import Settings
from trade_journal.types import PAGE_SIZES, SORT_KEYS

logger = get_logger("Main")


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Suppress uvicorn access logs for table refreshes
    logging.getLogger("uvicorn.access").addFilter(EndpointFilter("/api/trades"))

    settings = get_settings()
    setup_web_logging(settings.log_level)
    logger.info("Starting Trade Journal...")
    store = await open_store(settings)
    app.state.store = store
    logger.info(f"Trade store ready ({settings.store_backend})")
    try:
        yield
    finally:
        logger.info("Shutting down...")
        await store.aclose()
        logger.info("Trade Journal stopped")


app = FastAPI(lifespan=lifespan)

templates = Jinja2Templates(directory=str(Path(__file__).parent / "templates"))

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(router)


@app.get("/", response_class=HTMLResponse)
async def root(request: Request, settings: Settings = Depends(get_settings)):
    return templates.TemplateResponse(
        request,
        "index.html",
        {
            "page_sizes": PAGE_SIZES,
            "default_page_size": settings.default_page_size,
            "sort_keys": SORT_KEYS,
        },
    )
