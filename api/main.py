import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from dotenv import load_dotenv
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import Response

from api.routes.songs import router as songs_router
from core.config import TransportConfig
from db.songs import SongStore
from infrastructure.metrics import get_metrics_response

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Own the storage handle for the lifetime of the server process."""
    load_dotenv()
    app.state.transport_config = TransportConfig.from_env()
    app.state.song_store = SongStore.from_url()
    logger.info("Song store ready")
    try:
        yield
    finally:
        app.state.song_store.close()
        logger.info("Song store closed")


app = FastAPI(title="Score Archive Service", lifespan=lifespan)

# CORS: allow the catalog UI (Next.js dev server) to call the API
# Include both localhost and 127.0.0.1 variants, browsers treat them as different origins
app.add_middleware(
    CORSMiddleware,
    allow_origins=[
        "http://localhost:3000",
        "http://127.0.0.1:3000",
    ],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(songs_router)


@app.get("/health")
def health() -> dict[str, str]:
    """Return a simple liveness check."""
    return {"status": "ok"}


@app.get("/metrics")
def metrics() -> Response:
    """Prometheus metrics endpoint.

    Returns metrics in Prometheus text exposition format.
    """
    body, content_type = get_metrics_response()
    return Response(content=body, media_type=content_type)
