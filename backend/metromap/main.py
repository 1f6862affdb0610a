import logging
from contextlib import asynccontextmanager

import httpx
from dotenv import load_dotenv

load_dotenv()  # Load .env before any other imports that read env vars

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from metromap.config import CORS_ALLOW_ORIGINS, SIMULATION_SEED, TICK_INTERVAL_SEC

logger = logging.getLogger("metromap")
logging.basicConfig(level=logging.INFO)

# Global state populated during startup
app_state: dict = {}


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Load the line topology and start the train simulator on startup."""
    from metromap.simulator import IntervalTicker, TrainSimulator
    from metromap.topology import load_topology

    logger.info("Loading subway topology...")
    topology = load_topology()
    app_state["topology"] = topology

    simulator = TrainSimulator(topology, seed=SIMULATION_SEED)
    app_state["simulator"] = simulator

    ticker = IntervalTicker(simulator, TICK_INTERVAL_SEC)
    ticker.start()
    app_state["ticker"] = ticker

    # Shared httpx client for the arrival API
    http_client = httpx.AsyncClient(
        timeout=10.0,
        limits=httpx.Limits(max_connections=20, max_keepalive_connections=10),
    )
    app_state["http_client"] = http_client

    yield

    logger.info("Shutting down...")
    await ticker.stop()
    await http_client.aclose()
    app_state.clear()


app = FastAPI(title="MetroMap API", version="0.1.0", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ALLOW_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

from metromap.routes import router

app.include_router(router, prefix="/api")
