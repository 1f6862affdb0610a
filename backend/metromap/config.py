import os
from typing import Optional

DATA_DIR = os.path.join(os.path.dirname(__file__), "data")

# Static line topology produced by the offline data build
SUBWAY_DATA_PATH = os.getenv("SUBWAY_DATA_PATH", os.path.join(DATA_DIR, "subway_lines.json"))

# Routing
HOP_WEIGHT = float(os.getenv("HOP_WEIGHT", "2"))  # minutes per station hop
TRANSFER_WALK_MIN = float(os.getenv("TRANSFER_WALK_MIN", "3"))  # display only

# Train simulation
TICK_INTERVAL_SEC = float(os.getenv("TICK_INTERVAL_SEC", "1.0"))
PROGRESS_STEP = float(os.getenv("PROGRESS_STEP", "0.05"))
TRAIN_SPACING = int(os.getenv("TRAIN_SPACING", "4"))  # one train every N stations, per direction
APPROACH_STOPS = int(os.getenv("APPROACH_STOPS", "3"))


def _optional_int(raw: Optional[str]) -> Optional[int]:
    if raw is None or raw.strip() == "":
        return None
    return int(raw)


SIMULATION_SEED = _optional_int(os.getenv("SIMULATION_SEED"))

# Seoul open subway API (realtime arrivals)
SEOUL_API_KEY = os.getenv("SEOUL_API_KEY", "sample")
SEOUL_API_BASE_URL = os.getenv("SEOUL_API_BASE_URL", "http://swopenAPI.seoul.go.kr/api/subway")

CORS_ALLOW_ORIGINS = [
    o.strip()
    for o in os.getenv("CORS_ALLOW_ORIGINS", "http://localhost:3000,http://127.0.0.1:3000").split(",")
    if o.strip()
]
