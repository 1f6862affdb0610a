"""Realtime arrival board: Seoul open subway API with mock fallback."""

import logging
from datetime import datetime, timezone
from typing import Optional
from urllib.parse import quote

import httpx

from metromap.config import SEOUL_API_BASE_URL, SEOUL_API_KEY
from metromap.models import ArrivalsResponse, RealtimeArrival

logger = logging.getLogger("metromap.arrivals")

# Seoul API result code meaning "no data"
_NO_DATA_CODE = "INFO-200"


def normalize_station_name(name: str) -> str:
    """Strip whitespace and a trailing '역' ("강남역" -> "강남")."""
    name = name.strip()
    if name.endswith("역") and len(name) > 1:
        name = name[:-1]
    return name


def _mock_train(
    station: str,
    subway_id: str,
    updn: str,
    dest: str,
    msg: str,
    seconds: int,
    current: str,
    now: str,
) -> RealtimeArrival:
    return RealtimeArrival(
        subway_id=subway_id,
        updn_line=updn,
        train_line_name=dest,
        station_name=station,
        arrival_message=msg,
        current_location=current,
        arrival_code="99",
        train_status="일반",
        seconds_to_arrival=str(seconds),
        received_at=now,
    )


def generate_mock_arrivals(station: str, now: Optional[datetime] = None) -> list[RealtimeArrival]:
    """Plausible arrivals for a station when the live feed is unavailable."""
    ts = (now or datetime.now(timezone.utc)).isoformat()

    if "강남" in station:
        rows = [
            ("1002", "내선", "성수행 - 역삼방면", "2분 후", 120, "역삼"),
            ("1002", "내선", "성수행 - 역삼방면", "4분 후", 240, "선릉"),
            ("1002", "외선", "교대행 - 교대방면", "전역 도착", 60, "교대"),
            ("1002", "외선", "신도림행 - 서초방면", "5분 후", 300, "방배"),
            ("1077", "상행", "신사행 - 신논현방면", "곧 도착", 30, "양재"),
            ("1077", "하행", "광교행 - 양재방면", "6분 후", 360, "논현"),
        ]
    elif "서울" in station:
        rows = [
            ("1001", "상행", "청량리행 - 시청방면", "곧 도착", 45, "남영"),
            ("1001", "하행", "천안행 - 남영방면", "3분 후", 180, "시청"),
            ("1004", "상행", "당고개행 - 회현방면", "전역 출발", 90, "숙대입구"),
            ("1004", "하행", "오이도행 - 숙대입구방면", "5분 후", 300, "회현"),
            ("1065", "하행", "인천공항2터미널행", "10분 후", 600, "공덕"),
        ]
    elif "홍대" in station:
        rows = [
            ("1002", "내선", "신촌행 - 신촌방면", "3분 후", 180, "합정"),
            ("1002", "외선", "합정행 - 합정방면", "5분 후", 300, "신촌"),
            ("1063", "상행", "문산행", "전역 도착", 60, "서강대"),
            ("1065", "하행", "인천공항T2행", "8분 후", 480, "디지털미디어시티"),
        ]
    else:
        rows = [
            ("1002", "내선", f"{station}행 - 다음역방면", "3분 20초", 200, "전역"),
            ("1002", "외선", f"{station}행 - 이전역방면", "5분 00초", 300, "전전역"),
            ("1005", "상행", "방화행", "7분 후", 420, "까치산"),
            ("1005", "하행", "마천행", "곧 도착", 30, "다음역"),
        ]

    return [_mock_train(station, *row, now=ts) for row in rows]


def _is_empty(data: dict) -> bool:
    rows = data.get("realtimeArrivalList")
    return (
        not rows
        or data.get("code") == _NO_DATA_CODE
        or data.get("status") == 500
    )


async def fetch_arrivals(station: str, http_client: Optional[httpx.AsyncClient] = None) -> ArrivalsResponse:
    """Fetch live arrivals for a station, falling back to mock data."""
    name = normalize_station_name(station)
    url = f"{SEOUL_API_BASE_URL}/{SEOUL_API_KEY}/json/realtimeStationArrival/0/20/{quote(name)}"

    data: dict = {}
    try:
        if http_client is not None:
            resp = await http_client.get(url, timeout=10.0)
        else:
            async with httpx.AsyncClient(timeout=10.0) as client:
                resp = await client.get(url)

        if resp.status_code == 200:
            try:
                data = resp.json()
            except ValueError:
                logger.warning(f"Invalid JSON from arrival API for {name}, using mock data")
        else:
            logger.warning(f"Arrival API returned {resp.status_code} for {name}, using mock data")
    except httpx.HTTPError as e:
        logger.warning(f"Arrival API failed for {name}, using mock data: {e}")

    if not isinstance(data, dict) or _is_empty(data):
        logger.info(f"No live arrivals for {name}, generating mock data")
        return ArrivalsResponse(station=name, arrivals=generate_mock_arrivals(name), is_mock=True)

    arrivals = [RealtimeArrival.model_validate(row) for row in data["realtimeArrivalList"]]
    return ArrivalsResponse(station=name, arrivals=arrivals)
