import asyncio
import logging

from fastapi import APIRouter, HTTPException, Query, WebSocket, WebSocketDisconnect

from metromap.models import (
    ArrivalsResponse,
    ItineraryRequest,
    LineDetail,
    LineSummary,
    PathResult,
    RoutePlanResponse,
    Station,
    StationSearchResponse,
    TrainPosition,
    TrainsResponse,
)

logger = logging.getLogger("metromap.routes")

router = APIRouter()


def _get_state():
    from metromap.main import app_state
    return app_state


def _get_topology():
    topology = _get_state().get("topology")
    if topology is None:
        raise HTTPException(status_code=503, detail="Subway topology not loaded")
    return topology


def _get_simulator():
    simulator = _get_state().get("simulator")
    if simulator is None:
        raise HTTPException(status_code=503, detail="Train simulator not running")
    return simulator


def _plan_response(result: PathResult, topology) -> RoutePlanResponse:
    from metromap.active_segments import derive_active_segments, highlight_polylines
    from metromap.itinerary import describe_legs

    segments = derive_active_segments(result, topology)
    return RoutePlanResponse(
        result=result,
        active_segments=segments,
        legs=describe_legs(result, topology),
        highlight=highlight_polylines(segments, topology),
    )


def _require_waypoints(raw: list[str]) -> list[str]:
    from metromap.itinerary import clean_waypoints

    waypoints = clean_waypoints(raw)
    if len(waypoints) < 2:
        raise HTTPException(status_code=400, detail="At least two stations are required")
    return waypoints


@router.get("/health")
async def health():
    return {"status": "ok", "service": "MetroMap API"}


@router.get("/lines", response_model=list[LineSummary])
async def get_lines():
    """All line instances, in topology order."""
    topology = _get_topology()
    return [
        LineSummary(id=line.id, name=line.name, color=line.color, station_count=len(line.stations))
        for line in topology.lines
    ]


@router.get("/lines/{line_id}", response_model=LineDetail)
async def get_line(line_id: str):
    """Ordered stations of one line instance."""
    topology = _get_topology()
    line = topology.get_line(line_id)
    if not line:
        raise HTTPException(status_code=404, detail=f"Line '{line_id}' not found")
    return LineDetail(id=line.id, name=line.name, color=line.color, stations=line.stations)


@router.get("/stations/search", response_model=StationSearchResponse)
async def search_stations(
    query: str = Query(..., min_length=1),
    limit: int = Query(5, ge=1, le=20),
):
    topology = _get_topology()
    return StationSearchResponse(stations=topology.search_stations(query, limit))


@router.get("/stations/nearest", response_model=Station)
async def nearest_station(
    lat: float = Query(..., ge=-90, le=90),
    lng: float = Query(..., ge=-180, le=180),
):
    """Closest station to a coordinate (e.g. the user's location)."""
    topology = _get_topology()
    station = topology.find_nearest_station(lat, lng)
    if not station:
        raise HTTPException(status_code=404, detail="No stations loaded")
    return station


@router.get("/route", response_model=RoutePlanResponse)
async def get_route(
    start: str = Query(..., min_length=1),
    end: str = Query(..., min_length=1),
):
    """Shortest path between two stations with its active segments and legs."""
    from metromap.graph import find_route

    topology = _get_topology()
    result = find_route(start.strip(), end.strip(), topology)
    if result is None:
        raise HTTPException(status_code=404, detail=f"No route from '{start}' to '{end}'")
    return _plan_response(result, topology)


@router.post("/itinerary", response_model=RoutePlanResponse)
async def plan_itinerary_endpoint(request: ItineraryRequest):
    """Route through an ordered list of stations."""
    from metromap.itinerary import plan_itinerary

    topology = _get_topology()
    waypoints = _require_waypoints(request.waypoints)
    result = plan_itinerary(waypoints, topology)
    if result is None:
        raise HTTPException(status_code=404, detail="No route through the given stations")
    return _plan_response(result, topology)


@router.get("/trains", response_model=TrainsResponse)
async def get_trains():
    """Latest simulated train positions."""
    simulator = _get_simulator()
    return TrainsResponse(trains=list(simulator.snapshot))


@router.post("/trains/relevant", response_model=TrainsResponse)
async def get_relevant_trains(request: ItineraryRequest):
    """Trains running along, or about to reach, the given itinerary."""
    from metromap.active_segments import derive_active_segments, filter_trains
    from metromap.itinerary import plan_itinerary

    topology = _get_topology()
    simulator = _get_simulator()
    waypoints = _require_waypoints(request.waypoints)

    result = plan_itinerary(waypoints, topology)
    if result is None:
        raise HTTPException(status_code=404, detail="No route through the given stations")

    segments = derive_active_segments(result, topology)
    return TrainsResponse(trains=filter_trains(simulator.snapshot, segments))


@router.get("/arrivals", response_model=ArrivalsResponse)
async def get_arrivals(station: str = Query(...)):
    """Realtime arrivals for a station (mock data when the live API is down)."""
    from metromap.arrivals import fetch_arrivals

    if not station.strip():
        raise HTTPException(status_code=400, detail="Station name is required")

    http_client = _get_state().get("http_client")
    return await fetch_arrivals(station, http_client=http_client)


@router.websocket("/ws/trains")
async def trains_websocket(websocket: WebSocket):
    """Push every simulator tick to the client.

    Server sends: {"trains": [...]} once on connect and after each tick.
    Slow clients only ever get the newest snapshot.
    """
    state = _get_state()
    simulator = state.get("simulator")
    if simulator is None:
        await websocket.close(code=1011, reason="Train simulator unavailable")
        return

    await websocket.accept()
    queue: asyncio.Queue = asyncio.Queue(maxsize=1)

    def on_tick(snapshot: tuple[TrainPosition, ...]) -> None:
        if queue.full():
            queue.get_nowait()
        queue.put_nowait(snapshot)

    unsubscribe = simulator.subscribe(on_tick)
    logger.info("Train WebSocket connected")

    try:
        snapshot = simulator.snapshot
        while True:
            await websocket.send_text(TrainsResponse(trains=list(snapshot)).model_dump_json())
            snapshot = await queue.get()
    except WebSocketDisconnect:
        logger.info("Train WebSocket disconnected")
    except Exception as e:
        logger.error(f"Train WebSocket error: {e}")
    finally:
        unsubscribe()
