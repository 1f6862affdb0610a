"""Simulated train positions along the line geometry.

Trains shuttle back and forth between the two ends of their line. Every tick
moves each train a fixed fraction of the way to its next station and
publishes a fresh, immutable snapshot to subscribers. The simulator does not
know about routes; consumers filter snapshots with
``active_segments.filter_trains``.
"""

import asyncio
import logging
import random
from dataclasses import dataclass
from typing import Callable, Optional

from metromap.config import PROGRESS_STEP, TICK_INTERVAL_SEC, TRAIN_SPACING
from metromap.models import SubwayLine, TrainPosition
from metromap.topology import LineTopology

logger = logging.getLogger("metromap.simulator")

TickCallback = Callable[[tuple[TrainPosition, ...]], None]


@dataclass
class SimulatedTrain:
    id: str
    line_id: str
    line_name: str
    station_index: int
    progress: float  # 0.0-1.0 between current and next station
    direction: int  # +1 or -1


def _interpolate(start: float, end: float, ratio: float) -> float:
    return start + (end - start) * ratio


class TrainSimulator:
    """Owns the simulated trains; everything it hands out is a snapshot."""

    def __init__(
        self,
        topology: LineTopology,
        spacing: int = TRAIN_SPACING,
        progress_step: float = PROGRESS_STEP,
        seed: Optional[int] = None,
    ):
        if spacing < 1:
            raise ValueError("spacing must be at least 1")

        self.topology = topology
        self.progress_step = progress_step
        self._rng = random.Random(seed)
        self._lines: dict[str, SubwayLine] = {line.id: line for line in topology.lines}
        self._trains: list[SimulatedTrain] = self._place_trains(spacing)
        self._subscribers: list[TickCallback] = []
        self.tick_count = 0
        self.snapshot: tuple[TrainPosition, ...] = self._build_snapshot()

        logger.info(f"Train simulator ready: {len(self._trains)} trains on {len(self._lines)} lines")

    def _place_trains(self, spacing: int) -> list[SimulatedTrain]:
        trains: list[SimulatedTrain] = []
        for line in self.topology.lines:
            if len(line.stations) < 2:
                continue
            number = 0
            for index in range(0, len(line.stations), spacing):
                for direction in (1, -1):
                    number += 1
                    trains.append(SimulatedTrain(
                        id=f"t-{line.id}-{number}",
                        line_id=line.id,
                        line_name=line.name,
                        station_index=index,
                        progress=self._rng.random(),
                        direction=direction,
                    ))
        return trains

    def __len__(self) -> int:
        return len(self._trains)

    def subscribe(self, callback: TickCallback) -> Callable[[], None]:
        """Call ``callback`` with every new snapshot. Returns an unsubscribe function."""
        self._subscribers.append(callback)

        def unsubscribe() -> None:
            if callback in self._subscribers:
                self._subscribers.remove(callback)

        return unsubscribe

    def tick(self) -> tuple[TrainPosition, ...]:
        """Advance every train one step and publish the new snapshot."""
        for train in self._trains:
            self._advance(train, len(self._lines[train.line_id].stations) - 1)

        self.tick_count += 1
        self.snapshot = self._build_snapshot()

        for callback in list(self._subscribers):
            try:
                callback(self.snapshot)
            except Exception as e:
                logger.error(f"Tick subscriber failed: {e}", exc_info=True)

        return self.snapshot

    def _advance(self, train: SimulatedTrain, last: int) -> None:
        # Turn around before moving if placed at an end facing outward
        if (train.station_index >= last and train.direction > 0) or (train.station_index <= 0 and train.direction < 0):
            train.direction = -train.direction

        train.progress += self.progress_step
        if train.progress < 1:
            return

        train.progress = 0.0
        train.station_index += train.direction

        # Bounce at ends
        if train.station_index >= last:
            train.station_index = last
            train.direction = -1
        elif train.station_index <= 0:
            train.station_index = 0
            train.direction = 1

    def _build_snapshot(self) -> tuple[TrainPosition, ...]:
        return tuple(self._position(train) for train in self._trains)

    def _position(self, train: SimulatedTrain) -> TrainPosition:
        stations = self._lines[train.line_id].stations
        current = stations[train.station_index]
        next_index = train.station_index + train.direction
        nxt = stations[next_index] if 0 <= next_index < len(stations) else current

        return TrainPosition(
            id=train.id,
            line_id=train.line_id,
            line_name=train.line_name,
            lat=_interpolate(current.lat, nxt.lat, train.progress),
            lng=_interpolate(current.lng, nxt.lng, train.progress),
            heading_to=nxt.name,
            station_index=train.station_index,
            direction=train.direction,
        )


class IntervalTicker:
    """Drives a simulator from an asyncio task at a fixed interval."""

    def __init__(self, simulator: TrainSimulator, interval: float = TICK_INTERVAL_SEC):
        self.simulator = simulator
        self.interval = interval
        self._task: Optional[asyncio.Task] = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def _loop(self) -> None:
        while True:
            await asyncio.sleep(self.interval)
            try:
                self.simulator.tick()
            except Exception as e:
                logger.error(f"Simulator tick failed: {e}", exc_info=True)

    def start(self) -> asyncio.Task:
        if not self.running:
            self._task = asyncio.create_task(self._loop())
            logger.info(f"Train ticker started ({self.interval}s interval)")
        return self._task

    async def stop(self) -> None:
        task = self._task
        self._task = None
        if task:
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass
        logger.info("Train ticker stopped")
