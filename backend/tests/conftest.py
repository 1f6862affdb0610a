import pytest

from metromap.models import Station, SubwayLine
from metromap.topology import LineTopology


def make_line(line_id: str, name: str, stations: list[tuple[str, float, float]], color: str = "#123456") -> SubwayLine:
    return SubwayLine(
        id=line_id,
        name=name,
        color=color,
        stations=[Station(name=n, lat=lat, lng=lng) for n, lat, lng in stations],
    )


@pytest.fixture
def single_line_topology():
    """X - Y - Z on one line."""
    return LineTopology([make_line("L", "Line", [("X", 0, 0), ("Y", 0, 1), ("Z", 0, 2)])])


@pytest.fixture
def transfer_topology():
    """Two lines meeting at M: A - M on L1, M - B on L2."""
    return LineTopology([
        make_line("L1", "First", [("A", 0, 0), ("M", 0, 1)]),
        make_line("L2", "Second", [("M", 0, 1), ("B", 1, 1)]),
    ])


@pytest.fixture
def cross_topology():
    """Red and Blue lines crossing at Hub, plus an isolated Grey line.

        R0 - R1 - Hub - R3 - R4 - R5      (Red, id "1")
        B0 - B1 - Hub - B3 - B4           (Blue, id "2")
        G0 - G1                           (Grey, id "3", unreachable)
    """
    return LineTopology([
        make_line("1", "Red", [("R0", 0, 0), ("R1", 0, 1), ("Hub", 0, 2), ("R3", 0, 3), ("R4", 0, 4), ("R5", 0, 5)]),
        make_line("2", "Blue", [("B0", -2, 2), ("B1", -1, 2), ("Hub", 0, 2), ("B3", 1, 2), ("B4", 2, 2)]),
        make_line("3", "Grey", [("G0", 9, 9), ("G1", 9, 10)]),
    ])
