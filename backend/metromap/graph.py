"""Station graph and shortest path search.

The graph is an undirected networkx multigraph keyed by station name. Each
pair of consecutive stations on a line contributes one edge keyed by the
owning line instance id, so two lines running between the same stations
give parallel edges. Graphs are rebuilt for every search; the topology is
small and static.
"""

import logging
from typing import Optional

import networkx as nx

from metromap.config import HOP_WEIGHT
from metromap.models import PathResult, SubwayLine
from metromap.topology import LineTopology

logger = logging.getLogger("metromap.graph")


def build_graph(lines: list[SubwayLine], hop_weight: float = HOP_WEIGHT) -> nx.MultiGraph:
    """Build the station multigraph for a list of line instances."""
    graph = nx.MultiGraph()

    for line in lines:
        graph.add_nodes_from(s.name for s in line.stations)
        for a, b in zip(line.stations, line.stations[1:]):
            graph.add_edge(a.name, b.name, key=line.id, weight=hop_weight, line_id=line.id)

    return graph


def count_transfers(line_ids: list[str]) -> int:
    """Number of adjacent hops whose owning line differs."""
    return sum(1 for a, b in zip(line_ids, line_ids[1:]) if a != b)


def _hop_edge(graph: nx.MultiGraph, u: str, v: str) -> dict:
    # Cheapest parallel edge; the first line added wins a tie
    return min(graph[u][v].values(), key=lambda data: data["weight"])


def shortest_path(start: str, end: str, graph: nx.MultiGraph) -> Optional[PathResult]:
    """Minimum-weight path from ``start`` to ``end``, or None when there is none.

    Transfers are not a secondary objective: of two equally short paths the
    one Dijkstra settles first wins, whatever its transfer count.
    """
    try:
        path = nx.dijkstra_path(graph, start, end, weight="weight")
    except nx.NetworkXNoPath:
        return None
    except nx.NodeNotFound:
        return None

    hops = [_hop_edge(graph, u, v) for u, v in zip(path, path[1:])]
    line_ids = [hop["line_id"] for hop in hops]

    return PathResult(
        path=path,
        total_weight=float(sum(hop["weight"] for hop in hops)),
        transfer_count=count_transfers(line_ids),
        hop_lines=line_ids,
    )


def find_route(start: str, end: str, topology: LineTopology) -> Optional[PathResult]:
    """Shortest path between two station names over the whole topology."""
    result = shortest_path(start, end, build_graph(topology.lines))
    if result is None:
        logger.debug(f"No route: {start} -> {end}")
    else:
        logger.debug(
            f"Route {start} -> {end}: {len(result.path)} stations, "
            f"{result.total_weight} min, {result.transfer_count} transfers"
        )
    return result
