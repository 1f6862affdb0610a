import itertools

import pytest

from conftest import make_line
from metromap.config import HOP_WEIGHT
from metromap.graph import build_graph, count_transfers, find_route, shortest_path
from metromap.topology import LineTopology


class TestBuildGraph:
    def test_empty_topology_gives_empty_graph(self):
        graph = build_graph([])

        assert graph.number_of_nodes() == 0
        assert graph.number_of_edges() == 0

    def test_edges_are_bidirectional_and_tagged(self, single_line_topology):
        graph = build_graph(single_line_topology.lines, hop_weight=2)

        assert set(graph.nodes) == {"X", "Y", "Z"}
        assert list(graph.neighbors("Y")) == ["X", "Z"]
        assert list(graph.neighbors("X")) == ["Y"]
        assert graph["Y"]["Z"]["L"] == {"weight": 2, "line_id": "L"}
        assert graph["Z"]["Y"]["L"]["weight"] == 2

    def test_parallel_lines_keep_parallel_edges(self):
        lines = [
            make_line("a", "Alpha", [("P", 0, 0), ("Q", 0, 1)]),
            make_line("b", "Beta", [("P", 0, 0), ("Q", 0, 1)]),
        ]
        graph = build_graph(lines)

        assert list(graph["P"]["Q"]) == ["a", "b"]
        assert graph.number_of_edges("Q", "P") == 2

    def test_single_station_line_is_a_node(self):
        graph = build_graph([make_line("s", "Solo", [("Only", 0, 0)])])

        assert list(graph.nodes) == ["Only"]
        assert find_route("Only", "Only", LineTopology([make_line("s", "Solo", [("Only", 0, 0)])])).path == ["Only"]


class TestShortestPath:
    def test_single_line(self, single_line_topology):
        graph = build_graph(single_line_topology.lines, hop_weight=2)
        result = shortest_path("X", "Z", graph)

        assert result.path == ["X", "Y", "Z"]
        assert result.total_weight == 4
        assert result.transfer_count == 0
        assert result.hop_lines == ["L", "L"]

    def test_transfer_between_lines(self, transfer_topology):
        result = find_route("A", "B", transfer_topology)

        assert result.path == ["A", "M", "B"]
        assert result.transfer_count == 1
        assert result.hop_lines == ["L1", "L2"]

    def test_unknown_station_is_not_found(self, single_line_topology):
        assert find_route("Unknown", "X", single_line_topology) is None
        assert find_route("X", "Unknown", single_line_topology) is None

    def test_unreachable_station_is_not_found(self, cross_topology):
        assert find_route("R0", "G1", cross_topology) is None

    def test_same_station(self, single_line_topology):
        result = find_route("Y", "Y", single_line_topology)

        assert result.path == ["Y"]
        assert result.total_weight == 0
        assert result.transfer_count == 0

    def test_single_line_weight_matches_hop_count(self, cross_topology):
        result = find_route("R0", "R5", cross_topology)

        assert result.path[0] == "R0"
        assert result.path[-1] == "R5"
        assert result.total_weight == (len(result.path) - 1) * HOP_WEIGHT

    def test_prefers_fewer_hops_over_fewer_transfers(self):
        # Direct ride is 4 hops; changing at K is 2 hops
        topology = LineTopology([
            make_line("slow", "Slow", [("S", 0, 0), ("s1", 0, 1), ("s2", 0, 2), ("s3", 0, 3), ("T", 0, 4)]),
            make_line("k1", "Kilo", [("S", 0, 0), ("K", 1, 2)]),
            make_line("k2", "Lima", [("K", 1, 2), ("T", 0, 4)]),
        ])
        result = find_route("S", "T", topology)

        assert result.path == ["S", "K", "T"]
        assert result.transfer_count == 1

    def test_parallel_edges_use_first_line(self):
        topology = LineTopology([
            make_line("a", "Alpha", [("P", 0, 0), ("Q", 0, 1)]),
            make_line("b", "Beta", [("P", 0, 0), ("Q", 0, 1), ("R", 0, 2)]),
        ])
        result = find_route("P", "R", topology)

        assert result.hop_lines == ["a", "b"]
        assert result.transfer_count == 1

    def test_cost_is_symmetric(self, cross_topology):
        names = [n for n in cross_topology.station_names() if not n.startswith("G")]
        for a, b in itertools.combinations(names, 2):
            forward = find_route(a, b, cross_topology)
            backward = find_route(b, a, cross_topology)
            assert forward.total_weight == backward.total_weight, (a, b)


@pytest.mark.parametrize(
    ("line_ids", "expected"),
    [
        ([], 0),
        (["a"], 0),
        (["a", "a", "a"], 0),
        (["a", "b"], 1),
        (["a", "b", "a"], 2),
    ],
)
def test_count_transfers(line_ids, expected):
    assert count_transfers(line_ids) == expected
