"""
Tests para el cálculo de ruta más corta.
"""

import pytest
import sys
from pathlib import Path

# Agregar raíz del proyecto al path
sys.path.insert(0, str(Path(__file__).parent.parent))

from traffic_dsa.graph import MapGraph, PathError, PathResult, haversine_distance
from traffic_dsa.utils.config import SAMPLE_MAP_FILE


def build_graph(edges, node_ids=None):
    """Crea un grafo con aristas de doble sentido y distancias explícitas."""
    graph = MapGraph()
    ids = node_ids or sorted({n for a, b, _ in edges for n in (a, b)})
    for node_id in ids:
        graph.add_node(node_id, 0.0, float(node_id))
    for a, b, distance in edges:
        graph.add_edge(a, b, distance)
        graph.add_edge(b, a, distance)
    graph.regenerate_names()
    return graph


class TestShortestPath:
    """Tests para la clase PathResult y dijkstra."""

    def test_three_node_chain(self):
        """Test de cadena n1–n2–n3 con distancias haversine."""
        graph = MapGraph()
        graph.add_node(1, 24.8607, 67.0011)
        graph.add_node(2, 24.8610, 67.0020)
        graph.add_node(3, 24.8613, 67.0030)
        graph.add_road(1, 2)
        graph.add_road(2, 3)

        d1 = haversine_distance(24.8607, 67.0011, 24.8610, 67.0020)
        d2 = haversine_distance(24.8610, 67.0020, 24.8613, 67.0030)

        result = graph.shortest_path(1, 3)

        assert result.found
        assert result.path == [1, 2, 3]
        assert result.total_distance_km == pytest.approx(d1 + d2)
        assert result.error is None

    def test_same_source_and_destination(self):
        """Test de origen igual a destino."""
        graph = MapGraph(SAMPLE_MAP_FILE)

        for node_id in graph.node_ids():
            result = graph.shortest_path(node_id, node_id)
            assert result.found
            assert result.path == [node_id]
            assert result.total_distance_km == 0.0

    def test_source_not_found(self):
        """Test de origen inexistente."""
        graph = build_graph([(1, 2, 1.0)])

        result = graph.shortest_path(99, 2)

        assert not result.found
        assert result.error == PathError.SOURCE_NOT_FOUND
        assert "99" in result.error_message
        assert result.path == []

    def test_destination_not_found(self):
        """Test de destino inexistente."""
        graph = build_graph([(1, 2, 1.0)])

        result = graph.shortest_path(1, 99)

        assert not result.found
        assert result.error == PathError.DESTINATION_NOT_FOUND

    def test_both_missing_reports_source(self):
        """Test de ambos extremos inexistentes: se reporta el origen."""
        graph = build_graph([(1, 2, 1.0)])

        assert graph.shortest_path(98, 99).error == PathError.SOURCE_NOT_FOUND

    def test_no_path(self):
        """Test de componentes desconectadas."""
        graph = build_graph([(1, 2, 1.0), (3, 4, 1.0)])

        result = graph.shortest_path(1, 4)

        assert not result.found
        assert not result
        assert result.error == PathError.NO_PATH

    def test_prefers_shorter_total(self):
        """Test de ruta más larga en nodos pero más corta en distancia."""
        graph = build_graph([
            (1, 2, 5.0),
            (1, 3, 1.0),
            (3, 4, 1.0),
            (4, 2, 1.0),
        ])

        result = graph.shortest_path(1, 2)

        assert result.path == [1, 3, 4, 2]
        assert result.total_distance_km == pytest.approx(3.0)

    def test_tie_break_by_lowest_id(self):
        """Test de empate: gana la ruta por el nodo de menor ID."""
        # Aristas del nodo 5 agregadas primero: el orden de inserción no importa
        graph = build_graph([
            (1, 5, 1.0),
            (5, 9, 1.0),
            (1, 3, 1.0),
            (3, 9, 1.0),
        ])

        result = graph.shortest_path(1, 9)

        assert result.path == [1, 3, 9]
        assert result.total_distance_km == pytest.approx(2.0)

    def test_tie_break_reverse_direction(self):
        """Test de empate en sentido inverso."""
        graph = build_graph([
            (1, 2, 1.0),
            (2, 4, 1.0),
            (1, 3, 1.0),
            (3, 4, 1.0),
        ])

        assert graph.shortest_path(4, 1).path == [4, 2, 1]

    def test_parallel_edges_use_minimum(self):
        """Test de aristas paralelas: se usa la más corta."""
        graph = build_graph([(1, 2, 3.0), (1, 2, 2.0)])

        result = graph.shortest_path(1, 2)

        assert graph.edge_count() == 2
        assert result.total_distance_km == pytest.approx(2.0)

    def test_sample_map_route(self):
        """Test de ruta en el mapa de ejemplo."""
        graph = MapGraph(SAMPLE_MAP_FILE)

        result = graph.shortest_path(1000, 1066)

        assert result.found
        assert result.path[0] == 1000
        assert result.path[-1] == 1066
        # Grilla de 7x7: 12 tramos como mínimo
        assert len(result.path) == 13

        unreachable = graph.shortest_path(1000, 2000)
        assert unreachable.error == PathError.NO_PATH

    def test_result_repr(self):
        """Test de representación del resultado."""
        ok = PathResult(found=True, path=[1, 2], total_distance_km=1.5)
        failed = PathResult.failure(PathError.NO_PATH, "sin ruta")

        assert "found=True" in repr(ok)
        assert "no_path_found" in repr(failed)
        assert bool(ok)
        assert not bool(failed)


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
