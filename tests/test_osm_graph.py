"""
Tests para el módulo del mapa (MapGraph).
"""

import io
import pytest
import sys
from pathlib import Path

import matplotlib
matplotlib.use("Agg")
import matplotlib.pyplot as plt

# Agregar raíz del proyecto al path
sys.path.insert(0, str(Path(__file__).parent.parent))

from traffic_dsa.graph import MapGraph, create_test_map, haversine_distance
from traffic_dsa.graph.naming import resolve_node_name, resolve_way_name
from traffic_dsa.simulator import TrafficLight, Vehicle
from traffic_dsa.utils.config import SAMPLE_MAP_FILE, VisualizationConfig


NAMING_MAP = """<?xml version="1.0" encoding="UTF-8"?>
<osm version="0.6">
  <node id="1" lat="24.1000" lon="67.1000"><tag k="name" v="Main Street Plaza"/></node>
  <node id="2" lat="24.2000" lon="67.2000"><tag k="place" v="village"/></node>
  <node id="3" lat="24.3000" lon="67.3000"><tag k="amenity" v="bus_station"/></node>
  <node id="4" lat="24.4000" lon="67.4000"><tag k="shop" v="coffee_beans"/></node>
  <node id="5" lat="24.5000" lon="67.5000"><tag k="name" v=""/><tag k="name:en" v="Clock Tower"/></node>
  <node id="6" lat="24.6000" lon="67.6000"><tag k="addr:district" v="South"/><tag k="addr:suburb" v="Clifton"/></node>
  <node id="7" lat="24.0000" lon="67.0000"/>
  <node id="8" lat="24.0010" lon="67.0010"/>
  <node id="9" lat="25.0000" lon="68.0000"/>
  <node id="10" lat="25.5000" lon="68.5000"/>
  <node id="11" lat="26.0000" lon="69.0000"><tag k="addr:street" v="Khayaban"/></node>
  <way id="100">
    <nd ref="7"/>
    <nd ref="8"/>
    <nd ref="404"/>
    <tag k="highway" v="primary"/>
    <tag k="name" v="Tariq Road"/>
  </way>
  <way id="101">
    <nd ref="9"/>
    <nd ref="10"/>
    <tag k="building" v="yes"/>
    <tag k="name" v="Not A Road"/>
  </way>
</osm>
"""


def write_map(tmp_path, content: str) -> Path:
    path = tmp_path / "map.osm"
    path.write_text(content, encoding="utf-8")
    return path


@pytest.fixture
def naming_graph(tmp_path):
    graph = MapGraph()
    assert graph.load(write_map(tmp_path, NAMING_MAP))
    return graph


class TestTagResolution:
    """Tests para la prioridad de etiquetas."""

    def test_name_priority(self):
        """Test de prioridad: name:en antes que addr:suburb, place antes que amenity."""
        assert resolve_node_name({"name:en": "A", "addr:suburb": "B"}) == "A"
        assert resolve_node_name({"addr:suburb": "B", "addr:district": "C"}) == "B"
        assert resolve_node_name({"place": "town", "amenity": "school"}) == "town Area"
        assert resolve_node_name({"amenity": "fire_station", "shop": "bakery"}) == "fire station"
        assert resolve_node_name({"shop": "mobile_phone"}) == "mobile phone Shop"

    def test_empty_values_are_skipped(self):
        """Test de valores vacíos: se pasa a la siguiente etiqueta."""
        assert resolve_node_name({"name": "", "place": "city"}) == "city Area"
        assert resolve_node_name({}) == ""

    def test_street_is_not_a_name(self):
        """Test de addr:street: no se usa como nombre del nodo."""
        assert resolve_node_name({"addr:street": "Main"}) == ""

    def test_way_name(self):
        """Test de nombre de vía."""
        assert resolve_way_name({"name:en": "Ring Road", "addr:street": "X"}) == "Ring Road"
        assert resolve_way_name({"addr:street": "X"}) == "X"
        assert resolve_way_name({"highway": "service"}) == ""


class TestMapLoading:
    """Tests para la carga del mapa."""

    def test_empty_graph(self):
        """Test de creación de mapa vacío."""
        graph = MapGraph()

        assert graph.node_count() == 0
        assert graph.edge_count() == 0
        assert graph.named_locations() == []

    def test_load_counts(self, naming_graph):
        """Test de conteo de nodos y aristas."""
        # Sólo la vía con highway crea aristas; la referencia 404 se ignora
        assert naming_graph.node_count() == 11
        assert naming_graph.edge_count() == 1

    def test_edges_are_paired(self, naming_graph):
        """Test de aristas de ida y vuelta con igual distancia."""
        forward = naming_graph.get_edges(7)
        backward = naming_graph.get_edges(8)

        assert [e.to for e in forward] == [8]
        assert [e.to for e in backward] == [7]
        assert forward[0].distance == backward[0].distance
        assert forward[0].distance == pytest.approx(
            haversine_distance(24.0, 67.0, 24.001, 67.001)
        )

    def test_way_without_highway_is_ignored(self, naming_graph):
        """Test de vías sin highway: no crean aristas ni nombres."""
        assert naming_graph.get_edges(9) == []
        assert naming_graph.get_node(9).name == ""

    def test_way_backfills_names(self, naming_graph):
        """Test de nombres completados desde la vía."""
        node = naming_graph.get_node(7)
        assert node.name == "Tariq Road"
        assert node.street_name == "Tariq Road"

    def test_load_sample_map(self):
        """Test de carga del mapa de ejemplo."""
        graph = MapGraph(SAMPLE_MAP_FILE)

        assert graph.node_count() == 50
        assert graph.edge_count() == 60
        stats = graph.get_network_stats()
        assert stats['num_edges'] == 60
        assert stats['total_length_km'] > 0
        assert not stats['is_connected']

    def test_load_from_file_object(self):
        """Test de carga desde un archivo abierto."""
        graph = MapGraph()
        assert graph.load(io.BytesIO(NAMING_MAP.encode("utf-8")))
        assert graph.node_count() == 11

    def test_missing_file(self, tmp_path):
        """Test de archivo inexistente."""
        graph = MapGraph()
        assert not graph.load(tmp_path / "missing.osm")
        assert graph.node_count() == 0

    def test_failed_load_clears_previous_map(self, tmp_path, naming_graph):
        """Test de XML inválido: el mapa anterior no sobrevive."""
        broken = write_map(tmp_path, "<osm><node id='1' lat='1' lon='1'>")

        assert not naming_graph.load(broken)
        assert naming_graph.node_count() == 0
        assert naming_graph.edge_count() == 0
        assert naming_graph.named_locations() == []
        assert naming_graph.find_node_by_name("Main Street Plaza (24.1000, 67.1000)") is None

    def test_bad_coordinates(self, tmp_path):
        """Test de coordenadas no numéricas."""
        graph = MapGraph()
        path = write_map(tmp_path, '<osm><node id="1" lat="abc" lon="1"/></osm>')

        assert not graph.load(path)
        assert graph.node_count() == 0


class TestNaming:
    """Tests para la generación de nombres visibles."""

    def test_singleton_names(self, naming_graph):
        """Test de nombres únicos con coordenadas."""
        assert naming_graph.display_name_of(1) == "Main Street Plaza (24.1000, 67.1000)"
        assert naming_graph.display_name_of(2) == "village Area (24.2000, 67.2000)"
        assert naming_graph.display_name_of(3) == "bus station (24.3000, 67.3000)"
        assert naming_graph.display_name_of(4) == "coffee beans Shop (24.4000, 67.4000)"
        assert naming_graph.display_name_of(5) == "Clock Tower (24.5000, 67.5000)"
        assert naming_graph.display_name_of(6) == "Clifton (24.6000, 67.6000)"

    def test_street_name_as_base(self, naming_graph):
        """Test de nodo sólo con calle."""
        assert naming_graph.display_name_of(11) == "Khayaban (26.0000, 69.0000)"

    def test_junction_names(self, naming_graph):
        """Test de nodos con el mismo nombre."""
        assert naming_graph.display_name_of(7) == "Tariq Road - Junction 1 (24.0000, 67.0000)"
        assert naming_graph.display_name_of(8) == "Tariq Road - Junction 2 (24.0010, 67.0010)"

    def test_unnamed_intersections(self, naming_graph):
        """Test de nodos sin nombre."""
        assert naming_graph.display_name_of(9) == "Intersection #1 (25.0000, 68.0000)"
        assert naming_graph.display_name_of(10) == "Intersection #2 (25.5000, 68.5000)"

    def test_single_unnamed_location(self):
        """Test de un único nodo sin nombre."""
        graph = MapGraph()
        graph.add_node(1, 10.0, 20.0)
        graph.regenerate_names()

        assert graph.display_name_of(1) == "Unnamed Location (10.0000, 20.0000)"

    def test_named_locations_sorted(self, naming_graph):
        """Test de orden alfabético de las ubicaciones."""
        names = [loc.display_name for loc in naming_graph.named_locations()]

        assert len(names) == 11
        assert names == sorted(names)
        assert len(set(names)) == len(names)

    def test_round_trip(self):
        """Test de ida y vuelta nombre → nodo para todos los nodos."""
        graph = MapGraph(SAMPLE_MAP_FILE)

        for node_id in graph.node_ids():
            assert graph.find_node_by_name(graph.display_name_of(node_id)) == node_id

    def test_unknown_name(self, naming_graph):
        """Test de nombre inexistente."""
        assert naming_graph.find_node_by_name("Nowhere") is None

    def test_fallback_display_name(self):
        """Test de nombre sintético para nodos sin índice."""
        graph = MapGraph()
        graph.add_node(5, 1.5, 2.25)

        assert graph.display_name_of(5) == "Node 5 (1.5000,2.2500)"
        assert graph.display_name_of(42) == "Node 42"


class TestGraphConstruction:
    """Tests para la construcción manual del grafo."""

    def test_edge_count_from_paired_edges(self):
        """Test de conteo con aristas agregadas de a pares."""
        graph = MapGraph()
        for node_id in range(1, 5):
            graph.add_node(node_id, 0.0, float(node_id))

        for a, b in [(1, 2), (2, 3), (3, 4)]:
            graph.add_edge(a, b, 1.0)
            graph.add_edge(b, a, 1.0)

        assert graph.edge_count() == 3

    def test_add_edge_unknown_node(self):
        """Test de arista con nodo inexistente."""
        graph = MapGraph()
        graph.add_node(1, 0.0, 0.0)
        graph.add_edge(1, 99, 1.0)

        assert graph.get_edges(1) == []
        assert not graph.has_node(99)

    def test_node_ids_sorted(self):
        """Test de enumeración en orden ascendente."""
        graph = MapGraph()
        for node_id in [30, 10, 20]:
            graph.add_node(node_id, 0.0, 0.0)

        assert graph.node_ids() == [10, 20, 30]

    def test_haversine(self):
        """Test de distancia haversine conocida (1 grado de meridiano)."""
        assert haversine_distance(0.0, 0.0, 1.0, 0.0) == pytest.approx(111.195, abs=1e-3)
        assert haversine_distance(24.0, 67.0, 24.0, 67.0) == 0.0

    def test_test_map(self):
        """Test del mapa de prueba de 3 nodos."""
        graph = create_test_map()

        assert graph.node_count() == 3
        assert graph.edge_count() == 2
        assert graph.display_name_of(1) == "Start (24.8607, 67.0011)"
        assert graph.get_node(2).street_name == "Road B"


class TestRouteDescription:
    """Tests para el resumen de rutas y visualización."""

    def test_describe_route(self):
        """Test de resumen de ruta encontrada."""
        graph = create_test_map()
        result = graph.shortest_path(1, 3)
        text = graph.describe_route(result)

        assert f"{result.total_distance_km:.3f} km" in text
        assert "Paradas: 3" in text
        assert "INICIO: Start (24.8607, 67.0011)" in text
        assert "Vía: Middle (24.8610, 67.0020)" in text
        assert "FIN: End (24.8613, 67.0030)" in text

    def test_describe_missing_route(self):
        """Test de resumen de ruta no encontrada."""
        graph = create_test_map()
        result = graph.shortest_path(1, 99)

        assert graph.describe_route(result) == result.error_message

    def test_visualize(self):
        """Test de visualización con vehículos y semáforos."""
        graph = create_test_map()
        vehicles = [Vehicle(1, [1, 2, 3], 10.0, "#336699", (67.0011, 24.8607))]
        lights = [TrafficLight(1, True), TrafficLight(3, False)]

        fig = graph.visualize(vehicles=vehicles, lights=lights)

        assert fig is not None
        assert fig.dpi == VisualizationConfig.DPI
        plt.close(fig)


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
