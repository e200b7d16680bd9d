"""
Modelo del mapa vial como grafo a partir de un extracto OpenStreetMap.

Este módulo implementa la representación de la red de calles como un
grafo donde los nodos son puntos OSM y cada calle es un par de aristas
dirigidas (ida y vuelta) ponderadas por la distancia haversine en km.
"""

import logging
import math
import xml.etree.ElementTree as ET
from pathlib import Path
from typing import IO, Dict, List, Optional, Sequence, Tuple, Union

import matplotlib.pyplot as plt
import networkx as nx

from ..utils.config import MapConfig, VisualizationConfig
from .naming import (
    fallback_display_name,
    generate_display_names,
    resolve_node_name,
    resolve_street_name,
    resolve_way_name,
)
from .shortest_path import PathResult, dijkstra

logger = logging.getLogger(__name__)


class Node:
    """
    Representa un punto del mapa (nodo OSM).

    Las coordenadas son fijas; el nombre y la calle pueden completarse
    durante la carga a partir de las vías que pasan por el nodo.
    """

    def __init__(self, node_id: int, lat: float, lon: float,
                 name: str = "", street_name: str = ""):
        self.id = node_id
        self.lat = lat
        self.lon = lon
        self.name = name
        self.street_name = street_name

    @property
    def pos(self) -> Tuple[float, float]:
        """Posición en el plano del mapa (x=longitud, y=latitud)."""
        return (self.lon, self.lat)

    def __repr__(self) -> str:
        return f"Node(id={self.id}, name='{self.name}', coords=({self.lat:.4f}, {self.lon:.4f}))"


class Edge:
    """Arista dirigida hacia ``to`` con su distancia en kilómetros."""

    def __init__(self, to: int, distance: float):
        self.to = to
        self.distance = distance

    def __repr__(self) -> str:
        return f"Edge(to={self.to}, distance={self.distance:.4f}km)"


class NamedLocation:
    """Entrada del índice de nombres: nodo con su nombre visible único."""

    def __init__(self, node_id: int, display_name: str, lat: float, lon: float):
        self.node_id = node_id
        self.display_name = display_name
        self.lat = lat
        self.lon = lon

    def __repr__(self) -> str:
        return f"NamedLocation({self.node_id}: '{self.display_name}')"


def haversine_distance(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """
    Distancia de gran círculo entre dos puntos.

    Args:
        lat1, lon1: Coordenadas del primer punto (grados)
        lat2, lon2: Coordenadas del segundo punto (grados)

    Returns:
        float: Distancia en kilómetros
    """
    d_lat = math.radians(lat2 - lat1)
    d_lon = math.radians(lon2 - lon1)
    r_lat1 = math.radians(lat1)
    r_lat2 = math.radians(lat2)

    a = (math.sin(d_lat / 2.0) ** 2 +
         math.cos(r_lat1) * math.cos(r_lat2) * math.sin(d_lon / 2.0) ** 2)
    c = 2.0 * math.atan2(math.sqrt(a), math.sqrt(1.0 - a))

    return MapConfig.EARTH_RADIUS_KM * c


def _read_tags(element: ET.Element) -> Dict[str, str]:
    """Lee las etiquetas <tag k=... v=...> hijas de un elemento."""
    return {tag.get("k", ""): tag.get("v", "") for tag in element.findall("tag")}


class MapGraph:
    """
    Representa el mapa vial completo como un grafo G = (V, E).

    Esta clase encapsula la topología de la red (nodos y pares de aristas),
    el índice de nombres visibles y la consulta de ruta más corta.
    Todas las enumeraciones de nodos se hacen en orden ascendente de ID.
    """

    def __init__(self, map_file: Optional[Union[str, Path]] = None):
        """
        Inicializa el mapa.

        Args:
            map_file: Ruta a un extracto OSM (XML). Si es None, crea un mapa vacío.
        """
        self.graph = nx.MultiDiGraph()
        self.nodes: Dict[int, Node] = {}
        self.name_index: Dict[str, int] = {}
        self.display_names: Dict[int, str] = {}

        self._sorted_ids: Optional[List[int]] = None

        if map_file:
            self.load(map_file)

    def clear(self):
        """Elimina todos los nodos, aristas y nombres."""
        self.graph.clear()
        self.nodes.clear()
        self.name_index.clear()
        self.display_names.clear()
        self._sorted_ids = None

    def load(self, source: Union[str, Path, IO]) -> bool:
        """
        Carga el mapa desde un extracto OSM en XML.

        Primera pasada: nodos con coordenadas, nombre y calle. Segunda pasada:
        vías con etiqueta ``highway``, que completan nombres y crean aristas.
        Finalmente se generan los nombres visibles.

        Args:
            source: Ruta al archivo o archivo abierto

        Returns:
            bool: True si la carga fue exitosa. Ante cualquier error el mapa
                  queda vacío.
        """
        self.clear()
        logger.info("Cargando mapa desde %s", source)

        try:
            root = ET.parse(source).getroot()
            self._read_nodes(root)
            self._read_ways(root)
        except (OSError, ET.ParseError, ValueError, TypeError) as exc:
            logger.error("No se pudo cargar el mapa %s: %s", source, exc)
            self.clear()
            return False

        self.regenerate_names()

        logger.info("✓ Mapa cargado: %d nodos, %d aristas",
                    self.node_count(), self.edge_count())
        return True

    def _read_nodes(self, root: ET.Element):
        """Primera pasada: lee todos los elementos <node>."""
        for element in root.iter("node"):
            tags = _read_tags(element)
            self.add_node(
                node_id=int(element.get("id")),
                lat=float(element.get("lat")),
                lon=float(element.get("lon")),
                name=resolve_node_name(tags),
                street_name=resolve_street_name(tags)
            )

    def _read_ways(self, root: ET.Element):
        """Segunda pasada: lee las vías transitables y crea las aristas."""
        for element in root.iter("way"):
            tags = _read_tags(element)
            if MapConfig.ROAD_TAG not in tags:
                continue

            way_name = resolve_way_name(tags)
            refs = [int(nd.get("ref")) for nd in element.findall("nd")]

            if way_name:
                for ref in refs:
                    node = self.nodes.get(ref)
                    if node is None:
                        continue
                    if not node.street_name:
                        node.street_name = way_name
                    if not node.name:
                        node.name = way_name

            for from_id, to_id in zip(refs, refs[1:]):
                if from_id in self.nodes and to_id in self.nodes:
                    self.add_road(from_id, to_id)

    def add_node(self, node_id: int, lat: float, lon: float,
                 name: str = "", street_name: str = ""):
        """
        Agrega (o reemplaza) un nodo del mapa.

        Args:
            node_id: ID único del nodo
            lat: Latitud
            lon: Longitud
            name: Nombre resuelto (opcional)
            street_name: Nombre de la calle (opcional)
        """
        node = Node(node_id, lat, lon, name, street_name)
        self.nodes[node_id] = node
        self.graph.add_node(node_id, lat=lat, lon=lon)
        self._sorted_ids = None

    def add_edge(self, from_id: int, to_id: int, distance: float):
        """
        Agrega una arista dirigida. Los extremos deben existir.

        Args:
            from_id: Nodo de origen
            to_id: Nodo de destino
            distance: Distancia en km
        """
        if from_id not in self.nodes or to_id not in self.nodes:
            logger.warning("Arista %s → %s ignorada: nodo inexistente", from_id, to_id)
            return
        self.graph.add_edge(from_id, to_id, distance=distance)

    def add_road(self, node_a: int, node_b: int):
        """Agrega una calle de doble sentido ponderada por distancia haversine."""
        if node_a not in self.nodes or node_b not in self.nodes:
            logger.warning("Calle %s ↔ %s ignorada: nodo inexistente", node_a, node_b)
            return
        distance = self.distance_between(node_a, node_b)
        self.add_edge(node_a, node_b, distance)
        self.add_edge(node_b, node_a, distance)

    def regenerate_names(self):
        """Reconstruye los nombres visibles y el índice nombre → nodo."""
        self.display_names = generate_display_names(self.nodes)
        self.name_index = {name: node_id for node_id, name in self.display_names.items()}

    # Consultas

    def has_node(self, node_id: int) -> bool:
        return node_id in self.nodes

    def get_node(self, node_id: int) -> Optional[Node]:
        """Retorna el nodo con el ID dado."""
        return self.nodes.get(node_id)

    def get_edges(self, node_id: int) -> List[Edge]:
        """Retorna las aristas salientes de un nodo, en orden de inserción."""
        if node_id not in self.graph:
            return []
        return [Edge(to, data["distance"])
                for _, to, data in self.graph.out_edges(node_id, data=True)]

    def node_ids(self) -> List[int]:
        """Retorna los IDs de todos los nodos en orden ascendente."""
        if self._sorted_ids is None:
            self._sorted_ids = sorted(self.nodes)
        return list(self._sorted_ids)

    def node_count(self) -> int:
        return len(self.nodes)

    def edge_count(self) -> int:
        """
        Número de calles (pares de aristas).

        Cuenta las aristas dirigidas y divide por dos; sólo es exacto mientras
        cada arista tenga su par inverso.
        """
        return self.graph.number_of_edges() // 2

    def distance_between(self, node_a: int, node_b: int) -> float:
        """Distancia haversine en km entre dos nodos existentes."""
        a = self.nodes[node_a]
        b = self.nodes[node_b]
        return haversine_distance(a.lat, a.lon, b.lat, b.lon)

    def named_locations(self) -> List[NamedLocation]:
        """
        Retorna todos los nodos con su nombre visible.

        Returns:
            Lista de NamedLocation ordenada alfabéticamente por nombre visible
        """
        locations = []
        for display_name in sorted(self.name_index):
            node = self.nodes[self.name_index[display_name]]
            locations.append(NamedLocation(node.id, display_name, node.lat, node.lon))
        return locations

    def find_node_by_name(self, display_name: str) -> Optional[int]:
        """Retorna el ID del nodo con ese nombre visible, o None."""
        return self.name_index.get(display_name)

    def display_name_of(self, node_id: int) -> str:
        """Nombre visible de un nodo, con un nombre sintético como respaldo."""
        display_name = self.display_names.get(node_id)
        if display_name is not None:
            return display_name
        return fallback_display_name(node_id, self.nodes.get(node_id))

    def shortest_path(self, source: int, destination: int) -> PathResult:
        """
        Calcula la ruta más corta entre dos nodos.

        Args:
            source: ID de nodo de origen
            destination: ID de nodo de destino

        Returns:
            PathResult con la ruta y la distancia total en km, o el error
        """
        return dijkstra(self, source, destination)

    def describe_route(self, result: PathResult) -> str:
        """
        Construye un resumen legible de una ruta.

        Args:
            result: Resultado de shortest_path

        Returns:
            str: Distancia total, cantidad de paradas y lista de lugares,
                 o el mensaje de error si no hay ruta
        """
        if not result.found:
            return result.error_message

        lines = []
        last = len(result.path) - 1
        for i, node_id in enumerate(result.path):
            location = self.display_name_of(node_id)
            if i == 0:
                lines.append(f"🚩 INICIO: {location}")
            elif i == last:
                lines.append(f"🏁 FIN: {location}")
            else:
                lines.append(f"   ↓ Vía: {location}")

        header = (f"Distancia total: {result.total_distance_km:.3f} km\n"
                  f"Paradas: {len(result.path)} intersecciones\n")
        return header + "\n" + "\n".join(lines)

    def get_network_stats(self) -> Dict:
        """
        Calcula estadísticas del mapa.

        Returns:
            dict: Diccionario con estadísticas del mapa
        """
        # Cada calle aparece dos veces (ida y vuelta)
        total_length = sum(data["distance"]
                           for _, _, data in self.graph.edges(data=True)) / 2
        num_edges = self.edge_count()

        return {
            'num_nodes': self.node_count(),
            'num_edges': num_edges,
            'total_length_km': total_length,
            'avg_edge_length_km': total_length / num_edges if num_edges else 0.0,
            'num_named_nodes': sum(1 for node in self.nodes.values() if node.name),
            'is_connected': (nx.is_weakly_connected(self.graph)
                             if self.node_count() else False)
        }

    def visualize(self, vehicles: Optional[Sequence] = None,
                  lights: Optional[Sequence] = None,
                  figsize: Tuple[int, int] = VisualizationConfig.FIGURE_SIZE):
        """
        Dibuja el mapa y, opcionalmente, una instantánea de la simulación.

        Args:
            vehicles: Lista de vehículos (usa ``position`` y ``color``)
            lights: Lista de semáforos (usa ``node_id`` e ``is_green``)
            figsize: Tamaño de la figura

        Returns:
            plt.Figure: Figura de matplotlib
        """
        fig = plt.figure(figsize=figsize, dpi=VisualizationConfig.DPI)

        pos = {node_id: node.pos for node_id, node in self.nodes.items()}

        nx.draw_networkx_edges(self.graph, pos, edge_color=VisualizationConfig.EDGE_COLOR,
                               width=1, alpha=0.6, arrows=False)
        nx.draw_networkx_nodes(self.graph, pos, node_color=VisualizationConfig.NODE_COLOR,
                               node_size=10, alpha=0.8)

        if lights:
            light_ids = [light.node_id for light in lights if light.node_id in pos]
            light_colors = [VisualizationConfig.LIGHT_COLORS["green" if light.is_green else "red"]
                            for light in lights if light.node_id in pos]
            nx.draw_networkx_nodes(self.graph, pos, nodelist=light_ids,
                                   node_color=light_colors, node_size=60,
                                   edgecolors="black")

        if vehicles:
            xs = [v.position[0] for v in vehicles]
            ys = [v.position[1] for v in vehicles]
            plt.scatter(xs, ys, c=[v.color for v in vehicles], s=40,
                        marker="s", zorder=3)

        plt.title(f"Mapa: {self.node_count()} nodos, {self.edge_count()} calles",
                  fontsize=14, fontweight='bold')
        plt.xlabel("Longitud")
        plt.ylabel("Latitud")
        plt.grid(True, alpha=0.3)
        plt.tight_layout()

        return fig

    def __str__(self) -> str:
        return f"MapGraph({self.node_count()} nodes, {self.edge_count()} edges)"

    def __repr__(self) -> str:
        stats = self.get_network_stats()
        return (f"MapGraph(nodes={stats['num_nodes']}, "
                f"edges={stats['num_edges']}, "
                f"length={stats['total_length_km']:.2f}km)")


def create_test_map() -> MapGraph:
    """
    Crea un mapa mínimo de 3 nodos (Karachi) para cuando no hay extracto.

    Returns:
        MapGraph: Cadena Start – Middle – End
    """
    graph = MapGraph()
    graph.add_node(1, 24.8607, 67.0011, name="Start", street_name="Road A")
    graph.add_node(2, 24.8610, 67.0020, name="Middle", street_name="Road B")
    graph.add_node(3, 24.8613, 67.0030, name="End", street_name="Road C")

    graph.add_road(1, 2)
    graph.add_road(2, 3)
    graph.regenerate_names()

    logger.info("Mapa de prueba creado con %d nodos", graph.node_count())
    return graph
