"""
Mapa vial a partir de extractos OpenStreetMap.

Este módulo contiene:
- Carga del mapa (nodos, calles de doble sentido)
- Generación de nombres visibles únicos
- Ruta más corta (Dijkstra determinista)
"""

from .osm_graph import MapGraph, Node, Edge, NamedLocation, haversine_distance, create_test_map
from .shortest_path import PathResult, PathError, dijkstra

__all__ = [
    'MapGraph',
    'Node',
    'Edge',
    'NamedLocation',
    'haversine_distance',
    'create_test_map',
    'PathResult',
    'PathError',
    'dijkstra'
]
