"""
Cálculo de la ruta más corta entre dos nodos del mapa.

Implementa Dijkstra con selección lineal del nodo no visitado de menor
distancia tentativa. Los empates se resuelven por ID ascendente, lo que
determina cuál de varias rutas de igual costo se retorna.
"""

from enum import Enum
from typing import TYPE_CHECKING, Dict, List, Optional

import numpy as np

if TYPE_CHECKING:
    from .osm_graph import MapGraph


class PathError(Enum):
    """Motivos por los que no se encontró una ruta."""
    SOURCE_NOT_FOUND = "source_not_found"
    DESTINATION_NOT_FOUND = "destination_not_found"
    NO_PATH = "no_path_found"
    RECONSTRUCTION_FAILED = "path_reconstruction_failed"


class PathResult:
    """
    Resultado de una consulta de ruta más corta.

    Los fallos son valores ordinarios: ``found`` es False y ``error``
    indica el motivo, con un mensaje legible en ``error_message``.
    """

    def __init__(self, found: bool, path: Optional[List[int]] = None,
                 total_distance_km: float = 0.0,
                 error: Optional[PathError] = None, error_message: str = ""):
        self.found = found
        self.path = path if path is not None else []
        self.total_distance_km = total_distance_km
        self.error = error
        self.error_message = error_message

    @classmethod
    def failure(cls, error: PathError, message: str) -> "PathResult":
        return cls(found=False, error=error, error_message=message)

    def __bool__(self) -> bool:
        return self.found

    def __repr__(self) -> str:
        if self.found:
            return (f"PathResult(found=True, path={self.path}, "
                    f"total_distance_km={self.total_distance_km:.4f})")
        return f"PathResult(found=False, error={self.error.value}, message='{self.error_message}')"


def dijkstra(graph: "MapGraph", source: int, destination: int) -> PathResult:
    """
    Calcula la ruta más corta entre dos nodos.

    En cada iteración se visita el nodo no visitado con menor distancia
    tentativa; ante empates gana el de menor ID. La búsqueda se detiene al
    visitar el destino o cuando no quedan nodos alcanzables.

    Args:
        graph: Mapa sobre el cual buscar
        source: ID del nodo de origen
        destination: ID del nodo de destino

    Returns:
        PathResult: Ruta (incluyendo ambos extremos) y distancia total en km
    """
    if not graph.has_node(source):
        return PathResult.failure(
            PathError.SOURCE_NOT_FOUND, f"Nodo de origen no encontrado: {source}"
        )
    if not graph.has_node(destination):
        return PathResult.failure(
            PathError.DESTINATION_NOT_FOUND, f"Nodo de destino no encontrado: {destination}"
        )

    if source == destination:
        return PathResult(found=True, path=[source], total_distance_km=0.0)

    # Vector de distancias en orden ascendente de ID: argmin retorna el
    # primer índice mínimo, que es el ID más bajo entre los empatados
    node_ids = graph.node_ids()
    index_of = {node_id: i for i, node_id in enumerate(node_ids)}

    distances = np.full(len(node_ids), np.inf)
    visited = np.zeros(len(node_ids), dtype=bool)
    previous: Dict[int, int] = {}

    source_index = index_of[source]
    destination_index = index_of[destination]
    distances[source_index] = 0.0

    while True:
        candidates = np.where(visited, np.inf, distances)
        current = int(np.argmin(candidates))
        if np.isinf(candidates[current]):
            break

        visited[current] = True
        if current == destination_index:
            break

        for edge in graph.get_edges(node_ids[current]):
            neighbor = index_of[edge.to]
            if visited[neighbor]:
                continue
            alternative = distances[current] + edge.distance
            if alternative < distances[neighbor]:
                distances[neighbor] = alternative
                previous[neighbor] = current

    if np.isinf(distances[destination_index]):
        return PathResult.failure(
            PathError.NO_PATH, f"No se encontró ruta entre {source} y {destination}"
        )

    # Reconstruir la ruta siguiendo los predecesores
    path_indices = [destination_index]
    while path_indices[-1] != source_index:
        predecessor = previous.get(path_indices[-1])
        if predecessor is None:
            return PathResult.failure(
                PathError.RECONSTRUCTION_FAILED,
                f"Error al reconstruir la ruta entre {source} y {destination}"
            )
        path_indices.append(predecessor)

    path = [node_ids[i] for i in reversed(path_indices)]
    return PathResult(found=True, path=path,
                      total_distance_km=float(distances[destination_index]))
