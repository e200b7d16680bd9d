"""
Resolución de nombres legibles para los nodos del mapa.

Este módulo implementa las reglas de prioridad de etiquetas OSM para
nombrar nodos y vías, y la generación de nombres visibles únicos,
desambiguados por coordenadas y ordinales.
"""

from typing import TYPE_CHECKING, Dict, Iterable, List, Mapping, Optional

from ..utils.config import MapConfig

if TYPE_CHECKING:
    from .osm_graph import Node


def _first_non_empty(tags: Mapping[str, str], keys: Iterable[str]) -> str:
    """Retorna el valor de la primera clave presente con valor no vacío."""
    for key in keys:
        value = tags.get(key, "")
        if value:
            return value
    return ""


def resolve_node_name(tags: Mapping[str, str]) -> str:
    """
    Resuelve el nombre de un nodo a partir de sus etiquetas.

    Prioridad (la primera no vacía gana): name, name:en, addr:suburb,
    addr:district, place (+ " Area"), amenity, shop (+ " Shop").

    Args:
        tags: Diccionario {k: v} de las etiquetas del nodo

    Returns:
        str: Nombre resuelto, o cadena vacía si ninguna etiqueta aplica
    """
    name = _first_non_empty(tags, MapConfig.NODE_NAME_TAGS)
    if name:
        return name

    place = tags.get("place", "")
    if place:
        return f"{place} Area"

    amenity = tags.get("amenity", "")
    if amenity:
        return amenity.replace("_", " ")

    shop = tags.get("shop", "")
    if shop:
        return f"{shop.replace('_', ' ')} Shop"

    return ""


def resolve_street_name(tags: Mapping[str, str]) -> str:
    """Nombre de calle del nodo (sólo addr:street)."""
    return tags.get(MapConfig.STREET_TAG, "")


def resolve_way_name(tags: Mapping[str, str]) -> str:
    """Nombre de una vía: name, name:en o addr:street."""
    return _first_non_empty(tags, MapConfig.WAY_NAME_TAGS)


def format_coordinates(lat: float, lon: float) -> str:
    """Formatea coordenadas como "(lat, lon)" con 4 decimales."""
    precision = MapConfig.COORD_PRECISION
    return f"({lat:.{precision}f}, {lon:.{precision}f})"


def base_name(node: "Node") -> str:
    """Nombre base de agrupación: nombre, calle o "Unnamed Location"."""
    return node.name or node.street_name or MapConfig.UNNAMED_LOCATION


def generate_display_names(nodes: Mapping[int, "Node"]) -> Dict[int, str]:
    """
    Genera un nombre visible único para cada nodo.

    Los nodos se agrupan por nombre base. Los grupos se recorren en orden
    lexicográfico ascendente y los miembros de cada grupo por ID ascendente,
    de modo que el resultado es reproducible:

    - Grupo de un solo nodo: "<base> (<lat>, <lon>)"
    - Varios nodos sin nombre: "Intersection #<k> (<lat>, <lon>)" con un
      contador global
    - Varios nodos con el mismo nombre: "<base> - Junction <i> (<lat>, <lon>)"

    Args:
        nodes: Diccionario {node_id: Node}

    Returns:
        dict: {node_id: nombre visible}
    """
    groups: Dict[str, List[int]] = {}
    for node_id in sorted(nodes):
        groups.setdefault(base_name(nodes[node_id]), []).append(node_id)

    display_names: Dict[int, str] = {}
    intersection_counter = 1

    for base in sorted(groups):
        members = groups[base]

        if len(members) == 1:
            node = nodes[members[0]]
            display_names[node.id] = f"{base} {format_coordinates(node.lat, node.lon)}"
            continue

        for position, node_id in enumerate(members, start=1):
            node = nodes[node_id]
            coords = format_coordinates(node.lat, node.lon)
            if base == MapConfig.UNNAMED_LOCATION:
                display_names[node_id] = f"Intersection #{intersection_counter} {coords}"
                intersection_counter += 1
            else:
                display_names[node_id] = f"{base} - Junction {position} {coords}"

    return display_names


def fallback_display_name(node_id: int, node: Optional["Node"] = None) -> str:
    """Nombre sintético para un nodo sin entrada en el índice de nombres."""
    if node is None:
        return f"Node {node_id}"
    precision = MapConfig.COORD_PRECISION
    return f"Node {node_id} ({node.lat:.{precision}f},{node.lon:.{precision}f})"
