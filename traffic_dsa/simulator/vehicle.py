"""
Modelo de vehículo y flota con seguimiento de ruta.

Este módulo implementa el comportamiento de los vehículos: avance sobre
las aristas de una ruta fija, detención en semáforos en rojo y separación
mínima con el vehículo de adelante.
"""

import colorsys
import copy
import logging
from typing import Iterable, List, Optional, Sequence, Tuple

import numpy as np
from matplotlib.colors import to_hex

from ..utils.config import SimulatorConfig, VisualizationConfig

logger = logging.getLogger(__name__)


class Vehicle:
    """
    Representa un vehículo individual en la simulación.

    La ruta se fija al crearlo y no cambia. Al terminar su última arista
    el vehículo queda inerte, pero permanece en la flota.
    """

    def __init__(self, vehicle_id: int, path: Sequence[int], speed: float,
                 color: str = "#FF0000",
                 position: Tuple[float, float] = (0.0, 0.0)):
        """
        Inicializa un vehículo.

        Args:
            vehicle_id: Identificador único dentro de la simulación
            path: Secuencia de IDs de nodos (al menos dos)
            speed: Velocidad constante
            color: Color de visualización (hex)
            position: Posición inicial (longitud, latitud)
        """
        self.id = vehicle_id
        self.path = tuple(path)
        self.current_index = 0  # Índice de la arista actual en la ruta
        self.progress = 0.0  # Fracción recorrida de la arista actual (0.0 a 1.0)
        self.speed = speed
        self.waiting_at_light = False
        self.color = color
        self.position = position

    @property
    def origin(self) -> int:
        return self.path[0]

    @property
    def destination(self) -> int:
        return self.path[-1]

    def has_arrived(self) -> bool:
        """Verifica si el vehículo ya no tiene aristas por recorrer."""
        return self.current_index >= len(self.path) - 1

    def current_edge(self) -> Tuple[int, int]:
        """Retorna (desde, hasta) de la arista actual."""
        return self.path[self.current_index], self.path[self.current_index + 1]

    def get_status_string(self) -> str:
        """
        Retorna una representación visual del estado actual.

        Returns:
            str: String con estado formateado
        """
        if self.has_arrived():
            return f"✓ Vehículo #{self.id} - ARRIBÓ AL DESTINO"

        from_id, to_id = self.current_edge()
        symbol = "🛑" if self.waiting_at_light else "🚗"
        return (f"{symbol} Vehículo #{self.id} | "
                f"Arista: {from_id}→{to_id} | "
                f"Progreso: {self.progress:.2%} | "
                f"Posición: ({self.position[0]:.5f}, {self.position[1]:.5f})")

    def __str__(self) -> str:
        return f"Vehicle(#{self.id}, {self.origin}→{self.destination})"

    def __repr__(self) -> str:
        return (f"Vehicle(id={self.id}, route={self.origin}→{self.destination}, "
                f"edge={self.current_index}, progress={self.progress:.3f}, "
                f"waiting={self.waiting_at_light})")


def interpolate_position(a: Tuple[float, float], b: Tuple[float, float],
                         t: float) -> Tuple[float, float]:
    """Interpolación lineal entre dos puntos."""
    return (a[0] + (b[0] - a[0]) * t,
            a[1] + (b[1] - a[1]) * t)


class VehicleFleet:
    """
    Conjunto de vehículos de la simulación.

    Los vehículos se guardan en una lista plana en orden de creación y
    nunca se eliminan (salvo con ``clear``).
    """

    def __init__(self, graph, seed: Optional[int] = None,
                 min_speed: float = SimulatorConfig.MIN_SPEED,
                 speed_range: float = SimulatorConfig.SPEED_RANGE,
                 min_gap: float = SimulatorConfig.MIN_PROGRESS_GAP):
        """
        Inicializa la flota.

        Args:
            graph: MapGraph sobre el cual circulan los vehículos
            seed: Semilla para velocidad y color (None = aleatorio)
            min_speed: Velocidad mínima
            speed_range: Amplitud del rango de velocidades
            min_gap: Separación mínima de progreso con el vehículo de adelante
        """
        self.graph = graph
        self.min_speed = min_speed
        self.speed_range = speed_range
        self.min_gap = min_gap

        self.vehicles: List[Vehicle] = []
        self.next_id = 1
        self.rng = np.random.default_rng(seed)

    def set_random_seed(self, seed: int):
        """Establece semilla para reproducibilidad."""
        self.rng = np.random.default_rng(seed)

    def _random_color(self) -> str:
        hue = self.rng.integers(0, 360) / 360.0
        rgb = colorsys.hls_to_rgb(hue, VisualizationConfig.VEHICLE_LIGHTNESS,
                                  VisualizationConfig.VEHICLE_SATURATION)
        return to_hex(rgb)

    def add_vehicle(self, source: int, destination: int) -> Optional[Vehicle]:
        """
        Crea un vehículo con la ruta más corta entre dos nodos.

        No hace nada si algún extremo no existe o si no hay ruta de al menos
        dos nodos.

        Args:
            source: ID del nodo de origen
            destination: ID del nodo de destino

        Returns:
            El vehículo creado, o None si fue rechazado
        """
        if not self.graph.has_node(source) or not self.graph.has_node(destination):
            logger.debug("Vehículo rechazado: nodo inexistente (%s → %s)", source, destination)
            return None

        result = self.graph.shortest_path(source, destination)
        if not result.found or len(result.path) < 2:
            logger.debug("Vehículo rechazado: sin ruta (%s → %s)", source, destination)
            return None

        speed = self.min_speed + self.rng.uniform(0.0, self.speed_range)
        start = self.graph.get_node(result.path[0])

        vehicle = Vehicle(
            vehicle_id=self.next_id,
            path=result.path,
            speed=float(speed),
            color=self._random_color(),
            position=start.pos
        )
        self.next_id += 1
        self.vehicles.append(vehicle)

        logger.info("Vehículo %d agregado: %s → %s (%d nodos, %.3f km)",
                    vehicle.id, source, destination, len(result.path),
                    result.total_distance_km)
        return vehicle

    def get_vehicle(self, vehicle_id: int) -> Optional[Vehicle]:
        for vehicle in self.vehicles:
            if vehicle.id == vehicle_id:
                return vehicle
        return None

    def release(self, vehicle_ids: Iterable[int]):
        """Quita la marca de espera a los vehículos liberados de una cola."""
        for vehicle_id in vehicle_ids:
            vehicle = self.get_vehicle(vehicle_id)
            if vehicle is not None:
                vehicle.waiting_at_light = False

    def _too_close(self, index: int) -> bool:
        """
        Verifica si hay un vehículo adelante demasiado cerca.

        Compara con todos los demás vehículos en el mismo índice de arista
        y con mayor progreso.
        """
        vehicle = self.vehicles[index]
        for j, other in enumerate(self.vehicles):
            if j == index:
                continue
            if (other.current_index == vehicle.current_index and
                    other.progress > vehicle.progress and
                    other.progress - vehicle.progress < self.min_gap):
                return True
        return False

    def update(self, dt: float, control):
        """
        Avanza todos los vehículos un paso de tiempo.

        Un vehículo no avanza si debe detenerse ante un semáforo en rojo,
        si está demasiado cerca del de adelante, o si está esperando en cola.

        Args:
            dt: Paso de tiempo (segundos)
            control: IntersectionControl con semáforos y colas
        """
        for i, vehicle in enumerate(self.vehicles):
            if vehicle.has_arrived():
                continue

            from_id, to_id = vehicle.current_edge()
            # Mapa recargado o vaciado: el vehículo queda inerte
            if not self.graph.has_node(from_id) or not self.graph.has_node(to_id):
                continue
            edge_length = self.graph.distance_between(from_id, to_id)

            # Semáforo y cola
            stop_for_light = False
            remaining = edge_length * (1.0 - vehicle.progress)
            if control.must_stop(to_id, remaining):
                stop_for_light = True
                vehicle.waiting_at_light = True
                control.enqueue(to_id, vehicle.id)

            too_close = self._too_close(i)

            if stop_for_light or too_close or vehicle.waiting_at_light:
                continue

            # Avanzar (metros recorridos sobre largo de la arista en metros)
            if edge_length > 0:
                vehicle.progress += (vehicle.speed * dt) / (edge_length * 1000.0)
            else:
                vehicle.progress = float("inf")

            if vehicle.progress > 1.0:
                vehicle.progress = 0.0
                vehicle.current_index += 1
                if vehicle.has_arrived():
                    continue

            a, b = vehicle.current_edge()
            if not self.graph.has_node(b):
                continue
            vehicle.position = interpolate_position(
                self.graph.get_node(a).pos, self.graph.get_node(b).pos, vehicle.progress
            )

    def count_arrived(self) -> int:
        return sum(1 for v in self.vehicles if v.has_arrived())

    def count_waiting(self) -> int:
        return sum(1 for v in self.vehicles if v.waiting_at_light and not v.has_arrived())

    def snapshot(self) -> List[Vehicle]:
        """Copia del estado de todos los vehículos."""
        return [copy.copy(vehicle) for vehicle in self.vehicles]

    def clear(self):
        """Elimina todos los vehículos y reinicia el contador de IDs."""
        self.vehicles.clear()
        self.next_id = 1

    def __len__(self) -> int:
        return len(self.vehicles)

    def __iter__(self):
        return iter(self.vehicles)

    def __repr__(self) -> str:
        return f"VehicleFleet(vehicles={len(self.vehicles)}, arrived={self.count_arrived()})"
