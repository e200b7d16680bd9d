"""
Modelo de semáforos de dos estados y colas de intersección.

Este módulo implementa el comportamiento de cada semáforo (verde/rojo,
alternando por tiempo) y la cola FIFO de vehículos detenidos en él, que
se vacía de a un vehículo por segundo de verde.
"""

import copy
import logging
from collections import deque
from enum import Enum
from typing import Dict, List, Optional

from ..utils.config import SimulatorConfig, TrafficLightConfig

logger = logging.getLogger(__name__)


class LightState(Enum):
    """Estados posibles de un semáforo."""
    GREEN = "green"
    RED = "red"


class TrafficLight:
    """
    Semáforo de una intersección.

    Alterna entre verde y rojo cada ``cycle_duration`` segundos de tiempo
    simulado. No hay eventos externos: la transición depende sólo del tiempo.
    """

    def __init__(self, node_id: int, is_green: bool = True,
                 cycle_duration: float = TrafficLightConfig.CYCLE_DURATION):
        """
        Inicializa un semáforo.

        Args:
            node_id: ID del nodo (intersección) que controla
            is_green: Estado inicial
            cycle_duration: Segundos entre cambios de estado
        """
        if cycle_duration <= 0:
            raise ValueError(f"Duración de ciclo inválida: {cycle_duration}s")

        self.node_id = node_id
        self.is_green = is_green
        self.timer = 0.0
        self.cycle_duration = cycle_duration

    @property
    def state(self) -> LightState:
        return LightState.GREEN if self.is_green else LightState.RED

    def update(self, dt: float) -> bool:
        """
        Avanza el temporizador del semáforo.

        Args:
            dt: Paso de tiempo (segundos)

        Returns:
            bool: True si el semáforo cambió de estado en este paso
        """
        self.timer += dt
        if self.timer >= self.cycle_duration:
            self.is_green = not self.is_green
            self.timer = 0.0
            return True
        return False

    def __repr__(self) -> str:
        return (f"TrafficLight(node={self.node_id}, state={self.state.value}, "
                f"timer={self.timer:.2f}s/{self.cycle_duration}s)")


class IntersectionQueue:
    """
    Cola FIFO de vehículos detenidos en un semáforo.

    Mientras el semáforo está en verde, libera un vehículo cada vez que
    acumula ``release_interval`` segundos.
    """

    def __init__(self, node_id: int,
                 release_interval: float = TrafficLightConfig.RELEASE_INTERVAL):
        self.node_id = node_id
        self.release_interval = release_interval
        self.vehicle_ids = deque()
        self.release_timer = 0.0

    def enqueue(self, vehicle_id: int) -> bool:
        """Encola un vehículo si no está ya en la cola. Retorna True si se agregó."""
        if vehicle_id in self.vehicle_ids:
            return False
        self.vehicle_ids.append(vehicle_id)
        return True

    def release(self, dt: float) -> Optional[int]:
        """
        Acumula tiempo de verde y libera el primer vehículo si corresponde.

        Args:
            dt: Paso de tiempo (segundos)

        Returns:
            ID del vehículo liberado, o None
        """
        if not self.vehicle_ids:
            return None

        self.release_timer += dt
        if self.release_timer >= self.release_interval:
            self.release_timer = 0.0
            return self.vehicle_ids.popleft()
        return None

    def __contains__(self, vehicle_id: int) -> bool:
        return vehicle_id in self.vehicle_ids

    def __len__(self) -> int:
        return len(self.vehicle_ids)

    def __repr__(self) -> str:
        return f"IntersectionQueue(node={self.node_id}, vehicles={list(self.vehicle_ids)})"


class IntersectionControl:
    """
    Registro de semáforos y colas, indexado por ID de nodo.

    Los semáforos se crean de forma perezosa la primera vez que se actualiza
    el sistema: uno cada ``sampling_step`` nodos en orden ascendente de ID,
    alternando el color inicial.
    """

    def __init__(self, sampling_step: int = TrafficLightConfig.SAMPLING_STEP,
                 cycle_duration: float = TrafficLightConfig.CYCLE_DURATION,
                 release_interval: float = TrafficLightConfig.RELEASE_INTERVAL,
                 stop_line_threshold_km: float = SimulatorConfig.STOP_LINE_THRESHOLD_KM):
        self.sampling_step = sampling_step
        self.cycle_duration = cycle_duration
        self.release_interval = release_interval
        self.stop_line_threshold_km = stop_line_threshold_km

        self.lights: Dict[int, TrafficLight] = {}
        self.queues: Dict[int, IntersectionQueue] = {}

    def ensure_lights(self, graph) -> int:
        """
        Crea los semáforos si aún no existen.

        Args:
            graph: MapGraph del cual tomar los nodos

        Returns:
            int: Número de semáforos creados
        """
        if self.lights or graph.node_count() == 0:
            return 0

        for count, node_id in enumerate(graph.node_ids()):
            if count % self.sampling_step == 0:
                is_green = count % (2 * self.sampling_step) == 0
                self.add_light(node_id, is_green)

        logger.info("Semáforos creados: %d", len(self.lights))
        return len(self.lights)

    def add_light(self, node_id: int, is_green: bool = True) -> TrafficLight:
        """Agrega un semáforo (y su cola) en un nodo."""
        light = TrafficLight(node_id, is_green, self.cycle_duration)
        self.lights[node_id] = light
        self.queues[node_id] = IntersectionQueue(node_id, self.release_interval)
        return light

    def get_light(self, node_id: int) -> Optional[TrafficLight]:
        return self.lights.get(node_id)

    def update_lights(self, dt: float):
        """Avanza el temporizador de todos los semáforos."""
        for node_id, light in self.lights.items():
            if light.update(dt) and light.is_green:
                logger.debug("Semáforo VERDE en nodo %s - se liberan vehículos", node_id)

    def drain_queues(self, dt: float) -> List[int]:
        """
        Libera vehículos de las colas de semáforos en verde.

        Como máximo un vehículo por semáforo y por paso.

        Args:
            dt: Paso de tiempo (segundos)

        Returns:
            Lista de IDs de vehículos liberados
        """
        released = []
        for node_id, light in self.lights.items():
            if not light.is_green:
                continue

            queue = self.queues.get(node_id)
            if queue is None:
                continue

            vehicle_id = queue.release(dt)
            if vehicle_id is not None:
                released.append(vehicle_id)
                logger.debug("Vehículo %s liberado en semáforo %s, quedan %d en cola",
                             vehicle_id, node_id, len(queue))
        return released

    def must_stop(self, node_id: int, remaining_km: float) -> bool:
        """
        Indica si un vehículo que se acerca a ``node_id`` debe detenerse.

        Args:
            node_id: Próximo nodo en la ruta del vehículo
            remaining_km: Distancia restante sobre la arista actual

        Returns:
            bool: True si hay semáforo en rojo y el vehículo llegó a la línea
        """
        light = self.lights.get(node_id)
        if light is None or light.is_green:
            return False
        return remaining_km < self.stop_line_threshold_km

    def enqueue(self, node_id: int, vehicle_id: int) -> bool:
        """Encola un vehículo en el semáforo de ``node_id`` (idempotente)."""
        queue = self.queues.get(node_id)
        if queue is None:
            return False

        added = queue.enqueue(vehicle_id)
        if added:
            logger.debug("Vehículo %s en cola en semáforo rojo %s, tamaño de cola: %d",
                         vehicle_id, node_id, len(queue))
        return added

    def queue_lengths(self) -> Dict[int, int]:
        return {node_id: len(queue) for node_id, queue in self.queues.items()}

    def snapshot(self) -> List[TrafficLight]:
        """Copia del estado de todos los semáforos, en orden ascendente de nodo."""
        return [copy.copy(self.lights[node_id]) for node_id in sorted(self.lights)]

    def clear(self):
        """Elimina todos los semáforos y colas."""
        self.lights.clear()
        self.queues.clear()

    def __repr__(self) -> str:
        return f"IntersectionControl(lights={len(self.lights)})"
