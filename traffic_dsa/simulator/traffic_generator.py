"""
Generador de tráfico vehicular con pares origen-destino aleatorios.

Este módulo implementa la generación periódica de vehículos: cada
``spawn_interval_s`` segundos simulados se elige un origen y un destino
al azar entre los nodos del mapa y se pide un vehículo al simulador.
"""

import logging
from typing import Dict, Optional, Tuple

import numpy as np

from ..utils.config import SimulatorConfig

logger = logging.getLogger(__name__)


class TrafficGenerator:
    """
    Genera vehículos a intervalos fijos de tiempo simulado.

    Los pares con origen igual al destino se descartan sin reintentar.
    """

    def __init__(self, graph, spawn_interval_s: float = SimulatorConfig.SPAWN_INTERVAL_S,
                 seed: Optional[int] = None):
        """
        Inicializa el generador de tráfico.

        Args:
            graph: MapGraph del cual tomar los nodos
            spawn_interval_s: Segundos simulados entre intentos de generación
            seed: Semilla para reproducibilidad (None = aleatorio)
        """
        if spawn_interval_s <= 0:
            raise ValueError(f"Intervalo de generación inválido: {spawn_interval_s}s")

        self.graph = graph
        self.spawn_interval_s = spawn_interval_s

        # Control de generación
        self.elapsed = 0.0
        self.total_vehicles_requested = 0
        self.total_vehicles_generated = 0

        self.random_seed = seed
        self.rng = np.random.default_rng(seed)

    def set_random_seed(self, seed: int):
        """
        Establece semilla para reproducibilidad.

        Args:
            seed: Semilla para generador aleatorio
        """
        self.random_seed = seed
        self.rng = np.random.default_rng(seed)

    def generate_origin_destination(self) -> Optional[Tuple[int, int]]:
        """
        Elige un par origen-destino uniforme entre todos los nodos.

        Returns:
            tuple: (origen_id, destino_id), o None si coinciden o el mapa
                   tiene menos de 2 nodos
        """
        node_ids = self.graph.node_ids()
        if len(node_ids) < 2:
            return None

        origin = node_ids[self.rng.integers(len(node_ids))]
        destination = node_ids[self.rng.integers(len(node_ids))]
        if origin == destination:
            return None

        return origin, destination

    def update(self, dt: float, scheduler) -> int:
        """
        Acumula tiempo y genera un vehículo por cada intervalo cumplido.

        Args:
            dt: Paso de tiempo (segundos)
            scheduler: SimulationScheduler al cual agregar los vehículos

        Returns:
            int: Número de vehículos efectivamente agregados
        """
        self.elapsed += dt
        added = 0

        while self.elapsed >= self.spawn_interval_s:
            self.elapsed -= self.spawn_interval_s

            pair = self.generate_origin_destination()
            if pair is None:
                continue

            self.total_vehicles_requested += 1
            if scheduler.add_vehicle(*pair) is not None:
                self.total_vehicles_generated += 1
                added += 1
                logger.debug("Vehículo generado de %s a %s", *pair)

        return added

    def get_spawn_statistics(self) -> Dict:
        """
        Retorna estadísticas de generación de vehículos.

        Returns:
            dict: Estadísticas de generación
        """
        requested = self.total_vehicles_requested
        return {
            'total_requested': requested,
            'total_generated': self.total_vehicles_generated,
            'rejected': requested - self.total_vehicles_generated,
            'spawn_interval_s': self.spawn_interval_s
        }

    def reset(self):
        """Reinicia el generador."""
        self.elapsed = 0.0
        self.total_vehicles_requested = 0
        self.total_vehicles_generated = 0
