"""
Simulador de tráfico sobre mapas OpenStreetMap.

Este paquete contiene:
- graph: carga del mapa, nombres visibles y ruta más corta
- simulator: semáforos, vehículos y planificador de paso fijo
- utils: configuración, logging y métricas
"""

from .graph import MapGraph, PathResult, PathError, create_test_map
from .simulator import SimulationScheduler, TrafficGenerator

__version__ = "0.1.0"

__all__ = [
    'MapGraph',
    'PathResult',
    'PathError',
    'create_test_map',
    'SimulationScheduler',
    'TrafficGenerator'
]
