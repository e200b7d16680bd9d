"""
Simulador de tráfico vehicular sobre el mapa.

Este módulo contiene el motor de simulación que modela:
- Semáforos de dos estados con colas de liberación
- Movimiento de vehículos sobre rutas fijas
- Planificador de paso fijo con instantáneas por paso
- Generación periódica de tráfico
"""

from .traffic_light import TrafficLight, LightState, IntersectionQueue, IntersectionControl
from .vehicle import Vehicle, VehicleFleet
from .traffic_simulator import SimulationScheduler
from .traffic_generator import TrafficGenerator

__all__ = [
    'TrafficLight',
    'LightState',
    'IntersectionQueue',
    'IntersectionControl',
    'Vehicle',
    'VehicleFleet',
    'SimulationScheduler',
    'TrafficGenerator'
]
