"""
Motor principal de simulación de tráfico.

Este módulo implementa el planificador de paso fijo que coordina los
semáforos, las colas de intersección y la flota de vehículos, y publica
instantáneas del estado en cada paso.
"""

import logging
from typing import Callable, Dict, List, Optional

from ..utils.config import SimulatorConfig
from .traffic_light import IntersectionControl, TrafficLight
from .vehicle import Vehicle, VehicleFleet

logger = logging.getLogger(__name__)

VehiclesCallback = Callable[[List[Vehicle]], None]
LightsCallback = Callable[[List[TrafficLight]], None]


class SimulationScheduler:
    """
    Planificador de la simulación de tráfico.

    Cada paso: actualiza semáforos, vacía colas, mueve vehículos y notifica
    a los observadores con copias del estado. El bucle anfitrión llama a
    ``tick()`` periódicamente; todas las operaciones deben ejecutarse en
    un único contexto (nunca en paralelo con un paso).
    """

    def __init__(self, graph, tick_interval_ms: int = SimulatorConfig.TICK_INTERVAL_MS,
                 speed_multiplier: float = SimulatorConfig.SPEED_MULTIPLIER,
                 seed: Optional[int] = None):
        """
        Inicializa el simulador.

        Args:
            graph: MapGraph sobre el cual simular
            tick_interval_ms: Intervalo del paso en milisegundos de tiempo simulado
            speed_multiplier: Multiplicador de velocidad de la simulación
            seed: Semilla para la flota (None = aleatorio)
        """
        if tick_interval_ms <= 0:
            raise ValueError(f"Intervalo de paso inválido: {tick_interval_ms}ms")

        self.graph = graph
        self.tick_interval_ms = tick_interval_ms
        self.speed_multiplier = 1.0
        self.set_speed_multiplier(speed_multiplier)

        self.control = IntersectionControl()
        self.fleet = VehicleFleet(graph, seed=seed)

        # Estado de simulación
        self.current_time = 0.0
        self.step_count = 0
        self.is_running = False

        # Observadores
        self._vehicle_listeners: List[VehiclesCallback] = []
        self._light_listeners: List[LightsCallback] = []

    @property
    def delta_time(self) -> float:
        """Paso de tiempo simulado en segundos."""
        return self.tick_interval_ms / 1000.0 * self.speed_multiplier

    def set_speed_multiplier(self, multiplier: float):
        """
        Cambia el multiplicador de velocidad.

        Raises:
            ValueError: Si el multiplicador no es positivo
        """
        if multiplier <= 0:
            raise ValueError(f"Multiplicador de velocidad inválido: {multiplier}")
        self.speed_multiplier = multiplier

    def on_vehicles_updated(self, callback: VehiclesCallback):
        """Registra un observador de la lista de vehículos."""
        self._vehicle_listeners.append(callback)

    def on_lights_updated(self, callback: LightsCallback):
        """Registra un observador de la lista de semáforos."""
        self._light_listeners.append(callback)

    def start(self):
        if not self.is_running:
            self.is_running = True
            logger.info("Simulación iniciada (dt=%.3fs)", self.delta_time)

    def stop(self):
        if self.is_running:
            self.is_running = False
            logger.info("Simulación detenida en t=%.2fs", self.current_time)

    def reset(self):
        """Elimina vehículos, semáforos y colas; el próximo ID vuelve a 1."""
        self.fleet.clear()
        self.control.clear()
        self.current_time = 0.0
        self.step_count = 0
        logger.info("Simulación reiniciada")

    def add_vehicle(self, source: int, destination: int) -> Optional[Vehicle]:
        """
        Agrega un vehículo entre dos nodos.

        Los extremos inválidos o sin ruta se ignoran en silencio.

        Returns:
            El vehículo creado, o None
        """
        return self.fleet.add_vehicle(source, destination)

    def tick(self) -> bool:
        """
        Llamada periódica del bucle anfitrión.

        Returns:
            bool: True si se ejecutó un paso (la simulación está en marcha)
        """
        if not self.is_running:
            return False
        self.step()
        return True

    def step(self):
        """
        Ejecuta un paso de simulación.

        Este es el método central que coordina todas las actualizaciones.
        """
        dt = self.delta_time

        # 1. Actualizar semáforos (se crean en el primer paso)
        self.control.ensure_lights(self.graph)
        self.control.update_lights(dt)

        # 2. Liberar vehículos de las colas
        self.fleet.release(self.control.drain_queues(dt))

        # 3. Mover vehículos
        self.fleet.update(dt, self.control)

        # 4. Avanzar tiempo
        self.current_time += dt
        self.step_count += 1

        # 5. Publicar estado
        self._notify()

    def _notify(self):
        if self._vehicle_listeners:
            vehicles = self.fleet.snapshot()
            for callback in self._vehicle_listeners:
                callback(vehicles)

        if self._light_listeners:
            lights = self.control.snapshot()
            for callback in self._light_listeners:
                callback(lights)

    def run(self, duration: float) -> Dict:
        """
        Ejecuta la simulación sin bucle anfitrión por un tiempo determinado.

        Args:
            duration: Duración en segundos de tiempo simulado

        Returns:
            dict: Estado final de la simulación
        """
        num_steps = int(round(duration / self.delta_time))
        logger.info("Ejecutando %d pasos (%.1fs simulados)", num_steps, duration)

        for _ in range(num_steps):
            self.step()

        return self.get_current_state()

    def get_vehicles(self) -> List[Vehicle]:
        return self.fleet.snapshot()

    def get_traffic_lights(self) -> List[TrafficLight]:
        return self.control.snapshot()

    def get_current_state(self) -> Dict:
        """
        Retorna el estado actual completo de la simulación.

        Returns:
            dict: Estado actual
        """
        return {
            'time': self.current_time,
            'steps': self.step_count,
            'running': self.is_running,
            'vehicles': len(self.fleet),
            'vehicles_arrived': self.fleet.count_arrived(),
            'vehicles_waiting': self.fleet.count_waiting(),
            'traffic_lights': {
                node_id: {
                    'state': light.state.value,
                    'timer': light.timer
                }
                for node_id, light in self.control.lights.items()
            },
            'queues': self.control.queue_lengths()
        }

    def __repr__(self) -> str:
        return (f"SimulationScheduler(t={self.current_time:.2f}s, "
                f"vehicles={len(self.fleet)}, lights={len(self.control.lights)}, "
                f"running={self.is_running})")
