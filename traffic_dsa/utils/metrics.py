"""
Registro de instantáneas y métricas de la simulación.

Este módulo proporciona un observador que guarda, paso a paso, las
instantáneas publicadas por el simulador y calcula métricas resumen.
"""

from typing import Dict, List

import numpy as np
import pandas as pd


class SnapshotRecorder:
    """
    Observador que registra las instantáneas de vehículos y semáforos.

    Se suscribe a ambas notificaciones del simulador. Cada paso produce
    una fila con conteos de vehículos y semáforos.
    """

    COLUMNS = [
        'time', 'vehicles', 'moving', 'waiting', 'arrived',
        'green_lights', 'red_lights'
    ]

    def __init__(self):
        self.scheduler = None
        self.rows: List[Dict] = []
        self._pending: Dict = {}

    def attach(self, scheduler):
        """
        Registra el observador en un simulador.

        Args:
            scheduler: SimulationScheduler a observar
        """
        self.scheduler = scheduler
        scheduler.on_vehicles_updated(self.record_vehicles)
        scheduler.on_lights_updated(self.record_lights)

    def record_vehicles(self, vehicles: List):
        arrived = sum(1 for v in vehicles if v.has_arrived())
        waiting = sum(1 for v in vehicles if v.waiting_at_light and not v.has_arrived())

        self._pending = {
            'time': self.scheduler.current_time if self.scheduler else float(len(self.rows)),
            'vehicles': len(vehicles),
            'moving': len(vehicles) - arrived - waiting,
            'waiting': waiting,
            'arrived': arrived,
        }

    def record_lights(self, lights: List):
        # Los semáforos se publican después de los vehículos: cierra la fila
        green = sum(1 for light in lights if light.is_green)
        row = dict(self._pending)
        row.setdefault('time', self.scheduler.current_time if self.scheduler else float(len(self.rows)))
        row['green_lights'] = green
        row['red_lights'] = len(lights) - green

        self.rows.append(row)
        self._pending = {}

    def to_dataframe(self) -> pd.DataFrame:
        """
        Retorna el historial como DataFrame.

        Returns:
            pd.DataFrame: Una fila por paso, columnas en COLUMNS
        """
        df = pd.DataFrame(self.rows, columns=self.COLUMNS)
        return df.fillna(0)

    def summary(self) -> Dict:
        """
        Calcula métricas resumen del historial.

        Returns:
            dict: Promedios y máximos de vehículos en espera y en movimiento
        """
        if not self.rows:
            return {
                'steps': 0,
                'simulation_time': 0.0,
                'avg_waiting': 0.0,
                'max_waiting': 0,
                'avg_moving': 0.0,
                'vehicles': 0,
                'arrived': 0,
                'arrival_rate': 0.0
            }

        df = self.to_dataframe()
        waiting = df['waiting'].to_numpy()
        moving = df['moving'].to_numpy()
        last = df.iloc[-1]

        vehicles = int(last['vehicles'])
        arrived = int(last['arrived'])

        return {
            'steps': len(df),
            'simulation_time': float(last['time']),
            'avg_waiting': float(np.mean(waiting)),
            'max_waiting': int(np.max(waiting)),
            'avg_moving': float(np.mean(moving)),
            'vehicles': vehicles,
            'arrived': arrived,
            'arrival_rate': arrived / vehicles if vehicles else 0.0
        }

    def clear(self):
        self.rows.clear()
        self._pending = {}
