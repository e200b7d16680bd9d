"""
Configuración global del simulador de tráfico sobre mapas OSM.

Este módulo contiene todas las constantes y parámetros de configuración
utilizados en el proyecto, junto con la configuración de logging.
"""

import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional, Union

# Rutas del proyecto
PROJECT_ROOT = Path(__file__).parent.parent.parent
DATA_DIR = PROJECT_ROOT / "data"
RESULTS_DIR = PROJECT_ROOT / "experiments" / "results"

# Archivos de datos
SAMPLE_MAP_FILE = DATA_DIR / "sample_map.osm"


# Parámetros del mapa
class MapConfig:
    """Configuración de la carga del mapa y generación de nombres."""

    EARTH_RADIUS_KM = 6371.0

    # Nombres
    UNNAMED_LOCATION = "Unnamed Location"
    COORD_PRECISION = 4  # decimales en nombres visibles

    # Prioridad de etiquetas para el nombre del nodo (primera no vacía gana)
    NODE_NAME_TAGS = ["name", "name:en", "addr:suburb", "addr:district"]
    STREET_TAG = "addr:street"

    # Prioridad de etiquetas para el nombre de una vía
    WAY_NAME_TAGS = ["name", "name:en", "addr:street"]
    ROAD_TAG = "highway"


# Parámetros del simulador
class SimulatorConfig:
    """Configuración del simulador de tráfico."""

    # Tiempo
    TICK_INTERVAL_MS = 50  # 20 actualizaciones por segundo
    SPEED_MULTIPLIER = 1.0

    # Vehículos
    MIN_SPEED = 10.0
    SPEED_RANGE = 5.0  # velocidad uniforme en [MIN_SPEED, MIN_SPEED + SPEED_RANGE)
    STOP_LINE_THRESHOLD_KM = 0.001  # distancia restante para "llegar" al semáforo
    MIN_PROGRESS_GAP = 0.0002  # separación mínima entre vehículos en la misma arista

    # Generación de tráfico
    SPAWN_INTERVAL_S = 5.0


# Parámetros de semáforos
class TrafficLightConfig:
    """Configuración de semáforos."""

    CYCLE_DURATION = 10.0  # segundos entre cambios verde/rojo
    SAMPLING_STEP = 20  # un semáforo cada 20 nodos
    RELEASE_INTERVAL = 1.0  # segundos de verde entre liberaciones de la cola


# Visualización
class VisualizationConfig:
    """Configuración de visualización."""

    FIGURE_SIZE = (12, 8)
    DPI = 100
    SAVE_FORMAT = "png"

    # Color de los vehículos (HSL de Qt: saturación 255, luminosidad 150)
    VEHICLE_SATURATION = 1.0
    VEHICLE_LIGHTNESS = 150 / 255

    # Colores de semáforos
    LIGHT_COLORS = {
        "green": "#00FF00",
        "red": "#FF0000",
    }

    NODE_COLOR = "#4ECDC4"
    EDGE_COLOR = "gray"


# Logging
class LoggingConfig:
    """Configuración de logging."""

    LOG_LEVEL = "INFO"
    LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    LOG_FILE = PROJECT_ROOT / "simulation.log"
    LOG_FILE_MAX_BYTES = 1_000_000
    LOG_FILE_BACKUPS = 2


def setup_logging(level: Optional[Union[int, str]] = None,
                  log_file: Optional[Union[str, Path]] = None) -> None:
    """
    Configura el logger raíz con salida a consola y, opcionalmente, a archivo.

    Args:
        level: Nivel mínimo (ej: logging.DEBUG o "DEBUG"). Por defecto LoggingConfig.LOG_LEVEL
        log_file: Ruta del archivo rotativo. Si es None, sólo se usa la consola
    """
    root = logging.getLogger()
    root.setLevel(level if level is not None else LoggingConfig.LOG_LEVEL)

    fmt = logging.Formatter(LoggingConfig.LOG_FORMAT)

    console = logging.StreamHandler()
    console.setFormatter(fmt)

    root.handlers.clear()
    root.addHandler(console)

    if log_file is not None:
        file_handler = RotatingFileHandler(
            log_file,
            maxBytes=LoggingConfig.LOG_FILE_MAX_BYTES,
            backupCount=LoggingConfig.LOG_FILE_BACKUPS
        )
        file_handler.setFormatter(fmt)
        root.addHandler(file_handler)


# Crear directorios si no existen
def ensure_directories():
    """Crea los directorios necesarios si no existen."""
    for directory in [DATA_DIR, RESULTS_DIR]:
        directory.mkdir(parents=True, exist_ok=True)


if __name__ == "__main__":
    print(f"Directorio del proyecto: {PROJECT_ROOT}")
    print(f"Directorio de datos: {DATA_DIR}")
    print(f"Mapa de ejemplo: {SAMPLE_MAP_FILE}")
    ensure_directories()
    print("Directorios verificados/creados correctamente")
