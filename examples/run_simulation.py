"""
Script de ejemplo: Simulación completa de tráfico sobre un extracto OSM.

Este script carga un mapa (o el mapa de prueba si no hay archivo),
muestra una ruta entre dos lugares con nombre, genera vehículos y ejecuta
el simulador registrando una instantánea por paso.
"""

import argparse
import logging
import sys
from pathlib import Path

# Agregar raíz del proyecto al path
sys.path.insert(0, str(Path(__file__).parent.parent))

from traffic_dsa.graph import MapGraph, create_test_map
from traffic_dsa.simulator import SimulationScheduler, TrafficGenerator
from traffic_dsa.utils import SnapshotRecorder, setup_logging
from traffic_dsa.utils.config import (
    RESULTS_DIR, SAMPLE_MAP_FILE, LoggingConfig, VisualizationConfig, ensure_directories
)

logger = logging.getLogger(__name__)


def parse_args(argv=None):
    parser = argparse.ArgumentParser(
        description="Simulación de tráfico con semáforos sobre un mapa OSM"
    )
    parser.add_argument("--map", type=Path, default=SAMPLE_MAP_FILE,
                        help="Archivo .osm a cargar (por defecto el mapa de ejemplo)")
    parser.add_argument("--duration", type=float, default=120.0,
                        help="Segundos de tiempo simulado")
    parser.add_argument("--vehicles", type=int, default=5,
                        help="Vehículos iniciales con origen y destino aleatorios")
    parser.add_argument("--spawn", action="store_true",
                        help="Generar un vehículo nuevo cada 5 s simulados")
    parser.add_argument("--seed", type=int, default=None,
                        help="Semilla para reproducibilidad")
    parser.add_argument("--speed", type=float, default=1.0,
                        help="Multiplicador de velocidad de la simulación")
    parser.add_argument("--plot", type=Path, default=None,
                        help="Guardar una imagen del estado final")
    parser.add_argument("--log-level", default=None,
                        help="Nivel de logging (DEBUG, INFO, ...)")
    parser.add_argument("--log-file", action="store_true",
                        help="Guardar también el log en el archivo rotativo del proyecto")
    return parser.parse_args(argv)


def load_map(map_file: Path) -> MapGraph:
    """
    Carga el mapa; si falla usa el mapa de prueba de 3 nodos.

    Returns:
        MapGraph: Mapa listo para simular
    """
    graph = MapGraph()
    if map_file.exists() and graph.load(map_file):
        return graph

    logger.warning("No se pudo cargar %s, usando mapa de prueba", map_file)
    return create_test_map()


def show_route(graph: MapGraph):
    """Muestra la ruta entre el primer y el último lugar con nombre."""
    locations = graph.named_locations()
    if len(locations) < 2:
        return

    source, destination = locations[0], locations[-1]
    print(f"\nRuta: {source.display_name} → {destination.display_name}")
    print("-" * 70)
    result = graph.shortest_path(source.node_id, destination.node_id)
    print(graph.describe_route(result))


def main(argv=None):
    """Función principal del ejemplo."""
    args = parse_args(argv)
    setup_logging(level=args.log_level.upper() if args.log_level else None,
                  log_file=LoggingConfig.LOG_FILE if args.log_file else None)

    print("=" * 70)
    print("SIMULACIÓN DE TRÁFICO CON SEMÁFOROS")
    print("=" * 70)

    # 1. Cargar mapa
    graph = load_map(args.map)
    stats = graph.get_network_stats()
    print(f"\nMapa: {stats['num_nodes']} nodos, {stats['num_edges']} calles, "
          f"{stats['total_length_km']:.2f} km")

    # 2. Ruta de ejemplo
    show_route(graph)

    # 3. Crear simulador y vehículos iniciales
    scheduler = SimulationScheduler(graph, speed_multiplier=args.speed, seed=args.seed)
    generator = TrafficGenerator(graph, seed=args.seed)
    recorder = SnapshotRecorder()
    recorder.attach(scheduler)

    for _ in range(args.vehicles):
        pair = generator.generate_origin_destination()
        if pair is not None:
            scheduler.add_vehicle(*pair)

    # 4. Ejecutar
    print(f"\nSimulando {args.duration:.0f} s con {len(scheduler.fleet)} vehículos...")
    num_steps = int(round(args.duration / scheduler.delta_time))
    for _ in range(num_steps):
        if args.spawn:
            generator.update(scheduler.delta_time, scheduler)
        scheduler.step()

    # 5. Resultados
    summary = recorder.summary()
    print("\n" + "=" * 70)
    print("RESUMEN")
    print("=" * 70)
    print(f"  Pasos:                {summary['steps']}")
    print(f"  Tiempo simulado:      {summary['simulation_time']:.1f} s")
    print(f"  Vehículos:            {summary['vehicles']}")
    print(f"  Arribados:            {summary['arrived']} ({summary['arrival_rate']:.0%})")
    print(f"  En espera (promedio): {summary['avg_waiting']:.2f}")
    print(f"  En espera (máximo):   {summary['max_waiting']}")

    for vehicle in scheduler.get_vehicles():
        print(f"  {vehicle.get_status_string()}")

    if args.plot is not None:
        ensure_directories()
        output = args.plot if args.plot.is_absolute() else RESULTS_DIR / args.plot
        fig = graph.visualize(scheduler.get_vehicles(), scheduler.get_traffic_lights())
        fig.savefig(output, dpi=VisualizationConfig.DPI,
                    format=VisualizationConfig.SAVE_FORMAT, bbox_inches="tight")
        print(f"\nImagen guardada en {output}")


if __name__ == "__main__":
    main()
