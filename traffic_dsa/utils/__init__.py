"""
Utilidades: configuración, logging y métricas.
"""

from .config import setup_logging
from .metrics import SnapshotRecorder

__all__ = [
    'setup_logging',
    'SnapshotRecorder'
]
