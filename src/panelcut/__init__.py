"""panelcut - 원판 재단 최적화

Guillotine Cut 기반 2차원 재단(cutting stock) 최적화 도구
"""

from .errors import ConfigurationError, ExecutionError, ExhaustionError, OptimizationError
from .manager import AlgorithmManager, list_algorithms, run_optimization
from .models import OptimizationRequest, Panel, Piece, PlacementResult, Settings

__all__ = [
    'AlgorithmManager',
    'run_optimization',
    'list_algorithms',
    'OptimizationRequest',
    'Piece',
    'Panel',
    'Settings',
    'PlacementResult',
    'OptimizationError',
    'ConfigurationError',
    'ExecutionError',
    'ExhaustionError',
]
