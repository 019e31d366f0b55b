"""패킹 전략 모듈"""
from .first_fit_decreasing import FirstFitDecreasingPacker
from .beam_search import BeamSearchPacker
from .hybrid_local_search import HybridLocalSearchPacker
from .genetic import GeneticPacker

__all__ = [
    'FirstFitDecreasingPacker',
    'BeamSearchPacker',
    'HybridLocalSearchPacker',
    'GeneticPacker',
]
