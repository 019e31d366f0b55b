"""
공용 테스트 픽스처
"""
import sys
from pathlib import Path

import matplotlib

matplotlib.use("Agg")

import pytest

# src/ 경로 추가
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from panelcut.config import OptimizerConfig
from panelcut.manager import AlgorithmManager
from panelcut.models import OptimizationRequest, Panel, Piece, Settings
from panelcut.packing import overlaps


@pytest.fixture
def panel():
    """500×300 원판"""
    return Panel(width=500, height=300)


@pytest.fixture
def settings():
    return Settings(kerf=0)


@pytest.fixture
def sample_pieces():
    """회전 가능/불가 조각이 섞인 기본 조각 세트"""
    return [
        Piece(id='rect1', width=100, height=50, quantity=2, can_rotate=True, priority=1),
        Piece(id='rect2', width=75, height=60, quantity=1, can_rotate=False, priority=2),
        Piece(id='rect3', width=120, height=40, quantity=1, can_rotate=True, priority=3),
    ]


@pytest.fixture
def sample_request(sample_pieces, panel):
    return OptimizationRequest(
        pieces=sample_pieces,
        panels=[panel],
        settings=Settings(kerf=3.2),
    )


@pytest.fixture
def fast_config():
    """테스트용 소규모 유전 알고리즘 설정"""
    return OptimizerConfig(population_size=10, generations=5)


@pytest.fixture
def manager(fast_config):
    return AlgorithmManager.with_defaults(fast_config)


@pytest.fixture
def check_result():
    """결과 불변식 검사 함수: 면적 집계, 원판 범위, 겹침 없음"""
    return _assert_valid_result


def _assert_valid_result(result, panel):
    assert result.used_area <= result.total_area + 1e-6
    assert 0.0 <= result.efficiency <= 1.0
    assert result.wasted_area == pytest.approx(result.total_area - result.used_area)

    for piece in result.placed_pieces:
        assert 0 <= piece.sheet_number < result.sheet_count
        assert piece.x >= 0 and piece.y >= 0
        assert piece.x + piece.width <= panel.width + 1e-6
        assert piece.y + piece.height <= panel.height + 1e-6

    for sheet in range(result.sheet_count):
        on_sheet = [p for p in result.placed_pieces if p.sheet_number == sheet]
        for i, a in enumerate(on_sheet):
            for b in on_sheet[i + 1:]:
                assert not overlaps(a, b), f"{a} overlaps {b}"
