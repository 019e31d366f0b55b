"""전략 레지스트리, 폴백 체인, 공개 진입점 테스트"""
import logging
import random

import pytest

from panelcut import list_algorithms, run_optimization
from panelcut.errors import ConfigurationError, ExecutionError, ExhaustionError
from panelcut.manager import AlgorithmManager
from panelcut.models import OptimizationRequest, Panel, Piece, Settings
from panelcut.packing import PackingStrategy
from panelcut.strategies import FirstFitDecreasingPacker


class FailingPacker(PackingStrategy):
    name = 'always_fails'
    description = 'test double'

    def pack(self, pieces, context):
        raise RuntimeError("strategy crashed")


class SingleSheetPacker(FirstFitDecreasingPacker):
    name = 'single_sheet'
    supports_rotation = True
    supports_multi_sheet = False


@pytest.fixture
def fixed_request(panel):
    """회전 불가 조각만 있는 요청"""
    return OptimizationRequest(
        pieces=[Piece(id='a', width=100, height=50, quantity=2), Piece(id='b', width=80, height=80)],
        panels=[panel],
        settings=Settings(kerf=2),
    )


class TestRegistry:

    def test_default_priority_order(self, manager):
        assert manager.names() == [
            'beam_search_guillotine',
            'hybrid_constructive_local_search',
            'first_fit_decreasing',
            'advanced_genetic_algorithm',
        ]
        assert manager.default_name == 'beam_search_guillotine'

    def test_metadata_uses_camel_case(self, manager):
        info = manager.metadata()[0]
        assert set(info) == {'name', 'description', 'supportsRotation', 'supportsMultiSheet', 'estimatedTime'}
        assert info['name'] == 'beam_search_guillotine'

    def test_ffd_metadata(self, manager):
        ffd = {m['name']: m for m in manager.metadata()}['first_fit_decreasing']
        assert ffd['supportsRotation'] is False
        assert ffd['supportsMultiSheet'] is True

    def test_re_register_keeps_position(self):
        manager = AlgorithmManager([FailingPacker(), FirstFitDecreasingPacker()])
        manager.register(FailingPacker())
        assert manager.names() == ['always_fails', 'first_fit_decreasing']

    def test_list_algorithms(self):
        names = [info['name'] for info in list_algorithms()]
        assert names[0] == 'beam_search_guillotine'
        assert len(names) == 4

    def test_empty_manager_is_exhausted(self, fixed_request):
        with pytest.raises(ExhaustionError):
            AlgorithmManager().execute_with_fallback(fixed_request)


class TestValidation:

    def test_missing_pieces(self, manager, panel):
        with pytest.raises(ConfigurationError):
            manager.execute_with_fallback(OptimizationRequest(pieces=[], panels=[panel]))

    def test_missing_panels(self, manager):
        request = OptimizationRequest(pieces=[Piece(id='a', width=10, height=10)], panels=[])
        with pytest.raises(ConfigurationError):
            manager.execute_with_fallback(request)

    def test_rotation_requires_rotating_strategy(self, manager, sample_request):
        with pytest.raises(ConfigurationError):
            manager.execute_algorithm('first_fit_decreasing', sample_request)

    def test_incompatible_preferred_strategy_is_not_run(self, manager, sample_request, monkeypatch):
        def explode(*args, **kwargs):
            raise AssertionError("pack must not be called")

        monkeypatch.setattr(FirstFitDecreasingPacker, 'pack', explode)
        with pytest.raises(ConfigurationError):
            manager.execute_with_fallback(sample_request, preferred='first_fit_decreasing')

    def test_large_job_requires_multi_sheet(self):
        manager = AlgorithmManager([SingleSheetPacker()])
        request = OptimizationRequest(
            pieces=[Piece(id='a', width=90, height=90)],
            panels=[Panel(width=100, height=100)],
        )
        with pytest.raises(ConfigurationError):
            manager.execute_algorithm('single_sheet', request)

    def test_small_job_runs_on_single_sheet_strategy(self):
        manager = AlgorithmManager([SingleSheetPacker()])
        request = OptimizationRequest(
            pieces=[Piece(id='a', width=50, height=50)],
            panels=[Panel(width=100, height=100)],
        )
        assert manager.execute_algorithm('single_sheet', request).sheet_count == 1

    def test_unknown_strategy_for_direct_execution(self, manager, fixed_request):
        with pytest.raises(ConfigurationError):
            manager.execute_algorithm('nope', fixed_request)


class TestFallback:

    def test_unknown_preferred_uses_default(self, manager, fixed_request, caplog):
        with caplog.at_level(logging.WARNING, logger='panelcut.manager'):
            result = manager.execute_with_fallback(fixed_request, preferred='nope')
        assert result.algorithm == 'beam_search_guillotine'
        assert 'nope' in caplog.text

    def test_preferred_strategy_is_used(self, manager, fixed_request):
        result = manager.execute_with_fallback(fixed_request, preferred='first_fit_decreasing')
        assert result.algorithm == 'first_fit_decreasing'

    def test_failure_falls_back_to_next(self, fixed_request):
        manager = AlgorithmManager([FailingPacker(), FirstFitDecreasingPacker()])
        result = manager.execute_with_fallback(fixed_request)
        assert result.algorithm == 'first_fit_decreasing'
        assert len(result.placed_pieces) == 3

    def test_incompatible_fallback_is_skipped(self, sample_request):
        manager = AlgorithmManager([FailingPacker(), FirstFitDecreasingPacker()])
        with pytest.raises(ExhaustionError) as excinfo:
            manager.execute_with_fallback(sample_request)
        assert isinstance(excinfo.value.last_error, ConfigurationError)

    def test_all_failures_exhaust(self, fixed_request):
        manager = AlgorithmManager([FailingPacker()])
        with pytest.raises(ExhaustionError) as excinfo:
            manager.execute_with_fallback(fixed_request)
        assert isinstance(excinfo.value.last_error, ExecutionError)
        assert 'strategy crashed' in str(excinfo.value)


class TestRunOptimization:

    def test_wire_shaped_dict(self, manager):
        request = {
            'pieces': [
                {'id': 'side', 'width': 100, 'height': 50, 'quantity': 2, 'canRotate': True},
                {'id': 'top', 'width': 75, 'height': 60},
            ],
            'panels': [{'width': 500, 'height': 300}],
            'settings': {'kerf': 3.2},
        }
        result = run_optimization(request, manager=manager)
        assert result.algorithm == 'beam_search_guillotine'
        assert len(result.placed_pieces) == 3
        assert result.sheet_count == 1

    def test_request_algorithm_is_preferred(self, manager, fixed_request):
        request = fixed_request.model_copy(update={'algorithm': 'hybrid_constructive_local_search'})
        assert run_optimization(request, manager=manager).algorithm == 'hybrid_constructive_local_search'

    def test_unknown_request_algorithm_uses_default(self, manager, fixed_request):
        request = fixed_request.model_copy(update={'algorithm': 'nope'})
        assert run_optimization(request, manager=manager).algorithm == 'beam_search_guillotine'

    def test_malformed_request(self):
        with pytest.raises(ConfigurationError):
            run_optimization({'pieces': [{'id': 'a', 'width': -1, 'height': 5}], 'panels': []})

    def test_genetic_with_seed_is_reproducible(self, manager, sample_request):
        request = sample_request.model_copy(update={'algorithm': 'advanced_genetic_algorithm'})
        first = run_optimization(request, manager=manager, rng=random.Random(9))
        second = run_optimization(request, manager=manager, rng=random.Random(9))
        assert first.placed_pieces == second.placed_pieces

    def test_result_serializes_camel_case(self, manager, fixed_request):
        data = run_optimization(fixed_request, manager=manager).model_dump(by_alias=True)
        assert {'placedPieces', 'unusedPieces', 'totalArea', 'usedArea', 'wastedArea',
                'sheetCount', 'executionTime', 'algorithm', 'cuts', 'efficiency'} == set(data)
        assert 'sheetNumber' in data['placedPieces'][0]
