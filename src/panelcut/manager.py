"""전략 레지스트리 / 매니저

전략 선택, 요청-전략 호환성 검증, 우선순위 폴백 실행을 담당한다.
레지스트리는 명시적으로 생성해서 넘겨 쓴다 (전역 싱글턴 없음).
"""

from __future__ import annotations

import logging
import random

from pydantic import ValidationError

from .config import OptimizerConfig
from .errors import ConfigurationError, ExhaustionError, OptimizationError
from .models import OptimizationRequest, PlacementResult
from .packing import PackingStrategy
from .pieces import expand_pieces
from .strategies import BeamSearchPacker, FirstFitDecreasingPacker, GeneticPacker, HybridLocalSearchPacker

logger = logging.getLogger(__name__)


class AlgorithmManager:
    """이름으로 전략을 관리하고 우선순위 순서로 폴백 실행"""

    def __init__(self, strategies: list[PackingStrategy] | None = None,
                 multi_sheet_threshold: float = 0.8) -> None:
        self._strategies: dict[str, PackingStrategy] = {}
        self._priority: list[str] = []
        self.multi_sheet_threshold = multi_sheet_threshold
        for strategy in strategies or []:
            self.register(strategy)

    @classmethod
    def with_defaults(cls, config: OptimizerConfig | None = None) -> AlgorithmManager:
        """기본 전략 4개를 우선순위 순서로 등록한 매니저 생성"""
        config = config or OptimizerConfig()
        return cls(
            [
                BeamSearchPacker(beam_width=config.beam_width),
                HybridLocalSearchPacker(max_passes=config.local_search_passes),
                FirstFitDecreasingPacker(),
                GeneticPacker(
                    population_size=config.population_size,
                    generations=config.generations,
                    tournament_size=config.tournament_size,
                    early_stop_efficiency=config.early_stop_efficiency,
                ),
            ],
            multi_sheet_threshold=config.multi_sheet_threshold,
        )

    def register(self, strategy: PackingStrategy) -> None:
        """전략 등록 - 등록 순서가 폴백 우선순위"""
        if strategy.name not in self._strategies:
            self._priority.append(strategy.name)
        self._strategies[strategy.name] = strategy

    def get(self, name: str | None) -> PackingStrategy | None:
        return self._strategies.get(name) if name else None

    def names(self) -> list[str]:
        return list(self._priority)

    @property
    def default_name(self) -> str | None:
        return self._priority[0] if self._priority else None

    def metadata(self) -> list[dict]:
        return [self._strategies[name].info().model_dump(by_alias=True) for name in self._priority]

    def validate_request(self, request: OptimizationRequest) -> None:
        if not request.pieces:
            raise ConfigurationError("조각 정보가 없습니다")
        if not request.panels:
            raise ConfigurationError("원판 정보가 없습니다")

    def validate_compatibility(self, strategy: PackingStrategy, request: OptimizationRequest) -> None:
        """요청이 전략의 지원 범위 안에 있는지 확인

        Raises:
            ConfigurationError: 회전 필요 조각이 있는데 회전 미지원이거나,
                전체 조각 면적이 원판 면적의 임계 비율을 넘는데 다중 원판 미지원
        """
        self.validate_request(request)

        if any(piece.can_rotate for piece in request.pieces) and not strategy.supports_rotation:
            raise ConfigurationError(f"'{strategy.name}' 전략은 조각 회전을 지원하지 않습니다")

        total_piece_area = sum(p.width * p.height * p.quantity for p in request.pieces)
        panel_area = request.panels[0].area
        if total_piece_area > panel_area * self.multi_sheet_threshold and not strategy.supports_multi_sheet:
            raise ConfigurationError(f"'{strategy.name}' 전략은 다중 원판을 지원하지 않습니다")

    def execute_algorithm(self, name: str, request: OptimizationRequest,
                          rng: random.Random | None = None) -> PlacementResult:
        """지정한 전략 하나만 실행 (폴백 없음)"""
        strategy = self.get(name)
        if strategy is None:
            raise ConfigurationError(f"알 수 없는 전략: '{name}'")
        self.validate_compatibility(strategy, request)
        return strategy.execute(expand_pieces(request.pieces), request.panels, request.settings, rng)

    def execute_with_fallback(self, request: OptimizationRequest, preferred: str | None = None,
                              rng: random.Random | None = None) -> PlacementResult:
        """선호 전략(없으면 기본 전략)을 실행하고 실패 시 우선순위 순서로 폴백

        선택된 전략이 요청과 호환되지 않으면 ConfigurationError를 그대로 올린다.
        실행 중 실패는 다음 전략으로 넘어가고, 모두 실패하면 ExhaustionError.
        """
        self.validate_request(request)

        name = preferred if preferred in self._strategies else self.default_name
        if name is None:
            raise ExhaustionError("등록된 전략이 없습니다")
        if preferred and preferred != name:
            logger.warning("알 수 없는 전략 '%s', 기본 전략 '%s' 사용", preferred, name)

        self.validate_compatibility(self._strategies[name], request)

        # 조각 확장은 요청당 한 번
        pieces = expand_pieces(request.pieces)
        chain = [name] + [n for n in self._priority if n != name]

        last_error: Exception | None = None
        for candidate in chain:
            strategy = self._strategies[candidate]
            if candidate != name:
                try:
                    self.validate_compatibility(strategy, request)
                except ConfigurationError as e:
                    logger.info("폴백 전략 '%s' 건너뜀: %s", candidate, e)
                    last_error = e
                    continue
            try:
                return strategy.execute(pieces, request.panels, request.settings, rng)
            except OptimizationError as e:
                logger.warning("전략 '%s' 실패, 다음 전략 시도: %s", candidate, e)
                last_error = e

        raise ExhaustionError(f"모든 전략이 실패했습니다. 마지막 오류: {last_error}", last_error)


def _coerce_request(request) -> OptimizationRequest:
    if isinstance(request, OptimizationRequest):
        return request
    try:
        return OptimizationRequest.model_validate(request)
    except ValidationError as e:
        raise ConfigurationError(f"잘못된 요청 형식: {e}") from e


def run_optimization(request, manager: AlgorithmManager | None = None,
                     rng: random.Random | None = None) -> PlacementResult:
    """요청 하나를 최적화

    Args:
        request: OptimizationRequest 또는 같은 형태의 dict (camelCase 키)
        manager: 사용할 매니저 (없으면 기본 전략으로 생성)
        rng: 난수 발생기

    Returns:
        첫 번째로 성공한 전략의 PlacementResult
    """
    request = _coerce_request(request)
    manager = manager or AlgorithmManager.with_defaults()
    return manager.execute_with_fallback(request, preferred=request.algorithm, rng=rng)


def list_algorithms(manager: AlgorithmManager | None = None) -> list[dict]:
    """전략 메타데이터 목록 (name, description, supportsRotation, supportsMultiSheet, estimatedTime)"""
    manager = manager or AlgorithmManager.with_defaults()
    return manager.metadata()
