"""최적화 튜닝 설정

환경 변수 PANELCUT_<필드명> (예: PANELCUT_BEAM_WIDTH=20)으로 덮어쓸 수 있다.
"""

from __future__ import annotations

import os

from pydantic import BaseModel, Field

ENV_PREFIX = 'PANELCUT_'


class OptimizerConfig(BaseModel):
    """전략 파라미터와 실행 환경 설정"""
    beam_width: int = Field(default=10, ge=1)
    population_size: int = Field(default=50, ge=2)
    generations: int = Field(default=100, ge=1)
    tournament_size: int = Field(default=3, ge=1)
    local_search_passes: int = Field(default=100, ge=0)
    early_stop_efficiency: float = Field(default=0.95, gt=0, le=1)
    multi_sheet_threshold: float = Field(default=0.8, gt=0)
    seed: int | None = None
    log_level: str = 'INFO'

    @classmethod
    def from_env(cls, environ=None) -> OptimizerConfig:
        """환경 변수에서 설정 읽기 (없는 값은 기본값)"""
        environ = os.environ if environ is None else environ
        values = {}
        for name in cls.model_fields:
            raw = environ.get(ENV_PREFIX + name.upper())
            if raw is not None and raw != '':
                values[name] = raw
        # 문자열 값은 pydantic이 필드 타입으로 변환
        return cls.model_validate(values)
