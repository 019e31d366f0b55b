"""요청/결과 모델

외부 호출자와 주고받는 형태는 camelCase (예: canRotate, placedPieces),
파이썬 속성은 snake_case를 사용한다.
"""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """camelCase 별칭을 쓰는 불변 모델 베이스"""
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
    )


class Piece(CamelModel):
    """조각 입력 모델"""
    id: str
    width: float = Field(gt=0)
    height: float = Field(gt=0)
    quantity: int = Field(default=1, ge=1)
    can_rotate: bool = False
    priority: float = 0
    label: str | None = None
    must_follow_grain: bool = False  # 받기만 함 (결 방향은 강제하지 않음)


class Panel(CamelModel):
    """원판 모델 - 요청의 첫 번째 원판만 사용"""
    width: float = Field(gt=0)
    height: float = Field(gt=0)
    grain_direction: Literal['horizontal', 'vertical'] | None = None

    @property
    def area(self) -> float:
        return self.width * self.height


class Padding(CamelModel):
    """원판 여백 (예약 필드, 배치에 반영하지 않음)"""
    left: float = Field(default=0, ge=0)
    right: float = Field(default=0, ge=0)
    top: float = Field(default=0, ge=0)
    bottom: float = Field(default=0, ge=0)


class Settings(CamelModel):
    """재단 설정

    kerf만 배치 계산에 쓰인다. timeout(ms)은 탐색 경계에서 확인하는
    협조적 마감 시간이고, padding과 cut_preference는 예약 필드다.
    """
    kerf: float = Field(default=0, ge=0)
    padding: Padding = Field(default_factory=Padding)
    cut_preference: Literal['long', 'short', 'hybrid', 'minimize_cuts'] = 'hybrid'
    timeout: float | None = Field(default=None, gt=0)


class OptimizationRequest(CamelModel):
    """재단 요청 모델"""
    pieces: list[Piece]
    panels: list[Panel]
    settings: Settings = Field(default_factory=Settings)
    algorithm: str | None = None


class PlacedPiece(CamelModel):
    """배치된 조각 (크기는 회전 후 기준)"""
    id: str
    x: float
    y: float
    width: float
    height: float
    rotated: bool
    sheet_number: int
    label: str | None = None


class CutInstruction(CamelModel):
    """절단 지시 - 원판별 1부터 시작하는 순서"""
    type: Literal['horizontal', 'vertical']
    position: float
    x1: float
    y1: float
    x2: float
    y2: float
    sheet_number: int
    order: int


class PlacementResult(CamelModel):
    """최적화 결과 모델"""
    placed_pieces: list[PlacedPiece]
    unused_pieces: list[Piece]
    efficiency: float
    total_area: float
    used_area: float
    wasted_area: float
    cuts: list[CutInstruction]
    sheet_count: int
    execution_time: float  # ms
    algorithm: str


class AlgorithmInfo(CamelModel):
    """전략 메타데이터"""
    name: str
    description: str
    supports_rotation: bool
    supports_multi_sheet: bool
    estimated_time: int  # ms
