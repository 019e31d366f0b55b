"""
기본 모듈
- FreeSpace: 자유 공간 사각형
- 기하 커널: 면적, 겹침 판정, Guillotine 자유 공간 분할
- Deadline: 협조적 마감 시간
- PackingStrategy: 패킹 전략 베이스 클래스 (결과 조립 포함)
"""

from __future__ import annotations

import logging
import random
import time
from abc import ABC, abstractmethod

from .cuts import generate_guillotine_cuts
from .errors import ConfigurationError, ExecutionError, OptimizationError
from .models import AlgorithmInfo, Panel, PlacedPiece, PlacementResult, Settings
from .pieces import to_unused_piece

logger = logging.getLogger(__name__)

# 부동소수점 좌표 비교 허용 오차
EPS = 1e-9


class FreeSpace:
    """자유 공간 사각형 (생성 후 변경하지 않음)"""
    def __init__(self, x, y, width, height):
        self.x = x
        self.y = y
        self.width = width
        self.height = height

    def __eq__(self, other):
        if not isinstance(other, FreeSpace):
            return NotImplemented
        return (self.x, self.y, self.width, self.height) == (other.x, other.y, other.width, other.height)

    def __hash__(self):
        return hash((self.x, self.y, self.width, self.height))

    def __repr__(self):
        return f"FreeSpace(x={self.x}, y={self.y}, width={self.width}, height={self.height})"


def area(rect) -> float:
    return rect.width * rect.height


def overlaps(a, b) -> bool:
    """두 사각형 겹침 판정 (변이 맞닿는 것은 겹침 아님)

    a, b는 x/y/width/height 속성을 가진 객체 또는 같은 키를 가진 dict
    """
    ax, ay, aw, ah = _box(a)
    bx, by, bw, bh = _box(b)
    return not (ax + aw <= bx + EPS or
                bx + bw <= ax + EPS or
                ay + ah <= by + EPS or
                by + bh <= ay + EPS)


def _box(rect):
    if isinstance(rect, dict):
        return rect['x'], rect['y'], rect['width'], rect['height']
    return rect.x, rect.y, rect.width, rect.height


def _contains(outer, inner) -> bool:
    return (outer.x <= inner.x and outer.y <= inner.y and
            inner.x + inner.width <= outer.x + outer.width and
            inner.y + inner.height <= outer.y + outer.height)


def split_free_space(free_spaces: list[FreeSpace], used, kerf: float = 0) -> list[FreeSpace]:
    """사용 영역을 자유 공간에서 제거 (Guillotine 근사)

    used와 겹치는 자유 공간은 아래/위/왼쪽/오른쪽 띠 최대 4개로 분할하고,
    겹치지 않는 공간은 그대로 둔다. 너비나 높이가 kerf 이하인 공간은 버린다.
    새로 생긴 공간 중 다른 공간에 완전히 포함되는 것도 제거한다.
    입력 공간끼리는 서로 포함 관계가 없어야 한다 (이 함수의 출력이면 만족).

    Returns:
        새 자유 공간 리스트 (입력 리스트는 변경하지 않음)
    """
    ux, uy, uw, uh = _box(used)
    new_spaces: list[FreeSpace] = []
    fresh: list[bool] = []  # 이번 분할로 생긴 공간 여부

    def add(space, is_fresh):
        if space.width > kerf and space.height > kerf:
            new_spaces.append(space)
            fresh.append(is_fresh)

    for space in free_spaces:
        if not overlaps(space, used):
            add(space, False)
            continue

        # 아래쪽 띠
        if uy > space.y:
            add(FreeSpace(space.x, space.y, space.width, uy - space.y), True)
        # 위쪽 띠
        if uy + uh < space.y + space.height:
            add(FreeSpace(
                space.x, uy + uh,
                space.width, space.y + space.height - (uy + uh)
            ), True)
        # 왼쪽 띠
        if ux > space.x:
            add(FreeSpace(space.x, space.y, ux - space.x, space.height), True)
        # 오른쪽 띠
        if ux + uw < space.x + space.width:
            add(FreeSpace(
                ux + uw, space.y,
                space.x + space.width - (ux + uw), space.height
            ), True)

    return _prune_contained(new_spaces, fresh)


def _prune_contained(spaces: list[FreeSpace], fresh: list[bool]) -> list[FreeSpace]:
    """다른 공간에 포함되는 공간 제거 (동일한 공간은 첫 번째만 유지)

    분할 전 공간끼리는 이미 서로 포함 관계가 없으므로, 새로 생긴 공간이
    끼는 쌍만 비교한다.
    """
    fresh_idx = [i for i, is_fresh in enumerate(fresh) if is_fresh]
    all_idx = range(len(spaces))

    kept = []
    for i, space in enumerate(spaces):
        redundant = False
        for j in (all_idx if fresh[i] else fresh_idx):
            other = spaces[j]
            if i == j or not _contains(other, space):
                continue
            if space != other or j < i:
                redundant = True
                break
        if not redundant:
            kept.append(space)
    return kept


def fits(space, width, height) -> bool:
    return width <= space.width + EPS and height <= space.height + EPS


def footprint(x, y, width, height, kerf) -> FreeSpace:
    """조각 + 톱날 손실 영역 (사방으로 kerf만큼 확장)

    자유 공간은 모든 조각에서 kerf 이상 떨어지므로, 자유 공간 모서리에
    놓인 조각은 이웃 조각과 kerf 간격을 유지한다.
    """
    return FreeSpace(x - kerf, y - kerf, width + 2 * kerf, height + 2 * kerf)


def is_clear(placement: dict, others, kerf: float) -> bool:
    """배치의 kerf 확장 영역이 다른 조각들과 겹치지 않는지 확인"""
    zone = footprint(placement['x'], placement['y'], placement['width'], placement['height'], kerf)
    return not any(overlaps(zone, other) for other in others)


def new_sheet(index: int, panel: Panel) -> dict:
    return {
        'index': index,
        'pieces': [],
        'free_spaces': [FreeSpace(0, 0, panel.width, panel.height)],
    }


def make_placement(piece, x, y, rotated, sheet_index) -> dict:
    """배치 dict 생성 (width/height는 회전 후 크기)"""
    w, h = (piece['height'], piece['width']) if rotated else (piece['width'], piece['height'])
    return {
        'key': piece['key'],
        'id': piece['id'],
        'x': x,
        'y': y,
        'width': w,
        'height': h,
        'rotated': rotated,
        'sheet': sheet_index,
        'label': piece['label'],
        'area': piece['area'],
        'piece': piece,
    }


def with_placement(sheet: dict, placement: dict, kerf: float) -> dict:
    """조각을 배치한 새 원판 반환 (원본 원판은 변경하지 않음)"""
    used = footprint(placement['x'], placement['y'], placement['width'], placement['height'], kerf)
    return {
        'index': sheet['index'],
        'pieces': sheet['pieces'] + [placement],
        'free_spaces': split_free_space(sheet['free_spaces'], used, kerf),
    }


def rebuild_free_spaces(placements: list[dict], panel: Panel, kerf: float) -> list[FreeSpace]:
    """배치 목록으로부터 자유 공간 재계산"""
    spaces = [FreeSpace(0, 0, panel.width, panel.height)]
    for p in placements:
        spaces = split_free_space(spaces, footprint(p['x'], p['y'], p['width'], p['height'], kerf), kerf)
    return spaces


def in_bounds(placement: dict, panel: Panel) -> bool:
    return (placement['x'] >= -EPS and placement['y'] >= -EPS and
            placement['x'] + placement['width'] <= panel.width + EPS and
            placement['y'] + placement['height'] <= panel.height + EPS)


def used_area(placements) -> float:
    return sum(p['width'] * p['height'] for p in placements)


def verify_layout(sheets: list[dict], panel: Panel) -> None:
    """모든 조각이 원판 안에 있고 서로 겹치지 않는지 검증"""
    for sheet in sheets:
        pieces = sheet['pieces']
        for i, piece in enumerate(pieces):
            if not in_bounds(piece, panel):
                raise ExecutionError(
                    f"원판 {sheet['index']}: 조각 {piece['key']}이(가) 원판 범위를 벗어남"
                )
            for other in pieces[i + 1:]:
                if overlaps(piece, other):
                    raise ExecutionError(
                        f"원판 {sheet['index']}: 조각 {piece['key']}와 {other['key']} 겹침"
                    )


class Deadline:
    """협조적 마감 시간 - 탐색 경계에서만 확인"""

    def __init__(self, timeout_ms: float | None = None) -> None:
        self.expires_at = None if timeout_ms is None else time.monotonic() + timeout_ms / 1000.0

    def expired(self) -> bool:
        return self.expires_at is not None and time.monotonic() >= self.expires_at


class PackingContext:
    """한 번의 최적화 실행에 필요한 입력 묶음"""

    def __init__(self, panel: Panel, settings: Settings, rng: random.Random, deadline: Deadline) -> None:
        self.panel = panel
        self.settings = settings
        self.kerf = settings.kerf
        self.rng = rng
        self.deadline = deadline


class PackingStrategy(ABC):
    """패킹 전략 베이스 클래스

    하위 클래스는 pack()만 구현한다. 실행 중 상태는 인스턴스에 저장하지
    않으므로 같은 인스턴스를 여러 요청에서 동시에 써도 된다.
    """

    name: str = ''
    description: str = ''
    supports_rotation: bool = True
    supports_multi_sheet: bool = True
    estimated_time: int = 0  # ms

    def execute(self, pieces: list[dict], panels: list[Panel], settings: Settings | None = None,
                rng: random.Random | None = None) -> PlacementResult:
        """확장된 조각들을 첫 번째 원판에 배치

        Args:
            pieces: expand_pieces()로 확장한 조각 목록
            panels: 원판 목록 (첫 번째만 사용)
            settings: 재단 설정
            rng: 난수 발생기 (재현 가능한 테스트용)

        Returns:
            PlacementResult

        Raises:
            ConfigurationError: 원판이 없을 때
            ExecutionError: 전략 내부 오류
        """
        started = time.perf_counter()
        if not panels:
            raise ConfigurationError("원판 정보가 없습니다")

        settings = settings if settings is not None else Settings()
        context = PackingContext(
            panel=panels[0],
            settings=settings,
            rng=rng if rng is not None else random.Random(),
            deadline=Deadline(settings.timeout),
        )

        try:
            sheets, unused = self.pack(list(pieces), context)
            return self.build_result(sheets, unused, context, started)
        except OptimizationError:
            raise
        except Exception as e:
            raise ExecutionError(f"{self.name} 실행 실패: {e}") from e

    @abstractmethod
    def pack(self, pieces: list[dict], context: PackingContext) -> tuple[list[dict], list[dict]]:
        """조각들을 원판에 배치

        Returns:
            (원판 리스트, 미배치 조각 리스트). 각 원판은
            {'index': n, 'pieces': [...], 'free_spaces': [...]} 구조
        """

    def can_rotate(self, piece: dict) -> bool:
        return self.supports_rotation and piece['can_rotate']

    def orientations(self, piece: dict, rotated_first: bool = False) -> list[bool]:
        """시도할 회전 여부 목록 (정사각형은 회전 생략)"""
        if not self.can_rotate(piece) or piece['width'] == piece['height']:
            return [False]
        return [True, False] if rotated_first else [False, True]

    def fits_empty_panel(self, piece: dict, panel: Panel) -> bool:
        empty = FreeSpace(0, 0, panel.width, panel.height)
        return any(
            fits(empty, *((piece['height'], piece['width']) if rotated else (piece['width'], piece['height'])))
            for rotated in self.orientations(piece)
        )

    def build_result(self, sheets: list[dict], unused: list[dict], context: PackingContext,
                     started: float) -> PlacementResult:
        """원판 배치를 검증하고 결과 모델로 변환"""
        panel = context.panel
        verify_layout(sheets, panel)

        placed_pieces = []
        cuts = []
        for sheet in sheets:
            for p in sheet['pieces']:
                placed_pieces.append(PlacedPiece(
                    id=p['id'], x=p['x'], y=p['y'],
                    width=p['width'], height=p['height'],
                    rotated=p['rotated'], sheet_number=sheet['index'],
                    label=p['label'],
                ))
            cuts.extend(generate_guillotine_cuts(sheet['pieces'], panel, context.kerf, sheet['index']))

        total = panel.area * len(sheets)
        used = used_area(p for sheet in sheets for p in sheet['pieces'])
        efficiency = used / total if total > 0 else 0.0

        logger.info(
            "%s: 원판 %d장, 배치 %d개, 미배치 %d개, 사용률 %.1f%%",
            self.name, len(sheets), len(placed_pieces), len(unused), efficiency * 100,
        )

        return PlacementResult(
            placed_pieces=placed_pieces,
            unused_pieces=[to_unused_piece(u) for u in unused],
            efficiency=efficiency,
            total_area=total,
            used_area=used,
            wasted_area=total - used,
            cuts=cuts,
            sheet_count=len(sheets),
            execution_time=(time.perf_counter() - started) * 1000.0,
            algorithm=self.name,
        )

    def info(self) -> AlgorithmInfo:
        return AlgorithmInfo(
            name=self.name,
            description=self.description,
            supports_rotation=self.supports_rotation,
            supports_multi_sheet=self.supports_multi_sheet,
            estimated_time=self.estimated_time,
        )
