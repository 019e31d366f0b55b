"""Guillotine 절단 시퀀스 생성

원판 전체 영역에서 시작해 어떤 조각도 가로지르지 않는 관통 절단선을 찾아
영역을 둘로 나누고, 나뉜 영역마다 같은 과정을 반복한다.
- 분리 절단 (양쪽에 조각이 있음) 우선, 그다음 트리밍 절단 (한쪽만 조각)
- 같은 종류에서는 수평 절단 우선, 낮은 위치 우선
- 관통선을 찾을 수 없는 영역(비-Guillotine 배치)은 더 나누지 않음
"""

from __future__ import annotations

import logging

from .models import CutInstruction, Panel

logger = logging.getLogger(__name__)

EPS = 1e-9


class Region:
    """절단으로 생긴 영역"""
    def __init__(self, x, y, width, height):
        self.x = x
        self.y = y
        self.width = width
        self.height = height
        self.pieces = []


def generate_guillotine_cuts(placements: list[dict], panel: Panel, kerf: float,
                             sheet_number: int) -> list[CutInstruction]:
    """원판 하나의 절단 지시 목록 생성

    Args:
        placements: 원판에 배치된 조각 dict 목록 (x, y, width, height)
        panel: 원판
        kerf: 톱날 두께
        sheet_number: 원판 번호

    Returns:
        order 순으로 정렬된 CutInstruction 목록
    """
    if not placements:
        return []

    cuts: list[dict] = []
    root = Region(0, 0, panel.width, panel.height)
    root.pieces = list(placements)
    _split_region(root, cuts, kerf)

    return [
        CutInstruction(
            type=cut['type'],
            position=cut['position'],
            x1=cut['x1'], y1=cut['y1'], x2=cut['x2'], y2=cut['y2'],
            sheet_number=sheet_number,
            order=order,
        )
        for order, cut in enumerate(cuts, start=1)
    ]


def _candidate_positions(region, axis):
    """영역 내부에 있는 조각 경계 좌표 (axis: 'y'=수평 절단, 'x'=수직 절단)"""
    size = 'height' if axis == 'y' else 'width'
    low = getattr(region, axis)
    high = low + getattr(region, size)
    positions = set()
    for piece in region.pieces:
        for pos in (piece[axis], piece[axis] + piece[size]):
            if low + EPS < pos < high - EPS:
                positions.add(pos)
    return sorted(positions)


def _partition(pieces, axis, position):
    """절단선 기준으로 조각 분리, 절단선이 조각을 가로지르면 None"""
    size = 'height' if axis == 'y' else 'width'
    before, after = [], []
    for piece in pieces:
        if piece[axis] + piece[size] <= position + EPS:
            before.append(piece)
        elif piece[axis] >= position - EPS:
            after.append(piece)
        else:
            return None
    return before, after


def _find_cut(region):
    """다음 절단선 선택: (axis, position, before, after) 또는 None"""
    trims = []
    for axis in ('y', 'x'):
        for position in _candidate_positions(region, axis):
            parts = _partition(region.pieces, axis, position)
            if parts is None:
                continue
            before, after = parts
            if before and after:
                return axis, position, before, after
            trims.append((axis, position, before, after))
    return trims[0] if trims else None


def _split_region(root, cuts, kerf):
    """영역 분할 (글로벌 좌표 유지)

    작업 스택으로 깊이 우선 순회한다. 아래/왼쪽 영역을 먼저 처리하도록
    위쪽 영역을 먼저 넣는다.
    """
    stack = [root]
    while stack:
        region = stack.pop()
        if not region.pieces:
            continue

        found = _find_cut(region)
        if found is None:
            if len(region.pieces) > 1:
                logger.debug(
                    "관통 절단선 없음: 영역 (%s,%s %s×%s), 조각 %d개",
                    region.x, region.y, region.width, region.height, len(region.pieces),
                )
            continue

        axis, position, before, after = found
        if axis == 'y':
            cuts.append({
                'type': 'horizontal', 'position': position,
                'x1': region.x, 'y1': position,
                'x2': region.x + region.width, 'y2': position,
            })
            far = _far_edge(position, kerf, region.y + region.height, before)
            lower = Region(region.x, region.y, region.width, position - region.y)
            upper = Region(region.x, far, region.width, region.y + region.height - far)
        else:
            cuts.append({
                'type': 'vertical', 'position': position,
                'x1': position, 'y1': region.y,
                'x2': position, 'y2': region.y + region.height,
            })
            far = _far_edge(position, kerf, region.x + region.width, before)
            lower = Region(region.x, region.y, position - region.x, region.height)
            upper = Region(far, region.y, region.x + region.width - far, region.height)

        lower.pieces = before
        upper.pieces = after
        stack.append(upper)
        stack.append(lower)


def _far_edge(position, kerf, end, before):
    """절단 후 위쪽/오른쪽 영역 시작 좌표

    톱날 손실은 조각이 없는 쪽에 둔다. 앞쪽이 비어 있는 트리밍 절단은
    조각 경계에서 바로 시작한다.
    """
    if not before:
        return position
    return min(position + kerf, end)
