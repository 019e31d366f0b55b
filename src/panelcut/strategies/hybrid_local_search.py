"""구성 + 지역 탐색 혼합 전략"""

import logging

from ..packing import (
    EPS,
    PackingStrategy,
    fits,
    in_bounds,
    is_clear,
    make_placement,
    new_sheet,
    rebuild_free_spaces,
    used_area,
    with_placement,
)

logger = logging.getLogger(__name__)


class HybridLocalSearchPacker(PackingStrategy):
    """전략 3: 구성 배치 + 지역 탐색

    1단계 (구성): 입력 순서대로 현재 원판 → 다른 열린 원판 → 새 원판 순으로
    첫 번째로 들어가는 자유 공간에 배치 (비회전 먼저, 그다음 회전).
    2단계 (지역 탐색): 서로 다른 원판의 조각 쌍 위치를 교환해 보고,
    기하적으로 유효하고 두 원판의 사용률 제곱합이 커질 때만 확정한다.
    두 원판 사용률의 단순 합은 교환으로 변하지 않으므로 제곱합을 쓴다
    (재료를 한 원판으로 모으는 교환을 선호).
    """

    name = 'hybrid_constructive_local_search'
    description = '구성 배치 후 원판 간 조각 교환 지역 탐색으로 개선하는 혼합 알고리즘'
    supports_rotation = True
    supports_multi_sheet = True
    estimated_time = 5000

    def __init__(self, max_passes=100):
        self.max_passes = max_passes

    def pack(self, pieces, context):
        sheets, unused = self._construct(pieces, context)
        if len(sheets) > 1:
            sheets = self._local_search(sheets, context)
        return sheets, unused

    def _construct(self, pieces, context):
        """1단계: 구성 배치"""
        panel = context.panel
        sheets = []
        unused = []
        current = None

        for piece in pieces:
            order = [] if current is None else [current]
            order += [i for i in range(len(sheets)) if i != current]

            target = None
            for idx in order:
                found = self._first_fit(sheets[idx], piece)
                if found:
                    target = (idx, *found)
                    break

            if target is None:
                if not self.fits_empty_panel(piece, panel):
                    # 빈 원판에도 들어가지 않음: 이후 단계에서 제외
                    unused.append(piece)
                    continue
                sheets.append(new_sheet(len(sheets), panel))
                current = len(sheets) - 1
                target = (current, *self._first_fit(sheets[current], piece))

            idx, space, rotated = target
            placement = make_placement(piece, space.x, space.y, rotated, idx)
            sheets[idx] = with_placement(sheets[idx], placement, context.kerf)

        return sheets, unused

    def _first_fit(self, sheet, piece):
        """원판에서 조각이 들어가는 첫 번째 자유 공간 (비회전 우선)"""
        for rotated in self.orientations(piece):
            w, h = (piece['height'], piece['width']) if rotated else (piece['width'], piece['height'])
            for space in sheet['free_spaces']:
                if fits(space, w, h):
                    return space, rotated
        return None

    def _local_search(self, sheets, context):
        """2단계: 원판 간 조각 위치 교환"""
        panel_area = context.panel.area
        sheets = [dict(sheet) for sheet in sheets]
        touched = set()

        for pass_no in range(self.max_passes):
            if context.deadline.expired():
                logger.warning("지역 탐색: 마감 시간 초과, %d회차에서 중단", pass_no)
                break

            improved = False
            for i in range(len(sheets)):
                for j in range(i + 1, len(sheets)):
                    if self._improve_pair(sheets, i, j, panel_area, context):
                        improved = True
                        touched.update((i, j))

            if not improved:
                logger.debug("지역 탐색: %d회차에서 개선 없음, 종료", pass_no + 1)
                break

        # 교환된 원판의 자유 공간 재계산
        for idx in touched:
            sheets[idx]['free_spaces'] = rebuild_free_spaces(sheets[idx]['pieces'], context.panel, context.kerf)

        return sheets

    def _improve_pair(self, sheets, i, j, panel_area, context):
        """두 원판 사이의 개선 교환을 모두 적용, 하나라도 적용했으면 True"""
        improved = False

        for k in range(len(sheets[i]['pieces'])):
            for m in range(len(sheets[j]['pieces'])):
                first, second = sheets[i]['pieces'], sheets[j]['pieces']
                a, b = first[k], second[m]

                used_i, used_j = used_area(first), used_area(second)
                a_area, b_area = a['width'] * a['height'], b['width'] * b['height']
                before = (used_i / panel_area) ** 2 + (used_j / panel_area) ** 2
                after = (
                    ((used_i - a_area + b_area) / panel_area) ** 2 +
                    ((used_j - b_area + a_area) / panel_area) ** 2
                )
                if after <= before + EPS:
                    continue

                moved_a = {**a, 'x': b['x'], 'y': b['y'], 'sheet': j}
                moved_b = {**b, 'x': a['x'], 'y': a['y'], 'sheet': i}
                if not (in_bounds(moved_a, context.panel) and in_bounds(moved_b, context.panel)):
                    continue
                if not is_clear(moved_a, second[:m] + second[m + 1:], context.kerf):
                    continue
                if not is_clear(moved_b, first[:k] + first[k + 1:], context.kerf):
                    continue

                # 새 리스트로 교체 (기존 배치 객체는 변경하지 않음)
                sheets[i] = {**sheets[i], 'pieces': first[:k] + [moved_b] + first[k + 1:]}
                sheets[j] = {**sheets[j], 'pieces': second[:m] + [moved_a] + second[m + 1:]}
                improved = True

        return improved
