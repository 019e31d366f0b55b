"""First-Fit-Decreasing 전략 - 면적 큰 조각부터 최소 낭비 자유 공간에 배치"""

from ..packing import PackingStrategy, fits, make_placement, new_sheet, with_placement
from ..pieces import sort_by_area, sort_by_priority


class FirstFitDecreasingPacker(PackingStrategy):
    """전략 1: First-Fit-Decreasing (회전 미지원, 다중 원판)

    백트래킹 없는 결정적 탐욕 배치. 열린 원판 전체에서 낭비
    (freeW - w) * (freeH - h)가 가장 작은 자유 공간을 고른다.
    """

    name = 'first_fit_decreasing'
    description = '회전 없이 빠르게 배치하는 First-Fit-Decreasing 탐욕 알고리즘'
    supports_rotation = False
    supports_multi_sheet = True
    estimated_time = 100

    def pack(self, pieces, context):
        all_pieces = sort_by_area(sort_by_priority(pieces))
        panel = context.panel

        sheets = []
        unused = []

        for piece in all_pieces:
            placement = self._find_best_fit(sheets, piece)

            if placement:
                sheet_idx, space = placement
            elif self.fits_empty_panel(piece, panel):
                sheets.append(new_sheet(len(sheets), panel))
                sheet_idx, space = len(sheets) - 1, sheets[-1]['free_spaces'][0]
            else:
                # 빈 원판에도 들어가지 않는 조각
                unused.append(piece)
                continue

            placed = make_placement(piece, space.x, space.y, False, sheet_idx)
            sheets[sheet_idx] = with_placement(sheets[sheet_idx], placed, context.kerf)

        return sheets, unused

    def _find_best_fit(self, sheets, piece):
        """모든 열린 원판에서 최소 낭비 자유 공간 찾기 (동점이면 먼저 찾은 것)"""
        w, h = piece['width'], piece['height']
        best = None
        best_waste = float('inf')

        for sheet in sheets:
            for space in sheet['free_spaces']:
                if not fits(space, w, h):
                    continue
                waste = (space.width - w) * (space.height - h)
                if waste < best_waste:
                    best_waste = waste
                    best = (sheet['index'], space)

        return best
