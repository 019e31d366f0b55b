"""
Beam Search 전략 - 상위 k개 배치 후보 유지하며 최적 경로 탐색
"""

import logging

from ..errors import ExecutionError
from ..packing import PackingStrategy, area, fits, make_placement, new_sheet, with_placement
from ..pieces import sort_by_priority

logger = logging.getLogger(__name__)


class BeamSearchPacker(PackingStrategy):
    """전략 2: Beam Search - 상위 k개 배치 후보 유지

    각 후보(빔)는 원판들, 남은 조각 큐, 이월된 미배치 조각, 점수(배치 면적 합)를
    가진다. 후보는 변경하지 않고 항상 새 후보를 만들어 형제 후보끼리 상태를
    공유하지 않는다.

    어떤 열린 원판에도 들어가지 않는 조각은 빈 원판에 들어가면 새 원판을 열고,
    그렇지 않으면 그 후보의 미배치 목록으로 정확히 한 번 이월된다.
    """

    name = 'beam_search_guillotine'
    description = '속도와 품질의 균형을 맞춘 Beam Search Guillotine 알고리즘'
    supports_rotation = True
    supports_multi_sheet = True
    estimated_time = 500

    def __init__(self, beam_width=10):
        self.beam_width = beam_width

    def pack(self, pieces, context):
        all_pieces = sort_by_priority(pieces)

        logger.debug("Beam Search: beam width=%d, 조각 %d개", self.beam_width, len(all_pieces))

        # 초기 빔: 원판 없음
        beams = [{
            'sheets': [],
            'remaining': tuple(all_pieces),
            'deferred': (),
            'score': 0,
        }]

        depth = 0
        while beams and any(beam['remaining'] for beam in beams):
            if context.deadline.expired():
                logger.warning("Beam Search: 마감 시간 초과, 깊이 %d에서 중단", depth)
                break

            next_beams = []
            for beam in beams:
                if not beam['remaining']:
                    next_beams.append(beam)
                    continue
                next_beams.extend(self._expand(beam, context))

            # 상위 beam_width개만 유지
            next_beams.sort(key=self._rank)
            beams = next_beams[:self.beam_width]
            depth += 1

        if not beams:
            raise ExecutionError("Beam Search: 유효한 배치 후보가 없습니다")

        best = min(beams, key=self._rank)
        unused = list(best['deferred']) + list(best['remaining'])
        return best['sheets'], unused

    def _expand(self, beam, context):
        """다음 조각을 모든 자유 공간/방향에 배치한 자식 후보 생성"""
        piece = beam['remaining'][0]
        rest = beam['remaining'][1:]
        kerf = context.kerf
        children = []

        for sheet in beam['sheets']:
            for space in sheet['free_spaces']:
                for rotated in self.orientations(piece):
                    w, h = (piece['height'], piece['width']) if rotated else (piece['width'], piece['height'])
                    if not fits(space, w, h):
                        continue
                    placement = make_placement(piece, space.x, space.y, rotated, sheet['index'])
                    sheets = list(beam['sheets'])
                    sheets[sheet['index']] = with_placement(sheet, placement, kerf)
                    children.append(self._child(beam, sheets, rest, piece))

        if children:
            return children

        # 새 원판 시작 옵션
        if self.fits_empty_panel(piece, context.panel):
            empty = new_sheet(len(beam['sheets']), context.panel)
            space = empty['free_spaces'][0]
            for rotated in self.orientations(piece):
                w, h = (piece['height'], piece['width']) if rotated else (piece['width'], piece['height'])
                if fits(space, w, h):
                    placement = make_placement(piece, 0, 0, rotated, empty['index'])
                    sheets = beam['sheets'] + [with_placement(empty, placement, kerf)]
                    children.append(self._child(beam, sheets, rest, piece))
            return children

        # 배치 불가: 미배치 목록으로 한 번만 이월
        return [{
            'sheets': beam['sheets'],
            'remaining': rest,
            'deferred': beam['deferred'] + (piece,),
            'score': beam['score'],
        }]

    def _child(self, beam, sheets, rest, piece):
        return {
            'sheets': sheets,
            'remaining': rest,
            'deferred': beam['deferred'],
            'score': beam['score'] + piece['area'],
        }

    def _rank(self, beam):
        """정렬 키 (작을수록 좋음): 점수 높은 순, 원판 적은 순, 가장 큰 자유 공간 큰 순"""
        largest_free = max(
            (area(space) for sheet in beam['sheets'] for space in sheet['free_spaces']),
            default=0,
        )
        return (-beam['score'], len(beam['sheets']), -largest_free)
