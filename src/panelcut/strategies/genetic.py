"""유전 알고리즘 배치 전략"""

import logging

from ..packing import (
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
from ..pieces import sort_by_priority

logger = logging.getLogger(__name__)


class GeneticPacker(PackingStrategy):
    """전략 4: 유전 알고리즘

    개체는 전체 배치 목록이다. 적합도 = 0.8 * 사용률 + 0.2 * (1 / 원판 수).

    세대마다 최고 개체를 그대로 넘기고(엘리트), 나머지는 토너먼트 선택 →
    단일점 교차 → 중복 제거 → 변이 → 검증/복구로 만든다.
    변이(위치 교환, 회전 반전, 위치 흔들기)는 기하 검사를 하지 않고, 변이가
    끝난 자식을 한 번 검증해 범위를 벗어나거나 겹치는 배치를 버린 뒤
    빠진 조각을 첫 번째 맞는 자유 공간에 다시 넣는다.
    """

    name = 'advanced_genetic_algorithm'
    description = '처리 시간이 길지만 최고 품질을 노리는 유전 알고리즘'
    supports_rotation = True
    supports_multi_sheet = True
    estimated_time = 5000

    swap_rate = 0.3
    rotation_rate = 0.1
    jitter_rate = 0.05
    jitter = 5
    cache_size = 4096

    def __init__(self, population_size=50, generations=100, tournament_size=3, early_stop_efficiency=0.95):
        self.population_size = population_size
        self.generations = generations
        self.tournament_size = tournament_size
        self.early_stop_efficiency = early_stop_efficiency

    def pack(self, pieces, context):
        all_pieces = sort_by_priority(pieces)
        placeable = [p for p in all_pieces if self.fits_empty_panel(p, context.panel)]
        unused = [p for p in all_pieces if not self.fits_empty_panel(p, context.panel)]

        if not placeable:
            return [], unused

        logger.debug("유전 알고리즘: 세대 %d개, 개체 %d개", self.generations, self.population_size)

        population = [
            self._evaluate(self._random_individual(placeable, context), context)
            for _ in range(self.population_size)
        ]

        # 자유 공간 재계산 캐시 (배치 좌표 -> 자유 공간), 이번 실행에서만 사용
        cache = {}

        for gen in range(self.generations):
            population.sort(key=lambda ind: ind['fitness'], reverse=True)
            best = population[0]

            if best['efficiency'] > self.early_stop_efficiency:
                logger.debug("세대 %d: 사용률 %.3f 달성, 조기 종료", gen + 1, best['efficiency'])
                break
            if context.deadline.expired():
                logger.warning("유전 알고리즘: 마감 시간 초과, 세대 %d에서 중단", gen + 1)
                break

            if (gen + 1) % 10 == 0:
                logger.debug("  세대 %d: 최고 적합도 %.4f", gen + 1, best['fitness'])

            population = self._evolve(population, placeable, context, cache)

        best = max(population, key=lambda ind: ind['fitness'])
        return self._to_sheets(best['placements'], context), unused

    def _random_individual(self, pieces, context):
        """우선순위 순서로 무작위 방향을 골라 첫 번째 맞는 공간에 배치"""
        sheets = []
        for piece in pieces:
            options = self.orientations(piece)
            if len(options) > 1 and context.rng.random() < 0.5:
                options = options[::-1]
            self._place_first_fit(sheets, piece, options, context)
        return [p for sheet in sheets for p in sheet['pieces']]

    def _place_first_fit(self, sheets, piece, options, context, cache=None):
        """열린 원판의 첫 번째 맞는 자유 공간에 배치, 없으면 새 원판"""
        for rotated in options:
            w, h = (piece['height'], piece['width']) if rotated else (piece['width'], piece['height'])
            for idx in range(len(sheets)):
                sheet = self._with_free_spaces(sheets, idx, context, cache)
                for space in sheet['free_spaces']:
                    if fits(space, w, h):
                        placement = make_placement(piece, space.x, space.y, rotated, idx)
                        sheets[idx] = with_placement(sheet, placement, context.kerf)
                        return

        sheet = new_sheet(len(sheets), context.panel)
        for rotated in options:
            w, h = (piece['height'], piece['width']) if rotated else (piece['width'], piece['height'])
            if fits(sheet['free_spaces'][0], w, h):
                placement = make_placement(piece, 0, 0, rotated, sheet['index'])
                sheets.append(with_placement(sheet, placement, context.kerf))
                return

    def _evaluate(self, placements, context):
        if not placements:
            return {'placements': placements, 'fitness': 0.0, 'efficiency': 0.0, 'sheet_count': 0}

        sheet_count = len({p['sheet'] for p in placements})
        efficiency = used_area(placements) / (context.panel.area * sheet_count)
        fitness = efficiency * 0.8 + (1 / sheet_count) * 0.2

        return {
            'placements': placements,
            'fitness': fitness,
            'efficiency': efficiency,
            'sheet_count': sheet_count,
        }

    def _evolve(self, population, pieces, context, cache):
        """다음 세대 생성 (population은 적합도 내림차순 정렬 상태)"""
        new_population = [population[0]]

        while len(new_population) < len(population):
            parent1 = self._select_parent(population, context.rng)
            parent2 = self._select_parent(population, context.rng)
            child = self._crossover(parent1['placements'], parent2['placements'], context.rng)
            child = self._remove_duplicates(child)
            child = self._mutate(child, context.rng)
            child = self._repair(child, pieces, context, cache)
            new_population.append(self._evaluate(child, context))

        return new_population

    def _select_parent(self, population, rng):
        """토너먼트 선택"""
        best = None
        for _ in range(self.tournament_size):
            candidate = rng.choice(population)
            if best is None or candidate['fitness'] > best['fitness']:
                best = candidate
        return best

    def _crossover(self, parent1, parent2, rng):
        """단일점 교차"""
        point = rng.randrange(len(parent1) + 1)
        return parent1[:point] + parent2[point:]

    def _remove_duplicates(self, placements):
        seen = set()
        unique = []
        for p in placements:
            if p['key'] in seen:
                continue
            seen.add(p['key'])
            unique.append(p)
        return unique

    def _mutate(self, placements, rng):
        """변이 - 새 배치 dict를 만들며 기하 검사는 하지 않음"""
        placements = list(placements)

        # 위치 교환
        if len(placements) > 1 and rng.random() < self.swap_rate:
            i, j = rng.sample(range(len(placements)), 2)
            a, b = placements[i], placements[j]
            placements[i] = {**a, 'x': b['x'], 'y': b['y'], 'sheet': b['sheet']}
            placements[j] = {**b, 'x': a['x'], 'y': a['y'], 'sheet': a['sheet']}

        # 회전 반전
        for i, p in enumerate(placements):
            if rng.random() < self.rotation_rate and self.can_rotate(p['piece']):
                placements[i] = {**p, 'rotated': not p['rotated'], 'width': p['height'], 'height': p['width']}

        # 위치 흔들기
        for i, p in enumerate(placements):
            if rng.random() < self.jitter_rate:
                placements[i] = {
                    **p,
                    'x': max(0, p['x'] + rng.uniform(-self.jitter, self.jitter)),
                    'y': max(0, p['y'] + rng.uniform(-self.jitter, self.jitter)),
                }

        return placements

    def _repair(self, placements, pieces, context, cache=None):
        """유효하지 않은 배치 제거 후 빠진 조각 재배치

        자유 공간은 빠진 조각을 넣을 때 살펴보는 원판에 대해서만 계산한다.
        """
        kept = {}
        for p in placements:
            if not in_bounds(p, context.panel):
                continue
            same_sheet = kept.setdefault(p['sheet'], [])
            if is_clear(p, same_sheet, context.kerf):
                same_sheet.append(p)

        # 원판 번호를 0부터 연속되게 재부여
        sheets = []
        for new_idx, old_idx in enumerate(sorted(idx for idx, ps in kept.items() if ps)):
            sheets.append({
                'index': new_idx,
                'pieces': [{**p, 'sheet': new_idx} for p in kept[old_idx]],
                'free_spaces': None,
            })

        present = {p['key'] for sheet in sheets for p in sheet['pieces']}
        for piece in pieces:
            if piece['key'] not in present:
                self._place_first_fit(sheets, piece, self.orientations(piece), context, cache)

        return [p for sheet in sheets for p in sheet['pieces']]

    def _with_free_spaces(self, sheets, idx, context, cache=None):
        """자유 공간이 아직 없는 원판이면 배치로부터 계산해 채운 원판 반환"""
        sheet = sheets[idx]
        if sheet['free_spaces'] is not None:
            return sheet

        signature = tuple((p['x'], p['y'], p['width'], p['height']) for p in sheet['pieces'])
        spaces = cache.get(signature) if cache is not None else None
        if spaces is None:
            spaces = rebuild_free_spaces(sheet['pieces'], context.panel, context.kerf)
            if cache is not None:
                if len(cache) >= self.cache_size:
                    cache.clear()
                cache[signature] = spaces

        sheet = sheets[idx] = {**sheet, 'free_spaces': spaces}
        return sheet

    def _to_sheets(self, placements, context):
        by_sheet = {}
        for p in placements:
            by_sheet.setdefault(p['sheet'], []).append(p)

        sheets = []
        for new_idx, old_idx in enumerate(sorted(by_sheet)):
            sheet_pieces = [{**p, 'sheet': new_idx} for p in by_sheet[old_idx]]
            sheets.append({
                'index': new_idx,
                'pieces': sheet_pieces,
                'free_spaces': rebuild_free_spaces(sheet_pieces, context.panel, context.kerf),
            })
        return sheets
