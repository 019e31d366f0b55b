#!/usr/bin/env python3
"""대화형 재단 최적화 CLI"""

import random

from .errors import OptimizationError
from .manager import AlgorithmManager, run_optimization
from .models import OptimizationRequest, Panel, Piece, Settings
from .visualizer import visualize_result

SAMPLE_PIECES = [
    Piece(id='A', width=800, height=310, quantity=2, can_rotate=True),
    Piece(id='B', width=644, height=310, quantity=3, can_rotate=True),
    Piece(id='C', width=371, height=270, quantity=4, can_rotate=True),
    Piece(id='D', width=369, height=640, quantity=2, can_rotate=True),
]


def get_number_input(prompt: str, default: float | None = None, allow_zero: bool = False) -> float | None:
    """숫자 입력을 받는 헬퍼 함수

    Args:
        prompt: 사용자에게 보여줄 프롬프트 메시지
        default: 기본값 (None이면 필수 입력)
        allow_zero: 0 허용 여부

    Returns:
        입력받은 숫자, 또는 에러 시 None
    """
    user_input = input(prompt).strip()

    # 빈 입력 처리
    if user_input == "":
        if default is not None:
            return default
        print("❌ 오류: 값을 입력해주세요.")
        return None

    try:
        value = float(user_input)
    except ValueError:
        print("❌ 오류: 숫자를 입력해주세요.")
        return None

    if value < 0 or (value == 0 and not allow_zero):
        print("❌ 오류: 양수를 입력해주세요." if not allow_zero else "❌ 오류: 0 이상을 입력해주세요.")
        return None
    return value


def choose_algorithm(manager: AlgorithmManager) -> str | None:
    """전략 선택 (빈 입력이면 기본 전략)"""
    names = manager.names()
    print("\n사용 가능한 전략:")
    for i, info in enumerate(manager.metadata(), start=1):
        print(f"  {i}. {info['name']} - {info['description']}")

    user_input = input(f"전략 번호 (기본값 1: {manager.default_name}): ").strip()
    if user_input == "":
        return manager.default_name
    if user_input.isdigit() and 1 <= int(user_input) <= len(names):
        return names[int(user_input) - 1]
    print("⚠️  잘못된 선택, 기본 전략을 사용합니다.")
    return manager.default_name


def print_summary(result):
    """결과 요약 출력"""
    print(f"\n{'='*60}")
    print(f"전략: {result.algorithm} ({result.execution_time:.0f}ms)")
    print(f"사용 원판: {result.sheet_count}장")
    print(f"배치된 조각: {len(result.placed_pieces)}개, 미배치: {len(result.unused_pieces)}개")
    print(f"사용률: {result.efficiency * 100:.1f}% "
          f"(사용 {result.used_area:,.0f} / 전체 {result.total_area:,.0f}, 낭비 {result.wasted_area:,.0f})")

    for sheet in range(result.sheet_count):
        cuts = [c for c in result.cuts if c.sheet_number == sheet]
        print(f"\n원판 {sheet + 1} 절단 순서:")
        for cut in cuts:
            direction = "수평" if cut.type == 'horizontal' else "수직"
            print(f"  {cut.order:2d}. {direction} {cut.position:6.1f}mm "
                  f"({cut.x1:.0f},{cut.y1:.0f} → {cut.x2:.0f},{cut.y2:.0f})")

    if result.unused_pieces:
        print("\n⚠️  배치하지 못한 조각:")
        for piece in result.unused_pieces:
            print(f"  - {piece.id} {piece.width:g}×{piece.height:g}")


def run_interactive(config):
    """대화형 CLI 실행"""
    print("="*60)
    print("원판 재단 최적화 - Guillotine Cut")
    print("="*60)

    # 원판 크기 입력
    panel_width = get_number_input("원판 너비 (mm, 기본값 2440): ", default=2440)
    if panel_width is None:
        return 1

    panel_height = get_number_input("원판 높이 (mm, 기본값 1220): ", default=1220)
    if panel_height is None:
        return 1

    print(f"✓ 원판 크기: {panel_width:g}×{panel_height:g}mm")

    # 톱날 두께 입력
    kerf = get_number_input("톱날 두께 (kerf, mm, 기본값 5): ", default=5, allow_zero=True)
    if kerf is None:
        return 1
    print(f"✓ 톱날 두께: {kerf:g}mm")

    # 회전 허용 여부
    rotation_input = input("조각 회전 허용? (y/n, 기본값 y): ").strip().lower() or "y"
    allow_rotation = rotation_input in ("y", "yes", "예", "")

    if allow_rotation:
        print("✓ 회전 허용 (결이 없는 재질)")
    else:
        print("✓ 회전 금지 (결이 있는 재질)")

    manager = AlgorithmManager.with_defaults(config)
    algorithm = choose_algorithm(manager)

    request = OptimizationRequest(
        pieces=[p.model_copy(update={'can_rotate': allow_rotation}) for p in SAMPLE_PIECES],
        panels=[Panel(width=panel_width, height=panel_height)],
        settings=Settings(kerf=kerf),
        algorithm=algorithm,
    )

    rng = random.Random(config.seed) if config.seed is not None else None
    try:
        result = run_optimization(request, manager=manager, rng=rng)
    except OptimizationError as e:
        print(f"❌ 오류: {e}")
        return 1

    print_summary(result)
    visualize_result(result, request.panels[0], show=True)
    return 0
