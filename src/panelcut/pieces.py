"""조각 전처리 - 수량 확장과 우선순위 정렬"""

from __future__ import annotations

from .models import Piece


def expand_pieces(pieces: list[Piece]) -> list[dict]:
    """조각을 개별 아이템으로 확장

    같은 id의 조각이라도 인스턴스마다 고유한 key("<id>#<n>")를 붙여
    미배치 조각 집계 시 구분할 수 있게 한다.

    Args:
        pieces: Piece 목록 (quantity >= 1)

    Returns:
        수량 1짜리 조각 dict 목록 (입력 순서 유지)
    """
    all_pieces: list[dict] = []
    for piece in pieces:
        for i in range(piece.quantity):
            all_pieces.append({
                'id': piece.id,
                'key': f"{piece.id}#{i + 1}",
                'width': piece.width,
                'height': piece.height,
                'area': piece.width * piece.height,
                'can_rotate': piece.can_rotate,
                'priority': piece.priority,
                'label': piece.label,
                'source': piece,
            })

    # 서로 다른 입력 조각이 같은 id를 쓰는 경우에도 key 유일성 보장
    seen: dict[str, int] = {}
    for unit in all_pieces:
        key = unit['key']
        if key in seen:
            seen[key] += 1
            unit['key'] = f"{key}.{seen[key]}"
        else:
            seen[key] = 0

    return all_pieces


def sort_by_priority(pieces: list[dict]) -> list[dict]:
    """우선순위 내림차순, 면적 내림차순 안정 정렬 (동점은 입력 순서)"""
    return sorted(pieces, key=lambda p: (-p['priority'], -p['area']))


def sort_by_area(pieces: list[dict]) -> list[dict]:
    """면적 내림차순 안정 정렬"""
    return sorted(pieces, key=lambda p: -p['area'])


def to_unused_piece(unit: dict) -> Piece:
    """미배치 조각을 수량 1짜리 Piece로 변환"""
    return unit['source'].model_copy(update={'quantity': 1})
