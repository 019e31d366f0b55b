"""시각화 모듈"""

import logging
import platform

import matplotlib.pyplot as plt
import matplotlib.patches as patches
from matplotlib.patches import Rectangle as MPLRect
from matplotlib import font_manager

logger = logging.getLogger(__name__)


def setup_korean_font():
    """한글 폰트 설정"""
    system = platform.system()
    if system == 'Darwin':
        fonts = ['AppleGothic', 'AppleSDGothicNeo', 'Nanum Gothic']
    elif system == 'Windows':
        fonts = ['Malgun Gothic', 'NanumGothic', 'Gulim']
    else:
        fonts = ['NanumGothic', 'Noto Sans CJK KR', 'UnDotum']

    available_fonts = [f.name for f in font_manager.fontManager.ttflist]
    for font in fonts:
        if font in available_fonts:
            plt.rcParams['font.family'] = font
            logger.debug("폰트 설정: %s", font)
            break
    else:
        logger.debug("한글 폰트를 찾지 못했습니다")
    plt.rcParams['axes.unicode_minus'] = False


def visualize_result(result, panel, output_path='panelcut_layout.png', show=False):
    """최적화 결과 시각화

    Args:
        result: PlacementResult
        panel: 사용한 원판 (Panel)
        output_path: 저장할 이미지 경로 (None이면 저장 안 함)
        show: True면 창으로 표시

    Returns:
        matplotlib Figure, 원판이 없으면 None
    """
    if result.sheet_count == 0:
        logger.info("배치된 원판이 없어 시각화를 생략합니다")
        return None

    setup_korean_font()

    # 색상 (조각 id별)
    piece_types = sorted({p.id for p in result.placed_pieces})
    colors = {ptype: plt.cm.Set3(i / max(len(piece_types), 1))
              for i, ptype in enumerate(piece_types)}

    fig, axes = plt.subplots(1, result.sheet_count, figsize=(10 * result.sheet_count, 5))
    if result.sheet_count == 1:
        axes = [axes]

    for sheet_idx, ax in enumerate(axes):
        ax.add_patch(MPLRect((0, 0), panel.width, panel.height,
                             fill=False, edgecolor='black', linewidth=2))

        sheet_pieces = [p for p in result.placed_pieces if p.sheet_number == sheet_idx]
        used = 0
        for piece in sheet_pieces:
            ax.add_patch(MPLRect((piece.x, piece.y), piece.width, piece.height,
                                 linewidth=1, edgecolor='black',
                                 facecolor=colors[piece.id], alpha=0.7))

            label = piece.label or piece.id
            label += f"\n{piece.width:g}×{piece.height:g}"
            if piece.rotated:
                label += "\n(회전)"
            ax.text(piece.x + piece.width / 2, piece.y + piece.height / 2, label,
                    ha='center', va='center', fontsize=8, fontweight='bold')
            used += piece.width * piece.height

        # 절단선 - 영역 내에서만
        sheet_cuts = [c for c in result.cuts if c.sheet_number == sheet_idx]
        for cut in sheet_cuts:
            style, color = ('r-', 'red') if cut.type == 'horizontal' else ('b-', 'blue')
            ax.plot([cut.x1, cut.x2], [cut.y1, cut.y2], style, linewidth=2.5, alpha=0.8)
            ax.text((cut.x1 + cut.x2) / 2, (cut.y1 + cut.y2) / 2, str(cut.order),
                    ha='center', va='center', fontsize=9, fontweight='bold', color=color,
                    bbox=dict(boxstyle='circle,pad=0.3', facecolor='white',
                              edgecolor=color, linewidth=1.5))

        usage = used / panel.area * 100
        ax.set_xlim(0, panel.width)
        ax.set_ylim(0, panel.height)
        ax.set_aspect('equal')
        ax.set_xlabel('가로 (mm)')
        ax.set_ylabel('세로 (mm)')
        ax.set_title(f'원판 {sheet_idx + 1} ({panel.width:g}×{panel.height:g})\n'
                     f'사용률: {usage:.1f}% | 절단: {len(sheet_cuts)}회',
                     fontsize=12, fontweight='bold')
        ax.grid(True, alpha=0.3)

    legend_elements = [patches.Patch(facecolor=colors[ptype], alpha=0.7,
                                     edgecolor='black', label=ptype)
                       for ptype in piece_types]
    if legend_elements:
        fig.legend(handles=legend_elements, loc='upper center',
                   bbox_to_anchor=(0.5, 0.98), ncol=len(legend_elements))

    fig.suptitle(f'{result.algorithm} - 전체 사용률 {result.efficiency * 100:.1f}%', y=1.02)
    fig.tight_layout()

    if output_path:
        fig.savefig(output_path, dpi=150, bbox_inches='tight')
        logger.info("시각화 파일 저장: %s", output_path)
    if show:
        plt.show()

    return fig
