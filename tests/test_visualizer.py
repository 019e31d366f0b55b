"""배치 시각화 및 대화형 입력 헬퍼 테스트"""
import matplotlib.pyplot as plt

from panelcut.interactive import choose_algorithm, get_number_input
from panelcut.models import Panel, Piece, Settings
from panelcut.pieces import expand_pieces
from panelcut.strategies import FirstFitDecreasingPacker
from panelcut.visualizer import visualize_result


class TestVisualizer:

    def test_saves_image(self, tmp_path):
        panel = Panel(width=150, height=100)
        result = FirstFitDecreasingPacker().execute(
            expand_pieces([Piece(id='sq', width=100, height=100, quantity=2, label='선반')]), [panel], Settings()
        )
        output = tmp_path / "layout.png"
        fig = visualize_result(result, panel, output_path=str(output))
        try:
            assert output.exists()
            assert len(fig.axes) == 2
        finally:
            plt.close(fig)

    def test_no_sheets_no_figure(self, tmp_path):
        panel = Panel(width=100, height=100)
        result = FirstFitDecreasingPacker().execute(
            expand_pieces([Piece(id='x', width=200, height=200)]), [panel], Settings()
        )
        output = tmp_path / "layout.png"
        assert visualize_result(result, panel, output_path=str(output)) is None
        assert not output.exists()


class TestInteractiveHelpers:

    def test_default_on_empty_input(self, monkeypatch):
        monkeypatch.setattr('builtins.input', lambda prompt: '')
        assert get_number_input("? ", default=2440) == 2440

    def test_rejects_zero_unless_allowed(self, monkeypatch):
        monkeypatch.setattr('builtins.input', lambda prompt: '0')
        assert get_number_input("? ") is None
        assert get_number_input("? ", allow_zero=True) == 0

    def test_rejects_text(self, monkeypatch):
        monkeypatch.setattr('builtins.input', lambda prompt: 'abc')
        assert get_number_input("? ", default=1) is None

    def test_choose_algorithm_by_number(self, monkeypatch, manager):
        monkeypatch.setattr('builtins.input', lambda prompt: '3')
        assert choose_algorithm(manager) == 'first_fit_decreasing'

    def test_choose_algorithm_default(self, monkeypatch, manager):
        monkeypatch.setattr('builtins.input', lambda prompt: '99')
        assert choose_algorithm(manager) == manager.default_name
