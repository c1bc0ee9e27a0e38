"""Tests for puzzle gate evaluation."""

from scrollgate.config import GateConfig
from scrollgate.gate import GateEvaluator
from scrollgate.parser import PageParser

PUZZLE_PAGE = "<inputbox>{q}</inputbox>\n{\nq = {\nanswer = \"1\"\n}\n}\n"


class TestIsBlocked:
    def test_puzzle_out_of_view(self, pages, make_layout):
        gate = GateEvaluator()
        assert gate.is_blocked(pages, set(), make_layout(offset=1000)) is False

    def test_puzzle_in_view(self, pages, make_layout):
        gate = GateEvaluator()
        layout = make_layout(offset=2000)
        assert gate.is_blocked(pages, set(), layout) is True
        assert gate.blocking_page(pages, set(), layout).index == 2

    def test_viewport_edge_touching_is_not_blocking(self, pages, make_layout):
        # viewport bottom 2600 meets puzzle top 2600 exactly
        assert GateEvaluator().is_blocked(pages, set(), make_layout(offset=1800)) is False

    def test_tolerance_absorbs_small_overlap(self, pages, make_layout):
        layout = make_layout(offset=1815)  # viewport bottom overlaps puzzle by 15
        assert GateEvaluator(GateConfig(tolerance=10)).is_blocked(pages, set(), layout) is True
        assert GateEvaluator(GateConfig(tolerance=20)).is_blocked(pages, set(), layout) is False

    def test_completed_puzzle_never_blocks(self, pages, make_layout):
        gate = GateEvaluator()
        for offset in range(0, 3201, 100):
            assert gate.is_blocked(pages, {2}, make_layout(offset=offset)) is False

    def test_page_span_fallback(self, pages, make_layout):
        gate = GateEvaluator()
        layout = make_layout(offset=1500, puzzles={})
        # Page 2 spans 2000-3000 and the viewport reaches 2300
        assert gate.is_blocked(pages, set(), layout) is True

    def test_no_geometry_not_blocking(self, pages, make_layout):
        layout = make_layout(offset=2000, count=2, puzzles={})
        assert GateEvaluator().is_blocked(pages, set(), layout) is False

    def test_lowest_index_reported_first(self, make_layout):
        parser = PageParser()
        two_puzzles = [parser.parse(PUZZLE_PAGE, 1), parser.parse(PUZZLE_PAGE, 0)]
        layout = make_layout(offset=300, page_height=500, puzzles={0: (400, 450), 1: (100, 150)})
        assert GateEvaluator().blocking_page(two_puzzles, set(), layout).index == 0
        assert GateEvaluator().blocking_page(two_puzzles, {0}, layout).index == 1

    def test_does_not_mutate_inputs(self, pages, make_layout):
        before = [p.model_copy(deep=True) for p in pages]
        completed = {0}
        GateEvaluator().is_blocked(pages, completed, make_layout(offset=2000))
        assert pages == before
        assert completed == {0}


class TestBlockingPageBetween:
    def test_jump_over_puzzle_is_caught(self, pages, make_layout):
        gate = GateEvaluator()
        layout = make_layout(offset=0)
        assert gate.is_blocked(pages, set(), layout.at(3200)) is False
        assert gate.blocking_page_between(pages, set(), layout, 3200).index == 2

    def test_move_short_of_puzzle(self, pages, make_layout):
        gate = GateEvaluator()
        assert gate.blocking_page_between(pages, set(), make_layout(offset=1000), 1800) is None

    def test_solved_puzzle_not_reported(self, pages, make_layout):
        gate = GateEvaluator()
        assert gate.blocking_page_between(pages, {2}, make_layout(offset=0), 3200) is None


class TestFindSafePosition:
    def test_already_safe(self, pages, make_layout):
        layout = make_layout()
        assert GateEvaluator().find_safe_position(1000, layout, pages, set()) == 1000

    def test_steps_back_until_puzzle_leaves_view(self, pages, make_layout):
        # Puzzle box moved up to 2400-2500 by a reflow
        layout = make_layout(puzzles={2: (400, 500)})
        safe = GateEvaluator().find_safe_position(1700, layout, pages, set())
        assert safe == 1610
        assert GateEvaluator().is_blocked(pages, set(), layout.at(safe)) is False

    def test_falls_back_to_zero(self, make_layout):
        pages = [PageParser().parse(PUZZLE_PAGE, 0)]
        layout = make_layout(count=1, viewport_height=800, page_height=2000, puzzles={0: (0, 100)})
        assert GateEvaluator().find_safe_position(50, layout, pages, set()) == 0
