import pytest

from quire.core.layout import ImageRow, TextLine
from quire.core.navigation import Direction, NavigationModel, SelectionRange

from conftest import text_lines


@pytest.fixture
def nav():
    return NavigationModel()


def test_right_past_last_word_lands_on_empty_line(nav):
    nav.set_buffer(text_lines("a b c", "", "d"))
    nav.jump_to(0, 2)
    nav.move_cursor(Direction.RIGHT, 10)
    assert nav.cursor == (1, 0)


def test_left_past_first_word_lands_on_previous_last_word(nav):
    nav.set_buffer(text_lines("a b c", "", "d"))
    nav.jump_to(1, 0)
    nav.move_cursor(Direction.LEFT, 10)
    assert nav.cursor == (0, 2)

    nav.jump_to(2, 0)
    nav.move_cursor(Direction.LEFT, 10)
    assert nav.cursor == (1, 0)


def test_horizontal_moves_stop_at_buffer_ends(nav):
    nav.set_buffer(text_lines("a b"))
    nav.move_cursor(Direction.LEFT, 10)
    assert nav.cursor == (0, 0)
    nav.jump_to(0, 1)
    nav.move_cursor(Direction.RIGHT, 10)
    assert nav.cursor == (0, 1)


@pytest.mark.parametrize("line", [1, 2, 3])
def test_down_then_up_returns_to_line(nav, line):
    nav.set_buffer(text_lines("one two", "three", "", "four five six", "seven"))
    nav.jump_to(line, 0)
    nav.move_cursor(Direction.DOWN, 3)
    nav.move_cursor(Direction.UP, 3)
    assert nav.line == line


def test_vertical_move_reclamps_word(nav):
    nav.set_buffer(text_lines("one two three", "x", "", "a b c d"))
    nav.jump_to(0, 2)
    nav.move_cursor(Direction.DOWN, 10)
    assert nav.cursor == (1, 0)
    nav.move_cursor(Direction.DOWN, 10)
    assert nav.cursor == (2, 0)


def test_vertical_moves_clamp_to_bounds(nav):
    nav.set_buffer(text_lines("a", "b"))
    nav.move_cursor(Direction.UP, 10)
    assert nav.cursor == (0, 0)
    nav.move_cursor(Direction.DOWN, 10)
    nav.move_cursor(Direction.DOWN, 10)
    assert nav.cursor == (1, 0)


def test_cursor_moves_auto_scroll_with_margin(nav):
    nav.set_buffer(text_lines(*["line"] * 20))
    for _ in range(3):
        nav.move_cursor(Direction.DOWN, 5)
    assert nav.line == 3
    assert nav.viewport_top == 1

    for _ in range(3):
        nav.move_cursor(Direction.UP, 5)
    assert nav.viewport_top == 0


def test_scroll_down_counts_words_and_drags_cursor(nav):
    nav.set_buffer(text_lines("a b", "c d e", "f"))
    nav.scroll_viewport(1)
    assert nav.viewport_top == 1
    assert nav.words_read == 2
    assert nav.cursor == (1, 0)

    nav.scroll_viewport(1)
    assert nav.words_read == 5
    nav.scroll_viewport(1)
    assert nav.viewport_top == 2
    assert nav.words_read == 5

    nav.scroll_viewport(-1)
    assert nav.viewport_top == 1
    assert nav.words_read == 5


def test_image_is_atomic_for_horizontal_moves(nav):
    lines = [TextLine("x y")] + [ImageRow(0, row) for row in range(5)] + [TextLine("z")]
    nav.set_buffer(lines)

    nav.jump_to(0, 1)
    nav.move_cursor(Direction.RIGHT, 40)
    assert nav.cursor == (1, 0)

    nav.jump_to(3, 0)
    nav.move_cursor(Direction.RIGHT, 40)
    assert nav.cursor == (6, 0)

    nav.move_cursor(Direction.LEFT, 40)
    assert nav.cursor == (1, 0)
    nav.move_cursor(Direction.LEFT, 40)
    assert nav.cursor == (0, 1)


def test_adjacent_images_are_separate(nav):
    lines = [ImageRow(0, 0), ImageRow(0, 1), ImageRow(1, 0), ImageRow(1, 1)]
    nav.set_buffer(lines)
    nav.move_cursor(Direction.RIGHT, 40)
    assert nav.cursor == (2, 0)


def test_active_range_is_ordered(nav):
    nav.set_buffer(text_lines("a b c", "d e f"))
    nav.jump_to(1, 1)
    nav.enter_selection()
    nav.move_cursor(Direction.UP, 10)
    nav.move_cursor(Direction.LEFT, 10)
    assert nav.active_range() == SelectionRange(0, 0, 1, 1)

    nav.exit_selection()
    assert nav.active_range() is None


def test_selected_text_single_line(nav):
    nav.set_buffer(text_lines("alpha beta gamma delta"))
    nav.jump_to(0, 1)
    nav.enter_selection()
    nav.move_cursor(Direction.RIGHT, 10)
    assert nav.selected_text() == "beta gamma"


def test_selected_text_spans_lines_and_skips_images(nav):
    lines = text_lines("a b c", "d  e") + [ImageRow(0, 0)] + text_lines("f g h")
    nav.set_buffer(lines)
    nav.jump_to(0, 1)
    nav.enter_selection()
    for _ in range(3):
        nav.move_cursor(Direction.DOWN, 10)
    nav.move_cursor(Direction.RIGHT, 10)
    assert nav.cursor == (3, 1)
    assert nav.selected_text() == "b c d e f g"


def test_set_buffer_clamps_position(nav):
    nav.set_buffer(text_lines("a b", "c"), line=99, word=99)
    assert nav.cursor == (1, 0)
    assert nav.viewport_top == 1


def test_revalidate_after_buffer_shrinks(nav):
    nav.set_buffer(text_lines("a b c", "d e f", "g"))
    nav.jump_to(1, 2)
    nav.enter_selection()
    nav.lines = text_lines("only")
    nav.revalidate()
    assert nav.cursor == (0, 0)
    assert nav.anchor == (0, 0)


def test_word_and_line_accessors(nav):
    nav.set_buffer(text_lines("hello world") + [ImageRow(0, 0)])
    nav.jump_to(0, 1)
    assert nav.word_under_cursor() == "world"
    assert nav.current_line_text() == "hello world"
    nav.jump_to(1, 0)
    assert nav.word_under_cursor() is None
    assert nav.current_line_text() is None


def test_signals_are_emitted(nav):
    moved = []
    nav.cursor_moved.connect(lambda line, word: moved.append((line, word)))
    nav.set_buffer(text_lines("a b"))
    nav.move_cursor(Direction.RIGHT, 10)
    assert moved[-1] == (0, 1)


def test_empty_buffer_is_safe(nav):
    nav.set_buffer([])
    nav.move_cursor(Direction.DOWN, 10)
    nav.scroll_viewport(1)
    assert nav.cursor == (0, 0)
    assert nav.selected_text() == ""
