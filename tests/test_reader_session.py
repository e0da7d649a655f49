import pyperclip
import pytest

from quire.config import ReaderConfig
from quire.core.annotations import AnnotationFilter, AnnotationKind
from quire.core.errors import DocumentOpenError
from quire.core.layout import ImageRow, TextLine
from quire.core.navigation import Direction
from quire.core.session import ReaderSession


@pytest.fixture
def session(config, epub_path):
    reader = ReaderSession(config)
    reader.open_book(epub_path)
    yield reader
    reader.close_book()


def test_open_book_enters_first_unit(session):
    assert session.unit_index == 0
    assert session.navigation.cursor == (0, 0)
    lines = session.navigation.lines
    assert lines[0] == TextLine("Opening")
    assert sum(isinstance(line, ImageRow) for line in lines) == 20
    assert len(session.images) == 1
    assert session.metadata() == ("Test Book", "Ada Writer")


def test_failed_open_keeps_current_book(session, tmp_path):
    bad = tmp_path / "bad.epub"
    bad.write_bytes(b"garbage")
    with pytest.raises(DocumentOpenError):
        session.open_book(str(bad))
    assert session.is_open
    assert session.metadata() == ("Test Book", "Ada Writer")


def test_unit_navigation_stops_at_ends(session):
    assert not session.prev_unit()
    for expected in (1, 2, 3):
        assert session.next_unit()
        assert session.unit_index == expected
    assert not session.next_unit()
    assert session.unit_index == 3


def test_jump_to_toc(session):
    assert session.jump_to_toc(2)
    assert session.unit_index == 2
    assert session.navigation.lines[0] == TextLine("Alpha beta gamma delta.")
    assert not session.jump_to_toc(10)


def test_margin_change_rebuilds_and_resets_cursor(session):
    session.jump_to_toc(2)
    before = list(session.navigation.lines)
    session.navigation.jump_to(2, 1)

    assert session.adjust_margin(1) == 3
    assert session.navigation.cursor == (0, 0)
    assert session.navigation.lines == before

    assert session.adjust_margin(100) == 20
    assert session.adjust_margin(-100) == 0


def test_spacing_is_clamped(session):
    assert session.adjust_spacing(2) == 2
    assert session.adjust_spacing(10) == 5
    assert session.adjust_spacing(-10) == 0
    assert session.navigation.cursor == (0, 0)


def test_quick_highlight_uses_word_under_cursor(session):
    session.jump_to_toc(2)
    session.navigation.jump_to(0, 1)
    annotation = session.add_quick_annotation()

    assert annotation.content == "beta"
    assert (annotation.start_line, annotation.start_word, annotation.end_line, annotation.end_word) == (0, 1, 0, 1)
    assert session.annotation_at(0, 1).id == annotation.id
    assert session.annotation_at(0, 2) is None


def test_quick_annotation_uses_selection(session):
    session.jump_to_toc(2)
    nav = session.navigation
    nav.jump_to(0, 1)
    nav.enter_selection()
    nav.move_cursor(Direction.RIGHT, 20)

    annotation = session.add_quick_annotation(AnnotationKind.QUESTION)
    assert annotation.content == "beta gamma"
    assert annotation.kind is AnnotationKind.QUESTION
    assert not nav.has_selection


def test_quick_annotation_on_empty_line_does_nothing(session):
    session.jump_to_toc(2)
    session.navigation.jump_to(1, 0)
    assert session.add_quick_annotation() is None


def test_note_without_selection_covers_whole_line(session):
    session.jump_to_toc(2)
    session.navigation.jump_to(2, 0)
    annotation = session.add_note("remember this")

    assert annotation.kind is AnnotationKind.SUMMARY
    assert annotation.content == "Second line here."
    assert annotation.note == "remember this"
    assert (annotation.start_line, annotation.start_word, annotation.end_line, annotation.end_word) == (2, 0, 2, 2)


def test_jump_to_annotation_in_same_unit_only_repositions(session):
    session.jump_to_toc(2)
    session.navigation.jump_to(2, 1)
    session.add_quick_annotation()
    session.navigation.jump_to(0, 0)

    loaded = []
    session.unit_loaded.connect(lambda index: loaded.append(index))
    session.open_annotation_list()
    assert session.jump_to_annotation()

    assert loaded == []
    assert session.navigation.cursor == (2, 1)


def test_jump_to_annotation_in_other_unit_switches_unit(session):
    session.jump_to_toc(2)
    session.navigation.jump_to(2, 1)
    session.add_quick_annotation()
    session.jump_to_toc(0)

    loaded = []
    session.unit_loaded.connect(lambda index: loaded.append(index))
    session.open_annotation_list()
    assert session.jump_to_annotation()

    assert loaded == [2]
    assert session.unit_index == 2
    assert session.navigation.cursor == (2, 1)
    assert session.navigation.viewport_top == 2


def test_annotation_filter(session):
    session.jump_to_toc(2)
    session.navigation.jump_to(0, 0)
    session.add_quick_annotation(AnnotationKind.HIGHLIGHT)
    session.navigation.jump_to(2, 0)
    session.add_quick_annotation(AnnotationKind.QUESTION)

    assert len(session.open_annotation_list()) == 2
    questions = session.set_annotation_filter(AnnotationFilter.QUESTIONS)
    assert [ann.content for ann in questions] == ["Second"]


def test_progress_is_resumed(config, epub_path):
    first = ReaderSession(config)
    first.open_book(epub_path)
    first.jump_to_toc(2)
    first.navigation.scroll_viewport(1)
    first.navigation.scroll_viewport(1)
    assert first.navigation.words_read == 4
    first.close_book()

    second = ReaderSession(config)
    second.open_book(epub_path)
    assert second.unit_index == 2
    assert second.navigation.line == 2
    assert second.navigation.words_read == 4
    assert second.daily_progress() == (4, 1500)
    second.close_book()


def test_auto_resume_can_be_disabled(tmp_path, epub_path):
    config = ReaderConfig(data_dir=str(tmp_path / "data"), auto_resume=False)
    first = ReaderSession(config)
    first.open_book(epub_path)
    first.jump_to_toc(2)
    first.close_book()

    second = ReaderSession(config)
    second.open_book(epub_path)
    assert second.unit_index == 0
    second.close_book()


def test_reading_stats(session):
    now = [1000.0]
    session._clock = lambda: now[0]
    session._start_time = 1000.0
    assert session.reading_stats() == (0, 0.0)

    session.jump_to_toc(2)
    session.navigation.scroll_viewport(1)
    now[0] += 120.0
    words, wpm = session.reading_stats()
    assert words == 4
    assert wpm == pytest.approx(2.0)


def test_copy_selection(session, monkeypatch):
    copied = []
    monkeypatch.setattr(pyperclip, "copy", copied.append)

    assert not session.copy_selection()

    session.jump_to_toc(2)
    nav = session.navigation
    nav.enter_selection()
    nav.move_cursor(Direction.RIGHT, 20)
    assert session.copy_selection()
    assert copied == ["Alpha beta"]


def test_copy_without_clipboard_reports_failure(session, monkeypatch):
    def no_clipboard(text):
        raise pyperclip.PyperclipException("no clipboard mechanism")

    monkeypatch.setattr(pyperclip, "copy", no_clipboard)
    session.navigation.enter_selection()
    assert not session.copy_selection()


def test_search_and_jump(session):
    assert session.search("GAP") == 2
    result = session.next_search_result()
    assert (result.unit_index, result.line_index) == (1, 0)
    assert session.jump_to_search_result()
    assert session.unit_index == 1
    assert session.navigation.line == 0

    result = session.next_search_result()
    assert result.text == "After the gap."
    assert session.previous_search_result().line_index == 0


def test_background_unit_load_is_applied_on_poll(session):
    worker = session.request_unit(2, start=False)
    worker.run()

    applied = session.poll()
    assert [result.topic for result in applied] == ["unit"]
    assert session.unit_index == 2
    assert session.navigation.cursor == (0, 0)


def test_stale_background_load_is_dropped(session):
    worker = session.request_unit(1, start=False)
    session.load_unit(3)
    worker.run()

    assert session.poll() == []
    assert session.unit_index == 3


def test_background_search_results_are_adopted(session):
    worker = session.request_search("alpha", start=False)
    worker.run()
    session.poll()
    assert session.search_engine.get_result_count() == 1
    assert session.search_engine.current_search_term == "alpha"


def test_export_annotations(session, tmp_path):
    session.jump_to_toc(2)
    session.add_note("first words")
    path = session.export_annotations(str(tmp_path))

    assert path.endswith("notes_test_book.md")
    with open(path, encoding="utf-8") as f:
        text = f.read()
    assert "### Chapter 3" in text
    assert "**Note:** first words" in text


def test_close_book_resets_state(config, epub_path):
    session = ReaderSession(config)
    session.open_book(epub_path)
    session.close_book()
    assert not session.is_open
    assert session.navigation.lines == []
    assert not session.load_unit(0)
    assert session.reading_stats() == (0, 0.0)


def test_background_search_uses_session_text_width(tmp_path, long_paragraph_epub):
    config = ReaderConfig(data_dir=str(tmp_path / "data"), text_width=40)
    session = ReaderSession(config)
    session.open_book(long_paragraph_epub)

    assert session.search("needle") == 1
    expected_line = session.next_search_result().line_index
    assert expected_line > 2

    session.search_engine.clear_search()
    worker = session.request_search("needle", start=False)
    worker.run()
    session.poll()

    result = session.next_search_result()
    assert result.line_index == expected_line
    assert session.jump_to_search_result()
    assert "needle" in session.navigation.current_line_text()
    session.close_book()


def test_unit_changes_are_saved_without_closing(config, epub_path):
    first = ReaderSession(config)
    first.open_book(epub_path)
    first.next_unit()
    first.next_unit()
    first.navigation.scroll_viewport(1)
    first.prev_unit()
    first.next_unit()

    second = ReaderSession(config)
    second.open_book(epub_path)
    assert second.unit_index == 2
    assert second.navigation.words_read == first.navigation.words_read
    second.close_book()
