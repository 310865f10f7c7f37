from app.state import CharState
from core.run_log import SealedRun, TypedEntry
from services.replay import (
    CORRECT, CORRECTION_ERROR, EOL_GLYPH, ERROR, SPACE_GLYPH, Segment,
    build_replay, build_word_maps, display_char, group_tries,
)

OK, BAD = int(CharState.CORRECT), int(CharState.ERROR)


def typed(source, steps):
    """steps: (index, typed_char) in the order they were typed."""
    out = []
    for seq, (index, ch) in enumerate(steps, start=1):
        src = source[index - 1]
        state = OK if ch == src else BAD
        out.append(TypedEntry(seq, index, ch, src, 0, 0, state, float(seq), seq))
    return SealedRun(0.0, 1.0, tuple(reversed(out)))


def test_word_maps():
    maps = build_word_maps("cat dog\nowl")
    assert maps.words == ["cat", "dog", "owl"]
    assert maps.word_at(1) == "cat"
    assert maps.word_at(4) is None
    assert maps.word_at(9) == "owl"


def test_display_char_glyphs():
    def e(t, s):
        return TypedEntry(1, 1, t, s, 0, 0, OK, 0.0, 1)
    assert display_char(e("\n", "\n")) == EOL_GLYPH + "\n"
    assert display_char(e(" ", "\n")) == SPACE_GLYPH + EOL_GLYPH + "\n"
    assert display_char(e("x", "\n")) == "x" + EOL_GLYPH + "\n"
    assert display_char(e(" ", "a")) == SPACE_GLYPH
    assert display_char(e("\n", "a")) == EOL_GLYPH
    assert display_char(e(" ", " ")) == " "


def test_clean_run_reproduces_the_source():
    source = "cat dog"
    replay = build_replay(typed(source, list(enumerate(source, start=1))), source)
    assert replay.body() == source
    assert all(s.style == CORRECT for s in replay.segments)
    assert replay.mistyped_words == []
    assert replay.hard_transitions == []
    assert replay.plain_text() == "\ncat dog\n"


def test_correction_is_shown_after_the_settled_char():
    source = "cat dog"
    steps = [(1, "x"), (1, "c")] + [(i, source[i - 1]) for i in range(2, 8)]
    replay = build_replay(typed(source, steps), source)
    assert replay.segments[0].text == "c"
    assert replay.segments[0].style == CORRECT
    assert replay.segments[1].text == "x"
    assert replay.segments[1].style == CORRECTION_ERROR
    assert replay.body() == "cxat dog"
    assert replay.mistyped_words == ["cat"]
    assert replay.hard_transitions == []


def test_uncorrected_error_mines_word_and_transition():
    source = "cat dog"
    steps = [(1, "c"), (2, "a"), (3, "x")]
    replay = build_replay(typed(source, steps), source)
    assert replay.segments[-1] == Segment("x", ERROR)
    assert replay.mistyped_words == ["cat"]
    assert replay.hard_transitions == ["at"]


def test_no_transition_near_the_start_or_across_spaces():
    source = "cat dog"
    replay = build_replay(typed(source, [(2, "x"), (4, "x"), (5, "x")]), source)
    assert replay.hard_transitions == []
    # whitespace errors do not name a word
    assert replay.mistyped_words == ["cat", "dog"]


def test_skipped_span_is_spliced_from_the_source():
    source = "cat dog"
    steps = [(1, "c"), (2, "a"), (3, "t"), (5, "d"), (6, "o"), (7, "g")]
    replay = build_replay(typed(source, steps), source)
    assert replay.body() == "cat dog"
    gap = [s for s in replay.segments if s.style is None]
    assert [s.text for s in gap] == [" "]


def test_backtracking_does_not_repeat_text():
    source = "abcd"
    steps = [(1, "a"), (2, "b"), (3, "x"), (3, "c"), (4, "d")]
    groups = group_tries(typed(source, steps).entries_chronological())
    assert [len(g) for g in groups] == [1, 1, 2, 1]
    replay = build_replay(typed(source, steps), source)
    assert replay.body() == "abcxd"


def test_html_escapes_and_styles():
    source = "a<b"
    replay = build_replay(typed(source, [(1, "a"), (2, "x"), (3, "b")]), source)
    html = replay.to_html()
    assert "&lt;" not in html           # the wrong char was shown, not the source
    assert "text-decoration" not in html
    assert html.startswith("<br>") and html.endswith("<br>")
    assert "#ef4444" in html
