from codetranslator.scanner import (
    LiteralSpan,
    blank_literals,
    extract_tokens,
    inside_spans,
    scan_literals,
    split_segments,
)


def test_scan_literals_handles_escapes_and_quote_kinds():
    line = "x = \"a\\\"b\" + 'c'"
    assert scan_literals(line) == [LiteralSpan(4, 10), LiteralSpan(13, 16)]


def test_other_quote_kinds_do_not_close_a_literal():
    line = "`it's \"fine\"` + 1"
    assert scan_literals(line) == [LiteralSpan(0, 13)]


def test_unterminated_literal_produces_no_span():
    assert scan_literals('اطبع("مرحبا') == []


def test_escape_outside_literal_skips_next_char():
    assert scan_literals('\\"abc') == []


def test_split_segments_keeps_delimiters_in_literal():
    line = 'اطبع("س") + ص'
    segments = split_segments(line, scan_literals(line))
    assert [(s.text, s.is_literal) for s in segments] == [
        ("اطبع(", False),
        ('"س"', True),
        (") + ص", False),
    ]
    assert "".join(s.text for s in segments) == line


def test_blank_literals_keeps_length():
    line = 'f("(") {'
    blanked = blank_literals(line, scan_literals(line))
    assert len(blanked) == len(line)
    assert blanked == "f(   ) {"


def test_inside_spans_overlap():
    spans = [LiteralSpan(5, 10)]
    assert inside_spans(6, 8, spans)
    assert inside_spans(9, 12, spans)
    assert not inside_spans(0, 5, spans)
    assert not inside_spans(10, 12, spans)


def test_extract_tokens_positions_and_underscores():
    tokens = extract_tokens("متغير غير_محدد = ___ + x1", offset=3)
    assert [(t.text, t.start, t.end) for t in tokens] == [
        ("متغير", 3, 8),
        ("غير_محدد", 9, 17),
    ]
