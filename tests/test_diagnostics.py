from codetranslator.diagnostics import (
    CODE_UNMATCHED_PAREN,
    CODE_UNRESOLVED_TOKEN,
    SEVERITY_STRUCTURAL,
    DiagnosticCollector,
    Finding,
    Marker,
    compute_markers,
    merge_markers,
    render_line_html,
    unmatched_open_positions,
)


def test_finding_to_dict_and_format():
    finding = Finding(3, "msg", "اسم")
    assert finding.to_dict() == {
        "line": 3,
        "message": "msg",
        "token": "اسم",
        "severity": "unresolved",
        "code": CODE_UNRESOLVED_TOKEN,
    }
    assert finding.format("ar") == "السطر 3: msg"
    assert finding.format("en") == "Line 3: msg"


def test_markers_respect_token_boundaries():
    line = "متغير اسم = الاسم"
    markers = compute_markers(line, [Finding(1, "m", "اسم")])
    assert markers == [Marker(6, 9, "m")]


def test_markers_skip_literals():
    line = 'اسم = "اسم"'
    assert compute_markers(line, [Finding(1, "m", "اسم")]) == [Marker(0, 3, "m")]


def test_markers_for_every_occurrence():
    line = "س + س"
    assert compute_markers(line, [Finding(1, "m", "س")]) == [Marker(0, 1, "m"), Marker(4, 5, "m")]


def test_unclosed_paren_markers_skip_literals():
    line = 'f("(", (x'
    finding = Finding(1, "p", "(", severity=SEVERITY_STRUCTURAL, code=CODE_UNMATCHED_PAREN)
    assert compute_markers(line, [finding]) == [Marker(1, 2, "p"), Marker(7, 8, "p")]


def test_merge_markers_drops_overlaps():
    merged = merge_markers([Marker(5, 6, "c"), Marker(2, 4, "b"), Marker(0, 5, "a")])
    assert merged == [Marker(0, 5, "a"), Marker(5, 6, "c")]


def test_render_line_html_escapes():
    html = render_line_html("a<b", [Marker(2, 3, 'x"y')])
    assert html == 'a&lt;<span class="error-token" title="x&quot;y">b</span>'


def test_collector_groups_and_renders():
    collector = DiagnosticCollector()
    collector.add(Finding(2, "m", "س"))
    collector.extend([Finding(2, "m", "س"), Finding(1, "p", "(", code=CODE_UNMATCHED_PAREN)])
    assert len(collector) == 3
    assert len(collector.for_line(2)) == 2
    assert collector.summary() == {CODE_UNRESOLVED_TOKEN: 2, CODE_UNMATCHED_PAREN: 1}

    html = collector.render_highlight_html("f(\nس = 1")
    first, second = html.split("\n")
    assert first == 'f<span class="error-token" title="p">(</span>'
    # doppelte Befunde ergeben nur eine Markierung
    assert second.count("error-token") == 1

    collector.reset()
    assert collector.findings == []


def test_balanced_brackets_are_not_marked():
    line = "f(a) + g("
    finding = Finding(1, "p", "(", severity=SEVERITY_STRUCTURAL, code=CODE_UNMATCHED_PAREN)
    assert compute_markers(line, [finding]) == [Marker(8, 9, "p")]
    assert render_line_html(line, compute_markers(line, [finding])).count("error-token") == 1


def test_unmatched_open_positions():
    assert unmatched_open_positions("{ } {", "{", "}") == [4]
    assert unmatched_open_positions("(()", "(", ")") == [0]
    assert unmatched_open_positions(")(", "(", ")") == [1]
