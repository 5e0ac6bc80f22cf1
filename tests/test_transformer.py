import asyncio
from types import MappingProxyType

import pytest

from codetranslator.diagnostics import CODE_UNMATCHED_BRACE, CODE_UNMATCHED_PAREN, CODE_UNRESOLVED_TOKEN
from codetranslator.resolver import ResolverResult
from codetranslator.settings import TranslatorSettings
from codetranslator.transformer import CodeTransformer, escape_for_literal, normalize_identifier
from vocabulary.models import LookupTables
from vocabulary.storage import load_default_tables


class FakeResolver:
    name = "fake"

    def __init__(self, answers=None):
        self.answers = answers or {}
        self.calls = []

    async def resolve(self, word, context_hint=False):
        self.calls.append((word, context_hint))
        if word in self.answers:
            return ResolverResult(self.answers[word], True)
        return ResolverResult(word, False, "unknown")


class ExplodingResolver:
    name = "boom"

    async def resolve(self, word, context_hint=False):
        raise RuntimeError("network down")


@pytest.fixture(scope="module")
def tables():
    return load_default_tables()


def _run(transformer, text):
    return asyncio.run(transformer.transform_document(text))


def test_unknown_identifier_stays_and_is_reported(tables):
    result = _run(CodeTransformer(tables), 'متغير اسم = "أحمد"')
    assert result.text == 'let اسم = "أحمد"'
    assert len(result.findings) == 1
    finding = result.findings[0]
    assert finding.line == 1
    assert finding.token == "اسم"
    assert finding.code == CODE_UNRESOLVED_TOKEN
    assert finding.message == "كلمة غير معروفة في JavaScript: اسم"
    assert result.ready is False


def test_marked_word_inside_string_is_translated(tables):
    result = _run(CodeTransformer(tables), 'اطبع("ZمرحباZ")')
    assert result.text == 'console.log("Hello")'
    assert result.findings == []
    assert result.ready is True


def test_unmarked_string_content_is_left_alone(tables):
    resolver = FakeResolver({"مرحبا": "hi"})
    result = _run(CodeTransformer(tables, resolver), "اطبع('مرحبا يا عالم')")
    assert result.text == "console.log('مرحبا يا عالم')"
    assert result.findings == []
    assert resolver.calls == []


def test_external_translation_becomes_identifier(tables):
    resolver = FakeResolver({"اسم": " First Name "})
    result = _run(CodeTransformer(tables, resolver), 'متغير اسم = "أحمد"')
    assert result.text == 'let first_name = "أحمد"'
    assert result.findings == []
    assert resolver.calls == [("اسم", True)]


def test_marked_literal_keeps_translated_text(tables):
    resolver = FakeResolver({"قطة": " The Cat "})
    result = _run(CodeTransformer(tables, resolver), 'اطبع("ZقطةZ!")')
    assert result.text == 'console.log("The Cat!")'
    assert resolver.calls == [("قطة", False)]


def test_unresolved_marked_word_drops_markers_and_reports(tables):
    result = _run(CodeTransformer(tables), 'اطبع("ZقطةZ")')
    assert result.text == 'console.log("قطة")'
    assert [f.token for f in result.findings] == ["قطة"]


def test_each_token_is_resolved_once_per_document(tables):
    resolver = FakeResolver({"اسم": "name"})
    result = _run(CodeTransformer(tables, resolver), "اسم\nاسم + اسم")
    assert result.text == "name\nname + name"
    assert resolver.calls == [("اسم", True)]


def test_one_finding_per_unresolved_occurrence(tables):
    result = _run(CodeTransformer(tables), "س + س")
    assert [(f.line, f.token) for f in result.findings] == [(1, "س"), (1, "س")]


def test_failing_resolver_keeps_token(tables):
    result = _run(CodeTransformer(tables, ExplodingResolver()), "متغير س = 1")
    assert result.text == "let س = 1"
    assert [f.token for f in result.findings] == ["س"]


def test_result_with_arabic_letters_counts_as_failure(tables):
    resolver = FakeResolver({"س": "سين"})
    result = _run(CodeTransformer(tables, resolver), "س")
    assert result.text == "س"
    assert len(result.findings) == 1


def test_stoplist_words_are_neither_translated_nor_reported(tables):
    resolver = FakeResolver()
    result = _run(CodeTransformer(tables, resolver), "هو هي في")
    assert result.text == "هو هي في"
    assert result.findings == []
    assert resolver.calls == []


def test_tables_win_over_stoplist(tables):
    result = _run(CodeTransformer(tables), "استيراد س من 'x'")
    assert result.text == "import س from 'x'"


def test_free_identifiers_win_over_reserved():
    tables = LookupTables(
        free=MappingProxyType({"متغير": "myVar"}),
        reserved=MappingProxyType({"متغير": "let"}),
    )
    result = _run(CodeTransformer(tables), "متغير")
    assert result.text == "myVar"


def test_spelling_variants_hit_the_same_entry(tables):
    result = _run(CodeTransformer(tables), "ارجاع صحيح")
    assert result.text == "return true"


def test_markers_around_code_tokens_are_removed(tables):
    result = _run(CodeTransformer(tables), "ZثابتZ x = غير_محدد")
    assert result.text == "const x = undefined"


def test_non_arabic_text_is_unchanged(tables):
    text = 'const x = 1;\nconsole.log("done", x);'
    result = _run(CodeTransformer(tables), text)
    assert result.text == text
    assert result.ready


def test_findings_ordered_by_line_tokens_first(tables):
    result = _run(CodeTransformer(tables), "دالة س() {\nاطبع(ص")
    assert result.text == "function س() {\nconsole.log(ص"
    assert [(f.line, f.code) for f in result.findings] == [
        (1, CODE_UNRESOLVED_TOKEN),
        (1, CODE_UNMATCHED_BRACE),
        (2, CODE_UNRESOLVED_TOKEN),
        (2, CODE_UNMATCHED_PAREN),
    ]


def test_brace_closed_later_is_not_reported(tables):
    result = _run(CodeTransformer(tables), "إذا (صحيح) {\n  اطبع(1)\n}")
    assert result.text == "if (true) {\n  console.log(1)\n}"
    assert result.findings == []


def test_transform_line_checks_its_own_brackets(tables):
    transformer = CodeTransformer(tables)
    line_result = asyncio.run(transformer.transform_line("إذا (س > 1) {", line_number=5))
    assert line_result.text == "if (س > 1) {"
    assert [(f.line, f.code) for f in line_result.findings] == [
        (5, CODE_UNRESOLVED_TOKEN),
        (5, CODE_UNMATCHED_BRACE),
    ]


@pytest.mark.parametrize(
    "text",
    ["", "\n\n", '"unterminated', "\\", "___", "Z_Z", "ZZ", "((((", "}}}{", "\t\r\n", "ـــ", "َ"],
)
def test_transform_is_total(tables, text):
    result = _run(CodeTransformer(tables, ExplodingResolver()), text)
    assert result.text.count("\n") == text.count("\n")


def test_transform_is_deterministic(tables):
    transformer = CodeTransformer(tables, FakeResolver({"اسم": "name"}))
    text = 'متغير اسم = "ZمرحباZ"\nاطبع(اسم, س'
    first = _run(transformer, text)
    second = _run(transformer, text)
    assert first.text == second.text
    assert first.findings == second.findings


def test_english_messages(tables):
    settings = TranslatorSettings(message_lang="en")
    result = _run(CodeTransformer(tables, settings=settings), "متغير اسم")
    assert result.findings[0].message == "Unknown word in JavaScript: اسم"


def test_custom_wrapper_char(tables):
    settings = TranslatorSettings(wrapper_char="#")
    result = _run(CodeTransformer(tables, settings=settings), 'اطبع("#مرحبا# ZالعالمZ")')
    assert result.text == 'console.log("Hello ZالعالمZ")'


def test_to_dict_and_highlight(tables):
    result = CodeTransformer(tables).transform_document_sync('متغير اسم = "اسم"')
    data = result.to_dict()
    assert set(data) == {"transformedText", "findings", "ready"}
    assert data["findings"][0]["token"] == "اسم"
    html = result.highlight_html()
    # nur das Code-Vorkommen wird markiert, nicht das im String
    assert html.count('class="error-token"') == 1
    assert html.startswith("متغير <span")


def test_normalize_identifier():
    assert normalize_identifier("  First   Name ") == "first_name"
    assert normalize_identifier("Total") == "total"


def test_translation_inside_literal_is_escaped(tables):
    resolver = FakeResolver({"قطة": 'it"s'})
    result = _run(CodeTransformer(tables, resolver), 'اطبع("ZقطةZ")')
    assert result.text == 'console.log("it\\"s")'
    # die Ausgabe ist wieder genau ein geschlossener String
    assert result.text.count('"') - result.text.count('\\"') == 2


def test_backslash_and_other_quotes_inside_literal(tables):
    resolver = FakeResolver({"قطة": "a\\b 'c'"})
    result = _run(CodeTransformer(tables, resolver), "اطبع('ZقطةZ', \"ZقطةZ\")")
    assert result.text == "console.log('a\\\\b \\'c\\'', \"a\\\\b 'c'\")"


def test_escape_for_literal():
    assert escape_for_literal('say "hi"', '"') == 'say \\"hi\\"'
    assert escape_for_literal("a`b", "`") == "a\\`b"
    assert escape_for_literal("plain", "'") == "plain"
