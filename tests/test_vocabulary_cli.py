import json

import pytest

from vocabulary import cli


def test_validate_ok(tmp_path, capsys):
    path = tmp_path / "v.json"
    path.write_text(json.dumps({"متغير": "let"}, ensure_ascii=False), encoding="utf-8")
    cli.main(["validate", str(path)])
    assert f"Vocabulary '{path}' OK" in capsys.readouterr().out


def test_validate_rejects_bad_entry(tmp_path):
    path = tmp_path / "v.json"
    path.write_text(json.dumps({"ـــ": "x"}, ensure_ascii=False), encoding="utf-8")
    with pytest.raises(SystemExit) as exc:
        cli.main(["validate", str(path)])
    assert "invalid vocabulary" in str(exc.value)


def test_stats_counts_collisions(tmp_path, capsys):
    path = tmp_path / "v.json"
    path.write_text(json.dumps({"إرجاع": "return", "ارجاع": "return", "دالة": "function"}, ensure_ascii=False), encoding="utf-8")
    cli.main(["stats", str(path)])
    out = capsys.readouterr().out.splitlines()
    assert out == ["Entries: 3", "Keys: 2", "Collisions: 1"]


def test_export_to_stdout(tmp_path, capsys):
    path = tmp_path / "v.json"
    path.write_text(json.dumps({"متغير": "let"}, ensure_ascii=False), encoding="utf-8")
    cli.main(["export", str(path)])
    assert capsys.readouterr().out == "متغير: let\n"


def test_build_from_word_list(tmp_path, capsys):
    words = tmp_path / "words.json"
    words.write_text(
        json.dumps([{"ar": "مرحبا", "en": "Hello"}, {"ar": "مرحبا", "en": "Hi"}], ensure_ascii=False),
        encoding="utf-8",
    )
    out = tmp_path / "flat.json"
    cli.main(["build", str(words), "--output", str(out)])
    assert json.loads(out.read_text(encoding="utf-8")) == {"مرحبا": "Hello"}
    assert "1 entries ->" in capsys.readouterr().out


def test_build_rejects_non_list(tmp_path):
    words = tmp_path / "words.json"
    words.write_text("{}", encoding="utf-8")
    with pytest.raises(SystemExit):
        cli.main(["build", str(words), "--output", str(tmp_path / "x.json")])
