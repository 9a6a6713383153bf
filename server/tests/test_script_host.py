from pathlib import Path

import pytest

from scriptlens.services.script_host import ScriptHost, StaleDocumentError, is_tsx_file
from scriptlens.services.worker import ScriptWorker


@pytest.fixture
def host():
    return ScriptHost(allow_filesystem=False)


def test_versions_bump_when_omitted(host):
    first = host.open_document("a.ts", "let a = 1;")
    second = host.open_document("a.ts", "let a = 2;")

    assert first.version == 1
    assert second.version == 2
    assert host.script_version("a.ts") == 2
    assert host.get_document("a.ts").text == "let a = 2;"


def test_stale_version_is_rejected(host):
    host.open_document("a.ts", "let a = 1;", version=5)

    with pytest.raises(StaleDocumentError) as excinfo:
        host.open_document("a.ts", "let a = 0;", version=4)

    assert excinfo.value.current == 5
    assert excinfo.value.received == 4
    assert host.get_document("a.ts").text == "let a = 1;"


def test_same_version_same_text_is_a_no_op(host):
    original = host.open_document("a.ts", "let a = 1;", version=3)
    again = host.open_document("a.ts", "let a = 1;", version=3)

    assert again is original


def test_tree_is_cached_per_version(host):
    host.open_document("a.ts", "class A {}")
    host.resolve_tree("a.ts")
    cached = host._trees["a.ts"]

    host.resolve_tree("a.ts")
    assert host._trees["a.ts"] is cached

    host.open_document("a.ts", "class B {}")
    root = host.resolve_tree("a.ts")
    assert host._trees["a.ts"] is not cached
    assert "class B" in root.text.decode("utf-8")


def test_close_document(host):
    host.open_document("a.ts", "let a = 1;")

    assert host.close_document("a.ts") is True
    assert host.close_document("a.ts") is False
    assert host.resolve_tree("a.ts") is None
    assert host.script_file_names() == []


def test_script_file_names_are_sorted(host):
    host.open_document("b.ts", "")
    host.open_document("a.ts", "")

    assert host.script_file_names() == ["a.ts", "b.ts"]


def test_unknown_file_resolves_to_none(host):
    assert host.resolve_tree("nowhere.ts") is None


def test_filesystem_fallback(tmp_path: Path):
    script = tmp_path / "widget.ts"
    script.write_text("class Widget { render() {} }\n", encoding="utf-8")

    enabled = ScriptHost(allow_filesystem=True)
    disabled = ScriptHost(allow_filesystem=False)

    root = enabled.resolve_tree(str(script))
    assert root is not None
    assert root.type == "program"
    assert disabled.resolve_tree(str(script)) is None


def test_filesystem_fallback_ignores_unsupported_suffixes(tmp_path: Path):
    notes = tmp_path / "notes.md"
    notes.write_text("# class Foo {}\n", encoding="utf-8")

    assert ScriptHost(allow_filesystem=True).resolve_tree(str(notes)) is None


def test_open_documents_shadow_disk(tmp_path: Path):
    script = tmp_path / "widget.ts"
    script.write_text("class FromDisk {}\n", encoding="utf-8")

    host = ScriptHost(allow_filesystem=True)
    host.open_document(str(script), "class FromEditor {}\n")

    outline = ScriptWorker(host).build_outline(str(script))
    assert [t.name for t in outline] == ["FromEditor"]


def test_syntax_errors_are_reported(host):
    host.open_document("ok.ts", "const a = 1;")
    host.open_document("broken.ts", "const = ;")

    assert host.has_syntax_errors("ok.ts") is False
    assert host.has_syntax_errors("broken.ts") is True


def test_tsx_detection():
    assert is_tsx_file("App.tsx")
    assert is_tsx_file("legacy.jsx")
    assert is_tsx_file("script.js")
    assert is_tsx_file("worker.mjs")
    assert is_tsx_file("config.cjs")
    assert not is_tsx_file("service.ts")
    assert not is_tsx_file("esm.mts")
    assert not is_tsx_file("common.cts")


def test_worker_returns_empty_results_for_unknown_files(host):
    worker = ScriptWorker(host)

    assert worker.build_outline("missing.ts") == []
    assert worker.extract_references("missing.ts", ["Things", "Users"]) == {
        "Things": set(),
        "Users": set(),
    }
