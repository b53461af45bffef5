import json

import yaml

from analyzer import GlobalKind
from collector import Occurrence, OriginTags
from emitter import EmitOptions, emit_dump, emit_report, load_dump, write_output


def _sample():
    return {
        "shared": [
            Occurrence("a/ext-one.js", GlobalKind.CONST, "const shared = 1;", OriginTags(toolkit=True, parent=True)),
            Occurrence("b/ext-two.js", GlobalKind.VAR, "var shared;", OriginTags(browser=True, child=True)),
        ],
        "alpha": [
            Occurrence("a/ext-one.js", GlobalKind.FUNCTION, "function alpha() {}", OriginTags(toolkit=True, parent=True)),
        ],
    }


def test_emit_dump_keeps_insertion_order():
    result = emit_dump(_sample())
    assert result.entries == 2
    assert result.source.endswith("\n")
    payload = json.loads(result.source)
    assert list(payload) == ["shared", "alpha"]
    assert payload["shared"][1] == {
        "filepath": "b/ext-two.js",
        "kind": "var",
        "metadata": {"toolkit": False, "browser": True, "mobile": False, "parent": False, "child": True},
        "jscode": "var shared;",
    }


def test_emit_dump_sorted_and_indented():
    result = emit_dump(_sample(), EmitOptions(indent=2, sort_keys=True, trailing_newline=False))
    assert not result.source.endswith("\n")
    assert list(json.loads(result.source)) == ["alpha", "shared"]
    assert '\n  "alpha"' in result.source


def test_emit_report_is_yaml_per_name():
    result = emit_report(_sample())
    data = yaml.safe_load(result.source)
    assert list(data) == ["shared", "alpha"]
    assert data["alpha"][0]["jscode"] == "function alpha() {}"


def test_emit_report_empty():
    assert emit_report({}).source == ""


def test_write_and_load_dump(tmp_path):
    output = write_output(emit_dump(_sample()), tmp_path / "public" / "latest-dump.json")
    assert output.exists()
    loaded = load_dump(output)
    assert loaded["alpha"][0]["kind"] == "function"


def test_report_accepts_loaded_dicts(tmp_path):
    output = write_output(emit_dump(_sample()), tmp_path / "dump.json")
    data = yaml.safe_load(emit_report(load_dump(output)).source)
    assert data["shared"][0]["filepath"] == "a/ext-one.js"
