import json
import threading
from pathlib import Path

import pytest

from analyzer import DetectedGlobal, GlobalKind, UnsupportedPatternError
from collector import (
    DEFAULT_GROUPS,
    ConfigError,
    FileGroup,
    GlobalsIndex,
    Occurrence,
    OriginTags,
    collect_globals,
    enumerate_files,
    filter_collisions,
    groups_from_mapping,
    load_groups,
    search_globals,
)
from emitter import emit_dump
from parser import ParseError

TREE = Path(__file__).parent / "cases" / "tree"

PARENT_TOOLKIT = "toolkit/components/extensions/parent/ext-tabs-base.js"
CHILD_TOOLKIT = "toolkit/components/extensions/child/ext-runtime.js"
PARENT_BROWSER = "browser/components/extensions/parent/ext-browser.js"
MOBILE = "mobile/android/components/extensions/ext-android.js"


def _write(path: Path, text: str) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text, encoding="utf-8")


def test_origin_tags_follow_group():
    assert OriginTags.for_group("parent", "browser") == OriginTags(browser=True, parent=True)
    assert OriginTags.for_group("mobile", "mobile") == OriginTags(mobile=True)
    assert OriginTags.for_group("child", "toolkit").to_dict() == {
        "toolkit": True,
        "browser": False,
        "mobile": False,
        "parent": False,
        "child": True,
    }


def test_enumerate_files_deduplicates_in_group_order():
    targets = enumerate_files(TREE)
    assert [target.relpath for target in targets] == [
        PARENT_TOOLKIT,
        PARENT_BROWSER,
        CHILD_TOOLKIT,
        MOBILE,
    ]
    # Toolkit files keep the tags of the first group that matched them.
    assert targets[0].metadata == OriginTags(toolkit=True, parent=True)
    assert targets[2].metadata == OriginTags(toolkit=True, child=True)
    assert targets[3].metadata == OriginTags(mobile=True)


def test_collect_globals_aggregates_by_name():
    index = collect_globals(TREE, workers=4)

    shared = index.get("shared")
    assert [item.filepath for item in shared] == [PARENT_TOOLKIT, CHILD_TOOLKIT, MOBILE]
    assert [item.metadata for item in shared] == [
        OriginTags(toolkit=True, parent=True),
        OriginTags(toolkit=True, child=True),
        OriginTags(mobile=True),
    ]
    assert all(item.kind == GlobalKind.CONST for item in shared)

    assert index.get("getTabManager")[0].kind == GlobalKind.FUNCTION
    assert index.get("browserInit")[0].kind == GlobalKind.GLOBAL_THIS_ASSIGNMENT
    assert index.get("runtime")[0].jscode == "this.runtime = class extends ExtensionAPI {};"
    assert len(index.get("ExtensionParent")) == 2


def test_collect_globals_is_deterministic():
    first = emit_dump(collect_globals(TREE, workers=4).as_dict()).source
    second = emit_dump(collect_globals(TREE, workers=1).as_dict()).source
    assert first == second


def test_two_files_declaring_same_const(tmp_path):
    _write(tmp_path / "parent" / "ext-a.js", "const x = 1;\n")
    _write(tmp_path / "child" / "ext-b.js", "const x = 2;\n")
    groups = [
        FileGroup("parent", "toolkit", "parent/ext-*.js"),
        FileGroup("child", "browser", "child/ext-*.js"),
    ]

    index = collect_globals(tmp_path, groups)

    occurrences = index.get("x")
    assert len(occurrences) == 2
    assert occurrences[0].filepath == "parent/ext-a.js"
    assert occurrences[0].metadata == OriginTags(toolkit=True, parent=True)
    assert occurrences[0].jscode == "const x = 1;"
    assert occurrences[1].filepath == "child/ext-b.js"
    assert occurrences[1].metadata == OriginTags(browser=True, child=True)
    assert occurrences[1].jscode == "const x = 2;"


def test_unsupported_pattern_aborts_batch_without_touching_index(tmp_path):
    _write(tmp_path / "ext-a.js", "const kept = 1;\n")
    _write(tmp_path / "ext-b.js", "const [a, b] = pair;\n")
    index = GlobalsIndex()
    index.add("earlier", Occurrence("old.js", GlobalKind.VAR, "var earlier;", OriginTags()))

    with pytest.raises(UnsupportedPatternError) as excinfo:
        collect_globals(tmp_path, [FileGroup("parent", "toolkit", "ext-*.js")], index=index)

    assert excinfo.value.source_name == "ext-b.js"
    assert index.get("earlier")[0].filepath == "old.js"
    assert "a" not in index


def test_parse_error_propagates(tmp_path):
    _write(tmp_path / "ext-broken.js", "const = ;\n")
    with pytest.raises(ParseError):
        collect_globals(tmp_path, [FileGroup("child", "toolkit", "ext-*.js")])


def test_empty_tree_yields_empty_index(tmp_path):
    assert len(collect_globals(tmp_path)) == 0


def test_index_concurrent_appends():
    index = GlobalsIndex()
    detected = [DetectedGlobal("dup", GlobalKind.VAR, "var dup;", f"ext-{n}.js") for n in range(50)]

    def worker(items):
        for item in items:
            index.extend([item], metadata=OriginTags(parent=True))

    threads = [threading.Thread(target=worker, args=(detected[n::5],)) for n in range(5)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert len(index.get("dup")) == 50
    assert {item.filepath for item in index.get("dup")} == {f"ext-{n}.js" for n in range(50)}


def test_occurrence_dict_round_trip_accepts_legacy_kind():
    data = {
        "filepath": "ext-a.js",
        "kind": "globalThisAssignment",
        "jscode": "this.a = 1;",
        "metadata": {"toolkit": True, "parent": True},
    }
    occurrence = Occurrence.from_dict(data)
    assert occurrence.kind == GlobalKind.GLOBAL_THIS_ASSIGNMENT
    assert occurrence.to_dict()["kind"] == "global-this-assignment"
    assert occurrence.to_dict()["metadata"]["browser"] is False


def test_filter_collisions_skips_shared_imports():
    index = collect_globals(TREE)
    collisions = filter_collisions(index.as_dict())
    assert list(collisions) == ["shared"]


def test_search_globals_matches_name_path_or_code():
    index = collect_globals(TREE)
    by_path = search_globals(index.as_dict(), "android")
    assert list(by_path) == ["shared"]
    assert [item.filepath for item in by_path["shared"]] == [MOBILE]

    by_code = search_globals(index.as_dict(), "ExtensionAPI")
    assert list(by_code) == ["runtime"]

    everything = search_globals(index.as_dict(), None)
    assert list(everything) == sorted(everything)


def test_load_groups_from_yaml(tmp_path):
    config = tmp_path / "groups.yml"
    config.write_text(
        "parent:\n  toolkit: toolkit/components/extensions/parent/ext-*.js\n"
        "child:\n  browser: browser/components/extensions/child/ext-*.js\n",
        encoding="utf-8",
    )
    groups = load_groups(config)
    assert groups == [
        FileGroup("parent", "toolkit", "toolkit/components/extensions/parent/ext-*.js"),
        FileGroup("child", "browser", "browser/components/extensions/child/ext-*.js"),
    ]


@pytest.mark.parametrize(
    "data",
    [None, [], {"parent": "toolkit/*.js"}, {"parent": {"toolkit": ""}}, {"parent": {}}],
)
def test_groups_from_mapping_rejects_malformed(data):
    with pytest.raises(ConfigError):
        groups_from_mapping(data)


def test_load_groups_rejects_bad_yaml(tmp_path):
    config = tmp_path / "groups.yml"
    config.write_text("parent: [unclosed\n", encoding="utf-8")
    with pytest.raises(ConfigError):
        load_groups(config)


def test_default_groups_cover_all_platforms():
    assert {group.platform for group in DEFAULT_GROUPS} == {"toolkit", "browser", "mobile"}
    assert [group.side for group in DEFAULT_GROUPS][:4] == ["parent", "parent", "child", "child"]


def test_dump_matches_viewer_shape():
    index = collect_globals(TREE)
    payload = json.loads(emit_dump(index.as_dict()).source)
    entry = payload["shared"][0]
    assert set(entry) == {"filepath", "kind", "metadata", "jscode"}
    assert entry["kind"] == "const"
    assert set(entry["metadata"]) == {"toolkit", "browser", "mobile", "parent", "child"}


def test_undecodable_file_raises_parse_error_naming_it(tmp_path):
    target = tmp_path / "ext-latin1.js"
    target.write_bytes(b"const caf\xe9 = 1;\n")
    with pytest.raises(ParseError) as excinfo:
        collect_globals(tmp_path, [FileGroup("parent", "toolkit", "ext-*.js")])
    assert excinfo.value.source_name == "ext-latin1.js"
    assert "UTF-8" in str(excinfo.value)
