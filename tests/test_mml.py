from pathlib import Path
import sys
import xml.etree.ElementTree as ET

REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from mmldiff.changes import change  # noqa: E402
from mmldiff.mml import build_tree, format_value, render  # noqa: E402


def test_format_value() -> None:
    assert format_value(True) == "true"
    assert format_value(False) == "false"
    assert format_value(1.0) == "1"
    assert format_value(0.5) == "0.5"
    assert format_value(32768 / 65535.0) == "0.5000076295109483"
    assert format_value(-3) == "-3"
    assert format_value("Monaco") == "Monaco"


def test_nodes_share_scope_containers() -> None:
    nodes = [
        change("color", {"index": 0, "red": 1.0}).within("overhead_map"),
        change("panel", {"index": 2}).within("control_panels"),
        change("line", {"type": 1}).within("overhead_map"),
    ]
    root = build_tree(nodes)
    assert root.tag == "marathon"
    assert [child.tag for child in root] == ["overhead_map", "control_panels"]
    assert [child.tag for child in root.find("overhead_map")] == ["color", "line"]


def test_render_produces_indented_document() -> None:
    shape = change("shape", {"coll": 8, "clut": 1, "seq": 7})
    node = change(
        "object",
        {"index": 7, "flags": 0, "radius": 200},
        [change("normal", children=[shape])],
    ).within("scenery")
    text = render([node], comment="Generated by mmldiff")

    assert text.startswith('<?xml version="1.0" encoding="utf-8"?>\n<marathon>')
    assert "<!-- Generated by mmldiff -->" in text
    assert '\n    <scenery>\n        <object index="7" flags="0" radius="200">' in text

    root = ET.fromstring(text.split("\n", 1)[1])
    obj = root.find("scenery/object")
    assert obj.attrib == {"index": "7", "flags": "0", "radius": "200"}
    assert obj.find("normal/shape").attrib == {"coll": "8", "clut": "1", "seq": "7"}


def test_render_string_text() -> None:
    node = change("stringset", {"index": 128}, [change("string", {"index": 1}, text="café & co")])
    text = render([node])
    assert '<string index="1">café &amp; co</string>' in text


def test_render_empty_change_list() -> None:
    root = ET.fromstring(render([]).split("\n", 1)[1])
    assert root.tag == "marathon"
    assert len(root) == 0
