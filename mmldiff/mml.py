"""Render change nodes as an MML document.

Top-level nodes are filed under ``<marathon>`` following their scope;
intermediate elements are shared, so every ``overhead_map`` change lands in
one ``<overhead_map>`` element.
"""

from __future__ import annotations

import xml.etree.ElementTree as ET
from typing import Iterable

from .changes import AttrValue, ChangeNode

ROOT_ELEMENT = "marathon"
XML_DECLARATION = '<?xml version="1.0" encoding="utf-8"?>'


def format_value(value: AttrValue) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float):
        return format(value, ".16g")
    return str(value)


def _to_element(node: ChangeNode) -> ET.Element:
    element = ET.Element(node.element, {key: format_value(value) for key, value in node.attributes})
    if node.text is not None:
        element.text = node.text
    for child in node.children:
        element.append(_to_element(child))
    return element


def _container(root: ET.Element, scope: Iterable[str]) -> ET.Element:
    parent = root
    for name in scope:
        existing = parent.find(name)
        if existing is None:
            existing = ET.SubElement(parent, name)
        parent = existing
    return parent


def build_tree(nodes: Iterable[ChangeNode], comment: str | None = None) -> ET.Element:
    root = ET.Element(ROOT_ELEMENT)
    if comment:
        root.append(ET.Comment(f" {comment} "))
    for node in nodes:
        _container(root, node.scope).append(_to_element(node))
    return root


def render(nodes: Iterable[ChangeNode], comment: str | None = None, indent: str = "    ") -> str:
    root = build_tree(nodes, comment)
    ET.indent(root, space=indent)
    return XML_DECLARATION + "\n" + ET.tostring(root, encoding="unicode") + "\n"
