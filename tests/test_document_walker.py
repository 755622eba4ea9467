"""Tests for document traversal."""

import pytest

from document_walker import (
    TreeWalker,
    document_units,
    is_text_node,
    text_style_reference,
    walk_nodes,
)
from figma_canvas import InvalidStyleError


def _resolver(styles, calls=None):
    async def resolve(style_id):
        if calls is not None:
            calls.append(style_id)
        if style_id not in styles:
            raise InvalidStyleError(style_id, "style not found")
        return styles[style_id]
    return resolve


def test_walk_nodes_is_preorder(sample_document):
    ids = [n["id"] for n in walk_nodes(sample_document)]
    assert ids == [
        "0:0",
        "1:0", "1:1", "1:2", "1:3", "1:4", "1:5",
        "2:0", "2:1", "2:2", "2:3", "2:4", "2:5",
        "3:0",
    ]


def test_walk_nodes_visits_each_node_once(sample_document):
    ids = [n["id"] for n in walk_nodes(sample_document)]
    assert len(ids) == len(set(ids))


def test_walk_nodes_handles_deep_trees():
    root = {"id": "root", "type": "FRAME", "children": []}
    node = root
    for i in range(5000):
        child = {"id": f"n{i}", "type": "FRAME", "children": []}
        node["children"].append(child)
        node = child
    assert sum(1 for _ in walk_nodes(root)) == 5001


def test_walk_nodes_ignores_malformed_children():
    root = {"id": "root", "children": [None, "x", {"id": "a"}, {"id": "b", "children": "nope"}]}
    assert [n["id"] for n in walk_nodes(root)] == ["root", "a", "b"]


def test_text_style_reference_only_for_text_nodes():
    assert text_style_reference({"type": "TEXT", "textStyleId": "S:1"}) == "S:1"
    assert text_style_reference({"type": "text", "textStyleId": "S:1"}) == "S:1"
    assert text_style_reference({"type": "FRAME", "textStyleId": "S:1"}) is None
    assert text_style_reference({"type": "TEXT"}) is None
    assert text_style_reference({"type": "TEXT", "textStyleId": ""}) is None
    # mixed-style text reports a non-string marker
    assert text_style_reference({"type": "TEXT", "textStyleId": {"mixed": True}}) is None


def test_is_text_node():
    assert is_text_node({"type": "TEXT"})
    assert not is_text_node({"type": "RECTANGLE"})
    assert not is_text_node({})


def test_document_units(sample_document):
    assert [u["name"] for u in document_units(sample_document)] == ["Cover", "Components", "Empty"]
    assert document_units({"id": "0:0", "type": "DOCUMENT"}) == []


@pytest.mark.asyncio
async def test_walker_visits_styled_text_in_order(sample_document, sample_styles):
    seen = []
    walker = TreeWalker(_resolver(sample_styles))

    visited = await walker.walk_document(sample_document, lambda style, node: seen.append((style["id"], node["id"])))

    assert visited == 13
    assert seen == [
        ("S:para", "1:2"),
        ("S:title", "1:3"),
        ("S:local", "1:5"),
        ("S:display", "2:2"),
        ("S:title", "2:4"),
    ]


@pytest.mark.asyncio
async def test_walker_skips_invalid_style_references(sample_document, sample_styles):
    calls = []
    walker = TreeWalker(_resolver(sample_styles, calls))

    await walker.walk_document(sample_document, lambda style, node: None)

    assert "S:missing" in calls
    assert walker.skipped_references == 1


@pytest.mark.asyncio
async def test_walker_reports_progress_per_page(sample_document, sample_styles):
    events = []

    async def on_progress(current, total, name):
        events.append((current, total, name))

    walker = TreeWalker(_resolver(sample_styles), on_progress=on_progress)
    await walker.walk_document(sample_document, lambda style, node: None)

    assert events == [(1, 3, "Cover"), (2, 3, "Components"), (3, 3, "Empty")]


@pytest.mark.asyncio
async def test_walker_pauses_between_pages_only(sample_document, sample_styles):
    order = []

    async def on_progress(current, total, name):
        order.append(f"progress:{current}")

    async def pause():
        order.append("pause")

    walker = TreeWalker(_resolver(sample_styles), on_progress=on_progress, pause=pause)
    await walker.walk_document(sample_document, lambda style, node: None)

    assert order == ["progress:1", "pause", "progress:2", "pause", "progress:3"]


@pytest.mark.asyncio
async def test_walker_propagates_other_resolver_errors(sample_document):
    async def broken(style_id):
        raise RuntimeError("bridge down")

    walker = TreeWalker(broken)
    with pytest.raises(RuntimeError, match="bridge down"):
        await walker.walk_document(sample_document, lambda style, node: None)


@pytest.mark.asyncio
async def test_walker_on_empty_document():
    events = []

    async def on_progress(current, total, name):
        events.append(current)

    walker = TreeWalker(_resolver({}), on_progress=on_progress)
    assert await walker.walk_document({"id": "0:0", "type": "DOCUMENT", "children": []}, lambda s, n: None) == 0
    assert events == []
