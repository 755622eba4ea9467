import pytest

from figma_canvas import SnapshotCanvas


def _text(node_id, style_id=None, family="Inter", weight="Regular", size=16, **extra):
    node = {
        "id": node_id,
        "type": "TEXT",
        "name": node_id,
        "fontName": {"family": family, "style": weight},
        "fontSize": size,
        "lineHeight": {"unit": "AUTO"},
        "letterSpacing": {"unit": "PERCENT", "value": 0},
        "paragraphSpacing": 0,
        "textCase": "ORIGINAL",
        "textDecoration": "NONE",
    }
    if style_id is not None:
        node["textStyleId"] = style_id
    node.update(extra)
    return node


def _sample_document() -> dict:
    """Three pages: styled text in nested containers, one empty page."""
    return {
        "id": "0:0",
        "type": "DOCUMENT",
        "name": "Design System Usage",
        "children": [
            {
                "id": "1:0",
                "type": "PAGE",
                "name": "Cover",
                "children": [
                    {
                        "id": "1:1",
                        "type": "FRAME",
                        "name": "Hero",
                        "children": [
                            _text("1:2", "S:para", size=16),
                            _text("1:3", "S:title", weight="Bold", size=32),
                            _text("1:4"),
                            _text("1:5", "S:local", size=40),
                        ],
                    },
                ],
            },
            {
                "id": "2:0",
                "type": "PAGE",
                "name": "Components",
                "children": [
                    {
                        "id": "2:1",
                        "type": "GROUP",
                        "name": "Cards",
                        "children": [
                            _text("2:2", "S:display", family="Playfair", weight="Black", size=48),
                            {
                                "id": "2:3",
                                "type": "FRAME",
                                "name": "Card",
                                "children": [
                                    _text("2:4", "S:title", family="Roboto", weight="Bold", size=30),
                                    _text("2:5", "S:missing"),
                                ],
                            },
                        ],
                    },
                ],
            },
            {"id": "3:0", "type": "PAGE", "name": "Empty", "children": []},
        ],
    }


def _sample_styles() -> dict:
    return {
        "S:para": {"id": "S:para", "name": "Paragraph/MD", "description": "Body copy", "remote": True},
        "S:title": {"id": "S:title", "name": "Title/LG/Bold", "description": "", "remote": True},
        "S:display": {"id": "S:display", "name": "Display Large", "description": "Hero text", "remote": True},
        "S:local": {"id": "S:local", "name": "Title/XL", "description": "", "remote": False},
        "S:caption": {"id": "S:caption", "name": "Caption", "description": "", "remote": True},
    }


@pytest.fixture
def sample_document():
    return _sample_document()


@pytest.fixture
def sample_styles():
    return _sample_styles()


@pytest.fixture
def snapshot_host():
    return SnapshotCanvas(_sample_document(), _sample_styles(), source_file="sample.json")
