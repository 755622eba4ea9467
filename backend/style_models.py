"""
Style Models - wire shapes exchanged with the plugin UI

StyleRecord is the unit of output of an extraction. It is built from a
resolved style object plus the first text node seen using it, and it is
serialized with camelCase keys for the UI.
"""

from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field


EXTERNAL_LIBRARY_LABEL = "External library"
UNKNOWN_FONT = "Unknown"

# Message type constants shared by the session and the agent
MESSAGE_TYPE_EXTRACT_STYLES = "extract-styles"
MESSAGE_TYPE_CREATE_STYLES_FRAME = "create-styles-frame"
MESSAGE_TYPE_SELECT_NODES_WITH_STYLE = "select-nodes-with-style"
MESSAGE_TYPE_CLOSE_PLUGIN = "close-plugin"
MESSAGE_TYPE_PROGRESS_INIT = "progress-init"
MESSAGE_TYPE_PROGRESS = "progress"
MESSAGE_TYPE_STYLES_EXTRACTED = "styles-extracted"
MESSAGE_TYPE_ERROR = "error"


def numeric_font_size(value: Any) -> Optional[float]:
    """Reduce a font size to a scalar.

    Mixed-size text reports its sizes per run; only the first run counts.
    Accepts a number, a list of run sizes (or run dicts), or a {"value": n}
    object. Returns None when nothing numeric can be found.
    """
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return value
    if isinstance(value, list):
        return numeric_font_size(value[0]) if value else None
    if isinstance(value, dict):
        for key in ("value", "fontSize"):
            if key in value:
                return numeric_font_size(value[key])
    return None


def _font_name_part(font_name: Any, key: str) -> str:
    if isinstance(font_name, list):
        font_name = font_name[0] if font_name else None
    if isinstance(font_name, dict):
        part = font_name.get(key)
        if isinstance(part, str) and part:
            return part
    return UNKNOWN_FONT


class StyleRecord(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    id: str
    name: str
    description: str = ""
    font_family: str = Field(default=UNKNOWN_FONT, alias="fontFamily")
    font_weight_label: str = Field(default=UNKNOWN_FONT, alias="fontWeightLabel")
    font_size: Optional[Union[int, float]] = Field(default=None, alias="fontSize")
    line_height: Any = Field(default=None, alias="lineHeight")
    letter_spacing: Any = Field(default=None, alias="letterSpacing")
    paragraph_spacing: Any = Field(default=None, alias="paragraphSpacing")
    text_case: Any = Field(default=None, alias="textCase")
    text_decoration: Any = Field(default=None, alias="textDecoration")
    is_remote: bool = Field(default=True, alias="isRemote")
    library_label: str = Field(default=EXTERNAL_LIBRARY_LABEL, alias="libraryLabel")

    @classmethod
    def from_text_node(cls, style: Dict[str, Any], node: Dict[str, Any]) -> "StyleRecord":
        """Build a record from a resolved style and the text node that uses it."""
        font_name = node.get("fontName")
        return cls(
            id=style["id"],
            name=style["name"],
            description=style.get("description") or "",
            font_family=_font_name_part(font_name, "family"),
            font_weight_label=_font_name_part(font_name, "style"),
            font_size=numeric_font_size(node.get("fontSize")),
            line_height=node.get("lineHeight"),
            letter_spacing=node.get("letterSpacing"),
            paragraph_spacing=node.get("paragraphSpacing"),
            text_case=node.get("textCase"),
            text_decoration=node.get("textDecoration"),
            is_remote=bool(style.get("remote")),
            library_label=EXTERNAL_LIBRARY_LABEL,
        )

    def to_wire(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True, mode="json")


def parse_style_list(payload: Any) -> List[StyleRecord]:
    """Validate a `create-styles-frame` payload into records, keeping order.

    Raises:
        ValueError: If the payload is not a list
        pydantic.ValidationError: If an entry is not a valid record
    """
    if not isinstance(payload, list):
        raise ValueError("'styles' must be a list of style records")
    return [StyleRecord.model_validate(item) for item in payload]


# ============================================
# ============= UI EVENT BUILDERS ============
# ============================================

def progress_init_event(total: int) -> Dict[str, Any]:
    return {"type": MESSAGE_TYPE_PROGRESS_INIT, "total": total}


def progress_event(current: int, total: int, unit_name: str) -> Dict[str, Any]:
    return {"type": MESSAGE_TYPE_PROGRESS, "current": current, "total": total, "unitName": unit_name}


def styles_extracted_event(styles: List[StyleRecord]) -> Dict[str, Any]:
    return {"type": MESSAGE_TYPE_STYLES_EXTRACTED, "styles": [s.to_wire() for s in styles]}


def error_event(error_message: str) -> Dict[str, Any]:
    return {"type": MESSAGE_TYPE_ERROR, "errorMessage": error_message}
