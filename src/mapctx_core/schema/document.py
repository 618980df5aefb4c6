"""Pydantic models describing a persisted configuration document.

Top-level shape::

    {
      "$schema": "...",            (optional)
      "layers": [Layer, ...],
      "contexts": [ContextDocument, ...],
      "group": GroupDocument        (root of the tree)
    }

Tree entries are either ``{"group": {...}}`` or ``{"context": <id>}``; the
authoritative context record lives in the flat ``contexts`` array.
"""

from typing import Annotated, Any, Dict, List, Optional, Union

from pydantic import Discriminator, Field, StrictBool, StrictInt, Tag

from ..models import DocumentModel, Layer


class ContextDocument(DocumentModel):
    id: StrictInt
    labels: Optional[Dict[str, str]] = None
    info_file: Optional[str] = None
    inline_legend_url: Optional[str] = None
    download_url: Optional[str] = None
    active: Optional[StrictBool] = None
    layers: List[StrictInt] = Field(default_factory=list)


class ContextEntry(DocumentModel):
    context: StrictInt


class GroupEntry(DocumentModel):
    group: "GroupDocument"


def _entry_kind(value: Any) -> Optional[str]:
    if isinstance(value, dict):
        if "group" in value:
            return "group"
        if "context" in value:
            return "context"
        return None
    if isinstance(value, GroupEntry):
        return "group"
    if isinstance(value, ContextEntry):
        return "context"
    return None


TreeEntry = Annotated[
    Union[
        Annotated[GroupEntry, Tag("group")],
        Annotated[ContextEntry, Tag("context")],
    ],
    Discriminator(_entry_kind),
]


class GroupDocument(DocumentModel):
    id: StrictInt
    labels: Optional[Dict[str, str]] = None
    info_file: Optional[str] = None
    exclusive: Optional[StrictBool] = None
    items: List[TreeEntry] = Field(default_factory=list)


GroupEntry.model_rebuild()


class ConfigDocument(DocumentModel):
    schema_: Optional[str] = Field(None, alias="$schema")
    layers: List[Layer]
    contexts: List[ContextDocument]
    group: GroupDocument

    def dump(self) -> Dict[str, Any]:
        """Serialize to plain JSON-compatible data using document field names."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)
