"""Pydantic models for layers, contexts and groups."""

from typing import Annotated, Any, ClassVar, Dict, List, Literal, Optional, Union

from pydantic import AfterValidator, BaseModel, ConfigDict, Discriminator, Field, StrictBool, StrictInt, Tag
from pydantic.alias_generators import to_camel

from .times import parse_instant


class DocumentModel(BaseModel):
    """Base for every model that appears in a configuration document.

    Unknown fields are rejected so that operator typos fail validation.
    """

    model_config = ConfigDict(
        extra="forbid",
        alias_generator=to_camel,
    )


# Legends and statistics


class WmsLegend(DocumentModel):
    type: Literal["wms"]
    style: str


class UrlLegend(DocumentModel):
    type: Literal["url"]
    url: str


Legend = Annotated[Union[WmsLegend, UrlLegend], Field(discriminator="type")]


class StatisticsAttribute(DocumentModel):
    labels: Dict[str, str]
    attribute: str


class AttributesStatistics(DocumentModel):
    type: Literal["attributes"]
    labels: Dict[str, str]
    attributes: List[StatisticsAttribute]


class UrlStatistics(DocumentModel):
    type: Literal["url"]
    labels: Dict[str, str]
    url: str


Statistics = Annotated[
    Union[AttributesStatistics, UrlStatistics], Field(discriminator="type")
]


# Layers


def _check_instant(value: str) -> str:
    parse_instant(value)
    return value


Instant = Annotated[str, AfterValidator(_check_instant)]


class LayerBase(DocumentModel):
    """Capabilities shared by every layer kind."""

    model_config = ConfigDict(frozen=True)

    id: StrictInt
    visible: Optional[StrictBool] = None
    labels: Optional[Dict[str, str]] = None


class WmsLayer(LayerBase):
    """WMS layer; the only kind carrying times and statistics."""

    type: Literal["wms"] = "wms"
    server_urls: List[str] = Field(..., min_length=1)
    name: str
    image_format: Optional[str] = None
    legend: Optional[Legend] = None
    styles: Optional[Dict[str, str]] = None
    times: List[Instant] = Field(default_factory=list)
    statistics: Optional[List[Statistics]] = None


class BingAerialLayer(LayerBase):
    type: Literal["bing-aerial"]


class OsmLayer(LayerBase):
    type: Literal["osm"]


def _layer_kind(value: Any) -> Optional[str]:
    # A missing type means WMS.
    if isinstance(value, dict):
        kind = value.get("type", "wms")
    else:
        kind = getattr(value, "type", "wms")
    return kind if isinstance(kind, str) else None


Layer = Annotated[
    Union[
        Annotated[WmsLayer, Tag("wms")],
        Annotated[BingAerialLayer, Tag("bing-aerial")],
        Annotated[OsmLayer, Tag("osm")],
    ],
    Discriminator(_layer_kind),
]


def layer_times(layer: LayerBase) -> List[str]:
    """Times exposed by a layer (only WMS layers have any)."""
    if isinstance(layer, WmsLayer):
        return layer.times
    if isinstance(layer, (BingAerialLayer, OsmLayer)):
        return []
    raise TypeError(f"Unknown layer kind: {type(layer).__name__}")


def layer_statistics(layer: LayerBase) -> List[Union[AttributesStatistics, UrlStatistics]]:
    """Statistics descriptors of a layer (only WMS layers have any)."""
    if isinstance(layer, WmsLayer):
        return layer.statistics or []
    if isinstance(layer, (BingAerialLayer, OsmLayer)):
        return []
    raise TypeError(f"Unknown layer kind: {type(layer).__name__}")


# Tree nodes


class Node(BaseModel):
    """A group or context stored in the node arena.

    Nodes reference each other by id only; ``parent`` is None for the root
    and for detached nodes.
    """

    id: int
    label: str = ""
    labels: Dict[str, str] = Field(default_factory=dict)
    info_file: Optional[str] = None
    parent: Optional[int] = None

    is_group: ClassVar[bool] = False


class Group(Node):
    """Folder-like container; ``items`` holds child ids in display order."""

    exclusive: bool = False
    items: List[int] = Field(default_factory=list)

    is_group: ClassVar[bool] = True


class Context(Node):
    """Map preset: a bundle of layer ids that can be activated together."""

    inline_legend_url: Optional[str] = None
    download_url: Optional[str] = None
    active: bool = False
    layers: List[int] = Field(default_factory=list, description="Resolved layer ids")
    times: List[str] = Field(default_factory=list, description="Derived, see derived.py")
