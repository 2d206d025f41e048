from pydantic import BaseModel, Field
from typing import Optional, Dict, Any, List, Literal

from mapscript.compiler.types import Settings
from mapscript.editing.patchers import UNSET


class DocumentRequest(BaseModel):
    """A whole MapScript document"""
    text: str


class PatchRequest(DocumentRequest):
    """
    Base for attribute edits.

    A field left out of the request leaves that attribute alone; an
    explicit null removes it.
    """

    def patch_fields(self, *names: str) -> Dict[str, Any]:
        return {
            name: getattr(self, name) if name in self.model_fields_set else UNSET
            for name in names
        }

    def has(self, name: str) -> bool:
        return name in self.model_fields_set


class NodePatchRequest(PatchRequest):
    node_id: str
    label: Optional[str] = None
    fill: Optional[str] = None  # any colour: "#aabbcc", "rgb(1,2,3)", "seagreen"
    border: Optional[str] = None  # "2px dashed rgb(0,0,0)"
    rounded: Optional[bool] = None
    text_size: Optional[float] = None  # relative: 1.2 = 20% bigger


class ClusterPatchRequest(PatchRequest):
    cluster_id: str  # cluster_N
    label: Optional[str] = None
    fill: Optional[str] = None
    border: Optional[str] = None
    text_colour: Optional[str] = None
    text_size: Optional[float] = None


class EndpointChange(BaseModel):
    old: str
    new: str


class EdgePatchRequest(PatchRequest):
    line_number: int  # 1-based
    label: Optional[str] = None
    border: Optional[str] = None
    from_node: Optional[EndpointChange] = None
    to_node: Optional[EndpointChange] = None


class EdgeRequest(DocumentRequest):
    line_number: int


class NodeRequest(DocumentRequest):
    node_id: str


class ClusterRequest(DocumentRequest):
    cluster_id: str


class GroupRequest(DocumentRequest):
    node_ids: List[str]
    label: str = "Group"


class LinksRequest(DocumentRequest):
    """Create new nodes from labels and link them to an existing node"""
    source_id: str
    labels: List[str]
    direction: Literal["out", "in"] = "out"
    label: Optional[str] = None  # link label
    border: Optional[str] = None  # link style, e.g. "2px dashed"


class SettingsPayload(BaseModel):
    title: Optional[str] = None
    description: Optional[str] = None
    background: Optional[str] = None
    text_colour: Optional[str] = None
    default_node_text_colour: Optional[str] = None
    default_group_text_colour: Optional[str] = None
    title_size: Optional[float] = None
    title_position: Optional[str] = None
    default_node_colour: Optional[str] = None
    default_node_shape: Optional[str] = None
    default_node_border: Optional[str] = None
    default_node_shadow: Optional[str] = None
    default_link_colour: Optional[str] = None
    default_link_style: Optional[str] = None
    default_link_width: Optional[float] = None
    direction: Optional[str] = None
    label_wrap: Optional[float] = None
    spacing_along: Optional[float] = None
    spacing_across: Optional[float] = None

    def to_settings(self) -> Settings:
        return Settings(**self.model_dump())


class SettingsRequest(DocumentRequest):
    settings: SettingsPayload = Field(default_factory=SettingsPayload)
