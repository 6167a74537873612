"""Graph elements as returned by the Cosmos DB Gremlin API in GraphSON form."""

from typing import Any, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field


class VertexPropertyValue(BaseModel):
    """One value of a (possibly multi-valued) vertex property."""

    id: Optional[str] = None
    value: Any
    # Meta-properties such as timestamps attached to this value
    properties: dict[str, Any] = Field(default_factory=dict)

    model_config = ConfigDict(frozen=True, extra="ignore")


class Vertex(BaseModel):
    id: str
    label: str
    type: Literal["vertex"] = "vertex"
    properties: dict[str, list[VertexPropertyValue]] = Field(default_factory=dict)

    model_config = ConfigDict(frozen=True, extra="ignore")

    def get_vertex_properties(self, name: str) -> list[VertexPropertyValue]:
        """Return every recorded value of ``name`` in server order."""
        return list(self.properties.get(name, []))

    def property_values(self, name: str) -> list[Any]:
        return [vp.value for vp in self.get_vertex_properties(name)]


class Edge(BaseModel):
    id: str
    label: str
    type: Literal["edge"] = "edge"
    in_v: str = Field(alias="inV")
    out_v: str = Field(alias="outV")
    in_v_label: Optional[str] = Field(default=None, alias="inVLabel")
    out_v_label: Optional[str] = Field(default=None, alias="outVLabel")
    properties: dict[str, Any] = Field(default_factory=dict)

    model_config = ConfigDict(frozen=True, extra="ignore", populate_by_name=True)

    def property_values(self, name: str) -> list[Any]:
        if name not in self.properties:
            return []
        return [self.properties[name]]


GraphElement = Union[Vertex, Edge]
