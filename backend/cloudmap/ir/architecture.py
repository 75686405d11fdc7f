from pydantic import BaseModel, ConfigDict, Field
from typing import Any, Dict, List, Optional

# ---- Diagram elements ----
# Extra keys are kept so the editor can round-trip its own fields.


class Position(BaseModel):
    model_config = ConfigDict(extra="allow")

    x: float
    y: float


class NodeData(BaseModel):
    model_config = ConfigDict(extra="allow", populate_by_name=True)

    label: str = Field(min_length=1)
    service: str = Field(min_length=1)
    description: Optional[str] = None
    est_cost: Optional[str] = Field(default=None, alias="estCost")
    fault_tolerance: Optional[str] = Field(default=None, alias="faultTolerance")


class Node(BaseModel):
    model_config = ConfigDict(extra="allow")

    id: str = Field(min_length=1)
    type: str = "awsService"
    position: Position
    data: NodeData
    style: Optional[Dict[str, Any]] = None


class EdgeData(BaseModel):
    model_config = ConfigDict(extra="allow", populate_by_name=True)

    data_flow: Optional[str] = Field(default=None, alias="dataFlow")
    protocol: Optional[str] = None


class Edge(BaseModel):
    model_config = ConfigDict(extra="allow")

    id: str = Field(min_length=1)
    source: str = Field(min_length=1)
    target: str = Field(min_length=1)
    animated: bool = False
    data: Optional[EdgeData] = None
    style: Optional[Dict[str, Any]] = None


# ---- Root document ----

class Architecture(BaseModel):
    nodes: List[Node] = Field(default_factory=list)
    edges: List[Edge] = Field(default_factory=list)
    metadata: Dict[str, Any] = Field(default_factory=dict)

    def service_names(self) -> List[str]:
        return [n.data.service for n in self.nodes]

    def find_node(self, node_id: str) -> Optional[Node]:
        for node in self.nodes:
            if node.id == node_id:
                return node
        return None

    def nodes_payload(self) -> List[Dict[str, Any]]:
        return [n.model_dump(by_alias=True, exclude_none=True) for n in self.nodes]

    def edges_payload(self) -> List[Dict[str, Any]]:
        return [e.model_dump(by_alias=True, exclude_none=True) for e in self.edges]

    def to_payload(self) -> Dict[str, Any]:
        return {
            "nodes": self.nodes_payload(),
            "edges": self.edges_payload(),
            "metadata": dict(self.metadata),
        }
