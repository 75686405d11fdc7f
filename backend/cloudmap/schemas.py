from pydantic import BaseModel, ConfigDict, Field
from typing import Any, Dict, List, Optional

from cloudmap.ir.architecture import Edge, Node


class CamelModel(BaseModel):
    """Request bodies use the UI's camelCase keys"""
    model_config = ConfigDict(populate_by_name=True)


class GenerateRequest(CamelModel):
    prompt: str


class AdjustRequest(CamelModel):
    original_prompt: str = Field(alias="originalPrompt")
    adjustment_prompt: str = Field(alias="adjustmentPrompt")
    current_architecture_id: str = Field(alias="currentArchitectureId")


class UpdateArchitectureRequest(CamelModel):
    architecture_id: str = Field(alias="architectureId")
    nodes: List[Node]
    edges: List[Edge]


class GenerateCdkRequest(CamelModel):
    architecture_id: str = Field(alias="architectureId")
    language: str = "typescript"  # typescript | javascript | python | java | csharp


class SaveCdkRequest(CamelModel):
    architecture_id: str = Field(alias="architectureId")
    cdk_code: str = Field(alias="cdkCode")


class ChatMessage(BaseModel):
    role: str
    content: str


class JarvisChatRequest(CamelModel):
    message: str
    architecture_id: str = Field(alias="architectureId")
    session_id: Optional[str] = Field(default=None, alias="sessionId")
    message_history: List[ChatMessage] = Field(default_factory=list, alias="messageHistory")

    def history_dicts(self) -> List[Dict[str, str]]:
        return [m.model_dump() for m in self.message_history]


class ArchitectureSummary(BaseModel):
    id: str
    serviceCount: int
    connectionCount: int
    prompt: Optional[str] = None
    lastEditedAt: Optional[str] = None


class ChatResponse(BaseModel):
    response: str
    architectureUpdated: bool
    updatedArchitecture: Optional[Dict[str, Any]] = None
    metadata: Dict[str, Any] = Field(default_factory=dict)
