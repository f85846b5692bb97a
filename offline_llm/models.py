from typing import List, Literal, Optional
from pydantic import BaseModel, ConfigDict, Field

ROLE_LABELS = {
    "system": "System",
    "user": "User",
    "assistant": "Assistant",
}

StatusType = Literal["loading", "start", "ready", "error", "complete"]


class ChatMessage(BaseModel):
    model_config = ConfigDict(frozen=True)

    role: str  # "system", "user", "assistant" or anything else
    content: str

    @property
    def label(self) -> str:
        """Prompt label: capitalized known role, raw role string otherwise."""
        return ROLE_LABELS.get(self.role, self.role)


# ---------------- Events ----------------
class StatusEvent(BaseModel):
    status: StatusType
    message: str
    device: Optional[str] = None


class TokenEvent(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    token: str
    tps: float
    num_tokens: int = Field(alias="numTokens")


# ---------------- HTTP payloads ----------------
class LoadRequest(BaseModel):
    model_path: str


class LoadResponse(BaseModel):
    status: str = "ready"
    model_path: str
    device: str


class GenerateRequest(BaseModel):
    prompt: str = ""
    messages: List[ChatMessage] = Field(default_factory=list)


class GenerateResponse(BaseModel):
    response: str


class HealthResponse(BaseModel):
    status: str = "ok"
    model_loaded: bool
    model_path: Optional[str] = None
    device: str
