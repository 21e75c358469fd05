"""
Compiled sequence models.

These are the immutable outputs of the sequence compiler and the wire format
handed to the persistence API.
"""

from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field


class MessageConfig(BaseModel):
    """Resolved message content for a communication step."""
    model_config = ConfigDict(frozen=True)

    subject: Optional[str] = None
    body: str


class TriggerDescriptor(BaseModel):
    """Resolved trigger source and selected events."""
    model_config = ConfigDict(frozen=True)

    source: Optional[str] = None
    event_ids: List[str] = Field(default_factory=list)
    canonical_event: Optional[str] = None


class CompiledStep(BaseModel):
    """One step of the compiled sequence."""
    model_config = ConfigDict(frozen=True)

    kind: Literal["wait", "send_email", "send_sms"]
    step_index: int = Field(..., ge=1)
    wait_ms: int = Field(..., ge=0)
    config: Dict[str, Any] = Field(default_factory=dict)
    message_purpose: Optional[str] = None
    message_config: Optional[MessageConfig] = None

    def to_request_dict(self) -> Dict[str, Any]:
        """Serialize for the persistence API; wait steps carry no message keys."""
        data: Dict[str, Any] = {
            "kind": self.kind,
            "step_index": self.step_index,
            "wait_ms": self.wait_ms,
            "config": dict(self.config),
        }
        if self.kind != "wait":
            data["message_purpose"] = self.message_purpose
            data["message_config"] = self.message_config.model_dump(exclude_none=True)
        return data


class SequencePayload(BaseModel):
    """Sequence-create request body."""
    model_config = ConfigDict(frozen=True)

    name: str
    description: str = ""
    trigger_type: Optional[str] = None
    trigger_event_type: Optional[str] = None
    allow_manual_enroll: bool = False
    quiet_hours_start: str
    quiet_hours_end: str
    stop_if_review: bool = True
    rate_limit: int
    status: Literal["active"] = "active"
    steps: List[CompiledStep] = Field(default_factory=list)

    def to_request_body(self) -> Dict[str, Any]:
        """Serialize the payload as the JSON body of the create request."""
        body = self.model_dump(exclude={"steps"})
        body["steps"] = [step.to_request_dict() for step in self.steps]
        return body
