"""Data model for recorded user paths.

Timestamps and durations are milliseconds. Steps and assertions are plain
pydantic models; the optimizer never mutates them in place, it builds copies
with ``model_copy(update=...)``.
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Literal, Optional
from uuid import uuid4

from pydantic import BaseModel, Field, field_validator

from pathcraft.core.constants import DEFAULT_BROWSER, DEFAULT_VIEWPORT
from pathcraft.core.state import SessionStatus


def new_id() -> str:
    return str(uuid4())


class StepType(str, Enum):
    NAVIGATION = "navigation"
    CLICK = "click"
    TYPE = "type"
    SELECT = "select"
    CHECK = "check"
    WAIT = "wait"
    SCREENSHOT = "screenshot"
    ASSERTION = "assertion"


class AssertionType(str, Enum):
    URL = "url"
    TITLE = "title"
    VISIBLE = "visible"
    TEXT = "text"
    VALUE = "value"
    ATTRIBUTE = "attribute"
    NAVIGATION = "navigation"
    CHECKED = "checked"


class AssertionOperator(str, Enum):
    EQUALS = "equals"
    CONTAINS = "contains"
    EXISTS = "exists"
    NOT_EXISTS = "not-exists"


class Element(BaseModel):
    """An interactive element as reported by the automation engine."""
    selector: str
    type: str
    text: Optional[str] = None
    label: Optional[str] = None
    attributes: Dict[str, Any] = Field(default_factory=dict)


class NetworkActivity(BaseModel):
    url: str
    method: str
    status: Optional[int] = None
    timing: float = 0


class StateChange(BaseModel):
    type: Literal["url", "storage", "cookie", "dom"]
    before: Any = None
    after: Any = None
    timing: float = 0


class ConsoleMessage(BaseModel):
    type: str
    text: str
    timing: float = 0


class InteractionResult(BaseModel):
    """Outcome of one interaction performed by the automation engine."""
    success: bool
    value: Any = None
    timing: float = 0
    screenshot: Optional[str] = None
    error: Optional[str] = None
    network_activity: List[NetworkActivity] = Field(default_factory=list)
    state_changes: List[StateChange] = Field(default_factory=list)


class InteractionStep(BaseModel):
    id: str = Field(default_factory=new_id)
    type: StepType
    element: Optional[Element] = None
    action: str = ""
    value: Any = None
    timestamp: float
    duration: float = 0
    screenshot: Optional[str] = None
    network_activity: List[NetworkActivity] = Field(default_factory=list)
    state_changes: List[StateChange] = Field(default_factory=list)
    error: Optional[str] = None
    retries: Optional[int] = None

    @property
    def selector(self) -> Optional[str]:
        return self.element.selector if self.element else None


class Assertion(BaseModel):
    id: str = Field(default_factory=new_id)
    type: AssertionType
    target: str
    expected: Any = None
    operator: AssertionOperator = AssertionOperator.EQUALS
    message: Optional[str] = None


class Viewport(BaseModel):
    width: int = DEFAULT_VIEWPORT["width"]
    height: int = DEFAULT_VIEWPORT["height"]


class PathMetadata(BaseModel):
    browser: str = DEFAULT_BROWSER
    viewport: Viewport = Field(default_factory=Viewport)
    user_agent: str = ""
    tags: Optional[List[str]] = None


class UserPath(BaseModel):
    id: str = Field(default_factory=new_id)
    name: str = ""
    start_url: str = ""
    end_url: Optional[str] = None
    steps: List[InteractionStep] = Field(default_factory=list)
    assertions: List[Assertion] = Field(default_factory=list)
    duration: float = 0
    metadata: PathMetadata = Field(default_factory=PathMetadata)
    created_at: datetime = Field(default_factory=datetime.now)

    @field_validator("steps")
    @classmethod
    def steps_in_time_order(cls, steps: List[InteractionStep]) -> List[InteractionStep]:
        for previous, current in zip(steps, steps[1:]):
            if current.timestamp < previous.timestamp:
                raise ValueError(
                    f"Step {current.id} at {current.timestamp} precedes step {previous.id} at {previous.timestamp}"
                )
        return steps


class RecordingSession(BaseModel):
    id: str = Field(default_factory=new_id)
    status: SessionStatus = SessionStatus.RECORDING
    start_time: datetime = Field(default_factory=datetime.now)
    end_time: Optional[datetime] = None
    current_path: UserPath
    console_messages: List[ConsoleMessage] = Field(default_factory=list)


class PathAnalysis(BaseModel):
    complexity: Literal["simple", "moderate", "complex"]
    interaction_count: int
    unique_elements: int
    page_transitions: int
    network_requests: int
    assertions: int
    estimated_duration: float
