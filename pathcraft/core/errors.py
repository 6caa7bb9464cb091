"""Exception hierarchy shared by the recorder, optimizer and generator."""

from typing import Optional, TYPE_CHECKING

if TYPE_CHECKING:
    from pathcraft.core.models import InteractionStep


class PathcraftError(Exception):
    pass


class StateError(PathcraftError):
    """A recorder method was called in a session state that does not allow it."""


class CapturedStepError(PathcraftError):
    """A captured action failed. Only its message is kept, on ``step.error``."""

    @classmethod
    def describe(cls, exc: BaseException) -> str:
        message = str(exc).strip()
        return message or exc.__class__.__name__


class GenerationFailure(PathcraftError):
    """Base class for failures converted into ``GenerationError`` entries."""

    step: Optional["InteractionStep"] = None


class UnsupportedFrameworkError(GenerationFailure):
    def __init__(self, framework: str):
        super().__init__(f"Unsupported framework: {framework}")
        self.framework = framework


class EmptyPathError(GenerationFailure):
    def __init__(self):
        super().__init__("No steps found in user path")


class EmitterError(GenerationFailure):
    """An emitter could not render a step, e.g. a required selector is missing."""

    def __init__(self, message: str, step: Optional["InteractionStep"] = None):
        super().__init__(message)
        self.step = step
