from dataclasses import dataclass
from typing import Generic, Optional, TypeVar

T = TypeVar("T")


class PipelineError(Exception):
    """Base class for failures handed between pipeline steps."""

    @property
    def message(self) -> str:
        return str(self.args[0]) if self.args else self.__class__.__name__


class InvalidInput(PipelineError):
    pass


class OcrProviderError(PipelineError):
    pass


class TranslationProviderError(PipelineError):
    pass


@dataclass
class StepResult(Generic[T]):
    """Outcome of one step: either a value or the error that stopped it."""

    value: Optional[T] = None
    error: Optional[PipelineError] = None

    @property
    def is_error(self) -> bool:
        return self.error is not None

    @classmethod
    def ok(cls, value: T) -> "StepResult[T]":
        return cls(value=value)

    @classmethod
    def fail(cls, error: PipelineError) -> "StepResult[T]":
        return cls(error=error)
