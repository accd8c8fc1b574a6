"""Shared data models for gnewsdecoder."""

from dataclasses import dataclass
from enum import StrEnum
from typing import Generic, TypeVar

T = TypeVar("T")


class ErrorKind(StrEnum):
    """Pipeline stage that produced a failure."""

    INVALID_INPUT_URL = "InvalidInputUrl"
    PARAMETER_RETRIEVAL_FAILED = "ParameterRetrievalFailed"
    RPC_DECODE_FAILED = "RpcDecodeFailed"
    INVALID_CONFIGURATION = "InvalidConfiguration"


@dataclass(frozen=True)
class DecodeFailure:
    """Represents a failed pipeline stage."""

    kind: ErrorKind
    message: str

    @property
    def reason(self) -> str:
        """Human-readable reason, prefixed with the failing stage."""
        return f"{self.kind}: {self.message}"


@dataclass(frozen=True)
class DecodingParams:
    """Signature and timestamp bound to a Google News token."""

    signature: str
    timestamp: str
    token: str


@dataclass(frozen=True)
class Outcome(Generic[T]):
    """Result of a pipeline stage: either a value or a failure."""

    value: T | None = None
    failure: DecodeFailure | None = None

    @classmethod
    def success(cls, value: T) -> "Outcome[T]":
        return cls(value=value)

    @classmethod
    def fail(cls, kind: ErrorKind, message: str) -> "Outcome[T]":
        return cls(failure=DecodeFailure(kind=kind, message=message))

    @property
    def ok(self) -> bool:
        return self.failure is None

    @property
    def reason(self) -> str | None:
        return self.failure.reason if self.failure else None

    @property
    def kind(self) -> ErrorKind | None:
        return self.failure.kind if self.failure else None


class DecodeOutcome(Outcome[str]):
    """Outcome of decoding a Google News URL."""

    @property
    def decoded_url(self) -> str | None:
        """The original publisher URL when decoding succeeded."""
        return self.value
