from __future__ import annotations

from enum import Enum
from typing import Any, Union


class ErrorKind(str, Enum):
    CONFIGURATION = "configuration"
    REQUEST = "request"
    TIMEOUT = "timeout"
    PARSING = "parsing"


# Configuration and parsing failures are terminal: retrying cannot fix them.
RETRYABLE_KINDS = frozenset({ErrorKind.REQUEST, ErrorKind.TIMEOUT})

TIMEOUT_MESSAGE = (
    "Tempo limite excedido ao tentar gerar o diagnóstico com a IA. "
    "Tente novamente em instantes."
)
UNEXPECTED_MESSAGE = "Falha inesperada ao acionar o serviço de IA."


class DiagnosisError(Exception):
    """Failure of the AI diagnosis path, tagged with its kind."""

    def __init__(
        self, kind: ErrorKind, message: str, cause: Union[Any, None] = None
    ) -> None:
        super().__init__(message)
        self.kind = kind
        self.message = message
        self.cause = cause
        if isinstance(cause, BaseException):
            self.__cause__ = cause

    @property
    def retryable(self) -> bool:
        return self.kind in RETRYABLE_KINDS

    def to_dict(self) -> dict[str, str]:
        return {"kind": self.kind.value, "message": self.message}

    def __repr__(self) -> str:
        return f"DiagnosisError({self.kind.value!r}, {self.message!r})"


def is_retryable(exc: BaseException) -> bool:
    return isinstance(exc, DiagnosisError) and exc.retryable
