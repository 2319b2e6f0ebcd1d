"""
Error types and source context tracking for the Vellum template compiler.
"""

from dataclasses import dataclass
from typing import Any, Optional


@dataclass(frozen=True, slots=True)
class Source:
    """
    The template a node was parsed from.

    Attributes:
        code: The template source code
        name: Logical template name (e.g. "index.html")
        path: Optional filesystem path of the template
    """

    code: str
    name: str
    path: str = ""

    def __str__(self) -> str:
        return self.name


class VellumError(Exception):
    """Base exception for all Vellum compiler errors."""

    def __init__(
        self,
        message: str,
        lineno: Optional[int] = None,
        source: Optional[Source] = None,
    ) -> None:
        self.message = message
        self.lineno = lineno
        self.source = source
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        parts = []

        if self.source and self.lineno:
            parts.append(f"[{self.source}:{self.lineno}]")
        elif self.lineno:
            parts.append(f"[line {self.lineno}]")

        parts.append(self.message)
        return " ".join(parts)


class NodeLookupError(VellumError, LookupError):
    """Raised when a node has no child or attribute under the requested name."""

    pass


class InvalidOptimizerModeError(VellumError, ValueError):
    """
    Raised when an optimizer is configured with an unknown mode.

    The offending value is kept on ``mode`` so callers can report it.
    """

    def __init__(self, mode: Any) -> None:
        self.mode = mode
        super().__init__(f'Optimizer mode "{mode}" is not valid.')
