"""Transform engine data models.

Defines the data structures passed between the rewrite rules.
These are pure data containers with no rewriting logic.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional


class TransformError(Exception):
    """Base class for failures inside the rewrite pipeline."""


class SourceParseError(TransformError):
    """Input could not be parsed cleanly under the selected grammar."""

    def __init__(self, file_path: str, grammar: str, stage: str = "input"):
        self.file_path = file_path
        self.grammar = grammar
        self.stage = stage
        super().__init__(f"{stage} of {file_path} does not parse as {grammar}")


@dataclass(frozen=True)
class SourceUnit:
    """One function source file handed to the pipeline.

    Immutable input; the pipeline never writes back to it.
    """

    file_path: str
    source_text: str


@dataclass(frozen=True)
class Edit:
    """A byte-range replacement against the current document source."""

    start_byte: int
    end_byte: int
    replacement: str

    def overlaps(self, other: "Edit") -> bool:
        return self.start_byte < other.end_byte and other.start_byte < self.end_byte


class HandlerEmission(str, Enum):
    """Per-file entry-point state. ``EMITTED`` is terminal."""

    NOT_EMITTED = "not_emitted"
    EMITTED = "emitted"


@dataclass
class TransformState:
    """State shared by the rules of one pipeline run.

    The only cross-rule state is the handler emission flag, and it only
    ever moves from ``NOT_EMITTED`` to ``EMITTED``.
    """

    file_path: str
    handler_name: str = "handler"
    emission: HandlerEmission = HandlerEmission.NOT_EMITTED
    exported_name: Optional[str] = None  # Name bound by the emitted default export
    applied_rules: List[str] = field(default_factory=list)

    @property
    def handler_emitted(self) -> bool:
        return self.emission is HandlerEmission.EMITTED

    def mark_emitted(self, exported_name: str) -> None:
        """Record the first successful registration-call rewrite.

        Raises:
            TransformError: If a handler was already emitted for this file
        """
        if self.handler_emitted:
            raise TransformError(
                f"Handler already emitted for {self.file_path} as {self.exported_name}"
            )
        self.emission = HandlerEmission.EMITTED
        self.exported_name = exported_name


@dataclass
class TransformOutcome:
    """Result of running the rule pipeline over one source unit."""

    file_path: str
    grammar: str
    source_text: str
    output_text: str
    applied_rules: List[str] = field(default_factory=list)
    exported_handler: Optional[str] = None  # None when no registration call matched

    @property
    def changed(self) -> bool:
        return self.output_text != self.source_text
