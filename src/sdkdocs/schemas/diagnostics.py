"""Diagnostic models."""

from __future__ import annotations

from enum import Enum
from typing import Literal

from pydantic import BaseModel, Field

Section = Literal["docs", "partials", "typedoc", "tooltips"]


class Severity(str, Enum):
    """How a diagnostic affects the build."""

    FATAL = "fatal"
    WARNING = "warning"


class Point(BaseModel):
    """A 1-based line/column location in a source file."""

    line: int = Field(..., ge=1)
    column: int = Field(1, ge=1)


class Position(BaseModel):
    """A source span."""

    start: Point
    end: Point

    @classmethod
    def from_lines(
        cls,
        start_line: int,
        end_line: int | None = None,
        *,
        start_column: int = 1,
        end_column: int = 1,
    ) -> Position:
        return cls(
            start=Point(line=start_line, column=start_column),
            end=Point(line=end_line or start_line, column=end_column),
        )

    def __str__(self) -> str:
        return (
            f"{self.start.line}:{self.start.column}-"
            f"{self.end.line}:{self.end.column}"
        )


class Diagnostic(BaseModel):
    """A single reported problem tied to a file and rule."""

    file: str
    section: Section = "docs"
    rule_id: str
    message: str
    severity: Severity = Severity.WARNING
    position: Position | None = None

    @property
    def location(self) -> str:
        if self.position is None:
            return "1:1-1:1"
        return str(self.position)
