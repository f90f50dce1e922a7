"""Pydantic models for non-fatal conversion issues.

Conversions are best-effort: a bad field never aborts the rest of the object
graph. Each problem is logged and appended to a `ConversionReport` so that
callers needing strictness can inspect (or raise on) what went wrong.
"""
from __future__ import annotations

from enum import Enum
from typing import Any, List, Optional

from pydantic import BaseModel, Field

from ..errors import ConversionIssuesError


class IssueKind(str, Enum):
    TYPE_RESOLUTION = "type_resolution"
    NUMERIC_PARSE = "numeric_parse"
    DATE_PARSE = "date_parse"
    VALUE_COERCION = "value_coercion"
    UNKNOWN_VALUE_KIND = "unknown_value_kind"
    MISSING_ARRAY_CONVERTER = "missing_array_converter"
    ASSIGNMENT = "assignment"
    REFERENCE_CYCLE = "reference_cycle"


class ConversionIssue(BaseModel):
    """One problem encountered while converting a single field."""

    kind: IssueKind
    path: str = ""  # dotted field path from the root object, e.g. "address.city"
    message: str
    value: Optional[Any] = None


class ConversionReport(BaseModel):
    """Issues collected during one conversion call."""

    issues: List[ConversionIssue] = Field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.issues

    def add(
        self, kind: IssueKind, message: str, *, path: str = "", value: Any = None
    ) -> ConversionIssue:
        issue = ConversionIssue(kind=kind, path=path, message=message, value=value)
        self.issues.append(issue)
        return issue

    def of_kind(self, kind: IssueKind) -> List[ConversionIssue]:
        return [i for i in self.issues if i.kind == kind]

    def has(self, kind: IssueKind) -> bool:
        return any(i.kind == kind for i in self.issues)

    def for_path(self, path: str) -> List[ConversionIssue]:
        return [i for i in self.issues if i.path == path]

    def raise_for_issues(self) -> None:
        """Raise `ConversionIssuesError` when any issue was collected."""
        if self.issues:
            raise ConversionIssuesError(self.issues)


__all__ = ["ConversionIssue", "ConversionReport", "IssueKind"]
