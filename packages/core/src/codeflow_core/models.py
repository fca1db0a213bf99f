"""Review result data models.

The provider speaks camelCase JSON; these dataclasses use Python names and
convert at the boundary with ``from_dict`` / ``to_dict``. ``from_dict`` is only
called by the normalizer, which has already checked the required fields, so
the constructors here are lenient about optional ones.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional

SEVERITIES = ("critical", "warning")
PRIORITIES = ("high", "low")


def _opt_str(value) -> Optional[str]:
    if value is None:
        return None
    return value if isinstance(value, str) else str(value)


def _opt_int(value) -> Optional[int]:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    return int(value)


def _drop_none(d: dict) -> dict:
    return {k: v for k, v in d.items() if v is not None}


@dataclass
class ReviewRequest:
    code: str
    language: Optional[str] = None
    filename: Optional[str] = None


@dataclass
class CategoryScores:
    security: int
    performance: int
    readability: int
    best_practices: int

    def to_dict(self) -> dict:
        return {
            "security": self.security,
            "performance": self.performance,
            "readability": self.readability,
            "bestPractices": self.best_practices,
        }


@dataclass
class FixSnippet:
    before: str
    after: Optional[str]
    description: str = ""

    @classmethod
    def from_dict(cls, data) -> Optional[FixSnippet]:
        if not isinstance(data, dict):
            return None
        return cls(
            before=_opt_str(data.get("before")) or "",
            after=_opt_str(data.get("after")),
            description=_opt_str(data.get("description")) or "",
        )

    def to_dict(self) -> dict:
        return _drop_none({"description": self.description, "before": self.before, "after": self.after})


@dataclass
class Issue:
    id: str
    severity: str  # "critical" | "warning"
    title: str
    description: str
    line: Optional[int] = None
    fix: Optional[FixSnippet] = None

    @classmethod
    def from_dict(cls, data: dict) -> Issue:
        severity = data.get("severity")
        return cls(
            id=str(data["id"]),
            severity=severity if severity in SEVERITIES else "warning",
            title=_opt_str(data.get("title")) or "",
            description=_opt_str(data.get("description")) or "",
            line=_opt_int(data.get("line")),
            fix=FixSnippet.from_dict(data.get("fix")),
        )

    def to_dict(self) -> dict:
        d = {
            "id": self.id,
            "severity": self.severity,
            "line": self.line,
            "title": self.title,
            "description": self.description,
        }
        if self.fix is not None:
            d["fix"] = self.fix.to_dict()
        return d


@dataclass
class Suggestion:
    id: str
    title: str
    description: str
    before: Optional[str] = None
    after: Optional[str] = None
    code_snippet: Optional[str] = None

    @classmethod
    def from_dict(cls, data: dict) -> Suggestion:
        return cls(
            id=str(data["id"]),
            title=_opt_str(data.get("title")) or "",
            description=_opt_str(data.get("description")) or "",
            before=_opt_str(data.get("before")),
            after=_opt_str(data.get("after")),
            code_snippet=_opt_str(data.get("codeSnippet")),
        )

    def to_dict(self) -> dict:
        return _drop_none(
            {
                "id": self.id,
                "title": self.title,
                "description": self.description,
                "before": self.before,
                "after": self.after,
                "codeSnippet": self.code_snippet,
            }
        )


@dataclass
class Change:
    """One independently selectable edit. Never a bundle of several fixes."""

    id: str
    title: str
    description: str
    before: Optional[str] = None
    after: Optional[str] = None
    diff: Optional[str] = None
    fixed_code: Optional[str] = None
    line_start: Optional[int] = None
    line_end: Optional[int] = None

    @classmethod
    def from_dict(cls, data: dict) -> Change:
        return cls(
            id=str(data["id"]),
            title=_opt_str(data.get("title")) or "",
            description=_opt_str(data.get("description")) or "",
            before=_opt_str(data.get("before")),
            after=_opt_str(data.get("after")),
            diff=_opt_str(data.get("diff")),
            fixed_code=_opt_str(data.get("fixedCode")),
            line_start=_opt_int(data.get("lineStart")),
            line_end=_opt_int(data.get("lineEnd")),
        )

    def to_dict(self) -> dict:
        return _drop_none(
            {
                "id": self.id,
                "title": self.title,
                "description": self.description,
                "before": self.before,
                "after": self.after,
                "diff": self.diff,
                "fixedCode": self.fixed_code,
                "lineStart": self.line_start,
                "lineEnd": self.line_end,
            }
        )


@dataclass
class ActionItem:
    id: str
    priority: str  # "high" | "low"
    title: str
    description: Optional[str] = None
    related_issue_id: Optional[str] = None
    related_suggestion_id: Optional[str] = None
    related_change_id: Optional[str] = None

    @classmethod
    def from_dict(cls, data: dict) -> ActionItem:
        priority = data.get("priority")
        return cls(
            id=str(data["id"]),
            priority=priority if priority in PRIORITIES else "low",
            title=_opt_str(data.get("title")) or "",
            description=_opt_str(data.get("description")),
            related_issue_id=_opt_str(data.get("relatedIssueId")),
            related_suggestion_id=_opt_str(data.get("relatedSuggestionId")),
            related_change_id=_opt_str(data.get("relatedChangeId")),
        )

    def to_dict(self) -> dict:
        return _drop_none(
            {
                "id": self.id,
                "priority": self.priority,
                "title": self.title,
                "description": self.description,
                "relatedIssueId": self.related_issue_id,
                "relatedSuggestionId": self.related_suggestion_id,
                "relatedChangeId": self.related_change_id,
            }
        )


@dataclass
class ReviewResult:
    """A normalized review. The four lists are always present, possibly empty.

    Immutable in practice once accepted by a session: FixSelector and
    FixApplier only read it.
    """

    score: int
    categories: CategoryScores
    summary: Optional[str] = None
    issues: list[Issue] = field(default_factory=list)
    suggestions: list[Suggestion] = field(default_factory=list)
    proposed_changes: list[Change] = field(default_factory=list)
    action_items: list[ActionItem] = field(default_factory=list)

    def ids(self) -> set[str]:
        """Every identifier a selection may refer to."""
        ids: set[str] = set()
        for group in (self.issues, self.suggestions, self.proposed_changes, self.action_items):
            ids.update(entry.id for entry in group)
        return ids

    def to_dict(self) -> dict:
        d = {
            "score": self.score,
            "categories": self.categories.to_dict(),
            "issues": [i.to_dict() for i in self.issues],
            "suggestions": [s.to_dict() for s in self.suggestions],
            "proposedChanges": [c.to_dict() for c in self.proposed_changes],
            "actionItems": [a.to_dict() for a in self.action_items],
        }
        if self.summary is not None:
            d["summary"] = self.summary
        return d


@dataclass(frozen=True)
class FixPair:
    """A concrete substitution collected from a selected id."""

    before: str
    after: str
    source_id: str = ""

    def to_dict(self) -> dict:
        return {"before": self.before, "after": self.after}
