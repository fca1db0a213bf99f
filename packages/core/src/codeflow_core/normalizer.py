"""Turn raw provider text into a validated ReviewResult.

This module is the only place that defends against malformed provider
output. Anything it returns satisfies the ReviewResult invariants, so code
downstream never re-checks whether a list may be missing.
"""

from __future__ import annotations

import json
import logging
import math
import re

from codeflow_core.errors import SchemaError
from codeflow_core.models import ActionItem, CategoryScores, Change, Issue, ReviewResult, Suggestion

logger = logging.getLogger(__name__)

_LIST_FIELDS = ("issues", "suggestions", "proposedChanges", "actionItems")
_CATEGORY_FIELDS = ("security", "performance", "readability", "bestPractices")

_OPENING_FENCE = re.compile(r"^```[\w+-]*[ \t]*\n?")
_CLOSING_FENCE = re.compile(r"\n?```$")


def strip_fences(text: str) -> str:
    """Remove one leading fence tag and one trailing fence marker, if present.

    Only the outer fence is touched. Fences inside string values (code
    snippets in ``before``/``after``) are left alone.
    """
    cleaned = text.strip()
    cleaned = _OPENING_FENCE.sub("", cleaned, count=1)
    cleaned = _CLOSING_FENCE.sub("", cleaned, count=1)
    return cleaned.strip()


def extract_json_object(text: str) -> str | None:
    """Return the first balanced ``{...}`` substring of text, or None.

    Braces are counted only outside string literals, so ``{`` and ``}`` inside
    code snippets do not end the object early.
    """
    start = text.find("{")
    if start == -1:
        return None

    depth = 0
    in_string = False
    escaped = False
    for i in range(start, len(text)):
        ch = text[i]
        if in_string:
            if escaped:
                escaped = False
            elif ch == "\\":
                escaped = True
            elif ch == '"':
                in_string = False
            continue
        if ch == '"':
            in_string = True
        elif ch == "{":
            depth += 1
        elif ch == "}":
            depth -= 1
            if depth == 0:
                return text[start : i + 1]
    return None


def _is_number(value) -> bool:
    # json.loads accepts NaN and Infinity; neither is a usable score.
    return isinstance(value, (int, float)) and not isinstance(value, bool) and math.isfinite(value)


def _clamp_score(value) -> int:
    return max(0, min(100, int(round(value))))


def _categories(raw: dict, fallback: int) -> CategoryScores:
    scores = {}
    for name in _CATEGORY_FIELDS:
        value = raw.get(name)
        if _is_number(value):
            scores[name] = _clamp_score(value)
        else:
            logger.warning("Category %r missing or not numeric; using overall score %d", name, fallback)
            scores[name] = fallback
    return CategoryScores(
        security=scores["security"],
        performance=scores["performance"],
        readability=scores["readability"],
        best_practices=scores["bestPractices"],
    )


def _free_id(stem: str, start: int, taken: set[str]) -> str:
    n = start
    while f"{stem}-{n}" in taken:
        n += 1
    return f"{stem}-{n}"


def _entries(raw: list, field_name: str, prefix: str) -> list[dict]:
    """Keep object entries and make their ids unique within the list.

    Entries without an id, or repeating an earlier one, get a positional id
    that does not clash with any id the model gave explicitly.
    """
    objects = []
    for index, entry in enumerate(raw, 1):
        if not isinstance(entry, dict):
            logger.warning("Dropping non-object entry in %s: %r", field_name, entry)
            continue
        objects.append((index, entry))

    taken = {str(e["id"]) for _, e in objects if e.get("id") not in (None, "")}
    used: set[str] = set()
    entries = []
    for index, entry in objects:
        entry_id = entry.get("id")
        if entry_id in (None, "") or str(entry_id) in used:
            entry_id = _free_id(prefix, index, taken)
            taken.add(entry_id)
        entry = {**entry, "id": str(entry_id)}
        used.add(entry["id"])
        entries.append(entry)
    return entries


def _flatten_changes(raw: list[dict]) -> list[dict]:
    """Split legacy bundled changes into one change per fix.

    Older prompts let the model pack several before/after pairs into one
    change under a ``fixes`` list. Each pair becomes its own change so every
    fix stays independently selectable.
    """
    taken = {entry["id"] for entry in raw}
    flat = []
    for entry in raw:
        bundled = entry.get("fixes")
        if not isinstance(bundled, list) or not bundled:
            flat.append(entry)
            continue
        base = {k: v for k, v in entry.items() if k not in ("fixes", "fixedCode", "diff")}
        for n, fix in enumerate(bundled, 1):
            if not isinstance(fix, dict):
                continue
            fix_id = _free_id(entry["id"], n, taken)
            taken.add(fix_id)
            flat.append(
                {
                    **base,
                    "id": fix_id,
                    "description": fix.get("description") or entry.get("description", ""),
                    "before": fix.get("before"),
                    "after": fix.get("after"),
                }
            )
        logger.warning("Flattened bundled change %r into %d changes", entry["id"], len(bundled))
    return flat


def normalize(raw_text: str) -> ReviewResult:
    """Extract and validate a ReviewResult from raw provider text.

    Raises SchemaError with code ``no_json``, ``invalid_json`` or
    ``missing_required_fields``. No partial result is ever returned.
    """
    cleaned = strip_fences(raw_text or "")

    candidate = extract_json_object(cleaned)
    if candidate is None:
        logger.warning("No JSON object found in provider response: %s", (raw_text or "")[:200])
        raise SchemaError("no_json", "No JSON object found in the provider response")

    try:
        data = json.loads(candidate)
    except json.JSONDecodeError as e:
        logger.warning("Provider response is not valid JSON (%s): %s", e, candidate[:200])
        raise SchemaError("invalid_json", f"Provider response is not valid JSON: {e}") from e

    if not _is_number(data.get("score")) or not isinstance(data.get("categories"), dict):
        raise SchemaError("missing_required_fields", "Review is missing a numeric score or categories")

    for name in _LIST_FIELDS:
        if not isinstance(data.get(name), list):
            data[name] = []

    score = _clamp_score(data["score"])
    summary = data.get("summary")
    changes = _entries(data["proposedChanges"], "proposedChanges", "change")

    return ReviewResult(
        score=score,
        categories=_categories(data["categories"], score),
        summary=summary if isinstance(summary, str) else None,
        issues=[Issue.from_dict(e) for e in _entries(data["issues"], "issues", "issue")],
        suggestions=[Suggestion.from_dict(e) for e in _entries(data["suggestions"], "suggestions", "suggestion")],
        proposed_changes=[Change.from_dict(e) for e in _flatten_changes(changes)],
        action_items=[ActionItem.from_dict(e) for e in _entries(data["actionItems"], "actionItems", "action")],
    )
