"""Resolve selected fixes and apply them, remotely or by local substitution.

Application is two-tier. Collected before/after pairs go to the fix service
first; if that fails for any reason the pairs are applied locally by
first-occurrence replacement. The local path is an approximation: when a
``before`` snippet appears more than once, or two fixes overlap, the outcome
depends on selection order and may differ from what the service produces.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Iterable

from codeflow_core.errors import ApplyError
from codeflow_core.models import FixPair

if TYPE_CHECKING:
    from codeflow_core.fix_service import BaseFixService
    from codeflow_core.models import ReviewResult

logger = logging.getLogger(__name__)


@dataclass
class ApplyOutcome:
    code: str
    method: str  # "remote" | "local" | "fixed_code" | "unchanged"
    applied_count: int = 0


def _pair_for_id(result: ReviewResult, fix_id: str) -> FixPair | None:
    for issue in result.issues:
        if issue.id == fix_id and issue.fix is not None and issue.fix.before and issue.fix.after is not None:
            return FixPair(issue.fix.before, issue.fix.after, fix_id)
    for suggestion in result.suggestions:
        if suggestion.id == fix_id and suggestion.before and suggestion.after is not None:
            return FixPair(suggestion.before, suggestion.after, fix_id)
    for change in result.proposed_changes:
        if change.id == fix_id and change.before and change.after is not None:
            return FixPair(change.before, change.after, fix_id)
    return None


def _related_ids(result: ReviewResult, fix_id: str) -> list[str]:
    """Ids an action item points at, or fix_id itself for anything else."""
    for item in result.action_items:
        if item.id == fix_id:
            related = [item.related_issue_id, item.related_suggestion_id, item.related_change_id]
            return [r for r in related if r]
    return [fix_id]


def collect_fix_pairs(result: ReviewResult, selection: Iterable[str]) -> list[FixPair]:
    """Collect one concrete pair per selected id, in selection order.

    Lookup priority per id: issue fix, then suggestion, then proposed change.
    Action items resolve through the first related id that yields a pair.
    """
    pairs: list[FixPair] = []
    seen: set[str] = set()
    for fix_id in selection:
        for target in _related_ids(result, fix_id):
            if target in seen:
                break
            pair = _pair_for_id(result, target)
            if pair is not None:
                seen.add(target)
                pairs.append(pair)
                break
    return pairs


def apply_locally(code: str, pairs: Iterable[FixPair]) -> tuple[str, int]:
    """Replace the first occurrence of each ``before`` in turn.

    Returns the patched code and how many pairs matched. Pairs whose
    ``before`` is empty or absent from the code are skipped.
    """
    applied = 0
    for pair in pairs:
        if not pair.before or pair.before not in code:
            logger.warning("Local fallback: snippet for %r not found in code; skipping", pair.source_id)
            continue
        code = code.replace(pair.before, pair.after, 1)
        applied += 1
    return code, applied


def _fixed_code_for(result: ReviewResult, selection: Iterable[str]) -> str | None:
    fixed = None
    selected = set(selection)
    for change in result.proposed_changes:
        if change.id in selected and change.fixed_code:
            fixed = change.fixed_code
    return fixed


class FixApplier:
    def __init__(self, service: BaseFixService | None):
        self.service = service

    async def apply(self, original_code: str, result: ReviewResult, selection: Iterable[str]) -> ApplyOutcome:
        """Produce patched code for the selected fixes. Never raises ApplyError."""
        selection = list(selection)
        pairs = collect_fix_pairs(result, selection)

        if pairs:
            if self.service is not None:
                try:
                    remote = await self.service.apply(original_code, pairs)
                    return ApplyOutcome(remote.fixed_code, "remote", remote.applied_count)
                except ApplyError as e:
                    logger.warning("Fix service failed (%s: %s); applying %d fix(es) locally", e.code, e, len(pairs))
                except Exception as e:
                    # Third-party services may raise outside the ApplyError contract.
                    logger.warning("Fix service raised %r; applying %d fix(es) locally", e, len(pairs))
            code, applied = apply_locally(original_code, pairs)
            return ApplyOutcome(code, "local", applied)

        fixed_code = _fixed_code_for(result, selection)
        if fixed_code is not None:
            return ApplyOutcome(fixed_code, "fixed_code", 1)

        logger.warning("None of the selected fixes (%s) carry applicable code", ", ".join(selection))
        return ApplyOutcome(original_code, "unchanged", 0)
