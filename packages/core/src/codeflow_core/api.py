"""HTTP handlers for the analyze and apply-fix endpoints.

The handlers are framework-free: they take the decoded JSON body and return
an ApiResponse. Method dispatch, CORS and body decoding belong to whatever
hosts them.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

from codeflow_core.applier import collect_fix_pairs
from codeflow_core.errors import ApplyError, InputError, user_message
from codeflow_core.models import FixPair
from codeflow_core.request_builder import MAX_CODE_CHARS

if TYPE_CHECKING:
    from codeflow_core.analyzer import Analyzer
    from codeflow_core.fix_service import BaseFixService
    from codeflow_core.models import ReviewResult

logger = logging.getLogger(__name__)


@dataclass
class ApiResponse:
    status: int
    body: dict


def _error(status: int, message: str) -> ApiResponse:
    return ApiResponse(status, {"error": message})


def _opt_str(value) -> str | None:
    return value if isinstance(value, str) and value else None


async def handle_analyze(body, analyzer: Analyzer) -> ApiResponse:
    """POST {code, language?, filename?} → 200 ReviewResult | 400 | 500."""
    if not isinstance(body, dict):
        return _error(400, InputError("empty").user_message)
    try:
        result = await analyzer.review(
            body.get("code"),
            _opt_str(body.get("language")),
            _opt_str(body.get("filename")),
        )
    except InputError as e:
        return _error(400, e.user_message)
    except Exception as e:
        logger.error("Review request failed: %r", e)
        return _error(500, user_message(e))
    return ApiResponse(200, result.to_dict())


def _pairs_from_body(body: dict, result: ReviewResult | None) -> list[FixPair]:
    fixes = body.get("fixes")
    if isinstance(fixes, list) and fixes:
        return [
            FixPair(f["before"], f["after"], str(f.get("id", "")))
            for f in fixes
            if isinstance(f, dict) and _opt_str(f.get("before")) and isinstance(f.get("after"), str)
        ]
    fix_ids = body.get("fixIds")
    if isinstance(fix_ids, list) and fix_ids and result is not None:
        return collect_fix_pairs(result, [str(i) for i in fix_ids])
    return []


async def handle_apply_fix(
    body,
    service: BaseFixService,
    result: ReviewResult | None = None,
    max_code_chars: int = MAX_CODE_CHARS,
) -> ApiResponse:
    """POST {code, fixes} or {code, fixIds} → 200 {fixedCode, ...} | 400 | 500.

    ``fixIds`` only resolve when the result they refer to is passed in. Fix
    entries need a non-empty ``before`` and a string ``after``; others are ignored.
    """
    if not isinstance(body, dict):
        return _error(400, InputError("missing_code").user_message)

    code = body.get("code")
    if not isinstance(code, str) or not code:
        return _error(400, InputError("missing_code").user_message)

    pairs = _pairs_from_body(body, result)
    if not pairs:
        return _error(400, InputError("no_selection").user_message)

    if len(code) > max_code_chars:
        return _error(400, InputError("too_long", max_chars=max_code_chars).user_message)

    try:
        applied = await service.apply(code, pairs)
    except ApplyError as e:
        logger.error("Apply-fix request failed (%s): %s", e.code, e)
        return _error(500, e.user_message)

    response = {
        "fixedCode": applied.fixed_code,
        "appliedCount": applied.applied_count,
        "appliedFixes": applied.applied_fixes,
    }
    if result is not None:
        response["remainingIssues"] = max(0, len(result.issues) - applied.applied_count)
    return ApiResponse(200, response)
