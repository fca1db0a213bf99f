"""Build the outbound analysis request and enforce input limits."""

from __future__ import annotations

from dataclasses import dataclass

from codeflow_core.errors import InputError
from codeflow_core.models import ReviewRequest
from codeflow_core.prompts import REVIEW_SYSTEM_PROMPT

MAX_CODE_CHARS = 50_000


@dataclass
class AnalysisRequest:
    system_prompt: str
    user_prompt: str
    request: ReviewRequest


def validate_code(code, max_chars: int = MAX_CODE_CHARS) -> None:
    """Raise InputError unless code is non-blank text of at most max_chars."""
    if not isinstance(code, str) or not code.strip():
        raise InputError("empty")
    if len(code) > max_chars:
        raise InputError("too_long", max_chars=max_chars)


def build_request(
    code: str,
    language: str | None = None,
    filename: str | None = None,
    max_chars: int = MAX_CODE_CHARS,
) -> AnalysisRequest:
    """Validate the submission and build the prompt pair for the provider.

    The code is embedded as opaque text; it is never parsed.
    """
    validate_code(code, max_chars)

    intro = f"Analyze this {language} code" if language else "Analyze this code"
    parts = [f"{intro}:", "", f"```{language or ''}", code, "```", ""]
    if filename:
        parts.append(f"Filename: {filename}")
    if language:
        parts.append(f"Language: {language}")
    parts.append("Return your analysis as JSON.")

    return AnalysisRequest(
        system_prompt=REVIEW_SYSTEM_PROMPT,
        user_prompt="\n".join(parts),
        request=ReviewRequest(code=code, language=language, filename=filename),
    )
