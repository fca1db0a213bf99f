"""Error taxonomy for the review pipeline.

Every failure the pipeline can surface is one of four kinds:

  InputError     : rejected before any external call (empty code, too long,
                   nothing selected). Shown to the user verbatim.
  UpstreamError  : the provider or fix service failed (network, non-2xx,
                   rate limiting). Mapped to a fixed set of user-safe messages;
                   the raw provider text only ever goes to the log.
  SchemaError    : the provider answered but no valid review could be read
                   from the text. The analysis is rejected wholesale.
  ApplyError     : the fix service failed. Never reaches the user: FixApplier
                   absorbs it with the local substitution fallback.

Each error carries a short machine-readable ``code`` alongside its message.
"""

from __future__ import annotations

CONFIG_MESSAGE = "Server configuration error. Please contact support."
RATE_LIMIT_MESSAGE = "Too many requests. Please wait a moment and try again."
SCHEMA_MESSAGE = "We had trouble understanding the review. Please try again."
GENERIC_MESSAGE = "Something went wrong while reviewing your code. Please try again."
APPLY_MESSAGE = "Something went wrong while applying fixes. Please try again."

_INPUT_MESSAGES = {
    "empty": "No code to review. Please paste some code first.",
    "too_long": "Code too long. Maximum {max_chars:,} characters allowed.",
    "missing_code": "Missing or invalid code. Please provide code to fix.",
    "no_selection": "Missing fixes. Please specify which fixes to apply.",
    "unknown_fix": "Unknown fix id: {fix_id!r}.",
    "no_result": "There is no review to apply fixes from. Run a review first.",
}

_UPSTREAM_MESSAGES = {
    "config": CONFIG_MESSAGE,
    "rate_limited": RATE_LIMIT_MESSAGE,
    "upstream": GENERIC_MESSAGE,
}


class CodeflowError(Exception):
    """Base class for all pipeline errors."""

    def __init__(self, code: str, message: str | None = None):
        self.code = code
        super().__init__(message or code)

    @property
    def user_message(self) -> str:
        return str(self)


class InputError(CodeflowError):
    def __init__(self, code: str, **details):
        template = _INPUT_MESSAGES.get(code, code)
        super().__init__(code, template.format(**details) if details else template)
        self.details = details


class UpstreamError(CodeflowError):
    """A provider or service call failed.

    ``detail`` holds the raw cause for logging; ``user_message`` never
    includes it.
    """

    def __init__(self, code: str, detail: str = ""):
        super().__init__(code, detail or code)
        self.detail = detail

    @property
    def user_message(self) -> str:
        return _UPSTREAM_MESSAGES.get(self.code, GENERIC_MESSAGE)


class SchemaError(CodeflowError):
    @property
    def user_message(self) -> str:
        return SCHEMA_MESSAGE


class ApplyError(CodeflowError):
    @property
    def user_message(self) -> str:
        return APPLY_MESSAGE


def user_message(exc: BaseException) -> str:
    """Translate any exception into text that is safe to show a user."""
    if isinstance(exc, CodeflowError):
        return exc.user_message
    return GENERIC_MESSAGE
