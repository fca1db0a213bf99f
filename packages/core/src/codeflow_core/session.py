"""Review session state machine.

    IDLE | SUCCESS | ERROR --submit(code)--> LOADING
    LOADING --valid result-->               SUCCESS
    LOADING --input/upstream/schema error--> ERROR
    SUCCESS --resubmit()-->                 LOADING   (reviews working_code)

A session owns the result, the original code and the working code. Fix
application only ever rewrites working_code; the accepted result is never
modified. There is no terminal state.

Only one review is current at a time. Each submit bumps a generation
counter; a response that resolves after a newer submit was issued is
discarded instead of overwriting fresher state.
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import TYPE_CHECKING

from codeflow_core.errors import CodeflowError, InputError, user_message
from codeflow_core.selector import FixSelector

if TYPE_CHECKING:
    from codeflow_core.analyzer import Analyzer
    from codeflow_core.applier import ApplyOutcome, FixApplier
    from codeflow_core.models import ReviewResult

logger = logging.getLogger(__name__)


class SessionStatus(str, Enum):
    IDLE = "idle"
    LOADING = "loading"
    SUCCESS = "success"
    ERROR = "error"

    def __str__(self) -> str:
        return self.value


class ReviewSession:
    def __init__(self, analyzer: Analyzer, applier: FixApplier):
        self.analyzer = analyzer
        self.applier = applier
        self.selector = FixSelector()
        self.status = SessionStatus.IDLE
        self.original_code = ""
        self.working_code = ""
        self.result: ReviewResult | None = None
        self.error_message: str | None = None
        self.language: str | None = None
        self.filename: str | None = None
        self._generation = 0

    # ------------------------------------------------------------------ #
    # Review lifecycle                                                     #
    # ------------------------------------------------------------------ #

    async def submit(self, code: str, language: str | None = None, filename: str | None = None) -> SessionStatus:
        """Start a review of code, replacing any previous result.

        Returns the status once this submission resolves. If a newer submit
        superseded it meanwhile, the stale outcome is dropped and the
        current status is returned unchanged.
        """
        self._generation += 1
        generation = self._generation

        self.status = SessionStatus.LOADING
        self.original_code = code
        self.working_code = code
        self.language = language
        self.filename = filename
        self.result = None
        self.error_message = None
        self.selector.bind(None)

        try:
            result = await self.analyzer.review(code, language, filename)
        except CodeflowError as e:
            if self._is_stale(generation):
                return self.status
            logger.warning("Review failed (%s: %s)", type(e).__name__, e.code)
            return self._fail(user_message(e))
        except Exception as e:
            if self._is_stale(generation):
                return self.status
            logger.exception("Unexpected error during review")
            return self._fail(user_message(e))

        if self._is_stale(generation):
            return self.status
        self.result = result
        self.selector.bind(result)
        self.status = SessionStatus.SUCCESS
        return self.status

    async def resubmit(self) -> SessionStatus:
        """Review the current working code, i.e. the code with fixes applied."""
        return await self.submit(self.working_code, self.language, self.filename)

    def reset(self) -> None:
        """Return to IDLE and forget everything; any in-flight review is dropped."""
        self._generation += 1
        self.status = SessionStatus.IDLE
        self.original_code = ""
        self.working_code = ""
        self.result = None
        self.error_message = None
        self.language = None
        self.filename = None
        self.selector.bind(None)

    def _is_stale(self, generation: int) -> bool:
        if generation != self._generation:
            logger.debug("Discarding stale review response (generation %d, current %d)", generation, self._generation)
            return True
        return False

    def _fail(self, message: str) -> SessionStatus:
        self.status = SessionStatus.ERROR
        self.error_message = message
        return self.status

    # ------------------------------------------------------------------ #
    # Selection                                                            #
    # ------------------------------------------------------------------ #

    @property
    def selection(self) -> tuple[str, ...]:
        return self.selector.selection

    def toggle(self, fix_id: str) -> bool:
        return self.selector.toggle(fix_id)

    def select_all(self) -> None:
        self.selector.select_all()

    def clear(self) -> None:
        self.selector.clear()

    # ------------------------------------------------------------------ #
    # Fix application                                                      #
    # ------------------------------------------------------------------ #

    async def apply_fixes(self) -> ApplyOutcome:
        """Apply the selected fixes to the original code and store the result.

        Fix-service failures are absorbed by the applier, so this never moves
        the session into ERROR. The selection is cleared afterwards.
        """
        if self.result is None:
            raise InputError("no_result")
        if not len(self.selector):
            raise InputError("no_selection")

        result = self.result
        selection = self.selector.selection
        generation = self._generation
        try:
            outcome = await self.applier.apply(self.original_code, result, selection)
        finally:
            if generation == self._generation:
                self.selector.clear()

        if generation != self._generation:
            logger.debug("Discarding fix result for a superseded review")
            return outcome
        self.working_code = outcome.code
        logger.info("Applied %d fix(es) via %s", outcome.applied_count, outcome.method)
        return outcome


def create_session(config: dict) -> ReviewSession:
    """Wire a session from a loaded config: provider, analyzer, fix service."""
    from codeflow_core.analyzer import Analyzer
    from codeflow_core.applier import FixApplier
    from codeflow_core.fix_service import get_fix_service
    from codeflow_core.providers import get_provider

    provider = get_provider(config)
    analyzer = Analyzer(provider, max_code_chars=config.get("max_code_chars", 50000))
    applier = FixApplier(get_fix_service(config, provider))
    return ReviewSession(analyzer, applier)


def create_demo_session() -> ReviewSession:
    """A session that reviews with the built-in sample result and patches locally."""
    from codeflow_core.applier import FixApplier
    from codeflow_core.demo import DemoAnalyzer

    return ReviewSession(DemoAnalyzer(), FixApplier(None))
