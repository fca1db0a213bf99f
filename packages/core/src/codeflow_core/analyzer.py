"""Analysis pipeline: build request → provider → normalize."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from codeflow_core.normalizer import normalize
from codeflow_core.request_builder import MAX_CODE_CHARS, build_request

if TYPE_CHECKING:
    from codeflow_core.models import ReviewResult
    from codeflow_core.providers.base import BaseProvider

logger = logging.getLogger(__name__)


class Analyzer:
    """Review one code snippet end to end.

    Raises InputError before the provider is contacted, UpstreamError when the
    provider call fails and SchemaError when its answer cannot be read.
    """

    def __init__(self, provider: BaseProvider, max_code_chars: int = MAX_CODE_CHARS):
        self.provider = provider
        self.max_code_chars = max_code_chars

    async def review(self, code: str, language: str | None = None, filename: str | None = None) -> ReviewResult:
        request = build_request(code, language, filename, max_chars=self.max_code_chars)
        logger.debug("Requesting review of %d chars (%s)", len(code), filename or language or "snippet")
        raw = await self.provider.analyze(request)
        result = normalize(raw)
        logger.debug(
            "Review normalized: score=%d issues=%d changes=%d",
            result.score,
            len(result.issues),
            len(result.proposed_changes),
        )
        return result
