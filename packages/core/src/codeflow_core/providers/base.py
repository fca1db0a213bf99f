"""Base provider implementing the Template Method pattern.

All providers share the same call path:
    analyze() / complete() → _call_api()   ← only this differs per provider
                           → error classification

Subclasses implement two things only:
  - __init__: validate and store the async SDK client
  - _call_api: make one raw API call and return the text response

Calls are made once. Nothing here retries: a failed analysis puts the
session into its error state and the user re-triggers it.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

from codeflow_core.errors import UpstreamError

if TYPE_CHECKING:
    from codeflow_core.request_builder import AnalysisRequest

logger = logging.getLogger(__name__)

_MAX_TOKENS = 8192


def classify_exception(exc: Exception) -> str:
    """Map an SDK or transport exception to an UpstreamError code.

    Both SDKs expose ``status_code`` on HTTP errors; the message fallback
    covers errors raised before a response exists (missing key, client
    construction).
    """
    status = getattr(exc, "status_code", None)
    if status in (401, 403):
        return "config"
    if status == 429:
        return "rate_limited"
    message = str(exc).lower()
    if "api key" in message or "api_key" in message or "authentication" in message:
        return "config"
    if "rate limit" in message or "rate_limit" in message:
        return "rate_limited"
    return "upstream"


class BaseProvider(ABC):
    MODEL: str = ""
    MAX_TOKENS: int = _MAX_TOKENS

    # ------------------------------------------------------------------ #
    # Public interface                                                     #
    # ------------------------------------------------------------------ #

    async def analyze(self, request: AnalysisRequest) -> str:
        """Send a built analysis request and return the raw response text."""
        return await self.complete(request.system_prompt, request.user_prompt)

    async def complete(self, system_prompt: str, user_prompt: str) -> str:
        """Make one call and translate any failure into UpstreamError."""
        try:
            text = await self._call_api(system_prompt, user_prompt)
        except UpstreamError:
            raise
        except Exception as e:
            code = classify_exception(e)
            logger.error("%s API call failed (%s): %s", self.__class__.__name__, code, e)
            raise UpstreamError(code, str(e)) from e
        if not text:
            raise UpstreamError("upstream", f"{self.__class__.__name__} returned an empty response")
        return text

    # ------------------------------------------------------------------ #
    # Abstract: implement in each provider                                #
    # ------------------------------------------------------------------ #

    @abstractmethod
    async def _call_api(self, system_prompt: str, user_prompt: str) -> str:
        """Make a single API call and return the raw text response.

        This is the only method subclasses must implement. It should raise
        on failure; complete() handles classification and logging.
        """
