"""Fix-Application services.

A fix service takes the code under review plus a list of before/after pairs
and returns the patched code. Two backends:

  ProviderFixService: asks the analysis provider to apply the fixes, the
                      same way the hosted apply-fix endpoint does.
  HttpFixService    : POSTs to a remote apply-fix endpoint.

Every failure is raised as ApplyError. FixApplier catches it and falls back
to local substitution, so callers never see these errors directly.
"""

from __future__ import annotations

import json
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

import httpx

from codeflow_core.errors import ApplyError, UpstreamError
from codeflow_core.normalizer import extract_json_object, strip_fences
from codeflow_core.prompts import APPLY_FIX_SYSTEM_PROMPT, build_apply_fix_prompt

if TYPE_CHECKING:
    from codeflow_core.models import FixPair
    from codeflow_core.providers.base import BaseProvider

logger = logging.getLogger(__name__)


@dataclass
class FixServiceResult:
    fixed_code: str
    applied_count: int
    applied_fixes: list[str] = field(default_factory=list)


def parse_fix_response(data, requested: int) -> FixServiceResult:
    """Validate a decoded apply-fix payload. ``fixedCode`` must be a string."""
    if not isinstance(data, dict) or not isinstance(data.get("fixedCode"), str):
        raise ApplyError("malformed_response", "Fix service response has no fixedCode string")
    count = data.get("appliedCount")
    if isinstance(count, bool) or not isinstance(count, int):
        count = requested
    applied = data.get("appliedFixes")
    if not isinstance(applied, list):
        applied = []
    return FixServiceResult(
        fixed_code=data["fixedCode"],
        applied_count=count,
        applied_fixes=[str(a) for a in applied],
    )


class BaseFixService(ABC):
    @abstractmethod
    async def apply(self, code: str, pairs: list[FixPair]) -> FixServiceResult:
        """Apply pairs to code remotely. Raise ApplyError on any failure."""


class ProviderFixService(BaseFixService):
    def __init__(self, provider: BaseProvider):
        self.provider = provider

    async def apply(self, code: str, pairs: list[FixPair]) -> FixServiceResult:
        user_prompt = build_apply_fix_prompt(code, [p.to_dict() for p in pairs])
        try:
            raw = await self.provider.complete(APPLY_FIX_SYSTEM_PROMPT, user_prompt)
        except UpstreamError as e:
            raise ApplyError(e.code, str(e)) from e

        candidate = extract_json_object(strip_fences(raw))
        if candidate is None:
            raise ApplyError("malformed_response", "No JSON object in fix response")
        try:
            data = json.loads(candidate)
        except json.JSONDecodeError as e:
            raise ApplyError("malformed_response", f"Fix response is not valid JSON: {e}") from e
        return parse_fix_response(data, len(pairs))


class HttpFixService(BaseFixService):
    def __init__(self, url: str, timeout: float = 60.0, client: httpx.AsyncClient | None = None):
        self.url = url
        self.timeout = timeout
        # An injected client is not closed here; its owner manages it.
        self._client = client

    async def apply(self, code: str, pairs: list[FixPair]) -> FixServiceResult:
        payload = {"code": code, "fixes": [p.to_dict() for p in pairs]}
        try:
            if self._client is not None:
                response = await self._client.post(self.url, json=payload, timeout=self.timeout)
            else:
                async with httpx.AsyncClient(timeout=self.timeout) as client:
                    response = await client.post(self.url, json=payload)
            response.raise_for_status()
            data = response.json()
        except httpx.HTTPStatusError as e:
            raise ApplyError("http_status", f"Fix service returned HTTP {e.response.status_code}") from e
        except httpx.HTTPError as e:
            raise ApplyError("network", f"Fix service request failed: {e}") from e
        except ValueError as e:
            raise ApplyError("malformed_response", f"Fix service returned invalid JSON: {e}") from e
        return parse_fix_response(data, len(pairs))


def get_fix_service(config: dict, provider: BaseProvider) -> BaseFixService:
    url = config.get("fix_service_url")
    if url:
        return HttpFixService(url, timeout=float(config.get("fix_service_timeout") or 60.0))
    return ProviderFixService(provider)
