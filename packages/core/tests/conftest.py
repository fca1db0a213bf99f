import json

import pytest

from codeflow_core.errors import ApplyError
from codeflow_core.fix_service import BaseFixService, FixServiceResult
from codeflow_core.providers.base import BaseProvider

LOOSE_EQUALITY_CODE = "if (x == 1) { y = 2 }"

LOOSE_EQUALITY_RESPONSE = {
    "score": 70,
    "categories": {"security": 70, "performance": 70, "readability": 70, "bestPractices": 70},
    "issues": [
        {
            "id": "issue-1",
            "severity": "warning",
            "line": 1,
            "title": "Loose equality",
            "description": "...",
            "fix": {"description": "use strict equality", "before": "x == 1", "after": "x === 1"},
        }
    ],
    "suggestions": [],
    "proposedChanges": [
        {"id": "issue-1", "title": "Loose equality", "description": "...", "before": "x == 1", "after": "x === 1"}
    ],
    "actionItems": [],
}


class ScriptedProvider(BaseProvider):
    """Returns queued replies in order; an Exception in the queue is raised."""

    def __init__(self, *replies):
        self.replies = list(replies)
        self.prompts = []

    async def _call_api(self, system_prompt: str, user_prompt: str) -> str:
        self.prompts.append(user_prompt)
        reply = self.replies.pop(0)
        if isinstance(reply, Exception):
            raise reply
        return reply


class FailingFixService(BaseFixService):
    def __init__(self):
        self.calls = 0

    async def apply(self, code, pairs):
        self.calls += 1
        raise ApplyError("network", "service unavailable")


class RecordingFixService(BaseFixService):
    def __init__(self, fixed_code="patched remotely"):
        self.fixed_code = fixed_code
        self.calls = []

    async def apply(self, code, pairs):
        self.calls.append((code, list(pairs)))
        return FixServiceResult(fixed_code=self.fixed_code, applied_count=len(pairs))


@pytest.fixture
def loose_equality_raw():
    return json.dumps(LOOSE_EQUALITY_RESPONSE)


@pytest.fixture
def loose_equality_code():
    return LOOSE_EQUALITY_CODE


@pytest.fixture
def scripted_provider():
    return ScriptedProvider


@pytest.fixture
def failing_fix_service():
    return FailingFixService()


@pytest.fixture
def recording_fix_service():
    return RecordingFixService()
