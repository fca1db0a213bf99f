"""Built-in sample review, for trying codeflow without an API key."""

from __future__ import annotations

import json

from codeflow_core.normalizer import normalize

DEMO_LANGUAGE = "javascript"
DEMO_FILENAME = "users.js"

DEMO_CODE = """function processUserData(users) {
  let html = "";
  for (let i = 0; i < users.length; i++) {
    let user = users[i];
    html += "<div class='user-card'>";
    html += "<p>" + user.email + "</p>";
    if (user.isAdmin == true) {
      html += "<span class='admin-badge'>Admin</span>";
    }
    html += "</div>";
  }
  // TODO: Add error handling
  return html;
}

const userData = fetchUsers();
processUserData(userData);
"""

DEMO_RESPONSE = {
    "score": 72,
    "summary": "Code has security concerns and missing error handling that need attention before shipping.",
    "categories": {"security": 65, "performance": 70, "readability": 68, "bestPractices": 75},
    "issues": [
        {
            "id": "issue-1",
            "severity": "critical",
            "line": 6,
            "title": "Potential XSS Vulnerability",
            "description": (
                "User email is inserted directly into HTML without sanitization. An attacker could inject "
                "scripts through the email field that run in other users' browsers."
            ),
            "fix": {
                "description": "Escape HTML characters in user input",
                "before": 'html += "<p>" + user.email + "</p>";',
                "after": 'html += "<p>" + escapeHtml(user.email) + "</p>";',
            },
        },
        {
            "id": "issue-2",
            "severity": "warning",
            "line": 17,
            "title": "Missing Input Validation",
            "description": "userData is used without a check. If fetchUsers() fails, this crashes.",
            "fix": {
                "description": "Add a null check before processing",
                "before": "processUserData(userData);",
                "after": "if (userData && Array.isArray(userData)) {\n  processUserData(userData);\n}",
            },
        },
        {
            "id": "issue-3",
            "severity": "warning",
            "line": 12,
            "title": "TODO Left in Production Code",
            "description": "Error handling is marked as unfinished and should be implemented before deployment.",
        },
    ],
    "suggestions": [
        {
            "id": "suggestion-1",
            "title": "Use Strict Equality",
            "description": "Using == instead of === can cause unexpected type coercion bugs.",
            "before": "if (user.isAdmin == true)",
            "after": "if (user.isAdmin === true)",
        },
    ],
    "proposedChanges": [
        {
            "id": "change-1",
            "title": "Add XSS Protection",
            "description": "Sanitize user input to prevent script injection",
            "before": 'html += "<p>" + user.email + "</p>";',
            "after": "html += `<p>${escapeHtml(user.email)}</p>`;",
            "lineStart": 6,
            "lineEnd": 6,
        },
        {
            "id": "change-2",
            "title": "Add Input Validation",
            "description": "Check that the users array exists before processing",
            "before": "processUserData(userData);",
            "after": "if (userData?.length) processUserData(userData);",
            "lineStart": 17,
            "lineEnd": 17,
        },
    ],
    "actionItems": [
        {
            "id": "action-1",
            "priority": "high",
            "title": "Fix XSS vulnerability in email display",
            "description": "Critical security issue that could let attackers steal user data",
            "relatedIssueId": "issue-1",
        },
        {
            "id": "action-2",
            "priority": "high",
            "title": "Add input validation for users parameter",
            "description": "Prevent runtime crashes from missing data",
            "relatedIssueId": "issue-2",
        },
        {
            "id": "action-3",
            "priority": "low",
            "title": "Complete TODO for error handling",
            "description": "Finish the unfinished work before shipping",
        },
    ],
}


class DemoAnalyzer:
    """Stands in for Analyzer: every review returns the sample result."""

    async def review(self, code, language=None, filename=None):
        return normalize(json.dumps(DEMO_RESPONSE))
