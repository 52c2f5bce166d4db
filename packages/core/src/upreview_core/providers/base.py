"""Base reviewer implementing the Template Method pattern.

All providers share the same review algorithm:
    review() → _build_system_prompt() + _build_user_prompt()
             → _call_with_retry() → _call_api()   ← only this differs per provider
             → _parse()

Subclasses implement two things only:
  - __init__: validate and store the SDK client
  - _call_api: make one raw API call and return the text response
"""

from __future__ import annotations

import json
import logging
import time
from abc import ABC, abstractmethod

from upreview_core.models import ReviewComment

logger = logging.getLogger(__name__)

_MAX_RETRIES = 3
_MAX_TOKENS = 4096


class BaseReviewer(ABC):
    MAX_RETRIES: int = _MAX_RETRIES
    MAX_TOKENS: int = _MAX_TOKENS

    # ------------------------------------------------------------------ #
    # Public interface                                                     #
    # ------------------------------------------------------------------ #

    def review(self, changes: str, commits: str, guidelines: str, max_comments: int) -> list[ReviewComment]:
        """Review a whole branch diff and return the model's comments.

        Line citations in the result are unverified; run them through
        verify_comments() before anchoring anything.
        """
        system = self._build_system_prompt(guidelines, max_comments)
        user = self._build_user_prompt(changes, commits)
        raw = self._call_with_retry(system, user)
        if raw is None:
            return []
        return self._parse(raw)

    # ------------------------------------------------------------------ #
    # Abstract — implement in each provider                               #
    # ------------------------------------------------------------------ #

    @abstractmethod
    def _call_api(self, system_prompt: str, user_prompt: str) -> str:
        """Make a single API call and return the raw text response.

        Should raise on failure; _call_with_retry handles retries and logging.
        """

    # ------------------------------------------------------------------ #
    # Shared implementations                                               #
    # ------------------------------------------------------------------ #

    def _call_with_retry(self, system_prompt: str, user_prompt: str) -> str | None:
        """Retry _call_api up to MAX_RETRIES times with exponential backoff."""
        for attempt in range(self.MAX_RETRIES):
            try:
                return self._call_api(system_prompt, user_prompt)
            except Exception as e:
                if attempt == self.MAX_RETRIES - 1:
                    logger.error(
                        "%s API failed after %d attempts: %s",
                        self.__class__.__name__,
                        self.MAX_RETRIES,
                        e,
                    )
                    return None
                delay = 2**attempt
                logger.warning(
                    "%s API error (attempt %d/%d): %s. Retrying in %ds...",
                    self.__class__.__name__,
                    attempt + 1,
                    self.MAX_RETRIES,
                    e,
                    delay,
                )
                time.sleep(delay)

    def _build_system_prompt(self, guidelines: str, max_comments: int) -> str:
        return f"""You are a strict and precise senior code reviewer.
Review the branch diff below and identify issues according to the guidelines.

{guidelines}

Rules:
- Report at most {max_comments} comments, most important first.
- Cite line numbers from the NEW version of the file, and only for lines added in the diff (starting with '+').
- If an issue is not tied to one added line, use lineNumber 0.
- Avoid assumptions when context is unclear. Be concise and actionable."""

    def _build_user_prompt(self, changes: str, commits: str) -> str:
        return f"""## Commits
{commits}

## Diff
{changes}

### Output Format:
Respond with **only** a valid JSON list:

[
  {{
    "filePath": "<path of the file in the new version, without a/ or b/ prefix>",
    "lineNumber": <line number in the new file (integer), or 0>,
    "severity": "<low|medium|high>",
    "comment": "<concise, actionable comment in markdown>"
  }},
  ...
]

Severity guide:
- high: security vulnerability, data loss risk, crash, broken behaviour
- medium: logic bug in an edge case, missing error handling, performance issue
- low: readability, naming, small simplification

If there are no issues, return: []
Do not return any text outside the JSON block."""

    def _parse(self, raw: str) -> list[ReviewComment]:
        """Extract the JSON array between the first '[' and the last ']'."""
        start = raw.find("[")
        end = raw.rfind("]")
        if start == -1 or end <= start:
            logger.warning("%s: no JSON list in response: %s", self.__class__.__name__, raw[:200])
            return []
        try:
            items = json.loads(raw[start : end + 1])
        except json.JSONDecodeError:
            logger.warning(
                "%s: failed to parse response as JSON: %s",
                self.__class__.__name__,
                raw[:200],
            )
            return []
        return [ReviewComment.from_dict(item) for item in items if isinstance(item, dict)]
