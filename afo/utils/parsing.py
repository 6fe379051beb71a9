"""Parsing helpers for free-text agent output, plus the LLM retry wrapper.

Agent output has no enforced schema. It may be clean JSON, JSON wrapped in
prose or markdown fences, or something else entirely. Every parser here is
best-effort and never raises.
"""

import json
import re
import sys
from typing import Callable

import httpx
from tenacity import retry, stop_after_attempt, wait_exponential, retry_if_exception

_FENCE_RE = re.compile(r"```(?:json)?\s*\n?(.*?)\n?\s*```", re.DOTALL)
_ARRAY_RE = re.compile(r"\[.*?\]", re.DOTALL)
_OBJECT_RE = re.compile(r"\{.*\}", re.DOTALL)
_QUOTED_RE = re.compile(r'"([^"]+)"')

# Quoted-string fallback keeps only strings strictly inside these bounds,
# which drops short JSON keys and stray punctuation.
MIN_QUOTED_LEN = 5
MAX_QUOTED_LEN = 200


def strip_fences(text: str) -> str:
    """Strip markdown code fences from LLM output if present."""
    match = _FENCE_RE.search(text)
    return match.group(1).strip() if match else text.strip()


def _string_items(candidate: str) -> list[str] | None:
    """Parse ``candidate`` as a JSON array and keep its string elements.

    Returns None when it is not valid JSON or not an array.
    """
    try:
        parsed = json.loads(candidate)
    except json.JSONDecodeError:
        return None
    if not isinstance(parsed, list):
        return None
    return [item for item in parsed if isinstance(item, str)]


def parse_affirmations(text: str) -> list[str]:
    """Extract a list of affirmation strings from an agent response.

    Strategies, in order:
    1. the text as a JSON array, after trimming; when a fenced block is present
       anywhere (even after leading prose) only the first block is parsed
    2. the first bracketed span in the text as a JSON array
    3. every double-quoted substring of plausible length

    An empty list means nothing usable was found; callers treat that as an error.
    """
    if not text:
        return []

    trimmed = strip_fences(text)
    if trimmed.startswith("["):
        items = _string_items(trimmed)
        if items is not None:
            return items

    match = _ARRAY_RE.search(text)
    if match:
        items = _string_items(match.group(0))
        if items is not None:
            return items

    return [
        s for s in _QUOTED_RE.findall(text)
        if MIN_QUOTED_LEN < len(s) < MAX_QUOTED_LEN
    ]


def parse_json_object(text: str, validate: Callable[[dict], dict]) -> dict | None:
    """Extract and validate a JSON object from an agent response.

    ``validate`` receives the decoded object and returns the normalized dict,
    or raises ValueError when the shape is wrong.

    Strategies, in order:
    1. the whole text, trimmed and unfenced, if it starts with ``{``
    2. the widest ``{...}`` span in the text

    Returns None when neither yields a valid object.
    """
    if not text:
        return None

    trimmed = strip_fences(text)
    candidates = []
    if trimmed.startswith("{"):
        candidates.append(trimmed)
    match = _OBJECT_RE.search(text)
    if match:
        candidates.append(match.group(0))

    for candidate in candidates:
        try:
            return validate(json.loads(candidate))
        except (json.JSONDecodeError, ValueError):
            continue
    return None


def _is_transient(exc: BaseException) -> bool:
    """Return True if the exception is a transient HTTP/network error worth retrying."""
    if isinstance(exc, httpx.TimeoutException):
        return True
    if isinstance(exc, httpx.ConnectError):
        return True
    if isinstance(exc, httpx.HTTPStatusError):
        return exc.response.status_code in (429, 500, 502, 503)
    return False


def invoke_with_retry(llm, messages, max_retries: int = 0):
    """Call llm.invoke(messages), retrying transient errors with exponential backoff.

    Retries on HTTP 429/500/502/503, connection errors, and timeouts, up to
    ``llm_max_retries`` from config (0 by default: a failed call surfaces to the
    caller, which offers a manual retry). Other errors are raised immediately.
    """
    from afo.config import get_config

    config = get_config()
    retries = config.get("llm_max_retries", max_retries)

    @retry(
        stop=stop_after_attempt(retries + 1),  # +1 because first attempt counts
        wait=wait_exponential(multiplier=1, min=2, max=16),
        retry=retry_if_exception(_is_transient),
        reraise=True,
        before_sleep=lambda state: print(
            f"[afo] Transient error: {state.outcome.exception()!r}. "
            f"Retrying in {state.next_action.sleep:.0f}s "
            f"(attempt {state.attempt_number}/{retries})...",
            file=sys.stderr,
        ),
    )
    def _invoke():
        return llm.invoke(messages)

    return _invoke()
