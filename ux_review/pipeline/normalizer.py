"""Pull a list of findings out of a model's free-text reply.

Backends are not contractually bound to return clean JSON: replies arrive
wrapped in code fences, preceded by prose, or followed by commentary. The
normalizer strips fences, takes the widest ``[...]`` span and parses it,
falling back to a left-to-right scan with ``raw_decode`` when the wide span
has trailing brackets in prose. Elements that do not validate as a
``Finding`` are dropped one by one; only a reply with no decodable array at
all is an error.
"""

import json
import logging
import re
from typing import Any

from pydantic import ValidationError

from ux_review.errors import UnparsableResponseError
from ux_review.models.response import Finding

logger = logging.getLogger(__name__)

_FENCE_RE = re.compile(r"```[a-zA-Z]*\n?")
_ARRAY_SPAN_RE = re.compile(r"\[[\s\S]*\]")


def strip_code_fences(text: str) -> str:
    return _FENCE_RE.sub("", text).strip()


def _decode_array(text: str) -> list[Any]:
    match = _ARRAY_SPAN_RE.search(text)
    if not match:
        raise UnparsableResponseError(f"No JSON array found in response. Excerpt: {text[:300]!r}")

    try:
        payload = json.loads(match.group(0))
        if isinstance(payload, list):
            return payload
    except json.JSONDecodeError:
        pass

    # Prose such as "see [1]" can decode as a list too; prefer one holding objects
    decoder = json.JSONDecoder()
    first_list: list[Any] | None = None
    for start in (m.start() for m in re.finditer(r"\[", text)):
        try:
            payload, _ = decoder.raw_decode(text, idx=start)
        except json.JSONDecodeError:
            continue
        if not isinstance(payload, list):
            continue
        if any(isinstance(item, dict) for item in payload):
            return payload
        if first_list is None:
            first_list = payload
    if first_list is not None:
        return first_list

    raise UnparsableResponseError(f"Could not decode JSON array from response. Excerpt: {text[:300]!r}")


def coerce_findings(items: list[Any]) -> list[Finding]:
    findings: list[Finding] = []
    for index, item in enumerate(items):
        if not isinstance(item, dict):
            logger.debug("Dropping element %d: not an object (%s)", index, type(item).__name__)
            continue
        try:
            findings.append(Finding.model_validate(item))
        except ValidationError as exc:
            logger.debug("Dropping element %d: %d validation errors", index, exc.error_count())
    return findings


def normalize(raw_text: str) -> list[Finding]:
    """Return the well-formed findings in ``raw_text`` in their original order.

    Raises ``UnparsableResponseError`` when no JSON array can be located.
    """
    items = _decode_array(strip_code_fences(raw_text or ""))
    findings = coerce_findings(items)
    dropped = len(items) - len(findings)
    if dropped:
        logger.warning("Dropped %d of %d malformed findings", dropped, len(items))
    logger.debug("Normalized %d findings", len(findings))
    return findings
