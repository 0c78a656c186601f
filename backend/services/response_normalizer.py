"""Normalize n8n workflow replies into the payload the chat UI displays."""
import json
import logging
import re
from typing import Any, Dict, Optional, Tuple

logger = logging.getLogger(__name__)

_LEADING_FENCE = re.compile(r"^\s*```(?:json)?\s*", re.IGNORECASE)
_TRAILING_FENCE = re.compile(r"\s*```\s*$")

# Fields of the classification object, in display priority order
TEXT_FIELDS = ("confirmation_question", "why", "technology_guess")


def strip_code_fences(text: str) -> str:
    """Remove a surrounding ```json ... ``` or ``` ... ``` wrapper."""
    return _TRAILING_FENCE.sub("", _LEADING_FENCE.sub("", text)).strip()


def try_parse_json(text: str) -> Tuple[bool, Any, str]:
    """
    Parse JSON that a model may have wrapped in code fences.

    Returns:
        (ok, parsed value or None, cleaned text)
    """
    cleaned = strip_code_fences(text)
    try:
        return True, json.loads(cleaned), cleaned
    except ValueError:
        return False, None, cleaned


def _first_item(raw: Any) -> Any:
    if isinstance(raw, list):
        return raw[0] if raw else None
    return raw


def extract_chat_text(raw: Any) -> str:
    """Read the text of a chat-style reply: ``[{output: [{content: [{text}]}]}]``."""
    first = _first_item(raw)
    if not isinstance(first, dict):
        return ""
    try:
        text = first["output"][0]["content"][0]["text"]
    except (KeyError, IndexError, TypeError):
        return ""
    return text if isinstance(text, str) else ""


def _pick_text(obj: Optional[Dict[str, Any]], fields=TEXT_FIELDS) -> str:
    if not isinstance(obj, dict):
        return ""
    for name in fields:
        value = obj.get(name)
        if isinstance(value, str) and value:
            return value
    return ""


def _classification(raw: Any) -> Optional[Dict[str, Any]]:
    """Find the classification object, nested under ``llm`` or at the root."""
    for candidate in (raw, _first_item(raw)):
        if not isinstance(candidate, dict):
            continue
        llm = candidate.get("llm")
        if isinstance(llm, dict):
            return llm
        if "confirmation_question" in candidate or "technology_guess" in candidate:
            return candidate
    return None


def build_assistant_payload(raw: Any) -> Dict[str, Any]:
    """
    Build ``{ok, n8n_raw, assistant_text, assistant_json}`` from a webhook reply.

    An explicit classification object wins; otherwise the chat-style text is
    parsed as (possibly fenced) JSON, falling back to the text itself.
    """
    llm = _classification(raw)
    if llm is not None:
        return {
            "ok": True,
            "n8n_raw": raw,
            "assistant_text": _pick_text(llm),
            "assistant_json": llm,
        }

    if isinstance(raw, str):
        text = raw
    else:
        text = extract_chat_text(raw)

    assistant_json = None
    if text:
        ok, parsed, _ = try_parse_json(text)
        if ok:
            assistant_json = parsed
        else:
            logger.debug("Webhook text is not JSON, displaying it verbatim")

    assistant_text = _pick_text(assistant_json, fields=TEXT_FIELDS[:2]) or text or ""

    return {
        "ok": True,
        "n8n_raw": raw,
        "assistant_text": assistant_text,
        "assistant_json": assistant_json,
    }
