"""
Slot extractors — pull one typed value out of free text.

Behavioral Contract:
- Every extractor is a pure function of its input.
- Never raises. No match yields "" for text slots and None for numeric slots.
- Callers treat an empty value as "not present" and decide what to do.
"""

import re
from typing import Any, Callable, Dict, List, Optional

from cos_kernel.models.intent import Intent


NUMBER = r"\d+(?:\.\d+)?"
OPERATOR = r"[+\-*/^×x]"

_PERSON_RE = re.compile(r"\b(?:of|from)\s+(\w+)")
_TIMEFRAME_RE = re.compile(r"\b(yesterday|today|last\s+week|vacation|trip)\b")
_RECIPIENT_RE = re.compile(r"\b(?:to|text)\s+(\w+)")
_QUOTED_RE = re.compile(r"[\"“‘]([^\"”’]+)[\"”’]")
_MESSAGE_RE = re.compile(r"\b(?:that|saying)\s+(.+)$", re.IGNORECASE)
_EXPRESSION_RE = re.compile(rf"({NUMBER}\s*{OPERATOR}\s*{NUMBER})")
_PERCENT_RE = re.compile(rf"({NUMBER})\s*(?:%|percent\b)")
_DOLLAR_RE = re.compile(rf"\$\s*({NUMBER})")
_BASE_AMOUNT_RE = re.compile(rf"\b(?:of|on)\s+\$?\s*({NUMBER})")
_DAYS_RE = re.compile(r"(\d+)\s*days?\b")
_DURATION_RES: List[re.Pattern] = [
    re.compile(r"\bfor\s+(\d+\s+hours?)\b"),
    re.compile(r"\bfor\s+(\d+\s+minutes?)\b"),
    re.compile(r"\buntil\s+(\d{1,2}:\d{2})"),
    re.compile(r"\buntil\s+(\d{1,2}\s?[ap]m)\b"),
]
_DESTINATION_RES: List[re.Pattern] = [
    re.compile(r"\b(?:directions|route)\s+to\s+(.+)"),
    re.compile(r"\b(?:navigate|go)\s+to\s+(.+)"),
    re.compile(r"\btake\s+me\s+(?:to\s+)?(.+)"),
    re.compile(r"\b(?:traffic\s+to|how\s+long\s+to)\s+(.+)"),
]

# Spoken operators rewritten before expression matching. Longest phrases first.
_OPERATOR_WORDS = [
    (re.compile(r"\bto the power of\b"), "^"),
    (re.compile(r"\bmultiplied by\b"), "*"),
    (re.compile(r"\bdivided by\b"), "/"),
    (re.compile(r"\bplus\b"), "+"),
    (re.compile(r"\bminus\b"), "-"),
    (re.compile(r"\btimes\b"), "*"),
]

# Spoken location -> canonical folder name
LOCATIONS: Dict[str, str] = {
    "downloads": "downloads",
    "download": "downloads",
    "pictures": "pictures",
    "photos": "pictures",
    "documents": "documents",
    "music": "music",
    "videos": "videos",
}


def _to_float(value: str) -> Optional[float]:
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def extract_person_name(text: str) -> str:
    match = _PERSON_RE.search(text.lower())
    return match.group(1) if match else ""


def extract_timeframe(text: str) -> str:
    match = _TIMEFRAME_RE.search(text.lower())
    return re.sub(r"\s+", " ", match.group(1)) if match else ""


def extract_recipient(text: str) -> str:
    match = _RECIPIENT_RE.search(text.lower())
    return match.group(1) if match else ""


def extract_message(text: str) -> str:
    """Message body: a quoted clause, else whatever follows "that"/"saying"."""
    match = _QUOTED_RE.search(text)
    if match and match.group(1).strip():
        return match.group(1).strip()
    match = _MESSAGE_RE.search(text)
    return match.group(1).strip() if match else ""


def rewrite_operator_words(text: str) -> str:
    """Replace spoken operators ("plus", "divided by") with their symbols."""
    rewritten = text.lower()
    for pattern, symbol in _OPERATOR_WORDS:
        rewritten = pattern.sub(symbol, rewritten)
    return rewritten


def extract_math_expression(text: str) -> str:
    """First contiguous ``number operator number`` shape, e.g. "5 + 7"."""
    match = _EXPRESSION_RE.search(rewrite_operator_words(text))
    return match.group(1).strip() if match else ""


def extract_percentage(text: str) -> Optional[float]:
    match = _PERCENT_RE.search(text.lower())
    return _to_float(match.group(1)) if match else None


def extract_amount(text: str) -> Optional[float]:
    """Base amount of a percentage question: "$50", "of 80", "on 50"."""
    lowered = text.lower()
    match = _DOLLAR_RE.search(lowered) or _BASE_AMOUNT_RE.search(lowered)
    return _to_float(match.group(1)) if match else None


def extract_duration(text: str) -> str:
    lowered = text.lower()
    for pattern in _DURATION_RES:
        match = pattern.search(lowered)
        if match:
            return match.group(1)
    return ""


def extract_days(text: str) -> Optional[int]:
    match = _DAYS_RE.search(text.lower())
    return int(match.group(1)) if match else None


def extract_destination(text: str) -> str:
    lowered = text.lower()
    for pattern in _DESTINATION_RES:
        match = pattern.search(lowered)
        if match:
            return match.group(1).strip().rstrip(".?!").strip()
    return ""


def extract_location(text: str) -> str:
    """Canonical file location mentioned in the text, or ""."""
    words = re.findall(r"\w+", text.lower())
    for word in words:
        if word in LOCATIONS:
            return LOCATIONS[word]
    return ""


def _calculation_slots(text: str) -> Dict[str, Any]:
    data: Dict[str, Any] = {"expression": extract_math_expression(text)}
    percentage = extract_percentage(text)
    if percentage is not None:
        data["percentage"] = percentage
        amount = extract_amount(text)
        if amount is not None:
            data["amount"] = amount
    return data


def _optional(**slots: Any) -> Dict[str, Any]:
    return {k: v for k, v in slots.items() if v not in ("", None)}


# Slot bundle per intent. Intents not listed carry no slots.
_INTENT_SLOTS: Dict[Intent, Callable[[str], Dict[str, Any]]] = {
    Intent.SHOW_FILTERED_PHOTOS: lambda t: {
        "person": extract_person_name(t),
        "timeframe": extract_timeframe(t),
    },
    Intent.SEND_MESSAGE: lambda t: {
        "recipient": extract_recipient(t),
        "message": extract_message(t),
    },
    Intent.CALCULATE: _calculation_slots,
    Intent.LIST_FILES: lambda t: _optional(location=extract_location(t)),
    Intent.ORGANIZE_FILES: lambda t: _optional(location=extract_location(t)),
    Intent.DELETE_FILES: lambda t: _optional(
        location=extract_location(t), days=extract_days(t)
    ),
    Intent.GET_DIRECTIONS: lambda t: _optional(destination=extract_destination(t)),
    Intent.NAVIGATE: lambda t: _optional(destination=extract_destination(t)),
    Intent.TOGGLE_FEATURE: lambda t: _optional(
        level=extract_percentage(t), duration=extract_duration(t)
    ),
    Intent.ADJUST_SETTINGS: lambda t: _optional(
        level=extract_percentage(t), duration=extract_duration(t)
    ),
}


def extract_action_data(intent: Intent, text: str) -> Dict[str, Any]:
    """Run the slot extractors relevant to ``intent`` over ``text``."""
    extractor = _INTENT_SLOTS.get(intent)
    if extractor is None:
        return {}
    return extractor(text)
