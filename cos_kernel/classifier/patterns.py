"""
Pattern Classifier — deterministic regex cascade over normalized text.

Used whenever the generative path is unavailable or its output names no
recognizable intent.

Behavioral Contract:
- Input is normalized (lower-cased, trimmed) before matching
- Rules are tried in order; the first match wins
- More specific rules precede more general ones
- No match yields Intent.UNKNOWN, never None
- Stateless and side-effect free: identical input, identical output
"""

import re
from typing import Iterable, List, Optional, Tuple, Union

from cos_kernel.classifier.slots import NUMBER, OPERATOR
from cos_kernel.models.intent import Intent


# Requests that carry digits without being arithmetic ("call 555-1234")
_NOT_ARITHMETIC = (
    r"(?!.*\b(?:call|phone|dial|text|message|send"
    r"|directions|navigate|route|take me)\b)"
)


def normalize(text: str) -> str:
    return text.lower().strip()


class PatternRule:
    """One (pattern, intent) entry in the cascade."""

    def __init__(
        self,
        name: str,
        pattern: Union[str, "re.Pattern[str]"],
        intent: Intent,
    ):
        self.name = name
        self.pattern = re.compile(pattern) if isinstance(pattern, str) else pattern
        self.intent = intent

    def matches(self, normalized_text: str) -> bool:
        return self.pattern.search(normalized_text) is not None

    def __repr__(self) -> str:
        return f"PatternRule({self.name!r}, {self.pattern.pattern!r}, {self.intent.value})"


def default_rules() -> List[PatternRule]:
    """The built-in cascade. Order is priority."""
    return [
        # Calculator before the file rules: "show me 2 + 2" is a calculation
        PatternRule(
            "percentage",
            r"\d+(?:\.\d+)?\s*(?:%|percent\b)\s*(?:tip\s+)?(?:of|on)\b",
            Intent.CALCULATE,
        ),
        PatternRule(
            "arithmetic",
            r"\bcalculate\b"
            rf"|^{_NOT_ARITHMETIC}.*?(?:"
            rf"{NUMBER}\s*{OPERATOR}\s*\d+"
            rf"|{NUMBER}\s+(?:plus|minus|times|divided by|multiplied by)\s+\d+"
            r"|\bsquare root\b|\bsqrt\b|\bto the power of\b)",
            Intent.CALCULATE,
        ),

        # File operations
        PatternRule(
            "list_files",
            r"(?:list|show|find).*(?:files?|documents?|downloads?)",
            Intent.LIST_FILES,
        ),
        PatternRule(
            "organize_files",
            r"organi[sz]e|sort.*(?:files?|photos?)",
            Intent.ORGANIZE_FILES,
        ),
        PatternRule(
            "delete_files",
            r"delete.*(?:old|files?)",
            Intent.DELETE_FILES,
        ),

        # App control
        PatternRule(
            "launch_app",
            r"(?:open|launch|start).*(?:app|application)",
            Intent.LAUNCH_APP,
        ),
        # Photos before app listing: "show photos of happy people" contains "app"
        PatternRule(
            "filtered_photos",
            r"show.*(?:photos?|pictures?).*\b(?:of|from)\b",
            Intent.SHOW_FILTERED_PHOTOS,
        ),
        PatternRule(
            "list_apps",
            r"show.*\b(?:apps?|applications?)\b",
            Intent.LIST_APPS,
        ),

        # Smart queries
        PatternRule(
            "send_message",
            r"\b(?:text|message|send)\b.*\b(?:to|mom|dad)\b",
            Intent.SEND_MESSAGE,
        ),
        PatternRule(
            "search_location",
            r"find.*(?:nearby|pizza|restaurant)",
            Intent.SEARCH_LOCATION,
        ),

        # System control
        PatternRule(
            "toggle_feature",
            r"(?:turn|set|toggle).*(?:wi-?fi|bluetooth|brightness|volume|dnd|disturb)",
            Intent.TOGGLE_FEATURE,
        ),
        PatternRule(
            "adjust_settings",
            r"(?:adjust|change|modify).*(?:setting|brightness|volume)",
            Intent.ADJUST_SETTINGS,
        ),

        # Communication
        PatternRule(
            "make_call",
            r"\b(?:call|phone|dial)\b",
            Intent.MAKE_CALL,
        ),

        # Navigation
        PatternRule(
            "get_directions",
            r"(?:directions|navigate|route).*\b(?:to|from)\b",
            Intent.GET_DIRECTIONS,
        ),
        PatternRule(
            "navigate",
            r"(?:take me|navigate|\bgo\b).*\b(?:to|home)\b",
            Intent.NAVIGATE,
        ),
    ]


class PatternClassifier:
    """Ordered first-match-wins classifier."""

    def __init__(self, rules: Optional[Iterable[PatternRule]] = None):
        self._rules: Tuple[PatternRule, ...] = tuple(
            rules if rules is not None else default_rules()
        )

    @property
    def rules(self) -> Tuple[PatternRule, ...]:
        return self._rules

    def classify_with_rule(self, text: str) -> Tuple[Intent, Optional[str]]:
        """Classify and report which rule fired (None when nothing matched)."""
        normalized = normalize(text)
        for rule in self._rules:
            if rule.matches(normalized):
                return rule.intent, rule.name
        return Intent.UNKNOWN, None

    def classify(self, text: str) -> Intent:
        intent, _ = self.classify_with_rule(text)
        return intent
