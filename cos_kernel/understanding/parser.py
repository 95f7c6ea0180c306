"""
Generative Response Parser — labeled-line completion → ClassificationResult.

The model is asked to answer as:

    INTENT: <one of the Intent labels>
    RESPONSE: <natural reply>
    DATA: key:value, key:value

Behavioral Contract:
- Labels are matched case-sensitively at line start; the last INTENT and
  RESPONSE win, DATA pairs from every line are merged key by key
- DATA pairs that do not split into exactly two parts on ":" are dropped
- A recognized intent keeps the model's reply verbatim, confidence 0.8
- An unrecognized intent is not an error: the model's intent and reply are
  discarded and the Pattern Classifier + slot extractors decide instead
- Never raises
"""

from typing import Any, Dict, Optional, Tuple

from loguru import logger

from cos_kernel.classifier.patterns import PatternClassifier
from cos_kernel.classifier.slots import extract_action_data
from cos_kernel.models.intent import Intent
from cos_kernel.models.result import (
    DEFAULT_REPLY,
    DEGRADED_CONFIDENCE,
    MATCHED_CONFIDENCE,
    UNKNOWN_REPLY,
    ClassificationResult,
    ResultSource,
)


INTENT_LABEL = "INTENT:"
RESPONSE_LABEL = "RESPONSE:"
DATA_LABEL = "DATA:"

_default_classifier = PatternClassifier()


def parse_data_pairs(data: str) -> Dict[str, str]:
    """Parse ``key:value, key:value``. Malformed pairs are silently dropped."""
    pairs: Dict[str, str] = {}
    for pair in data.split(","):
        parts = pair.strip().split(":")
        if len(parts) == 2:
            key, value = parts[0].strip(), parts[1].strip()
            if key:
                pairs[key] = value
    return pairs


def split_labels(completion: str) -> Tuple[Optional[str], Optional[str], Dict[str, str]]:
    """Return (intent label, response, data) as found in the completion."""
    intent_label: Optional[str] = None
    response: Optional[str] = None
    data: Dict[str, str] = {}

    for line in completion.splitlines():
        if line.startswith(INTENT_LABEL):
            intent_label = line[len(INTENT_LABEL):].strip()
        elif line.startswith(RESPONSE_LABEL):
            response = line[len(RESPONSE_LABEL):].strip()
        elif line.startswith(DATA_LABEL):
            # Pairs merge across DATA lines; a later key overwrites an earlier one
            data.update(parse_data_pairs(line[len(DATA_LABEL):].strip()))

    return intent_label, response, data


def parse_completion(
    completion: str,
    utterance: str,
    classifier: Optional[PatternClassifier] = None,
) -> ClassificationResult:
    """Parse a model completion, falling back to patterns on an unknown intent."""
    intent_label, response, data = split_labels(completion or "")
    intent = Intent.from_label(intent_label) if intent_label else Intent.UNKNOWN

    if intent != Intent.UNKNOWN:
        return ClassificationResult(
            intent=intent,
            confidence=MATCHED_CONFIDENCE,
            reply=response if response is not None else DEFAULT_REPLY,
            action_data=dict(data),
            source=ResultSource.GENERATIVE,
        )

    return classify_fallback(utterance, classifier, parsed_data=data, label=intent_label)


def classify_fallback(
    utterance: str,
    classifier: Optional[PatternClassifier] = None,
    parsed_data: Optional[Dict[str, Any]] = None,
    label: Optional[str] = None,
) -> ClassificationResult:
    """Deterministic path: Pattern Classifier plus the intent's slot bundle."""
    classifier = classifier or _default_classifier
    intent, rule = classifier.classify_with_rule(utterance)

    action_data: Dict[str, Any] = dict(parsed_data or {})
    action_data.update(extract_action_data(intent, utterance))

    logger.debug(
        f"Fallback classification: label={label!r} -> {intent.value} (rule={rule})"
    )

    return ClassificationResult(
        intent=intent,
        confidence=(
            MATCHED_CONFIDENCE if intent != Intent.UNKNOWN else DEGRADED_CONFIDENCE
        ),
        reply=DEFAULT_REPLY if intent != Intent.UNKNOWN else UNKNOWN_REPLY,
        action_data=action_data,
        source=ResultSource.PATTERN,
    )
