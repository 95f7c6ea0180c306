"""Tests for the Generative Response Parser and the pattern fallback."""

from cos_kernel.models.intent import Intent
from cos_kernel.models.result import (
    DEFAULT_REPLY,
    UNKNOWN_REPLY,
    ResultSource,
)
from cos_kernel.understanding.parser import (
    classify_fallback,
    parse_completion,
    parse_data_pairs,
    split_labels,
)


class TestDataPairs:
    def test_simple_pairs(self):
        assert parse_data_pairs("location:downloads, days:7") == {
            "location": "downloads",
            "days": "7",
        }

    def test_malformed_pairs_dropped(self):
        pairs = parse_data_pairs("a:1, bad, c:d:e, :x, k: v")
        assert pairs == {"a": "1", "k": "v"}

    def test_empty(self):
        assert parse_data_pairs("") == {}


class TestSplitLabels:
    def test_last_label_wins(self):
        completion = (
            "INTENT: LIST_FILES\n"
            "RESPONSE: first\n"
            "INTENT: MAKE_CALL\n"
            "RESPONSE: second\n"
        )
        intent, response, _ = split_labels(completion)
        assert intent == "MAKE_CALL"
        assert response == "second"

    def test_data_lines_merge_by_key(self):
        _, _, data = split_labels("DATA: a:1, b:2\nDATA: b:3, c:4")
        assert data == {"a": "1", "b": "3", "c": "4"}

    def test_labels_are_case_sensitive(self):
        intent, response, data = split_labels("intent: CALCULATE\nresponse: hi")
        assert intent is None
        assert response is None
        assert data == {}


class TestParseCompletion:
    def test_recognized_intent(self):
        result = parse_completion(
            "INTENT: CALCULATE\nRESPONSE: ok\nDATA: expression:2+2",
            "what is 2+2",
        )
        assert result.intent == Intent.CALCULATE
        assert result.confidence == 0.8
        assert result.reply == "ok"
        assert result.action_data == {"expression": "2+2"}
        assert result.source == ResultSource.GENERATIVE

    def test_missing_response_uses_default(self):
        result = parse_completion("INTENT: MAKE_CALL", "call mom")
        assert result.intent == Intent.MAKE_CALL
        assert result.reply == DEFAULT_REPLY

    def test_unknown_label_falls_back_to_patterns(self):
        result = parse_completion(
            "INTENT: BOGUS\nRESPONSE: whatever", "calculate 5 + 7"
        )
        assert result.intent == Intent.CALCULATE
        assert result.confidence == 0.8
        assert result.action_data["expression"] == "5 + 7"
        assert result.reply == DEFAULT_REPLY
        assert result.source == ResultSource.PATTERN

    def test_garbage_completion_degrades(self):
        result = parse_completion("¯\\_(ツ)_/¯", "hello there")
        assert result.intent == Intent.UNKNOWN
        assert result.confidence == 0.3
        assert result.reply == UNKNOWN_REPLY

    def test_empty_completion(self):
        result = parse_completion("", "take me home")
        assert result.intent == Intent.NAVIGATE
        assert result.action_data == {"destination": "home"}

    def test_model_unknown_still_consults_patterns(self):
        result = parse_completion("INTENT: UNKNOWN", "turn on wifi")
        assert result.intent == Intent.TOGGLE_FEATURE
        assert result.source == ResultSource.PATTERN


class TestFallback:
    def test_slots_merged_over_parsed_data(self):
        result = classify_fallback(
            "send a message to mom",
            parsed_data={"note": "hi", "recipient": "someone"},
        )
        assert result.intent == Intent.SEND_MESSAGE
        assert result.action_data == {"note": "hi", "recipient": "mom", "message": ""}

    def test_confidence_in_range(self):
        for text in ("", "list files", "what", "call dad", "2 + 2"):
            result = classify_fallback(text)
            assert 0.0 <= result.confidence <= 1.0
