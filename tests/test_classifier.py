"""Tests for the Pattern Classifier and the slot extractors."""

import pytest

from cos_kernel.classifier.patterns import (
    PatternClassifier,
    PatternRule,
    default_rules,
    normalize,
)
from cos_kernel.classifier.slots import (
    extract_action_data,
    extract_amount,
    extract_days,
    extract_destination,
    extract_duration,
    extract_location,
    extract_math_expression,
    extract_message,
    extract_percentage,
    extract_person_name,
    extract_recipient,
    extract_timeframe,
)
from cos_kernel.models.intent import Intent


class TestPatternClassifier:
    @pytest.mark.parametrize(
        "text,expected",
        [
            ("List my files in downloads", Intent.LIST_FILES),
            ("organize my photos", Intent.ORGANIZE_FILES),
            ("delete old files", Intent.DELETE_FILES),
            ("open the camera app", Intent.LAUNCH_APP),
            ("show me all apps", Intent.LIST_APPS),
            ("show me photos of john from vacation", Intent.SHOW_FILTERED_PHOTOS),
            ("send a message to mom", Intent.SEND_MESSAGE),
            ("find nearby pizza", Intent.SEARCH_LOCATION),
            ("turn on wifi", Intent.TOGGLE_FEATURE),
            ("change the brightness", Intent.ADJUST_SETTINGS),
            ("call john", Intent.MAKE_CALL),
            ("get directions to the airport", Intent.GET_DIRECTIONS),
            ("take me home", Intent.NAVIGATE),
            ("calculate 5 + 7", Intent.CALCULATE),
            ("What's 15% tip on $50", Intent.CALCULATE),
            ("what is 12 divided by 4", Intent.CALCULATE),
            ("hello there", Intent.UNKNOWN),
            ("", Intent.UNKNOWN),
        ],
    )
    def test_default_cascade(self, text, expected):
        assert PatternClassifier().classify(text) == expected

    def test_normalization(self):
        assert normalize("  Turn On WiFi  ") == "turn on wifi"
        classifier = PatternClassifier()
        assert classifier.classify("  TURN ON WIFI ") == classifier.classify("turn on wifi")

    def test_deterministic(self):
        classifier = PatternClassifier()
        text = "show me photos of anna from the trip"
        results = {classifier.classify(text) for _ in range(20)}
        assert results == {Intent.SHOW_FILTERED_PHOTOS}

    def test_calculation_precedes_generic_show(self):
        """A bare arithmetic expression wins over the generic 'show' file rule."""
        intent, rule = PatternClassifier().classify_with_rule("show me 2 + 2 files")
        assert intent == Intent.CALCULATE
        assert rule == "arithmetic"

    def test_bare_expression_is_calculation(self):
        intent, rule = PatternClassifier().classify_with_rule("show me 2 + 2")
        assert intent == Intent.CALCULATE
        assert rule == "arithmetic"

    @pytest.mark.parametrize(
        "text,expected",
        [
            ("call 555-1234", Intent.MAKE_CALL),
            ("dial 555 - 0199", Intent.MAKE_CALL),
            ("text mom I will be 5-10 minutes late", Intent.SEND_MESSAGE),
            ("get directions to 12-14 main street", Intent.GET_DIRECTIONS),
        ],
    )
    def test_digits_inside_other_requests_are_not_arithmetic(self, text, expected):
        assert PatternClassifier().classify(text) == expected

    def test_times_sign_matches_extractor(self):
        text = "what is 3 x 4"
        assert PatternClassifier().classify(text) == Intent.CALCULATE
        assert extract_math_expression(text) == "3 x 4"

    def test_photos_precede_app_listing(self):
        # "happy" contains "app"; the photo rule must fire first
        intent = PatternClassifier().classify("show photos of happy people")
        assert intent == Intent.SHOW_FILTERED_PHOTOS

    def test_rule_order_decides_ties(self):
        """Earlier, more specific rule wins over a later general one."""
        specific = PatternRule("specific", r"show.*photos", Intent.SHOW_FILTERED_PHOTOS)
        general = PatternRule("general", r"show", Intent.LIST_FILES)

        assert PatternClassifier([specific, general]).classify("show photos") == (
            Intent.SHOW_FILTERED_PHOTOS
        )
        assert PatternClassifier([general, specific]).classify("show photos") == (
            Intent.LIST_FILES
        )

    def test_no_rule_reports_none(self):
        intent, rule = PatternClassifier().classify_with_rule("good morning")
        assert intent == Intent.UNKNOWN
        assert rule is None

    def test_default_rules_are_fresh_copies(self):
        assert default_rules()[0] is not default_rules()[0]


class TestSlotExtractors:
    def test_person_and_timeframe(self):
        text = "Show me photos of Sarah from last week"
        assert extract_person_name(text) == "sarah"
        assert extract_timeframe(text) == "last week"

    def test_recipient(self):
        assert extract_recipient("send a message to mom") == "mom"
        assert extract_recipient("text dad that I'm late") == "dad"

    def test_message_body(self):
        assert extract_message("text dad that I'm running late") == "I'm running late"
        assert extract_message('message mom "see you soon"') == "see you soon"
        assert extract_message("send a message to mom saying dinner is ready") == (
            "dinner is ready"
        )

    def test_math_expression(self):
        assert extract_math_expression("calculate 5 + 7") == "5 + 7"
        assert extract_math_expression("what is 3 times 4") == "3 * 4"
        assert extract_math_expression("2 to the power of 8") == "2 ^ 8"
        assert extract_math_expression("12.5/2.5") == "12.5/2.5"

    def test_percentage_and_amount(self):
        assert extract_percentage("What's 15% tip on $50") == 15.0
        assert extract_amount("What's 15% tip on $50") == 50.0
        assert extract_percentage("20 percent of 80") == 20.0
        assert extract_amount("20 percent of 80") == 80.0

    def test_duration_and_days(self):
        assert extract_duration("turn on do not disturb for 2 hours") == "2 hours"
        assert extract_duration("silence notifications until 7:30") == "7:30"
        assert extract_days("delete files older than 14 days") == 14

    def test_destination_and_location(self):
        assert extract_destination("get directions to the airport") == "the airport"
        assert extract_destination("take me home") == "home"
        assert extract_location("list files in my documents") == "documents"
        assert extract_location("organize my photos") == "pictures"

    @pytest.mark.parametrize(
        "text",
        ["", "   ", "hello", "!!!", "12345", "of", "to", "ümlaut ünïcode", "\n\t"],
    )
    def test_no_match_yields_empty(self, text):
        """Extractors never raise and return an empty value on no match."""
        for extractor in (
            extract_timeframe,
            extract_message,
            extract_duration,
            extract_destination,
            extract_location,
        ):
            assert extractor(text) == ""
        assert extract_person_name(text) == ""
        assert extract_recipient(text) == ""
        assert extract_math_expression(text) == ""
        assert extract_percentage(text) is None
        assert extract_amount(text) is None
        assert extract_days(text) is None


class TestActionData:
    def test_calculation_bundle(self):
        data = extract_action_data(Intent.CALCULATE, "calculate 5 + 7")
        assert data == {"expression": "5 + 7"}

    def test_tip_bundle(self):
        data = extract_action_data(Intent.CALCULATE, "What's 15% tip on $50")
        assert data["expression"] == ""
        assert data["percentage"] == 15.0
        assert data["amount"] == 50.0

    def test_message_bundle_keeps_empty_slots(self):
        data = extract_action_data(Intent.SEND_MESSAGE, "send a message")
        assert data == {"recipient": "", "message": ""}

    def test_optional_slots_omitted(self):
        assert extract_action_data(Intent.LIST_FILES, "list my files") == {}
        assert extract_action_data(Intent.DELETE_FILES, "delete files older than 7 days") == {
            "days": 7
        }

    def test_intent_without_slots(self):
        assert extract_action_data(Intent.LIST_APPS, "show me all apps") == {}
        assert extract_action_data(Intent.UNKNOWN, "hello") == {}
