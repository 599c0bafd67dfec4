"""Tests for ClinicalResponseExtractor.

Extraction is best-effort and never raises: unknown answers default and
are reported through unparsed_items.
"""
import pytest

from mindmeasure.shared.models import ClinicalResponses
from mindmeasure.services.scoring_service.response_extractor import (
    ClinicalResponseExtractor,
    ExtractionMode,
    parse_frequency_response,
    parse_mood_response,
)


def build_transcript(answers):
    """Interleave generic agent prompts with the given user answers."""
    lines = []
    for answer in answers:
        lines.append("agent: Next question.")
        lines.append(f"user: {answer}")
    return "\n".join(lines)


@pytest.fixture
def extractor():
    return ClinicalResponseExtractor()


class TestParseFrequencyResponse:

    @pytest.mark.parametrize("text,expected", [
        ("not at all", 0),
        ("Honestly, NOT AT ALL really", 0),
        ("several days", 1),
        ("maybe several day or so", 1),
        ("more than half the days", 2),
        ("nearly every day", 3),
    ])
    def test_known_phrases(self, text, expected):
        assert parse_frequency_response(text) == expected

    def test_first_phrase_in_table_order_wins(self):
        assert parse_frequency_response("not at all, well several days") == 0

    @pytest.mark.parametrize("text", ["", "sometimes", "i don't know"])
    def test_unknown_returns_none(self, text):
        assert parse_frequency_response(text) is None


class TestParseMoodResponse:

    @pytest.mark.parametrize("text,expected", [
        ("7", 7),
        ("I'd say a 10", 10),
        ("probably 1", 1),
        ("seven", 7),
        ("maybe a six today", 6),
        ("ten out of ten", 10),
    ])
    def test_valid_moods(self, text, expected):
        assert parse_mood_response(text) == expected

    def test_ten_not_read_as_one(self):
        assert parse_mood_response("10") == 10

    def test_digit_beats_word(self):
        assert parse_mood_response("three, no wait 4") == 4

    def test_lowest_word_wins(self):
        assert parse_mood_response("between two and three") == 2

    @pytest.mark.parametrize("text,expected", [
        ("seventeen", 7),
        ("none really", 1),
        ("i often feel low", 10),
        ("someone asked me", 1),
    ])
    def test_number_word_matched_inside_other_words(self, text, expected):
        assert parse_mood_response(text) == expected

    @pytest.mark.parametrize("text", ["", "pretty good", "0", "11"])
    def test_unparseable(self, text):
        assert parse_mood_response(text) is None


class TestPositionalExtraction:
    """Answers taken by position after the readiness confirmation."""

    def test_full_conversation(self, extractor):
        transcript = build_transcript(
            ["yes", "not at all", "several days", "more than half", "nearly every day", "7"]
        )

        result = extractor.extract(transcript)

        assert result.responses == ClinicalResponses(
            phq2_q1=0, phq2_q2=1, gad2_q1=2, gad2_q2=3,
        )
        assert result.mood_score == 7
        assert result.extraction_mode == ExtractionMode.POSITIONAL
        assert result.unparsed_items == ()
        assert result.user_turn_count == 6

    def test_short_conversation_defaults(self, extractor):
        result = extractor.extract(build_transcript(["yes", "several days"]))

        assert result.responses.phq2_q1 == 1
        assert result.responses.gad2_q2 == 0
        assert result.mood_score is None
        assert result.unparsed_items == ("phq2_q2", "gad2_q1", "gad2_q2", "mood")

    def test_unrecognised_answer_defaults_to_zero(self, extractor):
        result = extractor.extract(build_transcript(
            ["yes", "sometimes", "several days", "not at all", "not at all", "five"]
        ))

        assert result.responses.phq2_q1 == 0
        assert "phq2_q1" in result.unparsed_items
        assert result.mood_score == 5

    def test_empty_transcript(self, extractor):
        result = extractor.extract("")

        assert result.responses == ClinicalResponses()
        assert result.mood_score is None
        assert result.user_turn_count == 0

    def test_from_utterances(self, extractor):
        result = extractor.extract_from_utterances(
            ["Yes", "Nearly every day", "Nearly every day", "Not at all", "Not at all", "2"]
        )

        assert result.responses.phq2_q1 == 3
        assert result.responses.phq2_q2 == 3
        assert result.mood_score == 2


class TestTaggedExtraction:
    """Tagged agent questions are matched by tag instead of position."""

    def test_reordered_script(self, extractor):
        transcript = "\n".join([
            "agent: Ready to start?",
            "user: yes",
            "agent: [mood] On a scale of 1 to 10, how is your mood?",
            "user: eight",
            "agent: [gad2_q1] How often have you felt nervous?",
            "user: more than half the days",
            "agent: [gad2_q2] How often could you not stop worrying?",
            "user: several days",
            "agent: [phq2_q1] Little interest or pleasure?",
            "user: not at all",
            "agent: [phq2_q2] Feeling down or hopeless?",
            "user: nearly every day",
        ])

        result = extractor.extract(transcript)

        assert result.extraction_mode == ExtractionMode.TAGGED
        assert result.responses == ClinicalResponses(
            phq2_q1=0, phq2_q2=3, gad2_q1=2, gad2_q2=1,
        )
        assert result.mood_score == 8

    def test_first_answer_wins_on_repeat(self, extractor):
        transcript = "\n".join([
            "agent: [phq2_q1] Little interest?",
            "user: several days",
            "agent: [phq2_q1] Sorry, could you repeat that?",
            "user: nearly every day",
        ])

        result = extractor.extract(transcript)

        assert result.responses.phq2_q1 == 1

    def test_untagged_agent_turn_clears_pending_question(self, extractor):
        transcript = "\n".join([
            "agent: [mood] How is your mood from 1 to 10?",
            "agent: Take your time.",
            "user: 6",
        ])

        result = extractor.extract(transcript)

        assert result.mood_score is None
        assert "mood" in result.unparsed_items

    def test_tags_case_insensitive(self, extractor):
        result = extractor.extract("agent: [PHQ2_Q2] Feeling down?\nuser: several days")

        assert result.extraction_mode == ExtractionMode.TAGGED
        assert result.responses.phq2_q2 == 1
