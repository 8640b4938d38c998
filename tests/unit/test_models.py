"""
Unit tests for the message and classification records.
"""

from datetime import datetime, timedelta, timezone

import pytest

from inboxtriage.core.models import (
    ClassificationResult,
    NormalizedMessage,
    Provenance,
    Tier,
    parse_timestamp,
)


class TestTier:
    def test_parse_case_insensitive(self):
        assert Tier.parse("high") is Tier.HIGH
        assert Tier.parse(" Medium ") is Tier.MEDIUM

    def test_parse_rejects_unknown(self):
        with pytest.raises(ValueError):
            Tier.parse("URGENT")

    def test_parse_rejects_non_string(self):
        with pytest.raises(ValueError):
            Tier.parse(1)

    def test_rank_order(self):
        assert Tier.HIGH.rank < Tier.MEDIUM.rank < Tier.LOW.rank


class TestParseTimestamp:
    def test_iso_with_z(self):
        assert parse_timestamp("2025-10-15T12:00:00Z") == datetime(
            2025, 10, 15, 12, 0, tzinfo=timezone.utc
        )

    def test_iso_with_offset_converted_to_utc(self):
        result = parse_timestamp("2025-10-15T14:00:00+02:00")
        assert result == datetime(2025, 10, 15, 12, 0, tzinfo=timezone.utc)
        assert result.utcoffset() == timedelta(0)

    def test_epoch_milliseconds(self):
        assert parse_timestamp(0) == datetime(1970, 1, 1, tzinfo=timezone.utc)

    def test_rfc2822_date_header(self):
        result = parse_timestamp("Wed, 15 Oct 2025 12:00:00 +0000")
        assert result == datetime(2025, 10, 15, 12, 0, tzinfo=timezone.utc)

    def test_naive_datetime_taken_as_utc(self):
        result = parse_timestamp(datetime(2025, 10, 15, 12, 0))
        assert result.tzinfo is timezone.utc

    @pytest.mark.parametrize("value", [None, "", "not a date", True, 1e300, 10 ** 30, float("nan")])
    def test_invalid(self, value):
        with pytest.raises(ValueError):
            parse_timestamp(value)


class TestNormalizedMessage:
    def test_from_dict(self):
        message = NormalizedMessage.from_dict({
            "id": "abc",
            "from": "Alice <alice@acme.io>",
            "subject": "Hello",
            "body": "Body text",
            "timestamp": "2025-10-15T12:00:00Z",
            "isRead": True,
        })

        assert message.id == "abc"
        assert message.sender == "Alice <alice@acme.io>"
        assert message.subject == "Hello"
        assert message.is_read is True

    def test_from_dict_defaults(self):
        message = NormalizedMessage.from_dict({"id": 7, "timestamp": "2025-10-15T12:00:00Z"})

        assert message.id == "7"
        assert message.subject == "(No Subject)"
        assert message.body == ""
        assert message.is_read is False

    def test_from_dict_truncates_body_excerpt(self):
        message = NormalizedMessage.from_dict({
            "id": "1", "body": "x" * 250, "timestamp": "2025-10-15T12:00:00Z"
        })
        assert message.body == "x" * 200 + "..."

    def test_from_dict_requires_id(self):
        with pytest.raises(ValueError, match="id"):
            NormalizedMessage.from_dict({"timestamp": "2025-10-15T12:00:00Z"})

    def test_from_dict_requires_valid_timestamp(self):
        with pytest.raises(ValueError, match="timestamp"):
            NormalizedMessage.from_dict({"id": "1", "timestamp": "yesterday"})

    def test_is_immutable(self, make_message):
        message = make_message()
        with pytest.raises(AttributeError):
            message.subject = "changed"

    def test_to_dict_round_trips_wire_names(self, make_message):
        data = make_message(message_id="m1").to_dict()
        assert set(data) == {"id", "from", "subject", "body", "timestamp", "isRead"}


class TestClassificationResult:
    def test_confidence_clamped(self):
        high = ClassificationResult(Tier.HIGH, 150, "x", Provenance.AI)
        low = ClassificationResult(Tier.LOW, -5, "x", Provenance.AI)

        assert high.confidence == 100
        assert low.confidence == 0

    def test_empty_reasoning_replaced(self):
        result = ClassificationResult(Tier.LOW, 50, "   ", Provenance.AI)
        assert result.reasoning

    def test_reasoning_bounded(self):
        result = ClassificationResult(Tier.LOW, 50, "word " * 100, Provenance.AI)
        assert len(result.reasoning) <= 200
        assert result.reasoning.endswith("...")

    def test_tier_string_accepted(self):
        result = ClassificationResult("medium", 50, "x", Provenance.FALLBACK)
        assert result.tier is Tier.MEDIUM

    def test_to_dict(self):
        result = ClassificationResult(Tier.HIGH, 88, "Client deadline", Provenance.AI, "openai:gpt-4o-mini")
        assert result.to_dict() == {
            "priority": "HIGH",
            "confidence": 88,
            "reasoning": "Client deadline",
            "source": "ai",
            "model": "openai:gpt-4o-mini",
        }

    def test_to_dict_without_model(self):
        result = ClassificationResult(Tier.LOW, 95, "Newsletter", Provenance.BASELINE)
        assert "model" not in result.to_dict()
