"""
Unit tests for the email normalizer (normalizer.py, headers.py).

Tests cover:
- Sender/recipient extraction and defaults
- Reference normalization
- Attachment filtering and defaults
- Header re-serialization
- Original recipient, email client and priority metadata
- Cleaned body and full-text projection
- Record immutability and determinism
"""

from datetime import datetime, timezone

import pytest
from pydantic import ValidationError

from email_pipeline.models import DecodedAttachment, DecodedEmail, EmailAddress, NormalizedEmail
from email_pipeline.normalization.headers import derive_priority, get_header, serialize_headers
from email_pipeline.normalization.normalizer import normalize_email


class TestNormalizeEmail:
    """Tests for normalize_email()."""

    @pytest.mark.unit
    def test_basic_fields(self, decoded_email):
        """Test sender, recipients and identifiers are carried over."""
        record = normalize_email(decoded_email)

        assert isinstance(record, NormalizedEmail)
        assert record.subject == "Problem with order"
        assert record.from_address == "jane@example.com"
        assert record.from_name == "Jane Customer"
        assert record.reply_to == "jane.private@example.com"
        assert record.to == ["support@company.com", "sales@company.com"]
        assert record.message_id == "<msg1@example.com>"
        assert record.in_reply_to == "<msg0@company.com>"

    @pytest.mark.unit
    def test_duplicates_retained(self, decoded_email):
        """Test duplicate recipients are kept in order."""
        record = normalize_email(decoded_email)
        assert record.cc == ["bob@example.com", "bob@example.com"]
        assert record.bcc == []

    @pytest.mark.unit
    def test_defaults_for_missing_fields(self):
        """Test documented defaults when fields are absent."""
        record = normalize_email(DecodedEmail())

        assert record.subject == "(No Subject)"
        assert record.from_address == ""
        assert record.from_name is None
        assert record.reply_to is None
        assert record.body == ""
        assert record.body_html is None
        assert record.body_html_stripped == ""
        assert record.references == []
        assert record.attachments == []
        assert record.original_to is None
        assert record.email_client is None
        assert record.priority is None
        assert record.date is None
        assert record.headers == {}

    @pytest.mark.unit
    def test_from_never_none_when_address_empty(self):
        """Test a From entry without address yields empty string."""
        decoded = DecodedEmail(from_=[EmailAddress(address="", name="Undisclosed")])
        record = normalize_email(decoded)

        assert record.from_address == ""
        assert record.from_name == "Undisclosed"

    @pytest.mark.unit
    def test_body_is_cleaned(self, decoded_email):
        """Test the plain text body goes through the body cleaner."""
        record = normalize_email(decoded_email)
        assert record.body == "Hi,\n\nmy order #ZX9876 is late."

    @pytest.mark.unit
    def test_html_kept_raw_and_projected(self):
        """Test HTML is stored unsanitized with a full-text projection."""
        html = "<p>Hello <script>x()</script>&amp; bye</p>"
        record = normalize_email(DecodedEmail(html=html))

        assert record.body_html == html
        assert record.body_html_stripped == "Hello & bye"

    @pytest.mark.unit
    def test_references_single_value(self, decoded_email):
        """Test a single reference becomes a one-element list."""
        record = normalize_email(decoded_email)
        assert record.references == ["<msg0@company.com>"]

    @pytest.mark.unit
    def test_references_list_drops_falsy(self):
        """Test empty entries are dropped from reference lists."""
        decoded = DecodedEmail(references=["<a@x>", "", None, "<b@x>"])
        assert normalize_email(decoded).references == ["<a@x>", "<b@x>"]

    @pytest.mark.unit
    def test_attachments_filtered_and_defaulted(self):
        """Test empty attachments are dropped and defaults applied."""
        decoded = DecodedEmail(
            attachments=[
                DecodedAttachment(filename="photo.jpg", content=b"abc", content_type="image/jpeg"),
                DecodedAttachment(filename="empty.txt", content=b""),
                DecodedAttachment(content=b"12345"),
                DecodedAttachment(filename="big.bin", content=b"1", size=2048),
            ]
        )
        attachments = normalize_email(decoded).attachments

        assert [a.filename for a in attachments] == ["photo.jpg", "attachment", "big.bin"]
        assert attachments[0].size == 3
        assert attachments[1].content_type == "application/octet-stream"
        assert attachments[1].size == 5
        assert attachments[2].size == 2048

    @pytest.mark.unit
    def test_original_to_and_email_client(self, decoded_email):
        """Test X-Original-To and User-Agent fallback."""
        record = normalize_email(decoded_email)

        assert record.original_to == "orders@company.com"
        assert record.email_client == "Mozilla Thunderbird"

    @pytest.mark.unit
    def test_x_mailer_preferred_over_user_agent(self):
        """Test X-Mailer wins over User-Agent."""
        decoded = DecodedEmail(
            headers={"user-agent": "Thunderbird", "x-mailer": "Outlook 16.0"}
        )
        assert normalize_email(decoded).email_client == "Outlook 16.0"

    @pytest.mark.unit
    def test_original_to_case_insensitive(self):
        """Test X-Original-To is found regardless of header name case."""
        decoded = DecodedEmail(headers={"X-Original-To": "billing@company.com"})
        assert normalize_email(decoded).original_to == "billing@company.com"

    @pytest.mark.unit
    def test_headers_serialized(self, decoded_email, fixed_timestamp):
        """Test header values become strings or lists of strings."""
        headers = normalize_email(decoded_email).headers

        assert headers["date"] == fixed_timestamp.isoformat()
        assert headers["received"] == ["from a by b", "from c by d"]
        assert headers["x-spam-score"] == "1.5"
        assert headers["subject"] == "Problem with order"

    @pytest.mark.unit
    def test_dates(self, decoded_email, fixed_timestamp):
        """Test decoded date is used and received_at only as fallback."""
        received = datetime(2026, 2, 12, 11, 0, 0, tzinfo=timezone.utc)

        record = normalize_email(decoded_email, received_at=received)
        assert record.date == fixed_timestamp
        assert record.received_date == received

        undated = normalize_email(DecodedEmail(), received_at=received)
        assert undated.date == received
        assert undated.received_date == received

    @pytest.mark.unit
    def test_priority_from_headers(self):
        """Test priority derived from X-Priority when not decoded."""
        decoded = DecodedEmail(headers={"x-priority": "1 (Highest)"})
        assert normalize_email(decoded).priority == "high"

    @pytest.mark.unit
    def test_priority_from_decoder_wins(self):
        """Test an explicit decoded priority is kept."""
        decoded = DecodedEmail(priority="low", headers={"x-priority": "1"})
        assert normalize_email(decoded).priority == "low"

    @pytest.mark.unit
    def test_accepts_mapping(self):
        """Test a plain mapping with the "from" key is accepted."""
        record = normalize_email(
            {
                "subject": "Hi",
                "from": [{"address": "a@example.com", "name": "A"}],
                "text": "Body",
            }
        )
        assert record.from_address == "a@example.com"
        assert record.body == "Body"

    @pytest.mark.unit
    def test_record_is_immutable(self, decoded_email):
        """Test the canonical record cannot be modified."""
        record = normalize_email(decoded_email)
        with pytest.raises(ValidationError):
            record.subject = "changed"

    @pytest.mark.unit
    def test_deterministic(self, decoded_email):
        """Test normalizing twice yields equal records."""
        assert normalize_email(decoded_email) == normalize_email(decoded_email)

    @pytest.mark.unit
    def test_serializes_from_alias(self, decoded_email):
        """Test the sender serializes under "from"."""
        dumped = normalize_email(decoded_email).model_dump(by_alias=True)
        assert dumped["from"] == "jane@example.com"


class TestHeaderHelpers:
    """Tests for header map helpers."""

    @pytest.mark.unit
    def test_get_header_case_insensitive(self):
        """Test lookups ignore header name case."""
        headers = {"Precedence": "bulk"}
        assert get_header(headers, "precedence") == "bulk"
        assert get_header(headers, "PRECEDENCE") == "bulk"
        assert get_header(headers, "missing") is None
        assert get_header(None, "precedence") is None

    @pytest.mark.unit
    def test_serialize_headers_drops_none(self):
        """Test None header values are dropped."""
        assert serialize_headers({"a": None, "b": "x"}) == {"b": "x"}

    @pytest.mark.unit
    def test_serialize_headers_dates_in_lists(self):
        """Test dates inside lists become ISO-8601 strings."""
        when = datetime(2026, 1, 2, 3, 4, 5)
        assert serialize_headers({"x-dates": [when, "raw"]}) == {
            "x-dates": ["2026-01-02T03:04:05", "raw"]
        }

    @pytest.mark.unit
    @pytest.mark.parametrize(
        "headers,expected",
        [
            ({"x-priority": "1"}, "high"),
            ({"x-priority": "2 (High)"}, "high"),
            ({"x-priority": "3 (Normal)"}, "normal"),
            ({"x-priority": "5 (Lowest)"}, "low"),
            ({"x-msmail-priority": "High"}, "high"),
            ({"importance": "low"}, "low"),
            ({"importance": "urgent-ish"}, None),
            ({}, None),
        ],
    )
    def test_derive_priority(self, headers, expected):
        """Test priority derivation from the supported headers."""
        assert derive_priority(headers) == expected
