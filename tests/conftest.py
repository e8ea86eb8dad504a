"""
Global pytest fixtures and configuration for test suite.

This module provides reusable fixtures for:
- Mock settings/configuration
- Sample email data (raw and decoded)
- Stored attachments and grammar registries for rendering
"""

import os
from datetime import datetime, timezone

import pytest

from email_pipeline.config import Settings
from email_pipeline.models import DecodedAttachment, DecodedEmail, EmailAddress, StoredAttachment
from email_pipeline.rendering import build_grammar_registry
from .fixtures.emails import SAMPLE_EMAILS


@pytest.fixture
def mock_settings() -> Settings:
    """
    Create mock settings for testing with safe defaults.

    Returns:
        Settings instance with test configuration
    """
    return Settings(
        log_level="DEBUG",
        log_json=False,  # Easier to read in tests
        attachment_url_template="/files/{id}",
        highlight_languages=["python", "json"],
    )


@pytest.fixture
def sample_eml_bytes() -> bytes:
    """Simple plain text email bytes for basic tests."""
    return SAMPLE_EMAILS["simple_plain_text"]


@pytest.fixture
def reply_chain_eml() -> bytes:
    """Email with > quoted history, reply header and signature."""
    return SAMPLE_EMAILS["reply_chain"]


@pytest.fixture
def multipart_html_eml() -> bytes:
    """Multipart/alternative email with text and HTML."""
    return SAMPLE_EMAILS["multipart_html"]


@pytest.fixture
def html_only_eml() -> bytes:
    """Email with only HTML content (no plain text)."""
    return SAMPLE_EMAILS["html_only"]


@pytest.fixture
def attachment_eml() -> bytes:
    """Email with a PDF attachment and an empty attachment."""
    return SAMPLE_EMAILS["attachment"]


@pytest.fixture
def inline_image_eml() -> bytes:
    """HTML email referencing an inline image via cid:."""
    return SAMPLE_EMAILS["inline_image"]


@pytest.fixture
def malformed_eml() -> bytes:
    """Malformed email for lenient decoding tests."""
    return SAMPLE_EMAILS["malformed"]


@pytest.fixture
def fixed_timestamp() -> datetime:
    """
    Provide fixed timestamp for deterministic testing.

    Returns:
        Fixed timezone-aware datetime for reproducible tests
    """
    return datetime(2026, 2, 12, 10, 30, 0, tzinfo=timezone.utc)


@pytest.fixture
def decoded_email(fixed_timestamp) -> DecodedEmail:
    """
    Decoded structural email as a MIME decoder would deliver it.

    Returns:
        DecodedEmail with headers of mixed value types
    """
    return DecodedEmail(
        subject="Problem with order",
        from_=[EmailAddress(address="jane@example.com", name="Jane Customer")],
        reply_to=[EmailAddress(address="jane.private@example.com")],
        to=[
            EmailAddress(address="support@company.com", name="Support"),
            EmailAddress(address="sales@company.com"),
        ],
        cc=[EmailAddress(address="bob@example.com"), EmailAddress(address="bob@example.com")],
        bcc=[],
        text="Hi,\n\nmy order #ZX9876 is late.\n\n> earlier text\n--\nJane",
        html="<p>Hi,</p><p>my order <b>#ZX9876</b> is late.</p>",
        attachments=[
            DecodedAttachment(filename="photo.jpg", content=b"\xff\xd8\xff", content_type="image/jpeg"),
            DecodedAttachment(filename="empty.txt", content=b""),
        ],
        message_id="<msg1@example.com>",
        in_reply_to="<msg0@company.com>",
        references="<msg0@company.com>",
        date=fixed_timestamp,
        headers={
            "subject": "Problem with order",
            "date": fixed_timestamp,
            "x-original-to": "orders@company.com",
            "user-agent": "Mozilla Thunderbird",
            "received": ["from a by b", "from c by d"],
            "x-spam-score": 1.5,
        },
    )


@pytest.fixture
def stored_attachments():
    """Stored attachments as the storage collaborator lists them."""
    return [
        StoredAttachment(id="att-1", filename="logo123.png", content_type="image/png"),
        StoredAttachment(id="att-2", filename="report.pdf", content_type="application/pdf"),
    ]


@pytest.fixture(scope="session")
def grammars():
    """Grammar registry with a small, explicit set of languages."""
    return build_grammar_registry(["python", "json"])


@pytest.fixture(autouse=True)
def reset_env_vars():
    """
    Reset environment variables before each test.

    This prevents test pollution from env var changes.
    """
    original_env = os.environ.copy()
    yield
    os.environ.clear()
    os.environ.update(original_env)


def pytest_configure(config):
    """
    Configure pytest with custom markers and settings.
    """
    config.addinivalue_line(
        "markers", "unit: Unit tests (fast, no external dependencies)"
    )
    config.addinivalue_line(
        "markers", "integration: Integration tests (end-to-end pipeline)"
    )
