"""Tests for secret redaction."""

from __future__ import annotations

from notification_hubs.services.connection import ConnectionDescriptor
from notification_hubs.services.sas import generate_sas_token
from notification_hubs.utils.redaction import redact_dict, redact_sensitive_data

from conftest import CONNECTION_STRING


def test_redacts_shared_access_key():
    redacted = redact_sensitive_data(CONNECTION_STRING)

    assert "testAccessKey" not in redacted.replace("testAccessKeyName", "")
    assert "SharedAccessKey=[REDACTED_SHARED_ACCESS_KEY]" in redacted
    assert "SharedAccessKeyName=testAccessKeyName" in redacted


def test_redacts_token_signature():
    token = generate_sas_token(
        ConnectionDescriptor(host="h.example.com", key_name="n", key_value="k"),
        123,
    )

    redacted = redact_sensitive_data(token)

    assert "sig=[REDACTED_SAS_SIGNATURE]" in redacted
    assert "se=123" in redacted
    assert "skn=n" in redacted


def test_leaves_plain_text_alone():
    text = "https://h.example.com/hub/messages?api-version=2015-01&direct="

    assert redact_sensitive_data(text) == text


def test_redact_dict_hides_sensitive_keys():
    data = {
        "authorization": "SharedAccessSignature sr=x&sig=y",
        "content-type": "application/json",
        "nested": {"connection_string": CONNECTION_STRING},
        "items": [{"password": "p"}, "plain"],
    }

    redacted = redact_dict(data)

    assert redacted["authorization"] == "[REDACTED]"
    assert redacted["content-type"] == "application/json"
    assert redacted["nested"]["connection_string"] == "[REDACTED]"
    assert redacted["items"] == [{"password": "[REDACTED]"}, "plain"]
    assert data["authorization"].startswith("SharedAccessSignature")
