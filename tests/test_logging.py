from app.core.logging import REDACTED, redact_sensitive_fields


def test_redacts_contact_details_and_secrets() -> None:
    event = {
        "event": "attempt_started",
        "student_id": "student-1",
        "email": "ada@example.com",
        "gateway_token": "secret",
    }

    result = redact_sensitive_fields(None, "info", event)

    assert result == {
        "event": "attempt_started",
        "student_id": "student-1",
        "email": REDACTED,
        "gateway_token": REDACTED,
    }


def test_leaves_empty_sensitive_fields_alone() -> None:
    event = {"event": "profile_lookup_failed", "email": None}

    assert redact_sensitive_fields(None, "warning", event) == {"event": "profile_lookup_failed", "email": None}
