import pytest

from medbot.services.query_validator import (
    MAX_QUERY_LENGTH,
    REDACTED,
    medical_terminology_profile,
    sanitize_query,
    validate_query_payload,
)


def test_valid_query_has_no_errors():
    assert validate_query_payload("Why do I get headaches after coffee?", {"severity": "mild"}) == []


@pytest.mark.parametrize(
    "query, message",
    [
        ("", "Query is required and must be a string"),
        (None, "Query is required and must be a string"),
        ("   ", "Query cannot be empty"),
        ("x" * (MAX_QUERY_LENGTH + 1), "Query is too long (max 1000 characters)"),
        ("<script>alert(1)</script> headache", "Query contains potentially malicious content"),
        ("call me at 555-123-4567 about my rash", "Query contains potentially sensitive personal information"),
        ("email jane@example.com my results", "Query contains potentially sensitive personal information"),
    ],
)
def test_invalid_queries(query, message):
    assert message in validate_query_payload(query)


def test_context_checks():
    errors = validate_query_payload("ok", {"symptoms": "cough", "duration": 3, "severity": "extreme"})
    assert "Symptoms must be an array" in errors
    assert "Duration must be a string" in errors
    assert "Severity must be one of: mild, moderate, severe" in errors


def test_sanitize_strips_markup_and_trims():
    assert sanitize_query("  <b>sore</b> throat javascript:void(0) ") == "sore throat void(0)"
    assert len(sanitize_query("y" * 1500)) == MAX_QUERY_LENGTH


@pytest.mark.parametrize(
    "raw, cleaned",
    [
        ("call 555-123-4567 now", f"call {REDACTED} now"),
        ("member id 123456789", f"member id {REDACTED}"),
        ("card 4111 1111 1111 1111 lost", f"card {REDACTED} lost"),
        ("mail jane.doe@example.com", f"mail {REDACTED}"),
    ],
)
def test_sanitize_masks_personal_identifiers(raw, cleaned):
    assert sanitize_query(raw) == cleaned


def test_sanitize_without_length_cap():
    assert len(sanitize_query("z" * 1500, max_length=None)) == 1500


def test_terminology_profile_complexity():
    low = medical_terminology_profile("I feel tired")
    assert low == {"has_medical_terms": False, "terms": [], "complexity": "low"}

    high = medical_terminology_profile(
        "diagnosis and treatment of hypertension, diabetes, asthma with dosage and side effect questions"
    )
    assert high["complexity"] == "high"
