"""
Request-level checks on incoming query text, applied by the HTTP layer before
the pipeline sees the query.
"""

from __future__ import annotations

import re
from typing import Any, Dict, List, Optional

MAX_QUERY_LENGTH = 1000
SEVERITIES = ("mild", "moderate", "severe")

_MALICIOUS = tuple(re.compile(p, re.I) for p in (
    r"<script.*?>.*?</script>",
    r"javascript:",
    r"on\w+\s*=",
    r"data:",
    r"vbscript:",
))

_SENSITIVE = tuple(re.compile(p) for p in (
    r"\b\d{3}[-.]?\d{3}[-.]?\d{4}\b",  # phone
    r"\b\d{3}[-.]?\d{2}[-.]?\d{4}\b",  # SSN
    r"\b[A-Za-z0-9._%+-]+@[A-Za-z0-9.-]+\.[A-Za-z]{2,}\b",
    r"\b\d{16}\b",
    r"\b\d{4}[- ]?\d{4}[- ]?\d{4}[- ]?\d{4}\b",
))

REDACTED = "[REDACTED]"

# card numbers before the shorter phone and SSN shapes
_REDACT = tuple(re.compile(p) for p in (
    r"\b[A-Za-z0-9._%+-]+@[A-Za-z0-9.-]+\.[A-Za-z]{2,}\b",
    r"\b\d{4}[- ]?\d{4}[- ]?\d{4}[- ]?\d{4}\b",
    r"\b\d{3}[-.]?\d{3}[-.]?\d{4}\b",
    r"\b\d{3}[-.]?\d{2}[-.]?\d{4}\b",
))

_STRIP = tuple(re.compile(p, re.I) for p in (
    r"<[^>]*>",
    r"javascript:",
    r"data:",
    r"vbscript:",
    r"on\w+\s*=\s*\"[^\"]*\"",
    r"on\w+\s*=\s*'[^']*'",
    r"on\w+\s*=\s*[^ >]+",
))

MEDICAL_TERMS = (
    "symptom", "diagnosis", "treatment", "therapy", "medication", "prescription",
    "dose", "dosage", "side effect", "contraindication", "allergy", "reaction",
    "infection", "inflammation", "fever", "pain", "swelling", "rash",
    "cardiovascular", "respiratory", "gastrointestinal", "neurological",
    "musculoskeletal", "endocrine", "immune", "renal", "hepatic",
    "hypertension", "diabetes", "arthritis", "asthma", "migraine",
    "depression", "anxiety", "ulcer", "anemia",
)


def validate_query_payload(query: Any, context: Optional[Dict[str, Any]] = None) -> List[str]:
    """Return a list of human-readable errors; empty means the payload is acceptable."""
    errors: List[str] = []

    if not isinstance(query, str) or not query:
        errors.append("Query is required and must be a string")
        return errors
    if not query.strip():
        errors.append("Query cannot be empty")
    elif len(query) > MAX_QUERY_LENGTH:
        errors.append(f"Query is too long (max {MAX_QUERY_LENGTH} characters)")

    if context:
        if not isinstance(context, dict):
            errors.append("Context must be an object")
        else:
            if context.get("symptoms") and not isinstance(context["symptoms"], list):
                errors.append("Symptoms must be an array")
            if context.get("duration") and not isinstance(context["duration"], str):
                errors.append("Duration must be a string")
            if context.get("severity") and context["severity"] not in SEVERITIES:
                errors.append("Severity must be one of: mild, moderate, severe")

    if any(p.search(query) for p in _MALICIOUS):
        errors.append("Query contains potentially malicious content")
    if any(p.search(query) for p in _SENSITIVE):
        errors.append("Query contains potentially sensitive personal information")

    return errors


def sanitize_query(query: str, max_length: Optional[int] = MAX_QUERY_LENGTH) -> str:
    """Strip markup and script schemes, mask personal identifiers, then trim."""
    for pattern in _STRIP:
        query = pattern.sub("", query)
    for pattern in _REDACT:
        query = pattern.sub(REDACTED, query)
    query = query.strip()
    return query[:max_length] if max_length is not None else query


def medical_terminology_profile(query: str) -> Dict[str, Any]:
    text = query.lower()
    terms = [t for t in MEDICAL_TERMS if t in text]
    if len(terms) > 5:
        complexity = "high"
    elif len(terms) > 2:
        complexity = "medium"
    else:
        complexity = "low"
    return {"has_medical_terms": bool(terms), "terms": terms, "complexity": complexity}
