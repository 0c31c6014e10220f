"""
Pure helpers that shape a successful answer: classification, confidence,
recommendations, disclaimer and the warning block.
"""

from __future__ import annotations

from typing import List

from medbot.schemas.medical import ResponseType, UserMedicalProfile

BASE_CONFIDENCE = 0.8
SAFETY_CHECKED_BONUS = 0.1
LOCATION_AWARE_BONUS = 0.05
MAX_CONFIDENCE = 0.95

# Checked in order; first bucket with a hit wins.
RESPONSE_TYPE_BUCKETS = (
    ("symptom_analysis", ("symptom", "pain", "feel")),
    ("drug_info", ("drug", "medication", "pill")),
    ("referral", ("doctor", "specialist", "refer")),
)


def classify_response_type(query: str) -> ResponseType:
    text = query.lower()
    for response_type, keywords in RESPONSE_TYPE_BUCKETS:
        if any(k in text for k in keywords):
            return response_type
    return "general_info"


def calculate_confidence(safety_checked: bool, location_aware: bool) -> float:
    confidence = BASE_CONFIDENCE
    if safety_checked:
        confidence += SAFETY_CHECKED_BONUS
    if location_aware:
        confidence += LOCATION_AWARE_BONUS
    return round(min(confidence, MAX_CONFIDENCE), 4)


def generate_recommendations(profile: UserMedicalProfile) -> List[str]:
    recommendations = ["Consult with a qualified healthcare professional for personalized advice"]
    if profile.conditions:
        recommendations.append("Discuss with your regular healthcare provider who knows your medical history")
    if profile.medications:
        recommendations.append("Review all medications with a pharmacist for interactions")
    return recommendations


def generate_disclaimer(profile: UserMedicalProfile) -> str:
    conditions = ", ".join(profile.conditions) if profile.conditions else "None specified"
    allergies = ", ".join(profile.allergies) if profile.allergies else "None specified"
    return (
        "This information is provided for educational purposes only and is not a substitute for "
        "professional medical advice, diagnosis, or treatment.\n\n"
        "Always seek the advice of your physician or other qualified health provider with any "
        "questions you may have regarding a medical condition.\n\n"
        f"Location: {profile.location_label()}\n"
        f"User Conditions: {conditions}\n"
        f"User Allergies: {allergies}"
    )


def format_medical_response(text: str, drug_warnings: List[str]) -> str:
    if not drug_warnings:
        return text
    lines = [text, "", "DRUG INTERACTION WARNINGS:"]
    lines.extend(f"- {w}" for w in drug_warnings)
    return "\n".join(lines)
