"""
Static medical reference tables.

Built once at import time and exposed read-only (``MappingProxyType`` and
tuples). Components receive a :class:`MedicalTables` instance in their
constructor instead of reading module globals, so tests can inject smaller
tables.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Mapping, Tuple

from medbot.schemas.medical import DrugInteraction


def _frozen(d: dict) -> Mapping:
    return MappingProxyType({k: tuple(v) if isinstance(v, list) else v for k, v in d.items()})


EMERGENCY_CONDITIONS = _frozen({
    "chest pain": "Possible heart attack or angina",
    "heart attack": "Myocardial infarction",
    "stroke": "Cerebrovascular accident",
    "difficulty breathing": "Respiratory distress",
    "severe bleeding": "Hemorrhage",
    "unconscious": "Loss of consciousness",
    "suicidal": "Suicidal ideation",
    "homicidal": "Homicidal ideation",
    "severe allergic reaction": "Anaphylaxis",
    "overdose": "Drug overdose",
    "seizure": "Convulsive episode",
})

COMBINED_SYMPTOM_PATTERNS: Tuple[str, ...] = (
    r"chest pain.*shortness of breath|shortness of breath.*chest pain",
    r"headache.*vomit.*stiff neck",
    r"sudden weakness.*confusion|confusion.*sudden weakness",
    r"severe abdominal pain.*fever|fever.*severe abdominal pain",
)

DRUG_SEEKING_PATTERNS: Tuple[str, ...] = (
    r"prescribe me",
    r"give me .* (?:pill|medication|drug)",
    r"how (?:to|do i|can i) get .* without (?:a )?prescription",
    r"buy .* online",
)

SELF_HARM_KEYWORDS: Tuple[str, ...] = (
    "suicide",
    "kill myself",
    "end my life",
    "want to die",
    "harm myself",
    "self harm",
    "self-harm",
    "cutting",
    "overdose",
    "hurt someone",
    "kill someone",
    "violent thoughts",
)

MEDICATION_REQUEST_PATTERNS: Tuple[str, ...] = (
    r"(?:take|use|prescribe|recommend) (?:me )?(.+?) (?:for|to treat)",
    r"what (?:pill|medication|drug) (?:should|can) i take",
    r"(?:over the counter|otc) (?:for|medication)",
)

MEDICATION_CHANGE_PHRASES: Tuple[str, ...] = ("change my medication", "stop taking")

PRESCRIPTION_ONLY_CLASSES: Tuple[str, ...] = (
    "antibiotic",
    "opioid",
    "benzodiazepine",
    "antidepressant",
    "antipsychotic",
    "chemotherapy",
    "insulin",
    "warfarin",
    "digoxin",
    "lithium",
    "methotrexate",
)

CONDITION_CONFLICTS = _frozen({
    "ulcer": ["nsaid", "ibuprofen", "aspirin", "naproxen", "anti-inflammatory"],
    "hypertension": ["decongestant", "pseudoephedrine", "stimulant", "salt"],
    "diabetes": ["steroid", "prednisone", "sugar", "certain antibiotics"],
    "kidney disease": ["nsaid", "contrast dye", "certain antibiotics"],
    "liver disease": ["acetaminophen", "paracetamol", "alcohol", "certain medications"],
    "asthma": ["beta blocker", "aspirin", "nsaid"],
    "pregnancy": ["certain antibiotics", "retinoid", "warfarin", "live vaccines"],
})

MEDICAL_TERMINOLOGY = _frozen({
    "hypertension": "High blood pressure",
    "hyperglycemia": "High blood sugar",
    "hypotension": "Low blood pressure",
    "tachycardia": "Rapid heart rate",
    "bradycardia": "Slow heart rate",
    "dyspnea": "Shortness of breath",
    "edema": "Swelling",
    "pruritus": "Itching",
    "erythema": "Redness",
})

SYMPTOM_PATTERNS = _frozen({
    "flu": ["fever", "cough", "sore throat", "body aches", "fatigue"],
    "common cold": ["runny nose", "sneezing", "congestion", "mild cough"],
    "migraine": ["severe headache", "sensitivity to light", "nausea"],
    "uti": ["burning urination", "frequent urination", "pelvic pain"],
    "gastroenteritis": ["diarrhea", "vomiting", "abdominal pain"],
})

# Generic name -> brand names and alternative generic names
DRUG_ALIASES = _frozen({
    "ibuprofen": ["advil", "motrin", "nurofen"],
    "paracetamol": ["acetaminophen", "tylenol", "panadol"],
    "amoxicillin": ["amoxil", "trimox"],
    "atorvastatin": ["lipitor"],
    "omeprazole": ["prilosec"],
    "metformin": ["glucophage"],
    "lisinopril": ["zestril", "prinivil"],
    "levothyroxine": ["synthroid", "levoxyl"],
    "sertraline": ["zoloft"],
    "fluoxetine": ["prozac"],
    "warfarin": ["coumadin", "jantoven"],
    "insulin": ["humulin", "novolin", "lantus"],
})

DRUG_CLASS_KEYWORDS: Tuple[str, ...] = (
    "nsaid",
    "antibiotic",
    "antidepressant",
    "antihypertensive",
    "statin",
    "diuretic",
    "beta blocker",
    "ace inhibitor",
    "opioid",
    "benzodiazepine",
    "steroid",
    "anticoagulant",
    "ssri",
)

# Class -> member generics, used to normalize a generic to its class
DRUG_CLASSES = _frozen({
    "nsaid": ["ibuprofen", "naproxen", "diclofenac", "celecoxib", "aspirin"],
    "antibiotic": ["amoxicillin", "azithromycin", "doxycycline", "ciprofloxacin"],
    "statin": ["atorvastatin", "simvastatin", "rosuvastatin", "pravastatin"],
    "ace inhibitor": ["lisinopril", "enalapril", "ramipril", "captopril"],
    "ssri": ["sertraline", "fluoxetine", "paroxetine", "citalopram"],
    "diuretic": ["furosemide", "hydrochlorothiazide", "spironolactone"],
    "beta blocker": ["metoprolol", "atenolol", "propranolol", "bisoprolol"],
    "antihypertensive": ["amlodipine", "losartan"],
    "antidepressant": ["venlafaxine", "bupropion"],
})

DRUG_INTERACTIONS: Tuple[DrugInteraction, ...] = (
    DrugInteraction(
        drug1="warfarin",
        drug2="nsaid",
        severity="major",
        description="Increased risk of bleeding",
        mechanism="NSAIDs inhibit platelet function and may cause gastric erosion",
        recommendation="Avoid concurrent use. Use alternative pain relief.",
    ),
    DrugInteraction(
        drug1="warfarin",
        drug2="antibiotic",
        severity="moderate",
        description="Altered anticoagulant effect",
        mechanism="Antibiotics may alter gut flora affecting vitamin K production",
        recommendation="Monitor INR closely during and after antibiotic therapy",
    ),
    DrugInteraction(
        drug1="statin",
        drug2="antibiotic",
        severity="major",
        description="Increased risk of muscle toxicity (rhabdomyolysis)",
        mechanism="Some antibiotics inhibit statin metabolism",
        recommendation="Consider temporary statin discontinuation or dose reduction",
    ),
    DrugInteraction(
        drug1="ace inhibitor",
        drug2="nsaid",
        severity="moderate",
        description="Reduced antihypertensive effect and risk of kidney impairment",
        mechanism="NSAIDs inhibit prostaglandin synthesis affecting renal blood flow",
        recommendation="Monitor blood pressure and renal function",
    ),
    DrugInteraction(
        drug1="ssri",
        drug2="nsaid",
        severity="moderate",
        description="Increased risk of gastrointestinal bleeding",
        mechanism="Both drugs increase bleeding risk through different mechanisms",
        recommendation="Use with caution, consider gastroprotective agents",
    ),
    DrugInteraction(
        drug1="diuretic",
        drug2="nsaid",
        severity="moderate",
        description="Reduced diuretic effect and risk of kidney impairment",
        mechanism="NSAIDs promote sodium and water retention",
        recommendation="Monitor for edema and renal function",
    ),
)

# (condition keyword, drug/class keywords, warning)
DISEASE_CONTRAINDICATIONS: Tuple[Tuple[str, Tuple[str, ...], str], ...] = (
    ("peptic ulcer", ("nsaid", "aspirin", "corticosteroid"),
     "Contraindicated in patients with active peptic ulcer disease"),
    ("renal impairment", ("nsaid", "aminoglycoside", "contrast dye"),
     "Use with caution in renal impairment - monitor renal function"),
    ("hepatic impairment", ("paracetamol", "statins", "certain antibiotics"),
     "Dose adjustment or avoidance required in hepatic impairment"),
    ("pregnancy", ("warfarin", "retinoid", "certain antibiotics", "nsaid"),
     "Contraindicated or use with extreme caution during pregnancy"),
    ("asthma", ("beta blocker", "aspirin", "nsaid"),
     "May precipitate bronchospasm in susceptible individuals"),
)


@dataclass(frozen=True)
class MedicalTables:
    emergency_conditions: Mapping[str, str] = field(default_factory=lambda: EMERGENCY_CONDITIONS)
    combined_symptom_patterns: Tuple[str, ...] = COMBINED_SYMPTOM_PATTERNS
    drug_seeking_patterns: Tuple[str, ...] = DRUG_SEEKING_PATTERNS
    self_harm_keywords: Tuple[str, ...] = SELF_HARM_KEYWORDS
    medication_request_patterns: Tuple[str, ...] = MEDICATION_REQUEST_PATTERNS
    medication_change_phrases: Tuple[str, ...] = MEDICATION_CHANGE_PHRASES
    prescription_only_classes: Tuple[str, ...] = PRESCRIPTION_ONLY_CLASSES
    condition_conflicts: Mapping[str, Tuple[str, ...]] = field(default_factory=lambda: CONDITION_CONFLICTS)
    medical_terminology: Mapping[str, str] = field(default_factory=lambda: MEDICAL_TERMINOLOGY)
    symptom_patterns: Mapping[str, Tuple[str, ...]] = field(default_factory=lambda: SYMPTOM_PATTERNS)
    drug_aliases: Mapping[str, Tuple[str, ...]] = field(default_factory=lambda: DRUG_ALIASES)
    drug_class_keywords: Tuple[str, ...] = DRUG_CLASS_KEYWORDS
    drug_classes: Mapping[str, Tuple[str, ...]] = field(default_factory=lambda: DRUG_CLASSES)
    drug_interactions: Tuple[DrugInteraction, ...] = DRUG_INTERACTIONS
    disease_contraindications: Tuple[Tuple[str, Tuple[str, ...], str], ...] = DISEASE_CONTRAINDICATIONS


DEFAULT_TABLES = MedicalTables()
