import httpx
import pytest

from medbot.services.drug_interactions import CONSULT_LINE, DrugInteractionChecker


@pytest.fixture()
def checker():
    return DrugInteractionChecker()


@pytest.mark.asyncio
async def test_empty_medications_always_yield_no_warnings(checker):
    text = "Ibuprofen is an NSAID; in pregnancy avoid warfarin. Peptic ulcer patients avoid aspirin."
    assert await checker.check_interactions(text, []) == []


@pytest.mark.asyncio
async def test_warfarin_user_and_ibuprofen_mention_gives_one_major_warning(checker):
    warnings = await checker.check_interactions("You could take ibuprofen for the pain.", ["warfarin"])
    assert len(warnings) == 1
    assert "Severity: MAJOR" in warnings[0]
    assert "Increased risk of bleeding" in warnings[0]
    assert "warfarin + ibuprofen" in warnings[0]
    assert CONSULT_LINE in warnings[0]


@pytest.mark.asyncio
async def test_brand_names_normalize(checker):
    warnings = await checker.check_interactions("Advil may help.", ["Coumadin"])
    assert len(warnings) == 1
    assert "warfarin + ibuprofen" in warnings[0]


@pytest.mark.asyncio
async def test_same_drug_is_skipped(checker):
    assert await checker.check_interactions("Keep taking Tylenol.", ["acetaminophen"]) == []


@pytest.mark.parametrize(
    "a, b",
    [
        ("warfarin", "ibuprofen"),
        ("lisinopril", "naproxen"),
        ("atorvastatin", "amoxicillin"),
        ("sertraline", "aspirin"),
        ("warfarin", "antibiotic"),
    ],
)
def test_lookup_is_symmetric(checker, a, b):
    forward = checker.find_local_interaction(a, b)
    backward = checker.find_local_interaction(b, a)
    assert forward is not None and backward is not None
    assert forward.severity == backward.severity
    assert forward.description == backward.description


@pytest.mark.asyncio
async def test_check_interactions_symmetric_over_text_and_medications(checker):
    ab = await checker.check_interactions("Consider naproxen.", ["lisinopril"])
    ba = await checker.check_interactions("Consider lisinopril.", ["naproxen"])
    assert len(ab) == len(ba) == 1
    assert "Severity: MODERATE" in ab[0] and "Severity: MODERATE" in ba[0]


def test_exact_match_returns_table_entry(checker):
    hit = checker.find_local_interaction("warfarin", "nsaid")
    assert hit.drug1 == "warfarin" and hit.drug2 == "nsaid"
    assert hit.severity == "major"


def test_unknown_pair_has_no_interaction(checker):
    assert checker.find_local_interaction("metformin", "omeprazole") is None


@pytest.mark.asyncio
async def test_disease_contraindication_scan_runs_on_text(checker):
    text = "Patients with asthma should be careful with a beta blocker."
    warnings = await checker.check_interactions(text, ["metformin"])
    assert warnings == ["May precipitate bronchospasm in susceptible individuals"]


@pytest.mark.asyncio
async def test_internal_failure_returns_collected_warnings(checker, monkeypatch):
    def boom(text):
        raise RuntimeError("bad table")

    monkeypatch.setattr(checker, "check_disease_contraindications", boom)
    warnings = await checker.check_interactions("ibuprofen", ["warfarin"])
    assert len(warnings) == 1


@pytest.mark.asyncio
async def test_external_api_hit_used_on_local_miss():
    seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request.url)
        return httpx.Response(200, json={"results": [{
            "description": ["Tablet, film coated."],
            "drug_interactions": ["Omeprazole may alter metformin exposure."],
        }]})

    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    checker = DrugInteractionChecker(api_url="https://api.fda.gov/drug/label.json", http_client=client)
    hit = await checker.check_interaction("metformin", "omeprazole")
    await client.aclose()

    url = seen[0]
    assert url.params["search"] == 'drug_interactions:"metformin" AND drug_interactions:"omeprazole"'
    assert url.params["limit"] == "1"
    assert b"%2BAND%2B" not in url.query
    assert hit is not None
    assert hit.severity == "moderate"
    assert hit.description == "Omeprazole may alter metformin exposure."


@pytest.mark.asyncio
async def test_external_hit_without_interaction_text_uses_generic_description():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"results": [{"description": ["Unrelated label text."]}]})

    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    checker = DrugInteractionChecker(api_url="https://api.fda.gov/drug/label.json", http_client=client)
    hit = await checker.check_interaction("metformin", "omeprazole")
    await client.aclose()

    assert hit.description == "Drug interaction detected"


@pytest.mark.asyncio
async def test_external_api_failure_means_no_interaction():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(500, text="down")

    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    checker = DrugInteractionChecker(api_url="https://api.fda.gov/drug/label.json", http_client=client)
    assert await checker.check_interaction("metformin", "omeprazole") is None
    await client.aclose()
