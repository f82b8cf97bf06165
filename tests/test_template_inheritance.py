"""Tests for template similarity and the criteria inheritance batch."""

import asyncio

import httpx
import pytest

from subsidy_matcher.exceptions import LLMServiceError
from subsidy_matcher.models.inheritance import ValidationResult
from subsidy_matcher.services.llm_service import LLMService
from subsidy_matcher.services.template_inheritance import (
    TemplateInheritanceService,
    calculate_similarity,
    find_best_match,
    order_templates,
)

from tests.fakes import FakeLLM, FakeStorage, make_settings, make_subsidy


def template(subsidy_id="tpl", **fields):
    data = {
        "title": "Aide à l'innovation des PME",
        "agency": "Bpifrance",
        "funding_type": "Subvention",
        "region": ["Occitanie"],
        "primary_sector": "Industrie",
        "eligibility_criteria": {"fr": "PME de moins de 250 salariés ayant un projet d'innovation."},
    }
    data.update(fields)
    return make_subsidy(subsidy_id, **data)


def source(subsidy_id="src", **fields):
    data = {
        "title": "Aide à l'innovation des TPE",
        "agency": "Bpifrance",
        "funding_type": "Subvention",
        "region": ["Occitanie", "Bretagne"],
        "primary_sector": "Industrie",
    }
    data.update(fields)
    return make_subsidy(subsidy_id, **data)


def accept(match):
    return ValidationResult(valid=True, confidence=90, adapted_criteria="TPE ayant un projet d'innovation.",
                            reason="Mêmes bénéficiaires")


def reject(match):
    return ValidationResult(valid=False, confidence=40, reason="Bénéficiaires différents")


def test_similarity_weights_and_reasons():
    score, reasons = calculate_similarity(source(), template())

    assert reasons[0] == "same_agency"
    assert reasons[1].startswith("title_sim:")
    assert reasons[2:] == ["same_funding_type", "region_overlap", "same_sector"]
    assert score == pytest.approx(0.35 + 0.25 * float(reasons[1][10:-1]) / 100 + 0.1 + 0.1 + 0.1, abs=0.01)


def test_similarity_ignores_missing_agency():
    score, reasons = calculate_similarity(source(agency=None), template(agency=None))

    assert "same_agency" not in reasons


def test_similarity_partial_legal_entities():
    score, reasons = calculate_similarity(
        make_subsidy("a", title="x", legal_entities=["PME", "TPE"]),
        make_subsidy("b", title="zzz", legal_entities=["PME", "ETI", "GE", "Association"]),
    )

    assert reasons == ["legal_entities:25%"]
    assert score == pytest.approx(0.025)


def test_similarity_description_overlap():
    description = "Financement des projets de recherche et développement des entreprises industrielles"
    score, reasons = calculate_similarity(
        make_subsidy("a", title="abc", description={"fr": description}),
        make_subsidy("b", title="xyz", description={"fr": description}),
    )

    assert reasons == ["desc_sim:100%"]
    assert score == pytest.approx(0.1)


def test_order_templates_puts_same_agency_first():
    other = template("other", agency="ADEME")
    same = template("same")

    assert [t.id for t in order_templates(source(), [other, same])] == ["same", "other"]


def test_find_best_match_prefers_highest_score():
    weak = template("weak", agency="ADEME", region=["Normandie"])
    strong = template("strong")

    match = find_best_match(source(), [weak, strong], threshold=0.3)

    assert match.template.id == "strong"


def test_find_best_match_skips_same_record_and_threshold():
    record = source("src")

    assert find_best_match(record, [record]) is None
    assert find_best_match(source(), [template(agency="ADEME", title="Autre chose", region=["Corse"])]) is None


def run_batch(llm, storage, dry_run, **settings_overrides):
    settings = make_settings(**settings_overrides)
    service = TemplateInheritanceService(settings, storage, llm)
    return asyncio.run(service.run(batch_size=10, dry_run=dry_run))


def test_dry_run_validates_without_writing():
    storage = FakeStorage(templates=[template()], incomplete=[source()])
    llm = FakeLLM(validation=accept)

    summary = run_batch(llm, storage, dry_run=True)

    assert summary.dry_run
    assert summary.processed == 1
    assert summary.inherited == 1
    assert summary.outcomes[0].status == "inherited"
    assert not summary.outcomes[0].written
    assert llm.validated == ["src"]
    assert storage.updates == []


def test_live_run_writes_adapted_criteria():
    storage = FakeStorage(templates=[template()], incomplete=[source()])

    summary = run_batch(FakeLLM(validation=accept), storage, dry_run=False)

    assert summary.inherited == 1
    assert summary.outcomes[0].written
    assert summary.outcomes[0].template_id == "tpl"
    assert storage.updates == [("src", "TPE ayant un projet d'innovation.")]


def test_rejected_and_unmatched_subsidies_are_skipped():
    unmatched = make_subsidy("lonely", title="Prime à la casse", agency="Mairie")
    storage = FakeStorage(templates=[template()], incomplete=[source(), unmatched])
    llm = FakeLLM(validation=reject)

    summary = run_batch(llm, storage, dry_run=False)

    assert summary.skipped == 2
    assert summary.inherited == 0
    assert [o.reason for o in summary.outcomes] == ["Bénéficiaires différents", "No template above threshold"]
    assert summary.outcomes[0].confidence == 40
    assert llm.validated == ["src"]
    assert storage.updates == []


def test_validation_errors_are_counted():
    def fail(match):
        raise LLMServiceError("AI API error: 503", status_code=503, retryable=True)

    storage = FakeStorage(templates=[template()], incomplete=[source()])

    summary = run_batch(FakeLLM(validation=fail), storage, dry_run=False)

    assert summary.errors == 1
    assert summary.outcomes[0].status == "error"
    assert summary.outcomes[0].reason.startswith("Validation failed")
    assert storage.updates == []


def test_validation_timeout_is_an_error_and_batch_continues():
    storage = FakeStorage(templates=[template()], incomplete=[source("slow"), source("fast")])
    llm = FakeLLM(validation=accept, delay=1, slow_sources=["slow"])

    summary = run_batch(llm, storage, dry_run=False, ai_batch_timeout_seconds=0.05)

    assert [o.status for o in summary.outcomes] == ["error", "inherited"]
    assert summary.outcomes[0].reason.startswith("Validation failed")
    assert summary.errors == 1
    assert summary.inherited == 1
    assert llm.validated == ["slow", "fast"]
    assert storage.updates == [("fast", "TPE ayant un projet d'innovation.")]


def test_write_matching_no_record_is_an_error():
    storage = FakeStorage(templates=[template()], incomplete=[source()], missing_ids=["src"])

    summary = run_batch(FakeLLM(validation=accept), storage, dry_run=False)

    outcome = summary.outcomes[0]
    assert outcome.status == "error"
    assert not outcome.written
    assert outcome.reason == "No stored subsidy matched id src"
    assert summary.inherited == 0
    assert summary.errors == 1
    assert storage.updates == []


def test_malformed_provider_response_does_not_stop_the_batch():
    verdict = '{"valid": true, "confidence": 90, "adapted_criteria": "TPE innovantes", "reason": "ok"}'
    calls = []

    def handler(request):
        calls.append(request)
        if len(calls) == 1:
            return httpx.Response(200, json=["unexpected"])
        return httpx.Response(200, json={"choices": [{"message": {"content": verdict}}]})

    settings = make_settings(ai_api_key="test-key")
    llm = LLMService(settings, client=httpx.AsyncClient(transport=httpx.MockTransport(handler)))
    storage = FakeStorage(templates=[template()], incomplete=[source("a"), source("b")])
    service = TemplateInheritanceService(settings, storage, llm)

    async def scenario():
        try:
            return await service.run(batch_size=2, dry_run=True)
        finally:
            await llm.close()

    summary = asyncio.run(scenario())

    assert [o.status for o in summary.outcomes] == ["error", "inherited"]
    assert summary.processed == 2
    assert len(calls) == 2


def test_analyze_reports_match_rate_by_agency():
    storage = FakeStorage(
        templates=[template(), template("tpl-ademe", agency="ADEME")],
        incomplete=[source("a"), source("b"), make_subsidy("c", title="Prime à la casse", agency="Mairie")],
    )
    service = TemplateInheritanceService(make_settings(), storage, FakeLLM())

    analysis = asyncio.run(service.analyze(limit=10))

    assert analysis.templates == 2
    assert analysis.template_agencies == 2
    assert analysis.analyzed == 3
    assert analysis.matched == 2
    assert analysis.top_agencies == {"Bpifrance": 2}
    assert analysis.match_rate == pytest.approx(2 / 3)
