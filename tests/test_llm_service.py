"""Tests for the chat-completion client: retries, streaming and response parsing."""

import asyncio
import json

import httpx
import pytest

from subsidy_matcher.exceptions import LLMServiceError
from subsidy_matcher.models.inheritance import SimilarityMatch
from subsidy_matcher.models.matching import ScoreResult
from subsidy_matcher.models.profile import AnalyzedProfile
from subsidy_matcher.services.llm_service import (
    LLMService,
    build_rerank_candidates,
    extract_json_object,
    parse_rerank_payload,
    parse_validation_payload,
)

from tests.fakes import make_profile, make_settings, make_subsidy

MESSAGES = [{"role": "user", "content": "Bonjour"}]


def completion_body(content: str, usage=None) -> dict:
    body = {"choices": [{"message": {"role": "assistant", "content": content}}]}
    if usage is not None:
        body["usage"] = usage
    return body


def make_service(handler, **overrides) -> LLMService:
    settings = make_settings(ai_api_key="test-key", **overrides)
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return LLMService(settings, client=client)


def run_with(service: LLMService, coroutine_factory):
    async def scenario():
        try:
            return await coroutine_factory(service)
        finally:
            await service.close()

    return asyncio.run(scenario())


def sample_match() -> SimilarityMatch:
    source = make_subsidy("src", title="Aide TPE innovation", agency="Bpifrance")
    template = make_subsidy("tpl", title="Aide PME innovation", agency="Bpifrance",
                            eligibility_criteria={"fr": "Entreprises de moins de 250 salariés."})
    return SimilarityMatch(source=source, template=template, score=0.8, reasons=["same_agency"])


def test_complete_returns_content_and_usage():
    requests = []

    def handler(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        return httpx.Response(200, json=completion_body("Salut", {"prompt_tokens": 12, "completion_tokens": 3}))

    service = make_service(handler)
    result = run_with(service, lambda s: s.complete(MESSAGES))

    assert result.content == "Salut"
    assert result.usage.input == 12
    assert result.usage.output == 3
    assert requests[0].headers["Authorization"] == "Bearer test-key"
    sent = json.loads(requests[0].content)
    assert sent["stream"] is False
    assert sent["model"] == "mistral-small-latest"


def test_complete_estimates_usage_when_missing():
    service = make_service(lambda request: httpx.Response(200, json=completion_body("12345678")))

    result = run_with(service, lambda s: s.complete(MESSAGES))

    assert result.usage.output == 2
    assert result.usage.input == 2


def test_retryable_status_is_retried_until_success():
    calls = []

    def handler(request):
        calls.append(request)
        if len(calls) < 3:
            return httpx.Response(503, text="busy")
        return httpx.Response(200, json=completion_body("ok"))

    service = make_service(handler)
    result = run_with(service, lambda s: s.complete(MESSAGES))

    assert result.content == "ok"
    assert len(calls) == 3


def test_rate_limit_exhausts_attempts():
    calls = []

    def handler(request):
        calls.append(request)
        return httpx.Response(429, text="slow down")

    service = make_service(handler)
    with pytest.raises(LLMServiceError) as excinfo:
        run_with(service, lambda s: s.complete(MESSAGES))

    assert excinfo.value.status_code == 429
    assert excinfo.value.retryable
    assert len(calls) == 3


def test_client_error_is_not_retried():
    calls = []

    def handler(request):
        calls.append(request)
        return httpx.Response(400, text="bad request")

    service = make_service(handler)
    with pytest.raises(LLMServiceError) as excinfo:
        run_with(service, lambda s: s.complete(MESSAGES))

    assert excinfo.value.status_code == 400
    assert len(calls) == 1


def test_transport_errors_are_retried():
    calls = []

    def handler(request):
        calls.append(request)
        if len(calls) == 1:
            raise httpx.ConnectError("connection refused", request=request)
        return httpx.Response(200, json=completion_body("ok"))

    service = make_service(handler)
    result = run_with(service, lambda s: s.complete(MESSAGES))

    assert result.content == "ok"
    assert len(calls) == 2


def test_unconfigured_service_fails_without_calling_the_provider():
    calls = []

    def handler(request):
        calls.append(request)
        return httpx.Response(200, json=completion_body("ok"))

    settings = make_settings(ai_api_key=None)
    service = LLMService(settings, client=httpx.AsyncClient(transport=httpx.MockTransport(handler)))

    with pytest.raises(LLMServiceError) as excinfo:
        run_with(service, lambda s: s.complete(MESSAGES))

    assert not excinfo.value.retryable
    assert excinfo.value.status_code is None
    assert calls == []


def test_backoff_delay_doubles_and_caps():
    service = LLMService(make_settings(ai_backoff_base_seconds=1, ai_backoff_max_seconds=8))

    assert [service.backoff_delay(attempt) for attempt in range(5)] == [1, 2, 4, 8, 8]


def sse_body(fragments) -> bytes:
    lines = []
    for fragment in fragments:
        chunk = {"choices": [{"delta": {"content": fragment}}]}
        lines.append(f"data: {json.dumps(chunk)}\n\n")
    lines.append("data: [DONE]\n\n")
    return "".join(lines).encode()


def test_streaming_collects_fragments():
    fragments = ['Voici: {"valid": true, ', '"confidence": 90, ', '"adapted_criteria": "PME", "reason": "ok"}']

    def handler(request):
        assert json.loads(request.content)["stream"] is True
        return httpx.Response(200, content=sse_body(fragments), headers={"content-type": "text/event-stream"})

    service = make_service(handler)
    result = run_with(service, lambda s: s.complete_streaming(MESSAGES))

    assert result.content == "".join(fragments)
    assert extract_json_object(result.content)["confidence"] == 90


def test_streaming_error_status_is_retried():
    calls = []

    def handler(request):
        calls.append(request)
        if len(calls) == 1:
            return httpx.Response(502, text="bad gateway")
        return httpx.Response(200, content=sse_body(["fini"]), headers={"content-type": "text/event-stream"})

    service = make_service(handler)
    result = run_with(service, lambda s: s.complete_streaming(MESSAGES))

    assert result.content == "fini"
    assert len(calls) == 2


def test_extract_json_object():
    assert extract_json_object('Résultat: {"a": {"b": "}"}} fin') == {"a": {"b": "}"}}
    assert extract_json_object('```json\n{"quote": "il a dit \\"{\\""}\n```') == {"quote": 'il a dit "{"'}
    assert extract_json_object('{invalide} puis {"ok": 1}') == {"ok": 1}
    assert extract_json_object("[1, 2]") is None
    assert extract_json_object("pas de json") is None
    assert extract_json_object("") is None


def test_parse_validation_payload():
    low = parse_validation_payload(
        {"valid": True, "confidence": 65, "adapted_criteria": "PME", "reason": "proche"}, 70
    )
    good = parse_validation_payload(
        {"valid": True, "confidence": 85, "adapted_criteria": " PME ", "reason": "identique"}, 70
    )
    empty = parse_validation_payload({"valid": True, "confidence": 95, "adapted_criteria": None}, 70)
    rejected = parse_validation_payload({"valid": False, "confidence": 90, "reason": "secteurs"}, 70)
    malformed = parse_validation_payload(None, 70)

    assert not low.valid
    assert low.reason == "Low confidence (65%): proche"
    assert good.valid and good.adapted_criteria == "PME" and good.confidence == 85
    assert not empty.valid
    assert not rejected.valid and rejected.confidence == 90
    assert not malformed.valid
    assert malformed.confidence == 0
    assert malformed.reason == "Failed to parse AI response"


def test_parse_rerank_payload_accepts_both_key_styles():
    payload = {"matches": [
        {"i": 0, "adj": 5, "score": 85, "reasons": ["R1"], "ok": ["taille"], "missing": ["CA"]},
        {"subsidy_index": 1, "ai_adjustment": -10, "match_reasons": ["R2"],
         "matching_criteria": ["région"], "missing_criteria": []},
        {"i": "x", "adj": 3},
        {"adj": 3},
        "garbage",
    ]}

    adjustments = parse_rerank_payload(payload)

    assert [a.index for a in adjustments] == [0, 1]
    assert adjustments[0].score == 85
    assert adjustments[0].matching_criteria == ["taille"]
    assert adjustments[1].adjustment == -10
    assert adjustments[1].score is None
    assert adjustments[1].reasons == ["R2"]


def test_rerank_candidates_are_compact():
    result = ScoreResult(
        subsidy=make_subsidy("s1", title="Aide agricole", amount_max=150_000, region=["Occitanie"]),
        pre_score=62,
        pre_reasons=["Région: Occitanie", "Secteur: Agriculture", "Texte: agricole"],
    )

    candidate = build_rerank_candidates([result])[0]

    assert candidate["i"] == 0
    assert candidate["a"] == "150k€"
    assert candidate["r"] == "Occitanie"
    assert candidate["rs"] == ["Région: Occitanie", "Secteur: Agriculture"]


def test_rerank_drops_out_of_range_indices():
    content = 'Voici {"matches": [{"i": 0, "adj": 5}, {"i": 7, "adj": 5}]}'
    service = make_service(lambda request: httpx.Response(200, json=completion_body(content)))
    shortlist = [ScoreResult(subsidy=make_subsidy("s1"), pre_score=40)]

    result = run_with(service, lambda s: s.rerank(AnalyzedProfile(), make_profile(), shortlist, 1))

    assert [a.index for a in result.adjustments] == [0]


def test_rerank_unparseable_response_raises():
    service = make_service(lambda request: httpx.Response(200, json=completion_body("désolé")))
    shortlist = [ScoreResult(subsidy=make_subsidy("s1"), pre_score=40)]

    with pytest.raises(LLMServiceError):
        run_with(service, lambda s: s.rerank(AnalyzedProfile(), make_profile(), shortlist, 1))


def test_validate_inheritance_uses_validation_model():
    requests = []
    content = '{"valid": true, "confidence": 88, "adapted_criteria": "TPE de moins de 10 salariés", "reason": "ok"}'

    def handler(request):
        requests.append(json.loads(request.content))
        return httpx.Response(200, json=completion_body(content))

    service = make_service(handler, ai_validation_model="mistral-large-latest")
    result = run_with(service, lambda s: s.validate_inheritance(sample_match()))

    assert result.valid
    assert result.adapted_criteria == "TPE de moins de 10 salariés"
    assert requests[0]["model"] == "mistral-large-latest"
    assert requests[0]["temperature"] == 0.1
    assert requests[0]["max_tokens"] == 1500


def test_validate_inheritance_low_confidence_is_invalid():
    content = '{"valid": true, "confidence": 65, "adapted_criteria": "PME", "reason": "proche"}'
    service = make_service(lambda request: httpx.Response(200, json=completion_body(content)))

    result = run_with(service, lambda s: s.validate_inheritance(sample_match()))

    assert not result.valid
    assert result.confidence == 65


def test_validate_inheritance_through_streaming():
    fragments = ['{"valid": true, "confidence": 80, ', '"adapted_criteria": "PME", "reason": "ok"}']
    service = make_service(
        lambda request: httpx.Response(200, content=sse_body(fragments), headers={"content-type": "text/event-stream"}),
        ai_use_streaming=True,
    )

    result = run_with(service, lambda s: s.validate_inheritance(sample_match()))

    assert result.valid
    assert result.adapted_criteria == "PME"


def test_non_finite_confidence_is_treated_as_zero():
    payload = {"valid": True, "adapted_criteria": "PME", "reason": "ok"}

    from_float = parse_validation_payload({**payload, "confidence": float("nan")}, 70)
    from_text = parse_validation_payload({**payload, "confidence": "nan"}, 70)
    from_infinity = parse_validation_payload({**payload, "confidence": "Infinity"}, 70)

    for result in (from_float, from_text, from_infinity):
        assert not result.valid
        assert result.confidence == 0


def test_validate_inheritance_rejects_nan_literal():
    content = '{"valid": true, "confidence": NaN, "adapted_criteria": "PME", "reason": "ok"}'
    service = make_service(lambda request: httpx.Response(200, json=completion_body(content)))

    result = run_with(service, lambda s: s.validate_inheritance(sample_match()))

    assert not result.valid
    assert result.confidence == 0


def test_parse_rerank_payload_skips_non_finite_indices():
    payload = {"matches": [
        {"i": float("inf"), "adj": 5},
        {"i": "NaN", "adj": 5},
        {"i": 10 ** 400, "adj": 5},
        {"i": 0, "adj": float("nan"), "score": 70},
    ]}

    adjustments = parse_rerank_payload(payload)

    assert [a.index for a in adjustments] == [0]
    assert adjustments[0].adjustment is None
    assert adjustments[0].score == 70


def test_non_object_body_is_an_error_without_retry():
    calls = []

    def handler(request):
        calls.append(request)
        return httpx.Response(200, json=["unexpected"])

    service = make_service(handler)
    with pytest.raises(LLMServiceError) as excinfo:
        run_with(service, lambda s: s.complete(MESSAGES))

    assert excinfo.value.status_code == 200
    assert not excinfo.value.retryable
    assert len(calls) == 1


@pytest.mark.parametrize("body", [
    {"choices": "texte"},
    {"choices": ["texte"]},
    {"choices": [{"message": "texte"}]},
    {"choices": [{"message": {"content": 42}}]},
])
def test_unexpected_completion_shape_is_an_error(body):
    service = make_service(lambda request: httpx.Response(200, json=body))

    with pytest.raises(LLMServiceError) as excinfo:
        run_with(service, lambda s: s.complete(MESSAGES))

    assert excinfo.value.status_code == 200


def test_malformed_usage_falls_back_to_estimates():
    body = completion_body("12345678", usage=["prompt_tokens", 3])
    service = make_service(lambda request: httpx.Response(200, json=body))

    result = run_with(service, lambda s: s.complete(MESSAGES))

    assert result.usage.output == 2


def test_streaming_skips_unexpected_chunks():
    body = (
        b"data: 123\n\n"
        b'data: ["liste"]\n\n'
        b'data: {"choices": ["texte"]}\n\n'
        b'data: {"choices": [{"delta": {"role": "assistant"}}]}\n\n'
    ) + sse_body(["bon", "jour"])
    service = make_service(
        lambda request: httpx.Response(200, content=body, headers={"content-type": "text/event-stream"})
    )

    result = run_with(service, lambda s: s.complete_streaming(MESSAGES))

    assert result.content == "bonjour"
