"""
LLM service for the OpenAI-compatible chat-completions API (Mistral by default)
"""
import asyncio
import json
import logging
import math
from typing import Any, AsyncIterable, AsyncIterator, Dict, List, Optional, Sequence

import httpx
from pydantic import BaseModel, Field

from ..config import Settings
from ..exceptions import LLMServiceError, LLMTimeoutError
from ..models.inheritance import SimilarityMatch, ValidationResult
from ..models.matching import RerankAdjustment, ScoreResult, TokenUsage
from ..models.profile import AnalyzedProfile, ApplicantProfile
from ..models.subsidy import get_description, get_eligibility, get_title
from ..utils.validators import extract_text_snippet

logger = logging.getLogger(__name__)

RETRYABLE_STATUS_CODES = {429, 502, 503, 504}
MAX_SCORE_ADJUSTMENT = 25

MATCHING_SYSTEM_PROMPT = """Tu es un expert en aides publiques et subventions françaises et européennes.
Tu aides les entreprises à identifier les dispositifs d'aide auxquels elles pourraient être éligibles.

Règles importantes:
- Sois précis et factuel dans tes réponses
- Indique clairement quand tu n'es pas sûr d'une information
- Ne garantis jamais l'obtention d'une aide, l'éligibilité réelle dépend de l'organisme financeur
- Réponds en français
- Sois concis mais complet"""


class CompletionResult(BaseModel):
    """Text and token usage of one chat completion"""
    content: str = ""
    usage: TokenUsage = Field(default_factory=TokenUsage)


class StreamResult(BaseModel):
    """Accumulated text of a streamed completion plus its trailing JSON payload"""
    text: str = ""
    payload: Optional[Dict[str, Any]] = None


class RerankResult(BaseModel):
    adjustments: List[RerankAdjustment] = Field(default_factory=list)
    usage: TokenUsage = Field(default_factory=TokenUsage)


def estimate_tokens(text: str) -> int:
    """Rough token count used when the provider omits usage data"""
    return math.ceil(len(text or "") / 4)


def _choice_text(data: Any, field: str) -> Optional[str]:
    """Content of the first choice's message or delta, None when the shape is unexpected"""
    if not isinstance(data, dict):
        return None
    choices = data.get("choices") or []
    if not isinstance(choices, list):
        return None
    if not choices:
        return ""
    if not isinstance(choices[0], dict):
        return None
    part = choices[0].get(field) or {}
    if not isinstance(part, dict):
        return None
    content = part.get("content") or ""
    return content if isinstance(content, str) else None


def extract_json_object(text: str) -> Optional[Dict[str, Any]]:
    """
    Extract the first balanced JSON object embedded in free text

    Braces inside string literals are ignored. When a balanced candidate
    does not parse, scanning resumes at the next opening brace.

    Args:
        text: Model output, possibly wrapped in prose or code fences

    Returns:
        The parsed object, or None when no valid object is found
    """
    if not text:
        return None

    start = text.find('{')
    while start != -1:
        depth = 0
        in_string = False
        escaped = False
        for position in range(start, len(text)):
            char = text[position]
            if in_string:
                if escaped:
                    escaped = False
                elif char == '\\':
                    escaped = True
                elif char == '"':
                    in_string = False
                continue
            if char == '"':
                in_string = True
            elif char == '{':
                depth += 1
            elif char == '}':
                depth -= 1
                if depth == 0:
                    try:
                        parsed = json.loads(text[start:position + 1])
                    except json.JSONDecodeError:
                        break
                    if isinstance(parsed, dict):
                        return parsed
                    break
        start = text.find('{', start + 1)
    return None


async def collect_stream(chunks: AsyncIterable[str]) -> StreamResult:
    """Reduce a stream of content deltas to the full text and its JSON payload"""
    parts: List[str] = []
    async for chunk in chunks:
        parts.append(chunk)
    text = "".join(parts)
    return StreamResult(text=text, payload=extract_json_object(text))


def _format_euros(amount: float) -> str:
    return f"{int(amount):,}".replace(",", " ") + " €"


def build_profile_context(profile: ApplicantProfile) -> str:
    """Profile summary block used in AI prompts"""
    lines = []
    if profile.company_name:
        lines.append(f"Nom: {profile.company_name}")
    if profile.naf_code:
        lines.append(f"Code NAF: {profile.naf_code} ({profile.naf_label or 'N/A'})")
    if profile.sector:
        lines.append(f"Secteur: {profile.sector}")
    if profile.sub_sector:
        lines.append(f"Sous-secteur: {profile.sub_sector}")
    if profile.region:
        lines.append(f"Région: {profile.region}")
    if profile.department:
        lines.append(f"Département: {profile.department}")
    if profile.employees:
        lines.append(f"Effectif: {profile.employees} salariés")
    if profile.annual_turnover is not None:
        lines.append(f"CA annuel: {_format_euros(profile.annual_turnover)}")
    if profile.year_created:
        lines.append(f"Année de création: {profile.year_created}")
    if profile.legal_form:
        lines.append(f"Forme juridique: {profile.legal_form}")
    if profile.company_category:
        lines.append(f"Catégorie: {profile.company_category}")
    if profile.project_types:
        lines.append(f"Types de projets: {', '.join(profile.project_types)}")
    if profile.certifications:
        lines.append(f"Certifications: {', '.join(profile.certifications)}")
    if profile.description:
        lines.append(f"Description: {profile.description}")

    intelligence = profile.website_intelligence
    if intelligence:
        if intelligence.company_description:
            lines.append(f"Activité (web): {intelligence.company_description}")
        for label, signal in (
            ("innovation", intelligence.innovations),
            ("RSE", intelligence.sustainability),
            ("export", intelligence.export),
            ("digital", intelligence.digital),
        ):
            if signal and signal.score:
                lines.append(f"Score {label}: {signal.score:g}/100")

    return "\n".join(lines)


def build_rerank_candidates(shortlist: Sequence[ScoreResult]) -> List[Dict[str, Any]]:
    """Compact candidate list: index, title, sector, region, amount, pre-score, top reasons"""
    candidates = []
    for index, result in enumerate(shortlist):
        subsidy = result.subsidy
        candidates.append({
            "i": index,
            "id": subsidy.id,
            "t": get_title(subsidy)[:60],
            "s": subsidy.primary_sector[:20] if subsidy.primary_sector else None,
            "r": subsidy.region[0][:15] if subsidy.region else "National",
            "a": f"{round(subsidy.amount_max / 1000)}k€" if subsidy.amount_max else None,
            "p": result.pre_score,
            "rs": result.pre_reasons[:2],
        })
    return candidates


def build_rerank_prompt(analyzed: AnalyzedProfile, profile: ApplicantProfile,
                        shortlist: Sequence[ScoreResult], limit: int) -> str:
    candidates = build_rerank_candidates(shortlist)
    return f"""Évalue l'éligibilité de cette entreprise aux {len(candidates)} subventions PRÉ-QUALIFIÉES.

ENTREPRISE:
{build_profile_context(profile)}
Taille: {analyzed.size_category}

SUBVENTIONS (format compact: i=index, t=titre, s=secteur, r=région, a=montant, p=pre_score, rs=raisons):
{json.dumps(candidates, ensure_ascii=False)}

RÈGLES:
- Partir du p (pre_score) et AJUSTER de +/- {MAX_SCORE_ADJUSTMENT}pts max
- AUGMENTER si secteur/taille/région correspondent bien
- DIMINUER si critères restrictifs (taille, CA, zone géographique)

RETOURNE les {limit} meilleures en JSON:
{{"matches":[{{"i":0,"adj":5,"score":85,"reasons":["R1","R2"],"ok":["critère"],"missing":["à vérifier"]}}]}}

STRICT: JSON uniquement, score=p+adj (0-100), varier les scores"""


def build_validation_prompt(match: SimilarityMatch) -> str:
    source = match.source
    template = match.template
    return f"""Tu es un expert en aides publiques françaises. Évalue si les critères d'éligibilité d'une subvention peuvent être transférés à une autre.

SUBVENTION SOURCE (manque les critères d'éligibilité):
- Titre: {get_title(source)}
- Description: {extract_text_snippet(get_description(source), 1000) or 'Non disponible'}
- Organisme: {source.agency or 'Non spécifié'}
- Type: {source.funding_type or 'Non spécifié'}
- Secteur: {source.primary_sector or 'Non spécifié'}
- Régions: {', '.join(source.region) if source.region else 'National'}

SUBVENTION TEMPLATE (a des critères d'éligibilité):
- Titre: {get_title(template)}
- Description: {extract_text_snippet(get_description(template), 1000) or 'Non disponible'}
- Organisme: {template.agency or 'Non spécifié'}
- Type: {template.funding_type or 'Non spécifié'}
- Secteur: {template.primary_sector or 'Non spécifié'}
- Critères d'éligibilité existants: {get_eligibility(template)}

RAISONS DU MATCHING (score: {match.score * 100:.0f}%):
{', '.join(match.reasons)}

EXEMPLES DE DÉCISION:

VALID, transférer les critères:
- Même organisme + même type d'aide + bénéficiaires similaires
- Ex: "Aide PME innovation" et "Aide TPE innovation" du même organisme

INVALID, ne PAS transférer:
- Bénéficiaires différents (entreprises vs collectivités vs particuliers)
- Secteurs incompatibles (agriculture vs industrie)
- Objectifs différents (investissement vs étude vs formation)
- Ex: "Aide aux ports" ne peut pas hériter de "Aide à la R&D"

QUESTION: Les critères du TEMPLATE peuvent-ils s'appliquer à la SOURCE?

RÈGLES STRICTES:
1. valid=true UNIQUEMENT si les bénéficiaires cibles sont identiques ou très proches
2. Si valid=true, adapted_criteria doit être basé UNIQUEMENT sur le texte du TEMPLATE (ne pas inventer)
3. Adapter le texte au contexte de la SOURCE mais garder la substance du TEMPLATE
4. En cas de doute, valid=false (mieux vaut ne pas transférer que transférer à tort)

Réponds UNIQUEMENT avec un JSON valide:
{{
  "valid": true ou false,
  "confidence": 0-100,
  "adapted_criteria": "Critères adaptés basés sur le TEMPLATE (ou null si invalid)",
  "reason": "Explication en 1-2 phrases"
}}"""


def _as_number(value: Any) -> Optional[float]:
    if isinstance(value, bool):
        return None
    if not isinstance(value, (int, float, str)):
        return None
    try:
        number = float(value)
    except (ValueError, OverflowError):
        return None
    return number if math.isfinite(number) else None


def _as_str_list(value: Any) -> List[str]:
    if not isinstance(value, list):
        return []
    return [str(item) for item in value if item is not None]


def _first_present(item: Dict[str, Any], *keys: str) -> Any:
    for key in keys:
        if item.get(key) is not None:
            return item[key]
    return None


def parse_rerank_payload(payload: Dict[str, Any]) -> List[RerankAdjustment]:
    """
    Convert a re-ranking response into adjustments

    Accepts both the compact keys (i, adj, score, reasons, ok, missing) and
    the long keys (subsidy_index, ai_adjustment, match_score, match_reasons,
    matching_criteria, missing_criteria). Entries without a usable index are
    dropped.
    """
    adjustments = []
    for item in payload.get("matches") or []:
        if not isinstance(item, dict):
            continue
        index = _as_number(_first_present(item, "i", "subsidy_index"))
        if index is None or index != int(index):
            continue
        adjustments.append(RerankAdjustment(
            index=int(index),
            adjustment=_as_number(_first_present(item, "adj", "ai_adjustment")),
            score=_as_number(_first_present(item, "score", "match_score")),
            reasons=_as_str_list(_first_present(item, "reasons", "match_reasons")),
            matching_criteria=_as_str_list(_first_present(item, "ok", "matching_criteria")),
            missing_criteria=_as_str_list(_first_present(item, "missing", "missing_criteria")),
        ))
    return adjustments


def parse_validation_payload(payload: Optional[Dict[str, Any]], min_confidence: int) -> ValidationResult:
    """
    Normalize a validation response

    Malformed payloads become an invalid verdict with zero confidence.
    A positive verdict below min_confidence, or without adapted text, is
    downgraded to invalid.
    """
    if not payload:
        return ValidationResult(valid=False, confidence=0, reason="Failed to parse AI response")

    number = _as_number(payload.get("confidence"))
    confidence = int(max(0, min(100, number))) if number is not None else 0
    reason = str(payload.get("reason") or "")
    adapted = payload.get("adapted_criteria")
    adapted = adapted.strip() if isinstance(adapted, str) and adapted.strip() else None

    if payload.get("valid") is not True:
        return ValidationResult(valid=False, confidence=confidence, reason=reason)

    if confidence < min_confidence:
        return ValidationResult(
            valid=False,
            confidence=confidence,
            reason=f"Low confidence ({confidence}%): {reason}",
        )

    if adapted is None:
        return ValidationResult(valid=False, confidence=confidence, reason=f"No adapted criteria: {reason}")

    return ValidationResult(valid=True, confidence=confidence, adapted_criteria=adapted, reason=reason)


class LLMService:
    """Service for chat-completion calls used by re-ranking and criteria validation"""

    def __init__(self, settings: Settings, client: Optional[httpx.AsyncClient] = None):
        self.settings = settings
        self.api_key = settings.ai_api_key
        self.base_url = settings.ai_base_url.rstrip("/")
        self.model = settings.ai_model

        # HTTP client with per-call timeout
        self.client = client or httpx.AsyncClient(timeout=httpx.Timeout(settings.ai_timeout_seconds))

    @property
    def is_configured(self) -> bool:
        return bool(self.api_key)

    async def close(self):
        """Close HTTP client"""
        await self.client.aclose()

    def _headers(self) -> Dict[str, str]:
        return {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json"
        }

    def _payload(self, messages: List[Dict[str, str]], model: Optional[str], temperature: Optional[float],
                 max_tokens: Optional[int], stream: bool) -> Dict[str, Any]:
        return {
            "model": model or self.model,
            "messages": messages,
            "temperature": self.settings.ai_temperature if temperature is None else temperature,
            "max_tokens": max_tokens or self.settings.ai_max_tokens,
            "stream": stream,
        }

    def backoff_delay(self, attempt: int) -> float:
        """Delay before retry number attempt + 1: base doubled per attempt, capped"""
        return min(self.settings.ai_backoff_base_seconds * (2 ** attempt), self.settings.ai_backoff_max_seconds)

    def _ensure_configured(self):
        if not self.is_configured:
            raise LLMServiceError("AI API key not configured", retryable=False)

    async def _with_retry(self, call, description: str):
        attempts = max(1, self.settings.ai_max_attempts)
        for attempt in range(attempts):
            try:
                return await call()
            except LLMServiceError as e:
                if not e.retryable or attempt == attempts - 1:
                    raise
                delay = self.backoff_delay(attempt)
                logger.warning(
                    f"{description} failed ({e}), retrying in {delay:.1f}s "
                    f"(attempt {attempt + 1}/{attempts})"
                )
                await asyncio.sleep(delay)

    async def _post_completion(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        try:
            response = await self.client.post(
                f"{self.base_url}/chat/completions",
                json=payload,
                headers=self._headers()
            )
        except httpx.TimeoutException as e:
            raise LLMTimeoutError(f"AI request timed out: {e}") from e
        except httpx.TransportError as e:
            raise LLMServiceError(f"AI transport error: {e}", retryable=True) from e

        if response.status_code != 200:
            raise LLMServiceError(
                f"AI API error: {response.status_code} - {response.text[:200]}",
                status_code=response.status_code,
                retryable=response.status_code in RETRYABLE_STATUS_CODES
            )

        try:
            data = response.json()
        except ValueError as e:
            raise LLMServiceError("AI API returned invalid JSON", status_code=200) from e
        if not isinstance(data, dict):
            raise LLMServiceError(
                f"AI API returned {type(data).__name__} instead of an object",
                status_code=200
            )
        return data

    async def complete(self, messages: List[Dict[str, str]], model: Optional[str] = None,
                       temperature: Optional[float] = None, max_tokens: Optional[int] = None) -> CompletionResult:
        """
        Run a chat completion with capped exponential backoff

        Args:
            messages: Chat messages
            model: Model override
            temperature: Temperature override
            max_tokens: Max tokens override

        Returns:
            CompletionResult with content and token usage

        Raises:
            LLMServiceError: Non-retryable error, or retries exhausted
        """
        self._ensure_configured()
        payload = self._payload(messages, model, temperature, max_tokens, stream=False)

        logger.info(f"Sending request to AI API with model: {payload['model']}")
        data = await self._with_retry(lambda: self._post_completion(payload), "AI request")

        content = _choice_text(data, "message")
        if content is None:
            raise LLMServiceError("AI API returned an unexpected completion shape", status_code=200)

        prompt_text = "".join(m.get("content", "") for m in messages)
        usage = data.get("usage")
        if not isinstance(usage, dict):
            usage = {}
        return CompletionResult(
            content=content,
            usage=TokenUsage(
                input=int(_as_number(usage.get("prompt_tokens")) or 0) or estimate_tokens(prompt_text),
                output=int(_as_number(usage.get("completion_tokens")) or 0) or estimate_tokens(content),
            )
        )

    async def stream_completion(self, messages: List[Dict[str, str]], model: Optional[str] = None,
                                temperature: Optional[float] = None,
                                max_tokens: Optional[int] = None) -> AsyncIterator[str]:
        """
        Stream a chat completion as content deltas

        Yields:
            Text fragments in arrival order

        Raises:
            LLMServiceError: The request failed before or during streaming
        """
        self._ensure_configured()
        payload = self._payload(messages, model, temperature, max_tokens, stream=True)

        try:
            async with self.client.stream(
                "POST",
                f"{self.base_url}/chat/completions",
                json=payload,
                headers=self._headers()
            ) as response:
                if response.status_code != 200:
                    body = await response.aread()
                    raise LLMServiceError(
                        f"AI API error: {response.status_code} - {body[:200].decode(errors='replace')}",
                        status_code=response.status_code,
                        retryable=response.status_code in RETRYABLE_STATUS_CODES
                    )

                async for line in response.aiter_lines():
                    line = line.strip()
                    if not line.startswith("data:"):
                        continue
                    data = line[len("data:"):].strip()
                    if data == "[DONE]":
                        break
                    try:
                        chunk = json.loads(data)
                    except json.JSONDecodeError:
                        logger.debug(f"Skipping malformed stream chunk: {data[:80]}")
                        continue
                    content = _choice_text(chunk, "delta")
                    if content is None:
                        logger.debug(f"Skipping unexpected stream chunk: {data[:80]}")
                        continue
                    if content:
                        yield content
        except httpx.TimeoutException as e:
            raise LLMTimeoutError(f"AI stream timed out: {e}") from e
        except httpx.TransportError as e:
            raise LLMServiceError(f"AI transport error: {e}", retryable=True) from e

    async def complete_streaming(self, messages: List[Dict[str, str]], model: Optional[str] = None,
                                 temperature: Optional[float] = None,
                                 max_tokens: Optional[int] = None) -> CompletionResult:
        """Streamed completion collected into a single result, retried as a whole"""

        async def attempt() -> StreamResult:
            return await collect_stream(self.stream_completion(messages, model, temperature, max_tokens))

        result = await self._with_retry(attempt, "AI stream")
        prompt_text = "".join(m.get("content", "") for m in messages)
        return CompletionResult(
            content=result.text,
            usage=TokenUsage(input=estimate_tokens(prompt_text), output=estimate_tokens(result.text)),
        )

    async def chat(self, messages: List[Dict[str, str]], **kwargs) -> CompletionResult:
        """Completion through the configured transport (streaming or not)"""
        if self.settings.ai_use_streaming:
            return await self.complete_streaming(messages, **kwargs)
        return await self.complete(messages, **kwargs)

    async def rerank(self, analyzed: AnalyzedProfile, profile: ApplicantProfile,
                     shortlist: Sequence[ScoreResult], limit: int) -> RerankResult:
        """
        Ask the model to adjust pre-scores of a shortlist

        Args:
            analyzed: Analyzed profile
            profile: Raw profile, used for the context block
            shortlist: Pre-scored candidates, indexed from 0 in the prompt
            limit: Number of matches requested

        Returns:
            RerankResult with adjustments indexed into shortlist

        Raises:
            LLMServiceError: The call failed or the response had no JSON object
        """
        messages = [
            {"role": "system", "content": MATCHING_SYSTEM_PROMPT},
            {"role": "user", "content": build_rerank_prompt(analyzed, profile, shortlist, limit)},
        ]
        completion = await self.chat(messages)

        payload = extract_json_object(completion.content)
        if payload is None:
            logger.warning(f"Failed to parse re-ranking response: {completion.content[:200]}")
            raise LLMServiceError("Unparseable re-ranking response", status_code=200)

        adjustments = [a for a in parse_rerank_payload(payload) if 0 <= a.index < len(shortlist)]
        return RerankResult(adjustments=adjustments, usage=completion.usage)

    async def validate_inheritance(self, match: SimilarityMatch,
                                   min_confidence: Optional[int] = None) -> ValidationResult:
        """
        Ask the model whether a template's criteria can be transferred to a source subsidy

        Args:
            match: Source/template pair with its similarity reasons
            min_confidence: Minimum confidence for a positive verdict

        Returns:
            Normalized ValidationResult

        Raises:
            LLMServiceError: The call itself failed
        """
        if min_confidence is None:
            min_confidence = self.settings.min_validation_confidence

        completion = await self.chat(
            [{"role": "user", "content": build_validation_prompt(match)}],
            model=self.settings.validation_model,
            temperature=0.1,
            max_tokens=1500,
        )
        return parse_validation_payload(extract_json_object(completion.content), min_confidence)
