"""Infringement classification using Google GenAI plus a deterministic guardrail.

Every model verdict passes through ``apply_guardrail``: the model over-flags
videos that discuss or expose infringement and under-flags blatant promotion,
so the final verdict and confidence always come from the guardrail rules
applied to the raw title and description.
"""

import asyncio
import json
import logging
from dataclasses import dataclass, field
from typing import Optional

from google.genai import Client
from google.genai import types

from models.analysis import ClassificationResult, CopyrightType
from models.video import VideoRecord
from services.lexicon import LEGITIMATE_CONTEXT_TERMS, PROMOTION_TERMS, contains_any
from services.prompts import build_infringement_prompt, extract_json_text

logger = logging.getLogger(__name__)

MAX_REASONS = 3
NON_PROMO_CONFIDENCE_CAP = 60
PROMO_CONFIDENCE_FLOOR = 70

NO_PROMO_REASON = "No explicit download/promo terms in title/desc"
LEGIT_CONTEXT_REASON = "Appears to discuss/expose, not promote"


@dataclass
class ModelVerdict:
    """Decoded, range-checked model output (before the guardrail)."""

    is_likely_infringing: bool = False
    confidence_score: int = 0
    reasons: list[str] = field(default_factory=list)
    copyright_type: CopyrightType = CopyrightType.NONE
    fair_use_factors: list[str] = field(default_factory=list)


def _clamp_confidence(value) -> int:
    try:
        score = int(round(float(value)))
    except (TypeError, ValueError, OverflowError):
        return 0
    return max(0, min(100, score))


def _string_list(value) -> list[str]:
    if isinstance(value, str):
        return [value] if value.strip() else []
    if not isinstance(value, list):
        return []
    return [str(item).strip() for item in value if str(item).strip()]


def parse_model_verdict(text: Optional[str]) -> ModelVerdict:
    """Decode the model's JSON reply.

    Raises:
        ValueError: the reply is empty or not a JSON object
    """
    if not text or not text.strip():
        raise ValueError("AI response is empty")

    data = json.loads(extract_json_text(text))
    if not isinstance(data, dict):
        raise ValueError(f"AI response is not a JSON object: {type(data).__name__}")

    flag = data.get("isLikelyInfringing", False)
    if isinstance(flag, str):
        flag = flag.strip().lower() == "true"

    return ModelVerdict(
        is_likely_infringing=bool(flag),
        confidence_score=_clamp_confidence(data.get("confidenceScore", 0)),
        reasons=_string_list(data.get("reasons"))[:MAX_REASONS],
        copyright_type=CopyrightType.parse(data.get("copyrightType")),
        fair_use_factors=_string_list(data.get("fairUseFactors")),
    )


def apply_guardrail(verdict: ModelVerdict, text: str) -> ModelVerdict:
    """Correct a model verdict with promotion / legitimate-context term rules.

    - No promotion term: not infringing, confidence capped at 60.
    - Promotion term alongside legitimate context: same cap, discussion reason.
    - Promotion term without legitimate context: confidence floored at 70.
    """
    lowered = (text or "").lower()
    has_promo = contains_any(lowered, PROMOTION_TERMS)
    has_legit_context = contains_any(lowered, LEGITIMATE_CONTEXT_TERMS)

    if not has_promo or has_legit_context:
        return ModelVerdict(
            is_likely_infringing=False,
            confidence_score=min(verdict.confidence_score, NON_PROMO_CONFIDENCE_CAP),
            reasons=[NO_PROMO_REASON if not has_promo else LEGIT_CONTEXT_REASON],
            copyright_type=verdict.copyright_type,
            fair_use_factors=[],
        )

    return ModelVerdict(
        is_likely_infringing=verdict.is_likely_infringing,
        confidence_score=max(verdict.confidence_score, PROMO_CONFIDENCE_FLOOR),
        reasons=list(verdict.reasons[:MAX_REASONS]),
        copyright_type=verdict.copyright_type,
        fair_use_factors=list(verdict.fair_use_factors),
    )


class AIService:
    """Per-video infringement classifier backed by Gemini."""

    def __init__(
        self,
        api_key: str,
        model_name: str = "gemini-2.5-flash",
        temperature: float = 0.1,
        max_output_tokens: int = 150,
        timeout: float = 30.0,
        disable_thinking: bool = True,
        client: Optional[Client] = None,
    ):
        """Initialize Google GenAI client.

        Args:
            api_key: Google GenAI API key
            model_name: Gemini model to use
            temperature: Sampling temperature (kept low for consistent verdicts)
            max_output_tokens: Token cap for the JSON reply
            timeout: Seconds before a classification request counts as failed
            disable_thinking: Give the whole token budget to the answer
            client: Pre-built client (tests inject a fake)
        """
        self.model_name = model_name
        self.temperature = temperature
        self.max_output_tokens = max_output_tokens
        self.timeout = timeout
        self.disable_thinking = disable_thinking
        self.client = client or Client(api_key=api_key)

        logger.info(f"Initialized AI service with model: {model_name}")

    def _generation_config(self) -> types.GenerateContentConfig:
        config = types.GenerateContentConfig(
            temperature=self.temperature,
            max_output_tokens=self.max_output_tokens,
            response_mime_type="application/json",
        )
        if self.disable_thinking:
            config.thinking_config = types.ThinkingConfig(thinking_budget=0)
        return config

    async def _request_verdict(self, prompt: str) -> ModelVerdict:
        response = await asyncio.wait_for(
            self.client.aio.models.generate_content(
                model=self.model_name,
                contents=prompt,
                config=self._generation_config(),
            ),
            timeout=self.timeout,
        )
        return parse_model_verdict(response.text)

    async def classify(self, video: VideoRecord) -> ClassificationResult:
        """Classify one video. Never raises.

        Returns:
            Guardrail-corrected ClassificationResult, or a zero-confidence
            error-tagged result when the model call or its reply fails
        """
        prompt = build_infringement_prompt(video.title, video.author, video.description)

        try:
            raw = await self._request_verdict(prompt)
        except asyncio.TimeoutError:
            logger.error(f"Classification timed out for {video.video_id} after {self.timeout}s")
            return ClassificationResult.failed(
                video.video_id, video.title, video.author, f"Timed out after {self.timeout}s"
            )
        except Exception as e:
            logger.error(f"Classification failed for {video.video_id}: {e}")
            return ClassificationResult.failed(video.video_id, video.title, video.author, str(e) or type(e).__name__)

        verdict = apply_guardrail(raw, f"{video.title}\n{video.description}")
        if verdict.is_likely_infringing != raw.is_likely_infringing or verdict.confidence_score != raw.confidence_score:
            logger.debug(
                f"Guardrail adjusted {video.video_id}: "
                f"{raw.is_likely_infringing}/{raw.confidence_score} -> "
                f"{verdict.is_likely_infringing}/{verdict.confidence_score}"
            )

        return ClassificationResult(
            video_id=video.video_id,
            video_title=video.title,
            channel_name=video.author,
            is_likely_infringing=verdict.is_likely_infringing,
            confidence_score=verdict.confidence_score,
            reasons=verdict.reasons,
            copyright_type=verdict.copyright_type,
            fair_use_factors=verdict.fair_use_factors,
        )
