"""Multimodal photo classification through an OpenAI-compatible gateway."""

from __future__ import annotations

import atexit
import json
import logging
import os
import re
import time
from typing import Any

import httpx
from openai import APITimeoutError, OpenAI, OpenAIError
from pydantic import ValidationError

from phototagger.config import Settings
from phototagger.exceptions import ServiceError, TagValidationError
from phototagger.metrics import (
    classify_call_seconds,
    classify_fallback_total,
    classify_validation_reject_total,
)
from phototagger.models import EventKind, ModelTier
from phototagger.schemas import ClassificationResult, TierResult
from phototagger.services.events import ClassificationEvent, EventRecorder
from phototagger.services.prompts import CLASSIFICATION_PROMPT

logger = logging.getLogger(__name__)

settings = Settings()

_MODEL = settings.primary_model
_MODEL_FALLBACK: str | None = settings.fallback_model or None
_TIMEOUT_SECONDS = settings.classify_timeout_seconds

_client: OpenAI | None = None
_http_client: httpx.Client | None = None

_FENCE_RE = re.compile(r"^```(?:json)?\s*|\s*```$", re.I)
_OBJECT_RE = re.compile(r"\{.*\}", re.S)


def _get_client() -> OpenAI:
    """Lazily build and cache the gateway client."""

    global _client, _http_client
    if _client is None:
        mounts: dict[str, httpx.HTTPTransport] = {}
        http_proxy = os.environ.get("HTTP_PROXY")
        https_proxy = os.environ.get("HTTPS_PROXY")
        if http_proxy:
            mounts["http://"] = httpx.HTTPTransport(proxy=http_proxy)
        if https_proxy:
            mounts["https://"] = httpx.HTTPTransport(proxy=https_proxy)

        _http_client = httpx.Client(mounts=mounts) if mounts else None
        api_key = settings.openrouter_api_key or os.environ.get("OPENROUTER_API_KEY")
        if not api_key:
            raise RuntimeError("OPENROUTER_API_KEY environment variable is not set")
        _client = OpenAI(
            api_key=api_key,
            base_url=settings.openrouter_base_url,
            default_headers={
                "HTTP-Referer": settings.app_referer,
                "X-Title": settings.app_title,
            },
            http_client=_http_client,
            max_retries=0,
        )
    return _client


def _close_client() -> None:
    global _client, _http_client
    if _http_client is not None:
        _http_client.close()
    _http_client = None
    _client = None


atexit.register(_close_client)


def _build_payload(image_url: str) -> dict[str, Any]:
    return {
        "messages": [
            {
                "role": "user",
                "content": [
                    {"type": "text", "text": CLASSIFICATION_PROMPT},
                    {"type": "image_url", "image_url": {"url": image_url}},
                ],
            }
        ],
        "temperature": settings.classify_temperature,
        "max_tokens": settings.classify_max_tokens,
    }


def _request_completion(client: OpenAI, model: str, payload: dict[str, Any]):
    return client.chat.completions.create(
        model=model, timeout=_TIMEOUT_SECONDS, **payload
    )


def extract_json(content: str) -> str:
    """Strip markdown fences or chatter around the JSON object."""
    text = _FENCE_RE.sub("", content.strip()).strip()
    if text.startswith("{"):
        return text
    match = _OBJECT_RE.search(text)
    return match.group(0) if match else text


def _call_tier(client: OpenAI, tier: ModelTier, model: str, payload: dict[str, Any]) -> dict:
    """One request on one tier; any transport or format problem is a ``ServiceError``."""
    start = time.perf_counter()
    try:
        response = _request_completion(client, model, payload)
    except (APITimeoutError, TimeoutError, httpx.TimeoutException) as exc:
        raise ServiceError(f"{tier.value} tier timed out", tier) from exc
    except (OpenAIError, httpx.HTTPError) as exc:
        raise ServiceError(f"Classification request failed: {exc}", tier) from exc
    finally:
        classify_call_seconds.observe(time.perf_counter() - start)

    try:
        content = response.choices[0].message.content
    except (AttributeError, IndexError, TypeError) as exc:
        raise ServiceError("Classification service returned no choices", tier) from exc
    if not content:
        raise ServiceError("Classification service returned an empty reply", tier)

    try:
        data = json.loads(extract_json(content))
    except json.JSONDecodeError as exc:
        raise ServiceError(f"Failed to parse classification JSON: {exc}", tier) from exc
    if not isinstance(data, dict):
        raise ServiceError("Classification reply is not a JSON object", tier)
    return data


def _describe(exc: ValidationError) -> str:
    messages = []
    for error in exc.errors():
        msg = error["msg"].removeprefix("Value error, ")
        loc = ".".join(str(part) for part in error["loc"])
        messages.append(f"{loc}: {msg}" if loc else msg)
    return "; ".join(messages)


def parse_classification(data: dict) -> ClassificationResult:
    """Apply the tagging rules to a decoded reply."""
    try:
        return ClassificationResult.model_validate(data)
    except ValidationError as exc:
        classify_validation_reject_total.inc()
        raise TagValidationError(_describe(exc)) from exc


def classify(
    image_url: str,
    *,
    recorder: EventRecorder | None = None,
    photo_id: str | None = None,
) -> TierResult:
    """Classify ``image_url`` on the primary tier, falling back to the paid one.

    Any failure of the primary call triggers the fallback; a failure on the
    secondary tier propagates. Rule violations in a received reply raise
    :class:`TagValidationError` and are never retried on another tier.
    """
    client = _get_client()
    payload = _build_payload(image_url)

    try:
        data = _call_tier(client, ModelTier.PRIMARY, _MODEL, payload)
        tier = ModelTier.PRIMARY
    except Exception as exc:
        if not _MODEL_FALLBACK:
            raise
        classify_fallback_total.inc()
        if recorder is not None:
            recorder.record(
                ClassificationEvent(
                    kind=EventKind.FALLBACK,
                    photo_id=photo_id or "unknown",
                    tier=ModelTier.PRIMARY,
                    error=str(exc),
                )
            )
        data = _call_tier(client, ModelTier.SECONDARY, _MODEL_FALLBACK, payload)
        tier = ModelTier.SECONDARY

    return TierResult(parse_classification(data), tier)


__all__ = ["classify", "parse_classification", "extract_json"]
