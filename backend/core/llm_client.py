import logging
import random
import time
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

import requests

from core.fallback_content import synthesize
from models import GenerationSettings

DEFAULT_API_URL = "https://api.openai.com/v1/chat/completions"
DEFAULT_MODEL = "gpt-3.5-turbo"
DEFAULT_TEMPERATURE = 0.8
DEFAULT_TOP_P = 0.9
DEFAULT_FREQUENCY_PENALTY = 0.1
DEFAULT_PRESENCE_PENALTY = 0.1
DEFAULT_TIMEOUT_SECONDS = 60.0
MAX_COMPLETION_TOKENS = 4000
TOKENS_PER_UNIT = 2

SYSTEM_PERSONA = "你是一个专业的中文小说创作助手，擅长各种文学风格的创作。"


def _safe_positive_float(value: Any, fallback: float) -> float:
    try:
        parsed = float(value)
        if parsed > 0:
            return parsed
    except Exception:
        pass
    return fallback


def _safe_temperature(value: Any, fallback: float) -> float:
    try:
        parsed = float(value)
        if parsed < 0:
            return 0.0
        if parsed > 2:
            return 2.0
        return parsed
    except Exception:
        return fallback


def _safe_top_p(value: Any, fallback: float) -> float:
    try:
        parsed = float(value)
        if parsed <= 0:
            return fallback
        if parsed > 1:
            return 1.0
        return parsed
    except Exception:
        return fallback


def _safe_penalty(value: Any, fallback: float) -> float:
    try:
        parsed = float(value)
        if parsed < -2:
            return -2.0
        if parsed > 2:
            return 2.0
        return parsed
    except Exception:
        return fallback


@dataclass(frozen=True)
class ProviderConfig:
    """Everything the invoker needs to reach the provider, passed per call."""

    api_url: str = DEFAULT_API_URL
    api_key: Optional[str] = None
    model: str = DEFAULT_MODEL
    temperature: float = DEFAULT_TEMPERATURE
    top_p: float = DEFAULT_TOP_P
    frequency_penalty: float = DEFAULT_FREQUENCY_PENALTY
    presence_penalty: float = DEFAULT_PRESENCE_PENALTY
    timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS

    @classmethod
    def build(
        cls,
        api_url: Optional[str] = None,
        api_key: Optional[str] = None,
        model: Optional[str] = None,
        temperature: Any = None,
        top_p: Any = None,
        frequency_penalty: Any = None,
        presence_penalty: Any = None,
        timeout_seconds: Any = None,
    ) -> "ProviderConfig":
        return cls(
            api_url=(api_url or "").strip() or DEFAULT_API_URL,
            api_key=(api_key or "").strip() or None,
            model=(model or "").strip() or DEFAULT_MODEL,
            temperature=_safe_temperature(temperature, DEFAULT_TEMPERATURE),
            top_p=_safe_top_p(top_p, DEFAULT_TOP_P),
            frequency_penalty=_safe_penalty(frequency_penalty, DEFAULT_FREQUENCY_PENALTY),
            presence_penalty=_safe_penalty(presence_penalty, DEFAULT_PRESENCE_PENALTY),
            timeout_seconds=_safe_positive_float(timeout_seconds, DEFAULT_TIMEOUT_SECONDS),
        )


@dataclass
class GenerationOutcome:
    text: str
    used_fallback: bool


def max_tokens_for(settings: GenerationSettings) -> int:
    return min(settings.target_word_count * TOKENS_PER_UNIT, MAX_COMPLETION_TOKENS)


def build_messages(prompt: str) -> List[Dict[str, str]]:
    return [
        {"role": "system", "content": SYSTEM_PERSONA},
        {"role": "user", "content": prompt},
    ]


def build_payload(prompt: str, settings: GenerationSettings, config: ProviderConfig) -> Dict[str, Any]:
    return {
        "model": config.model,
        "messages": build_messages(prompt),
        "max_tokens": max_tokens_for(settings),
        "temperature": config.temperature,
        "top_p": config.top_p,
        "frequency_penalty": config.frequency_penalty,
        "presence_penalty": config.presence_penalty,
    }


def extract_completion_text(data: Any) -> str:
    try:
        content = data["choices"][0]["message"]["content"]
    except (KeyError, IndexError, TypeError):
        return ""
    return content if isinstance(content, str) else ""


class GenerationClient:
    """
    Calls the chat-completion provider once per request.

    There is no retry: any failure (missing key, non-2xx status, malformed
    payload, transport error) falls back to locally synthesized prose.
    """

    def __init__(self, rng: Optional[random.Random] = None):
        self._rng = rng
        self._logger = logging.getLogger("inkwell.llm")
        self._offline_warnings: set[str] = set()

    def _warn_offline_once(self, reason: str, config: ProviderConfig):
        if reason in self._offline_warnings:
            return
        self._offline_warnings.add(reason)
        self._logger.warning(
            "llm offline fallback model=%s reason=%s",
            config.model,
            reason,
        )

    def _fallback(self, settings: GenerationSettings) -> GenerationOutcome:
        return GenerationOutcome(text=synthesize(settings, rng=self._rng), used_fallback=True)

    def generate_with_outcome(
        self,
        prompt: str,
        settings: GenerationSettings,
        config: ProviderConfig,
    ) -> GenerationOutcome:
        if not config.api_key:
            self._warn_offline_once("missing_api_key", config)
            return self._fallback(settings)

        started = time.perf_counter()
        try:
            response = requests.post(
                config.api_url,
                headers={
                    "Content-Type": "application/json",
                    "Authorization": f"Bearer {config.api_key}",
                },
                json=build_payload(prompt, settings, config),
                timeout=config.timeout_seconds,
            )
            if not response.ok:
                self._logger.warning(
                    "llm chat remote rejected model=%s status=%s body=%s fallback=offline",
                    config.model,
                    response.status_code,
                    (response.text or "")[:200],
                )
                return self._fallback(settings)

            content = extract_completion_text(response.json())
            if not content:
                self._logger.warning(
                    "llm chat remote returned no content model=%s fallback=offline",
                    config.model,
                )
                return self._fallback(settings)

            self._logger.info(
                "llm chat remote success model=%s latency_ms=%.2f chars=%d",
                config.model,
                (time.perf_counter() - started) * 1000,
                len(content),
            )
            return GenerationOutcome(text=content, used_fallback=False)
        except Exception as exc:
            self._logger.warning(
                "llm chat remote failed model=%s error=%s fallback=offline",
                config.model,
                exc,
            )
            return self._fallback(settings)

    def generate(self, prompt: str, settings: GenerationSettings, config: ProviderConfig) -> str:
        return self.generate_with_outcome(prompt, settings, config).text


def create_generation_client(rng: Optional[random.Random] = None) -> GenerationClient:
    return GenerationClient(rng=rng)
