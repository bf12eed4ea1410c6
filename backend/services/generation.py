from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from core.llm_client import GenerationClient, ProviderConfig
from core.prompt_builder import build_prompt
from models import ContentMetadata, GenerationRequest
from services.content_analysis import ContentClassifier, analyze

logger = logging.getLogger("inkwell.generation")


class GenerationFailedError(RuntimeError):
    """Raised when neither the provider nor the fallback produced any text."""


@dataclass
class GenerationResult:
    content: str
    metadata: ContentMetadata
    prompt: str


def run_generation(
    request: GenerationRequest,
    client: GenerationClient,
    config: ProviderConfig,
    classifier: Optional[ContentClassifier] = None,
) -> GenerationResult:
    prompt = build_prompt(
        request.kind,
        request.settings,
        request.context,
        request.source_content,
    )
    outcome = client.generate_with_outcome(prompt, request.settings, config)
    content = outcome.text or ""
    if not content.strip():
        raise GenerationFailedError("generation produced no content")

    metadata = analyze(content, classifier).model_copy(update={"used_fallback": outcome.used_fallback})
    logger.info(
        "generation done kind=%s project=%s target=%d words=%d fallback=%s",
        request.kind,
        request.context.project_id or "-",
        request.settings.target_word_count,
        metadata.word_count,
        outcome.used_fallback,
    )
    return GenerationResult(content=content, metadata=metadata, prompt=prompt)
