"""Best-effort bookkeeping of finished generation tasks."""

from __future__ import annotations

import logging
from typing import Any, Optional

from models import ContentMetadata, GenerationRequest, GenerationTask, TaskStatus
from storage import GenerationTaskStore
from storage.cache import KeyValueCache

logger = logging.getLogger("inkwell.tasks")

STATUS_KEY_PREFIX = "generation:"
STATUS_TTL_SECONDS = 7200
GENERATION_COUNTER_KEY = "counter:generations"


def status_key(task_id: str) -> str:
    return f"{STATUS_KEY_PREFIX}{task_id}"


def _timestamp_text(value: Any) -> Optional[str]:
    if value is None:
        return None
    return str(value)


def record_generation_task(
    *,
    task_id: str,
    request: GenerationRequest,
    metadata: ContentMetadata,
    store: Optional[GenerationTaskStore],
    cache: Optional[KeyValueCache] = None,
) -> None:
    """
    Persist a summary of a completed generation.

    Runs after the response has been sent. Every failure is logged and
    swallowed; nothing here may affect the caller.
    """
    if store is None:
        logger.info(
            "generation task not recorded id=%s kind=%s reason=recording_disabled",
            task_id,
            request.kind,
        )
        return

    try:
        task = GenerationTask(
            id=task_id,
            kind=request.kind,
            status=TaskStatus.COMPLETED,
            project_id=request.context.project_id,
            word_count=metadata.word_count,
            tone=metadata.tone,
            used_fallback=metadata.used_fallback,
            client_timestamp=_timestamp_text(request.timestamp),
        )
        store.record(task)
        if cache is not None:
            cache.set(status_key(task_id), task.model_dump(mode="json"), STATUS_TTL_SECONDS)
            cache.increment(GENERATION_COUNTER_KEY)
        logger.info(
            "generation task recorded id=%s kind=%s project=%s words=%d fallback=%s",
            task_id,
            request.kind,
            request.context.project_id or "-",
            metadata.word_count,
            metadata.used_fallback,
        )
    except Exception:
        logger.exception("failed to record generation task id=%s", task_id)
