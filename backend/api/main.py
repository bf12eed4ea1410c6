import asyncio
import logging
import time
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Optional
from uuid import uuid4

from fastapi import BackgroundTasks, FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response
from pydantic import ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from core.generation_presets import list_generation_presets
from core.llm_client import (
    DEFAULT_API_URL,
    DEFAULT_FREQUENCY_PENALTY,
    DEFAULT_MODEL,
    DEFAULT_PRESENCE_PENALTY,
    DEFAULT_TEMPERATURE,
    DEFAULT_TIMEOUT_SECONDS,
    DEFAULT_TOP_P,
    ProviderConfig,
    create_generation_client,
)
from models import ContentMetadata, GenerationRequest
from services.generation import GenerationFailedError, run_generation
from services.task_log import GENERATION_COUNTER_KEY, record_generation_task, status_key
from storage import GenerationTaskStore
from storage.cache import KeyValueCache

BACKEND_ROOT = Path(__file__).resolve().parents[1]


class Settings(BaseSettings):
    api_host: str = "0.0.0.0"
    api_port: int = 8000
    data_dir: str = "../data"
    service_name: str = "ai-generation"
    app_version: str = "1.0.0"

    ai_api_url: str = DEFAULT_API_URL
    ai_api_key: Optional[str] = None
    openai_api_key: Optional[str] = None
    ai_model: str = DEFAULT_MODEL
    ai_temperature: float = DEFAULT_TEMPERATURE
    ai_top_p: float = DEFAULT_TOP_P
    ai_frequency_penalty: float = DEFAULT_FREQUENCY_PENALTY
    ai_presence_penalty: float = DEFAULT_PRESENCE_PENALTY
    ai_timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS

    task_recording_enabled: bool = True
    log_level: str = "INFO"
    enable_http_logging: bool = True
    log_file: Optional[str] = None

    @field_validator(
        "ai_temperature",
        "ai_top_p",
        "ai_frequency_penalty",
        "ai_presence_penalty",
        "ai_timeout_seconds",
        mode="before",
    )
    @classmethod
    def unparsable_number_uses_default(cls, value, info):
        try:
            return float(value)
        except (TypeError, ValueError):
            return cls.model_fields[info.field_name].default

    model_config = SettingsConfigDict(
        extra="ignore",
        env_file=str(BACKEND_ROOT / ".env"),
        env_file_encoding="utf-8",
    )


settings = Settings()
app = FastAPI(title="Inkwell Generation API", version=settings.app_version)
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["POST", "OPTIONS"],
    allow_headers=["Content-Type", "Authorization"],
)

logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
)
logger = logging.getLogger("inkwell.api")
if settings.log_file:
    log_path = Path(settings.log_file).expanduser().resolve()
    log_path.parent.mkdir(parents=True, exist_ok=True)
    root_logger = logging.getLogger("inkwell")
    if not any(
        isinstance(handler, logging.FileHandler) and getattr(handler, "baseFilename", None) == str(log_path)
        for handler in root_logger.handlers
    ):
        file_handler = logging.FileHandler(log_path, encoding="utf-8")
        file_handler.setLevel(getattr(logging, settings.log_level.upper(), logging.INFO))
        file_handler.setFormatter(logging.Formatter("%(asctime)s | %(levelname)s | %(name)s | %(message)s"))
        root_logger.addHandler(file_handler)
        logger.info("file logging enabled path=%s", log_path)

CORS_HEADERS = {"Access-Control-Allow-Origin": "*"}
PREFLIGHT_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "POST, OPTIONS",
    "Access-Control-Allow-Headers": "Content-Type, Authorization",
}

MISSING_PARAMS_ERROR = "缺少必要参数"
INVALID_PARAMS_ERROR = "请求参数无效"
GENERATION_FAILED_ERROR = "AI 生成失败"
INTERNAL_ERROR = "服务器内部错误"

REQUIRED_FIELDS = (("kind", "type"), ("settings",), ("context",))


def provider_config_from_settings(current: Settings) -> ProviderConfig:
    return ProviderConfig.build(
        api_url=current.ai_api_url,
        api_key=current.ai_api_key or current.openai_api_key,
        model=current.ai_model,
        temperature=current.ai_temperature,
        top_p=current.ai_top_p,
        frequency_penalty=current.ai_frequency_penalty,
        presence_penalty=current.ai_presence_penalty,
        timeout_seconds=current.ai_timeout_seconds,
    )


generation_client = create_generation_client()
_provider_config = provider_config_from_settings(settings)
logger.info(
    "llm runtime url=%s model=%s remote_ready=%s timeout_s=%.0f",
    _provider_config.api_url,
    _provider_config.model,
    bool(_provider_config.api_key),
    _provider_config.timeout_seconds,
)
if not _provider_config.api_key:
    logger.warning("no AI api key configured; generation will use offline fallback content")

task_stores: Dict[str, Any] = {}


@app.middleware("http")
async def http_access_log_middleware(request: Request, call_next):
    if not settings.enable_http_logging:
        response = await call_next(request)
        response.headers.setdefault("Access-Control-Allow-Origin", "*")
        return response

    request_id = uuid4().hex[:8]
    started = time.perf_counter()
    logger.info(
        "REQ start id=%s method=%s path=%s query=%s",
        request_id,
        request.method,
        request.url.path,
        request.url.query or "-",
    )
    try:
        response = await call_next(request)
    except Exception:
        elapsed = (time.perf_counter() - started) * 1000
        logger.exception("REQ failed id=%s duration_ms=%.2f", request_id, elapsed)
        raise

    elapsed = (time.perf_counter() - started) * 1000
    response.headers["X-Request-ID"] = request_id
    response.headers.setdefault("Access-Control-Allow-Origin", "*")
    logger.info(
        "REQ end id=%s status=%s duration_ms=%.2f",
        request_id,
        response.status_code,
        elapsed,
    )
    return response


def data_root() -> Path:
    configured = Path(settings.data_dir)
    if configured.is_absolute():
        root = configured.resolve()
    else:
        root = (BACKEND_ROOT / configured).resolve()
    root.mkdir(parents=True, exist_ok=True)
    return root


def task_db_path() -> Path:
    return data_root() / "generation_tasks.db"


def get_task_store() -> GenerationTaskStore:
    store = task_stores.get("tasks")
    if store is None:
        store = GenerationTaskStore(str(task_db_path()))
        task_stores["tasks"] = store
    return store


def get_task_cache() -> KeyValueCache:
    cache = task_stores.get("cache")
    if cache is None:
        cache = KeyValueCache(str(task_db_path()))
        task_stores["cache"] = cache
    return cache


def error_response(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"success": False, "error": message},
        headers=CORS_HEADERS,
    )


def missing_required_fields(payload: Any) -> bool:
    if not isinstance(payload, dict):
        return True
    for names in REQUIRED_FIELDS:
        if all(payload.get(name) in (None, "") for name in names):
            return True
    return False


def record_task_in_background(task_id: str, request: GenerationRequest, metadata: ContentMetadata):
    try:
        store = get_task_store()
        cache = get_task_cache()
    except Exception:
        logger.exception("task store unavailable id=%s", task_id)
        return
    record_generation_task(
        task_id=task_id,
        request=request,
        metadata=metadata,
        store=store,
        cache=cache,
    )


def health_payload() -> Dict[str, Any]:
    return {
        "status": "healthy",
        "service": settings.service_name,
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "version": settings.app_version,
    }


@app.get("/health")
async def health():
    return JSONResponse(content=health_payload(), headers=CORS_HEADERS)


@app.get("/generate")
async def generate_health():
    return JSONResponse(content=health_payload(), headers=CORS_HEADERS)


@app.options("/generate")
async def generate_preflight():
    return Response(status_code=200, headers=PREFLIGHT_HEADERS)


@app.post("/generate")
async def generate(request: Request, background_tasks: BackgroundTasks):
    try:
        try:
            payload = await request.json()
        except ValueError:
            logger.info("generate rejected reason=invalid_json")
            return error_response(400, INVALID_PARAMS_ERROR)

        if missing_required_fields(payload):
            logger.info("generate rejected reason=missing_fields")
            return error_response(400, MISSING_PARAMS_ERROR)

        try:
            generation_request = GenerationRequest.model_validate(payload)
        except ValidationError as exc:
            logger.info("generate rejected reason=invalid_fields errors=%d", exc.error_count())
            return error_response(400, INVALID_PARAMS_ERROR)

        config = provider_config_from_settings(settings)
        result = await asyncio.to_thread(
            run_generation,
            generation_request,
            generation_client,
            config,
        )
    except GenerationFailedError:
        logger.error("generate failed reason=empty_content")
        return error_response(500, GENERATION_FAILED_ERROR)
    except Exception:
        logger.exception("generate failed reason=unhandled")
        return error_response(500, INTERNAL_ERROR)

    task_id = uuid4().hex
    if settings.task_recording_enabled:
        background_tasks.add_task(
            record_task_in_background,
            task_id,
            generation_request,
            result.metadata,
        )

    return JSONResponse(
        content={
            "success": True,
            "content": result.content,
            "metadata": result.metadata.model_dump(by_alias=True),
            "taskId": task_id,
        },
        headers=CORS_HEADERS,
    )


@app.get("/presets")
async def get_presets():
    return {"presets": list_generation_presets()}


@app.get("/tasks")
async def list_tasks(limit: int = 20, project_id: Optional[str] = None):
    store = get_task_store()
    cache = get_task_cache()
    tasks = await asyncio.to_thread(store.list_recent, limit, project_id)
    total = await asyncio.to_thread(cache.get, GENERATION_COUNTER_KEY)
    return {
        "tasks": [task.model_dump(mode="json") for task in tasks],
        "total_generations": total or 0,
    }


@app.get("/tasks/{task_id}")
async def get_task(task_id: str):
    cached = await asyncio.to_thread(get_task_cache().get, status_key(task_id))
    if cached:
        return {"task": cached, "source": "cache"}

    task = await asyncio.to_thread(get_task_store().get, task_id)
    if not task:
        raise HTTPException(status_code=404, detail="Task not found")
    return {"task": task.model_dump(mode="json"), "source": "store"}
