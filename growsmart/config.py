from __future__ import annotations

import os
from dataclasses import dataclass


def _env_list(name: str, default: str) -> tuple[str, ...]:
    raw = os.getenv(name, default)
    return tuple(item.strip() for item in raw.split(",") if item.strip())


def _env_flag(name: str, default: str) -> bool:
    return os.getenv(name, default).strip().lower() in ("1", "true", "yes", "on")


@dataclass(frozen=True)
class Settings:
    # Server
    api_host: str = os.getenv("HOST", "0.0.0.0")
    api_port: int = int(os.getenv("PORT", "8000"))

    # Logging
    log_level: str = os.getenv("LOG_LEVEL", "INFO")

    # Classification backends, tried in this order
    inference_backend_urls: tuple[str, ...] = _env_list(
        "INFERENCE_BACKEND_URLS",
        "https://api-inference.huggingface.co/models/microsoft/resnet-50,"
        "https://api-inference.huggingface.co/models/google/vit-base-patch16-224",
    )
    huggingface_api_key: str = os.getenv("HUGGINGFACE_API_KEY", "")
    inference_timeout_s: float = float(os.getenv("INFERENCE_TIMEOUT_S", "20"))
    local_model_path: str = os.getenv("LOCAL_MODEL_PATH", "")

    # Conversational advisory upstream
    advisory_url: str = os.getenv("ADVISORY_URL", "https://openrouter.ai/api/v1/chat/completions")
    advisory_api_key: str = os.getenv("OPENROUTER_API_KEY", "")
    advisory_model: str = os.getenv("ADVISORY_MODEL", "deepseek/deepseek-r1:free")
    advisory_max_attempts: int = int(os.getenv("ADVISORY_MAX_ATTEMPTS", "3"))
    advisory_timeout_s: float = float(os.getenv("ADVISORY_TIMEOUT_S", "30"))
    advisory_backoff_s: float = float(os.getenv("ADVISORY_BACKOFF_S", "1.0"))
    advisory_probe_shapes: bool = _env_flag("ADVISORY_PROBE_SHAPES", "1")

    # Free-form chat and model listing on the same provider
    chat_model: str = os.getenv("CHAT_MODEL", "meta-llama/llama-3.2-3b-instruct:free")
    models_url: str = os.getenv("MODELS_URL", "https://openrouter.ai/api/v1/models")

    # Record store: Supabase when a URL is set, local files otherwise
    supabase_url: str = os.getenv("SUPABASE_URL", "")
    supabase_key: str = os.getenv("SUPABASE_KEY", "")
    supabase_timeout_s: float = float(os.getenv("SUPABASE_TIMEOUT_S", "10"))
    treatments_data_path: str = os.getenv("TREATMENTS_DATA_PATH", "data/disease_treatments.csv")
    alerts_data_path: str = os.getenv("ALERTS_DATA_PATH", "data/regional_disease_alerts.csv")
    history_enabled: bool = _env_flag("HISTORY_ENABLED", "0")


settings = Settings()
