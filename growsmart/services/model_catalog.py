from __future__ import annotations

import logging
from typing import Any

import requests

from growsmart.core.schemas import ModelInfo


logger = logging.getLogger(__name__)


class CatalogError(RuntimeError):
    def __init__(self, message: str, status_code: int = 500):
        super().__init__(message)
        self.status_code = status_code


def to_model_info(item: dict[str, Any]) -> ModelInfo:
    return ModelInfo(
        id=str(item.get("id") or ""),
        name=str(item.get("name") or item.get("id") or ""),
        description=item.get("description"),
        pricing=item.get("pricing"),
        context_length=item.get("context_length"),
        architecture=item.get("architecture"),
        top_provider=item.get("top_provider"),
    )


class ModelCatalog:
    """Lists the chat models the advisory upstream offers."""

    def __init__(
        self,
        url: str,
        api_key: str = "",
        timeout_s: float = 15.0,
        session: requests.Session | None = None,
    ):
        self.url = url
        self.api_key = api_key
        self.timeout = timeout_s
        self.session = session or requests.Session()

    def list_models(self, api_key: str | None = None) -> list[ModelInfo]:
        key = (api_key or self.api_key or "").strip()
        if not key:
            raise CatalogError("OpenRouter API key is required", status_code=400)

        headers = {
            "Authorization": f"Bearer {key}",
            "HTTP-Referer": "https://growsmart.ai",
            "X-Title": "Grow Smart AI",
        }

        logger.info("Fetching models from %s", self.url)
        try:
            response = self.session.get(self.url, headers=headers, timeout=self.timeout)
        except requests.RequestException as exc:
            raise CatalogError(f"Model listing failed: {exc}", status_code=502) from exc

        if response.status_code == 401:
            raise CatalogError("Invalid API key. Please check your OpenRouter API key.", status_code=401)
        if not response.ok:
            logger.error("Model listing returned %s: %s", response.status_code, response.text[:200])
            raise CatalogError(f"OpenRouter API error: {response.status_code}", status_code=response.status_code)

        try:
            data = response.json().get("data")
        except (ValueError, AttributeError):
            data = None
        if not isinstance(data, list):
            raise CatalogError("Invalid response format from OpenRouter", status_code=500)

        models = [to_model_info(item) for item in data if isinstance(item, dict)]
        logger.info("Models fetched successfully: %s", len(models))
        return models
