from __future__ import annotations

import logging
from typing import Any, Protocol

import requests

from growsmart.core.schemas import ClassificationResult, Prediction


logger = logging.getLogger(__name__)

TOP_K = 3


class BackendError(RuntimeError):
    pass


class NoBackendAvailable(RuntimeError):
    pass


class InferenceBackend(Protocol):
    name: str

    def predict(self, image_bytes: bytes) -> list[Prediction]:
        ...


def parse_predictions(data: Any) -> list[Prediction]:
    """
    Hugging Face image-classification body -> ranked predictions.

    Accepts `[{"label", "score"}, ...]` and the batched `[[...]]` variant.
    """
    if isinstance(data, list) and data and isinstance(data[0], list):
        data = data[0]
    if not isinstance(data, list):
        raise BackendError(f"unexpected body type {type(data).__name__}")

    predictions: list[Prediction] = []
    for item in data:
        if not isinstance(item, dict) or "label" not in item:
            continue
        try:
            score = float(item.get("score") or 0.0)
        except (TypeError, ValueError):
            continue
        predictions.append(Prediction(label=str(item["label"]).strip(), score=score))

    if not predictions:
        raise BackendError("no predictions in response body")

    predictions.sort(key=lambda p: p.score, reverse=True)
    return predictions


class HttpInferenceBackend:
    def __init__(
        self,
        url: str,
        api_key: str = "",
        timeout_s: float = 20.0,
        name: str | None = None,
        session: requests.Session | None = None,
    ):
        self.url = url
        self.name = name or url.rstrip("/").split("/models/")[-1]
        self.timeout = timeout_s
        self.session = session or requests.Session()
        self.headers = {"Content-Type": "application/octet-stream"}
        if api_key:
            self.headers["Authorization"] = f"Bearer {api_key}"

    def predict(self, image_bytes: bytes) -> list[Prediction]:
        response = self.session.post(self.url, data=image_bytes, headers=self.headers, timeout=self.timeout)
        if not response.ok:
            raise BackendError(f"{self.name} returned {response.status_code}: {response.text[:200]}")
        try:
            data = response.json()
        except ValueError as exc:
            raise BackendError(f"{self.name} returned non-JSON body") from exc
        return parse_predictions(data)


class InferenceService:
    def __init__(self, backends: list[InferenceBackend]):
        self.backends = list(backends)

    def classify(self, image_bytes: bytes) -> ClassificationResult:
        """
        Try each backend in priority order; the first usable answer wins.
        Failures only advance to the next backend. Raises NoBackendAvailable
        once the list is exhausted.
        """
        if not image_bytes:
            raise ValueError("No image provided")

        for backend in self.backends:
            try:
                predictions = backend.predict(image_bytes)
            except (requests.RequestException, BackendError) as exc:
                logger.warning("Backend %s failed: %s", backend.name, exc)
                continue

            top = predictions[0]
            logger.info("Backend %s → %s (%.2f)", backend.name, top.label, top.score)
            return ClassificationResult(
                raw_label=top.label,
                confidence=top.score,
                backend=backend.name,
                predictions=tuple(predictions[:TOP_K]),
            )

        raise NoBackendAvailable(f"All {len(self.backends)} classification backends failed")
