from __future__ import annotations

import logging
import threading
from typing import Any, Callable

import requests

from growsmart.core.fallbacks import chat_system_prompt, fallback_response, normalize_language, system_prompt
from growsmart.core.policies import RetryPolicy
from growsmart.core.schemas import AdvisoryExchange, ChatReply, UserContext


logger = logging.getLogger(__name__)

PayloadShape = Callable[[str, str, str], dict[str, Any]]

DEFAULT_CHAT_MODEL = "meta-llama/llama-3.2-3b-instruct:free"
EMPTY_CHAT_REPLY = "Sorry, I could not generate a response."


class AdvisoryError(Exception):
    """A single advisory attempt failed; `retryable` drives the next state."""

    def __init__(
        self,
        message: str,
        retryable: bool = False,
        schema_rejected: bool = False,
        status_code: int | None = None,
    ):
        super().__init__(message)
        self.retryable = retryable
        self.schema_rejected = schema_rejected
        self.status_code = status_code


# ---- Request shapes, tried in order while probing ----
def chat_completion_shape(question: str, language: str, model: str) -> dict[str, Any]:
    return {
        "model": model,
        "messages": [
            {"role": "system", "content": system_prompt(language)},
            {"role": "user", "content": question},
        ],
        "temperature": 0.7,
        "max_tokens": 1000,
        "top_p": 0.9,
    }


def question_shape(question: str, language: str, model: str) -> dict[str, Any]:
    return {"question": question, "language": language}


def message_shape(question: str, language: str, model: str) -> dict[str, Any]:
    return {"message": question, "language": language}


def prompt_shape(question: str, language: str, model: str) -> dict[str, Any]:
    return {"prompt": f"{system_prompt(language)}\n\n{question}", "lang": language}


DEFAULT_PAYLOAD_SHAPES: tuple[PayloadShape, ...] = (
    chat_completion_shape,
    question_shape,
    message_shape,
    prompt_shape,
)

# ---- Response text locations, first non-empty string wins ----
DEFAULT_RESPONSE_PATHS: tuple[tuple[str | int, ...], ...] = (
    ("response",),
    ("message",),
    ("message", "content"),
    ("answer",),
    ("reply",),
    ("text",),
    ("content",),
    ("data", "response"),
    ("data", "text"),
    ("data", "answer"),
    ("choices", 0, "message", "content"),
    ("choices", 0, "text"),
)


def dig(body: Any, path: tuple[str | int, ...]) -> str | None:
    node = body
    for key in path:
        if isinstance(key, int):
            if not isinstance(node, list) or len(node) <= key:
                return None
        elif not isinstance(node, dict) or key not in node:
            return None
        node = node[key]
    if isinstance(node, str) and node.strip():
        return node.strip()
    return None


def extract_text(body: Any, paths: tuple[tuple[str | int, ...], ...] = DEFAULT_RESPONSE_PATHS) -> str | None:
    for path in paths:
        text = dig(body, path)
        if text:
            return text
    return None


class AdvisoryClient:
    """
    Conversational advisory calls against a loosely-specified upstream.

    Each request walks Attempting(n) -> Succeeded | Retrying | Failed.
    `ask` never propagates Failed: the caller gets a synthesized,
    topic-aware fallback with status "fallback". `chat` is the simple
    mode: one fixed chat-completion body, retried as-is, and Failed is
    raised as AdvisoryError so the caller can report the upstream status.
    """

    def __init__(
        self,
        url: str,
        api_key: str = "",
        model: str = "",
        policy: RetryPolicy | None = None,
        probe_shapes: bool = True,
        payload_shapes: tuple[PayloadShape, ...] = DEFAULT_PAYLOAD_SHAPES,
        response_paths: tuple[tuple[str | int, ...], ...] = DEFAULT_RESPONSE_PATHS,
        session: requests.Session | None = None,
    ):
        self.url = url
        self.api_key = api_key
        self.model = model
        self.policy = policy or RetryPolicy()
        self.probe_shapes = probe_shapes
        self.payload_shapes = payload_shapes
        self.response_paths = response_paths
        self.session = session or requests.Session()

    def headers(self, api_key: str | None = None) -> dict[str, str]:
        headers = {
            "Content-Type": "application/json",
            "HTTP-Referer": "https://growsmart.ai",
            "X-Title": "Grow Smart AI",
        }
        key = api_key or self.api_key
        if key:
            headers["Authorization"] = f"Bearer {key}"
        return headers

    # ------------------------------------------------------------------
    # Single attempt
    # ------------------------------------------------------------------
    def _shape_for(self, shape_index: int) -> PayloadShape:
        if not self.probe_shapes:
            return self.payload_shapes[0]
        return self.payload_shapes[shape_index % len(self.payload_shapes)]

    def _post(self, payload: dict[str, Any], api_key: str | None = None) -> str | None:
        """One upstream call; returns the extracted text, or None for a 2xx with no text."""
        try:
            response = self.session.post(
                self.url,
                json=payload,
                headers=self.headers(api_key),
                timeout=self.policy.timeout_s,
            )
        except requests.Timeout as exc:
            raise AdvisoryError(f"timed out after {self.policy.timeout_s}s") from exc
        except requests.ConnectionError as exc:
            raise AdvisoryError(f"connection failed: {exc}", retryable=True) from exc
        except requests.RequestException as exc:
            raise AdvisoryError(f"request failed: {exc}") from exc

        status = response.status_code
        if status >= 500 or status in self.policy.retry_statuses:
            raise AdvisoryError(f"upstream returned {status}", retryable=True, status_code=status)
        if not 200 <= status < 300:
            raise AdvisoryError(
                f"upstream returned {status}",
                schema_rejected=status in self.policy.schema_reject_statuses,
                status_code=status,
            )

        try:
            body = response.json()
        except ValueError:
            body = None
        return extract_text(body, self.response_paths)

    def _attempt(self, shape_index: int, question: str, language: str) -> str:
        shape = self._shape_for(shape_index)
        text = self._post(shape(question, language, self.model))
        if not text:
            raise AdvisoryError(f"no response text in {shape.__name__} reply", schema_rejected=True)
        return text

    # ------------------------------------------------------------------
    # Request state machine
    # ------------------------------------------------------------------
    def _run(
        self,
        send: Callable[[int], str],
        tag: str,
        cancel: threading.Event,
        switch_shapes: bool,
    ) -> tuple[str | None, int, AdvisoryError | None]:
        """
        Drive attempts until success, a non-retryable failure, cancellation
        or the attempt bound. The shape index only advances when probing
        and the upstream rejected the current shape; retries resend it.
        """
        max_attempts = max(1, self.policy.max_attempts)
        attempt = 0
        shape_index = 0
        last_error: AdvisoryError | None = None

        while attempt < max_attempts and not cancel.is_set():
            attempt += 1
            logger.info("[%s] Attempt %s/%s (shape %s)", tag, attempt, max_attempts, shape_index)
            try:
                return send(shape_index), attempt, None
            except AdvisoryError as exc:
                last_error = exc
                logger.warning("[%s] Attempt %s failed: %s", tag, attempt, exc)

                if exc.schema_rejected and switch_shapes:
                    shape_index += 1
                    continue
                if not exc.retryable or attempt >= max_attempts:
                    break

                delay = attempt * self.policy.base_delay_s
                logger.info("[%s] Retrying in %.1fs", tag, delay)
                if cancel.wait(delay):
                    logger.warning("[%s] Cancelled during backoff", tag)
                    break

        return None, attempt, last_error

    def ask(
        self,
        question: str,
        language: str | None = None,
        conversation_id: str | None = None,
        cancel: threading.Event | None = None,
    ) -> AdvisoryExchange:
        question = (question or "").strip()
        if not question:
            raise ValueError("Question is required")

        lang = normalize_language(language)
        tag = conversation_id or "unknown"

        text, attempts, _ = self._run(
            lambda shape_index: self._attempt(shape_index, question, lang),
            tag=tag,
            cancel=cancel or threading.Event(),
            switch_shapes=self.probe_shapes,
        )

        if text is not None:
            return AdvisoryExchange(
                question=question,
                language=lang,
                response_text=text,
                status="success",
                attempt_count=attempts,
                conversation_id=conversation_id,
            )

        logger.warning("[%s] Advisory upstream unavailable after %s attempt(s); using fallback", tag, attempts)
        return AdvisoryExchange(
            question=question,
            language=lang,
            response_text=fallback_response(question, lang),
            status="fallback",
            attempt_count=attempts,
            conversation_id=conversation_id,
        )

    def chat(
        self,
        message: str,
        model: str | None = None,
        user_context: UserContext | None = None,
        conversation_id: str | None = None,
        api_key: str | None = None,
        cancel: threading.Event | None = None,
    ) -> ChatReply:
        """Free-form chat with a caller-chosen model; raises AdvisoryError when the upstream fails."""
        message = (message or "").strip()
        if not message:
            raise ValueError("Message is required")
        if not (api_key or self.api_key):
            raise ValueError("OpenRouter API key is required")

        chosen = model or self.model or DEFAULT_CHAT_MODEL
        payload = {
            "model": chosen,
            "messages": [
                {"role": "system", "content": chat_system_prompt(user_context)},
                {"role": "user", "content": message},
            ],
            "max_tokens": 2500,
            "temperature": 0.7,
        }

        text, attempts, error = self._run(
            lambda _: self._post(payload, api_key=api_key) or EMPTY_CHAT_REPLY,
            tag=conversation_id or "chat",
            cancel=cancel or threading.Event(),
            switch_shapes=False,
        )
        if text is None:
            raise error or AdvisoryError("chat cancelled before any attempt")

        logger.info("[%s] Chat reply from %s after %s attempt(s)", conversation_id or "chat", chosen, attempts)
        return ChatReply(
            message=message,
            model=chosen,
            response_text=text,
            attempt_count=attempts,
            conversation_id=conversation_id,
        )
