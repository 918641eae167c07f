from __future__ import annotations

import logging
from typing import Any

from fastapi import FastAPI, File, Form, UploadFile
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field, field_validator

from growsmart.agent import GrowSmartAgent
from growsmart.config import settings
from growsmart.core.schemas import UserContext
from growsmart.services.advisory_service import AdvisoryError
from growsmart.services.inference_service import NoBackendAvailable
from growsmart.services.model_catalog import CatalogError

logger = logging.getLogger(__name__)

app = FastAPI(
    title="GrowSmart Plant Health API",
    version="1.0.0",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)

agent: GrowSmartAgent | None = None

# Upstream statuses the chat client reports with a specific message
CHAT_ERROR_MESSAGES = {
    401: "Invalid API key. Please check your OpenRouter API key.",
    402: "Insufficient credits. Please check your OpenRouter account balance.",
    429: "Rate limit exceeded. Please try again in a moment.",
}
CHAT_ERROR_DEFAULT = "Failed to get AI response"


def _text_or_none(value: Any) -> str | None:
    return value if isinstance(value, str) else None


class AdvisoryRequest(BaseModel):
    question: str | None = Field(None, description="Farmer's question, any language")
    language: str = Field("english", description="Language name or tag, e.g. 'hindi' or 'hi'")
    conversationId: str | None = Field(None, description="Client conversation id, echoed back")

    @field_validator("question", mode="before")
    @classmethod
    def question_text(cls, value: Any) -> str | None:
        # missing, null and non-text questions are all "no question"
        return _text_or_none(value)


class ChatUserContext(BaseModel):
    location: str | None = None
    farmType: str | None = None


class ChatRequest(BaseModel):
    message: str | None = Field(None, description="Free-form question")
    model: str | None = Field(None, description="Upstream model id; server default when omitted")
    conversationId: str | None = None
    userContext: ChatUserContext | None = None
    apiKey: str | None = Field(None, description="Caller's own upstream key; server key when omitted")

    @field_validator("message", mode="before")
    @classmethod
    def message_text(cls, value: Any) -> str | None:
        return _text_or_none(value)


class ModelsRequest(BaseModel):
    apiKey: str | None = None


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message})


def _read_image(image: UploadFile | None) -> bytes:
    if image is None:
        return b""
    return image.file.read()


@app.on_event("startup")
def startup_event():
    global agent
    logging.basicConfig(level=getattr(logging, settings.log_level.upper(), logging.INFO))

    logger.info("🌱 Initializing GrowSmart agent...")
    agent = GrowSmartAgent.from_settings(settings)
    logger.info("✅ GrowSmart agent ready")


@app.get("/health")
def health():
    return {"status": "ok"}


@app.post("/identify-plant-disease")
def identify_plant_disease(
    image: UploadFile | None = File(None),
    region: str | None = Form(None),
):
    if agent is None:
        return _error(500, "Agent not initialized")

    image_bytes = _read_image(image)
    if not image_bytes:
        return _error(400, "No image provided")

    logger.info("Processing disease image: %s, size: %s bytes", image.filename, len(image_bytes))
    try:
        return agent.diagnose(image_bytes=image_bytes, region=region)
    except NoBackendAvailable as exc:
        logger.error("Disease identification failed: %s", exc)
        return _error(500, "Unable to identify plant disease. Please try a clearer image with better lighting.")


@app.post("/identify-plant")
def identify_plant(image: UploadFile | None = File(None)):
    if agent is None:
        return _error(500, "Agent not initialized")

    image_bytes = _read_image(image)
    if not image_bytes:
        return _error(400, "No image provided")

    logger.info("Processing image: %s, size: %s bytes", image.filename, len(image_bytes))
    try:
        return agent.identify(image_bytes=image_bytes)
    except NoBackendAvailable as exc:
        logger.error("Plant identification failed: %s", exc)
        return _error(500, "Unable to identify plant. Please try a clearer image with better lighting.")


@app.post("/kissan-ai-chat")
def kissan_ai_chat(request: AdvisoryRequest):
    if agent is None:
        return _error(500, "Agent not initialized")

    if not (request.question or "").strip():
        return _error(400, "Question is required")

    return agent.advise(
        question=request.question,
        language=request.language,
        conversation_id=request.conversationId,
    )


@app.post("/chat-with-ai")
def chat_with_ai(request: ChatRequest):
    if agent is None:
        return _error(500, "Agent not initialized")

    context = None
    if request.userContext is not None:
        context = UserContext(location=request.userContext.location, farm_type=request.userContext.farmType)

    logger.info("Chat request: model=%s, own key=%s", request.model, bool(request.apiKey))
    try:
        return agent.chat(
            message=request.message or "",
            model=request.model,
            user_context=context,
            conversation_id=request.conversationId,
            api_key=request.apiKey,
        )
    except ValueError as exc:
        return _error(400, str(exc))
    except AdvisoryError as exc:
        status = exc.status_code or 502
        logger.error("Chat upstream failed (%s): %s", status, exc)
        return _error(status, CHAT_ERROR_MESSAGES.get(status, CHAT_ERROR_DEFAULT))


@app.post("/get-openrouter-models")
def get_openrouter_models(request: ModelsRequest | None = None):
    if agent is None:
        return _error(500, "Agent not initialized")

    try:
        return agent.list_models(api_key=request.apiKey if request else None)
    except CatalogError as exc:
        logger.error("Model listing failed: %s", exc)
        return _error(exc.status_code, str(exc))


def main():
    import uvicorn

    uvicorn.run(app, host=settings.api_host, port=settings.api_port, log_level=settings.log_level.lower())


if __name__ == "__main__":
    main()
