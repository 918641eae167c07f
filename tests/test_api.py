"""
test_api.py: Integration tests for the GrowSmart HTTP endpoints.

Strategy:
  The agent is assembled from fake classification backends, an in-memory
  record store and an advisory client on a mocked requests.Session, then
  patched into growsmart.api. We test routing, validation and response
  format, not model quality.

Endpoints covered:
  GET  /health                  → liveness
  POST /identify-plant-disease  → diagnosis + recommendations
  POST /identify-plant          → plant identification + care guidance
  POST /kissan-ai-chat          → advisory with fallback
  POST /chat-with-ai            → free-form chat, upstream errors surfaced
  POST /get-openrouter-models   → upstream model listing
"""

from unittest.mock import MagicMock, patch

import pytest
import requests
from fastapi.testclient import TestClient

from growsmart import api
from growsmart.agent import GrowSmartAgent
from growsmart.core.pipeline import AnalysisPipeline
from growsmart.services.advisory_service import DEFAULT_CHAT_MODEL, AdvisoryClient
from growsmart.services.inference_service import InferenceService
from growsmart.services.model_catalog import ModelCatalog
from tests.fakes import backend_for, failing_backend


IMAGE_FILE = {"image": ("leaf.jpg", b"\xff\xd8\xff fake jpeg", "image/jpeg")}


def build_agent(recommendations, *backends, upstream=None, catalog_session=None):
    session = upstream or MagicMock(spec=requests.Session)
    if upstream is None:
        session.post.side_effect = requests.Timeout("upstream down")
    pipeline = AnalysisPipeline(inference=InferenceService(list(backends)), recommendations=recommendations)
    return GrowSmartAgent(
        pipeline=pipeline,
        advisory=AdvisoryClient("https://upstream.example.org", session=session),
        chat=AdvisoryClient("https://upstream.example.org", api_key="server_key", probe_shapes=False, session=session),
        catalog=ModelCatalog(
            "https://upstream.example.org/models",
            api_key="server_key",
            session=catalog_session or MagicMock(spec=requests.Session),
        ),
    )


@pytest.fixture
def client_for(recommendations):
    """Factory: TestClient whose agent uses the given backends."""
    patches = []

    def _make(*backends, upstream=None, catalog_session=None):
        agent = build_agent(recommendations, *backends, upstream=upstream, catalog_session=catalog_session)
        p = patch.object(api, "agent", agent)
        p.start()
        patches.append(p)
        return TestClient(api.app)

    yield _make
    for p in patches:
        p.stop()


# ═══════════════════════════════════════════════════════════════════════════════
# Startup and health
# ═══════════════════════════════════════════════════════════════════════════════

class TestStartup:

    def test_startup_builds_agent_from_settings(self):
        with patch.object(api, "agent", None), patch("growsmart.api.GrowSmartAgent") as agent_cls:
            with TestClient(api.app):
                agent_cls.from_settings.assert_called_once_with(api.settings)
                assert api.agent is agent_cls.from_settings.return_value

    def test_health(self, client_for):
        response = client_for().get("/health")
        assert response.status_code == 200
        assert response.json() == {"status": "ok"}

    def test_uninitialized_agent_is_500(self):
        with patch.object(api, "agent", None):
            response = TestClient(api.app).post("/identify-plant-disease", files=IMAGE_FILE)
        assert response.status_code == 500


# ═══════════════════════════════════════════════════════════════════════════════
# POST /identify-plant-disease
# ═══════════════════════════════════════════════════════════════════════════════

class TestIdentifyPlantDisease:

    def test_diagnosis_body(self, client_for):
        client = client_for(backend_for("Tomato___Late_blight", 0.92))

        response = client.post("/identify-plant-disease", files=IMAGE_FILE)

        assert response.status_code == 200
        body = response.json()
        assert body["plantName"] == "Tomato"
        assert body["diseaseName"] == "Tomato Late Blight"
        assert body["diseaseType"] == "fungal"
        assert body["confidence"] == 92
        assert body["severityLevel"] == "severe"
        assert body["emergencyLevel"] == "high"
        assert body["isHealthy"] is False
        assert len(body["treatments"]) == 3
        assert body["treatments"][0]["name"] == "Mancozeb + Metalaxyl"

    def test_region_form_field(self, client_for):
        client = client_for(backend_for("Tomato___Late_blight", 0.92))

        response = client.post("/identify-plant-disease", files=IMAGE_FILE, data={"region": "Karnataka"})

        assert [a["region"] for a in response.json()["regionalAlerts"]] == ["Karnataka"]

    def test_healthy_leaf(self, client_for):
        client = client_for(backend_for("Apple___healthy", 0.97))

        body = client.post("/identify-plant-disease", files=IMAGE_FILE).json()

        assert body["isHealthy"] is True
        assert body["treatments"] == []
        assert body["severityLevel"] == "none"

    def test_missing_image_is_400(self, client_for):
        response = client_for(backend_for("x", 0.5)).post("/identify-plant-disease", data={"region": "Punjab"})
        assert response.status_code == 400
        assert response.json() == {"error": "No image provided"}

    def test_empty_image_is_400(self, client_for):
        response = client_for(backend_for("x", 0.5)).post(
            "/identify-plant-disease", files={"image": ("leaf.jpg", b"", "image/jpeg")}
        )
        assert response.status_code == 400

    def test_all_backends_down_is_500(self, client_for):
        client = client_for(failing_backend("a"), failing_backend("b"))

        response = client.post("/identify-plant-disease", files=IMAGE_FILE)

        assert response.status_code == 500
        assert "clearer image" in response.json()["error"]


# ═══════════════════════════════════════════════════════════════════════════════
# POST /identify-plant
# ═══════════════════════════════════════════════════════════════════════════════

class TestIdentifyPlant:

    def test_identification_body(self, client_for):
        client = client_for(backend_for("Corn_(maize)___healthy", 0.65))

        body = client.post("/identify-plant", files=IMAGE_FILE).json()

        assert body["plantName"] == "Corn"
        assert body["confidence"] == 65
        assert body["healthStatus"].startswith("Good")
        assert body["careInstructions"].startswith("Plant in well-draining soil with full sun")

    def test_missing_image_is_400(self, client_for):
        assert client_for(backend_for("x", 0.5)).post("/identify-plant").status_code == 400

    def test_all_backends_down_is_500(self, client_for):
        assert client_for(failing_backend()).post("/identify-plant", files=IMAGE_FILE).status_code == 500


# ═══════════════════════════════════════════════════════════════════════════════
# POST /kissan-ai-chat
# ═══════════════════════════════════════════════════════════════════════════════

class TestKissanAiChat:

    def test_upstream_success(self, client_for):
        upstream = MagicMock(spec=requests.Session)
        upstream.post.return_value.status_code = 200
        upstream.post.return_value.json.return_value = {"choices": [{"message": {"content": "Sow after first rain."}}]}
        client = client_for(upstream=upstream)

        response = client.post("/kissan-ai-chat", json={"question": "When to sow?", "language": "en", "conversationId": "c-9"})

        body = response.json()
        assert response.status_code == 200
        assert body["response"] == "Sow after first rain."
        assert body["status"] == "success"
        assert body["language"] == "english"
        assert body["conversationId"] == "c-9"
        assert "timestamp" in body

    def test_upstream_down_falls_back(self, client_for):
        response = client_for().post("/kissan-ai-chat", json={"question": "Which fertilizer for wheat?"})

        body = response.json()
        assert response.status_code == 200
        assert body["status"] == "fallback"
        assert body["response"].startswith("For fertilization")

    @pytest.mark.parametrize(
        "payload",
        [{}, {"question": ""}, {"question": "   "}, {"question": None}, {"question": 123}, {"question": ["a"]}],
    )
    def test_empty_question_is_400(self, client_for, payload):
        response = client_for().post("/kissan-ai-chat", json=payload)
        assert response.status_code == 400
        assert response.json() == {"error": "Question is required"}


def upstream_returning(status, body=None):
    upstream = MagicMock(spec=requests.Session)
    upstream.post.return_value.status_code = status
    upstream.post.return_value.json.return_value = body
    return upstream


# ═══════════════════════════════════════════════════════════════════════════════
# POST /chat-with-ai
# ═══════════════════════════════════════════════════════════════════════════════

class TestChatWithAi:

    def test_reply_echoes_model_and_conversation(self, client_for):
        upstream = upstream_returning(200, {"choices": [{"message": {"content": "Use drip lines."}}]})
        client = client_for(upstream=upstream)

        response = client.post("/chat-with-ai", json={
            "message": "How to save water?",
            "model": "mistral/mistral-7b",
            "conversationId": "conv-3",
            "userContext": {"location": "Rajasthan", "farmType": "Dryland"},
            "apiKey": "caller_key",
        })

        assert response.status_code == 200
        assert response.json() == {
            "response": "Use drip lines.",
            "model": "mistral/mistral-7b",
            "conversationId": "conv-3",
        }
        kwargs = upstream.post.call_args.kwargs
        assert kwargs["json"]["model"] == "mistral/mistral-7b"
        assert kwargs["headers"]["Authorization"] == "Bearer caller_key"
        assert "Location: Rajasthan, Farm type: Dryland" in kwargs["json"]["messages"][0]["content"]

    def test_server_model_when_none_requested(self, client_for):
        client = client_for(upstream=upstream_returning(200, {"response": "ok"}))

        body = client.post("/chat-with-ai", json={"message": "hi"}).json()

        assert body["model"] == DEFAULT_CHAT_MODEL
        assert body["response"] == "ok"

    @pytest.mark.parametrize(
        "status, message",
        [
            (401, "Invalid API key. Please check your OpenRouter API key."),
            (402, "Insufficient credits. Please check your OpenRouter account balance."),
            (418, "Failed to get AI response"),
        ],
    )
    def test_upstream_status_is_surfaced(self, client_for, status, message):
        client = client_for(upstream=upstream_returning(status))

        response = client.post("/chat-with-ai", json={"message": "hi"})

        assert response.status_code == status
        assert response.json() == {"error": message}

    def test_unreachable_upstream_is_502(self, client_for):
        response = client_for().post("/chat-with-ai", json={"message": "hi"})

        assert response.status_code == 502
        assert response.json() == {"error": "Failed to get AI response"}

    @pytest.mark.parametrize("payload", [{}, {"message": "  "}, {"message": None}, {"message": 7}])
    def test_empty_message_is_400(self, client_for, payload):
        response = client_for().post("/chat-with-ai", json=payload)

        assert response.status_code == 400
        assert response.json() == {"error": "Message is required"}


# ═══════════════════════════════════════════════════════════════════════════════
# POST /get-openrouter-models
# ═══════════════════════════════════════════════════════════════════════════════

class TestGetOpenrouterModels:

    def test_lists_models(self, client_for):
        catalog = MagicMock(spec=requests.Session)
        catalog.get.return_value.status_code = 200
        catalog.get.return_value.ok = True
        catalog.get.return_value.json.return_value = {"data": [{"id": "a/b", "context_length": 8192}]}
        client = client_for(catalog_session=catalog)

        response = client.post("/get-openrouter-models", json={"apiKey": "caller_key"})

        assert response.status_code == 200
        assert response.json() == {"models": [{
            "id": "a/b",
            "name": "a/b",
            "description": None,
            "pricing": None,
            "context_length": 8192,
            "architecture": None,
            "top_provider": None,
        }]}
        assert catalog.get.call_args.kwargs["headers"]["Authorization"] == "Bearer caller_key"

    def test_body_is_optional(self, client_for):
        catalog = MagicMock(spec=requests.Session)
        catalog.get.return_value.status_code = 200
        catalog.get.return_value.ok = True
        catalog.get.return_value.json.return_value = {"data": []}

        response = client_for(catalog_session=catalog).post("/get-openrouter-models")

        assert response.status_code == 200
        assert catalog.get.call_args.kwargs["headers"]["Authorization"] == "Bearer server_key"

    def test_invalid_key_is_401(self, client_for):
        catalog = MagicMock(spec=requests.Session)
        catalog.get.return_value.status_code = 401
        catalog.get.return_value.ok = False

        response = client_for(catalog_session=catalog).post("/get-openrouter-models", json={"apiKey": "bad"})

        assert response.status_code == 401
        assert response.json() == {"error": "Invalid API key. Please check your OpenRouter API key."}


# ═══════════════════════════════════════════════════════════════════════════════
# Server entry point
# ═══════════════════════════════════════════════════════════════════════════════

class TestMain:

    def test_main_serves_app_with_uvicorn(self):
        with patch("uvicorn.run") as run:
            api.main()

        run.assert_called_once_with(
            api.app,
            host=api.settings.api_host,
            port=api.settings.api_port,
            log_level=api.settings.log_level.lower(),
        )
