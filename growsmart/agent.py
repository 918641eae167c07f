from __future__ import annotations

import logging
from typing import Any

from growsmart.config import Settings
from growsmart.core.pipeline import AnalysisPipeline
from growsmart.core.policies import Policies, RetryPolicy
from growsmart.core.response import ResponseBuilder
from growsmart.core.schemas import UserContext
from growsmart.services.advisory_service import AdvisoryClient
from growsmart.services.care_service import CareService
from growsmart.services.history_service import HistoryService
from growsmart.services.inference_service import HttpInferenceBackend, InferenceBackend, InferenceService
from growsmart.services.model_catalog import ModelCatalog
from growsmart.services.recommendation_service import RecommendationService
from growsmart.services.record_store import (
    ALERTS_TABLE,
    TREATMENTS_TABLE,
    DataFrameRecordStore,
    RecordStore,
    SupabaseRecordStore,
)

logger = logging.getLogger(__name__)


def build_backends(settings: Settings) -> list[InferenceBackend]:
    backends: list[InferenceBackend] = []

    if settings.local_model_path:
        # torch is only needed when a local checkpoint is configured
        from growsmart.local_model import LocalModelBackend

        backends.append(LocalModelBackend(model_path=settings.local_model_path))

    for url in settings.inference_backend_urls:
        backends.append(
            HttpInferenceBackend(
                url=url,
                api_key=settings.huggingface_api_key,
                timeout_s=settings.inference_timeout_s,
            )
        )
    return backends


def build_record_store(settings: Settings) -> RecordStore:
    if settings.supabase_url:
        return SupabaseRecordStore(
            url=settings.supabase_url,
            key=settings.supabase_key,
            timeout_s=settings.supabase_timeout_s,
        )
    return DataFrameRecordStore.from_files(
        {
            TREATMENTS_TABLE: settings.treatments_data_path,
            ALERTS_TABLE: settings.alerts_data_path,
        }
    )


class GrowSmartAgent:
    def __init__(
        self,
        pipeline: AnalysisPipeline,
        advisory: AdvisoryClient,
        history: HistoryService | None = None,
        response_builder: ResponseBuilder | None = None,
        chat: AdvisoryClient | None = None,
        catalog: ModelCatalog | None = None,
    ):
        self.pipeline = pipeline
        self.advisory = advisory
        self.chat_client = chat
        self.catalog = catalog
        self.history = history
        self.response_builder = response_builder or ResponseBuilder()

    @classmethod
    def from_settings(cls, settings: Settings) -> "GrowSmartAgent":
        retry = RetryPolicy(
            max_attempts=settings.advisory_max_attempts,
            base_delay_s=settings.advisory_backoff_s,
            timeout_s=settings.advisory_timeout_s,
        )
        policies = Policies(retry=retry)
        store = build_record_store(settings)

        pipeline = AnalysisPipeline(
            inference=InferenceService(build_backends(settings)),
            recommendations=RecommendationService(store=store, policies=policies),
            care=CareService(policy=policies.identification),
            policies=policies,
        )
        advisory = AdvisoryClient(
            url=settings.advisory_url,
            api_key=settings.advisory_api_key,
            model=settings.advisory_model,
            policy=retry,
            probe_shapes=settings.advisory_probe_shapes,
        )
        # simple mode: one chat body, retried as-is
        chat = AdvisoryClient(
            url=settings.advisory_url,
            api_key=settings.advisory_api_key,
            model=settings.chat_model,
            policy=retry,
            probe_shapes=False,
            session=advisory.session,
        )
        catalog = ModelCatalog(url=settings.models_url, api_key=settings.advisory_api_key)
        history = HistoryService(store) if settings.history_enabled else None

        logger.info(
            "✅ GrowSmartAgent initialized (%s backends, history=%s)",
            len(pipeline.inference.backends),
            history is not None,
        )
        return cls(pipeline=pipeline, advisory=advisory, history=history, chat=chat, catalog=catalog)

    def diagnose(self, image_bytes: bytes, region: str | None = None) -> dict[str, Any]:
        report = self.pipeline.diagnose(image_bytes=image_bytes, region=region)
        payload = self.response_builder.build_diagnosis(report)
        if self.history is not None:
            self.history.record_diagnosis(payload)
        return payload

    def identify(self, image_bytes: bytes) -> dict[str, Any]:
        ident = self.pipeline.identify(image_bytes=image_bytes)
        payload = self.response_builder.build_identification(ident)
        if self.history is not None:
            self.history.record_identification(payload)
        return payload

    def advise(self, question: str, language: str | None = None, conversation_id: str | None = None) -> dict[str, Any]:
        exchange = self.advisory.ask(question=question, language=language, conversation_id=conversation_id)
        payload = self.response_builder.build_advisory(exchange)
        if self.history is not None:
            self.history.record_advisory(payload, question=exchange.question)
        return payload

    def chat(
        self,
        message: str,
        model: str | None = None,
        user_context: UserContext | None = None,
        conversation_id: str | None = None,
        api_key: str | None = None,
    ) -> dict[str, Any]:
        if self.chat_client is None:
            raise RuntimeError("Chat client not configured")
        reply = self.chat_client.chat(
            message=message,
            model=model,
            user_context=user_context,
            conversation_id=conversation_id,
            api_key=api_key,
        )
        return self.response_builder.build_chat(reply)

    def list_models(self, api_key: str | None = None) -> dict[str, Any]:
        if self.catalog is None:
            raise RuntimeError("Model catalog not configured")
        return self.response_builder.build_models(self.catalog.list_models(api_key=api_key))
