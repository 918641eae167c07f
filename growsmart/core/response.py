from __future__ import annotations

from dataclasses import asdict
from datetime import datetime, timezone
from typing import Any

from growsmart.core.schemas import (
    AdvisoryExchange,
    ChatReply,
    DiagnosisReport,
    ModelInfo,
    PlantIdentification,
    RegionalAlert,
    TreatmentRecord,
)


class ResponseBuilder:
    """Domain objects -> the camelCase JSON bodies the clients consume."""

    @staticmethod
    def treatment(t: TreatmentRecord) -> dict[str, Any]:
        return {
            "name": t.name,
            "activeIngredient": t.active_ingredient,
            "applicationMethod": t.application_method,
            "dosage": t.dosage,
            "frequency": t.frequency,
            "timing": t.timing,
            "effectivenessRating": t.effectiveness_rating,
            "organic": t.organic,
        }

    @staticmethod
    def alert(a: RegionalAlert) -> dict[str, Any]:
        return {
            "region": a.region,
            "diseaseName": a.condition_name,
            "alertLevel": a.alert_level,
            "description": a.description,
            "preventionMeasures": a.prevention_measures,
            "expiresAt": a.expires_at.isoformat(),
        }

    def build_diagnosis(self, report: DiagnosisReport) -> dict[str, Any]:
        d = report.diagnosis
        recs = report.recommendations

        return {
            "plantName": d.subject,
            "diseaseType": d.condition_type,
            "diseaseName": d.condition_name,
            "confidence": d.confidence_pct,
            "severityLevel": d.severity,
            "affectedParts": list(d.affected_parts),
            "symptoms": list(d.symptoms),
            "treatments": [self.treatment(t) for t in recs.treatments],
            "prevention": list(recs.prevention),
            "regionalAlerts": [self.alert(a) for a in recs.alerts],
            "isHealthy": d.is_healthy,
            "emergencyLevel": d.emergency_level,
        }

    def build_identification(self, ident: PlantIdentification) -> dict[str, Any]:
        return {
            "plantName": ident.plant_name,
            "confidence": ident.confidence_pct,
            "careInstructions": ident.care_instructions,
            "healthStatus": ident.health_status,
            "allPredictions": [{"label": p.label, "score": p.score} for p in ident.predictions],
        }

    def build_advisory(self, exchange: AdvisoryExchange) -> dict[str, Any]:
        return {
            "response": exchange.response_text,
            "language": exchange.language,
            "conversationId": exchange.conversation_id,
            "status": exchange.status,
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }

    def build_chat(self, reply: ChatReply) -> dict[str, Any]:
        return {
            "response": reply.response_text,
            "model": reply.model,
            "conversationId": reply.conversation_id,
        }

    @staticmethod
    def build_models(models: list[ModelInfo]) -> dict[str, Any]:
        return {"models": [asdict(m) for m in models]}
