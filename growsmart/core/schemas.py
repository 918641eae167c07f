from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any


@dataclass(frozen=True)
class Prediction:
    label: str
    score: float


@dataclass(frozen=True)
class ClassificationResult:
    raw_label: str
    confidence: float          # backend-reported, 0..1
    backend: str
    predictions: tuple[Prediction, ...] = ()


@dataclass(frozen=True)
class CanonicalCondition:
    subject: str               # e.g. "Tomato"
    condition: str             # e.g. "Late Blight"
    name: str                  # e.g. "Tomato Late Blight"
    is_healthy: bool


@dataclass(frozen=True)
class Diagnosis:
    subject: str
    condition_name: str
    condition_type: str        # "fungal" | "bacterial" | "viral" | "pest" | "unknown" | "healthy"
    confidence_pct: int
    severity: str              # "none" | "mild" | "moderate" | "severe"
    emergency_level: str       # "none" | "low" | "medium" | "high"
    affected_parts: tuple[str, ...]
    symptoms: tuple[str, ...]
    is_healthy: bool


@dataclass(frozen=True)
class TreatmentRecord:
    name: str
    active_ingredient: str | None
    application_method: str | None
    dosage: str | None
    frequency: str | None
    timing: str | None
    effectiveness_rating: float | None
    organic: bool


@dataclass(frozen=True)
class RegionalAlert:
    region: str
    condition_name: str
    alert_level: str           # "low" | "medium" | "high"
    description: str | None
    prevention_measures: str | None
    expires_at: datetime


@dataclass(frozen=True)
class Recommendations:
    treatments: tuple[TreatmentRecord, ...] = ()
    alerts: tuple[RegionalAlert, ...] = ()
    prevention: tuple[str, ...] = ()


@dataclass(frozen=True)
class DiagnosisReport:
    diagnosis: Diagnosis
    recommendations: Recommendations
    classification: ClassificationResult


@dataclass(frozen=True)
class PlantIdentification:
    plant_name: str
    confidence_pct: int
    care_instructions: str
    health_status: str
    predictions: tuple[Prediction, ...] = field(default_factory=tuple)


@dataclass(frozen=True)
class AdvisoryExchange:
    question: str
    language: str
    response_text: str
    status: str                # "success" | "fallback"
    attempt_count: int
    conversation_id: str | None = None


@dataclass(frozen=True)
class UserContext:
    location: str | None = None
    farm_type: str | None = None


@dataclass(frozen=True)
class ChatReply:
    message: str
    model: str
    response_text: str
    attempt_count: int
    conversation_id: str | None = None


@dataclass(frozen=True)
class ModelInfo:
    id: str
    name: str
    description: str | None = None
    pricing: dict[str, Any] | None = None
    context_length: int | None = None
    architecture: dict[str, Any] | None = None
    top_provider: dict[str, Any] | None = None
