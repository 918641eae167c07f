from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class SeverityPolicy:
    severe_above: int = 85
    moderate_above: int = 70


@dataclass(frozen=True)
class EmergencyPolicy:
    # Kept as data; coverage of other serious conditions is an open question
    critical_terms: tuple[str, ...] = ("blight", "black rot", "virus")
    high_above: int = 80
    medium_above: int = 75


@dataclass(frozen=True)
class RecommendationPolicy:
    limit: int = 3
    key_tokens: int = 2


@dataclass(frozen=True)
class IdentificationPolicy:
    excellent_above: float = 0.8
    good_above: float = 0.6
    moderate_above: float = 0.4


@dataclass(frozen=True)
class RetryPolicy:
    max_attempts: int = 3
    base_delay_s: float = 1.0
    timeout_s: float = 30.0
    retry_statuses: tuple[int, ...] = (429,)
    # Statuses that, while probing, mean "wrong request shape"
    schema_reject_statuses: tuple[int, ...] = (400, 404, 415, 422)


@dataclass(frozen=True)
class Policies:
    severity: SeverityPolicy = SeverityPolicy()
    emergency: EmergencyPolicy = EmergencyPolicy()
    recommendation: RecommendationPolicy = RecommendationPolicy()
    identification: IdentificationPolicy = IdentificationPolicy()
    retry: RetryPolicy = RetryPolicy()
