from __future__ import annotations

import math

from growsmart.core.policies import Policies
from growsmart.core.rules import (
    AFFECTED_PART_RULES,
    CONDITION_TYPE_RULES,
    DEFAULT_PARTS,
    DEFAULT_SYMPTOMS,
    SYMPTOM_RULES,
    UNKNOWN_TYPE,
    all_matches,
    first_match,
)
from growsmart.core.schemas import CanonicalCondition, Diagnosis


def to_percent(confidence: float | None) -> int:
    """Backend confidence (0..1) -> integer percentage, rounded half up."""
    if confidence is None or math.isnan(confidence):
        return 0
    pct = math.floor(float(confidence) * 100 + 0.5)
    return max(0, min(100, pct))


class DiagnosisScorer:
    def __init__(self, policies: Policies | None = None):
        self.policies = policies or Policies()

    # ---- individual signals ----
    def condition_type(self, condition: CanonicalCondition) -> str:
        if condition.is_healthy:
            return "healthy"
        return first_match(CONDITION_TYPE_RULES, condition.condition, default=UNKNOWN_TYPE).tag

    def severity(self, condition: CanonicalCondition, confidence_pct: int) -> str:
        if condition.is_healthy:
            return "none"
        sp = self.policies.severity
        if confidence_pct > sp.severe_above:
            return "severe"
        if confidence_pct > sp.moderate_above:
            return "moderate"
        return "mild"

    def emergency_level(self, condition: CanonicalCondition, confidence_pct: int) -> str:
        if condition.is_healthy:
            return "none"
        ep = self.policies.emergency
        name = condition.name.lower()
        is_critical = any(term in name for term in ep.critical_terms)

        if is_critical and confidence_pct > ep.high_above:
            return "high"
        if confidence_pct > ep.medium_above:
            return "medium"
        return "low"

    def affected_parts(self, condition: CanonicalCondition) -> tuple[str, ...]:
        if condition.is_healthy:
            return ()
        parts = tuple(rule.tag for rule in all_matches(AFFECTED_PART_RULES, condition.name))
        return parts or DEFAULT_PARTS

    def symptoms(self, condition: CanonicalCondition) -> tuple[str, ...]:
        if condition.is_healthy:
            return ()
        found = tuple(rule.value for rule in all_matches(SYMPTOM_RULES, condition.name))
        return found or DEFAULT_SYMPTOMS

    # ---- composed ----
    def score(self, condition: CanonicalCondition, confidence_pct: int) -> Diagnosis:
        pct = max(0, min(100, int(confidence_pct)))

        return Diagnosis(
            subject=condition.subject,
            condition_name=condition.name,
            condition_type=self.condition_type(condition),
            confidence_pct=pct,
            severity=self.severity(condition, pct),
            emergency_level=self.emergency_level(condition, pct),
            affected_parts=self.affected_parts(condition),
            symptoms=self.symptoms(condition),
            is_healthy=condition.is_healthy,
        )
