from __future__ import annotations

import logging

from growsmart.core.policies import Policies
from growsmart.core.schemas import (
    DiagnosisReport,
    PlantIdentification,
    Recommendations,
)
from growsmart.core.scoring import DiagnosisScorer, to_percent
from growsmart.core.taxonomy import TaxonomyResolver
from growsmart.services.care_service import CareService, clean_plant_name
from growsmart.services.inference_service import InferenceService
from growsmart.services.recommendation_service import RecommendationService


logger = logging.getLogger(__name__)


class AnalysisPipeline:
    def __init__(
        self,
        inference: InferenceService,
        recommendations: RecommendationService,
        care: CareService | None = None,
        policies: Policies | None = None,
        resolver: TaxonomyResolver | None = None,
        scorer: DiagnosisScorer | None = None,
    ):
        self.inference = inference
        self.recommendations = recommendations
        self.policies = policies or Policies()
        self.care = care or CareService(policy=self.policies.identification)
        self.resolver = resolver or TaxonomyResolver()
        self.scorer = scorer or DiagnosisScorer(policies=self.policies)

    def diagnose(self, image_bytes: bytes, region: str | None = None) -> DiagnosisReport:
        classification = self.inference.classify(image_bytes)

        condition = self.resolver.resolve(classification.raw_label)
        diagnosis = self.scorer.score(condition, to_percent(classification.confidence))

        # Nothing to treat on a healthy plant; only the baseline prevention applies
        if diagnosis.is_healthy:
            recs = Recommendations(prevention=self.recommendations.prevention(diagnosis.condition_name, "healthy"))
        else:
            recs = self.recommendations.recommend(
                diagnosis.condition_name,
                condition_type=diagnosis.condition_type,
                region=region,
            )

        logger.info(
            "Disease identified: %s (%s%%, severity=%s, emergency=%s)",
            diagnosis.condition_name,
            diagnosis.confidence_pct,
            diagnosis.severity,
            diagnosis.emergency_level,
        )

        return DiagnosisReport(diagnosis=diagnosis, recommendations=recs, classification=classification)

    def identify(self, image_bytes: bytes) -> PlantIdentification:
        classification = self.inference.classify(image_bytes)

        # PlantVillage labels carry the plant as subject; anything else is cleaned as a name
        if classification.raw_label in self.resolver.table:
            plant_name = self.resolver.resolve(classification.raw_label).subject
        else:
            plant_name = clean_plant_name(classification.raw_label)

        logger.info("Identified plant: %s (%.2f)", plant_name, classification.confidence)

        return PlantIdentification(
            plant_name=plant_name,
            confidence_pct=to_percent(classification.confidence),
            care_instructions=self.care.care_for(plant_name),
            health_status=self.care.identification_status(classification.confidence),
            predictions=classification.predictions,
        )
