"""
test_pipeline.py: End-to-end diagnosis and identification over fake
backends and in-memory reference tables.

Covers the two canonical scenarios (a diseased leaf and a healthy leaf),
the backend fallback chain as seen from the pipeline, and the camelCase
bodies produced by ResponseBuilder.
"""

import pytest

from growsmart.core.response import ResponseBuilder
from growsmart.services.inference_service import NoBackendAvailable
from tests.fakes import backend_for, failing_backend


IMAGE = b"leaf-image"


# ═══════════════════════════════════════════════════════════════════════════════
# Diagnosis
# ═══════════════════════════════════════════════════════════════════════════════

class TestDiagnose:

    def test_late_blight_scenario(self, make_pipeline):
        pipeline = make_pipeline(backend_for("Tomato___Late_blight", 0.92))

        report = pipeline.diagnose(IMAGE)
        d = report.diagnosis

        assert d.subject == "Tomato"
        assert d.condition_name == "Tomato Late Blight"
        assert d.condition_type == "fungal"
        assert d.confidence_pct == 92
        assert d.severity == "severe"
        assert d.emergency_level == "high"
        assert d.is_healthy is False
        assert [t.name for t in report.recommendations.treatments] == [
            "Mancozeb + Metalaxyl",
            "Copper Spray",
            "Bordeaux Mixture",
        ]
        assert [a.alert_level for a in report.recommendations.alerts] == ["high", "medium", "low"]
        assert report.recommendations.prevention[0] == "Ensure proper air circulation around plants"
        assert report.recommendations.prevention[-2:] == ("Regular crop rotation", "Maintain healthy soil conditions")

    def test_healthy_scenario(self, make_pipeline):
        pipeline = make_pipeline(backend_for("Apple___healthy", 0.99))

        report = pipeline.diagnose(IMAGE)
        d = report.diagnosis

        assert d.condition_name == "Apple Healthy"
        assert d.is_healthy is True
        assert d.condition_type == "healthy"
        assert d.severity == "none"
        assert d.emergency_level == "none"
        assert d.affected_parts == ()
        assert d.symptoms == ()
        assert report.recommendations.treatments == ()
        assert report.recommendations.alerts == ()
        assert report.recommendations.prevention == ("Regular crop rotation", "Maintain healthy soil conditions")

    def test_region_narrows_alerts(self, make_pipeline):
        pipeline = make_pipeline(backend_for("Tomato___Late_blight", 0.92))
        alerts = pipeline.diagnose(IMAGE, region="Punjab").recommendations.alerts
        assert [a.region for a in alerts] == ["Punjab"]

    def test_unknown_label_still_diagnoses(self, make_pipeline):
        pipeline = make_pipeline(backend_for("rice_blast", 0.5))

        d = pipeline.diagnose(IMAGE).diagnosis

        assert d.condition_name == "Rice Blast"
        assert d.condition_type == "unknown"
        assert d.severity == "mild"
        assert d.emergency_level == "low"

    def test_fallback_backend_answers(self, make_pipeline):
        pipeline = make_pipeline(failing_backend(), backend_for("Potato___Late_blight", 0.81, name="backup"))

        report = pipeline.diagnose(IMAGE)

        assert report.classification.backend == "backup"
        assert report.diagnosis.condition_name == "Potato Late Blight"
        assert [t.name for t in report.recommendations.treatments] == ["Potato Mancozeb"]

    def test_all_backends_failing_raises(self, make_pipeline):
        with pytest.raises(NoBackendAvailable):
            make_pipeline(failing_backend("a"), failing_backend("b")).diagnose(IMAGE)


# ═══════════════════════════════════════════════════════════════════════════════
# Identification
# ═══════════════════════════════════════════════════════════════════════════════

class TestIdentify:

    def test_plantvillage_label_uses_subject(self, make_pipeline):
        ident = make_pipeline(backend_for("Tomato___Early_blight", 0.85)).identify(IMAGE)

        assert ident.plant_name == "Tomato"
        assert ident.confidence_pct == 85
        assert ident.care_instructions.startswith("Water regularly")
        assert ident.health_status.startswith("Excellent")

    def test_general_label_is_cleaned(self, make_pipeline):
        ident = make_pipeline(backend_for("pot, flowerpot", 0.3)).identify(IMAGE)

        assert ident.plant_name == "Pot Flowerpot"
        assert ident.health_status.startswith("Low")
        assert len(ident.predictions) == 2


# ═══════════════════════════════════════════════════════════════════════════════
# Response bodies
# ═══════════════════════════════════════════════════════════════════════════════

class TestResponseBuilder:

    def test_diagnosis_body(self, make_pipeline):
        report = make_pipeline(backend_for("Tomato___Late_blight", 0.92)).diagnose(IMAGE)

        body = ResponseBuilder().build_diagnosis(report)

        assert set(body) == {
            "plantName", "diseaseType", "diseaseName", "confidence", "severityLevel", "affectedParts",
            "symptoms", "treatments", "prevention", "regionalAlerts", "isHealthy", "emergencyLevel",
        }
        assert body["diseaseName"] == "Tomato Late Blight"
        assert body["affectedParts"] == ["stems"]
        assert body["treatments"][0]["effectivenessRating"] == 4.7
        assert body["regionalAlerts"][0]["region"] == "Punjab"
        assert isinstance(body["regionalAlerts"][0]["expiresAt"], str)

    def test_identification_body(self, make_pipeline):
        ident = make_pipeline(backend_for("Tomato___healthy", 0.9)).identify(IMAGE)

        body = ResponseBuilder().build_identification(ident)

        assert body["plantName"] == "Tomato"
        assert body["confidence"] == 90
        assert body["allPredictions"][0] == {"label": "Tomato___healthy", "score": 0.9}
