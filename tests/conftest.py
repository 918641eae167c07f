"""
conftest.py: Shared fixtures for the GrowSmart test suite.

No network, no model weights: classification backends are in-memory
fakes and the record store is a DataFrameRecordStore built per test.
"""

import pandas as pd
import pytest

from growsmart.core.pipeline import AnalysisPipeline
from growsmart.services.inference_service import InferenceService
from growsmart.services.recommendation_service import RecommendationService
from growsmart.services.record_store import ALERTS_TABLE, TREATMENTS_TABLE, DataFrameRecordStore


# ═══════════════════════════════════════════════════════════════════════════════
# Reference tables
# ═══════════════════════════════════════════════════════════════════════════════

def _in_days(days):
    return (pd.Timestamp.now(tz="UTC") + pd.Timedelta(days=days)).isoformat()


@pytest.fixture
def treatments_df():
    return pd.DataFrame(
        [
            {"treatment_name": "Copper Spray", "disease_name": "Tomato Late Blight", "active_ingredient": "Copper oxychloride",
             "application_method": "Foliar spray", "dosage": "3 g/L", "frequency": "Every 7 days", "timing": "Morning",
             "effectiveness_rating": 4.2, "organic": True},
            {"treatment_name": "Mancozeb + Metalaxyl", "disease_name": "Tomato Late Blight", "active_ingredient": "Metalaxyl",
             "application_method": "Foliar spray", "dosage": "2.5 g/L", "frequency": "Every 10 days", "timing": "At first symptoms",
             "effectiveness_rating": 4.7, "organic": False},
            {"treatment_name": "Bordeaux Mixture", "disease_name": "Tomato Late Blight", "active_ingredient": "Copper sulphate",
             "application_method": "Foliar spray", "dosage": "1%", "frequency": "Every 14 days", "timing": "Preventive",
             "effectiveness_rating": 3.6, "organic": True},
            {"treatment_name": "Unrated Home Remedy", "disease_name": "tomato late blight", "active_ingredient": None,
             "application_method": None, "dosage": None, "frequency": None, "timing": None,
             "effectiveness_rating": None, "organic": "yes"},
            {"treatment_name": "Potato Mancozeb", "disease_name": "Potato Late Blight", "active_ingredient": "Mancozeb",
             "application_method": "Foliar spray", "dosage": "2.5 g/L", "frequency": "Every 7 days", "timing": "Preventive",
             "effectiveness_rating": 4.0, "organic": False},
        ]
    )


@pytest.fixture
def alerts_df():
    return pd.DataFrame(
        [
            {"region": "Karnataka", "disease_name": "Tomato Late Blight", "alert_level": "medium",
             "outbreak_description": "Humid spell", "prevention_measures": "Spray early", "expires_at": _in_days(30)},
            {"region": "Punjab", "disease_name": "Tomato Late Blight", "alert_level": "high",
             "outbreak_description": "Widespread", "prevention_measures": "Remove plants", "expires_at": _in_days(10)},
            {"region": "Maharashtra", "disease_name": "Tomato Late Blight", "alert_level": "low",
             "outbreak_description": "Isolated", "prevention_measures": "Scout weekly", "expires_at": _in_days(5)},
            {"region": "Tamil Nadu", "disease_name": "Tomato Late Blight", "alert_level": "high",
             "outbreak_description": "Last season", "prevention_measures": "Resistant varieties", "expires_at": _in_days(-30)},
            {"region": "Kerala", "disease_name": "Tomato Late Blight", "alert_level": "high",
             "outbreak_description": "No expiry recorded", "prevention_measures": None, "expires_at": None},
        ]
    )


@pytest.fixture
def store(treatments_df, alerts_df):
    return DataFrameRecordStore({TREATMENTS_TABLE: treatments_df, ALERTS_TABLE: alerts_df})


@pytest.fixture
def recommendations(store):
    return RecommendationService(store=store)


@pytest.fixture
def make_pipeline(recommendations):
    """Factory: pipeline over the given fake backends and the shared store."""

    def _make(*backends):
        return AnalysisPipeline(inference=InferenceService(list(backends)), recommendations=recommendations)

    return _make
