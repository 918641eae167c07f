from __future__ import annotations

import logging
from typing import Any

import pandas as pd

from growsmart.core.policies import Policies
from growsmart.core.rules import BASELINE_PREVENTION, PREVENTION_RULES
from growsmart.core.schemas import Recommendations, RegionalAlert, TreatmentRecord
from growsmart.services.record_store import (
    ALERTS_TABLE,
    TREATMENTS_TABLE,
    RecordStore,
    RecordStoreError,
)


logger = logging.getLogger(__name__)

ALERT_LEVEL_RANK = {"low": 1, "medium": 2, "high": 3}


def _to_float(value: Any) -> float | None:
    try:
        out = float(value)
    except (TypeError, ValueError):
        return None
    return None if pd.isna(out) else out


def _to_bool(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in ("1", "true", "yes", "y", "t")
    return bool(value) if value is not None else False


def _to_text(value: Any) -> str | None:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def _to_timestamp(value: Any) -> pd.Timestamp | None:
    if value is None:
        return None
    ts = pd.to_datetime(value, utc=True, errors="coerce")
    return None if pd.isna(ts) else ts


class RecommendationService:
    """
    Ranks curated treatments and regional alerts for a canonical condition.

    An empty result means "no curated data", not a failure; store errors are
    logged and reported the same way.
    """

    def __init__(self, store: RecordStore, policies: Policies | None = None):
        self.store = store
        self.policies = policies or Policies()

    def match_key(self, condition_name: str) -> str:
        tokens = condition_name.split()
        return " ".join(tokens[: self.policies.recommendation.key_tokens])

    def _select(self, table: str, key: str) -> list[dict[str, Any]]:
        if not key:
            return []
        try:
            return self.store.select(table, contains={"disease_name": key})
        except RecordStoreError as exc:
            logger.warning("Record store lookup failed for %s (%s): %s", table, key, exc)
            return []

    # ---- treatments ----
    def treatments(self, condition_name: str) -> tuple[TreatmentRecord, ...]:
        rows = self._select(TREATMENTS_TABLE, self.match_key(condition_name))

        records = [
            TreatmentRecord(
                name=str(row.get("treatment_name") or row.get("name") or ""),
                active_ingredient=_to_text(row.get("active_ingredient")),
                application_method=_to_text(row.get("application_method")),
                dosage=_to_text(row.get("dosage")),
                frequency=_to_text(row.get("frequency")),
                timing=_to_text(row.get("timing")),
                effectiveness_rating=_to_float(row.get("effectiveness_rating")),
                organic=_to_bool(row.get("organic")),
            )
            for row in rows
        ]

        # unrated treatments sort last
        records.sort(
            key=lambda t: t.effectiveness_rating if t.effectiveness_rating is not None else float("-inf"),
            reverse=True,
        )
        return tuple(records[: self.policies.recommendation.limit])

    # ---- alerts ----
    def alerts(self, condition_name: str, region: str | None = None) -> tuple[RegionalAlert, ...]:
        rows = self._select(ALERTS_TABLE, self.match_key(condition_name))
        now = pd.Timestamp.now(tz="UTC")
        region_key = (region or "").strip().lower()

        alerts: list[RegionalAlert] = []
        for row in rows:
            expires = _to_timestamp(row.get("expires_at"))
            if expires is None or expires < now:
                continue

            row_region = str(row.get("region") or "")
            if region_key and region_key not in row_region.lower():
                continue

            level = str(row.get("alert_level") or "low").strip().lower()
            alerts.append(
                RegionalAlert(
                    region=row_region,
                    condition_name=str(row.get("disease_name") or ""),
                    alert_level=level if level in ALERT_LEVEL_RANK else "low",
                    description=_to_text(row.get("outbreak_description")),
                    prevention_measures=_to_text(row.get("prevention_measures")),
                    expires_at=expires.to_pydatetime(),
                )
            )

        alerts.sort(key=lambda a: ALERT_LEVEL_RANK[a.alert_level], reverse=True)
        return tuple(alerts[: self.policies.recommendation.limit])

    # ---- prevention ----
    def prevention(self, condition_name: str, condition_type: str | None = None) -> tuple[str, ...]:
        text = f"{condition_name} {condition_type or ''}"
        measures: list[str] = []
        for rule, rule_measures in PREVENTION_RULES:
            if rule.matches(text):
                measures.extend(rule_measures)
        measures.extend(BASELINE_PREVENTION)
        return tuple(measures)

    def recommend(
        self,
        condition_name: str,
        condition_type: str | None = None,
        region: str | None = None,
    ) -> Recommendations:
        return Recommendations(
            treatments=self.treatments(condition_name),
            alerts=self.alerts(condition_name, region=region),
            prevention=self.prevention(condition_name, condition_type),
        )
