from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any

from growsmart.services.record_store import RecordStore, RecordStoreError


logger = logging.getLogger(__name__)

DIAGNOSES_TABLE = "plant_diseases"
IDENTIFICATIONS_TABLE = "plant_identifications"
ADVISORY_TABLE = "advisory_exchanges"


class HistoryService:
    """
    Best-effort write-behind of finished results.

    A failed write is logged; it never changes the response already built.
    """

    def __init__(self, store: RecordStore):
        self.store = store

    def _write(self, table: str, record: dict[str, Any]) -> bool:
        row = {**record, "created_at": datetime.now(timezone.utc).isoformat()}
        try:
            self.store.insert(table, row)
        except RecordStoreError as exc:
            logger.warning("Could not persist row to %s: %s", table, exc)
            return False
        return True

    def record_diagnosis(self, payload: dict[str, Any]) -> bool:
        return self._write(
            DIAGNOSES_TABLE,
            {
                "plant_name": payload.get("plantName"),
                "disease_name": payload.get("diseaseName"),
                "disease_type": payload.get("diseaseType"),
                "confidence_score": payload.get("confidence"),
                "severity_level": payload.get("severityLevel"),
                "affected_parts": payload.get("affectedParts"),
                "symptoms_detected": payload.get("symptoms"),
            },
        )

    def record_identification(self, payload: dict[str, Any]) -> bool:
        return self._write(
            IDENTIFICATIONS_TABLE,
            {
                "plant_name": payload.get("plantName"),
                "confidence_score": payload.get("confidence"),
                "health_status": payload.get("healthStatus"),
                "care_instructions": payload.get("careInstructions"),
            },
        )

    def record_advisory(self, payload: dict[str, Any], question: str) -> bool:
        return self._write(
            ADVISORY_TABLE,
            {
                "conversation_id": payload.get("conversationId"),
                "question": question,
                "response": payload.get("response"),
                "language": payload.get("language"),
                "status": payload.get("status"),
            },
        )
