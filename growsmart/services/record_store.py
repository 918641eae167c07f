from __future__ import annotations

import logging
import threading
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any

import httpx
import pandas as pd
from postgrest.exceptions import APIError
from supabase import Client, ClientOptions, create_client


logger = logging.getLogger(__name__)

TREATMENTS_TABLE = "disease_treatments"
ALERTS_TABLE = "regional_disease_alerts"


class RecordStoreError(RuntimeError):
    pass


class RecordStore(ABC):
    """
    Minimal table-oriented store.

    `select` filters rows whose column contains a term (case-insensitive),
    `insert` appends one row. Ordering and truncation are left to callers.
    """

    @abstractmethod
    def select(self, table: str, contains: dict[str, str] | None = None) -> list[dict[str, Any]]:
        ...

    @abstractmethod
    def insert(self, table: str, record: dict[str, Any]) -> None:
        ...


def _read_table(path: str | Path) -> pd.DataFrame:
    path = Path(path)
    suffix = path.suffix.lower()
    if suffix in (".xlsx", ".xls"):
        return pd.read_excel(path)
    if suffix == ".json":
        return pd.read_json(path)
    return pd.read_csv(path)


class DataFrameRecordStore(RecordStore):
    """In-process store; reference tables are loaded once and only read."""

    def __init__(self, tables: dict[str, pd.DataFrame] | None = None):
        self.tables: dict[str, pd.DataFrame] = dict(tables or {})
        self._lock = threading.Lock()

    @classmethod
    def from_files(cls, paths: dict[str, str]) -> "DataFrameRecordStore":
        tables: dict[str, pd.DataFrame] = {}
        for table, path in paths.items():
            if not path or not Path(path).exists():
                logger.warning("Reference table %s not found at %s; starting empty", table, path)
                continue
            tables[table] = _read_table(path)
            logger.info("Loaded %s rows into %s from %s", len(tables[table]), table, path)
        return cls(tables)

    def select(self, table: str, contains: dict[str, str] | None = None) -> list[dict[str, Any]]:
        df = self.tables.get(table)
        if df is None or df.empty:
            return []

        mask = pd.Series(True, index=df.index)
        for column, term in (contains or {}).items():
            if column not in df.columns:
                return []
            mask &= df[column].astype(str).str.contains(str(term), case=False, regex=False, na=False)

        rows = df[mask]
        # NaN -> None so downstream code sees plain Python values
        rows = rows.astype(object).where(pd.notna(rows), None)
        return rows.to_dict(orient="records")

    def insert(self, table: str, record: dict[str, Any]) -> None:
        with self._lock:
            row = pd.DataFrame([record])
            current = self.tables.get(table)
            self.tables[table] = row if current is None else pd.concat([current, row], ignore_index=True)


class SupabaseRecordStore(RecordStore):
    """Supabase (PostgREST) tables through the supabase client."""

    def __init__(self, url: str = "", key: str = "", timeout_s: float = 10.0, client: Client | None = None):
        self.url = url
        self.client = client or create_client(url, key, options=ClientOptions(postgrest_client_timeout=timeout_s))

    def select(self, table: str, contains: dict[str, str] | None = None) -> list[dict[str, Any]]:
        query = self.client.table(table).select("*")
        for column, term in (contains or {}).items():
            query = query.ilike(column, f"%{term}%")

        try:
            data = query.execute().data
        except (APIError, httpx.HTTPError) as exc:
            raise RecordStoreError(f"select from {table} failed: {exc}") from exc

        if not isinstance(data, list):
            raise RecordStoreError(f"select from {table} returned {type(data).__name__}, expected list")
        return data

    def insert(self, table: str, record: dict[str, Any]) -> None:
        try:
            self.client.table(table).insert(record).execute()
        except (APIError, httpx.HTTPError) as exc:
            raise RecordStoreError(f"insert into {table} failed: {exc}") from exc
