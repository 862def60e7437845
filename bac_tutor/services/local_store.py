# FILE: bac_tutor/services/local_store.py
"""
JSONL record store for local development
"""
import logging
from typing import List, Dict, Any, Optional
from pathlib import Path
import json

from bac_tutor.errors import PersistenceError
from bac_tutor.services.record_store import RecordStore

logger = logging.getLogger(__name__)


class LocalRecordStore(RecordStore):
    """One JSONL file per table under <data_dir>/records"""

    def __init__(self, data_dir: str):
        self.records_dir = Path(data_dir) / "records"
        self.records_dir.mkdir(parents=True, exist_ok=True)

    def _table_file(self, table: str) -> Path:
        return self.records_dir / f"{table}.jsonl"

    def _read_rows(self, table: str) -> List[Dict[str, Any]]:
        table_file = self._table_file(table)
        if not table_file.exists():
            return []

        rows = []
        with open(table_file, 'r', encoding='utf-8') as f:
            for line in f:
                if line.strip():
                    rows.append(json.loads(line))
        return rows

    @staticmethod
    def _matches(row: Dict[str, Any], filters: Dict[str, Any]) -> bool:
        return all(str(row.get(column)) == str(value) for column, value in filters.items())

    async def select_one(self, table: str, filters: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        for row in self._read_rows(table):
            if self._matches(row, filters):
                return row
        return None

    async def update(self, table: str, filters: Dict[str, Any], values: Dict[str, Any]) -> None:
        rows = self._read_rows(table)
        updated = 0
        for row in rows:
            if self._matches(row, filters):
                row.update(values)
                updated += 1

        try:
            with open(self._table_file(table), 'w', encoding='utf-8') as f:
                for row in rows:
                    f.write(json.dumps(row, ensure_ascii=False) + '\n')
        except OSError as e:
            raise PersistenceError(f"Failed to write {table}: {e}") from e

        logger.debug(f"Updated {updated} row(s) in {table}")

    async def insert(self, table: str, row: Dict[str, Any]) -> None:
        try:
            with open(self._table_file(table), 'a', encoding='utf-8') as f:
                f.write(json.dumps(row, ensure_ascii=False) + '\n')
        except OSError as e:
            raise PersistenceError(f"Failed to append to {table}: {e}") from e

        logger.debug(f"Inserted into {table}")

    async def resolve_user_id(self, access_token: str) -> Optional[str]:
        # Development only: the bearer token is the user id
        return access_token or None
