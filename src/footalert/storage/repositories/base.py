"""
Shared plumbing for the table repositories.

Records come back from asyncpg with JSON columns as text; the pydantic
models decode them, so a row maps to a model with a plain dict(record).
"""
from __future__ import annotations

import json
import logging
from typing import Any, Generic, Iterable, Optional, Type, TypeVar

from pydantic import BaseModel, ValidationError

from footalert.storage.database import Database

logger = logging.getLogger(__name__)

M = TypeVar("M", bound=BaseModel)


def to_json(value: Any) -> Optional[str]:
    """JSONB parameter text; None stays SQL NULL."""
    if value is None:
        return None
    if isinstance(value, BaseModel):
        return value.model_dump_json()
    return json.dumps(value, default=str)


class BaseRepository(Generic[M]):
    """Subclasses set table_name and model_class."""

    table_name: str
    model_class: Type[M]

    def __init__(self, db: Database) -> None:
        self.db = db

    def _to_model(self, record) -> Optional[M]:
        return None if record is None else self.model_class(**dict(record))

    def _to_models(self, records: Iterable, skip_invalid: bool = False) -> list[M]:
        """
        Map records to models.

        With skip_invalid, rows failing validation are logged and dropped
        instead of raising.
        """
        if not skip_invalid:
            return [self._to_model(r) for r in records]

        models = []
        for record in records:
            try:
                models.append(self._to_model(record))
            except ValidationError as e:
                logger.warning(
                    f"Skipping invalid {self.table_name} row {record['id']}: "
                    f"{e.error_count()} validation error(s)"
                )
        return models

    async def get_by_id(self, id_value: str) -> Optional[M]:
        record = await self.db.fetchrow(
            f"SELECT * FROM {self.table_name} WHERE id = $1", id_value
        )
        return self._to_model(record)
