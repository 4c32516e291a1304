"""
SQLite persistence for audit records, transactions and notifications.
Records are insert-only; tables are derived from the pydantic models.
"""
import sqlite3
from datetime import datetime
from typing import Any, Iterable, List, Optional, Type

from pydantic import BaseModel

from core.config import get_settings
from core.exceptions import PersistenceError
from core.logger import setup_logger

logger = setup_logger(__name__)

_COLUMN_TYPES = {
    str: "TEXT",
    bool: "INTEGER",
    int: "INTEGER",
    float: "REAL",
    datetime: "TIMESTAMP",
}


def _column_definitions(model: Type[BaseModel]) -> List[str]:
    columns = []
    for name, field in model.model_fields.items():
        column_type = _COLUMN_TYPES.get(field.annotation, "TEXT")
        if name == "id":
            columns.append(f"{name} {column_type} PRIMARY KEY")
        else:
            columns.append(f"{name} {column_type} NOT NULL")
    return columns


def _to_column_value(value: Any) -> Any:
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, bool):
        return int(value)
    return value


class Database:
    def __init__(self, db_path: Optional[str] = None, busy_timeout: float = 5.0):
        self.db_path = db_path or get_settings().database_path
        self.busy_timeout = busy_timeout

    def get_connection(self) -> sqlite3.Connection:
        """Create a database connection."""
        conn = sqlite3.connect(self.db_path, timeout=self.busy_timeout)
        conn.row_factory = sqlite3.Row
        return conn

    def migrate(self, schemas: Iterable[Type[BaseModel]]) -> None:
        """
        Create a table for every model that does not have one yet.

        Args:
            schemas: Model classes exposing a ``table_name`` class attribute

        Raises:
            PersistenceError: If a table cannot be created
        """
        conn = self.get_connection()
        cursor = conn.cursor()

        try:
            cursor.execute("PRAGMA journal_mode=WAL")
            for model in schemas:
                columns = ", ".join(_column_definitions(model))
                cursor.execute(f"CREATE TABLE IF NOT EXISTS {model.table_name} ({columns})")
                logger.debug(f"Migrated table {model.table_name}")
            conn.commit()
            logger.info("Database migrations applied")
        except sqlite3.Error as e:
            logger.error(f"Database migration failed: {e}")
            raise PersistenceError("Database migration failed", details={"error": str(e)})
        finally:
            conn.close()

    def save(self, record: BaseModel) -> None:
        """
        Insert a single record.

        Args:
            record: Model instance whose class was passed to ``migrate``

        Raises:
            PersistenceError: If the insert fails
        """
        data = record.model_dump()
        table = type(record).table_name
        columns = ", ".join(data.keys())
        placeholders = ", ".join("?" for _ in data)
        values = tuple(_to_column_value(v) for v in data.values())

        conn = self.get_connection()
        try:
            conn.execute(f"INSERT INTO {table} ({columns}) VALUES ({placeholders})", values)
            conn.commit()
        except sqlite3.Error as e:
            raise PersistenceError(
                f"Failed to save {table} record",
                details={"table": table, "id": data.get("id"), "error": str(e)},
            )
        finally:
            conn.close()

    def fetch_all(self, model: Type[BaseModel]) -> List[BaseModel]:
        """Load every stored record of a model, oldest first."""
        conn = self.get_connection()
        try:
            rows = conn.execute(f"SELECT * FROM {model.table_name} ORDER BY created_at").fetchall()
            return [model(**dict(row)) for row in rows]
        except sqlite3.Error as e:
            raise PersistenceError(
                f"Failed to read {model.table_name}",
                details={"table": model.table_name, "error": str(e)},
            )
        finally:
            conn.close()

    def count(self, model: Type[BaseModel]) -> int:
        conn = self.get_connection()
        try:
            return conn.execute(f"SELECT COUNT(*) FROM {model.table_name}").fetchone()[0]
        except sqlite3.Error as e:
            raise PersistenceError(
                f"Failed to count {model.table_name}",
                details={"table": model.table_name, "error": str(e)},
            )
        finally:
            conn.close()

