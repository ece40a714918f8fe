# instabids/repositories/admin_repo.py
# Generic table/record access for the admin UI (SQLAlchemy Core over reflected tables)

import logging
import re
from typing import Any, Dict, Iterable, List, Optional, Union

from sqlalchemy import Table, MetaData, Column, select, insert, update, delete, and_, inspect
from sqlalchemy import String, Text, Integer, BigInteger, Boolean, Numeric, Float, Date, DateTime, JSON
from sqlalchemy.exc import NoSuchTableError
from sqlalchemy.ext.asyncio import AsyncSession

from instabids.core.exceptions import FieldError, FieldValidationError, NotFoundError

logger = logging.getLogger(__name__)

IDENTIFIER = re.compile(r"^[A-Za-z_][A-Za-z0-9_]{0,62}$")

COLUMN_TYPES = {
    "text": Text,
    "varchar": lambda: String(255),
    "string": lambda: String(255),
    "uuid": lambda: String(36),
    "integer": Integer,
    "int": Integer,
    "bigint": BigInteger,
    "boolean": Boolean,
    "bool": Boolean,
    "numeric": lambda: Numeric(12, 2),
    "decimal": lambda: Numeric(12, 2),
    "float": Float,
    "date": Date,
    "timestamp": DateTime,
    "timestamptz": lambda: DateTime(timezone=True),
    "json": JSON,
    "jsonb": JSON,
}

Rows = Union[Dict[str, Any], List[Dict[str, Any]]]


def _invalid(field: str, message: str) -> FieldValidationError:
    return FieldValidationError([FieldError(field=field, message=message)], message=message)


def parse_column(name: str, definition: str) -> Column:
    """
    'text', 'integer primary key', 'varchar not null unique', ...
    """
    if not IDENTIFIER.match(name):
        raise _invalid("columns", f"Invalid column name: {name}")
    declared = definition.lower().strip()
    type_name, _, modifiers = declared.partition(" ")
    factory = COLUMN_TYPES.get(type_name)
    if factory is None:
        raise _invalid("columns", f"Unsupported column type for {name}: {type_name}")
    return Column(
        name,
        factory(),
        primary_key="primary key" in modifiers,
        nullable="not null" not in modifiers and "primary key" not in modifiers,
        unique="unique" in modifiers,
    )


class AdminRepository:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_table(self, table_name: str) -> Table:
        if not IDENTIFIER.match(table_name or ""):
            raise _invalid("table", f"Invalid table name: {table_name}")
        conn = await self.db.connection()
        try:
            return await conn.run_sync(
                lambda sync_conn: Table(table_name, MetaData(), autoload_with=sync_conn)
            )
        except NoSuchTableError as e:
            raise NotFoundError(f"Table {table_name} does not exist") from e

    async def list_tables(self) -> List[str]:
        conn = await self.db.connection()
        return await conn.run_sync(lambda sync_conn: sorted(inspect(sync_conn).get_table_names()))

    async def describe_schema(self) -> List[Dict[str, Any]]:
        """
        [{"table": ..., "columns": [{"name", "type", "nullable", "primary_key"}]}]
        """
        def _describe(sync_conn):
            inspector = inspect(sync_conn)
            schema = []
            for table_name in sorted(inspector.get_table_names()):
                pk = set(inspector.get_pk_constraint(table_name).get("constrained_columns") or [])
                schema.append({
                    "table": table_name,
                    "columns": [
                        {
                            "name": c["name"],
                            "type": str(c["type"]),
                            "nullable": c["nullable"],
                            "primary_key": c["name"] in pk,
                        }
                        for c in inspector.get_columns(table_name)
                    ],
                })
            return schema

        conn = await self.db.connection()
        return await conn.run_sync(_describe)

    @staticmethod
    def _check_columns(table: Table, names: Iterable[str], field: str) -> None:
        unknown = [n for n in names if n not in table.c]
        if unknown:
            raise _invalid(field, f"Unknown column(s) on {table.name}: {', '.join(unknown)}")

    @staticmethod
    def _require_mapping(value: Any, field: str) -> Dict[str, Any]:
        if not isinstance(value, dict):
            raise _invalid(field, f"{field} must be an object of column values")
        return value

    def _where(self, table: Table, filters: Dict[str, Any]):
        self._require_mapping(filters, "filters")
        if not filters:
            raise _invalid("filters", "At least one filter is required")
        self._check_columns(table, filters.keys(), "filters")
        return and_(*(table.c[k] == v for k, v in filters.items()))

    async def _run_and_commit(self, stmt) -> List[Dict[str, Any]]:
        try:
            result = await self.db.execute(stmt)
            rows = [dict(r._mapping) for r in result]
            await self.db.commit()
        except Exception:
            await self.db.rollback()
            raise
        return rows

    async def insert_rows(self, table_name: str, data: Rows) -> List[Dict[str, Any]]:
        table = await self.get_table(table_name)
        rows = data if isinstance(data, list) else [data]
        if not rows:
            raise _invalid("data", "No rows to insert")
        for row in rows:
            self._require_mapping(row, "data")
            self._check_columns(table, row.keys(), "data")
        stmt = insert(table).values(rows).returning(*table.c)
        return await self._run_and_commit(stmt)

    async def update_rows(self, table_name: str, data: Dict[str, Any], filters: Dict[str, Any]) -> List[Dict[str, Any]]:
        table = await self.get_table(table_name)
        self._require_mapping(data, "data")
        self._check_columns(table, data.keys(), "data")
        stmt = update(table).where(self._where(table, filters)).values(**data).returning(*table.c)
        return await self._run_and_commit(stmt)

    async def delete_rows(self, table_name: str, filters: Dict[str, Any]) -> List[Dict[str, Any]]:
        table = await self.get_table(table_name)
        stmt = delete(table).where(self._where(table, filters)).returning(*table.c)
        return await self._run_and_commit(stmt)

    async def create_table(self, table_name: str, columns: Dict[str, str]) -> None:
        if not IDENTIFIER.match(table_name or ""):
            raise _invalid("tableName", f"Invalid table name: {table_name}")
        if not isinstance(columns, dict) or not columns:
            raise _invalid("columns", "At least one column is required")
        table = Table(table_name, MetaData(), *(parse_column(n, d) for n, d in columns.items()))
        conn = await self.db.connection()
        try:
            await conn.run_sync(lambda sync_conn: table.create(sync_conn))
            await self.db.commit()
        except Exception:
            await self.db.rollback()
            raise
        logger.info(f"Created table {table_name} with columns {list(columns)}")

    async def select_rows(
        self,
        table_name: str,
        columns: str = "*",
        limit: Optional[int] = None,
        offset: Optional[int] = None,
        order_by: Optional[str] = None,
    ) -> List[Dict[str, Any]]:
        """
        columns: '*' or 'a,b,c'; order_by: 'col', 'col.asc' or 'col.desc'
        """
        table = await self.get_table(table_name)
        if columns and columns.strip() != "*":
            names = [c.strip() for c in columns.split(",") if c.strip()]
            self._check_columns(table, names, "columns")
            stmt = select(*(table.c[n] for n in names))
        else:
            stmt = select(table)

        if order_by:
            name, _, direction = order_by.partition(".")
            self._check_columns(table, [name], "orderBy")
            stmt = stmt.order_by(table.c[name].desc() if direction.lower() == "desc" else table.c[name].asc())
        if limit is not None:
            stmt = stmt.limit(limit)
        if offset is not None:
            stmt = stmt.offset(offset)

        result = await self.db.execute(stmt)
        return [dict(r._mapping) for r in result]
