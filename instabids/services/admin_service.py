# instabids/services/admin_service.py

import logging
from typing import Any, Dict, List, Optional

from sqlalchemy.exc import SQLAlchemyError

from instabids.core.exceptions import PersistenceError
from instabids.repositories.admin_repo import AdminRepository, Rows

logger = logging.getLogger(__name__)


class AdminService:
    """Thin passthrough to the admin repository; database errors become PersistenceError."""

    def __init__(self, repo: AdminRepository):
        self.repo = repo

    async def _call(self, action: str, coro):
        try:
            return await coro
        except SQLAlchemyError as e:
            logger.error(f"Admin {action} failed: {e}", exc_info=True)
            raise PersistenceError(f"Admin {action} failed: {e.__class__.__name__}") from e

    async def list_tables(self) -> List[str]:
        return await self._call("list tables", self.repo.list_tables())

    async def describe_schema(self) -> List[Dict[str, Any]]:
        return await self._call("describe schema", self.repo.describe_schema())

    async def insert_records(self, table: str, data: Rows) -> List[Dict[str, Any]]:
        rows = await self._call("insert", self.repo.insert_rows(table, data))
        logger.info(f"Admin inserted {len(rows)} row(s) into {table}")
        return rows

    async def update_records(self, table: str, data: Dict[str, Any], filters: Dict[str, Any]) -> List[Dict[str, Any]]:
        rows = await self._call("update", self.repo.update_rows(table, data, filters))
        logger.info(f"Admin updated {len(rows)} row(s) in {table} where {filters}")
        return rows

    async def delete_records(self, table: str, filters: Dict[str, Any]) -> List[Dict[str, Any]]:
        rows = await self._call("delete", self.repo.delete_rows(table, filters))
        logger.info(f"Admin deleted {len(rows)} row(s) from {table} where {filters}")
        return rows

    async def create_table(self, table_name: str, columns: Dict[str, str]) -> None:
        await self._call("create table", self.repo.create_table(table_name, columns))

    async def get_table_data(
        self,
        table_name: str,
        columns: str = "*",
        limit: Optional[int] = None,
        offset: Optional[int] = None,
        order_by: Optional[str] = None,
    ) -> List[Dict[str, Any]]:
        return await self._call(
            "select",
            self.repo.select_rows(table_name, columns=columns, limit=limit, offset=offset, order_by=order_by),
        )
