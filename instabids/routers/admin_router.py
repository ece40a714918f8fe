# instabids/routers/admin_router.py
# Generic record/table endpoints used by the admin UI
import logging
from typing import Any, Dict, Optional

from fastapi import APIRouter, Body, Depends, Query
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from instabids.core.database import get_db
from instabids.core.exceptions import FieldValidationError, NotFoundError, PersistenceError
from instabids.core.security import require_admin
from instabids.repositories.admin_repo import AdminRepository
from instabids.services.admin_service import AdminService

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/api/admin/db",
    tags=["Admin"],
    dependencies=[Depends(require_admin)]
)


def get_admin_service(db: AsyncSession = Depends(get_db)) -> AdminService:
    return AdminService(AdminRepository(db))


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message})


async def _respond(coro) -> JSONResponse:
    """Run an admin operation and shape the result as {data} or {error}."""
    try:
        data = await coro
    except FieldValidationError as e:
        return _error(400, "; ".join(err.message for err in e.errors) or e.message)
    except NotFoundError as e:
        return _error(404, e.message)
    except PersistenceError as e:
        return _error(500, e.message)
    return JSONResponse(content=jsonable_encoder({"data": data}))


def _missing(payload: Dict[str, Any], *names: str) -> Optional[JSONResponse]:
    absent = [n for n in names if not payload.get(n)]
    if absent:
        return _error(400, f"Missing required parameter(s): {', '.join(absent)}")
    return None


@router.post("/records")
async def insert_records(
    payload: Dict[str, Any] = Body(...),
    service: AdminService = Depends(get_admin_service),
):
    """Insert one row (`data` object) or many (`data` list) into `table`."""
    missing = _missing(payload, "table", "data")
    if missing:
        return missing
    return await _respond(service.insert_records(payload["table"], payload["data"]))


@router.put("/records")
async def update_records(
    payload: Dict[str, Any] = Body(...),
    service: AdminService = Depends(get_admin_service),
):
    missing = _missing(payload, "table", "data", "filters")
    if missing:
        return missing
    return await _respond(service.update_records(payload["table"], payload["data"], payload["filters"]))


@router.delete("/records")
async def delete_records(
    payload: Dict[str, Any] = Body(...),
    service: AdminService = Depends(get_admin_service),
):
    missing = _missing(payload, "table", "filters")
    if missing:
        return missing
    return await _respond(service.delete_records(payload["table"], payload["filters"]))


@router.post("/table")
async def create_table(
    payload: Dict[str, Any] = Body(...),
    service: AdminService = Depends(get_admin_service),
):
    """
    Create `tableName` from `columns`: {"name": "text not null", "id": "uuid primary key", ...}
    """
    missing = _missing(payload, "tableName", "columns")
    if missing:
        return missing
    table_name = payload["tableName"]
    response = await _respond(service.create_table(table_name, payload["columns"]))
    if response.status_code != 200:
        return response
    return JSONResponse(content={"success": True, "message": f"Table {table_name} created successfully"})


@router.get("/table")
async def get_table_data(
    name: Optional[str] = Query(None),
    columns: str = Query("*"),
    limit: Optional[int] = Query(None, ge=0),
    offset: Optional[int] = Query(None, ge=0),
    orderBy: Optional[str] = Query(None),
    service: AdminService = Depends(get_admin_service),
):
    if not name:
        return _error(400, "Missing required parameter(s): name")
    return await _respond(
        service.get_table_data(name, columns=columns, limit=limit, offset=offset, order_by=orderBy)
    )


@router.get("")
async def get_database_info(
    operation: str = Query("schema"),
    table: Optional[str] = Query(None),
    columns: str = Query("*"),
    limit: Optional[int] = Query(None, ge=0),
    offset: Optional[int] = Query(None, ge=0),
    orderBy: Optional[str] = Query(None),
    service: AdminService = Depends(get_admin_service),
):
    """
    ?operation=tables | schema (default) | table-data&table=...
    """
    if operation == "tables":
        return await _respond(service.list_tables())
    if operation == "table-data":
        if not table:
            return _error(400, "Table name is required")
        return await _respond(
            service.get_table_data(table, columns=columns, limit=limit, offset=offset, order_by=orderBy)
        )
    return await _respond(service.describe_schema())
