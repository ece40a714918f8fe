import pytest
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from instabids.core.exceptions import FieldValidationError, NotFoundError
from instabids.repositories.admin_repo import AdminRepository, parse_column


@pytest.fixture
async def session():
    engine = create_async_engine("sqlite+aiosqlite://", poolclass=StaticPool)
    factory = sessionmaker(bind=engine, class_=AsyncSession, expire_on_commit=False)
    async with factory() as session:
        yield session
    await engine.dispose()


@pytest.fixture
async def repo(session):
    repo = AdminRepository(session)
    await repo.create_table("job_types", {
        "id": "integer primary key",
        "name": "text not null",
        "display_name": "varchar",
        "sort_order": "integer",
    })
    return repo


async def test_insert_and_select(repo):
    inserted = await repo.insert_rows("job_types", [
        {"id": 1, "name": "renovation", "display_name": "Renovation", "sort_order": 2},
        {"id": 2, "name": "repair", "display_name": "Repair", "sort_order": 1},
    ])
    assert [r["name"] for r in inserted] == ["renovation", "repair"]

    rows = await repo.select_rows("job_types", columns="name,sort_order", order_by="sort_order.desc")
    assert rows == [{"name": "renovation", "sort_order": 2}, {"name": "repair", "sort_order": 1}]

    page = await repo.select_rows("job_types", order_by="id", limit=1, offset=1)
    assert [r["id"] for r in page] == [2]


async def test_update_and_delete_with_filters(repo):
    await repo.insert_rows("job_types", {"id": 1, "name": "renovation"})
    await repo.insert_rows("job_types", {"id": 2, "name": "repair"})

    updated = await repo.update_rows("job_types", {"display_name": "Repairs"}, {"name": "repair"})
    assert [(r["id"], r["display_name"]) for r in updated] == [(2, "Repairs")]

    deleted = await repo.delete_rows("job_types", {"id": 1})
    assert [r["name"] for r in deleted] == ["renovation"]
    assert [r["id"] for r in await repo.select_rows("job_types")] == [2]


async def test_unknown_table(repo):
    with pytest.raises(NotFoundError):
        await repo.select_rows("no_such_table")


async def test_unknown_column(repo):
    with pytest.raises(FieldValidationError) as exc_info:
        await repo.insert_rows("job_types", {"id": 1, "colour": "red"})
    assert exc_info.value.fields == ["data"]

    with pytest.raises(FieldValidationError) as exc_info:
        await repo.select_rows("job_types", order_by="colour.desc")
    assert exc_info.value.fields == ["orderBy"]


async def test_malformed_payload_shapes(repo):
    with pytest.raises(FieldValidationError) as exc_info:
        await repo.insert_rows("job_types", "oops")
    assert exc_info.value.fields == ["data"]

    with pytest.raises(FieldValidationError) as exc_info:
        await repo.insert_rows("job_types", [{"id": 1, "name": "repair"}, 7])
    assert exc_info.value.fields == ["data"]

    with pytest.raises(FieldValidationError) as exc_info:
        await repo.update_rows("job_types", {"name": "x"}, [1])
    assert exc_info.value.fields == ["filters"]

    with pytest.raises(FieldValidationError) as exc_info:
        await repo.delete_rows("job_types", "id=1")
    assert exc_info.value.fields == ["filters"]

    assert await repo.select_rows("job_types") == []


def test_parse_column():
    column = parse_column("id", "integer primary key")
    assert column.primary_key
    assert not column.nullable
    assert not parse_column("name", "text not null").nullable
    assert parse_column("code", "varchar unique").unique


def test_parse_column_rejects_unknown_type_and_bad_names():
    with pytest.raises(FieldValidationError):
        parse_column("id", "serial8")
    with pytest.raises(FieldValidationError):
        parse_column("drop table x;", "text")


async def test_list_tables_and_schema(repo):
    assert await repo.list_tables() == ["job_types"]

    schema = await repo.describe_schema()
    assert schema[0]["table"] == "job_types"
    columns = {c["name"]: c for c in schema[0]["columns"]}
    assert columns["id"]["primary_key"]
    assert not columns["name"]["nullable"]
