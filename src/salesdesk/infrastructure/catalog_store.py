"""SQL-backed product catalog and chat store.

Talks to the store's Postgres database through SQLAlchemy Core.  Product
rows are addressed by their auto-incrementing ``row_number``, which doubles
as the product id in the dashboard.  Any SQLAlchemy URL works, so tests run
against a throwaway SQLite file.
"""

from __future__ import annotations

import functools
from collections.abc import Callable, Mapping
from datetime import UTC, datetime
from typing import Any, ParamSpec, TypeVar

from loguru import logger
from sqlalchemy import (
    Column,
    DateTime,
    Engine,
    Integer,
    MetaData,
    String,
    Table,
    Text,
    create_engine,
    delete,
    insert,
    inspect,
    select,
    update,
)
from sqlalchemy.exc import SQLAlchemyError

from salesdesk.application.exceptions import (
    NotConfiguredError,
    ProxyRequestError,
    RecordNotFoundError,
    UpstreamError,
)
from salesdesk.domain.models import Category

P = ParamSpec("P")
R = TypeVar("R")

metadata = MetaData()


def _image_and_stock_columns() -> list[Column]:
    return [
        Column("stock_quantity", Integer),
        Column("image_url_1", Text),
        Column("image_url_2", Text),
        Column("updated_at", DateTime(timezone=True)),
    ]


laptops = Table(
    "laptops",
    metadata,
    Column("row_number", Integer, primary_key=True, autoincrement=True),
    Column("brand", String(120)),
    Column("model", String(200)),
    Column("processor", String(120)),
    Column("generation", String(60)),
    Column("ram_gb", Integer),
    Column("storage_type", String(60)),
    Column("storage_gb", Integer),
    Column("screen_size", String(60)),
    Column("graphics", String(120)),
    Column("condition", String(60)),
    Column("price_range", String(120)),
    Column("special_feature", Text),
    Column("warranty_in_months", Integer),
    *_image_and_stock_columns(),
)

desktops = Table(
    "desktops",
    metadata,
    Column("row_number", Integer, primary_key=True, autoincrement=True),
    Column("brand", String(120)),
    Column("model", String(200)),
    Column("processor", String(120)),
    Column("generation", String(60)),
    Column("ram_gb", Integer),
    Column("ram_type", String(60)),
    Column("storage_gb", Integer),
    Column("monitor_size", String(60)),
    Column("graphics", String(120)),
    Column("condition", String(60)),
    Column("price_range", String(120)),
    Column("special_feature", Text),
    Column("warranty_in_months", Integer),
    *_image_and_stock_columns(),
)

accessories = Table(
    "accessories",
    metadata,
    Column("row_number", Integer, primary_key=True, autoincrement=True),
    Column("accessories_name", String(200)),
    Column("price_range_inr", String(120)),
    *_image_and_stock_columns(),
)

chats = Table(
    "chats",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("contact_uid", String(120), nullable=False, index=True),
    Column("content", Text, nullable=False, default=""),
    Column("role", String(20), nullable=False),
    Column("created_at", DateTime(timezone=True), nullable=False),
)

CATEGORY_TABLES: dict[Category, Table] = {
    "laptops": laptops,
    "desktops": desktops,
    "accessories": accessories,
}

_READ_ONLY_COLUMNS = frozenset({"row_number", "updated_at"})


def _utcnow() -> datetime:
    return datetime.now(UTC)


def _coerce(column: Column, value: Any) -> Any:
    """Convert form values ("5", "") into what the column type expects."""
    if isinstance(column.type, Integer):
        if value is None or value == "":
            return None
        try:
            return int(value)
        except (TypeError, ValueError) as exc:
            raise ProxyRequestError(f"{column.name} must be a whole number") from exc
    if value is not None and not isinstance(value, str):
        return str(value)
    return value


def _database_errors(func: Callable[P, R]) -> Callable[P, R]:
    """Surface driver and SQL failures as a 500 upstream error."""

    @functools.wraps(func)
    def wrapper(*args: P.args, **kwargs: P.kwargs) -> R:
        try:
            return func(*args, **kwargs)
        except SQLAlchemyError as exc:
            logger.error("Database error in {} | {}", func.__name__, exc)
            raise UpstreamError(f"Database error: {exc}", status_code=500) from exc

    return wrapper


class SqlCatalogStore:
    """CRUD on the category tables plus the chat log."""

    def __init__(self, database_url: str, create_schema: bool = False) -> None:
        self.database_url = database_url
        self.create_schema = create_schema
        self.engine: Engine | None = None

    def connect(self) -> None:
        """Create the engine (and the tables, when asked to)."""
        if not self.database_url:
            return
        self.engine = create_engine(self.database_url, pool_pre_ping=True)
        if self.create_schema:
            metadata.create_all(self.engine)
        logger.info("Catalog database ready | dialect={}", self.engine.dialect.name)

    def close(self) -> None:
        if self.engine:
            self.engine.dispose()
            self.engine = None

    # ------------------------------------------------------------------
    # Introspection
    # ------------------------------------------------------------------

    @_database_errors
    def list_tables(self) -> list[str]:
        return sorted(inspect(self._engine()).get_table_names())

    @_database_errors
    def describe_table(self, table: str) -> list[dict[str, Any]]:
        inspector = inspect(self._engine())
        if table not in inspector.get_table_names():
            raise ProxyRequestError(f"Unknown table: {table}")
        return [
            {"name": col["name"], "type": str(col["type"]), "nullable": bool(col["nullable"])}
            for col in inspector.get_columns(table)
        ]

    # ------------------------------------------------------------------
    # Products
    # ------------------------------------------------------------------

    @_database_errors
    def list_rows(self, category: Category) -> list[dict[str, Any]]:
        table = CATEGORY_TABLES[category]
        with self._engine().connect() as conn:
            rows = conn.execute(select(table).order_by(table.c.row_number)).mappings().all()
        return [dict(row) for row in rows]

    @_database_errors
    def insert_row(self, category: Category, data: Mapping[str, Any]) -> dict[str, Any]:
        table = CATEGORY_TABLES[category]
        values = self._writable_values(table, data)
        with self._engine().begin() as conn:
            row = conn.execute(insert(table).values(**values).returning(*table.c)).mappings().one()
        logger.info("Inserted {} row {}", category, row["row_number"])
        return dict(row)

    @_database_errors
    def update_row(
        self, category: Category, row_number: int, data: Mapping[str, Any]
    ) -> dict[str, Any]:
        table = CATEGORY_TABLES[category]
        values = self._writable_values(table, data)
        stmt = (
            update(table)
            .where(table.c.row_number == row_number)
            .values(**values)
            .returning(*table.c)
        )
        with self._engine().begin() as conn:
            row = conn.execute(stmt).mappings().one_or_none()
        if row is None:
            raise RecordNotFoundError(f"No {category} row with id {row_number}")
        logger.info("Updated {} row {}", category, row_number)
        return dict(row)

    @_database_errors
    def delete_row(self, category: Category, row_number: int) -> None:
        table = CATEGORY_TABLES[category]
        with self._engine().begin() as conn:
            conn.execute(delete(table).where(table.c.row_number == row_number))
        logger.info("Deleted {} row {}", category, row_number)

    # ------------------------------------------------------------------
    # Chats
    # ------------------------------------------------------------------

    @_database_errors
    def list_chats(self) -> list[dict[str, Any]]:
        stmt = select(chats).order_by(chats.c.created_at.desc(), chats.c.id.desc())
        with self._engine().connect() as conn:
            rows = conn.execute(stmt).mappings().all()
        return [dict(row) for row in rows]

    @_database_errors
    def insert_chat_message(
        self, contact_uid: str, content: str, role: str = "assistant"
    ) -> dict[str, Any]:
        stmt = (
            insert(chats)
            .values(contact_uid=contact_uid, content=content, role=role, created_at=_utcnow())
            .returning(*chats.c)
        )
        with self._engine().begin() as conn:
            row = conn.execute(stmt).mappings().one()
        return dict(row)

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    def _engine(self) -> Engine:
        if self.engine is None:
            raise NotConfiguredError("Database connection not configured")
        return self.engine

    @staticmethod
    def _writable_values(table: Table, data: Mapping[str, Any]) -> dict[str, Any]:
        """Keep only the table's own editable columns and stamp ``updated_at``."""
        values = {
            name: _coerce(table.c[name], value)
            for name, value in data.items()
            if name in table.c and name not in _READ_ONLY_COLUMNS
        }
        values["updated_at"] = _utcnow()
        return values
