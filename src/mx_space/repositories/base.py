"""Generic data access gateway shared by every resource.

``Repository`` wraps one mapped model and exposes the CRUD, filtering,
sorting, projection and pagination primitives the services and routers use.
Each operation opens its own short-lived session from the injected factory so
independent reads (a page and its total count) can run concurrently.
"""
from __future__ import annotations

import asyncio
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any, Generic, TypeVar

from sqlalchemy import ColumnElement, Select, delete, func, inspect, select, update
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from sqlalchemy.orm import selectinload

from mx_space.core.errors import BadInputError, NotFoundError
from mx_space.db.session import Base
from mx_space.services.pager import PageWindow, Pagination, build_pagination

__all__ = [
    "DeleteResult",
    "PageRequest",
    "PageResult",
    "Repository",
    "UpdateResult",
    "column_snapshot",
    "parse_names",
    "strip_forced",
]

ModelT = TypeVar("ModelT", bound=Base)
ItemT = TypeVar("ItemT")

Filters = Mapping[str, Any] | None
FieldNames = str | Sequence[str] | None


@dataclass
class PageRequest:
    """Options for a bounded, sorted and projected listing query.

    Attributes:
        limit: Maximum rows to return; ``None`` means unbounded.
        skip: Rows to skip from the start of the ordered result.
        sort: Field name to direction (``1`` ascending, ``-1`` descending).
        select: Projection, e.g. ``"title created"`` or ``"-text"``.
        populate: Relationship names to expand in the returned snapshots.
    """

    limit: int | None = None
    skip: int = 0
    sort: Mapping[str, int] | None = None
    select: FieldNames = None
    populate: FieldNames = None

    @classmethod
    def from_window(cls, window: PageWindow, **options: Any) -> PageRequest:
        """Build a request for the rows covered by a pagination window."""
        return cls(limit=window.limit, skip=window.skip, **options)


@dataclass
class PageResult(Generic[ItemT]):
    """A point-in-time page of results plus the total match count."""

    data: list[ItemT]
    total: int
    pagination: Pagination

    def to_dict(self) -> dict[str, Any]:
        return {"data": self.data, "total": self.total, "pagination": self.pagination.to_dict()}


@dataclass(frozen=True)
class UpdateResult:
    modified_count: int


@dataclass(frozen=True)
class DeleteResult:
    deleted_count: int


@dataclass(frozen=True)
class _Projection:
    include: frozenset[str] = field(default_factory=frozenset)
    exclude: frozenset[str] = field(default_factory=frozenset)
    forced: frozenset[str] = field(default_factory=frozenset)


def parse_names(value: FieldNames) -> list[str]:
    """Split a space/comma separated string (or pass through a sequence)."""
    if value is None:
        return []
    if isinstance(value, str):
        return [name for name in value.replace(",", " ").split() if name]
    return [name for name in value if name]


def strip_forced(value: FieldNames) -> list[str]:
    """Drop "+name" tokens so a projection cannot pull hidden fields back in."""
    return [name for name in parse_names(value) if not name.startswith("+")]


def column_snapshot(instance: Base, hidden: frozenset[str] = frozenset({"password"})) -> dict[str, Any]:
    """Return the column values of ``instance`` as a plain dict."""
    mapper = inspect(type(instance))
    return {
        attr.key: getattr(instance, attr.key)
        for attr in mapper.column_attrs
        if attr.key not in hidden
    }


class Repository(Generic[ModelT]):
    """Typed CRUD gateway over a single mapped model.

    Filters are a mapping of column name to value: ``None`` matches
    ``IS NULL``, a list/tuple/set matches ``IN`` and anything else matches by
    equality. Extra SQLAlchemy criteria can be passed positionally after the
    mapping. Unknown field names raise ``BadInputError``.
    """

    model: type[ModelT]
    # Columns left out of snapshots unless forced in with "+name".
    hidden_fields: frozenset[str] = frozenset()

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        """Initialize the repository with an async session factory."""
        self.session_factory = session_factory
        mapper = inspect(self.model)
        self._columns = {attr.key for attr in mapper.column_attrs}
        self._relationships = {rel.key for rel in mapper.relationships}
        self._pk = mapper.primary_key[0]

    # --- query building -------------------------------------------------------------
    def _column(self, name: str) -> Any:
        if name not in self._columns:
            raise BadInputError(f"Unknown field '{name}' for {self.model.__name__}")
        return getattr(self.model, name)

    def _criteria(self, filters: Filters, criteria: Sequence[ColumnElement[bool]]) -> list[ColumnElement[bool]]:
        clauses: list[ColumnElement[bool]] = []
        for name, value in (filters or {}).items():
            column = self._column(name)
            if value is None:
                clauses.append(column.is_(None))
            elif isinstance(value, list | tuple | set | frozenset):
                clauses.append(column.in_(list(value)))
            else:
                clauses.append(column == value)
        clauses.extend(criteria)
        return clauses

    def _order_by(self, sort: Mapping[str, int] | None) -> list[Any]:
        ordering = []
        for name, direction in (sort or {}).items():
            column = self._column(name)
            ordering.append(column.desc() if int(direction) < 0 else column.asc())
        return ordering

    def _load_options(self, populate: FieldNames) -> list[Any]:
        options = []
        for name in parse_names(populate):
            if name not in self._relationships:
                raise BadInputError(f"Cannot populate '{name}' on {self.model.__name__}")
            options.append(selectinload(getattr(self.model, name)))
        return options

    def _projection(self, select_: FieldNames) -> _Projection:
        include: set[str] = set()
        exclude: set[str] = set()
        forced: set[str] = set()
        for token in parse_names(select_):
            bucket, name = include, token
            if token[0] in "+-":
                bucket = forced if token[0] == "+" else exclude
                name = token[1:]
            self._column(name)
            bucket.add(name)
        return _Projection(frozenset(include), frozenset(exclude), frozenset(forced))

    def _statement(
        self,
        clauses: Sequence[ColumnElement[bool]],
        *,
        sort: Mapping[str, int] | None = None,
        populate: FieldNames = None,
        limit: int | None = None,
        skip: int = 0,
    ) -> Select[tuple[ModelT]]:
        stmt = select(self.model).where(*clauses)
        ordering = self._order_by(sort)
        if ordering:
            stmt = stmt.order_by(*ordering)
        load_options = self._load_options(populate)
        if load_options:
            stmt = stmt.options(*load_options)
        if skip:
            stmt = stmt.offset(skip)
        if limit is not None:
            stmt = stmt.limit(limit)
        return stmt

    async def _fetch(self, stmt: Select[tuple[ModelT]]) -> list[ModelT]:
        async with self.session_factory() as session:
            result = await session.execute(stmt)
            return list(result.scalars().all())

    async def _count(self, clauses: Sequence[ColumnElement[bool]]) -> int:
        stmt = select(func.count()).select_from(self.model).where(*clauses)
        async with self.session_factory() as session:
            return int((await session.execute(stmt)).scalar_one())

    # --- reads ----------------------------------------------------------------------
    async def find_one(
        self,
        filters: Filters = None,
        *criteria: ColumnElement[bool],
        sort: Mapping[str, int] | None = None,
        populate: FieldNames = None,
    ) -> ModelT | None:
        """Return the first match or ``None``; no error on zero matches."""
        clauses = self._criteria(filters, criteria)
        rows = await self._fetch(self._statement(clauses, sort=sort, populate=populate, limit=1))
        return rows[0] if rows else None

    async def find_by_id(self, entity_id: str, populate: FieldNames = None) -> ModelT | None:
        """Return the entity with ``entity_id`` or ``None``."""
        return await self.find_one(None, self._pk == entity_id, populate=populate)

    async def get_by_id(self, entity_id: str, populate: FieldNames = None) -> ModelT:
        """Return the entity with ``entity_id``.

        Raises:
            NotFoundError: If no such entity exists.
        """
        instance = await self.find_by_id(entity_id, populate=populate)
        if instance is None:
            raise NotFoundError(f"{self.model.__name__} not found")
        return instance

    async def find(
        self,
        filters: Filters = None,
        *criteria: ColumnElement[bool],
        options: PageRequest | None = None,
    ) -> list[ModelT]:
        """Return every match, bounded only when ``options.limit`` is set."""
        options = options or PageRequest()
        clauses = self._criteria(filters, criteria)
        stmt = self._statement(
            clauses,
            sort=options.sort,
            populate=options.populate,
            limit=options.limit,
            skip=options.skip,
        )
        return await self._fetch(stmt)

    async def find_with_paginator(
        self,
        filters: Filters = None,
        *criteria: ColumnElement[bool],
        options: PageRequest,
    ) -> PageResult[dict[str, Any]]:
        """Return one page of projected snapshots plus the total match count.

        The page query and the count query are independent reads issued
        together on separate sessions; the total ignores ``limit``/``skip``.
        """
        clauses = self._criteria(filters, criteria)
        projection = self._projection(options.select)
        stmt = self._statement(
            clauses,
            sort=options.sort,
            populate=options.populate,
            limit=options.limit,
            skip=options.skip,
        )
        rows, total = await asyncio.gather(self._fetch(stmt), self._count(clauses))
        data = [self._snapshot(row, projection, options.populate) for row in rows]
        return PageResult(
            data=data,
            total=total,
            pagination=build_pagination(total, options.skip, options.limit),
        )

    async def count_documents(self, filters: Filters = None, *criteria: ColumnElement[bool]) -> int:
        """Return the number of rows matching the filter."""
        return await self._count(self._criteria(filters, criteria))

    # --- writes ---------------------------------------------------------------------
    async def create_new(self, data: Mapping[str, Any]) -> ModelT:
        """Insert a new row and return it with generated id and timestamps."""
        for name in data:
            self._column(name)
        instance = self.model(**data)
        async with self.session_factory.begin() as session:
            session.add(instance)
        return instance

    async def update(
        self,
        filters: Filters,
        patch: Mapping[str, Any],
        *criteria: ColumnElement[bool],
    ) -> UpdateResult:
        """Apply a partial update; zero matches is reported, not raised."""
        clauses = self._criteria(filters, criteria)
        values = {self._column(name).key: value for name, value in patch.items()}
        if not values:
            return UpdateResult(modified_count=0)
        stmt = (
            update(self.model)
            .where(*clauses)
            .values(**values)
            .execution_options(synchronize_session=False)
        )
        async with self.session_factory.begin() as session:
            result = await session.execute(stmt)
        return UpdateResult(modified_count=result.rowcount or 0)

    async def update_by_id(self, entity_id: str, patch: Mapping[str, Any]) -> UpdateResult:
        return await self.update(None, patch, self._pk == entity_id)

    async def increment(self, filters: Filters, **deltas: int) -> UpdateResult:
        """Atomically add ``deltas`` to counter columns (``col = col + delta``).

        ``modified`` is left untouched.
        """
        clauses = self._criteria(filters, ())
        values = {name: self._column(name) + delta for name, delta in deltas.items()}
        if "modified" in self.model.__table__.c:
            values["modified"] = self.model.__table__.c.modified
        stmt = (
            update(self.model)
            .where(*clauses)
            .values(**values)
            .execution_options(synchronize_session=False)
        )
        async with self.session_factory.begin() as session:
            result = await session.execute(stmt)
        return UpdateResult(modified_count=result.rowcount or 0)

    async def delete_one(self, filters: Filters, *criteria: ColumnElement[bool]) -> DeleteResult:
        """Delete the first matching row."""
        clauses = self._criteria(filters, criteria)
        async with self.session_factory.begin() as session:
            target = await session.scalar(select(self._pk).where(*clauses).limit(1))
            if target is None:
                return DeleteResult(deleted_count=0)
            result = await session.execute(delete(self.model).where(self._pk == target))
        return DeleteResult(deleted_count=result.rowcount or 0)

    async def delete_many(self, filters: Filters, *criteria: ColumnElement[bool]) -> DeleteResult:
        """Delete every matching row."""
        clauses = self._criteria(filters, criteria)
        async with self.session_factory.begin() as session:
            result = await session.execute(delete(self.model).where(*clauses))
        return DeleteResult(deleted_count=result.rowcount or 0)

    async def delete_by_id(self, entity_id: str) -> DeleteResult:
        return await self.delete_many(None, self._pk == entity_id)

    # --- projection -----------------------------------------------------------------
    def snapshot(self, instance: ModelT, select: FieldNames = None, populate: FieldNames = None) -> dict[str, Any]:
        """Project ``instance`` into a plain dict honouring select/populate."""
        return self._snapshot(instance, self._projection(select), populate)

    def _snapshot(self, instance: ModelT, projection: _Projection, populate: FieldNames) -> dict[str, Any]:
        data: dict[str, Any] = {}
        for name in inspect(self.model).column_attrs.keys():
            if name in projection.exclude:
                continue
            if name in self.hidden_fields and name not in projection.forced:
                continue
            if projection.include and name not in projection.include | projection.forced and name != "id":
                continue
            data[name] = getattr(instance, name)

        unloaded = inspect(instance).unloaded
        for name in parse_names(populate):
            if name in unloaded:
                continue
            related = getattr(instance, name)
            if related is None:
                data[name] = None
            elif isinstance(related, list):
                data[name] = [column_snapshot(item, self.hidden_fields | {"password"}) for item in related]
            else:
                data[name] = column_snapshot(related, self.hidden_fields | {"password"})
        return data
