from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Any, Mapping, Sequence

from ..db import Executor, QueryResult
from .predicate import PLACEHOLDER, Predicate, finalize, quote_ident


class QueryBuilder:
    """SELECT statement under construction. Built per call and discarded."""

    def __init__(self, table: "Table", columns: Sequence[str]):
        self.table = table
        self.columns = list(columns)
        self.predicate: Predicate | None = None
        self._order: tuple[str, bool] | None = None
        self._limit = 0
        self._offset = 0

    def where(self, predicate: Predicate | None) -> "QueryBuilder":
        self.predicate = predicate
        return self

    def order_by(self, column: str, descending: bool = False) -> "QueryBuilder":
        self.table.check_columns([column])
        self._order = (column, descending)
        return self

    def limit(self, n: int) -> "QueryBuilder":
        self._limit = int(n)
        return self

    def offset(self, m: int) -> "QueryBuilder":
        self._offset = int(m)
        return self

    def build(self) -> tuple[str, list[Any]]:
        sql = f"SELECT {', '.join(self.columns)} FROM {quote_ident(self.table.name)}"
        params: list[Any] = []
        if self.predicate is not None:
            self.table.check_columns(self.predicate.columns())
            fragment, params = self.predicate.compile()
            sql += f" WHERE {fragment}"
        if self._order is not None:
            col, desc = self._order
            sql += f" ORDER BY {quote_ident(col)} {'DESC' if desc else 'ASC'}"
        # offset only applies together with a positive limit
        if self._limit > 0:
            sql += f" LIMIT {self._limit}"
            if self._offset > 0:
                sql += f" OFFSET {self._offset}"
        return finalize(sql, params), params

    def execute(self) -> QueryResult:
        sql, params = self.build()
        return self.table.executor.execute(sql, params)


@dataclass(frozen=True)
class Table:
    executor: Executor
    name: str
    columns: tuple[str, ...]

    def bind(self, executor: Executor) -> "Table":
        return replace(self, executor=executor)

    def check_columns(self, columns) -> None:
        for c in columns:
            if c not in self.columns:
                raise ValueError(f"unknown_column: {self.name}.{c}")

    def select(self, columns: str | Sequence[str] = "*") -> QueryBuilder:
        if isinstance(columns, str):
            columns = [columns]
        return QueryBuilder(self, columns)

    def insert(self, values: Sequence[Any]) -> QueryResult:
        # values are positional, in declared column order
        markers = ", ".join(f"?{i}" for i in range(1, len(values) + 1))
        sql = f"INSERT INTO {quote_ident(self.name)} VALUES ({markers})"
        return self.executor.execute(sql, list(values))

    def update(self, predicate: Predicate | None, fields: Mapping[str, Any]) -> QueryResult:
        if predicate is None:
            raise ValueError(f"unscoped_update: {self.name}")
        if not fields:
            raise ValueError(f"empty_update: {self.name}")
        self.check_columns(fields.keys())
        self.check_columns(predicate.columns())

        assignments = ", ".join(f"{quote_ident(k)}={PLACEHOLDER}" for k in fields)
        params = list(fields.values())
        fragment, where_params = predicate.compile()
        params.extend(where_params)
        sql = f"UPDATE {quote_ident(self.name)} SET {assignments} WHERE {fragment}"
        return self.executor.execute(finalize(sql, params), params)

    def delete(self, predicate: Predicate | None) -> QueryResult:
        if predicate is None:
            raise ValueError(f"unscoped_delete: {self.name}")
        self.check_columns(predicate.columns())
        fragment, params = predicate.compile()
        sql = f"DELETE FROM {quote_ident(self.name)} WHERE {fragment}"
        return self.executor.execute(finalize(sql, params), params)

    def next_id(self) -> int:
        res = self.select("COALESCE(MAX(id), -1) + 1 AS next_id").execute()
        return int(res.rows[0]["next_id"])
