"""Repository layer: dynamic SQL construction over the SQLite execution boundary.

Predicates compile to placeholder text; Table/QueryBuilder finalize and execute it,
so the domain layer never writes SQL strings.
"""
from __future__ import annotations

from .predicate import Predicate, all_of
from .schema import get_table
from .table import QueryBuilder, Table

__all__ = ["Predicate", "QueryBuilder", "Table", "all_of", "get_table"]
