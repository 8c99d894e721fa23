"""
Portable column type and predicate for ancestor-id arrays.

PostgreSQL stores the ancestor list as a native ``VARCHAR[]`` and tests membership
with the array containment operator ``@>``, which the GIN index on the column serves
(a scalar ``= ANY(...)`` would not use it). SQLite has no array type, so the same
column is stored as JSON and membership is answered by ``json_each``.
"""

from sqlalchemy import JSON, String
from sqlalchemy.dialects.postgresql import ARRAY
from sqlalchemy.ext.compiler import compiles
from sqlalchemy.sql.expression import FunctionElement
from sqlalchemy.types import Boolean

AncestorIds = ARRAY(String(36)).with_variant(JSON(), "sqlite")


class path_contains(FunctionElement):
    """Boolean predicate: ``value`` is an element of the ancestor array ``column``.

    Usage::

        select(Category.id).where(path_contains(Category.path_ids, category_id))
    """

    type = Boolean()
    name = "path_contains"
    inherit_cache = True


@compiles(path_contains)
def _compile_path_contains(element, compiler, **kw):
    column, value = list(element.clauses)
    return f"{compiler.process(column, **kw)} @> ARRAY[CAST({compiler.process(value, **kw)} AS VARCHAR)]"


@compiles(path_contains, "sqlite")
def _compile_path_contains_sqlite(element, compiler, **kw):
    column, value = list(element.clauses)
    return (
        f"EXISTS (SELECT 1 FROM json_each({compiler.process(column, **kw)}) "
        f"WHERE json_each.value = {compiler.process(value, **kw)})"
    )
