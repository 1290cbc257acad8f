"""apidescribe.introspect - Declaration introspection adapters.

- python: classes in Python source (ast + tokenize)
- sql: CREATE TABLE statements (pglast)
- postgres: live tables through a psycopg cursor
"""

from apidescribe.introspect.postgres import declaration_from_table
from apidescribe.introspect.python import (
    declaration_from_class,
    declaration_from_source,
    declarations_from_source,
)
from apidescribe.introspect.sql import declarations_from_sql

__all__ = [
    "declaration_from_class",
    "declaration_from_source",
    "declaration_from_table",
    "declarations_from_source",
    "declarations_from_sql",
]
