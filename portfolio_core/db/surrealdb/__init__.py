"""SurrealDB backend for the portfolio core"""

from .connection import SurrealStore, SCHEMA_PATH

__all__ = [
    "SurrealStore",
    "SCHEMA_PATH",
]
