"""Driver errors that mean the PostgreSQL store is unavailable"""

from sqlalchemy.exc import InterfaceError, OperationalError

from ....errors import translate_errors

store_errors = translate_errors(OperationalError, InterfaceError, OSError, TimeoutError)
