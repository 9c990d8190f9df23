"""Client errors that mean the SurrealDB store is unavailable"""

from ....errors import translate_errors

# ConnectionError is an OSError; the SDK surfaces socket and engine I/O failures as these
store_errors = translate_errors(OSError, TimeoutError)
