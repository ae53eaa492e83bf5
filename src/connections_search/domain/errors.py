"""Error kinds surfaced by the keyword index.

Callers translate these into transport-level responses; the index itself
never turns a failure into an empty result.
"""


class SearchIndexError(Exception):
    """Base class for keyword index failures."""


class SchemaUnavailableError(SearchIndexError):
    """Raised when the keyspace or index table could not be created.

    Fatal at startup: nothing else can work without the table.
    """


class StorageUnavailableError(SearchIndexError):
    """Raised when a read or write against the cluster fails.

    The driver exception is kept as ``__cause__``. No retry is attempted.
    """

    def __init__(self, operation: str, message: str) -> None:
        super().__init__(f"{operation} failed: {message}")
        self.operation = operation
