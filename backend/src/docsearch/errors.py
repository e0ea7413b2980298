"""Base exception for failures the query service reports to clients.

Every component raises a subclass of ``SearchError`` for problems that should
become an HTTP 500 with a readable message. The message must be safe to show
to a browser: no credentials, no tracebacks.
"""


class SearchError(Exception):
    """Base class for search subsystem errors."""

    pass


class NotFoundError(SearchError):
    """A file the service needs does not exist."""

    def __init__(self, message: str, path: str | None = None):
        self.message = message
        self.path = path
        super().__init__(message)
