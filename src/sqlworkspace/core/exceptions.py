"""Custom exceptions for SQL Workspace."""


class WorkspaceError(Exception):
    """Base exception for SQL Workspace."""
    pass


class ValidationError(WorkspaceError):
    """Raised when a request is malformed or unsafe. Nothing is executed."""
    pass


class NotFoundError(WorkspaceError):
    """Raised when a named table has no columns in the catalog."""
    pass


class UpstreamModelError(WorkspaceError):
    """Raised when the language model call fails or returns unusable content."""
    pass


class QueryError(WorkspaceError):
    """Raised when the database rejects a statement."""
    pass
