"""
Custom database exceptions for the typing dashboard.
"""


class DatabaseError(Exception):
    """Base class for all database-related exceptions."""


class DBConnectionError(DatabaseError):
    """Raised when the Postgres store cannot be reached."""


class ForeignKeyError(DatabaseError):
    """Raised when a foreign key constraint fails (e.g. a summary for an unknown user)."""


class ConstraintError(DatabaseError):
    """Raised when a NOT NULL or UNIQUE constraint is violated."""


class DatabaseTypeError(DatabaseError, TypeError):
    """Raised when a query parameter does not match the column type."""


class IntegrityError(DatabaseError):
    """Raised when database integrity is violated."""


class SchemaError(DatabaseError):
    """Raised when a query references a column the schema does not have."""


class TableNotFoundError(DatabaseError):
    """Raised when a table is not found in the configured schema."""
