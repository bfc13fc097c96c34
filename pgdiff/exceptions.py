"""Exception classes for pgdiff.

Structural differences between two schemas are results, not errors; these
exceptions only cover failures to obtain a snapshot in the first place.
"""


class PgDiffError(Exception):
    """Base exception class for pgdiff."""

    def __init__(self, message: str, details: dict | None = None):
        self.message = message
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> dict:
        """Convert the exception to a dictionary format."""
        return {
            "error": type(self).__name__,
            "message": self.message,
            "details": self.details,
        }


class IntrospectionError(PgDiffError):
    """A schema snapshot could not be built from the database catalog."""

    def __init__(self, instance: str, schema_name: str, reason: str):
        super().__init__(
            message=f"Failed to read schema {instance}.{schema_name}: {reason}",
            details={"instance": instance, "schema": schema_name},
        )
        self.instance = instance
        self.schema_name = schema_name


class UnknownInstanceError(IntrospectionError):
    """The requested instance name has no configured connection string."""

    def __init__(self, instance: str, schema_name: str = ""):
        super().__init__(instance, schema_name, f"instance {instance!r} is not configured")
