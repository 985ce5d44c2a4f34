"""Exceptions shared across apps."""
from typing import Dict, List


class FieldValidationError(ValueError):
    """
    Business-rule violation tied to a single request field.

    Rendered by the API as a 422 with ``{"errors": {field: [message]}}``,
    the same envelope used for schema validation failures.
    """

    def __init__(self, field: str, message: str):
        super().__init__(message)
        self.field = field
        self.message = message

    def as_errors(self) -> Dict[str, List[str]]:
        return {self.field: [self.message]}
