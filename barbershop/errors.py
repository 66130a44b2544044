# barbershop/errors.py

from typing import Iterable, List, Optional, Tuple


class DomainError(Exception):
    status_code = 500
    error_type = "DOMAIN_ERROR"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def serialize(self) -> dict:
        return {"type": self.error_type, "message": self.message}


class ValidationError(DomainError):
    """Malformed input. Carries (field, message) pairs."""

    status_code = 400
    error_type = "VALIDATION_ERROR"

    def __init__(self, errors: Iterable[Tuple[str, str]]):
        super().__init__("Validation failed")
        self.errors: List[Tuple[str, str]] = list(errors)

    def serialize(self) -> dict:
        return {
            "type": self.error_type,
            "message": self.message,
            "errors": [{"path": path, "error": error} for path, error in self.errors],
        }

    @classmethod
    def from_details(cls, details: Iterable[dict]) -> "ValidationError":
        """Build from pydantic/FastAPI style error dicts (loc, msg)."""
        return cls(
            (".".join(str(part) for part in err["loc"]), err["msg"]) for err in details
        )


class NotFoundError(DomainError):
    status_code = 404
    error_type = "NOT_FOUND"

    def __init__(self, entity: str, entity_id: Optional[object] = None):
        if entity_id is None:
            message = f"{entity} not found"
        else:
            message = f"{entity} with ID {entity_id} not found"
        super().__init__(message)
        self.entity = entity
        self.entity_id = entity_id


class BusinessRuleError(DomainError):
    status_code = 422
    error_type = "BUSINESS_RULE_ERROR"


class UnexpectedError(DomainError):
    error_type = "UNEXPECTED_ERROR"

    def __init__(self, cause: BaseException, production: bool = False):
        if production:
            message = "An unexpected error occurred"
        else:
            message = f"Unexpected error: {cause}"
        super().__init__(message)
        self.cause = cause
