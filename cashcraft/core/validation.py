from dataclasses import dataclass, field
from typing import Any, Optional

from pydantic import BaseModel, ValidationError

from cashcraft.schemas.user import LoginRequest, RegistrationRequest

SCHEMAS: dict[str, type[BaseModel]] = {
    "registration": RegistrationRequest,
    "login": LoginRequest,
}


@dataclass
class ValidationResult:
    """Outcome of checking a payload against a named schema.

    On success ``value`` holds the parsed model and ``errors`` is empty. On
    failure ``value`` is ``None`` and ``errors`` lists every violation found,
    each as ``{"message": ..., "path": [...]}``.
    """

    value: Optional[BaseModel] = None
    errors: list[dict[str, Any]] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.errors


def format_errors(exc: ValidationError) -> list[dict[str, Any]]:
    return [
        {"message": error["msg"], "path": [str(part) for part in error["loc"]]}
        for error in exc.errors()
    ]


def validate(schema_name: str, payload: Any) -> ValidationResult:
    """Check *payload* against the schema registered as *schema_name*.

    Raises ``KeyError`` for an unknown schema name.
    """
    schema = SCHEMAS[schema_name]
    try:
        return ValidationResult(value=schema.model_validate(payload))
    except ValidationError as exc:
        return ValidationResult(errors=format_errors(exc))
