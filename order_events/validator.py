import logging
from dataclasses import dataclass, field
from typing import Any

from pydantic import ValidationError

from order_events.schemas import EVENT_SCHEMAS, EventEnvelope, EventType, to_wire

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ValidationResult:
    is_valid: bool
    event: EventEnvelope | None = None
    error: str | None = None
    details: list[dict[str, Any]] = field(default_factory=list)
    supported_types: list[str] = field(default_factory=list)

    @property
    def sanitized(self) -> dict[str, Any] | None:
        if self.event is None:
            return None
        return to_wire(self.event)


def _error_details(exc: ValidationError) -> list[dict[str, Any]]:
    return [
        {
            "field": ".".join(str(part) for part in error["loc"]),
            "message": error["msg"],
            "type": error["type"],
        }
        for error in exc.errors()
    ]


class EventValidator:
    @staticmethod
    def validate(event: Any) -> ValidationResult:
        try:
            envelope = EventEnvelope.model_validate(event)
        except ValidationError as e:
            return ValidationResult(
                is_valid=False,
                error=f"Base validation failed: {e.error_count()} error(s)",
                details=_error_details(e),
            )

        schema = EventValidator.get_schema(envelope.type)
        if schema is None:
            return ValidationResult(
                is_valid=False,
                error=f"Unknown event type: {envelope.type}",
                supported_types=EventValidator.get_supported_types(),
            )

        try:
            typed_event = schema.model_validate(event)
        except ValidationError as e:
            return ValidationResult(
                is_valid=False,
                error=f"Event validation failed for {envelope.type}: {e.error_count()} error(s)",
                details=_error_details(e),
            )

        return ValidationResult(is_valid=True, event=typed_event)

    @staticmethod
    def get_schema(event_type: str) -> type[EventEnvelope] | None:
        try:
            return EVENT_SCHEMAS[EventType(event_type)]
        except ValueError:
            return None

    @staticmethod
    def get_supported_types() -> list[str]:
        return [event_type.value for event_type in EventType]
