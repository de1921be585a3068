"""Schema validation of untrusted model output.

Models are prompted to emit JSON, but nothing guarantees they do. `parse_structured`
extracts the JSON, validates it strictly against a Pydantic schema and raises
`SchemaValidationError` listing every violation. Data is never coerced or
truncated to make it fit.
"""

from typing import Any, TypeVar

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from press_engine.core.errors import AIValidationError, SchemaValidationError, Violation
from press_engine.core.llm import extract_json_text

T = TypeVar("T", bound=BaseModel)


def violations_from(exc: PydanticValidationError) -> list[Violation]:
    """Convert a Pydantic error into (field path, reason) violations."""
    violations = []
    for err in exc.errors():
        path = ".".join(str(part) for part in err.get("loc", ())) or "$"
        violations.append(Violation(path=path, reason=err.get("msg", "invalid")))
    return violations


def parse_structured(schema: type[T], raw_text: str) -> T:
    """
    Parse raw model text as JSON and validate it against a schema.

    Args:
        schema: Pydantic model class describing the expected shape
        raw_text: Raw string returned by the completion provider

    Returns:
        Validated schema instance with declared defaults applied

    Raises:
        SchemaValidationError: If the text is not JSON or violates the schema
    """
    if not isinstance(raw_text, str) or not raw_text.strip():
        raise SchemaValidationError(schema.__name__, [Violation("$", "empty model output")])

    json_text = extract_json_text(raw_text)
    try:
        return schema.model_validate_json(json_text, strict=True)
    except PydanticValidationError as e:
        raise SchemaValidationError(schema.__name__, violations_from(e)) from e


def validate_output(schema: type[T], data: Any) -> T:
    """
    Validate an already-decoded chain result (model instance or dict).

    Raises:
        SchemaValidationError: If the data violates the schema
    """
    if isinstance(data, schema):
        return data
    try:
        return schema.model_validate(data)
    except PydanticValidationError as e:
        raise SchemaValidationError(schema.__name__, violations_from(e)) from e


def validate_input(schema: type[T], data: Any) -> T:
    """
    Validate caller-supplied input.

    Raises:
        AIValidationError: With the list of violations
    """
    if isinstance(data, schema):
        return data
    try:
        return schema.model_validate(data)
    except PydanticValidationError as e:
        raise AIValidationError("Invalid input", violations=violations_from(e)) from e
