"""
Parameter values and parameter definitions.

Every order parameter, expression constant and evaluation result is a
ParameterValue: a closed tagged value with one of six kinds. Integers
coerce to doubles for arithmetic and comparison; nothing else coerces.
"""

from enum import Enum
from dataclasses import dataclass
from datetime import date, datetime
from typing import Any, Optional

from pricing.model.errors import ParameterTypeError


class ValueKind(Enum):
    """Kind tag of a ParameterValue."""
    EMPTY = "EMPTY"
    INTEGER = "INTEGER"
    DOUBLE = "DOUBLE"
    STRING = "STRING"
    BOOLEAN = "BOOLEAN"
    DATE = "DATE"


@dataclass(frozen=True)
class ParameterValue:
    """
    Tagged parameter value.

    Attributes:
        kind: Which of the six kinds this value is
        value: The Python payload (None for EMPTY)
    """
    kind: ValueKind
    value: Any = None

    @staticmethod
    def integer(value: int) -> "ParameterValue":
        return ParameterValue(ValueKind.INTEGER, int(value))

    @staticmethod
    def double(value: float) -> "ParameterValue":
        return ParameterValue(ValueKind.DOUBLE, float(value))

    @staticmethod
    def string(value: str) -> "ParameterValue":
        return ParameterValue(ValueKind.STRING, str(value))

    @staticmethod
    def boolean(value: bool) -> "ParameterValue":
        return ParameterValue(ValueKind.BOOLEAN, bool(value))

    @staticmethod
    def date(value: date) -> "ParameterValue":
        if isinstance(value, datetime):
            value = value.date()
        return ParameterValue(ValueKind.DATE, value)

    @staticmethod
    def of(value: Any) -> "ParameterValue":
        """
        Wrap a plain Python value.

        Args:
            value: None, bool, int, float, str, date or an existing ParameterValue

        Returns:
            ParameterValue of the matching kind

        Raises:
            TypeError: If the value has no matching kind
        """
        if isinstance(value, ParameterValue):
            return value
        if value is None:
            return EMPTY
        # bool is an int subclass, check it first
        if isinstance(value, bool):
            return ParameterValue.boolean(value)
        if isinstance(value, int):
            return ParameterValue.integer(value)
        if isinstance(value, float):
            return ParameterValue.double(value)
        if isinstance(value, str):
            return ParameterValue.string(value)
        if isinstance(value, date):
            return ParameterValue.date(value)
        raise TypeError(f"Unsupported parameter value: {value!r}")

    @property
    def is_empty(self) -> bool:
        return self.kind == ValueKind.EMPTY

    def as_double(self) -> Optional[float]:
        """Numeric view of the value (INTEGER or DOUBLE only)."""
        if self.kind in (ValueKind.INTEGER, ValueKind.DOUBLE):
            return float(self.value)
        return None

    def as_boolean(self) -> Optional[bool]:
        if self.kind == ValueKind.BOOLEAN:
            return self.value
        return None

    def as_string(self) -> Optional[str]:
        if self.kind == ValueKind.STRING:
            return self.value
        return None

    def __str__(self) -> str:
        if self.is_empty:
            return "null"
        if self.kind == ValueKind.STRING:
            return f'"{self.value}"'
        if self.kind == ValueKind.BOOLEAN:
            return "true" if self.value else "false"
        if self.kind == ValueKind.DATE:
            return self.value.isoformat()
        return repr(self.value)


EMPTY = ParameterValue(ValueKind.EMPTY)


class ParameterType(Enum):
    """Declared type of a parameter."""
    INTEGER = 0
    DOUBLE = 1
    STRING = 2
    BOOLEAN = 3
    ENUMERATION = 4
    DATE = 5

    def accepts(self, value: ParameterValue) -> bool:
        """Check whether a value may be stored in a parameter of this type."""
        if value.is_empty:
            return True
        return value.kind in _ACCEPTED_KINDS[self]


_ACCEPTED_KINDS = {
    ParameterType.INTEGER: (ValueKind.INTEGER,),
    ParameterType.DOUBLE: (ValueKind.DOUBLE, ValueKind.INTEGER),
    ParameterType.STRING: (ValueKind.STRING,),
    ParameterType.BOOLEAN: (ValueKind.BOOLEAN,),
    ParameterType.ENUMERATION: (ValueKind.STRING,),
    ParameterType.DATE: (ValueKind.DATE,),
}


def check_value(parameter_type: ParameterType, value: ParameterValue, name: str) -> None:
    """Raise ParameterTypeError unless the value fits the declared type."""
    if not parameter_type.accepts(value):
        raise ParameterTypeError(
            f"Value of kind {value.kind.value} is not valid for "
            f"{parameter_type.name} parameter {name}"
        )


@dataclass
class Parameter:
    """
    Catalog definition of a parameter, optionally holding a value.

    Attributes:
        parameter_id: Unique identifier
        code: Short parameter code (e.g., 'WEIGHT')
        name: Human readable name
        parameter_type: Declared type
        unit: Unit of measure
        required: Whether a value must be present for validation
        value: Current value
        note: Free-form note
    """
    parameter_id: int
    code: str
    name: str
    parameter_type: ParameterType
    unit: Optional[str] = None
    required: bool = False
    value: ParameterValue = EMPTY
    note: Optional[str] = None

    def __post_init__(self):
        check_value(self.parameter_type, self.value, self.name)

    def set_value(self, value: Any) -> None:
        """Assign a value, enforcing the declared type."""
        wrapped = ParameterValue.of(value)
        check_value(self.parameter_type, wrapped, self.name)
        self.value = wrapped

    def has_value(self) -> bool:
        return not self.value.is_empty

    def validate(self) -> bool:
        """A required parameter must hold a value."""
        return self.has_value() or not self.required
