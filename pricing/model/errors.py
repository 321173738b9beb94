"""
Error hierarchy for the pricing system.

Errors fall into three groups:
- Evaluation errors raised while walking an expression tree
- Calculation errors raised while pricing an order against a tariff
- Model errors raised by invalid assignments or lifecycle transitions
"""


class PricingError(Exception):
    """Base class for every error raised by the pricing system."""


class EvaluationError(PricingError):
    """An expression could not be evaluated."""


class ParameterNotFound(EvaluationError):
    """A parameter reference has no value in the evaluation context."""

    def __init__(self, parameter_id: int):
        super().__init__(f"Parameter {parameter_id} not found in context")
        self.parameter_id = parameter_id


class TypeMismatch(EvaluationError):
    """An operand has a kind the operator cannot work with."""


class DivisionByZero(EvaluationError):
    """Right operand of a division is zero."""

    def __init__(self):
        super().__init__("Division by zero")


class UnsupportedOperator(EvaluationError):
    """Unknown operator or expression node."""


class CalculationError(PricingError):
    """A tariff could not produce a cost for an order."""


class TariffInvalid(CalculationError):
    """Tariff is inactive or outside its validity window."""


class TariffHasNoRules(CalculationError):
    """Tariff has no pricing rules."""


class NoApplicableRule(CalculationError):
    """No rule of the tariff produced a value."""


class NonNumericResult(CalculationError):
    """The winning rule produced a value that is not a number."""


class TariffCalculationError(CalculationError):
    """
    Failure while pricing against a specific tariff.

    Attributes:
        tariff_name: Name of the tariff that failed
        cause: The underlying error
    """

    def __init__(self, tariff_name: str, cause: Exception):
        super().__init__(f"Cost calculation with tariff '{tariff_name}' failed: {cause}")
        self.tariff_name = tariff_name
        self.cause = cause


class ParameterTypeError(PricingError, ValueError):
    """A value does not match the declared parameter type."""


class OrderStateError(PricingError, ValueError):
    """An order lifecycle transition is not allowed from its current status."""


class EntityNotFound(PricingError, KeyError):
    """An order or tariff id is unknown to the service."""

    def __str__(self) -> str:
        return str(self.args[0]) if self.args else ""
