"""
Expression trees and their evaluator.

A pricing expression is an immutable tree built from five node kinds:
- Constant: a fixed ParameterValue
- ParameterRef: the value of an order parameter
- Arithmetic: ADD, SUB, MUL, DIV over two numeric operands
- Comparison: LT, LE, EQ, GE, GT, NE over two numeric operands
- Logical: AND, OR (short-circuit) and NOT over boolean operands

Evaluation is pure: the same tree and context always give the same value
or the same error.
"""

from enum import Enum
from dataclasses import dataclass
from typing import Any, Dict, Mapping, Optional, Tuple, Union

from pricing.model.errors import (
    DivisionByZero,
    ParameterNotFound,
    TypeMismatch,
    UnsupportedOperator,
)
from pricing.model.values import ParameterValue


class ArithmeticOperator(Enum):
    ADD = "+"
    SUB = "-"
    MUL = "*"
    DIV = "/"


class ComparisonOperator(Enum):
    LT = "<"
    LE = "<="
    EQ = "="
    GE = ">="
    GT = ">"
    NE = "<>"


class LogicalOperator(Enum):
    AND = "AND"
    OR = "OR"
    NOT = "NOT"


class FunctionType(Enum):
    """Role an expression plays inside a rule."""
    PREDICATE = 0
    ARITHMETIC = 1
    LOGICAL = 2


class Context:
    """
    Runtime binding of parameter ids and named constants to values.

    A context copies the mappings it is built from and is never changed
    during evaluation.
    """

    def __init__(
        self,
        parameters: Optional[Mapping[int, ParameterValue]] = None,
        constants: Optional[Mapping[str, ParameterValue]] = None,
    ):
        self._parameters: Dict[int, ParameterValue] = dict(parameters or {})
        self._constants: Dict[str, ParameterValue] = dict(constants or {})

    def get_parameter(self, parameter_id: int) -> Optional[ParameterValue]:
        return self._parameters.get(parameter_id)

    def get_constant(self, name: str) -> Optional[ParameterValue]:
        return self._constants.get(name)

    def with_constant(self, name: str, value: Any) -> "Context":
        """Return a copy of this context with one more named constant."""
        constants = dict(self._constants)
        constants[name] = ParameterValue.of(value)
        return Context(self._parameters, constants)

    @property
    def parameters(self) -> Dict[int, ParameterValue]:
        return dict(self._parameters)

    @property
    def constants(self) -> Dict[str, ParameterValue]:
        return dict(self._constants)


@dataclass(frozen=True)
class Constant:
    value: ParameterValue

    def evaluate(self, context: Context) -> ParameterValue:
        return evaluate(self, context)

    def __str__(self) -> str:
        return render(self)


@dataclass(frozen=True)
class ParameterRef:
    parameter_id: int

    def evaluate(self, context: Context) -> ParameterValue:
        return evaluate(self, context)

    def __str__(self) -> str:
        return render(self)


@dataclass(frozen=True)
class Arithmetic:
    op: ArithmeticOperator
    left: "Expression"
    right: "Expression"

    def evaluate(self, context: Context) -> ParameterValue:
        return evaluate(self, context)

    def __str__(self) -> str:
        return render(self)


@dataclass(frozen=True)
class Comparison:
    op: ComparisonOperator
    left: "Expression"
    right: "Expression"

    def evaluate(self, context: Context) -> ParameterValue:
        return evaluate(self, context)

    def __str__(self) -> str:
        return render(self)


@dataclass(frozen=True)
class Logical:
    op: LogicalOperator
    operands: Tuple["Expression", ...]

    def __post_init__(self):
        # Accept any iterable of operands but store an immutable tuple
        object.__setattr__(self, "operands", tuple(self.operands))

    def evaluate(self, context: Context) -> ParameterValue:
        return evaluate(self, context)

    def __str__(self) -> str:
        return render(self)


Expression = Union[Constant, ParameterRef, Arithmetic, Comparison, Logical]


def const(value: Any) -> Constant:
    """Build a Constant from a plain Python value."""
    return Constant(ParameterValue.of(value))


def param(parameter_id: int) -> ParameterRef:
    return ParameterRef(parameter_id)


def _numeric(value: ParameterValue, operation: str) -> float:
    try:
        number = value.as_double()
    except OverflowError:
        raise TypeMismatch(f"Operand of {operation} is too large for a double") from None
    if number is None:
        raise TypeMismatch(
            f"Operand of {operation} must be numeric, got {value.kind.value}"
        )
    return number


def _boolean(value: ParameterValue, operation: str) -> bool:
    flag = value.as_boolean()
    if flag is None:
        raise TypeMismatch(
            f"Operand of {operation} must be boolean, got {value.kind.value}"
        )
    return flag


def _arithmetic(op: ArithmeticOperator, left: float, right: float) -> float:
    if op == ArithmeticOperator.ADD:
        return left + right
    if op == ArithmeticOperator.SUB:
        return left - right
    if op == ArithmeticOperator.MUL:
        return left * right
    if op == ArithmeticOperator.DIV:
        if right == 0.0:
            raise DivisionByZero()
        return left / right
    raise UnsupportedOperator(f"Unknown arithmetic operator: {op}")


def _compare(op: ComparisonOperator, left: float, right: float) -> bool:
    if op == ComparisonOperator.LT:
        return left < right
    if op == ComparisonOperator.LE:
        return left <= right
    if op == ComparisonOperator.EQ:
        return left == right
    if op == ComparisonOperator.GE:
        return left >= right
    if op == ComparisonOperator.GT:
        return left > right
    if op == ComparisonOperator.NE:
        return left != right
    raise UnsupportedOperator(f"Unknown comparison operator: {op}")


def _logical(node: Logical, context: Context) -> bool:
    if node.op == LogicalOperator.NOT:
        if len(node.operands) != 1:
            raise TypeMismatch(
                f"NOT requires exactly one operand, got {len(node.operands)}"
            )
        return not _boolean(evaluate(node.operands[0], context), "NOT")

    if node.op == LogicalOperator.AND:
        for operand in node.operands:
            if not _boolean(evaluate(operand, context), "AND"):
                return False
        return True

    if node.op == LogicalOperator.OR:
        for operand in node.operands:
            if _boolean(evaluate(operand, context), "OR"):
                return True
        return False

    raise UnsupportedOperator(f"Unknown logical operator: {node.op}")


def evaluate(expression: Expression, context: Context) -> ParameterValue:
    """
    Evaluate an expression tree against a context.

    Args:
        expression: Root of the tree
        context: Parameter and constant bindings

    Returns:
        The resulting ParameterValue (DOUBLE for arithmetic, BOOLEAN for
        comparison and logical nodes)

    Raises:
        ParameterNotFound: A referenced parameter is missing
        TypeMismatch: An operand has the wrong kind
        DivisionByZero: Division by exactly zero
        UnsupportedOperator: Unknown node or operator
    """
    if isinstance(expression, Constant):
        return expression.value

    if isinstance(expression, ParameterRef):
        value = context.get_parameter(expression.parameter_id)
        if value is None:
            raise ParameterNotFound(expression.parameter_id)
        return value

    if isinstance(expression, Arithmetic):
        operation = expression.op.name
        left = _numeric(evaluate(expression.left, context), operation)
        right = _numeric(evaluate(expression.right, context), operation)
        return ParameterValue.double(_arithmetic(expression.op, left, right))

    if isinstance(expression, Comparison):
        operation = expression.op.name
        left = _numeric(evaluate(expression.left, context), operation)
        right = _numeric(evaluate(expression.right, context), operation)
        return ParameterValue.boolean(_compare(expression.op, left, right))

    if isinstance(expression, Logical):
        return ParameterValue.boolean(_logical(expression, context))

    raise UnsupportedOperator(f"Unknown expression node: {type(expression).__name__}")


def render(expression: Expression) -> str:
    """Readable infix form, e.g. '(param[1] * 1.2)'."""
    if isinstance(expression, Constant):
        value = expression.value
        number = value.as_double()
        if number is not None:
            return repr(number)
        return str(value)

    if isinstance(expression, ParameterRef):
        return f"param[{expression.parameter_id}]"

    if isinstance(expression, (Arithmetic, Comparison)):
        return f"({render(expression.left)} {expression.op.value} {render(expression.right)})"

    if isinstance(expression, Logical):
        if expression.op == LogicalOperator.NOT and len(expression.operands) == 1:
            return f"NOT {render(expression.operands[0])}"
        joiner = f" {expression.op.value} "
        return "(" + joiner.join(render(operand) for operand in expression.operands) + ")"

    raise UnsupportedOperator(f"Unknown expression node: {type(expression).__name__}")


def expression_type(expression: Expression) -> FunctionType:
    if isinstance(expression, Comparison):
        return FunctionType.PREDICATE
    if isinstance(expression, Logical):
        return FunctionType.LOGICAL
    if isinstance(expression, (Constant, ParameterRef, Arithmetic)):
        return FunctionType.ARITHMETIC
    raise UnsupportedOperator(f"Unknown expression node: {type(expression).__name__}")
