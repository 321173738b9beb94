"""
Pricing rules and tariffs.

A tariff is a priced offering: an ordered list of conditional rules plus
an activity flag and an optional inclusive validity window.
"""

from dataclasses import dataclass, field
from datetime import date
from typing import List, Optional

from pricing.model.expressions import Context, Expression, evaluate
from pricing.model.values import EMPTY, ParameterValue


@dataclass(frozen=True)
class Rule:
    """
    Conditional pricing clause.

    Attributes:
        rule_id: Unique identifier
        code: Rule code
        name: Human readable name
        action: Expression producing the rule's value
        condition: Optional predicate; the rule applies only when it is true
        priority: Lower priorities are evaluated first
        note: Free-form note
    """
    rule_id: int
    code: str
    name: str
    action: Optional[Expression]
    condition: Optional[Expression] = None
    priority: int = 0
    note: Optional[str] = None

    def evaluate(self, context: Context) -> ParameterValue:
        """
        Evaluate the rule.

        Returns EMPTY when the condition is present and not a boolean true;
        otherwise the value of the action. Evaluation errors propagate.
        """
        if self.condition is not None:
            if evaluate(self.condition, context).as_boolean() is not True:
                return EMPTY

        if self.action is None:
            return EMPTY
        return evaluate(self.action, context)


@dataclass
class Tariff:
    """
    Tariff with its pricing rules.

    Attributes:
        tariff_id: Unique identifier
        code: Tariff code
        name: Human readable name
        active: Whether the tariff may be used at all
        valid_from: First day the tariff is valid (inclusive)
        valid_to: Last day the tariff is valid (inclusive)
        rules: Pricing rules in insertion order
        service_class_id: Service class the tariff prices
        description: Free-form description
        provider: Executor offering the tariff
    """
    tariff_id: int
    code: str
    name: str
    active: bool = True
    valid_from: Optional[date] = None
    valid_to: Optional[date] = None
    rules: List[Rule] = field(default_factory=list)
    service_class_id: int = 0
    description: Optional[str] = None
    provider: Optional[str] = None

    def add_rule(self, rule: Rule) -> None:
        """
        Append a rule.

        Raises:
            ValueError: If the rule has no action
        """
        if rule.action is None:
            raise ValueError(f"Rule {rule.code} has no action")
        self.rules.append(rule)

    def is_valid(self, day: date) -> bool:
        """Check if the tariff is active and the day is inside its window."""
        if not self.active:
            return False
        if self.valid_from is not None and day < self.valid_from:
            return False
        if self.valid_to is not None and day > self.valid_to:
            return False
        return True

    def activate(self) -> None:
        self.active = True

    def deactivate(self) -> None:
        self.active = False
