"""
Rule engine: applies a tariff's rules to an order.

Rules are walked in ascending priority (ties keep insertion order).
The first rule that produces a value wins. A rule whose condition is
false is skipped; a rule that fails to evaluate is also skipped, so a
malformed rule never blocks a later applicable one.
"""

import logging
from enum import Enum
from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Optional

from pricing.model.errors import EvaluationError, NoApplicableRule, TariffHasNoRules
from pricing.model.expressions import Context, Expression, evaluate
from pricing.model.orders import Order
from pricing.model.tariffs import Rule, Tariff
from pricing.model.values import EMPTY, ParameterValue

logger = logging.getLogger(__name__)


class RuleStatus(Enum):
    """How a single rule evaluation ended."""
    APPLIED = "APPLIED"
    SKIPPED = "SKIPPED"
    FAILED = "FAILED"


@dataclass(frozen=True)
class RuleOutcome:
    """
    Result of evaluating one rule.

    Attributes:
        rule: The evaluated rule
        status: APPLIED, SKIPPED (condition false) or FAILED
        value: Rule value when APPLIED, EMPTY otherwise
        error: The evaluation error when FAILED
    """
    rule: Rule
    status: RuleStatus
    value: ParameterValue = EMPTY
    error: Optional[EvaluationError] = None


class RuleEngine:
    """Evaluates rules and tariffs in the context of an order."""

    def __init__(self, constants: Optional[Mapping[str, Any]] = None):
        """
        Initialize engine.

        Args:
            constants: Named constants added to every context
        """
        self.constants: Dict[str, ParameterValue] = {
            name: ParameterValue.of(value) for name, value in (constants or {}).items()
        }

    def create_context(self, order: Order) -> Context:
        """Build a fresh context from the order's parameters."""
        return Context(order.parameters, self.constants)

    def evaluate_rule(self, rule: Rule, context: Context) -> RuleOutcome:
        """Evaluate one rule without raising for evaluation failures."""
        try:
            value = rule.evaluate(context)
        except EvaluationError as exc:
            return RuleOutcome(rule, RuleStatus.FAILED, error=exc)

        if value.is_empty:
            return RuleOutcome(rule, RuleStatus.SKIPPED)
        return RuleOutcome(rule, RuleStatus.APPLIED, value=value)

    def check_condition(self, condition: Expression, context: Context) -> bool:
        """True only when the condition evaluates to boolean true."""
        return evaluate(condition, context).as_boolean() is True

    def sorted_rules(self, tariff: Tariff) -> List[Rule]:
        # sorted() is stable: equal priorities keep insertion order
        return sorted(tariff.rules, key=lambda rule: rule.priority)

    def apply_tariff_rules(self, tariff: Tariff, order: Order) -> ParameterValue:
        """
        Apply a tariff's rules to an order.

        Args:
            tariff: Tariff whose rules are applied
            order: Order supplying the parameters

        Returns:
            Value of the first applicable rule

        Raises:
            TariffHasNoRules: If the tariff has no rules
            NoApplicableRule: If every rule was skipped or failed
        """
        if not tariff.rules:
            raise TariffHasNoRules(f"Tariff '{tariff.name}' has no pricing rules")

        context = self.create_context(order)
        failures = 0

        for rule in self.sorted_rules(tariff):
            outcome = self.evaluate_rule(rule, context)

            if outcome.status == RuleStatus.APPLIED:
                logger.debug(
                    "Tariff %s: rule %s applied with %s", tariff.code, rule.code, outcome.value
                )
                return outcome.value

            if outcome.status == RuleStatus.FAILED:
                failures += 1
                logger.debug(
                    "Tariff %s: rule %s failed and was skipped: %s",
                    tariff.code, rule.code, outcome.error,
                )

        raise NoApplicableRule(
            f"No rule of tariff '{tariff.name}' applies "
            f"({len(tariff.rules)} rules, {failures} failed)"
        )
