"""
Tests for the RuleEngine.

Tests priority ordering, first-match selection, error tolerance and
the failure modes of applying a tariff.
"""

import logging
import pytest
from pricing.engine.rule_engine import RuleEngine, RuleStatus
from pricing.model.errors import NoApplicableRule, ParameterNotFound, TariffHasNoRules
from pricing.model.expressions import (
    Arithmetic,
    ArithmeticOperator,
    Comparison,
    ComparisonOperator,
    const,
    param,
)
from pricing.model.orders import Order
from pricing.model.tariffs import Rule, Tariff
from pricing.model.values import EMPTY, ParameterValue


WEIGHT = 1
BASE_COST = 2


def weight_tariff() -> Tariff:
    """Heavy cargo costs 20% more; everything else pays the base cost."""
    tariff = Tariff(1, "CARGO", "Cargo")
    tariff.add_rule(Rule(
        1, "HEAVY", "Heavy cargo",
        condition=Comparison(ComparisonOperator.GT, param(WEIGHT), const(1)),
        action=Arithmetic(ArithmeticOperator.MUL, param(BASE_COST), const(1.2)),
        priority=1,
    ))
    tariff.add_rule(Rule(2, "BASE", "Base cost", action=param(BASE_COST), priority=2))
    return tariff


def order_with(weight, base_cost=1000) -> Order:
    order = Order(order_id=1, code="ORD-1")
    order.add_parameter(WEIGHT, weight)
    order.add_parameter(BASE_COST, base_cost)
    return order


def test_create_context_copies_parameters():
    """Test the context holds the order's parameters."""
    order = order_with(2.0)
    context = RuleEngine().create_context(order)
    assert context.get_parameter(WEIGHT) == ParameterValue.double(2.0)
    assert context.get_parameter(BASE_COST) == ParameterValue.integer(1000)
    assert context.constants == {}


def test_create_context_is_independent_of_order():
    """Test later order changes do not leak into an existing context."""
    order = order_with(2.0)
    context = RuleEngine().create_context(order)
    order.add_parameter(WEIGHT, 9.0)
    assert context.get_parameter(WEIGHT) == ParameterValue.double(2.0)


def test_engine_constants_in_context():
    """Test engine-level constants are added to every context."""
    engine = RuleEngine(constants={"VAT": 0.2})
    context = engine.create_context(order_with(1.0))
    assert context.get_constant("VAT") == ParameterValue.double(0.2)


def test_heavy_rule_wins():
    """Test the higher-priority conditional rule applies first."""
    result = RuleEngine().apply_tariff_rules(weight_tariff(), order_with(2))
    assert result.as_double() == pytest.approx(1200.0)


def test_fallback_rule_applies():
    """Test the unconditional rule applies when the condition is false."""
    result = RuleEngine().apply_tariff_rules(weight_tariff(), order_with(0.5))
    assert result.as_double() == pytest.approx(1000.0)


def test_priority_beats_insertion_order():
    """Test rules are evaluated by ascending priority."""
    tariff = Tariff(1, "T", "Tariff")
    tariff.add_rule(Rule(1, "LATE", "Late", action=const(2), priority=10))
    tariff.add_rule(Rule(2, "EARLY", "Early", action=const(1), priority=1))
    assert RuleEngine().apply_tariff_rules(tariff, order_with(1)) == ParameterValue.integer(1)


def test_equal_priority_keeps_insertion_order():
    """Test ties are broken by insertion order."""
    tariff = Tariff(1, "T", "Tariff")
    tariff.add_rule(Rule(1, "FIRST", "First", action=const(1), priority=5))
    tariff.add_rule(Rule(2, "SECOND", "Second", action=const(2), priority=5))
    assert RuleEngine().apply_tariff_rules(tariff, order_with(1)) == ParameterValue.integer(1)


def test_failing_rule_is_skipped():
    """Test an erroring rule does not block a later rule."""
    tariff = Tariff(1, "T", "Tariff")
    tariff.add_rule(Rule(1, "BROKEN", "Missing param", action=param(404), priority=1))
    tariff.add_rule(Rule(2, "DIV0", "Divide by zero",
                         action=Arithmetic(ArithmeticOperator.DIV, const(1), const(0)), priority=2))
    tariff.add_rule(Rule(3, "BASE", "Base", action=const(500), priority=3))
    assert RuleEngine().apply_tariff_rules(tariff, order_with(1)) == ParameterValue.integer(500)


def test_failing_rule_is_logged(caplog):
    """Test skipped failures are logged at debug level."""
    tariff = Tariff(1, "T", "Tariff")
    tariff.add_rule(Rule(1, "BROKEN", "Missing param", action=param(404), priority=1))
    tariff.add_rule(Rule(2, "BASE", "Base", action=const(500), priority=2))

    with caplog.at_level(logging.DEBUG, logger="pricing.engine.rule_engine"):
        RuleEngine().apply_tariff_rules(tariff, order_with(1))

    assert "BROKEN" in caplog.text


def test_rules_after_match_are_not_evaluated():
    """Test iteration stops at the first applicable rule."""
    tariff = Tariff(1, "T", "Tariff")
    tariff.add_rule(Rule(1, "HIT", "Hit", action=const(1), priority=1))
    tariff.add_rule(Rule(2, "BROKEN", "Broken", action=param(404), priority=2))

    engine = RuleEngine()
    seen = []
    original = engine.evaluate_rule

    def spy(rule, context):
        seen.append(rule.code)
        return original(rule, context)

    engine.evaluate_rule = spy
    engine.apply_tariff_rules(tariff, order_with(1))
    assert seen == ["HIT"]


def test_tariff_without_rules():
    """Test an empty tariff raises TariffHasNoRules."""
    with pytest.raises(TariffHasNoRules):
        RuleEngine().apply_tariff_rules(Tariff(1, "T", "Empty"), order_with(1))


def test_no_applicable_rule():
    """Test all-false conditions raise NoApplicableRule."""
    tariff = Tariff(1, "T", "Tariff")
    tariff.add_rule(Rule(1, "NEVER", "Never", action=const(1), condition=const(False)))
    with pytest.raises(NoApplicableRule):
        RuleEngine().apply_tariff_rules(tariff, order_with(1))


def test_all_rules_failing_is_no_applicable_rule():
    """Test only-failing rules also raise NoApplicableRule."""
    tariff = Tariff(1, "T", "Tariff")
    tariff.add_rule(Rule(1, "BROKEN", "Broken", action=param(404)))
    with pytest.raises(NoApplicableRule, match="1 failed"):
        RuleEngine().apply_tariff_rules(tariff, order_with(1))


def test_evaluate_rule_outcomes():
    """Test applied, skipped and failed outcomes are distinct."""
    engine = RuleEngine()
    context = engine.create_context(order_with(1))

    applied = engine.evaluate_rule(Rule(1, "A", "A", action=const(3)), context)
    assert applied.status == RuleStatus.APPLIED
    assert applied.value == ParameterValue.integer(3)
    assert applied.error is None

    skipped = engine.evaluate_rule(
        Rule(2, "S", "S", action=const(3), condition=const(False)), context)
    assert skipped.status == RuleStatus.SKIPPED
    assert skipped.value == EMPTY

    failed = engine.evaluate_rule(Rule(3, "F", "F", action=param(404)), context)
    assert failed.status == RuleStatus.FAILED
    assert isinstance(failed.error, ParameterNotFound)


def test_check_condition():
    """Test only a boolean true passes a condition."""
    engine = RuleEngine()
    context = engine.create_context(order_with(2))
    assert engine.check_condition(Comparison(ComparisonOperator.GT, param(WEIGHT), const(1)), context)
    assert not engine.check_condition(const(False), context)
    assert not engine.check_condition(const(1), context)


def test_tariff_rules_are_not_reordered():
    """Test applying rules leaves the tariff's rule list untouched."""
    tariff = Tariff(1, "T", "Tariff")
    late = Rule(1, "LATE", "Late", action=const(2), priority=10)
    early = Rule(2, "EARLY", "Early", action=const(1), priority=1)
    tariff.add_rule(late)
    tariff.add_rule(early)
    RuleEngine().apply_tariff_rules(tariff, order_with(1))
    assert tariff.rules == [late, early]
