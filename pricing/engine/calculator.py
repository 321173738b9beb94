"""
Cost calculation for a single tariff and for a batch of tariffs.

The single-tariff path commits the cost to the order. The batch path is
exploratory: it never changes the order and records every failure as a
CalculationResult instead of raising.
"""

import logging
from dataclasses import dataclass
from datetime import date
from typing import Callable, Dict, List, Optional

from pricing.engine.rule_engine import RuleEngine
from pricing.model.errors import (
    NonNumericResult,
    PricingError,
    TariffCalculationError,
    TariffInvalid,
)
from pricing.model.orders import Order
from pricing.model.tariffs import Tariff

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CalculationResult:
    """
    Outcome of pricing one order with one tariff.

    Attributes:
        tariff_id: Tariff identifier
        tariff_name: Tariff name
        cost: Calculated cost (0.0 on failure)
        success: Whether a cost was produced
        error_message: Failure reason, empty on success
    """
    tariff_id: int
    tariff_name: str
    cost: float
    success: bool
    error_message: str = ""


class CostCalculator:
    """Calculates order costs with tariffs."""

    def __init__(
        self,
        rule_engine: Optional[RuleEngine] = None,
        today: Callable[[], date] = date.today,
    ):
        """
        Initialize calculator.

        Args:
            rule_engine: Engine used to apply tariff rules
            today: Source of the date tariffs are validated against
        """
        self.rule_engine = rule_engine or RuleEngine()
        self.today = today

    def _price(self, order: Order, tariff: Tariff) -> float:
        if not tariff.is_valid(self.today()):
            raise TariffInvalid(f"Tariff '{tariff.name}' is not valid")

        result = self.rule_engine.apply_tariff_rules(tariff, order)

        try:
            cost = result.as_double()
        except OverflowError:
            raise NonNumericResult(
                f"Tariff '{tariff.name}' produced a result outside the double range"
            ) from None
        if cost is None:
            raise NonNumericResult(
                f"Tariff '{tariff.name}' produced a non-numeric result: {result}"
            )
        return cost

    def calculate_cost(self, order: Order, tariff: Tariff) -> float:
        """
        Calculate the cost of an order and commit it.

        Args:
            order: Order to price; receives tariff_id and calculated_cost
            tariff: Tariff to price with

        Returns:
            The calculated cost

        Raises:
            TariffCalculationError: Wrapping any failure with the tariff name
        """
        try:
            cost = self._price(order, tariff)
        except PricingError as exc:
            raise TariffCalculationError(tariff.name, exc) from exc

        order.tariff_id = tariff.tariff_id
        order.set_calculated_cost(cost)
        logger.info("Order %s priced at %.2f with tariff %s", order.code, cost, tariff.code)
        return cost

    def calculate_with_all_tariffs(
        self, order: Order, tariffs: List[Tariff]
    ) -> Dict[int, CalculationResult]:
        """
        Price an order with every tariff without changing it.

        Args:
            order: Order to price
            tariffs: Candidate tariffs

        Returns:
            Tariff id -> CalculationResult
        """
        results: Dict[int, CalculationResult] = {}

        for tariff in tariffs:
            try:
                cost = self._price(order, tariff)
            except PricingError as exc:
                results[tariff.tariff_id] = CalculationResult(
                    tariff_id=tariff.tariff_id,
                    tariff_name=tariff.name,
                    cost=0.0,
                    success=False,
                    error_message=str(exc),
                )
                continue

            results[tariff.tariff_id] = CalculationResult(
                tariff_id=tariff.tariff_id,
                tariff_name=tariff.name,
                cost=cost,
                success=True,
            )

        if tariffs and not any(result.success for result in results.values()):
            logger.warning("Order %s: no tariff out of %d produced a cost", order.code, len(tariffs))

        return results

    def get_applicable_tariffs(self, tariffs: List[Tariff]) -> List[Tariff]:
        """Tariffs that are valid today, in input order."""
        today = self.today()
        return [tariff for tariff in tariffs if tariff.is_valid(today)]
