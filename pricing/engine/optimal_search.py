"""
Optimal tariff search.

Ranks the tariffs that can price an order by ascending cost and derives
savings statistics. Tariffs that fail are left out of the ranking; their
failures are only visible through CostCalculator.calculate_with_all_tariffs.
"""

from dataclasses import dataclass
from typing import List, Optional, Tuple

from pricing.engine.calculator import CostCalculator
from pricing.model.orders import Order
from pricing.model.tariffs import Tariff


@dataclass(frozen=True)
class TariffComparison:
    """
    One ranked tariff.

    Attributes:
        tariff_id: Tariff identifier
        tariff_code: Tariff code
        tariff_name: Tariff name
        cost: Cost of the order with this tariff
        rank: 1 for the cheapest tariff
        is_optimal: True only for rank 1
        savings: Most expensive ranked cost minus this cost
    """
    tariff_id: int
    tariff_code: str
    tariff_name: str
    cost: float
    rank: int
    is_optimal: bool
    savings: float = 0.0


@dataclass(frozen=True)
class SavingsAnalysis:
    """Cheapest versus most expensive applicable tariff."""
    optimal_cost: float
    maximum_cost: float
    average_cost: float
    savings: float
    savings_percent: float
    optimal_tariff_id: int
    expensive_tariff_id: int


class OptimalSearcher:
    """Finds the cheapest tariffs for an order."""

    def __init__(self, calculator: Optional[CostCalculator] = None):
        self.calculator = calculator or CostCalculator()

    def find_optimal_tariff(
        self, order: Order, tariffs: List[Tariff]
    ) -> Optional[Tuple[Tariff, float]]:
        """
        Find the tariff with the minimum cost.

        Returns:
            (tariff, cost), or None if no tariff produced a cost
        """
        if not tariffs:
            return None

        results = self.calculator.calculate_with_all_tariffs(order, tariffs)

        best: Optional[Tuple[Tariff, float]] = None
        for tariff in tariffs:
            result = results.get(tariff.tariff_id)
            if result is None or not result.success:
                continue
            # Strict comparison keeps the earliest tariff on equal costs
            if best is None or result.cost < best[1]:
                best = (tariff, result.cost)

        return best

    def compare_all_tariffs(self, order: Order, tariffs: List[Tariff]) -> List[TariffComparison]:
        """
        Rank successful tariffs by ascending cost.

        Equal costs keep input order.
        """
        results = self.calculator.calculate_with_all_tariffs(order, tariffs)

        priced = [
            (tariff, results[tariff.tariff_id].cost)
            for tariff in tariffs
            if results[tariff.tariff_id].success
        ]
        priced.sort(key=lambda item: item[1])
        maximum = priced[-1][1] if priced else 0.0

        return [
            TariffComparison(
                tariff_id=tariff.tariff_id,
                tariff_code=tariff.code,
                tariff_name=tariff.name,
                cost=cost,
                rank=index + 1,
                is_optimal=index == 0,
                savings=maximum - cost,
            )
            for index, (tariff, cost) in enumerate(priced)
        ]

    def find_top_n_tariffs(
        self, order: Order, tariffs: List[Tariff], n: int
    ) -> List[TariffComparison]:
        """The n cheapest tariffs (fewer if fewer are priced)."""
        if n <= 0:
            return []
        return self.compare_all_tariffs(order, tariffs)[:n]

    def analyze_savings(self, order: Order, tariffs: List[Tariff]) -> Optional[SavingsAnalysis]:
        """
        Compare the cheapest and most expensive tariff.

        Returns:
            SavingsAnalysis, or None if no tariff produced a cost
        """
        ranked = self.compare_all_tariffs(order, tariffs)
        if not ranked:
            return None

        optimal = ranked[0]
        expensive = ranked[-1]
        savings = expensive.cost - optimal.cost
        savings_percent = savings / expensive.cost * 100.0 if expensive.cost != 0 else 0.0

        return SavingsAnalysis(
            optimal_cost=optimal.cost,
            maximum_cost=expensive.cost,
            average_cost=sum(item.cost for item in ranked) / len(ranked),
            savings=savings,
            savings_percent=savings_percent,
            optimal_tariff_id=optimal.tariff_id,
            expensive_tariff_id=expensive.tariff_id,
        )
