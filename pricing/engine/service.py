"""
High-level pricing service.

Keeps orders and tariffs in memory, drives the order lifecycle and
exposes cost calculation and tariff comparison by id.

This is the main entry point for the pricing system.
"""

import logging
import threading
from datetime import date
from pathlib import Path
from typing import Callable, Dict, Generic, List, Optional, TypeVar

from pricing.config import PricingSettings, load_settings
from pricing.logging_utils import configure_logging
from pricing.engine.calculator import CostCalculator
from pricing.engine.optimal_search import OptimalSearcher, SavingsAnalysis, TariffComparison
from pricing.model.errors import EntityNotFound, OrderStateError
from pricing.model.orders import Order, OrderStatus
from pricing.model.tariffs import Rule, Tariff
from pricing.model.values import ParameterType

logger = logging.getLogger(__name__)

T = TypeVar("T")


class EntityCache(Generic[T]):
    """
    Id -> entity map with no eviction.

    Every access takes an internal lock, so the map itself can be shared
    between threads. The cached entities are not protected: callers that
    mutate the same order concurrently must serialize on their own.
    """

    def __init__(self):
        self._items: Dict[int, T] = {}
        self._lock = threading.Lock()

    def get(self, key: int) -> Optional[T]:
        with self._lock:
            return self._items.get(key)

    def put(self, key: int, item: T, replace: bool = False) -> None:
        """
        Store an item under its id.

        Raises:
            ValueError: If the id is taken and replace is False
        """
        with self._lock:
            if not replace and key in self._items:
                raise ValueError(f"Id {key} is already registered")
            self._items[key] = item

    def __contains__(self, key: int) -> bool:
        with self._lock:
            return key in self._items

    def remove(self, key: int) -> bool:
        with self._lock:
            return self._items.pop(key, None) is not None

    def values(self) -> List[T]:
        with self._lock:
            return list(self._items.values())

    def clear(self) -> None:
        with self._lock:
            self._items.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._items)


class OrderCodeSequence:
    """Generates order codes like 'ORD-20250101-1000'."""

    def __init__(
        self,
        prefix: str = "ORD",
        start: int = 1000,
        today: Callable[[], date] = date.today,
    ):
        self.prefix = prefix
        self.today = today
        self._next = start
        self._lock = threading.Lock()

    def next_code(self) -> str:
        with self._lock:
            number = self._next
            self._next += 1
        return f"{self.prefix}-{self.today():%Y%m%d}-{number}"


class PricingService:
    """In-memory orchestration of orders, tariffs and pricing."""

    def __init__(
        self,
        calculator: Optional[CostCalculator] = None,
        settings: Optional[PricingSettings] = None,
        sequence: Optional[OrderCodeSequence] = None,
    ):
        """
        Initialize service.

        Args:
            calculator: Calculator shared by cost calculation and search
            settings: Service settings (defaults if omitted)
            sequence: Order code generator
        """
        self.settings = settings or PricingSettings()
        self.calculator = calculator or CostCalculator()
        self.searcher = OptimalSearcher(self.calculator)
        self.sequence = sequence or OrderCodeSequence(
            prefix=self.settings.order_code_prefix,
            start=self.settings.order_code_start,
            today=self.calculator.today,
        )
        self.tariffs: EntityCache[Tariff] = EntityCache()
        self.orders: EntityCache[Order] = EntityCache()
        self._next_order_id = 1
        self._id_lock = threading.Lock()

    @classmethod
    def from_config(
        cls, path: Path, calculator: Optional[CostCalculator] = None
    ) -> "PricingService":
        """
        Build a service from a YAML settings file.

        Logging is configured with settings.log_level before the service
        is created.
        """
        settings = load_settings(path)
        configure_logging(settings.log_level)
        return cls(calculator=calculator, settings=settings)

    # Tariffs

    def register_tariff(self, tariff: Tariff) -> None:
        """Register a tariff, replacing any tariff with the same id."""
        self.tariffs.put(tariff.tariff_id, tariff, replace=True)

    def add_tariff_rule(self, tariff_id: int, rule: Rule) -> None:
        """
        Add a rule to a registered tariff.

        Raises:
            EntityNotFound: If the tariff is unknown
            ValueError: If the rule has no condition or no action
        """
        tariff = self.get_tariff(tariff_id)
        if rule.condition is None or rule.action is None:
            raise ValueError(f"Rule {rule.code} needs both a condition and an action")
        tariff.add_rule(rule)
        logger.info("Added rule %s to tariff %s", rule.code, tariff.code)

    def get_tariff(self, tariff_id: int) -> Tariff:
        """
        Raises:
            EntityNotFound: If the tariff is unknown
        """
        tariff = self.tariffs.get(tariff_id)
        if tariff is None:
            raise EntityNotFound(f"Tariff {tariff_id} not found")
        return tariff

    def active_tariffs(self, service_class_id: Optional[int] = None) -> List[Tariff]:
        """Registered tariffs valid today, optionally for one service class."""
        tariffs = self.calculator.get_applicable_tariffs(self.tariffs.values())
        if service_class_id is None:
            return tariffs
        return [t for t in tariffs if t.service_class_id == service_class_id]

    # Orders

    def create_order(self, service_id: int, customer_name: str, note: Optional[str] = None) -> Order:
        """
        Create a draft order.

        Raises:
            ValueError: If customer_name is blank
        """
        if not customer_name or not customer_name.strip():
            raise ValueError("Customer name is required")

        with self._id_lock:
            while self._next_order_id in self.orders:
                self._next_order_id += 1
            order_id = self._next_order_id
            self._next_order_id += 1

            order = Order(
                order_id=order_id,
                code=self.sequence.next_code(),
                name=f"Order {customer_name}",
                service_id=service_id,
                customer_name=customer_name,
                note=note,
                order_date=self.calculator.today(),
            )
            self.orders.put(order_id, order)

        logger.info("Created order %s for %s", order.code, customer_name)
        return order

    def add_order(self, order: Order) -> None:
        """
        Register an order built elsewhere (e.g., loaded from storage).

        Raises:
            ValueError: If an order with the same id is already registered
        """
        with self._id_lock:
            self.orders.put(order.order_id, order)
            self._next_order_id = max(self._next_order_id, order.order_id + 1)

    def get_order(self, order_id: int) -> Order:
        """
        Raises:
            EntityNotFound: If the order is unknown
        """
        order = self.orders.get(order_id)
        if order is None:
            raise EntityNotFound(f"Order {order_id} not found")
        return order

    def set_order_parameter(
        self,
        order_id: int,
        parameter_id: int,
        value,
        declared_type: Optional[ParameterType] = None,
    ) -> None:
        """
        Raises:
            OrderStateError: If the order is completed or cancelled
        """
        order = self.get_order(order_id)
        if order.is_closed():
            raise OrderStateError(f"Order {order.code} is {order.status.value} and cannot change")
        order.add_parameter(parameter_id, value, declared_type)

    def calculate_order_cost(self, order_id: int, tariff_id: int) -> float:
        """Price an order with one tariff and commit the cost."""
        order = self.get_order(order_id)
        tariff = self.get_tariff(tariff_id)
        return self.calculator.calculate_cost(order, tariff)

    def confirm_order(self, order_id: int, tariff_id: int) -> float:
        """
        Price an order with a tariff and confirm it.

        Returns:
            The committed cost

        Raises:
            OrderStateError: If the order is not DRAFT or CALCULATED
            TariffCalculationError: If the tariff cannot price the order
        """
        order = self.get_order(order_id)
        if order.status not in (OrderStatus.DRAFT, OrderStatus.CALCULATED):
            raise OrderStateError(
                f"Only draft or calculated orders can be confirmed (order {order.code} "
                f"is {order.status.value})"
            )
        cost = self.calculate_order_cost(order_id, tariff_id)
        order.confirm()
        logger.info("Confirmed order %s at %.2f", order.code, cost)
        return cost

    def complete_order(self, order_id: int) -> None:
        order = self.get_order(order_id)
        order.complete()
        logger.info("Completed order %s", order.code)

    def cancel_order(self, order_id: int, reason: str) -> None:
        order = self.get_order(order_id)
        order.cancel()
        cancellation = f"Cancelled: {reason}"
        order.note = f"{order.note}\n{cancellation}" if order.note else cancellation
        logger.info("Cancelled order %s: %s", order.code, reason)

    # Comparison

    def _candidates(self, tariff_ids: Optional[List[int]]) -> List[Tariff]:
        if tariff_ids is None:
            return self.tariffs.values()
        return [self.get_tariff(tariff_id) for tariff_id in tariff_ids]

    def compare_tariffs(
        self, order_id: int, tariff_ids: Optional[List[int]] = None
    ) -> List[TariffComparison]:
        """Rank tariffs (all registered ones by default) for an order."""
        return self.searcher.compare_all_tariffs(self.get_order(order_id), self._candidates(tariff_ids))

    def find_optimal_tariffs(
        self,
        order_id: int,
        top_n: Optional[int] = None,
        tariff_ids: Optional[List[int]] = None,
    ) -> List[TariffComparison]:
        """The cheapest tariffs for an order, settings.default_top_n by default."""
        n = self.settings.default_top_n if top_n is None else top_n
        return self.searcher.find_top_n_tariffs(
            self.get_order(order_id), self._candidates(tariff_ids), n
        )

    def analyze_savings(
        self, order_id: int, tariff_ids: Optional[List[int]] = None
    ) -> Optional[SavingsAnalysis]:
        return self.searcher.analyze_savings(self.get_order(order_id), self._candidates(tariff_ids))

    # Cache

    def clear_cache(self) -> None:
        self.tariffs.clear()
        self.orders.clear()

    def cache_stats(self) -> dict:
        return {"tariffs": len(self.tariffs), "orders": len(self.orders)}
