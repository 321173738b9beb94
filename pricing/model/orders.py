"""
Service orders and their lifecycle.

Status flow:
- DRAFT -> CALCULATED when a cost is committed
- CALCULATED -> CONFIRMED -> COMPLETED
- any status except COMPLETED -> CANCELLED
"""

from enum import Enum
from dataclasses import dataclass, field
from datetime import date
from typing import Any, Dict, Optional

from pricing.model.errors import OrderStateError
from pricing.model.values import ParameterType, ParameterValue, check_value


class OrderStatus(Enum):
    """Current status of an order in its lifecycle."""
    DRAFT = "DRAFT"
    CALCULATED = "CALCULATED"
    CONFIRMED = "CONFIRMED"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"

    @property
    def label(self) -> str:
        return self.value.capitalize()


@dataclass
class Order:
    """
    Represents an order for a service.

    Attributes:
        order_id: Unique identifier for the order
        code: Order code (e.g., 'ORD-20250101-1000')
        name: Display name
        service_id: Ordered service
        customer_name: Who placed the order
        note: Free-form note
        order_date: Day the order was created
        parameters: Parameter id -> value
        tariff_id: Tariff the cost was committed with
        calculated_cost: Last committed cost
        status: Current order status
    """
    order_id: int
    code: str
    name: str = ""
    service_id: int = 0
    customer_name: Optional[str] = None
    note: Optional[str] = None
    order_date: date = field(default_factory=date.today)
    parameters: Dict[int, ParameterValue] = field(default_factory=dict)
    tariff_id: Optional[int] = None
    calculated_cost: float = 0.0
    status: OrderStatus = OrderStatus.DRAFT

    def add_parameter(
        self,
        parameter_id: int,
        value: Any,
        declared_type: Optional[ParameterType] = None,
    ) -> None:
        """
        Set a parameter value.

        Args:
            parameter_id: Parameter id
            value: ParameterValue or plain Python value
            declared_type: When given, the value must match this type

        Raises:
            ParameterTypeError: If the value does not match declared_type
        """
        wrapped = ParameterValue.of(value)
        if declared_type is not None:
            check_value(declared_type, wrapped, str(parameter_id))
        self.parameters[parameter_id] = wrapped

    def get_parameter(self, parameter_id: int) -> Optional[ParameterValue]:
        return self.parameters.get(parameter_id)

    def set_calculated_cost(self, cost: float) -> None:
        """Store a cost; a draft becomes calculated."""
        self.calculated_cost = cost
        if self.status == OrderStatus.DRAFT:
            self.status = OrderStatus.CALCULATED

    def confirm(self) -> None:
        if self.status != OrderStatus.CALCULATED:
            raise OrderStateError(
                f"Order {self.code} must be calculated before confirmation "
                f"(status {self.status.value})"
            )
        self.status = OrderStatus.CONFIRMED

    def complete(self) -> None:
        if self.status != OrderStatus.CONFIRMED:
            raise OrderStateError(
                f"Order {self.code} must be confirmed before completion "
                f"(status {self.status.value})"
            )
        self.status = OrderStatus.COMPLETED

    def cancel(self) -> None:
        if self.status == OrderStatus.COMPLETED:
            raise OrderStateError(f"Order {self.code} is completed and cannot be cancelled")
        self.status = OrderStatus.CANCELLED

    def is_closed(self) -> bool:
        """Check if order is in a terminal state."""
        return self.status in (OrderStatus.COMPLETED, OrderStatus.CANCELLED)
