"""Repository for the Order aggregate."""

from fulfillment.domain import fulfillment
from fulfillment.order.order import Order


@fulfillment.repository(part_of=Order)
class OrderRepository:
    """Standard CRUD from the base repository, plus lookup by order number."""

    def find_by_order_number(self, order_number: str) -> Order | None:
        return self._dao.query.filter(order_number=order_number).all().first
