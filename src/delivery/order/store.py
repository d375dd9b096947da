"""Order Store — read/write access to orders and their meta bag."""

from protean.exceptions import ObjectNotFoundError
from protean.utils.globals import current_domain

from delivery.errors import OrderNotFound
from delivery.order.order import Order


class OrderStore:
    """Thin wrapper over the Order repository used by the delivery workflow."""

    def get(self, order_id) -> Order:
        if order_id in (None, ""):
            raise OrderNotFound("Order id missing")
        try:
            return current_domain.repository_for(Order).get(str(order_id))
        except ObjectNotFoundError as exc:
            raise OrderNotFound(f"Order {order_id} not found") from exc

    def find(self, order_id) -> Order | None:
        try:
            return self.get(order_id)
        except OrderNotFound:
            return None

    def save(self, order: Order) -> None:
        current_domain.repository_for(Order).add(order)

    def update_meta(self, order_id, changes: dict) -> tuple[dict, dict]:
        order = self.get(order_id)
        before, after = order.update_meta(changes)
        self.save(order)
        return before, after
