from datetime import datetime

from mitsuki import (
    DeleteMapping,
    GetMapping,
    PostMapping,
    PutMapping,
    QueryParam,
    ResponseEntity,
    RestController,
    get_logger,
)

from pizzeria.domain import OrderStatus, PizzaOrder
from pizzeria.repository import PizzaOrdersRepository

logger = get_logger()

GREETING = "Feel hungry? Let's get a pizza baked for you!"
DELETED_MESSAGE = "Deleted the order"


@RestController()
class PizzaOrdersController:
    """
    Pizza order endpoints.

    Status changes are not validated against the current status, and
    creating an order with an existing id replaces it.
    """

    def __init__(self, repository: PizzaOrdersRepository):
        self.repository = repository

    @PostMapping("/putNewOrder")
    async def add_new_order(self, id: int = QueryParam(required=True)):
        order = await self.repository.upsert(PizzaOrder.new(id))
        logger.info(f"Order {id} placed")
        return order.to_dict()

    @PutMapping("/changeStatus")
    async def change_status(
        self,
        id: int = QueryParam(required=True),
        status: OrderStatus = QueryParam(required=True),
    ):
        order = await self.repository.find_by_id(id)
        if order is None:
            return ResponseEntity.not_found()

        order.status = status.value
        order = await self.repository.upsert(order)
        logger.info(f"Order {id} is now {status.value}")
        return order.to_dict()

    @PutMapping("/changeOrderTime")
    async def update_order_time(
        self,
        id: int = QueryParam(required=True),
        order_time: datetime = QueryParam(name="orderTime", required=True),
    ):
        order = await self.repository.find_by_id(id)
        if order is None:
            return ResponseEntity.not_found()

        order.order_time = order_time
        order = await self.repository.upsert(order)
        return order.to_dict()

    @DeleteMapping("/deleteOrder")
    async def delete_order(self, id: int = QueryParam(required=True)):
        if not await self.repository.exists_by_id(id):
            return ResponseEntity.not_found()

        await self.repository.delete_by_id(id)
        logger.info(f"Order {id} deleted")
        return ResponseEntity.ok(DELETED_MESSAGE)

    @GetMapping("/allOrders")
    async def get_all_orders(self):
        orders = await self.repository.find_all()
        return [order.to_dict() for order in orders]

    @GetMapping("/ping")
    async def say_hi(self):
        """Liveness check; never touches the datastore."""
        return ResponseEntity.ok(GREETING)
