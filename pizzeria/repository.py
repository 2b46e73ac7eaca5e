from sqlalchemy import insert, update

from mitsuki import CrudRepository, Transactional, get_logger

from pizzeria.domain import PizzaOrder, normalize_timestamp

logger = get_logger()


@CrudRepository(entity=PizzaOrder)
class PizzaOrdersRepository:
    """
    Keyed CRUD access to the pizza_orders table.

    find_by_id, find_all, delete_by_id, exists_by_id and count come from
    @CrudRepository. Absence is reported as None/False, never raised.
    """

    @Transactional()
    async def upsert(self, order: PizzaOrder) -> PizzaOrder:
        """
        Insert or replace the row for order.id.

        The generated save() only inserts rows whose id is unset, and ids
        here are chosen by the client, so a repeated id is written as an
        UPDATE followed by an INSERT when no row matched.
        """
        order.order_time = normalize_timestamp(order.order_time)
        table = self.adapter.get_table(PizzaOrder)
        values = {"status": order.status, "order_time": order.order_time}

        async with self.get_connection() as conn:
            result = await conn.execute(
                update(table).where(table.c.id == order.id).values(**values)
            )
            if result.rowcount == 0:
                await conn.execute(insert(table).values(id=order.id, **values))
                logger.debug(f"Inserted order {order.id}")
            else:
                logger.debug(f"Updated order {order.id}")

        return order
