from pizzeria.app import PizzeriaApp, create_app, initialize_datastore
from pizzeria.controllers import PizzaOrdersController
from pizzeria.domain import OrderStatus, PizzaOrder
from pizzeria.repository import PizzaOrdersRepository
from pizzeria.version import get_version

__all__ = [
    # Application
    "PizzeriaApp",
    "create_app",
    "initialize_datastore",
    "get_version",
    # Orders
    "OrderStatus",
    "PizzaOrder",
    "PizzaOrdersRepository",
    "PizzaOrdersController",
]
