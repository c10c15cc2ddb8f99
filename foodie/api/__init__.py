"""HTTP routers, one per storefront/back-office area."""

from foodie.api import (
    addresses,
    admin,
    auth,
    cart,
    dashboard,
    dev,
    misc,
    orders,
    products,
    restaurants,
)

routers = [
    auth.router,
    restaurants.router,
    admin.router,
    products.router,
    cart.router,
    addresses.router,
    orders.router,
    dashboard.router,
    misc.router,
    dev.router,
]

__all__ = ["routers"]
