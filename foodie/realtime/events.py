"""Socket event names shared with the storefront and the dashboard."""

from enum import Enum


class SocketEvent(str, Enum):
    # users
    ACTIVE_USERS = "activeUsers"

    # restaurants
    CURRENT_ACTIVE_RESTAURANTS = "currentActiveRestaurants"

    # orders
    ORDER_STATUS_UPDATES = "orderStatusUpdates"
    ORDERS_IN_LAST_24_HOURS = "ordersInLast24Hours"
    TOTAL_REVENUE_IN_LAST_24_HOURS = "totalRevenueInLast24Hours"
    CANCELLED_FAILED_ORDERS_IN_LAST_24_HOURS = "cancelledFailedOrdersInLast24Hours"

    # products
    ACTIVE_PRODUCTS = "activeProducts"
