"""
                Foodie Ordering Platform

REST API for a food-ordering storefront and its restaurant/admin
back-office: authentication, catalog, cart, checkout with Razorpay,
and live dashboard metrics over socket.io.
"""

__version__ = "1.0.0"
