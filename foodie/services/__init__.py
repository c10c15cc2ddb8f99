"""
                        Services Module

Business logic shared by the API routers, plus the external services with
the hybrid architecture pattern: each has a Mock (development) and a Real
(staging/production) implementation.

Services:
    - payment: Razorpay gateway orders and signature checks
    - geo: OpenStreetMap Nominatim reverse geocoding
    - cart: cart lines and the denormalized cart total
    - orders: checkout and order status changes
    - audit: back-office audit trail
"""
