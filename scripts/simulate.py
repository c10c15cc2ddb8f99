"""
Shopper Simulation Script

Fires many concurrent storefront sessions at a running API to exercise
the cart bookkeeping and checkout under load:

    register -> login -> address -> add-to-cart (x N) -> COD checkout

Run from project root: python scripts/simulate.py --shoppers 50
Needs at least one ACTIVE product; pass --admin-email/--admin-password to
seed a small menu first.
"""

import argparse
import asyncio
import random
import sys
import time
import uuid
from datetime import datetime
from typing import Any, Optional

import httpx

# Windows event loop fix
if sys.platform == "win32":
    asyncio.set_event_loop_policy(asyncio.WindowsSelectorEventLoopPolicy())

# Configuration
API_BASE_URL = "http://localhost:5000"
TOTAL_SHOPPERS = 50
PASSWORD = "simulate-123"

# Sample data
FIRST_NAMES = ["Aarav", "Diya", "Kabir", "Meera", "Rohan", "Ananya", "Vihaan", "Isha", "Arjun", "Sara"]
AREAS = ["Indiranagar", "Koramangala", "Jayanagar", "Whitefield", "Malleshwaram", "HSR Layout"]
MENU = [
    {"name": "Masala Dosa", "price": 120.0},
    {"name": "Paneer Butter Masala", "price": 240.0},
    {"name": "Veg Biryani", "price": 210.0},
    {"name": "Filter Coffee", "price": 40.0},
    {"name": "Gulab Jamun", "price": 80.0},
    {"name": "Chole Bhature", "price": 150.0},
]


def auth_headers(token: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {token}"}


def generate_address() -> dict[str, Any]:
    """Generate a random delivery address."""
    return {
        "address": f"{random.randint(1, 999)} {random.choice(['1st Main', '2nd Cross', '80 Feet Road'])}",
        "area": random.choice(AREAS),
        "house_number": str(random.randint(1, 200)),
        "city": "Bengaluru",
        "state": "Karnataka",
        "country": "India",
        "postal_code": f"560{random.randint(0, 99):03d}",
        "latitude": round(random.uniform(12.85, 13.05), 6),
        "longitude": round(random.uniform(77.50, 77.70), 6),
    }


# =============================================================================
# MENU SEEDING
# =============================================================================

async def seed_menu(client: httpx.AsyncClient, email: str, password: str) -> bool:
    """Create a category and a handful of ACTIVE products as admin."""
    response = await client.post(
        f"{API_BASE_URL}/api/admin/login",
        json={"email": email, "password": password},
    )
    if response.status_code != 200:
        print(f"   ❌ Admin login failed: {response.text}")
        return False
    headers = auth_headers(response.json()["token"])

    response = await client.post(
        f"{API_BASE_URL}/api/products/categories/create",
        json={"name": f"Simulation {uuid.uuid4().hex[:6]}"},
        headers=headers,
    )
    if response.status_code != 201:
        print(f"   ❌ Category creation failed: {response.text}")
        return False
    category_id = response.json()["category"]["id"]

    for item in MENU:
        response = await client.post(
            f"{API_BASE_URL}/api/products/create",
            json={
                **item,
                "description": f"Simulated {item['name']}",
                "ingredients": [],
                "images": [],
                "category_id": category_id,
            },
            headers=headers,
        )
        if response.status_code != 201:
            print(f"   ⚠️ Product {item['name']}: {response.text[:100]}")

    print(f"   ✅ Seeded {len(MENU)} products in category #{category_id}")
    return True


# =============================================================================
# SHOPPER FLOW
# =============================================================================

async def run_shopper(client: httpx.AsyncClient, shopper_num: int) -> dict[str, Any]:
    """One full storefront session ending in a COD order."""
    email = f"shopper-{uuid.uuid4().hex[:10]}@example.com"
    start_time = time.time()

    def failed(step: str, response: httpx.Response) -> dict[str, Any]:
        return {
            "shopper_num": shopper_num,
            "success": False,
            "error": f"{step}: {response.status_code} {response.text[:80]}",
            "time": round(time.time() - start_time, 3),
        }

    try:
        response = await client.post(
            f"{API_BASE_URL}/api/auth/register",
            json={"username": random.choice(FIRST_NAMES), "email": email, "password": PASSWORD},
        )
        if response.status_code != 201:
            return failed("register", response)

        response = await client.post(
            f"{API_BASE_URL}/api/auth/login",
            json={"email": email, "password": PASSWORD},
        )
        if response.status_code != 200:
            return failed("login", response)
        headers = auth_headers(response.json()["token"])

        response = await client.post(
            f"{API_BASE_URL}/api/address/create", json=generate_address(), headers=headers
        )
        if response.status_code != 201:
            return failed("address", response)
        address_id = response.json()["address"]["id"]

        response = await client.get(f"{API_BASE_URL}/api/products/all", headers=headers)
        if response.status_code != 200:
            return failed("products", response)
        products = response.json()["products"]
        if not products:
            return {"shopper_num": shopper_num, "success": False, "error": "no products", "time": 0}

        for product in random.sample(products, k=min(len(products), random.randint(1, 4))):
            response = await client.post(
                f"{API_BASE_URL}/api/cart/add-to-cart",
                json={"product_id": product["id"], "quantity": random.randint(1, 3)},
                headers=headers,
            )
            if response.status_code not in (200, 201):
                return failed("add-to-cart", response)

        cart = response.json()["cart"]
        items = [
            {"product_id": line["product_id"], "quantity": line["quantity"]}
            for line in cart["cart_items"]
        ]

        response = await client.post(
            f"{API_BASE_URL}/api/order/create-order",
            json={
                "items": items,
                "payment_method": "COD",
                "address_id": address_id,
                "amount": cart["cart_total"],
            },
            headers=headers,
        )
        if response.status_code != 201:
            return failed("create-order", response)

        order = response.json()["order"]
        return {
            "shopper_num": shopper_num,
            "success": True,
            "order_id": order["order_id"],
            "total": order["payment"]["amount"],
            "time": round(time.time() - start_time, 3),
        }

    except httpx.HTTPError as e:
        return {
            "shopper_num": shopper_num,
            "success": False,
            "error": str(e),
            "time": round(time.time() - start_time, 3),
        }


async def run_simulation(num_shoppers: int = TOTAL_SHOPPERS) -> dict[str, Any]:
    """
    Run the concurrent shopper simulation.

    Args:
        num_shoppers: Number of simultaneous storefront sessions
    """
    print("=" * 70)
    print("🔥 SHOPPER SIMULATION - HIGH CONCURRENCY TEST")
    print("=" * 70)
    print(f"📋 Shoppers: {num_shoppers}")
    print(f"🎯 Target: {API_BASE_URL}")
    print(f"⏰ Started: {datetime.now().strftime('%H:%M:%S')}")
    print("=" * 70)

    start_time = time.time()

    async with httpx.AsyncClient(timeout=30.0) as client:
        tasks = [run_shopper(client, i + 1) for i in range(num_shoppers)]
        results = await asyncio.gather(*tasks)

    total_time = round(time.time() - start_time, 2)

    successful = [r for r in results if r["success"]]
    failed = [r for r in results if not r["success"]]

    print("\n" + "=" * 70)
    print("📊 SIMULATION RESULTS")
    print("=" * 70)
    print(f"\n✅ Successful Orders: {len(successful)}/{num_shoppers}")
    print(f"❌ Failed Sessions: {len(failed)}/{num_shoppers}")
    print(f"⏱️  Total Time: {total_time}s")

    if successful:
        avg_time = round(sum(r["time"] for r in successful) / len(successful), 3)
        total_revenue = sum(r.get("total", 0) for r in successful)

        print("\n📈 Performance Metrics:")
        print(f"   Average Session: {avg_time}s")
        print(f"   Fastest: {min(r['time'] for r in successful)}s")
        print(f"   Slowest: {max(r['time'] for r in successful)}s")
        print(f"   💰 Total Revenue: ₹{total_revenue:.2f}")

    if failed:
        print("\n⚠️  Failed Session Details (showing first 5):")
        for f in failed[:5]:
            print(f"   Shopper #{f['shopper_num']}: {f.get('error', 'Unknown error')}")

    print("\n" + "=" * 70)

    return {
        "total": num_shoppers,
        "successful": len(successful),
        "failed": len(failed),
        "total_time": total_time,
        "results": results,
    }


async def preflight(admin_email: Optional[str], admin_password: Optional[str]) -> bool:
    """Health check and optional menu seeding before the load run."""
    print("\n" + "=" * 70)
    print("🧪 PRE-FLIGHT")
    print("=" * 70)

    async with httpx.AsyncClient(timeout=10.0) as client:
        print("\n1️⃣ Health Check...")
        response = await client.get(f"{API_BASE_URL}/health")
        if response.status_code != 200:
            print(f"   ❌ Failed: {response.text}")
            return False
        data = response.json()
        print(f"   ✅ Status: {data.get('status')}")
        print(f"   Database: {data.get('database')}")
        print(f"   Redis: {data.get('redis')}")

        if admin_email and admin_password:
            print("\n2️⃣ Seeding menu...")
            if not await seed_menu(client, admin_email, admin_password):
                return False

    return True


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Shopper Simulation Script")
    parser.add_argument("--shoppers", type=int, default=TOTAL_SHOPPERS, help="Number of shoppers")
    parser.add_argument("--base-url", default=API_BASE_URL, help="API base URL")
    parser.add_argument("--admin-email", help="Admin account used to seed products")
    parser.add_argument("--admin-password", help="Password of the seeding admin")
    args = parser.parse_args()

    API_BASE_URL = args.base_url.rstrip("/")

    if not asyncio.run(preflight(args.admin_email, args.admin_password)):
        print("\n❌ Pre-flight failed. Fix issues before running simulation.")
        sys.exit(1)

    asyncio.run(run_simulation(args.shoppers))
