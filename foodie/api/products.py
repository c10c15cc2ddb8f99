"""
Catalog router: products and categories
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from foodie.api.deps import get_broadcaster, get_current_user, require_admin, require_staff
from foodie.database import get_db
from foodie.models import Category, Product, ProductStatus, User, UserRole
from foodie.realtime.broadcaster import DashboardBroadcaster
from foodie.schemas import (
    CategoryCreateRequest,
    CategoryEnvelope,
    CategoryListEnvelope,
    CategoryResponse,
    MessageResponse,
    ProductCreateRequest,
    ProductEnvelope,
    ProductListEnvelope,
    ProductResponse,
    ProductUpdateRequest,
)
from foodie.services import audit

router = APIRouter(prefix="/api/products", tags=["Products"])
logger = logging.getLogger(__name__)


# =============================================================================
# HELPER FUNCTIONS
# =============================================================================

async def load_product(db: AsyncSession, product_id: int) -> Product:
    result = await db.execute(
        select(Product).where(Product.id == product_id).execution_options(populate_existing=True)
    )
    return result.scalar_one()


async def get_category_or_404(db: AsyncSession, category_id: int) -> Category:
    category = await db.get(Category, category_id)
    if category is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Category not found")
    return category


async def resolve_restaurants(db: AsyncSession, restaurant_ids: list[int]) -> list[User]:
    """Live RESTAURANT accounts for the given ids; any unknown id is a 400."""
    if not restaurant_ids:
        return []

    wanted = set(restaurant_ids)
    result = await db.execute(
        select(User).where(
            User.id.in_(wanted),
            User.role == UserRole.RESTAURANT,
            User.deleted.is_(False),
        )
    )
    restaurants = list(result.scalars().all())

    missing = wanted - {r.id for r in restaurants}
    if missing:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Unknown restaurants: {sorted(missing)}",
        )
    return restaurants


# =============================================================================
# PRODUCTS
# =============================================================================

@router.post("/create", response_model=ProductEnvelope, status_code=status.HTTP_201_CREATED)
async def create_product(
    data: ProductCreateRequest,
    user: User = Depends(require_staff),
    db: AsyncSession = Depends(get_db),
    broadcaster: DashboardBroadcaster = Depends(get_broadcaster),
) -> ProductEnvelope:
    if not data.name or data.price is None or not data.description or data.category_id is None:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="All fields are required")

    await get_category_or_404(db, data.category_id)
    restaurants = await resolve_restaurants(db, data.restaurant_ids)

    # A restaurant always offers what it creates
    if user.role == UserRole.RESTAURANT and user.id not in {r.id for r in restaurants}:
        restaurants.append(user)

    product = Product(
        name=data.name,
        price=data.price,
        description=data.description,
        ingredients=data.ingredients,
        images=data.images,
        status=data.status,
        featured=data.featured,
        category_id=data.category_id,
        restaurants=restaurants,
    )
    db.add(product)
    await db.flush()

    if user.role == UserRole.ADMIN:
        audit.record(db, user, "CREATE", "PRODUCT", product.id, {"name": product.name})
    await db.commit()

    logger.info(f"Product #{product.id} '{product.name}' created by user #{user.id}")
    await broadcaster.emit_active_products()

    return ProductEnvelope(
        message="Product created successfully",
        product=ProductResponse.model_validate(await load_product(db, product.id)),
    )


@router.put("/update/{product_id}", response_model=ProductEnvelope)
async def update_product(
    product_id: int,
    data: ProductUpdateRequest,
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
    broadcaster: DashboardBroadcaster = Depends(get_broadcaster),
) -> ProductEnvelope:
    """Partial update. Listed restaurants are added to the existing ones."""
    product = await db.get(Product, product_id)
    if product is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Product not found")

    changes = data.model_dump(exclude_unset=True, exclude_none=True, exclude={"restaurant_ids"})
    if "category_id" in changes:
        await get_category_or_404(db, changes["category_id"])

    for field, value in changes.items():
        setattr(product, field, value)

    linked = {r.id for r in product.restaurants}
    for restaurant in await resolve_restaurants(db, data.restaurant_ids):
        if restaurant.id not in linked:
            product.restaurants.append(restaurant)

    audit.record(
        db,
        admin,
        "UPDATE",
        "PRODUCT",
        product.id,
        {
            **{k: (v.value if isinstance(v, ProductStatus) else v) for k, v in changes.items()},
            "restaurant_ids": data.restaurant_ids,
        },
    )
    await db.commit()

    await broadcaster.emit_active_products()

    return ProductEnvelope(
        message="Product updated successfully",
        product=ProductResponse.model_validate(await load_product(db, product.id)),
    )


@router.delete("/delete/{product_id}", response_model=MessageResponse)
async def delete_product(
    product_id: int,
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
    broadcaster: DashboardBroadcaster = Depends(get_broadcaster),
) -> MessageResponse:
    """Soft delete: the product stays referenced by past orders."""
    product = await db.get(Product, product_id)
    if product is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Product not found")

    product.status = ProductStatus.DELETED
    audit.record(db, admin, "DELETE", "PRODUCT", product.id, {"name": product.name})
    await db.commit()

    await broadcaster.emit_active_products()
    return MessageResponse(message="Product deleted successfully")


@router.get("/all", response_model=ProductListEnvelope)
async def list_products(
    category_id: Optional[int] = Query(None),
    featured: Optional[bool] = Query(None),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> ProductListEnvelope:
    """
    Catalog as seen by the caller.

    ADMIN sees every product, RESTAURANT its own non-deleted products,
    USER only ACTIVE ones.
    """
    query = select(Product).order_by(Product.id)

    if user.role == UserRole.RESTAURANT:
        query = query.where(
            Product.restaurants.any(User.id == user.id),
            Product.status != ProductStatus.DELETED,
        )
    elif user.role == UserRole.USER:
        query = query.where(Product.status == ProductStatus.ACTIVE)

    if category_id is not None:
        query = query.where(Product.category_id == category_id)
    if featured is not None:
        query = query.where(Product.featured.is_(featured))

    result = await db.execute(query)
    return ProductListEnvelope(
        message="Products fetched successfully",
        products=[ProductResponse.model_validate(p) for p in result.scalars().all()],
    )


@router.get("/get/{product_id}", response_model=ProductEnvelope)
async def get_product(
    product_id: int,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> ProductEnvelope:
    product = await db.get(Product, product_id)
    if product is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Product not found")

    return ProductEnvelope(
        message="Product fetched successfully",
        product=ProductResponse.model_validate(product),
    )


# =============================================================================
# CATEGORIES
# =============================================================================

@router.get("/categories", response_model=CategoryListEnvelope)
async def list_categories(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> CategoryListEnvelope:
    result = await db.execute(select(Category).order_by(Category.name))
    return CategoryListEnvelope(
        message="Categories fetched successfully",
        categories=[CategoryResponse.model_validate(c) for c in result.scalars().all()],
    )


@router.post("/categories/create", response_model=CategoryEnvelope, status_code=status.HTTP_201_CREATED)
async def create_category(
    data: CategoryCreateRequest,
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
) -> CategoryEnvelope:
    name = (data.name or "").strip()
    if not name:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Name is required")

    result = await db.execute(select(Category).where(Category.name == name))
    if result.scalar_one_or_none() is not None:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Category already exists")

    category = Category(name=name, image=data.image)
    db.add(category)
    await db.flush()
    audit.record(db, admin, "CREATE", "CATEGORY", category.id, {"name": name})
    await db.commit()

    return CategoryEnvelope(
        message="Category created successfully",
        category=CategoryResponse.model_validate(category),
    )
