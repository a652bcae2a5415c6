# backend/app/api/v1/endpoints/store.py
from fastapi import APIRouter, Depends
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from backend.app.core.errors import NotFound
from backend.app.db.base import get_db
from backend.app.models.store import StoreOrder, StoreProduct, StoreStat
from backend.app.schemas.store import OrderCreate, OrderCreatedResponse, StoreStatsResponse
from backend.app.services.admin_operations import COMPLETED_ORDERS_KEY

router = APIRouter()


@router.post("/orders", response_model=OrderCreatedResponse)
async def submit_order(order_in: OrderCreate, db: AsyncSession = Depends(get_db)):
    """Public order form; no session needed. Orders start as pending."""
    product = await db.get(StoreProduct, order_in.product_id)
    if not product or not product.is_active:
        raise NotFound("Product not found")

    order = StoreOrder(**order_in.model_dump(), status="pending")
    db.add(order)
    await db.commit()
    await db.refresh(order)
    return OrderCreatedResponse(order_id=order.id)


@router.get("/stats", response_model=StoreStatsResponse)
async def store_stats(db: AsyncSession = Depends(get_db)):
    result = await db.execute(select(StoreStat.value).where(StoreStat.key == COMPLETED_ORDERS_KEY))
    return StoreStatsResponse(completed_orders=result.scalars().first() or 0)
