from fastapi import APIRouter, Depends
from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession
from catalog.cache import CacheManager
from catalog.database import get_db
from catalog.dependencies import get_cache
from catalog.models import Product
from catalog.schemas import MetricsResponse

router = APIRouter(prefix="/metrics", tags=["metrics"])

@router.get("", response_model=MetricsResponse)
async def get_metrics(
    db: AsyncSession = Depends(get_db),
    cache: CacheManager = Depends(get_cache),
):
    total_products, total_stock = (
        await db.execute(
            select(func.count(Product.id), func.coalesce(func.sum(Product.stock), 0))
        )
    ).one()

    return MetricsResponse(
        total_products=total_products,
        total_stock=total_stock,
        cache_info=cache.stats,
    )
