"""
Product service: business logic for the Product catalog.

Design notes
------------
- Reads go through the cache-aside facade: the collection snapshot lives
  under ``products`` and each entity under ``product_{id}``.
- Every write invalidates the keys whose snapshot it changes before the
  function returns, so the next read reloads from the database.
- Updates and deletes look the row up in the database directly; a cached
  snapshot is never used as the basis of a write.
- Write functions commit before they invalidate, so a read that reloads
  after the invalidation can only see the committed row.  Reads never
  commit; ``get_db`` only rolls back on error.
"""
import logging

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from catalog.cache import CacheManager
from catalog.config import settings
from catalog.models import Product
from catalog.schemas import ProductCreate, ProductUpdate

logger = logging.getLogger(__name__)

PRODUCTS_KEY = "products"


def product_key(product_id: int) -> str:
    return f"product_{product_id}"


# ---------------------------------------------------------------------------
# Serialisation helpers
# ---------------------------------------------------------------------------

def _product_to_dict(product: Product) -> dict:
    """Serialise a Product ORM instance to a JSON-ready dict."""
    return {
        "id": product.id,
        "name": product.name,
        "description": product.description,
        "price": float(product.price),
        "stock": product.stock,
        "created_at": product.created_at.isoformat() if product.created_at else None,
        "updated_at": product.updated_at.isoformat() if product.updated_at else None,
    }


# ---------------------------------------------------------------------------
# Public service functions
# ---------------------------------------------------------------------------

async def list_products(db: AsyncSession, cache: CacheManager) -> list[dict]:
    """Return every product, ordered by id, from cache or database."""

    async def load() -> list[dict]:
        result = await db.execute(select(Product).order_by(Product.id))
        return [_product_to_dict(p) for p in result.scalars().all()]

    return await cache.remember(PRODUCTS_KEY, settings.CACHE_TTL_LIST, load)


async def find_product(db: AsyncSession, product_id: int) -> Product | None:
    """Load the row for *product_id* straight from the database."""
    return await db.get(Product, product_id)


async def get_product(db: AsyncSession, cache: CacheManager, product_id: int) -> dict | None:
    """
    Return the product snapshot for *product_id*, or None when it does
    not exist.  Misses are not cached.
    """

    async def load() -> dict | None:
        product = await find_product(db, product_id)
        return _product_to_dict(product) if product is not None else None

    return await cache.remember(product_key(product_id), settings.CACHE_TTL_DETAIL, load)


async def create_product(db: AsyncSession, cache: CacheManager, data: ProductCreate) -> dict:
    """Insert a new product and return it with its assigned id."""
    product = Product(
        name=data.name,
        description=data.description,
        price=data.price,
        stock=data.stock,
    )
    db.add(product)
    await db.flush()
    await db.refresh(product)
    await db.commit()

    await cache.forget(PRODUCTS_KEY)
    logger.info("Product created successfully", extra={"product_id": product.id})
    return _product_to_dict(product)


async def update_product(
    db: AsyncSession, cache: CacheManager, product: Product, data: ProductUpdate
) -> dict:
    """
    Apply the fields present in *data* to *product* and return the
    updated snapshot.  Fields the client omitted are left untouched.
    """
    changes = data.changes()
    for field, value in changes.items():
        setattr(product, field, value)

    await db.flush()
    await db.refresh(product)
    await db.commit()

    await cache.forget(product_key(product.id), PRODUCTS_KEY)
    logger.info(
        "Product updated successfully: ID %s", product.id, extra={"fields": sorted(changes)}
    )
    return _product_to_dict(product)


async def delete_product(db: AsyncSession, cache: CacheManager, product_id: int) -> bool:
    """
    Hard-delete the product identified by *product_id*.

    Returns True on success, False when the product does not exist.
    """
    product = await find_product(db, product_id)
    if product is None:
        logger.warning("Product not found: ID %s", product_id)
        return False

    await db.delete(product)
    await db.commit()

    await cache.forget(product_key(product_id), PRODUCTS_KEY)
    logger.info("Product deleted successfully: ID %s", product_id)
    return True
