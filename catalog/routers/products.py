import logging
from typing import Any

from fastapi import APIRouter, Body, Depends
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from catalog.cache import CacheManager
from catalog.database import get_db
from catalog.dependencies import get_cache
from catalog.schemas import (
    MessageResponse,
    ProductCreate,
    ProductResponse,
    ProductUpdate,
    ValidationErrorResponse,
)
from catalog.services import product_service
from catalog.validation import validate

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/products", tags=["products"])

NOT_FOUND = "Product not found"

_not_found_doc = {404: {"model": MessageResponse, "description": NOT_FOUND}}
_invalid_doc = {422: {"model": ValidationErrorResponse, "description": "Validation failed"}}


def _not_found() -> JSONResponse:
    return JSONResponse(status_code=404, content={"message": NOT_FOUND})


def invalid_response(errors: dict[str, list[str]]) -> JSONResponse:
    return JSONResponse(
        status_code=422,
        content={"message": "Validation failed", "errors": errors},
    )


@router.get("", response_model=list[ProductResponse])
async def list_products(
    db: AsyncSession = Depends(get_db),
    cache: CacheManager = Depends(get_cache),
):
    return await product_service.list_products(db, cache)


@router.post("", status_code=201, response_model=ProductResponse, responses=_invalid_doc)
async def create_product(
    payload: Any = Body(None),
    db: AsyncSession = Depends(get_db),
    cache: CacheManager = Depends(get_cache),
):
    logger.info("Product creation request received", extra={"data": payload})
    result = validate(ProductCreate, payload if payload is not None else {})
    if not result.ok:
        logger.error("Validation failed", extra={"errors": result.errors})
        return invalid_response(result.errors)
    return await product_service.create_product(db, cache, result.value)


@router.get("/{product_id}", response_model=ProductResponse, responses=_not_found_doc)
async def get_product(
    product_id: int,
    db: AsyncSession = Depends(get_db),
    cache: CacheManager = Depends(get_cache),
):
    product = await product_service.get_product(db, cache, product_id)
    if product is None:
        return _not_found()
    return product


@router.put("/{product_id}", response_model=ProductResponse, responses={**_not_found_doc, **_invalid_doc})
@router.patch("/{product_id}", response_model=ProductResponse, responses={**_not_found_doc, **_invalid_doc})
async def update_product(
    product_id: int,
    payload: Any = Body(None),
    db: AsyncSession = Depends(get_db),
    cache: CacheManager = Depends(get_cache),
):
    logger.info("Update request received for product ID: %s", product_id, extra={"data": payload})

    product = await product_service.find_product(db, product_id)
    if product is None:
        logger.warning("Product not found: ID %s", product_id)
        return _not_found()

    result = validate(ProductUpdate, payload if payload is not None else {})
    if not result.ok:
        logger.error("Validation failed for product update", extra={"errors": result.errors})
        return invalid_response(result.errors)
    return await product_service.update_product(db, cache, product, result.value)


@router.delete("/{product_id}", response_model=MessageResponse, responses=_not_found_doc)
async def delete_product(
    product_id: int,
    db: AsyncSession = Depends(get_db),
    cache: CacheManager = Depends(get_cache),
):
    deleted = await product_service.delete_product(db, cache, product_id)
    if not deleted:
        return _not_found()
    return {"message": "Product deleted successfully"}
