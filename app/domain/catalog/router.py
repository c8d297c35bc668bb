"""Catalog router - FastAPI endpoints for products"""

from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ...auth import require_admin
from ...database import get_db
from ...models import User
from .schemas import ProductCreate, ProductResponse, ProductUpdate, StockUpdate
from .service import CatalogService

router = APIRouter(prefix="/products", tags=["Products"])


def get_catalog_service(db: Session = Depends(get_db)) -> CatalogService:
    """Dependency injection for CatalogService"""
    return CatalogService(db)


@router.get("", response_model=list[ProductResponse])
async def list_products(
    search: Optional[str] = Query(None),
    in_stock: bool = Query(False, alias="inStock"),
    service: CatalogService = Depends(get_catalog_service),
):
    """List active products"""
    return [ProductResponse.from_domain(p) for p in service.list_products(search, in_stock)]


@router.get("/{product_id}", response_model=ProductResponse)
async def get_product(product_id: str, service: CatalogService = Depends(get_catalog_service)):
    return ProductResponse.from_domain(service.get_product(product_id))


# ============================================================================
# ADMIN
# ============================================================================


@router.post("", response_model=ProductResponse, status_code=201)
async def create_product(
    data: ProductCreate,
    _admin: User = Depends(require_admin),
    service: CatalogService = Depends(get_catalog_service),
):
    return ProductResponse.from_domain(service.create_product(data))


@router.put("/{product_id}", response_model=ProductResponse)
async def update_product(
    product_id: str,
    data: ProductUpdate,
    _admin: User = Depends(require_admin),
    service: CatalogService = Depends(get_catalog_service),
):
    """Edit name, description and price"""
    return ProductResponse.from_domain(service.update_product(product_id, data))


@router.put("/{product_id}/stock", response_model=ProductResponse)
async def update_stock(
    product_id: str,
    data: StockUpdate,
    _admin: User = Depends(require_admin),
    service: CatalogService = Depends(get_catalog_service),
):
    return ProductResponse.from_domain(service.update_stock(product_id, data.stockQuantity))


@router.post("/{product_id}/deactivate", response_model=ProductResponse)
async def deactivate_product(
    product_id: str,
    _admin: User = Depends(require_admin),
    service: CatalogService = Depends(get_catalog_service),
):
    return ProductResponse.from_domain(service.set_active(product_id, False))


@router.post("/{product_id}/activate", response_model=ProductResponse)
async def activate_product(
    product_id: str,
    _admin: User = Depends(require_admin),
    service: CatalogService = Depends(get_catalog_service),
):
    return ProductResponse.from_domain(service.set_active(product_id, True))
