from fastapi import APIRouter, Depends, status, Query
from sqlalchemy.orm import Session
from decimal import Decimal
from typing import List, Optional
import logging

from database.connection import get_db
from core.response import success_response
from core.security import Principal
from routers.auth import require_seller
from schemas.product import ProductCreate, ProductUpdate, ProductResponse, PriceRange
from services.product import (
    create_product,
    get_public_product,
    get_seller_product,
    get_products_by_seller,
    get_catalog_products,
    get_featured_products,
    get_price_range,
    update_product,
    delete_product
)

logger = logging.getLogger(__name__)

router = APIRouter()

@router.get("/", response_model=List[ProductResponse])
def list_products(
    category_id: Optional[str] = Query(None),
    material_id: Optional[str] = Query(None),
    min_price: Optional[Decimal] = Query(None, ge=0),
    max_price: Optional[Decimal] = Query(None, ge=0),
    search: Optional[str] = Query(None, max_length=100),
    featured: Optional[bool] = Query(None),
    skip: int = Query(0, ge=0),
    limit: int = Query(100, ge=1, le=500),
    db: Session = Depends(get_db)
):
    """Active products for the public catalog"""
    products = get_catalog_products(
        db,
        category_id=category_id,
        material_id=material_id,
        min_price=min_price,
        max_price=max_price,
        search=search,
        featured=featured,
        skip=skip,
        limit=limit
    )
    return [ProductResponse.from_product(product) for product in products]

@router.get("/featured", response_model=List[ProductResponse])
def list_featured_products(limit: int = Query(8, ge=1, le=50), db: Session = Depends(get_db)):
    return [ProductResponse.from_product(product) for product in get_featured_products(db, limit=limit)]

@router.get("/price-range", response_model=PriceRange)
def price_range(db: Session = Depends(get_db)):
    """Price bounds for the catalog filter slider"""
    return get_price_range(db)

@router.get("/mine", response_model=List[ProductResponse])
def list_my_products(principal: Principal = Depends(require_seller), db: Session = Depends(get_db)):
    """All of the seller's products, any status"""
    return [ProductResponse.from_product(product) for product in get_products_by_seller(db, principal.id)]

@router.get("/mine/{product_id}", response_model=ProductResponse)
def get_my_product(product_id: str, principal: Principal = Depends(require_seller), db: Session = Depends(get_db)):
    return ProductResponse.from_product(get_seller_product(db, product_id, principal.id))

@router.get("/{product_id}", response_model=ProductResponse)
def get_product(product_id: str, db: Session = Depends(get_db)):
    """Get a specific active product by ID (public endpoint)"""
    return ProductResponse.from_product(get_public_product(db, product_id))

@router.post("/", response_model=ProductResponse, status_code=status.HTTP_201_CREATED)
def create_seller_product(
    product_data: ProductCreate,
    principal: Principal = Depends(require_seller),
    db: Session = Depends(get_db)
):
    product = create_product(db, product_data, principal.id)
    return ProductResponse.from_product(product)

@router.put("/{product_id}", response_model=ProductResponse)
def update_seller_product(
    product_id: str,
    product_data: ProductUpdate,
    principal: Principal = Depends(require_seller),
    db: Session = Depends(get_db)
):
    product = update_product(db, product_id, product_data, principal.id)
    return ProductResponse.from_product(product)

@router.delete("/{product_id}")
def delete_seller_product(
    product_id: str,
    principal: Principal = Depends(require_seller),
    db: Session = Depends(get_db)
):
    removed = delete_product(db, product_id, principal.id)
    if removed:
        return success_response({"id": product_id}, "Product deleted successfully")
    return success_response(
        {"id": product_id, "status": "DISCONTINUED"},
        "Product has existing orders and was discontinued instead of deleted"
    )
