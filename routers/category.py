from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session
from typing import List

from database.connection import get_db
from core.response import success_response
from core.security import Principal
from models.category import Category
from routers.auth import require_seller
from schemas.taxonomy import TaxonomyCreate, TaxonomyUpdate, TaxonomyResponse, TaxonomyPublic
from services import taxonomy

router = APIRouter()

def _response(entry, product_count: int) -> TaxonomyResponse:
    response = TaxonomyResponse.from_orm(entry)
    response.product_count = product_count
    return response

@router.get("/public", response_model=List[TaxonomyPublic])
def list_public_categories(db: Session = Depends(get_db)):
    """Active categories for storefront filtering"""
    return [TaxonomyPublic.from_orm(entry) for entry in taxonomy.list_public(db, Category)]

@router.get("/", response_model=List[TaxonomyResponse])
def list_categories(principal: Principal = Depends(require_seller), db: Session = Depends(get_db)):
    rows = taxonomy.list_for_seller(db, Category, principal.id)
    return [_response(entry, count) for entry, count in rows]

@router.post("/", response_model=TaxonomyResponse, status_code=status.HTTP_201_CREATED)
def create_category(
    data: TaxonomyCreate,
    principal: Principal = Depends(require_seller),
    db: Session = Depends(get_db)
):
    entry = taxonomy.create_entry(db, Category, data, principal.id)
    return _response(entry, 0)

@router.put("/{category_id}", response_model=TaxonomyResponse)
def update_category(
    category_id: str,
    data: TaxonomyUpdate,
    principal: Principal = Depends(require_seller),
    db: Session = Depends(get_db)
):
    entry = taxonomy.update_entry(db, Category, category_id, data, principal.id)
    return _response(entry, taxonomy.count_products(db, Category, entry.id))

@router.delete("/{category_id}")
def delete_category(
    category_id: str,
    principal: Principal = Depends(require_seller),
    db: Session = Depends(get_db)
):
    taxonomy.delete_entry(db, Category, category_id, principal.id)
    return success_response({"id": category_id}, "Category deleted successfully")
