"""
Seller-owned product labels: categories and materials.

Both share the same rules, so every function takes the mapped class and a
human-readable label used in error messages.
"""
from sqlalchemy.orm import Session
from sqlalchemy import func
from typing import List, Tuple, Type
import logging

from core.exceptions import BusinessLogicError, ResourceNotFoundError
from models.category import Category
from models.material import Material
from models.product import Product
from schemas.taxonomy import TaxonomyCreate, TaxonomyUpdate

logger = logging.getLogger(__name__)

LABELS = {Category: "Category", Material: "Material"}
PRODUCT_COLUMNS = {Category: Product.category_id, Material: Product.material_id}


def _label(model: Type) -> str:
    return LABELS[model]


def count_products(db: Session, model: Type, entry_id: str) -> int:
    return db.query(Product).filter(PRODUCT_COLUMNS[model] == entry_id).count()


def list_for_seller(db: Session, model: Type, seller_id: str) -> List[Tuple[object, int]]:
    """Active entries for a seller with their product counts, by name"""
    product_column = PRODUCT_COLUMNS[model]
    rows = db.query(model, func.count(Product.id)).outerjoin(
        Product, product_column == model.id
    ).filter(
        model.seller_id == seller_id,
        model.active == True
    ).group_by(model.id).order_by(model.name.asc()).all()
    return rows


def list_public(db: Session, model: Type) -> List[object]:
    return db.query(model).filter(model.active == True).order_by(model.name.asc()).all()


def _ensure_name_available(db: Session, model: Type, seller_id: str, name: str, exclude_id: str = None):
    query = db.query(model).filter(
        model.seller_id == seller_id,
        func.lower(model.name) == name.lower(),
        model.active == True
    )
    if exclude_id:
        query = query.filter(model.id != exclude_id)
    if query.first():
        raise BusinessLogicError(f"{_label(model)} name already exists", details={"name": name})


def get_for_seller(db: Session, model: Type, entry_id: str, seller_id: str):
    entry = db.query(model).filter(model.id == entry_id, model.seller_id == seller_id).first()
    if not entry:
        raise ResourceNotFoundError(_label(model), entry_id)
    return entry


def create_entry(db: Session, model: Type, data: TaxonomyCreate, seller_id: str):
    _ensure_name_available(db, model, seller_id, data.name)

    try:
        entry = model(seller_id=seller_id, name=data.name, description=data.description, active=True)
        db.add(entry)
        db.commit()
        db.refresh(entry)
    except Exception as e:
        db.rollback()
        logger.error(f"Error creating {_label(model).lower()}: {str(e)}")
        raise

    logger.info(f"{_label(model)} created: {entry.name} by seller {seller_id}")
    return entry


def update_entry(db: Session, model: Type, entry_id: str, data: TaxonomyUpdate, seller_id: str):
    entry = get_for_seller(db, model, entry_id, seller_id)
    _ensure_name_available(db, model, seller_id, data.name, exclude_id=entry.id)

    try:
        entry.name = data.name
        entry.description = data.description
        if data.active is not None:
            entry.active = data.active
        db.commit()
        db.refresh(entry)
    except Exception as e:
        db.rollback()
        logger.error(f"Error updating {_label(model).lower()}: {str(e)}")
        raise

    logger.info(f"{_label(model)} updated: {entry.name} by seller {seller_id}")
    return entry


def delete_entry(db: Session, model: Type, entry_id: str, seller_id: str) -> None:
    """Delete an entry that no product references"""
    entry = get_for_seller(db, model, entry_id, seller_id)

    if count_products(db, model, entry.id) > 0:
        label = _label(model).lower()
        raise BusinessLogicError(
            f"Cannot delete {label} with existing products. Please move or delete products first."
        )

    try:
        db.delete(entry)
        db.commit()
    except Exception as e:
        db.rollback()
        logger.error(f"Error deleting {_label(model).lower()}: {str(e)}")
        raise

    logger.info(f"{_label(model)} deleted: {entry.name} by seller {seller_id}")
