from sqlalchemy.orm import Session, joinedload
from sqlalchemy import and_, or_, desc, func
from decimal import Decimal
from typing import List, Optional, Dict
import logging
import math

from core.exceptions import BusinessLogicError, ResourceNotFoundError
from models.product import Product, ProductStatus
from models.category import Category
from models.material import Material
from models.order import OrderItem
from schemas.product import ProductCreate, ProductUpdate

logger = logging.getLogger(__name__)

DEFAULT_PRICE_RANGE = {"min": 0, "max": 10000}


def _product_query(db: Session):
    return db.query(Product).options(joinedload(Product.category), joinedload(Product.material))


def _check_references(db: Session, seller_id: str, category_id: Optional[str], material_id: Optional[str]):
    """Category and material must exist and belong to the same seller."""
    if category_id:
        category = db.query(Category).filter(
            and_(Category.id == category_id, Category.seller_id == seller_id)
        ).first()
        if not category:
            raise ResourceNotFoundError("Category", category_id)
    if material_id:
        material = db.query(Material).filter(
            and_(Material.id == material_id, Material.seller_id == seller_id)
        ).first()
        if not material:
            raise ResourceNotFoundError("Material", material_id)


def _join_images(images: Optional[List[str]]) -> str:
    return ",".join(url.strip() for url in (images or []) if url and url.strip())


def create_product(db: Session, product_data: ProductCreate, seller_id: str) -> Product:
    """Create a new product for a seller"""
    _check_references(db, seller_id, product_data.category_id, product_data.material_id)

    try:
        product = Product(
            seller_id=seller_id,
            name=product_data.name,
            description=product_data.description or "",
            price=product_data.price,
            stock=product_data.stock,
            status=product_data.status,
            category_id=product_data.category_id,
            material_id=product_data.material_id,
            featured=product_data.featured,
            images=_join_images(product_data.images)
        )

        db.add(product)
        db.commit()
        db.refresh(product)

        logger.info(f"Product created: {product.name} by seller {seller_id}")
        return product

    except Exception as e:
        db.rollback()
        logger.error(f"Error creating product: {str(e)}")
        raise


def get_public_product(db: Session, product_id: str) -> Product:
    """Get an active product by ID"""
    product = _product_query(db).filter(
        and_(Product.id == product_id, Product.status == ProductStatus.ACTIVE)
    ).first()
    if not product:
        raise ResourceNotFoundError("Product", product_id)
    return product


def get_seller_product(db: Session, product_id: str, seller_id: str) -> Product:
    product = _product_query(db).filter(
        and_(Product.id == product_id, Product.seller_id == seller_id)
    ).first()
    if not product:
        raise ResourceNotFoundError("Product", product_id)
    return product


def get_products_by_seller(db: Session, seller_id: str) -> List[Product]:
    """Get all products for a specific seller, newest first"""
    return _product_query(db).filter(Product.seller_id == seller_id).order_by(desc(Product.created_at)).all()


def get_catalog_products(
    db: Session,
    category_id: Optional[str] = None,
    material_id: Optional[str] = None,
    min_price: Optional[Decimal] = None,
    max_price: Optional[Decimal] = None,
    search: Optional[str] = None,
    featured: Optional[bool] = None,
    skip: int = 0,
    limit: int = 100
) -> List[Product]:
    """Active products for the storefront catalog"""
    query = _product_query(db).filter(Product.status == ProductStatus.ACTIVE)

    if category_id:
        query = query.filter(Product.category_id == category_id)
    if material_id:
        query = query.filter(Product.material_id == material_id)
    if min_price is not None:
        query = query.filter(Product.price >= min_price)
    if max_price is not None:
        query = query.filter(Product.price <= max_price)
    if featured is not None:
        query = query.filter(Product.featured == featured)
    if search:
        query = query.filter(
            or_(
                Product.name.ilike(f"%{search}%"),
                Product.description.ilike(f"%{search}%")
            )
        )

    return query.order_by(desc(Product.created_at)).offset(skip).limit(limit).all()


def get_featured_products(db: Session, limit: int = 8) -> List[Product]:
    return get_catalog_products(db, featured=True, limit=limit)


def get_price_range(db: Session) -> Dict[str, int]:
    """Floor/ceil bounds of active product prices for the catalog filter"""
    lowest, highest = db.query(func.min(Product.price), func.max(Product.price)).filter(
        Product.status == ProductStatus.ACTIVE
    ).one()

    if lowest is None or highest is None:
        return dict(DEFAULT_PRICE_RANGE)

    return {"min": math.floor(lowest), "max": math.ceil(highest)}


def update_product(db: Session, product_id: str, product_data: ProductUpdate, seller_id: str) -> Product:
    """Update a product (only by the seller)"""
    product = get_seller_product(db, product_id, seller_id)
    changes = product_data.dict(exclude_unset=True)

    _check_references(db, seller_id, changes.get("category_id"), changes.get("material_id"))

    if "images" in changes:
        changes["images"] = _join_images(changes["images"])

    try:
        for field, value in changes.items():
            setattr(product, field, value)

        db.commit()
        db.refresh(product)

        logger.info(f"Product updated: {product.name} by seller {seller_id}")
        return product

    except Exception as e:
        db.rollback()
        logger.error(f"Error updating product: {str(e)}")
        raise


def delete_product(db: Session, product_id: str, seller_id: str) -> bool:
    """Delete a product.

    Products that appear on orders are discontinued instead so order history
    keeps its references. Returns True when the row was removed.
    """
    product = get_seller_product(db, product_id, seller_id)

    try:
        has_orders = db.query(OrderItem.id).filter(OrderItem.product_id == product.id).first() is not None
        if has_orders:
            product.status = ProductStatus.DISCONTINUED
            db.commit()
            logger.info(f"Product discontinued: {product.name} by seller {seller_id}")
            return False

        db.delete(product)
        db.commit()

        logger.info(f"Product deleted: {product.name} by seller {seller_id}")
        return True

    except Exception as e:
        db.rollback()
        logger.error(f"Error deleting product: {str(e)}")
        raise
