import uuid
from datetime import datetime
from sqlalchemy import Column, String, Boolean, DateTime, ForeignKey, Numeric, Integer, Text, Enum, CheckConstraint
from sqlalchemy.orm import relationship
from database.base import Base
import enum

class ProductStatus(str, enum.Enum):
    ACTIVE = "ACTIVE"
    INACTIVE = "INACTIVE"
    OUT_OF_STOCK = "OUT_OF_STOCK"
    DISCONTINUED = "DISCONTINUED"

class Product(Base):
    __tablename__ = "products"
    __table_args__ = (
        CheckConstraint("stock >= 0", name="ck_products_stock_non_negative"),
    )

    id = Column(String, primary_key=True, default=lambda: str(uuid.uuid4()), index=True)
    seller_id = Column(String, ForeignKey("users.id"), nullable=False, index=True)
    category_id = Column(String, ForeignKey("categories.id"), nullable=True, index=True)
    material_id = Column(String, ForeignKey("materials.id"), nullable=True, index=True)
    name = Column(String, nullable=False)
    description = Column(Text, nullable=True)
    price = Column(Numeric(10, 2), nullable=False)
    stock = Column(Integer, nullable=False, default=0)
    status = Column(Enum(ProductStatus), default=ProductStatus.ACTIVE, index=True)
    featured = Column(Boolean, default=False)
    images = Column(Text, nullable=True)  # comma-joined image URLs
    created_at = Column(DateTime, default=datetime.utcnow, index=True)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    seller = relationship("User", back_populates="products")
    category = relationship("Category", back_populates="products")
    material = relationship("Material", back_populates="products")
    order_items = relationship("OrderItem", back_populates="product")

    @property
    def image_list(self):
        if not self.images:
            return []
        return [url.strip() for url in self.images.split(",") if url.strip()]

    @property
    def primary_image(self):
        images = self.image_list
        return images[0] if images else None
