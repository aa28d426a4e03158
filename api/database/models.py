"""
Database models for the Charted Art marketplace catalog
"""
import uuid
from datetime import datetime

from sqlalchemy import Column, DateTime, Float, ForeignKey, Index, Integer, String, Text
from sqlalchemy.orm import declarative_base, relationship

Base = declarative_base()


def _new_id() -> str:
    return str(uuid.uuid4())


class Artist(Base):
    """Artist (creator) profile"""

    __tablename__ = "artists"

    id = Column(String(36), primary_key=True, default=_new_id)
    full_name = Column(String(200), nullable=False, index=True)
    avatar_url = Column(Text, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)

    products = relationship("Product", back_populates="artist")

    def __repr__(self):
        return f"<Artist(id={self.id}, full_name='{self.full_name}')>"


class Product(Base):
    """Artwork offered in the marketplace"""

    __tablename__ = "products"

    id = Column(String(36), primary_key=True, default=_new_id)
    title = Column(String(500), nullable=False, index=True)
    description = Column(Text, nullable=True)
    price = Column(Float, nullable=False, index=True)
    currency = Column(String(3), default="USD")

    category = Column(String(50), nullable=True, index=True)
    style = Column(String(50), nullable=True, index=True)
    medium = Column(String(50), nullable=True, index=True)

    artist_id = Column(String(36), ForeignKey("artists.id"), nullable=True, index=True)
    year_created = Column(Integer, nullable=True, index=True)

    # Physical size in inches
    width = Column(Float, nullable=True)
    height = Column(Float, nullable=True)

    image_url = Column(Text, nullable=True)
    stock_quantity = Column(Integer, default=0)
    status = Column(String(20), default="active", index=True)  # active, draft, archived
    view_count = Column(Integer, default=0)
    created_at = Column(DateTime, default=datetime.utcnow, index=True)

    artist = relationship("Artist", back_populates="products")
    attributes = relationship("ProductAttribute", back_populates="product", cascade="all, delete-orphan")

    __table_args__ = (
        Index("idx_product_status_created", "status", "created_at"),
        Index("idx_product_category_style", "category", "style"),
    )

    def __repr__(self):
        return f"<Product(id={self.id}, title='{self.title[:50]}', price={self.price})>"


class ProductAttribute(Base):
    """Multi-valued product attributes: dominant colors and tags"""

    __tablename__ = "product_attributes"

    id = Column(Integer, primary_key=True, autoincrement=True)
    product_id = Column(String(36), ForeignKey("products.id"), nullable=False, index=True)

    attribute_name = Column(String(20), nullable=False, index=True)  # color, tag
    attribute_value = Column(String(100), nullable=False, index=True)
    position = Column(Integer, default=0)

    product = relationship("Product", back_populates="attributes")

    __table_args__ = (Index("idx_attribute_name_value", "attribute_name", "attribute_value"),)

    def __repr__(self):
        return f"<ProductAttribute(product_id={self.product_id}, {self.attribute_name}={self.attribute_value})>"


class BrowsingHistory(Base):
    """Product views by a user"""

    __tablename__ = "browsing_history"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(String(36), nullable=False, index=True)
    product_id = Column(String(36), ForeignKey("products.id"), nullable=False, index=True)
    time_spent_seconds = Column(Float, default=0)
    viewed_at = Column(DateTime, default=datetime.utcnow, index=True)

    product = relationship("Product")


class Order(Base):
    """Customer order"""

    __tablename__ = "orders"

    id = Column(String(36), primary_key=True, default=_new_id)
    user_id = Column(String(36), nullable=False, index=True)
    status = Column(String(20), default="pending", index=True)  # pending, paid, shipped, cancelled
    created_at = Column(DateTime, default=datetime.utcnow)

    items = relationship("OrderItem", back_populates="order", cascade="all, delete-orphan")


class OrderItem(Base):
    """Line item of an order"""

    __tablename__ = "order_items"

    id = Column(Integer, primary_key=True, autoincrement=True)
    order_id = Column(String(36), ForeignKey("orders.id"), nullable=False, index=True)
    product_id = Column(String(36), ForeignKey("products.id"), nullable=False, index=True)
    quantity = Column(Integer, default=1)
    price = Column(Float, nullable=True)

    order = relationship("Order", back_populates="items")
    product = relationship("Product")


class ArtistFollow(Base):
    """A user following an artist"""

    __tablename__ = "artist_follows"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(String(36), nullable=False, index=True)
    artist_id = Column(String(36), ForeignKey("artists.id"), nullable=False, index=True)
    created_at = Column(DateTime, default=datetime.utcnow)
