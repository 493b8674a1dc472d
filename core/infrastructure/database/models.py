"""
SQLAlchemy ORM Models.

Maps domain entities to database tables.
"""
from datetime import datetime, timezone
from sqlalchemy import (
    Column, String, DateTime, Date, Integer, Numeric, BigInteger,
    Text, Boolean, Index, ForeignKey, UniqueConstraint, CheckConstraint,
)
from sqlalchemy.orm import declarative_base, relationship


Base = declarative_base()


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


# =============================================================================
# CATALOG / INVENTORY
# =============================================================================

class ProductModel(Base):
    __tablename__ = "products"

    id = Column(String(64), primary_key=True)
    title = Column(String(500), nullable=False)
    created_at = Column(DateTime(timezone=True), default=_utcnow, nullable=False)

    variants = relationship(
        "ProductVariantModel",
        back_populates="product",
        cascade="all, delete-orphan",
        order_by="ProductVariantModel.article",
    )

    def __repr__(self):
        return f"<Product(id={self.id}, title={self.title!r})>"


class ProductVariantModel(Base):
    """
    Inventory record of one article.

    ``stock`` is only decremented by a conditional UPDATE, the check
    constraint is the last line of defence.
    """

    __tablename__ = "product_variants"

    id = Column(Integer, primary_key=True, autoincrement=True)
    product_id = Column(String(64), ForeignKey("products.id", ondelete="CASCADE"), nullable=False, index=True)
    article = Column(BigInteger, nullable=False)
    label = Column(String(255), nullable=False, default="")
    price = Column(Numeric(15, 2), nullable=False)
    currency = Column(String(3), nullable=False, default="RUB")
    discount_percent = Column(Numeric(5, 2), nullable=False, default=0)
    stock = Column(Integer, nullable=False, default=0)
    purchase_count = Column(Integer, nullable=False, default=0)

    product = relationship("ProductModel", back_populates="variants")

    __table_args__ = (
        UniqueConstraint("product_id", "article", name="uq_product_variants_article"),
        CheckConstraint("stock >= 0", name="ck_product_variants_stock_non_negative"),
    )


# =============================================================================
# CART
# =============================================================================

class CartModel(Base):
    __tablename__ = "carts"

    owner_id = Column(String(64), primary_key=True)
    last_activity = Column(DateTime(timezone=True), default=_utcnow, nullable=False)

    items = relationship(
        "CartItemModel",
        back_populates="cart",
        cascade="all, delete-orphan",
        order_by="CartItemModel.position",
    )


class CartItemModel(Base):
    __tablename__ = "cart_items"

    id = Column(Integer, primary_key=True, autoincrement=True)
    owner_id = Column(String(64), ForeignKey("carts.owner_id", ondelete="CASCADE"), nullable=False, index=True)
    position = Column(Integer, nullable=False, default=0)
    product_id = Column(String(64), nullable=False)
    article = Column(BigInteger, nullable=False)
    quantity = Column(Integer, nullable=False)
    added_at = Column(DateTime(timezone=True), default=_utcnow, nullable=False)

    cart = relationship("CartModel", back_populates="items")

    __table_args__ = (
        UniqueConstraint("owner_id", "product_id", "article", name="uq_cart_items_line"),
        CheckConstraint("quantity >= 1", name="ck_cart_items_quantity_positive"),
    )


# =============================================================================
# ORDER MODEL
# =============================================================================

class OrderModel(Base):
    """
    Order database model.

    Orders are never deleted; reversal is a status.
    """

    __tablename__ = "orders"

    id = Column(String(32), primary_key=True)
    order_number = Column(String(32), unique=True, nullable=False, index=True)

    # Owner snapshot
    owner_id = Column(String(64), nullable=False, index=True)
    owner_email = Column(String(255), nullable=False, default="")
    owner_telegram_id = Column(BigInteger, nullable=True)

    status = Column(String(32), nullable=False, index=True)
    currency = Column(String(3), nullable=False, default="RUB")

    # Delivery
    delivery_type = Column(String(16), nullable=False)
    delivery_phone = Column(String(32), nullable=False)
    delivery_city = Column(String(255), nullable=False, default="")
    delivery_address = Column(String(500), nullable=False, default="")
    delivery_recipient_name = Column(String(255), nullable=False, default="")
    delivery_postal_code = Column(String(16), nullable=True)
    delivery_comment = Column(Text, nullable=True)

    # Payment
    payment_method = Column(String(16), nullable=False)
    payment_status = Column(Boolean, nullable=False, default=False)
    payment_id = Column(String(64), nullable=True, unique=True)

    tracking_number = Column(String(64), nullable=True)
    cancellation_reason = Column(Text, nullable=True)
    estimated_delivery_date = Column(Date, nullable=True)
    document_url = Column(String(1024), nullable=True)

    # Reconciliation flags
    stock_reserved = Column(Boolean, nullable=False, default=False)
    cart_cleared = Column(Boolean, nullable=False, default=False)

    # Timestamps
    created_at = Column(DateTime(timezone=True), default=_utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=_utcnow, nullable=False)
    cancelled_at = Column(DateTime(timezone=True), nullable=True)
    delivered_at = Column(DateTime(timezone=True), nullable=True)

    items = relationship(
        "OrderLineModel",
        back_populates="order",
        cascade="all, delete-orphan",
        order_by="OrderLineModel.position",
    )

    __table_args__ = (
        Index("ix_orders_owner_created", "owner_id", "created_at"),
        Index("ix_orders_reconciliation", "stock_reserved", "cart_cleared"),
    )

    def __repr__(self):
        return f"<Order(number={self.order_number}, status={self.status})>"


class OrderLineModel(Base):
    """Line item with pricing frozen at checkout."""

    __tablename__ = "order_lines"

    id = Column(Integer, primary_key=True, autoincrement=True)
    order_id = Column(String(32), ForeignKey("orders.id", ondelete="CASCADE"), nullable=False, index=True)
    position = Column(Integer, nullable=False, default=0)

    product_id = Column(String(64), nullable=False)
    article = Column(BigInteger, nullable=False)
    title = Column(String(500), nullable=False)
    quantity = Column(Integer, nullable=False)
    unit_price = Column(Numeric(15, 2), nullable=False)
    discount_percent = Column(Numeric(5, 2), nullable=False, default=0)
    stock_deducted = Column(Boolean, nullable=False, default=False)

    order = relationship("OrderModel", back_populates="items")
