"""Product model."""
from sqlalchemy import Column, BigInteger, Integer, String, Numeric, Date, DateTime, CheckConstraint
from sqlalchemy.sql import func
from bizdesk.database import Base


class Product(Base):
    """Product (inventory item, stock counted in boxes)."""

    __tablename__ = 'products'
    __table_args__ = (
        CheckConstraint('stock >= 0', name='ck_products_stock_non_negative'),
        CheckConstraint('pieces_per_box >= 1', name='ck_products_pieces_per_box'),
    )

    id = Column(BigInteger().with_variant(Integer, 'sqlite'), primary_key=True, autoincrement=True)
    name = Column(String(200), nullable=False)
    sku = Column(String(64), nullable=False, unique=True)
    pieces_per_box = Column(Integer, nullable=False, default=1)
    stock = Column(Integer, nullable=False, default=0)
    cost_price = Column(Numeric(12, 2), nullable=False, default=0)
    sale_price = Column(Numeric(12, 2), nullable=False, default=0)
    expiry_date = Column(Date, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    version_id = Column(Integer, nullable=False)

    __mapper_args__ = {'version_id_col': version_id}

    def to_dict(self):
        return {
            'id': self.id,
            'name': self.name,
            'sku': self.sku,
            'pieces_per_box': self.pieces_per_box,
            'stock': self.stock,
            'cost_price': str(self.cost_price),
            'sale_price': str(self.sale_price),
            'expiry_date': self.expiry_date.isoformat() if self.expiry_date else None,
        }

    def __repr__(self):
        return f"<Product(id={self.id}, name='{self.name}', sku='{self.sku}', stock={self.stock})>"
