"""Sale Line model."""
from sqlalchemy import Column, BigInteger, Integer, String, Numeric, ForeignKey, CheckConstraint
from sqlalchemy.orm import relationship
from bizdesk.database import Base


class SaleLine(Base):
    """Sale Line - product sold within a sale (name snapshot kept)."""

    __tablename__ = 'sale_lines'
    __table_args__ = (
        CheckConstraint('quantity > 0', name='ck_sale_lines_quantity_positive'),
    )

    id = Column(BigInteger().with_variant(Integer, 'sqlite'), primary_key=True, autoincrement=True)
    sale_id = Column(BigInteger().with_variant(Integer, 'sqlite'), ForeignKey('sales.id', ondelete='CASCADE'), nullable=False, index=True)
    product_id = Column(BigInteger().with_variant(Integer, 'sqlite'), ForeignKey('products.id', ondelete='SET NULL'), nullable=True)
    product_name = Column(String(200), nullable=False)
    quantity = Column(Integer, nullable=False)
    unit_price = Column(Numeric(12, 2), nullable=False)

    # Relationships
    sale = relationship('Sale', back_populates='lines')

    @property
    def line_total(self):
        return self.quantity * self.unit_price

    def to_dict(self):
        return {
            'product_id': self.product_id,
            'product_name': self.product_name,
            'quantity': self.quantity,
            'unit_price': str(self.unit_price),
        }

    def __repr__(self):
        return f"<SaleLine(id={self.id}, sale_id={self.sale_id}, product_id={self.product_id}, qty={self.quantity})>"
