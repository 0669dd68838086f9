"""Payment model."""
from sqlalchemy import Column, BigInteger, Integer, Numeric, DateTime, ForeignKey, CheckConstraint
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from bizdesk.database import Base


class Payment(Base):
    """
    Payment received against a sale.

    Append-only: rows are never updated or deleted by the application, they
    are the audit trail behind the current due_amount of each sale.
    """

    __tablename__ = 'payments'
    __table_args__ = (
        CheckConstraint('amount > 0', name='ck_payments_amount_positive'),
    )

    id = Column(BigInteger().with_variant(Integer, 'sqlite'), primary_key=True, autoincrement=True)
    sale_id = Column(BigInteger().with_variant(Integer, 'sqlite'), ForeignKey('sales.id'), nullable=False, index=True)
    customer_id = Column(BigInteger().with_variant(Integer, 'sqlite'), ForeignKey('customers.id'), nullable=False, index=True)
    salesman_id = Column(BigInteger().with_variant(Integer, 'sqlite'), ForeignKey('app_users.id'), nullable=True)
    amount = Column(Numeric(12, 2), nullable=False)
    date = Column(DateTime(timezone=True), nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    # Relationships
    sale = relationship('Sale', back_populates='payments')

    def to_dict(self):
        return {
            'id': self.id,
            'sale_id': self.sale_id,
            'customer_id': self.customer_id,
            'salesman_id': self.salesman_id,
            'amount': str(self.amount),
            'date': self.date.isoformat() if self.date else None,
        }

    def __repr__(self):
        return f"<Payment(id={self.id}, sale_id={self.sale_id}, amount={self.amount})>"
