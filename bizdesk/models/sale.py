"""Sale model."""
from decimal import Decimal
from sqlalchemy import Column, BigInteger, Integer, String, Text, Numeric, DateTime, ForeignKey, CheckConstraint
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from bizdesk.database import Base


class Sale(Base):
    """
    Sale (confirmed, immutable except for paid_amount/due_amount).

    total_amount == sum(quantity * unit_price) - discount
    paid_amount + due_amount == total_amount
    """

    __tablename__ = 'sales'
    __table_args__ = (
        CheckConstraint('due_amount >= 0', name='ck_sales_due_non_negative'),
        CheckConstraint('paid_amount >= 0', name='ck_sales_paid_non_negative'),
    )

    id = Column(BigInteger().with_variant(Integer, 'sqlite'), primary_key=True, autoincrement=True)
    date = Column(DateTime(timezone=True), nullable=False, index=True)
    salesman_id = Column(BigInteger().with_variant(Integer, 'sqlite'), ForeignKey('app_users.id'), nullable=True, index=True)
    customer_id = Column(BigInteger().with_variant(Integer, 'sqlite'), ForeignKey('customers.id'), nullable=False, index=True)

    # Customer snapshot at sale time
    customer_name = Column(String(200), nullable=False)
    customer_phone = Column(String(50), nullable=True)
    customer_address = Column(Text, nullable=True)

    discount = Column(Numeric(12, 2), nullable=False, default=Decimal('0.00'))
    total_amount = Column(Numeric(12, 2), nullable=False)
    paid_amount = Column(Numeric(12, 2), nullable=False, default=Decimal('0.00'))
    due_amount = Column(Numeric(12, 2), nullable=False, default=Decimal('0.00'))
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    version_id = Column(Integer, nullable=False)

    __mapper_args__ = {'version_id_col': version_id}

    # Relationships
    salesman = relationship('AppUser', foreign_keys=[salesman_id])
    customer = relationship('Customer', back_populates='sales')
    lines = relationship('SaleLine', back_populates='sale', cascade='all, delete-orphan', order_by='SaleLine.id')
    payments = relationship('Payment', back_populates='sale', order_by='Payment.date')

    def to_dict(self, with_lines=True):
        data = {
            'id': self.id,
            'date': self.date.isoformat() if self.date else None,
            'salesman_id': self.salesman_id,
            'salesman_name': self.salesman.name if self.salesman else None,
            'customer_id': self.customer_id,
            'customer_name': self.customer_name,
            'customer_phone': self.customer_phone,
            'customer_address': self.customer_address,
            'discount': str(self.discount),
            'total_amount': str(self.total_amount),
            'paid_amount': str(self.paid_amount),
            'due_amount': str(self.due_amount),
        }
        if with_lines:
            data['products'] = [line.to_dict() for line in self.lines]
        return data

    def __repr__(self):
        return f"<Sale(id={self.id}, total={self.total_amount}, due={self.due_amount})>"
