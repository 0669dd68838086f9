"""Customer model."""
from decimal import Decimal
from sqlalchemy import Column, BigInteger, Integer, String, Text, Numeric, DateTime, ForeignKey
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from bizdesk.database import Base


class Customer(Base):
    """Customer with a running balance (total_due) over its sales."""

    __tablename__ = 'customers'

    id = Column(BigInteger().with_variant(Integer, 'sqlite'), primary_key=True, autoincrement=True)
    name = Column(String(200), nullable=False)
    phone = Column(String(50), nullable=False)
    address = Column(Text, nullable=False)
    salesman_id = Column(BigInteger().with_variant(Integer, 'sqlite'), ForeignKey('app_users.id'), nullable=True, index=True)
    total_due = Column(Numeric(12, 2), nullable=False, default=Decimal('0.00'))
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    version_id = Column(Integer, nullable=False)

    __mapper_args__ = {'version_id_col': version_id}

    # Relationships
    salesman = relationship('AppUser', foreign_keys=[salesman_id])
    sales = relationship('Sale', back_populates='customer', order_by='Sale.date.desc()')

    def to_dict(self):
        return {
            'id': self.id,
            'name': self.name,
            'phone': self.phone,
            'address': self.address,
            'salesman_id': self.salesman_id,
            'total_due': str(self.total_due),
            'created_at': self.created_at.isoformat() if self.created_at else None,
        }

    def __repr__(self):
        return f"<Customer(id={self.id}, name='{self.name}', total_due={self.total_due})>"
