"""Expense model."""
from sqlalchemy import Column, BigInteger, Integer, String, Text, Numeric, Date, DateTime, CheckConstraint
from sqlalchemy.sql import func
from bizdesk.database import Base


class Expense(Base):
    """Business expense."""

    __tablename__ = 'expenses'
    __table_args__ = (
        CheckConstraint('amount > 0', name='ck_expenses_amount_positive'),
    )

    id = Column(BigInteger().with_variant(Integer, 'sqlite'), primary_key=True, autoincrement=True)
    category = Column(String(100), nullable=False)
    description = Column(Text, nullable=False)
    amount = Column(Numeric(12, 2), nullable=False)
    date = Column(Date, nullable=False, index=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    def to_dict(self):
        return {
            'id': self.id,
            'category': self.category,
            'description': self.description,
            'amount': str(self.amount),
            'date': self.date.isoformat(),
        }

    def __repr__(self):
        return f"<Expense(id={self.id}, category='{self.category}', amount={self.amount})>"
