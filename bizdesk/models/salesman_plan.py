"""Salesman plan models: the current route plan per salesman plus archived plans."""
from sqlalchemy import Column, BigInteger, Integer, String, Text, DateTime, ForeignKey
from sqlalchemy.orm import relationship
from bizdesk.database import Base


class SalesmanPlan(Base):
    """Current plan (location + items to carry) for a salesman."""

    __tablename__ = 'salesman_plans'

    salesman_id = Column(BigInteger().with_variant(Integer, 'sqlite'), ForeignKey('app_users.id', ondelete='CASCADE'), primary_key=True)
    location = Column(String(255), nullable=False)
    items_to_carry = Column(Text, nullable=True)
    assigned_by = Column(BigInteger().with_variant(Integer, 'sqlite'), ForeignKey('app_users.id'), nullable=True)
    assigned_by_name = Column(String(200), nullable=True)
    updated_at = Column(DateTime(timezone=True), nullable=False)

    salesman = relationship('AppUser', foreign_keys=[salesman_id])

    def to_dict(self):
        return {
            'salesman_id': self.salesman_id,
            'salesman_name': self.salesman.name if self.salesman else None,
            'location': self.location,
            'items_to_carry': self.items_to_carry,
            'assigned_by': self.assigned_by,
            'assigned_by_name': self.assigned_by_name,
            'updated_at': self.updated_at.isoformat() if self.updated_at else None,
        }

    def __repr__(self):
        return f"<SalesmanPlan(salesman_id={self.salesman_id}, location='{self.location}')>"


class SalesmanPlanHistory(Base):
    """A plan that was replaced by a newer one."""

    __tablename__ = 'salesman_plan_history'

    id = Column(BigInteger().with_variant(Integer, 'sqlite'), primary_key=True, autoincrement=True)
    salesman_id = Column(BigInteger().with_variant(Integer, 'sqlite'), ForeignKey('app_users.id', ondelete='CASCADE'), nullable=False, index=True)
    location = Column(String(255), nullable=False)
    items_to_carry = Column(Text, nullable=True)
    assigned_by = Column(BigInteger().with_variant(Integer, 'sqlite'), nullable=True)
    assigned_by_name = Column(String(200), nullable=True)
    updated_at = Column(DateTime(timezone=True), nullable=True)
    end_date = Column(DateTime(timezone=True), nullable=False, index=True)

    salesman = relationship('AppUser', foreign_keys=[salesman_id])

    def to_dict(self):
        return {
            'id': self.id,
            'salesman_id': self.salesman_id,
            'salesman_name': self.salesman.name if self.salesman else None,
            'location': self.location,
            'items_to_carry': self.items_to_carry,
            'assigned_by_name': self.assigned_by_name,
            'updated_at': self.updated_at.isoformat() if self.updated_at else None,
            'end_date': self.end_date.isoformat(),
        }
