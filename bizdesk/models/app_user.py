"""AppUser model - platform users with email/password authentication and a role."""
import enum
from sqlalchemy import Column, BigInteger, Integer, String, Boolean, DateTime
from sqlalchemy.sql import func
from werkzeug.security import generate_password_hash, check_password_hash
from bizdesk.database import Base


class UserRole(enum.Enum):
    """Roles consulted by the capability table."""
    ADMIN = 'admin'
    MANAGER = 'manager'
    CASHIER = 'cashier'
    SALESMAN = 'salesman'
    WORKER = 'worker'


class AppUser(Base):
    """AppUser model - the authenticated identity (opaque id + role claim)."""

    __tablename__ = 'app_users'

    id = Column(BigInteger().with_variant(Integer, 'sqlite'), primary_key=True, autoincrement=True)
    email = Column(String(255), nullable=False, unique=True)
    password_hash = Column(String(255), nullable=False)
    name = Column(String(200), nullable=False)
    role = Column(String(20), nullable=False, default=UserRole.SALESMAN.value)
    gender = Column(String(10), nullable=True)  # male, female
    active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    def set_password(self, password):
        """Set password hash."""
        self.password_hash = generate_password_hash(password, method='scrypt')

    def check_password(self, password):
        """Check password against hash."""
        if not self.password_hash:
            return False
        return check_password_hash(self.password_hash, password)

    def has_role(self, *roles):
        return self.role in [r.value if isinstance(r, UserRole) else r for r in roles]

    def to_dict(self):
        return {
            'id': self.id,
            'email': self.email,
            'name': self.name,
            'role': self.role,
            'gender': self.gender,
        }

    def __repr__(self):
        return f"<AppUser(id={self.id}, email='{self.email}', role='{self.role}')>"
