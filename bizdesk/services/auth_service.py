"""
Authentication service for user management.

Handles account creation and email/password verification.
"""
import re
import logging
from typing import List, Optional

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError

from bizdesk.exceptions import AuthenticationError, BusinessLogicError
from bizdesk.models import AppUser, UserRole

logger = logging.getLogger(__name__)

EMAIL_PATTERN = re.compile(r'^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$')

# Roles a visitor may pick on the signup page
SELF_SIGNUP_ROLES = (UserRole.SALESMAN.value, UserRole.CASHIER.value, UserRole.WORKER.value)


def is_valid_email(email: str) -> bool:
    return EMAIL_PATTERN.match(email or '') is not None


def create_user(session, email: str, password: str, name: str, role: str = UserRole.SALESMAN.value,
                gender: Optional[str] = None) -> AppUser:
    """
    Create a user account.

    Raises:
        BusinessLogicError: invalid email/password/name/role/gender or duplicate email
    """
    email = (email or '').strip().lower()
    name = (name or '').strip()
    if not is_valid_email(email):
        raise BusinessLogicError('Invalid email address')
    if not password or len(password) < 6:
        raise BusinessLogicError('Password must be at least 6 characters')
    if not name:
        raise BusinessLogicError('Name is required')
    if role not in [r.value for r in UserRole]:
        raise BusinessLogicError(f'Invalid role: {role}')
    if gender not in (None, '', 'male', 'female'):
        raise BusinessLogicError('Gender must be male or female')

    if session.query(AppUser).filter(func.lower(AppUser.email) == email).first():
        raise BusinessLogicError('An account with this email already exists')

    user = AppUser(email=email, name=name, role=role, gender=gender or None, active=True)
    user.set_password(password)
    session.add(user)
    try:
        session.commit()
    except IntegrityError:
        session.rollback()
        raise BusinessLogicError('An account with this email already exists')

    logger.info(f"User created: id={user.id}, role={user.role}")
    return user


def register_user(session, email: str, password: str, name: str, role: Optional[str] = None,
                  gender: Optional[str] = None) -> AppUser:
    """
    Self-service signup. The very first account becomes the admin; later
    accounts pick one of SELF_SIGNUP_ROLES (salesman by default).
    """
    if session.query(func.count(AppUser.id)).scalar() == 0:
        role = UserRole.ADMIN.value
    else:
        role = role or UserRole.SALESMAN.value
        if role not in SELF_SIGNUP_ROLES:
            raise BusinessLogicError(f"Role '{role}' cannot be chosen at signup")
    return create_user(session, email, password, name, role=role, gender=gender)


def authenticate(session, email: str, password: str) -> AppUser:
    """Return the active user matching the credentials or raise AuthenticationError."""
    email = (email or '').strip().lower()
    if not email or not password:
        raise BusinessLogicError('Email and password are required')

    user = session.query(AppUser).filter(func.lower(AppUser.email) == email).first()
    if not user or not user.active or not user.check_password(password):
        logger.info(f"Failed login for {email}")
        raise AuthenticationError('Invalid email or password')
    return user


def list_users(session, role: Optional[str] = None) -> List[AppUser]:
    query = session.query(AppUser).filter(AppUser.active == True)  # noqa: E712
    if role:
        query = query.filter(AppUser.role == role)
    return query.order_by(AppUser.name).all()
