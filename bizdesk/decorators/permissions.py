"""
Capability-based access control.

Every route declares the capability it needs; the table below says which
roles hold it. Roles: admin, manager, cashier, salesman, worker.
"""

from functools import wraps
from flask import g

from bizdesk.exceptions import AuthenticationError, UnauthorizedError

ALL_ROLES = ('admin', 'manager', 'cashier', 'salesman', 'worker')

CAPABILITIES = {
    'view_dashboard': ALL_ROLES,
    'create_sales': ('admin', 'manager', 'cashier', 'salesman'),
    'receive_payments': ('admin', 'manager', 'cashier', 'salesman'),
    'view_own_customers': ('salesman',),
    'manage_customers': ('admin', 'manager', 'cashier'),
    'view_sales_records': ('admin', 'manager'),
    'manage_sales_plans': ('admin', 'manager'),
    'manage_worker_tasks': ('admin', 'manager'),
    'update_own_task': ('worker',),
    'view_inventory': ('admin', 'manager', 'worker'),
    'manage_inventory': ('admin', 'manager'),
    'manage_expenses': ('admin', 'manager', 'cashier'),
    'view_reports': ('admin', 'manager', 'salesman', 'worker'),
    'view_financial_reports': ('admin', 'manager'),
    'run_anomaly_detection': ('admin', 'manager'),
    'manage_settings': ('admin', 'manager'),
    'reset_data': ('admin',),
}


def has_capability(role, capability):
    """True when ``role`` holds ``capability``. Unknown capabilities are denied."""
    return role in CAPABILITIES.get(capability, ())


def capabilities_for(role):
    return sorted(name for name, roles in CAPABILITIES.items() if role in roles)


def require_capability(*capabilities):
    """
    Decorator: the current user must hold at least one of ``capabilities``.

    Usage:
        @require_capability('manage_inventory')
        @require_capability('manage_customers', 'view_own_customers')

    Raises:
        AuthenticationError: no logged-in user (401)
        UnauthorizedError: role lacks every listed capability (403)
    """
    unknown = [c for c in capabilities if c not in CAPABILITIES]
    if unknown:
        raise ValueError(f"Unknown capability: {', '.join(unknown)}")

    def decorator(f):
        @wraps(f)
        def decorated_function(*args, **kwargs):
            user = g.get('user')
            if user is None:
                raise AuthenticationError('Please log in to continue')

            if not any(has_capability(user.role, c) for c in capabilities):
                raise UnauthorizedError(
                    'You do not have permission to perform this action',
                    payload={'required': list(capabilities)}
                )

            return f(*args, **kwargs)

        return decorated_function
    return decorator
