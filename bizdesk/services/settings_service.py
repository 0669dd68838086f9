"""
Settings service - application settings and data reset.

Settings are key/value rows merged over DEFAULT_SETTINGS. Reads go through the
Redis cache; updates and resets invalidate it.
"""
import json
from typing import Any, Dict, Iterable, List
import logging

from sqlalchemy import update

from bizdesk.exceptions import BusinessLogicError
from bizdesk.models import (
    AppSetting, Customer, Expense, Payment, Product, Sale, SaleLine,
    SalesmanPlan, SalesmanPlanHistory, WorkerTask, WorkerTaskHistory
)
from bizdesk.services.cache_service import get_cache
from bizdesk.utils.money import ZERO

logger = logging.getLogger(__name__)

CACHE_MODULE = 'settings'
CACHE_KEY = 'app'

DEFAULT_SETTINGS: Dict[str, Any] = {
    'app_name': 'JS Glow',
    'currency': 'USD',
    'signup_visible': True,
    'logo_url_light': '',
    'logo_url_dark': '',
    'auth_logo_url_light': '',
    'auth_logo_url_dark': '',
    'favicon_url': '',
}

CURRENCIES: List[Dict[str, str]] = [
    {'code': 'USD', 'name': 'US Dollar', 'symbol': '$'},
    {'code': 'EUR', 'name': 'Euro', 'symbol': '€'},
    {'code': 'PKR', 'name': 'Pakistani Rupee', 'symbol': '₨'},
    {'code': 'GBP', 'name': 'British Pound', 'symbol': '£'},
    {'code': 'JPY', 'name': 'Japanese Yen', 'symbol': '¥'},
]

# Reset groups -> tables, listed children before parents.
RESET_GROUPS = {
    'customers': [Payment, SaleLine, Sale, Customer],
    'sales': [Payment, SaleLine, Sale],
    'products': [Product],
    'expenses': [Expense],
    'salesman_plans': [SalesmanPlanHistory, SalesmanPlan],
    'worker_tasks': [WorkerTaskHistory, WorkerTask],
    'history': [SalesmanPlanHistory, WorkerTaskHistory],
}

_DELETE_ORDER = [
    Payment, SaleLine, Sale, Customer, Product, Expense,
    SalesmanPlanHistory, SalesmanPlan, WorkerTaskHistory, WorkerTask,
]


def currency_symbol(code: str) -> str:
    """Symbol for a currency code; unknown codes fall back to '$'."""
    for currency in CURRENCIES:
        if currency['code'] == code:
            return currency['symbol']
    return '$'


def _load_settings(session) -> Dict[str, Any]:
    settings = dict(DEFAULT_SETTINGS)
    for row in session.query(AppSetting).all():
        if row.key in DEFAULT_SETTINGS:
            settings[row.key] = json.loads(row.value)
    settings['currency_symbol'] = currency_symbol(settings['currency'])
    return settings


def get_settings(session) -> Dict[str, Any]:
    """Current settings (stored values over defaults)."""
    return get_cache().memoize(CACHE_MODULE, CACHE_KEY, lambda: _load_settings(session))


def _validate_settings(data: Dict[str, Any]) -> Dict[str, Any]:
    unknown = set(data) - set(DEFAULT_SETTINGS)
    if unknown:
        raise BusinessLogicError(f"Unknown setting(s): {', '.join(sorted(unknown))}")

    cleaned = {}
    for key, value in data.items():
        if key == 'signup_visible':
            if not isinstance(value, bool):
                raise BusinessLogicError('signup_visible must be true or false')
            cleaned[key] = value
            continue
        if value is None:
            value = ''
        if not isinstance(value, str):
            raise BusinessLogicError(f'{key} must be text')
        cleaned[key] = value.strip()

    if 'app_name' in cleaned and not cleaned['app_name']:
        raise BusinessLogicError('App name cannot be empty')
    if 'currency' in cleaned:
        cleaned['currency'] = cleaned['currency'].upper()
        if cleaned['currency'] not in {c['code'] for c in CURRENCIES}:
            raise BusinessLogicError(f"Unsupported currency: {cleaned['currency']}")
    return cleaned


def update_settings(session, data: Dict[str, Any]) -> Dict[str, Any]:
    """Store the given settings and return the merged result."""
    cleaned = _validate_settings(data)
    for key, value in cleaned.items():
        row = session.get(AppSetting, key)
        if row is None:
            session.add(AppSetting(key=key, value=json.dumps(value)))
        else:
            row.value = json.dumps(value)
    session.commit()
    get_cache().delete(CACHE_MODULE, CACHE_KEY)

    logger.info(f"Settings updated: {sorted(cleaned)}")
    return get_settings(session)


def reset_data(session, groups: Iterable[str]) -> List[str]:
    """
    Delete every row of the tables mapped from ``groups``.

    Deleting sales zeroes the remaining customers' total_due so the
    customer balances keep matching their (now absent) sales.

    Returns:
        Names of the cleared tables.
    """
    groups = list(groups or [])
    if not groups:
        raise BusinessLogicError('Please select at least one data category to reset')
    unknown = [g for g in groups if g not in RESET_GROUPS]
    if unknown:
        raise BusinessLogicError(f"Unknown data category: {', '.join(unknown)}")

    selected = set()
    for group in groups:
        selected.update(RESET_GROUPS[group])

    try:
        cleared = []
        for model in _DELETE_ORDER:
            if model in selected:
                session.query(model).delete(synchronize_session=False)
                cleared.append(model.__tablename__)
        if Sale in selected and Customer not in selected:
            session.execute(update(Customer).values(total_due=ZERO, version_id=Customer.version_id + 1))
        session.commit()
    except Exception:
        session.rollback()
        raise

    session.expire_all()
    logger.warning(f"Data reset: groups={groups}, tables={cleared}")
    return cleared
