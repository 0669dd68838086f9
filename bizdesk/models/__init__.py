"""Models package - exports all SQLAlchemy models."""
from bizdesk.models.app_user import AppUser, UserRole
from bizdesk.models.product import Product
from bizdesk.models.customer import Customer
from bizdesk.models.sale import Sale
from bizdesk.models.sale_line import SaleLine
from bizdesk.models.payment import Payment
from bizdesk.models.expense import Expense
from bizdesk.models.worker_task import WorkerTask, WorkerTaskHistory
from bizdesk.models.salesman_plan import SalesmanPlan, SalesmanPlanHistory
from bizdesk.models.app_setting import AppSetting

__all__ = [
    'AppUser', 'UserRole',
    'Product', 'Customer', 'Sale', 'SaleLine', 'Payment', 'Expense',
    'WorkerTask', 'WorkerTaskHistory', 'SalesmanPlan', 'SalesmanPlanHistory',
    'AppSetting',
]
