"""
Integration tests for reports, the dashboard, worker tasks and salesman plans.
"""

from datetime import date, datetime, timedelta
import pytest

from bizdesk.exceptions import BusinessLogicError
from bizdesk.models import SalesmanPlanHistory, WorkerTaskHistory
from bizdesk.services import expense_service, report_service, sales_service, task_service


def _sell(session, salesman, customer, product, quantity, when, **kwargs):
    return sales_service.create_sale(
        session, salesman.id,
        lines=[{'product_id': product.id, 'quantity': quantity, 'unit_price': '100'}],
        customer_id=customer.id,
        sale_date=when,
        **kwargs
    )


class TestFinancialReports:

    def test_end_date_is_inclusive(self, client, login_as, session, manager, salesman, customer, product):
        _sell(session, salesman, customer, product, 2, datetime(2026, 3, 15, 23, 30))
        _sell(session, salesman, customer, product, 1, datetime(2026, 3, 16, 0, 5))
        login_as(manager)

        report = client.get('/reports/sales?start_date=2026-03-15&end_date=2026-03-15').get_json()
        assert report['total_sales'] == 1
        assert report['total_revenue'] == '200.00'
        assert report['total_due'] == '200.00'

    def test_start_after_end_is_rejected(self, client, login_as, manager):
        login_as(manager)
        response = client.get('/reports/sales?start_date=2026-03-20&end_date=2026-03-01')
        assert response.status_code == 400
        assert 'before the end date' in response.get_json()['message']

    def test_missing_dates_are_rejected(self, client, login_as, manager):
        login_as(manager)
        assert client.get('/reports/profit-loss?start_date=2026-03-01').status_code == 400

    def test_profit_and_loss(self, client, login_as, session, admin, salesman, customer, product):
        _sell(session, salesman, customer, product, 3, datetime(2026, 3, 10, 12, 0), discount='20')
        expense_service.create_expense(session, {
            'category': 'Rent', 'description': 'March rent', 'amount': '450', 'date': date(2026, 3, 1),
        })
        expense_service.create_expense(session, {
            'category': 'Fuel', 'description': 'April fuel', 'amount': '99', 'date': date(2026, 4, 1),
        })
        login_as(admin)

        report = client.get('/reports/profit-loss?start_date=2026-03-01&end_date=2026-03-31').get_json()
        assert report['total_revenue'] == '280.00'
        assert report['total_expenses'] == '450.00'
        assert report['net_profit_or_loss'] == '-170.00'

        expenses = client.get('/reports/expenses?start_date=2026-03-01&end_date=2026-03-31').get_json()
        assert expenses['expense_count'] == 1

    def test_my_sales_only_lists_own_sales(
            self, client, login_as, session, salesman, other_salesman, customer, product):
        _sell(session, salesman, customer, product, 1, datetime(2026, 5, 2, 9, 0))
        _sell(session, other_salesman, customer, product, 1, datetime(2026, 5, 2, 10, 0))
        login_as(salesman)

        report = client.get('/reports/my-sales?start_date=2026-05-01&end_date=2026-05-31').get_json()
        assert report['total_sales'] == 1
        assert report['sales'][0]['salesman_id'] == salesman.id

    def test_salesman_cannot_see_financial_reports(self, client, login_as, salesman):
        login_as(salesman)
        assert client.get('/reports/profit-loss?start_date=2026-05-01&end_date=2026-05-31').status_code == 403


class TestDashboard:

    def test_summary_window(self, session, salesman, customer, product, product2):
        now = datetime(2026, 6, 30, 12, 0)
        _sell(session, salesman, customer, product, 2, now - timedelta(days=2))
        sales_service.create_sale(
            session, salesman.id,
            lines=[{'product_id': product2.id, 'quantity': 3, 'unit_price': '35'}],
            customer_id=customer.id,
            sale_date=now - timedelta(days=1),
        )
        _sell(session, salesman, customer, product, 1, now - timedelta(days=45))
        expense_service.create_expense(session, {
            'category': 'Fuel', 'description': 'Van', 'amount': '50', 'date': date(2026, 6, 20),
        })

        summary = report_service.dashboard_summary(session, days=30, now=now)
        assert summary['total_revenue'] == '305.00'
        assert summary['total_expenses'] == '50.00'
        assert summary['net_profit'] == '255.00'
        assert summary['top_products'][0] == {'name': 'Bleach', 'quantity': 3}
        assert len(summary['recent_sales']) == 3

    def test_dashboard_is_role_specific(self, client, login_as, session, manager, salesman, worker):
        task_service.assign_worker_task(session, worker.id, 'Restock shelf B')
        task_service.save_salesman_plan(session, salesman.id, 'North market', '20 soap', assigned_by=manager)

        login_as(worker)
        assert client.get('/dashboard').get_json()['task']['task'] == 'Restock shelf B'

        login_as(salesman)
        assert client.get('/dashboard').get_json()['plan']['location'] == 'North market'

        login_as(manager)
        body = client.get('/dashboard').get_json()
        assert body['total_revenue'] == '0.00'
        assert body['user']['role'] == 'manager'


class TestWorkerTasks:

    def test_assign_progress_and_complete(self, client, login_as, session, manager, worker):
        login_as(manager)
        response = client.post('/tasks', json={'worker_id': worker.id, 'task': 'Count stock in aisle 3'})
        assert response.status_code == 201

        login_as(worker)
        response = client.post('/tasks/mine/progress', json={'progress': 'half way'})
        assert response.get_json()['task']['progress'] == 'half way'

        response = client.post('/tasks/mine/progress', json={'progress': 'DONE'})
        assert response.get_json()['task']['progress'] == 'Done'
        assert session.query(WorkerTaskHistory).filter_by(worker_id=worker.id).count() == 1

        response = client.post('/tasks/mine/progress', json={'progress': 'done'})
        assert response.status_code == 400
        assert session.query(WorkerTaskHistory).count() == 1

        history = client.get('/reports/task-history').get_json()
        assert [t['task'] for t in history['tasks']] == ['Count stock in aisle 3']

    def test_reassigning_resets_progress(self, session, worker):
        task_service.assign_worker_task(session, worker.id, 'First')
        task_service.update_worker_progress(session, worker.id, 'started')
        task = task_service.assign_worker_task(session, worker.id, 'Second')
        assert task.task == 'Second'
        assert task.progress == ''

    def test_task_only_for_workers(self, client, login_as, manager, salesman):
        login_as(manager)
        response = client.post('/tasks', json={'worker_id': salesman.id, 'task': 'Sweep'})
        assert response.status_code == 400

    def test_progress_without_task(self, client, login_as, worker):
        login_as(worker)
        assert client.post('/tasks/mine/progress', json={'progress': 'done'}).status_code == 404

    def test_worker_cannot_read_other_history(self, client, login_as, worker, manager):
        login_as(worker)
        assert client.get(f'/reports/task-history?worker_id={manager.id}').status_code == 403

    def test_overview_lists_every_worker(self, client, login_as, session, manager, worker):
        login_as(manager)
        workers = client.get('/tasks').get_json()['workers']
        assert workers == [{
            'worker_id': worker.id, 'worker_name': 'Worker One', 'gender': 'female',
            'task': None, 'progress': None, 'updated_at': None,
        }]


class TestSalesmanPlans:

    def test_new_plan_archives_previous(self, client, login_as, session, manager, salesman):
        login_as(manager)
        client.post('/plans', json={'salesman_id': salesman.id, 'location': 'Old Town', 'items_to_carry': 'Soap'})
        response = client.post('/plans', json={
            'salesman_id': salesman.id, 'location': 'Harbour', 'items_to_carry': 'Bleach',
        })
        assert response.status_code == 201
        assert response.get_json()['plan']['assigned_by_name'] == 'Manager User'

        history = client.get(f'/plans/history?salesman_id={salesman.id}').get_json()['history']
        assert [h['location'] for h in history] == ['Old Town']
        assert session.query(SalesmanPlanHistory).count() == 1

        login_as(salesman)
        assert client.get('/plans/mine').get_json()['plan']['location'] == 'Harbour'

    def test_plan_requires_location(self, session, manager, salesman):
        with pytest.raises(BusinessLogicError):
            task_service.save_salesman_plan(session, salesman.id, '  ', 'Soap', assigned_by=manager)


class TestExpensesEndpoint:

    def test_crud(self, client, login_as, session, cashier):
        login_as(cashier)
        response = client.post('/expenses', json={
            'category': 'Utilities', 'description': 'Electricity', 'amount': '120.5', 'date': '2026-02-10',
        })
        assert response.status_code == 201
        expense_id = response.get_json()['expense']['id']

        response = client.put(f'/expenses/{expense_id}', json={
            'category': 'Utilities', 'description': 'Electricity (Feb)', 'amount': '130', 'date': '2026-02-10',
        })
        assert response.get_json()['expense']['amount'] == '130.00'

        listed = client.get('/expenses?start_date=2026-02-01&end_date=2026-02-28').get_json()['expenses']
        assert len(listed) == 1
        assert client.delete(f'/expenses/{expense_id}').status_code == 200
        assert client.delete(f'/expenses/{expense_id}').status_code == 404

    def test_amount_must_be_positive(self, client, login_as, cashier):
        login_as(cashier)
        response = client.post('/expenses', json={'category': 'Misc', 'description': 'Free', 'amount': '0'})
        assert response.status_code == 400

    def test_partial_update_keeps_stored_fields(self, client, login_as, manager):
        login_as(manager)
        expense_id = client.post('/expenses', json={
            'category': 'Rent', 'description': 'Shop rent', 'amount': '500', 'date': '2024-01-05',
        }).get_json()['expense']['id']

        patched = client.patch(f'/expenses/{expense_id}', json={'amount': '75'})
        assert patched.status_code == 200
        expense = patched.get_json()['expense']
        assert expense['amount'] == '75.00'
        assert expense['date'] == '2024-01-05'
        assert expense['category'] == 'Rent'

        replaced = client.put(f'/expenses/{expense_id}', json={
            'category': 'Rent', 'description': 'Shop rent (Jan)', 'amount': '80',
        })
        assert replaced.get_json()['expense']['date'] == '2024-01-05'

        report = client.get('/reports/expenses?start_date=2024-01-01&end_date=2024-01-31').get_json()
        assert report['expense_count'] == 1
        assert report['total_expenses'] == '80.00'

    def test_service_update_without_date_keeps_it(self, session):
        expense = expense_service.create_expense(session, {
            'category': 'Misc', 'description': 'Tape', 'amount': '3', 'date': '2024-03-09',
        })
        updated = expense_service.update_expense(session, expense.id, {'amount': '4', 'date': None})
        assert updated.date == date(2024, 3, 9)
        assert updated.description == 'Tape'
