"""
Ledger writes racing a concurrent writer on a real database file.

A second engine commits a competing change while the application session sits
between its reads and its first flush, so the versioned UPDATE matches no row
and the whole unit of work is re-run against what the other writer committed.
"""

from decimal import Decimal

import pytest
from prometheus_client import REGISTRY
from sqlalchemy import create_engine, event, update

import config
from bizdesk import create_app
from bizdesk.database import create_all, drop_all, get_session
from bizdesk.exceptions import InvalidAmountError
from bizdesk.models import Customer, Payment, Product, Sale
from bizdesk.services import customer_service, payment_service, sales_service


@pytest.fixture(scope='function')
def app(tmp_path):
    """Application on a SQLite file so a second connection sees the same data."""
    file_config = type('FileDatabaseConfig', (config.TestConfig,), {
        'SQLALCHEMY_DATABASE_URI': f"sqlite:///{tmp_path / 'ledger.db'}",
    })
    app = create_app(file_config)
    with app.app_context():
        create_all()
        yield app
        get_session().remove()
        drop_all()


@pytest.fixture
def other_writer(app):
    engine = create_engine(app.config['SQLALCHEMY_DATABASE_URI'])
    yield engine
    engine.dispose()


@pytest.fixture
def before_first_flush(session):
    """Run a callback once, just before the session's next flush."""
    target = session()
    listeners = []

    def install(callback):
        fired = []

        def listener(flush_session, flush_context, instances):
            if not fired:
                fired.append(True)
                callback()

        listeners.append(listener)
        event.listen(target, 'before_flush', listener)

    yield install

    for listener in listeners:
        event.remove(target, 'before_flush', listener)


def _retries(operation):
    return REGISTRY.get_sample_value('bizdesk_transaction_retries_total', {'operation': operation}) or 0


class TestSaleAgainstConcurrentWriter:

    def test_retried_sale_adds_onto_committed_balance(self, session, salesman, customer, product,
                                                      other_writer, before_first_flush):
        customers = Customer.__table__

        def bump_balance():
            with other_writer.begin() as conn:
                conn.execute(
                    update(customers)
                    .where(customers.c.id == customer.id)
                    .values(total_due=Decimal('50.00'), version_id=customers.c.version_id + 1)
                )

        before_first_flush(bump_balance)
        retries = _retries('create_sale')

        sale = sales_service.create_sale(
            session, salesman.id,
            lines=[{'product_id': product.id, 'quantity': 1, 'unit_price': '100'}],
            customer_id=customer.id,
        )

        assert sale.due_amount == Decimal('100.00')
        assert session.get(Customer, customer.id).total_due == Decimal('150.00')
        assert session.get(Product, product.id).stock == 9
        assert session.query(Sale).count() == 1
        assert _retries('create_sale') == retries + 1


class TestPaymentAgainstConcurrentWriter:

    @pytest.fixture
    def open_sale(self, session, salesman, customer, product):
        """Sale of 4 x 100 with 150 received: due 250."""
        return sales_service.create_sale(
            session, salesman.id,
            lines=[{'product_id': product.id, 'quantity': 4, 'unit_price': '100'}],
            customer_id=customer.id,
            amount_received='150',
        )

    def test_retry_sees_payment_collected_meanwhile(self, session, salesman, customer, open_sale,
                                                    other_writer, before_first_flush):
        sales = Sale.__table__
        customers = Customer.__table__

        def collect_elsewhere():
            with other_writer.begin() as conn:
                conn.execute(
                    update(sales)
                    .where(sales.c.id == open_sale.id)
                    .values(paid_amount=Decimal('350.00'), due_amount=Decimal('50.00'),
                            version_id=sales.c.version_id + 1)
                )
                conn.execute(
                    update(customers)
                    .where(customers.c.id == customer.id)
                    .values(total_due=Decimal('50.00'), version_id=customers.c.version_id + 1)
                )

        before_first_flush(collect_elsewhere)

        with pytest.raises(InvalidAmountError):
            payment_service.apply_payment(session, open_sale.id, customer.id, '250', salesman.id)

        sale = session.get(Sale, open_sale.id)
        assert sale.paid_amount == Decimal('350.00')
        assert sale.due_amount == Decimal('50.00')
        assert session.get(Customer, customer.id).total_due == Decimal('50.00')
        assert session.query(Payment).count() == 1
        assert customer_service.find_ledger_drift(session) == []
