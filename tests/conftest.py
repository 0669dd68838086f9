import pytest
from decimal import Decimal

from bizdesk import create_app
from bizdesk.database import create_all, drop_all, get_session
from bizdesk.models import AppUser, Customer, Product


@pytest.fixture(scope='function')
def app():
    """Create application instance for testing (fresh in-memory database)."""
    app = create_app('config.TestConfig')
    with app.app_context():
        create_all()
        yield app
        get_session().remove()
        drop_all()


@pytest.fixture(scope='function')
def client(app):
    """Create test client."""
    return app.test_client()


@pytest.fixture(scope='function')
def session(app):
    """Database session (the scoped session used by the application)."""
    session = get_session()
    yield session
    session.rollback()


def _make_user(session, email, name, role, gender=None):
    user = AppUser(email=email, name=name, role=role, gender=gender, active=True)
    user.set_password('password123')
    session.add(user)
    session.commit()
    return user


@pytest.fixture(scope='function')
def admin(session):
    return _make_user(session, 'admin@test.com', 'Admin User', 'admin')


@pytest.fixture(scope='function')
def manager(session):
    return _make_user(session, 'manager@test.com', 'Manager User', 'manager')


@pytest.fixture(scope='function')
def cashier(session):
    return _make_user(session, 'cashier@test.com', 'Cashier User', 'cashier')


@pytest.fixture(scope='function')
def salesman(session):
    return _make_user(session, 'salesman@test.com', 'Salesman One', 'salesman', gender='male')


@pytest.fixture(scope='function')
def other_salesman(session):
    return _make_user(session, 'salesman2@test.com', 'Salesman Two', 'salesman', gender='male')


@pytest.fixture(scope='function')
def worker(session):
    return _make_user(session, 'worker@test.com', 'Worker One', 'worker', gender='female')


@pytest.fixture(scope='function')
def product(session):
    """Product with 10 boxes in stock, sold at 100.00."""
    product = Product(
        name='Soap Box',
        sku='SOAP-001',
        pieces_per_box=12,
        stock=10,
        cost_price=Decimal('60.00'),
        sale_price=Decimal('100.00'),
    )
    session.add(product)
    session.commit()
    return product


@pytest.fixture(scope='function')
def product2(session):
    """Second product with 3 boxes in stock."""
    product = Product(
        name='Bleach',
        sku='BLEACH-001',
        pieces_per_box=6,
        stock=3,
        cost_price=Decimal('20.00'),
        sale_price=Decimal('35.00'),
    )
    session.add(product)
    session.commit()
    return product


@pytest.fixture(scope='function')
def customer(session, salesman):
    """Customer owned by ``salesman`` with no balance."""
    customer = Customer(
        name='Ali Traders',
        phone='0300-1234567',
        address='Main Bazaar, Shop 4',
        salesman_id=salesman.id,
        total_due=Decimal('0.00'),
    )
    session.add(customer)
    session.commit()
    return customer


@pytest.fixture(scope='function')
def login_as(client):
    """Log the test client in as the given user (session cookie)."""
    def _login(user):
        with client.session_transaction() as flask_session:
            flask_session['user_id'] = user.id
        return client
    return _login
