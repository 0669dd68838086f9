"""
Integration tests for authentication and authorization.
"""

from bizdesk.models import AppUser
from bizdesk.services import settings_service


class TestSignup:
    """Test the signup flow."""

    def test_first_user_becomes_admin(self, client, session):
        response = client.post('/auth/signup', json={
            'email': 'Owner@Test.com',
            'password': 'securepass123',
            'password_confirm': 'securepass123',
            'name': 'Owner',
            'role': 'worker',
        })

        assert response.status_code == 201
        assert response.get_json()['user']['role'] == 'admin'
        user = session.query(AppUser).filter_by(email='owner@test.com').first()
        assert user is not None
        assert user.check_password('securepass123')

    def test_later_users_default_to_salesman(self, client, admin):
        response = client.post('/auth/signup', json={
            'email': 'new@test.com', 'password': 'securepass123', 'name': 'New Person',
        })
        assert response.status_code == 201
        assert response.get_json()['user']['role'] == 'salesman'

    def test_signup_can_pick_worker_but_not_manager(self, client, admin):
        response = client.post('/auth/signup', json={
            'email': 'w@test.com', 'password': 'securepass123', 'name': 'W', 'role': 'worker', 'gender': 'female',
        })
        assert response.status_code == 201
        assert response.get_json()['user']['gender'] == 'female'

        response = client.post('/auth/signup', json={
            'email': 'm@test.com', 'password': 'securepass123', 'name': 'M', 'role': 'manager',
        })
        assert response.status_code == 400

    def test_duplicate_email_fails(self, client, admin):
        response = client.post('/auth/signup', json={
            'email': admin.email, 'password': 'password123', 'name': 'Duplicate',
        })
        assert response.status_code == 400
        assert 'already exists' in response.get_json()['message']

    def test_mismatched_passwords_fail(self, client):
        response = client.post('/auth/signup', json={
            'email': 'x@test.com', 'password': 'password123', 'password_confirm': 'different', 'name': 'X',
        })
        assert response.status_code == 400

    def test_signup_blocked_when_hidden(self, client, session, admin):
        settings_service.update_settings(session, {'signup_visible': False})

        response = client.post('/auth/signup', json={
            'email': 'late@test.com', 'password': 'password123', 'name': 'Late',
        })
        assert response.status_code == 403


class TestLogin:
    """Test login, logout and /auth/me."""

    def test_login_with_valid_credentials(self, client, salesman):
        response = client.post('/auth/login', json={'email': salesman.email, 'password': 'password123'})
        assert response.status_code == 200

        me = client.get('/auth/me').get_json()
        assert me['user']['id'] == salesman.id
        assert 'create_sales' in me['capabilities']
        assert 'reset_data' not in me['capabilities']

    def test_login_with_wrong_password(self, client, salesman):
        response = client.post('/auth/login', json={'email': salesman.email, 'password': 'wrong'})
        assert response.status_code == 401
        assert response.get_json()['status'] == 'error'

    def test_inactive_user_cannot_login(self, client, session, salesman):
        salesman.active = False
        session.commit()
        response = client.post('/auth/login', json={'email': salesman.email, 'password': 'password123'})
        assert response.status_code == 401

    def test_logout_clears_session(self, client, login_as, salesman):
        login_as(salesman)
        assert client.get('/auth/me').status_code == 200

        client.post('/auth/logout')
        assert client.get('/auth/me').status_code == 401

    def test_csrf_token_endpoint(self, client):
        assert client.get('/auth/csrf-token').get_json()['csrf_token']


class TestRoleGating:
    """Routes refuse roles without the capability."""

    def test_anonymous_gets_401(self, client):
        response = client.get('/products')
        assert response.status_code == 401

    def test_worker_cannot_create_sales(self, client, login_as, worker):
        login_as(worker)
        response = client.post('/sales', json={'lines': []})
        assert response.status_code == 403

    def test_salesman_cannot_see_sales_records(self, client, login_as, salesman):
        login_as(salesman)
        assert client.get('/sales').status_code == 403

    def test_cashier_cannot_reset_data(self, client, login_as, cashier):
        login_as(cashier)
        assert client.post('/settings/reset', json={'groups': ['sales']}).status_code == 403

    def test_manager_cannot_toggle_signup(self, client, login_as, manager):
        login_as(manager)
        response = client.patch('/settings', json={'signup_visible': False})
        assert response.status_code == 403

    def test_user_listing_for_assignment(self, client, login_as, manager, worker, salesman):
        login_as(manager)
        users = client.get('/auth/users?role=worker').get_json()['users']
        assert [u['id'] for u in users] == [worker.id]
