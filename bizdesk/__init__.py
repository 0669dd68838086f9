"""Flask application factory."""
from flask import Flask, jsonify, request
from flask_wtf.csrf import CSRFProtect, CSRFError
from werkzeug.exceptions import HTTPException
from bizdesk.database import init_db
import os


def create_app(config_object='config.Config'):
    """Create and configure the Flask application."""
    app = Flask(__name__)
    app.config.from_object(config_object)

    # CSRF protection (JSON clients send X-CSRFToken)
    csrf = CSRFProtect(app)

    @app.errorhandler(CSRFError)
    def handle_csrf_error(e):
        app.logger.warning(f"CSRF Error: {e.description}")
        return jsonify({'status': 'error', 'message': 'Session expired or CSRF token missing. Reload and try again.'}), 400

    # Sentry error tracking in production
    if os.getenv('SENTRY_DSN') and app.config.get('ENV') == 'production':
        import sentry_sdk
        from sentry_sdk.integrations.flask import FlaskIntegration

        sentry_sdk.init(
            dsn=os.getenv('SENTRY_DSN'),
            integrations=[FlaskIntegration()],
            traces_sample_rate=0.1,
            environment=app.config.get('ENV'),
            release=os.getenv('GIT_COMMIT', 'unknown')
        )

    # Redis cache (settings)
    from bizdesk.services.cache_service import init_cache
    init_cache(app)

    # Prometheus metrics instrumentation
    from bizdesk.blueprints.metrics import setup_metrics_instrumentation
    setup_metrics_instrumentation(app)

    # Behind a reverse proxy in production
    if app.config.get('ENV') == 'production':
        from werkzeug.middleware.proxy_fix import ProxyFix
        app.wsgi_app = ProxyFix(app.wsgi_app, x_for=1, x_proto=1, x_host=1, x_port=1)

    # Initialize database
    init_db(app)

    # Load the logged-in user before each request
    from bizdesk.middleware import load_current_user

    @app.before_request
    def before_request_handler():
        load_current_user()

    # Error Handlers
    from bizdesk.exceptions import BizdeskError

    @app.errorhandler(BizdeskError)
    def handle_bizdesk_error(error):
        """Handle application exceptions."""
        if error.status_code >= 500:
            app.logger.error(f"BizdeskError [{error.status_code}]: {error.message}")
        else:
            app.logger.warning(f"BizdeskError [{error.status_code}]: {error.message}")
        return jsonify(error.to_dict()), error.status_code

    @app.errorhandler(HTTPException)
    def handle_http_error(error):
        return jsonify({'status': 'error', 'message': error.description or error.name}), error.code

    @app.errorhandler(Exception)
    def internal_error(error):
        app.logger.exception(f"Unhandled Exception on {request.method} {request.path}: {error}")
        return jsonify({'status': 'error', 'message': 'Internal Server Error'}), 500

    # Register blueprints
    from bizdesk.blueprints.auth import auth_bp
    from bizdesk.blueprints.main import main_bp
    from bizdesk.blueprints.dashboard import dashboard_bp
    from bizdesk.blueprints.products import products_bp
    from bizdesk.blueprints.customers import customers_bp
    from bizdesk.blueprints.sales import sales_bp
    from bizdesk.blueprints.expenses import expenses_bp
    from bizdesk.blueprints.reports import reports_bp
    from bizdesk.blueprints.tasks import tasks_bp
    from bizdesk.blueprints.plans import plans_bp
    from bizdesk.blueprints.settings import settings_bp
    from bizdesk.blueprints.ai import ai_bp
    from bizdesk.blueprints.metrics import metrics_bp

    app.register_blueprint(auth_bp)
    app.register_blueprint(main_bp)
    app.register_blueprint(dashboard_bp)
    app.register_blueprint(products_bp)
    app.register_blueprint(customers_bp)
    app.register_blueprint(sales_bp)
    app.register_blueprint(expenses_bp)
    app.register_blueprint(reports_bp)
    app.register_blueprint(tasks_bp)
    app.register_blueprint(plans_bp)
    app.register_blueprint(settings_bp)
    app.register_blueprint(ai_bp)
    app.register_blueprint(metrics_bp)

    # Scrapers do not carry a CSRF token
    csrf.exempt(metrics_bp)

    # CLI commands
    from bizdesk.cli_commands import init_cli_commands
    init_cli_commands(app)

    return app
