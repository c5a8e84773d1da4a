"""Flask application factory."""
from flask import Flask, jsonify, request
from app.database import init_db
import os


def create_app(config_object='config.Config'):
    """Create and configure the Flask application."""
    app = Flask(__name__)
    app.config.from_object(config_object)

    # Initialize Sentry for error tracking in production
    sentry_dsn = app.config.get('SENTRY_DSN')
    if sentry_dsn and (app.config.get('ENV') == 'production' or os.getenv('FLASK_ENV') == 'production'):
        import sentry_sdk
        from sentry_sdk.integrations.flask import FlaskIntegration

        sentry_sdk.init(
            dsn=sentry_dsn,
            integrations=[FlaskIntegration()],
            traces_sample_rate=0.1,  # 10% of transactions for performance monitoring
            environment=os.getenv('FLASK_ENV', 'production'),
            release=os.getenv('GIT_COMMIT', 'unknown')
        )

    # Initialize Redis Cache
    from app.services.cache_service import init_cache
    cache = init_cache(app)

    # Setup Prometheus metrics instrumentation
    from app.blueprints.metrics import setup_metrics_instrumentation, record_checkout_failure
    setup_metrics_instrumentation(app)

    # Initialize database
    database = init_db(app)

    # Drop cached financial summaries whenever a sale commits
    from app.signals import sale_completed
    from app.services.ledger_service import SUMMARY_CACHE_MODULE

    def invalidate_balance_cache(sender, sale=None, **extra):
        cache.invalidate_module(SUMMARY_CACHE_MODULE)

    sale_completed.connect(invalidate_balance_cache)
    # blinker keeps weak references; the app owns the receiver
    app.extensions['balance_cache_invalidator'] = invalidate_balance_cache

    # Operator context before each request
    from app.middleware import load_operator

    @app.before_request
    def before_request_handler():
        """Load the operator context for each request."""
        load_operator()

    # Error Handlers
    from app.exceptions import SmartLojaError

    @app.errorhandler(SmartLojaError)
    def handle_smartloja_error(error):
        """Handle custom application exceptions."""
        app.logger.error(f"SmartLojaError [{error.status_code}] {error.kind}: {error.message}")
        if request.endpoint == 'sales.create_sale':
            record_checkout_failure(error.kind)
        return jsonify(error.to_dict()), error.status_code

    @app.errorhandler(404)
    def not_found_error(error):
        return jsonify({'status': 'error', 'kind': 'NOT_FOUND', 'message': 'Not Found'}), 404

    @app.errorhandler(405)
    def method_not_allowed(error):
        return jsonify({'status': 'error', 'kind': 'METHOD_NOT_ALLOWED', 'message': 'Method Not Allowed'}), 405

    @app.errorhandler(500)
    @app.errorhandler(Exception)
    def internal_error(error):
        import traceback
        app.logger.error(f"Unhandled Exception: {error}")
        app.logger.error(f"Traceback: {traceback.format_exc()}")
        return jsonify({'status': 'error', 'kind': 'INTERNAL_ERROR', 'message': 'Internal Server Error'}), 500

    # Register blueprints
    from app.blueprints.sales import sales_bp
    from app.blueprints.metrics import metrics_bp

    app.register_blueprint(sales_bp)
    app.register_blueprint(metrics_bp)

    # Register CLI commands
    from app.cli_commands import init_cli_commands
    init_cli_commands(app)

    app.logger.info(f"Database: {database.engine.url.render_as_string(hide_password=True)}")

    return app
