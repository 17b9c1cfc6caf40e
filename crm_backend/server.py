import atexit
import logging
import os
import signal
import sys
from dotenv import load_dotenv

# Config classes read the environment at import time
load_dotenv()

from flask import Flask, jsonify, request
from flask_cors import CORS
from flask_limiter.errors import RateLimitExceeded
from werkzeug.exceptions import HTTPException

from crm_backend.config import get_config
from crm_backend.database import DBManager
from crm_backend.extensions import db, limiter, check_connection, close_pool
from crm_backend.utils.request_logger import RequestLogger

# Models must be imported before create_all()
from crm_backend.models import user, customer, order, booking, invoice, communication, dashboard  # noqa: F401

from crm_backend.api.customer import customer_bp
from crm_backend.api.booking import booking_bp
from crm_backend.api.invoice import invoice_bp
from crm_backend.api.communication import communication_bp
from crm_backend.api.dashboard import dashboard_bp
from crm_backend.api.report import report_bp
from crm_backend.api.settings import settings_bp

logger = logging.getLogger(__name__)

BLUEPRINTS = [
    customer_bp,
    booking_bp,
    invoice_bp,
    communication_bp,
    dashboard_bp,
    report_bp,
    settings_bp,
]


def configure_logging(app):
    logs_dir = app.config['LOGS_DIR']
    os.makedirs(logs_dir, exist_ok=True)
    logging.basicConfig(
        level=logging.DEBUG if app.config.get('DEBUG') else logging.INFO,
        format='%(asctime)s %(levelname)s %(name)s: %(message)s',
        handlers=[
            logging.FileHandler(os.path.join(logs_dir, 'app.log')),
            logging.StreamHandler()
        ]
    )


def configure_database(app):
    if not app.config.get('SQLALCHEMY_DATABASE_URI'):
        app.config['SQLALCHEMY_DATABASE_URI'] = DBManager.get_sqlalchemy_uri()
        app.config['SQLALCHEMY_ENGINE_OPTIONS'] = DBManager.get_engine_options()
        logger.info(f"Database: {DBManager.get_log_safe_uri()}")
    if app.config.get('SQLALCHEMY_ENGINE_OPTIONS') is None:
        app.config['SQLALCHEMY_ENGINE_OPTIONS'] = {}
    db.init_app(app)


def register_error_handlers(app):
    @app.errorhandler(RateLimitExceeded)
    def ratelimit_handler(e):
        logger.warning(f"Rate limit exceeded for {request.method} {request.url}")
        return jsonify({'message': 'Rate limit exceeded. Please try again later.'}), 429

    @app.errorhandler(404)
    def not_found(error):
        logger.error(f"404 error for path: {request.path}")
        return jsonify({'message': 'API endpoint not found', 'path': request.path}), 404

    @app.errorhandler(405)
    def method_not_allowed(error):
        return jsonify({'message': 'Method not allowed', 'path': request.path}), 405

    @app.errorhandler(HTTPException)
    def http_error(e):
        return jsonify({'message': e.description}), e.code

    @app.errorhandler(Exception)
    def handle_exception(e):
        logger.error(f"Unhandled exception for {request.method} {request.url}: {e}", exc_info=True)
        body = {'message': 'Internal server error'}
        if app.config.get('EXPOSE_ERROR_DETAILS'):
            body['error'] = str(e)
        return jsonify(body), 500


def register_health_routes(app):
    @app.route('/health')
    def health():
        return jsonify({'status': 'ok'}), 200

    @app.route('/api/health')
    def api_health():
        healthy = db.health_check()
        payload = {
            'status': 'ok' if healthy else 'degraded',
            'database': 'connected' if healthy else 'unavailable',
            'pool': db.get_pool_stats(),
        }
        return jsonify(payload), 200 if healthy else 503


def create_app(config_object=None):
    """Application factory."""
    app = Flask(__name__)
    app.config.from_object(config_object or get_config())

    configure_logging(app)
    configure_database(app)

    CORS(app, resources={r"/api/*": {"origins": app.config['CORS_ORIGINS']}})
    limiter.init_app(app)
    RequestLogger.init_app(app)

    for blueprint in BLUEPRINTS:
        app.register_blueprint(blueprint, url_prefix='/api')

    register_health_routes(app)
    register_error_handlers(app)

    if app.config.get('AUTO_CREATE_TABLES'):
        with app.app_context():
            db.create_all()

    logger.info(f"App created with {app.config.get('ENV_NAME')} config")
    return app


def run_server(app=None):
    """Start the development server with the pool closed on every shutdown path."""
    app = app or create_app()
    check_connection(app)

    atexit.register(close_pool, app)

    def shutdown(signum, frame):
        logger.info(f"Received signal {signum}, shutting down")
        sys.exit(0 if close_pool(app) else 1)

    signal.signal(signal.SIGINT, shutdown)
    signal.signal(signal.SIGTERM, shutdown)

    logger.info(f"Server running on port {app.config['PORT']}")
    app.run(host=app.config['HOST'], port=app.config['PORT'], debug=app.config.get('DEBUG', False))


if __name__ == '__main__':
    run_server()
