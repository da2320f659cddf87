'''Flask app factory for the booking service.
Wires configuration, the server-side session, blueprints and error handlers.
Does not start a server: used by run.py, WSGI servers and the tests.'''
# putik/app_factory.py
from flask import Flask, jsonify
from flask_session import Session
import os
from dotenv import load_dotenv

from putik.db.session import reset_engine
from putik.schemas.api_result import ApiResult
from putik.schemas.error_type import ErrorType, HTTP_STATUS

load_dotenv()

# project root (absolute)
BASE_DIR = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))


def create_app(config_name='development', overrides=None):
    """
    Build the application.

    :param config_name: 'development', 'production' or 'testing'
    :param overrides: config values applied last; DATABASE_URL here rebinds the engine
    """
    overrides = dict(overrides or {})
    app = Flask(__name__)

    # SECRET_KEY must be str, not bytes
    secret_key = os.getenv('SECRET_KEY', 'dev-secret-key-change-in-production')
    if isinstance(secret_key, bytes):
        secret_key = secret_key.decode('utf-8')
    app.config['SECRET_KEY'] = secret_key
    app.config['TESTING'] = config_name == 'testing'

    # database
    default_db_url = f"sqlite:///{os.path.join(BASE_DIR, 'putik.db')}"
    database_url = overrides.pop('DATABASE_URL', None)
    if database_url:
        os.environ['DATABASE_URL'] = database_url
        reset_engine()
    else:
        os.environ.setdefault('DATABASE_URL', default_db_url)
    app.config['DATABASE_URL'] = os.environ['DATABASE_URL']

    app.config['BOOKINGS_PER_PAGE'] = int(os.getenv('BOOKINGS_PER_PAGE', 6))

    # server-side session
    app.config['SESSION_TYPE'] = 'filesystem'
    app.config['SESSION_PERMANENT'] = False
    app.config['SESSION_USE_SIGNER'] = True
    app.config['SESSION_KEY_PREFIX'] = 'putik:'
    app.config['SESSION_FILE_DIR'] = os.getenv('SESSION_FILE_DIR', os.path.join(BASE_DIR, 'flask_session'))

    app.config.update(overrides)
    os.makedirs(app.config['SESSION_FILE_DIR'], exist_ok=True)

    Session(app)

    # blueprints
    from putik.routes.auth import auth_bp
    from putik.routes.catalog import catalog_bp
    from putik.routes.editor import editor_bp
    from putik.routes.bookings import bookings_bp
    from putik.routes.leaves import leaves_bp

    app.register_blueprint(auth_bp)
    app.register_blueprint(catalog_bp)
    app.register_blueprint(editor_bp)
    app.register_blueprint(bookings_bp)
    app.register_blueprint(leaves_bp)

    register_error_handlers(app)

    return app


def register_error_handlers(app):
    """JSON envelopes for errors raised outside the route handlers"""

    def _failure(error_type: ErrorType, message: str, status: int = None):
        result = ApiResult.failure(error_type, message)
        return jsonify(result.model_dump(mode="json")), status or HTTP_STATUS[error_type]

    @app.errorhandler(404)
    def not_found(error):
        return _failure(ErrorType.NOT_FOUND, 'Resource not found')

    @app.errorhandler(405)
    def method_not_allowed(error):
        return _failure(ErrorType.INPUT_ERROR, 'Method not allowed', 405)

    @app.errorhandler(500)
    def internal_error(error):
        return _failure(ErrorType.SYSTEM_ERROR, 'Internal server error')
