# run.py
"""
Development server entry point.
Production deployments serve putik.app_factory:create_app() from a WSGI server.
"""
import os
from putik.app_factory import create_app
from putik.db.auto_init import auto_init
from putik.logger import get_logger

logger = get_logger(__name__)


def configure_database():
    """
    Default to putik.db next to this file unless DATABASE_URL is set.
    """
    if os.getenv("DATABASE_URL"):
        return
    base_dir = os.path.abspath(os.path.dirname(__file__))
    db_path = os.path.join(base_dir, "putik.db")
    os.environ["DATABASE_URL"] = f"sqlite:///{db_path}"
    logger.info(f"Using database: {db_path}")


def main():
    # 1️⃣ database location
    configure_database()

    # 2️⃣ tables + admin account
    auto_init()

    # 3️⃣ app
    app = create_app(os.getenv("FLASK_CONFIG", "development"))
    logger.info(f"DB URL: {app.config['DATABASE_URL']}")

    # 4️⃣ serve
    host = os.getenv("HOST", "0.0.0.0")
    port = int(os.getenv("PORT", 5000))
    debug = os.getenv("FLASK_DEBUG", "1") == "1"
    app.run(host=host, port=port, debug=debug, use_reloader=False)


if __name__ == "__main__":
    main()
