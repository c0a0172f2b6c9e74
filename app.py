import logging

import psycopg2
from flask import Flask, g, jsonify
from flask_cors import CORS

import config
from database import close_db
from views.dashboard import dashboard_bp
from views.series import series_bp
from views.subscriptions import subscriptions_bp
from views.users import users_bp

logger = logging.getLogger(__name__)

app = Flask(__name__)
if config.CORS_ALLOW_ORIGINS:
    CORS(
        app,
        origins=config.CORS_ALLOW_ORIGINS,
        supports_credentials=config.CORS_SUPPORTS_CREDENTIALS,
    )
else:
    CORS(app)

app.register_blueprint(dashboard_bp)
app.register_blueprint(users_bp)
app.register_blueprint(subscriptions_bp)
app.register_blueprint(series_bp)


@app.errorhandler(psycopg2.Error)
def handle_store_error(exc):
    db = g.get("db")
    if db is not None and not db.closed:
        db.rollback()
    logger.exception("database request failed")
    return jsonify({"error": "Database error.", "detail": str(exc)}), 500


@app.teardown_appcontext
def teardown_db(exception):
    close_db(exception)


@app.get("/")
def index():
    return {"status": "Pitara admin API running"}


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    app.run(host="0.0.0.0", port=5000, debug=False)
