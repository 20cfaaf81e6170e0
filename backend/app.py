import logging

from flask import Flask
from flask_cors import CORS
from flask_jwt_extended import JWTManager

from models import db
from auth.routes import auth_bp
from trip_linking.commands import reconcile_trips_command
from trip_linking.routes import trip_links_bp
from config import Config

# Tables register on db.metadata at import
from models import user_model, transaction_model, trip_model, lease_model  # noqa: F401


def create_app(config_object=Config):
    app = Flask(__name__)
    app.config.from_object(config_object)

    logging.basicConfig(
        level=getattr(logging, str(app.config.get("LOG_LEVEL", "INFO")).upper(), logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    CORS(app)

    db.init_app(app)
    with app.app_context():
        db.create_all()
    JWTManager(app)

    app.register_blueprint(auth_bp)
    app.register_blueprint(trip_links_bp)
    app.cli.add_command(reconcile_trips_command)

    return app


if __name__ == "__main__":
    create_app().run(debug=True)
