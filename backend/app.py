from flask import Flask, jsonify
from models import db
from flask_migrate import Migrate
from flask_cors import CORS
from routes import register_blueprints
from flask_jwt_extended import JWTManager
from config import config
import os

migrate = Migrate()
jwt = JWTManager()


def create_app(config_class=None):
    app = Flask(__name__)
    if config_class is None:
        config_class = config[os.getenv('APP_CONFIG', os.getenv('FLASK_ENV', 'default'))]
    app.config.from_object(config_class)

    CORS(app)
    db.init_app(app)
    migrate.init_app(app, db)
    jwt.init_app(app)

    #register routes
    register_blueprints(app)
    register_error_handlers(app)

    config_class.init_app(app)

    @app.route("/")
    def home():
        return {"message": "Learning CMS backend is running!"}

    return app


def register_error_handlers(app):
    @app.errorhandler(404)
    def not_found(error):
        return jsonify({"error": "Resource not found"}), 404

    @app.errorhandler(405)
    def method_not_allowed(error):
        return jsonify({"error": "Method not allowed"}), 405

    @app.errorhandler(500)
    def internal_error(error):
        db.session.rollback()
        return jsonify({"error": "Internal server error"}), 500

    @jwt.unauthorized_loader
    def missing_token(reason):
        return jsonify({"error": "Unauthorized"}), 401

    @jwt.invalid_token_loader
    def invalid_token(reason):
        return jsonify({"error": "Invalid token"}), 401

    @jwt.expired_token_loader
    def expired_token(jwt_header, jwt_payload):
        return jsonify({"error": "Token expired"}), 401


if __name__ == "__main__":
    app = create_app()
    app.run(port=5555, debug=True)
