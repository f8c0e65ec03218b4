import os
import logging
from datetime import timedelta
from logging.handlers import RotatingFileHandler
from dotenv import load_dotenv

load_dotenv()

BASE_DIR = os.path.abspath(os.path.dirname(__file__))


class Config:
    SECRET_KEY = os.getenv('SECRET_KEY', 'dev-secret-key')
    JWT_SECRET_KEY = os.getenv('JWT_SECRET_KEY', 'supersecret')
    JWT_ACCESS_TOKEN_EXPIRES = timedelta(hours=int(os.getenv('JWT_EXPIRES_HOURS', 8)))

    SQLALCHEMY_DATABASE_URI = os.getenv('DATABASE_URL') or 'sqlite:///' + os.path.join(BASE_DIR, 'lms.db')
    # Heroku/Render still hand out the legacy scheme
    if SQLALCHEMY_DATABASE_URI.startswith('postgres://'):
        SQLALCHEMY_DATABASE_URI = SQLALCHEMY_DATABASE_URI.replace('postgres://', 'postgresql://', 1)
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    JSONIFY_PRETTYPRINT_REGULAR = True

    CERTIFICATE_FOLDER = os.getenv('CERTIFICATE_FOLDER', os.path.join(BASE_DIR, 'certificates'))
    CERTIFICATE_URL_PREFIX = os.getenv('CERTIFICATE_URL_PREFIX', '/certificates')
    CERTIFICATE_ISSUER = os.getenv('CERTIFICATE_ISSUER', 'Learning Center')

    TIMEZONE = os.getenv('TIMEZONE', 'Asia/Jakarta')
    LOG_DIR = os.getenv('LOG_DIR', 'logs')

    @staticmethod
    def init_app(app):
        if app.debug or app.testing:
            return

        log_dir = app.config['LOG_DIR']
        if not os.path.exists(log_dir):
            os.mkdir(log_dir)
        file_handler = RotatingFileHandler(
            os.path.join(log_dir, 'lms.log'),
            maxBytes=1024 * 1024,
            backupCount=3
        )
        file_handler.setFormatter(logging.Formatter(
            '%(asctime)s %(levelname)s: %(message)s [in %(pathname)s:%(lineno)d]'
        ))
        file_handler.setLevel(logging.INFO)
        app.logger.addHandler(file_handler)
        app.logger.setLevel(logging.INFO)
        app.logger.info('LMS backend startup')


class DevelopmentConfig(Config):
    DEBUG = True
    SQLALCHEMY_ECHO = True


class ProductionConfig(Config):
    DEBUG = False


class TestingConfig(Config):
    TESTING = True
    JWT_SECRET_KEY = 'testing-jwt-secret-key-long-enough-for-hs256'
    SQLALCHEMY_DATABASE_URI = 'sqlite://'
    SQLALCHEMY_ENGINE_OPTIONS = {
        'connect_args': {'check_same_thread': False}
    }
    JWT_ACCESS_TOKEN_EXPIRES = timedelta(minutes=15)


config = {
    'development': DevelopmentConfig,
    'production': ProductionConfig,
    'testing': TestingConfig,
    'default': Config
}
