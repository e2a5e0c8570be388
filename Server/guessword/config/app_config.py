"""
Configuration Management Module

Centralized configuration management following the 12-factor app methodology.
All configuration is loaded from environment variables with sensible defaults.
"""

import os
from dotenv import load_dotenv

# Load environment variables from config.env
load_dotenv(os.path.join(os.path.dirname(os.path.abspath(__file__)), 'config.env'))


class Config:
    """Base configuration class with all settings."""

    # Flask Settings
    SECRET_KEY = os.getenv('SECRET_KEY', 'dev-secret-key-change-in-production')
    DEBUG = os.getenv('DEBUG', 'False').lower() == 'true'
    TESTING = False

    # Server Settings
    HOST = os.getenv('HOST', '127.0.0.1')
    PORT = int(os.getenv('PORT', 5000))

    # Database Settings (snapshots and statistics fall back to memory without it)
    MONGO_URI = os.getenv('MONGO_URI')
    MONGO_DB_NAME = os.getenv('MONGO_DB_NAME', 'guess_the_word')

    # Word Generation Settings
    GEMINI_API_KEY = os.getenv('GEMINI_API_KEY')
    GEMINI_MODEL = os.getenv('GEMINI_MODEL', 'gemini-1.5-flash')
    WORD_FETCH_TIMEOUT_SECONDS = float(os.getenv('WORD_FETCH_TIMEOUT_SECONDS', 5))

    # Round Settings
    TICK_INTERVAL_SECONDS = float(os.getenv('TICK_INTERVAL_SECONDS', 1))

    # Session Cleanup Settings (idle sessions without a playing round are forgotten)
    SESSION_IDLE_TIMEOUT_SECONDS = float(os.getenv('SESSION_IDLE_TIMEOUT_SECONDS', 1800))
    SESSION_CLEANUP_INTERVAL_SECONDS = float(os.getenv('SESSION_CLEANUP_INTERVAL_SECONDS', 60))

    # Logging Settings
    LOG_LEVEL = os.getenv('LOG_LEVEL', 'INFO')
    LOG_DIR = os.getenv('LOG_DIR', 'logs')


class DevelopmentConfig(Config):
    """Development configuration."""
    DEBUG = True


class ProductionConfig(Config):
    """Production configuration."""
    DEBUG = False


class TestingConfig(Config):
    """Testing configuration."""
    TESTING = True
    DEBUG = True
    MONGO_URI = None
    GEMINI_API_KEY = None


# Configuration mapping
config = {
    'development': DevelopmentConfig,
    'production': ProductionConfig,
    'testing': TestingConfig,
    'default': DevelopmentConfig
}
