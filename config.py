import os
from dotenv import load_dotenv

load_dotenv()


class Config:
    SECRET_KEY = os.getenv('SECRET_KEY', 'dev-secret-change-me')
    ADMIN_API_KEY = os.getenv('ADMIN_API_KEY')
    SQLALCHEMY_DATABASE_URI = os.getenv('DATABASE_URL', 'sqlite:///truthnode.db')
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    SQLALCHEMY_ENGINE_OPTIONS = {'pool_pre_ping': True}

    # Verification policy
    VERIFICATION_COUNT_THRESHOLD = int(os.getenv('VERIFICATION_COUNT_THRESHOLD', '5'))
    TRUTH_SCORE_VERIFIED_THRESHOLD = int(os.getenv('TRUTH_SCORE_VERIFIED_THRESHOLD', '70'))
    TRUTH_SCORE_DISPROVEN_THRESHOLD = int(os.getenv('TRUTH_SCORE_DISPROVEN_THRESHOLD', '30'))
    WHISTLEBLOWER_AUTHOR_ID = int(os.getenv('WHISTLEBLOWER_AUTHOR_ID', '1'))

    # Sessions
    SESSION_TTL_DAYS = int(os.getenv('SESSION_TTL_DAYS', '30'))

    # Notifications
    NOTIFY_WEBHOOK_URL = os.getenv('NOTIFY_WEBHOOK_URL')
    NOTIFY_WEBHOOK_TIMEOUT = float(os.getenv('NOTIFY_WEBHOOK_TIMEOUT', '5'))
    NOTIFICATION_BUFFER_SIZE = int(os.getenv('NOTIFICATION_BUFFER_SIZE', '100'))

    # Reward settlement outbox
    SETTLEMENT_WEBHOOK_URL = os.getenv('SETTLEMENT_WEBHOOK_URL')
    SETTLEMENT_WEBHOOK_TIMEOUT = float(os.getenv('SETTLEMENT_WEBHOOK_TIMEOUT', '10'))
    SETTLEMENT_MAX_ATTEMPTS = int(os.getenv('SETTLEMENT_MAX_ATTEMPTS', '5'))
    SETTLEMENT_RETRY_BASE_SECONDS = int(os.getenv('SETTLEMENT_RETRY_BASE_SECONDS', '30'))
    SETTLEMENT_INTERVAL_SECONDS = int(os.getenv('SETTLEMENT_INTERVAL_SECONDS', '60'))

    # Scheduler
    SCHEDULER_ENABLED = os.getenv('SCHEDULER_ENABLED', 'true').lower() == 'true'
    SCHEDULER_API_ENABLED = False

    # Logging
    LOG_LEVEL = os.getenv('LOG_LEVEL', 'INFO')


class TestConfig(Config):
    TESTING = True
    ADMIN_API_KEY = 'test-admin-key'
    SQLALCHEMY_DATABASE_URI = 'sqlite:///:memory:'
    SQLALCHEMY_ENGINE_OPTIONS = {}
    SCHEDULER_ENABLED = False
    NOTIFY_WEBHOOK_URL = None
    SETTLEMENT_WEBHOOK_URL = None
    SETTLEMENT_RETRY_BASE_SECONDS = 0
