import logging
from flask import Flask
from config import Config


def create_app(config_class=None):
    app = Flask(__name__)
    app.config.from_object(config_class or Config)

    # Some hosts still hand out postgres:// URLs
    db_uri = app.config.get('SQLALCHEMY_DATABASE_URI', '')
    if db_uri.startswith('postgres://'):
        app.config['SQLALCHEMY_DATABASE_URI'] = db_uri.replace('postgres://', 'postgresql://', 1)

    # Logging
    logging.basicConfig(
        level=getattr(logging, app.config.get('LOG_LEVEL', 'INFO')),
        format='%(asctime)s [%(levelname)s] %(name)s: %(message)s',
    )

    # Extensions
    from truthnode.extensions import db, migrate, scheduler
    db.init_app(app)
    migrate.init_app(app, db)

    from truthnode.services import notification_service
    notification_service.init_app(app)

    # Models must be imported before create_all / autogenerate
    from truthnode import models  # noqa: F401

    # Feature flags
    from truthnode import feature_flags
    feature_flags.init_flags()

    # Register blueprints
    from truthnode.routes import register_blueprints
    register_blueprints(app)

    # Scheduler
    if app.config.get('SCHEDULER_ENABLED') and not app.config.get('TESTING'):
        scheduler.init_app(app)
        with app.app_context():
            from truthnode.jobs.scheduled import register_jobs
            register_jobs(scheduler, app)
        scheduler.start()

    return app
