import logging

logger = logging.getLogger(__name__)


def _settle_rewards_job(app):
    with app.app_context():
        from truthnode.services.settlement_service import SettlementService
        counts = SettlementService().drain()
        if any(counts.values()):
            logger.info(f"[Job] Reward settlement: {counts}")


def _expire_sessions_job(app):
    with app.app_context():
        logger.info("[Job] Expiring old sessions")
        from truthnode.services.user_service import UserService
        from flask import current_app
        ttl_days = current_app.config.get('SESSION_TTL_DAYS', 30)
        count = UserService().expire_sessions(ttl_days)
        logger.info(f"[Job] Expired {count} sessions")


def _upsert_job(scheduler, **kwargs):
    scheduler.add_job(replace_existing=True, **kwargs)


def register_jobs(scheduler, app):
    """Register all scheduled jobs."""
    _upsert_job(
        scheduler,
        id='settle_rewards',
        func=_settle_rewards_job,
        trigger='interval',
        args=[app],
        seconds=app.config.get('SETTLEMENT_INTERVAL_SECONDS', 60),
        misfire_grace_time=300,
        coalesce=True,
        max_instances=1,
    )
    _upsert_job(
        scheduler,
        id='expire_sessions',
        func=_expire_sessions_job,
        trigger='cron',
        args=[app],
        hour=0,
        minute=15,
        misfire_grace_time=3600,
        coalesce=True,
        max_instances=1,
    )
    logger.info("Scheduled jobs registered")
