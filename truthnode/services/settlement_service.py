import logging
from datetime import timedelta
from flask import current_app
from truthnode.enums import SettlementStatus
from truthnode.errors import SinkFailure
from truthnode.extensions import db
from truthnode.integrations.chain import generate_address, get_settlement_client
from truthnode.models.reward import RewardSettlement
from truthnode.models.user import User
from truthnode.utils.clock import utcnow

logger = logging.getLogger(__name__)


class SettlementService:
    """Drains the reward outbox into the external ledger, at least once."""

    def __init__(self, client=None, app_config=None):
        config = app_config or current_app.config
        self.client = client or get_settlement_client(config)
        self.max_attempts = config.get('SETTLEMENT_MAX_ATTEMPTS', 5)
        self.retry_base_seconds = config.get('SETTLEMENT_RETRY_BASE_SECONDS', 30)

    def due(self, limit=50, now=None):
        now = now or utcnow()
        return RewardSettlement.query.filter(
            RewardSettlement.status == SettlementStatus.PENDING,
            RewardSettlement.next_attempt_at <= now,
        ).order_by(RewardSettlement.id).limit(limit).all()

    def drain(self, limit=50, now=None):
        now = now or utcnow()
        counts = {'settled': 0, 'retrying': 0, 'failed': 0}

        for settlement in self.due(limit=limit, now=now):
            outcome = self._settle_one(settlement, now)
            counts[outcome] += 1
            db.session.commit()

        if any(counts.values()):
            logger.info(f"Settlement drain: {counts}")
        return counts

    def _settle_one(self, settlement, now):
        award = settlement.award
        user = db.session.get(User, award.user_id)
        address = (user.ens_address if user else None) or generate_address()

        try:
            tx_hash = self.client.award_tokens(address, award.amount, award.reason)
        except SinkFailure as e:
            return self._record_failure(settlement, str(e), now)
        except Exception as e:
            logger.error(f"Unexpected settlement error for award {award.id}: {e}", exc_info=True)
            return self._record_failure(settlement, f"{type(e).__name__}: {e}", now)

        settlement.status = SettlementStatus.SETTLED
        settlement.attempts += 1
        settlement.settled_at = now
        settlement.last_error = None
        award.external_ref = tx_hash
        return 'settled'

    def _record_failure(self, settlement, error, now):
        settlement.attempts += 1
        settlement.last_error = error[:512]
        if settlement.attempts >= self.max_attempts:
            settlement.status = SettlementStatus.FAILED
            logger.error(
                f"Settlement {settlement.id} failed permanently after "
                f"{settlement.attempts} attempts: {error}"
            )
            return 'failed'

        delay = self.retry_base_seconds * (2 ** settlement.attempts)
        settlement.next_attempt_at = now + timedelta(seconds=delay)
        logger.warning(
            f"Settlement {settlement.id} attempt {settlement.attempts} failed, "
            f"retrying in {delay}s: {error}"
        )
        return 'retrying'

    def retry_failed(self):
        """Put permanently failed settlements back in the queue."""
        now = utcnow()
        count = RewardSettlement.query.filter(
            RewardSettlement.status == SettlementStatus.FAILED,
        ).update({
            RewardSettlement.status: SettlementStatus.PENDING,
            RewardSettlement.attempts: 0,
            RewardSettlement.next_attempt_at: now,
        }, synchronize_session=False)
        db.session.commit()
        logger.info(f"Requeued {count} failed settlements")
        return count

    def summary(self):
        rows = db.session.query(
            RewardSettlement.status, db.func.count(RewardSettlement.id)
        ).group_by(RewardSettlement.status).all()
        counts = {status.value: 0 for status in SettlementStatus}
        for status, count in rows:
            counts[SettlementStatus(status).value] = count
        return counts
