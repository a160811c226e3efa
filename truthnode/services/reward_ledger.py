import logging
from truthnode.errors import NotFoundError, ValidationError
from truthnode.extensions import db
from truthnode.models.reward import RewardSettlement, TokenAward
from truthnode.models.user import User

logger = logging.getLogger(__name__)


class RewardLedger:
    def award(self, user_id, amount, reason, external_ref=None, commit=True):
        """
        Append a ledger entry and credit the user's balance together.
        The balance increment is a single SQL expression so concurrent awards
        to one user cannot lose updates. Every entry is queued for external
        settlement in the same transaction.
        Returns the TokenAward, or None when amount is zero.
        """
        if not isinstance(amount, int) or isinstance(amount, bool):
            raise ValidationError(f"Award amount must be an integer, got {amount!r}")
        if amount < 0:
            raise ValidationError("Award amount cannot be negative")
        if not reason:
            raise ValidationError("Award reason is required")
        if amount == 0:
            return None

        try:
            updated = User.query.filter(User.id == user_id).update(
                {User.truth_tokens: User.truth_tokens + amount},
                synchronize_session=False,
            )
            if updated == 0:
                raise NotFoundError('User', user_id)

            award = TokenAward(
                user_id=user_id,
                amount=amount,
                reason=reason,
                external_ref=external_ref,
            )
            db.session.add(award)
            db.session.flush()
            db.session.add(RewardSettlement(award_id=award.id))

            if commit:
                db.session.commit()
        except Exception:
            db.session.rollback()
            raise

        # The bulk UPDATE bypassed the identity map
        user = db.session.get(User, user_id)
        if user is not None:
            db.session.refresh(user, attribute_names=['truth_tokens'])

        logger.info(f"Awarded {amount} tokens to user {user_id} ({reason})")
        return award

    def get_awards(self, user_id):
        """Ledger entries for a user in the order they were written."""
        return TokenAward.query.filter_by(user_id=user_id).order_by(TokenAward.id).all()

    def total_awarded(self, user_id):
        total = db.session.query(
            db.func.coalesce(db.func.sum(TokenAward.amount), 0)
        ).filter(TokenAward.user_id == user_id).scalar()
        return int(total)
