from sqlalchemy.orm import validates
from truthnode.enums import SettlementStatus, enum_values, parse_enum
from truthnode.extensions import db
from truthnode.utils.clock import isoformat, utcnow


class TokenAward(db.Model):
    """Append-only reward ledger entry."""
    __tablename__ = 'token_awards'

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=False)
    amount = db.Column(db.Integer, nullable=False)
    reason = db.Column(db.String(256), nullable=False)
    external_ref = db.Column(db.String(128), nullable=True)
    created_at = db.Column(db.DateTime(timezone=True), default=utcnow)

    settlement = db.relationship('RewardSettlement', uselist=False, back_populates='award')

    __table_args__ = (
        db.Index('ix_token_awards_user', 'user_id', 'id'),
    )

    def to_dict(self):
        return {
            'id': self.id,
            'user_id': self.user_id,
            'amount': self.amount,
            'reason': self.reason,
            'external_ref': self.external_ref,
            'timestamp': isoformat(self.created_at),
            'settlement_status': self.settlement.status.value if self.settlement else None,
        }


class RewardSettlement(db.Model):
    """Outbox row: one per award still owed to the external ledger."""
    __tablename__ = 'reward_settlements'

    id = db.Column(db.Integer, primary_key=True)
    award_id = db.Column(db.Integer, db.ForeignKey('token_awards.id'), nullable=False, unique=True)
    status = db.Column(
        db.Enum(SettlementStatus, native_enum=False, length=16,
                values_callable=enum_values, validate_strings=True),
        nullable=False, default=SettlementStatus.PENDING,
    )
    attempts = db.Column(db.Integer, nullable=False, default=0)
    next_attempt_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)
    last_error = db.Column(db.String(512), nullable=True)
    settled_at = db.Column(db.DateTime(timezone=True), nullable=True)
    created_at = db.Column(db.DateTime(timezone=True), default=utcnow)

    award = db.relationship('TokenAward', back_populates='settlement')

    __table_args__ = (
        db.Index('ix_reward_settlements_due', 'status', 'next_attempt_at'),
    )

    @validates('status')
    def _coerce_status(self, key, value):
        return parse_enum(SettlementStatus, value, key)

    def to_dict(self):
        return {
            'id': self.id,
            'award_id': self.award_id,
            'status': self.status.value,
            'attempts': self.attempts,
            'next_attempt_at': isoformat(self.next_attempt_at),
            'last_error': self.last_error,
            'settled_at': isoformat(self.settled_at),
        }
