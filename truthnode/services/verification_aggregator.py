from typing import NamedTuple
from truthnode.enums import VerificationVerdict
from truthnode.extensions import db
from truthnode.models.article import Verification

NEUTRAL_SCORE = 50


class VerificationScore(NamedTuple):
    total_count: int
    positive_count: int
    negative_count: int
    score_percent: int

    def to_dict(self):
        return {
            'total_count': self.total_count,
            'positive_count': self.positive_count,
            'negative_count': self.negative_count,
            'score': self.score_percent,
        }


def percent_half_up(numerator, denominator):
    """round(numerator / denominator * 100) with halves rounded up, in integers."""
    return (200 * numerator + denominator) // (2 * denominator)


def compute_score(verdicts):
    """Aggregate an iterable of verdicts into a VerificationScore."""
    positive = negative = 0
    for verdict in verdicts:
        verdict = VerificationVerdict(verdict)
        if verdict is VerificationVerdict.VERIFIED:
            positive += 1
        elif verdict is VerificationVerdict.DISPROVEN:
            negative += 1
    total = positive + negative
    score = percent_half_up(positive, total) if total else NEUTRAL_SCORE
    return VerificationScore(total, positive, negative, score)


class VerificationAggregator:
    def list_verdicts(self, article_id):
        rows = db.session.query(Verification.status).filter(
            Verification.article_id == article_id
        ).order_by(Verification.id).all()
        return [row[0] for row in rows]

    def score(self, article_id):
        """Score an article over its full verification history."""
        return compute_score(self.list_verdicts(article_id))
