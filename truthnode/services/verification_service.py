import logging
import threading
from typing import NamedTuple, Optional
from flask import current_app
from truthnode import feature_flags
from truthnode.enums import ArticleStatus, EvidenceType, VerificationVerdict, parse_enum
from truthnode.errors import NotFoundError, PermissionDeniedError, ValidationError
from truthnode.extensions import db
from truthnode.models.article import Article, Evidence, Verification
from truthnode.models.user import User
from truthnode.services import notification_service
from truthnode.services.reward_calculator import (
    reward_for_article_outcome, reward_for_evidence, reward_for_verification,
)
from truthnode.services.reward_ledger import RewardLedger
from truthnode.services.verification_aggregator import VerificationAggregator, VerificationScore

logger = logging.getLogger(__name__)

COUNT_THRESHOLD_FLAG = 'count_threshold_transitions'

_TRANSITION_EVENTS = {
    ArticleStatus.VERIFIED: notification_service.ARTICLE_VERIFIED,
    ArticleStatus.DISPROVEN: notification_service.ARTICLE_DISPROVEN,
}

_LOCK_STRIPES = 64
_article_locks = [threading.Lock() for _ in range(_LOCK_STRIPES)]


def _article_lock(article_id):
    """Striped lock so one article's read-then-write sequences never interleave in-process."""
    return _article_locks[article_id % _LOCK_STRIPES]


def _as_id(value, kind):
    if isinstance(value, bool):
        raise ValidationError(f"Invalid {kind} id: {value!r}")
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ValidationError(f"Invalid {kind} id: {value!r}")


class EvaluationResult(NamedTuple):
    article: Article
    status: ArticleStatus
    score: VerificationScore
    transitioned: bool

    def to_dict(self):
        return {
            'article_id': self.article.id,
            'status': self.status.value,
            'score': self.score.score_percent,
            'verification_count': self.article.verification_count,
            'transitioned': self.transitioned,
            **{k: v for k, v in self.score.to_dict().items() if k != 'score'},
        }


class _Transition(NamedTuple):
    event_type: str
    payload: dict


class VerificationService:
    """
    Records verification and evidence events and drives article status.

    Two triggers can move an article out of ``pending``:
      * the count-threshold path, run inside ``record_verification`` while the
        ``count_threshold_transitions`` flag is on (legacy policy);
      * the score-threshold path, run by ``evaluate_truth`` (canonical policy).
    Both only ever leave ``pending``; verified and disproven are terminal
    except through ``override_status``.
    """

    def __init__(self, ledger=None, aggregator=None, app_config=None):
        self.ledger = ledger or RewardLedger()
        self.aggregator = aggregator or VerificationAggregator()
        self._config = app_config

    @property
    def config(self):
        return self._config if self._config is not None else current_app.config

    # -- lookups -----------------------------------------------------------

    def get_article(self, article_id):
        article = db.session.get(Article, article_id)
        if article is None:
            raise NotFoundError('Article', article_id)
        return article

    def get_user(self, user_id):
        user = db.session.get(User, user_id)
        if user is None:
            raise NotFoundError('User', user_id)
        return user

    def list_verifications(self, article_id):
        return Verification.query.filter_by(article_id=article_id).order_by(Verification.id).all()

    def score(self, article_id):
        self.get_article(article_id)
        return self.aggregator.score(article_id)

    # -- events ------------------------------------------------------------

    def record_verification(self, article_id, user_id, status, reason=None):
        """Append a verdict, pay the verifier, then run the count-threshold path."""
        article_id = _as_id(article_id, 'article')
        user_id = _as_id(user_id, 'user')
        verdict = parse_enum(VerificationVerdict, status, 'status')
        user = self.get_user(user_id)
        if not user.role.can_verify:
            raise PermissionDeniedError("Only publishers and journalists can verify articles")
        article = self.get_article(article_id)

        with _article_lock(article_id):
            try:
                verification = Verification(
                    article_id=article_id,
                    user_id=user_id,
                    status=verdict,
                    reason=reason,
                )
                db.session.add(verification)
                Article.query.filter(Article.id == article_id).update(
                    {Article.verification_count: Article.verification_count + 1},
                    synchronize_session=False,
                )
                self.ledger.award(user_id, reward_for_verification(),
                                  'Verification submitted', commit=False)

                transition = None
                if feature_flags.is_enabled(COUNT_THRESHOLD_FLAG):
                    transition = self._apply_count_threshold(article)
                db.session.commit()
            except Exception:
                db.session.rollback()
                raise

            db.session.refresh(article)

        logger.info(
            f"Verification {verification.id} ({verdict.value}) recorded for article "
            f"{article_id} by user {user_id}; count={article.verification_count}"
        )
        self._publish(transition)
        return verification

    def submit_evidence(self, article_id, user_id, evidence_type, description,
                        files=None, ipfs_hash=None):
        """Attach evidence and pay the contributor. Never changes article status."""
        article_id = _as_id(article_id, 'article')
        user_id = _as_id(user_id, 'user')
        etype = parse_enum(EvidenceType, evidence_type, 'type')
        if not description or not str(description).strip():
            raise ValidationError("Evidence description is required")
        if files is not None and not isinstance(files, list):
            raise ValidationError("Evidence files must be a list")
        self.get_user(user_id)
        self.get_article(article_id)

        reward = reward_for_evidence(etype)
        try:
            evidence = Evidence(
                article_id=article_id,
                user_id=user_id,
                type=etype,
                description=description,
                files=files,
                ipfs_hash=ipfs_hash,
                token_reward=reward,
            )
            db.session.add(evidence)
            self.ledger.award(user_id, reward, f"Evidence submitted ({etype.value})", commit=False)
            db.session.commit()
        except Exception:
            db.session.rollback()
            raise

        logger.info(f"Evidence {evidence.id} ({etype.value}) on article {article_id} by user {user_id}")
        return evidence

    def evaluate_truth(self, article_id):
        """
        Score-threshold path. Moves a pending article to verified or disproven
        when the score crosses a threshold; otherwise only refreshes truth_score.
        """
        article_id = _as_id(article_id, 'article')
        article = self.get_article(article_id)
        verified_at = self.config.get('TRUTH_SCORE_VERIFIED_THRESHOLD', 70)
        disproven_at = self.config.get('TRUTH_SCORE_DISPROVEN_THRESHOLD', 30)

        with _article_lock(article_id):
            score = self.aggregator.score(article_id)
            if score.score_percent >= verified_at:
                target = ArticleStatus.VERIFIED
            elif score.score_percent <= disproven_at:
                target = ArticleStatus.DISPROVEN
            else:
                target = None

            try:
                transition = None
                if target is not None:
                    transition = self._transition(article, target, score, set_truth_score=True,
                                                  whistleblower_aware=True)
                if transition is None:
                    Article.query.filter(Article.id == article_id).update(
                        {Article.truth_score: score.score_percent},
                        synchronize_session=False,
                    )
                db.session.commit()
            except Exception:
                db.session.rollback()
                raise

            db.session.refresh(article)

        self._publish(transition)
        return EvaluationResult(article, article.status, score, transition is not None)

    def override_status(self, article_id, status):
        """Administrative status change. Skips the threshold guards and pays nothing."""
        article_id = _as_id(article_id, 'article')
        new_status = parse_enum(ArticleStatus, status, 'status')
        article = self.get_article(article_id)

        with _article_lock(article_id):
            previous = article.status
            try:
                article.status = new_status
                db.session.commit()
            except Exception:
                db.session.rollback()
                raise

        logger.info(f"Article {article_id} status overridden: {previous.value} -> {new_status.value}")
        self._publish(_Transition(notification_service.ARTICLE_STATUS_OVERRIDDEN, {
            'article_id': article_id,
            'previous_status': previous.value,
            'status': new_status.value,
        }))
        return article

    # -- transitions -------------------------------------------------------

    def _apply_count_threshold(self, article):
        if article.status.is_terminal:
            return None
        threshold = self.config.get('VERIFICATION_COUNT_THRESHOLD', 5)
        score = self.aggregator.score(article.id)
        if score.positive_count >= threshold:
            return self._transition(article, ArticleStatus.VERIFIED, score,
                                    set_truth_score=False, whistleblower_aware=False)
        if score.negative_count >= threshold:
            return self._transition(article, ArticleStatus.DISPROVEN, score,
                                    set_truth_score=False, whistleblower_aware=False)
        return None

    def _transition(self, article, target, score, set_truth_score, whistleblower_aware):
        """
        Claim the pending -> target move with a conditional UPDATE. Only the
        caller whose UPDATE matched pays the outcome reward. Must run inside
        the caller's unit of work. The count-threshold path pays the flat
        author reward; only the score path honours the whistleblower bonus.
        """
        values = {Article.status: target}
        if set_truth_score:
            values[Article.truth_score] = score.score_percent

        claimed = Article.query.filter(
            Article.id == article.id,
            Article.status == ArticleStatus.PENDING,
        ).update(values, synchronize_session=False)
        if not claimed:
            return None

        reward = reward_for_article_outcome(whistleblower_aware and article.is_whistleblower, target)
        if reward:
            if db.session.get(User, article.author_id) is not None:
                self.ledger.award(article.author_id, reward, 'Article verified', commit=False)
            else:
                logger.warning(f"Author {article.author_id} of article {article.id} missing; reward skipped")

        logger.info(
            f"Article {article.id} -> {target.value} "
            f"(score={score.score_percent}, {score.positive_count}/{score.total_count} positive)"
        )
        return _Transition(_TRANSITION_EVENTS[target], {
            'article_id': article.id,
            'score': score.score_percent,
            'verification_count': score.total_count,
        })

    def _publish(self, transition):
        if transition is None:
            return
        notification_service.get_publisher().publish(transition.event_type, transition.payload)
