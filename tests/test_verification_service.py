from unittest.mock import patch
import pytest
from truthnode import feature_flags
from truthnode.enums import ArticleStatus, UserRole
from truthnode.errors import NotFoundError, PermissionDeniedError, ValidationError
from truthnode.extensions import db
from truthnode.models.article import Article, Evidence, Verification
from truthnode.models.reward import TokenAward
from truthnode.services.notification_service import get_publisher
from truthnode.services.reward_ledger import RewardLedger
from truthnode.services.verification_aggregator import compute_score
from truthnode.services.verification_service import VerificationService, _article_lock


@pytest.fixture
def service():
    return VerificationService()


@pytest.fixture
def score_path_only():
    """Disable the legacy count-threshold trigger for the duration of a test."""
    feature_flags.set_flag('count_threshold_transitions', False)
    yield
    feature_flags.set_flag('count_threshold_transitions', True)


def _record(service, article, verifiers, verified=0, disproven=0):
    voters = iter(verifiers * 3)
    for _ in range(verified):
        service.record_verification(article.id, next(voters).id, 'verified')
    for _ in range(disproven):
        service.record_verification(article.id, next(voters).id, 'disproven')


def _event_types():
    return [e['type'] for e in get_publisher().recent()]


class TestRecordVerification:
    def test_count_matches_number_of_submissions(self, app, service, article, verifiers):
        for n, user in enumerate(verifiers[:4], start=1):
            service.record_verification(article.id, user.id, 'disproven' if n % 2 else 'verified')
            assert db.session.get(Article, article.id).verification_count == n

        assert len(service.list_verifications(article.id)) == 4

    def test_same_user_may_verify_repeatedly(self, app, service, article, verifiers):
        for _ in range(3):
            service.record_verification(article.id, verifiers[0].id, 'verified', reason='Source confirmed')

        assert db.session.get(Article, article.id).verification_count == 3
        assert Verification.query.filter_by(user_id=verifiers[0].id).count() == 3

    def test_verifier_earns_flat_reward(self, app, service, article, verifiers):
        service.record_verification(article.id, verifiers[0].id, 'disproven')

        assert verifiers[0].truth_tokens == 5
        awards = RewardLedger().get_awards(verifiers[0].id)
        assert [(a.amount, a.reason) for a in awards] == [(5, 'Verification submitted')]

    def test_community_user_cannot_verify(self, app, service, article, community_user):
        with pytest.raises(PermissionDeniedError):
            service.record_verification(article.id, community_user.id, 'verified')

        assert Verification.query.count() == 0
        assert db.session.get(Article, article.id).verification_count == 0
        assert community_user.truth_tokens == 0

    def test_unknown_article_leaves_no_trace(self, app, service, verifiers):
        with pytest.raises(NotFoundError):
            service.record_verification(999, verifiers[0].id, 'verified')

        assert Verification.query.count() == 0
        assert TokenAward.query.count() == 0
        assert verifiers[0].truth_tokens == 0

    def test_unknown_user_rejected(self, app, service, article):
        with pytest.raises(NotFoundError):
            service.record_verification(article.id, 999, 'verified')

    def test_string_ids_are_coerced(self, app, service, article, verifiers):
        verification = service.record_verification(str(article.id), str(verifiers[0].id), 'verified')

        assert verification.article_id == article.id
        assert db.session.get(Article, article.id).verification_count == 1

    @pytest.mark.parametrize('article_id', ['abc', None, True])
    def test_malformed_article_id_rejected(self, app, service, verifiers, article_id):
        with pytest.raises(ValidationError):
            service.record_verification(article_id, verifiers[0].id, 'verified')
        assert Verification.query.count() == 0

    @pytest.mark.parametrize('status', ['pending', 'true', '', None])
    def test_invalid_verdict_rejected(self, app, service, article, verifiers, status):
        with pytest.raises(ValidationError):
            service.record_verification(article.id, verifiers[0].id, status)

        assert db.session.get(Article, article.id).verification_count == 0


class TestCountThresholdPath:
    def test_five_verified_transitions_once(self, app, service, article, author, verifiers):
        _record(service, article, verifiers, verified=4)
        assert db.session.get(Article, article.id).status is ArticleStatus.PENDING
        assert author.truth_tokens == 0

        _record(service, article, verifiers[4:], verified=1)
        refreshed = db.session.get(Article, article.id)
        assert refreshed.status is ArticleStatus.VERIFIED
        assert refreshed.verification_count == 5
        assert author.truth_tokens == 10

        # A sixth positive verdict does not pay the author again
        _record(service, article, verifiers[5:], verified=1)
        assert author.truth_tokens == 10
        assert _event_types() == ['article_verified']

    def test_whistleblower_author_gets_flat_reward(self, app, service, make_article, author, verifiers):
        article = make_article(is_whistleblower=True)
        _record(service, article, verifiers, verified=5)

        assert db.session.get(Article, article.id).status is ArticleStatus.VERIFIED
        # The whistleblower bonus is paid only by evaluate_truth
        assert author.truth_tokens == 10
        award = RewardLedger().get_awards(author.id)[0]
        assert (award.amount, award.reason) == (10, 'Article verified')

    def test_five_disproven_transitions_without_reward(self, app, service, article, author, verifiers):
        _record(service, article, verifiers, verified=2, disproven=5)

        refreshed = db.session.get(Article, article.id)
        assert refreshed.status is ArticleStatus.DISPROVEN
        assert refreshed.truth_score is None
        assert author.truth_tokens == 0
        assert _event_types() == ['article_disproven']

    def test_terminal_status_is_not_reversed(self, app, service, article, author, verifiers):
        _record(service, article, verifiers, verified=5)
        _record(service, article, verifiers[5:], disproven=5)

        refreshed = db.session.get(Article, article.id)
        assert refreshed.status is ArticleStatus.VERIFIED
        assert refreshed.verification_count == 10
        assert author.truth_tokens == 10

    def test_disabled_flag_skips_count_path(self, app, service, article, verifiers, score_path_only):
        _record(service, article, verifiers, verified=6)
        assert db.session.get(Article, article.id).status is ArticleStatus.PENDING


class TestScoreThresholdPath:
    def test_mostly_disproven_article_is_disproven(self, app, service, article, author, verifiers,
                                                   score_path_only):
        _record(service, article, verifiers, verified=2, disproven=8)

        result = service.evaluate_truth(article.id)
        assert result.status is ArticleStatus.DISPROVEN
        assert result.score.score_percent == 20
        assert result.transitioned is True
        refreshed = db.session.get(Article, article.id)
        assert refreshed.truth_score == 20
        assert author.truth_tokens == 0
        assert _event_types() == ['article_disproven']

    def test_inconclusive_updates_score_only(self, app, service, article, author, verifiers,
                                             score_path_only):
        _record(service, article, verifiers, verified=5, disproven=5)

        result = service.evaluate_truth(article.id)
        assert result.status is ArticleStatus.PENDING
        assert result.transitioned is False
        refreshed = db.session.get(Article, article.id)
        assert refreshed.status is ArticleStatus.PENDING
        assert refreshed.truth_score == 50
        assert _event_types() == []

    def test_no_verifications_scores_neutral(self, app, service, article):
        result = service.evaluate_truth(article.id)
        assert result.score.score_percent == 50
        assert result.status is ArticleStatus.PENDING
        assert db.session.get(Article, article.id).truth_score == 50

    @pytest.mark.parametrize('is_whistleblower,expected', [(False, 10), (True, 15)])
    def test_verified_author_reward(self, app, service, make_article, author, verifiers,
                                    score_path_only, is_whistleblower, expected):
        article = make_article(is_whistleblower=is_whistleblower)
        _record(service, article, verifiers, verified=7, disproven=3)

        result = service.evaluate_truth(article.id)
        assert result.status is ArticleStatus.VERIFIED
        assert db.session.get(Article, article.id).truth_score == 70
        assert author.truth_tokens == expected

        event = get_publisher().recent()[-1]
        assert event['type'] == 'article_verified'
        assert event['data'] == {'article_id': article.id, 'score': 70, 'verification_count': 10}

    def test_repeated_evaluation_is_idempotent(self, app, service, article, author, verifiers,
                                               score_path_only):
        _record(service, article, verifiers, verified=8, disproven=2)

        first = service.evaluate_truth(article.id)
        second = service.evaluate_truth(article.id)

        assert first.status is second.status is ArticleStatus.VERIFIED
        assert first.transitioned is True
        assert second.transitioned is False
        assert author.truth_tokens == 10
        assert TokenAward.query.filter_by(user_id=author.id).count() == 1
        assert _event_types() == ['article_verified']

    def test_count_then_score_pays_once(self, app, service, article, author, verifiers):
        _record(service, article, verifiers, verified=5)
        result = service.evaluate_truth(article.id)

        assert result.status is ArticleStatus.VERIFIED
        assert result.transitioned is False
        assert db.session.get(Article, article.id).truth_score == 100
        assert author.truth_tokens == 10

    def test_terminal_article_keeps_status_but_refreshes_score(self, app, service, make_article,
                                                               verifiers, score_path_only):
        article = make_article(status='verified')
        _record(service, article, verifiers, verified=1, disproven=9)

        result = service.evaluate_truth(article.id)
        assert result.status is ArticleStatus.VERIFIED
        assert db.session.get(Article, article.id).truth_score == 10

    def test_unknown_article(self, app, service):
        with pytest.raises(NotFoundError):
            service.evaluate_truth(12345)

    def test_stale_reader_cannot_double_fire(self, app, service, article, author):
        """The pending guard lives in the UPDATE, not in the loaded object."""
        stale = db.session.get(Article, article.id)
        Article.query.filter_by(id=article.id).update(
            {Article.status: ArticleStatus.VERIFIED}, synchronize_session=False,
        )
        db.session.flush()

        transition = service._transition(stale, ArticleStatus.VERIFIED,
                                         compute_score(['verified'] * 5), set_truth_score=True,
                                         whistleblower_aware=True)
        db.session.commit()

        assert transition is None
        assert author.truth_tokens == 0

    def test_missing_author_does_not_block_transition(self, app, service, make_article, verifiers,
                                                      score_path_only):
        article = make_article(author_id=424242)
        _record(service, article, verifiers, verified=3)

        result = service.evaluate_truth(article.id)
        assert result.status is ArticleStatus.VERIFIED


class TestOverrideStatus:
    def test_override_bypasses_guards_and_rewards(self, app, service, article, author):
        service.override_status(article.id, 'verified')
        service.override_status(article.id, ArticleStatus.DISPROVEN)
        updated = service.override_status(article.id, 'pending')

        assert updated.status is ArticleStatus.PENDING
        assert author.truth_tokens == 0
        assert _event_types() == ['article_status_overridden'] * 3

    def test_override_rejects_unknown_status(self, app, service, article):
        with pytest.raises(ValidationError):
            service.override_status(article.id, 'retracted')
        assert db.session.get(Article, article.id).status is ArticleStatus.PENDING

    def test_failed_commit_rolls_back(self, app, service, article):
        with patch.object(db.session, 'commit', side_effect=RuntimeError('database is locked')):
            with pytest.raises(RuntimeError):
                service.override_status(article.id, 'verified')

        assert db.session.get(Article, article.id).status is ArticleStatus.PENDING
        assert _event_types() == []

    def test_override_unknown_article(self, app, service):
        with pytest.raises(NotFoundError):
            service.override_status(404, 'verified')


class TestSubmitEvidence:
    def test_contradicting_evidence_pays_three(self, app, db_session, service, make_user):
        users = [make_user(UserRole.JOURNALIST if i == 0 else UserRole.COMMUNITY) for i in range(7)]
        contributor = users[6]
        article = Article(
            title='Port authority contract', content='Body', summary='Summary',
            category='Politics', ipfs_hash='QmPort', author_id=users[0].id,
        )
        db_session.add(article)
        db_session.commit()
        assert (article.id, contributor.id) == (1, 7)

        evidence = service.submit_evidence(1, 7, 'contradicting', 'Leaked memo contradicts the timeline')

        assert Evidence.query.count() == 1
        assert evidence.token_reward == 3
        assert contributor.truth_tokens == 3
        assert db.session.get(Article, 1).status is ArticleStatus.PENDING

    def test_evidence_never_changes_status(self, app, service, article, community_user):
        for _ in range(6):
            service.submit_evidence(article.id, community_user.id, 'supporting', 'Matching records')

        assert db.session.get(Article, article.id).status is ArticleStatus.PENDING
        assert community_user.truth_tokens == 12

    def test_unknown_article_rejected_before_mutation(self, app, service, community_user):
        with pytest.raises(NotFoundError):
            service.submit_evidence(77, community_user.id, 'supporting', 'Anything')

        assert Evidence.query.count() == 0
        assert community_user.truth_tokens == 0

    def test_unknown_type_rejected(self, app, service, article, community_user):
        with pytest.raises(ValidationError):
            service.submit_evidence(article.id, community_user.id, 'rumour', 'Heard it somewhere')

    def test_description_required(self, app, service, article, community_user):
        with pytest.raises(ValidationError):
            service.submit_evidence(article.id, community_user.id, 'contextual', '   ')


class TestArticleLocks:
    def test_same_article_shares_a_lock(self):
        assert _article_lock(12) is _article_lock(12)

    def test_lock_pool_is_bounded(self):
        locks = {id(_article_lock(article_id)) for article_id in range(1, 10000)}
        assert len(locks) <= 64
