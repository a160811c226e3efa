import os
import pytest

# Set test env vars before importing app
os.environ.pop('FF_COUNT_THRESHOLD_TRANSITIONS', None)

from werkzeug.security import generate_password_hash

from truthnode import create_app, feature_flags
from truthnode.enums import UserRole
from truthnode.extensions import db as _db
from truthnode.models.article import Article
from truthnode.models.user import User
from truthnode.services.notification_service import get_publisher
from truthnode.services.user_service import UserService
from config import TestConfig


@pytest.fixture(scope='session')
def app():
    """Create app with test config."""
    app = create_app(TestConfig)
    return app


@pytest.fixture(autouse=True)
def setup_db(app):
    """Create tables before each test, drop after."""
    with app.app_context():
        _db.create_all()
        yield
        _db.session.rollback()
        _db.drop_all()


@pytest.fixture(autouse=True)
def reset_runtime_state(app):
    """Feature flags and the event buffer are process-wide; reset them per test."""
    feature_flags.init_flags()
    with app.app_context():
        get_publisher().clear()
    yield
    feature_flags.init_flags()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def admin_headers(app):
    return {'X-Admin-Key': app.config['ADMIN_API_KEY']}


@pytest.fixture
def db_session(app):
    with app.app_context():
        yield _db.session


@pytest.fixture
def make_user(db_session):
    """Factory for users with a given role."""
    counter = {'n': 0}

    def _make(role=UserRole.JOURNALIST, username=None, **kwargs):
        counter['n'] += 1
        username = username or f'{UserRole(role).value}_{counter["n"]}'
        user = User(
            username=username,
            email=f'{username}@example.com',
            name=username.replace('_', ' ').title(),
            password_hash=generate_password_hash('password123'),
            role=role,
            **kwargs,
        )
        db_session.add(user)
        db_session.commit()
        return user

    return _make


@pytest.fixture
def author(make_user):
    return make_user(UserRole.JOURNALIST, username='james_wilson')


@pytest.fixture
def publisher(make_user):
    return make_user(UserRole.PUBLISHER, username='press_desk')


@pytest.fixture
def community_user(make_user):
    return make_user(UserRole.COMMUNITY, username='maria_johnson')


@pytest.fixture
def verifiers(make_user):
    """Ten journalists able to submit verdicts."""
    return [make_user(UserRole.JOURNALIST) for _ in range(10)]


@pytest.fixture
def make_article(db_session, author):
    def _make(is_whistleblower=False, author_id=None, status='pending', title='Test Article'):
        article = Article(
            title=title,
            content='Internal documents reveal manipulated environmental testing.',
            summary='Manipulated environmental testing.',
            category='Environment',
            ipfs_hash='QmTestHash',
            author_id=author_id or author.id,
            status=status,
            is_whistleblower=is_whistleblower,
        )
        db_session.add(article)
        db_session.commit()
        return article

    return _make


@pytest.fixture
def article(make_article):
    return make_article()


@pytest.fixture
def auth_headers(app):
    """Build bearer headers for a user."""
    def _headers(user):
        token = UserService().issue_token(user)
        return {'Authorization': f'Bearer {token}'}

    return _headers
