import logging
import secrets
from datetime import timedelta
from sqlalchemy.exc import IntegrityError
from werkzeug.security import check_password_hash, generate_password_hash
from truthnode.enums import ApplicationStatus, UserRole, parse_enum
from truthnode.errors import ConflictError, NotFoundError, PermissionDeniedError, ValidationError
from truthnode.extensions import db
from truthnode.models.user import AuthSession, PublisherApplication, SignatureRecord, User
from truthnode.utils.clock import utcnow

logger = logging.getLogger(__name__)

REQUIRED_USER_FIELDS = ('username', 'password', 'email', 'name')


class UserService:
    def register(self, data):
        missing = [f for f in REQUIRED_USER_FIELDS if not data.get(f)]
        if missing:
            raise ValidationError(f"Missing fields: {missing}")
        role = parse_enum(UserRole, data.get('role', UserRole.COMMUNITY), 'role')

        if User.query.filter_by(username=data['username']).first():
            raise ConflictError("Username already exists")
        if User.query.filter_by(email=data['email']).first():
            raise ConflictError("Email already registered")

        now = utcnow()
        user = User(
            username=data['username'],
            email=data['email'],
            name=data['name'],
            password_hash=generate_password_hash(data['password']),
            role=role,
            ens_address=data.get('ens_address'),
            bio=data.get('bio'),
            avatar=data.get('avatar'),
            verified_at=now if role is not UserRole.COMMUNITY else None,
        )
        db.session.add(user)
        try:
            db.session.commit()
        except IntegrityError:
            db.session.rollback()
            raise ConflictError("Username or email already exists")

        logger.info(f"Registered user {user.id} ({user.username}, {role.value})")
        return user

    def authenticate(self, username, password):
        """Check credentials and open a session. Returns (token, user)."""
        user = User.query.filter_by(username=username).first()
        if not user or not check_password_hash(user.password_hash, password):
            return None, None
        return self.issue_token(user), user

    def issue_token(self, user):
        token = secrets.token_hex(64)
        db.session.add(AuthSession(token=token, user_id=user.id))
        db.session.commit()
        return token

    def user_for_token(self, token):
        if not token:
            return None
        session = AuthSession.query.filter_by(token=token).first()
        return session.user if session else None

    def expire_sessions(self, ttl_days):
        """Delete sessions older than ttl_days (called by scheduler)."""
        cutoff = utcnow() - timedelta(days=ttl_days)
        count = AuthSession.query.filter(
            AuthSession.created_at < cutoff
        ).delete(synchronize_session=False)
        db.session.commit()
        logger.info(f"Expired {count} sessions")
        return count

    def get_user(self, user_id):
        user = db.session.get(User, user_id)
        if user is None:
            raise NotFoundError('User', user_id)
        return user

    def top_verifiers(self, limit=3):
        return User.query.order_by(User.truth_tokens.desc(), User.id).limit(limit).all()

    def store_signature(self, user_id, signature, message):
        """Cache the latest signed message for a user, replacing any earlier one."""
        self.get_user(user_id)
        record = SignatureRecord.query.filter_by(user_id=user_id).first()
        if record is None:
            record = SignatureRecord(user_id=user_id, signature=signature, message=message)
            db.session.add(record)
        else:
            record.signature = signature
            record.message = message
        db.session.commit()
        return record

    def get_signature(self, user_id):
        return SignatureRecord.query.filter_by(user_id=user_id).first()

    def link_ens_address(self, user_id, ens_name, signature, message):
        """
        Record an ENS name and its signed message against a user. Names are
        not resolved on-chain; only basic shape checks are applied.
        """
        if not ens_name or not signature or not message:
            raise ValidationError("ENS name, signature, and message are required")
        if not ens_name.endswith('.eth'):
            raise ValidationError(f"Not an ENS name: {ens_name}")

        user = self.get_user(user_id)
        self.store_signature(user_id, signature, message)
        if not user.ens_address:
            user.ens_address = ens_name
            db.session.commit()
        logger.info(f"Linked ENS name {ens_name} to user {user_id}")
        return user


class PublisherApplicationService:
    def apply(self, user_id, data):
        user = db.session.get(User, user_id)
        if user is None:
            raise NotFoundError('User', user_id)
        if user.role is not UserRole.COMMUNITY:
            raise PermissionDeniedError("Only community users can apply to become publishers")

        missing = [f for f in ('organization', 'website', 'reason') if not data.get(f)]
        if missing:
            raise ValidationError(f"Missing fields: {missing}")

        application = PublisherApplication(
            user_id=user_id,
            organization=data['organization'],
            website=data['website'],
            reason=data['reason'],
        )
        db.session.add(application)
        db.session.commit()
        return application

    def decide(self, application_id, status):
        """Approve or reject. Approval promotes the applicant to publisher."""
        decision = parse_enum(ApplicationStatus, status, 'status')
        if decision is ApplicationStatus.PENDING:
            raise ValidationError("Decision must be approved or rejected")

        application = db.session.get(PublisherApplication, application_id)
        if application is None:
            raise NotFoundError('Application', application_id)

        application.status = decision
        if decision is ApplicationStatus.APPROVED:
            user = db.session.get(User, application.user_id)
            if user is not None:
                user.role = UserRole.PUBLISHER
                user.verified_at = utcnow()
        db.session.commit()
        logger.info(f"Publisher application {application_id} {decision.value}")
        return application
