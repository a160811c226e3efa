from sqlalchemy.orm import validates
from truthnode.enums import ApplicationStatus, UserRole, enum_values, parse_enum
from truthnode.extensions import db
from truthnode.utils.clock import isoformat, utcnow


class User(db.Model):
    __tablename__ = 'users'

    id = db.Column(db.Integer, primary_key=True)
    username = db.Column(db.String(64), nullable=False, unique=True)
    email = db.Column(db.String(256), nullable=False, unique=True)
    name = db.Column(db.String(256), nullable=False)
    password_hash = db.Column(db.String(256), nullable=False)
    role = db.Column(
        db.Enum(UserRole, native_enum=False, length=16,
                values_callable=enum_values, validate_strings=True),
        nullable=False, default=UserRole.COMMUNITY,
    )
    ens_address = db.Column(db.String(256), nullable=True, index=True)
    bio = db.Column(db.Text)
    avatar = db.Column(db.String(2048))
    reputation = db.Column(db.Integer, nullable=False, default=50)
    truth_tokens = db.Column(db.Integer, nullable=False, default=0)
    verified_at = db.Column(db.DateTime(timezone=True), nullable=True)
    created_at = db.Column(db.DateTime(timezone=True), default=utcnow)

    __table_args__ = (
        db.CheckConstraint('truth_tokens >= 0', name='ck_users_truth_tokens_non_negative'),
    )

    @validates('role')
    def _coerce_role(self, key, value):
        return parse_enum(UserRole, value, key)

    def to_public_dict(self):
        return {
            'id': self.id,
            'username': self.username,
            'name': self.name,
            'role': self.role.value,
            'bio': self.bio,
            'avatar': self.avatar,
            'truth_tokens': self.truth_tokens,
        }

    def to_dict(self):
        return {
            **self.to_public_dict(),
            'email': self.email,
            'ens_address': self.ens_address,
            'reputation': self.reputation,
            'verified_at': isoformat(self.verified_at),
            'created_at': isoformat(self.created_at),
        }

    def to_author_dict(self):
        return {
            'id': self.id,
            'name': self.name,
            'username': self.username,
            'avatar': self.avatar,
            'role': self.role.value,
        }


class AuthSession(db.Model):
    __tablename__ = 'auth_sessions'

    id = db.Column(db.Integer, primary_key=True)
    token = db.Column(db.String(128), nullable=False, unique=True)
    user_id = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=False, index=True)
    created_at = db.Column(db.DateTime(timezone=True), default=utcnow, index=True)

    user = db.relationship('User')


class SignatureRecord(db.Model):
    __tablename__ = 'signature_records'

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=False, unique=True)
    signature = db.Column(db.Text, nullable=False)
    message = db.Column(db.Text, nullable=False)
    updated_at = db.Column(db.DateTime(timezone=True), default=utcnow, onupdate=utcnow)

    def to_dict(self):
        return {
            'user_id': self.user_id,
            'signature': self.signature,
            'message': self.message,
            'updated_at': isoformat(self.updated_at),
        }


class PublisherApplication(db.Model):
    __tablename__ = 'publisher_applications'

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=False, index=True)
    organization = db.Column(db.String(256), nullable=False)
    website = db.Column(db.String(2048), nullable=False)
    reason = db.Column(db.Text, nullable=False)
    status = db.Column(
        db.Enum(ApplicationStatus, native_enum=False, length=16,
                values_callable=enum_values, validate_strings=True),
        nullable=False, default=ApplicationStatus.PENDING,
    )
    created_at = db.Column(db.DateTime(timezone=True), default=utcnow)

    @validates('status')
    def _coerce_status(self, key, value):
        return parse_enum(ApplicationStatus, value, key)

    def to_dict(self):
        return {
            'id': self.id,
            'user_id': self.user_id,
            'organization': self.organization,
            'website': self.website,
            'reason': self.reason,
            'status': self.status.value,
            'created_at': isoformat(self.created_at),
        }
