from sqlalchemy.orm import validates
from truthnode.enums import (
    ArticleStatus, EvidenceType, VerificationVerdict, enum_values, parse_enum,
)
from truthnode.extensions import db
from truthnode.utils.clock import isoformat, utcnow


class Article(db.Model):
    __tablename__ = 'articles'

    id = db.Column(db.Integer, primary_key=True)
    title = db.Column(db.String(1024), nullable=False)
    content = db.Column(db.Text, nullable=False)
    summary = db.Column(db.Text, nullable=False)
    ipfs_hash = db.Column(db.String(128), nullable=False)
    image_url = db.Column(db.String(2048))
    category = db.Column(db.String(128), nullable=False)
    author_id = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=False, index=True)
    status = db.Column(
        db.Enum(ArticleStatus, native_enum=False, length=16,
                values_callable=enum_values, validate_strings=True),
        nullable=False, default=ArticleStatus.PENDING,
    )
    is_whistleblower = db.Column(db.Boolean, nullable=False, default=False)
    verification_count = db.Column(db.Integer, nullable=False, default=0)
    truth_score = db.Column(db.Integer, nullable=True)
    created_at = db.Column(db.DateTime(timezone=True), default=utcnow)

    author = db.relationship('User')

    __table_args__ = (
        db.Index('ix_articles_status_created', 'status', 'created_at'),
    )

    @validates('status')
    def _coerce_status(self, key, value):
        return parse_enum(ArticleStatus, value, key)

    def to_dict(self):
        return {
            'id': self.id,
            'title': self.title,
            'content': self.content,
            'summary': self.summary,
            'ipfs_hash': self.ipfs_hash,
            'image_url': self.image_url,
            'category': self.category,
            'author_id': self.author_id,
            'status': self.status.value,
            'is_whistleblower': self.is_whistleblower,
            'verification_count': self.verification_count,
            'truth_score': self.truth_score,
            'created_at': isoformat(self.created_at),
        }


class Evidence(db.Model):
    __tablename__ = 'evidence'

    id = db.Column(db.Integer, primary_key=True)
    article_id = db.Column(db.Integer, db.ForeignKey('articles.id'), nullable=False, index=True)
    user_id = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=False, index=True)
    type = db.Column(
        db.Enum(EvidenceType, native_enum=False, length=16,
                values_callable=enum_values, validate_strings=True),
        nullable=False,
    )
    description = db.Column(db.Text, nullable=False)
    files = db.Column(db.JSON, nullable=True)
    ipfs_hash = db.Column(db.String(128), nullable=True)
    token_reward = db.Column(db.Integer, nullable=False)
    created_at = db.Column(db.DateTime(timezone=True), default=utcnow)

    user = db.relationship('User')

    @validates('type')
    def _coerce_type(self, key, value):
        return parse_enum(EvidenceType, value, key)

    def to_dict(self):
        return {
            'id': self.id,
            'article_id': self.article_id,
            'user_id': self.user_id,
            'type': self.type.value,
            'description': self.description,
            'files': self.files or [],
            'ipfs_hash': self.ipfs_hash,
            'token_reward': self.token_reward,
            'created_at': isoformat(self.created_at),
        }


class Verification(db.Model):
    __tablename__ = 'verifications'

    id = db.Column(db.Integer, primary_key=True)
    article_id = db.Column(db.Integer, db.ForeignKey('articles.id'), nullable=False)
    user_id = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=False, index=True)
    status = db.Column(
        db.Enum(VerificationVerdict, native_enum=False, length=16,
                values_callable=enum_values, validate_strings=True),
        nullable=False,
    )
    reason = db.Column(db.Text, nullable=True)
    created_at = db.Column(db.DateTime(timezone=True), default=utcnow)

    __table_args__ = (
        db.Index('ix_verifications_article_status', 'article_id', 'status'),
    )

    @validates('status')
    def _coerce_status(self, key, value):
        return parse_enum(VerificationVerdict, value, key)

    def to_dict(self):
        return {
            'id': self.id,
            'article_id': self.article_id,
            'user_id': self.user_id,
            'status': self.status.value,
            'reason': self.reason,
            'created_at': isoformat(self.created_at),
        }
