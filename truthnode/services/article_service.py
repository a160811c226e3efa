import logging
from flask import current_app
from truthnode.enums import ArticleStatus, parse_enum
from truthnode.errors import NotFoundError, PermissionDeniedError, ValidationError
from truthnode.extensions import db
from truthnode.models.article import Article, Evidence, Verification
from truthnode.models.user import User
from truthnode.utils.hashing import content_address

logger = logging.getLogger(__name__)

REQUIRED_ARTICLE_FIELDS = ('title', 'content', 'summary', 'category')


class ArticleService:
    def create_article(self, author_id, data, is_whistleblower=False):
        """Create a pending article. Only publishers and journalists may author."""
        author = db.session.get(User, author_id)
        if author is None:
            raise NotFoundError('User', author_id)
        if not is_whistleblower and not author.role.can_verify:
            raise PermissionDeniedError("Only publishers and journalists can create articles")

        missing = [f for f in REQUIRED_ARTICLE_FIELDS if not data.get(f)]
        if missing:
            raise ValidationError(f"Missing fields: {missing}")
        not_text = [f for f in REQUIRED_ARTICLE_FIELDS if not isinstance(data[f], str) or not data[f].strip()]
        if not_text:
            raise ValidationError(f"Fields must be non-empty text: {not_text}")
        for f in ('image_url', 'ipfs_hash'):
            if data.get(f) is not None and not isinstance(data[f], str):
                raise ValidationError(f"{f} must be a string")

        article = Article(
            title=data['title'],
            content=data['content'],
            summary=data['summary'],
            category=data['category'],
            image_url=data.get('image_url'),
            ipfs_hash=data.get('ipfs_hash') or content_address(data['content']),
            author_id=author_id,
            status=ArticleStatus.PENDING,
            is_whistleblower=is_whistleblower,
        )
        db.session.add(article)
        db.session.commit()
        logger.info(f"Article {article.id} created by user {author_id} (whistleblower={is_whistleblower})")
        return article

    def submit_whistleblower(self, data, ipfs_hash):
        """Anonymous submission, attributed to the configured whistleblower account."""
        if not ipfs_hash:
            raise ValidationError("IPFS hash is required")
        author_id = current_app.config.get('WHISTLEBLOWER_AUTHOR_ID', 1)
        return self.create_article(author_id, {**data, 'ipfs_hash': ipfs_hash}, is_whistleblower=True)

    def get_article(self, article_id):
        article = db.session.get(Article, article_id)
        if article is None:
            raise NotFoundError('Article', article_id)
        return article

    def list_articles(self, limit=None, offset=0, status=None, is_whistleblower=None, author_id=None):
        """Newest first."""
        query = Article.query
        if status is not None:
            query = query.filter(Article.status == parse_enum(ArticleStatus, status, 'status'))
        if is_whistleblower is not None:
            query = query.filter(Article.is_whistleblower == is_whistleblower)
        if author_id is not None:
            query = query.filter(Article.author_id == author_id)

        query = query.order_by(Article.created_at.desc(), Article.id.desc())
        if offset:
            query = query.offset(offset)
        if limit:
            query = query.limit(limit)
        return query.all()

    def featured_articles(self, limit=3):
        """Verified or already-reviewed articles, most reviewed first."""
        return Article.query.filter(
            db.or_(
                Article.status == ArticleStatus.VERIFIED,
                Article.verification_count > 0,
            )
        ).order_by(Article.verification_count.desc(), Article.id).limit(limit).all()

    def get_evidence_for_article(self, article_id):
        return Evidence.query.filter_by(article_id=article_id).order_by(Evidence.id).all()

    def get_verifications_for_article(self, article_id):
        return Verification.query.filter_by(article_id=article_id).order_by(Verification.id).all()

    def with_author(self, article):
        payload = article.to_dict()
        payload['author'] = article.author.to_author_dict() if article.author else None
        return payload
