from truthnode.enums import ArticleStatus, UserRole
from truthnode.extensions import db
from truthnode.models.article import Article, Evidence
from truthnode.models.user import User
from truthnode.services.verification_aggregator import percent_half_up


class StatsService:
    def get_stats(self):
        article_count = Article.query.count()
        verified_count = Article.query.filter(Article.status == ArticleStatus.VERIFIED).count()
        token_count = db.session.query(
            db.func.coalesce(db.func.sum(User.truth_tokens), 0)
        ).scalar()

        return {
            'publisher_count': User.query.filter(User.role == UserRole.PUBLISHER).count(),
            'article_count': article_count,
            'verification_rate': percent_half_up(verified_count, article_count) if article_count else 0,
            'token_count': int(token_count),
            'whistleblower_count': Article.query.filter(Article.is_whistleblower.is_(True)).count(),
            'evidence_count': Evidence.query.count(),
        }
