from truthnode.models.user import User, AuthSession, SignatureRecord, PublisherApplication
from truthnode.models.article import Article, Evidence, Verification
from truthnode.models.reward import TokenAward, RewardSettlement

__all__ = [
    'User', 'AuthSession', 'SignatureRecord', 'PublisherApplication',
    'Article', 'Evidence', 'Verification',
    'TokenAward', 'RewardSettlement',
]
