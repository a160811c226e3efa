"""
Token reward tables. Pure lookups, no database access.
"""
from truthnode.enums import ArticleStatus, EvidenceType, UserRole

EVIDENCE_REWARDS = {
    EvidenceType.SUPPORTING: 2,
    EvidenceType.CONTRADICTING: 3,
    EvidenceType.CONTEXTUAL: 1,
}

VERIFICATION_REWARD = 5
ARTICLE_VERIFIED_REWARD = 10
WHISTLEBLOWER_VERIFIED_REWARD = 15

# Informational weighting of evidence; never drives a status change
EVIDENCE_IMPACT = {
    EvidenceType.SUPPORTING: 5,
    EvidenceType.CONTRADICTING: -10,
    EvidenceType.CONTEXTUAL: 2,
}
TRUSTED_CONTRIBUTOR_MULTIPLIER = 1.5


def _evidence_type_or_none(evidence_type):
    try:
        return EvidenceType(evidence_type)
    except ValueError:
        return None


def reward_for_evidence(evidence_type) -> int:
    """Unknown types earn the contextual reward."""
    known = _evidence_type_or_none(evidence_type)
    if known is None:
        return EVIDENCE_REWARDS[EvidenceType.CONTEXTUAL]
    return EVIDENCE_REWARDS[known]


def reward_for_verification() -> int:
    return VERIFICATION_REWARD


def reward_for_article_outcome(is_whistleblower: bool, outcome) -> int:
    outcome = ArticleStatus(outcome)
    if outcome is ArticleStatus.VERIFIED:
        return WHISTLEBLOWER_VERIFIED_REWARD if is_whistleblower else ARTICLE_VERIFIED_REWARD
    if outcome is ArticleStatus.DISPROVEN:
        return 0
    if outcome is ArticleStatus.PENDING:
        return 0
    raise AssertionError(f"Unhandled article outcome: {outcome}")


def evidence_impact(evidence_type, role=None) -> float:
    known = _evidence_type_or_none(evidence_type)
    impact = float(EVIDENCE_IMPACT.get(known, 0))
    if role is not None and UserRole(role).can_verify:
        impact *= TRUSTED_CONTRIBUTOR_MULTIPLIER
    return impact
