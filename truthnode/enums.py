from enum import Enum

from truthnode.errors import ValidationError


class UserRole(str, Enum):
    PUBLISHER = 'publisher'
    JOURNALIST = 'journalist'
    COMMUNITY = 'community'

    @property
    def can_verify(self):
        return self in (UserRole.PUBLISHER, UserRole.JOURNALIST)


class ArticleStatus(str, Enum):
    PENDING = 'pending'
    VERIFIED = 'verified'
    DISPROVEN = 'disproven'

    @property
    def is_terminal(self):
        return self is not ArticleStatus.PENDING


class VerificationVerdict(str, Enum):
    VERIFIED = 'verified'
    DISPROVEN = 'disproven'


class EvidenceType(str, Enum):
    SUPPORTING = 'supporting'
    CONTRADICTING = 'contradicting'
    CONTEXTUAL = 'contextual'


class ApplicationStatus(str, Enum):
    PENDING = 'pending'
    APPROVED = 'approved'
    REJECTED = 'rejected'


class SettlementStatus(str, Enum):
    PENDING = 'pending'
    SETTLED = 'settled'
    FAILED = 'failed'


def parse_enum(enum_cls, value, field=None):
    """Coerce a request value into ``enum_cls`` or raise ValidationError."""
    if isinstance(value, enum_cls):
        return value
    try:
        return enum_cls(value)
    except ValueError:
        allowed = ', '.join(m.value for m in enum_cls)
        label = field or enum_cls.__name__
        raise ValidationError(f"Invalid {label}: {value!r} (expected one of: {allowed})")


def enum_values(enum_cls):
    return [m.value for m in enum_cls]
