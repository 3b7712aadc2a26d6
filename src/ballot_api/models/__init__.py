"""ORM model registry. Import all models so Alembic autogenerate discovers them."""

from ballot_api.models.audit_log import AuditLog
from ballot_api.models.candidate import Candidate
from ballot_api.models.election import ElectionState
from ballot_api.models.user import User
from ballot_api.models.vote import Vote
from ballot_api.models.voter import Voter, VoterStatus

__all__ = [
    "AuditLog",
    "Candidate",
    "ElectionState",
    "User",
    "Vote",
    "Voter",
    "VoterStatus",
]
