"""DocumentStatus lifecycle for stored documents

State flow:
    (new) -> ACTIVE -> ARCHIVED

Records are created ACTIVE on first upload. ARCHIVED is terminal and is only
reachable through an explicit archival operation; none exists yet.
"""

from enum import Enum
from typing import Optional, Dict, List


class DocumentStatus(str, Enum):
    """Document record status"""
    ACTIVE = "ACTIVE"      # Readable and writable
    ARCHIVED = "ARCHIVED"  # Retained, no further changes (terminal)


# State transition rules
ALLOWED_TRANSITIONS: Dict[Optional[DocumentStatus], List[DocumentStatus]] = {
    None: [DocumentStatus.ACTIVE],
    DocumentStatus.ACTIVE: [DocumentStatus.ARCHIVED],
    DocumentStatus.ARCHIVED: [],
}


def can_transition(from_status: Optional[DocumentStatus], to_status: DocumentStatus) -> bool:
    """Validate if status transition is allowed

    Args:
        from_status: Current status (None for new documents)
        to_status: Target status

    Returns:
        True if transition is allowed, False otherwise

    Example:
        >>> can_transition(None, DocumentStatus.ACTIVE)
        True
        >>> can_transition(DocumentStatus.ARCHIVED, DocumentStatus.ACTIVE)
        False
    """
    allowed = ALLOWED_TRANSITIONS.get(from_status, [])
    return to_status in allowed


def get_allowed_transitions(from_status: Optional[DocumentStatus]) -> List[DocumentStatus]:
    """Get list of allowed transitions from current status"""
    return ALLOWED_TRANSITIONS.get(from_status, [])
