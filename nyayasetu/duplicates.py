"""
Duplicate Case Detection
========================

Before a new case is filed, look for one of the caller's own cases that is
probably the same matter:
1. Case number substring match (strongest signal)
2. Party names against plaintiff/defendant, kept only when the case title
   also names one of the parties
"""

import logging
from typing import Optional, Dict, Any, List

from sqlalchemy import or_, and_
from sqlalchemy.orm import Session

from .auth import AuthContext
from .db.models import Case

logger = logging.getLogger(__name__)

MAX_CASE_NUMBER_LENGTH = 100
MAX_PARTY_LENGTH = 200


def _usable(value: Optional[str], max_length: int) -> bool:
    return isinstance(value, str) and 0 < len(value) <= max_length


def _serialize(case: Case) -> Dict[str, Any]:
    return {
        "id": case.id,
        "case_number": case.case_number,
        "title": case.title,
        "category": case.category,
        "status": case.status.value if case.status else None,
        "created_at": case.created_at.isoformat() if case.created_at else None,
    }


def _party_clause(name: str):
    pattern = f"%{name}%"
    return or_(Case.plaintiff.ilike(pattern), Case.defendant.ilike(pattern))


def _title_names(case: Case, complainant: Optional[str], accused: Optional[str]) -> bool:
    title = (case.title or "").lower()
    return bool(
        (complainant and complainant.lower() in title)
        or (accused and accused.lower() in title)
    )


def check_duplicate_case(
    db: Session,
    auth: AuthContext,
    case_number: Optional[str] = None,
    complainant: Optional[str] = None,
    accused: Optional[str] = None,
) -> Dict[str, Any]:
    """Search the caller's cases; returns the isDuplicate/matchType/matchedCases/message payload."""
    logger.info(f"Checking for duplicate case for user: {auth.user_id}")
    owned = db.query(Case).filter(Case.user_id == auth.user_id)

    if _usable(case_number, MAX_CASE_NUMBER_LENGTH):
        exact = owned.filter(Case.case_number.ilike(f"%{case_number}%")).limit(5).all()
        if exact:
            logger.info(f"Found exact case number match: {exact[0].case_number}")
            return {
                "isDuplicate": True,
                "matchType": "exact_case_number",
                "matchedCases": [_serialize(c) for c in exact],
                "message": f"We found an existing case with number {exact[0].case_number} in our system.",
            }

    party_clauses: List[Any] = []
    if _usable(complainant, MAX_PARTY_LENGTH):
        party_clauses.append(_party_clause(complainant))
    else:
        complainant = None
    if _usable(accused, MAX_PARTY_LENGTH):
        party_clauses.append(_party_clause(accused))
    else:
        accused = None

    if party_clauses:
        candidates = owned.filter(and_(*party_clauses)).limit(10).all()
        strong = [c for c in candidates if _title_names(c, complainant, accused)]
        if strong:
            logger.info(f"Found party name matches: {len(strong)}")
            return {
                "isDuplicate": True,
                "matchType": "party_names",
                "matchedCases": [_serialize(c) for c in strong],
                "message": f"We found {len(strong)} existing case(s) involving similar parties.",
            }

    return {
        "isDuplicate": False,
        "matchType": None,
        "matchedCases": [],
        "message": "No duplicate cases found.",
    }
