"""
Case Strength
=============

Scores a case from the evidence on file. Each evidence file is put in a
category from its name (FIR, medical, contract, witness...) and the category
weights add up to a strength percentage capped at 100.

Improvement suggestions (one per missing category, plus a strategy hint for
weak cases) are a paid add-on: the caller needs a completed
``case-strength-suggestions`` add-on payment.
"""

import logging
from datetime import datetime
from typing import Optional, Dict, Any, List, Tuple

from sqlalchemy.orm import Session

from .auth import AuthContext
from .db.models import (
    Case, Evidence, CaseStrengthAnalysis, CaseStrengthSuggestion,
    Payment, PaymentStatus, PaymentType,
)
from .errors import ServiceError

logger = logging.getLogger(__name__)

SUGGESTIONS_ADDON = "case-strength-suggestions"
SUGGESTIONS_PRICE = 200
WEAK_CASE_THRESHOLD = 60

# (category, keywords in the file name, weight); first match wins
DOCUMENT_RULES: List[Tuple[str, Tuple[str, ...], int]] = [
    ("fir", ("fir", "complaint"), 20),
    ("medical", ("medical", "hospital"), 15),
    ("contract", ("contract", "agreement"), 15),
    ("witness", ("witness", "statement"), 12),
    ("evidence", ("evidence", "proof"), 10),
    ("identity", ("id", "aadhar", "pan"), 5),
]
DEFAULT_CATEGORY = ("general", 5)

CATEGORY_SUGGESTIONS = [
    {"name": "fir", "title": "FIR or Police Complaint", "impact": 20, "priority": "high",
     "description": "An FIR or police complaint provides official documentation of the incident."},
    {"name": "medical", "title": "Medical Reports", "impact": 15, "priority": "high",
     "description": "Medical reports provide evidence of injuries or medical conditions related to the case."},
    {"name": "witness", "title": "Witness Statements", "impact": 12, "priority": "medium",
     "description": "Statements from witnesses who observed the incident strengthen your case significantly."},
    {"name": "contract", "title": "Contract or Agreement Documents", "impact": 15, "priority": "high",
     "description": "Original contracts or agreements provide legal evidence of obligations."},
    {"name": "evidence", "title": "Photographic or Video Evidence", "impact": 10, "priority": "medium",
     "description": "Visual evidence such as photos or videos can be crucial in proving your case."},
    {"name": "identity", "title": "Identity Verification Documents", "impact": 5, "priority": "low",
     "description": "Valid ID documents help establish the identity of parties involved."},
]

STRATEGY_SUGGESTION = {
    "title": "Consult with a Legal Expert",
    "description": (
        "Consider consulting with a lawyer to review your case and get professional "
        "legal advice on evidence collection."
    ),
    "impact": 15,
    "priority": "high",
}


def categorize_document(file_name: Optional[str], file_type: Optional[str]) -> Tuple[str, int]:
    """Only PDFs and images are categorized; anything else counts as general."""
    file_type = (file_type or "").lower()
    if "pdf" not in file_type and "image" not in file_type:
        return DEFAULT_CATEGORY
    name = (file_name or "").lower()
    for category, keywords, weight in DOCUMENT_RULES:
        if any(k in name for k in keywords):
            return category, weight
    return DEFAULT_CATEGORY


def _owned_case(db: Session, auth: AuthContext, case_id: str) -> Case:
    case = db.query(Case).filter(Case.id == case_id).first()
    if not case or not auth.owns(case.user_id):
        raise ServiceError("Case not found", status_code=404)
    return case


def analyze_case_strength(db: Session, auth: AuthContext, case_id: str) -> CaseStrengthAnalysis:
    """Score the case from its current evidence and store (or replace) the analysis."""
    _owned_case(db, auth, case_id)
    evidence = (
        db.query(Evidence)
        .filter(Evidence.case_id == case_id)
        .order_by(Evidence.created_at.asc())
        .all()
    )

    strength = 0
    categories: List[str] = []
    documents = []
    for e in evidence:
        category, weight = categorize_document(e.file_name, e.file_type)
        strength += weight
        if category not in categories:
            categories.append(category)
        documents.append({
            "id": e.id,
            "fileName": e.file_name,
            "category": category,
            "weight": weight,
            "uploadedAt": e.created_at.isoformat() if e.created_at else None,
        })

    analysis = db.query(CaseStrengthAnalysis).filter(CaseStrengthAnalysis.case_id == case_id).first()
    if analysis is None:
        analysis = CaseStrengthAnalysis(case_id=case_id)
        db.add(analysis)

    analysis.user_id = auth.user_id
    analysis.strength_percentage = float(min(strength, 100))
    analysis.analysis_data = {
        "documentCount": len(evidence),
        "categories": categories,
        "analyzedAt": datetime.utcnow().isoformat() + "Z",
    }
    analysis.analyzed_documents = documents
    db.commit()
    db.refresh(analysis)

    logger.info(f"Case {case_id} strength {analysis.strength_percentage:.0f}% from {len(evidence)} documents")
    return analysis


def get_case_strength(db: Session, auth: AuthContext, case_id: str) -> CaseStrengthAnalysis:
    _owned_case(db, auth, case_id)
    analysis = db.query(CaseStrengthAnalysis).filter(CaseStrengthAnalysis.case_id == case_id).first()
    if not analysis:
        raise ServiceError("Analysis not found", status_code=404)
    return analysis


def has_suggestions_addon(db: Session, user_id: str) -> bool:
    payments = db.query(Payment).filter(
        Payment.user_id == user_id,
        Payment.status == PaymentStatus.COMPLETED,
        Payment.payment_type == PaymentType.ADDON_PAYMENT,
    ).all()
    return any((p.extra_data or {}).get("addon") == SUGGESTIONS_ADDON for p in payments)


def generate_suggestions(db: Session, auth: AuthContext, case_id: str) -> Dict[str, Any]:
    """
    Suggest what would strengthen the case.

    Raises:
        ServiceError(402): add-on not purchased
        ServiceError(404): case missing/not owned, or not analyzed yet
    """
    case = _owned_case(db, auth, case_id)
    if case.user_id != auth.user_id:
        raise ServiceError("Case not found", status_code=404)

    if not has_suggestions_addon(db, auth.user_id):
        raise ServiceError(
            "Payment required",
            status_code=402,
            extra={
                "message": (
                    f"This feature requires a payment of ₹{SUGGESTIONS_PRICE}. "
                    "Please purchase the Case Strength Suggestions addon."
                ),
                "addon_slug": SUGGESTIONS_ADDON,
            },
        )

    analysis = db.query(CaseStrengthAnalysis).filter(CaseStrengthAnalysis.case_id == case_id).first()
    if not analysis:
        raise ServiceError("Please analyze your case first", status_code=404)

    current = analysis.strength_percentage or 0.0
    present = {d.get("category") for d in (analysis.analyzed_documents or [])}

    rows: List[CaseStrengthSuggestion] = []
    for item in CATEGORY_SUGGESTIONS:
        if item["name"] in present:
            continue
        rows.append(CaseStrengthSuggestion(
            case_id=case_id,
            user_id=auth.user_id,
            suggestion_type="missing_document",
            title=f"Add {item['title']}",
            description=item["description"],
            impact_percentage=item["impact"],
            priority=item["priority"],
            document_category=item["name"],
            estimated_strength_after=min(current + item["impact"], 100),
        ))
    if current < WEAK_CASE_THRESHOLD:
        rows.append(CaseStrengthSuggestion(
            case_id=case_id,
            user_id=auth.user_id,
            suggestion_type="legal_strategy",
            title=STRATEGY_SUGGESTION["title"],
            description=STRATEGY_SUGGESTION["description"],
            impact_percentage=STRATEGY_SUGGESTION["impact"],
            priority=STRATEGY_SUGGESTION["priority"],
            estimated_strength_after=min(current + STRATEGY_SUGGESTION["impact"], 100),
        ))

    db.add_all(rows)
    db.commit()

    suggestions = [serialize_suggestion(s) for s in rows]
    return {
        "currentStrength": current,
        "suggestions": suggestions,
        "totalSuggestions": len(suggestions),
    }


PRIORITY_RANK = {"high": 0, "medium": 1, "low": 2}


def list_suggestions(db: Session, auth: AuthContext, case_id: str) -> List[CaseStrengthSuggestion]:
    """Caller's stored suggestions, highest priority and impact first."""
    rows = db.query(CaseStrengthSuggestion).filter(
        CaseStrengthSuggestion.case_id == case_id,
        CaseStrengthSuggestion.user_id == auth.user_id,
    ).all()
    return sorted(rows, key=lambda s: (PRIORITY_RANK.get(s.priority, 3), -(s.impact_percentage or 0)))


def serialize_analysis(a: CaseStrengthAnalysis) -> Dict[str, Any]:
    return {
        "id": a.id,
        "case_id": a.case_id,
        "user_id": a.user_id,
        "strength_percentage": a.strength_percentage,
        "analysis_data": a.analysis_data or {},
        "analyzed_documents": a.analyzed_documents or [],
        "updated_at": a.updated_at.isoformat() if a.updated_at else None,
    }


def serialize_suggestion(s: CaseStrengthSuggestion) -> Dict[str, Any]:
    return {
        "id": s.id,
        "type": s.suggestion_type,
        "title": s.title,
        "description": s.description,
        "impactPercentage": s.impact_percentage,
        "priority": s.priority,
        "documentCategory": s.document_category,
        "estimatedStrengthAfter": s.estimated_strength_after,
    }
