"""
Case & Evidence API Endpoints
=============================

FastAPI router for case management.

- POST   /api/check-duplicate-case
- GET    /api/cases                       - Own cases (admins: all)
- POST   /api/cases
- GET    /api/cases/{case_id}
- PATCH  /api/cases/{case_id}
- DELETE /api/cases/{case_id}
- GET    /api/cases/{case_id}/evidence
- POST   /api/cases/{case_id}/evidence    - Multipart upload (10 MB max)
- GET    /api/cases/{case_id}/milestones
- POST   /api/cases/{case_id}/milestones
- POST   /api/case-strength/analyze/{case_id}      - Score from evidence on file
- GET    /api/case-strength/{case_id}
- POST   /api/case-strength/suggestions/{case_id}  - Paid add-on
- GET    /api/case-strength/suggestions/{case_id}
"""

import uuid
import logging
from datetime import date
from pathlib import Path
from typing import Optional, List

from fastapi import APIRouter, Depends, UploadFile, File, Form, Query
from sqlalchemy.orm import Session

from .auth import AuthContext, require_auth
from .case_strength import (
    analyze_case_strength, get_case_strength, generate_suggestions, list_suggestions,
    serialize_analysis, serialize_suggestion,
)
from .config import get_settings
from .db.models import Case, CaseStatus, Evidence, EvidenceParty, CaseMilestone
from .db.session import get_db
from .duplicates import check_duplicate_case
from .errors import ServiceError
from .schemas import DuplicateCheckRequest, CaseCreateRequest, CaseUpdateRequest, MilestoneRequest

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["cases"])

# Columns a PATCH may change but not clear
REQUIRED_CASE_FIELDS = ("title", "category", "status")


def _enum_value(v):
    return v.value if hasattr(v, "value") else v


def serialize_case(case: Case) -> dict:
    return {
        "id": case.id,
        "user_id": case.user_id,
        "case_number": case.case_number,
        "title": case.title,
        "description": case.description,
        "plaintiff": case.plaintiff,
        "defendant": case.defendant,
        "category": case.category,
        "status": _enum_value(case.status),
        "user_role": case.user_role,
        "next_hearing_date": case.next_hearing_date.isoformat() if case.next_hearing_date else None,
        "verdict": case.verdict,
        "state": case.state,
        "court_level": case.court_level,
        "created_at": case.created_at.isoformat() if case.created_at else None,
        "updated_at": case.updated_at.isoformat() if case.updated_at else None,
    }


def serialize_evidence(e: Evidence) -> dict:
    return {
        "id": e.id,
        "case_id": e.case_id,
        "file_name": e.file_name,
        "file_type": e.file_type,
        "file_url": e.file_url,
        "file_size": e.file_size,
        "provided_by": _enum_value(e.provided_by),
        "description": e.description,
        "uploaded_by": e.uploaded_by,
        "ai_analysis": e.ai_analysis,
        "created_at": e.created_at.isoformat() if e.created_at else None,
    }


def _require_case(db: Session, auth: AuthContext, case_id: str) -> Case:
    case = db.query(Case).filter(Case.id == case_id).first()
    if not case or not auth.owns(case.user_id):
        raise ServiceError("Case not found", status_code=404)
    return case


# =============================================================================
# DUPLICATE CHECK
# =============================================================================

@router.post("/check-duplicate-case")
async def check_duplicate(
    request: DuplicateCheckRequest,
    auth: AuthContext = Depends(require_auth),
    db: Session = Depends(get_db),
):
    parties = request.parties
    try:
        return check_duplicate_case(
            db,
            auth,
            case_number=request.case_number,
            complainant=parties.complainant if parties else None,
            accused=parties.accused if parties else None,
        )
    except ServiceError as e:
        e.extra.setdefault("isDuplicate", False)
        raise


# =============================================================================
# CASES
# =============================================================================

@router.get("/cases")
async def list_cases(
    status: Optional[str] = Query(default=None),
    auth: AuthContext = Depends(require_auth),
    db: Session = Depends(get_db),
):
    query = db.query(Case)
    if not auth.is_admin:
        query = query.filter(Case.user_id == auth.user_id)
    if status:
        try:
            query = query.filter(Case.status == CaseStatus(status))
        except ValueError:
            raise ServiceError(f"Invalid status: {status}", status_code=400)
    cases = query.order_by(Case.created_at.desc()).all()
    return [serialize_case(c) for c in cases]


@router.post("/cases", status_code=201)
async def create_case(
    request: CaseCreateRequest,
    auth: AuthContext = Depends(require_auth),
    db: Session = Depends(get_db),
):
    case = Case(user_id=auth.user_id, **request.model_dump())
    db.add(case)
    db.commit()
    db.refresh(case)
    logger.info(f"Case created: {case.id} by {auth.user_id}")
    return serialize_case(case)


@router.get("/cases/{case_id}")
async def get_case(
    case_id: str,
    auth: AuthContext = Depends(require_auth),
    db: Session = Depends(get_db),
):
    return serialize_case(_require_case(db, auth, case_id))


@router.patch("/cases/{case_id}")
async def update_case(
    case_id: str,
    request: CaseUpdateRequest,
    auth: AuthContext = Depends(require_auth),
    db: Session = Depends(get_db),
):
    case = _require_case(db, auth, case_id)
    updates = request.model_dump(exclude_unset=True)

    for field in REQUIRED_CASE_FIELDS:
        if field in updates and updates[field] is None:
            raise ServiceError(f"{field} cannot be null", status_code=400)
    if "status" in updates:
        try:
            updates["status"] = CaseStatus(updates["status"])
        except ValueError:
            raise ServiceError(f"Invalid status: {updates['status']}", status_code=400)
    if updates.get("next_hearing_date"):
        try:
            updates["next_hearing_date"] = date.fromisoformat(updates["next_hearing_date"])
        except ValueError:
            raise ServiceError("next_hearing_date must be YYYY-MM-DD", status_code=400)

    for key, value in updates.items():
        setattr(case, key, value)
    db.commit()
    db.refresh(case)
    return serialize_case(case)


@router.delete("/cases/{case_id}")
async def delete_case(
    case_id: str,
    auth: AuthContext = Depends(require_auth),
    db: Session = Depends(get_db),
):
    case = _require_case(db, auth, case_id)
    db.delete(case)
    db.commit()
    logger.info(f"Case deleted: {case_id} by {auth.user_id}")
    return {"success": True, "case_id": case_id}


# =============================================================================
# EVIDENCE
# =============================================================================

@router.get("/cases/{case_id}/evidence")
async def list_evidence(
    case_id: str,
    auth: AuthContext = Depends(require_auth),
    db: Session = Depends(get_db),
):
    _require_case(db, auth, case_id)
    rows = (
        db.query(Evidence)
        .filter(Evidence.case_id == case_id)
        .order_by(Evidence.created_at.asc())
        .all()
    )
    return [serialize_evidence(e) for e in rows]


@router.post("/cases/{case_id}/evidence", status_code=201)
async def upload_evidence(
    case_id: str,
    file: UploadFile = File(...),
    provided_by: str = Form(...),
    description: Optional[str] = Form(default=None),
    auth: AuthContext = Depends(require_auth),
    db: Session = Depends(get_db),
):
    """
    Upload one evidence file.

    Stored under ``UPLOAD_DIR/<case_id>/``; the row keeps a relative URL.
    """
    case = _require_case(db, auth, case_id)
    try:
        party = EvidenceParty(provided_by)
    except ValueError:
        raise ServiceError(f"Invalid provided_by: {provided_by}", status_code=400)

    settings = get_settings()
    data = await file.read()
    if not data:
        raise ServiceError("Empty file", status_code=400)
    if len(data) > settings.max_upload_bytes:
        raise ServiceError("File too large (max 10 MB)", status_code=413)

    safe_name = Path(file.filename or "evidence").name
    case_dir = Path(settings.upload_dir) / case.id
    case_dir.mkdir(parents=True, exist_ok=True)
    stored_name = f"{uuid.uuid4().hex}_{safe_name}"
    (case_dir / stored_name).write_bytes(data)

    evidence = Evidence(
        case_id=case.id,
        file_name=safe_name,
        file_type=file.content_type,
        file_url=f"{case.id}/{stored_name}",
        file_size=len(data),
        provided_by=party,
        description=description,
        uploaded_by=auth.user_id,
    )
    db.add(evidence)
    db.commit()
    db.refresh(evidence)
    logger.info(f"Evidence {evidence.id} uploaded to case {case.id} ({len(data)} bytes)")
    return serialize_evidence(evidence)


# =============================================================================
# MILESTONES
# =============================================================================

@router.get("/cases/{case_id}/milestones")
async def list_milestones(
    case_id: str,
    auth: AuthContext = Depends(require_auth),
    db: Session = Depends(get_db),
) -> List[dict]:
    _require_case(db, auth, case_id)
    rows = db.query(CaseMilestone).filter(CaseMilestone.case_id == case_id).all()
    return [{"id": m.id, "milestone_name": m.milestone_name, "status": m.status} for m in rows]


@router.post("/cases/{case_id}/milestones", status_code=201)
async def add_milestone(
    case_id: str,
    request: MilestoneRequest,
    auth: AuthContext = Depends(require_auth),
    db: Session = Depends(get_db),
):
    _require_case(db, auth, case_id)
    milestone = CaseMilestone(case_id=case_id, milestone_name=request.milestone_name, status=request.status)
    db.add(milestone)
    db.commit()
    db.refresh(milestone)
    return {"id": milestone.id, "milestone_name": milestone.milestone_name, "status": milestone.status}


# =============================================================================
# CASE STRENGTH
# =============================================================================

@router.post("/case-strength/analyze/{case_id}")
async def analyze_strength(
    case_id: str,
    auth: AuthContext = Depends(require_auth),
    db: Session = Depends(get_db),
):
    return serialize_analysis(analyze_case_strength(db, auth, case_id))


@router.get("/case-strength/suggestions/{case_id}")
async def get_strength_suggestions(
    case_id: str,
    auth: AuthContext = Depends(require_auth),
    db: Session = Depends(get_db),
):
    return [serialize_suggestion(s) for s in list_suggestions(db, auth, case_id)]


@router.post("/case-strength/suggestions/{case_id}")
async def create_strength_suggestions(
    case_id: str,
    auth: AuthContext = Depends(require_auth),
    db: Session = Depends(get_db),
):
    return generate_suggestions(db, auth, case_id)


@router.get("/case-strength/{case_id}")
async def get_strength(
    case_id: str,
    auth: AuthContext = Depends(require_auth),
    db: Session = Depends(get_db),
):
    return serialize_analysis(get_case_strength(db, auth, case_id))
