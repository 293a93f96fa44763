"""
Case Assistant
==============

Procedural analysis and case-strength assessment for a single case.

Flow:
1. Refuse verdict/guilt questions outright (no model call)
2. Load the case, its evidence and its procedural milestones
3. Keyword-search the legal knowledge tables (acts/sections)
4. One gateway call with the assembled system prompt
5. Audit row in case_assistant_logs
"""

import json
import logging
from dataclasses import dataclass, field
from typing import List, Dict, Any, Optional

from sqlalchemy import or_
from sqlalchemy.orm import Session

from .auth import AuthContext
from .db.models import Case, Evidence, CaseMilestone, LegalSection, LegalAct, CaseAssistantLog
from .errors import ServiceError
from .llm.gateway import GatewayClient

logger = logging.getLogger(__name__)

BLOCKED_PHRASES = ["who is guilty", "what is the verdict", "guilty or innocent"]

REFUSAL_ANSWER = (
    "As an AI Case Assistant, I am prohibited from declaring guilt, innocence, or providing verdicts. "
    "I can only assist with procedural analysis and case strength assessment."
)
REFUSAL_DISCLAIMER = "Not a court, judge, or legal advice."
ANALYSIS_DISCLAIMER = "This is an assistive analysis, not legal advice or judicial decision."

REPORT_FORMAT = """REPORT FORMAT (STRICT):
Case Analysis Report:

Procedural Status:
- [Milestone Name]: [Status Icon] [Brief Detail]

Evidence Review:
- [Point 1]
- [Point 2]

Legal Risks:
- [Risk 1]
- [Risk 2]

Suggested Next Steps:
- [Step 1]
- [Step 2]

Sources:
- [Source 1]
- [Source 2]

DISCLAIMER: "This is an assistive analysis, not legal advice or judicial decision.\""""


@dataclass
class AssistantAnswer:
    answer: str
    disclaimer: str
    sources: Optional[List[Dict[str, Any]]] = None

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"answer": self.answer}
        if self.sources is not None:
            data["sources"] = self.sources
        data["disclaimer"] = self.disclaimer
        return data


def is_blocked_query(query: str) -> bool:
    lowered = query.lower()
    return any(phrase in lowered for phrase in BLOCKED_PHRASES)


def extract_keywords(query: str) -> List[str]:
    """Split on single spaces and keep words longer than 3 characters."""
    return [word for word in query.split(" ") if len(word) > 3]


def search_legal_sections(db: Session, keywords: List[str]) -> List[Dict[str, Any]]:
    """Sections whose title or description contains any keyword, with the act name."""
    if not keywords:
        return []

    clauses = []
    for kw in keywords:
        pattern = f"%{kw}%"
        clauses.append(LegalSection.title.ilike(pattern))
        clauses.append(LegalSection.description.ilike(pattern))

    rows = (
        db.query(LegalSection, LegalAct)
        .outerjoin(LegalAct, LegalAct.id == LegalSection.act_id)
        .filter(or_(*clauses))
        .all()
    )
    return [
        {
            "id": section.id,
            "act_id": section.act_id,
            "section_number": section.section_number,
            "title": section.title,
            "description": section.description,
            "legal_acts": {"name": act.name if act else None},
        }
        for section, act in rows
    ]


def format_source(doc: Dict[str, Any]) -> str:
    act_name = (doc.get("legal_acts") or {}).get("name")
    return f"{act_name} Section {doc.get('section_number')}"


def _enum_value(value: Any) -> Any:
    return getattr(value, "value", value)


def build_assistant_prompt(
    case: Case,
    evidence: List[Evidence],
    milestones: List[CaseMilestone],
    legal_docs: List[Dict[str, Any]],
) -> str:
    evidence_lines = "\n".join(
        f"- {e.file_name}: {e.description} ({_enum_value(e.provided_by)})" for e in evidence
    )
    milestone_lines = "\n".join(
        f"- {m.milestone_name}: {'✅ Present' if m.status else '❌ Missing'}" for m in milestones
    )

    return f"""You are "Case Assistant AI", a specialized legal process & case strength analysis platform for India.
Your goal is to provide procedural analysis and skip any judicial decision making.

CORE PRINCIPLES:
- This is an assistive analysis, not legal advice or judicial decision.
- NEVER declare guilt or innocence.
- NEVER give verdicts.
- Cite sources for every claim (Acts, Sections, Case Law).
- Focus on procedural completeness and evidence gaps.

CASE CONTEXT:
- Title: {case.title}
- Description: {case.description}
- State: {case.state or 'Rajasthan'}
- Court Level: {case.court_level or 'Trial'}

CURRENT EVIDENCE:
{evidence_lines}

PROCEDURAL MILESTONES:
{milestone_lines}

LEGAL KNOWLEDGE CONTEXT:
{json.dumps(legal_docs, ensure_ascii=False)}

{REPORT_FORMAT}
"""


class CaseAssistant:
    """Runs one assistant query against one case"""

    def __init__(self, db: Session, gateway: GatewayClient, model: str):
        self.db = db
        self.gateway = gateway
        self.model = model

    def _load_case(self, auth: AuthContext, case_id: str) -> Case:
        case = self.db.query(Case).filter(Case.id == case_id).first()
        if not case or not auth.owns(case.user_id):
            raise ServiceError("Case not found", status_code=404)
        return case

    def _write_log(self, auth: AuthContext, case: Case, query: str, docs: List[Dict[str, Any]], answer: str):
        try:
            self.db.add(CaseAssistantLog(
                user_id=case.user_id or auth.user_id,
                case_id=case.id,
                user_input=query,
                retrieved_documents=docs,
                ai_response=answer,
                sources=[format_source(d) for d in docs],
            ))
            self.db.commit()
        except Exception as e:
            self.db.rollback()
            logger.error(f"Case assistant log write failed: {e}")

    async def ask(self, auth: AuthContext, case_id: str, query: str, mode: str = "general") -> AssistantAnswer:
        if is_blocked_query(query):
            logger.info(f"Case assistant refused verdict question for case {case_id}")
            return AssistantAnswer(answer=REFUSAL_ANSWER, disclaimer=REFUSAL_DISCLAIMER)

        case = self._load_case(auth, case_id)
        evidence = self.db.query(Evidence).filter(Evidence.case_id == case.id).all()
        milestones = self.db.query(CaseMilestone).filter(CaseMilestone.case_id == case.id).all()
        legal_docs = search_legal_sections(self.db, extract_keywords(query))

        logger.info(
            f"Case assistant: case={case.id} mode={mode} evidence={len(evidence)} "
            f"milestones={len(milestones)} sections={len(legal_docs)}"
        )

        system_prompt = build_assistant_prompt(case, evidence, milestones, legal_docs)
        result = await self.gateway.complete(
            [
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": query},
            ],
            model=self.model,
        )

        self._write_log(auth, case, query, legal_docs, result.content)
        return AssistantAnswer(answer=result.content, disclaimer=ANALYSIS_DISCLAIMER, sources=legal_docs)
