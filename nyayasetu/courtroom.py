"""
Courtroom AI
============

Two model-backed courtroom features:
- Court chat: one reply from a courtroom persona (judge, prosecutor, ...)
- AI judge: the presiding judge's actions during a live hearing

Each judge action has its own prompt pair. The three ``evaluate_*``
actions ask for a JSON decision, which is parsed when possible.
"""

import json
import logging
from datetime import datetime
from typing import Optional, Dict, Any, Tuple

from sqlalchemy.orm import Session

from .auth import AuthContext
from .db.models import AIUsageLog
from .errors import ServiceError
from .llm.gateway import GatewayClient
from .llm.parsing import extract_json_object
from .notifications import notify_hand_raise_approved, notify_date_request_decision, notify_witness_summoned
from .schemas import AIJudgeRequest, JudgeAction

logger = logging.getLogger(__name__)


# =============================================================================
# COURT CHAT
# =============================================================================

LANGUAGE_INSTRUCTIONS = {
    "en": "Respond in English.",
    "hi": "Respond in Hindi (Devanagari script).",
    "hinglish": "Respond in Hinglish (mix of Hindi and English, using Roman script).",
}

ROLE_CONTEXTS = {
    "judge": "You are a wise and fair judge in an Indian court. Speak with authority and impartiality.",
    "prosecutor": "You are the Public Prosecutor presenting the case against the defendant. Be formal and assertive.",
    "lawyer": "You are the defense lawyer protecting your client. Be professional and persuasive.",
    "accused": "You are the defendant in this case. Be respectful but maintain your innocence.",
    "ai": "You are a legal AI assistant providing helpful information about the case.",
}

NO_RESPONSE = "No response generated."


def build_court_chat_prompt(role: str, language: str, case_context: Optional[str]) -> str:
    role_context = ROLE_CONTEXTS.get(role, "You are a legal expert.")
    language_instruction = LANGUAGE_INSTRUCTIONS.get(language, "Respond in English.")
    return f"""You are part of an E-Courtroom simulation system. {role_context}

{language_instruction}

Case Context: {case_context or 'A legal proceeding is in progress.'}

Guidelines:
- Keep responses concise and courtroom-appropriate (2-4 sentences)
- Maintain the formality expected in a court of law
- If asked about legal procedures, provide accurate information
- Stay in character as the specified role
- Be respectful and follow courtroom decorum"""


async def court_chat(
    gateway: GatewayClient,
    prompt: str,
    role: str = "judge",
    language: str = "en",
    case_context: Optional[str] = None,
) -> Dict[str, Any]:
    logger.info(f"Court chat request: role={role}, language={language}")
    result = await gateway.complete([
        {"role": "system", "content": build_court_chat_prompt(role, language, case_context)},
        {"role": "user", "content": prompt},
    ])
    return {"response": result.content or NO_RESPONSE, "role": role}


# =============================================================================
# AI JUDGE
# =============================================================================

MAX_CONTEXT_CHARS = 5000
MAX_MESSAGE_CHARS = 5000
JSON_ACTIONS = {
    JudgeAction.EVALUATE_HAND_RAISE,
    JudgeAction.EVALUATE_DATE_EXTENSION,
    JudgeAction.EVALUATE_WITNESS_REQUEST,
}


def _clip(value: Any, default: str, limit: int) -> str:
    return str(value or default)[:limit]


def _context_text(case_context: Any) -> str:
    if isinstance(case_context, str):
        return case_context[:MAX_CONTEXT_CHARS]
    return json.dumps(case_context or {}, ensure_ascii=False)[:MAX_CONTEXT_CHARS]


def _respond_in(language: str) -> str:
    return f"Respond in {'Hindi' if language == 'hi' else 'English'}."


def build_judge_prompts(action: JudgeAction, req: AIJudgeRequest) -> Tuple[str, str]:
    """Returns (system prompt, user prompt) for a judge action."""
    context = _context_text(req.case_context)
    language = req.language if req.language in ("en", "hi", "hinglish") else "en"

    if action == JudgeAction.START_SESSION:
        system = f"""You are an AI Judge in an Indian court, following Indian Penal Code (IPC), Criminal Procedure Code (CrPC), and relevant Indian laws.

Your role:
- Conduct fair hearings efficiently to clear case backlogs
- Maintain court decorum and order
- Analyze evidence objectively
- Make decisions based on law and facts
- Be strict but fair

{_respond_in(language)}

Case Context:
{context}

Generate an opening statement to start the court session. Include:
1. Case number and title announcement
2. Parties present acknowledgment
3. Brief case summary
4. Call for prosecution to present their case

Keep it formal and authoritative."""
        return system, "Begin the court session."

    if action == JudgeAction.RESPOND_TO_SPEECH:
        system = f"""You are an AI Judge presiding over an Indian court case.

Case Context:
{context}

A participant just spoke. Analyze their statement and respond appropriately as a judge would.

Guidelines:
- If it's relevant testimony, acknowledge and probe further if needed
- If it's irrelevant, redirect to the matter at hand
- If it contains important claims, ask for evidence
- Maintain authority and order
- Be concise but thorough

{_respond_in(language)}"""
        user = (
            f'{_clip(req.current_speaker, "Unknown", 100)} said: "{_clip(req.message, "", 2000)}"\n\n'
            "Respond as the judge."
        )
        return system, user

    if action == JudgeAction.EVALUATE_HAND_RAISE:
        hand = req.hand_raise
        system = f"""You are an AI Judge. Someone wants to speak in court.

Case Context:
{context}

Guidelines:
- Allow if the person might have relevant information
- Deny if it seems to delay proceedings unnecessarily
- Ask for brief reason if unclear
- Maintain court order

Respond with a JSON object: {{ "allowed": boolean, "response": "your response to the person" }}"""
        user = (
            f"{_clip(hand and hand.participant_name, 'Unknown', 100)} ({_clip(hand and hand.role, 'unknown', 50)}) wants to speak.\n"
            f"Reason: {_clip(hand and hand.reason, 'Not specified', 500)}\n\n"
            "Should they be allowed to speak?"
        )
        return system, user

    if action == JudgeAction.EVALUATE_DATE_EXTENSION:
        dr = req.date_request
        system = f"""You are an AI Judge evaluating a date extension request.

Case Context:
{context}

CRITICAL MISSION: Your goal is to clear pending case backlogs. Extensions should only be granted for genuine, compelling reasons.

Consider:
1. Validity of the reason
2. Case seriousness (serious cases = stricter)
3. Previous extensions granted
4. Impact on justice delivery
5. Whether the reason is just a delay tactic

Respond with JSON: {{ "approved": boolean, "decision": "your detailed reasoning", "nextDate": "YYYY-MM-DD if approved" }}"""
        requested = f"Requested Date: {str(dr.requested_date)[:20]}" if dr and dr.requested_date else ""
        user = (
            f"{_clip(dr and dr.requester_name, 'Unknown', 100)} ({_clip(dr and dr.role, 'unknown', 50)}) requests extension.\n"
            f"Reason: {_clip(dr and dr.reason, 'Not specified', 500)}\n"
            f"{requested}\n\n"
            "Evaluate this request strictly. Remember: Our mission is to clear backlogs."
        )
        return system, user

    if action == JudgeAction.ANALYZE_EVIDENCE:
        ev = req.evidence
        system = f"""You are an AI Judge analyzing submitted evidence.

Case Context:
{context}

Analyze the evidence and provide:
1. Relevance to the case
2. Authenticity concerns if any
3. How it affects the case
4. Questions you might ask about it

{_respond_in(language)}"""
        user = (
            f"Evidence submitted by {_clip(ev and ev.submitter, 'Unknown', 100)}:\n"
            f"File: {_clip(ev and ev.file_name, 'Unknown', 200)}\n"
            f"Type: {_clip(ev and ev.file_type, 'Unknown', 50)}\n"
            f"OCR Text: {_clip(ev and ev.ocr_text, 'Not available', 2000)}\n\n"
            "Analyze this evidence and respond as the judge would in court."
        )
        return system, user

    if action == JudgeAction.MAKE_DECISION:
        system = f"""You are an AI Judge ready to deliver a decision/verdict.

Case Context:
{context}

Based on all arguments and evidence presented, deliver a fair judgment following Indian law.

Include:
1. Summary of key points from both sides
2. Evidence evaluation
3. Legal basis for decision
4. Your verdict/order
5. Any directions for parties

Be thorough but clear. This is a formal court judgment.

{_respond_in(language)}"""
        return system, "Based on the proceedings, deliver your judgment on this case."

    if action == JudgeAction.ADJOURN_SESSION:
        system = f"""You are an AI Judge adjourning the court session.

Case Context:
{context}

Provide a formal adjournment statement including:
1. Summary of today's proceedings
2. Pending matters for next hearing
3. Instructions for parties
4. Next hearing date if applicable

Be formal and clear.

{_respond_in(language)}"""
        return system, "Adjourn this court session."

    # EVALUATE_WITNESS_REQUEST
    wr = req.witness_request
    system = f"""You are an AI Judge evaluating a witness request.

Case Context:
{context}

Consider:
1. Is the witness relevant to the case?
2. Can this witness provide valuable testimony?
3. Is this a delay tactic?
4. Has similar testimony already been given?

Respond with JSON: {{ "summoned": boolean, "response": "your detailed reasoning for the decision" }}"""
    user = (
        f"{_clip(wr and wr.requester_name, 'Unknown', 100)} ({_clip(wr and wr.role, 'unknown', 50)}) "
        f"requests to call witness: {_clip(wr and wr.witness_name, 'Unknown', 100)}\n"
        f"Description: {_clip(wr and wr.description, 'Not provided', 500)}\n"
        f"Relevance: {_clip(wr and wr.relevance, 'Not specified', 500)}\n\n"
        "Should this witness be summoned?"
    )
    return system, user


def parse_action(action: Optional[str]) -> JudgeAction:
    try:
        return JudgeAction(action)
    except ValueError:
        raise ServiceError("Invalid action", status_code=400)


class AIJudge:
    """Presiding-judge actions for a live hearing"""

    def __init__(self, db: Session, gateway: GatewayClient):
        self.db = db
        self.gateway = gateway

    def _log_usage(self, auth: AuthContext, action: JudgeAction, result) -> None:
        try:
            self.db.add(AIUsageLog(
                user_id=auth.user_id,
                action=f"ai_judge_{action.value}",
                model_used=result.model,
                tokens_input=result.input_tokens,
                tokens_output=result.output_tokens,
            ))
            self.db.commit()
        except Exception as e:
            self.db.rollback()
            logger.error(f"Failed to log AI usage: {e}")

    def _notify_decision(self, auth: AuthContext, action: JudgeAction, req: AIJudgeRequest, decision: Dict[str, Any]):
        session_id = req.session_id
        if action == JudgeAction.EVALUATE_HAND_RAISE and decision.get("allowed"):
            notify_hand_raise_approved(self.db, auth.user_id, session_id, str(decision.get("response", "")))
        elif action == JudgeAction.EVALUATE_DATE_EXTENSION:
            notify_date_request_decision(
                self.db, auth.user_id, session_id,
                approved=bool(decision.get("approved")),
                reason=decision.get("decision"),
            )
        elif action == JudgeAction.EVALUATE_WITNESS_REQUEST and decision.get("summoned"):
            witness = req.witness_request.witness_name if req.witness_request else None
            notify_witness_summoned(self.db, auth.user_id, session_id, witness or "Unknown")
        else:
            return
        self.db.commit()

    async def run(self, auth: AuthContext, req: AIJudgeRequest) -> Dict[str, Any]:
        action = parse_action(req.action)
        if req.message and len(req.message) > MAX_MESSAGE_CHARS:
            raise ServiceError("Message too long", status_code=400)

        system_prompt, user_prompt = build_judge_prompts(action, req)
        logger.info(f"AI Judge action: {action.value} user: {auth.user_id}")

        result = await self.gateway.complete(
            [
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": user_prompt},
            ],
            temperature=0.7,
        )

        response: Any = result.content
        if action in JSON_ACTIONS:
            parsed = extract_json_object(result.content)
            if parsed is not None:
                response = parsed
                if req.session_id and isinstance(parsed, dict):
                    self._notify_decision(auth, action, req, parsed)
            else:
                logger.info("Could not parse JSON response, using raw text")

        self._log_usage(auth, action, result)
        return {
            "response": response,
            "action": action.value,
            "timestamp": datetime.utcnow().isoformat() + "Z",
        }
