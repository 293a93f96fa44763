"""
Case Intake Chat
================

Builds the system prompt for the chat-guided case filing flow. The caller
decides which step the conversation is in; nothing here enforces order.
"""

import json
import logging
from typing import Optional, Dict, Any, List

from .llm.gateway import GatewayClient
from .schemas import IntakeStep

logger = logging.getLogger(__name__)

FALLBACK_REPLY = "I apologize, I could not process that. Please try again."

STEP_GUIDE = """Based on the step, guide the conversation:
- "initial": Greet and ask to upload FIR/SIR/FR report
- "document_uploaded": Acknowledge the document, summarize what you understood, ask if they are the person involved or someone else
- "relation_check": If other person, ask about relationship and current status of involved person
- "details": Ask for additional details about the case via voice or text
- "status_check": Ask about current case status and last hearing date
- "processing": Estimate processing time (5-30 mins based on complexity), ask for callback number
- "complete": Confirm all details, thank user, explain next steps"""


def build_intake_system_prompt(step: IntakeStep, case_context: Optional[Dict[str, Any]]) -> str:
    step_value = step.value if isinstance(step, IntakeStep) else str(step)
    return f"""You are an AI legal assistant for eNyayaSetu, a virtual Indian court system. You help users file and understand their cases.

Your role is to guide users through the case intake process in a conversational, empathetic manner.

Current step: {step_value}

Guidelines:
- Be polite, empathetic, and professional
- Use simple language, explain legal terms when used
- Ask one question at a time
- Acknowledge user responses before asking next question
- Reference Indian laws, IPC sections, CrPC procedures when relevant
- If user seems distressed, offer reassurance

Case context so far: {json.dumps(case_context or {}, ensure_ascii=False)}

{STEP_GUIDE}

Keep responses concise (under 150 words). Use Hindi words with English when appropriate for Indian context."""


async def run_intake_chat(
    gateway: GatewayClient,
    messages: List[Dict[str, Any]],
    step: IntakeStep,
    case_context: Optional[Dict[str, Any]] = None,
) -> str:
    """Forward the conversation with the intake prompt prepended; return the reply text."""
    system_prompt = build_intake_system_prompt(step, case_context)
    result = await gateway.complete([{"role": "system", "content": system_prompt}, *messages])
    logger.info(f"Intake chat reply for step={getattr(step, 'value', step)} ({len(result.content)} chars)")
    return result.content or FALLBACK_REPLY
