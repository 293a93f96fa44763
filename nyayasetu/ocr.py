"""
OCR Document Analysis
=====================

Sends a scanned FIR/chargesheet/order (image or PDF, base64) to a vision
model and returns the structured reading. Model output is not schema
checked; anything that fails to parse comes back as plain extracted text.
"""

import logging
from typing import Dict, Any, List, Optional

from .llm.gateway import GatewayClient
from .llm.parsing import NOT_JSON, parse_fenced_json, safe_log_content

logger = logging.getLogger(__name__)

OCR_SYSTEM_PROMPT = """You are an expert OCR and document analysis system specializing in Indian legal documents.
Your task is to:
1. Extract ALL text from the document image accurately
2. Identify the document type (FIR, SIR, FR, Chargesheet, Court Order, etc.)
3. Extract key details: case number, date, parties involved, allegations, sections invoked
4. Summarize the key facts of the case

Provide output in this JSON format:
{
  "extracted_text": "full OCR text here",
  "document_type": "FIR/SIR/FR/Chargesheet/Other",
  "case_number": "if found",
  "date": "if found",
  "parties": {
    "complainant": "name if found",
    "accused": "name if found"
  },
  "sections_invoked": ["IPC sections if any"],
  "summary": "brief 2-3 sentence summary",
  "key_facts": ["fact 1", "fact 2"]
}"""


def build_ocr_messages(image_base64: str, mime_type: str) -> List[Dict[str, Any]]:
    kind = "PDF document" if "pdf" in mime_type else "image"
    return [
        {"role": "system", "content": OCR_SYSTEM_PROMPT},
        {
            "role": "user",
            "content": [
                {
                    "type": "text",
                    "text": f"Please perform OCR and analysis on this {kind}. Extract all text and identify key legal details.",
                },
                {
                    "type": "image_url",
                    "image_url": {"url": f"data:{mime_type};base64,{image_base64}"},
                },
            ],
        },
    ]


def parse_ocr_content(content: str) -> Optional[Dict[str, Any]]:
    """
    Parse the model reply.

    Fenced (```json or ```) JSON is unwrapped first. Unparsable content falls
    back to ``{extracted_text, document_type: "Unknown", summary}``.
    """
    parsed = parse_fenced_json(content, default=NOT_JSON)
    if parsed is NOT_JSON:
        logger.info(f"OCR reply is not JSON, returning raw text: {safe_log_content(content)}")
        return {
            "extracted_text": content,
            "document_type": "Unknown",
            "summary": content[:200],
        }
    return parsed


async def analyze_document(
    gateway: GatewayClient,
    image_base64: str,
    mime_type: str,
    file_name: str = None,
) -> Dict[str, Any]:
    logger.info(f"Processing OCR for: {file_name} type: {mime_type}")
    result = await gateway.complete(build_ocr_messages(image_base64, mime_type))
    analysis = parse_ocr_content(result.content)
    logger.info("OCR completed successfully")
    return analysis
