"""
Case Intake Chat and OCR Tests
"""

from nyayasetu.intake import FALLBACK_REPLY, build_intake_system_prompt
from nyayasetu.ocr import build_ocr_messages, parse_ocr_content
from nyayasetu.schemas import IntakeStep


# =============================================================================
# Intake
# =============================================================================

class TestIntakePrompt:
    def test_prompt_names_step_and_context(self):
        prompt = build_intake_system_prompt(IntakeStep.RELATION_CHECK, {"firNumber": "123/2024"})
        assert "Current step: relation_check" in prompt
        assert '"firNumber": "123/2024"' in prompt
        assert "under 150 words" in prompt

    def test_missing_context_is_empty_object(self):
        assert "Case context so far: {}" in build_intake_system_prompt(IntakeStep.INITIAL, None)


class TestIntakeEndpoint:
    def test_reply_with_system_prompt_prepended(self, client, register, gateway_stub):
        headers, _ = register()
        gateway_stub.content = "Namaste! Please upload your FIR."
        response = client.post(
            "/api/case-intake-chat",
            json={
                "messages": [{"role": "user", "content": "I want to file a case"}],
                "step": "initial",
                "caseContext": {"language": "en"},
            },
            headers=headers,
        )
        assert response.status_code == 200
        assert response.json() == {"reply": "Namaste! Please upload your FIR."}

        sent = gateway_stub.requests[0]["messages"]
        assert sent[0]["role"] == "system"
        assert "Current step: initial" in sent[0]["content"]
        assert sent[1] == {"role": "user", "content": "I want to file a case"}

    def test_empty_reply_falls_back(self, client, register, gateway_stub):
        headers, _ = register()
        gateway_stub.content = ""
        response = client.post("/api/case-intake-chat", json={"messages": []}, headers=headers)
        assert response.json() == {"reply": FALLBACK_REPLY}

    def test_unknown_step_is_400(self, client, register, gateway_stub):
        headers, _ = register()
        response = client.post("/api/case-intake-chat", json={"messages": [], "step": "verdict"}, headers=headers)
        assert response.status_code == 400


# =============================================================================
# OCR
# =============================================================================

class TestOcrParsing:
    def test_json_fence(self):
        content = '```json\n{"document_type": "FIR", "case_number": "45/2024"}\n```'
        assert parse_ocr_content(content) == {"document_type": "FIR", "case_number": "45/2024"}

    def test_bare_fence(self):
        assert parse_ocr_content('```\n{"document_type": "Chargesheet"}\n```') == {"document_type": "Chargesheet"}

    def test_unparsable_falls_back(self):
        content = "FIRST INFORMATION REPORT " * 20
        parsed = parse_ocr_content(content)
        assert parsed == {
            "extracted_text": content,
            "document_type": "Unknown",
            "summary": content[:200],
        }

    def test_json_null_is_kept(self):
        assert parse_ocr_content("null") is None
        assert parse_ocr_content("```json\nnull\n```") is None

    def test_pdf_prompt_wording(self):
        messages = build_ocr_messages("AAAA", "application/pdf")
        parts = messages[1]["content"]
        assert "PDF document" in parts[0]["text"]
        assert parts[1]["image_url"]["url"] == "data:application/pdf;base64,AAAA"

    def test_image_prompt_wording(self):
        parts = build_ocr_messages("AAAA", "image/jpeg")[1]["content"]
        assert "this image" in parts[0]["text"]


class TestOcrEndpoint:
    def test_returns_parsed_analysis(self, client, register, gateway_stub):
        headers, _ = register()
        gateway_stub.content = '```json\n{"document_type": "FIR", "summary": "Theft at Jaipur"}\n```'
        response = client.post(
            "/api/ocr-document",
            json={"imageBase64": "AAAA", "mimeType": "image/png", "fileName": "fir.png"},
            headers=headers,
        )
        assert response.status_code == 200
        assert response.json() == {"document_type": "FIR", "summary": "Theft at Jaipur"}

    def test_summary_saved_on_evidence(self, client, register, create_case, gateway_stub):
        headers, _ = register()
        case = create_case(headers)
        upload = client.post(
            f"/api/cases/{case['id']}/evidence",
            files={"file": ("fir.png", b"\x89PNG fake", "image/png")},
            data={"provided_by": "police"},
            headers=headers,
        )
        evidence_id = upload.json()["id"]
        gateway_stub.content = '{"document_type": "FIR", "summary": "Theft at Jaipur"}'

        response = client.post(
            "/api/ocr-document",
            json={"imageBase64": "AAAA", "mimeType": "image/png", "evidenceId": evidence_id},
            headers=headers,
        )
        assert response.status_code == 200

        evidence = client.get(f"/api/cases/{case['id']}/evidence", headers=headers).json()
        assert evidence[0]["ai_analysis"] == "Theft at Jaipur"

    def test_unknown_evidence_is_404_without_model_call(self, client, register, gateway_stub):
        headers, _ = register()
        response = client.post(
            "/api/ocr-document",
            json={"imageBase64": "AAAA", "mimeType": "image/png", "evidenceId": "nope"},
            headers=headers,
        )
        assert response.status_code == 404
        assert gateway_stub.requests == []
