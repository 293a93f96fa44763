"""
Case Assistant Tests
"""

import pytest

from nyayasetu.case_assistant import (
    BLOCKED_PHRASES,
    REFUSAL_ANSWER,
    REFUSAL_DISCLAIMER,
    ANALYSIS_DISCLAIMER,
    extract_keywords,
    is_blocked_query,
)


def _seed_ipc_sections():
    from nyayasetu.db.session import get_db_session
    from nyayasetu.db.models import LegalAct, LegalSection

    with get_db_session() as db:
        act = LegalAct(name="Indian Penal Code", year=1860)
        db.add(act)
        db.flush()
        db.add_all([
            LegalSection(act_id=act.id, section_number="420", title="Cheating and dishonestly inducing delivery of property"),
            LegalSection(act_id=act.id, section_number="302", title="Punishment for murder"),
        ])


class TestQueryFilters:
    @pytest.mark.parametrize("phrase", BLOCKED_PHRASES)
    def test_blocked_phrases_any_case(self, phrase):
        assert is_blocked_query(f"Tell me {phrase.upper()} here")

    def test_procedural_question_is_allowed(self):
        assert not is_blocked_query("Is the chargesheet complete?")

    def test_keywords_longer_than_three_chars(self):
        assert extract_keywords("is the FIR for cheating filed") == ["cheating", "filed"]


class TestCaseAssistantEndpoint:
    @pytest.mark.parametrize("query", [
        "Who is guilty in this case?",
        "WHAT IS THE VERDICT going to be",
        "Is he guilty or innocent",
    ])
    def test_denylisted_query_never_calls_gateway(self, client, register, gateway_stub, query):
        headers, _ = register()
        response = client.post(
            "/api/case-assistant",
            json={"query": query, "caseId": "any-case"},
            headers=headers,
        )
        assert response.status_code == 200
        assert response.json() == {"answer": REFUSAL_ANSWER, "disclaimer": REFUSAL_DISCLAIMER}
        assert gateway_stub.requests == []

    def test_unknown_case_is_404(self, client, register, gateway_stub):
        headers, _ = register()
        response = client.post(
            "/api/case-assistant",
            json={"query": "Which documents are missing?", "caseId": "missing"},
            headers=headers,
        )
        assert response.status_code == 404
        assert response.json() == {"error": "Case not found"}

    def test_other_users_case_is_404(self, client, register, create_case, gateway_stub):
        owner_headers, _ = register("owner@nyayasetu.in")
        other_headers, _ = register("other@nyayasetu.in")
        case = create_case(owner_headers)
        response = client.post(
            "/api/case-assistant",
            json={"query": "Which documents are missing?", "caseId": case["id"]},
            headers=other_headers,
        )
        assert response.status_code == 404

    def test_analysis_with_sources_and_log(self, client, register, create_case, gateway_stub):
        from nyayasetu.db.session import get_db_session
        from nyayasetu.db.models import CaseAssistantLog

        _seed_ipc_sections()
        headers, _ = register()
        case = create_case(headers, description="Online fraud of Rs 2 lakh", state="Delhi")
        client.post(f"/api/cases/{case['id']}/milestones", json={"milestone_name": "FIR Registered", "status": True}, headers=headers)
        gateway_stub.content = "Case Analysis Report: ..."

        response = client.post(
            "/api/case-assistant",
            json={"query": "Assess the cheating charge", "caseId": case["id"]},
            headers=headers,
        )

        assert response.status_code == 200
        data = response.json()
        assert data["answer"] == "Case Analysis Report: ..."
        assert data["disclaimer"] == ANALYSIS_DISCLAIMER
        assert [s["section_number"] for s in data["sources"]] == ["420"]
        assert data["sources"][0]["legal_acts"] == {"name": "Indian Penal Code"}

        sent = gateway_stub.requests[0]
        assert sent["model"] == "google/gemini-2.0-flash-exp"
        system_prompt = sent["messages"][0]["content"]
        assert "- State: Delhi" in system_prompt
        assert "- Court Level: Trial" in system_prompt
        assert "FIR Registered: ✅ Present" in system_prompt
        assert sent["messages"][1] == {"role": "user", "content": "Assess the cheating charge"}

        with get_db_session() as db:
            log = db.query(CaseAssistantLog).one()
            assert log.case_id == case["id"]
            assert log.sources == ["Indian Penal Code Section 420"]
