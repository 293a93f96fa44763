"""
Court Session Tests
===================

Court codes, transcript ordering, status notifications and the
actual-lawyer OTP flow.
"""

import re
from datetime import datetime, timedelta

import pytest

from nyayasetu.otp import generate_otp, hash_otp
from nyayasetu.sessions import generate_court_code


@pytest.fixture
def sent_otps(monkeypatch):
    """Capture OTP emails instead of sending them."""
    sent = []

    def fake_send(to_email, otp, case_title, court_code):
        sent.append({"to": to_email, "otp": otp, "case_title": case_title, "court_code": court_code})
        return True

    monkeypatch.setattr("nyayasetu.otp.send_lawyer_otp_email", fake_send)
    return sent


@pytest.fixture
def session_for(client, create_case):
    def _session_for(headers, lawyer_type="ai_lawyer", **case_fields):
        case = create_case(headers, **case_fields)
        response = client.post(
            "/api/court/sessions",
            json={"case_id": case["id"], "lawyer_type": lawyer_type, "total_fee": 1500},
            headers=headers,
        )
        assert response.status_code == 201, response.text
        return response.json()

    return _session_for


class TestCourtCode:
    def test_shape(self):
        for _ in range(50):
            assert re.fullmatch(r"[A-Z0-9]{8}", generate_court_code())


class TestSessions:
    def test_create_and_lookup_by_code(self, client, register, session_for):
        headers, user = register()
        session = session_for(headers)
        assert session["status"] == "scheduled"
        assert session["payment_status"] == "pending"
        assert session["created_by"] == user["id"]

        found = client.get(f"/api/court/session/{session['court_code'].lower()}")
        assert found.status_code == 200
        assert found.json()["id"] == session["id"]

    def test_unknown_code_is_404(self, client):
        response = client.get("/api/court/session/ZZZZZZZZ")
        assert response.status_code == 404
        assert response.json() == {"error": "Session not found"}

    def test_invalid_lawyer_type(self, client, register, create_case):
        headers, _ = register()
        case = create_case(headers)
        response = client.post(
            "/api/court/sessions",
            json={"case_id": case["id"], "lawyer_type": "robot"},
            headers=headers,
        )
        assert response.status_code == 400

    def test_list_filters(self, client, register, session_for):
        a_headers, _ = register("a@nyayasetu.in")
        b_headers, _ = register("b@nyayasetu.in")
        mine = session_for(a_headers)
        session_for(b_headers)

        listed = client.get("/api/court/sessions", headers=a_headers).json()
        assert [s["id"] for s in listed] == [mine["id"]]

        by_case = client.get("/api/court/sessions", params={"case_id": mine["case_id"]}, headers=a_headers).json()
        assert len(by_case) == 1
        paid = client.get("/api/court/sessions", params={"payment_status": "completed"}, headers=a_headers).json()
        assert paid == []

    def test_status_change_notifies_owner(self, client, register, session_for):
        headers, _ = register()
        session = session_for(headers)
        response = client.patch(f"/api/court/sessions/{session['id']}", json={"status": "in_progress"}, headers=headers)
        assert response.json()["status"] == "in_progress"

        notifications = client.get("/api/notifications", headers=headers).json()["notifications"]
        assert notifications[0]["type"] == "session_status"
        assert notifications[0]["message"] == "The court session has started."

    def test_invalid_status(self, client, register, session_for):
        headers, _ = register()
        session = session_for(headers)
        response = client.patch(f"/api/court/sessions/{session['id']}", json={"status": "dismissed"}, headers=headers)
        assert response.status_code == 400


class TestTranscripts:
    def test_sequence_numbers_follow_append_order(self, client, register, session_for):
        headers, _ = register()
        session = session_for(headers)
        lines = [
            ("judge", "Court is in session."),
            ("prosecutor", "The accused was seen at the spot."),
            ("lawyer", "Objection, hearsay."),
            ("judge", "Sustained."),
        ]
        for role, message in lines:
            response = client.post(
                f"/api/court/sessions/{session['id']}/transcripts",
                json={"speaker_role": role, "message": message, "is_ai_generated": role == "judge"},
                headers=headers,
            )
            assert response.status_code == 201

        transcript = client.get(f"/api/court/sessions/{session['id']}/transcripts", headers=headers).json()
        assert [t["sequence_number"] for t in transcript] == [1, 2, 3, 4]
        assert [t["message"] for t in transcript] == [m for _, m in lines]

    def test_sequences_are_per_session(self, client, register, session_for):
        headers, _ = register()
        first = session_for(headers)
        second = session_for(headers, title="Another case")
        client.post(f"/api/court/sessions/{first['id']}/transcripts", json={"speaker_role": "judge", "message": "One"}, headers=headers)
        response = client.post(
            f"/api/court/sessions/{second['id']}/transcripts",
            json={"speaker_role": "judge", "message": "Also one"},
            headers=headers,
        )
        assert response.json()["sequence_number"] == 1

    def test_other_users_transcript_is_404(self, client, register, session_for):
        a_headers, _ = register("a@nyayasetu.in")
        b_headers, _ = register("b@nyayasetu.in")
        session = session_for(a_headers)
        response = client.get(f"/api/court/sessions/{session['id']}/transcripts", headers=b_headers)
        assert response.status_code == 404


# =============================================================================
# Lawyer OTP
# =============================================================================

class TestOtpGeneration:
    def test_six_digits_and_fifteen_minutes(self):
        now = datetime(2026, 10, 19, 10, 30)
        for _ in range(200):
            code, expires_at = generate_otp(now=now)
            assert re.fullmatch(r"\d{6}", code)
            assert expires_at - now == timedelta(minutes=15)

    def test_hash_is_not_the_code(self):
        assert hash_otp("123456") != "123456"
        assert len(hash_otp("123456")) == 64


class TestLawyerOtpFlow:
    def test_send_does_not_return_code(self, client, register, session_for, sent_otps):
        headers, _ = register()
        session = session_for(headers, lawyer_type="actual_lawyer", title="State vs Meena")
        before = datetime.utcnow()
        response = client.post(
            "/api/send-lawyer-otp",
            json={"session_id": session["id"], "lawyer_email": "adv.rao@lawfirm.in"},
            headers=headers,
        )
        assert response.status_code == 200
        data = response.json()
        assert data["success"] is True
        assert data["message"] == "OTP sent to lawyer email"
        assert "otp" not in data

        assert len(sent_otps) == 1
        assert sent_otps[0]["to"] == "adv.rao@lawfirm.in"
        assert sent_otps[0]["case_title"] == "State vs Meena"
        assert sent_otps[0]["court_code"] == session["court_code"]
        assert re.fullmatch(r"\d{6}", sent_otps[0]["otp"])
        assert sent_otps[0]["otp"] not in data.values()

        expires_at = datetime.fromisoformat(data["otp_expires_at"])
        assert timedelta(minutes=14, seconds=59) <= expires_at - before <= timedelta(minutes=15, seconds=5)

    def test_verify_success(self, client, register, session_for, sent_otps):
        headers, _ = register()
        session = session_for(headers, lawyer_type="actual_lawyer")
        client.post("/api/send-lawyer-otp", json={"session_id": session["id"], "lawyer_email": "adv@lawfirm.in"}, headers=headers)

        response = client.post(
            "/api/verify-lawyer-otp",
            json={"session_id": session["id"], "otp": sent_otps[0]["otp"]},
            headers=headers,
        )
        assert response.status_code == 200
        assert response.json()["success"] is True

        again = client.post(
            "/api/verify-lawyer-otp",
            json={"session_id": session["id"], "otp": sent_otps[0]["otp"]},
            headers=headers,
        )
        assert again.status_code == 400
        assert again.json() == {"error": "No OTP pending for this session"}

        notifications = client.get("/api/notifications", headers=headers).json()["notifications"]
        assert notifications[0]["type"] == "verification"

    def test_wrong_code(self, client, register, session_for, sent_otps):
        headers, _ = register()
        session = session_for(headers, lawyer_type="actual_lawyer")
        client.post("/api/send-lawyer-otp", json={"session_id": session["id"], "lawyer_email": "adv@lawfirm.in"}, headers=headers)
        wrong = "000000" if sent_otps[0]["otp"] != "000000" else "111111"
        response = client.post("/api/verify-lawyer-otp", json={"session_id": session["id"], "otp": wrong}, headers=headers)
        assert response.status_code == 400
        assert response.json() == {"error": "Invalid OTP"}

    def test_expired_code(self, client, register, session_for, sent_otps):
        from nyayasetu.db.session import get_db_session
        from nyayasetu.db.models import CourtSession

        headers, _ = register()
        session = session_for(headers, lawyer_type="actual_lawyer")
        client.post("/api/send-lawyer-otp", json={"session_id": session["id"], "lawyer_email": "adv@lawfirm.in"}, headers=headers)
        with get_db_session() as db:
            db.query(CourtSession).filter(CourtSession.id == session["id"]).update(
                {CourtSession.actual_lawyer_otp_expires_at: datetime.utcnow() - timedelta(minutes=1)}
            )

        response = client.post(
            "/api/verify-lawyer-otp",
            json={"session_id": session["id"], "otp": sent_otps[0]["otp"]},
            headers=headers,
        )
        assert response.status_code == 400
        assert response.json() == {"error": "OTP expired"}

    def test_ai_lawyer_session_is_rejected(self, client, register, session_for, sent_otps):
        headers, _ = register()
        session = session_for(headers)
        response = client.post("/api/send-lawyer-otp", json={"session_id": session["id"]}, headers=headers)
        assert response.status_code == 400
        assert response.json() == {"error": "Not an Actual Lawyer case"}
        assert sent_otps == []

    def test_missing_session_id(self, client, register):
        headers, _ = register()
        response = client.post("/api/send-lawyer-otp", json={}, headers=headers)
        assert response.status_code == 400
        assert response.json() == {"error": "Session ID required"}

    def test_someone_elses_session_is_403(self, client, register, session_for, sent_otps):
        a_headers, _ = register("a@nyayasetu.in")
        b_headers, _ = register("b@nyayasetu.in")
        session = session_for(a_headers, lawyer_type="actual_lawyer")
        response = client.post("/api/send-lawyer-otp", json={"session_id": session["id"]}, headers=b_headers)
        assert response.status_code == 403
        assert response.json() == {"error": "Unauthorized"}
