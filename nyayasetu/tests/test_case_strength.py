"""
Case Strength Tests
===================

Evidence scoring and the paid improvement suggestions.
"""

import pytest

from nyayasetu.case_strength import categorize_document


def _upload(client, headers, case_id, name, content_type="application/pdf"):
    response = client.post(
        f"/api/cases/{case_id}/evidence",
        files={"file": (name, b"%PDF-1.4 test", content_type)},
        data={"provided_by": "prosecution"},
        headers=headers,
    )
    assert response.status_code == 201, response.text


def _buy_addon(client, headers):
    client.post(
        "/api/payment-webhook",
        json={
            "payment_id": "pay_addon",
            "order_id": client.post(
                "/api/create-payment",
                json={"amount": 500, "gateway": "razorpay", "type": "wallet_topup"},
                headers=headers,
            ).json()["gateway_order_id"],
            "status": "completed",
            "metadata": {"type": "wallet_topup"},
        },
    )
    response = client.post(
        "/api/create-payment",
        json={
            "amount": 200,
            "gateway": "wallet",
            "type": "addon_payment",
            "metadata": {"addon": "case-strength-suggestions"},
        },
        headers=headers,
    )
    assert response.json()["status"] == "completed"


class TestCategorize:
    @pytest.mark.parametrize("name,file_type,expected", [
        ("FIR_copy.pdf", "application/pdf", ("fir", 20)),
        ("hospital_discharge.jpg", "image/jpeg", ("medical", 15)),
        ("rent_agreement.pdf", "application/pdf", ("contract", 15)),
        ("witness_statement.png", "image/png", ("witness", 12)),
        ("photo_proof.jpg", "image/jpeg", ("evidence", 10)),
        ("aadhar.pdf", "application/pdf", ("identity", 5)),
        ("notes.pdf", "application/pdf", ("general", 5)),
        ("fir_notes.txt", "text/plain", ("general", 5)),
    ])
    def test_rules(self, name, file_type, expected):
        assert categorize_document(name, file_type) == expected


class TestAnalysis:
    def test_analyze_and_fetch(self, client, register, create_case):
        headers, _ = register()
        case = create_case(headers)
        _upload(client, headers, case["id"], "fir_copy.pdf")
        _upload(client, headers, case["id"], "medical_report.pdf")
        _upload(client, headers, case["id"], "fir_notes.txt", "text/plain")

        response = client.post(f"/api/case-strength/analyze/{case['id']}", headers=headers)
        assert response.status_code == 200
        data = response.json()
        assert data["strength_percentage"] == 40
        assert data["analysis_data"]["documentCount"] == 3
        assert data["analysis_data"]["categories"] == ["fir", "medical", "general"]
        assert [d["weight"] for d in data["analyzed_documents"]] == [20, 15, 5]

        fetched = client.get(f"/api/case-strength/{case['id']}", headers=headers).json()
        assert fetched["id"] == data["id"]

    def test_strength_is_capped(self, client, register, create_case):
        headers, _ = register()
        case = create_case(headers)
        for i in range(6):
            _upload(client, headers, case["id"], f"fir_{i}.pdf")
        data = client.post(f"/api/case-strength/analyze/{case['id']}", headers=headers).json()
        assert data["strength_percentage"] == 100

    def test_reanalysis_replaces(self, client, register, create_case):
        headers, _ = register()
        case = create_case(headers)
        first = client.post(f"/api/case-strength/analyze/{case['id']}", headers=headers).json()
        assert first["strength_percentage"] == 0

        _upload(client, headers, case["id"], "witness_statement.pdf")
        second = client.post(f"/api/case-strength/analyze/{case['id']}", headers=headers).json()
        assert second["id"] == first["id"]
        assert second["strength_percentage"] == 12

    def test_not_analyzed_is_404(self, client, register, create_case):
        headers, _ = register()
        case = create_case(headers)
        response = client.get(f"/api/case-strength/{case['id']}", headers=headers)
        assert response.status_code == 404
        assert response.json() == {"error": "Analysis not found"}

    def test_other_users_case_is_404(self, client, register, create_case):
        a_headers, _ = register("a@nyayasetu.in")
        b_headers, _ = register("b@nyayasetu.in")
        case = create_case(a_headers)
        assert client.post(f"/api/case-strength/analyze/{case['id']}", headers=b_headers).status_code == 404
        assert client.post(f"/api/case-strength/suggestions/{case['id']}", headers=b_headers).status_code == 404


class TestSuggestions:
    def test_requires_addon(self, client, register, create_case):
        headers, _ = register()
        case = create_case(headers)
        client.post(f"/api/case-strength/analyze/{case['id']}", headers=headers)

        response = client.post(f"/api/case-strength/suggestions/{case['id']}", headers=headers)
        assert response.status_code == 402
        body = response.json()
        assert body["error"] == "Payment required"
        assert body["addon_slug"] == "case-strength-suggestions"
        assert "₹200" in body["message"]

    def test_requires_analysis(self, client, register, create_case):
        headers, _ = register()
        case = create_case(headers)
        _buy_addon(client, headers)
        response = client.post(f"/api/case-strength/suggestions/{case['id']}", headers=headers)
        assert response.status_code == 404
        assert response.json() == {"error": "Please analyze your case first"}

    def test_missing_categories_and_strategy(self, client, register, create_case):
        headers, _ = register()
        case = create_case(headers)
        _upload(client, headers, case["id"], "fir_copy.pdf")
        client.post(f"/api/case-strength/analyze/{case['id']}", headers=headers)
        _buy_addon(client, headers)

        response = client.post(f"/api/case-strength/suggestions/{case['id']}", headers=headers)
        assert response.status_code == 200
        data = response.json()
        assert data["currentStrength"] == 20
        categories = [s["documentCategory"] for s in data["suggestions"]]
        assert "fir" not in categories
        assert set(categories) == {"medical", "witness", "contract", "evidence", "identity", None}
        assert data["totalSuggestions"] == 6

        medical = next(s for s in data["suggestions"] if s["documentCategory"] == "medical")
        assert medical["title"] == "Add Medical Reports"
        assert medical["estimatedStrengthAfter"] == 35

        listed = client.get(f"/api/case-strength/suggestions/{case['id']}", headers=headers).json()
        assert [s["priority"] for s in listed] == ["high", "high", "high", "medium", "medium", "low"]
        assert [s["impactPercentage"] for s in listed[:3]] == [15, 15, 15]
        assert listed[-1]["documentCategory"] == "identity"
