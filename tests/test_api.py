"""
HTTP layer: camelCase in/out, status codes, advisory endpoints always 200.
Run from project root: python -m pytest tests/test_api.py -v
"""
import unittest

from fastapi.testclient import TestClient

from api.dependencies import get_settings
from config import Settings
from main import create_app

REHASH_BODY = {
    "vehicleYear": 2022,
    "vehicleMake": "Toyota",
    "vehicleMileage": 28_000,
    "vehiclePrice": 21_500,
    "vehicleCost": 19_000,
    "taxRate": 0.07,
    "fees": 450,
    "downPayment": 5_000,
    "backendProducts": {"gap": False, "vsc": False},
    "customerCreditTier": "near_prime",
    "targetPayment": 450,
    "paymentTolerance": 50,
    "asOfYear": 2025,
}


class TestApi(unittest.TestCase):
    @classmethod
    def setUpClass(cls):
        cls.app = create_app()
        cls.app.dependency_overrides[get_settings] = lambda: Settings(
            _env_file=None, groq_api_key=None, gemini_api_key=None
        )
        cls.client_cm = TestClient(cls.app)
        cls.client = cls.client_cm.__enter__()

    @classmethod
    def tearDownClass(cls):
        cls.client_cm.__exit__(None, None, None)

    def test_health(self):
        r = self.client.get("/health")
        self.assertEqual(r.status_code, 200)
        self.assertEqual(r.json(), {"status": "ok"})

    def test_list_lenders(self):
        r = self.client.get("/api/lenders")
        self.assertEqual(r.status_code, 200)
        body = r.json()
        self.assertEqual([l["id"] for l in body], ["uac", "western_funding", "westlake"])
        self.assertEqual(body[0]["advanceType"], "risk_adjusted")
        self.assertIn("allowedTerms", body[0])

    def test_get_lender(self):
        r = self.client.get("/api/lenders/westlake")
        self.assertEqual(r.status_code, 200)
        self.assertEqual(r.json()["advancePolicy"]["type"], "cost_based")
        self.assertEqual(self.client.get("/api/lenders/nope").status_code, 404)

    def test_rehash(self):
        r = self.client.post("/api/rehash", json=REHASH_BODY)
        self.assertEqual(r.status_code, 200)
        body = r.json()
        self.assertEqual(body["riskAssessment"]["bookValue"], 15_480)
        self.assertIsNotNone(body["bestDeal"])
        self.assertIn("netCheckToDealer", body["bestDeal"])
        self.assertEqual(body["bestDeal"], body["allCandidates"][0])

    def test_rehash_restricted_lenders(self):
        r = self.client.post("/api/rehash", json={**REHASH_BODY, "lenderIds": ["westlake"]})
        self.assertEqual(r.status_code, 200)
        self.assertEqual({c["lenderId"] for c in r.json()["allCandidates"]}, {"westlake"})

    def test_rehash_unknown_lender(self):
        r = self.client.post("/api/rehash", json={**REHASH_BODY, "lenderIds": ["nope"]})
        self.assertEqual(r.status_code, 400)

    def test_rehash_invalid_body(self):
        body = {k: v for k, v in REHASH_BODY.items() if k != "vehicleYear"}
        self.assertEqual(self.client.post("/api/rehash", json=body).status_code, 422)
        bad_tier = {**REHASH_BODY, "customerCreditTier": "excellent"}
        self.assertEqual(self.client.post("/api/rehash", json=bad_tier).status_code, 422)

    def test_rehash_malformed_options(self):
        for options in ({"lenderIds": "westlake"}, {"lenderIds": [{"x": 1}]}, {"asOfYear": "soon"}):
            r = self.client.post("/api/rehash", json={**REHASH_BODY, **options})
            self.assertEqual(r.status_code, 422, options)

    def test_budget_term(self):
        body = {"price": 12_000, "apr": 0, "targetMonthly": 250, "terms": [36, 48, 60]}
        r = self.client.post("/api/budget-term", json=body)
        self.assertEqual(r.status_code, 200)
        self.assertEqual(r.json(), {"termMonths": 48, "payment": 250.0, "fits": True})

        r = self.client.post("/api/budget-term", json={**body, "targetMonthly": 100})
        self.assertEqual(r.json(), {"termMonths": None, "payment": None, "fits": False})

        self.assertEqual(self.client.post("/api/budget-term", json={**body, "terms": [0]}).status_code, 422)

    def test_triage_candidates(self):
        candidates = self.client.post("/api/rehash", json=REHASH_BODY).json()["allCandidates"]
        r = self.client.post(
            "/api/triage-candidates",
            json={"candidates": candidates, "targetPayment": 450, "mandatoryProducts": ["GAP"]},
        )
        self.assertEqual(r.status_code, 200)
        body = r.json()
        self.assertIn(body["mode"], ("profit", "survival"))
        index = int(body["bestDealId"].split("-")[1])
        self.assertEqual(body["selectedDeal"], candidates[index])

    def test_triage_candidates_empty(self):
        r = self.client.post("/api/triage-candidates", json={"candidates": []})
        self.assertEqual(r.status_code, 200)
        self.assertIsNone(r.json()["selectedDeal"])
        self.assertEqual(r.json()["badge"], "No Deal")

    def test_compliance_from_rehash_output(self):
        rehash = self.client.post("/api/rehash", json=REHASH_BODY).json()
        r = self.client.post(
            "/api/compliance",
            json={
                "candidates": rehash["allCandidates"],
                "mileage": 28_000,
                "ltvPercent": rehash["riskAssessment"]["ltvPercent"],
                "creditTier": "near_prime",
            },
        )
        self.assertEqual(r.status_code, 200)
        body = r.json()
        self.assertEqual(body["bankRules"]["ltvCap"], 125)
        self.assertEqual(body["mandatoryProducts"], ["GAP"])
        self.assertEqual(body["ruleSummary"], ["LTV cap 125%", "GAP mandatory", "Max PTI 15%"])
        self.assertEqual(len(body["validDeals"]) + len(body["rejectedDeals"]), len(rehash["allCandidates"]))

    def test_compliance_requires_rules(self):
        r = self.client.post("/api/compliance", json={"candidates": []})
        self.assertEqual(r.status_code, 400)

    def test_analyze_deal_fallback(self):
        r = self.client.post("/api/analyze-deal", json={"vehiclePrice": 20_000, "targetPayment": 400, "bestPayment": 520})
        self.assertEqual(r.status_code, 200)
        self.assertEqual(r.json()["status"], "impossible")

    def test_analyze_deal_bad_input_still_200(self):
        r = self.client.post("/api/analyze-deal", json={"targetPayment": "lots"})
        self.assertEqual(r.status_code, 200)
        self.assertEqual(r.json()["analysis"], "Basic analysis - some inputs missing")

    def test_triage(self):
        deals = [
            {"id": "deal-0-westlake-60", "payment": 455, "netCheckToDealer": 14_000, "ltv": 120,
             "termMonths": 60, "lenderName": "Westlake Financial", "hasGap": True},
            {"id": "deal-1-uac-72", "payment": 430, "netCheckToDealer": 13_000, "ltv": 118,
             "termMonths": 72, "lenderName": "United Auto Credit"},
        ]
        r = self.client.post("/api/triage", json={"validDeals": deals, "targetPayment": 450, "mandatoryProducts": ["GAP"]})
        self.assertEqual(r.status_code, 200)
        self.assertEqual(r.json()["mode"], "profit")
        self.assertEqual(r.json()["bestDealId"], "deal-0-westlake-60")

    def test_triage_bad_input_still_200(self):
        r = self.client.post("/api/triage", json={"validDeals": "none"})
        self.assertEqual(r.status_code, 200)
        self.assertIsNone(r.json()["bestDealId"])


if __name__ == "__main__":
    unittest.main()
