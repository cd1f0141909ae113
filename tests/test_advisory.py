"""
Deal insight and triage: deterministic fallbacks and handling of provider replies.
Run from project root: python -m pytest tests/test_advisory.py -v
"""
import unittest
from unittest import mock

from config import Settings
from schemas.advisory import AnalyzeDealRequest, TriageDeal, TriageRequest, TriageResponse
from services.advisory import (
    analyze_deal,
    build_triage_request,
    extract_json_object,
    fallback_triage,
    gap_status,
    select_triaged_deal,
    triage_deals,
)
from tests.factories import make_candidate


def _settings(**kwargs):
    return Settings(_env_file=None, groq_api_key=kwargs.pop("groq_api_key", None),
                    gemini_api_key=kwargs.pop("gemini_api_key", None), **kwargs)


def _triage_deal(id, payment, net):
    return TriageDeal(id=id, payment=payment, net_check_to_dealer=net, ltv=110, term_months=60, lender_name="Test Lender")


class TestSettings(unittest.TestCase):
    def test_advisory_enabled_by_any_key(self):
        self.assertFalse(_settings().advisory_enabled)
        self.assertTrue(_settings(gemini_api_key="key").advisory_enabled)

    def test_cors_origin_list(self):
        s = _settings(cors_origins="http://a.test, http://b.test,")
        self.assertEqual(s.cors_origin_list, ["http://a.test", "http://b.test"])


class TestAnalyzeDeal(unittest.TestCase):
    def test_gap_thresholds(self):
        self.assertEqual(gap_status(49.99), "good")
        self.assertEqual(gap_status(50), "difficult")
        self.assertEqual(gap_status(99), "difficult")
        self.assertEqual(gap_status(100), "impossible")
        self.assertEqual(gap_status(-30), "good")

    def test_fallback_without_provider(self):
        insight = analyze_deal(AnalyzeDealRequest(target_payment=400, best_payment=470), _settings())
        self.assertEqual(insight.status, "difficult")
        self.assertEqual(insight.strategy, "Suggest cash down payment or extend term to 72-84 months.")

    def test_missing_inputs(self):
        insight = analyze_deal(AnalyzeDealRequest(best_payment=470), _settings())
        self.assertEqual(insight.analysis, "Basic analysis - some inputs missing")
        self.assertEqual(insight.strategy, "Verify all deal details are entered.")

    def test_malformed_reply_falls_back(self):
        with mock.patch("services.advisory._llm_complete", return_value="Sure! The deal looks {great"):
            insight = analyze_deal(
                AnalyzeDealRequest(target_payment=400, best_payment=520), _settings(groq_api_key="key")
            )
        self.assertEqual(insight.status, "impossible")
        self.assertEqual(insight.analysis, "Large payment gap. Customer expectations may need adjustment.")

    def test_provider_reply_in_code_fence(self):
        reply = '```json\n{"status": "good", "analysis": "Close to target", "strategy": "Hold the rate"}\n```'
        with mock.patch("services.advisory._llm_complete", return_value=reply):
            insight = analyze_deal(
                AnalyzeDealRequest(target_payment=400, best_payment=520), _settings(groq_api_key="key")
            )
        self.assertEqual(insight.status, "good")
        self.assertEqual(insight.analysis, "Close to target")

    def test_out_of_contract_status_uses_gap(self):
        reply = '{"status": "excellent", "analysis": "a", "strategy": "s"}'
        with mock.patch("services.advisory._llm_complete", return_value=reply):
            insight = analyze_deal(
                AnalyzeDealRequest(target_payment=400, best_payment=420), _settings(groq_api_key="key")
            )
        self.assertEqual(insight.status, "good")

    def test_unexpected_error_never_raises(self):
        with mock.patch("services.advisory._llm_complete", side_effect=RuntimeError("boom")):
            insight = analyze_deal(
                AnalyzeDealRequest(target_payment=400, best_payment=520), _settings(groq_api_key="key")
            )
        self.assertEqual(insight.status, "difficult")
        self.assertEqual(insight.analysis, "Analysis in progress. Review deal manually.")

    def test_extract_json_object(self):
        self.assertEqual(extract_json_object('Here you go: {"a": 1} thanks'), {"a": 1})
        self.assertIsNone(extract_json_object("[1, 2]"))
        self.assertIsNone(extract_json_object(None))


class TestTriage(unittest.TestCase):
    def setUp(self):
        self.deals = [
            _triage_deal("deal-0-a-60", 480, 3_000),
            _triage_deal("deal-1-b-72", 470, 2_500),
            _triage_deal("deal-2-c-84", 600, 5_000),
        ]

    def test_profit_mode_picks_max_net_check_near_target(self):
        response = fallback_triage(TriageRequest(valid_deals=self.deals, target_payment=450))
        self.assertEqual(response.mode, "profit")
        self.assertEqual(response.best_deal_id, "deal-0-a-60")
        self.assertEqual(response.badge, "💰 Max Profit")

    def test_survival_mode_picks_lowest_payment(self):
        response = fallback_triage(TriageRequest(valid_deals=self.deals, target_payment=300))
        self.assertEqual(response.mode, "survival")
        self.assertEqual(response.best_deal_id, "deal-1-b-72")
        self.assertEqual(response.badge, "⚠️ Lowest Possible")

    def test_no_deals(self):
        response = triage_deals(TriageRequest(target_payment=450), _settings(groq_api_key="key"))
        self.assertEqual(response.mode, "survival")
        self.assertIsNone(response.best_deal_id)
        self.assertEqual(response.badge, "No Deal")

    def test_provider_pick_outside_list_falls_back(self):
        reply = '{"mode": "profit", "bestDealId": "deal-9-z-60", "reason": "r", "badge": "b"}'
        with mock.patch("services.advisory._llm_complete", return_value=reply):
            response = triage_deals(TriageRequest(valid_deals=self.deals, target_payment=450), _settings(groq_api_key="key"))
        self.assertEqual(response.best_deal_id, "deal-0-a-60")

    def test_provider_pick_accepted(self):
        reply = '{"mode": "survival", "bestDealId": "deal-2-c-84", "reason": "Most cash", "badge": "Big Check"}'
        with mock.patch("services.advisory._llm_complete", return_value=reply):
            response = triage_deals(TriageRequest(valid_deals=self.deals, target_payment=450), _settings(groq_api_key="key"))
        self.assertEqual(response.mode, "survival")
        self.assertEqual(response.best_deal_id, "deal-2-c-84")
        self.assertEqual(response.badge, "Big Check")

    def test_only_first_deals_are_triaged(self):
        settings = _settings(triage_max_deals=1)
        response = triage_deals(TriageRequest(valid_deals=self.deals, target_payment=300), settings)
        self.assertEqual(response.best_deal_id, "deal-0-a-60")
        response = triage_deals(TriageRequest(valid_deals=self.deals[::-1], target_payment=300), settings)
        self.assertEqual(response.best_deal_id, "deal-2-c-84")

    def test_build_and_select_round_trip(self):
        candidates = [make_candidate(lender_id="westlake", term_months=60), make_candidate(lender_id="uac", term_months=72)]
        request = build_triage_request(candidates, 450, ["GAP"])
        self.assertEqual([d.id for d in request.valid_deals], ["deal-0-westlake-60", "deal-1-uac-72"])
        picked = select_triaged_deal(
            candidates, TriageResponse(mode="profit", best_deal_id="deal-1-uac-72", reason="r", badge="b")
        )
        self.assertEqual(picked.lender_id, "uac")
        self.assertEqual(select_triaged_deal(candidates, None).lender_id, "westlake")
        self.assertIsNone(select_triaged_deal([], None))


if __name__ == "__main__":
    unittest.main()
