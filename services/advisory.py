"""
Advisory layer: deal insight and best-deal triage from a text-generation service.

Providers are optional (Groq first, Gemini fallback). Any failure - no API key, SDK not
installed, network error, malformed or out-of-contract JSON - degrades to deterministic
rules. Public functions here never raise.
"""
from __future__ import annotations

import json
import logging
import re
from typing import Any, Optional, Sequence

from config import Settings
from schemas.advisory import (
    AnalyzeDealRequest,
    DealInsight,
    InsightStatus,
    TriageDeal,
    TriageRequest,
    TriageResponse,
)
from schemas.deal import DealCandidate

logger = logging.getLogger(__name__)

GOOD_GAP_LIMIT = 50
DIFFICULT_GAP_LIMIT = 100
VALID_STATUSES = ("good", "difficult", "impossible")
VALID_MODES = ("profit", "survival")
SURVIVAL_THRESHOLD = 1.1

FALLBACK_INSIGHTS: dict[str, tuple[str, str]] = {
    "good": (
        "Payment gap is small - deal looks achievable.",
        "Maximize backend profit while closing the deal.",
    ),
    "difficult": (
        "Moderate payment gap. Consider negotiation strategies.",
        "Suggest cash down payment or extend term to 72-84 months.",
    ),
    "impossible": (
        "Large payment gap. Customer expectations may need adjustment.",
        "Explore lower-priced vehicle or lease alternatives.",
    ),
}

INSIGHT_SYSTEM_PROMPT = """Auto finance expert. Analyze payment gap.
Gap<$50="good", $50-99="difficult", $100+="impossible".
Rules: {rules}.
Output JSON only: {{"status":"good|difficult|impossible","analysis":"reason","strategy":"tip"}}"""

TRIAGE_SYSTEM_PROMPT = """Auto finance manager. Pick the single best deal for the dealer.
If any deal has payment within 10% of target, mode is "profit": choose the highest net check among those.
Otherwise mode is "survival": choose the lowest payment.
Mandatory products: {products}.
Output JSON only: {{"mode":"profit|survival","bestDealId":"<id>","reason":"short reason","badge":"short label"}}"""


def gap_status(gap: float) -> InsightStatus:
    if gap < GOOD_GAP_LIMIT:
        return "good"
    if gap < DIFFICULT_GAP_LIMIT:
        return "difficult"
    return "impossible"


def fallback_insight(gap: float) -> DealInsight:
    status = gap_status(gap)
    analysis, strategy = FALLBACK_INSIGHTS[status]
    return DealInsight(status=status, analysis=analysis, strategy=strategy)


def _llm_call_groq(system: str, user: str, settings: Settings) -> str | None:
    if not settings.groq_api_key:
        return None
    try:
        from groq import Groq

        client = Groq(api_key=settings.groq_api_key)
        resp = client.chat.completions.create(
            model=settings.groq_model,
            messages=[
                {"role": "system", "content": system},
                {"role": "user", "content": user},
            ],
            temperature=settings.advisory_temperature,
            max_tokens=settings.advisory_max_tokens,
        )
        content = resp.choices[0].message.content
        return content.strip() if content else None
    except Exception as e:
        logger.warning("Groq advisory call failed: %s", e)
        return None


def _llm_call_gemini(system: str, user: str, settings: Settings) -> str | None:
    if not settings.gemini_api_key:
        return None
    try:
        import google.generativeai as genai

        genai.configure(api_key=settings.gemini_api_key)
        model = genai.GenerativeModel(settings.gemini_model)
        resp = model.generate_content(
            f"{system}\n\n{user}",
            generation_config=genai.types.GenerationConfig(
                temperature=settings.advisory_temperature,
                max_output_tokens=settings.advisory_max_tokens,
            ),
        )
        content = resp.text if resp and resp.text else None
        return content.strip() if content else None
    except Exception as e:
        logger.warning("Gemini advisory call failed: %s", e)
        return None


def _llm_complete(system: str, user: str, settings: Settings) -> str | None:
    raw = _llm_call_groq(system, user, settings)
    if raw is not None:
        logger.info("Advisory reply from Groq", extra={"model": settings.groq_model})
        return raw
    raw = _llm_call_gemini(system, user, settings)
    if raw is not None:
        logger.info("Advisory reply from Gemini", extra={"model": settings.gemini_model})
    return raw


def extract_json_object(raw: str | None) -> dict[str, Any] | None:
    """Pull the outermost JSON object out of a model reply (code fences and chatter allowed)."""
    if not raw:
        return None
    cleaned = raw.strip()
    if cleaned.startswith("```"):
        m = re.search(r"```(?:json)?\s*([\s\S]*?)```", cleaned)
        if m:
            cleaned = m.group(1).strip()
    start = cleaned.find("{")
    end = cleaned.rfind("}")
    if start == -1 or end <= start:
        return None
    try:
        data = json.loads(cleaned[start : end + 1])
    except json.JSONDecodeError:
        return None
    return data if isinstance(data, dict) else None


def analyze_deal(request: AnalyzeDealRequest, settings: Settings) -> DealInsight:
    try:
        if not request.target_payment or not request.best_payment:
            gap = (request.best_payment or 0) - (request.target_payment or 0)
            return DealInsight(
                status=gap_status(gap),
                analysis="Basic analysis - some inputs missing",
                strategy="Verify all deal details are entered.",
            )

        gap = request.best_payment - request.target_payment
        if not settings.advisory_enabled:
            logger.info("No advisory provider configured - using fallback logic", extra={"gap": gap})
            return fallback_insight(gap)

        system = INSIGHT_SYSTEM_PROMPT.format(rules=", ".join(request.bank_rules) or "standard")
        user = (
            f"Target:${request.target_payment:.0f}, Best:${request.best_payment:.0f}, Gap:${gap:.0f}, "
            f"Tier:{request.credit_tier or 'unknown'}, Price:${request.vehicle_price or 0:.0f}"
        )
        data = extract_json_object(_llm_complete(system, user, settings))
        if data is None:
            logger.warning("Advisory insight unavailable or unparseable - using fallback", extra={"gap": gap})
            return fallback_insight(gap)

        status = data.get("status")
        if status not in VALID_STATUSES:
            status = gap_status(gap)
        fallback = fallback_insight(gap)
        return DealInsight(
            status=status,
            analysis=str(data.get("analysis") or fallback.analysis),
            strategy=str(data.get("strategy") or fallback.strategy),
        )
    except Exception as e:
        logger.error("Unexpected advisory error: %s", e)
        return DealInsight(
            status="difficult",
            analysis="Analysis in progress. Review deal manually.",
            strategy="Use standard negotiation approach.",
        )


def triage_deal_id(index: int, candidate: DealCandidate) -> str:
    return f"deal-{index}-{candidate.lender_id}-{candidate.term_months}"


def build_triage_request(
    valid_deals: Sequence[DealCandidate],
    target_payment: float,
    mandatory: Sequence[str],
    max_deals: int = 10,
) -> TriageRequest:
    return TriageRequest(
        valid_deals=[
            TriageDeal(
                id=triage_deal_id(idx, d),
                payment=d.payment,
                net_check_to_dealer=d.net_check_to_dealer,
                has_gap=d.has_gap,
                has_vsc=d.has_vsc,
                ltv=d.ltv,
                term_months=d.term_months,
                lender_name=d.lender_name,
            )
            for idx, d in enumerate(valid_deals[:max_deals])
        ],
        target_payment=target_payment,
        mandatory_products=list(mandatory),
    )


def fallback_triage(request: TriageRequest) -> TriageResponse:
    deals = request.valid_deals
    if not deals:
        return TriageResponse(mode="survival", best_deal_id=None, reason="No compliant deals available", badge="No Deal")

    close_threshold = request.target_payment * SURVIVAL_THRESHOLD
    close = [d for d in deals if d.payment <= close_threshold]
    if close:
        best = sorted(close, key=lambda d: -d.net_check_to_dealer)[0]
        return TriageResponse(
            mode="profit",
            best_deal_id=best.id,
            reason=f"Payment ${best.payment:.0f} within target, maximizing profit",
            badge="💰 Max Profit",
        )
    best = sorted(deals, key=lambda d: d.payment)[0]
    return TriageResponse(
        mode="survival",
        best_deal_id=best.id,
        reason=f"Lowest payment ${best.payment:.0f} available",
        badge="⚠️ Lowest Possible",
    )


def triage_deals(request: TriageRequest, settings: Settings) -> TriageResponse:
    try:
        if len(request.valid_deals) > settings.triage_max_deals:
            request = request.model_copy(update={"valid_deals": request.valid_deals[: settings.triage_max_deals]})
        if not request.valid_deals or not settings.advisory_enabled:
            return fallback_triage(request)

        system = TRIAGE_SYSTEM_PROMPT.format(products=", ".join(request.mandatory_products) or "none")
        lines = [
            f"{d.id}: ${d.payment:.0f}/mo, net ${d.net_check_to_dealer:.0f}, {d.term_months}mo, "
            f"LTV {d.ltv:.0f}%, GAP={'Y' if d.has_gap else 'N'}, VSC={'Y' if d.has_vsc else 'N'}, {d.lender_name}"
            for d in request.valid_deals
        ]
        user = f"Target:${request.target_payment:.0f}\n" + "\n".join(lines)
        data = extract_json_object(_llm_complete(system, user, settings))

        ids = {d.id for d in request.valid_deals}
        if data is None or data.get("mode") not in VALID_MODES or data.get("bestDealId") not in ids:
            logger.warning("Advisory triage unavailable or out of contract - using fallback")
            return fallback_triage(request)
        return TriageResponse(
            mode=data["mode"],
            best_deal_id=data["bestDealId"],
            reason=str(data.get("reason") or ""),
            badge=str(data.get("badge") or ""),
        )
    except Exception as e:
        logger.error("Unexpected triage error: %s", e)
        return fallback_triage(request)


def select_triaged_deal(
    valid_deals: Sequence[DealCandidate],
    response: Optional[TriageResponse],
) -> Optional[DealCandidate]:
    """Map a triage pick back to its candidate; first valid deal when the id can't be resolved."""
    if not valid_deals:
        return None
    if response is None or not response.best_deal_id:
        return valid_deals[0]
    parts = response.best_deal_id.split("-")
    if len(parts) >= 4 and parts[1].isdigit():
        idx = int(parts[1])
        if idx < len(valid_deals):
            return valid_deals[idx]
    return valid_deals[0]
