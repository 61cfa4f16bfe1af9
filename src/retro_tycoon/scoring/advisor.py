from __future__ import annotations

import logging
from dataclasses import dataclass
from statistics import fmean

logger = logging.getLogger(__name__)

POOR_VALUE = 60
VERY_POOR_VALUE = 40
STRONG_VALUE = 85


@dataclass
class PriceRecommendation:
    id: str
    model_id: str
    current_price: float
    recommended_price: float
    reasoning: str
    has_recommendation: bool = True
    status: str = "pending"  # pending | adopted | rejected


@dataclass(frozen=True)
class AdoptResult:
    success: bool
    new_price: float | None = None


class PriceAdvisor:
    """
    Per-session store of advisory price changes.

    Recommendations are suggestions only; callers apply an adopted price to
    their model themselves.
    """

    def __init__(self) -> None:
        self._recommendations: dict[str, PriceRecommendation] = {}
        self._sequence = 0

    def recommend(
        self, model_id: str, current_price: float, price_values: list[float]
    ) -> PriceRecommendation:
        values = [v for v in price_values if v is not None]
        average = fmean(values) if values else 0.0

        if values and average < POOR_VALUE:
            cut = 0.20 if average < VERY_POOR_VALUE else 0.10
            recommended = round(current_price * (1 - cut))
            reasoning = (
                f"Average price value {average:.0f} is weak; "
                f"cutting the price by {cut:.0%} should lift sales."
            )
        elif values and average > STRONG_VALUE:
            recommended = round(current_price * 1.15)
            reasoning = (
                f"Average price value {average:.0f} is strong; "
                "the market will accept a 15% higher price."
            )
        else:
            return PriceRecommendation(
                id="",
                model_id=model_id,
                current_price=current_price,
                recommended_price=current_price,
                reasoning="Current price is in line with the market.",
                has_recommendation=False,
                status="none",
            )

        self._sequence += 1
        recommendation = PriceRecommendation(
            id=f"rec-{model_id}-{self._sequence}",
            model_id=model_id,
            current_price=current_price,
            recommended_price=float(recommended),
            reasoning=reasoning,
        )
        self._recommendations[recommendation.id] = recommendation
        logger.debug(
            "Price recommendation %s: %.0f -> %.0f",
            recommendation.id,
            current_price,
            recommended,
        )
        return recommendation

    def get(self, recommendation_id: str) -> PriceRecommendation | None:
        return self._recommendations.get(recommendation_id)

    def pending(self, model_id: str | None = None) -> list[PriceRecommendation]:
        return [
            r for r in self._recommendations.values()
            if r.status == "pending" and (model_id is None or r.model_id == model_id)
        ]

    def adopt(self, recommendation_id: str) -> AdoptResult:
        recommendation = self._recommendations.get(recommendation_id)
        if recommendation is None or recommendation.status != "pending":
            return AdoptResult(success=False)
        recommendation.status = "adopted"
        return AdoptResult(success=True, new_price=recommendation.recommended_price)

    def reject(self, recommendation_id: str) -> bool:
        recommendation = self._recommendations.get(recommendation_id)
        if recommendation is None or recommendation.status != "pending":
            return False
        recommendation.status = "rejected"
        return True
