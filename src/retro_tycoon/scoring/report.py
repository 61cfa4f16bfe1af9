"""
Product test reports.

Assembled at design-finalization time from the numeric core in
scoring.matrix and the templates in scoring.text. A report is computed on
demand and never stored in the game state.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from retro_tycoon.scoring import matrix, text

if TYPE_CHECKING:
    from retro_tycoon.catalog.hardware import HardwareCatalog
    from retro_tycoon.product.core import ComputerModel
    from retro_tycoon.scoring.advisor import PriceAdvisor, PriceRecommendation

logger = logging.getLogger(__name__)

CATEGORIES = ("gaming", "business", "workstation")


@dataclass
class CategoryResult:
    score: int
    rating: str
    comments: list[str]
    price_value: float
    applicable: bool = True


@dataclass
class CompatibilityReport:
    score: int
    bottlenecks: list[str]
    synergies: list[str]


@dataclass
class BuildQualityReport:
    score: int
    case_match: bool
    comment: str


@dataclass
class MarketImpact:
    reputation_change: int
    sales_boost: int
    competitor_response: str
    market_position: str


@dataclass
class TestResult:
    model_id: str
    year: int
    categories: dict[str, CategoryResult]
    compatibility: CompatibilityReport
    build_quality: BuildQualityReport
    overall_score: int
    overall_rating: str
    verdict: str
    market_impact: MarketImpact
    price_recommendation: PriceRecommendation | None = None
    component_scores: dict[str, dict[str, float]] = field(default_factory=dict)

    __test__ = False  # not a pytest class

    @property
    def price_values(self) -> list[float]:
        return [c.price_value for c in self.categories.values() if c.applicable]

    def to_dict(self) -> dict[str, Any]:
        return {
            "model_id": self.model_id,
            "year": self.year,
            "overall_score": self.overall_score,
            "overall_rating": self.overall_rating,
            "verdict": self.verdict,
            "categories": {
                k: {
                    "score": v.score,
                    "rating": v.rating,
                    "comments": list(v.comments),
                    "price_value": v.price_value,
                    "applicable": v.applicable,
                }
                for k, v in self.categories.items()
            },
            "compatibility": {
                "score": self.compatibility.score,
                "bottlenecks": list(self.compatibility.bottlenecks),
                "synergies": list(self.compatibility.synergies),
            },
            "build_quality": {
                "score": self.build_quality.score,
                "case_match": self.build_quality.case_match,
                "comment": self.build_quality.comment,
            },
            "market_impact": {
                "reputation_change": self.market_impact.reputation_change,
                "sales_boost": self.market_impact.sales_boost,
                "competitor_response": self.market_impact.competitor_response,
                "market_position": self.market_impact.market_position,
            },
            "price_recommendation": (
                None
                if self.price_recommendation is None
                else {
                    "has_recommendation": self.price_recommendation.has_recommendation,
                    "recommended_price": self.price_recommendation.recommended_price,
                    "reasoning": self.price_recommendation.reasoning,
                }
            ),
        }


class TestReportGenerator:
    """Scores a finished design for the year it ships."""

    __test__ = False  # not a pytest class

    def __init__(
        self,
        catalog: HardwareCatalog | None = None,
        config: dict[str, Any] | None = None,
    ) -> None:
        self.catalog = catalog
        scoring = (config or {}).get("simulation_parameters", {}).get("scoring", {})
        self.workstation_year = int(scoring.get("workstation_year", 1987))
        self.default_case_quality = float(scoring.get("default_case_quality", 70))

    def generate(
        self,
        model: ComputerModel,
        year: int,
        advisor: PriceAdvisor | None = None,
    ) -> TestResult:
        cpu = matrix.evaluate_component("cpu", model.cpu, self.catalog)
        gpu = matrix.evaluate_component("gpu", model.gpu, self.catalog)
        ram = matrix.evaluate_component("memory", model.ram, self.catalog)
        sound = matrix.evaluate_component("sound", model.sound, self.catalog)

        workstation_active = year >= self.workstation_year
        categories: dict[str, CategoryResult] = {}
        for category in CATEGORIES:
            if category == "workstation" and not workstation_active:
                categories[category] = CategoryResult(
                    score=0,
                    rating=text.NOT_APPLICABLE,
                    comments=[],
                    price_value=0.0,
                    applicable=False,
                )
                continue
            score = matrix.category_score(category, cpu, gpu, ram, sound)
            categories[category] = CategoryResult(
                score=score,
                rating=text.rating_label(score),
                comments=text.category_comments(category, score),
                price_value=matrix.price_value(
                    model.price, matrix.expected_price(category, year)
                ),
            )

        compat = matrix.compatibility(cpu.tier, gpu.tier, ram.tier, sound.tier)
        case_quality = model.case.quality if model.case else self.default_case_quality
        build = matrix.build_quality(
            cpu.business, gpu.gaming, ram.business, sound.gaming, case_quality
        )
        case_type = model.case.type if model.case else None
        case_match = matrix.case_matches(
            case_type, cpu.tier, gpu.tier, model.sound, bool(model.storage)
        )

        overall = matrix.overall_score(
            categories["gaming"].score,
            categories["business"].score,
            categories["workstation"].score,
            compat.score,
            build,
            workstation_active,
        )

        result = TestResult(
            model_id=model.id,
            year=year,
            categories=categories,
            compatibility=CompatibilityReport(
                score=compat.score,
                bottlenecks=text.compatibility_lines(compat.bottlenecks),
                synergies=text.compatibility_lines(compat.synergies),
            ),
            build_quality=BuildQualityReport(
                score=build,
                case_match=case_match,
                comment=text.case_comment(case_type, case_match),
            ),
            overall_score=overall,
            overall_rating=text.rating_label(overall),
            verdict=text.overall_verdict(overall),
            market_impact=MarketImpact(
                reputation_change=matrix.reputation_delta(overall),
                sales_boost=matrix.sales_boost(overall),
                competitor_response=text.competitor_response(overall),
                market_position=text.market_position_text(overall),
            ),
            component_scores={
                "cpu": {"gaming": cpu.gaming, "business": cpu.business, "tier": cpu.tier},
                "gpu": {"gaming": gpu.gaming, "business": gpu.business, "tier": gpu.tier},
                "memory": {"gaming": ram.gaming, "business": ram.business, "tier": ram.tier},
                "sound": {"gaming": sound.gaming, "business": sound.business, "tier": sound.tier},
            },
        )

        if advisor is not None:
            result.price_recommendation = advisor.recommend(
                model.id, model.price, result.price_values
            )

        logger.debug(
            "Test report %s (%d): overall=%d compat=%d build=%d",
            model.id,
            year,
            overall,
            compat.score,
            build,
        )
        return result
