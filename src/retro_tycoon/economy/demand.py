"""
Per-segment demand model.

Units for one model in one segment are

    size x penetration x appeal/100 x price acceptance x competition
         x obsolescence x seasonality x marketing x variability

truncated to an integer. Appeal and the tuning curves are anchored to the
1983-1992 home computer market; scores for parts outside the tables fall
back to conservative defaults.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from retro_tycoon.economy.profit import ProfitBreakdown, calculate_profit_breakdown
from retro_tycoon.product.core import SEGMENTS, quarters_elapsed

if TYPE_CHECKING:
    from retro_tycoon.catalog.hardware import HardwareCatalog
    from retro_tycoon.economy.cost import CostModel
    from retro_tycoon.economy.obsolescence import ObsolescenceModel
    from retro_tycoon.product.core import Competitor, CompetitorModel, ComputerModel
    from retro_tycoon.simulation.rng import RandomSource

logger = logging.getLogger(__name__)

BASE_YEAR = 1983
WORKSTATION_YEAR = 1987

# --- Component appeal tables (0-100) ---

GAMER_GPU_SCORES = {
    "MOS VIC": 15,
    "TI TMS9918": 40,
    "Atari GTIA": 65,
    "Commodore VIC-II": 85,
    "EGA Graphics": 90,
    "VGA Graphics": 95,
    "Super VGA": 98,
}
GAMER_SOUND_SCORES = {
    "PC Speaker": 5,
    "AY-3-8910": 55,
    "SID 6581": 95,
    "Yamaha YM2149": 70,
    "AdLib Sound": 85,
    "Sound Blaster": 92,
    "Sound Blaster Pro": 98,
}
GAMER_CPU_SCORES = {
    "MOS 6502": 35,
    "Zilog Z80": 45,
    "Intel 8086": 25,
    "Motorola 68000": 85,
    "Intel 80286": 40,
    "Intel 80386": 50,
    "Intel 80486": 60,
}
BUSINESS_CPU_SCORES = {
    "MOS 6502": 15,
    "Zilog Z80": 25,
    "Intel 8086": 70,
    "Motorola 68000": 85,
    "Intel 80286": 95,
    "Intel 80386": 100,
    "Intel 80486": 100,
}
BUSINESS_RAM_SCORES = {
    "4KB RAM": 10,
    "16KB RAM": 25,
    "64KB RAM": 50,
    "256KB RAM": 80,
    "512KB RAM": 95,
    "1MB RAM": 100,
    "2MB RAM": 100,
}
WORKSTATION_CPU_SCORES = {
    "MOS 6502": 5,
    "Zilog Z80": 10,
    "Intel 8086": 30,
    "Motorola 68000": 70,
    "Intel 80286": 85,
    "Intel 80386": 100,
    "Intel 80486": 100,
}
WORKSTATION_RAM_SCORES = {
    "4KB RAM": 5,
    "16KB RAM": 10,
    "64KB RAM": 25,
    "256KB RAM": 60,
    "512KB RAM": 85,
    "1MB RAM": 100,
    "2MB RAM": 100,
}
COLOR_DISPLAYS = ("RGB Monitor", "EGA Monitor", "VGA Monitor", "Multisync Monitor")

DEFAULT_SEASONALITY = {
    "gamer": (0.8, 1.0, 1.1, 1.4),
    "business": (0.9, 1.0, 1.0, 1.2),
    "workstation": (1.0, 1.0, 1.0, 1.1),
}

# Marketing: (segment boost, reputation sensitivity)
MARKETING_PROFILES = {
    "gamer": (1.2, 0.4),
    "business": (1.0, 0.4),
    "workstation": (1.0, 0.8),
}

# Expected street price per segment, scaled by CPU class
EXPECTED_SEGMENT_PRICE = {"gamer": 600, "business": 1500, "workstation": 3000}
CPU_PRICE_MULTIPLIERS = {
    "MOS 6502": 0.8,
    "Zilog Z80": 0.9,
    "Intel 8086": 1.3,
    "Motorola 68000": 1.6,
    "Intel 80286": 2.0,
    "Intel 80386": 2.4,
    "Intel 80486": 2.8,
}


class DemandModelUnavailable(RuntimeError):
    """The calibrated demand model cannot run; callers switch to the fallback."""


@dataclass(frozen=True)
class MarketSegment:
    name: str
    size: int
    price_elasticity: float
    max_acceptable_price: float

    @property
    def active(self) -> bool:
        return self.size > 0


@dataclass(frozen=True)
class MarketModifiers:
    """Aggregate effect of active market events on demand."""

    market_growth: float = 0.0
    demand_shift: dict[str, float] = field(default_factory=dict)
    price_change: float = 0.0


def tech_trends(year: int) -> dict[str, float]:
    """Calendar-driven multipliers on how much buyers care about each part."""
    return {
        "cpu_demand": 0.8 + (year - BASE_YEAR) * 0.05,
        "graphics_demand": 1.2 if year >= 1985 else 0.9,
        "sound_demand": 1.1 if year >= 1984 else 0.8,
        "storage_demand": 1.3 if year >= 1986 else 1.0,
    }


NEUTRAL_TRENDS = {
    "cpu_demand": 1.0,
    "graphics_demand": 1.0,
    "sound_demand": 1.0,
    "storage_demand": 1.0,
}


def build_segments(year: int) -> dict[str, MarketSegment]:
    """Segment sizes and price ceilings grow with the calendar."""
    years = year - BASE_YEAR
    ws_years = year - WORKSTATION_YEAR
    return {
        "gamer": MarketSegment("gamer", 70_000 + 15_000 * years, 0.7, 800 + 100 * years),
        "business": MarketSegment(
            "business", 30_000 + 8_000 * years, 0.3, 2000 + 500 * years
        ),
        "workstation": MarketSegment(
            "workstation",
            5_000 + 2_000 * ws_years if year >= WORKSTATION_YEAR else 0,
            0.1,
            5000 + 1000 * max(0, ws_years),
        ),
    }


def _clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))


def _has_storage(model: ComputerModel, *keywords: str) -> bool:
    return bool(model.storage) and any(k in model.storage for k in keywords)


class AppealCalculator:
    """Segment appeal (0-100) of a configuration."""

    def __init__(self, catalog: HardwareCatalog) -> None:
        self.catalog = catalog

    def _score(
        self, table: dict[str, int], category: str, name: str | None, default: float
    ) -> float:
        if name in table:
            return float(table[name])
        # Custom chips carry their own rating
        component = self.catalog.get_component(category, name)
        if component is not None and component.exclusive:
            return component.performance
        return default

    def gamer(self, model: ComputerModel, trends: dict[str, float]) -> float:
        gpu = self._score(GAMER_GPU_SCORES, "gpu", model.gpu, 20)
        sound = self._score(GAMER_SOUND_SCORES, "sound", model.sound, 10)
        cpu = self._score(GAMER_CPU_SCORES, "cpu", model.cpu, 30)
        display = 90 if model.display in COLOR_DISPLAYS else 25
        design = model.case.design if model.case and model.case.type == "gamer" else 30

        appeal = (
            gpu * 0.35 * trends["graphics_demand"]
            + sound * 0.25 * trends["sound_demand"]
            + cpu * 0.15
            + display * 0.15
            + design * 0.10
        )
        return _clamp(appeal, 0, 100)

    def business(self, model: ComputerModel, trends: dict[str, float]) -> float:
        cpu = self._score(BUSINESS_CPU_SCORES, "cpu", model.cpu, 20)
        ram = self._score(BUSINESS_RAM_SCORES, "memory", model.ram, 15)
        storage = 85 if _has_storage(model, "Floppy", "Hard Disk") else 20
        if model.case and model.case.type == "office":
            case_quality = model.case.quality
        else:
            case_quality = (model.case.quality if model.case else 40) * 0.7

        appeal = (
            cpu * 0.45 * trends["cpu_demand"]
            + ram * 0.25
            + storage * 0.20 * trends["storage_demand"]
            + case_quality * 0.10
        )
        return _clamp(appeal, 0, 100)

    def workstation(self, model: ComputerModel, trends: dict[str, float]) -> float:
        cpu = self._score(WORKSTATION_CPU_SCORES, "cpu", model.cpu, 10)
        ram = self._score(WORKSTATION_RAM_SCORES, "memory", model.ram, 5)
        storage = 90 if _has_storage(model, "Hard Disk", "SCSI") else 15
        case_quality = model.case.quality if model.case else 50

        appeal = (
            cpu * 0.5 * trends["cpu_demand"]
            + ram * 0.3
            + storage * 0.15 * trends["storage_demand"]
            + case_quality * 0.05
        )
        return _clamp(appeal, 0, 100)

    def appeal(
        self, segment: str, model: ComputerModel, trends: dict[str, float]
    ) -> float:
        if segment == "gamer":
            return self.gamer(model, trends)
        if segment == "business":
            return self.business(model, trends)
        if segment == "workstation":
            return self.workstation(model, trends)
        raise ValueError(f"Unknown segment: {segment}")


def price_acceptance(
    price: float,
    segment: MarketSegment,
    appeal: float = 0.0,
    optimal_ratio: float = 0.7,
    floor_at_max: float = 0.7,
    steepness: float = 3.0,
) -> float:
    """
    Share of the segment still willing to pay `price` (0-1].

    Exactly 1.0 up to the optimal price (a fixed share of the ceiling),
    linear down to `floor_at_max` at the ceiling, exponential beyond it.
    High appeal (above 70) shrinks the shortfall by up to 30%.
    """
    max_price = segment.max_acceptable_price
    optimal = max_price * optimal_ratio
    if price <= optimal:
        return 1.0

    if price <= max_price:
        span = max_price - optimal
        base = 1.0 - (price - optimal) / span * (1.0 - floor_at_max) if span > 0 else 1.0
    else:
        overshoot = (price - max_price) / max_price if max_price > 0 else float("inf")
        base = floor_at_max * math.exp(-overshoot * segment.price_elasticity * steepness)

    appeal_bonus = _clamp((appeal - 70) / 100, 0.0, 0.3)
    return _clamp(1.0 - (1.0 - base) / (1.0 + appeal_bonus), 0.0, 1.0)


def competition_factor(
    price: float,
    our_performance: float,
    rival_models: list[CompetitorModel],
    price_window: float = 0.3,
    parity_band: float = 5.0,
    parity_factor: float = 0.92,
    superior_factor: float = 0.85,
    floor: float = 0.3,
) -> float:
    """Multiplicative penalty from rivals priced within +/- price_window."""
    factor = 1.0
    if price <= 0:
        return factor
    low, high = price * (1 - price_window), price * (1 + price_window)
    for rival in rival_models:
        if not low <= rival.price <= high:
            continue
        diff = rival.performance - our_performance
        if abs(diff) < parity_band:
            factor *= parity_factor
        elif diff > 0:
            factor *= superior_factor
    return max(floor, factor)


def seasonality_factor(
    segment: str, quarter: int, table: dict[str, Any] | None = None
) -> float:
    curve = (table or DEFAULT_SEASONALITY).get(segment, (1.0, 1.0, 1.0, 1.0))
    return float(curve[(quarter - 1) % 4])


def marketing_effectiveness(
    marketing_budget: float,
    reputation: float,
    segment: str,
    base_budget: float = 25_000,
) -> float:
    """sqrt(budget / base), scaled by reputation; clamped to [0.5, 3.0]."""
    if base_budget <= 0:
        return 1.0
    boost, sensitivity = MARKETING_PROFILES.get(segment, (1.0, 0.4))
    raw = math.sqrt(max(0.0, marketing_budget) / base_budget)
    reputation_scale = (1 - sensitivity / 2) + _clamp(reputation, 0, 100) / 100 * sensitivity
    return _clamp(raw * boost * reputation_scale, 0.5, 3.0)


def price_position(price: float) -> str:
    if price < 800:
        return "budget"
    if price < 2500:
        return "midrange"
    return "premium"


@dataclass(frozen=True)
class SegmentDemand:
    segment: str
    units: int
    revenue: float
    appeal: float
    price_acceptance: float
    competition_factor: float
    seasonality: float
    marketing_effectiveness: float


@dataclass(frozen=True)
class MarketPosition:
    rank: int
    market_share: float
    price_position: str


@dataclass(frozen=True)
class ModelSalesResult:
    """Quarter outcome for one model. Same shape from every demand engine."""

    model_id: str
    model_name: str
    price: float
    units_sold: int
    revenue: float
    bom_cost: float
    obsolescence_factor: float
    segments: dict[str, SegmentDemand]
    profit: ProfitBreakdown
    market_position: MarketPosition
    customer_satisfaction: float
    brand_impact: float
    engine: str = "full"

    def to_dict(self) -> dict[str, Any]:
        return {
            "model_id": self.model_id,
            "model_name": self.model_name,
            "price": self.price,
            "units_sold": self.units_sold,
            "revenue": self.revenue,
            "bom_cost": self.bom_cost,
            "obsolescence_factor": self.obsolescence_factor,
            "customer_satisfaction": self.customer_satisfaction,
            "brand_impact": self.brand_impact,
            "rank": self.market_position.rank,
            "market_share": self.market_position.market_share,
            "price_position": self.market_position.price_position,
            **{f"{k}_units": v.units for k, v in self.segments.items()},
            **self.profit.to_dict(),
        }


def released_rival_models(
    competitors: list[Competitor], year: int, quarter: int
) -> list[CompetitorModel]:
    return [
        m
        for c in competitors
        for m in c.models
        if quarters_elapsed(m.release_year, m.release_quarter, year, quarter) >= 0
    ]


def customer_satisfaction(
    model: ComputerModel, segments: dict[str, SegmentDemand]
) -> float:
    """Units-weighted mean of (appeal + price value) / 2 across segments."""
    total_units = sum(s.units for s in segments.values())
    if total_units <= 0:
        return 0.0
    cpu_mult = CPU_PRICE_MULTIPLIERS.get(model.cpu, 1.0)
    weighted = 0.0
    for name, seg in segments.items():
        expected = EXPECTED_SEGMENT_PRICE.get(name, 1000) * cpu_mult
        value = 100.0 if model.price <= 0 else min(100.0, expected / model.price * 100)
        weighted += (seg.appeal + value) / 2 * seg.units
    return round(weighted / total_units, 1)


def brand_impact(units: int, satisfaction: float) -> float:
    return min(30.0, min(10.0, units / 1000) + satisfaction / 100 * 20)


def market_position(
    model: ComputerModel,
    units: int,
    rival_models: list[CompetitorModel],
    segments: dict[str, MarketSegment],
) -> MarketPosition:
    lifetime = model.units_sold + units
    rank = 1 + sum(1 for r in rival_models if r.units_sold > lifetime)
    market_size = sum(s.size for s in segments.values())
    share = units / market_size * 100 if market_size > 0 else 0.0
    return MarketPosition(rank, round(share, 2), price_position(model.price))


class DemandEngine:
    """Calibrated per-segment demand and profit for released models."""

    name = "full"

    def __init__(
        self,
        catalog: HardwareCatalog,
        cost_model: CostModel,
        obsolescence: ObsolescenceModel,
        config: dict[str, Any],
        rng: RandomSource,
    ) -> None:
        self.catalog = catalog
        self.cost_model = cost_model
        self.obsolescence = obsolescence
        self.config = config
        self.rng = rng
        self.appeal = AppealCalculator(catalog)

        demand_config = config.get("simulation_parameters", {}).get("demand", {})
        comp_config = demand_config.get("competition", {})
        self.base_budget = float(demand_config.get("base_marketing_budget", 25_000))
        self.base_penetration = float(demand_config.get("base_penetration", 0.02))
        self.min_penetration = float(demand_config.get("min_penetration", 0.005))
        self.max_penetration = float(demand_config.get("max_penetration", 0.08))
        self.variability = float(demand_config.get("variability", 0.3))
        self.optimal_ratio = float(demand_config.get("optimal_price_ratio", 0.7))
        self.floor_at_max = float(demand_config.get("acceptance_floor_at_max", 0.7))
        self.steepness = float(demand_config.get("overprice_steepness", 3.0))
        self.seasonality = demand_config.get("seasonality", DEFAULT_SEASONALITY)
        self.competition = {
            "price_window": float(comp_config.get("price_window", 0.3)),
            "parity_band": float(comp_config.get("parity_band", 5)),
            "parity_factor": float(comp_config.get("parity_factor", 0.92)),
            "superior_factor": float(comp_config.get("superior_factor", 0.85)),
            "floor": float(comp_config.get("floor", 0.3)),
        }

    def segments_for(
        self, year: int, modifiers: MarketModifiers | None = None
    ) -> dict[str, MarketSegment]:
        segments = build_segments(year)
        if modifiers is None or modifiers.price_change == 0:
            return segments
        return {
            k: MarketSegment(
                s.name,
                s.size,
                s.price_elasticity,
                s.max_acceptable_price * (1 + modifiers.price_change),
            )
            for k, s in segments.items()
        }

    def penetration(self, segment: str, modifiers: MarketModifiers | None) -> float:
        lift = 1.0
        if modifiers is not None:
            lift += modifiers.market_growth + modifiers.demand_shift.get(segment, 0.0)
        return _clamp(
            self.base_penetration * lift, self.min_penetration, self.max_penetration
        )

    def simulate_model(
        self,
        model: ComputerModel,
        *,
        year: int,
        quarter: int,
        marketing_budget: float,
        reputation: float,
        competitors: list[Competitor],
        modifiers: MarketModifiers | None = None,
    ) -> ModelSalesResult:
        if not any(self.catalog.available(c, year, quarter) for c in ("cpu", "memory")):
            raise DemandModelUnavailable("hardware catalog holds no calibrated parts")

        trends = tech_trends(year)
        segments = self.segments_for(year, modifiers)
        rivals = released_rival_models(competitors, year, quarter)

        if model.release_year is not None and model.release_quarter is not None:
            obsolescence = self.obsolescence.factor(
                model.release_year, model.release_quarter, year, quarter
            )
        else:
            obsolescence = 1.0

        results: dict[str, SegmentDemand] = {}
        for name in SEGMENTS:
            segment = segments[name]
            if not segment.active:
                continue
            results[name] = self._segment_demand(
                model,
                segment,
                trends,
                rivals,
                quarter,
                marketing_budget,
                reputation,
                obsolescence,
                modifiers,
            )

        units = sum(s.units for s in results.values())
        bom = self.cost_model.calculate_current_cost(model, year, quarter)
        profit = calculate_profit_breakdown(
            units, model.price, bom, model.development_cost, marketing_budget, self.config
        )
        satisfaction = customer_satisfaction(model, results)

        logger.debug(
            "Demand %s %dQ%d: units=%d revenue=%.0f obsolescence=%.2f",
            model.id,
            year,
            quarter,
            units,
            profit.revenue,
            obsolescence,
        )

        return ModelSalesResult(
            model_id=model.id,
            model_name=model.name,
            price=model.price,
            units_sold=units,
            revenue=profit.revenue,
            bom_cost=bom,
            obsolescence_factor=obsolescence,
            segments=results,
            profit=profit,
            market_position=market_position(model, units, rivals, segments),
            customer_satisfaction=satisfaction,
            brand_impact=brand_impact(units, satisfaction),
            engine=self.name,
        )

    def _segment_demand(  # noqa: PLR0913
        self,
        model: ComputerModel,
        segment: MarketSegment,
        trends: dict[str, float],
        rivals: list[CompetitorModel],
        quarter: int,
        marketing_budget: float,
        reputation: float,
        obsolescence: float,
        modifiers: MarketModifiers | None,
    ) -> SegmentDemand:
        appeal = self.appeal.appeal(segment.name, model, trends)
        acceptance = price_acceptance(
            model.price,
            segment,
            appeal,
            self.optimal_ratio,
            self.floor_at_max,
            self.steepness,
        )
        # Rivals are compared against trend-free appeal
        neutral_appeal = self.appeal.appeal(segment.name, model, NEUTRAL_TRENDS)
        competition = competition_factor(
            model.price, neutral_appeal, rivals, **self.competition
        )
        season = seasonality_factor(segment.name, quarter, self.seasonality)
        marketing = marketing_effectiveness(
            marketing_budget, reputation, segment.name, self.base_budget
        )
        variability = 1 - self.variability + self.rng.random() * 2 * self.variability

        raw = (
            segment.size
            * self.penetration(segment.name, modifiers)
            * appeal
            / 100
            * acceptance
            * competition
            * obsolescence
            * season
            * marketing
            * variability
        )
        units = max(0, int(math.floor(raw)))
        return SegmentDemand(
            segment=segment.name,
            units=units,
            revenue=units * model.price,
            appeal=round(appeal, 2),
            price_acceptance=acceptance,
            competition_factor=competition,
            seasonality=season,
            marketing_effectiveness=marketing,
        )


class FallbackDemandEngine:
    """
    Simplified randomized estimate with the same result shape.

    Used when the calibrated model cannot run; units are spread across the
    active segments in proportion to their size.
    """

    name = "fallback"

    def __init__(
        self,
        catalog: HardwareCatalog,
        cost_model: CostModel,
        obsolescence: ObsolescenceModel,
        config: dict[str, Any],
        rng: RandomSource,
    ) -> None:
        self.catalog = catalog
        self.cost_model = cost_model
        self.obsolescence = obsolescence
        self.config = config
        self.rng = rng
        fallback = (
            config.get("simulation_parameters", {}).get("demand", {}).get("fallback", {})
        )
        self.min_units = int(fallback.get("min_units", 100))
        self.unit_spread = int(fallback.get("unit_spread", 1000))

    def simulate_model(
        self,
        model: ComputerModel,
        *,
        year: int,
        quarter: int,
        marketing_budget: float,
        reputation: float,
        competitors: list[Competitor],
        modifiers: MarketModifiers | None = None,
    ) -> ModelSalesResult:
        units = int(self.rng.random() * self.unit_spread + self.min_units)
        segments = build_segments(year)
        active = [s for s in segments.values() if s.active]
        total_size = sum(s.size for s in active)

        results: dict[str, SegmentDemand] = {}
        assigned = 0
        for i, seg in enumerate(active):
            if i == len(active) - 1:
                seg_units = units - assigned
            else:
                seg_units = int(units * seg.size / total_size)
            assigned += seg_units
            results[seg.name] = SegmentDemand(
                segment=seg.name,
                units=seg_units,
                revenue=seg_units * model.price,
                appeal=0.0,
                price_acceptance=1.0,
                competition_factor=1.0,
                seasonality=1.0,
                marketing_effectiveness=1.0,
            )

        if model.release_year is not None and model.release_quarter is not None:
            obsolescence = self.obsolescence.factor(
                model.release_year, model.release_quarter, year, quarter
            )
        else:
            obsolescence = 1.0
        bom = self.cost_model.calculate_current_cost(model, year, quarter)
        profit = calculate_profit_breakdown(
            units, model.price, bom, model.development_cost, marketing_budget, self.config
        )
        rivals = released_rival_models(competitors, year, quarter)
        return ModelSalesResult(
            model_id=model.id,
            model_name=model.name,
            price=model.price,
            units_sold=units,
            revenue=profit.revenue,
            bom_cost=bom,
            obsolescence_factor=obsolescence,
            segments=results,
            profit=profit,
            market_position=market_position(model, units, rivals, segments),
            customer_satisfaction=0.0,
            brand_impact=brand_impact(units, 0.0),
            engine=self.name,
        )
