"""
Quarter time-stepper.

One call to TurnOrchestrator.process_quarter advances a game session by a
single quarter: development, cost and age refresh, research roll, market
events, per-model demand and profit, company update, rival moves, news and
market data. The caller's GameState is never modified; the updated state is
returned inside the TurnResult.
"""

from __future__ import annotations

import copy
import logging
import math
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from retro_tycoon.agents.competitors import CompetitorAI, CompetitorUpdate
from retro_tycoon.agents.research import CustomChipGenerator
from retro_tycoon.catalog.status_guard import ModelStatusGuard
from retro_tycoon.economy.cost import CostModel
from retro_tycoon.economy.demand import (
    DemandEngine,
    DemandModelUnavailable,
    FallbackDemandEngine,
    MarketModifiers,
    ModelSalesResult,
)
from retro_tycoon.economy.obsolescence import ObsolescenceInfo, ObsolescenceModel
from retro_tycoon.generators.news import NewsGenerator, NewsItem, NewsRegistry
from retro_tycoon.generators.static_pool import NamePool
from retro_tycoon.product.core import next_quarter
from retro_tycoon.simulation.events import MarketEventManager

if TYPE_CHECKING:
    from retro_tycoon.catalog.hardware import HardwareCatalog
    from retro_tycoon.product.core import Budget, CustomChip
    from retro_tycoon.simulation.rng import RandomSource
    from retro_tycoon.simulation.state import GameState

logger = logging.getLogger(__name__)

BASE_YEAR = 1983
COST_LINES = (
    "bom_costs",
    "development_costs",
    "marketing_costs",
    "production_costs",
    "fixed_overhead",
)


@dataclass(frozen=True)
class TopProduct:
    name: str
    company: str
    units_sold: int
    market_share: float


@dataclass(frozen=True)
class MarketData:
    total_market_size: int
    growth_rate: float
    top_products: list[TopProduct]


@dataclass(frozen=True)
class FinalResults:
    rank: int
    market_share: float
    revenue: float
    custom_chip_count: int


@dataclass(frozen=True)
class GameEndCondition:
    is_ended: bool
    winner_text: str
    final_results: FinalResults


@dataclass
class QuarterReport:
    """Quarter totals and deltas. Output only, never stored in the state."""

    year: int
    quarter: int
    revenue: float = 0.0
    profit: float = 0.0
    net_cash_flow: float = 0.0
    units_sold: int = 0
    profit_margin: float = 0.0
    expense_breakdown: dict[str, float] = field(default_factory=dict)
    cost_breakdown: dict[str, float] = field(default_factory=dict)
    cash: float = 0.0
    market_share: float = 0.0
    market_share_delta: float = 0.0
    reputation: float = 0.0
    reputation_delta: float = 0.0
    model_results: list[ModelSalesResult] = field(default_factory=list)
    released_models: list[str] = field(default_factory=list)
    obsolescence: dict[str, ObsolescenceInfo] = field(default_factory=dict)
    active_events: list[str] = field(default_factory=list)
    demand_engine: str = "full"
    decay_stats: dict[str, Any] = field(default_factory=dict)

    def summary(self) -> dict[str, Any]:
        """Flat row for quarter-level export."""
        return {
            "year": self.year,
            "quarter": self.quarter,
            "revenue": self.revenue,
            "profit": self.profit,
            "net_cash_flow": self.net_cash_flow,
            "units_sold": self.units_sold,
            "profit_margin": round(self.profit_margin, 2),
            "cash": self.cash,
            "market_share": self.market_share,
            "market_share_delta": self.market_share_delta,
            "reputation": self.reputation,
            "reputation_delta": self.reputation_delta,
            "models_on_sale": len(self.model_results),
            "released_models": len(self.released_models),
            "active_events": ";".join(self.active_events),
            "demand_engine": self.demand_engine,
            **{f"expense_{k}": v for k, v in self.expense_breakdown.items()},
            **self.cost_breakdown,
        }


@dataclass
class TurnResult:
    state: GameState
    report: QuarterReport
    competitor_update: CompetitorUpdate = field(default_factory=CompetitorUpdate)
    new_custom_chip: CustomChip | None = None
    news: list[NewsItem] = field(default_factory=list)
    market_data: MarketData | None = None
    game_end: GameEndCondition | None = None

    @property
    def competitors(self) -> list[Any]:
        return self.state.competitors


def winner_text(rank: int, market_share: float) -> str:
    if rank == 1:
        return (
            f"You win! With {market_share:.1f}% market share you rule "
            "the home computer era."
        )
    if rank <= 3:
        return f"Strong showing: rank {rank} in the home computer era."
    return (
        f"Rank {rank}. The home computer era is over, "
        "but the lessons learned remain."
    )


class TurnOrchestrator:
    """Sequences every engine once per quarter."""

    def __init__(
        self,
        config: dict[str, Any],
        catalog: HardwareCatalog,
        market_definition: dict[str, Any],
        rng: RandomSource,
        registry: NewsRegistry | None = None,
        name_pool: NamePool | None = None,
    ) -> None:
        # 1. Configuration
        self.config = config
        self.catalog = catalog
        self.rng = rng
        sim_params = config.get("simulation_parameters", {})
        calendar = sim_params.get("calendar", {})
        self.end_year = int(calendar.get("end_year", 1992))
        self.end_quarter = int(calendar.get("end_quarter", 4))
        self.months_per_quarter = int(calendar.get("months_per_quarter", 3))

        dev_config = sim_params.get("development", {})
        self.baseline_dev_budget = float(dev_config.get("baseline_budget", 30_000))
        self.min_speed = float(dev_config.get("min_speed", 0.5))
        self.max_speed = float(dev_config.get("max_speed", 2.0))

        rep_config = sim_params.get("reputation", {})
        self.sales_bonus = float(rep_config.get("sales_bonus", 2))
        self.no_sales_penalty = float(rep_config.get("no_sales_penalty", -1))
        self.max_share_swing = float(rep_config.get("max_share_swing", 3))
        self.research_bonus_threshold = float(
            rep_config.get("research_bonus_threshold", 50_000)
        )
        self.research_bonus = float(rep_config.get("research_bonus", 1))

        market_config = sim_params.get("market", {})
        self.base_market_size = float(market_config.get("base_total_size", 5_000_000))
        self.yearly_growth = float(market_config.get("yearly_growth", 0.3))
        self.top_products = int(market_config.get("top_products", 5))

        # 2. Economy engines
        self.cost_model = CostModel(catalog, config)
        self.obsolescence = ObsolescenceModel(config)
        self.fallback_engine = FallbackDemandEngine(
            catalog, self.cost_model, self.obsolescence, config, rng
        )
        engine_name = sim_params.get("demand", {}).get("engine", "full")
        if engine_name == "simple":
            self.demand_engine: DemandEngine | FallbackDemandEngine = self.fallback_engine
        else:
            self.demand_engine = DemandEngine(
                catalog, self.cost_model, self.obsolescence, config, rng
            )

        # 3. Agents
        self.name_pool = name_pool or NamePool()
        self.research = CustomChipGenerator(config, rng, catalog)
        self.competitor_ai = CompetitorAI(config, market_definition, rng, self.name_pool)
        self.events = MarketEventManager(config, market_definition, rng)

        # 4. Narrative (per-session dedup)
        self.registry = registry if registry is not None else NewsRegistry()
        self.news = NewsGenerator(rng, self.registry, self.name_pool, market_definition)

    # --- End of game ---

    def is_game_over(self, year: int, quarter: int) -> bool:
        return year > self.end_year or (
            year == self.end_year and quarter >= self.end_quarter
        )

    def final_results(self, state: GameState) -> GameEndCondition:
        share = state.company.market_share
        rank = 1 + sum(1 for c in state.competitors if c.market_share > share)
        return GameEndCondition(
            is_ended=True,
            winner_text=winner_text(rank, share),
            final_results=FinalResults(
                rank=rank,
                market_share=share,
                revenue=ModelStatusGuard.total_revenue(state.models),
                custom_chip_count=len(state.custom_chips),
            ),
        )

    def _terminal_result(self, state: GameState) -> TurnResult:
        state.game_over = True
        report = QuarterReport(
            year=state.year,
            quarter=state.quarter,
            cash=state.company.cash,
            market_share=state.company.market_share,
            reputation=state.company.reputation,
        )
        return TurnResult(state=state, report=report, game_end=self.final_results(state))

    # --- Turn entry point ---

    def process_quarter(self, state: GameState, budget: Budget) -> TurnResult:
        state = copy.deepcopy(state)
        year, quarter = state.year, state.quarter

        # 1. End of game: terminal and idempotent
        if state.game_over or self.is_game_over(year, quarter):
            logger.info("Game over at %dQ%d", year, quarter)
            return self._terminal_result(state)

        for part in [*state.custom_chips, *state.exclusive_components]:
            self.catalog.register_custom(part)

        report = QuarterReport(year=year, quarter=quarter)
        share_before = state.company.market_share
        reputation_before = state.company.reputation

        # 2. Development
        report.released_models = self._advance_development(state, budget)

        # 3. Cost decay and obsolescence
        report.obsolescence = self._refresh_released_models(state)
        report.decay_stats = self.cost_model.get_decay_stats(year, quarter)

        # 4. Research roll
        state.total_research_spent += budget.research
        chip = self.research.roll(state.total_research_spent, year, quarter, state.custom_chips)
        if chip is not None:
            state.custom_chips.append(chip)
            self.catalog.register_custom(chip)

        # 5. Market events
        state.active_events = self.events.tick(state.active_events)
        new_event = self.events.check_trigger(year, quarter)
        if new_event is not None:
            state.active_events.append(new_event)
            logger.info("Market event: %s", new_event.event.title)
        modifiers = self.events.modifiers(state.active_events)
        report.active_events = [a.event.id for a in state.active_events]

        # 6. Demand and profit for market-relevant models
        self._run_demand(state, budget, modifiers, report)

        # 7. Cash flow: model profit minus the quarter's budgets and project funding
        projects = state.pending_project_spend
        state.pending_project_spend = 0.0
        expenses = budget.total + projects
        report.expense_breakdown = {
            "marketing": budget.marketing,
            "development": budget.development,
            "research": budget.research,
            "projects": projects,
            "total": expenses,
        }
        report.net_cash_flow = report.profit - expenses
        self._update_company(state, report, budget)

        # 8. Competitor AI
        competitor_update = self.competitor_ai.update(
            state.competitors, year, quarter, state.company.market_share
        )

        # 9. News and market data
        market_data = self.market_data(state, report.model_results)
        news = self.news.generate_quarter_news(
            year,
            quarter,
            market_data={
                "total_market_size": market_data.total_market_size,
                "top": [p.name for p in market_data.top_products],
            },
            new_hardware=[c.name for c in self.catalog.newly_available(year, quarter)],
            competitor_releases=[
                {"company": r.competitor_name, "model": r.model.name}
                for r in competitor_update.releases
            ],
            event=_event_payload(new_event.event) if new_event is not None else None,
        )
        if chip is not None:
            item = self.news.generate(
                "tech",
                year,
                quarter,
                {"hardware": [chip.name], "custom_chip": chip.id},
            )
            if item is not None:
                news.append(item)

        # 10. Snapshot and advance the calendar
        report.cash = state.company.cash
        report.market_share = state.company.market_share
        report.market_share_delta = round(state.company.market_share - share_before, 2)
        report.reputation = state.company.reputation
        report.reputation_delta = state.company.reputation - reputation_before
        state.year, state.quarter = next_quarter(year, quarter)

        logger.info(
            "%dQ%d: revenue=%.0f profit=%.0f cash_flow=%.0f units=%d share=%.2f%%",
            year,
            quarter,
            report.revenue,
            report.profit,
            report.net_cash_flow,
            report.units_sold,
            report.market_share,
        )

        return TurnResult(
            state=state,
            report=report,
            competitor_update=competitor_update,
            new_custom_chip=chip,
            news=news,
            market_data=market_data,
        )

    # --- Steps ---

    def development_speed(self, development_budget: float) -> float:
        if self.baseline_dev_budget <= 0:
            return self.max_speed
        ratio = development_budget / self.baseline_dev_budget
        return max(self.min_speed, min(self.max_speed, ratio))

    def _advance_development(self, state: GameState, budget: Budget) -> list[str]:
        speed = self.development_speed(budget.development)
        released = []
        for model in ModelStatusGuard.development_models(state.models):
            increment = 100 / model.development_time * speed
            if model.advance_development(increment):
                model.release(state.year, state.quarter)
                released.append(model.id)
                logger.info("Released %s (%s) in %dQ%d", model.name, model.id, state.year, state.quarter)
        return released

    def _refresh_released_models(self, state: GameState) -> dict[str, ObsolescenceInfo]:
        infos = {}
        for model in ModelStatusGuard.market_relevant_models(state.models):
            model.current_cost = self.cost_model.calculate_current_cost(
                model, state.year, state.quarter
            )
            info = self.obsolescence.info(
                model.release_year or state.year,
                model.release_quarter or state.quarter,
                state.year,
                state.quarter,
            )
            model.obsolescence_factor = info.factor
            model.quarters_since_release = info.quarters
            infos[model.id] = info
        return infos

    def _simulate(
        self,
        model: Any,
        state: GameState,
        marketing: float,
        modifiers: MarketModifiers,
    ) -> ModelSalesResult:
        kwargs = {
            "year": state.year,
            "quarter": state.quarter,
            "marketing_budget": marketing,
            "reputation": state.company.reputation,
            "competitors": state.competitors,
            "modifiers": modifiers,
        }
        try:
            return self.demand_engine.simulate_model(model, **kwargs)
        except DemandModelUnavailable as e:
            logger.warning("Demand model unavailable (%s), using fallback estimate", e)
            return self.fallback_engine.simulate_model(model, **kwargs)

    def _run_demand(
        self,
        state: GameState,
        budget: Budget,
        modifiers: MarketModifiers,
        report: QuarterReport,
    ) -> None:
        relevant = ModelStatusGuard.market_relevant_models(state.models)
        marketing_each = budget.marketing / len(relevant) if relevant else 0.0
        cost_totals = {line: 0.0 for line in COST_LINES}
        engines = set()

        for model in relevant:
            result = self._simulate(model, state, marketing_each, modifiers)
            model.units_sold += result.units_sold
            engines.add(result.engine)
            report.model_results.append(result)
            report.units_sold += result.units_sold
            report.revenue += result.revenue
            report.profit += result.profit.net_profit
            for line in COST_LINES:
                cost_totals[line] += getattr(result.profit, line)

        report.cost_breakdown = cost_totals
        report.profit_margin = (
            report.profit / report.revenue * 100 if report.revenue > 0 else 0.0
        )
        if engines:
            report.demand_engine = "fallback" if "fallback" in engines else "full"

    def calculate_market_share(self, state: GameState) -> float:
        """
        Share of cumulative units: the player's models on the market (newest
        revision per family) against every rival model ever sold.
        """
        player_units = sum(
            m.units_sold for m in ModelStatusGuard.market_relevant_models(state.models)
        )
        rival_units = sum(c.total_units_sold for c in state.competitors)
        total = player_units + rival_units
        if total <= 0:
            return 0.0
        return round(min(100.0, player_units / total * 100), 2)

    def _update_company(
        self, state: GameState, report: QuarterReport, budget: Budget
    ) -> None:
        company = state.company
        company.cash += report.net_cash_flow

        old_share = company.market_share
        company.market_share = self.calculate_market_share(state)

        delta = 0.0
        if report.units_sold > 0:
            delta += self.sales_bonus
        elif report.model_results:
            delta += self.no_sales_penalty
        swing = company.market_share - old_share
        delta += max(-self.max_share_swing, min(self.max_share_swing, swing))
        if budget.research > self.research_bonus_threshold:
            delta += self.research_bonus
        company.reputation = max(0.0, min(100.0, company.reputation + delta))

        company.quarterly_revenue = report.revenue
        company.quarterly_profit = report.profit
        company.monthly_income = report.revenue / self.months_per_quarter
        company.monthly_expenses = (
            report.revenue - report.net_cash_flow
        ) / self.months_per_quarter

    def market_data(
        self, state: GameState, results: list[ModelSalesResult]
    ) -> MarketData:
        years = state.year - BASE_YEAR
        total_size = math.floor(self.base_market_size * (1 + years * self.yearly_growth))
        growth = self.yearly_growth if years > 0 else self.yearly_growth / 2

        candidates = [
            (r.model_name, state.company.name, r.units_sold)
            for r in results
            if r.units_sold > 0
        ]
        for competitor in state.competitors:
            candidates.extend(
                (m.name, competitor.name, m.units_sold)
                for m in competitor.models
                if m.units_sold > 0
            )
        candidates.sort(key=lambda c: c[2], reverse=True)
        listed = sum(c[2] for c in candidates)
        top = [
            TopProduct(name, company, units, round(units / listed * 100, 2))
            for name, company, units in candidates[: self.top_products]
        ]
        return MarketData(total_market_size=total_size, growth_rate=growth, top_products=top)


def _event_payload(event: Any) -> dict[str, Any]:
    return {
        "id": event.id,
        "title": event.title,
        "description": event.description,
        "market_growth": event.market_growth,
        "price_change": event.price_change,
        "demand_shift": dict(event.demand_shift),
    }
