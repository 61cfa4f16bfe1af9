"""
Scripted player for unattended campaigns.

A strategy preset fixes the quarterly budgets, the markup over BOM and the
case choice. Between turns the agent designs new models from the best parts
on the market, revises its newest model when better memory appears, retires
stale models and optionally funds research projects.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from retro_tycoon.agents.projects import ResearchProjectService
from retro_tycoon.catalog.status_guard import ModelStatusGuard, create_revision
from retro_tycoon.economy.cost import CostModel
from retro_tycoon.economy.pricing import PricingAnalyzer
from retro_tycoon.product.core import Budget, CaseSpec, ModelStatus
from retro_tycoon.product.design import (
    calculate_complexity,
    calculate_development_time,
    finalize_design,
)
from retro_tycoon.scoring.advisor import PriceAdvisor
from retro_tycoon.scoring.report import TestReportGenerator, TestResult

if TYPE_CHECKING:
    from retro_tycoon.catalog.hardware import HardwareCatalog
    from retro_tycoon.product.core import ComputerModel
    from retro_tycoon.simulation.rng import RandomSource
    from retro_tycoon.simulation.state import GameState

logger = logging.getLogger(__name__)

RETIRE_AFTER_QUARTERS = 6
MODEL_SERIES = ("Home", "Micro", "Star", "Nova", "Pro", "Vector", "Orbit", "Pulse")


@dataclass(frozen=True)
class StrategyPreset:
    name: str
    marketing: float
    development: float
    research: float
    markup: float
    case: str = "office"
    follow_price_advice: bool = False
    project_investment: float = 0.0


def load_strategy(config: dict[str, Any], name: str) -> StrategyPreset:
    """
    Build a preset from the `strategies` config block.

    Raises:
        KeyError: If the preset name is not configured
    """
    presets = config.get("simulation_parameters", {}).get("strategies", {})
    if name not in presets:
        raise KeyError(f"Unknown strategy '{name}'. Valid strategies: {list(presets)}")
    p = presets[name]
    return StrategyPreset(
        name=name,
        marketing=float(p.get("marketing", 0)),
        development=float(p.get("development", 0)),
        research=float(p.get("research", 0)),
        markup=float(p.get("markup", 1.8)),
        case=p.get("case", "office"),
        follow_price_advice=bool(p.get("follow_price_advice", False)),
        project_investment=float(p.get("project_investment", 0)),
    )


class PlayerAgent:
    """Makes the player's between-turn decisions for a strategy preset."""

    def __init__(
        self,
        strategy: StrategyPreset,
        catalog: HardwareCatalog,
        config: dict[str, Any],
        rng: RandomSource,
    ) -> None:
        self.strategy = strategy
        self.catalog = catalog
        self.pricing = PricingAnalyzer(catalog, CostModel(catalog, config), config)
        self.tester = TestReportGenerator(catalog, config)
        self.advisor = PriceAdvisor()
        self.projects = ResearchProjectService(rng, catalog, config)
        self.test_reports: list[TestResult] = []

    # --- Budget ---

    def plan_budget(self, state: GameState) -> Budget:
        """Preset budgets, scaled down to what the company can pay."""
        s = self.strategy
        total = s.marketing + s.development + s.research
        available = max(0.0, state.company.cash - state.pending_project_spend)
        factor = 1.0 if total <= available or total <= 0 else available / total
        return Budget(
            marketing=s.marketing * factor,
            development=s.development * factor,
            research=s.research * factor,
        )

    # --- Roster decisions ---

    def act(self, state: GameState) -> list[str]:
        """Apply this quarter's roster and research decisions to `state`."""
        actions = self.retire_models(state)

        in_development = ModelStatusGuard.development_models(state.models)
        relevant = ModelStatusGuard.market_relevant_models(state.models)
        if not in_development:
            if not relevant or state.quarter == 1:
                model = self.design_model(state)
                actions.append(f"designed {model.id}")
            elif state.quarter == 3:
                revision = self.revise_model(state, relevant[-1])
                if revision is not None:
                    actions.append(f"revised {revision.id}")

        if self.strategy.project_investment > 0:
            actions.extend(self.fund_research(state))
        return actions

    def retire_models(self, state: GameState) -> list[str]:
        """Discontinue superseded revisions and models past their selling life."""
        relevant_ids = {m.id for m in ModelStatusGuard.market_relevant_models(state.models)}
        retired = []
        for model in state.models:
            if model.status != ModelStatus.RELEASED:
                continue
            superseded = model.id not in relevant_ids
            stale = (
                model.quarters_since_release >= RETIRE_AFTER_QUARTERS
                and len(relevant_ids) > 1
            )
            if superseded or stale:
                model.discontinue()
                relevant_ids.discard(model.id)
                retired.append(f"discontinued {model.id}")
                logger.info("Discontinued %s", model.name)
        return retired

    def _best_part(self, category: str, state: GameState) -> str | None:
        part = self.catalog.best_available(
            category, state.year, state.quarter, include_exclusive=True
        )
        return part.name if part else None

    def _case(self) -> CaseSpec:
        spec = self.catalog.case_types.get(self.strategy.case, {})
        return CaseSpec(
            name=f"{self.strategy.case.title()} Case",
            type=self.strategy.case,
            quality=float(spec.get("quality", 70)),
            design=float(spec.get("design", 50)),
            price=float(spec.get("cost", 80)),
        )

    def design_model(self, state: GameState) -> ComputerModel:
        number = len({m.family_id for m in state.models}) + 1
        series = MODEL_SERIES[(number - 1) % len(MODEL_SERIES)]
        model = finalize_design(
            f"model-{number}",
            f"{state.company.name} {series} {state.year}",
            self.catalog,
            cpu=self._best_part("cpu", state) or "",
            ram=self._best_part("memory", state) or "",
            gpu=self._best_part("gpu", state),
            sound=self._best_part("sound", state),
            storage=self._best_part("storage", state),
            display=self._best_part("display", state),
            case=self._case(),
            price=0.0,
        )

        analysis = self.pricing.optimal_pricing(
            model, state.year, state.quarter, self.strategy.marketing
        )
        model.price = float(round(analysis.bom_cost * self.strategy.markup))
        self._review_price(model, state.year)

        state.add_model(model)
        logger.info(
            "Designed %s at $%.0f (BOM %.0f, profit-optimal $%.0f)",
            model.name,
            model.price,
            analysis.bom_cost,
            analysis.optimal_price,
        )
        return model

    def revise_model(self, state: GameState, parent: ComputerModel) -> ComputerModel | None:
        """New revision with the best memory on the market, if it beats the parent's."""
        best_ram = self._best_part("memory", state)
        if best_ram is None or self.catalog.performance(
            "memory", best_ram
        ) <= self.catalog.performance("memory", parent.ram):
            return None

        revision = create_revision(parent)
        revision.ram = best_ram
        revision.complexity = calculate_complexity(revision, self.catalog)
        revision.development_time = calculate_development_time(revision.complexity)
        revision.performance = self.catalog.average_performance(revision)
        revision.development_cost = self.catalog.baseline_bom(revision)
        self._review_price(revision, state.year)

        state.add_model(revision)
        logger.info("Revision %s: memory %s -> %s", revision.id, parent.ram, best_ram)
        return revision

    def _review_price(self, model: ComputerModel, year: int) -> None:
        report = self.tester.generate(model, year, self.advisor)
        self.test_reports.append(report)
        rec = report.price_recommendation
        if rec is None or not rec.has_recommendation:
            return
        if self.strategy.follow_price_advice:
            outcome = self.advisor.adopt(rec.id)
            if outcome.success and outcome.new_price is not None:
                model.price = outcome.new_price
        else:
            self.advisor.reject(rec.id)

    # --- Research projects ---

    def fund_research(self, state: GameState) -> list[str]:
        amount = self.strategy.project_investment
        if state.company.cash - state.pending_project_spend < amount * 2:
            return []
        actions = []
        active = self.projects.active_projects(state)
        if not active:
            project = self.projects.start_project(state, "gpu")
            actions.append(f"opened {project.id}")
            active = [project]
        project = active[0]
        component = self.projects.invest(state, project.id, min(amount, project.remaining))
        actions.append(f"invested in {project.id}")
        if component is not None:
            actions.append(f"unlocked {component.name}")
        return actions
