from __future__ import annotations

import logging
from typing import Any

from retro_tycoon.agents.player import PlayerAgent, load_strategy
from retro_tycoon.catalog.hardware import HardwareCatalog
from retro_tycoon.config.loader import load_market_definition, load_simulation_config
from retro_tycoon.generators.news import NewsRegistry
from retro_tycoon.generators.static_pool import NamePool
from retro_tycoon.simulation.monitor import CampaignMonitor, EconomyAuditor
from retro_tycoon.simulation.orchestrator import (
    GameEndCondition,
    QuarterReport,
    TurnOrchestrator,
    TurnResult,
)
from retro_tycoon.simulation.rng import NumpyRandomSource
from retro_tycoon.simulation.snapshot import load_snapshot, save_snapshot
from retro_tycoon.simulation.state import GameState
from retro_tycoon.simulation.writer import SimulationWriter
from retro_tycoon.writers import StaticWriter

logger = logging.getLogger(__name__)


class Campaign:
    """A full unattended game session: player agent, orchestrator, monitors, export."""

    def __init__(  # noqa: PLR0913
        self,
        seed: int = 1983,
        strategy: str = "balanced",
        company_name: str = "Retro Computing",
        config: dict[str, Any] | None = None,
        output_dir: str = "data/output",
        enable_logging: bool = False,
        streaming: bool = False,
        output_format: str = "csv",
    ) -> None:
        # 1. Configuration and static data
        self.config = config if config is not None else load_simulation_config()
        self.market_definition = load_market_definition()
        self.catalog = HardwareCatalog()
        self.seed = seed

        # 2. Session-scoped randomness and narrative state
        self.rng = NumpyRandomSource(seed)
        self.name_pool = NamePool(seed=seed)
        self.registry = NewsRegistry()

        # 3. Engines and player
        self.orchestrator = TurnOrchestrator(
            self.config,
            self.catalog,
            self.market_definition,
            self.rng,
            self.registry,
            self.name_pool,
        )
        self.player = PlayerAgent(
            load_strategy(self.config, strategy), self.catalog, self.config, self.rng
        )
        self.state = GameState.new_game(company_name, self.config, self.market_definition)

        # 4. Validation and export
        self.monitor = CampaignMonitor(self.config)
        self.auditor = EconomyAuditor(self.config)
        self.writer = SimulationWriter(
            output_dir=output_dir,
            enable_logging=enable_logging,
            streaming=streaming,
            output_format=output_format,
        )
        self.output_dir = output_dir
        self.enable_logging = enable_logging

        self.history: list[QuarterReport] = []
        self.violations: list[str] = []
        self.game_end: GameEndCondition | None = None

    def step(self) -> TurnResult:
        if not self.state.game_over and not self.orchestrator.is_game_over(
            self.state.year, self.state.quarter
        ):
            for action in self.player.act(self.state):
                logger.debug("%dQ%d player: %s", self.state.year, self.state.quarter, action)
        budget = self.player.plan_budget(self.state)

        result = self.orchestrator.process_quarter(self.state, budget)
        self.state = result.state

        if result.game_end is not None:
            self.game_end = result.game_end
            return result

        self.monitor.record(result.report)
        violations = self.auditor.audit(result.report, self.state)
        for v in violations:
            logger.warning("Audit %dQ%d: %s", result.report.year, result.report.quarter, v)
        self.violations.extend(violations)
        self.writer.log_quarter(result)
        self.history.append(result.report)
        return result

    def run(self, quarters: int | None = None) -> GameEndCondition | None:
        """Play `quarters` turns, or until the game ends when None."""
        played = 0
        with self.writer.streaming_context():
            while quarters is None or played < quarters:
                result = self.step()
                if result.game_end is not None:
                    logger.info(result.game_end.winner_text)
                    break
                played += 1
        return self.game_end

    def final_metrics(self) -> dict[str, Any]:
        company = self.state.company
        metrics: dict[str, Any] = {
            "seed": self.seed,
            "strategy": self.player.strategy.name,
            "quarters_played": len(self.history),
            "final_year": self.state.year,
            "final_quarter": self.state.quarter,
            "cash": company.cash,
            "reputation": company.reputation,
            "market_share": company.market_share,
            "models": len(self.state.models),
            "custom_chips": len(self.state.custom_chips),
            "exclusive_components": len(self.state.exclusive_components),
            "total_revenue": sum(r.revenue for r in self.history),
            "total_profit": sum(r.profit for r in self.history),
            "total_units": sum(r.units_sold for r in self.history),
            "news_items": len(self.registry),
            "audit_violations": len(self.violations),
            "kpis": self.monitor.get_report(),
        }
        if self.game_end is not None:
            metrics["rank"] = self.game_end.final_results.rank
            metrics["winner_text"] = self.game_end.winner_text
        return metrics

    def generate_report(self) -> str:
        """Plain-text campaign summary: sales, money and standing."""
        metrics = self.final_metrics()
        kpis = metrics["kpis"]
        standing = (
            self.game_end.winner_text
            if self.game_end is not None
            else f"Campaign paused at {self.state.year}Q{self.state.quarter}"
        )
        summary = [
            "==================================================",
            "            RETRO TYCOON CAMPAIGN REPORT          ",
            "==================================================",
            f"1. SALES (Units Sold):          {metrics['total_units']:,}",
            f"2. MONEY (Cash on Hand):        ${metrics['cash']:,.0f}",
            f"3. STANDING (Market Share):     {metrics['market_share']:.2f}%",
            "--------------------------------------------------",
            f"Total Revenue:                  ${metrics['total_revenue']:,.0f}",
            f"Total Model Profit:             ${metrics['total_profit']:,.0f}",
            f"Mean Profit Margin:             {kpis['profit_margin']['mean']:.1f}%"
            f" ({kpis['profit_margin']['status']})",
            f"Reputation:                     {metrics['reputation']:.0f}",
            f"Models / Custom Chips:          {metrics['models']} / {metrics['custom_chips']}",
            f"Audit Violations:               {metrics['audit_violations']}",
            "--------------------------------------------------",
            standing,
            "==================================================",
        ]
        return "\n".join(summary)

    def save_game(self, path: str) -> None:
        save_snapshot(self.state, path, self.config, self.market_definition, self.seed)

    def load_game(self, path: str) -> None:
        """Continue from a saved state. The random stream restarts from this campaign's seed."""
        self.state = load_snapshot(path, self.config, self.market_definition)
        for part in [*self.state.custom_chips, *self.state.exclusive_components]:
            self.catalog.register_custom(part)
        if self.state.game_over:
            self.game_end = self.orchestrator.final_results(self.state)

    def save_results(self) -> None:
        self.writer.save(self.final_metrics())
        if self.enable_logging:
            static = StaticWriter(self.output_dir)
            static.write_components(self.catalog)
            static.write_competitors(self.state.competitors)
            static.write_models(self.state.models)
