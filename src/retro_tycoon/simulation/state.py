from __future__ import annotations

import enum
from dataclasses import asdict, dataclass, field
from typing import Any

from retro_tycoon.agents.competitors import load_competitors
from retro_tycoon.agents.projects import ResearchProject
from retro_tycoon.product.core import (
    CaseSpec,
    Company,
    Competitor,
    CompetitorModel,
    ComputerModel,
    CustomChip,
    ExclusiveComponent,
    ModelStatus,
)
from retro_tycoon.simulation.events import ActiveMarketEvent, MarketEvent


@dataclass
class GameState:
    """
    Everything the turn orchestrator reads and writes for one session.

    Resolved before a turn runs; the orchestrator returns an updated copy
    and never touches the instance it was given.
    """

    company: Company
    year: int = 1983
    quarter: int = 1
    models: list[ComputerModel] = field(default_factory=list)
    competitors: list[Competitor] = field(default_factory=list)
    custom_chips: list[CustomChip] = field(default_factory=list)
    exclusive_components: list[ExclusiveComponent] = field(default_factory=list)
    research_projects: dict[str, ResearchProject] = field(default_factory=dict)
    active_events: list[ActiveMarketEvent] = field(default_factory=list)
    total_research_spent: float = 0.0
    # Project funding committed since the last processed quarter
    pending_project_spend: float = 0.0
    game_over: bool = False

    def __post_init__(self) -> None:
        if not 1 <= self.quarter <= 4:
            raise ValueError(f"Quarter must be 1-4, got {self.quarter}")

    @classmethod
    def new_game(
        cls,
        company_name: str,
        config: dict[str, Any],
        market_definition: dict[str, Any],
    ) -> GameState:
        sim_params = config.get("simulation_parameters", {})
        calendar = sim_params.get("calendar", {})
        company_config = sim_params.get("company", {})
        company = Company(
            name=company_name,
            cash=float(company_config.get("starting_cash", 100_000)),
            reputation=float(company_config.get("starting_reputation", 50)),
            market_share=float(company_config.get("starting_market_share", 0)),
            employees=int(company_config.get("employees", 5)),
        )
        return cls(
            company=company,
            year=int(calendar.get("start_year", 1983)),
            quarter=int(calendar.get("start_quarter", 1)),
            competitors=load_competitors(market_definition),
        )

    def get_model(self, model_id: str) -> ComputerModel | None:
        return next((m for m in self.models if m.id == model_id), None)

    def add_model(self, model: ComputerModel) -> None:
        if self.get_model(model.id) is not None:
            raise ValueError(f"Model {model.id} already exists")
        self.models.append(model)

    def to_dict(self) -> dict[str, Any]:
        """JSON-compatible snapshot for export and external save stores."""
        return _jsonable(asdict(self))

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> GameState:
        """Rebuild a state from to_dict() output."""
        models = []
        for m in data.get("models", []):
            fields = dict(m)
            if fields.get("case") is not None:
                fields["case"] = CaseSpec(**fields["case"])
            fields["status"] = ModelStatus(fields["status"])
            models.append(ComputerModel(**fields))

        competitors = []
        for c in data.get("competitors", []):
            fields = dict(c)
            fields["models"] = [CompetitorModel(**m) for m in fields.get("models", [])]
            # JSON object keys are strings
            fields["share_anchors"] = {
                int(year): float(share)
                for year, share in fields.get("share_anchors", {}).items()
            }
            competitors.append(Competitor(**fields))

        active_events = []
        for a in data.get("active_events", []):
            fields = dict(a)
            fields["event"] = MarketEvent(**fields["event"])
            active_events.append(ActiveMarketEvent(**fields))

        return cls(
            company=Company(**data["company"]),
            year=int(data.get("year", 1983)),
            quarter=int(data.get("quarter", 1)),
            models=models,
            competitors=competitors,
            custom_chips=[CustomChip(**c) for c in data.get("custom_chips", [])],
            exclusive_components=[
                ExclusiveComponent(**e) for e in data.get("exclusive_components", [])
            ],
            research_projects={
                key: ResearchProject(**p)
                for key, p in data.get("research_projects", {}).items()
            },
            active_events=active_events,
            total_research_spent=float(data.get("total_research_spent", 0.0)),
            pending_project_spend=float(data.get("pending_project_spend", 0.0)),
            game_over=bool(data.get("game_over", False)),
        )


def _jsonable(value: Any) -> Any:
    if isinstance(value, enum.Enum):
        return value.value
    if isinstance(value, dict):
        return {str(k): _jsonable(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_jsonable(v) for v in value]
    return value
