"""
Investment-tracked research projects.

Independent of the per-quarter budget roll: the player opens a project,
funds it over one or more quarters, and on reaching the cost threshold
receives an exclusive part for a fixed two-year window.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from retro_tycoon.product.core import ExclusiveComponent

if TYPE_CHECKING:
    from retro_tycoon.catalog.hardware import HardwareCatalog
    from retro_tycoon.simulation.rng import RandomSource
    from retro_tycoon.simulation.state import GameState

logger = logging.getLogger(__name__)

BASE_PROJECT_COST = 50_000
EXCLUSIVITY_YEARS = 2

# type: (cost multiplier, perf low, perf span, cost low, cost span, bonus features)
PROJECT_SPECS: dict[str, tuple[float, int, int, int, int, list[str]]] = {
    "gpu": (2.5, 85, 15, 180, 50, ["Hardware acceleration", "Extended palette", "Anti-aliasing"]),
    "sound": (1.8, 80, 20, 120, 40, ["16-bit audio", "Surround sound", "Hardware reverb"]),
    "cpu": (3.5, 90, 10, 350, 100, ["Extended instruction set", "Cache tuning", "Deeper pipeline"]),
    "case": (1.2, 75, 25, 250, 150, ["Modular design", "Premium materials", "Tool-free assembly"]),
}

PROJECT_PREFIXES = ["Project", "Codename", "Operation"]
PROJECT_NAMES = {
    "gpu": ["Phoenix", "Titan", "Vortex", "Quantum", "Nexus"],
    "sound": ["Harmony", "Resonance", "Crystal", "Symphony", "Echo"],
    "cpu": ["Lightning", "Thunder", "Velocity", "Apex", "Prime"],
    "case": ["Phantom", "Elite", "Prestige", "Infinity", "Zenith"],
}


@dataclass(frozen=True)
class ResearchPath:
    type: str
    name: str
    description: str
    estimated_quarters: str


@dataclass
class ResearchProject:
    id: str
    name: str
    project_type: str
    total_cost: int
    target_performance: int
    target_cost: int
    description: str
    started_year: int
    started_quarter: int
    bonus_features: list[str] = field(default_factory=list)
    invested: float = 0.0
    completed: bool = False
    completed_year: int | None = None
    completed_quarter: int | None = None

    @property
    def progress(self) -> float:
        if self.total_cost <= 0:
            return 100.0
        return min(100.0, self.invested / self.total_cost * 100)

    @property
    def remaining(self) -> float:
        return max(0.0, self.total_cost - self.invested)


def available_research_paths(year: int) -> list[ResearchPath]:
    """Graphics and sound are always open; case from 1984, CPU from 1985."""
    paths = [
        ResearchPath("gpu", "Exclusive graphics chip", "Proprietary video processor", "3-4"),
        ResearchPath("sound", "Exclusive sound chip", "Premium audio technology", "2-3"),
    ]
    if year >= 1985:
        paths.append(ResearchPath("cpu", "Exclusive processor", "Specialised CPU design", "4-6"))
    if year >= 1984:
        paths.append(ResearchPath("case", "Premium case design", "Modular enclosure", "2"))
    return paths


def exclusivity_end(year: int, quarter: int) -> tuple[int, int]:
    return year + EXCLUSIVITY_YEARS, quarter


class ResearchProjectService:
    """Opens, funds and completes research projects on a game state."""

    def __init__(
        self,
        rng: RandomSource,
        catalog: HardwareCatalog | None = None,
        config: dict[str, Any] | None = None,
    ) -> None:
        self.rng = rng
        self.catalog = catalog
        calendar = (config or {}).get("simulation_parameters", {}).get("calendar", {})
        self.start_year = int(calendar.get("start_year", 1983))

    def generate_name(self, project_type: str) -> str:
        prefix = self.rng.choice(PROJECT_PREFIXES)
        name = self.rng.choice(PROJECT_NAMES[project_type])
        return f"{prefix} {name}"

    def start_project(self, state: GameState, project_type: str) -> ResearchProject:
        open_types = {p.type for p in available_research_paths(state.year)}
        if project_type not in open_types:
            raise ValueError(
                f"Research path {project_type!r} is not open in {state.year}"
            )

        multiplier, perf_low, perf_span, cost_low, cost_span, bonus = PROJECT_SPECS[
            project_type
        ]
        year_multiplier = 1 + (state.year - self.start_year) * 0.3
        project = ResearchProject(
            id=f"project-{project_type}-{state.year}q{state.quarter}-{len(state.research_projects) + 1}",
            name=self.generate_name(project_type),
            project_type=project_type,
            total_cost=round(BASE_PROJECT_COST * multiplier * year_multiplier),
            target_performance=perf_low + self.rng.integers(0, perf_span),
            target_cost=cost_low + self.rng.integers(0, cost_span),
            description=f"Exclusive {project_type} development {state.year}",
            started_year=state.year,
            started_quarter=state.quarter,
            bonus_features=list(bonus),
        )
        state.research_projects[project.id] = project
        logger.info("Research project opened: %s (%s, $%d)", project.name, project.id, project.total_cost)
        return project

    def invest(
        self, state: GameState, project_id: str, amount: float
    ) -> ExclusiveComponent | None:
        """
        Commit funds to a project. The amount is queued on the state and paid
        out of cash by the next processed quarter. Returns the exclusive part
        when this investment completes the project.

        Raises:
            KeyError: unknown project
            ValueError: non-positive amount or already completed project
        """
        project = state.research_projects[project_id]
        if project.completed:
            raise ValueError(f"Project {project_id} is already completed")
        if amount <= 0:
            raise ValueError("Investment must be positive")

        project.invested += amount
        state.pending_project_spend += amount
        if project.invested < project.total_cost:
            return None

        project.completed = True
        project.completed_year = state.year
        project.completed_quarter = state.quarter
        until_year, until_quarter = exclusivity_end(state.year, state.quarter)
        component = ExclusiveComponent(
            id=f"exclusive-{project.id}",
            type=project.project_type,
            name=f"{project.name} {project.project_type.upper()}",
            performance=project.target_performance,
            cost=project.target_cost,
            description=project.description,
            developed_year=state.year,
            developed_quarter=state.quarter,
            exclusive_until_year=until_year,
            exclusive_until_quarter=until_quarter,
            project_id=project.id,
            bonus_features=list(project.bonus_features),
        )
        state.exclusive_components.append(component)
        if self.catalog is not None:
            self.catalog.register_custom(component)
        logger.info(
            "Research project %s completed; exclusive until %dQ%d",
            project.name,
            until_year,
            until_quarter,
        )
        return component

    @staticmethod
    def active_projects(state: GameState) -> list[ResearchProject]:
        return [p for p in state.research_projects.values() if not p.completed]

    @staticmethod
    def exclusive_components(state: GameState) -> list[ExclusiveComponent]:
        """Parts still inside their exclusivity window at the state's date."""
        return [
            c for c in state.exclusive_components
            if c.is_exclusive(state.year, state.quarter)
        ]
