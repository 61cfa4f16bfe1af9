from __future__ import annotations

import enum
from dataclasses import dataclass, field

QUARTERS_PER_YEAR = 4
SEGMENTS = ("gamer", "business", "workstation")


def quarters_elapsed(
    from_year: int, from_quarter: int, to_year: int, to_quarter: int
) -> int:
    """Signed number of quarters between two calendar points."""
    return (to_year - from_year) * QUARTERS_PER_YEAR + (to_quarter - from_quarter)


def next_quarter(year: int, quarter: int) -> tuple[int, int]:
    if quarter >= QUARTERS_PER_YEAR:
        return year + 1, 1
    return year, quarter + 1


class ModelStatus(enum.Enum):
    DEVELOPMENT = "development"
    RELEASED = "released"
    DISCONTINUED = "discontinued"  # Terminal, kept in the roster


# One-way lifecycle; no skipping, no reversal
ALLOWED_TRANSITIONS = {
    ModelStatus.DEVELOPMENT: ModelStatus.RELEASED,
    ModelStatus.RELEASED: ModelStatus.DISCONTINUED,
}


class InvalidStatusTransition(ValueError):
    """Raised when a model is asked to move against its lifecycle."""


@dataclass
class CaseSpec:
    """Enclosure chosen for a model. `type` is "gamer" or "office"."""

    name: str
    type: str
    quality: float = 70.0
    design: float = 50.0
    price: float = 80.0

    def __post_init__(self) -> None:
        if self.type not in ("gamer", "office"):
            raise ValueError(f"Unknown case type: {self.type}")
        if not 0 <= self.quality <= 100:
            raise ValueError("Case quality must be within [0, 100]")


@dataclass
class ComputerModel:
    """
    A player-designed computer.

    Component fields hold catalog part names (or custom chip names).
    Lifecycle is DEVELOPMENT -> RELEASED -> DISCONTINUED; models are
    never removed from the roster, only flagged discontinued.
    """

    id: str
    name: str
    cpu: str
    ram: str
    gpu: str | None = None
    sound: str | None = None
    storage: str | None = None
    display: str | None = None
    accessories: list[str] = field(default_factory=list)
    case: CaseSpec | None = None

    # Business data
    price: float = 0.0
    development_cost: float = 0.0
    performance: float = 0.0
    complexity: float = 0.0
    status: ModelStatus = ModelStatus.DEVELOPMENT
    development_progress: float = 0.0
    development_time: int = 1

    # Sales data
    release_year: int | None = None
    release_quarter: int | None = None
    units_sold: int = 0

    # Revision chain
    revision: int = 1
    parent_model_id: str | None = None

    # Refreshed every turn for released models
    obsolescence_factor: float = 1.0
    quarters_since_release: int = 0
    current_cost: float = 0.0

    def __post_init__(self) -> None:
        if not self.id:
            raise ValueError("Model ID cannot be empty")
        if self.price < 0:
            raise ValueError(f"Model {self.id}: price must be >= 0")
        if not 0 <= self.development_progress <= 100:
            raise ValueError(f"Model {self.id}: progress must be within [0, 100]")
        if self.development_time < 1:
            raise ValueError(f"Model {self.id}: development time must be >= 1")

    @property
    def family_id(self) -> str:
        return self.parent_model_id or self.id

    @property
    def is_released(self) -> bool:
        return self.status == ModelStatus.RELEASED

    def components(self) -> dict[str, str]:
        """Category -> part name for every fitted component."""
        parts = {"cpu": self.cpu, "memory": self.ram}
        for category, name in (
            ("gpu", self.gpu),
            ("sound", self.sound),
            ("storage", self.storage),
            ("display", self.display),
        ):
            if name:
                parts[category] = name
        return parts

    def transition_to(self, status: ModelStatus) -> None:
        if ALLOWED_TRANSITIONS.get(self.status) != status:
            raise InvalidStatusTransition(
                f"Model {self.id}: {self.status.value} -> {status.value} not allowed"
            )
        self.status = status

    def advance_development(self, increment: float) -> bool:
        """
        Adds progress (capped at 100). Returns True once progress is complete.
        """
        if self.status != ModelStatus.DEVELOPMENT:
            return False
        self.development_progress = min(
            100.0, self.development_progress + max(0.0, increment)
        )
        return self.development_progress >= 100.0

    def release(self, year: int, quarter: int) -> None:
        self.transition_to(ModelStatus.RELEASED)
        self.development_progress = 100.0
        self.release_year = year
        self.release_quarter = quarter

    def discontinue(self) -> None:
        self.transition_to(ModelStatus.DISCONTINUED)


@dataclass
class Company:
    """The player's company. Mutated only by the turn orchestrator."""

    name: str
    cash: float = 100_000.0
    reputation: float = 50.0
    market_share: float = 0.0
    employees: int = 5

    # Snapshot of the last processed quarter
    monthly_income: float = 0.0
    monthly_expenses: float = 0.0
    quarterly_revenue: float = 0.0
    quarterly_profit: float = 0.0

    def __post_init__(self) -> None:
        if not 0 <= self.reputation <= 100:
            raise ValueError("Reputation must be within [0, 100]")
        if not 0 <= self.market_share <= 100:
            raise ValueError("Market share must be within [0, 100]")


@dataclass(frozen=True)
class Budget:
    """Per-quarter spending decided by the player."""

    marketing: float = 0.0
    development: float = 0.0
    research: float = 0.0

    def __post_init__(self) -> None:
        if min(self.marketing, self.development, self.research) < 0:
            raise ValueError("Budgets cannot be negative")

    @property
    def total(self) -> float:
        return self.marketing + self.development + self.research


@dataclass
class CustomChip:
    """Exclusive part unlocked by the budget roll. Exclusive for good."""

    id: str
    type: str
    name: str
    performance: float
    cost: float
    description: str
    developed_year: int
    developed_quarter: int
    exclusive_to_player: bool = True


@dataclass
class ExclusiveComponent:
    """Exclusive part produced by a completed research project."""

    id: str
    type: str
    name: str
    performance: float
    cost: float
    description: str
    developed_year: int
    developed_quarter: int
    exclusive_until_year: int
    exclusive_until_quarter: int
    project_id: str
    bonus_features: list[str] = field(default_factory=list)

    def is_available(self, year: int, quarter: int) -> bool:
        return (
            quarters_elapsed(self.developed_year, self.developed_quarter, year, quarter)
            >= 0
        )

    def is_exclusive(self, year: int, quarter: int) -> bool:
        return self.is_available(year, quarter) and (
            quarters_elapsed(
                year, quarter, self.exclusive_until_year, self.exclusive_until_quarter
            )
            >= 0
        )


@dataclass
class CompetitorModel:
    name: str
    price: float
    performance: float
    units_sold: int
    release_year: int
    release_quarter: int


@dataclass
class Competitor:
    """A rival manufacturer and its product line."""

    id: str
    name: str
    market_share: float
    reputation: float
    marketing_budget: float
    development_budget: float
    models: list[CompetitorModel] = field(default_factory=list)

    # Positioning
    price_multiplier: float = 1.0
    performance_multiplier: float = 1.0
    release_propensity: float = 0.3
    share_anchors: dict[int, float] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if not self.id:
            raise ValueError("Competitor ID cannot be empty")

    @property
    def total_units_sold(self) -> int:
        return sum(m.units_sold for m in self.models)
