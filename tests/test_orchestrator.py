import copy

import pytest

from retro_tycoon.catalog.hardware import HardwareCatalog
from retro_tycoon.config.loader import load_market_definition, load_simulation_config
from retro_tycoon.generators.static_pool import NamePool
from retro_tycoon.product.core import Budget, CaseSpec, ComputerModel, ModelStatus
from retro_tycoon.simulation.orchestrator import TurnOrchestrator, winner_text
from retro_tycoon.simulation.rng import NumpyRandomSource
from retro_tycoon.simulation.state import GameState

POOL_SIZES = {"model_names": 40, "reporters": 20, "cities": 10}


def _setup(seed: int = 11, config: dict | None = None):
    config = config or load_simulation_config()
    market = load_market_definition()
    orchestrator = TurnOrchestrator(
        config,
        HardwareCatalog(),
        market,
        NumpyRandomSource(seed),
        name_pool=NamePool(seed=seed, pool_sizes=POOL_SIZES),
    )
    state = GameState.new_game("Retro Computing", config, market)
    return orchestrator, state


def _micro(model_id: str = "model-1", released: bool = True) -> ComputerModel:
    model = ComputerModel(
        id=model_id,
        name=f"Micro {model_id}",
        cpu="Zilog Z80",
        ram="16KB RAM",
        gpu="TI TMS9918",
        sound="PC Speaker",
        case=CaseSpec(name="Gamer Case", type="gamer", design=80),
        price=600.0,
        development_cost=20_000,
        development_time=1,
    )
    if released:
        model.release(1983, 1)
    return model


BUDGET = Budget(marketing=20_000, development=30_000, research=10_000)


def test_process_quarter_does_not_mutate_input():
    orchestrator, state = _setup()
    state.add_model(_micro())
    snapshot = copy.deepcopy(state)

    result = orchestrator.process_quarter(state, BUDGET)
    assert state == snapshot
    assert result.state is not state
    assert (result.state.year, result.state.quarter) == (1983, 2)


def test_same_seed_replays_identically():
    def run(seed):
        orchestrator, state = _setup(seed)
        state.add_model(_micro())
        reports = []
        for _ in range(6):
            result = orchestrator.process_quarter(state, BUDGET)
            state = result.state
            reports.append(result.report.summary())
        return reports, [c.market_share for c in state.competitors]

    assert run(5) == run(5)


def test_net_cash_flow_is_profit_minus_budgets():
    orchestrator, state = _setup()
    state.add_model(_micro())
    cash = state.company.cash

    result = orchestrator.process_quarter(state, BUDGET)
    report = result.report
    assert report.units_sold > 0
    assert report.net_cash_flow == pytest.approx(report.profit - BUDGET.total)
    assert result.state.company.cash == pytest.approx(cash + report.net_cash_flow)
    assert report.expense_breakdown["total"] == BUDGET.total
    assert report.revenue == pytest.approx(sum(r.revenue for r in report.model_results))
    assert result.state.company.monthly_income == pytest.approx(report.revenue / 3)


def test_development_releases_model():
    orchestrator, state = _setup()
    state.add_model(_micro(released=False))

    result = orchestrator.process_quarter(state, BUDGET)
    model = result.state.get_model("model-1")
    assert model.status == ModelStatus.RELEASED
    assert (model.release_year, model.release_quarter) == (1983, 1)
    assert result.report.released_models == ["model-1"]
    # Released this quarter, so it already sells
    assert model.units_sold > 0


def test_slow_development_takes_longer():
    orchestrator, state = _setup()
    model = _micro(released=False)
    model.development_time = 2
    state.add_model(model)

    result = orchestrator.process_quarter(state, Budget(development=15_000))
    assert result.state.get_model("model-1").status == ModelStatus.DEVELOPMENT
    assert result.state.get_model("model-1").development_progress == pytest.approx(25.0)


def test_discontinued_model_sells_nothing():
    orchestrator, state = _setup()
    model = _micro()
    model.units_sold = 5_000
    model.discontinue()
    state.add_model(model)

    result = orchestrator.process_quarter(state, BUDGET)
    assert result.report.units_sold == 0
    assert result.report.revenue == 0
    assert result.report.model_results == []
    assert result.state.get_model("model-1").units_sold == 5_000


def test_reputation_and_share_stay_in_range():
    orchestrator, state = _setup()
    state.add_model(_micro())
    for _ in range(8):
        result = orchestrator.process_quarter(state, BUDGET)
        state = result.state
        assert 0 <= state.company.reputation <= 100
        assert 0 <= state.company.market_share <= 100
        for model in state.models:
            assert model.obsolescence_factor >= 0.2


def test_research_spend_accumulates():
    orchestrator, state = _setup()
    result = orchestrator.process_quarter(state, BUDGET)
    result = orchestrator.process_quarter(result.state, BUDGET)
    assert result.state.total_research_spent == pytest.approx(20_000)


def test_news_and_market_data_every_quarter():
    orchestrator, state = _setup()
    state.add_model(_micro())
    result = orchestrator.process_quarter(state, BUDGET)
    assert result.news
    assert result.market_data.total_market_size == 5_000_000
    assert result.market_data.growth_rate == pytest.approx(0.15)
    assert len(result.market_data.top_products) <= 5
    shares = [p.market_share for p in result.market_data.top_products]
    assert shares == sorted(shares, reverse=True)


def test_simple_engine_from_config():
    config = load_simulation_config()
    config["simulation_parameters"]["demand"]["engine"] = "simple"
    orchestrator, state = _setup(config=config)
    state.add_model(_micro())
    result = orchestrator.process_quarter(state, BUDGET)
    assert result.report.demand_engine == "fallback"
    assert 100 <= result.report.units_sold < 1100


def test_game_end_is_terminal_and_idempotent():
    orchestrator, state = _setup()
    state.year, state.quarter = 1992, 4
    state.company.market_share = 99.0

    first = orchestrator.process_quarter(state, BUDGET)
    assert first.game_end is not None
    assert first.game_end.is_ended
    assert first.game_end.final_results.rank == 1
    assert first.state.company.cash == state.company.cash
    assert not state.game_over

    second = orchestrator.process_quarter(first.state, BUDGET)
    assert second.game_end == first.game_end
    assert (second.state.year, second.state.quarter) == (1992, 4)


def test_is_game_over_boundaries():
    orchestrator, _ = _setup()
    assert not orchestrator.is_game_over(1992, 3)
    assert orchestrator.is_game_over(1992, 4)
    assert orchestrator.is_game_over(1993, 1)


def test_winner_text_by_rank():
    assert winner_text(1, 40.0).startswith("You win!")
    assert "rank 2" in winner_text(2, 10.0)
    assert winner_text(5, 1.0).startswith("Rank 5")


def test_project_funding_is_paid_in_the_turn():
    orchestrator, state = _setup()
    state.pending_project_spend = 12_500
    cash = state.company.cash

    result = orchestrator.process_quarter(state, BUDGET)
    report = result.report
    assert report.expense_breakdown["projects"] == 12_500
    assert report.expense_breakdown["total"] == BUDGET.total + 12_500
    assert result.state.company.cash == pytest.approx(cash + report.profit - BUDGET.total - 12_500)
    assert result.state.pending_project_spend == 0.0
    assert state.pending_project_spend == 12_500


def test_market_share_counts_only_models_on_the_market():
    orchestrator, state = _setup()
    rival_units = sum(c.total_units_sold for c in state.competitors)

    first = _micro("model-1")
    first.units_sold = 4_000
    revision = _micro("model-1-rev2")
    revision.parent_model_id, revision.revision = "model-1", 2
    revision.units_sold = 1_000
    retired = _micro("model-2")
    retired.units_sold = 50_000
    retired.discontinue()
    for model in (first, revision, retired):
        state.add_model(model)

    expected = round(1_000 / (1_000 + rival_units) * 100, 2)
    assert orchestrator.calculate_market_share(state) == pytest.approx(expected)
