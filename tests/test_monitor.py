import dataclasses
import math

import pytest

from retro_tycoon.config.loader import load_simulation_config
from retro_tycoon.economy.demand import MarketPosition, ModelSalesResult
from retro_tycoon.economy.obsolescence import ObsolescenceInfo
from retro_tycoon.economy.profit import ProfitBreakdown, calculate_profit_breakdown
from retro_tycoon.product.core import Company
from retro_tycoon.simulation.monitor import (
    CampaignMonitor,
    EconomyAuditor,
    WelfordAccumulator,
)
from retro_tycoon.simulation.orchestrator import QuarterReport
from retro_tycoon.simulation.state import GameState


def _result(units=100, price=500.0, profit=None) -> ModelSalesResult:
    profit = profit or calculate_profit_breakdown(units, price, 200.0, 10_000, 5_000)
    return ModelSalesResult(
        model_id="model-1",
        model_name="Micro",
        price=price,
        units_sold=units,
        revenue=units * price,
        bom_cost=200.0,
        obsolescence_factor=1.0,
        segments={},
        profit=profit,
        market_position=MarketPosition(1, 0.1, "budget"),
        customer_satisfaction=50.0,
        brand_impact=1.0,
    )


def _report(**kwargs) -> QuarterReport:
    return QuarterReport(year=1984, quarter=1, **kwargs)


def test_welford_matches_batch_statistics():
    values = [3.0, 7.0, 7.0, 19.0]
    acc = WelfordAccumulator()
    for v in values:
        acc.update(v)
    mean = sum(values) / len(values)
    var = sum((v - mean) ** 2 for v in values) / (len(values) - 1)
    assert acc.count == 4
    assert acc.mean == pytest.approx(mean)
    assert acc.std_dev == pytest.approx(math.sqrt(var))


def test_monitor_skips_quarters_without_sales():
    monitor = CampaignMonitor(load_simulation_config())
    monitor.record(_report())
    assert monitor.get_report()["revenue"]["quarters"] == 0

    monitor.record(_report(revenue=50_000, profit_margin=12.0, market_share=3.0,
                           model_results=[_result()]))
    report = monitor.get_report()
    assert report["revenue"]["quarters"] == 1
    assert report["profit_margin"]["status"] == "OK"
    assert report["market_share"]["status"] == "OK"


def test_monitor_flags_drift():
    monitor = CampaignMonitor(load_simulation_config())
    monitor.record(_report(profit_margin=-90.0, market_share=80.0, model_results=[_result()]))
    report = monitor.get_report()
    assert report["profit_margin"]["status"] == "DRIFT"
    assert report["market_share"]["status"] == "HIGH"


def test_auditor_accepts_consistent_quarter():
    auditor = EconomyAuditor(load_simulation_config())
    state = GameState(company=Company(name="Acme"))
    report = _report(
        model_results=[_result()],
        obsolescence={"model-1": ObsolescenceInfo(0.85, 1)},
    )
    assert auditor.audit(report, state) == []


def test_auditor_reports_broken_revenue_and_floor():
    auditor = EconomyAuditor(load_simulation_config())
    state = GameState(company=Company(name="Acme"))
    bad = dataclasses.replace(_result(), revenue=1.0)
    report = _report(
        model_results=[bad],
        obsolescence={"model-1": ObsolescenceInfo(0.1, 9)},
    )
    violations = auditor.audit(report, state)
    assert any("units x price" in v for v in violations)
    assert any("below floor" in v for v in violations)


def test_profit_breakdown_identity_is_exact():
    p = ProfitBreakdown(1000.0, 300.0, 50.0, 100.0, 24.0, 50.0)
    assert p.net_profit == 476.0
    assert p.gross_profit == 700.0
    assert p.profit_margin == pytest.approx(47.6)
