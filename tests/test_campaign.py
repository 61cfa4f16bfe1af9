import pytest

from retro_tycoon.catalog.status_guard import ModelStatusGuard
from retro_tycoon.simulation.campaign import Campaign


def test_short_campaign_runs():
    campaign = Campaign(seed=1983, strategy="balanced")
    end = campaign.run(quarters=8)
    assert end is None
    assert len(campaign.history) == 8
    assert (campaign.state.year, campaign.state.quarter) == (1985, 1)
    assert campaign.state.models
    assert ModelStatusGuard.total_units_sold(campaign.state.models) > 0
    assert campaign.violations == []


def test_full_campaign_reaches_the_end():
    campaign = Campaign(seed=7, strategy="premium")
    end = campaign.run()
    assert end is not None
    assert end.is_ended
    assert (campaign.state.year, campaign.state.quarter) == (1992, 4)
    # 1983Q1 through 1992Q3
    assert len(campaign.history) == 39
    assert 1 <= end.final_results.rank <= 1 + len(campaign.state.competitors)
    metrics = campaign.final_metrics()
    assert metrics["rank"] == end.final_results.rank
    assert "winner_text" in metrics


def test_same_seed_same_campaign():
    a = Campaign(seed=99, strategy="aggressive")
    b = Campaign(seed=99, strategy="aggressive")
    a.run(quarters=6)
    b.run(quarters=6)
    assert [r.summary() for r in a.history] == [r.summary() for r in b.history]


def test_report_text():
    campaign = Campaign(seed=3, strategy="frugal")
    campaign.run(quarters=2)
    report = campaign.generate_report()
    assert "RETRO TYCOON CAMPAIGN REPORT" in report
    assert "Campaign paused at 1983Q3" in report


def test_cash_moves_only_by_reported_cash_flow():
    """Research-project funding is paid inside the turn and shows up in the report."""
    campaign = Campaign(seed=7, strategy="premium")
    project_spend = 0.0
    for _ in range(8):
        cash_before = campaign.state.company.cash
        report = campaign.step().report
        assert campaign.state.company.cash - cash_before == pytest.approx(report.net_cash_flow)
        assert campaign.state.pending_project_spend == 0.0
        project_spend += report.expense_breakdown["projects"]
    assert project_spend > 0
