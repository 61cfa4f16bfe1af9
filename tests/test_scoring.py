import pytest

from retro_tycoon.catalog.hardware import HardwareCatalog
from retro_tycoon.product.core import CaseSpec, ComputerModel, CustomChip
from retro_tycoon.scoring import matrix, text
from retro_tycoon.scoring.advisor import PriceAdvisor
from retro_tycoon.scoring.report import TestReportGenerator


def _model(**overrides) -> ComputerModel:
    fields = {
        "id": "model-1",
        "name": "Retro 16",
        "cpu": "Intel 80286",
        "ram": "256KB RAM",
        "gpu": "VGA Graphics",
        "sound": "AY-3-8910",
        "case": CaseSpec(name="Office Case", type="office", quality=80),
        "price": 1000.0,
    }
    fields.update(overrides)
    return ComputerModel(**fields)


# --- Numeric core ---


def test_category_score_blend():
    cpu = matrix.evaluate_component("cpu", "Intel 80286")
    gpu = matrix.evaluate_component("gpu", "VGA Graphics")
    ram = matrix.evaluate_component("memory", "256KB RAM")
    sound = matrix.evaluate_component("sound", "AY-3-8910")
    assert matrix.category_score("gaming", cpu, gpu, ram, sound) == 78


def test_unknown_component_gets_category_default():
    assert matrix.evaluate_component("gpu", None) == matrix.DEFAULT_SCORES["gpu"]
    assert matrix.evaluate_component("cpu", "Mystery CPU").tier == 1


def test_custom_chip_scored_by_performance():
    catalog = HardwareCatalog()
    catalog.register_custom(
        CustomChip("custom-gpu-1985-1", "gpu", "Pixel GPU-1985", 84, 60, "", 1985, 1)
    )
    score = matrix.evaluate_component("gpu", "Pixel GPU-1985", catalog)
    assert score.gaming == 84
    assert score.tier == 7


def test_compatibility_balanced_build():
    result = matrix.compatibility(5, 5, 4, 2)
    assert result.score == 98
    assert result.synergies == ("cpu_ram_balance", "cpu_gpu_power")
    assert result.bottlenecks == ()


def test_compatibility_bottlenecks():
    result = matrix.compatibility(7, 1, 1, 1)
    assert result.score == 53
    assert result.bottlenecks == ("ram_starves_cpu", "cpu_gpu_mismatch")


def test_compatibility_clamped_at_100():
    result = matrix.compatibility(7, 6, 7, 7)
    assert result.score == 100
    assert "high_end" in result.synergies
    assert "multimedia" in result.synergies


def test_ram_oversized():
    assert "ram_oversized" in matrix.compatibility(1, 1, 5, 1).bottlenecks


def test_build_quality():
    assert matrix.build_quality(100, 100, 100, 100, 100) == 98
    assert matrix.build_quality(0, 0, 0, 0, 0) == 0


def test_rating_thresholds():
    assert matrix.rating_tier(95) == 1
    assert matrix.rating_tier(94.9) == 2
    assert matrix.rating_tier(40) == 7
    assert matrix.rating_tier(39) == 8
    assert text.rating_label(97) == "Outstanding"
    assert text.rating_label(10) == "Unacceptable"


def test_expected_price_and_value():
    assert matrix.expected_price("gaming", 1985) == 900
    assert matrix.expected_price("business", 1983) == 1200
    assert matrix.expected_price("workstation", 1985) == 3000
    assert matrix.price_value(900, 900) == 100
    assert matrix.price_value(1800, 900) == 0
    assert matrix.price_value(990, 900) == pytest.approx(90.0)
    assert matrix.price_value(1000, 0) == 0
    with pytest.raises(ValueError):
        matrix.expected_price("console", 1985)


def test_overall_score_weights():
    assert matrix.overall_score(80, 80, 0, 80, 80, workstation_active=False) == 80
    assert matrix.overall_score(80, 80, 80, 80, 80, workstation_active=True) == 80
    assert matrix.overall_score(100, 0, 100, 0, 0, workstation_active=False) == 35


def test_market_impact_bands():
    assert matrix.reputation_delta(90) == 8
    assert matrix.reputation_delta(55) == -2
    assert matrix.reputation_delta(10) == -5
    assert matrix.sales_boost(70) == 0
    assert matrix.sales_boost(95) == 20


def test_case_matching():
    assert matrix.case_matches("gamer", 1, 1, "SID 6581", False)
    assert not matrix.case_matches("gamer", 5, 1, "PC Speaker", True)
    assert matrix.case_matches("office", 1, 1, None, True)
    assert not matrix.case_matches("office", 2, 5, "SID 6581", False)
    assert matrix.case_matches(None, 1, 1, None, False)


# --- Text ---


def test_text_never_empty():
    for category in ("gaming", "business", "workstation"):
        for score in (10, 60, 95):
            assert text.category_comments(category, score)
    for score in (20, 50, 75, 99):
        assert text.overall_verdict(score)
        assert text.competitor_response(score)
        assert text.market_position_text(score)
    assert text.case_comment("gamer", True) != text.case_comment("gamer", False)


# --- Report ---


def test_workstation_not_applicable_before_1987():
    report = TestReportGenerator().generate(_model(), 1985)
    ws = report.categories["workstation"]
    assert not ws.applicable
    assert ws.score == 0
    assert ws.rating == text.NOT_APPLICABLE
    assert len(report.price_values) == 2


def test_workstation_rated_from_1987():
    report = TestReportGenerator().generate(_model(cpu="Intel 80386"), 1987)
    ws = report.categories["workstation"]
    assert ws.applicable
    assert ws.score > 0
    assert len(report.price_values) == 3


def test_report_scores_in_range():
    report = TestReportGenerator().generate(_model(), 1985)
    assert 0 <= report.overall_score <= 100
    assert 20 <= report.compatibility.score <= 100
    assert report.build_quality.case_match
    assert report.verdict
    d = report.to_dict()
    assert d["model_id"] == "model-1"


# --- Price advisor ---


def test_overpriced_model_gets_price_cut():
    advisor = PriceAdvisor()
    rec = advisor.recommend("model-1", 2000.0, [30.0, 35.0])
    assert rec.has_recommendation
    assert rec.recommended_price == 1600
    assert advisor.pending("model-1") == [rec]


def test_mild_cut_and_raise():
    advisor = PriceAdvisor()
    assert advisor.recommend("m", 1000.0, [50.0]).recommended_price == 900
    assert advisor.recommend("m", 1000.0, [90.0, 95.0]).recommended_price == 1150


def test_fair_price_has_no_recommendation():
    advisor = PriceAdvisor()
    rec = advisor.recommend("model-1", 1000.0, [70.0, 75.0])
    assert not rec.has_recommendation
    assert rec.recommended_price == 1000.0
    assert advisor.pending() == []


def test_adopt_and_reject_once():
    advisor = PriceAdvisor()
    rec = advisor.recommend("model-1", 1000.0, [20.0])
    outcome = advisor.adopt(rec.id)
    assert outcome.success
    assert outcome.new_price == 800
    assert advisor.get(rec.id).status == "adopted"
    assert not advisor.adopt(rec.id).success
    assert not advisor.reject(rec.id)


def test_unknown_recommendation():
    advisor = PriceAdvisor()
    assert not advisor.adopt("rec-nope-1").success
    assert not advisor.reject("rec-nope-1")


def test_report_attaches_recommendation():
    advisor = PriceAdvisor()
    report = TestReportGenerator().generate(_model(price=5000.0), 1985, advisor)
    assert report.price_recommendation is not None
    assert report.price_recommendation.recommended_price < 5000
