import pytest

from retro_tycoon.catalog.hardware import HardwareCatalog
from retro_tycoon.catalog.status_guard import ModelStatusGuard, create_revision
from retro_tycoon.product.core import (
    Budget,
    CaseSpec,
    Company,
    ComputerModel,
    InvalidStatusTransition,
    ModelStatus,
    next_quarter,
    quarters_elapsed,
)
from retro_tycoon.product.design import (
    calculate_complexity,
    calculate_development_time,
    finalize_design,
)


def _released(model_id: str, units: int = 0, price: float = 500.0) -> ComputerModel:
    model = ComputerModel(id=model_id, name=model_id, cpu="Zilog Z80", ram="16KB RAM", price=price)
    model.release(1983, 2)
    model.units_sold = units
    return model


def test_calendar_helpers():
    assert quarters_elapsed(1983, 1, 1984, 1) == 4
    assert quarters_elapsed(1985, 3, 1985, 1) == -2
    assert next_quarter(1983, 4) == (1984, 1)
    assert next_quarter(1983, 2) == (1983, 3)


def test_model_validation():
    with pytest.raises(ValueError):
        ComputerModel(id="", name="x", cpu="Zilog Z80", ram="16KB RAM")
    with pytest.raises(ValueError):
        ComputerModel(id="m", name="x", cpu="Zilog Z80", ram="16KB RAM", price=-1)
    with pytest.raises(ValueError):
        CaseSpec(name="Tower", type="tower")
    with pytest.raises(ValueError):
        Budget(marketing=-5)
    with pytest.raises(ValueError):
        Company(name="Acme", reputation=120)


def test_lifecycle_is_one_way():
    model = ComputerModel(id="m", name="m", cpu="Zilog Z80", ram="16KB RAM")
    with pytest.raises(InvalidStatusTransition):
        model.discontinue()
    model.release(1983, 1)
    assert model.release_year == 1983
    assert model.development_progress == 100.0
    with pytest.raises(InvalidStatusTransition):
        model.release(1983, 2)
    model.discontinue()
    with pytest.raises(InvalidStatusTransition):
        model.transition_to(ModelStatus.RELEASED)


def test_advance_development_caps_progress():
    model = ComputerModel(id="m", name="m", cpu="Zilog Z80", ram="16KB RAM", development_time=2)
    assert not model.advance_development(50)
    assert model.advance_development(80)
    assert model.development_progress == 100.0


def test_market_relevant_keeps_newest_revision():
    parent = _released("model-1", units=500)
    rev2 = create_revision(parent)
    rev2.release(1984, 1)
    other = _released("model-2")
    models = [parent, rev2, other]

    relevant = ModelStatusGuard.market_relevant_models(models)
    assert [m.id for m in relevant] == ["model-1-rev2", "model-2"]
    # The superseded parent still counts toward revenue history
    assert parent in ModelStatusGuard.revenue_models(models)


def test_discontinued_models_leave_the_market():
    old = _released("model-1", units=1000, price=400)
    old.discontinue()
    current = _released("model-2", units=200, price=900)
    buckets = ModelStatusGuard.classify([old, current])
    assert buckets.discontinued == [old]
    assert buckets.market_relevant == [current]
    assert ModelStatusGuard.total_units_sold([old, current]) == 1200
    assert ModelStatusGuard.total_revenue([old, current]) == 1000 * 400 + 200 * 900


def test_create_revision():
    parent = _released("model-1", units=300)
    rev = create_revision(parent)
    assert rev.id == "model-1-rev2"
    assert rev.family_id == "model-1"
    assert rev.status == ModelStatus.DEVELOPMENT
    assert rev.units_sold == 0
    rev3 = create_revision(rev)
    assert rev3.id == "model-1-rev3"
    assert rev3.name.endswith("Rev. 3")
    with pytest.raises(ValueError):
        create_revision(rev, revision_number=2)


def test_development_time_thresholds():
    catalog = HardwareCatalog()
    simple = ComputerModel(id="a", name="a", cpu="MOS 6502", ram="4KB RAM")
    complex_ = ComputerModel(
        id="b", name="b", cpu="Intel 80386", ram="1MB RAM", gpu="VGA Graphics", sound="AdLib Sound"
    )
    assert calculate_complexity(simple, catalog) == pytest.approx(20 + 6 + 3 + 1 + 0.5)
    assert calculate_development_time(calculate_complexity(simple, catalog)) == 1
    assert calculate_development_time(calculate_complexity(complex_, catalog)) == 2


def test_finalize_design_quotes_development_cost():
    catalog = HardwareCatalog()
    case = CaseSpec(name="Office Case", type="office", price=80)
    model = finalize_design(
        "model-1", "Micro", catalog, cpu="Zilog Z80", ram="16KB RAM", price=499.0, case=case
    )
    assert model.status == ModelStatus.DEVELOPMENT
    assert model.price == 499.0
    assert model.development_cost == 35 + 60 + 80
