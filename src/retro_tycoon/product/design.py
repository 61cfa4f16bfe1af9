from __future__ import annotations

from typing import TYPE_CHECKING

from retro_tycoon.product.core import CaseSpec, ComputerModel

if TYPE_CHECKING:
    from retro_tycoon.catalog.hardware import HardwareCatalog

SIMPLE_COMPLEXITY_THRESHOLD = 40


def calculate_complexity(model: ComputerModel, catalog: HardwareCatalog) -> float:
    """Engineering complexity (20-100) from component performance and accessories."""
    complexity = 20.0
    complexity += catalog.performance("cpu", model.cpu) * 0.4
    complexity += catalog.performance("gpu", model.gpu) * 0.2
    complexity += catalog.performance("memory", model.ram) * 0.2
    complexity += catalog.performance("sound", model.sound) * 0.1
    complexity += len(model.accessories) * 10
    return min(100.0, complexity)


def calculate_development_time(
    complexity: float, threshold: float = SIMPLE_COMPLEXITY_THRESHOLD
) -> int:
    """Quarters of development: simple designs take one, the rest two."""
    return 1 if complexity <= threshold else 2


def finalize_design(
    model_id: str,
    name: str,
    catalog: HardwareCatalog,
    *,
    cpu: str,
    ram: str,
    price: float,
    gpu: str | None = None,
    sound: str | None = None,
    storage: str | None = None,
    display: str | None = None,
    accessories: list[str] | None = None,
    case: CaseSpec | None = None,
) -> ComputerModel:
    """
    Turn a finished design into a model in development.

    Price must already be resolved by the caller; nothing is defaulted here.
    Development cost is the baseline BOM plus case, the way the designer
    quotes it.
    """
    model = ComputerModel(
        id=model_id,
        name=name,
        cpu=cpu,
        ram=ram,
        gpu=gpu,
        sound=sound,
        storage=storage,
        display=display,
        accessories=list(accessories or []),
        case=case,
        price=price,
    )
    model.complexity = calculate_complexity(model, catalog)
    model.development_time = calculate_development_time(model.complexity)
    model.performance = catalog.average_performance(model)
    model.development_cost = catalog.baseline_bom(model)
    return model
