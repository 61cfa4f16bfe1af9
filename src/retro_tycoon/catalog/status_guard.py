from __future__ import annotations

import copy
from dataclasses import dataclass, field

from retro_tycoon.product.core import ComputerModel, ModelStatus


@dataclass
class ModelBuckets:
    development: list[ComputerModel] = field(default_factory=list)
    market_relevant: list[ComputerModel] = field(default_factory=list)
    discontinued: list[ComputerModel] = field(default_factory=list)


class ModelStatusGuard:
    """
    Classifies the roster by lifecycle.

    Only the newest released revision of a model family competes in the
    market; older released revisions still count toward revenue history.
    """

    @staticmethod
    def development_models(models: list[ComputerModel]) -> list[ComputerModel]:
        return [m for m in models if m.status == ModelStatus.DEVELOPMENT]

    @staticmethod
    def market_relevant_models(models: list[ComputerModel]) -> list[ComputerModel]:
        latest: dict[str, ComputerModel] = {}
        for m in models:
            if m.status != ModelStatus.RELEASED:
                continue
            current = latest.get(m.family_id)
            if current is None or m.revision > current.revision:
                latest[m.family_id] = m
        return [m for m in models if latest.get(m.family_id) is m]

    @staticmethod
    def revenue_models(models: list[ComputerModel]) -> list[ComputerModel]:
        return [
            m for m in models
            if m.status in (ModelStatus.RELEASED, ModelStatus.DISCONTINUED)
        ]

    @staticmethod
    def discontinued_models(models: list[ComputerModel]) -> list[ComputerModel]:
        return [m for m in models if m.status == ModelStatus.DISCONTINUED]

    @classmethod
    def classify(cls, models: list[ComputerModel]) -> ModelBuckets:
        return ModelBuckets(
            development=cls.development_models(models),
            market_relevant=cls.market_relevant_models(models),
            discontinued=cls.discontinued_models(models),
        )

    @classmethod
    def total_revenue(cls, models: list[ComputerModel]) -> float:
        return sum(m.units_sold * m.price for m in cls.revenue_models(models))

    @classmethod
    def total_units_sold(cls, models: list[ComputerModel]) -> int:
        return sum(m.units_sold for m in cls.revenue_models(models))


def create_revision(
    parent: ComputerModel, revision_number: int | None = None
) -> ComputerModel:
    """
    Copy a model into a new revision that starts development from scratch.
    The caller swaps components on the returned model.
    """
    number = revision_number if revision_number is not None else parent.revision + 1
    if number <= parent.revision:
        raise ValueError(
            f"Revision {number} must be newer than {parent.id} rev {parent.revision}"
        )
    family = parent.family_id
    base_name = parent.name.split(" Rev. ")[0]
    return ComputerModel(
        id=f"{family}-rev{number}",
        name=f"{base_name} Rev. {number}",
        cpu=parent.cpu,
        ram=parent.ram,
        gpu=parent.gpu,
        sound=parent.sound,
        storage=parent.storage,
        display=parent.display,
        accessories=list(parent.accessories),
        case=copy.copy(parent.case),
        price=parent.price,
        development_cost=parent.development_cost,
        performance=parent.performance,
        complexity=parent.complexity,
        status=ModelStatus.DEVELOPMENT,
        development_progress=0.0,
        development_time=parent.development_time,
        units_sold=0,
        revision=number,
        parent_model_id=family,
    )
