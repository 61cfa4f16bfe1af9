"""
NamePool - Pre-generated Faker names for rival products and news bylines.

Faker runs once at construction with a fixed seed; afterwards names are
picked through the session's RandomSource so a seeded campaign replays
the same product names.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from faker import Faker

if TYPE_CHECKING:
    from retro_tycoon.simulation.rng import RandomSource

DEFAULT_POOL_SIZES = {
    "model_names": 400,
    "reporters": 200,
    "cities": 100,
}


class NamePool:
    """
    Pre-generated pool of Faker data.

    Attributes:
        seed: Faker seed for reproducibility
        model_names: Short given names used as rival product names ("Lisa")
        reporters: Full names used as news bylines
        cities: City datelines for competitor launch stories
    """

    def __init__(
        self,
        seed: int = 1983,
        pool_sizes: dict[str, int] | None = None,
    ) -> None:
        self.seed = seed
        sizes = {**DEFAULT_POOL_SIZES, **(pool_sizes or {})}

        self._faker = Faker()
        Faker.seed(seed)

        self.model_names: list[str] = self._generate_pool(
            self._faker.first_name, sizes["model_names"]
        )
        self.reporters: list[str] = self._generate_pool(
            self._faker.name, sizes["reporters"]
        )
        self.cities: list[str] = self._generate_pool(self._faker.city, sizes["cities"])

        self._pools: dict[str, list[str]] = {
            "model_names": self.model_names,
            "reporters": self.reporters,
            "cities": self.cities,
        }

    def _generate_pool(self, generator_func: object, size: int) -> list[str]:
        """
        Generate up to `size` unique values, padding with repeats if Faker
        runs out of distinct values within 3x attempts.
        """
        gen_func = generator_func

        pool: list[str] = []
        seen: set[str] = set()
        max_attempts = size * 3
        attempts = 0

        while len(pool) < size and attempts < max_attempts:
            value = str(gen_func())  # type: ignore
            if value not in seen:
                seen.add(value)
                pool.append(value)
            attempts += 1

        while len(pool) < size:
            pool.append(str(gen_func()))  # type: ignore

        return pool

    def pick(self, pool_name: str, rng: RandomSource) -> str:
        """
        Draw one value from a named pool.

        Raises:
            KeyError: If pool_name is not a valid pool
        """
        if pool_name not in self._pools:
            raise KeyError(
                f"Unknown pool '{pool_name}'. Valid pools: {list(self._pools.keys())}"
            )
        return rng.choice(self._pools[pool_name])

    def rival_model_name(
        self, company: str, rng: RandomSource, taken: set[str] | None = None
    ) -> str:
        """'<Company> <Name>', numbered when the plain name is already used."""
        base = f"{company} {self.pick('model_names', rng)}"
        if not taken or base not in taken:
            return base
        suffix = 2
        while f"{base} {suffix}" in taken:
            suffix += 1
        return f"{base} {suffix}"

    def get_pool_sizes(self) -> dict[str, int]:
        return {name: len(pool) for name, pool in self._pools.items()}
