"""
Numeric scoring core for product test reports.

Everything here is deterministic and returns plain numbers or codes;
wording lives in scoring.text.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from retro_tycoon.catalog.hardware import HardwareCatalog


@dataclass(frozen=True)
class ComponentScore:
    gaming: float
    business: float
    workstation: float
    tier: int

    def for_category(self, category: str) -> float:
        return float(getattr(self, category))


# name: (gaming, business, workstation, tier)
CPU_SCORES = {
    "MOS 6502": ComponentScore(25, 15, 5, 1),
    "Zilog Z80": ComponentScore(35, 25, 10, 2),
    "Intel 8086": ComponentScore(45, 75, 40, 3),
    "Motorola 68000": ComponentScore(75, 85, 75, 4),
    "Intel 80286": ComponentScore(65, 90, 85, 5),
    "Intel 80386": ComponentScore(80, 95, 90, 6),
    "Intel 80486": ComponentScore(90, 98, 95, 7),
}
GPU_SCORES = {
    "MOS VIC": ComponentScore(15, 10, 5, 1),
    "TI TMS9918": ComponentScore(45, 30, 25, 2),
    "Atari GTIA": ComponentScore(65, 40, 35, 3),
    "Commodore VIC-II": ComponentScore(80, 50, 45, 4),
    "EGA Graphics": ComponentScore(85, 75, 70, 4),
    "VGA Graphics": ComponentScore(95, 85, 90, 5),
    "Super VGA": ComponentScore(98, 90, 95, 6),
}
RAM_SCORES = {
    "4KB RAM": ComponentScore(10, 5, 0, 1),
    "16KB RAM": ComponentScore(25, 15, 5, 2),
    "64KB RAM": ComponentScore(50, 45, 25, 3),
    "256KB RAM": ComponentScore(75, 80, 60, 4),
    "512KB RAM": ComponentScore(85, 90, 80, 5),
    "1MB RAM": ComponentScore(90, 95, 90, 6),
    "2MB RAM": ComponentScore(95, 98, 95, 7),
    "4MB RAM": ComponentScore(98, 100, 98, 8),
}
SOUND_SCORES = {
    "PC Speaker": ComponentScore(5, 20, 15, 1),
    "AY-3-8910": ComponentScore(60, 30, 25, 2),
    "SID 6581": ComponentScore(95, 40, 35, 3),
    "Yamaha YM2149": ComponentScore(80, 45, 40, 4),
    "AdLib Sound": ComponentScore(90, 50, 45, 5),
    "Sound Blaster": ComponentScore(95, 55, 50, 6),
    "Sound Blaster Pro": ComponentScore(98, 60, 55, 7),
}

DEFAULT_SCORES = {
    "cpu": ComponentScore(30, 30, 30, 1),
    "gpu": ComponentScore(20, 15, 15, 1),
    "memory": ComponentScore(15, 10, 5, 1),
    "sound": ComponentScore(10, 15, 10, 1),
}
TABLES = {"cpu": CPU_SCORES, "gpu": GPU_SCORES, "memory": RAM_SCORES, "sound": SOUND_SCORES}

# Category blend of (cpu, gpu, ram, sound)
CATEGORY_WEIGHTS = {
    "gaming": (0.25, 0.40, 0.20, 0.15),
    "business": (0.50, 0.10, 0.30, 0.10),
    "workstation": (0.60, 0.15, 0.20, 0.05),
}
BUILD_WEIGHTS = (0.35, 0.25, 0.25, 0.15)

# Lowest score for each rating tier, best first
RATING_THRESHOLDS = (95, 90, 80, 70, 60, 50, 40)

REPUTATION_BANDS = ((90, 8), (80, 5), (70, 2), (60, 0), (50, -2))
LOW_SCORE_REPUTATION = -5


def clamp_score(value: float) -> float:
    return max(0.0, min(100.0, value))


def evaluate_component(
    category: str, name: str | None, catalog: HardwareCatalog | None = None
) -> ComponentScore:
    """Table score; custom parts are rated by their own performance."""
    table = TABLES[category]
    if name in table:
        return table[name]
    if catalog is not None:
        component = catalog.get_component(category, name)
        if component is not None and component.exclusive:
            perf = clamp_score(component.performance)
            return ComponentScore(perf, perf, perf, min(8, 1 + int(perf // 14)))
    return DEFAULT_SCORES[category]


def category_score(
    category: str,
    cpu: ComponentScore,
    gpu: ComponentScore,
    ram: ComponentScore,
    sound: ComponentScore,
) -> int:
    w_cpu, w_gpu, w_ram, w_sound = CATEGORY_WEIGHTS[category]
    total = (
        cpu.for_category(category) * w_cpu
        + gpu.for_category(category) * w_gpu
        + ram.for_category(category) * w_ram
        + sound.for_category(category) * w_sound
    )
    return round(clamp_score(total))


@dataclass(frozen=True)
class CompatibilityResult:
    score: int
    synergies: tuple[str, ...]
    bottlenecks: tuple[str, ...]


def compatibility(cpu_tier: int, gpu_tier: int, ram_tier: int, sound_tier: int) -> CompatibilityResult:
    """
    Balance of the component tiers, starting from 80.

    Returns synergy and bottleneck codes alongside the clamped score.
    """
    score = 80
    synergies: list[str] = []
    bottlenecks: list[str] = []

    if cpu_tier >= 6 and gpu_tier >= 4 and ram_tier >= 6:
        score += 15
        synergies.append("high_end")

    if abs(cpu_tier - ram_tier) <= 1:
        score += 8
        synergies.append("cpu_ram_balance")
    elif cpu_tier > ram_tier + 2:
        score -= 15
        bottlenecks.append("ram_starves_cpu")
    elif ram_tier > cpu_tier + 2:
        score -= 8
        bottlenecks.append("ram_oversized")

    if cpu_tier >= 4 and gpu_tier >= 4:
        score += 10
        synergies.append("cpu_gpu_power")
    elif abs(cpu_tier - gpu_tier) > 3:
        score -= 12
        bottlenecks.append("cpu_gpu_mismatch")

    if sound_tier >= 3 and gpu_tier >= 4:
        score += 5
        synergies.append("multimedia")

    return CompatibilityResult(
        score=int(max(20, min(100, score))),
        synergies=tuple(synergies),
        bottlenecks=tuple(bottlenecks),
    )


def build_quality(
    cpu_quality: float,
    gpu_quality: float,
    ram_quality: float,
    sound_quality: float,
    case_quality: float,
) -> int:
    w_cpu, w_gpu, w_ram, w_sound = BUILD_WEIGHTS
    total = (
        cpu_quality * w_cpu
        + gpu_quality * w_gpu
        + ram_quality * w_ram
        + sound_quality * w_sound
    )
    total = total * 0.85 + (case_quality / 100 * 85) * 0.15
    return round(clamp_score(total))


def rating_tier(score: float) -> int:
    """1 (best) .. 8 (worst)."""
    for tier, threshold in enumerate(RATING_THRESHOLDS, start=1):
        if score >= threshold:
            return tier
    return len(RATING_THRESHOLDS) + 1


def expected_price(segment: str, year: int) -> float:
    if segment == "gaming":
        return 600 + 150 * (year - 1983)
    if segment == "business":
        return 1200 + 300 * (year - 1983)
    if segment == "workstation":
        return 3000 + 1000 * max(0, year - 1987)
    raise ValueError(f"Unknown scoring category: {segment}")


def price_value(price: float, expected: float) -> float:
    if expected <= 0:
        return 0.0
    return round(clamp_score(100 - abs(price - expected) / expected * 100), 1)


def overall_score(
    gaming: float,
    business: float,
    workstation: float,
    compatibility_score: float,
    build_quality_score: float,
    workstation_active: bool,
) -> int:
    if workstation_active:
        total = (
            gaming * 0.25
            + business * 0.35
            + workstation * 0.20
            + compatibility_score * 0.10
            + build_quality_score * 0.10
        )
    else:
        total = (
            gaming * 0.35
            + business * 0.45
            + compatibility_score * 0.10
            + build_quality_score * 0.10
        )
    return round(clamp_score(total))


def reputation_delta(score: float) -> int:
    for threshold, delta in REPUTATION_BANDS:
        if score >= threshold:
            return delta
    return LOW_SCORE_REPUTATION


def sales_boost(score: float) -> int:
    return round((score - 70) * 0.8)


def case_matches(
    case_type: str | None,
    cpu_tier: int,
    gpu_tier: int,
    sound: str | None,
    has_storage: bool,
) -> bool:
    """Gamer cases want graphics or sound, office cases want CPU or storage."""
    if case_type == "gamer":
        return gpu_tier >= 3 or (sound is not None and sound != "PC Speaker")
    if case_type == "office":
        return cpu_tier >= 3 or has_storage
    return True
