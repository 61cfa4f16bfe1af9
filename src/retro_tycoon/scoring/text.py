"""
Wording for test reports.

Pure templates keyed on the numeric results of scoring.matrix; nothing in
here feeds back into a score.
"""

from __future__ import annotations

from retro_tycoon.scoring.matrix import rating_tier

RATING_LABELS = {
    1: "Outstanding",
    2: "Excellent",
    3: "Very good",
    4: "Good",
    5: "Satisfactory",
    6: "Adequate",
    7: "Poor",
    8: "Unacceptable",
}

COMPATIBILITY_TEXT = {
    "high_end": "High-end components work together seamlessly",
    "cpu_ram_balance": "Processor and memory are well matched",
    "cpu_gpu_power": "Strong processor and graphics combination",
    "multimedia": "Excellent multimedia capabilities",
    "ram_starves_cpu": "Memory holds back the processor",
    "ram_oversized": "Memory is oversized for this processor",
    "cpu_gpu_mismatch": "Processor and graphics are badly mismatched",
}

CATEGORY_COMMENTS = {
    "gaming": {
        "high": [
            "Games run smoothly with impressive graphics.",
            "A top pick for arcade conversions.",
        ],
        "mid": [
            "Handles most current games without trouble.",
            "Good enough for casual players.",
        ],
        "low": [
            "Struggles with anything beyond simple games.",
            "Graphics and sound fall short of the competition.",
        ],
    },
    "business": {
        "high": [
            "Spreadsheets and word processing fly.",
            "A reliable workhorse for any office.",
        ],
        "mid": [
            "Adequate for everyday office work.",
            "Runs standard business software acceptably.",
        ],
        "low": [
            "Too slow for serious business use.",
            "Memory limits rule out larger documents.",
        ],
    },
    "workstation": {
        "high": [
            "CAD and engineering tools run with ease.",
            "Professional-grade performance.",
        ],
        "mid": [
            "Usable for light technical work.",
            "Entry-level workstation performance.",
        ],
        "low": [
            "Not suited to demanding technical applications.",
            "Lacks the power professionals expect.",
        ],
    },
}

NOT_APPLICABLE = "Not applicable"


def rating_label(score: float) -> str:
    return RATING_LABELS[rating_tier(score)]


def category_comments(category: str, score: float) -> list[str]:
    if score >= 80:
        band = "high"
    elif score >= 55:
        band = "mid"
    else:
        band = "low"
    return list(CATEGORY_COMMENTS[category][band])


def compatibility_lines(codes: tuple[str, ...]) -> list[str]:
    return [COMPATIBILITY_TEXT.get(code, code) for code in codes]


def case_comment(case_type: str | None, matches: bool) -> str:
    if case_type is None:
        return "Standard enclosure."
    if matches:
        return f"The {case_type} case suits the hardware well."
    return f"The {case_type} case does not suit this hardware profile."


def overall_verdict(score: float) -> str:
    if score >= 90:
        return "A landmark machine that sets the standard for the industry."
    if score >= 80:
        return "An excellent computer that deserves a place on every shortlist."
    if score >= 70:
        return "A solid machine with few weaknesses."
    if score >= 60:
        return "A reasonable choice, though rivals offer more."
    if score >= 50:
        return "Hard to recommend over the competition."
    return "Buyers should look elsewhere."


def competitor_response(score: float) -> str:
    if score >= 85:
        return "Rivals will rush out price cuts and new models."
    if score >= 70:
        return "Competitors will watch this release closely."
    if score >= 55:
        return "Little reaction expected from competitors."
    return "Competitors will see no threat."


def market_position_text(score: float) -> str:
    if score >= 85:
        return "Market leader"
    if score >= 70:
        return "Strong contender"
    if score >= 55:
        return "Mid-market option"
    return "Niche product"
