"""Generators module for names and narrative content."""

from retro_tycoon.generators.news import NewsGenerator, NewsItem, NewsRegistry
from retro_tycoon.generators.static_pool import NamePool

__all__ = [
    "NamePool",
    "NewsGenerator",
    "NewsItem",
    "NewsRegistry",
]
