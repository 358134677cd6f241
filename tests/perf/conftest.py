"""
Shared fixtures for performance benchmarks.

Generates synthetic manuscripts of configurable size for benchmarking
chunking, queue throughput, and merge/export.
"""

from __future__ import annotations

import random
import time
from dataclasses import dataclass, field
from typing import Callable

import pytest


# ---------------------------------------------------------------------------
# Synthetic manuscript generator
# ---------------------------------------------------------------------------

_ENGLISH_SENTENCES = [
    "The wind howled through the ancient corridors of the castle.",
    "Outside, the rain battered against the windowpanes relentlessly.",
    "A long silence filled the room, broken only by the ticking of the clock.",
    "Did anyone hear the bell ring at midnight?",
    "The forest was alive with the sounds of creatures stirring in the darkness!",
    "Morning light crept slowly across the stone floor of the monastery.",
    "The marketplace was loud and bright and smelled of spices.",
]

_BENGALI_SENTENCES = [
    "আমি ভাত খাই।",
    "আজ আকাশ খুব পরিষ্কার।",
    "তুমি কি বাড়ি যাবে?",
    "নদীর ধারে একটি ছোট গ্রাম ছিল।",
    "কী সুন্দর সকাল!",
]


def generate_text(
    sentences: int = 500,
    language: str = "en",
    seed: int = 42,
) -> str:
    """Generate a synthetic manuscript with paragraph breaks."""
    rng = random.Random(seed)
    pool = _BENGALI_SENTENCES if language == "bn" else _ENGLISH_SENTENCES
    paragraphs = []
    remaining = sentences
    while remaining > 0:
        size = min(remaining, rng.randint(2, 6))
        paragraphs.append(" ".join(rng.choice(pool) for _ in range(size)))
        remaining -= size
    return "\n\n".join(paragraphs)


# ---------------------------------------------------------------------------
# Timer utility
# ---------------------------------------------------------------------------

@dataclass
class BenchResult:
    """Timing of one benchmark; `items` is units, chunks or samples per iteration."""
    name: str
    duration_s: float
    iterations: int = 1
    items: int = 0
    metadata: dict = field(default_factory=dict)

    @property
    def per_iteration_ms(self) -> float:
        return (self.duration_s / self.iterations) * 1000

    @property
    def items_per_s(self) -> float:
        if not self.items or not self.duration_s:
            return 0.0
        return self.items * self.iterations / self.duration_s

    def __str__(self) -> str:
        meta = " ".join(f"{k}={v}" for k, v in self.metadata.items())
        rate = f" {self.items_per_s:.0f}/s" if self.items else ""
        return f"{self.name}: {self.per_iteration_ms:.1f}ms/iter{rate} {meta}".rstrip()


def bench(
    name: str,
    fn: Callable,
    iterations: int = 1,
    items: int = 0,
    **metadata,
) -> BenchResult:
    """Time `fn`; one untimed warm-up call when iterating."""
    if iterations > 1:
        fn()

    start = time.perf_counter()
    for _ in range(iterations):
        fn()
    elapsed = time.perf_counter() - start

    return BenchResult(
        name=name,
        duration_s=elapsed,
        iterations=iterations,
        items=items,
        metadata=metadata,
    )


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def small_text():
    """~500 English sentences."""
    return generate_text(sentences=500)


@pytest.fixture
def large_text():
    """~20k English sentences."""
    return generate_text(sentences=20000)


@pytest.fixture
def bengali_text():
    """~5k Bengali sentences."""
    return generate_text(sentences=5000, language="bn")
