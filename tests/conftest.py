"""Shared fixtures for the puzzle box tests."""

import os
import sys

import matplotlib

matplotlib.use("Agg")

import pytest

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from geometry import MazeLayout
from grid_core import CylinderGrid
from utils import LCGRandomSource, RandomSource


@pytest.fixture
def rng():
    return RandomSource(1234)


@pytest.fixture
def lcg():
    return LCGRandomSource(1)


@pytest.fixture
def open_grid():
    """24 columns, 10 rows, three nubs, no helix, every cell usable."""
    return CylinderGrid(24, 10, helix=0, nubs=3)


@pytest.fixture
def open_layout():
    """Physical placement matching open_grid."""
    return MazeLayout(
        radius=20.0,
        inside=False,
        width=24,
        height=10,
        y0=0.0,
        base=0.0,
        top=40.0,
        nubs=3,
        base_z=-5.0,
    )


@pytest.fixture
def helix_layout():
    """A realistic outside maze with a three-turn helix and three nubs."""
    return MazeLayout.for_part(
        radius=12.0,
        inside=False,
        base=10.0,
        top=40.0,
        helix=3,
        nubs=3,
        base_z=1.2,
    )
