"""
Shared fixtures for the noisy_sim test suite.
"""
import numpy as np
import pytest

from noisy_sim import Runner


@pytest.fixture
def runner() -> Runner:
    return Runner()


@pytest.fixture
def rng() -> np.random.Generator:
    return np.random.default_rng(1234)
