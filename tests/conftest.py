"""Shared test configuration and fixtures for all tests."""

import pytest

from timeslice_bench.config import BenchmarkConfig

from .stubs import DEEPSEEK, PHI


@pytest.fixture
def endpoints():
    return [PHI, DEEPSEEK]


@pytest.fixture
def config(tmp_path, endpoints):
    return BenchmarkConfig(endpoints=endpoints, output_dir=str(tmp_path / "results"))
