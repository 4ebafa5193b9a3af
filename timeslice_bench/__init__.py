"""
GPU Time-Slicing Benchmark
Individual vs concurrent throughput of LLM endpoints sharing one GPU

Modules:
    - config: Defaults and JSON workload configuration
    - load_test: Async per-endpoint tester and result aggregation
    - benchmark_runner: Orchestrator for the baseline and concurrent phases
    - report: Text report, console summary and exports
"""

__version__ = "1.0.0"

from .config import BenchmarkConfig, Endpoint, load_config
from .load_test import InferenceEndpointTester, ScenarioResult, ImpactRecord, Trial
from .benchmark_runner import BenchmarkOrchestrator
from .report import ReportWriter

__all__ = [
    "BenchmarkConfig",
    "Endpoint",
    "load_config",
    "InferenceEndpointTester",
    "ScenarioResult",
    "ImpactRecord",
    "Trial",
    "BenchmarkOrchestrator",
    "ReportWriter"
]
