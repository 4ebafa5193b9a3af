#!/usr/bin/env python3
"""
Configuration for the GPU time-slicing benchmark harness.

Defaults reproduce the two-model EKS setup (Phi-3.5-Mini on port 8081 and
DeepSeek-R1 on port 8082). A JSON workload file can override any of them:

    {
        "endpoints": {"Phi-3.5-Mini": "http://localhost:8081"},
        "prompts": ["Explain machine learning in simple terms"],
        "iterations": 3,
        "max_new_tokens": 50,
        "temperature": 0.7
    }
"""

import json
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any, Dict, List, Optional

from .exceptions import ConfigurationError


class BenchmarkConstants:
    """Centralized defaults for a benchmark run"""
    DEFAULT_ENDPOINTS = {
        "Phi-3.5-Mini": "http://localhost:8081",
        "DeepSeek-R1": "http://localhost:8082",
    }
    DEFAULT_PROMPTS = [
        "Explain machine learning in simple terms",
        "What is Python programming language",
        "Describe cloud computing benefits",
        "How does artificial intelligence work",
        "What are the advantages of automation",
    ]
    DEFAULT_ITERATIONS = 3
    DEFAULT_MAX_NEW_TOKENS = 50
    DEFAULT_TEMPERATURE = 0.7
    HEALTH_TIMEOUT = 5  # seconds
    REQUEST_TIMEOUT = 120  # seconds
    OUTPUT_DIR = "test_results"
    INFO_PATH = "/info"
    GENERATE_PATH = "/generate"
    SUCCESS_MARKER = "generated_text"


@dataclass(frozen=True)
class Endpoint:
    """A named inference service under test"""
    name: str
    base_url: str

    @property
    def info_url(self) -> str:
        return f"{self.base_url.rstrip('/')}{BenchmarkConstants.INFO_PATH}"

    @property
    def generate_url(self) -> str:
        return f"{self.base_url.rstrip('/')}{BenchmarkConstants.GENERATE_PATH}"


def _default_endpoints() -> List[Endpoint]:
    return [Endpoint(name, url) for name, url in BenchmarkConstants.DEFAULT_ENDPOINTS.items()]


@dataclass
class BenchmarkConfig:
    """Configuration for one benchmark run"""
    endpoints: List[Endpoint] = field(default_factory=_default_endpoints)
    prompts: List[str] = field(default_factory=lambda: list(BenchmarkConstants.DEFAULT_PROMPTS))
    iterations: int = BenchmarkConstants.DEFAULT_ITERATIONS
    max_new_tokens: int = BenchmarkConstants.DEFAULT_MAX_NEW_TOKENS
    temperature: float = BenchmarkConstants.DEFAULT_TEMPERATURE
    health_timeout: float = BenchmarkConstants.HEALTH_TIMEOUT
    request_timeout: float = BenchmarkConstants.REQUEST_TIMEOUT
    output_dir: str = BenchmarkConstants.OUTPUT_DIR

    @property
    def total_requests(self) -> int:
        return self.iterations * len(self.prompts)

    def validate(self) -> None:
        """Raise ConfigurationError if the run cannot be executed as configured"""
        if not self.endpoints:
            raise ConfigurationError("At least one endpoint is required")
        names = [e.name for e in self.endpoints]
        if len(set(names)) != len(names):
            raise ConfigurationError(f"Endpoint names must be unique: {names}")
        for endpoint in self.endpoints:
            if not isinstance(endpoint.name, str) or not isinstance(endpoint.base_url, str):
                raise ConfigurationError(f"Endpoint {endpoint.name!r} must have a string URL")
            if not endpoint.base_url.startswith(("http://", "https://")):
                raise ConfigurationError(
                    f"Endpoint {endpoint.name} has an invalid URL: {endpoint.base_url}"
                )
        if not isinstance(self.prompts, list) or not all(isinstance(p, str) for p in self.prompts):
            raise ConfigurationError("prompts must be a list of strings")
        if not self.prompts:
            raise ConfigurationError("At least one prompt is required")
        for name in ("iterations", "max_new_tokens"):
            value = getattr(self, name)
            if not _is_int(value):
                raise ConfigurationError(f"{name} must be an integer, got {value!r}")
            if value < 1:
                raise ConfigurationError(f"{name} must be positive, got {value}")
        for name in ("temperature", "health_timeout", "request_timeout"):
            value = getattr(self, name)
            if not _is_number(value):
                raise ConfigurationError(f"{name} must be a number, got {value!r}")
        if self.temperature < 0:
            raise ConfigurationError(f"temperature must not be negative, got {self.temperature}")
        if self.health_timeout <= 0 or self.request_timeout <= 0:
            raise ConfigurationError("Timeouts must be positive")
        if not isinstance(self.output_dir, str) or not self.output_dir:
            raise ConfigurationError(f"output_dir must be a non-empty string, got {self.output_dir!r}")


def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def parse_endpoint(spec: str) -> Endpoint:
    """Parse a NAME=URL command line value into an Endpoint"""
    name, sep, url = spec.partition("=")
    if not sep or not name.strip() or not url.strip():
        raise ConfigurationError(f"Endpoint must be given as NAME=URL, got: {spec!r}")
    return Endpoint(name.strip(), url.strip())


def load_config(path: Optional[str] = None, overrides: Optional[Dict[str, Any]] = None) -> BenchmarkConfig:
    """Build a validated BenchmarkConfig: defaults < JSON file < overrides (None values skipped)"""
    config = BenchmarkConfig()

    if path:
        try:
            with open(Path(path), "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            raise ConfigurationError(f"Cannot load config file {path}: {e}") from e
        if not isinstance(data, dict):
            raise ConfigurationError(f"Config file {path} must contain a JSON object")
        config = _apply(config, _from_file(data))

    if overrides:
        config = _apply(config, {k: v for k, v in overrides.items() if v is not None})

    config.validate()
    return config


def _from_file(data: Dict[str, Any]) -> Dict[str, Any]:
    values: Dict[str, Any] = {}
    if "endpoints" in data:
        endpoints = data["endpoints"]
        if not isinstance(endpoints, dict):
            raise ConfigurationError("'endpoints' must map model names to base URLs")
        values["endpoints"] = [Endpoint(name, url) for name, url in endpoints.items()]
    if "prompts" in data:
        prompts = data["prompts"]
        if not isinstance(prompts, list):
            raise ConfigurationError("'prompts' must be a list of strings")
        values["prompts"] = list(prompts)
    for key, target in (
        ("iterations", "iterations"),
        ("max_new_tokens", "max_new_tokens"),
        ("temperature", "temperature"),
        ("health_timeout_seconds", "health_timeout"),
        ("request_timeout_seconds", "request_timeout"),
        ("output_dir", "output_dir"),
    ):
        if key in data:
            values[target] = data[key]
    return values


def _apply(config: BenchmarkConfig, values: Dict[str, Any]) -> BenchmarkConfig:
    try:
        return replace(config, **values)
    except TypeError as e:
        raise ConfigurationError(f"Unknown configuration key: {e}") from e
