#!/usr/bin/env python3
"""
Benchmark Runner - Main orchestrator for GPU time-slicing benchmarks
Measures each endpoint alone, then all endpoints at once, and reports the impact

Author: GPU Time-Slicing Benchmark Project
"""

import argparse
import asyncio
import logging
import os
import sys
from contextlib import AsyncExitStack
from datetime import datetime
from pathlib import Path
from typing import Dict, List, Optional

import requests
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.panel import Panel
from tqdm import tqdm

from .config import BenchmarkConfig, Endpoint, load_config, parse_endpoint
from .exceptions import BenchmarkError, EnvironmentCheckError, NoActiveEndpointsError
from .load_test import (
    CONCURRENT,
    InferenceEndpointTester,
    ScenarioResult,
    Trial,
    aggregate_trials,
    compute_impact,
    print_results,
)
from .report import ReportWriter

console = Console()
logger = logging.getLogger(__name__)


class BenchmarkOrchestrator:
    """
    Runs the individual baseline and concurrent phases for a set of endpoints
    """

    def __init__(self, config: BenchmarkConfig, generated_at: Optional[datetime] = None):
        self.config = config
        self.generated_at = generated_at
        self.testers: Dict[str, InferenceEndpointTester] = {
            endpoint.name: InferenceEndpointTester(
                endpoint,
                max_new_tokens=config.max_new_tokens,
                temperature=config.temperature,
                request_timeout=config.request_timeout
            )
            for endpoint in config.endpoints
        }
        self.active: Dict[str, bool] = {}
        self.baselines: Dict[str, ScenarioResult] = {}
        self.report = ReportWriter(config.output_dir, generated_at)

    def check_environment(self) -> None:
        """Make sure the report directory exists and is writable"""
        console.print("[yellow]=== Checking Environment ===[/yellow]")
        output_dir = Path(self.config.output_dir)
        try:
            output_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise EnvironmentCheckError(f"Cannot create output directory {output_dir}: {e}") from e
        if not os.access(output_dir, os.W_OK):
            raise EnvironmentCheckError(f"Output directory {output_dir} is not writable")
        console.print(f"Output directory {output_dir}: [green]✓[/green]")

    def check_server_health(self, endpoint: Endpoint) -> bool:
        """Probe the info route once; any non-empty body counts as alive"""
        try:
            response = requests.get(endpoint.info_url, timeout=self.config.health_timeout)
        except requests.exceptions.RequestException as e:
            logger.debug("%s health probe failed: %s", endpoint.name, e)
            return False
        return bool(response.content)

    def detect_active_endpoints(self) -> List[Endpoint]:
        """Health-check every endpoint and return the ones that answered"""
        console.print("\n[yellow]=== Detecting Active Models ===[/yellow]")

        self.active = {}
        for endpoint in self.config.endpoints:
            alive = self.check_server_health(endpoint)
            self.active[endpoint.name] = alive
            status = "[green]✓ Active[/green]" if alive else "[red]✗ Inactive[/red]"
            console.print(f"Checking {escape(endpoint.name)} health... {status}")

        active = [e for e in self.config.endpoints if self.active[e.name]]
        if not active:
            raise NoActiveEndpointsError("No models available for testing!")
        return active

    def concurrent_ready(self) -> bool:
        """Concurrent testing needs every configured endpoint alive, and at least two"""
        return len(self.config.endpoints) >= 2 and all(
            self.active.get(e.name, False) for e in self.config.endpoints
        )

    async def run_individual_phase(self, endpoints: List[Endpoint]) -> List[ScenarioResult]:
        """Baseline each endpoint on its own, one after the other"""
        results = []
        for endpoint in endpoints:
            tester = self.testers[endpoint.name]
            result = await tester.run_individual(self.config.prompts, self.config.iterations)
            print_results(result)
            self.report.add_result(result)
            if result.has_data:
                self.baselines[endpoint.name] = result
            results.append(result)
        return results

    async def run_concurrent_phase(self, endpoints: List[Endpoint]) -> List[ScenarioResult]:
        """Hit all endpoints with the same prompt at once, prompt by prompt"""

        console.print("\n[bold blue]=== Testing Both Models Concurrently (GPU Time-Slicing Impact) ===[/bold blue]")
        console.print("This measures performance degradation when models compete for GPU resources...")

        testers = [self.testers[e.name] for e in endpoints]
        trials: Dict[str, List[Trial]] = {t.model_name: [] for t in testers}

        async with AsyncExitStack() as stack:
            sessions = [await stack.enter_async_context(t.new_session()) for t in testers]

            with tqdm(total=self.config.total_requests, desc="Concurrent") as pbar:
                for i in range(1, self.config.iterations + 1):
                    for prompt in self.config.prompts:
                        # Join barrier: the next prompt waits for every endpoint
                        completed = await asyncio.gather(*(
                            tester.single_request(session, prompt, i)
                            for tester, session in zip(testers, sessions)
                        ))
                        for trial in completed:
                            trials[trial.endpoint].append(trial)
                        ok = sum(1 for t in completed if t.success)
                        pbar.set_postfix_str(f"{ok}/{len(completed)} ok")
                        pbar.update(1)

        console.print("\n[yellow]Concurrent Performance Results:[/yellow]")
        results = []
        for tester in testers:
            result = aggregate_trials(tester.model_name, CONCURRENT, trials[tester.model_name])
            impact = compute_impact(self.baselines.get(tester.model_name), result)
            print_results(result, impact)
            if impact is not None:
                console.print(
                    f"  Performance Impact: {impact.latency_impact:+.1f}% latency, "
                    f"{impact.throughput_impact:+.1f}% throughput"
                )
            self.report.add_result(result, impact)
            results.append(result)
        return results

    async def run_all_benchmarks(self, active: List[Endpoint]) -> List[ScenarioResult]:
        """Individual phase, then the concurrent phase when possible"""

        self.report = ReportWriter(self.config.output_dir, self.generated_at)
        self.baselines = {}

        console.print("\n[yellow]=== Starting Complete Performance Analysis ===[/yellow]")
        try:
            results = await self.run_individual_phase(active)

            if self.concurrent_ready():
                results.extend(await self.run_concurrent_phase(active))
            else:
                inactive = [name for name, alive in self.active.items() if not alive]
                reason = f"inactive: {', '.join(inactive)}" if inactive else "fewer than two endpoints configured"
                console.print(f"\n[yellow]Only one model active - skipping concurrent testing ({escape(reason)})[/yellow]")
                console.print("To test GPU time-slicing impact, ensure both models are running.")
                logger.info("Concurrent testing skipped: %s", reason)
        finally:
            self.baselines.clear()

        return results

    def run(self, export_csv: bool = False) -> Path:
        """Complete run: environment check, detection, both phases, report"""
        self.check_environment()
        active = self.detect_active_endpoints()

        asyncio.run(self.run_all_benchmarks(active))

        report_path = self.report.write()
        if export_csv:
            self.report.export_to_csv()

        console.print("\n[green]=== Complete Analysis Finished ===[/green]")
        console.print(f"Detailed results saved to: {report_path}")
        self.report.print_comparison_table()
        self.report.print_summary()
        self.report.print_closing()
        return report_path


def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(
        description="GPU Time-Slicing Benchmark: individual baselines vs concurrent load",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Default run against Phi-3.5-Mini (:8081) and DeepSeek-R1 (:8082)
  timeslice-bench

  # Custom endpoints and workload file
  timeslice-bench --endpoint phi=http://10.0.0.5:8081 --endpoint ds=http://10.0.0.5:8082 \\
      --config configs/timeslicing_default.json
        """
    )

    parser.add_argument(
        "--config", "-c",
        type=str,
        help="Path to workload configuration JSON file"
    )

    parser.add_argument(
        "--endpoint", "-e",
        action="append",
        metavar="NAME=URL",
        help="Inference endpoint to test (repeatable, replaces the defaults)"
    )

    parser.add_argument(
        "--output-dir", "-o",
        type=str,
        help="Directory to save reports (default: test_results)"
    )

    parser.add_argument(
        "--iterations", "-n",
        type=int,
        help="Passes over the prompt list per scenario (default: 3)"
    )

    parser.add_argument(
        "--max-tokens", "-t",
        type=int,
        help="max_new_tokens sent with every request (default: 50)"
    )

    parser.add_argument(
        "--temperature",
        type=float,
        help="Sampling temperature (default: 0.7)"
    )

    parser.add_argument(
        "--request-timeout",
        type=float,
        help="Per-request timeout in seconds (default: 120)"
    )

    parser.add_argument(
        "--export-csv",
        action="store_true",
        help="Also export the scenario table to CSV"
    )

    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Log every failed request and health probe"
    )

    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=console, show_path=False)]
    )

    console.print(Panel.fit(
        "[bold blue]Complete GPU Time-Slicing Performance Analysis[/bold blue]\n"
        f"Timestamp: {datetime.now().strftime('%Y-%m-%d %H:%M:%S')}\n"
        "Individual baselines + concurrent performance impact in one run",
        title="Benchmark Runner"
    ))

    try:
        overrides = {
            "output_dir": args.output_dir,
            "iterations": args.iterations,
            "max_new_tokens": args.max_tokens,
            "temperature": args.temperature,
            "request_timeout": args.request_timeout,
        }
        if args.endpoint:
            overrides["endpoints"] = [parse_endpoint(spec) for spec in args.endpoint]

        config = load_config(args.config, overrides)
        orchestrator = BenchmarkOrchestrator(config)
        orchestrator.run(export_csv=args.export_csv)
    except BenchmarkError as e:
        console.print(f"[red]{escape(str(e))}[/red]")
        return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())
