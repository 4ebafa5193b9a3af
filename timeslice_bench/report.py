#!/usr/bin/env python3
"""
Report Writer
Renders scenario results and performance impact into the run report

Author: GPU Time-Slicing Benchmark Project
"""

import json
import re
from datetime import datetime
from pathlib import Path
from typing import Dict, List, Optional, Tuple

import pandas as pd
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from .load_test import INDIVIDUAL, ImpactRecord, ScenarioResult

console = Console()

REPORT_TITLE = "GPU Time-Slicing Performance Analysis Report"

SUMMARY_PARAGRAPH = """=== Analysis Summary ===
This report compares individual model performance vs concurrent performance
to measure GPU time-slicing impact on Amazon EKS.

Individual baselines show optimal performance when each model has full GPU access.
Concurrent results show performance degradation due to GPU resource sharing.

Performance impact percentages indicate the cost of running multiple models
on a single GPU using NVIDIA time-slicing technology.
"""

SUMMARY_PATTERN = re.compile(r"(===|Average Latency|Throughput|Performance Impact)")


def format_scenario(result: ScenarioResult, impact: Optional[ImpactRecord] = None) -> str:
    """Render one scenario as a report section"""

    if result.scenario == INDIVIDUAL:
        header = f"=== {result.model_name} Individual Baseline ==="
    else:
        header = f"=== {result.model_name} Concurrent Performance ==="

    lines = [
        header,
        f"Total Requests: {result.total_requests}",
        f"Successful Requests: {result.successful_requests}",
        f"Success Rate: {result.success_rate:.1f}%",
    ]
    if result.has_data:
        lines.append(f"Average Latency: {result.avg_latency:.3f}s")
        lines.append(f"Throughput: {result.throughput_rpm:.2f} req/min")
    else:
        lines.append("Average Latency: no data")
        lines.append("Throughput: no data")
    if impact is not None:
        lines.append(
            f"Performance Impact: {impact.latency_impact:+.1f}% latency, "
            f"{impact.throughput_impact:+.1f}% throughput"
        )
    return "\n".join(lines) + "\n"


class ReportWriter:
    """Accumulates the results of one run and writes the report artifacts"""

    def __init__(self, output_dir: str = "test_results", generated_at: Optional[datetime] = None):
        self.output_dir = Path(output_dir)
        self.generated_at = generated_at or datetime.now()
        self.run_id = self.generated_at.strftime("%Y%m%d_%H%M%S")
        self.entries: List[Tuple[ScenarioResult, Optional[ImpactRecord]]] = []

    @property
    def report_path(self) -> Path:
        return self.output_dir / f"performance_report_{self.run_id}.txt"

    @property
    def json_path(self) -> Path:
        return self.output_dir / f"performance_report_{self.run_id}.json"

    @property
    def impacts(self) -> Dict[str, ImpactRecord]:
        return {impact.model_name: impact for _, impact in self.entries if impact is not None}

    def add_result(self, result: ScenarioResult, impact: Optional[ImpactRecord] = None) -> None:
        self.entries.append((result, impact))

    def render(self) -> str:
        """Render the full text report"""
        parts = [
            f"{REPORT_TITLE}\n"
            f"Generated: {self.generated_at.strftime('%Y-%m-%d %H:%M:%S')}\n"
            f"{'=' * 45}\n"
        ]
        for result, impact in self.entries:
            parts.append(format_scenario(result, impact))
        parts.append("\n" + SUMMARY_PARAGRAPH)
        return "\n".join(parts)

    def write(self) -> Path:
        """Write the text report and its JSON companion; returns the report path"""
        self.output_dir.mkdir(parents=True, exist_ok=True)
        self.report_path.write_text(self.render(), encoding="utf-8")
        self.save_json()
        return self.report_path

    def save_json(self) -> Path:
        """Save the run's results to JSON"""
        payload = {
            "generated_at": self.generated_at.isoformat(),
            "scenarios": [result.to_dict() for result, _ in self.entries],
            "impacts": [impact.to_dict() for impact in self.impacts.values()],
        }
        self.output_dir.mkdir(parents=True, exist_ok=True)
        with open(self.json_path, "w", encoding="utf-8") as f:
            json.dump(payload, f, indent=2, default=str)
        return self.json_path

    def export_to_csv(self, output_path: Optional[str] = None) -> Optional[Path]:
        """Export the scenario table to CSV for further analysis"""

        if not self.entries:
            console.print("[yellow]No results to export[/yellow]")
            return None

        rows = []
        for result, impact in self.entries:
            row = result.to_dict()
            row["latency_impact"] = impact.latency_impact if impact else None
            row["throughput_impact"] = impact.throughput_impact if impact else None
            rows.append(row)

        path = Path(output_path) if output_path else self.output_dir / f"performance_summary_{self.run_id}.csv"
        path.parent.mkdir(parents=True, exist_ok=True)
        df = pd.DataFrame(rows)
        df.to_csv(path, index=False)
        console.print(f"[green]Results exported to: {path}[/green]")
        return path

    def summary_lines(self, limit: int = 15) -> List[str]:
        """Key lines of the written report, last ``limit`` of them"""
        text = self.report_path.read_text(encoding="utf-8") if self.report_path.exists() else self.render()
        matches = [line for line in text.splitlines() if SUMMARY_PATTERN.search(line)]
        return matches[-limit:]

    def print_summary(self) -> None:
        """Echo the condensed summary of the report to the console"""

        console.print("\n[bold blue]Quick Summary from Report:[/bold blue]")
        for line in self.summary_lines():
            console.print(line, markup=False, highlight=False)

    def print_comparison_table(self) -> None:
        """Print all scenarios side by side"""

        if not self.entries:
            console.print("[yellow]No results to compare[/yellow]")
            return

        table = Table(title="Time-Slicing Comparison Summary", show_header=True, header_style="bold magenta")
        table.add_column("Model", style="cyan")
        table.add_column("Scenario", style="white")
        table.add_column("Success Rate", justify="right", style="blue")
        table.add_column("Avg Latency (s)", justify="right", style="yellow")
        table.add_column("Throughput (req/min)", justify="right", style="green")
        table.add_column("Impact", justify="right")

        for result, impact in self.entries:
            table.add_row(
                escape(result.model_name),
                result.scenario,
                f"{result.success_rate:.1f}%",
                f"{result.avg_latency:.3f}" if result.avg_latency is not None else "no data",
                f"{result.throughput_rpm:.2f}" if result.throughput_rpm is not None else "no data",
                f"{impact.latency_impact:+.1f}% / {impact.throughput_impact:+.1f}%" if impact else "-"
            )

        console.print("\n")
        console.print(table)

    def print_closing(self) -> None:
        console.print(Panel.fit(
            "• Individual baselines establish optimal performance\n"
            "• Concurrent results show GPU time-slicing impact\n"
            "• Performance impact percentages quantify degradation\n\n"
            f"Check {self.report_path} for detailed results and analysis.",
            title="[yellow]Analysis Complete![/yellow]"
        ))
