"""Tests for report rendering and exports."""

from datetime import datetime

import pandas as pd

from timeslice_bench.load_test import CONCURRENT, INDIVIDUAL, ImpactRecord, ScenarioResult
from timeslice_bench.report import SUMMARY_PARAGRAPH, ReportWriter, format_scenario

GENERATED_AT = datetime(2025, 3, 14, 9, 26, 53)


def scenario(name, kind, avg=1.0, throughput=60.0, successes=15, total=15):
    return ScenarioResult(
        model_name=name,
        scenario=kind,
        total_requests=total,
        successful_requests=successes,
        failed_requests=total - successes,
        success_rate=successes * 100 / total,
        total_time=successes * avg if avg else 0.0,
        avg_latency=avg,
        min_latency=avg,
        max_latency=avg,
        p50_latency=avg,
        p95_latency=avg,
        throughput_rpm=throughput,
    )


def populated_writer(tmp_path):
    writer = ReportWriter(str(tmp_path), GENERATED_AT)
    writer.add_result(scenario("Phi-3.5-Mini", INDIVIDUAL))
    writer.add_result(scenario("DeepSeek-R1", INDIVIDUAL, avg=1.5, throughput=40.0))
    writer.add_result(
        scenario("Phi-3.5-Mini", CONCURRENT, avg=2.0, throughput=30.0),
        ImpactRecord("Phi-3.5-Mini", 100.0, -50.0)
    )
    writer.add_result(
        scenario("DeepSeek-R1", CONCURRENT, avg=2.25, throughput=26.67),
        ImpactRecord("DeepSeek-R1", 50.0, -33.325)
    )
    return writer


class TestFormatScenario:

    def test_individual_section(self):
        text = format_scenario(scenario("Phi-3.5-Mini", INDIVIDUAL, avg=1.23456, throughput=48.6024))

        assert text.splitlines() == [
            "=== Phi-3.5-Mini Individual Baseline ===",
            "Total Requests: 15",
            "Successful Requests: 15",
            "Success Rate: 100.0%",
            "Average Latency: 1.235s",
            "Throughput: 48.60 req/min",
        ]

    def test_concurrent_section_with_impact(self):
        text = format_scenario(
            scenario("DeepSeek-R1", CONCURRENT, avg=2.0, throughput=30.0),
            ImpactRecord("DeepSeek-R1", 100.0, -50.0)
        )

        assert text.startswith("=== DeepSeek-R1 Concurrent Performance ===")
        assert text.rstrip().endswith("Performance Impact: +100.0% latency, -50.0% throughput")

    def test_no_data_section(self):
        text = format_scenario(scenario("Phi-3.5-Mini", INDIVIDUAL, avg=None, throughput=None, successes=0))

        assert "Success Rate: 0.0%" in text
        assert "Average Latency: no data" in text
        assert "Throughput: no data" in text


class TestReportWriter:

    def test_file_name_uses_run_timestamp(self, tmp_path):
        writer = ReportWriter(str(tmp_path), GENERATED_AT)

        assert writer.report_path.name == "performance_report_20250314_092653.txt"
        assert writer.json_path.name == "performance_report_20250314_092653.json"

    def test_render(self, tmp_path):
        text = populated_writer(tmp_path).render()

        assert text.startswith("GPU Time-Slicing Performance Analysis Report\nGenerated: 2025-03-14 09:26:53\n")
        assert text.index("Phi-3.5-Mini Individual") < text.index("Phi-3.5-Mini Concurrent")
        assert "Performance Impact: +50.0% latency, -33.3% throughput" in text
        assert text.endswith(SUMMARY_PARAGRAPH)

    def test_write(self, tmp_path):
        writer = populated_writer(tmp_path / "out")

        path = writer.write()

        assert path.read_text(encoding="utf-8") == writer.render()
        assert writer.json_path.exists()

    def test_summary_lines(self, tmp_path):
        writer = populated_writer(tmp_path)
        writer.write()

        lines = writer.summary_lines()

        assert len(lines) == 15
        assert lines[-1] == "=== Analysis Summary ==="
        assert all(
            any(key in line for key in ("===", "Average Latency", "Throughput", "Performance Impact"))
            for line in lines
        )
        assert "Success Rate" not in " ".join(lines)

    def test_export_to_csv(self, tmp_path):
        writer = populated_writer(tmp_path)

        path = writer.export_to_csv()

        df = pd.read_csv(path)
        assert list(df["model_name"]) == ["Phi-3.5-Mini", "DeepSeek-R1", "Phi-3.5-Mini", "DeepSeek-R1"]
        assert list(df["scenario"]) == [INDIVIDUAL, INDIVIDUAL, CONCURRENT, CONCURRENT]
        assert df["latency_impact"].isna().sum() == 2

    def test_export_empty(self, tmp_path):
        assert ReportWriter(str(tmp_path), GENERATED_AT).export_to_csv() is None
