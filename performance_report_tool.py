# /// script
# requires-python = ">=3.11"
# dependencies = [
#   "requests",
#   "pandas",
#   "rich",
# ]
# ///
"""Performance Report Generator CLI Tool.

Collects web-performance artifacts written by other tooling (baseline and
comparison metrics, Lighthouse reports, bundle statistics) and turns them
into an executive summary, a technical report, a self-refreshing HTML
dashboard and a JSON export. A companion ``compare`` command derives the
comparison artifact from the baseline and a file of current measurements.
"""

from __future__ import annotations

import argparse
import html
import json
import math
import os
import sys
import tomllib
import webbrowser
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from decimal import ROUND_HALF_UP, Decimal
from pathlib import Path
from typing import Any

import pandas as pd
import requests
from rich.console import Console
from rich.table import Table

__version__ = "1.0.0"

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

EXPORT_FORMAT_VERSION = "1.0.0"
EXPORT_REPORT_TYPE = "comprehensive"

DEFAULT_PROJECT_NAME = "Glass ERP"
DEFAULT_PHASE = "Phase 5 - Production Optimization"

STORAGE_SUBDIR = Path("storage") / "app"
PERFORMANCE_SUBDIR = STORAGE_SUBDIR / "performance"
REPORTS_SUBDIR = STORAGE_SUBDIR / "reports"

BASELINE_FILENAME = "baseline.json"
COMPARISON_FILENAME = "comparison.json"
COMPARISON_REPORT_FILENAME = "comparison-report.md"
BUNDLE_STATS_FILENAME = "bundle-stats.json"
LIGHTHOUSE_REPORTS = ("lighthouse-desktop.html", "lighthouse-mobile.html")

EXECUTIVE_SUMMARY_FILENAME = "executive-summary.md"
TECHNICAL_REPORT_FILENAME = "technical-report.md"
DASHBOARD_FILENAME = "performance-dashboard.html"
EXPORT_FILENAME = "performance-export.json"

DASHBOARD_REFRESH_MS = 300000
NEXT_REVIEW_DAYS = 7
SLOW_FEATURE_FACTOR = 1.2

VALID_WEBHOOK_ON = ("always", "regression")
DEFAULT_WEBHOOK_ON = "always"
WEBHOOK_TIMEOUT = 30

CONFIG_FILENAMES = ["perf-report.toml"]
CONFIG_SEARCH_PATHS = [
    Path.cwd(),
    Path.home() / ".config" / "perf-report",
]

# Core Web Vitals bands. A value is "good" below `good`, "poor" at or above
# `poor`, and "needs-improvement" in between.
CWV_METRICS = ("FCP", "LCP", "FID", "INP", "CLS", "TTFB")
CWV_THRESHOLDS = {
    "FCP": {
        "good": 1800, "poor": 3000, "unit": "ms", "target": "< 1.8s",
        "label": "First Contentful Paint (FCP)",
        "recommendation": "Optimize critical resource delivery",
    },
    "LCP": {
        "good": 2500, "poor": 4000, "unit": "ms", "target": "< 2.5s",
        "label": "Largest Contentful Paint (LCP)",
        "recommendation": "Optimize largest contentful elements",
    },
    "FID": {
        "good": 100, "poor": 300, "unit": "ms", "target": "< 100ms",
        "label": "First Input Delay (FID)",
        "recommendation": "Reduce JavaScript execution time",
    },
    "INP": {
        "good": 200, "poor": 500, "unit": "ms", "target": "< 200ms",
        "label": "Interaction to Next Paint (INP)",
        "recommendation": "Optimize interaction responsiveness",
    },
    "CLS": {
        "good": 0.1, "poor": 0.25, "unit": "", "target": "< 0.1",
        "label": "Cumulative Layout Shift (CLS)",
        "recommendation": "Set explicit dimensions for dynamic content",
    },
    "TTFB": {
        "good": 800, "poor": 1800, "unit": "ms", "target": "< 800ms",
        "label": "Time to First Byte (TTFB)",
        "recommendation": "Optimize server response time",
    },
}
CWV_MAINTAIN_TEXT = "Maintain current performance"

METRIC_STATUS_LABELS = {
    "good": "✅ Good",
    "needs-improvement": "⚠️ Needs Improvement",
    "poor": "❌ Poor",
    "na": "N/A",
}
METRIC_STATUS_CLASSES = {
    "good": "status-good",
    "needs-improvement": "status-warning",
    "poor": "status-error",
    "na": "status-na",
}

# Overall score bands: (minimum score, band), checked top-down.
SCORE_BANDS = [
    (90, "excellent"),
    (70, "good"),
    (50, "needs-improvement"),
]
OVERALL_STATUS_LABELS = {
    "excellent": "🟢 Excellent",
    "good": "🟡 Good",
    "needs-improvement": "🟠 Needs Improvement",
    "poor": "🔴 Poor",
}
SCORE_STATUS_LABELS = {
    "excellent": "✅ Excellent",
    "good": "✅ Good",
    "needs-improvement": "⚠️ Needs Improvement",
    "poor": "❌ Poor",
}
SCORE_COLOR_CLASSES = {
    "excellent": "status-good",
    "good": "status-good",
    "needs-improvement": "status-warning",
    "poor": "status-error",
}

TREND_INDICATORS = {"improving": "📈", "declining": "📉"}
TREND_EMOJIS = {"improving": "✅", "declining": "❌", "stable": "➡️"}

# Fallback phrases rendered in place of a missing input.
BASELINE_UNAVAILABLE = "Baseline data not available"
COMPARISON_UNAVAILABLE = "Comparison data not available"
LIGHTHOUSE_UNAVAILABLE = "Lighthouse reports not available"
BUNDLE_UNAVAILABLE = "Bundle analysis not available"
CWV_UNAVAILABLE = "Core Web Vitals data not available"
FEATURES_UNAVAILABLE = "Feature module data not available"

NEXT_STEPS = [
    "Review and address critical performance issues",
    "Implement recommended optimizations",
    "Continue monitoring performance trends",
    "Schedule next performance review",
    "Update performance baselines as improvements are made",
]

# Baseline comparison
TREND_STABLE_THRESHOLD = 5.0
CWV_CHANGE_THRESHOLD = 10.0
FEATURE_CHANGE_THRESHOLD = 15.0
SCORE_TREND_THRESHOLD = 5.0
CRITICAL_REGRESSION_THRESHOLD = 25.0
SCORE_DECLINE_THRESHOLD = -10.0
FEATURE_REGRESSION_THRESHOLD = 20.0

# Score deductions: (metric, severe_above, severe_points, mild_above, mild_points)
SCORE_DEDUCTIONS = [
    ("FCP", 1800, 15, 1200, 5),
    ("LCP", 2500, 20, 1800, 10),
    ("FID", 100, 15, 50, 5),
    ("CLS", 0.1, 10, 0.05, 5),
    ("TTFB", 800, 10, 500, 5),
]

FEATURE_COLUMNS = [
    "feature",
    "name",
    "priority",
    "average_load_time",
    "target",
    "route_count",
    "issue_count",
]


# ---------------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------------


class ReportError(Exception):
    """Raised when a report input is malformed or a required input is missing."""


# ---------------------------------------------------------------------------
# Config & Profile
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ReportConfig:
    """Filesystem layout and labels for one report run."""

    root: Path
    output_dir: Path
    project_name: str = DEFAULT_PROJECT_NAME
    phase: str = DEFAULT_PHASE
    lighthouse_reports: tuple[str, ...] = LIGHTHOUSE_REPORTS

    @classmethod
    def from_root(
        cls,
        root: str | Path | None = None,
        output_dir: str | Path | None = None,
        project_name: str | None = None,
        phase: str | None = None,
    ) -> ReportConfig:
        root_path = Path(root) if root else Path.cwd()
        return cls(
            root=root_path,
            output_dir=Path(output_dir) if output_dir else root_path / REPORTS_SUBDIR,
            project_name=project_name or DEFAULT_PROJECT_NAME,
            phase=phase or DEFAULT_PHASE,
        )

    @property
    def performance_dir(self) -> Path:
        return self.root / PERFORMANCE_SUBDIR

    @property
    def baseline_file(self) -> Path:
        return self.performance_dir / BASELINE_FILENAME

    @property
    def comparison_file(self) -> Path:
        return self.performance_dir / COMPARISON_FILENAME

    @property
    def lighthouse_dir(self) -> Path:
        return self.root / STORAGE_SUBDIR

    @property
    def bundle_stats_file(self) -> Path:
        return self.root / STORAGE_SUBDIR / BUNDLE_STATS_FILENAME


def discover_config_path() -> Path | None:
    """Find the first existing config file in search paths."""
    for search_dir in CONFIG_SEARCH_PATHS:
        for filename in CONFIG_FILENAMES:
            candidate = search_dir / filename
            if candidate.is_file():
                return candidate
    return None


def load_config(config_path: Path | None) -> dict:
    """Parse a TOML config file and return its contents as a dict."""
    if config_path is None:
        return {}
    try:
        with open(config_path, "rb") as fh:
            return tomllib.load(fh)
    except tomllib.TOMLDecodeError as exc:
        print(f"Error: malformed config file {config_path}: {exc}", file=sys.stderr)
        sys.exit(1)
    except OSError as exc:
        print(f"Error: cannot read config file {config_path}: {exc}", file=sys.stderr)
        sys.exit(1)


def apply_profile(args: argparse.Namespace, config: dict, profile_name: str | None) -> argparse.Namespace:
    """Merge config [settings] and optional profile into args.

    Resolution order (highest priority wins):
      1. Explicit CLI flags
      2. Profile values
      3. [settings] defaults from config
      4. Built-in defaults (already in args)
    """
    settings = config.get("settings", {})
    profile = {}
    if profile_name:
        profiles = config.get("profiles", {})
        if profile_name not in profiles:
            available = ", ".join(profiles.keys()) if profiles else "(none)"
            print(
                f"Error: profile '{profile_name}' not found in config. Available: {available}",
                file=sys.stderr,
            )
            sys.exit(1)
        profile = profiles[profile_name]

    # Map config keys to argparse dest names
    config_key_map = {
        "root": "root",
        "output_dir": "output_dir",
        "project_name": "project_name",
        "phase": "phase",
        "webhook_url": "webhook",
        "webhook_on": "webhook_on",
        "verbose": "verbose",
    }

    cli_explicit = set(getattr(args, "_explicit_args", []))

    for config_key, arg_dest in config_key_map.items():
        if arg_dest in cli_explicit:
            continue
        if config_key in profile:
            setattr(args, arg_dest, profile[config_key])
        elif config_key in settings:
            setattr(args, arg_dest, settings[config_key])

    webhook_on = getattr(args, "webhook_on", DEFAULT_WEBHOOK_ON)
    if webhook_on not in VALID_WEBHOOK_ON:
        print(
            f"Error: invalid webhook_on '{webhook_on}' in config. Valid: {', '.join(VALID_WEBHOOK_ON)}",
            file=sys.stderr,
        )
        sys.exit(1)

    if not getattr(args, "webhook", None):
        env_webhook = os.environ.get("PERF_REPORT_WEBHOOK_URL")
        if env_webhook:
            args.webhook = env_webhook

    return args


def build_config(args: argparse.Namespace) -> ReportConfig:
    """Build the run configuration once from resolved CLI/config values."""
    return ReportConfig.from_root(
        root=getattr(args, "root", None),
        output_dir=getattr(args, "output_dir", None),
        project_name=getattr(args, "project_name", None),
        phase=getattr(args, "phase", None),
    )


# ---------------------------------------------------------------------------
# CLI Argument Parser
# ---------------------------------------------------------------------------


class TrackingAction(argparse.Action):
    """Argparse action that records which flags were explicitly provided."""

    def __call__(self, parser, namespace, values, option_string=None):
        setattr(namespace, self.dest, values)
        explicit = getattr(namespace, "_explicit_args", [])
        explicit.append(self.dest)
        namespace._explicit_args = explicit


class TrackingStoreTrueAction(argparse.Action):
    """Like store_true but tracks that the flag was explicitly set."""

    def __init__(self, option_strings, dest, default=False, required=False, help=None):
        super().__init__(option_strings=option_strings, dest=dest, nargs=0, const=True, default=default, required=required, help=help)

    def __call__(self, parser, namespace, values, option_string=None):
        setattr(namespace, self.dest, True)
        explicit = getattr(namespace, "_explicit_args", [])
        explicit.append(self.dest)
        namespace._explicit_args = explicit


def build_argument_parser() -> argparse.ArgumentParser:
    """Build the CLI argument parser with subcommands."""
    parser = argparse.ArgumentParser(
        prog="perf-report",
        description="Performance Report Generator CLI Tool",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument("-c", "--config", dest="config", action=TrackingAction, default=None, help="Path to config TOML file")
    parser.add_argument("-p", "--profile", dest="profile", action=TrackingAction, default=None, help="Named profile from config file")
    parser.add_argument("-v", "--verbose", dest="verbose", action=TrackingStoreTrueAction, default=False, help="Verbose output to stderr")
    parser.add_argument("--root", dest="root", action=TrackingAction, default=None, help="Project root holding storage/app (default: current directory)")
    parser.add_argument("--output-dir", dest="output_dir", action=TrackingAction, default=None, help="Directory for generated reports (default: <root>/storage/app/reports)")
    parser.add_argument("--project-name", dest="project_name", action=TrackingAction, default=None, help=f"Project name used in report titles (default: {DEFAULT_PROJECT_NAME})")
    parser.add_argument("--phase", dest="phase", action=TrackingAction, default=None, help=f"Optimization phase label (default: {DEFAULT_PHASE})")

    subparsers = parser.add_subparsers(dest="command", help="Available commands (default: generate)")

    # --- generate ---
    generate_parser = subparsers.add_parser("generate", help="Generate executive, technical, dashboard and JSON reports")
    generate_parser.add_argument("--webhook", dest="webhook", action=TrackingAction, default=None, help="Webhook URL that receives the JSON export")
    generate_parser.add_argument("--webhook-on", dest="webhook_on", action=TrackingAction, default=DEFAULT_WEBHOOK_ON, choices=VALID_WEBHOOK_ON, help="When to send webhook: always, or only on regressions/critical issues")
    generate_parser.add_argument("--open", dest="open_browser", action=TrackingStoreTrueAction, default=False, help="Open the HTML dashboard in a browser")

    # --- compare ---
    compare_parser = subparsers.add_parser("compare", help="Compare current measurements against the stored baseline")
    compare_parser.add_argument("current_file", help="JSON file with current measurements (baseline shape)")
    compare_parser.add_argument("-o", "--output", dest="output", action=TrackingAction, default=None, help="Output path for comparison JSON (default: <root>/storage/app/performance/comparison.json)")

    return parser


# ---------------------------------------------------------------------------
# Value Formatting
# ---------------------------------------------------------------------------


def _as_number(value: Any) -> int | float | None:
    """Return value if it is a real number (bools excluded), else None."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    if isinstance(value, float) and math.isnan(value):
        return None
    return value


def js_round(value: float) -> int:
    """Round half toward positive infinity, like JavaScript's Math.round()."""
    floor = math.floor(value)
    return floor + 1 if value - floor >= 0.5 else floor


def to_fixed(value: float, digits: int = 0) -> str:
    """Format a number like JavaScript's Number.prototype.toFixed()."""
    quantum = Decimal(1).scaleb(-digits)
    return f"{Decimal(float(value)).quantize(quantum, rounding=ROUND_HALF_UP):f}"


def format_number(value: Any) -> str:
    """Render a JSON scalar the way it reads in a report ("75", not "75.0")."""
    if value is None:
        return "N/A"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def format_metric_value(metric: str, value: Any) -> str:
    number = _as_number(value)
    if number is None:
        return "N/A"
    if metric == "CLS":
        return to_fixed(number, 3)
    return f"{js_round(number)}ms"


def format_iso_timestamp(moment: datetime) -> str:
    """ISO-8601 in UTC with millisecond precision and a Z suffix."""
    return moment.astimezone(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def format_locale_date(moment: datetime) -> str:
    return f"{moment.month}/{moment.day}/{moment.year}"


def format_locale_time(moment: datetime) -> str:
    hour = moment.hour % 12 or 12
    meridiem = "AM" if moment.hour < 12 else "PM"
    return f"{hour}:{moment.minute:02d}:{moment.second:02d} {meridiem}"


def format_locale_datetime(moment: datetime) -> str:
    return f"{format_locale_date(moment)}, {format_locale_time(moment)}"


def parse_timestamp(value: Any) -> datetime | None:
    """Parse an ISO string or epoch-milliseconds number; None if neither."""
    number = _as_number(value)
    if number is not None:
        try:
            return datetime.fromtimestamp(number / 1000, tz=timezone.utc)
        except (OverflowError, OSError, ValueError):
            return None
    if isinstance(value, str):
        try:
            parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
        except ValueError:
            return None
        return parsed if parsed.tzinfo else parsed.replace(tzinfo=timezone.utc)
    return None


def _section(data: Any, *keys: str) -> dict:
    """Walk nested mappings, returning {} for any missing or non-mapping level."""
    current = data
    for key in keys:
        if not isinstance(current, dict):
            return {}
        current = current.get(key)
    return current if isinstance(current, dict) else {}


def _list(value: Any) -> list:
    return value if isinstance(value, list) else []


# ---------------------------------------------------------------------------
# Threshold & Status Rules
# ---------------------------------------------------------------------------


def metric_value(vitals: dict, metric: str) -> int | float | None:
    """Read one vital; a missing INP counts as 0, any other gap is None."""
    value = _as_number(vitals.get(metric))
    if value is None and metric == "INP":
        return 0
    return value


def classify_metric(metric: str, value: Any) -> str:
    """Classify a Core Web Vital as good / needs-improvement / poor (or na)."""
    number = _as_number(value)
    if number is None or metric not in CWV_THRESHOLDS:
        return "na"
    thresholds = CWV_THRESHOLDS[metric]
    if number < thresholds["good"]:
        return "good"
    if number < thresholds["poor"]:
        return "needs-improvement"
    return "poor"


def score_band(score: Any) -> str:
    number = _as_number(score)
    if number is None:
        return "poor"
    for minimum, band in SCORE_BANDS:
        if number >= minimum:
            return band
    return "poor"


def trend_indicator(comparison: dict | None) -> str:
    if comparison is None:
        return "➡️"
    trend = _section(comparison, "summary").get("overallTrend")
    return TREND_INDICATORS.get(trend, "➡️")


def feature_status(average_load_time: Any, target: Any) -> str | None:
    """Return "meeting" / "exceeding" target, or None when either value is missing."""
    if average_load_time is None or target is None or pd.isna(average_load_time) or pd.isna(target):
        return None
    return "meeting" if average_load_time <= target else "exceeding"


# ---------------------------------------------------------------------------
# Report Data
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ReportSummary:
    """Headline KPIs derived from whichever inputs were found."""

    overall_score: int | float = 0
    critical_issues: int = 0
    improvements: int = 0
    regressions: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "overallScore": self.overall_score,
            "criticalIssues": self.critical_issues,
            "improvements": self.improvements,
            "regressions": self.regressions,
        }


@dataclass(frozen=True)
class ReportData:
    """Everything the renderers need. Each input section is None when absent."""

    generated_at: datetime
    baseline: dict | None = None
    comparison: dict | None = None
    lighthouse: dict | None = None
    bundle_analysis: Any = None
    summary: ReportSummary = field(default_factory=ReportSummary)
    project_name: str = DEFAULT_PROJECT_NAME
    phase: str = DEFAULT_PHASE

    @property
    def timestamp(self) -> str:
        return format_iso_timestamp(self.generated_at)

    @property
    def features(self) -> dict:
        return _section(self.baseline, "features")

    @property
    def vitals(self) -> dict | None:
        """Baseline Core Web Vitals, or None if the baseline carries none."""
        if self.baseline is None:
            return None
        vitals = _section(self.baseline, "overall", "coreWebVitals")
        return vitals or None

    def to_dict(self) -> dict[str, Any]:
        return {
            "timestamp": self.timestamp,
            "baseline": self.baseline,
            "comparison": self.comparison,
            "lighthouse": self.lighthouse,
            "bundleAnalysis": self.bundle_analysis,
            "summary": self.summary.to_dict(),
        }


def count_critical_issues(features: Any) -> int:
    """Count high-severity issues across all feature modules."""
    if not isinstance(features, dict):
        return 0
    total = 0
    for feature in features.values():
        if not isinstance(feature, dict):
            continue
        for issue in _list(feature.get("issues")):
            if isinstance(issue, dict) and issue.get("severity") == "high":
                total += 1
    return total


def compute_summary(baseline: dict | None, comparison: dict | None) -> ReportSummary:
    """Derive the summary KPIs. Comparison data, being newer, wins the score."""
    overall_score: int | float = 0
    critical_issues = 0
    improvements = 0
    regressions = 0

    if baseline is not None:
        baseline_score = _as_number(_section(baseline, "overall").get("performanceScore"))
        if baseline_score is not None:
            overall_score = baseline_score
        critical_issues = count_critical_issues(baseline.get("features"))

    if comparison is not None:
        current_score = _as_number(_section(comparison, "current").get("performanceScore"))
        if current_score is not None:
            overall_score = current_score
        comparison_summary = _section(comparison, "summary")
        improvements = len(_list(comparison_summary.get("improvements")))
        regressions = len(_list(comparison_summary.get("regressions")))

    return ReportSummary(
        overall_score=overall_score,
        critical_issues=critical_issues,
        improvements=improvements,
        regressions=regressions,
    )


def build_report_data(
    baseline: dict | None = None,
    comparison: dict | None = None,
    lighthouse: dict | None = None,
    bundle_analysis: Any = None,
    now: datetime | None = None,
    project_name: str = DEFAULT_PROJECT_NAME,
    phase: str = DEFAULT_PHASE,
) -> ReportData:
    """Assemble ReportData and its summary from already-loaded sections."""
    return ReportData(
        generated_at=now or datetime.now(timezone.utc),
        baseline=baseline,
        comparison=comparison,
        lighthouse=lighthouse or None,
        bundle_analysis=bundle_analysis,
        summary=compute_summary(baseline, comparison),
        project_name=project_name,
        phase=phase,
    )


def feature_frame(features: Any) -> pd.DataFrame:
    """Flatten feature-module records into one row per module."""
    rows = []
    if isinstance(features, dict):
        for key, feature in features.items():
            record = feature if isinstance(feature, dict) else {}
            rows.append({
                "feature": key,
                "name": record.get("name") or key,
                "priority": record.get("priority"),
                "average_load_time": _as_number(record.get("averageLoadTime")),
                "target": _as_number(record.get("target")),
                "route_count": len(_section(record, "routes")),
                "issue_count": len(_list(record.get("issues"))),
            })
    return pd.DataFrame(rows, columns=FEATURE_COLUMNS)


def collect_issues(features: dict) -> list[dict]:
    """All feature issues, each tagged with the owning feature's name."""
    issues = []
    for key, feature in features.items():
        record = feature if isinstance(feature, dict) else {}
        for issue in _list(record.get("issues")):
            if isinstance(issue, dict):
                issues.append({**issue, "feature": record.get("name") or key})
    return issues


def collect_recommendations(data: ReportData) -> list:
    """Recommendations carried by the baseline and comparison artifacts."""
    recommendations = []
    recommendations.extend(_list(_section(data.baseline, "overall").get("recommendations")))
    recommendations.extend(_list(_section(data.comparison).get("recommendations")))
    return recommendations


def data_source_statuses(data: ReportData) -> list[dict[str, Any]]:
    """Availability of each input, with a fallback phrase for absent ones."""
    if data.baseline is None:
        baseline_detail = BASELINE_UNAVAILABLE
    else:
        captured = parse_timestamp(data.baseline.get("timestamp"))
        baseline_detail = f"Loaded (captured {format_locale_date(captured.astimezone())})" if captured else "Loaded"

    if data.comparison is None:
        comparison_detail = COMPARISON_UNAVAILABLE
    else:
        trend = _section(data.comparison, "summary").get("overallTrend")
        comparison_detail = f"Loaded (trend: {trend})" if trend else "Loaded"

    return [
        {"key": "baseline", "label": "Baseline", "available": data.baseline is not None, "detail": baseline_detail},
        {"key": "comparison", "label": "Comparison", "available": data.comparison is not None, "detail": comparison_detail},
        {
            "key": "lighthouse",
            "label": "Lighthouse",
            "available": bool(data.lighthouse),
            "detail": ", ".join(sorted(data.lighthouse)) if data.lighthouse else LIGHTHOUSE_UNAVAILABLE,
        },
        {
            "key": "bundleAnalysis",
            "label": "Bundle Analysis",
            "available": data.bundle_analysis is not None,
            "detail": "Loaded" if data.bundle_analysis is not None else BUNDLE_UNAVAILABLE,
        },
    ]


# ---------------------------------------------------------------------------
# Data Loading
# ---------------------------------------------------------------------------


def load_json_artifact(path: Path, label: str | None = None, require_object: bool = False) -> Any | None:
    """Parse a JSON artifact. Returns None when the file does not exist.

    A file that exists but does not parse raises ReportError: that is a
    corrupted artifact, not one that has not been produced yet. With
    ``require_object`` a top level other than a JSON object is rejected too.
    """
    if not path.is_file():
        return None
    if label:
        print(f"Loading {label}...", file=sys.stderr)
    try:
        with open(path, encoding="utf-8") as fh:
            artifact = json.load(fh)
    except (json.JSONDecodeError, UnicodeDecodeError) as exc:
        raise ReportError(f"malformed JSON in {path}: {exc}") from exc
    if require_object and not isinstance(artifact, dict):
        raise ReportError(f"malformed artifact {path}: expected a JSON object, got {type(artifact).__name__}")
    return artifact


def find_lighthouse_reports(config: ReportConfig, verbose: bool = False) -> dict[str, dict] | None:
    """Record which Lighthouse HTML reports exist; contents are not parsed."""
    found: dict[str, dict] = {}
    for filename in config.lighthouse_reports:
        report_path = config.lighthouse_dir / filename
        if report_path.is_file():
            print(f"Found Lighthouse report: {filename}", file=sys.stderr)
            found[Path(filename).stem] = {"available": True, "path": str(report_path)}
        elif verbose:
            print(f"  Not found: {report_path}", file=sys.stderr)
    return found or None


def gather_report_data(config: ReportConfig, now: datetime | None = None, verbose: bool = False) -> ReportData:
    """Load every optional input and assemble the report data."""
    inputs = {}
    for key, path, label, require_object in (
        ("baseline", config.baseline_file, "baseline data", True),
        ("comparison", config.comparison_file, "comparison data", True),
        ("bundle_analysis", config.bundle_stats_file, "bundle analysis", False),
    ):
        inputs[key] = load_json_artifact(path, label, require_object=require_object)
        if inputs[key] is None and verbose:
            print(f"  Not found: {path}", file=sys.stderr)

    return build_report_data(
        baseline=inputs["baseline"],
        comparison=inputs["comparison"],
        lighthouse=find_lighthouse_reports(config, verbose=verbose),
        bundle_analysis=inputs["bundle_analysis"],
        now=now,
        project_name=config.project_name,
        phase=config.phase,
    )


# ---------------------------------------------------------------------------
# Markdown Sections (shared)
# ---------------------------------------------------------------------------


def _data_sources_markdown(data: ReportData) -> str:
    lines = ["## 🗂️ Data Sources", ""]
    for source in data_source_statuses(data):
        marker = "✅" if source["available"] else "❌"
        lines.append(f"- **{source['label']}:** {marker} {source['detail']}")
    return "\n".join(lines)


def _web_vitals_table(vitals: dict) -> str:
    lines = [
        "| Metric | Value | Status |",
        "|--------|--------|--------|",
    ]
    for metric in CWV_METRICS:
        value = metric_value(vitals, metric)
        status = METRIC_STATUS_LABELS[classify_metric(metric, value)]
        lines.append(f"| **{metric}** | {format_metric_value(metric, value)} | {status} |")
    return "\n".join(lines)


# ---------------------------------------------------------------------------
# Executive Summary
# ---------------------------------------------------------------------------


def _critical_issue_status(count: int) -> str:
    if count == 0:
        return "✅ None"
    if count < 5:
        return "⚠️ Some"
    return "❌ Many"


def ux_impact_assessment(summary: ReportSummary) -> str:
    if summary.overall_score >= 80:
        return "**✅ Positive Impact:** Users experience fast, responsive interface with minimal delays."
    if summary.overall_score >= 60:
        return "**⚠️ Moderate Impact:** Some users may experience delays, but overall usability remains acceptable."
    return "**❌ Negative Impact:** Performance issues significantly affect user experience and productivity."


def performance_risk_level(summary: ReportSummary) -> str:
    if summary.critical_issues == 0 and summary.regressions == 0:
        return "**🟢 Low Risk:** Performance is stable with no critical issues."
    if summary.critical_issues < 3 and summary.regressions < 3:
        return "**🟡 Medium Risk:** Some performance concerns require attention."
    return "**🔴 High Risk:** Multiple critical issues require immediate action."


def optimization_roi(summary: ReportSummary) -> str:
    if summary.improvements > summary.regressions:
        return "**📈 Positive ROI:** Optimization efforts are yielding measurable improvements."
    if summary.improvements == summary.regressions:
        return "**➡️ Neutral ROI:** Optimization efforts maintaining current performance levels."
    return "**📉 Negative ROI:** Performance declining, optimization strategy needs review."


def executive_recommendations(summary: ReportSummary) -> list[str]:
    recommendations = []
    if summary.overall_score < 70:
        recommendations.append("**Immediate Action Required:** Invest in comprehensive performance optimization to improve user satisfaction.")
    if summary.critical_issues > 0:
        recommendations.append("**Resource Allocation:** Assign dedicated development resources to address critical performance issues.")
    if summary.improvements > 0:
        recommendations.append("**Continue Investment:** Current optimization efforts showing positive results, maintain current resource allocation.")
    if not recommendations:
        recommendations.append("**Maintain Excellence:** Performance is meeting targets, continue monitoring and proactive optimization.")
    return recommendations


def next_review_date(generated_at: datetime) -> str:
    return format_locale_date((generated_at + timedelta(days=NEXT_REVIEW_DAYS)).astimezone())


def render_executive_summary(data: ReportData) -> str:
    """Render the short Markdown summary aimed at leadership."""
    summary = data.summary
    band = score_band(summary.overall_score)
    vitals = data.vitals
    if data.baseline is None:
        vitals_section = BASELINE_UNAVAILABLE
    elif vitals is None:
        vitals_section = CWV_UNAVAILABLE
    else:
        vitals_section = _web_vitals_table(vitals)

    recommendations = "\n".join(
        f"{index}. {recommendation}"
        for index, recommendation in enumerate(executive_recommendations(summary), start=1)
    )

    sections = [
        f"# {data.project_name} Performance Executive Summary\n"
        f"\n"
        f"**Report Generated:** {format_locale_datetime(data.generated_at.astimezone())}  \n"
        f"**Phase:** {data.phase}  \n"
        f"**Status:** {OVERALL_STATUS_LABELS[band]}",

        "## 🎯 Key Performance Indicators\n"
        "\n"
        "| Metric | Value | Status | Trend |\n"
        "|--------|--------|--------|-------|\n"
        f"| **Overall Performance Score** | {format_number(summary.overall_score)}/100 | {SCORE_STATUS_LABELS[band]} | {trend_indicator(data.comparison)} |\n"
        f"| **Critical Issues** | {summary.critical_issues} | {_critical_issue_status(summary.critical_issues)} | - |\n"
        f"| **Performance Improvements** | {summary.improvements} | {'✅ Active' if summary.improvements > 0 else '➡️ None'} | - |\n"
        f"| **Performance Regressions** | {summary.regressions} | {'✅ None' if summary.regressions == 0 else '⚠️ Present'} | - |",

        f"## 📊 Core Web Vitals Status\n\n{vitals_section}",

        "## 🏢 Business Impact Assessment\n"
        "\n"
        f"### User Experience Impact\n{ux_impact_assessment(summary)}\n"
        "\n"
        f"### Performance Risk Level\n{performance_risk_level(summary)}\n"
        "\n"
        f"### Optimization ROI\n{optimization_roi(summary)}",

        f"## 📈 Recommendations for Leadership\n\n{recommendations}",

        f"## 🗓️ Next Review Date\n\n**Recommended:** {next_review_date(data.generated_at)}",

        _data_sources_markdown(data),

        "---\n"
        f"*This executive summary provides a high-level overview of {data.project_name}'s "
        "performance status for business decision-making.*",
    ]
    return "\n\n".join(sections) + "\n"


# ---------------------------------------------------------------------------
# Technical Report
# ---------------------------------------------------------------------------


def _analysis_start(baseline: dict | None) -> str:
    if baseline is None:
        return "N/A"
    raw = baseline.get("timestamp")
    parsed = parse_timestamp(raw)
    if parsed:
        return format_locale_date(parsed.astimezone())
    return str(raw) if raw else "N/A"


def _baseline_technical_summary(baseline: dict) -> str:
    overall = _section(baseline, "overall")
    vitals = _section(overall, "coreWebVitals")
    average_load_time = _as_number(overall.get("averageLoadTime"))
    lines = [
        f"**Performance Score:** {format_number(overall.get('performanceScore'))}/100  ",
        f"**Average Load Time:** {to_fixed(average_load_time) + 'ms' if average_load_time is not None else 'N/A'}  ",
        f"**Total Features:** {len(_section(baseline, 'features'))}  ",
        f"**Total Issues:** {format_number(overall.get('totalIssues'))}  ",
        "",
        "**Core Web Vitals Baseline:**",
    ]
    if vitals:
        for metric in CWV_METRICS:
            lines.append(f"- {metric}: {format_metric_value(metric, metric_value(vitals, metric))}")
    else:
        lines.append(CWV_UNAVAILABLE)
    return "\n".join(lines)


def _comparison_technical_summary(comparison: dict) -> str:
    baseline_score = _as_number(_section(comparison, "baseline").get("performanceScore"))
    current_score = _as_number(_section(comparison, "current").get("performanceScore"))
    comparison_summary = _section(comparison, "summary")
    trend = comparison_summary.get("overallTrend")
    score_delta = to_fixed(current_score - baseline_score) if baseline_score is not None and current_score is not None else "N/A"

    lines = [
        f"**Performance Score Change:** {format_number(baseline_score)} → {format_number(current_score)} ({score_delta})  ",
        f"**Overall Trend:** {str(trend).upper() if trend else 'N/A'}  ",
        f"**Total Changes:** {format_number(comparison_summary.get('totalChanges', 0))}  ",
        f"**Improvements:** {len(_list(comparison_summary.get('improvements')))}  ",
        f"**Regressions:** {len(_list(comparison_summary.get('regressions')))}  ",
        "",
        "**Core Web Vitals Changes:**",
        "",
    ]
    changes = _section(comparison, "changes", "coreWebVitals")
    if not changes:
        lines.append("No Core Web Vitals changes recorded")
        return "\n".join(lines)

    lines.append("| Metric | Baseline | Current | Change |")
    lines.append("|--------|----------|---------|--------|")
    for metric, change in changes.items():
        change = change if isinstance(change, dict) else {}
        percent = _as_number(change.get("change"))
        percent_display = f"{to_fixed(percent, 1)}%" if percent is not None else "N/A"
        lines.append(
            f"| **{metric}** | {format_metric_value(metric, change.get('baseline'))} "
            f"| {format_metric_value(metric, change.get('current'))} | {percent_display} |"
        )
    return "\n".join(lines)


def _bundle_analysis_summary(bundle_analysis: Any) -> str:
    return (
        "**Bundle Analysis Summary:**\n"
        "- Total bundle size optimization opportunities identified\n"
        "- Feature-based code splitting recommendations available\n"
        "- Critical resource loading optimization potential detected"
    )


def _feature_status_label(status: str | None) -> str:
    if status == "meeting":
        return "✅ Meeting Target"
    if status == "exceeding":
        return "⚠️ Exceeds Target"
    return "N/A"


def _load_time_display(value: Any) -> str:
    if value is None or pd.isna(value):
        return "N/A"
    return f"{to_fixed(value)}ms"


def _target_display(value: Any) -> str:
    if value is None or pd.isna(value):
        return "N/A"
    return f"{format_number(value)}ms"


def _feature_module_details(features: dict) -> str:
    frame = feature_frame(features)
    if frame.empty:
        return "No feature modules recorded in the baseline"

    lines = [
        "| Feature | Priority | Avg Load Time | Target | Status | Routes | Issues |",
        "|---------|----------|---------------|--------|--------|--------|--------|",
    ]
    for _, row in frame.iterrows():
        status = _feature_status_label(feature_status(row["average_load_time"], row["target"]))
        lines.append(
            f"| {row['feature']} | {format_number(row['priority'])} | {_load_time_display(row['average_load_time'])} "
            f"| {_target_display(row['target'])} | {status} | {row['route_count']} | {row['issue_count']} |"
        )

    for _, row in frame.iterrows():
        routes = _section(features, row["feature"], "routes")
        route_lines = [
            f"- {route}: {format_number(_section(routes, route).get('loadTime'))}ms"
            for route in routes
        ] or ["- No routes recorded"]
        status = _feature_status_label(feature_status(row["average_load_time"], row["target"]))
        lines.extend([
            "",
            f"### {row['feature']} ({format_number(row['priority'])} priority)",
            f"- **Average Load Time:** {_load_time_display(row['average_load_time'])}",
            f"- **Target:** {_target_display(row['target'])}",
            f"- **Status:** {status}",
            f"- **Routes:** {row['route_count']}",
            f"- **Issues:** {row['issue_count']}",
            "",
            "**Route Performance:**",
            *route_lines,
        ])
    return "\n".join(lines)


def _core_web_vitals_analysis(vitals: dict) -> str:
    lines = [
        "| Metric | Value | Status | Recommendation |",
        "|--------|--------|--------|----------------|",
    ]
    for metric in CWV_METRICS:
        value = metric_value(vitals, metric)
        status = classify_metric(metric, value)
        if status in ("needs-improvement", "poor"):
            recommendation = CWV_THRESHOLDS[metric]["recommendation"]
        elif status == "good":
            recommendation = CWV_MAINTAIN_TEXT
        else:
            recommendation = "Collect measurements for this metric"
        lines.append(
            f"| **{metric}** | {format_metric_value(metric, value)} | {METRIC_STATUS_LABELS[status]} | {recommendation} |"
        )
    return "\n".join(lines)


def _issue_line(issue: dict) -> str:
    return (
        f"- **{issue['feature']}:** {issue.get('type', 'unknown')} - {issue.get('route', 'N/A')} "
        f"({format_number(issue.get('value'))}ms vs {format_number(issue.get('target'))}ms target)"
    )


def _issues_analysis(features: dict) -> str:
    issues = collect_issues(features)
    if not issues:
        return "✅ No performance issues detected in the current baseline."

    critical = [issue for issue in issues if issue.get("severity") == "high"]
    medium = [issue for issue in issues if issue.get("severity") == "medium"]
    lines = [f"**Critical Issues ({len(critical)}):**"]
    lines.extend([_issue_line(issue) for issue in critical] or ["None"])
    lines.append("")
    lines.append(f"**Medium Priority Issues ({len(medium)}):**")
    lines.extend([_issue_line(issue) for issue in medium] or ["None"])
    return "\n".join(lines)


def technical_recommendations(data: ReportData) -> list[dict[str, str]]:
    """Rule-based engineering recommendations."""
    recommendations = []
    if data.baseline is not None:
        baseline_score = _as_number(_section(data.baseline, "overall").get("performanceScore"))
        if baseline_score is not None and baseline_score < 80:
            recommendations.append({
                "priority": "High",
                "category": "Overall Performance",
                "action": "Implement comprehensive performance optimization strategy",
                "technical": "Review bundle splitting, lazy loading, and critical resource optimization",
            })

        frame = feature_frame(data.features)
        slow = frame[
            frame["average_load_time"].notna()
            & frame["target"].notna()
            & (frame["average_load_time"].astype(float) > frame["target"].astype(float) * SLOW_FEATURE_FACTOR)
        ] if not frame.empty else frame
        for _, row in slow.iterrows():
            recommendations.append({
                "priority": "High",
                "category": f"{row['name']} Optimization",
                "action": "Optimize feature loading performance",
                "technical": "Implement feature-specific code splitting and resource optimization",
            })

    if data.comparison is not None and data.summary.regressions > 0:
        recommendations.append({
            "priority": "Critical",
            "category": "Performance Regression",
            "action": "Address performance regressions immediately",
            "technical": "Review recent changes and implement performance monitoring alerts",
        })
    return recommendations


def _technical_recommendations_markdown(data: ReportData) -> str:
    recommendations = technical_recommendations(data)
    if not recommendations:
        return "✅ No specific technical recommendations at this time. Continue monitoring and proactive optimization."
    return "\n\n".join(
        f"### {rec['priority']}: {rec['category']}\n"
        f"**Action:** {rec['action']}  \n"
        f"**Technical Details:** {rec['technical']}"
        for rec in recommendations
    )


def _monitoring_status(data: ReportData) -> str:
    has_baseline = data.baseline is not None
    has_comparison = data.comparison is not None
    return (
        "## 📊 Performance Monitoring Setup\n"
        "\n"
        "### Current Monitoring Status\n"
        f"- **Web Vitals Monitoring:** {'✅ Active' if has_baseline else '❌ Not Setup'}\n"
        f"- **Real-time Dashboard:** {'✅ Available' if has_baseline else '❌ Not Available'}\n"
        f"- **Automated Alerts:** {'✅ Configured' if has_comparison else '⚠️ Manual Only'}\n"
        f"- **Performance Budgets:** {'✅ Defined' if has_baseline else '❌ Not Set'}\n"
        "\n"
        "### Recommended Monitoring Enhancements\n"
        "1. **Real-time Performance Alerts**\n"
        "2. **Automated Performance Regression Detection**\n"
        "3. **User-centric Performance Metrics**\n"
        "4. **Performance Budget Enforcement**"
    )


def _optimization_progress(data: ReportData) -> str:
    return (
        f"## 🚀 {data.phase} Progress\n"
        "\n"
        "### Completed Optimizations\n"
        "- ✅ Performance monitoring infrastructure\n"
        "- ✅ Web Vitals integration\n"
        "- ✅ Bundle analysis configuration\n"
        "- ✅ Baseline establishment\n"
        "- ✅ Automated reporting\n"
        "\n"
        "### In Progress\n"
        "- 🔄 Feature-based code splitting\n"
        "- 🔄 Critical resource optimization\n"
        "- 🔄 Performance regression testing\n"
        "- 🔄 Production deployment pipeline\n"
        "\n"
        "### Planned\n"
        "- 📅 Advanced caching strategies\n"
        "- 📅 CDN optimization\n"
        "- 📅 Server-side performance tuning\n"
        "- 📅 Third-party service optimization"
    )


def render_technical_report(data: ReportData) -> str:
    """Render the detailed Markdown report for engineering and operations."""
    baseline = data.baseline
    generated = data.generated_at.astimezone()
    vitals = data.vitals

    if baseline is None:
        features_section = FEATURES_UNAVAILABLE
        vitals_section = CWV_UNAVAILABLE
        issues_section = "Issues analysis not available"
    else:
        features_section = _feature_module_details(data.features)
        vitals_section = _core_web_vitals_analysis(vitals) if vitals else CWV_UNAVAILABLE
        issues_section = _issues_analysis(data.features)

    sections = [
        f"# {data.project_name} Technical Performance Report\n"
        "\n"
        f"**Generated:** {format_locale_datetime(generated)}  \n"
        f"**Environment:** Production-Ready  \n"
        f"**Phase:** {data.phase}  \n"
        f"**Analysis Period:** {_analysis_start(baseline)} - {format_locale_date(generated)}",

        "## 🔧 Technical Performance Analysis\n"
        "\n"
        "### Performance Baseline Summary\n"
        f"{_baseline_technical_summary(baseline) if baseline is not None else 'No baseline data available'}\n"
        "\n"
        "### Performance Comparison Analysis\n"
        f"{_comparison_technical_summary(data.comparison) if data.comparison is not None else 'No comparison data available'}\n"
        "\n"
        "### Bundle Analysis\n"
        f"{_bundle_analysis_summary(data.bundle_analysis) if data.bundle_analysis is not None else BUNDLE_UNAVAILABLE}",

        f"## 📦 Feature Module Performance Detail\n\n{features_section}",

        f"## 🎯 Core Web Vitals Deep Dive\n\n{vitals_section}",

        f"## 🔍 Performance Issues Analysis\n\n{issues_section}",

        f"## 💡 Technical Optimization Recommendations\n\n{_technical_recommendations_markdown(data)}",

        _monitoring_status(data),

        _optimization_progress(data),

        _data_sources_markdown(data),

        "---\n"
        "*This technical report provides detailed performance analysis for development and operations teams.*",
    ]
    return "\n\n".join(sections) + "\n"


# ---------------------------------------------------------------------------
# HTML Dashboard
# ---------------------------------------------------------------------------


def _escape(value: Any) -> str:
    return html.escape(format_number(value))


def _dashboard_vitals(data: ReportData) -> str:
    vitals = data.vitals
    if vitals is None:
        placeholder = BASELINE_UNAVAILABLE if data.baseline is None else CWV_UNAVAILABLE
        tiles = f'<p class="placeholder">{placeholder}</p>'
    else:
        cards = []
        for metric in CWV_METRICS:
            thresholds = CWV_THRESHOLDS[metric]
            value = metric_value(vitals, metric)
            status_class = METRIC_STATUS_CLASSES[classify_metric(metric, value)]
            cards.append(f"""
                <div class="metric-card">
                    <div class="metric-label">{thresholds['label']}</div>
                    <div class="metric-value {status_class}">{format_metric_value(metric, value)}</div>
                    <div class="metric-target">Target: {html.escape(thresholds['target'])}</div>
                </div>""")
        tiles = f'<div class="metrics-grid">{"".join(cards)}\n            </div>'
    return f"""
        <div class="chart-container">
            <h3>🎯 Core Web Vitals Performance</h3>
            {tiles}
        </div>"""


def _dashboard_features(data: ReportData) -> str:
    frame = feature_frame(data.features)
    if data.baseline is None or frame.empty:
        body = f'<p class="placeholder">{FEATURES_UNAVAILABLE}</p>'
    else:
        items = []
        for _, row in frame.iterrows():
            status = feature_status(row["average_load_time"], row["target"])
            status_class = "status-good" if status == "meeting" else "status-warning" if status == "exceeding" else "status-na"
            items.append(f"""
                <li class="feature-item">
                    <strong>{_escape(row['feature'])}</strong> ({_escape(row['priority'])} priority)
                    <br>
                    Average Load Time: <span class="{status_class}">{_load_time_display(row['average_load_time'])}</span>
                    | Target: {_target_display(row['target'])}
                    | Routes: {row['route_count']}
                    | Issues: {row['issue_count']}
                </li>""")
        body = f'<ul class="feature-list">{"".join(items)}\n            </ul>'
    return f"""
        <div class="chart-container">
            <h3>📦 Feature Module Performance</h3>
            {body}
        </div>"""


def _dashboard_resources(data: ReportData) -> str:
    links = []
    if data.baseline is not None:
        links.append('<li><a href="../performance/baseline.json">Download Baseline Data (JSON)</a></li>')
    if data.comparison is not None:
        links.append('<li><a href="../performance/comparison.json">Download Comparison Data (JSON)</a></li>')
    for key in sorted(data.lighthouse or {}):
        links.append(f'<li><a href="../{html.escape(key)}.html">View {html.escape(key)} Lighthouse Report</a></li>')
    links.append(f'<li><a href="{EXECUTIVE_SUMMARY_FILENAME}">Executive Summary Report</a></li>')
    links.append(f'<li><a href="{TECHNICAL_REPORT_FILENAME}">Technical Performance Report</a></li>')
    return "\n                ".join(links)


def _dashboard_sources(data: ReportData) -> str:
    items = []
    for source in data_source_statuses(data):
        status_class = "status-good" if source["available"] else "status-na"
        items.append(
            f'<li><strong>{source["label"]}:</strong> <span class="{status_class}">{html.escape(source["detail"])}</span></li>'
        )
    return "\n                ".join(items)


def embed_report_json(data: ReportData) -> str:
    """Serialize ReportData for a <script> block."""
    return json.dumps(data.to_dict(), indent=2, ensure_ascii=False, default=str).replace("</", "<\\/")


def render_dashboard(data: ReportData) -> str:
    """Render a self-contained HTML dashboard that reloads every five minutes."""
    summary = data.summary
    score_class = SCORE_COLOR_CLASSES[score_band(summary.overall_score)]
    project = html.escape(data.project_name)

    return f"""<!DOCTYPE html>
<html lang="en">
<head>
    <meta charset="UTF-8">
    <meta name="viewport" content="width=device-width, initial-scale=1.0">
    <title>{project} Performance Dashboard</title>
    <style>
        body {{ font-family: Arial, sans-serif; margin: 0; padding: 20px; background: #f5f5f5; }}
        .container {{ max-width: 1200px; margin: 0 auto; }}
        .header {{ background: #2563eb; color: white; padding: 20px; border-radius: 8px; margin-bottom: 20px; }}
        .metrics-grid {{ display: grid; grid-template-columns: repeat(auto-fit, minmax(250px, 1fr)); gap: 20px; margin-bottom: 20px; }}
        .metric-card {{ background: white; padding: 20px; border-radius: 8px; box-shadow: 0 2px 4px rgba(0,0,0,0.1); }}
        .metric-value {{ font-size: 2em; font-weight: bold; color: #1f2937; }}
        .metric-label {{ color: #6b7280; margin-bottom: 10px; }}
        .metric-target {{ font-size: 0.8em; color: #6b7280; }}
        .status-good {{ color: #10b981; }}
        .status-warning {{ color: #f59e0b; }}
        .status-error {{ color: #ef4444; }}
        .status-na {{ color: #9ca3af; }}
        .placeholder {{ color: #6b7280; font-style: italic; }}
        .chart-container {{ background: white; padding: 20px; border-radius: 8px; box-shadow: 0 2px 4px rgba(0,0,0,0.1); margin-bottom: 20px; }}
        .feature-list {{ list-style: none; padding: 0; }}
        .feature-item {{ padding: 10px; margin: 5px 0; background: #f9fafb; border-radius: 4px; border-left: 4px solid #2563eb; }}
    </style>
</head>
<body>
    <div class="container">
        <div class="header">
            <h1>🚀 {project} Performance Dashboard</h1>
            <p>Real-time performance monitoring for {html.escape(data.phase)}</p>
            <p><strong>Last Updated:</strong> {format_locale_datetime(data.generated_at.astimezone())}</p>
        </div>

        <div class="metrics-grid">
            <div class="metric-card">
                <div class="metric-label">Performance Score</div>
                <div class="metric-value {score_class}">{_escape(summary.overall_score)}/100</div>
            </div>
            <div class="metric-card">
                <div class="metric-label">Critical Issues</div>
                <div class="metric-value {'status-good' if summary.critical_issues == 0 else 'status-error'}">{summary.critical_issues}</div>
            </div>
            <div class="metric-card">
                <div class="metric-label">Improvements</div>
                <div class="metric-value status-good">{summary.improvements}</div>
            </div>
            <div class="metric-card">
                <div class="metric-label">Regressions</div>
                <div class="metric-value {'status-good' if summary.regressions == 0 else 'status-warning'}">{summary.regressions}</div>
            </div>
        </div>
{_dashboard_vitals(data)}
{_dashboard_features(data)}

        <div class="chart-container">
            <h3>🗂️ Data Sources</h3>
            <ul>
                {_dashboard_sources(data)}
            </ul>
        </div>

        <div class="chart-container">
            <h3>🔗 Additional Resources</h3>
            <ul>
                {_dashboard_resources(data)}
            </ul>
        </div>
    </div>

    <script>
        // Auto-refresh every 5 minutes
        setTimeout(() => {{
            location.reload();
        }}, {DASHBOARD_REFRESH_MS});

        // Performance data for potential charts
        window.performanceData = {embed_report_json(data)};
    </script>
</body>
</html>"""


# ---------------------------------------------------------------------------
# JSON Export
# ---------------------------------------------------------------------------


def build_export_dict(data: ReportData) -> dict[str, Any]:
    """Build the JSON-serializable export envelope."""
    return {
        "metadata": {
            "generatedAt": data.timestamp,
            "version": EXPORT_FORMAT_VERSION,
            "phase": data.phase,
            "reportType": EXPORT_REPORT_TYPE,
        },
        "summary": data.summary.to_dict(),
        "baseline": data.baseline,
        "comparison": data.comparison,
        "recommendations": collect_recommendations(data),
        "nextSteps": list(NEXT_STEPS),
        "dataSources": {source["key"]: source["detail"] for source in data_source_statuses(data)},
    }


def render_json_export(data: ReportData, indent: int = 2) -> str:
    return json.dumps(build_export_dict(data), indent=indent, ensure_ascii=False, default=str)


# ---------------------------------------------------------------------------
# Output
# ---------------------------------------------------------------------------

REPORT_RENDERERS = [
    (EXECUTIVE_SUMMARY_FILENAME, render_executive_summary, "executive summary"),
    (TECHNICAL_REPORT_FILENAME, render_technical_report, "technical report"),
    (DASHBOARD_FILENAME, render_dashboard, "performance dashboard"),
    (EXPORT_FILENAME, render_json_export, "JSON data export"),
]


def write_reports(data: ReportData, config: ReportConfig) -> list[Path]:
    """Render and write all four reports, overwriting existing files."""
    config.output_dir.mkdir(parents=True, exist_ok=True)
    written_files: list[Path] = []
    for filename, renderer, label in REPORT_RENDERERS:
        print(f"Generating {label}...", file=sys.stderr)
        report_path = config.output_dir / filename
        report_path.write_text(renderer(data), encoding="utf-8")
        written_files.append(report_path)
    return written_files


def format_terminal_summary(data: ReportData) -> Table:
    """Build a rich table of the headline KPIs."""
    summary = data.summary
    band = score_band(summary.overall_score)
    table = Table(title=f"{data.project_name} Performance Summary")
    table.add_column("Metric")
    table.add_column("Value", justify="right")
    table.add_column("Status")
    table.add_row("Overall Score", f"{format_number(summary.overall_score)}/100", OVERALL_STATUS_LABELS[band])
    table.add_row("Critical Issues", str(summary.critical_issues), _critical_issue_status(summary.critical_issues))
    table.add_row("Improvements", str(summary.improvements), "✅ Active" if summary.improvements > 0 else "➡️ None")
    table.add_row("Regressions", str(summary.regressions), "✅ None" if summary.regressions == 0 else "⚠️ Present")
    return table


def should_send_webhook(webhook_on: str, summary: ReportSummary) -> bool:
    if webhook_on == "regression":
        return summary.regressions > 0 or summary.critical_issues > 0
    return True


def send_report_webhook(webhook_url: str, payload: dict) -> None:
    """POST the export envelope to a webhook URL. Failures are warnings only."""
    try:
        response = requests.post(webhook_url, json=payload, timeout=WEBHOOK_TIMEOUT)
        response.raise_for_status()
    except (requests.RequestException, OSError) as exc:
        print(f"Warning: webhook delivery failed: {exc}", file=sys.stderr)


# ---------------------------------------------------------------------------
# Baseline Comparison
# ---------------------------------------------------------------------------


def calculate_change(baseline_value: float, current_value: float) -> float:
    """Percent change from baseline; 0 when the baseline is 0."""
    if baseline_value == 0:
        return 0.0
    return ((current_value - baseline_value) / baseline_value) * 100


def get_trend(change_percent: float, lower_is_better: bool = True) -> str:
    if abs(change_percent) < TREND_STABLE_THRESHOLD:
        return "stable"
    if lower_is_better:
        return "improving" if change_percent < 0 else "declining"
    return "improving" if change_percent > 0 else "declining"


def calculate_performance_score(vitals: dict) -> int:
    """Score current vitals: 100 minus a deduction per slow metric, floored at 0."""
    score = 100
    for metric, severe_above, severe_points, mild_above, mild_points in SCORE_DEDUCTIONS:
        value = _as_number(vitals.get(metric))
        if value is None:
            continue
        if value > severe_above:
            score -= severe_points
        elif value > mild_above:
            score -= mild_points
    return max(0, js_round(score))


def _percent_value(text: Any) -> float:
    try:
        return float(str(text).rstrip("%"))
    except ValueError:
        return 0.0


def generate_comparison_recommendations(comparison: dict) -> list[dict[str, str]]:
    recommendations = []
    summary = comparison["summary"]

    for regression in summary["regressions"]:
        if _percent_value(regression.get("regression")) > CRITICAL_REGRESSION_THRESHOLD:
            recommendations.append({
                "priority": "critical",
                "type": regression["type"],
                "message": f"Critical regression in {regression.get('feature') or regression.get('metric')}",
                "action": "Immediate investigation and rollback consideration required",
                "impact": "High user experience impact",
            })

    baseline_score = _as_number(comparison["baseline"].get("performanceScore")) or 0
    score_change = calculate_change(baseline_score, comparison["current"]["performanceScore"])
    if score_change < SCORE_DECLINE_THRESHOLD:
        recommendations.append({
            "priority": "high",
            "type": "overall",
            "message": "Overall performance score declined significantly",
            "action": "Comprehensive performance audit needed",
            "impact": "User experience degradation",
        })

    for feature, change in comparison["changes"]["features"].items():
        if change["change"] > FEATURE_REGRESSION_THRESHOLD and change.get("priority") == "high":
            recommendations.append({
                "priority": "high",
                "type": "feature",
                "message": f"High-priority feature {feature} shows performance regression",
                "action": "Optimize critical path and review recent changes",
                "impact": "Business-critical feature impact",
            })

    if len(summary["improvements"]) > len(summary["regressions"]):
        recommendations.append({
            "priority": "info",
            "type": "positive",
            "message": "Overall performance trending positively",
            "action": "Continue current optimization efforts",
            "impact": "Improved user experience",
        })

    return recommendations


def compare_with_baseline(baseline: dict, current: dict, now: datetime | None = None) -> dict:
    """Compare current measurements with the baseline.

    ``current`` uses the baseline shape (``overall`` with averageLoadTime and
    coreWebVitals, ``features`` keyed by module). The result is the
    comparison artifact read by the report generator.
    """
    generated_at = format_iso_timestamp(now or datetime.now(timezone.utc))
    baseline_overall = _section(baseline, "overall")
    current_overall = _section(current, "overall")
    improvements: list[dict] = []
    regressions: list[dict] = []

    comparison: dict[str, Any] = {
        "timestamp": generated_at,
        "baseline": {
            "timestamp": baseline.get("timestamp"),
            "performanceScore": baseline_overall.get("performanceScore"),
        },
        "current": {
            "timestamp": current.get("timestamp") or generated_at,
            "performanceScore": 0,
        },
        "changes": {"overall": {}, "features": {}, "coreWebVitals": {}},
        "summary": {
            "improvements": improvements,
            "regressions": regressions,
            "totalChanges": 0,
            "overallTrend": "stable",
        },
        "recommendations": [],
    }

    baseline_load = _as_number(baseline_overall.get("averageLoadTime"))
    current_load = _as_number(current_overall.get("averageLoadTime"))
    if baseline_load is not None and current_load is not None:
        change = calculate_change(baseline_load, current_load)
        comparison["changes"]["overall"]["averageLoadTime"] = {
            "baseline": baseline_load,
            "current": current_load,
            "change": change,
            "trend": get_trend(change),
        }

    current_vitals = _section(current_overall, "coreWebVitals")
    for metric, raw_baseline in _section(baseline_overall, "coreWebVitals").items():
        baseline_value = _as_number(raw_baseline)
        current_value = _as_number(current_vitals.get(metric))
        if baseline_value is None or current_value is None:
            continue
        change = calculate_change(baseline_value, current_value)
        comparison["changes"]["coreWebVitals"][metric] = {
            "baseline": baseline_value,
            "current": current_value,
            "change": change,
            "trend": get_trend(change),
        }
        if change < -CWV_CHANGE_THRESHOLD:
            improvements.append({"type": "core-web-vitals", "metric": metric, "improvement": f"{to_fixed(abs(change), 1)}%"})
        elif change > CWV_CHANGE_THRESHOLD:
            regressions.append({"type": "core-web-vitals", "metric": metric, "regression": f"{to_fixed(change, 1)}%"})

    merged = pd.merge(
        feature_frame(baseline.get("features")),
        feature_frame(current.get("features")),
        on="feature",
        suffixes=("_baseline", "_current"),
        how="inner",
    )
    for _, row in merged.iterrows():
        before = row["average_load_time_baseline"]
        after = row["average_load_time_current"]
        if pd.isna(before) or pd.isna(after):
            continue
        change = calculate_change(float(before), float(after))
        priority = row["priority_baseline"]
        comparison["changes"]["features"][row["feature"]] = {
            "baseline": float(before),
            "current": float(after),
            "change": change,
            "trend": get_trend(change),
            "priority": priority if pd.notna(priority) else None,
        }
        if change < -FEATURE_CHANGE_THRESHOLD:
            improvements.append({"type": "feature", "feature": row["feature"], "improvement": f"{to_fixed(abs(change), 1)}%"})
        elif change > FEATURE_CHANGE_THRESHOLD:
            regressions.append({"type": "feature", "feature": row["feature"], "regression": f"{to_fixed(change, 1)}%"})

    current_score = _as_number(current_overall.get("performanceScore"))
    if current_score is None:
        current_score = calculate_performance_score(current_vitals)
    comparison["current"]["performanceScore"] = current_score

    baseline_score = _as_number(baseline_overall.get("performanceScore")) or 0
    score_change = calculate_change(baseline_score, current_score)
    comparison["summary"]["totalChanges"] = len(improvements) + len(regressions)
    if score_change > SCORE_TREND_THRESHOLD:
        comparison["summary"]["overallTrend"] = "improving"
    elif score_change < -SCORE_TREND_THRESHOLD:
        comparison["summary"]["overallTrend"] = "declining"

    comparison["recommendations"] = generate_comparison_recommendations(comparison)
    return comparison


def _trend_emoji(trend: Any) -> str:
    return TREND_EMOJIS.get(trend, "❓")


def _locale_or_na(value: Any) -> str:
    parsed = parse_timestamp(value)
    return format_locale_datetime(parsed.astimezone()) if parsed else "N/A"


def render_comparison_report(
    comparison: dict,
    project_name: str = DEFAULT_PROJECT_NAME,
    now: datetime | None = None,
) -> str:
    """Render the Markdown companion to a comparison artifact."""
    generated = (now or datetime.now(timezone.utc)).astimezone()
    summary = comparison["summary"]
    baseline_score = comparison["baseline"].get("performanceScore")
    current_score = comparison["current"]["performanceScore"]
    trend = summary["overallTrend"]
    score_delta = to_fixed(current_score - baseline_score) if _as_number(baseline_score) is not None else "N/A"

    summary_rows = [
        f"| **Performance Score** | {format_number(baseline_score)} | {format_number(current_score)} | {score_delta} | {TREND_INDICATORS.get(trend, '➡️')} |"
    ]
    load_time = comparison["changes"]["overall"].get("averageLoadTime")
    if load_time:
        summary_rows.append(
            f"| **Overall Load Time** | {to_fixed(load_time['baseline'])}ms | {to_fixed(load_time['current'])}ms "
            f"| {to_fixed(load_time['change'], 1)}% | {_trend_emoji(load_time['trend'])} |"
        )

    vitals_rows = [
        f"| **{metric}** | {format_metric_value(metric, change['baseline'])} | {format_metric_value(metric, change['current'])} "
        f"| {to_fixed(change['change'], 1)}% | {_trend_emoji(change['trend'])} |"
        for metric, change in comparison["changes"]["coreWebVitals"].items()
    ]

    feature_blocks = [
        f"### {feature} ({format_number(change.get('priority'))} priority)\n"
        f"- **Baseline:** {to_fixed(change['baseline'])}ms\n"
        f"- **Current:** {to_fixed(change['current'])}ms\n"
        f"- **Change:** {to_fixed(change['change'], 1)}% {_trend_emoji(change['trend'])}"
        for feature, change in comparison["changes"]["features"].items()
    ]

    improvement_lines = [
        f"- **{item.get('feature') or item.get('metric')}**: {item['improvement']} improvement"
        for item in summary["improvements"]
    ]
    regression_lines = [
        f"- **{item.get('feature') or item.get('metric')}**: {item['regression']} regression"
        for item in summary["regressions"]
    ]
    recommendation_blocks = [
        f"### {rec['priority'].upper()}: {rec['message']}\n"
        f"- **Action:** {rec['action']}\n"
        f"- **Impact:** {rec['impact']}"
        for rec in comparison["recommendations"]
    ]

    if trend == "declining":
        next_actions = [
            "**Immediate Investigation:** Review recent changes that may have caused regressions",
            "**Performance Audit:** Conduct detailed analysis of affected areas",
            "**Optimization Plan:** Develop targeted optimization strategy",
            "**Monitoring:** Increase monitoring frequency for critical metrics",
        ]
    elif trend == "improving":
        next_actions = [
            "**Continue Optimization:** Maintain current optimization efforts",
            "**Document Success:** Record successful optimization strategies",
            "**Expand Coverage:** Apply successful patterns to other areas",
            "**Baseline Update:** Consider updating baseline with improved metrics",
        ]
    else:
        next_actions = [
            "**Maintain Stability:** Continue current practices",
            "**Proactive Monitoring:** Watch for emerging trends",
            "**Continuous Improvement:** Look for new optimization opportunities",
            "**Regular Reviews:** Schedule periodic performance reviews",
        ]

    sections = [
        f"# {project_name} Performance Comparison Report\n"
        "\n"
        f"**Generated:** {format_locale_datetime(generated)}  \n"
        f"**Baseline Date:** {_locale_or_na(comparison['baseline'].get('timestamp'))}  \n"
        f"**Current Date:** {_locale_or_na(comparison['current'].get('timestamp'))}",

        "## 📊 Executive Summary\n"
        "\n"
        "| Metric | Baseline | Current | Change | Trend |\n"
        "|--------|----------|---------|--------|-------|\n"
        + "\n".join(summary_rows),

        "## 🎯 Core Web Vitals Comparison\n"
        "\n"
        + ("| Metric | Baseline | Current | Change | Status |\n"
           "|--------|----------|---------|--------|--------|\n"
           + "\n".join(vitals_rows) if vitals_rows else CWV_UNAVAILABLE),

        "## 📦 Feature Module Performance\n\n"
        + ("\n\n".join(feature_blocks) if feature_blocks else "No matching feature modules to compare."),

        "## 📈 Performance Changes\n"
        "\n"
        f"### ✅ Improvements ({len(improvement_lines)})\n"
        + ("\n".join(improvement_lines) if improvement_lines else "No significant improvements detected.")
        + "\n\n"
        f"### ⚠️ Regressions ({len(regression_lines)})\n"
        + ("\n".join(regression_lines) if regression_lines else "No performance regressions detected."),

        "## 💡 Recommendations\n\n"
        + ("\n\n".join(recommendation_blocks) if recommendation_blocks else "No specific recommendations at this time."),

        "## 📋 Next Actions\n\n"
        + "\n".join(f"{index}. {action}" for index, action in enumerate(next_actions, start=1)),

        f"---\n*Generated by {project_name} Performance Comparison*",
    ]
    return "\n\n".join(sections) + "\n"


# ---------------------------------------------------------------------------
# Subcommand: generate
# ---------------------------------------------------------------------------


def cmd_generate(args: argparse.Namespace) -> None:
    """Load all available inputs and write the four reports."""
    config = build_config(args)
    verbose = getattr(args, "verbose", False)
    print(f"{config.project_name} - Performance Report Generator", file=sys.stderr)
    if verbose:
        print(f"  Project root: {config.root}", file=sys.stderr)

    data = gather_report_data(config, verbose=verbose)
    written_files = write_reports(data, config)

    print("\nReports written to:", file=sys.stderr)
    for filepath in written_files:
        print(f"  {filepath}", file=sys.stderr)
    Console(stderr=True).print(format_terminal_summary(data))

    webhook_url = getattr(args, "webhook", None)
    if webhook_url and should_send_webhook(getattr(args, "webhook_on", DEFAULT_WEBHOOK_ON), data.summary):
        send_report_webhook(webhook_url, build_export_dict(data))

    if getattr(args, "open_browser", False):
        dashboard_path = config.output_dir / DASHBOARD_FILENAME
        webbrowser.open(dashboard_path.resolve().as_uri())


# ---------------------------------------------------------------------------
# Subcommand: compare
# ---------------------------------------------------------------------------


def cmd_compare(args: argparse.Namespace) -> None:
    """Compare a current-metrics file with the baseline and save comparison.json."""
    config = build_config(args)
    baseline = load_json_artifact(config.baseline_file, "baseline data", require_object=True)
    if baseline is None:
        raise ReportError(f"no baseline file found at {config.baseline_file}")
    current = load_json_artifact(Path(args.current_file), "current metrics", require_object=True)
    if current is None:
        raise ReportError(f"current metrics file not found: {args.current_file}")

    print("Comparing performance...", file=sys.stderr)
    comparison = compare_with_baseline(baseline, current)

    output_path = Path(args.output) if getattr(args, "output", None) else config.comparison_file
    output_path.parent.mkdir(parents=True, exist_ok=True)
    output_path.write_text(json.dumps(comparison, indent=2, ensure_ascii=False), encoding="utf-8")
    report_path = output_path.with_name(COMPARISON_REPORT_FILENAME)
    report_path.write_text(render_comparison_report(comparison, config.project_name), encoding="utf-8")

    summary = comparison["summary"]
    print(f"\nResults saved to: {output_path}", file=sys.stderr)
    print(f"Report generated: {report_path}", file=sys.stderr)
    print("\nSummary:", file=sys.stderr)
    print(
        f"  Performance Score: {format_number(comparison['baseline']['performanceScore'])} "
        f"-> {format_number(comparison['current']['performanceScore'])}",
        file=sys.stderr,
    )
    print(f"  Overall Trend:     {summary['overallTrend'].upper()}", file=sys.stderr)
    print(f"  Improvements:      {len(summary['improvements'])}", file=sys.stderr)
    print(f"  Regressions:       {len(summary['regressions'])}", file=sys.stderr)
    print(f"  Recommendations:   {len(comparison['recommendations'])}", file=sys.stderr)
    if any(rec["priority"] == "critical" for rec in comparison["recommendations"]):
        print("\nCRITICAL ISSUES DETECTED - Immediate attention required!", file=sys.stderr)


# ---------------------------------------------------------------------------
# Main
# ---------------------------------------------------------------------------

COMMANDS = {
    "generate": (cmd_generate, "Error generating performance report"),
    "compare": (cmd_compare, "Error performing comparison"),
}


def main(argv: list[str] | None = None) -> None:
    parser = build_argument_parser()
    argv = sys.argv[1:] if argv is None else list(argv)
    args = parser.parse_args(argv)
    if not args.command:
        args = parser.parse_args([*argv, "generate"])

    # Load config
    config_path = Path(args.config) if args.config else discover_config_path()
    config = load_config(config_path)

    # Apply profile and config defaults
    profile_name = getattr(args, "profile", None)
    args = apply_profile(args, config, profile_name)

    handler, error_prefix = COMMANDS[args.command]
    try:
        handler(args)
    except (ReportError, OSError) as exc:
        print(f"{error_prefix}: {exc}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
