"""Static analysis of course documents."""

from vvce.analysis.dry_run import DryRunResult, DryRunSimulator, dry_run, dry_run_report

__all__ = ["DryRunResult", "DryRunSimulator", "dry_run", "dry_run_report"]
