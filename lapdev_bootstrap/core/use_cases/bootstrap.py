"""
Bootstrap use case — bring the host to the state lapdev-ws needs.

    bootstrap()       raises BootstrapError on failure, returns None
    run_bootstrap()   returns a BootstrapResult instead of raising

Both are safe to call on an already-configured host: every step is
create-if-absent and existing files are never rewritten.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from lapdev_bootstrap.adapters.registry import AdapterRegistry
from lapdev_bootstrap.core.config.loader import HostLayout
from lapdev_bootstrap.core.engine.executor import (
    ExecutionPlan,
    ExecutionReport,
    build_plan,
    execute_plan,
)

logger = logging.getLogger(__name__)


class BootstrapError(Exception):
    """Raised when a bootstrap step fails. The run stopped at that step."""

    def __init__(self, message: str, report: ExecutionReport | None = None):
        super().__init__(message)
        self.report = report


@dataclass
class BootstrapResult:
    """Result of one bootstrap run."""

    layout: HostLayout | None = None
    plan: ExecutionPlan | None = None
    report: ExecutionReport | None = None
    dry_run: bool = False
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    def to_dict(self) -> dict:
        result: dict = {"dry_run": self.dry_run}
        if self.error:
            result["error"] = self.error
        if self.layout is not None:
            result["root"] = str(self.layout.root)
            result["service_user"] = self.layout.service_user
        if self.report is not None:
            result["report"] = self.report.to_dict()
        return result


def run_bootstrap(
    layout: HostLayout | None = None,
    registry: AdapterRegistry | None = None,
    dry_run: bool = False,
) -> BootstrapResult:
    """Run the bootstrap sequence and report what happened.

    Args:
        layout: Host layout. Defaults to the fixed lapdev-ws paths.
        registry: Adapter registry. Defaults to the real host adapters.
        dry_run: If True, check every resource but change nothing.

    Returns:
        BootstrapResult; ``error`` is set if a step failed.
    """
    layout = layout or HostLayout()
    registry = registry or AdapterRegistry.default()

    plan = build_plan(layout)
    logger.info(
        "Bootstrap %s: %d steps, %d actions%s",
        plan.operation_id,
        len(plan.steps),
        plan.total_actions,
        " (dry-run)" if dry_run else "",
    )

    report = execute_plan(plan, registry, dry_run=dry_run)
    result = BootstrapResult(layout=layout, plan=plan, report=report, dry_run=dry_run)

    if not report.all_ok:
        result.error = report.error
        return result

    logger.info(
        "Bootstrap %s: %d created, %d already present",
        plan.operation_id,
        report.created,
        report.present,
    )
    return result


def bootstrap(
    layout: HostLayout | None = None,
    registry: AdapterRegistry | None = None,
) -> None:
    """Apply every bootstrap step, raising on the first failure.

    Raises:
        BootstrapError: If any step's OS operation failed.
    """
    result = run_bootstrap(layout=layout, registry=registry)
    if result.error:
        raise BootstrapError(result.error, report=result.report)
