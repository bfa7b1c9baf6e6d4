"""
Engine executor — the bootstrap sequence.

Builds the fixed, ordered plan of host resources and executes it
through the adapter registry, collecting receipts. Execution is
fail-fast: the first failed receipt halts the run, because every
later step assumes the earlier ones succeeded. There is no rollback;
re-running is safe since every action is create-if-absent.

Flow:
    layout → build plan → execute actions in order → report
"""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass, field
from datetime import UTC, datetime

from lapdev_bootstrap.adapters.registry import AdapterRegistry
from lapdev_bootstrap.core.config.loader import HostLayout
from lapdev_bootstrap.core.data import defaults
from lapdev_bootstrap.core.models.action import Action, Receipt

logger = logging.getLogger(__name__)

STEP_ACCOUNT = "service-account"
STEP_CONFIG = "daemon-config"
STEP_DELEGATION = "cgroup-delegation"
STEP_CONTAINERS = "container-runtime"


@dataclass
class Step:
    """A named group of actions, executed in order."""

    name: str
    description: str = ""
    actions: list[Action] = field(default_factory=list)


@dataclass
class ExecutionPlan:
    """The ordered steps of one bootstrap run."""

    operation_id: str = ""
    steps: list[Step] = field(default_factory=list)

    @property
    def actions(self) -> list[Action]:
        return [a for step in self.steps for a in step.actions]

    @property
    def total_actions(self) -> int:
        return len(self.actions)

    def to_dict(self) -> dict:
        return {
            "operation_id": self.operation_id,
            "steps": [
                {
                    "name": step.name,
                    "description": step.description,
                    "actions": [_describe_action(a) for a in step.actions],
                }
                for step in self.steps
            ],
        }


@dataclass
class ExecutionReport:
    """Result of executing a plan."""

    operation_id: str = ""
    receipts: list[Receipt] = field(default_factory=list)
    step_receipts: dict[str, list[Receipt]] = field(default_factory=dict)
    halted_at: str | None = None     # action id of the failure, if any
    planned: int = 0

    @property
    def total(self) -> int:
        return len(self.receipts)

    @property
    def created(self) -> int:
        return sum(1 for r in self.receipts if r.status == "created")

    @property
    def present(self) -> int:
        return sum(1 for r in self.receipts if r.status == "present")

    @property
    def skipped(self) -> int:
        return sum(1 for r in self.receipts if r.status == "skipped")

    @property
    def failed(self) -> int:
        return sum(1 for r in self.receipts if r.failed)

    @property
    def not_run(self) -> int:
        """Actions never attempted because an earlier one failed."""
        return self.planned - self.total

    @property
    def all_ok(self) -> bool:
        return self.failed == 0

    @property
    def changed(self) -> bool:
        return self.created > 0

    @property
    def status(self) -> str:
        if self.failed:
            return "failed"
        if self.created:
            return "changed"
        if self.skipped:
            return "pending"
        return "unchanged"

    @property
    def error(self) -> str | None:
        for r in self.receipts:
            if r.failed:
                return f"{r.action_id}: {r.error}"
        return None

    def to_dict(self) -> dict:
        return {
            "operation_id": self.operation_id,
            "status": self.status,
            "total": self.total,
            "created": self.created,
            "present": self.present,
            "skipped": self.skipped,
            "failed": self.failed,
            "not_run": self.not_run,
            "halted_at": self.halted_at,
            "receipts": [r.model_dump(mode="json") for r in self.receipts],
        }


def _describe_action(action: Action) -> dict:
    params = {k: v for k, v in action.params.items() if k != "content"}
    if isinstance(params.get("mode"), int):
        params["mode"] = oct(params["mode"])
    return {"id": action.id, "name": action.name, "adapter": action.adapter, **params}


def build_plan(layout: HostLayout, operation_id: str = "") -> ExecutionPlan:
    """Build the bootstrap plan for a host layout.

    Pure: inspects nothing on the host. The order of steps is part of
    the contract.
    """
    user = layout.service_user
    plan = ExecutionPlan(operation_id=operation_id or generate_operation_id())

    plan.steps.append(Step(
        name=STEP_ACCOUNT,
        description=f"Ensure service account '{user}'",
        actions=[
            Action(
                id=f"{STEP_ACCOUNT}:user",
                name=f"user {user}",
                adapter="account",
                step=STEP_ACCOUNT,
                params={
                    "operation": "ensure_user",
                    "user": user,
                    "home": layout.home,
                    "shell": defaults.SERVICE_SHELL,
                },
            ),
        ],
    ))

    plan.steps.append(Step(
        name=STEP_CONFIG,
        description="Ensure default daemon configuration and state directory",
        actions=[
            Action(
                id=f"{STEP_CONFIG}:file",
                name=layout.config_file,
                adapter="filesystem",
                step=STEP_CONFIG,
                params={
                    "operation": "ensure_file",
                    "path": str(layout.host_path(layout.config_file)),
                    "content": defaults.WS_CONFIG.render(),
                    "owner": user,
                    "mode": defaults.CONFIG_FILE_MODE,
                },
            ),
            Action(
                id=f"{STEP_CONFIG}:state-dir",
                name=layout.state_dir,
                adapter="filesystem",
                step=STEP_CONFIG,
                params={
                    "operation": "ensure_dir",
                    "path": str(layout.host_path(layout.state_dir)),
                    "owner": user,
                },
            ),
        ],
    ))

    plan.steps.append(Step(
        name=STEP_DELEGATION,
        description="Delegate cgroup controllers to user sessions",
        actions=[
            Action(
                id=f"{STEP_DELEGATION}:dropin",
                name=layout.delegate_dropin,
                adapter="filesystem",
                step=STEP_DELEGATION,
                params={
                    "operation": "ensure_file",
                    "path": str(layout.host_path(layout.delegate_dropin)),
                    "content": defaults.DELEGATE_CONF.render(),
                },
            ),
        ],
    ))

    config_tree = str(layout.host_path(layout.user_config_dir))
    containers: list[Action] = []
    for filename, document in (
        ("registries.conf", defaults.REGISTRIES_CONF),
        ("storage.conf", defaults.STORAGE_CONF),
    ):
        path = f"{layout.containers_dir}/{filename}"
        containers.append(Action(
            id=f"{STEP_CONTAINERS}:{filename}",
            name=path,
            adapter="filesystem",
            step=STEP_CONTAINERS,
            params={
                "operation": "ensure_file",
                "path": str(layout.host_path(path)),
                "content": document.render(),
                "owner": user,
                "chown_tree": config_tree,
            },
        ))
    plan.steps.append(Step(
        name=STEP_CONTAINERS,
        description="Ensure podman defaults for the service account",
        actions=containers,
    ))

    return plan


def execute_plan(
    plan: ExecutionPlan,
    registry: AdapterRegistry,
    dry_run: bool = False,
) -> ExecutionReport:
    """Execute every action in plan order, halting on the first failure."""
    report = ExecutionReport(
        operation_id=plan.operation_id,
        planned=plan.total_actions,
    )

    for step in plan.steps:
        for action in step.actions:
            receipt = registry.execute_action(action, dry_run=dry_run)
            report.receipts.append(receipt)
            report.step_receipts.setdefault(step.name, []).append(receipt)

            marker = {"created": "✓", "present": "=", "skipped": "⊘"}.get(receipt.status, "✗")
            logger.info("%s %s → %s", marker, action.id, receipt.status)

            if receipt.failed:
                logger.error("Step '%s' failed at %s: %s", step.name, action.id, receipt.error)
                report.halted_at = action.id
                return report

    return report


def generate_operation_id() -> str:
    """Generate a unique operation ID."""
    now = datetime.now(UTC).strftime("%Y%m%d-%H%M%S")
    short = uuid.uuid4().hex[:6]
    return f"op-{now}-{short}"
