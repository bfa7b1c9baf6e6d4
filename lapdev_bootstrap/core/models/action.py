"""
Action and Receipt models — the execution contract.

Actions describe one host mutation to ensure. Receipts describe what
happened. Adapters take Actions and return Receipts, never exceptions.

Receipt status is one of:
    created  — the resource was absent and has been created
    present  — the resource already existed, nothing was changed
    skipped  — dry-run: the resource is absent and would be created
    failed   — the underlying OS operation failed
"""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Any, Literal

from pydantic import BaseModel, Field

ReceiptStatus = Literal["created", "present", "skipped", "failed"]


def _now_iso() -> str:
    """Current UTC time as ISO string."""
    return datetime.now(UTC).isoformat()


class Action(BaseModel):
    """A resource the bootstrapper wants to exist on the host."""

    id: str                         # unique action identifier, e.g. "daemon-config:file"
    name: str = ""                  # human-readable name
    adapter: str                    # which adapter handles this
    step: str = ""                  # owning bootstrap step
    params: dict[str, Any] = Field(default_factory=dict)


class Receipt(BaseModel):
    """Result of an adapter execution."""

    adapter: str
    action_id: str
    status: ReceiptStatus = "present"

    started_at: str = Field(default_factory=_now_iso)
    ended_at: str = Field(default_factory=_now_iso)
    duration_ms: int = 0

    output: str = ""
    error: str | None = None

    metadata: dict[str, Any] = Field(default_factory=dict)

    @property
    def ok(self) -> bool:
        """Whether the resource is (or would be) in place."""
        return self.status != "failed"

    @property
    def failed(self) -> bool:
        return self.status == "failed"

    @property
    def changed(self) -> bool:
        """Whether the host was mutated."""
        return self.status == "created"

    @classmethod
    def created(
        cls,
        adapter: str,
        action_id: str,
        output: str = "",
        **kwargs: Any,
    ) -> Receipt:
        """Create a receipt for a newly created resource."""
        return cls(
            adapter=adapter,
            action_id=action_id,
            status="created",
            output=output,
            **kwargs,
        )

    @classmethod
    def present(
        cls,
        adapter: str,
        action_id: str,
        output: str = "",
        **kwargs: Any,
    ) -> Receipt:
        """Create a receipt for a resource that already existed."""
        return cls(
            adapter=adapter,
            action_id=action_id,
            status="present",
            output=output,
            **kwargs,
        )

    @classmethod
    def failure(
        cls,
        adapter: str,
        action_id: str,
        error: str,
        **kwargs: Any,
    ) -> Receipt:
        """Create a failure receipt."""
        return cls(
            adapter=adapter,
            action_id=action_id,
            status="failed",
            error=error,
            **kwargs,
        )

    @classmethod
    def skip(
        cls,
        adapter: str,
        action_id: str,
        reason: str = "",
        **kwargs: Any,
    ) -> Receipt:
        """Create a skip receipt (dry-run)."""
        return cls(
            adapter=adapter,
            action_id=action_id,
            status="skipped",
            output=reason,
            **kwargs,
        )
