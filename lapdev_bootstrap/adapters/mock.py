"""
Mock adapter — test double for host operations.

Records every execution context and returns canned receipts, so the
engine can be exercised without a user database or root privileges.
"""

from __future__ import annotations

from lapdev_bootstrap.adapters.base import Adapter, ExecutionContext
from lapdev_bootstrap.core.models.action import Receipt


class MockAdapter(Adapter):
    """Universal mock adapter for testing.

    By default every action reports ``created``. Custom responses can be
    configured per action ID.
    """

    def __init__(
        self,
        adapter_name: str = "mock",
        available: bool = True,
        default_output: str = "[mock] created",
    ):
        self._name = adapter_name
        self._available = available
        self._default_output = default_output
        self._responses: dict[str, Receipt] = {}
        self._call_log: list[ExecutionContext] = []

    @property
    def name(self) -> str:
        return self._name

    @property
    def call_log(self) -> list[ExecutionContext]:
        """All execution contexts this mock has received."""
        return self._call_log

    @property
    def call_count(self) -> int:
        return len(self._call_log)

    def is_available(self) -> bool:
        return self._available

    def set_present(self, action_id: str) -> None:
        """Report a specific action's resource as already present."""
        self._responses[action_id] = Receipt.present(
            adapter=self._name,
            action_id=action_id,
            output="[mock] present",
        )

    def set_failure(self, action_id: str, error: str = "Mock failure") -> None:
        """Configure a specific action to fail."""
        self._responses[action_id] = Receipt.failure(
            adapter=self._name,
            action_id=action_id,
            error=error,
        )

    def validate(self, context: ExecutionContext) -> tuple[bool, str]:
        return True, ""

    def execute(self, context: ExecutionContext) -> Receipt:
        self._call_log.append(context)

        if context.action.id in self._responses:
            return self._responses[context.action.id]

        if context.dry_run:
            return Receipt.skip(
                adapter=self._name,
                action_id=context.action.id,
                reason="[mock] would create",
            )

        return Receipt.created(
            adapter=self._name,
            action_id=context.action.id,
            output=self._default_output,
            metadata={"mock": True},
        )

    def reset(self) -> None:
        """Clear call log and custom responses."""
        self._call_log.clear()
        self._responses.clear()
