"""
Package lifecycle hook — the postinst entry point.

dpkg calls postinst with the lifecycle phase as its first argument.
Only ``configure`` runs the bootstrap; every other phase is a no-op.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from lapdev_bootstrap.adapters.registry import AdapterRegistry
from lapdev_bootstrap.core.config.loader import HostLayout
from lapdev_bootstrap.core.use_cases.bootstrap import BootstrapResult, run_bootstrap

logger = logging.getLogger(__name__)

CONFIGURE = "configure"

# Phases dpkg may pass; anything else is accepted and ignored too.
KNOWN_PHASES = frozenset({
    CONFIGURE,
    "abort-upgrade",
    "abort-remove",
    "abort-deconfigure",
    "triggered",
})


@dataclass
class PostinstResult:
    phase: str
    ran: bool = False
    bootstrap: BootstrapResult | None = None

    @property
    def ok(self) -> bool:
        return self.bootstrap is None or self.bootstrap.ok

    @property
    def error(self) -> str | None:
        return self.bootstrap.error if self.bootstrap else None

    def to_dict(self) -> dict:
        result: dict = {"phase": self.phase, "ran": self.ran}
        if self.bootstrap is not None:
            result["bootstrap"] = self.bootstrap.to_dict()
        return result


def postinst(
    phase: str,
    layout: HostLayout | None = None,
    registry: AdapterRegistry | None = None,
) -> PostinstResult:
    """Handle one postinst invocation."""
    result = PostinstResult(phase=phase)

    if phase != CONFIGURE:
        if phase not in KNOWN_PHASES:
            logger.warning("postinst called with unknown phase '%s'", phase)
        else:
            logger.debug("postinst phase '%s': nothing to do", phase)
        return result

    result.ran = True
    result.bootstrap = run_bootstrap(layout=layout, registry=registry)
    return result
