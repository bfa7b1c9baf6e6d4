"""
Account adapter — ensure an OS user exists.

Looks the user up in the user database and runs ``useradd`` only when
the account is missing.
"""

from __future__ import annotations

import logging
import pwd
import shutil
import subprocess
import time

from lapdev_bootstrap.adapters.base import Adapter, ExecutionContext
from lapdev_bootstrap.core.models.action import Receipt

logger = logging.getLogger(__name__)

USERADD = "useradd"


class AccountAdapter(Adapter):
    """Create-if-absent for OS user accounts.

    Action params:
        operation (str): 'ensure_user'.
        user (str): Account name.
        home (str): Home directory, created with the account.
        shell (str): Login shell (default: /bin/bash).
        timeout (int): useradd timeout in seconds (default: 60).
    """

    @property
    def name(self) -> str:
        return "account"

    def is_available(self) -> bool:
        return shutil.which(USERADD) is not None

    def validate(self, context: ExecutionContext) -> tuple[bool, str]:
        operation = context.params.get("operation", "")
        if operation != "ensure_user":
            return False, f"Unknown operation '{operation}'. Valid: ensure_user"

        if not context.params.get("user"):
            return False, "Missing required param: 'user'"
        if not context.params.get("home"):
            return False, "Missing required param: 'home'"

        return True, ""

    def execute(self, context: ExecutionContext) -> Receipt:
        user = context.params["user"]
        home = context.params["home"]
        shell = context.params.get("shell", "/bin/bash")
        timeout = context.params.get("timeout", 60)
        action_id = context.action.id

        try:
            entry = pwd.getpwnam(user)
        except KeyError:
            entry = None

        if entry is not None:
            return Receipt.present(
                adapter=self.name,
                action_id=action_id,
                output=f"User {user} exists (uid={entry.pw_uid})",
                metadata={"user": user, "uid": entry.pw_uid, "home": entry.pw_dir},
            )

        if context.dry_run:
            return Receipt.skip(
                adapter=self.name,
                action_id=action_id,
                reason=f"[dry-run] Would create user {user} with home {home}",
                metadata={"user": user, "home": home},
            )

        command = [USERADD, "--create-home", "--home-dir", home, "--shell", shell, user]
        logger.debug("Executing: %s", " ".join(command))
        start = time.monotonic()

        try:
            result = subprocess.run(
                command,
                capture_output=True,
                text=True,
                timeout=timeout,
            )
        except subprocess.TimeoutExpired:
            return Receipt.failure(
                adapter=self.name,
                action_id=action_id,
                error=f"{USERADD} timed out after {timeout}s",
                metadata={"command": command, "timeout": timeout},
            )
        except OSError as e:
            return Receipt.failure(
                adapter=self.name,
                action_id=action_id,
                error=f"Cannot run {USERADD}: {e}",
                metadata={"command": command},
            )

        elapsed_ms = int((time.monotonic() - start) * 1000)
        stderr = result.stderr.strip()

        if result.returncode != 0:
            return Receipt.failure(
                adapter=self.name,
                action_id=action_id,
                error=stderr or f"{USERADD} exited with code {result.returncode}",
                duration_ms=elapsed_ms,
                metadata={"command": command, "return_code": result.returncode},
            )

        logger.info("Created user %s (home %s)", user, home)
        return Receipt.created(
            adapter=self.name,
            action_id=action_id,
            output=f"Created user {user}",
            duration_ms=elapsed_ms,
            metadata={"user": user, "home": home, "stderr": stderr},
        )
