"""
Filesystem adapter — create-if-absent files and directories.

Existence is the only completion marker: an existing file is never
rewritten, re-owned or re-moded. New files are written atomically
(temp file in the target directory, then rename) with their final
owner and mode already applied, so an interrupted run cannot leave a
partial file behind.
"""

from __future__ import annotations

import logging
import os
import pwd
import tempfile
from pathlib import Path

from lapdev_bootstrap.adapters.base import Adapter, ExecutionContext
from lapdev_bootstrap.core.models.action import Receipt

logger = logging.getLogger(__name__)

DEFAULT_FILE_MODE = 0o644


class FilesystemAdapter(Adapter):
    """File and directory creation with receipts.

    Action params:
        operation (str): One of 'ensure_file', 'ensure_dir'.
        path (str): Absolute target path.
        content (str): File content (for 'ensure_file').
        owner (str): Optional account that should own the new file/dir;
            the group is the account's primary group.
        mode (int): Optional permission bits for a new file (default 0644).
        chown_tree (str): Optional directory re-owned recursively to
            ``owner`` when the file is created.
    """

    @property
    def name(self) -> str:
        return "filesystem"

    def is_available(self) -> bool:
        return True

    def validate(self, context: ExecutionContext) -> tuple[bool, str]:
        params = context.params
        operation = params.get("operation", "")
        if not operation:
            return False, "Missing required param: 'operation'"

        valid_ops = {"ensure_file", "ensure_dir"}
        if operation not in valid_ops:
            return False, f"Unknown operation '{operation}'. Valid: {', '.join(sorted(valid_ops))}"

        path = params.get("path", "")
        if not path:
            return False, "Missing required param: 'path'"
        if not Path(path).is_absolute():
            return False, f"Path must be absolute: {path}"

        if operation == "ensure_file" and "content" not in params:
            return False, "Missing required param: 'content' for ensure_file operation"

        if params.get("chown_tree") and not params.get("owner"):
            return False, "'chown_tree' requires 'owner'"

        return True, ""

    def execute(self, context: ExecutionContext) -> Receipt:
        operation = context.params["operation"]
        target = Path(context.params["path"])

        try:
            if operation == "ensure_file":
                return self._ensure_file(context, target)
            elif operation == "ensure_dir":
                return self._ensure_dir(context, target)
            else:
                return Receipt.failure(
                    adapter=self.name,
                    action_id=context.action.id,
                    error=f"Unknown operation: {operation}",
                )
        except Exception as e:
            return Receipt.failure(
                adapter=self.name,
                action_id=context.action.id,
                error=f"Filesystem error: {e}",
                metadata={"operation": operation, "path": str(target)},
            )

    def _ensure_file(self, ctx: ExecutionContext, target: Path) -> Receipt:
        if target.exists() or target.is_symlink():
            return Receipt.present(
                adapter=self.name,
                action_id=ctx.action.id,
                output=f"Exists, left unchanged: {target}",
                metadata={"path": str(target)},
            )

        if ctx.dry_run:
            return Receipt.skip(
                adapter=self.name,
                action_id=ctx.action.id,
                reason=f"[dry-run] Would create {target}",
                metadata={"path": str(target)},
            )

        content: str = ctx.params["content"]
        owner = ctx.params.get("owner")
        mode = ctx.params.get("mode", DEFAULT_FILE_MODE)
        chown_tree = ctx.params.get("chown_tree")

        ids = _resolve_owner(owner) if owner else None
        if chown_tree and ids is None:
            return Receipt.failure(
                adapter=self.name,
                action_id=ctx.action.id,
                error=f"Cannot re-own {chown_tree} without an owner",
                metadata={"path": str(target)},
            )

        target.parent.mkdir(parents=True, exist_ok=True)
        _atomic_create(target, content, mode, ids)

        if chown_tree and ids is not None:
            _chown_recursive(Path(chown_tree), ids)

        logger.info("Created %s", target)
        return Receipt.created(
            adapter=self.name,
            action_id=ctx.action.id,
            output=f"Written {len(content)} bytes to {target}",
            metadata={
                "path": str(target),
                "size": len(content),
                "mode": oct(mode),
                "owner": owner,
            },
        )

    def _ensure_dir(self, ctx: ExecutionContext, target: Path) -> Receipt:
        if target.is_dir():
            return Receipt.present(
                adapter=self.name,
                action_id=ctx.action.id,
                output=f"Directory exists: {target}",
                metadata={"path": str(target)},
            )

        if target.exists():
            return Receipt.failure(
                adapter=self.name,
                action_id=ctx.action.id,
                error=f"Not a directory: {target}",
                metadata={"path": str(target)},
            )

        if ctx.dry_run:
            return Receipt.skip(
                adapter=self.name,
                action_id=ctx.action.id,
                reason=f"[dry-run] Would create directory {target}",
                metadata={"path": str(target)},
            )

        owner = ctx.params.get("owner")
        ids = _resolve_owner(owner) if owner else None

        target.mkdir(parents=True)
        if ids is not None:
            os.chown(target, *ids)

        logger.info("Created directory %s", target)
        return Receipt.created(
            adapter=self.name,
            action_id=ctx.action.id,
            output=f"Directory created: {target}",
            metadata={"path": str(target), "owner": owner},
        )


def _resolve_owner(user: str) -> tuple[int, int]:
    """Return (uid, primary gid) for an account name."""
    try:
        entry = pwd.getpwnam(user)
    except KeyError:
        raise LookupError(f"unknown user '{user}'") from None
    return entry.pw_uid, entry.pw_gid


def _atomic_create(
    target: Path,
    content: str,
    mode: int,
    ids: tuple[int, int] | None,
) -> None:
    """Write content to a temp file beside target, then rename into place."""
    fd, tmp_path = tempfile.mkstemp(
        dir=target.parent,
        prefix=f".{target.name}.",
        suffix=".tmp",
    )
    tmp = Path(tmp_path)
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(content)
            f.flush()
            os.fsync(f.fileno())
        if ids is not None:
            os.chown(tmp, *ids)
        os.chmod(tmp, mode)
        tmp.rename(target)
    except Exception:
        tmp.unlink(missing_ok=True)
        raise


def _chown_recursive(root: Path, ids: tuple[int, int]) -> None:
    """Equivalent of ``chown -R`` without following symlinks."""
    os.chown(root, *ids, follow_symlinks=False)
    for dirpath, dirnames, filenames in os.walk(root):
        for entry in dirnames + filenames:
            os.chown(os.path.join(dirpath, entry), *ids, follow_symlinks=False)
