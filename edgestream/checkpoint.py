"""Checkpoints kept as JSON files in a directory."""

from __future__ import annotations

import json
import logging
import os
import time
from datetime import datetime, timedelta
from typing import Optional

from . import constants
from .state import Checkpoint, CheckpointInfo, StateError

logger = logging.getLogger(__name__)

_PREFIX = "checkpoint_"
_SUFFIX = ".json"


class CheckpointNotFoundError(StateError, LookupError):
    """Raised when no stored checkpoint matches a request."""


def _epoch(timestamp: Optional[datetime]) -> float:
    return timestamp.timestamp() if timestamp is not None else float("-inf")


def _unix_seconds(timestamp: Optional[datetime]) -> int:
    return int(timestamp.timestamp()) if timestamp is not None else 0


def _read_checkpoint(path: str) -> Checkpoint:
    try:
        with open(path, encoding="utf-8") as handle:
            data = json.load(handle)
    except OSError as exc:
        raise StateError(f"failed to read checkpoint file: {exc}") from exc
    except ValueError as exc:
        raise StateError(f"failed to unmarshal checkpoint: {exc}") from exc
    try:
        return Checkpoint.from_dict(data)
    except (AttributeError, TypeError, ValueError) as exc:
        raise StateError(f"failed to unmarshal checkpoint: {exc}") from exc


def _tree_size(path: str) -> int:
    """Sum the sizes of all non-directory entries below ``path``; errors propagate."""
    total = 0
    with os.scandir(path) as entries:
        for entry in entries:
            if entry.is_dir(follow_symlinks=False):
                total += _tree_size(entry.path)
            else:
                total += entry.stat(follow_symlinks=False).st_size
    return total


class FileCheckpointManager:
    """Stores each checkpoint as ``checkpoint_<id>_<unix seconds>.json``."""

    def __init__(self, base_path: str | os.PathLike[str]) -> None:
        self.base_path = os.fspath(base_path)

    def _names(self) -> list[str]:
        return sorted(os.listdir(self.base_path))

    def _find(self, checkpoint_id: str) -> str:
        try:
            names = self._names()
        except OSError as exc:
            raise StateError(f"failed to read checkpoint directory: {exc}") from exc
        for name in names:
            if checkpoint_id in name and name.endswith(_SUFFIX):
                return os.path.join(self.base_path, name)
        raise CheckpointNotFoundError(f"checkpoint {checkpoint_id} not found")

    def save(self, checkpoint: Checkpoint) -> str:
        """Write a checkpoint to disk and return the path of its file."""
        try:
            os.makedirs(
                self.base_path,
                mode=constants.DEFAULT_DIRECTORY_PERMISSION,
                exist_ok=True,
            )
        except OSError as exc:
            raise StateError(f"failed to create checkpoint directory: {exc}") from exc

        try:
            text = json.dumps(checkpoint.to_dict(), indent=2)
        except (TypeError, ValueError) as exc:
            raise StateError(f"failed to marshal checkpoint: {exc}") from exc

        filename = f"{_PREFIX}{checkpoint.id}_{_unix_seconds(checkpoint.timestamp)}{_SUFFIX}"
        path = os.path.join(self.base_path, filename)
        try:
            fd = os.open(
                path,
                os.O_WRONLY | os.O_CREAT | os.O_TRUNC,
                constants.DEFAULT_FILE_PERMISSION,
            )
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                handle.write(text)
        except OSError as exc:
            raise StateError(f"failed to write checkpoint file: {exc}") from exc
        return path

    def load(self, checkpoint_id: str) -> Checkpoint:
        """Read the first checkpoint file whose name contains ``checkpoint_id``."""
        return _read_checkpoint(self._find(checkpoint_id))

    def list(self) -> list[CheckpointInfo]:
        """Summarise every readable checkpoint, newest first."""
        try:
            names = self._names()
        except FileNotFoundError:
            return []
        except OSError as exc:
            raise StateError(f"failed to read checkpoint directory: {exc}") from exc

        infos: list[CheckpointInfo] = []
        for name in names:
            if not (name.startswith(_PREFIX) and name.endswith(_SUFFIX)):
                continue
            parts = name[: -len(_SUFFIX)].split("_")
            if len(parts) < constants.MIN_CHECKPOINT_FILE_NAME_PARTS:
                continue
            path = os.path.join(self.base_path, name)
            try:
                checkpoint = _read_checkpoint(path)
                size = os.path.getsize(path)
            except (StateError, OSError):
                continue
            infos.append(
                CheckpointInfo(
                    id=parts[1],
                    timestamp=checkpoint.timestamp,
                    size=size,
                    states=len(checkpoint.states or {}),
                )
            )

        infos.sort(key=lambda info: _epoch(info.timestamp), reverse=True)
        return infos

    def delete(self, checkpoint_id: str) -> None:
        """Remove the first checkpoint file whose name contains ``checkpoint_id``."""
        path = self._find(checkpoint_id)
        try:
            os.remove(path)
        except OSError as exc:
            raise StateError(f"failed to delete checkpoint file: {exc}") from exc

    def cleanup(self, retention_period: timedelta) -> int:
        """Delete checkpoints older than ``retention_period``; return how many went."""
        cutoff = time.time() - retention_period.total_seconds()
        deleted = 0
        for info in self.list():
            if _epoch(info.timestamp) < cutoff:
                try:
                    self.delete(info.id)
                except StateError as exc:
                    logger.warning("Failed to delete expired checkpoint %s: %s", info.id, exc)
                else:
                    deleted += 1
        logger.info("Cleaned up %d expired checkpoints", deleted)
        return deleted

    def get_latest(self) -> Checkpoint:
        """Load the newest checkpoint."""
        infos = self.list()
        if not infos:
            raise CheckpointNotFoundError("no checkpoints found")
        return self.load(infos[0].id)

    def get_size(self) -> int:
        """Return the total size in bytes of the files under the directory."""
        root_stat = os.stat(self.base_path)
        if not os.path.isdir(self.base_path):
            return root_stat.st_size
        return _tree_size(self.base_path)

    def validate(self, checkpoint_id: str) -> None:
        """Raise StateError if the stored checkpoint is incomplete."""
        checkpoint = self.load(checkpoint_id)
        if checkpoint.id == "":
            raise StateError("checkpoint ID is empty")
        if checkpoint.timestamp is None:
            raise StateError("checkpoint timestamp is zero")
        if checkpoint.states is None:
            raise StateError("checkpoint states is nil")
        for state_name, state_data in checkpoint.states.items():
            if state_name == "":
                raise StateError("empty state name found")
            if state_data is None:
                raise StateError(f"state data for {state_name} is nil")