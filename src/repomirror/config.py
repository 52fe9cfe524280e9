"""Configuration loading for repomirror projects."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from repomirror.agents import AgentKind, available_agents, is_agent_available
from repomirror.exceptions import InvalidArgumentError, RepoMirrorError
from repomirror.pipeline import SyncJob
from repomirror.remote import RemoteDescriptor

CONFIG_FILENAME = "repomirror.yaml"
SCRATCH_DIRNAME = ".repomirror"
PLAN_FILENAME = "IMPLEMENTATION_PLAN.md"

_GIT_URL = re.compile(r"^(https?://\S+|git@[^\s:]+:\S+)\.git$", re.IGNORECASE)
_GITHUB_URL = re.compile(r"^https?://github\.com/[^/\s]+/[^/\s]+", re.IGNORECASE)


class ConfigError(RepoMirrorError):
    """Raised when configuration is invalid or missing."""


@dataclass
class PushConfig:
    """Defaults for pushing the target repository."""

    default_remote: str = "origin"
    default_branch: str = "main"
    commit_prefix: str = "[repomirror]"


@dataclass
class PullConfig:
    """Where source changes are pulled from.

    source_path defaults to the first sync job's source when unset.
    """

    source_remote: str = "upstream"
    source_branch: str = "main"
    auto_sync: bool = False
    source_path: str | None = None


@dataclass
class LoopConfig:
    """Continuous sync settings."""

    interval: float = 10.0
    agent_timeout: float = 300.0


@dataclass
class RepoMirrorConfig:
    """repomirror project configuration."""

    syncs: list[SyncJob]
    remotes: list[RemoteDescriptor] = field(default_factory=list)
    push: PushConfig = field(default_factory=PushConfig)
    pull: PullConfig = field(default_factory=PullConfig)
    loop: LoopConfig = field(default_factory=LoopConfig)
    root_path: Path = field(default_factory=Path)

    @classmethod
    def from_dict(cls, data: dict[str, Any], root_path: Path) -> RepoMirrorConfig:
        """Create config from dictionary.

        Args:
            data: Configuration dictionary from YAML.
            root_path: Root directory containing the config file. Relative
                paths are resolved against it.

        Returns:
            Parsed configuration object.

        Raises:
            ConfigError: If required fields are missing or invalid.
        """
        root_path = Path(root_path)
        syncs_data = data.get("syncs")
        if not isinstance(syncs_data, list) or not syncs_data:
            raise ConfigError("'syncs' must be a non-empty list")

        syncs = [
            _parse_sync(entry, index, root_path) for index, entry in enumerate(syncs_data, start=1)
        ]

        remotes_data = data.get("remotes") or {}
        if not isinstance(remotes_data, dict):
            raise ConfigError("'remotes' must be a mapping of remote name to settings")
        remotes = []
        for name, remote in remotes_data.items():
            remote = remote or {}
            if not isinstance(remote, dict) or not remote.get("url"):
                raise ConfigError(f"Remote '{name}' is missing 'url'")
            remotes.append(
                RemoteDescriptor(
                    name=str(name),
                    url=remote["url"],
                    branch=remote.get("branch", "main"),
                    auto_push=bool(remote.get("auto_push", False)),
                )
            )

        push_data = _section(data, "push")
        push = PushConfig(
            default_remote=push_data.get("default_remote", "origin"),
            default_branch=push_data.get("default_branch", "main"),
            commit_prefix=push_data.get("commit_prefix", "[repomirror]"),
        )

        pull_data = _section(data, "pull")
        source_path = pull_data.get("source_path")
        pull = PullConfig(
            source_remote=pull_data.get("source_remote", "upstream"),
            source_branch=pull_data.get("source_branch", "main"),
            auto_sync=bool(pull_data.get("auto_sync", False)),
            source_path=_resolve(source_path, root_path) if source_path else None,
        )

        loop_data = _section(data, "loop")
        try:
            loop = LoopConfig(
                interval=float(loop_data.get("interval", 10.0)),
                agent_timeout=float(loop_data.get("agent_timeout", 300.0)),
            )
        except (TypeError, ValueError) as e:
            raise ConfigError(f"Invalid loop settings: {e}") from e
        if loop.interval < 0 or loop.agent_timeout <= 0:
            raise ConfigError("'loop.interval' must be >= 0 and 'loop.agent_timeout' > 0")

        return cls(
            syncs=syncs,
            remotes=remotes,
            push=push,
            pull=pull,
            loop=loop,
            root_path=root_path,
        )

    @property
    def scratch_dir(self) -> Path:
        return self.root_path / SCRATCH_DIRNAME

    @property
    def plan_path(self) -> Path:
        return self.root_path / PLAN_FILENAME

    @property
    def pull_source_path(self) -> Path:
        """Source repository the pull command operates on."""
        return Path(self.pull.source_path or self.syncs[0].source_path)

    def get_remote(self, name: str) -> RemoteDescriptor | None:
        """Look up a configured remote by name."""
        for remote in self.remotes:
            if remote.name == name:
                return remote
        return None

    def auto_push_remotes(self) -> list[RemoteDescriptor]:
        return [remote for remote in self.remotes if remote.auto_push]


def _section(data: dict[str, Any], key: str) -> dict[str, Any]:
    value = data.get(key) or {}
    if not isinstance(value, dict):
        raise ConfigError(f"'{key}' must be a mapping, got {type(value).__name__}")
    return value


def _resolve(path: str, root_path: Path) -> str:
    candidate = Path(path).expanduser()
    if not candidate.is_absolute():
        candidate = root_path / candidate
    return str(candidate.resolve())


def _parse_sync(entry: Any, index: int, root_path: Path) -> SyncJob:
    """Build one SyncJob from its YAML entry."""
    if not isinstance(entry, dict):
        raise ConfigError(f"Sync {index}: entry must be a mapping")

    source = entry.get("source") or {}
    target = entry.get("target") or {}
    source_path = source.get("path") if isinstance(source, dict) else None
    target_repo = target.get("repo") if isinstance(target, dict) else None
    instructions = entry.get("instructions")
    agent = entry.get("agent", AgentKind.CLAUDE_CODE.value)

    missing = [
        name
        for name, value in (
            ("source.path", source_path),
            ("target.repo", target_repo),
            ("instructions", instructions),
        )
        if not value
    ]
    if missing:
        raise ConfigError(f"Sync {index}: missing required fields: {', '.join(missing)}")

    if not is_agent_available(str(agent)):
        raise ConfigError(
            f"Sync {index}: unknown agent '{agent}'. "
            f"Available agents: {', '.join(available_agents())}"
        )

    try:
        return SyncJob(
            source_path=_resolve(str(source_path), root_path),
            target_repo=_resolve(str(target_repo), root_path),
            instructions=str(instructions),
            agent=AgentKind(agent),
        )
    except InvalidArgumentError as e:
        raise ConfigError(f"Sync {index}: {e}") from e


def _read_data(config_path: Path) -> dict[str, Any]:
    if not config_path.exists():
        raise ConfigError(f"Configuration file not found: {config_path}")

    try:
        with open(config_path) as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {config_path}: {e}") from e

    if not isinstance(data, dict):
        raise ConfigError(f"Configuration must be a YAML mapping, got {type(data).__name__}")
    return data


def _write_data(config_path: Path, data: dict[str, Any]) -> None:
    with open(config_path, "w") as f:
        yaml.safe_dump(data, f, sort_keys=False, default_flow_style=False)


def load_config(config_path: Path | str) -> RepoMirrorConfig:
    """Load repomirror configuration from a YAML file.

    Args:
        config_path: Path to repomirror.yaml file.

    Returns:
        Parsed configuration object.

    Raises:
        ConfigError: If file doesn't exist or is invalid.
    """
    config_path = Path(config_path)
    data = _read_data(config_path)
    return RepoMirrorConfig.from_dict(data, config_path.parent.resolve())


def find_config(start_path: Path | str | None = None) -> Path:
    """Find repomirror.yaml by walking up directory tree.

    Args:
        start_path: Starting directory. Defaults to current directory.

    Returns:
        Path to repomirror.yaml file.

    Raises:
        ConfigError: If no config file is found.
    """
    start_path = Path.cwd() if start_path is None else Path(start_path)
    current = start_path.resolve()

    for directory in (current, *current.parents):
        config_path = directory / CONFIG_FILENAME
        if config_path.exists():
            return config_path

    raise ConfigError(f"No {CONFIG_FILENAME} found in {start_path} or any parent directory")


def is_valid_remote_url(url: str) -> bool:
    """Check that a URL looks like a git remote.

    Accepts ``https://.../repo.git``, ``git@host:owner/repo.git`` and
    ``https://github.com/owner/repo``.
    """
    return bool(_GIT_URL.match(url) or _GITHUB_URL.match(url))


def _remotes_section(data: dict[str, Any]) -> dict[str, Any]:
    remotes = data.get("remotes") or {}
    if not isinstance(remotes, dict):
        raise ConfigError("'remotes' must be a mapping of remote name to settings")
    return remotes


def add_remote(
    config_path: Path | str, name: str, url: str, branch: str = "main"
) -> RemoteDescriptor:
    """Add a remote to repomirror.yaml.

    The first remote added also becomes the default push remote. Missing push
    defaults are filled in.

    Args:
        config_path: Path to repomirror.yaml.
        name: Remote name (e.g. 'origin').
        url: Git URL of the remote.
        branch: Branch to push to.

    Returns:
        The added remote.

    Raises:
        ConfigError: If the URL is invalid, the name is taken, or the file
            cannot be read.
    """
    if not name or not url:
        raise ConfigError("Remote name and URL are required")
    if not is_valid_remote_url(url):
        raise ConfigError(
            f"Invalid git URL: {url} (expected https://github.com/user/repo.git "
            "or git@github.com:user/repo.git)"
        )

    config_path = Path(config_path)
    data = _read_data(config_path)
    remotes = _remotes_section(data)
    if name in remotes:
        existing = remotes[name] or {}
        current = existing.get("url") if isinstance(existing, dict) else None
        raise ConfigError(f"Remote '{name}' already exists (current URL: {current})")

    remotes[name] = {"url": url, "branch": branch, "auto_push": False}
    data["remotes"] = remotes

    push = _section(data, "push")
    push.setdefault("default_remote", name)
    push.setdefault("default_branch", branch)
    push.setdefault("commit_prefix", "[repomirror]")
    data["push"] = push

    _write_data(config_path, data)
    return RemoteDescriptor(name=name, url=url, branch=branch)


def remove_remote(config_path: Path | str, name: str) -> tuple[RemoteDescriptor, str | None]:
    """Remove a remote from repomirror.yaml.

    When the default push remote is removed, the first remaining remote takes
    its place.

    Returns:
        The removed remote and the default push remote afterwards.

    Raises:
        ConfigError: If the remote is not configured or the file cannot be read.
    """
    config_path = Path(config_path)
    data = _read_data(config_path)
    remotes = _remotes_section(data)
    if name not in remotes:
        raise ConfigError(f"Remote '{name}' not found")

    entry = remotes.pop(name) or {}
    if not isinstance(entry, dict):
        entry = {}
    removed = RemoteDescriptor(
        name=name,
        url=str(entry.get("url", "")),
        branch=entry.get("branch", "main"),
        auto_push=bool(entry.get("auto_push", False)),
    )

    push = _section(data, "push")
    if push.get("default_remote") == name:
        if remotes:
            push["default_remote"] = next(iter(remotes))
        else:
            del push["default_remote"]

    _write_data(config_path, data)
    return removed, push.get("default_remote")
