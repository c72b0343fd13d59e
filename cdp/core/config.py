"""Typed configuration loading and access.

The pipeline is configured from a `cdp.toml` file plus a handful of
environment variables. Secrets (tracker API key, Slack token) are only ever
read from the environment so they never land in the repository.
"""

from __future__ import annotations

import os
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field, replace
from pathlib import Path

from .result import Err, Ok, Result
from .structured import (
    StrDict,
    as_str_dict,
    get_bool,
    get_int,
    get_list,
    get_str,
    get_str_list,
    get_table,
)

__all__ = [
    "CommandsConfig",
    "Config",
    "ConfigError",
    "PipelineSettings",
    "RegistryConfig",
    "RolloutStep",
    "SlackConfig",
    "TrackerConfig",
    "DEFAULT_CONFIG_FILE",
    "env_or_default",
    "load_config",
    "load_config_or_default",
]

DEFAULT_CONFIG_FILE = "cdp.toml"

DEFAULT_TARGET_BRANCH = "main"
DEFAULT_TIMEOUT_MINUTES = 20
DEFAULT_SKIP_MARKER = "[skip ci]"
DEFAULT_TEST_COMMAND = ("make", "test")
DEFAULT_FORMAT_COMMAND = ("make", "check-fmt")
DEFAULT_SLACK_API_URL = "https://slack.com/api/chat.postMessage"

ENV_TARGET_BRANCH = "CDP_TARGET_BRANCH"
ENV_TIMEOUT_MINUTES = "CDP_TIMEOUT_MINUTES"
ENV_BRANCH = "CDP_BRANCH"
ENV_TRACKER_API_KEY = "CDP_TRACKER_API_KEY"
ENV_SLACK_TOKEN = "CDP_SLACK_TOKEN"


@dataclass(frozen=True, slots=True)
class ConfigError:
    """Error when config cannot be loaded or parsed."""

    message: str
    path: Path | None = None


@dataclass(frozen=True, slots=True)
class PipelineSettings:
    """Run-wide settings."""

    target_branch: str = DEFAULT_TARGET_BRANCH
    timeout_minutes: int = DEFAULT_TIMEOUT_MINUTES
    skip_marker: str = DEFAULT_SKIP_MARKER
    service_name: str = "service"
    image_name: str = "service"
    # Used when HEAD is detached (CI agents check out a bare commit).
    branch_override: str | None = None

    @property
    def timeout_seconds(self) -> float:
        return self.timeout_minutes * 60.0


@dataclass(frozen=True, slots=True)
class CommandsConfig:
    """Commands run by the test and format stages (argv form)."""

    test: tuple[str, ...] = DEFAULT_TEST_COMMAND
    format: tuple[str, ...] = DEFAULT_FORMAT_COMMAND


@dataclass(frozen=True, slots=True)
class RegistryConfig:
    """A container registry the built image is pushed to."""

    name: str
    host: str


DEFAULT_REGISTRIES: tuple[RegistryConfig, ...] = (
    RegistryConfig("sandbox-ap-south-1", "sandbox.ap-south-1.registry.local"),
    RegistryConfig("sandbox-eu-central-1", "sandbox.eu-central-1.registry.local"),
    RegistryConfig("production-ap-south-1", "production.ap-south-1.registry.local"),
    RegistryConfig("production-eu-central-1", "production.eu-central-1.registry.local"),
)


@dataclass(frozen=True, slots=True)
class RolloutStep:
    """One step of the rollout strategy: traffic %, cool-off minutes, pod count."""

    rollout: int
    cooloff: int
    pods: int


DEFAULT_ROLLOUT: tuple[RolloutStep, ...] = (
    RolloutStep(rollout=5, cooloff=5, pods=1),
    RolloutStep(rollout=50, cooloff=5, pods=2),
    RolloutStep(rollout=100, cooloff=5, pods=2),
)


@dataclass(frozen=True, slots=True)
class TrackerConfig:
    """Rollout-tracker endpoint and release metadata."""

    url: str | None = None
    api_key: str | None = None
    service: tuple[str, ...] = ()
    release_manager: str = ""
    priority: int = 0
    cluster: str = ""
    infra_approval_required: bool = False
    release_manager_approval_required: bool = False
    rollout: tuple[RolloutStep, ...] = DEFAULT_ROLLOUT
    change_log: str = ""
    product_id: str = ""
    mode: str = "AUTO"
    env: str = "UAT"


@dataclass(frozen=True, slots=True)
class SlackConfig:
    token: str | None = None
    channel: str | None = None
    api_url: str = DEFAULT_SLACK_API_URL

    @property
    def enabled(self) -> bool:
        return bool(self.token and self.channel)


def _default_registries() -> tuple[RegistryConfig, ...]:
    return DEFAULT_REGISTRIES


@dataclass(frozen=True, slots=True)
class Config:
    """Main configuration container."""

    pipeline: PipelineSettings = field(default_factory=PipelineSettings)
    commands: CommandsConfig = field(default_factory=CommandsConfig)
    registries: tuple[RegistryConfig, ...] = field(default_factory=_default_registries)
    tracker: TrackerConfig = field(default_factory=TrackerConfig)
    slack: SlackConfig = field(default_factory=SlackConfig)

    @classmethod
    def from_dict(cls, data: Mapping[str, object]) -> Config:
        """Create Config from a mapping (parsed TOML).

        Raises:
            ValueError: If a registry or rollout entry is malformed.
        """
        pipeline: StrDict = get_table(data, "pipeline") or {}
        commands: StrDict = get_table(data, "commands") or {}
        tracker: StrDict = get_table(data, "tracker") or {}
        slack: StrDict = get_table(data, "slack") or {}

        service_name = get_str(pipeline, "service_name") or "service"

        return cls(
            pipeline=PipelineSettings(
                target_branch=get_str(pipeline, "target_branch") or DEFAULT_TARGET_BRANCH,
                timeout_minutes=_positive(get_int(pipeline, "timeout_minutes"))
                or DEFAULT_TIMEOUT_MINUTES,
                skip_marker=get_str(pipeline, "skip_marker") or DEFAULT_SKIP_MARKER,
                service_name=service_name,
                image_name=get_str(pipeline, "image_name") or service_name,
            ),
            commands=CommandsConfig(
                test=tuple(get_str_list(commands, "test") or DEFAULT_TEST_COMMAND),
                format=tuple(get_str_list(commands, "format") or DEFAULT_FORMAT_COMMAND),
            ),
            registries=_parse_registries(data),
            tracker=TrackerConfig(
                url=get_str(tracker, "url"),
                service=tuple(get_str_list(tracker, "service") or (service_name,)),
                release_manager=get_str(tracker, "release_manager") or "",
                priority=get_int(tracker, "priority") or 0,
                cluster=get_str(tracker, "cluster") or "",
                infra_approval_required=get_bool(tracker, "infra_approval_required") or False,
                release_manager_approval_required=(
                    get_bool(tracker, "release_manager_approval_required") or False
                ),
                rollout=_parse_rollout(tracker),
                change_log=get_str(tracker, "change_log") or "",
                product_id=get_str(tracker, "product_id") or "",
                mode=get_str(tracker, "mode") or "AUTO",
                env=get_str(tracker, "env") or "UAT",
            ),
            slack=SlackConfig(
                channel=get_str(slack, "channel"),
                api_url=get_str(slack, "api_url") or DEFAULT_SLACK_API_URL,
            ),
        )

    def with_env(self, environ: Mapping[str, str]) -> Config:
        """Return a copy with environment overrides and secrets applied."""
        pipeline = replace(
            self.pipeline,
            target_branch=env_or_default(
                environ, ENV_TARGET_BRANCH, self.pipeline.target_branch, str
            ),
            timeout_minutes=env_or_default(
                environ, ENV_TIMEOUT_MINUTES, self.pipeline.timeout_minutes, _parse_minutes
            ),
            branch_override=environ.get(ENV_BRANCH) or self.pipeline.branch_override,
        )
        tracker = replace(self.tracker, api_key=environ.get(ENV_TRACKER_API_KEY) or None)
        slack = replace(self.slack, token=environ.get(ENV_SLACK_TOKEN) or None)
        return replace(self, pipeline=pipeline, tracker=tracker, slack=slack)


def env_or_default[V](
    environ: Mapping[str, str],
    name: str,
    default: V,
    parse: Callable[[str], V],
) -> V:
    """Read and parse an environment variable, falling back to default.

    A missing, empty or unparseable value yields the default.
    """
    raw = environ.get(name, "").strip()
    if not raw:
        return default
    try:
        return parse(raw)
    except ValueError:
        return default


def _positive(value: int | None) -> int | None:
    if value is None or value <= 0:
        return None
    return value


def _parse_minutes(raw: str) -> int:
    minutes = int(raw)
    if minutes <= 0:
        raise ValueError(f"timeout must be positive: {minutes}")
    return minutes


def _parse_registries(data: Mapping[str, object]) -> tuple[RegistryConfig, ...]:
    items = get_list(data, "registries")
    if items is None:
        return DEFAULT_REGISTRIES
    if not items:
        raise ValueError("registries must list at least one registry")

    out: list[RegistryConfig] = []
    for item in items:
        table = as_str_dict(item)
        if table is None:
            raise ValueError("registries entries must be tables")
        name = get_str(table, "name")
        host = get_str(table, "host")
        if name is None or host is None:
            raise ValueError("registries entries need 'name' and 'host'")
        if any(r.name == name for r in out):
            raise ValueError(f"duplicate registry name: {name}")
        out.append(RegistryConfig(name=name, host=host))
    return tuple(out)


def _parse_rollout(tracker: Mapping[str, object]) -> tuple[RolloutStep, ...]:
    items = get_list(tracker, "rollout")
    if items is None:
        return DEFAULT_ROLLOUT

    out: list[RolloutStep] = []
    for item in items:
        table = as_str_dict(item)
        if table is None:
            raise ValueError("tracker.rollout entries must be tables")
        rollout = get_int(table, "rollout")
        cooloff = get_int(table, "cooloff")
        pods = get_int(table, "pods")
        if rollout is None or cooloff is None or pods is None:
            raise ValueError("tracker.rollout entries need 'rollout', 'cooloff' and 'pods'")
        if not 0 < rollout <= 100:
            raise ValueError(f"rollout percentage out of range: {rollout}")
        out.append(RolloutStep(rollout=rollout, cooloff=cooloff, pods=pods))
    return tuple(out)


def _parse_toml(path: Path) -> Result[StrDict, ConfigError]:
    """Parse a TOML file, handling import and parse errors."""
    import tomllib

    try:
        content = path.read_bytes()
        data_obj: object = tomllib.loads(content.decode("utf-8"))
        data = as_str_dict(data_obj)
        if data is None:
            return Err(ConfigError("Config root must be a TOML table", path=path))
        return Ok(data)
    except FileNotFoundError:
        return Err(ConfigError(f"Config file not found: {path}", path=path))
    except PermissionError:
        return Err(ConfigError(f"Permission denied reading: {path}", path=path))
    except tomllib.TOMLDecodeError as e:
        return Err(ConfigError(f"Invalid TOML syntax: {e}", path=path))
    except UnicodeDecodeError as e:
        return Err(ConfigError(f"Error reading config: {e}", path=path))


def load_config(
    path: Path,
    environ: Mapping[str, str] | None = None,
) -> Result[Config, ConfigError]:
    """Load configuration from a TOML file and apply environment overrides.

    Args:
        path: Path to cdp.toml
        environ: Environment mapping (defaults to os.environ)

    Returns:
        Ok(Config) on success, Err(ConfigError) on failure
    """
    result = _parse_toml(path)
    if isinstance(result, Err):
        return result

    try:
        config = Config.from_dict(result.value)
    except (KeyError, TypeError, ValueError) as e:
        return Err(ConfigError(f"Invalid config structure: {e}", path=path))

    return Ok(config.with_env(os.environ if environ is None else environ))


def load_config_or_default(
    path: Path,
    environ: Mapping[str, str] | None = None,
) -> Result[Config, ConfigError]:
    """Like load_config, but a missing file yields the defaults.

    A file that exists but cannot be parsed is still an error.
    """
    env = os.environ if environ is None else environ
    if not path.exists():
        return Ok(Config().with_env(env))
    return load_config(path, env)
