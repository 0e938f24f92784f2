from __future__ import annotations
import dataclasses
import os
import pathlib
import re
import typing as t
import yaml

from dbretry.constants import (
    DEFAULT_BACKOFF,
    DEFAULT_CONFIG_FILE,
    DEFAULT_MAX_RETRY,
    DEFAULT_POOL_SIZE,
)

_DEFAULT_PATH = pathlib.Path(DEFAULT_CONFIG_FILE)
_DURATION_RE = re.compile(r"^\s*(\d+(?:\.\d+)?)\s*(ms|s|m)?\s*$")
_UNIT_SECONDS = {"ms": 0.001, "s": 1.0, "m": 60.0, None: 1.0}


class ConfigError(RuntimeError):
    """Raised for any user‑visible configuration problem."""


@dataclasses.dataclass(frozen=True)
class RetryPolicy:
    """
    How often to try and how long to wait between tries.

    The wait is fixed: ``backoff`` seconds before every attempt after the
    first, so a policy makes at most ``max_attempts`` attempts and
    ``max_attempts - 1`` sleeps.
    """

    max_attempts: int = DEFAULT_MAX_RETRY
    backoff: float = DEFAULT_BACKOFF

    def __post_init__(self) -> None:
        if isinstance(self.max_attempts, bool) or not isinstance(self.max_attempts, int):
            raise ConfigError(f"max_attempts must be an integer, got {self.max_attempts!r}")
        if self.max_attempts < 1:
            raise ConfigError(f"max_attempts must be >= 1, got {self.max_attempts}")
        if isinstance(self.backoff, bool) or not isinstance(self.backoff, (int, float)):
            raise ConfigError(f"backoff must be a number of seconds, got {self.backoff!r}")
        if self.backoff < 0:
            raise ConfigError(f"backoff must be >= 0, got {self.backoff}")

    def replace(self, **changes: t.Any) -> RetryPolicy:
        return dataclasses.replace(self, **changes)

    @classmethod
    def from_dict(cls, d: dict[str, t.Any] | None, base: RetryPolicy | None = None) -> RetryPolicy:
        """Overlay the keys present in *d* on *base* (or the built‑in default)."""
        policy = base or cls()
        if not d:
            return policy
        unknown = set(d) - {"max_attempts", "backoff"}
        if unknown:
            raise ConfigError(f"Unknown retry option(s): {', '.join(sorted(unknown))}")
        changes: dict[str, t.Any] = {}
        if "max_attempts" in d:
            changes["max_attempts"] = d["max_attempts"]
        if "backoff" in d:
            changes["backoff"] = parse_duration(d["backoff"])
        return policy.replace(**changes)


_default_policy = RetryPolicy()


def default_policy() -> RetryPolicy:
    """The policy used when a call does not pass one."""
    return _default_policy


def set_default_policy(policy: RetryPolicy) -> RetryPolicy:
    """Replace the process‑wide default and return the previous one."""
    global _default_policy
    previous, _default_policy = _default_policy, policy
    return previous


def parse_duration(value: t.Any) -> float:
    """
    Seconds from a number or a string such as ``"3s"``, ``"500ms"``, ``"1m"``.
    """
    if isinstance(value, bool):
        raise ConfigError(f"Invalid duration {value!r}")
    if isinstance(value, (int, float)):
        return float(value)
    m = _DURATION_RE.match(str(value))
    if not m:
        raise ConfigError(f"Invalid duration {value!r}")
    number, unit = m.groups()
    return float(number) * _UNIT_SECONDS[unit]


class Environment:
    """
    A thin value‑object holding the attributes required to open a connection
    pool, plus the retry policy for that target.  Nothing here talks to the
    database.
    """

    def __init__(
        self,
        name: str,
        d: dict[str, t.Any],
        retry: RetryPolicy | None = None,
    ) -> None:
        self.name: str = name
        try:
            self.host: str = d["host"]
            self.user: str = d["user"]
            raw_pwd: str = str(d.get("password", ""))
        except KeyError as exc:
            raise ConfigError(f"Environment {name!r} is missing {exc.args[0]!r}") from exc
        self.port: int = d.get("port", 3306)
        self.database: str | None = d.get("database")
        self.pool_size: int = d.get("pool_size", DEFAULT_POOL_SIZE)

        # Allow `${ENV_VAR}` syntax for secrets
        self.password: str = (
            os.getenv(raw_pwd[2:-1], "") if raw_pwd.startswith("${") else raw_pwd
        )

        self.retry: RetryPolicy = RetryPolicy.from_dict(d.get("retry"), retry)

    def dsn(self) -> dict[str, t.Any]:
        """Return kwargs that mysql‑connector understands."""
        dsn: dict[str, t.Any] = {
            "host": self.host,
            "port": self.port,
            "user": self.user,
            "password": self.password,
        }
        if self.database:
            dsn["database"] = self.database
        return dsn


def load(path: pathlib.Path | str | None = None, env: str | None = None) -> Environment:
    """
    Parse *path* (or the default YAML) and return an :class:`Environment`.

    A top‑level ``retry:`` block sets the policy for every environment; an
    environment's own ``retry:`` block overrides it key by key.
    """
    cfg_file = pathlib.Path(path) if path else _DEFAULT_PATH
    if not cfg_file.exists():
        raise ConfigError(f"Config file {cfg_file} not found.")

    with cfg_file.open() as fh:
        raw = yaml.safe_load(fh) or {}

    env_name = env or raw.get("default_env")
    if not env_name:
        raise ConfigError("No environment specified and no default_env in config")

    base = RetryPolicy.from_dict(raw.get("retry"))
    try:
        env_cfg = raw["environments"][env_name]
    except KeyError as exc:
        raise ConfigError(f"Environment {env_name!r} not found in config") from exc
    return Environment(env_name, env_cfg or {}, retry=base)
