"""Configuration for a fuzzing run."""

import os
from dataclasses import dataclass, field

DEFAULT_BASE_MARKERS = ("FuzzTarget",)
DEFAULT_METHOD_PREFIX = "fuzzable"


@dataclass(frozen=True)
class CompilerConfig:
    """Options passed to the Python compiler.

    Attributes:
        mode: compile() mode; only "exec" produces a loadable module
        feature_version: (major, minor) grammar to parse against, or None
            for the running interpreter's grammar
        optimize: compile() optimization level (-1 = interpreter default)
        warnings_as_errors: treat compiler warnings as blocking
        dont_inherit: do not inherit future flags from fuzzhead itself
    """

    mode: str = "exec"
    feature_version: tuple[int, int] | None = None
    optimize: int = -1
    warnings_as_errors: bool = False
    dont_inherit: bool = True


@dataclass(frozen=True)
class LocatorConfig:
    """Names used to recognize target classes and fuzzable methods."""

    base_markers: tuple[str, ...] = DEFAULT_BASE_MARKERS
    method_prefix: str = DEFAULT_METHOD_PREFIX


@dataclass(frozen=True)
class FuzzerConfig:
    compiler: CompilerConfig = field(default_factory=CompilerConfig)
    locator: LocatorConfig = field(default_factory=LocatorConfig)
    timeout_seconds: float = 60.0
    max_repo_files: int = 5
    default_branch: str = "main"
    github_token: str | None = None
    user_agent: str = "Fuzzhead-Fuzzer"

    @classmethod
    def from_env(cls, environ=None, **overrides) -> "FuzzerConfig":
        """Build a config from environment variables.

        Reads GITHUB_TOKEN, FUZZHEAD_TIMEOUT and FUZZHEAD_MAX_FILES.
        Keyword overrides win over the environment.
        """
        env = os.environ if environ is None else environ
        values = {}
        if env.get("GITHUB_TOKEN"):
            values["github_token"] = env["GITHUB_TOKEN"]
        if env.get("FUZZHEAD_TIMEOUT"):
            values["timeout_seconds"] = float(env["FUZZHEAD_TIMEOUT"])
        if env.get("FUZZHEAD_MAX_FILES"):
            values["max_repo_files"] = int(env["FUZZHEAD_MAX_FILES"])
        values.update({k: v for k, v in overrides.items() if v is not None})
        return cls(**values)
