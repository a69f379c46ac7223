"""
Configuration-keyed factories for platform drivers and sinks
"""

from dataclasses import dataclass
from types import MappingProxyType
from typing import Callable, Iterable, List, Mapping, Optional
from sqlalchemy.ext.asyncio import async_sessionmaker
from core.config import settings
from core.exceptions import ConfigurationError
from enumeration.base import PlatformDriver
from enumeration.drivers.bitbucket import BitbucketDriver
from enumeration.drivers.github import GithubDriver
from enumeration.drivers.gitlab import GitlabDriver
from enumeration.drivers.npm import NpmDriver
from enumeration.drivers.pypi import PypiBulkDriver, PypiIncrementalDriver
from enumeration.sinks.base import Sink
from enumeration.sinks.database import DatabaseSink
from enumeration.sinks.stdout import StdOutSink
from enumeration.sinks.text_file import TextFileSink
from schemas.enumeration import EnumerationOptions


@dataclass(frozen=True)
class PlatformSpec:
    """How to build a platform's driver and which table prefix its records use"""
    factory: Callable[[EnumerationOptions], PlatformDriver]
    table_prefix: str


PLATFORMS: Mapping[str, PlatformSpec] = MappingProxyType({
    "github": PlatformSpec(
        factory=lambda options: GithubDriver(options, token=settings.GITHUB_TOKEN),
        table_prefix="github",
    ),
    "gitlab": PlatformSpec(
        factory=lambda options: GitlabDriver(options, token=settings.GITLAB_TOKEN),
        table_prefix="gitlab",
    ),
    "bitbucket": PlatformSpec(
        factory=lambda options: BitbucketDriver(options),
        table_prefix="bitbucket",
    ),
    "pypi": PlatformSpec(
        factory=lambda options: PypiBulkDriver(options),
        table_prefix="pypi",
    ),
    "pypi_slow": PlatformSpec(
        factory=lambda options: PypiIncrementalDriver(options),
        table_prefix="pypi",
    ),
    "npm": PlatformSpec(
        factory=lambda options: NpmDriver(options),
        table_prefix="npm",
    ),
})

OUTPUT_KINDS = ("stdout", "file", "db")


def parse_platforms(value: str) -> List[str]:
    """Split a comma separated platform list, dropping blanks"""
    return [name.strip() for name in value.split(",") if name.strip()]


def validate_platforms(names: Iterable[str]) -> List[str]:
    """Return ``names`` as a list, or raise ConfigurationError on the first unknown one"""
    names = list(names)
    if not names:
        raise ConfigurationError("No platforms configured", context={"known": sorted(PLATFORMS)})
    for name in names:
        if name not in PLATFORMS:
            raise ConfigurationError(
                f"Unknown platform {name}",
                context={"platform": name, "known": sorted(PLATFORMS)}
            )
    return names


def create_driver(name: str, options: EnumerationOptions) -> PlatformDriver:
    validate_platforms([name])
    return PLATFORMS[name].factory(options)


def validate_output(
    kind: str,
    output_path: Optional[str] = None,
    session_factory: Optional[async_sessionmaker] = None,
) -> None:
    if kind not in OUTPUT_KINDS:
        raise ConfigurationError(
            f"Unknown output type {kind}",
            context={"output": kind, "known": list(OUTPUT_KINDS)}
        )
    if kind == "file" and not output_path:
        raise ConfigurationError("Output type file requires an output file", context={"output": kind})
    if kind == "db" and session_factory is None:
        raise ConfigurationError("Output type db requires a database", context={"output": kind})


def create_sink(
    kind: str,
    output_path: Optional[str] = None,
    session_factory: Optional[async_sessionmaker] = None,
) -> Sink:
    """Build the sink for an output kind: stdout, file or db"""
    validate_output(kind, output_path, session_factory)
    if kind == "stdout":
        return StdOutSink()
    if kind == "file":
        return TextFileSink(output_path)
    return DatabaseSink(session_factory)
