"""
Unit tests for the enumeration runner
"""

import warnings
import pytest
from unittest.mock import patch
from core.exceptions import AuthenticationError, ConfigurationError
from enumeration.base import PlatformDriver
from enumeration.runner import EnumerationRunner, _jsonable
from schemas.enumeration import EnumerationOptions


class StaticDriver(PlatformDriver):
    """Writes a fixed list of identifiers, or fails with ``error``"""

    def __init__(self, name, identifiers=(), error=None, options=None):
        self.name = name
        self.platform_prefix = name
        super().__init__(options=options)
        self.identifiers = identifiers
        self.error = error

    async def _enumerate(self, sink):
        for identifier in self.identifiers:
            await self.emit(sink, self.make_record(identifier, {}))
        if self.error is not None:
            raise self.error


def drivers_by_name(**drivers):
    return lambda name, options: drivers[name]


@pytest.mark.asyncio
async def test_failed_platform_does_not_stop_the_next(memory_sink):
    drivers = drivers_by_name(
        github=StaticDriver("github", ["octo/cat"], error=AuthenticationError("bad token", context={})),
        npm=StaticDriver("npm", ["left-pad", "is-odd"]),
    )

    with patch("enumeration.runner.create_driver", side_effect=drivers), \
            patch("enumeration.runner.create_sink", return_value=memory_sink):
        result = await EnumerationRunner("stdout").run(["github", "npm"])

    assert result["status"] == "partial_success"
    assert result["platforms"]["github"]["status"] == "failed"
    assert result["platforms"]["github"]["error"]["error_type"] == "AuthenticationError"
    assert result["platforms"]["npm"]["status"] == "success"
    # Records written before the failure stay written
    assert memory_sink.identifiers == ["octo/cat", "left-pad", "is-odd"]
    assert memory_sink.closed


@pytest.mark.asyncio
async def test_unexpected_exception_is_isolated(memory_sink):
    drivers = drivers_by_name(
        gitlab=StaticDriver("gitlab", error=RuntimeError("parser bug")),
        bitbucket=StaticDriver("bitbucket", ["team/a"]),
    )

    with patch("enumeration.runner.create_driver", side_effect=drivers), \
            patch("enumeration.runner.create_sink", return_value=memory_sink):
        result = await EnumerationRunner("stdout").run(["gitlab", "bitbucket"])

    assert result["platforms"]["gitlab"]["error"]["message"] == "parser bug"
    assert result["platforms"]["bitbucket"]["records_written"] == 1


@pytest.mark.asyncio
async def test_all_platforms_failing(memory_sink):
    drivers = drivers_by_name(npm=StaticDriver("npm", error=AuthenticationError("nope", context={})))

    with patch("enumeration.runner.create_driver", side_effect=drivers), \
            patch("enumeration.runner.create_sink", return_value=memory_sink):
        result = await EnumerationRunner("stdout").run(["npm"])

    assert result["status"] == "failed"


@pytest.mark.asyncio
async def test_configuration_error_before_any_work():
    with patch("enumeration.runner.create_driver") as create_driver:
        with pytest.raises(ConfigurationError):
            await EnumerationRunner("stdout").run(["github", "svn"])
        with pytest.raises(ConfigurationError):
            await EnumerationRunner("parquet").run(["github"])
        with pytest.raises(ConfigurationError):
            await EnumerationRunner("file").run(["github"])

    create_driver.assert_not_called()


@pytest.mark.asyncio
async def test_file_output_end_to_end(tmp_path):
    path = tmp_path / "records.jsonl"
    drivers = drivers_by_name(npm=StaticDriver("npm", ["a", "b"]))

    with patch("enumeration.runner.create_driver", side_effect=drivers):
        result = await EnumerationRunner("file", output_path=str(path)).run(["npm"])

    assert result["status"] == "success"
    assert len(path.read_text().splitlines()) == 2


def test_jsonable_converts_dates():
    options = EnumerationOptions(workers=2)
    with warnings.catch_warnings():
        warnings.simplefilter("error")
        snapshot = _jsonable(options.model_dump())

    assert snapshot["workers"] == 2
    assert isinstance(snapshot["start_date"], str)
