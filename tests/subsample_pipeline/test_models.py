# -*- coding: utf-8 -*-
"""Tests for ``subsample_pipeline.models``"""

import textwrap

import pydantic
import pytest

from subsample_pipeline.models import DEFAULT_PICARD_JAR, SubsampleSettings, load_settings
from subsample_pipeline.resource_usage import ResourceUsage


def test_default_settings():
    settings = load_settings(None)
    assert settings == SubsampleSettings()
    assert settings.partition == "core"
    assert settings.account is None
    assert settings.time == "1:00:00"
    assert settings.java_memory == "2g"
    assert settings.picard_jar == DEFAULT_PICARD_JAR
    assert settings.modules == []


def test_load_settings(tmp_path):
    path = tmp_path / "settings.yaml"
    path.write_text(
        textwrap.dedent(
            """
            # Settings for UPPMAX
            partition: node
            account: b2013064
            time: 2-00:00:00
            java_memory: 8g
            modules:
              - bioinfo-tools
              - picard/1.118
            """
        ).lstrip()
    )
    settings = load_settings(str(path))
    assert settings.partition == "node"
    assert settings.account == "b2013064"
    assert settings.time == "2-00:00:00"
    assert settings.java_memory == "8g"
    assert settings.modules == ["bioinfo-tools", "picard/1.118"]


def test_load_empty_settings(tmp_path):
    path = tmp_path / "settings.yaml"
    path.write_text("")
    assert load_settings(str(path)) == SubsampleSettings()


@pytest.mark.parametrize(
    "kwargs", [{"time": "one hour"}, {"java_memory": "lots"}, {"no_such_setting": 1}]
)
def test_invalid_settings(kwargs):
    with pytest.raises(pydantic.ValidationError):
        SubsampleSettings(**kwargs)


def test_settings_are_frozen():
    settings = SubsampleSettings()
    with pytest.raises(pydantic.ValidationError):
        settings.partition = "node"


def test_resource_usage_sbatch_args():
    usage = ResourceUsage(threads=2, time="1:00:00")
    assert usage.sbatch_args() == ["-n", "2", "-t", "1:00:00"]
    usage = ResourceUsage(threads=2, time="1:00:00", partition="core", account="x")
    assert usage.sbatch_args() == ["-p", "core", "-n", "2", "-A", "x", "-t", "1:00:00"]
