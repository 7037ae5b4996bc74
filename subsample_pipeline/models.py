# -*- coding: utf-8 -*-
"""Configuration models for the subsampling job submission

Settings that the command line does not cover (scheduler partition and account, the Picard
installation) are described by :py:class:`SubsampleSettings` and can be overridden from a YAML
file.
"""

import re
import typing
from typing import Annotated

from annotated_types import Predicate
from pydantic import BaseModel, ConfigDict, Field
import ruamel.yaml as ruamel_yaml

#: Default location of the Picard ``DownsampleSam`` JAR
DEFAULT_PICARD_JAR = "/sw/apps/bioinfo/picard/1.118/milou/DownsampleSam.jar"

size_string_regexp = re.compile(r"^[0-9]+[kKmMgGtT]?$")
SizeString = Annotated[str, Predicate(lambda s: size_string_regexp.match(s) is not None)]
"""A JVM heap size string, e.g. '2g' for 2 gigabytes."""

time_string_regexp = re.compile(r"^([0-9]+-)?[0-9]+(:[0-9]{2}){0,2}$")
TimeString = Annotated[str, Predicate(lambda s: time_string_regexp.match(s) is not None)]
"""A SLURM time limit, e.g. '1:00:00' or '2-00:00:00'."""


class SubsampleModel(BaseModel):
    """
    Base class for the configuration models.
    Extra fields are forbidden, instances are immutable, attribute docstrings are used for field
    descriptions and default values are validated.
    """

    model_config = ConfigDict(
        extra="forbid",
        frozen=True,
        use_attribute_docstrings=True,
        validate_default=True,
    )


class SubsampleSettings(SubsampleModel):
    """Scheduler and Picard settings for the ``DownsampleSam`` jobs"""

    partition: str | None = "core"
    """Partition to submit into, omitted from the ``sbatch`` call if empty"""

    account: str | None = None
    """Account to charge the jobs to, omitted from the ``sbatch`` call if empty"""

    time: TimeString = "1:00:00"
    """Wall-clock time limit requested for each job"""

    java_memory: SizeString = "2g"
    """Maximal JVM heap size, passed as ``-Xmx``"""

    picard_jar: str = DEFAULT_PICARD_JAR
    """Path to the ``DownsampleSam`` JAR file"""

    modules: list[str] = Field(default_factory=list)
    """Environment modules to load in the job before running Picard"""

    sbatch: str = "sbatch"
    """Job submission executable"""

    java: str = "java"
    """Java executable used inside the job"""


def load_settings(path: typing.Optional[str] = None) -> SubsampleSettings:
    """Load settings from the YAML file at ``path``, defaults if ``path`` is ``None``

    Raises ``OSError`` if the file cannot be read, ``ruamel.yaml.YAMLError`` on invalid YAML and
    ``pydantic.ValidationError`` on invalid settings.
    """
    if not path:
        return SubsampleSettings()
    with open(path, "rt") as inputf:
        yaml = ruamel_yaml.YAML(typ="safe")
        data = yaml.load(inputf.read())
    return SubsampleSettings.model_validate(data or {})
