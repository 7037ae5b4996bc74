# -*- coding: utf-8 -*-
"""Subsampling jobs and their submission to the SLURM scheduler

One :py:class:`SubsampleJob` runs Picard ``DownsampleSam`` for one input BAM file and one
retention probability.  Jobs are submitted with ``sbatch --wrap`` and never waited for.
"""

import decimal
import os
import re
import shlex
import subprocess
import typing

import attr

from .models import SubsampleSettings
from .resource_usage import ResourceUsage

__author__ = "Subsample Pipeline Developers"

#: File name suffix of input and output files
BAM_SUFFIX = ".bam"

#: Probability text used for the link to the full input file
FULL_PROBABILITY = "1.0"

#: Submission outcome: job was handed to the scheduler
STATUS_SUBMITTED = "submitted"
#: Submission outcome: output exists already
STATUS_SKIPPED = "skipped"
#: Submission outcome: scheduler call failed
STATUS_FAILED = "failed"
#: Submission outcome: command only printed
STATUS_DRY_RUN = "dry_run"

#: Parse job id from ``sbatch`` output
PATTERN_SBATCH_JOB_ID = re.compile(r"Submitted batch job (\d+)")


def probabilities(steps=10):
    """Return the retention probabilities ``1/steps`` .. ``(steps - 1)/steps`` as strings

    Decimal arithmetic gives ``"0.1"`` .. ``"0.9"`` for the default of ten steps.
    """
    return [str(decimal.Decimal(i) / decimal.Decimal(steps)) for i in range(1, steps)]


def strip_bam_suffix(path):
    """Return basename of ``path`` without the ``.bam`` suffix"""
    name = os.path.basename(path)
    if name.endswith(BAM_SUFFIX):
        name = name[: -len(BAM_SUFFIX)]
    return name


def full_library_link(input_path, output_dir):
    """Return path of the symbolic link representing the un-subsampled ``input_path``"""
    return os.path.join(
        output_dir, "{}_{}{}".format(strip_bam_suffix(input_path), FULL_PROBABILITY, BAM_SUFFIX)
    )


@attr.s(frozen=True, auto_attribs=True)
class SubsampleJob:
    """Picard ``DownsampleSam`` run for one input file and one probability"""

    #: Input path as given on the command line.
    input_path: str
    #: Absolute path of the input file.
    input_abspath: str
    #: Retention probability as text, e.g. ``"0.3"``.
    probability: str
    #: Job name, ``<input basename>_<probability>``.
    job_id: str
    #: Path of the subsampled BAM file.
    output_path: str
    #: Path of the scheduler log file.
    log_path: str

    @staticmethod
    def build(input_path: str, probability: str, output_dir: str, log_dir: str) -> "SubsampleJob":
        """Derive all paths from the input path, probability, and directories"""
        job_id = "{}_{}".format(strip_bam_suffix(input_path), probability)
        return SubsampleJob(
            input_path=input_path,
            input_abspath=os.path.abspath(input_path),
            probability=probability,
            job_id=job_id,
            output_path=os.path.join(output_dir, job_id + BAM_SUFFIX),
            log_path=os.path.join(log_dir, "{}_downsampled.log".format(job_id)),
        )

    def picard_cmd(self, settings: SubsampleSettings) -> typing.List[str]:
        """Return the argument vector of the Picard call"""
        return [
            settings.java,
            "-Xmx{}".format(settings.java_memory),
            "-jar",
            settings.picard_jar,
            "INPUT={}".format(self.input_abspath),
            "OUTPUT={}".format(self.output_path),
            "PROBABILITY={}".format(self.probability),
        ]

    def wrapped_cmd(self, settings: SubsampleSettings) -> str:
        """Return the shell command line passed to ``sbatch --wrap``"""
        cmd = shlex.join(self.picard_cmd(settings))
        if settings.modules:
            cmd = "module load {} && {}".format(shlex.join(settings.modules), cmd)
        return cmd

    def sbatch_cmd(self, settings: SubsampleSettings, resource_usage: ResourceUsage):
        """Return the argument vector of the ``sbatch`` call"""
        return (
            [settings.sbatch]
            + resource_usage.sbatch_args()
            + [
                "--open-mode=append",
                "-o",
                self.log_path,
                "-J",
                self.job_id,
                "--wrap={}".format(self.wrapped_cmd(settings)),
            ]
        )


@attr.s(frozen=True, auto_attribs=True)
class JobSubmissionResult:
    """Outcome of handing a :py:class:`SubsampleJob` to the scheduler"""

    #: The job that was (or was not) submitted.
    job: SubsampleJob
    #: One of the ``STATUS_*`` constants.
    status: str
    #: Return code of ``sbatch``, ``None`` if it was not run.
    returncode: typing.Optional[int] = None
    #: Scheduler job id parsed from the ``sbatch`` output, if any.
    scheduler_id: typing.Optional[str] = None
    #: Combined output of ``sbatch`` or the error message.
    message: str = ""

    @property
    def ok(self) -> bool:
        return self.status != STATUS_FAILED


def submit_job(job, settings, resource_usage, dry_run=False):
    """Submit ``job`` with ``sbatch`` unless its output exists; return a ``JobSubmissionResult``

    Failures are reported through the result and never raised.
    """
    if os.path.exists(job.output_path):
        return JobSubmissionResult(job=job, status=STATUS_SKIPPED)
    cmd = job.sbatch_cmd(settings, resource_usage)
    if dry_run:
        return JobSubmissionResult(job=job, status=STATUS_DRY_RUN, message=shlex.join(cmd))
    try:
        proc = subprocess.run(
            cmd, stdout=subprocess.PIPE, stderr=subprocess.STDOUT, universal_newlines=True
        )
    except OSError as e:
        return JobSubmissionResult(job=job, status=STATUS_FAILED, message=str(e))
    output = (proc.stdout or "").strip()
    if proc.returncode != 0:
        return JobSubmissionResult(
            job=job, status=STATUS_FAILED, returncode=proc.returncode, message=output
        )
    m = PATTERN_SBATCH_JOB_ID.search(output)
    return JobSubmissionResult(
        job=job,
        status=STATUS_SUBMITTED,
        returncode=proc.returncode,
        scheduler_id=m.group(1) if m else None,
        message=output,
    )
