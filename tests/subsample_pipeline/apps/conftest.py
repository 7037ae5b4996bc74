# -*- coding: utf-8 -*-
"""Shared fixtures for the apps unit tests"""

import pytest

from subsample_pipeline.jobs import probabilities
from subsample_pipeline.models import DEFAULT_PICARD_JAR


@pytest.fixture
def reads_bam_fs(fs):
    """Fake file system with ``/data/reads.bam`` and a non-BAM file next to it"""
    fs.create_file("/data/reads.bam", contents="BAM\x01")
    fs.create_file("/data/reads.sam", contents="@HD\tVN:1.6\n")
    fs.create_dir("/work")
    return fs


@pytest.fixture
def no_cores_limit(mocker):
    """Pretend that the host has 8 cores"""
    return mocker.patch(
        "subsample_pipeline.apps.subsample_submit.system_cores", return_value=8
    )


def expected_sbatch_cmd(name, probability, input_path, output_dir, log_dir, cores, account=None):
    """Return the ``sbatch`` call expected for the given job"""
    job_id = "{}_{}".format(name, probability)
    wrapped = (
        "java -Xmx2g -jar {jar} INPUT={input_path} OUTPUT={output_dir}/{job_id}.bam "
        "PROBABILITY={probability}"
    ).format(
        jar=DEFAULT_PICARD_JAR,
        input_path=input_path,
        output_dir=output_dir,
        job_id=job_id,
        probability=probability,
    )
    return (
        ["sbatch", "-p", "core", "-n", str(cores)]
        + (["-A", account] if account else [])
        + [
            "-t",
            "1:00:00",
            "--open-mode=append",
            "-o",
            "{}/{}_downsampled.log".format(log_dir, job_id),
            "-J",
            job_id,
            "--wrap={}".format(wrapped),
        ]
    )


@pytest.fixture
def register_sbatch(fp):
    """Return function registering the nine ``sbatch`` calls for one input file

    Probabilities listed in ``fail`` return a non-zero exit code, those in ``skip`` are not
    registered.
    """

    def register(name, input_path, output_dir, log_dir, cores, fail=(), skip=(), account=None):
        for i, probability in enumerate(probabilities()):
            if probability in skip:
                continue
            fp.register(
                expected_sbatch_cmd(
                    name, probability, input_path, output_dir, log_dir, cores, account
                ),
                stdout="" if probability in fail else "Submitted batch job {}\n".format(100 + i),
                returncode=1 if probability in fail else 0,
            )

    return register
