# -*- coding: utf-8 -*-
"""Submit Picard DownsampleSam jobs for a list of BAM files

For each input BAM file, one cluster job per retention probability 0.1, 0.2, ..., 0.9 is
submitted with ``sbatch``, representing 10% - 90% of the library.  A symbolic link named
``<sample>_1.0.bam`` in the output directory represents 100% of the library.

Usage::

    $ subsample-submit -o downsampled -l logs -n 4 sample1.bam sample2.bam
"""

import argparse
import os
import re
import shlex
import sys

import attr
import pydantic
import ruamel.yaml as ruamel_yaml

from .. import __version__
from ..jobs import (
    BAM_SUFFIX,
    STATUS_DRY_RUN,
    STATUS_FAILED,
    STATUS_SKIPPED,
    STATUS_SUBMITTED,
    SubsampleJob,
    full_library_link,
    probabilities,
    submit_job,
)
from ..models import SubsampleSettings, load_settings
from ..resource_usage import ResourceUsage
from .impl.fsmanip import assume_path_existing, create_directory, create_symlink
from .impl.logging import (
    LVL_ERROR,
    LVL_FATAL,
    LVL_IMPORTANT,
    LVL_INFO,
    LVL_SUCCESS,
    LVL_WARNING,
    log,
)

__author__ = "Subsample Pipeline Developers"

#: Environment variable with the number of cores of the SLURM node
ENV_SLURM_CPUS = "SLURM_CPUS_ON_NODE"

#: Default log directory name, relative to the working directory
DEFAULT_LOG_DIR = "logs"

#: Default output directory name, relative to the working directory
DEFAULT_OUTPUT_DIR = "downsampled"

#: Message for missing or unreadable input files
FILE_NOT_EXISTS_OR_NOT_READABLE_ERROR_TEXT = "file does not exist or is not readable"

#: Message for input files without ``.bam`` suffix
NOT_BAM_ERROR_TEXT = "input file is not in BAM format (doesn't end with .bam)"

#: Message for input files whose outputs were claimed by an earlier input file
OUTPUT_COLLISION_ERROR_TEXT = 'its outputs collide with those of "{other}"'

#: Positive integers only
PATTERN_CORES = re.compile(r"^[0-9]+$")


@attr.s(frozen=True, auto_attribs=True)
class DispatchConfig:
    """Settings for one run, built once from the command line and passed around"""

    #: Absolute path to the directory for the job log files.
    log_dir: str
    #: Absolute path to the directory for the subsampled BAM files.
    output_dir: str
    #: Number of cores to request for each job.
    cores: int
    #: Scheduler and Picard settings.
    settings: SubsampleSettings = attr.ib(factory=SubsampleSettings)
    #: Print the submission commands only.
    dry_run: bool = False
    #: Print the full ``sbatch`` calls.
    verbose: bool = False

    @property
    def resource_usage(self):
        return ResourceUsage(
            threads=self.cores,
            time=self.settings.time,
            partition=self.settings.partition,
            account=self.settings.account,
        )


def system_cores(environ=None):
    """Return core count announced by SLURM, else the number of cores of this host"""
    environ = os.environ if environ is None else environ
    value = environ.get(ENV_SLURM_CPUS, "").strip()
    if PATTERN_CORES.match(value) and int(value) > 0:
        return int(value)
    return os.cpu_count() or 1


def resolve_cores(requested, sys_cores):
    """Validate the requested number of cores against the available ``sys_cores``"""
    if requested is None:
        log("Number of cores not specified; setting to 1.", level=LVL_WARNING)
        return 1
    if not PATTERN_CORES.match(requested) or int(requested) < 1:
        log(
            "Number of cores must be a positive integer between 1 and {sys_cores}. "
            "Setting number of cores to 1.",
            {"sys_cores": sys_cores},
            level=LVL_WARNING,
        )
        return 1
    if int(requested) > sys_cores:
        log(
            "Number of cores specified ({cores}) greater than number of cores available "
            "({sys_cores}). Setting to maximum {sys_cores}.",
            {"cores": requested, "sys_cores": sys_cores},
            level=LVL_WARNING,
        )
        return sys_cores
    return int(requested)


def resolve_directory(path, default_name, label, flag):
    """Make ``path`` absolute and create it, default is ``default_name`` in the working directory

    Return ``None`` after printing a fatal message if the directory cannot be created.
    """
    if not path:
        path = os.path.join(os.getcwd(), default_name)
        log(
            "No {label} directory ({flag}) specified; using '{path}/'",
            {"label": label, "flag": flag, "path": path},
            level=LVL_INFO,
        )
    path = os.path.abspath(path)
    try:
        create_directory(path, msg_lvl=None, exist_ok=True)
    except OSError as e:
        log(
            "Cannot create {label} directory {path}; exiting. ({error})",
            {"label": label, "path": path, "error": e},
            level=LVL_FATAL,
        )
        return None
    return path


def is_valid_input(path):
    """Check that ``path`` is a readable BAM file, print a message and return ``False`` if not"""
    if not assume_path_existing(path, msg_lvl=None):
        log(
            'Skipping file "{path}": {text}',
            {"path": path, "text": FILE_NOT_EXISTS_OR_NOT_READABLE_ERROR_TEXT},
            level=LVL_ERROR,
        )
        return False
    if not path.endswith(BAM_SUFFIX):
        log(
            'Skipping file "{path}": {text}',
            {"path": path, "text": NOT_BAM_ERROR_TEXT},
            level=LVL_ERROR,
        )
        return False
    return True


def submit_file(path, config):
    """Submit the subsampling jobs for one input file and link the full file

    Return the list of ``JobSubmissionResult`` objects.
    """
    results = []
    for probability in probabilities():
        job = SubsampleJob.build(path, probability, config.output_dir, config.log_dir)
        if not os.path.exists(job.output_path):
            log(
                "Submitting batch job with picard tools command line:\n\t\t{cmd}",
                {"cmd": job.wrapped_cmd(config.settings)},
                level=LVL_INFO,
            )
            if config.verbose:
                log(
                    "Job submit command:\n\t\t{cmd}",
                    {"cmd": shlex.join(job.sbatch_cmd(config.settings, config.resource_usage))},
                    level=LVL_INFO,
                )
        result = submit_job(job, config.settings, config.resource_usage, dry_run=config.dry_run)
        results.append(result)
        if result.status == STATUS_SUBMITTED:
            log(
                "{msg} ({job_id})",
                {"msg": result.message or "Submitted batch job", "job_id": job.job_id},
            )
        elif result.status == STATUS_SKIPPED:
            log(
                'Output file "{path}" already exists. Skipping job submission...',
                {"path": job.output_path},
                level=LVL_WARNING,
            )
        elif result.status == STATUS_FAILED:
            log(
                'Job submission failed for input file "{path}", subsample {probability}: {msg}',
                {"path": path, "probability": probability, "msg": result.message},
                level=LVL_WARNING,
            )
            log(
                'Picard job submission failed: "{path}" probability {probability}',
                {"path": path, "probability": probability},
                level=LVL_ERROR,
            )
        else:  # result.status == STATUS_DRY_RUN
            log("(dry run) {cmd}", {"cmd": result.message})

    # Create a link in the output directory for the full file
    link_path = full_library_link(path, config.output_dir)
    if config.dry_run:
        log("(dry run) ln -s {src} {dest}", {"src": os.path.abspath(path), "dest": link_path})
    else:
        try:
            create_symlink(os.path.abspath(path), link_path, msg_lvl=LVL_INFO)
        except OSError as e:
            log(
                "Cannot create link {dest} for input file {path}: {error}",
                {"dest": link_path, "path": path, "error": e},
                level=LVL_ERROR,
            )
    return results


def run(args):
    """Perform the job submission for the parsed command line arguments"""
    try:
        settings = load_settings(args.config)
    except (OSError, ruamel_yaml.YAMLError, pydantic.ValidationError) as e:
        log(
            "Cannot load settings from {path}: {error}",
            {"path": args.config, "error": e},
            level=LVL_ERROR,
        )
        return 1

    log_dir = resolve_directory(args.log_dir, DEFAULT_LOG_DIR, "log", "-l")
    if not log_dir:
        return 1
    output_dir = resolve_directory(args.output_dir, DEFAULT_OUTPUT_DIR, "output", "-o")
    if not output_dir:
        return 1

    config = DispatchConfig(
        log_dir=log_dir,
        output_dir=output_dir,
        cores=resolve_cores(args.cores, system_cores()),
        settings=settings,
        dry_run=args.dry_run,
        verbose=args.verbose,
    )

    if config.dry_run:
        log("Dry run: no jobs will be submitted and no links created", level=LVL_IMPORTANT)

    results = []
    claimed = {}  # 100% link path -> input file that claimed the outputs
    for path in args.input_files:
        if not is_valid_input(path):
            continue
        link_path = full_library_link(path, config.output_dir)
        if link_path in claimed:
            text = OUTPUT_COLLISION_ERROR_TEXT.format(other=claimed[link_path])
            log(
                'Skipping file "{path}": {text}',
                {"path": path, "text": text},
                level=LVL_ERROR,
            )
            continue
        claimed[link_path] = path
        results += submit_file(path, config)

    counts = {
        status: sum(1 for r in results if r.status == status)
        for status in (STATUS_SUBMITTED, STATUS_DRY_RUN, STATUS_SKIPPED)
    }
    counts[STATUS_FAILED] = sum(1 for r in results if not r.ok)
    log(
        "Job submission finished: {submitted} submitted, {dry_run} dry run, "
        "{skipped} skipped, {failed} failed",
        counts,
        level=LVL_SUCCESS if not counts[STATUS_FAILED] else LVL_INFO,
    )
    return 0


class ArgumentParser(argparse.ArgumentParser):
    """Argument parser that exits with status 1 on usage errors"""

    def error(self, message):
        self.print_usage(sys.stderr)
        self.exit(1, "{}: error: {}\n".format(self.prog, message))


def create_parser():
    """Construct and return the command line parser"""
    parser = ArgumentParser(
        prog="subsample-submit",
        description=(
            "Submit Picard DownsampleSam jobs creating 10% - 90% subsamples of each BAM file "
            "and link the full file as 100%"
        ),
    )
    parser.add_argument("--version", action="version", version="%%(prog)s %s" % __version__)
    parser.add_argument(
        "-l", "--log-dir", default=None, help="Directory for job log files, default is ./logs"
    )
    parser.add_argument(
        "-o",
        "--output-dir",
        default=None,
        help="Directory for subsampled BAM files, default is ./downsampled",
    )
    parser.add_argument(
        "-n",
        "--cores",
        default=None,
        help="Number of cores to request per job, default is 1",
    )
    parser.add_argument(
        "-c", "--config", default=None, help="YAML file with scheduler and Picard settings"
    )
    parser.add_argument(
        "--dry-run",
        default=False,
        action="store_true",
        help="Print submission commands instead of running them",
    )
    parser.add_argument(
        "-v", "--verbose", default=False, action="store_true", help="Enable verbose mode"
    )
    parser.add_argument(
        "input_files", metavar="BAM", nargs="+", help="Aligned BAM file(s) to subsample"
    )
    return parser


def main(argv=None):
    """Main entry point, includes parsing of command line arguments"""
    parser = create_parser()
    args = parser.parse_args(argv)
    return run(args)


if __name__ == "__main__":
    sys.exit(main())
