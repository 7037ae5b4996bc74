#!/usr/bin/env python
# -*- coding: utf-8 -*-
"""Installation driver (and development utility entry point) for subsample-pipeline
"""

import os
import sys

from setuptools import find_packages, setup


__author__ = "Subsample Pipeline Developers"


def parse_requirements(path):
    """Parse ``requirements.txt`` at ``path``."""
    requirements = []
    with open(path, "rt") as reqs_f:
        for line in reqs_f:
            line = line.strip()
            if line.startswith("-r"):
                fname = line.split()[1]
                inner_path = os.path.join(os.path.dirname(path), fname)
                requirements += parse_requirements(inner_path)
            elif line != "" and not line.startswith("#"):
                requirements.append(line)
    return requirements


# Enforce python version >=3.10
if sys.version_info < (3, 10):
    print("At least Python 3.10 is required.\n", file=sys.stderr)
    sys.exit(1)

package_root = os.path.abspath(os.path.dirname(__file__))

with open(os.path.join(package_root, "README.md")) as readme_file:
    readme = readme_file.read()

with open(os.path.join(package_root, "CHANGELOG.md")) as history_file:
    history = history_file.read()

# Get requirements
requirements = parse_requirements(os.path.join(package_root, "requirements/base.txt"))

test_requirements = [
    req
    for req in parse_requirements(os.path.join(package_root, "requirements/test.txt"))
    if req not in requirements
]

# Name of the tools
TOOLS = ("biotype_counts",)


def console_scripts_entry_points(names):
    """Yield entries for the 'console_scripts' entry points"""
    prefix = "subsample"
    for name in names:
        yield "{prefix}-{script} = subsample_pipeline.tools.{name}:main".format(
            prefix=prefix, script=name.replace("_", "-"), name=name
        )


version = {}
with open(os.path.join(package_root, "subsample_pipeline/_version.py")) as fp:
    exec(fp.read(), version)
version = version["__version__"]

setup(
    name="subsample-pipeline",
    version=version,
    description="Submit library subsampling jobs and count reads by biotype",
    long_description=readme + "\n\n" + history,
    long_description_content_type="text/markdown",
    author="Subsample Pipeline Developers",
    packages=find_packages(exclude=("tests", "tests.*")),
    entry_points={
        "console_scripts": [
            "subsample-submit = subsample_pipeline.apps.subsample_submit:main",
            *console_scripts_entry_points(TOOLS),
        ]
    },
    include_package_data=True,
    install_requires=requirements,
    extras_require={"test": test_requirements},
    license="MIT license",
    zip_safe=False,
    keywords="bioinformatics",
    classifiers=[
        "Development Status :: 2 - Pre-Alpha",
        "Intended Audience :: Science/Research",
        "License :: OSI Approved :: MIT License",
        "Natural Language :: English",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.10",
    ],
    python_requires=">=3.10",
)
