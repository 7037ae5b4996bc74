#!/usr/bin/env python3
"""Count reads overlapping annotated features by biotype and plot the result

Usage::

    $ subsample-biotype-counts --bam sample.bam --gtf genes.gtf.gz \\
        --output-tsv sample.biotypes.tsv --output-plot sample.biotypes.png

Reads overlapping more than one feature are counted once for each feature.
"""

import argparse
import collections
import csv
import logging
import math
import os
import sys

import attr
import logzero
import matplotlib
import numpy as np
import pandas as pd
import pyranges as pr
import pysam
from logzero import logger

matplotlib.use("Agg")

import matplotlib.pyplot as plt  # noqa: E402

__author__ = "Subsample Pipeline Developers"

#: Default for ``--feature-type``
DEFAULT_FEATURE_TYPE = "gene"
#: Default for ``--biotype-attribute``
DEFAULT_BIOTYPE_ATTRIBUTE = "gene_biotype"
#: Attributes tried, in order, when the requested biotype attribute is missing
FALLBACK_BIOTYPE_ATTRIBUTES = ("gene_biotype", "gene_type", "transcript_biotype")
#: Biotype of features without biotype attribute
UNKNOWN_BIOTYPE = "unknown"
#: Default for ``--top``
DEFAULT_TOP = 15

#: Reads with any of these flags are not counted (unmapped, secondary, QC fail, duplicate,
#: supplementary)
EXCLUDE_FLAGS = 0x4 | 0x100 | 0x200 | 0x400 | 0x800

#: Header of the output TSV file
TSV_HEADER = ("biotype", "features", "features_with_reads", "reads")


@attr.s(frozen=True, auto_attribs=True)
class Feature:
    """One annotated feature with 0-based, half-open coordinates."""

    #: The contig name.
    contig: str
    #: The 0-based start position.
    begin: int
    #: The 0-based end position (exclusive).
    end: int
    #: Gene name or identifier.
    name: str
    #: The biotype label.
    biotype: str


@attr.s(auto_attribs=True)
class BiotypeCounts:
    """Aggregated counts for one biotype."""

    #: The biotype label.
    biotype: str
    #: Number of features of this biotype.
    features: int = 0
    #: Number of features with at least one read.
    features_with_reads: int = 0
    #: Number of reads overlapping features of this biotype.
    reads: int = 0

    def as_row(self):
        return (self.biotype, self.features, self.features_with_reads, self.reads)


#: Errors raised while reading a malformed GTF file
GTF_PARSE_ERRORS = (ValueError, TypeError, KeyError, AttributeError, IndexError)


def _first_value(row, columns, default):
    """Return first non-missing value of ``columns`` in ``row``"""
    for column in columns:
        if column in row and pd.notna(row[column]):
            return str(row[column])
    return default


def read_features(path, feature_type=DEFAULT_FEATURE_TYPE, biotype_attribute=None):
    """Return list of ``Feature`` objects for the GTF records of ``feature_type`` in ``path``

    The GTF file (plain or gzip-compressed) is read with ``pyranges``; attribute values become
    columns and coordinates are 0-based, half-open.  Raises ``ValueError`` for malformed files.
    """
    attributes = [biotype_attribute] if biotype_attribute else []
    attributes += [a for a in FALLBACK_BIOTYPE_ATTRIBUTES if a not in attributes]
    try:
        gtf = pr.read_gtf(path, as_df=True)
        gtf = gtf[gtf["Feature"] == feature_type]
        return [
            Feature(
                str(row["Chromosome"]),
                int(row["Start"]),
                int(row["End"]),
                _first_value(row, ("gene_name", "gene_id"), "."),
                _first_value(row, attributes, UNKNOWN_BIOTYPE),
            )
            for row in gtf.to_dict("records")
        ]
    except GTF_PARSE_ERRORS as e:
        raise ValueError("Cannot read GTF file {}: {}".format(path, e)) from e


def make_read_filter(min_mapq=0):
    """Return ``read_callback`` for ``pysam.AlignmentFile.count()``"""

    def read_filter(read):
        return not (read.flag & EXCLUDE_FLAGS) and read.mapping_quality >= min_mapq

    return read_filter


def count_feature_reads(bam, features, min_mapq=0):
    """Yield ``(feature, read count)`` for the features on contigs present in ``bam``"""
    contigs = set(bam.references)
    read_filter = make_read_filter(min_mapq)
    skipped = 0
    for feature in features:
        if feature.contig not in contigs:
            skipped += 1
            continue
        yield feature, bam.count(
            feature.contig, feature.begin, feature.end, read_callback=read_filter
        )
    if skipped:
        logger.debug("Skipped %d features on contigs not in the BAM header", skipped)


def aggregate(feature_counts):
    """Aggregate ``(feature, count)`` pairs by biotype

    Return list of ``BiotypeCounts``, sorted by read count (descending) and biotype, and the list
    of per-feature read counts.
    """
    by_biotype = collections.OrderedDict()
    per_feature = []
    for feature, count in feature_counts:
        counts = by_biotype.setdefault(feature.biotype, BiotypeCounts(feature.biotype))
        counts.features += 1
        counts.reads += count
        if count > 0:
            counts.features_with_reads += 1
        per_feature.append(count)
    return sorted(by_biotype.values(), key=lambda c: (-c.reads, c.biotype)), per_feature


def write_tsv(biotype_counts, outputf):
    writer = csv.writer(outputf, delimiter="\t", lineterminator="\n")
    writer.writerow(TSV_HEADER)
    for counts in biotype_counts:
        writer.writerow(counts.as_row())


def plot_counts(biotype_counts, per_feature, path, title="", top=DEFAULT_TOP):
    """Render bar chart of reads per biotype and histogram of reads per feature to ``path``"""
    fig, (ax_bar, ax_hist) = plt.subplots(1, 2, figsize=(12, 5))

    shown = list(reversed(biotype_counts[:top]))
    ax_bar.barh(
        [c.biotype for c in shown], [c.reads for c in shown], color="royalblue", edgecolor="none"
    )
    ax_bar.set_xlabel("reads")
    ax_bar.set_title("reads per biotype (top {})".format(min(top, len(biotype_counts))))

    values = np.log10(np.asarray(per_feature, dtype=float) + 1)
    bins = max(1, min(50, int(math.ceil(values.max()) * 10))) if len(values) else 1
    ax_hist.hist(values, bins=bins, color="royalblue", edgecolor="none")
    ax_hist.set_xlabel("log10(reads + 1)")
    ax_hist.set_ylabel("features")
    ax_hist.set_title("reads per feature")

    for ax in (ax_bar, ax_hist):
        ax.spines["top"].set_visible(False)
        ax.spines["right"].set_visible(False)
    if title:
        fig.suptitle(title)
    fig.tight_layout()
    fig.savefig(path)
    plt.close(fig)


def run(args):
    """Main entry point after parsing command line arguments"""
    logger.info("Starting biotype counting")
    logger.info("config = %s", args)

    for path in (args.bam, args.gtf):
        if not os.path.exists(path):
            logger.error("Input file %s does not exist", path)
            return 1

    try:
        features = read_features(args.gtf, args.feature_type, args.biotype_attribute)
    except ValueError as e:
        logger.error("%s", e)
        return 1
    logger.info("Read %d features of type %s from %s", len(features), args.feature_type, args.gtf)

    with pysam.AlignmentFile(args.bam, "rb") as bam:
        if not bam.has_index():
            logger.error("BAM file %s has no index, create one with 'samtools index'", args.bam)
            return 1
        biotype_counts, per_feature = aggregate(count_feature_reads(bam, features, args.min_mapq))
    logger.info(
        "Counted %d reads on %d features of %d biotypes",
        sum(c.reads for c in biotype_counts),
        len(per_feature),
        len(biotype_counts),
    )

    if args.output_tsv:
        with open(args.output_tsv, "wt") as outputf:
            write_tsv(biotype_counts, outputf)
    else:
        write_tsv(biotype_counts, sys.stdout)

    if args.output_plot:
        if not per_feature:
            logger.warning("No features counted, not writing plot %s", args.output_plot)
        else:
            logger.info("Writing plot to %s", args.output_plot)
            plot_counts(biotype_counts, per_feature, args.output_plot, args.title, args.top)

    logger.info("All done. Have a nice day!")
    return 0


def create_parser():
    """Construct and return the command line parser"""
    parser = argparse.ArgumentParser(description="Count and plot reads on features by biotype")
    parser.add_argument("--bam", required=True, help="Indexed BAM file with aligned reads")
    parser.add_argument("--gtf", required=True, help="GTF annotation, optionally gzip-compressed")
    parser.add_argument(
        "--feature-type",
        default=DEFAULT_FEATURE_TYPE,
        help="GTF feature type (column 3) to count reads for",
    )
    parser.add_argument(
        "--biotype-attribute",
        default=DEFAULT_BIOTYPE_ATTRIBUTE,
        help="GTF attribute holding the biotype",
    )
    parser.add_argument(
        "--min-mapq", type=int, default=0, help="Minimal mapping quality of counted reads"
    )
    parser.add_argument("--output-tsv", default=None, help="Output TSV file, default is stdout")
    parser.add_argument("--output-plot", default=None, help="Output plot (PNG, PDF, or SVG)")
    parser.add_argument("--title", default="", help="Title of the plot")
    parser.add_argument(
        "--top", type=int, default=DEFAULT_TOP, help="Number of biotypes shown in the bar chart"
    )
    parser.add_argument(
        "--verbose", "-v", default=False, action="store_true", help="Enable verbose mode"
    )
    return parser


def main(argv=None):
    """Main entry point, includes parsing of command line arguments"""
    parser = create_parser()
    args = parser.parse_args(argv)
    if args.verbose:
        logzero.loglevel(logging.DEBUG)
    else:
        logzero.loglevel(logging.INFO)
    return run(args)


if __name__ == "__main__":
    sys.exit(main())
