# -*- coding: utf-8 -*-
"""Shared fixtures for the tools unit tests"""

import textwrap

import pysam
import pytest

#: Read start positions (0-based), flags and mapping qualities of the test reads
READS = (
    (119, 0, 60),
    (119, 16, 60),
    (130, 0, 60),
    (150, 0, 0),  # low mapping quality
    (1009, 0, 60),
    (1019, 1024, 60),  # duplicate
    (2000, 4, 0),  # unmapped but placed
)


def write_bam(path, index=True):
    header = {
        "HD": {"VN": "1.6", "SO": "coordinate"},
        "SQ": [{"SN": "chr1", "LN": 10000}],
    }
    with pysam.AlignmentFile(str(path), "wb", header=header) as bamf:
        for i, (pos, flag, mapq) in enumerate(READS):
            read = pysam.AlignedSegment()
            read.query_name = "read{}".format(i)
            read.query_sequence = "ACGT" * 10
            read.flag = flag
            read.reference_id = 0
            read.reference_start = pos
            read.mapping_quality = mapq
            read.cigarstring = "40M"
            read.query_qualities = pysam.qualitystring_to_array("I" * 40)
            bamf.write(read)
    if index:
        pysam.index(str(path))
    return path


@pytest.fixture
def bam_path(tmp_path):
    """Path to an indexed BAM file with a handful of reads on ``chr1``"""
    return write_bam(tmp_path / "sample.bam")


@pytest.fixture
def unindexed_bam_path(tmp_path):
    return write_bam(tmp_path / "unindexed.bam", index=False)


@pytest.fixture
def gtf_content():
    """GTF with two protein-coding genes, one rRNA gene, and a gene on a contig not in the BAM"""
    return textwrap.dedent(
        """
        #!genome-build test
        chr1\ttest\tgene\t101\t200\t.\t+\t.\tgene_id "G1"; gene_name "ALPHA"; gene_biotype "protein_coding";
        chr1\ttest\ttranscript\t101\t200\t.\t+\t.\tgene_id "G1"; transcript_id "T1"; gene_biotype "protein_coding";
        chr1\ttest\tgene\t1001\t1100\t.\t-\t.\tgene_id "G2"; gene_biotype "rRNA";
        chr1\ttest\tgene\t5001\t5100\t.\t+\t.\tgene_id "G3"; gene_name "GAMMA"; gene_biotype "protein_coding";
        chr2\ttest\tgene\t1\t500\t.\t+\t.\tgene_id "G4"; gene_biotype "lncRNA";
        """
    ).lstrip()


@pytest.fixture
def gtf_path(tmp_path, gtf_content):
    path = tmp_path / "genes.gtf"
    path.write_text(gtf_content)
    return path
