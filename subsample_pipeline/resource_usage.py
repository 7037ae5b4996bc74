# -*- coding: utf-8 -*-
"""Resource usage definition"""

import typing

import attr


@attr.s(frozen=True, auto_attribs=True)
class ResourceUsage:
    """Resource usage specification for one batch job, translated into ``sbatch`` arguments by
    :py:meth:`sbatch_args`.
    """

    threads: int
    time: str
    partition: typing.Optional[str] = None
    account: typing.Optional[str] = None

    def sbatch_args(self) -> typing.List[str]:
        """Return partition, core count, account and time limit arguments for ``sbatch``"""
        result = []
        if self.partition:
            result += ["-p", self.partition]
        result += ["-n", str(self.threads)]
        if self.account:
            result += ["-A", self.account]
        result += ["-t", self.time]
        return result
