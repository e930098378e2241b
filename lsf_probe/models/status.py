from enum import IntEnum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class LimStatus(IntEnum):
    """Host status flags reported by the LSF load information manager (LIM)."""

    LIM_OK = 0x00000000
    LIM_UNAVAIL = 0x00010000
    LIM_LOCKEDU = 0x00020000
    LIM_LOCKEDW = 0x00040000
    LIM_BUSY = 0x00080000
    LIM_RESDOWN = 0x00100000
    LIM_UNLICENSED = 0x00200000
    LIM_SBDDOWN = 0x00400000
    LIM_LOCKEDM = 0x00800000
    LIM_PEMDOWN = 0x01000000
    LIM_EXPIRED = 0x02000000
    LIM_RLAUP = 0x04000000
    # 0x80000000 read back through a signed 32-bit C int
    LIM_LOCKEDU_RMS = -0x80000000


class Verdict(IntEnum):
    PASSED = 0
    FAILED = 2


UNKNOWN_STATUS = "UNKNOWN"


def to_status_str(status: int) -> str:
    """
    Return the symbolic LIM name for a raw status value.

    Values are matched exactly, so a combination of several flags is not
    decomposed and comes back as UNKNOWN.
    """
    try:
        return LimStatus(status).name
    except ValueError:
        return UNKNOWN_STATUS


def to_verdict(status: int) -> Verdict:
    return Verdict.PASSED if status == LimStatus.LIM_OK else Verdict.FAILED


class StorageInfo(BaseModel):
    """Storage usage of a monitored node (not filled in by the LSF probe)."""

    model_config = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)

    used: int = Field(..., ge=0, description="Used capacity in bytes")
    total: int = Field(..., ge=0, description="Total capacity in bytes")


class StatusRecord(BaseModel):
    """Status of a single cluster host as consumed by the monitoring pipeline."""

    model_config = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)

    name: str = Field(
        ...,
        description="Reported host name, including the configured prefix",
    )
    status: int = Field(
        ...,
        description="Verdict code: 0 = passed, 2 = failed",
    )
    storage: Optional[StorageInfo] = Field(
        None,
        description="Optional storage usage of the host.",
    )
    critical_group_name: Optional[str] = Field(
        None,
        description="Critical group used by the pipeline for routing alerts.",
    )
    remarks: Optional[str] = Field(
        None,
        description="Human readable explanation, e.g. 'Status code: 0 (LIM_OK)'.",
    )
