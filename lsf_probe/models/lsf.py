from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class RawHostStatus(BaseModel):
    """One entry of an ls_load() result, copied out of the C structure."""

    model_config = ConfigDict(frozen=True)

    host_name: bytes = Field(
        ...,
        description="Raw host name buffer (MAXHOSTNAMELEN bytes, NUL padded)",
    )
    status: int = Field(
        ...,
        description="LIM status bitmask of the host",
    )
    load: Optional[float] = Field(
        None,
        description="First load index of the host; not used for the verdict.",
    )
