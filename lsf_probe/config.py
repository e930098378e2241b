import json
import logging
import os
from functools import lru_cache
from typing import Dict, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError
from pydantic.alias_generators import to_camel

from lsf_probe.errors import ProbeError

logger = logging.getLogger(__name__)

CONFIG_ENV_VAR = "LSF_PROBE_CONFIG"


class ProbeConfig(BaseModel):
    model_config = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)

    prefix: str = Field(
        ...,
        description="String prepended to every reported host name, e.g. 'lsf.'",
    )
    name_mapping: Dict[str, str] = Field(
        ...,
        description="LSF host name -> display name overrides",
    )
    critical_group_name: str = Field(
        ...,
        description="Critical group attached to every status record",
    )

    @classmethod
    def from_json(cls, content: str) -> "ProbeConfig":
        try:
            return cls.model_validate(json.loads(content))
        except (json.JSONDecodeError, ValidationError) as exc:
            raise ProbeError("Unable to parse config content into structure!") from exc


def load_config(path: str) -> ProbeConfig:
    """
    Read and validate the probe configuration file.

    Raises ProbeError if the file cannot be opened or read, or if its content
    is not a JSON document with prefix, nameMapping and criticalGroupName.
    """
    try:
        with open(path, encoding="utf-8") as fh:
            try:
                content = fh.read()
            except (OSError, UnicodeDecodeError) as exc:
                raise ProbeError("Unable to read config file into string") from exc
    except OSError as exc:
        raise ProbeError(f"Unable to open config file at {path}") from exc

    config = ProbeConfig.from_json(content)
    logger.debug(
        f"Loaded config from {path}: prefix={config.prefix!r}, "
        f"{len(config.name_mapping)} name mapping(s), "
        f"critical group {config.critical_group_name!r}"
    )
    return config


def default_config_path() -> Optional[str]:
    return os.getenv(CONFIG_ENV_VAR) or None


@lru_cache(maxsize=1)
def get_config(path: str) -> ProbeConfig:
    return load_config(path)
