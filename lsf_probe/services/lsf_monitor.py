import logging
from typing import List, Optional, Sequence

from pydantic import TypeAdapter
from pydantic_core import PydanticSerializationError

from lsf_probe.config import ProbeConfig
from lsf_probe.errors import ProbeError
from lsf_probe.models.lsf import RawHostStatus
from lsf_probe.models.status import StatusRecord, Verdict, to_status_str, to_verdict
from lsf_probe.services.lsf_client import LsfClient

logger = logging.getLogger(__name__)

# Process exit codes for a completed poll
NORMAL = 0
ERROR = 127

UNREACHABLE_REMARKS = "Unable to connect any of the LSF nodes"

_REPORT_ADAPTER = TypeAdapter(List[StatusRecord])


def decode_host_name(raw: bytes) -> Optional[str]:
    """Decode a NUL terminated host name buffer, or return None if it is not UTF-8."""
    try:
        return raw.split(b"\0", 1)[0].decode("utf-8")
    except UnicodeDecodeError:
        return None


_ESCAPES = {0x09: "\\t", 0x0A: "\\n", 0x0D: "\\r", 0x22: '\\"', 0x27: "\\'", 0x5C: "\\\\"}


def debug_host_name(raw: bytes) -> str:
    """Render a host name buffer as a quoted string with non-printable bytes as \\xNN escapes."""
    chars = []
    for byte in raw.split(b"\0", 1)[0]:
        if byte in _ESCAPES:
            chars.append(_ESCAPES[byte])
        elif 0x20 <= byte < 0x7F:
            chars.append(chr(byte))
        else:
            chars.append(f"\\x{byte:02x}")
    return '"' + "".join(chars) + '"'


def resolve_host_name(raw: bytes, config: ProbeConfig) -> str:
    """
    Return the externally reported name of a host.

    The decoded name is replaced by its entry in config.name_mapping, if any,
    and prefixed with config.prefix. A name that cannot be decoded is reported
    by its escaped bytes instead; the mapping table is not consulted then.
    """
    host_name = decode_host_name(raw)
    if host_name is None:
        fallback = debug_host_name(raw)
        logger.warning(f"Host name {fallback} is not valid UTF-8, reporting it as is")
        return f"{config.prefix}{fallback}"

    return f"{config.prefix}{config.name_mapping.get(host_name, host_name)}"


def _unreachable_record(config: ProbeConfig) -> StatusRecord:
    return StatusRecord(
        name=f"{config.prefix}*",
        status=int(Verdict.FAILED),
        critical_group_name=config.critical_group_name,
        remarks=UNREACHABLE_REMARKS,
    )


def _host_record(host: RawHostStatus, config: ProbeConfig) -> StatusRecord:
    return StatusRecord(
        name=resolve_host_name(host.host_name, config),
        status=int(to_verdict(host.status)),
        critical_group_name=config.critical_group_name,
        remarks=f"Status code: {host.status} ({to_status_str(host.status)})",
    )


def build_report(
    numhosts: int,
    hosts: Sequence[RawHostStatus],
    config: ProbeConfig,
) -> List[StatusRecord]:
    """
    Turn an ls_load() snapshot into one StatusRecord per host, in LSF order.

    A non-positive host count means LSF could not be reached; the report then
    consists of a single failed record named '<prefix>*'.
    """
    if numhosts <= 0:
        logger.warning("No hosts returned by LSF, reporting the cluster as unreachable")
        return [_unreachable_record(config)]

    return [_host_record(host, config) for host in hosts[:numhosts]]


def all_passed(records: Sequence[StatusRecord]) -> bool:
    return all(record.status == Verdict.PASSED for record in records)


def exit_code_for(records: Sequence[StatusRecord]) -> int:
    return NORMAL if all_passed(records) else ERROR


def render_report(records: Sequence[StatusRecord]) -> str:
    """Serialize the records as a single compact JSON line (None fields omitted)."""
    try:
        return _REPORT_ADAPTER.dump_json(
            list(records),
            by_alias=True,
            exclude_none=True,
        ).decode("utf-8")
    except PydanticSerializationError as exc:
        raise ProbeError("Unable to serialize list of status storage into string!") from exc


def get_lsf_status(config: ProbeConfig, client: LsfClient) -> List[StatusRecord]:
    """Poll LSF once through ``client`` and return the normalized records."""
    numhosts, hosts = client.query_all_hosts()
    records = build_report(numhosts, hosts, config)

    failed = sum(1 for record in records if record.status != Verdict.PASSED)
    logger.info(f"Polled {len(records)} record(s), {failed} failed")
    return records
