import ctypes
import ctypes.util
import logging
import os
from typing import Any, List, Optional, Tuple

from lsf_probe.errors import ProbeError
from lsf_probe.models.lsf import RawHostStatus
from lsf_probe.models.status import LimStatus

logger = logging.getLogger(__name__)

LIBRARY_ENV_VAR = "LSF_LIBRARY"

# Size of hostLoad.hostName in lsf.h
MAXHOSTNAMELEN = 64

# ls_load() option: report hosts of all clusters
ALL_CLUSTERS = 0x80


class HostLoad(ctypes.Structure):
    """Mirror of ``struct hostLoad`` from lsf.h."""

    _fields_ = [
        ("host_name", ctypes.c_char * MAXHOSTNAMELEN),
        ("status", ctypes.POINTER(ctypes.c_int)),
        ("li", ctypes.POINTER(ctypes.c_float)),
    ]


def _find_library(library_path: Optional[str]) -> str:
    if library_path:
        logger.info(f"Using explicitly provided LSF library path: {library_path}")
        return library_path
    env_path = os.environ.get(LIBRARY_ENV_VAR)
    if env_path:
        logger.info(f"Using LSF library from {LIBRARY_ENV_VAR} environment variable: {env_path}")
        return env_path
    found = ctypes.util.find_library("lsf")
    if found:
        logger.info(f"Using LSF library found on the system: {found}")
        return found
    raise ProbeError(
        "LSF library not found. Install LSF, pass --lsf-library "
        f"or set the {LIBRARY_ENV_VAR} environment variable."
    )


class LsfClient:
    """
    Thin wrapper around ``ls_load()`` from the LSF base library.

    ``lib`` may be any object exposing an ``ls_load`` callable; it defaults to
    the shared library located via :func:`_find_library`.
    """

    def __init__(self, library_path: Optional[str] = None, lib: Any = None):
        if lib is None:
            path = _find_library(library_path)
            try:
                lib = ctypes.CDLL(path)
            except OSError as exc:
                raise ProbeError(f"Unable to load LSF library {path}") from exc
        self._lib = lib
        self._ls_load = lib.ls_load
        self._ls_load.restype = ctypes.POINTER(HostLoad)
        self._ls_load.argtypes = [
            ctypes.c_char_p,
            ctypes.POINTER(ctypes.c_int),
            ctypes.c_int,
            ctypes.c_char_p,
        ]

    def _last_error(self) -> Optional[str]:
        ls_sysmsg = getattr(self._lib, "ls_sysmsg", None)
        if ls_sysmsg is None:
            return None
        ls_sysmsg.restype = ctypes.c_char_p
        msg = ls_sysmsg()
        return msg.decode("utf-8", errors="replace") if msg else None

    def query_all_hosts(self) -> Tuple[int, List[RawHostStatus]]:
        """
        Query the load status of every host in all clusters.

        Returns the host count reported by LSF and the copied host entries.
        The count is 0 or negative (and the list empty) when LSF could not be
        reached.
        """
        numhosts = ctypes.c_int(0)
        result = self._ls_load(None, ctypes.pointer(numhosts), ALL_CLUSTERS, None)
        count = numhosts.value

        if not result or count <= 0:
            logger.warning(
                f"ls_load returned no hosts (numhosts={count}): "
                f"{self._last_error() or 'no error message available'}"
            )
            return min(count, 0), []

        hosts: List[RawHostStatus] = []
        for i in range(count):
            entry = result[i]
            raw_name = ctypes.string_at(
                ctypes.addressof(entry) + HostLoad.host_name.offset,
                MAXHOSTNAMELEN,
            )
            if entry.status:
                status = entry.status[0]
            else:
                logger.warning(f"Host entry {i} has no status array, reporting LIM_UNAVAIL")
                status = int(LimStatus.LIM_UNAVAIL)
            load = entry.li[0] if entry.li else None
            hosts.append(RawHostStatus(host_name=raw_name, status=status, load=load))

        logger.debug(f"ls_load returned {count} host(s)")
        return count, hosts
