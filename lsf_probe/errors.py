from typing import Iterator


class ProbeError(RuntimeError):
    """Fatal error that stops the probe before a report can be written."""


def iter_causes(exc: BaseException) -> Iterator[BaseException]:
    """Yield the chain of underlying causes of ``exc`` (excluding ``exc``)."""
    cause = exc.__cause__
    while cause is not None:
        yield cause
        cause = cause.__cause__
