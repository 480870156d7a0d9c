from __future__ import annotations

from dataclasses import dataclass
from pathlib import PurePosixPath

from log_ingest.models.records import LogFamily


@dataclass(frozen=True)
class DispatchTarget:
    family: LogFamily
    index_name: str


def index_for(family: LogFamily, settings) -> str:
    if family is LogFamily.ERROR:
        return settings.ERROR_INDEX
    if family is LogFamily.ACCESS:
        return settings.ACCESS_INDEX
    if family is LogFamily.APACHE_ACCESS:
        return settings.APACHE_ACCESS_INDEX
    raise KeyError(f"Unknown log family: {family}")


def select_family(object_path: str, settings) -> DispatchTarget:
    """Pick the classifier family and destination index for an object.

    Priority: error directory fragment, then the Apache file-name marker, then
    the pipe-delimited access format.
    """
    path = "/" + object_path.lstrip("/")
    if settings.ERROR_LOG_MARKER and settings.ERROR_LOG_MARKER in path:
        family = LogFamily.ERROR
    elif settings.APACHE_LOG_MARKER and settings.APACHE_LOG_MARKER in PurePosixPath(path).name:
        family = LogFamily.APACHE_ACCESS
    else:
        family = LogFamily.ACCESS
    return DispatchTarget(family=family, index_name=index_for(family, settings))
