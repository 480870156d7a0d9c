from typing import List

from log_ingest.core.config import Settings, get_settings
from log_ingest.handler import Collaborators, build_collaborators
from log_ingest.services.critical_rules import load_critical_patterns


_collaborators: Collaborators | None = None
_patterns: List[str] | None = None


def get_app_settings() -> Settings:
    return get_settings()


def get_collaborators() -> Collaborators:
    """FastAPI dependency returning the process-wide collaborator handles."""
    global _collaborators
    if _collaborators is None:
        _collaborators = build_collaborators(get_settings())
    return _collaborators


def get_critical_patterns() -> List[str]:
    global _patterns
    if _patterns is None:
        _patterns = load_critical_patterns(get_settings())
    return _patterns
