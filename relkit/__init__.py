"""relkit: release pipeline helpers (commit triage, CI and release watching, patch coverage)."""

__version__ = "0.3.0"
