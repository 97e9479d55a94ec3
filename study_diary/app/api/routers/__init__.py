"""Router exports for FastAPI composition."""

from . import health, study_logs

__all__ = ["health", "study_logs"]
