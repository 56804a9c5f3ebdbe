"""CollectorAI - Resumable, AI-filtered collection of paginated listings."""

__version__ = "0.1.0"

from collector_ai.models import Checkpoint, Mode, SessionOptions, SessionReport
from collector_ai.pipeline import Pipeline
from collector_ai.runner import run_session

__all__ = ["Checkpoint", "Mode", "Pipeline", "SessionOptions", "SessionReport", "run_session"]
