"""Type Diagnosis Engine.

Scores questionnaire answers into a two-axis (category x vector) type and
composes an explanation of the result.
"""

from .catalog import QuestionCatalog, load_default_catalog
from .config import load_scoring_config
from .engine import DiagnosisEngine
from .errors import DiagnosisError, ProfileSelectionError, ValidationError
from .schema import AnswerInput, DiagnoseResult, ScoreBreakdown, ScoringConfig

__version__ = "1.0.0"

__all__ = [
    "AnswerInput",
    "DiagnoseResult",
    "DiagnosisEngine",
    "DiagnosisError",
    "ProfileSelectionError",
    "QuestionCatalog",
    "ScoreBreakdown",
    "ScoringConfig",
    "ValidationError",
    "load_default_catalog",
    "load_scoring_config",
]
