"""Terms Guardian - readability, rights and vocabulary analysis for legal prose."""

from .config import AnalysisConfig, load_config
from .orchestrator import AnalysisOrchestrator, analyze

__version__ = "1.0.0"

__all__ = ["AnalysisConfig", "AnalysisOrchestrator", "analyze", "load_config"]
