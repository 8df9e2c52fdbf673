"""
Summarization collaborators.
"""

from .providers import SummarizationProvider, create_provider

__all__ = ["SummarizationProvider", "create_provider"]
