from .openai_client import OpenAIAnalysisClient

__all__ = ["OpenAIAnalysisClient"]
