from .gemini import GeminiOracle

__all__ = ["GeminiOracle"]
