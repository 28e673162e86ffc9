from .openai import OpenAIThreadService

__all__ = ["OpenAIThreadService"]
