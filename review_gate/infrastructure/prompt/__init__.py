from .prompt_provider import PromptProvider, LoggingPromptProvider, CallbackPromptProvider

__all__ = ["PromptProvider", "LoggingPromptProvider", "CallbackPromptProvider"]
