"""Generator backends."""

from llmcore.adapters.chat_adapter import ChatCompletionsAdapter
from llmcore.adapters.ollama_adapter import OllamaAdapter
from llmcore.adapters.scripted import ScriptedGenerator

__all__ = ["ChatCompletionsAdapter", "OllamaAdapter", "ScriptedGenerator"]
