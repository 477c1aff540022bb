"""
PromptArena: Multi-Provider LLM Comparison Service

Sends one prompt to several large-language-model providers at once,
scores every answer with a deterministic quality heuristic, and emails
the ranked comparison report to the customer who ordered it.
"""

__version__ = "0.1.0"
