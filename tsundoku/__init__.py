"""
tsundoku - translate Japanese web novels with an OpenAI-compatible LLM.
"""

__version__ = "0.3.0"
