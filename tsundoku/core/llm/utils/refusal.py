"""
Refusal detection for model output.
"""

REFUSAL_PHRASES = (
    "i'm sorry",
    "i cannot",
    "i am unable",
    "as an ai",
    "my apologies",
    "i am not programmed",
    "i do not have the ability",
)


def is_refusal(text: str) -> bool:
    """True if the trimmed text starts with a known refusal phrase, ignoring case."""
    lowered = text.strip().casefold()
    return any(lowered.startswith(phrase) for phrase in REFUSAL_PHRASES)
