"""
JSON extraction from LLM responses.

Models often wrap JSON in markdown fences or add a sentence before or after
it. JsonObjectExtractor recovers the object text from such responses.
"""

import re
from typing import Optional


class JsonObjectExtractor:
    """
    Extracts a JSON object string from a model response.

    Handles:
        - A surrounding markdown code fence (```json ... ```)
        - Preamble and postamble text around the object

    Example:
        >>> extractor = JsonObjectExtractor()
        >>> extractor.extract('Sure!\\n```json\\n{"names": []}\\n```')
        '{"names": []}'
    """

    def __init__(self):
        self._fence_regex = re.compile(r"^```[a-zA-Z]*\s*(.*?)\s*```$", re.DOTALL)

    def strip_code_fence(self, response: str) -> str:
        text = response.strip()
        match = self._fence_regex.match(text)
        if match:
            return match.group(1).strip()

        # Unbalanced fences: drop whichever side is present
        if text.startswith("```"):
            first_newline = text.find("\n")
            text = text[first_newline + 1:] if first_newline != -1 else text[3:]
        if text.endswith("```"):
            text = text[:-3]
        return text.strip()

    def extract(self, response: str) -> Optional[str]:
        """
        Return the text from the first '{' to the last '}', or None.
        """
        text = self.strip_code_fence(response)
        start = text.find("{")
        end = text.rfind("}")
        if start == -1 or end < start:
            return None
        return text[start:end + 1]
