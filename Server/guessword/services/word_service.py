"""
Word Service

Supplies target words: a random word generated by the Gemini API, with a
local fallback pool when the API is unavailable, slow, or returns a word of
the wrong length.
"""

import logging
import random
import re
from typing import Dict, Iterable, List, Optional

import requests

from ..config.game_settings import FALLBACK_WORDS
from ..exceptions import WordSourceError, WordUnavailableError

logger = logging.getLogger(__name__)

GEMINI_URL_TEMPLATE = "https://generativelanguage.googleapis.com/v1beta/models/{model}:generateContent"

WORD_PROMPT_TEMPLATE = """Generate a SINGLE random {length}-letter English word.
Rules:
1. Must be a real, common dictionary word.
2. NO proper nouns (names, places).
3. NO hyphens or spaces.
4. Simple enough for a general audience.
5. RETURN ONLY THE WORD IN UPPERCASE. NO JSON, NO MARKDOWN, NO EXPLANATION."""


class WordService:
    """
    Word source for new rounds.

    This class handles:
    - Prompting the Gemini API for a random word of a given length
    - Validating and normalizing the generated word
    - Picking a local fallback word that avoids recently solved words
    """

    def __init__(self,
                 api_key: Optional[str] = None,
                 model: str = "gemini-1.5-flash",
                 timeout: float = 5.0,
                 fallback_words: Optional[Dict[int, List[str]]] = None,
                 rng: Optional[random.Random] = None,
                 http=None):
        self.api_key = api_key
        self.model = model
        self.timeout = timeout
        self.fallback_words = fallback_words if fallback_words is not None else FALLBACK_WORDS
        self.rng = rng or random.Random()
        self.http = http or requests.Session()

    def generate_word(self, length: int) -> str:
        """
        Asks the Gemini API for a random word.

        Args:
            length: Requested word length

        Returns:
            str: The generated word, uppercase letters only

        Raises:
            WordSourceError: If the key is missing, the request fails, or the
                response does not contain a word
        """
        if not self.api_key:
            raise WordSourceError("Gemini API key not configured")

        payload = {"contents": [{"parts": [{"text": WORD_PROMPT_TEMPLATE.format(length=length)}]}]}

        try:
            response = self.http.post(
                GEMINI_URL_TEMPLATE.format(model=self.model),
                params={"key": self.api_key},
                json=payload,
                timeout=self.timeout,
            )
            response.raise_for_status()
            data = response.json()
        except (requests.RequestException, ValueError) as e:
            raise WordSourceError(f"Word request failed: {e}") from e

        try:
            raw_text = data["candidates"][0]["content"]["parts"][0]["text"]
        except (KeyError, IndexError, TypeError) as e:
            raise WordSourceError("Invalid response format from Gemini API") from e

        word = re.sub(r"[^A-Za-z]", "", raw_text or "").upper()
        if not word:
            raise WordSourceError("Gemini API returned an empty word")
        return word

    def fetch(self, difficulty: int) -> str:
        """Generated word for a difficulty; raises WordSourceError on a length mismatch."""
        word = self.generate_word(difficulty)
        if len(word) != difficulty:
            raise WordSourceError(f"Generated word {word} length mismatch. Expected {difficulty}")
        return word

    def fallback(self, difficulty: int, exclude_words: Iterable[str] = ()) -> str:
        """
        Picks a word from the local pool.

        Words in exclude_words are skipped; when that leaves nothing, the
        whole pool is used again.

        Raises:
            WordUnavailableError: If there is no pool for the difficulty
        """
        pool = self.fallback_words.get(difficulty)
        if not pool:
            raise WordUnavailableError(f"No fallback words for difficulty {difficulty}")

        excluded = {word.upper() for word in exclude_words}
        candidates = [word for word in pool if word not in excluded]
        if not candidates:
            logger.info("Fallback pool for difficulty %s exhausted, resetting", difficulty)
            candidates = list(pool)
        return self.rng.choice(candidates)

