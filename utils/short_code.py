"""
Human-shareable trip codes such as "paris-a3x7k2".
"""
import random
import re
import string
import unicodedata
from typing import Optional

SLUG_MAX_LENGTH = 20
SUFFIX_LENGTH = 6
SUFFIX_ALPHABET = string.ascii_lowercase + string.digits


def slugify(destination: str) -> str:
    """Lowercase, strip accents, dash-join words and drop anything else."""
    text = unicodedata.normalize("NFD", destination.lower())
    text = "".join(ch for ch in text if not unicodedata.combining(ch))
    # đ has no decomposition
    text = text.replace("đ", "d")
    text = re.sub(r"\s+", "-", text)
    text = re.sub(r"[^a-z0-9-]", "", text)
    return text[:SLUG_MAX_LENGTH]


def generate_short_code(destination: str, rng: Optional[random.Random] = None) -> str:
    rng = rng or random
    suffix = "".join(rng.choice(SUFFIX_ALPHABET) for _ in range(SUFFIX_LENGTH))
    return f"{slugify(destination)}-{suffix}"
