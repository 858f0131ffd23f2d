"""
Game-name generation.

Names double as primary keys and are typed by players in chat commands, so
they are pronounceable made-up words: alternating consonant and vowel
clusters, lower-case ASCII, between MIN_LENGTH and MAX_LENGTH letters.
"""
import random

MIN_LENGTH = 7
MAX_LENGTH = 12

_ONSETS = [
    "b", "bl", "br", "c", "ch", "cl", "cr", "d", "dr", "f", "fl", "fr", "g", "gl",
    "gr", "h", "j", "k", "l", "m", "n", "p", "pl", "pr", "qu", "r", "s", "sh", "sk",
    "sl", "sn", "sp", "st", "t", "th", "tr", "v", "w", "z",
]
_VOWELS = ["a", "e", "i", "o", "u", "ai", "ea", "ee", "oo", "ou", "oi"]
_CODAS = ["", "", "n", "m", "r", "l", "s", "x", "ck", "mp", "nd", "ng", "st"]


def generate_game_name(rng: random.Random = random) -> str:
    target = rng.randint(MIN_LENGTH, MAX_LENGTH)
    word = ""
    while len(word) < target:
        word += rng.choice(_ONSETS) + rng.choice(_VOWELS)
        if rng.random() < 0.3:
            word += rng.choice(_CODAS)
    return word[:MAX_LENGTH]
