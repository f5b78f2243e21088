"""
Pattern-to-string synthesizer.

Supports ``\\d``, ``\\w``, escaped literals, bracket sets (``[a-z0-9_]``),
literal passthrough and the quantifiers ``*``, ``+``, ``{n}``, ``{n,m}``.

Quantifiers emit the filler character rather than repeating the token in
front of them: ``\\d{3}`` yields one digit followed by ``aaa``. Existing
run configurations depend on this output shape.
"""

import random
import string
from typing import Optional

FILLER_CHAR = "a"
DIGITS = string.digits
WORD_CHARS = string.ascii_letters + string.digits + "_"


def expand_char_set(char_set: str) -> str:
    """Expand ``a-z0-9_`` into the concrete characters."""
    chars = []
    i = 0
    while i < len(char_set):
        if i + 2 < len(char_set) and char_set[i + 1] == "-":
            start, end = ord(char_set[i]), ord(char_set[i + 2])
            chars.extend(chr(code) for code in range(start, end + 1))
            i += 3
        else:
            chars.append(char_set[i])
            i += 1
    return "".join(chars)


def _draw_count(low: int, high: int, rng: random.Random) -> int:
    return int(rng.random() * (high - low + 1)) + low if high >= low else low


def generate_from_pattern(pattern: str, rng: Optional[random.Random] = None) -> str:
    rng = rng or random.Random()
    out = []
    i = 0
    while i < len(pattern):
        ch = pattern[i]

        if ch == "\\":
            nxt = pattern[i + 1] if i + 1 < len(pattern) else ""
            if nxt == "d":
                out.append(rng.choice(DIGITS))
            elif nxt == "w":
                out.append(rng.choice(WORD_CHARS))
            else:
                out.append(nxt)
            i += 2
            continue

        if ch == "[":
            end = pattern.find("]", i)
            if end != -1:
                chars = expand_char_set(pattern[i + 1:end])
                if chars:
                    out.append(rng.choice(chars))
                i = end + 1
                continue
            out.append(ch)
            i += 1
            continue

        if ch in "*+":
            count = _draw_count(0, 2, rng) if ch == "*" else _draw_count(1, 2, rng)
            out.append(FILLER_CHAR * count)
            i += 1
            continue

        if ch == "{":
            end = pattern.find("}", i)
            if end != -1:
                bounds = pattern[i + 1:end].split(",")
                try:
                    low = int(bounds[0])
                    high = int(bounds[1]) if len(bounds) > 1 and bounds[1].strip() else low
                except ValueError:
                    out.append(pattern[i:end + 1])
                else:
                    out.append(FILLER_CHAR * _draw_count(low, high, rng))
                i = end + 1
                continue
            out.append(ch)
            i += 1
            continue

        out.append(ch)
        i += 1

    return "".join(out)
