from __future__ import annotations

import re

# Order matters: "Credlted" is repaired before every "Credited" is rewritten to "received".
_LITERAL_FIXES: tuple[tuple[str, str], ...] = (
    ("1,O0O", "1000"),
    ("Credlted", "Credited"),
    ("recd", "received"),
    ("Credited", "received"),
    ("Debited", "paid"),
)

# Narrower than rewriting every `Rs`/`INR`: a token glued to a preceding letter stays in its word
# ("Users" does not become "Use₹"), and one right after a rupee sign is left alone so a second
# pass changes nothing.
_CURRENCY_RE = re.compile(r"(?<![A-Za-z₹])(?:Rs|INR)\.?\s*", re.I)


def normalize_text(text: str) -> str:
    """
    Rewrite known OCR/typo artifacts and currency notations.

    Only the literal forms above are corrected; `1,2OO` and similar confusions are left as-is.
    Applying the function twice gives the same result as applying it once.
    """
    out = text or ""
    for wrong, right in _LITERAL_FIXES:
        out = out.replace(wrong, right)
    return _CURRENCY_RE.sub("₹", out)
