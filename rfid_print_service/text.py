"""
Text Normalization
==================

Printer firmware only carries a plain Latin charset, so accented characters
are folded before they are embedded into a command string.
"""

import unicodedata
from typing import Optional

# Decomposed n + combining tilde never survives the mark stripping, so these
# are replaced before decomposition.
_SPECIAL = {'ñ': 'n', 'Ñ': 'N'}


def normalize_text(value: Optional[str]) -> Optional[str]:
    """
    Strip diacritics from text destined for a printer command.

    Args:
        value: Input text (None and '' are returned unchanged)

    Returns:
        Text with combining marks removed and ñ/Ñ mapped to n/N
    """
    if not value:
        return value

    for char, replacement in _SPECIAL.items():
        value = value.replace(char, replacement)

    decomposed = unicodedata.normalize('NFD', value)
    stripped = ''.join(c for c in decomposed if unicodedata.category(c) != 'Mn')
    return unicodedata.normalize('NFC', stripped)
