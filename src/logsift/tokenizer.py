"""Line tokenizer.

Replaces the variable parts of a log line (dates, identifiers, addresses,
numbers) so that two lines printed by the same statement produce the same
token sequence.
"""

import re


# Order matters: the longer structures must be replaced before numbers are stripped
TOKEN_RULES = [
    (re.compile(r'https?://\S+'), ' %url '),
    (re.compile(r'\b[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}\b'), ' %uid '),
    (
        re.compile(r'\b\d{4}-\d{2}-\d{2}(?:[t ]\d{2}:\d{2}:\d{2}(?:[.,]\d+)?(?:z|[+-]\d{2}:?\d{2})?)?\b'),
        ' %date ',
    ),
    (re.compile(r'\b\d{1,2}:\d{2}:\d{2}(?:[.,]\d+)?\b'), ' %time '),
    (re.compile(r'\b(?:\d{1,3}\.){3}\d{1,3}(?::\d+)?\b'), ' %ipv4 '),
    (re.compile(r'\b0x[0-9a-f]+\b'), ' %hex '),
    (re.compile(r'\b[0-9a-f]{12,}\b'), ' %hash '),
    (re.compile(r'\d+'), ''),
]

WORD_RE = re.compile(r'%?[a-z_]{2,}')


def tokens(line: str) -> list[str]:
    """Return the normalized tokens of a line."""
    text = line.lower()
    for pattern, replacement in TOKEN_RULES:
        text = pattern.sub(replacement, text)
    return WORD_RE.findall(text)


def process(line: str) -> str:
    """Return the normalized token sequence of a line as a single string."""
    return ' '.join(tokens(line))
