"""
Single-line CSV tokenizer.

Unlike ``csv.reader`` this never raises and never joins physical lines: an
unterminated quote simply keeps the rest of the line inside the current
field, and every field is whitespace-trimmed.
"""
from typing import List


def tokenize_line(line: str) -> List[str]:
    """
    Split one CSV line into trimmed field strings.

    - ``,`` separates fields only outside quotes
    - ``"`` toggles quoting; ``""`` inside quotes is a literal ``"``
    - empty fields are kept, and the final field is always emitted

    >>> tokenize_line('a,"b,c",d')
    ['a', 'b,c', 'd']
    >>> tokenize_line('a,"b""c",d')
    ['a', 'b"c', 'd']
    """
    fields: List[str] = []
    current: List[str] = []
    in_quotes = False
    i = 0
    length = len(line)

    while i < length:
        char = line[i]
        if char == '"':
            if in_quotes and i + 1 < length and line[i + 1] == '"':
                current.append('"')
                i += 1
            else:
                in_quotes = not in_quotes
        elif char == "," and not in_quotes:
            fields.append("".join(current).strip())
            current = []
        else:
            current.append(char)
        i += 1

    fields.append("".join(current).strip())
    return fields
