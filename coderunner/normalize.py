from typing import Optional


def normalize_output(text: Optional[str]) -> str:
    """Canonicalize program output for comparison.

    Trailing spaces on a line and blank lines are insignificant; line order
    and the remaining content are preserved.
    """
    if not text:
        return ''
    lines = text.strip().replace('\r\n', '\n').split('\n')
    kept = [line.rstrip() for line in lines if line.strip()]
    return '\n'.join(kept)


def outputs_match(actual: Optional[str], expected: Optional[str]) -> bool:
    return normalize_output(actual) == normalize_output(expected)
