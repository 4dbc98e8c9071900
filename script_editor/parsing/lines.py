from typing import List


def split_lines(text: str) -> List[str]:
    """Split on \\n, \\r\\n or a bare \\r. Empty text yields no lines."""
    if not text:
        return []
    return text.replace("\r\n", "\n").replace("\r", "\n").split("\n")
