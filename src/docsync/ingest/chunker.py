"""Text chunking on a separator with a hard size bound."""


def split_text(text: str, separator: str = "\n", chunk_size: int = 1500) -> list[str]:
    """Split text into chunks of at most ``chunk_size`` characters.

    The text is cut on ``separator`` and consecutive pieces are packed back
    together (joined by the separator) while the packed chunk still fits.
    A single piece longer than ``chunk_size`` becomes its own chunk, untruncated.
    Chunks never overlap.

    Args:
        text: The text to split.
        separator: Boundary to split on. An empty string splits per character.
        chunk_size: Maximum chunk length in characters.

    Returns:
        List of non-empty, whitespace-stripped chunks.
    """
    if chunk_size <= 0:
        raise ValueError(f"chunk_size must be positive, got {chunk_size}")

    units = list(text) if separator == "" else text.split(separator)
    units = [u for u in units if u.strip()]

    chunks: list[str] = []
    current: list[str] = []
    current_len = 0

    for unit in units:
        extra = len(unit) + (len(separator) if current else 0)
        if current and current_len + extra > chunk_size:
            chunks.append(separator.join(current))
            current, current_len = [], 0
            extra = len(unit)
        current.append(unit)
        current_len += extra

    if current:
        chunks.append(separator.join(current))

    stripped = (c.strip() for c in chunks)
    return [c for c in stripped if c]
