"""
Word-window chunking.

Splits documents into windows of a fixed number of words so every chunk
fits the embedding model's context. Consecutive windows share `overlap`
words so a sentence cut at a boundary still appears whole in one chunk.
"""


def chunk_text(text: str, size: int, overlap: int) -> list[str]:
    """
    Split text into overlapping word windows.

    Args:
        text: Text to chunk
        size: Number of words per chunk
        overlap: Number of words shared by consecutive chunks

    Returns:
        List of chunk strings. Text that fits in one window is returned
        unmodified; longer text is re-joined with single spaces.

    Raises:
        ValueError: If size <= 0, overlap < 0 or overlap >= size
    """
    _validate(size, overlap)

    words = text.split()
    if not words:
        return []
    if len(words) <= size:
        return [text]

    return [
        " ".join(words[start:end])
        for start, end in chunk_windows(len(words), size, overlap)
    ]


def chunk_windows(word_count: int, size: int, overlap: int) -> list[tuple[int, int]]:
    """
    Compute the word ranges of each chunk.

    Windows start at 0 and advance by `size - overlap` until the start
    reaches `word_count`; the last window is clamped and may be shorter.

    Args:
        word_count: Number of words in the text
        size: Number of words per chunk
        overlap: Number of words shared by consecutive chunks

    Returns:
        List of half-open (start, end) word index ranges
    """
    _validate(size, overlap)
    step = size - overlap
    return [
        (start, min(start + size, word_count))
        for start in range(0, word_count, step)
    ]


def _validate(size: int, overlap: int) -> None:
    if size <= 0:
        raise ValueError(f"chunk size must be positive, got {size}")
    if overlap < 0:
        raise ValueError(f"overlap must be non-negative, got {overlap}")
    if overlap >= size:
        raise ValueError(f"overlap ({overlap}) must be less than chunk size ({size})")
