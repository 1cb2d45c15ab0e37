"""
Byte size formatting for log summaries
"""


def format_bytes(num_bytes: int) -> str:
    """
    Format a byte count as a human-readable string.

    Args:
        num_bytes: Number of bytes

    Returns:
        Formatted string such as "512 B" or "7.42 MB"
    """
    if abs(num_bytes) < 1024:
        return f"{num_bytes} B"

    size = float(num_bytes)
    for unit in ("KB", "MB", "GB"):
        size /= 1024.0
        if abs(size) < 1024.0:
            return f"{size:.2f} {unit}"
    return f"{size / 1024.0:.2f} TB"
