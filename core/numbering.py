"""Human-facing document numbers: P-2026-0001, O-2026-0001, V-2026-0001."""


def number_prefix(prefix: str, year: int) -> str:
    return f"{prefix}-{year}-"


def next_document_number(prefix: str, year: int, latest: str | None) -> str:
    """
    Next number in the year's sequence.

    Args:
        prefix: Document kind prefix ("P" quotes, "O" orders, "V" sales)
        year: Calendar year; the sequence restarts every year
        latest: Highest existing number for that prefix and year, if any

    Returns:
        Formatted number, e.g. "P-2026-0042"
    """
    head = number_prefix(prefix, year)

    if latest is None or not latest.startswith(head):
        sequence = 1
    else:
        try:
            sequence = int(latest[len(head):]) + 1
        except ValueError:
            sequence = 1

    return f"{head}{sequence:04d}"
