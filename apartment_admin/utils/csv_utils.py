import csv
from decimal import Decimal
from io import StringIO
from typing import Any, Iterable, List, Sequence, Tuple


def rows_to_csv(headers: Sequence[str], rows: Iterable[Sequence[Any]]) -> str:
    buffer = StringIO()
    writer = csv.writer(buffer)
    writer.writerow(headers)
    for row in rows:
        writer.writerow(row)
    return buffer.getvalue()


def sections_to_csv(sections: List[Tuple[str, Sequence[str], List[Sequence[Any]]]]) -> str:
    """Render several titled tables into one CSV document, separated by blank lines."""
    buffer = StringIO()
    writer = csv.writer(buffer)
    for index, (title, headers, rows) in enumerate(sections):
        if index:
            writer.writerow([])
        writer.writerow([title])
        writer.writerow(headers)
        for row in rows:
            writer.writerow(row)
    return buffer.getvalue()


def money(value: Any) -> str:
    return f"{Decimal(value or 0):.2f}"
