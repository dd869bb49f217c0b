import csv
from io import StringIO
from typing import Iterable, Sequence


def rows_to_csv(headers: Sequence[str], rows: Iterable[Sequence[str]]) -> str:
    buffer = StringIO()
    writer = csv.writer(buffer)
    writer.writerow(headers)
    for row in rows:
        writer.writerow(row)
    return buffer.getvalue()


def money_cell(value) -> str:
    return f"{value:.2f}"
