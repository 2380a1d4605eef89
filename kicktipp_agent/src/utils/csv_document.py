"""Header + rows CSV documents as scraped from kicktipp history tables."""

import csv
import io
from typing import List, Optional

from kicktipp_agent.src.utils.errors import CsvError, MalformedRow


class CsvDocument:
    DELIMITER = ","
    LINE_TERMINATOR = "\r\n"

    def __init__(self, header: List[str], rows: Optional[List[List[str]]] = None):
        self.header = list(header)
        self.rows = [list(row) for row in rows or []]

    @classmethod
    def parse(cls, text: str) -> "CsvDocument":
        """
        Parse CSV text into a header and rows.

        Both "\\n" and "\\r\\n" end a line. Blank lines before the header and at the
        end of the text are ignored, every other line must have as many fields as
        the header.

        Raises:
            CsvError: If the text has no header line
            MalformedRow: If a row's field count differs from the header's
        """
        lines = text.replace("\r\n", "\n").split("\n")
        while lines and lines[-1] == "":
            lines.pop()

        header: Optional[List[str]] = None
        rows: List[List[str]] = []
        for line_number, line in enumerate(lines, start=1):
            if header is None:
                if line == "":
                    continue
                header = cls._split(line)
                continue

            fields = cls._split(line)
            if len(fields) != len(header):
                raise MalformedRow(line_number, len(header), len(fields))
            rows.append(fields)

        if header is None:
            raise CsvError("CSV document has no header line")
        return cls(header, rows)

    @classmethod
    def _split(cls, line: str) -> List[str]:
        return next(csv.reader([line], delimiter=cls.DELIMITER), [])

    def index_of(self, column: str) -> Optional[int]:
        wanted = column.lower()
        for index, name in enumerate(self.header):
            if name.lower() == wanted:
                return index
        return None

    def has_column(self, column: str) -> bool:
        return self.index_of(column) is not None

    def value(self, row: List[str], column: str, default: str = "") -> str:
        index = self.index_of(column)
        if index is None:
            return default
        return row[index]

    def insert_column(
        self, after: str, column: str, values: List[str]
    ) -> "CsvDocument":
        """Return a copy with `column` placed right after `after` (or first if `after` is missing)."""
        if len(values) != len(self.rows):
            raise ValueError(
                f"Got {len(values)} values for a document with {len(self.rows)} rows"
            )
        after_index = self.index_of(after)
        position = 0 if after_index is None else after_index + 1

        header = self.header[:position] + [column] + self.header[position:]
        rows = [
            row[:position] + [value] + row[position:]
            for row, value in zip(self.rows, values)
        ]
        return CsvDocument(header, rows)

    def serialize(self) -> str:
        buffer = io.StringIO()
        writer = csv.writer(
            buffer, delimiter=self.DELIMITER, lineterminator=self.LINE_TERMINATOR
        )
        writer.writerow(self.header)
        writer.writerows(self.rows)
        return buffer.getvalue()

    def __len__(self) -> int:
        return len(self.rows)
