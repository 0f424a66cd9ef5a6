"""ASIN list import for batch family reconciliation."""

from __future__ import annotations

import csv
import re
from dataclasses import dataclass, field
from pathlib import Path

ASIN_RE = re.compile(r"^[A-Z0-9]{10}$")


class AsinListValidationError(Exception):
    """Raised when an ASIN list file cannot be used."""

    def __init__(self, message: str, missing_headers: list[str] | None = None) -> None:
        super().__init__(message)
        self.missing_headers = missing_headers or []


@dataclass
class AsinListResult:
    """Result of an ASIN list import."""

    asins: list[str] = field(default_factory=list)
    duplicates: int = 0
    items_skipped: int = 0
    errors: list[str] = field(default_factory=list)

    @property
    def success(self) -> bool:
        return bool(self.asins) and not self.errors


def is_valid_asin(value: str) -> bool:
    """Check a value looks like an ASIN (10 upper-case alphanumerics)."""
    return bool(ASIN_RE.match(value))


class AsinListImporter:
    """Reads ASINs from a CSV with an ASIN column or a plain list file."""

    REQUIRED_HEADERS = ["ASIN"]

    def validate_headers(self, headers: list[str]) -> None:
        """Validate that the ASIN column is present."""
        cleaned_headers = [h.strip().upper() for h in headers]
        missing = [h for h in self.REQUIRED_HEADERS if h not in cleaned_headers]

        if missing:
            raise AsinListValidationError(
                f"Missing required columns: {', '.join(missing)}",
                missing_headers=missing,
            )

    def parse_values(self, values: list[tuple[int, str]]) -> AsinListResult:
        """Validate, upper-case and deduplicate (line number, value) pairs."""
        result = AsinListResult()
        seen: set[str] = set()

        for line_num, raw in values:
            asin = raw.strip().upper()
            if not asin:
                continue
            if not is_valid_asin(asin):
                result.errors.append(f"Line {line_num}: Invalid ASIN '{raw.strip()}'")
                result.items_skipped += 1
                continue
            if asin in seen:
                result.duplicates += 1
                continue
            seen.add(asin)
            result.asins.append(asin)

        return result

    def import_file(self, file_path: str | Path) -> AsinListResult:
        """Import ASINs from a .csv file (ASIN column) or any other text file."""
        path = Path(file_path)
        if not path.exists():
            raise FileNotFoundError(f"File not found: {path}")

        if path.suffix.lower() == ".csv":
            return self._import_csv(path)

        with open(path, encoding="utf-8-sig") as f:
            values = [(i, line) for i, line in enumerate(f, start=1)]
        return self.parse_values(values)

    def _import_csv(self, path: Path) -> AsinListResult:
        with open(path, newline="", encoding="utf-8-sig") as f:
            reader = csv.DictReader(f)

            if reader.fieldnames is None:
                raise AsinListValidationError("CSV file is empty or has no headers")

            self.validate_headers(list(reader.fieldnames))
            column = next(h for h in reader.fieldnames if h.strip().upper() == "ASIN")

            values = [
                (row_num, row.get(column) or "")
                for row_num, row in enumerate(reader, start=2)
            ]

        return self.parse_values(values)
