"""Export functionality for Variant Family Scanner."""

from __future__ import annotations

import csv
import json
from collections.abc import Sequence
from datetime import datetime
from pathlib import Path
from typing import Any

import pandas as pd
from openpyxl.utils import get_column_letter

from variant_scanner.core.models import FamilyResult
from variant_scanner.core.projection import attribute_crosstab, flat_table

SUPPORTED_FORMATS = ("csv", "xlsx")

Rows = Sequence[Sequence[str]]


class ExportError(Exception):
    """Raised when an export cannot be written."""

    pass


class Exporter:
    """Writes tabular views and raw responses to disk."""

    @staticmethod
    def rows_to_dataframe(rows: Rows) -> pd.DataFrame:
        """Header row plus data rows as a DataFrame of strings."""
        if not rows:
            return pd.DataFrame()
        header = list(rows[0])
        return pd.DataFrame([list(r) for r in rows[1:]], columns=header, dtype=str)

    @staticmethod
    def _write_sheet(writer: pd.ExcelWriter, df: pd.DataFrame, sheet_name: str) -> None:
        """Write one sheet and auto-size its columns."""
        df.to_excel(writer, index=False, sheet_name=sheet_name)

        worksheet = writer.sheets[sheet_name]
        for i, col in enumerate(df.columns, start=1):
            values_len = df.iloc[:, i - 1].astype(str).map(len).max() if len(df) else 0
            max_length = max(int(values_len), len(str(col)))
            worksheet.column_dimensions[get_column_letter(i)].width = min(max_length + 2, 60)

    @classmethod
    def write_table(cls, rows: Rows, file_path: str | Path, fmt: str = "csv") -> Path:
        """Write a header-first table as CSV or XLSX."""
        fmt = fmt.lower()
        if fmt not in SUPPORTED_FORMATS:
            raise ExportError(f"Unsupported export format: {fmt}")

        path = Path(file_path)
        path.parent.mkdir(parents=True, exist_ok=True)

        if fmt == "csv":
            with open(path, "w", newline="", encoding="utf-8") as f:
                writer = csv.writer(f)
                writer.writerows(rows)
            return path

        df = cls.rows_to_dataframe(rows)
        with pd.ExcelWriter(path, engine="openpyxl") as writer:
            cls._write_sheet(writer, df, "Variants")
        return path

    @classmethod
    def write_family_workbook(
        cls, result: FamilyResult, file_path: str | Path, include_crosstab: bool = True
    ) -> Path:
        """Write the flat table and, unless disabled, the cross-tab to one workbook."""
        path = Path(file_path)
        path.parent.mkdir(parents=True, exist_ok=True)

        with pd.ExcelWriter(path, engine="openpyxl") as writer:
            cls._write_sheet(writer, cls.rows_to_dataframe(flat_table(result)), "Variants")
            crosstab = attribute_crosstab(result) if include_crosstab else []
            if crosstab:
                cls._write_sheet(writer, cls.rows_to_dataframe(crosstab), "Attributes")
        return path

    @staticmethod
    def write_json(data: Any, file_path: str | Path) -> Path:
        """Write a raw API response as indented JSON."""
        path = Path(file_path)
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w", encoding="utf-8") as f:
            json.dump(data, f, indent=2, ensure_ascii=False)
        return path

    @staticmethod
    def generate_filename(prefix: str, key: str, extension: str) -> str:
        """Generate a timestamped filename for export."""
        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        return f"{prefix}_{key}_{timestamp}.{extension}"
