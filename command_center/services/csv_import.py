"""
CSV import helpers shared by the team roster and team ESAT imports.

Parsing is all-or-report:
  - A file missing a required column is rejected outright.
  - Each data row missing a required value is reported as
    ``Row N: column "x" is empty`` (N is the CSV line number, header = 1)
    and left out of the returned rows; the remaining rows are importable.

Template generation writes the column keys as header and one example row.
"""

from __future__ import annotations

import csv
import io
from dataclasses import dataclass

from command_center.core.exceptions import ValidationError


@dataclass(frozen=True)
class CsvColumn:
    key: str
    example: str
    required: bool = False


TEAM_COLUMNS = (
    CsvColumn("name", "Full Name", required=True),
    CsvColumn("email", "name@example.com"),
    CsvColumn("position", "Position"),
    CsvColumn("squad", "Squad"),
    CsvColumn("supervisor", "Supervisor"),
)

TEAM_ESAT_COLUMNS = (
    CsvColumn("name", "Team Member Name", required=True),
    CsvColumn("month", "Jan 2025", required=True),
    CsvColumn("score", "80", required=True),
    CsvColumn("notes", "Notes (optional)"),
)


def generate_template(columns) -> str:
    """Header row of column keys followed by one example row."""
    output = io.StringIO()
    writer = csv.writer(output, lineterminator="\n")
    writer.writerow([c.key for c in columns])
    writer.writerow([c.example for c in columns])
    return output.getvalue()


def parse_csv(file_content: str | bytes, columns) -> dict:
    """Parse CSV content against ``columns``.

    Returns:
        {"rows": [{"row_num": N, <key>: <value>, ...}], "errors": ["Row N: ..."]}

    Raises:
        ValidationError: content is not decodable or a required column is absent.
    """
    if isinstance(file_content, bytes):
        try:
            file_content = file_content.decode("utf-8-sig")
        except UnicodeDecodeError:
            raise ValidationError("CSV file must be UTF-8 encoded") from None
    file_content = file_content.lstrip("\ufeff")

    reader = csv.DictReader(io.StringIO(file_content))
    headers = [h.strip().lower() for h in (reader.fieldnames or [])]
    required = [c.key for c in columns if c.required]
    missing = [key for key in required if key not in headers]
    if missing:
        raise ValidationError(
            f"Required columns not found: {', '.join(missing)}",
            details={"columns": missing},
        )

    rows: list[dict] = []
    errors: list[str] = []
    for raw in reader:
        # last physical line of the record; blank lines are skipped but counted
        row_num = reader.line_num
        row = {
            (k or "").strip().lower(): (v or "").strip() if isinstance(v, str) else ""
            for k, v in raw.items()
        }
        empty = [key for key in required if not row.get(key)]
        if empty:
            errors.append(
                f"Row {row_num}: " + ", ".join(f'column "{key}" is empty' for key in empty)
            )
            continue
        parsed = {"row_num": row_num}
        for c in columns:
            parsed[c.key] = row.get(c.key, "")
        rows.append(parsed)

    return {"rows": rows, "errors": errors}
