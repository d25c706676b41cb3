import os
import sys
from typing import Iterable, Iterator, List, Optional, Tuple

import pandas as pd
from pydantic import BaseModel, ValidationError, field_validator
from tqdm import tqdm

CHUNK_SIZE = 20_000  # rows per chunk — lower if memory is tight

# Leading unnamed column holds the row index; the rest are named
REQUIRED_COLUMNS = ["date", "sender", "recipient1", "subject", "text"]


class EmailRecord(BaseModel):
    """One row of the email CSV."""
    index: int
    date: str = ""
    sender: str = ""
    recipient1: str = ""
    subject: str = ""
    text: str = ""

    @field_validator("sender")
    @classmethod
    def _normalise_sender(cls, v: str) -> str:
        return v.strip().lower()


class ParsedEmail(BaseModel):
    sender: str
    recipients: List[str]


class IngestResult(BaseModel):
    emails: List[ParsedEmail] = []
    total_rows: int = 0
    failed: int = 0


def parse_recipients(raw: str) -> List[str]:
    """Split a comma-separated recipient field into clean, lower-cased addresses."""
    return [r.strip().lower() for r in raw.split(",") if r.strip()]


def _index_column(columns) -> Optional[str]:
    first = columns[0]
    if first == "" or first.startswith("Unnamed"):
        return first
    return None


def read_emails(input_path: str, chunk_size: int = CHUNK_SIZE, show_progress: bool = True) -> IngestResult:
    """
    Stream the CSV in chunks and keep every record with a sender and at
    least one recipient. Unusable rows are reported on stderr and counted.
    """
    if not os.path.exists(input_path):
        raise FileNotFoundError(input_path)

    probe = pd.read_csv(input_path, nrows=0)
    missing = [c for c in REQUIRED_COLUMNS if c not in probe.columns]
    if missing:
        raise ValueError(f"{input_path} is missing required columns: {', '.join(missing)}")
    index_col = _index_column(list(probe.columns))
    n_cols = len(probe.columns)

    result = IngestResult()

    def _bad_line(fields: List[str]):
        # Rows with more fields than the header never reach a chunk
        result.total_rows += 1
        result.failed += 1
        tqdm.write(
            f"Failed to deserialize a record: expected {n_cols} fields, saw {len(fields)}",
            file=sys.stderr,
        )
        return None

    reader = pd.read_csv(
        input_path,
        chunksize=chunk_size,
        dtype=str,
        na_filter=False,
        engine="python",
        on_bad_lines=_bad_line,
    )

    row_no = 0
    for chunk in tqdm(reader, desc="  Chunks", disable=not show_progress):
        if index_col is not None:
            chunk = chunk.rename(columns={index_col: "index"})
        else:
            chunk = chunk.assign(index=[str(i) for i in range(row_no, row_no + len(chunk))])
        row_no += len(chunk)
        # short rows come back padded with NaN
        chunk = chunk.fillna("")

        for row in chunk.to_dict("records"):
            result.total_rows += 1
            try:
                record = EmailRecord.model_validate(row)
            except ValidationError as e:
                tqdm.write(f"Failed to deserialize a record: {e}", file=sys.stderr)
                result.failed += 1
                continue

            recipients = parse_recipients(record.recipient1)
            if not record.sender or not recipients:
                tqdm.write(
                    f"Incomplete record found at index {record.index}: "
                    f"sender='{record.sender}', recipient1='{record.recipient1}'",
                    file=sys.stderr,
                )
                result.failed += 1
                continue

            result.emails.append(ParsedEmail(sender=record.sender, recipients=recipients))

    return result


def iter_pairs(emails: Iterable[ParsedEmail]) -> Iterator[Tuple[str, str]]:
    """Flatten emails into (sender, recipient) pairs, in arrival order."""
    for email in emails:
        for recipient in email.recipients:
            yield email.sender, recipient


if __name__ == "__main__":
    INPUT = "emaildata_100000_0.csv"

    if os.path.exists(INPUT):
        parsed = read_emails(INPUT)
        print(f"Successfully parsed {len(parsed.emails):,} emails.")
        if parsed.failed:
            print(f"Failed to parse {parsed.failed:,} records.")
        print("\nFirst 5 Parsed Emails:")
        for email in parsed.emails[:5]:
            print(f"   {email.sender} → {', '.join(email.recipients)}")
    else:
        print(f"❌ Error: {INPUT} not found.")
