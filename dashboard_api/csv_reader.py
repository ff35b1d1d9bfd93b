from __future__ import annotations

import asyncio
import csv
import io
import logging
from dataclasses import dataclass
from pathlib import Path
from types import MappingProxyType
from typing import Iterator, Mapping, Tuple

from charset_normalizer import from_bytes

from .errors import NotFoundError
from .rules import COMMA, LEGACY_ENCODINGS, SEMICOLON, TARGET_ENCODING

logger = logging.getLogger(__name__)

Record = Mapping[str, str]

BOM = "\ufeff"


@dataclass(frozen=True)
class Dataset:
    path: Path
    delimiter: str
    columns: Tuple[str, ...]
    records: Tuple[Record, ...]  # file order, header excluded

    def __iter__(self) -> Iterator[Record]:
        return iter(self.records)

    def __len__(self) -> int:
        return len(self.records)


def decode_text(raw: bytes, source: str = "<bytes>") -> str:
    """
    Decode file bytes, UTF-8 first.

    Rules:
    - utf-8-sig, so a BOM never ends up in the first header name
    - if that fails, let charset-normalizer choose among the legacy
      Windows encodings the sources are exported in, and warn
    - if nothing is detected, the first legacy encoding that decodes;
      latin_1 accepts any byte, so this never fails
    """
    try:
        return raw.decode(TARGET_ENCODING)
    except UnicodeDecodeError:
        pass

    match = from_bytes(raw, cp_isolation=list(LEGACY_ENCODINGS)).best()
    encodings = ([match.encoding] if match is not None else []) + list(LEGACY_ENCODINGS)
    for encoding in encodings:
        try:
            text = raw.decode(encoding)
        except (LookupError, UnicodeDecodeError):
            continue
        logger.warning("%s is not UTF-8, decoding as %s", source, encoding)
        return text

    # Unreachable while latin_1 is in LEGACY_ENCODINGS.
    return raw.decode("utf-8", errors="replace")


def detect_delimiter(text: str) -> str:
    """Semicolon if the header line has one, comma otherwise."""
    header = text.split("\n", 1)[0].lstrip(BOM)
    return SEMICOLON if SEMICOLON in header else COMMA


def parse_text(text: str, delimiter: str) -> Tuple[Tuple[str, ...], Tuple[Record, ...]]:
    reader = csv.reader(io.StringIO(text, newline=""), delimiter=delimiter)

    columns: Tuple[str, ...] = ()
    records = []
    for row in reader:
        if not any(cell.strip() for cell in row):
            continue
        if not columns:
            columns = tuple(cell.strip() for cell in row)
            continue
        # Short rows keep only the cells they have; extra cells are dropped.
        record = {col: cell.strip() for col, cell in zip(columns, row)}
        records.append(MappingProxyType(record))

    return columns, tuple(records)


def read_csv(path: Path) -> Dataset:
    path = Path(path)
    if not path.is_file():
        raise NotFoundError(path)

    text = decode_text(path.read_bytes(), source=str(path)).lstrip(BOM)
    delimiter = detect_delimiter(text)
    columns, records = parse_text(text, delimiter)

    logger.debug("read %s: %d rows, delimiter %r", path.name, len(records), delimiter)
    return Dataset(path=path, delimiter=delimiter, columns=columns, records=records)


async def read_csv_async(path: Path) -> Dataset:
    return await asyncio.to_thread(read_csv, path)
