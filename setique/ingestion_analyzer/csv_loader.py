# -*- coding: utf-8 -*-
"""
CSV Loader

Turns uploaded CSV text or bytes into a ``TabularDataset``: the first
non-empty record is the header row, every following non-empty record
becomes a row keyed by header. Short records are padded with empty
strings and surplus cells are dropped.

Handles:
    - UTF-8/UTF-16 byte order marks
    - Comma, semicolon, tab and pipe delimiters (frequency-detected)
    - Quoted fields with embedded delimiters and newlines

Example:
    >>> from setique.ingestion_analyzer.csv_loader import CSVLoader
    >>> dataset = CSVLoader().load("date,views\\n2024-01-01,10\\n")
    >>> dataset.rows
    [{'date': '2024-01-01', 'views': '10'}]
"""

from __future__ import annotations

import csv
import io
import logging
import threading
from collections import Counter
from typing import Any, Dict, List, Optional, Tuple, Union

from setique.ingestion_analyzer.config import IngestionAnalyzerConfig, get_config
from setique.ingestion_analyzer.exceptions import DatasetParseError
from setique.ingestion_analyzer.models import TabularDataset

logger = logging.getLogger(__name__)

__all__ = ["CSVLoader"]

# BOM prefix -> (encoding, bytes to skip)
_BOM_MAP: Dict[bytes, Tuple[str, int]] = {
    b"\xef\xbb\xbf": ("utf-8", 3),
    b"\xff\xfe": ("utf-16-le", 2),
    b"\xfe\xff": ("utf-16-be", 2),
}

_DELIMITER_CANDIDATES: Tuple[str, ...] = (",", ";", "\t", "|")
_SNIFF_LINES = 20


class CSVLoader:
    """Parses CSV uploads into header-keyed row records.

    Attributes:
        _config: Analyzer configuration (encoding, upload size limit).
        _lock: Threading lock for statistics.
        _stats: Parse statistics counters.
    """

    def __init__(self, config: Optional[IngestionAnalyzerConfig] = None) -> None:
        """Initialise CSVLoader.

        Args:
            config: Analyzer configuration (global config if None).
        """
        self._config = config or get_config()
        self._lock = threading.Lock()
        self._stats: Dict[str, Any] = {
            "files_loaded": 0,
            "rows_loaded": 0,
            "padded_rows": 0,
        }
        logger.info(
            "CSVLoader initialised: encoding=%s, max_upload_bytes=%d",
            self._config.csv_encoding, self._config.max_upload_bytes,
        )

    def load(
        self,
        content: Union[str, bytes],
        delimiter: Optional[str] = None,
    ) -> TabularDataset:
        """Parse CSV content into a TabularDataset.

        Args:
            content: CSV text, or raw bytes decoded with the configured
                encoding (a BOM overrides it).
            delimiter: Explicit delimiter, or None to detect.

        Returns:
            TabularDataset with trimmed headers and string cell values.

        Raises:
            DatasetParseError: If the content is too large, cannot be
                decoded, is malformed, or has no header row.
        """
        text = self._to_text(content)
        delimiter = delimiter or self.detect_delimiter(text)

        try:
            records = [
                record for record in csv.reader(io.StringIO(text), delimiter=delimiter)
                if any(cell.strip() for cell in record)
            ]
        except csv.Error as exc:
            raise DatasetParseError(
                message=f"Malformed CSV content: {exc}",
                context={"delimiter": delimiter},
            ) from exc

        if not records:
            raise DatasetParseError(
                message="CSV content has no header row",
                context={"delimiter": delimiter},
            )

        headers = [cell.strip() for cell in records[0]]
        rows: List[Dict[str, Any]] = []
        padded = 0
        for record in records[1:]:
            if len(record) < len(headers):
                record = record + [""] * (len(headers) - len(record))
                padded += 1
            rows.append(dict(zip(headers, record)))

        with self._lock:
            self._stats["files_loaded"] += 1
            self._stats["rows_loaded"] += len(rows)
            self._stats["padded_rows"] += padded

        logger.info(
            "CSV loaded: columns=%d rows=%d padded=%d delimiter=%r",
            len(headers), len(rows), padded, delimiter,
        )
        return TabularDataset(headers=headers, rows=rows)

    def detect_delimiter(self, text: str) -> str:
        """Pick the candidate delimiter with the most consistent line frequency."""
        lines = [line for line in text.strip().splitlines() if line][:_SNIFF_LINES]
        best_delimiter = ","
        best_score = 0.0

        for delim in _DELIMITER_CANDIDATES:
            counts = [self._count_unquoted(line, delim) for line in lines]
            if not counts or max(counts) == 0:
                continue
            average = sum(counts) / len(counts)
            consistency = Counter(counts).most_common(1)[0][1] / len(counts)
            score = average * consistency
            if score > best_score:
                best_score = score
                best_delimiter = delim

        logger.debug("Detected delimiter %r (score=%.3f)", best_delimiter, best_score)
        return best_delimiter

    def get_statistics(self) -> Dict[str, Any]:
        """Return loader statistics."""
        with self._lock:
            return dict(self._stats)

    # ------------------------------------------------------------------
    # Internal methods
    # ------------------------------------------------------------------

    def _to_text(self, content: Union[str, bytes]) -> str:
        """Decode bytes (BOM-aware) and strip a leading BOM from text."""
        if isinstance(content, str):
            return content.lstrip("\ufeff")

        if len(content) > self._config.max_upload_bytes:
            raise DatasetParseError(
                message=(
                    f"Upload of {len(content)} bytes exceeds the "
                    f"{self._config.max_upload_bytes} byte limit"
                ),
                context={"size": len(content)},
            )

        encoding, skip = self._config.csv_encoding, 0
        for bom, (bom_encoding, bom_skip) in _BOM_MAP.items():
            if content.startswith(bom):
                encoding, skip = bom_encoding, bom_skip
                break

        try:
            return content[skip:].decode(encoding)
        except (UnicodeDecodeError, LookupError) as exc:
            raise DatasetParseError(
                message=f"Could not decode CSV content as {encoding}",
                context={"encoding": encoding, "reason": str(exc)},
            ) from exc

    @staticmethod
    def _count_unquoted(line: str, delimiter: str) -> int:
        """Count delimiter occurrences outside double quotes."""
        count = 0
        in_quotes = False
        for char in line:
            if char == '"':
                in_quotes = not in_quotes
            elif char == delimiter and not in_quotes:
                count += 1
        return count
