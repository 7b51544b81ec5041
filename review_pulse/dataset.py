"""Review dataset loading from a tab-separated source."""

import io
import asyncio
import logging
from pathlib import Path
from typing import List, Optional

import pandas as pd
import requests

from review_pulse.errors import DataUnavailable, EmptyCorpus
from review_pulse.models import ReviewCorpus

logger = logging.getLogger(__name__)


def _is_url(source: str) -> bool:
    return source.startswith(("http://", "https://"))


def usable_reviews(entries: List[object]) -> List[str]:
    """Keep entries that are non-empty strings once trimmed."""
    return [e for e in entries if isinstance(e, str) and e.strip()]


class DatasetLoader:
    """Loads candidate reviews from a TSV file or URL with a header row."""

    def __init__(self, source: str, text_column: str = "text", timeout: Optional[float] = None):
        self.source = source
        self.text_column = text_column
        self.timeout = timeout

    def _fetch(self) -> str:
        if _is_url(self.source):
            try:
                response = requests.get(self.source, timeout=self.timeout)
                response.raise_for_status()
            except requests.RequestException as e:
                raise DataUnavailable(f"Could not fetch reviews from {self.source}: {e}") from e
            return response.text

        path = Path(self.source).expanduser()
        try:
            return path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            raise DataUnavailable(f"Could not read reviews from {path}: {e}") from e

    def parse(self, text: str) -> List[str]:
        """Parse TSV text and return the usable review texts.

        Rows with more fields than the header keep their leading fields, so a
        stray tab never shifts the text column or rejects the whole file.
        """
        width = text.split("\n", 1)[0].count("\t") + 1
        try:
            frame = pd.read_csv(
                io.StringIO(text),
                sep="\t",
                dtype=str,
                keep_default_na=False,
                index_col=False,
                engine="python",
                on_bad_lines=lambda fields: fields[:width],
            )
        except (pd.errors.EmptyDataError, pd.errors.ParserError) as e:
            raise DataUnavailable(f"Malformed review dataset: {e}") from e

        if self.text_column not in frame.columns:
            raise DataUnavailable(
                f"Malformed review dataset: missing '{self.text_column}' column"
            )

        reviews = usable_reviews(frame[self.text_column].tolist())
        logger.debug("Parsed %d rows, %d usable reviews", len(frame), len(reviews))
        return reviews

    def load_sync(self) -> ReviewCorpus:
        reviews = self.parse(self._fetch())
        if not reviews:
            raise EmptyCorpus(f"No reviews found in {self.source}")
        logger.info("Loaded %d reviews from %s", len(reviews), self.source)
        return ReviewCorpus(reviews=tuple(reviews), source=self.source)

    async def load(self) -> ReviewCorpus:
        """Fetch and validate the corpus without blocking the event loop."""
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, self.load_sync)
