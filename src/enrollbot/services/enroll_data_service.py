"""
Enrollment data sources.

- :class:`SectionCache` holds the cached WebReg section dump for the active
  term, loaded once from a JSON file.
- :class:`OverallGraphIndex` lists the published overall enrollment graphs of
  a term. Listings are fetched over HTTP with ``requests`` in a worker thread
  and kept for the lifetime of the process.
"""

from __future__ import annotations

import asyncio
import json
import string
from pathlib import Path
from typing import Dict, Iterable, List, Optional

import requests

from enrollbot.configuration.enroll_data_settings import EnrollDataSettings
from enrollbot.datatypes.course_datatypes import CourseSection, EnrollDataError, GraphFile
from enrollbot.util.logger import get_logger

logger = get_logger("enroll_data_service")


def parse_course_subj_code(code: str) -> str:
    """
    Normalize a user-typed course code to ``SUBJ NUM``.

    Everything before the first digit is the subject (spaces removed),
    everything from the first digit on is the course number. The result is
    upper-cased and trimmed, so ``"cse100"`` and ``"c s e 100"`` both become
    ``"CSE 100"``. Input without digits yields just the subject (no space).

    Args:
        code: The raw course code.

    Returns:
        str: The normalized course code.
    """
    index = 0
    subject = ""
    while index < len(code) and code[index] not in string.digits:
        if code[index] != " ":
            subject += code[index]
        index += 1

    return f"{subject} {code[index:]}".upper().strip()


class SectionCache:
    """Cached sections of a single term, searchable by course code."""

    def __init__(self, term: str, sections: Iterable[CourseSection] = ()) -> None:
        self.term = term
        self.sections: List[CourseSection] = list(sections)

    @classmethod
    def from_file(cls, path: Path, term: str) -> "SectionCache":
        """Load sections from a JSON array of section records.

        Raises:
            EnrollDataError: If the file cannot be read or parsed.
        """
        try:
            with path.open("r", encoding="utf-8") as f:
                records = json.load(f)
        except (OSError, ValueError) as exc:
            raise EnrollDataError(f"Could not read cached sections from {path}: {exc}") from exc

        if not isinstance(records, list):
            raise EnrollDataError(f"Cached sections in {path} must be a JSON array")

        sections = [CourseSection.from_dict(record) for record in records]
        logger.info("Loaded %d cached sections for term %s from %s", len(sections), term, path)
        return cls(term, sections)

    @classmethod
    def from_settings(cls, settings: EnrollDataSettings) -> "SectionCache":
        """Load the cache described by the configuration, or return an empty one on failure."""
        term = settings.cached_data_term
        if not settings.cached_data_path:
            logger.warning("No cached_data_path configured; /lookupcached will find nothing.")
            return cls(term)

        try:
            return cls.from_file(Path(settings.cached_data_path), term)
        except EnrollDataError as exc:
            logger.error("%s", exc)
            return cls(term)

    def find(self, subj_course_id: str) -> List[CourseSection]:
        """Return every section of ``subj_course_id`` (already normalized)."""
        return [section for section in self.sections if section.subj_course_id == subj_course_id]


class OverallGraphIndex:
    """Per-term listings of overall enrollment graphs."""

    def __init__(
        self,
        api_url_template: str,
        terms: Iterable[str],
        *,
        timeout: float = 10.0,
        session: Optional[requests.Session] = None,
    ) -> None:
        self.api_url_template = api_url_template
        self.terms: List[str] = list(terms)
        self.timeout = timeout
        self._session = session or requests.Session()
        self._listings: Dict[str, List[GraphFile]] = {}
        self._lock = asyncio.Lock()

    @classmethod
    def from_settings(cls, settings: EnrollDataSettings) -> "OverallGraphIndex":
        return cls(
            settings.overall_graph_api_url,
            settings.terms,
            timeout=settings.request_timeout_seconds,
        )

    def fetch_listing(self, term: str) -> List[GraphFile]:
        """Fetch the graph listing of ``term`` (blocking).

        Raises:
            EnrollDataError: On network errors, HTTP errors or an unexpected payload.
        """
        url = self.api_url_template.format(term=term)
        try:
            response = self._session.get(url, timeout=self.timeout)
            response.raise_for_status()
            entries = response.json()
        except requests.RequestException as exc:
            raise EnrollDataError(f"Could not fetch graph listing for {term}: {exc}") from exc
        except ValueError as exc:
            raise EnrollDataError(f"Graph listing for {term} is not valid JSON") from exc

        if not isinstance(entries, list):
            raise EnrollDataError(f"Graph listing for {term} is not a list")

        return [
            GraphFile(name=str(entry["name"]), download_url=str(entry["download_url"]))
            for entry in entries
            if isinstance(entry, dict)
            and str(entry.get("name", "")).endswith(".png")
            and entry.get("download_url")
        ]

    def is_cached(self, term: str) -> bool:
        """Whether the listing of ``term`` is available without a network fetch."""
        return term in self._listings

    async def get_graphs(self, term: str) -> Optional[List[GraphFile]]:
        """Return the graphs of ``term``, or ``None`` for a term that is not configured.

        Raises:
            EnrollDataError: If the listing has not been cached yet and cannot be fetched.
        """
        if term not in self.terms:
            return None

        async with self._lock:
            if term not in self._listings:
                self._listings[term] = await asyncio.to_thread(self.fetch_listing, term)
                logger.info("Cached %d overall graphs for term %s", len(self._listings[term]), term)
            return self._listings[term]

    async def preload(self) -> None:
        """Fetch the listing of every configured term, logging the ones that fail."""
        for term in self.terms:
            try:
                await self.get_graphs(term)
            except EnrollDataError as exc:
                logger.warning("Could not preload overall graphs: %s", exc)
