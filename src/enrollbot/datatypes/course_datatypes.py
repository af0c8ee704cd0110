"""
Course enrollment datatypes.

Sections come from the cached WebReg dump and keep the field names of that
dump so records can be loaded with :meth:`CourseSection.from_dict` directly.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Tuple


class EnrollDataError(Exception):
    """Raised when enrollment data cannot be loaded or fetched."""


@dataclass(frozen=True)
class Meeting:
    """One meeting (lecture, discussion, final, ...) of a section."""

    meeting_type: str
    meeting_days: Tuple[str, ...]
    start_hr: int
    start_min: int
    end_hr: int
    end_min: int
    building: str
    room: str

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Meeting":
        days = data.get("meeting_days") or ()
        if isinstance(days, str):
            days = (days,)
        return cls(
            meeting_type=str(data.get("meeting_type", "")),
            meeting_days=tuple(str(day) for day in days),
            start_hr=int(data.get("start_hr", 0)),
            start_min=int(data.get("start_min", 0)),
            end_hr=int(data.get("end_hr", 0)),
            end_min=int(data.get("end_min", 0)),
            building=str(data.get("building", "")),
            room=str(data.get("room", "")),
        )

    def time_range(self) -> str:
        if (self.start_hr, self.start_min, self.end_hr, self.end_min) == (0, 0, 0, 0):
            return "TBA"
        return f"{self.start_hr}:{self.start_min:02d} - {self.end_hr}:{self.end_min:02d}"

    def display(self) -> str:
        days = ", ".join(self.meeting_days) or "TBA"
        location = f"{self.building} {self.room}".strip() or "TBA"
        return f"[{self.meeting_type}] {days} {self.time_range()} @ {location}"


@dataclass(frozen=True)
class CourseSection:
    """A single enrollable section of a course."""

    subj_course_id: str
    section_id: str
    section_code: str
    all_instructors: Tuple[str, ...]
    available_seats: int
    enrolled_ct: int
    total_seats: int
    waitlist_ct: int
    meetings: Tuple[Meeting, ...] = ()
    needs_waitlist: bool = False

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "CourseSection":
        """Build a section from a cached record.

        Raises:
            EnrollDataError: If a required key is missing or has the wrong type.
        """
        try:
            return cls(
                subj_course_id=str(data["subj_course_id"]).strip().upper(),
                section_id=str(data["section_id"]),
                section_code=str(data["section_code"]),
                all_instructors=tuple(str(name) for name in data.get("all_instructors") or ()),
                available_seats=int(data.get("available_seats", 0)),
                enrolled_ct=int(data.get("enrolled_ct", 0)),
                total_seats=int(data.get("total_seats", 0)),
                waitlist_ct=int(data.get("waitlist_ct", 0)),
                meetings=tuple(Meeting.from_dict(meeting) for meeting in data.get("meetings") or ()),
                needs_waitlist=bool(data.get("needs_waitlist", False)),
            )
        except (KeyError, TypeError, ValueError) as exc:
            raise EnrollDataError(f"Malformed section record: {exc}") from exc


@dataclass(frozen=True)
class GraphFile:
    """An overall enrollment graph published for one course in one term."""

    name: str
    download_url: str

    @property
    def course_code(self) -> str:
        return self.name.removesuffix(".png")
