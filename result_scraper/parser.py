"""
Result page parsing engine.
Maps the portal's fixed markup layout onto StudentResult records through a
configurable selector table, degrading to fallback values instead of failing.
"""

import logging
from typing import Dict, List, Optional, Sequence
from bs4 import BeautifulSoup

from .config_manager import ScraperSettings
from .models import StudentResult, SubjectRecord, SemesterGradeEntry


SEMESTER_LABELS = ("I", "II", "III", "IV", "V", "VI", "VII", "VIII", "Cur. CGPA")
SUBJECT_CELL_COUNT = 7
FAIL_GRADE = "F"


def derive_remarks(theory: Sequence[SubjectRecord], practical: Sequence[SubjectRecord]) -> str:
    """Summarize failed subjects; practical ones are suffixed with " (p)"."""
    failed = [s.subject_name for s in theory if s.grade == FAIL_GRADE]
    failed += [f"{s.subject_name} (p)" for s in practical if s.grade == FAIL_GRADE]
    if failed:
        return f"FAIL: {', '.join(failed)}"
    return "Pass"


class ResultParser:
    """Converts one fetched result page into a StudentResult."""

    def __init__(self, settings: ScraperSettings):
        self.university = settings.university
        self.selectors: Dict[str, str] = dict(settings.selectors)
        self.logger = logging.getLogger(__name__)

    def _text(self, soup: BeautifulSoup, field: str) -> str:
        # Text of every match, concatenated in document order.
        return "".join(el.get_text() for el in soup.select(self.selectors[field])).strip()

    def _trailing_segment(self, soup: BeautifulSoup, field: str) -> str:
        """Return the part after the last colon of a "Label: Value" pair."""
        return self._text(soup, field).split(":")[-1].strip()

    def _subjects(self, soup: BeautifulSoup, field: str) -> List[SubjectRecord]:
        subjects = []
        for row in soup.select(self.selectors[field])[1:]:
            cells = row.find_all("td")
            if len(cells) < SUBJECT_CELL_COUNT:
                continue
            values = [cell.get_text().strip() for cell in cells[:SUBJECT_CELL_COUNT]]
            subjects.append(SubjectRecord(*values))
        return subjects

    def _semester_grades(self, soup: BeautifulSoup) -> List[SemesterGradeEntry]:
        cells = soup.select(self.selectors['semester_grade_cells'])
        grades = [SemesterGradeEntry.placeholder()]
        for label, cell in zip(SEMESTER_LABELS, cells):
            grades.append(SemesterGradeEntry(label, cell.get_text().strip() or "NA"))
        return grades

    def parse(self, document: Optional[str], registration_no: str) -> Optional[StudentResult]:
        """
        Parse a result page.

        Args:
            document: Raw HTML of the result page, or None when nothing was fetched
            registration_no: The registration number that was queried

        Returns:
            StudentResult, or None when there is no document to parse
        """
        if not document:
            return None

        soup = BeautifulSoup(document, 'lxml')

        theory = self._subjects(soup, 'theory_rows')
        practical = self._subjects(soup, 'practical_rows')

        result = StudentResult(
            university=self.university,
            exam_name=self._text(soup, 'exam_name') or "N/A",
            registration_no=registration_no,
            semester=self._text(soup, 'semester') or "N/A",
            exam_date=self._trailing_segment(soup, 'exam_date') or "N/A",
            student_name=self._text(soup, 'student_name') or "N/A",
            college_name=self._text(soup, 'college_name') or "N/A",
            course_name=self._text(soup, 'course_name') or "N/A",
            theory_subjects=tuple(theory),
            practical_subjects=tuple(practical),
            sgpa=self._text(soup, 'sgpa') or "N/A",
            semester_grades=tuple(self._semester_grades(soup)),
            remarks=derive_remarks(theory, practical),
            publish_date=self._trailing_segment(soup, 'publish_date'),
        )

        self.logger.debug(f"Parsed {registration_no}: {len(theory)} theory, "
                          f"{len(practical)} practical subjects, remarks={result.remarks}")
        return result
