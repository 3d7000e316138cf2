"""
Immutable value objects exchanged between the fetcher, parser and orchestrator.

Every entry of a batch response carries an explicit kind tag while still
serializing to the JSON shape existing consumers expect.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple, Union


class EntryKind(str, Enum):
    RECORD = "record"
    SEPARATOR = "separator"
    PLACEHOLDER = "placeholder"
    ERROR = "error"


class FetchStatus(str, Enum):
    SUCCESS = "success"
    NOT_FOUND = "not_found"
    ERROR = "error"


@dataclass(frozen=True)
class FetchOutcome:
    """Result of one retrieval attempt sequence."""
    status: FetchStatus
    document: Optional[str] = None
    error: Optional[str] = None

    @classmethod
    def success(cls, document: str) -> "FetchOutcome":
        return cls(FetchStatus.SUCCESS, document=document)

    @classmethod
    def not_found(cls) -> "FetchOutcome":
        return cls(FetchStatus.NOT_FOUND)

    @classmethod
    def failure(cls, message: str) -> "FetchOutcome":
        return cls(FetchStatus.ERROR, error=message)


@dataclass(frozen=True)
class SubjectRecord:
    subject_code: str
    subject_name: str
    ese: str
    ia: str
    total: str
    grade: str
    credit: str

    def to_dict(self) -> Dict[str, str]:
        return {
            'subject_code': self.subject_code,
            'subject_name': self.subject_name,
            'ese': self.ese,
            'ia': self.ia,
            'total': self.total,
            'grade': self.grade,
            'credit': self.credit,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SubjectRecord":
        return cls(**{name: str(data.get(name, "")) for name in cls.__dataclass_fields__})


@dataclass(frozen=True)
class SemesterGradeEntry:
    """One semester's SGPA, or the leading placeholder that carries no value."""
    semester: str
    sgpa: Optional[str] = None
    kind: EntryKind = EntryKind.RECORD

    @classmethod
    def placeholder(cls) -> "SemesterGradeEntry":
        return cls("sgpa", kind=EntryKind.PLACEHOLDER)

    def to_dict(self) -> Dict[str, str]:
        if self.kind is EntryKind.PLACEHOLDER:
            return {'semester': self.semester}
        return {'semester': self.semester, 'sgpa': self.sgpa}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SemesterGradeEntry":
        if 'sgpa' not in data:
            return cls(str(data.get('semester', 'sgpa')), kind=EntryKind.PLACEHOLDER)
        return cls(str(data['semester']), str(data['sgpa']))


@dataclass(frozen=True)
class StudentResult:
    """One student's semester outcome as published by the portal."""
    university: str
    exam_name: str
    registration_no: str
    semester: str
    exam_date: str
    student_name: str
    college_name: str
    course_name: str
    theory_subjects: Tuple[SubjectRecord, ...] = ()
    practical_subjects: Tuple[SubjectRecord, ...] = ()
    sgpa: str = "N/A"
    semester_grades: Tuple[SemesterGradeEntry, ...] = ()
    remarks: str = "Pass"
    publish_date: str = ""
    kind: EntryKind = field(default=EntryKind.RECORD, repr=False)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'university': self.university,
            'exam_name': self.exam_name,
            'registration_no': self.registration_no,
            'semester': self.semester,
            'exam_date': self.exam_date,
            'student_name': self.student_name,
            'college_name': self.college_name,
            'course_name': self.course_name,
            'theory_subjects': [s.to_dict() for s in self.theory_subjects],
            'practical_subjects': [s.to_dict() for s in self.practical_subjects],
            'sgpa': self.sgpa,
            'semester_grades': [g.to_dict() for g in self.semester_grades],
            'remarks': self.remarks,
            'publish_date': self.publish_date,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "StudentResult":
        return cls(
            university=data.get('university', "N/A"),
            exam_name=data.get('exam_name', "N/A"),
            registration_no=data.get('registration_no', "N/A"),
            semester=data.get('semester', "N/A"),
            exam_date=data.get('exam_date', "N/A"),
            student_name=data.get('student_name', "N/A"),
            college_name=data.get('college_name', "N/A"),
            course_name=data.get('course_name', "N/A"),
            theory_subjects=tuple(SubjectRecord.from_dict(s) for s in data.get('theory_subjects', [])),
            practical_subjects=tuple(SubjectRecord.from_dict(s) for s in data.get('practical_subjects', [])),
            sgpa=data.get('sgpa', "N/A"),
            semester_grades=tuple(SemesterGradeEntry.from_dict(g) for g in data.get('semester_grades', [])),
            remarks=data.get('remarks', "Pass"),
            publish_date=data.get('publish_date', ""),
        )


@dataclass(frozen=True)
class Separator:
    """Sentinel placed after each student record in a flattened batch."""
    text: str = "*" * 36
    kind: EntryKind = field(default=EntryKind.SEPARATOR, repr=False)

    def to_dict(self) -> Dict[str, str]:
        return {'separator': self.text}


@dataclass(frozen=True)
class ErrorEntry:
    """Per-item failure reported inline instead of failing the whole batch."""
    message: str
    kind: EntryKind = field(default=EntryKind.ERROR, repr=False)

    def to_dict(self) -> Dict[str, str]:
        return {'error': self.message}


ResultEntry = Union[StudentResult, Separator, ErrorEntry]


def entry_from_dict(data: Dict[str, Any]) -> ResultEntry:
    """Rebuild a typed entry from its JSON form (as returned by a peer service)."""
    if 'separator' in data:
        return Separator(str(data['separator']))
    if 'error' in data:
        return ErrorEntry(str(data['error']))
    return StudentResult.from_dict(data)


def entries_to_json(entries: List[ResultEntry]) -> List[Dict[str, Any]]:
    return [entry.to_dict() for entry in entries]


@dataclass(frozen=True)
class BatchRequest:
    """A contiguous slice of registration numbers under one prefix."""
    prefix: str
    start: int
    size: int = 5

    def registration_numbers(self) -> List[str]:
        return [f"{self.prefix}{number:03d}" for number in range(self.start, self.start + self.size)]

    @property
    def first_registration_no(self) -> str:
        return f"{self.prefix}{self.start:03d}"


@dataclass(frozen=True)
class SubBatchResult:
    """Entries produced by one dispatched sub-batch, or the error that ended it."""
    request: BatchRequest
    entries: Tuple[ResultEntry, ...] = ()
    error: Optional[str] = None

    @property
    def failed(self) -> bool:
        return self.error is not None

    def flatten(self) -> List[ResultEntry]:
        if self.failed:
            return [ErrorEntry(self.error)]
        return list(self.entries)
