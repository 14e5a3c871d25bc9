"""Syllabus codec endpoints (no persistence)."""

from fastapi import APIRouter
from fastapi.responses import PlainTextResponse

from studytrack.core.syllabus import (
    SyllabusSubject,
    SyllabusUnit,
    decode_syllabus_report,
    encode_syllabus,
)
from studytrack.web.schemas import (
    SkippedLineResponse,
    SyllabusDecodeResponse,
    SyllabusEncodeRequest,
    SyllabusSubjectSchema,
    SyllabusText,
)

router = APIRouter(prefix="/api/syllabus", tags=["syllabus"])


@router.post("/decode", response_model=SyllabusDecodeResponse)
async def decode(body: SyllabusText) -> SyllabusDecodeResponse:
    """Parse syllabus text into a subject/unit/topic tree."""
    result = decode_syllabus_report(body.text)
    return SyllabusDecodeResponse(
        subjects=[SyllabusSubjectSchema.model_validate(s.to_dict()) for s in result.subjects],
        skipped=[
            SkippedLineResponse(line_number=s.line_number, text=s.text, reason=s.reason)
            for s in result.skipped
        ],
    )


@router.post("/encode", response_class=PlainTextResponse)
async def encode(body: SyllabusEncodeRequest) -> str:
    """Render a subject/unit/topic tree as syllabus text."""
    subjects = [
        SyllabusSubject(
            name=s.name,
            units=[SyllabusUnit(name=u.name, topics=list(u.topics)) for u in s.units],
        )
        for s in body.subjects
    ]
    return encode_syllabus(subjects)
