"""Route handlers for the Web API."""

from studytrack.web.routes.health import router as health_router
from studytrack.web.routes.semesters import router as semesters_router
from studytrack.web.routes.syllabus import router as syllabus_router
from studytrack.web.routes.tests import router as tests_router
from studytrack.web.routes.topics import router as topics_router
from studytrack.web.routes.trackers import router as trackers_router

__all__ = [
    "health_router",
    "semesters_router",
    "syllabus_router",
    "tests_router",
    "topics_router",
    "trackers_router",
]
