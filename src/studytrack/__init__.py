"""Study tracker: syllabus progress and test countdowns."""

__version__ = "0.1.0"
