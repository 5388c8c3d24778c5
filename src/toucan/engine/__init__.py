"""Engine: submission orchestration on top of the core."""

from toucan.engine.submission import SubmissionSession

__all__ = ["SubmissionSession"]
