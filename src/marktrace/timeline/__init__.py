"""
Timeline storage for marks and measures.
"""

from marktrace.timeline.timeline import Timeline, TimelineLike

__all__ = ["Timeline", "TimelineLike"]
