"""Lessonbook: enrollments, schedules, attendance and tuition for a tutoring business."""

__version__ = "0.1.0"
