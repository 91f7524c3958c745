class LessonbookError(Exception):
    """Base class for errors the services report to callers."""


class NotFoundError(LessonbookError):
    pass


class PaymentConflictError(LessonbookError):
    """A payment record already exists for (student, class, month, year)."""

    def __init__(self, student_id, class_id, month, year, existing_id=None):
        self.student_id = student_id
        self.class_id = class_id
        self.month = month
        self.year = year
        self.existing_id = existing_id
        super().__init__(
            f"tuition for student {student_id} in class {class_id} "
            f"for {month:02d}/{year} already exists"
        )
