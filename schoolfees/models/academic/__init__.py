from schoolfees.models.academic.academic import AcademicSession, Batch, Course, Student

__all__ = ["AcademicSession", "Batch", "Course", "Student"]
