from portal.models.calendar import DayType, Lesson, SemesterDate  # noqa: F401
from portal.models.campus import AssetStatus, Building, Campus, Classroom  # noqa: F401
from portal.models.course import (  # noqa: F401
    CourseArrangement,
    CourseSection,
    CourseSetup,
    CourseSetupDay,
    Curricular,
    SectionEnrollment,
    SetupStatus,
)
from portal.models.exam import ExamArrangement, ExamSeat, ExamSetup  # noqa: F401
