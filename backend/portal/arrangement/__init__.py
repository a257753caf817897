from portal.arrangement.calendar import CalendarIndex
from portal.arrangement.client import StoreClient
from portal.arrangement.course_state import CourseArrangementState, CoursePlan, CourseStage, WeekSelection
from portal.arrangement.exam_state import ExamArrangementState, ExamPlan
from portal.arrangement.gateway import CourseSubmission, ExamSubmission, SeatingResult, SubmissionGateway
from portal.arrangement.occupancy import OccupancyResolver, intervals_overlap
from portal.arrangement.planner import SessionRequirement, plan_sessions, required_exam_capacity, seats_per_room
from portal.arrangement.rooms import RoomCatalog
from portal.arrangement.session import ArrangementSession
from portal.arrangement.timetable import LessonTimetable

__all__ = [
    "ArrangementSession",
    "CalendarIndex",
    "CourseArrangementState",
    "CoursePlan",
    "CourseStage",
    "CourseSubmission",
    "ExamArrangementState",
    "ExamPlan",
    "ExamSubmission",
    "LessonTimetable",
    "OccupancyResolver",
    "RoomCatalog",
    "SeatingResult",
    "SessionRequirement",
    "StoreClient",
    "SubmissionGateway",
    "WeekSelection",
    "intervals_overlap",
    "plan_sessions",
    "required_exam_capacity",
    "seats_per_room",
]
