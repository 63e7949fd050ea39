# examinator/courses.py
# Static course catalog. Course ids are the "value" of each entry.

COURSES = [
    {"label": "Introduction to Programming", "value": "CS101"},
    {"label": "Data Structures", "value": "CS201"},
    {"label": "Algorithms", "value": "CS301"},
    {"label": "Databases", "value": "CS310"},
    {"label": "Computer Networks", "value": "CS320"},
    {"label": "Operating Systems", "value": "CS330"},
    {"label": "Software Engineering", "value": "CS340"},
    {"label": "Linear Algebra", "value": "MATH210"},
    {"label": "Probability and Statistics", "value": "MATH220"},
    {"label": "Discrete Mathematics", "value": "MATH230"},
]

_BY_ID = {course["value"]: course for course in COURSES}


def get_course(course_id):
    return _BY_ID.get(course_id)
