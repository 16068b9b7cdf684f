"""Dashboard statistics."""

from typing import Any

from django.db.models import Avg

from ProjectHubApp.groups.models import StudentGroupMember
from ProjectHubApp.projects.models import StudentProject
from ProjectHubApp.topics.models import ProjectTopic
from ProjectHubApp.users.models import User

# phase name -> minimum progress
PHASES = {"research": 25, "implementation": 50, "testing": 80}


def _percent(part: int, whole: int) -> int:
    return round(part * 100 / whole) if whole else 0


def dashboard_stats() -> dict[str, Any]:
    projects = StudentProject.objects.all()
    total_projects = projects.count()
    students = User.objects.students()
    total_students = students.count()
    participants = set(projects.values_list("student_id", flat=True))
    participants.update(
        StudentGroupMember.objects.accepted().filter(group__projects__isnull=False).values_list("user_id", flat=True)
    )
    average = projects.aggregate(avg=Avg("progress"))["avg"]

    phases = {"topic_selection": _percent(total_projects, total_students)}
    for name, threshold in PHASES.items():
        phases[name] = _percent(projects.filter(progress__gte=threshold).count(), total_projects)

    return {
        "total_projects": total_projects,
        "approved_topics": ProjectTopic.objects.approved().count(),
        "pending_topics": ProjectTopic.objects.pending().count(),
        "unassigned_students": students.exclude(id__in=participants).count(),
        "average_progress": round(average) if average is not None else 0,
        "project_phases": phases,
    }
