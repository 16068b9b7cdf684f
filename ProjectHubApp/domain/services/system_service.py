"""Administrative state operations: export, spreadsheet report, import and reset.

The state document is a JSON object with one list of flat rows per table:

    users, student_groups, student_group_members, project_topics,
    student_projects, project_assessments, project_milestones

Foreign keys are written as ``<field>_id`` so that ids and relations survive an
export/import round trip. Admin accounts already present are never replaced.
"""

import logging
from typing import Any

from django.conf import settings
from django.core.exceptions import ValidationError as DjangoValidationError
from django.core.management.color import no_style
from django.db import connection, transaction, IntegrityError
from django.db.models import Model
from django.utils import timezone

from ProjectHubApp.core.capabilities import Capability, ensure_capability
from ProjectHubApp.core.choices import UserRole
from ProjectHubApp.core.exceptions import ValidationError, AuthorizationError
from ProjectHubApp.groups.models import StudentGroup, StudentGroupMember
from ProjectHubApp.notifications.models import Notification
from ProjectHubApp.projects.models import StudentProject, ProjectAssessment, ProjectMilestone
from ProjectHubApp.topics.models import ProjectTopic
from ProjectHubApp.users.models import User

logger = logging.getLogger(__name__)

# document key -> (model, exported columns), in dependency order
TABLES: dict[str, tuple[type[Model], tuple[str, ...]]] = {
    "users": (User, (
        "id", "username", "email", "password", "first_name", "last_name", "role",
        "enrollment_number", "is_active", "is_staff", "is_superuser", "date_joined",
    )),
    "student_groups": (StudentGroup, (
        "id", "name", "description", "faculty_id", "created_by_id", "max_size", "created_at",
    )),
    "student_group_members": (StudentGroupMember, ("id", "group_id", "user_id", "status", "created_at")),
    "project_topics": (ProjectTopic, (
        "id", "title", "description", "technology", "project_type", "estimated_complexity",
        "submitted_by_id", "status", "feedback", "reviewed_by_id", "reviewed_at", "created_at",
    )),
    "student_projects": (StudentProject, ("id", "topic_id", "student_id", "group_id", "progress", "status", "created_at")),
    "project_assessments": (ProjectAssessment, ("id", "project_id", "faculty_id", "score", "feedback", "created_at")),
    "project_milestones": (ProjectMilestone, (
        "id", "project_id", "title", "description", "due_date", "status", "completed_at", "created_at",
    )),
}

REQUIRED_TABLES = ("users", "project_topics", "student_projects")
# set by the database on insert; exported for reference only
_GENERATED = {"created_at", "updated_at"}


def confirm_password(admin: User, password: str | None) -> None:
    """Destructive operations require the acting admin to re-enter their password."""
    ensure_capability(admin, Capability.ADMINISTER_SYSTEM)
    if not password or not admin.check_password(password):
        logger.warning("Password confirmation failed for admin %s", admin.pk)
        raise AuthorizationError("Password confirmation failed")


def export_state() -> dict[str, Any]:
    """Dump every table as flat rows plus a timestamp."""
    document: dict[str, Any] = {}
    for key, (model, columns) in TABLES.items():
        document[key] = list(model.objects.order_by("id").values(*columns))
    document["timestamp"] = timezone.now().isoformat()
    logger.info("State exported: %s", {k: len(v) for k, v in document.items() if isinstance(v, list)})
    return document


def _submission_status(progress: int) -> str:
    if progress >= 100:
        return "Completed"
    if progress >= 75:
        return "On Track"
    return "At Risk"


def export_report() -> list[dict[str, Any]]:
    """One flat, human-labelled row per project for spreadsheet export."""
    rows = []
    projects = StudentProject.objects.with_related().prefetch_related("assessments__faculty")
    for project in projects:
        student, topic = project.student, project.topic
        assessments = list(project.assessments.all())
        if project.group_id:
            members = project.group.memberships.accepted().count()
            group_info = f"{project.group.name} ({members} members)"
        else:
            group_info = "Individual"
        average = sum(a.score for a in assessments) / len(assessments) if assessments else None
        rows.append({
            "Student Name": student.full_name,
            "Enrollment Number": student.enrollment_number or "N/A",
            "Email": student.email,
            "Group Details": group_info,
            "Project Title": topic.title,
            "Project Type": topic.project_type or "N/A",
            "Technology": topic.technology,
            "Progress (%)": project.progress,
            "Status": project.get_status_display(),
            "Average Marks": f"{average:.2f}" if average is not None else "N/A",
            "Faculty Assigned": ", ".join(a.faculty.full_name for a in assessments) or "Not Assigned",
            "Submission Status": _submission_status(project.progress),
        })
    return rows


def _build(model: type[Model], key: str, columns: tuple[str, ...], raw: Any) -> list[Model]:
    """Turn document rows into validated, unsaved model instances."""
    if raw is None:
        return []
    if not isinstance(raw, list):
        raise ValidationError(f"{key} must be a list of rows")
    instances = []
    for index, row in enumerate(raw):
        if not isinstance(row, dict) or "id" not in row:
            raise ValidationError(f"{key}[{index}] must be an object with an id")
        values = {c: row[c] for c in columns if c in row and c not in _GENERATED}
        obj = model(**values)
        try:
            obj.clean_fields(exclude=["password", "last_login"])
        except DjangoValidationError as exc:
            raise ValidationError({f"{key}[{index}]": exc.message_dict})
        instances.append(obj)
    return instances


def _reset_sequences() -> None:
    models = [model for model, _ in TABLES.values()]
    statements = connection.ops.sequence_reset_sql(no_style(), models)
    if statements:
        with connection.cursor() as cursor:
            for sql in statements:
                cursor.execute(sql)


def _wipe() -> None:
    """Delete everything except admin accounts, children first."""
    Notification.objects.all().delete()
    ProjectMilestone.objects.all().delete()
    ProjectAssessment.objects.all().delete()
    StudentProject.objects.all().delete()
    StudentGroupMember.objects.all().delete()
    StudentGroup.objects.all().delete()
    ProjectTopic.objects.all().delete()
    User.objects.exclude(role=UserRole.ADMIN).delete()


@transaction.atomic
def import_state(data: Any) -> dict[str, int]:
    """Replace the current state with an exported document.

    Rows are inserted table by table so that every foreign key is validated
    against rows already written. Any failure rolls the whole import back.

    Raises:
        ValidationError: Not an object, none of the required tables present,
            or a row that does not fit the schema.
    """
    if not isinstance(data, dict):
        raise ValidationError("Import data must be a JSON object")
    if not any(data.get(key) is not None for key in REQUIRED_TABLES):
        raise ValidationError("Invalid import format: missing required data tables")

    _wipe()
    kept_admins = set(User.objects.admins().values_list("id", flat=True))
    counts: dict[str, int] = {}
    for key, (model, columns) in TABLES.items():
        raw = data.get(key)
        if key == "users" and isinstance(raw, list):
            raw = [r for r in raw if not (isinstance(r, dict) and r.get("role") == UserRole.ADMIN)]
        instances = _build(model, key, columns, raw)
        if model is User:
            for user in instances:
                if user.pk in kept_admins:
                    raise ValidationError(f"users: id {user.pk} belongs to an existing admin")
                if not user.password:
                    user.set_unusable_password()
        try:
            with transaction.atomic():
                model.objects.bulk_create(instances)
        except IntegrityError as exc:
            raise ValidationError(f"{key}: rows conflict with existing data ({exc})")
        counts[key] = len(instances)

    _reset_sequences()
    logger.info("State imported: %s", counts)
    return counts


def ensure_default_admin() -> User:
    """Create the configured default admin if it does not exist yet."""
    conf = settings.PROJECTHUB
    admin = User.objects.filter(username=conf["DEFAULT_ADMIN_USERNAME"]).first()
    if admin is None:
        admin = User.objects.create_superuser(
            username=conf["DEFAULT_ADMIN_USERNAME"],
            email=conf["DEFAULT_ADMIN_EMAIL"],
            password=conf["DEFAULT_ADMIN_PASSWORD"],
            first_name="System",
            last_name="Administrator",
        )
        logger.info("Default admin %s created", admin.username)
    return admin


@transaction.atomic
def reset_state() -> None:
    """Return to the seed state: admins only, default passwords, default admin present."""
    _wipe()
    default_password = settings.PROJECTHUB["DEFAULT_ADMIN_PASSWORD"]
    for admin in User.objects.admins():
        admin.set_password(default_password)
        admin.save(update_fields=["password"])
    ensure_default_admin()
    logger.info("State reset to seed")
