"""Serializers for accounts, topics, groups, projects, assessments, milestones and notifications.

Write serializers accept the camelCase request keys of the public API and map
them onto snake_case names via ``source``; read serializers render snake_case.
"""

from rest_framework import serializers
from django.contrib.auth import get_user_model

from ProjectHubApp.core.choices import UserRole, Complexity
from ProjectHubApp.groups.models import StudentGroup, StudentGroupMember
from ProjectHubApp.notifications.models import Notification
from ProjectHubApp.projects.models import StudentProject, ProjectAssessment, ProjectMilestone
from ProjectHubApp.topics.models import ProjectTopic

User = get_user_model()


# ---------- Accounts ----------
class RegistrationSerializer(serializers.Serializer):
    """Self-registration body; non-student roles require an admin caller."""
    username = serializers.CharField(max_length=150)
    email = serializers.EmailField()
    password = serializers.CharField(write_only=True, min_length=6, help_text="Account password (write-only).")
    firstName = serializers.CharField(source="first_name", required=False, allow_blank=True, default="")
    lastName = serializers.CharField(source="last_name", required=False, allow_blank=True, default="")
    role = serializers.ChoiceField(choices=UserRole.choices, required=False, default=UserRole.STUDENT)
    enrollmentNumber = serializers.CharField(
        source="enrollment_number", required=False, allow_blank=True, allow_null=True, max_length=32
    )

    def validate_username(self, value: str) -> str:
        if User.objects.filter(username__iexact=value).exists():
            raise serializers.ValidationError("Username already exists.")
        return value

    def validate_email(self, value: str) -> str:
        if User.objects.filter(email__iexact=value).exists():
            raise serializers.ValidationError("Email already registered.")
        return value

    def validate_enrollmentNumber(self, value: str | None) -> str | None:
        if value and User.objects.filter(enrollment_number=value).exists():
            raise serializers.ValidationError("Enrollment number already registered.")
        return value


class UserSerializer(serializers.ModelSerializer):
    """Public, safe representation of a user."""

    class Meta:
        model = User
        fields = ["id", "username", "email", "first_name", "last_name", "full_name", "role", "enrollment_number"]


class UserMiniSerializer(serializers.ModelSerializer):
    class Meta:
        model = User
        fields = ["id", "username", "full_name", "enrollment_number"]


class ProfileWriteSerializer(serializers.Serializer):
    firstName = serializers.CharField(source="first_name", required=False, allow_blank=True)
    lastName = serializers.CharField(source="last_name", required=False, allow_blank=True)
    email = serializers.EmailField(required=False)

    def validate_email(self, value: str) -> str:
        user = self.context["request"].user
        if User.objects.filter(email__iexact=value).exclude(pk=user.pk).exists():
            raise serializers.ValidationError("Email already registered.")
        return value


class PasswordChangeSerializer(serializers.Serializer):
    currentPassword = serializers.CharField(source="current_password", write_only=True)
    newPassword = serializers.CharField(source="new_password", write_only=True, min_length=6)


class AdminUserWriteSerializer(serializers.Serializer):
    """Fields an admin or coordinator may change on another account. ``role`` is checked by the service."""
    username = serializers.CharField(required=False, max_length=150)
    email = serializers.EmailField(required=False)
    firstName = serializers.CharField(source="first_name", required=False, allow_blank=True)
    lastName = serializers.CharField(source="last_name", required=False, allow_blank=True)
    enrollmentNumber = serializers.CharField(
        source="enrollment_number", required=False, allow_blank=True, allow_null=True, max_length=32
    )
    isActive = serializers.BooleanField(source="is_active", required=False)
    role = serializers.ChoiceField(choices=UserRole.choices, required=False)
    password = serializers.CharField(write_only=True, required=False, min_length=6)


# ---------- Topics ----------
class TopicWriteSerializer(serializers.Serializer):
    """Serializer for submitting or editing a topic."""
    title = serializers.CharField(max_length=255)
    description = serializers.CharField()
    technology = serializers.CharField(max_length=255)
    projectType = serializers.CharField(source="project_type", required=False, allow_blank=True, max_length=100)
    estimatedComplexity = serializers.ChoiceField(
        source="estimated_complexity", choices=Complexity.choices, required=False
    )


class TopicDecisionSerializer(serializers.Serializer):
    feedback = serializers.CharField(required=False, allow_blank=True, allow_null=True)


class TopicReadSerializer(serializers.ModelSerializer):
    """Serializer for reading topic details including submitter."""
    submitted_by = UserMiniSerializer(read_only=True)

    class Meta:
        model = ProjectTopic
        fields = [
            "id", "title", "description", "technology", "project_type", "estimated_complexity",
            "status", "feedback", "submitted_by", "reviewed_by", "reviewed_at", "created_at", "updated_at",
        ]


class CategorizedTopicsSerializer(serializers.Serializer):
    """Approved topics split for a student: own, still available, already taken."""
    has_selected_topic = serializers.BooleanField()
    my_topic = TopicReadSerializer(allow_null=True)
    available_topics = TopicReadSerializer(many=True)
    taken_topics = TopicReadSerializer(many=True)


# ---------- Groups ----------
class GroupWriteSerializer(serializers.Serializer):
    name = serializers.CharField(max_length=200)
    description = serializers.CharField(required=False, allow_blank=True, default="")
    facultyId = serializers.IntegerField(source="faculty_id")
    enrollmentNumbers = serializers.ListField(
        source="enrollment_numbers", child=serializers.CharField(), required=False, default=list
    )


class GroupReadSerializer(serializers.ModelSerializer):
    created_by = UserMiniSerializer(read_only=True)
    faculty = UserMiniSerializer(read_only=True)

    class Meta:
        model = StudentGroup
        fields = ["id", "name", "description", "faculty", "created_by", "max_size", "created_at"]


class MemberReadSerializer(serializers.ModelSerializer):
    user = UserMiniSerializer(read_only=True)

    class Meta:
        model = StudentGroupMember
        fields = ["id", "user", "status", "created_at"]


class InviteReadSerializer(serializers.ModelSerializer):
    """A pending invitation as seen by the invitee."""
    group = GroupReadSerializer(read_only=True)

    class Meta:
        model = StudentGroupMember
        fields = ["id", "group", "status", "created_at"]


class MyGroupSerializer(serializers.Serializer):
    group = GroupReadSerializer()
    my_status = serializers.CharField()
    members = MemberReadSerializer(many=True)
    faculty = UserMiniSerializer(allow_null=True)


# ---------- Projects ----------
class ProjectSelectSerializer(serializers.Serializer):
    topicId = serializers.IntegerField(source="topic_id")


class ProgressWriteSerializer(serializers.Serializer):
    progress = serializers.IntegerField(help_text="Completion percentage, 0 to 100.")


class EvaluationWriteSerializer(serializers.Serializer):
    marks = serializers.IntegerField(help_text="Score, 0 to 100.")
    feedback = serializers.CharField(required=False, allow_blank=True, default="")


class ProjectReadSerializer(serializers.ModelSerializer):
    """Project with its topic, selecting student and group."""
    topic = TopicReadSerializer(read_only=True)
    student = UserMiniSerializer(read_only=True)
    group_name = serializers.CharField(source="group.name", read_only=True, default=None)

    class Meta:
        model = StudentProject
        fields = ["id", "topic", "student", "group", "group_name", "progress", "status", "created_at", "updated_at"]


class AssessmentReadSerializer(serializers.ModelSerializer):
    faculty = UserMiniSerializer(read_only=True)

    class Meta:
        model = ProjectAssessment
        fields = ["id", "project", "faculty", "score", "feedback", "created_at", "updated_at"]


class MilestoneWriteSerializer(serializers.Serializer):
    title = serializers.CharField(max_length=255)
    description = serializers.CharField(required=False, allow_blank=True, default="")
    dueDate = serializers.DateTimeField(source="due_date")


class MilestoneReadSerializer(serializers.ModelSerializer):
    class Meta:
        model = ProjectMilestone
        fields = ["id", "project", "title", "description", "due_date", "status", "completed_at", "created_at"]


class ProjectReportSerializer(serializers.Serializer):
    project = ProjectReadSerializer()
    topic = TopicReadSerializer()
    student = UserSerializer()
    faculty = UserSerializer()
    milestones = MilestoneReadSerializer(many=True)
    assessments = AssessmentReadSerializer(many=True)
    generated_at = serializers.DateTimeField()


# ---------- Notifications ----------
class NotificationSerializer(serializers.ModelSerializer):
    class Meta:
        model = Notification
        fields = ["id", "title", "message", "is_read", "created_at"]


# ---------- Admin ----------
class PasswordConfirmSerializer(serializers.Serializer):
    password = serializers.CharField(write_only=True, help_text="The acting admin's own password.")


class ImportSerializer(PasswordConfirmSerializer):
    """Either an uploaded export file or the export document inline as ``data``."""
    file = serializers.FileField(required=False)
    data = serializers.JSONField(required=False)

    def validate(self, attrs):
        if ("file" in attrs) == ("data" in attrs):
            raise serializers.ValidationError("Provide exactly one of `file` or `data`.")
        return super().validate(attrs)


class StatsSerializer(serializers.Serializer):
    total_projects = serializers.IntegerField()
    approved_topics = serializers.IntegerField()
    pending_topics = serializers.IntegerField()
    unassigned_students = serializers.IntegerField()
    average_progress = serializers.IntegerField()
    project_phases = serializers.DictField(child=serializers.IntegerField())
