"""REST API views for accounts, topics, groups, projects, milestones, notifications and administration."""

import json

from django.conf import settings

from rest_framework import status, mixins, viewsets
from rest_framework.decorators import action
from rest_framework.parsers import JSONParser, MultiPartParser, FormParser
from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework.response import Response
from rest_framework.request import Request
from rest_framework.views import APIView

from drf_spectacular.utils import (
    extend_schema,
    extend_schema_view,
    OpenApiResponse,
    OpenApiParameter,
)

from ProjectHubApp.api.mixins import PaginationMixin, CapabilityPermissionsMixin
from ProjectHubApp.api.throttles import TopicSelectionRateThrottle
from ProjectHubApp.core.access import can_view_project, is_staff_role
from ProjectHubApp.core.capabilities import Capability, roles_for
from ProjectHubApp.core.choices import TopicStatus, UserRole
from ProjectHubApp.core.exceptions import ValidationError, AuthorizationError
from ProjectHubApp.core.permissions import requires
from ProjectHubApp.core.validators import validate_file_size, validate_import_mime
from ProjectHubApp.domain.services import (
    allocation_service,
    evaluation_service,
    group_service,
    notification_service,
    stats_service,
    system_service,
    topic_service,
    user_service,
)
from ProjectHubApp.groups.models import StudentGroup
from ProjectHubApp.projects.models import StudentProject
from ProjectHubApp.topics.models import ProjectTopic
from ProjectHubApp.api.serializers import (
    RegistrationSerializer,
    UserSerializer,
    ProfileWriteSerializer,
    AdminUserWriteSerializer,
    PasswordChangeSerializer,
    TopicWriteSerializer,
    TopicDecisionSerializer,
    TopicReadSerializer,
    CategorizedTopicsSerializer,
    GroupWriteSerializer,
    GroupReadSerializer,
    InviteReadSerializer,
    MemberReadSerializer,
    MyGroupSerializer,
    ProjectSelectSerializer,
    ProgressWriteSerializer,
    EvaluationWriteSerializer,
    ProjectReadSerializer,
    AssessmentReadSerializer,
    MilestoneWriteSerializer,
    MilestoneReadSerializer,
    ProjectReportSerializer,
    NotificationSerializer,
    PasswordConfirmSerializer,
    ImportSerializer,
    StatsSerializer,
)

AUTH_RESPONSES = {
    401: OpenApiResponse(description="Authentication required."),
    403: OpenApiResponse(description="Forbidden"),
    404: OpenApiResponse(description="Not Found"),
}

VALIDATION_RESPONSE = {
    400: OpenApiResponse(description="Validation failed."),
}

CONFLICT_RESPONSE = {
    409: OpenApiResponse(description="Conflicts with current state."),
}

TOPIC_FILTERS = [
    OpenApiParameter("technology", str, OpenApiParameter.QUERY),
    OpenApiParameter("projectType", str, OpenApiParameter.QUERY),
    OpenApiParameter("submittedBy", int, OpenApiParameter.QUERY),
    OpenApiParameter("search", str, OpenApiParameter.QUERY, description="Title substring."),
]


def _roles(capability: Capability) -> list[str]:
    return sorted(roles_for(capability))


def _permissions(capability: Capability, ownership: str | None = None) -> dict:
    """``x-permissions`` schema extension naming the roles allowed to call an operation."""
    ext = {"required_roles": _roles(capability)}
    if ownership:
        ext["ownership"] = ownership
    return {"x-permissions": ext}


# ---------- Auth & accounts ----------
@extend_schema(
    tags=["Auth"],
    request=RegistrationSerializer,
    responses={201: UserSerializer, **AUTH_RESPONSES, **VALIDATION_RESPONSE},
    description="Register a new account. Only admins can create non-student roles.",
)
class RegistrationView(APIView):
    """User registration endpoint."""
    permission_classes = [AllowAny]

    def post(self, request: Request) -> Response:
        ser = RegistrationSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        user = user_service.register(request.user, ser.validated_data)
        return Response(UserSerializer(user).data, status=status.HTTP_201_CREATED)


class ProfileView(APIView):
    """Read or update the caller's own profile."""
    permission_classes = [IsAuthenticated]

    @extend_schema(tags=["Auth"], responses={200: UserSerializer, **AUTH_RESPONSES})
    def get(self, request: Request) -> Response:
        return Response(UserSerializer(request.user).data)

    @extend_schema(
        tags=["Auth"],
        request=ProfileWriteSerializer,
        responses={200: UserSerializer, **AUTH_RESPONSES, **VALIDATION_RESPONSE},
    )
    def put(self, request: Request) -> Response:
        ser = ProfileWriteSerializer(data=request.data, context={"request": request})
        ser.is_valid(raise_exception=True)
        user = user_service.update_profile(request.user, ser.validated_data)
        return Response(UserSerializer(user).data)


@extend_schema(tags=["Users"], responses={200: UserSerializer(many=True)})
class TeacherListView(APIView):
    """Teachers available as group mentors."""
    permission_classes = [AllowAny]

    def get(self, request: Request) -> Response:
        return Response(UserSerializer(user_service.list_teachers(), many=True).data)


@extend_schema(
    tags=["Users"],
    responses={200: UserSerializer(many=True), **AUTH_RESPONSES},
    extensions=_permissions(Capability.MANAGE_USERS),
)
class UserListView(APIView):
    permission_classes = [IsAuthenticated, requires(Capability.MANAGE_USERS)]

    def get(self, request: Request) -> Response:
        return Response(UserSerializer(user_service.list_users(request.user), many=True).data)


@extend_schema(
    tags=["Users"],
    request=AdminUserWriteSerializer,
    responses={200: UserSerializer, **AUTH_RESPONSES, **VALIDATION_RESPONSE},
    extensions=_permissions(Capability.MANAGE_USERS),
)
class AdminUserView(APIView):
    """Edit another account. Changing the role is rejected."""
    permission_classes = [IsAuthenticated, requires(Capability.MANAGE_USERS)]

    def patch(self, request: Request, pk: int) -> Response:
        ser = AdminUserWriteSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        user = user_service.admin_update_user(request.user, pk, ser.validated_data)
        return Response(UserSerializer(user).data)


@extend_schema(
    tags=["Auth"],
    request=PasswordChangeSerializer,
    responses={200: OpenApiResponse(description="Password updated"), **AUTH_RESPONSES, **VALIDATION_RESPONSE},
    description="Change the caller's password. A wrong current password is a 400.",
)
class PasswordChangeView(APIView):
    permission_classes = [IsAuthenticated]

    def post(self, request: Request) -> Response:
        ser = PasswordChangeSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        user_service.change_password(
            request.user, ser.validated_data["current_password"], ser.validated_data["new_password"]
        )
        return Response({"detail": "Password updated successfully"})


# ---------- Topics ----------
def _topic_filters(request: Request) -> dict:
    params = request.query_params
    submitted_by = params.get("submittedBy") or params.get("submitted_by")
    if submitted_by and not submitted_by.isdigit():
        raise ValidationError("submittedBy must be a user id")
    return {
        "technology": params.get("technology"),
        "project_type": params.get("projectType") or params.get("project_type"),
        "submitted_by": submitted_by,
        "search": params.get("search"),
    }


@extend_schema_view(
    list=extend_schema(tags=["Topics"], parameters=TOPIC_FILTERS, responses={200: TopicReadSerializer(many=True), **AUTH_RESPONSES}),
    retrieve=extend_schema(tags=["Topics"], responses={200: TopicReadSerializer, **AUTH_RESPONSES}),
    create=extend_schema(
        tags=["Topics"],
        request=TopicWriteSerializer,
        responses={201: TopicReadSerializer, **AUTH_RESPONSES, **VALIDATION_RESPONSE},
        extensions=_permissions(Capability.SUBMIT_TOPIC, "owner-on-create"),
    ),
    update=extend_schema(
        tags=["Topics"],
        request=TopicWriteSerializer,
        responses={200: TopicReadSerializer, **AUTH_RESPONSES, **VALIDATION_RESPONSE},
        extensions=_permissions(Capability.EDIT_TOPIC, "owner, pending only"),
    ),
    partial_update=extend_schema(
        tags=["Topics"],
        request=TopicWriteSerializer,
        responses={200: TopicReadSerializer, **AUTH_RESPONSES, **VALIDATION_RESPONSE},
        extensions=_permissions(Capability.EDIT_TOPIC, "owner, pending only"),
    ),
    destroy=extend_schema(
        tags=["Topics"],
        responses={204: OpenApiResponse(description="Deleted"), **AUTH_RESPONSES},
        extensions=_permissions(Capability.EDIT_TOPIC, "owner, pending only"),
    ),
    approve=extend_schema(
        tags=["Topic review"],
        request=TopicDecisionSerializer,
        responses={200: TopicReadSerializer, **AUTH_RESPONSES, **CONFLICT_RESPONSE},
        extensions=_permissions(Capability.REVIEW_TOPIC),
    ),
    reject=extend_schema(
        tags=["Topic review"],
        request=TopicDecisionSerializer,
        responses={200: TopicReadSerializer, **AUTH_RESPONSES, **CONFLICT_RESPONSE},
        extensions=_permissions(Capability.REVIEW_TOPIC),
    ),
    pending=extend_schema(
        tags=["Topic review"],
        parameters=TOPIC_FILTERS,
        responses={200: TopicReadSerializer(many=True), **AUTH_RESPONSES},
        extensions=_permissions(Capability.VIEW_UNAPPROVED_TOPICS),
    ),
    rejected=extend_schema(
        tags=["Topic review"],
        parameters=TOPIC_FILTERS,
        responses={200: TopicReadSerializer(many=True), **AUTH_RESPONSES},
        extensions=_permissions(Capability.VIEW_UNAPPROVED_TOPICS),
    ),
    approved=extend_schema(
        tags=["Topics"],
        parameters=TOPIC_FILTERS,
        responses={200: TopicReadSerializer(many=True), **AUTH_RESPONSES},
        description="Approved topics. Students receive them split into my_topic, available_topics and taken_topics.",
    ),
    my=extend_schema(
        tags=["Topics"],
        responses={200: TopicReadSerializer(many=True), **AUTH_RESPONSES},
        extensions=_permissions(Capability.SUBMIT_TOPIC, "self"),
    ),
)
class TopicViewSet(CapabilityPermissionsMixin, PaginationMixin, viewsets.ModelViewSet):
    """Topic submission, editing and review."""
    permission_classes = [IsAuthenticated]
    lookup_value_regex = r"\d+"
    action_capabilities = {
        "create": Capability.SUBMIT_TOPIC,
        "update": Capability.EDIT_TOPIC,
        "partial_update": Capability.EDIT_TOPIC,
        "destroy": Capability.EDIT_TOPIC,
        "approve": Capability.REVIEW_TOPIC,
        "reject": Capability.REVIEW_TOPIC,
        "pending": Capability.VIEW_UNAPPROVED_TOPICS,
        "rejected": Capability.VIEW_UNAPPROVED_TOPICS,
        "my": Capability.SUBMIT_TOPIC,
    }

    def get_serializer_class(self):
        if self.action in ("create", "update", "partial_update"):
            return TopicWriteSerializer
        if self.action in ("approve", "reject"):
            return TopicDecisionSerializer
        return TopicReadSerializer

    def get_queryset(self):
        """Staff see every topic, teachers their own, everyone else approved topics."""
        user = self.request.user
        qs = ProjectTopic.objects.select_related("submitted_by", "reviewed_by")
        if is_staff_role(user):
            return qs
        if user.role == UserRole.TEACHER:
            return qs.by_teacher(user)
        return qs.approved()

    def list(self, request: Request, *args, **kwargs) -> Response:
        return self.paginate_and_respond(self.get_queryset().filtered(_topic_filters(request)), TopicReadSerializer)

    def retrieve(self, request: Request, *args, **kwargs) -> Response:
        topic = topic_service.get_visible_topic(request.user, int(kwargs["pk"]))
        return Response(TopicReadSerializer(topic).data)

    def create(self, request: Request, *args, **kwargs) -> Response:
        ser = TopicWriteSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        topic = topic_service.submit_topic(request.user, ser.validated_data)
        return Response(TopicReadSerializer(topic).data, status=status.HTTP_201_CREATED)

    def update(self, request: Request, *args, **kwargs) -> Response:
        ser = TopicWriteSerializer(data=request.data, partial=True)
        ser.is_valid(raise_exception=True)
        topic = topic_service.edit_topic(request.user, int(kwargs["pk"]), ser.validated_data)
        return Response(TopicReadSerializer(topic).data)

    def destroy(self, request: Request, *args, **kwargs) -> Response:
        topic_service.delete_topic(request.user, int(kwargs["pk"]))
        return Response(status=status.HTTP_204_NO_CONTENT)

    @action(detail=True, methods=["post"])
    def approve(self, request: Request, pk: int | None = None) -> Response:
        """Approve a pending topic, optionally with feedback."""
        ser = TopicDecisionSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        topic = topic_service.approve_topic(request.user, int(pk), ser.validated_data.get("feedback"))
        return Response(TopicReadSerializer(topic).data)

    @action(detail=True, methods=["post"])
    def reject(self, request: Request, pk: int | None = None) -> Response:
        """Reject a pending topic, optionally with feedback."""
        ser = TopicDecisionSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        topic = topic_service.reject_topic(request.user, int(pk), ser.validated_data.get("feedback"))
        return Response(TopicReadSerializer(topic).data)

    @action(detail=False, methods=["get"])
    def pending(self, request: Request) -> Response:
        qs = topic_service.list_by_status(request.user, TopicStatus.PENDING, _topic_filters(request))
        return self.paginate_and_respond(qs, TopicReadSerializer)

    @action(detail=False, methods=["get"])
    def rejected(self, request: Request) -> Response:
        qs = topic_service.list_by_status(request.user, TopicStatus.REJECTED, _topic_filters(request))
        return self.paginate_and_respond(qs, TopicReadSerializer)

    @action(detail=False, methods=["get"])
    def approved(self, request: Request) -> Response:
        filters = _topic_filters(request)
        if topic_service.wants_categorized_view(request.user):
            data = topic_service.categorize_for_student(request.user, filters)
            return Response(CategorizedTopicsSerializer(data).data)
        qs = topic_service.list_by_status(request.user, TopicStatus.APPROVED, filters)
        return self.paginate_and_respond(qs, TopicReadSerializer)

    @action(detail=False, methods=["get"])
    def my(self, request: Request) -> Response:
        return self.paginate_and_respond(topic_service.list_my_topics(request.user), TopicReadSerializer)


# ---------- Groups ----------
@extend_schema_view(
    list=extend_schema(tags=["Groups"], responses={200: GroupReadSerializer(many=True), **AUTH_RESPONSES}),
    create=extend_schema(
        tags=["Groups"],
        request=GroupWriteSerializer,
        responses={201: GroupReadSerializer, **AUTH_RESPONSES, **VALIDATION_RESPONSE, **CONFLICT_RESPONSE},
        extensions=_permissions(Capability.FORM_GROUP, "leader-on-create"),
    ),
    my_group=extend_schema(tags=["Groups"], responses={200: MyGroupSerializer, **AUTH_RESPONSES}),
    leave=extend_schema(
        tags=["Groups"],
        request=None,
        responses={204: OpenApiResponse(description="Left the group"), **AUTH_RESPONSES, **CONFLICT_RESPONSE},
    ),
)
class StudentGroupViewSet(CapabilityPermissionsMixin, PaginationMixin, mixins.ListModelMixin, viewsets.GenericViewSet):
    """Group creation by a student leader and membership views."""
    permission_classes = [IsAuthenticated]
    serializer_class = GroupReadSerializer
    lookup_value_regex = r"\d+"
    action_capabilities = {"create": Capability.FORM_GROUP}

    def get_queryset(self):
        """Staff see every group, teachers the groups they mentor, students their own."""
        user = self.request.user
        qs = StudentGroup.objects.select_related("faculty", "created_by").order_by("id")
        if is_staff_role(user):
            return qs
        if user.role == UserRole.TEACHER:
            return qs.filter(faculty=user)
        return qs.filter(memberships__user=user)

    def create(self, request: Request, *args, **kwargs) -> Response:
        ser = GroupWriteSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        group = group_service.create_group(request.user, **ser.validated_data)
        return Response(GroupReadSerializer(group).data, status=status.HTTP_201_CREATED)

    @action(detail=False, methods=["get"], url_path="my-group")
    def my_group(self, request: Request) -> Response:
        """The caller's group, their membership status, members and mentor."""
        return Response(MyGroupSerializer(group_service.get_my_group(request.user)).data)

    @action(detail=True, methods=["post"])
    def leave(self, request: Request, pk: int | None = None) -> Response:
        group_service.leave_group(request.user, int(pk))
        return Response(status=status.HTTP_204_NO_CONTENT)


@extend_schema_view(
    list=extend_schema(tags=["Groups"], responses={200: InviteReadSerializer(many=True), **AUTH_RESPONSES}),
    accept=extend_schema(
        tags=["Groups"],
        request=None,
        parameters=[OpenApiParameter("id", int, OpenApiParameter.PATH, description="Group id.")],
        responses={200: MemberReadSerializer, **AUTH_RESPONSES, **CONFLICT_RESPONSE},
        extensions=_permissions(Capability.FORM_GROUP, "invitee"),
    ),
    reject=extend_schema(
        tags=["Groups"],
        request=None,
        parameters=[OpenApiParameter("id", int, OpenApiParameter.PATH, description="Group id.")],
        responses={200: OpenApiResponse(description="Invitation declined"), **AUTH_RESPONSES},
        extensions=_permissions(Capability.FORM_GROUP, "invitee"),
    ),
)
class GroupInviteViewSet(CapabilityPermissionsMixin, viewsets.GenericViewSet):
    """Pending invitations of the caller; the lookup is the inviting group's id."""
    permission_classes = [IsAuthenticated]
    serializer_class = InviteReadSerializer
    lookup_value_regex = r"\d+"
    action_capabilities = {"accept": Capability.FORM_GROUP, "reject": Capability.FORM_GROUP}

    def list(self, request: Request) -> Response:
        return Response(InviteReadSerializer(group_service.pending_invites(request.user), many=True).data)

    @action(detail=True, methods=["post"])
    def accept(self, request: Request, pk: int | None = None) -> Response:
        membership = group_service.accept_invite(request.user, int(pk))
        return Response(MemberReadSerializer(membership).data)

    @action(detail=True, methods=["post"])
    def reject(self, request: Request, pk: int | None = None) -> Response:
        group_service.reject_invite(request.user, int(pk))
        return Response({"detail": "Invitation declined"})


# ---------- Projects ----------
@extend_schema_view(
    list=extend_schema(
        tags=["Projects"],
        responses={200: ProjectReadSerializer(many=True), **AUTH_RESPONSES},
        extensions=_permissions(Capability.VIEW_ALL_PROJECTS),
    ),
    retrieve=extend_schema(tags=["Projects"], responses={200: ProjectReadSerializer, **AUTH_RESPONSES}),
    create=extend_schema(
        tags=["Projects"],
        request=ProjectSelectSerializer,
        responses={201: ProjectReadSerializer, **AUTH_RESPONSES, **VALIDATION_RESPONSE, **CONFLICT_RESPONSE},
        extensions=_permissions(Capability.SELECT_TOPIC, "self or group leader"),
        description="Select an approved topic. Exactly one selection of a topic succeeds; the rest get 409.",
    ),
    my=extend_schema(tags=["Projects"], responses={200: ProjectReadSerializer(many=True), **AUTH_RESPONSES}),
    teacher=extend_schema(
        tags=["Projects"],
        responses={200: ProjectReadSerializer(many=True), **AUTH_RESPONSES},
        extensions=_permissions(Capability.UPDATE_PROGRESS, "topic owner"),
    ),
    progress=extend_schema(
        tags=["Progress"],
        request=ProgressWriteSerializer,
        responses={200: ProjectReadSerializer, **AUTH_RESPONSES, **VALIDATION_RESPONSE},
        extensions=_permissions(Capability.UPDATE_PROGRESS, "topic owner"),
    ),
    evaluate=extend_schema(
        tags=["Evaluation"],
        request=EvaluationWriteSerializer,
        responses={200: AssessmentReadSerializer, **AUTH_RESPONSES, **VALIDATION_RESPONSE},
        extensions=_permissions(Capability.EVALUATE, "topic owner"),
    ),
    assessments=extend_schema(tags=["Evaluation"], responses={200: AssessmentReadSerializer(many=True), **AUTH_RESPONSES}),
    report=extend_schema(
        tags=["Evaluation"],
        responses={200: ProjectReportSerializer, **AUTH_RESPONSES},
        extensions=_permissions(Capability.VIEW_REPORTS, "staff or topic owner"),
    ),
)
class ProjectViewSet(CapabilityPermissionsMixin, PaginationMixin, viewsets.GenericViewSet):
    """Topic selection, progress tracking and evaluation."""
    permission_classes = [IsAuthenticated]
    serializer_class = ProjectReadSerializer
    lookup_value_regex = r"\d+"
    action_capabilities = {
        "list": Capability.VIEW_ALL_PROJECTS,
        "create": Capability.SELECT_TOPIC,
        "teacher": Capability.UPDATE_PROGRESS,
        "progress": Capability.UPDATE_PROGRESS,
        "evaluate": Capability.EVALUATE,
        "report": Capability.VIEW_REPORTS,
    }

    def get_queryset(self):
        return StudentProject.objects.with_related()

    def get_throttles(self):
        if self.action == "create":
            return [TopicSelectionRateThrottle()]
        return super().get_throttles()

    def list(self, request: Request) -> Response:
        return self.paginate_and_respond(allocation_service.list_all_projects(request.user), ProjectReadSerializer)

    def retrieve(self, request: Request, pk: int | None = None) -> Response:
        project = allocation_service.get_project(int(pk))
        if not can_view_project(request.user, project):
            raise AuthorizationError("You cannot view this project")
        return Response(ProjectReadSerializer(project).data)

    def create(self, request: Request) -> Response:
        ser = ProjectSelectSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        project = allocation_service.select_topic(request.user, ser.validated_data["topic_id"])
        return Response(ProjectReadSerializer(project).data, status=status.HTTP_201_CREATED)

    @action(detail=False, methods=["get"])
    def my(self, request: Request) -> Response:
        return self.paginate_and_respond(allocation_service.list_my_projects(request.user), ProjectReadSerializer)

    @action(detail=False, methods=["get"])
    def teacher(self, request: Request) -> Response:
        """Projects built on the caller's topics."""
        return self.paginate_and_respond(allocation_service.list_teacher_projects(request.user), ProjectReadSerializer)

    @action(detail=True, methods=["put"])
    def progress(self, request: Request, pk: int | None = None) -> Response:
        ser = ProgressWriteSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        project = allocation_service.update_progress(request.user, int(pk), ser.validated_data["progress"])
        return Response(ProjectReadSerializer(project).data)

    @action(detail=True, methods=["post"])
    def evaluate(self, request: Request, pk: int | None = None) -> Response:
        ser = EvaluationWriteSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        assessment = evaluation_service.evaluate(
            request.user, int(pk), ser.validated_data["marks"], ser.validated_data["feedback"]
        )
        return Response(AssessmentReadSerializer(assessment).data)

    @action(detail=True, methods=["get"])
    def assessments(self, request: Request, pk: int | None = None) -> Response:
        qs = evaluation_service.list_assessments(request.user, int(pk))
        return self.paginate_and_respond(qs, AssessmentReadSerializer)

    @action(detail=True, methods=["get"])
    def report(self, request: Request, pk: int | None = None) -> Response:
        return Response(ProjectReportSerializer(evaluation_service.project_report(request.user, int(pk))).data)


@extend_schema(
    tags=["Evaluation"],
    parameters=[
        OpenApiParameter("projectName", str, OpenApiParameter.QUERY, description="Topic title substring."),
        OpenApiParameter("facultyName", str, OpenApiParameter.QUERY),
        OpenApiParameter("studentName", str, OpenApiParameter.QUERY),
        OpenApiParameter("enrollmentNumber", str, OpenApiParameter.QUERY),
        OpenApiParameter("status", str, OpenApiParameter.QUERY, enum=["in_progress", "completed"]),
    ],
    responses={200: ProjectReadSerializer(many=True), **AUTH_RESPONSES, **VALIDATION_RESPONSE},
    extensions=_permissions(Capability.SEARCH_PROJECTS),
)
class ProjectSearchView(APIView):
    """Staff search over all projects for reporting."""
    permission_classes = [IsAuthenticated, requires(Capability.SEARCH_PROJECTS)]

    def get(self, request: Request) -> Response:
        params = request.query_params
        criteria = {
            "project_name": params.get("projectName"),
            "faculty_name": params.get("facultyName"),
            "student_name": params.get("studentName"),
            "enrollment_number": params.get("enrollmentNumber"),
            "status": params.get("status"),
        }
        projects = evaluation_service.search_projects(request.user, criteria)
        return Response(ProjectReadSerializer(projects, many=True).data)


# ---------- Milestones ----------
@extend_schema_view(
    list=extend_schema(tags=["Milestones"], responses={200: MilestoneReadSerializer(many=True), **AUTH_RESPONSES}),
    create=extend_schema(
        tags=["Milestones"],
        request=MilestoneWriteSerializer,
        responses={201: MilestoneReadSerializer, **AUTH_RESPONSES, **VALIDATION_RESPONSE},
        extensions=_permissions(Capability.MANAGE_MILESTONES, "topic owner"),
    ),
)
class ProjectMilestoneViewSet(CapabilityPermissionsMixin, PaginationMixin, viewsets.GenericViewSet):
    """Milestones nested under a project."""
    permission_classes = [IsAuthenticated]
    serializer_class = MilestoneReadSerializer
    action_capabilities = {"create": Capability.MANAGE_MILESTONES}

    def list(self, request: Request, project_pk: int | None = None) -> Response:
        qs = evaluation_service.list_milestones(request.user, int(project_pk))
        return self.paginate_and_respond(qs, MilestoneReadSerializer)

    def create(self, request: Request, project_pk: int | None = None) -> Response:
        ser = MilestoneWriteSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        milestone = evaluation_service.add_milestone(request.user, int(project_pk), **ser.validated_data)
        return Response(MilestoneReadSerializer(milestone).data, status=status.HTTP_201_CREATED)


@extend_schema_view(
    complete=extend_schema(
        tags=["Milestones"],
        request=None,
        responses={200: MilestoneReadSerializer, **AUTH_RESPONSES, **CONFLICT_RESPONSE},
    ),
)
class MilestoneViewSet(viewsets.GenericViewSet):
    permission_classes = [IsAuthenticated]
    serializer_class = MilestoneReadSerializer
    lookup_value_regex = r"\d+"

    @action(detail=True, methods=["post"])
    def complete(self, request: Request, pk: int | None = None) -> Response:
        milestone = evaluation_service.complete_milestone(request.user, int(pk))
        return Response(MilestoneReadSerializer(milestone).data)


# ---------- Notifications ----------
@extend_schema_view(
    list=extend_schema(
        tags=["Notifications"],
        parameters=[OpenApiParameter("unread", bool, OpenApiParameter.QUERY)],
        responses={200: NotificationSerializer(many=True), **AUTH_RESPONSES},
    ),
    read=extend_schema(tags=["Notifications"], request=None, responses={200: NotificationSerializer, **AUTH_RESPONSES}),
    read_all=extend_schema(tags=["Notifications"], request=None, responses={200: OpenApiResponse(description="Count marked read")}),
)
class NotificationViewSet(PaginationMixin, viewsets.GenericViewSet):
    permission_classes = [IsAuthenticated]
    serializer_class = NotificationSerializer
    lookup_value_regex = r"\d+"

    def list(self, request: Request) -> Response:
        unread = request.query_params.get("unread", "").lower() in ("1", "true", "yes")
        qs = notification_service.list_notifications(request.user, unread_only=unread)
        return self.paginate_and_respond(qs, NotificationSerializer)

    @action(detail=True, methods=["post"])
    def read(self, request: Request, pk: int | None = None) -> Response:
        return Response(NotificationSerializer(notification_service.mark_read(request.user, int(pk))).data)

    @action(detail=False, methods=["post"], url_path="read-all")
    def read_all(self, request: Request) -> Response:
        return Response({"updated": notification_service.mark_all_read(request.user)})


# ---------- Statistics ----------
@extend_schema(tags=["Statistics"], responses={200: StatsSerializer, **AUTH_RESPONSES})
class StatsView(APIView):
    """Dashboard counters and project phase percentages."""
    permission_classes = [IsAuthenticated]

    def get(self, request: Request) -> Response:
        return Response(StatsSerializer(stats_service.dashboard_stats()).data)


# ---------- System administration ----------
ADMIN_ONLY = _permissions(Capability.ADMINISTER_SYSTEM)


@extend_schema_view(
    export=extend_schema(
        tags=["Admin"],
        request=None,
        responses={200: OpenApiResponse(description="Full state document"), **AUTH_RESPONSES},
        extensions=ADMIN_ONLY,
    ),
    export_excel=extend_schema(
        tags=["Admin"],
        request=None,
        responses={200: OpenApiResponse(description="One row per project under `data`"), **AUTH_RESPONSES},
        extensions=ADMIN_ONLY,
    ),
    import_state=extend_schema(
        tags=["Admin"],
        request=ImportSerializer,
        responses={200: OpenApiResponse(description="Rows imported per table"), **AUTH_RESPONSES, **VALIDATION_RESPONSE},
        extensions=ADMIN_ONLY,
    ),
    reset=extend_schema(
        tags=["Admin"],
        request=PasswordConfirmSerializer,
        responses={200: OpenApiResponse(description="Reset to seed state"), **AUTH_RESPONSES},
        extensions=ADMIN_ONLY,
    ),
)
class AdminViewSet(viewsets.GenericViewSet):
    """Export, import and reset of the whole portal state."""
    permission_classes = [IsAuthenticated, requires(Capability.ADMINISTER_SYSTEM)]
    serializer_class = PasswordConfirmSerializer

    @action(detail=False, methods=["post"])
    def export(self, request: Request) -> Response:
        response = Response(system_service.export_state())
        response["Content-Disposition"] = "attachment; filename=database-export.json"
        return response

    @action(detail=False, methods=["post"], url_path="export-excel")
    def export_excel(self, request: Request) -> Response:
        return Response({"data": system_service.export_report()})

    @action(
        detail=False,
        methods=["post"],
        url_path="import",
        parser_classes=[JSONParser, MultiPartParser, FormParser],
    )
    def import_state(self, request: Request) -> Response:
        """Replace the state with an export document, sent inline or as an uploaded file."""
        ser = ImportSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        system_service.confirm_password(request.user, ser.validated_data["password"])

        upload = ser.validated_data.get("file")
        if upload is not None:
            validate_file_size(upload, settings.PROJECTHUB["MAX_IMPORT_MB"])
            validate_import_mime(upload)
            try:
                document = json.loads(upload.read())
            except (UnicodeDecodeError, json.JSONDecodeError) as exc:
                raise ValidationError(f"Import file is not valid JSON: {exc}")
        else:
            document = ser.validated_data["data"]
        counts = system_service.import_state(document)
        return Response({"detail": "Database restored successfully", "imported": counts})

    @action(detail=False, methods=["post"])
    def reset(self, request: Request) -> Response:
        ser = PasswordConfirmSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        system_service.confirm_password(request.user, ser.validated_data["password"])
        system_service.reset_state()
        return Response({"detail": "Database reset successfully. Log in with the default credentials."})
