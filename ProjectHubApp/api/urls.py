from django.urls import path, re_path, include
from rest_framework_nested import routers
from rest_framework_simplejwt.views import TokenObtainPairView, TokenRefreshView
from drf_spectacular.views import SpectacularAPIView, SpectacularSwaggerView

from ProjectHubApp.api.views import (
    RegistrationView,
    ProfileView,
    TeacherListView,
    UserListView,
    AdminUserView,
    TopicViewSet,
    StudentGroupViewSet,
    GroupInviteViewSet,
    ProjectViewSet,
    ProjectMilestoneViewSet,
    MilestoneViewSet,
    NotificationViewSet,
    StatsView,
    AdminViewSet,
    PasswordChangeView,
    ProjectSearchView,
)

# trailing slash optional on every route
router = routers.SimpleRouter()
router.trailing_slash = "/?"
router.register(r"topics", TopicViewSet, basename="topic")
router.register(r"student-groups", StudentGroupViewSet, basename="student-group")
router.register(r"groups/invite", GroupInviteViewSet, basename="group-invite")
router.register(r"projects", ProjectViewSet, basename="project")
router.register(r"milestones", MilestoneViewSet, basename="milestone")
router.register(r"notifications", NotificationViewSet, basename="notification")
router.register(r"admin", AdminViewSet, basename="admin")

projects_router = routers.NestedSimpleRouter(router, r"projects", lookup="project")
projects_router.trailing_slash = "/?"
projects_router.register(r"milestones", ProjectMilestoneViewSet, basename="project-milestones")

urlpatterns = [
    re_path(r"^schema/?$", SpectacularAPIView.as_view(), name="schema"),
    re_path(r"^docs/?$", SpectacularSwaggerView.as_view(url_name="schema"), name="docs"),
    re_path(r"^auth/token/?$", TokenObtainPairView.as_view(), name="token_obtain_pair"),
    re_path(r"^auth/token/refresh/?$", TokenRefreshView.as_view(), name="token_refresh"),
    re_path(r"^auth/register/?$", RegistrationView.as_view(), name="auth-register"),
    re_path(r"^profile/?$", ProfileView.as_view(), name="profile"),
    re_path(r"^user/change-password/?$", PasswordChangeView.as_view(), name="change-password"),
    re_path(r"^teachers/?$", TeacherListView.as_view(), name="teachers"),
    re_path(r"^users/?$", UserListView.as_view(), name="users"),
    re_path(r"^admin/users/(?P<pk>\d+)/?$", AdminUserView.as_view(), name="admin-user"),
    re_path(r"^stats/?$", StatsView.as_view(), name="stats"),
    re_path(r"^reports/search/?$", ProjectSearchView.as_view(), name="project-search"),
    path("", include(router.urls)),
    path("", include(projects_router.urls)),
]
