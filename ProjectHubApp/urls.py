from django.urls import path, include

urlpatterns = [
    path("api/", include("ProjectHubApp.api.urls")),
]
