from django.apps import AppConfig

class TopicsConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "ProjectHubApp.topics"
