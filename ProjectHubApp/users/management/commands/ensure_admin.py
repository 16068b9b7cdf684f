from django.core.management.base import BaseCommand

from ProjectHubApp.domain.services.system_service import ensure_default_admin


class Command(BaseCommand):
    help = "Create the default admin account if it does not exist."

    def handle(self, *args, **options):
        admin = ensure_default_admin()
        self.stdout.write(self.style.SUCCESS(f"Admin account ready: {admin.username}"))
