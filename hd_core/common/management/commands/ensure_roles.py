# hd_core/common/management/commands/ensure_roles.py

from django.contrib.auth.models import Group
from django.core.management.base import BaseCommand

from hd_core.common.permissions import ALL_ROLES


class Command(BaseCommand):
    help = "Create the front-desk, department and admin role groups (safe to re-run)."

    def handle(self, *args, **options):
        created = [name for name in sorted(ALL_ROLES) if Group.objects.get_or_create(name=name)[1]]

        if created:
            self.stdout.write(f"Created groups: {', '.join(created)}")
        self.stdout.write(self.style.SUCCESS(f"Roles ensured. Newly created: {len(created)}"))
