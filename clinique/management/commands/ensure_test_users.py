import os
import secrets

from django.core.management.base import BaseCommand
from django.contrib.auth.hashers import make_password
from clinique.models import User

TEST_SET = [
    ("admin1", "admin"),
    ("medecin1", "medecin"),
    ("infirmier1", "infirmier"),
    ("secretaire1", "secretaire"),
]


class Command(BaseCommand):
    help = "Ensure one test user per role exists with the given password (idempotent)."

    def add_arguments(self, parser):
        parser.add_argument(
            "--password",
            default=os.getenv("TEST_USERS_PASSWORD"),
            help="Password for every test user (default: $TEST_USERS_PASSWORD, else a generated one).",
        )

    def handle(self, *args, **opts):
        password = opts["password"] or secrets.token_urlsafe(12)
        for username, role in TEST_SET:
            u, created = User.objects.get_or_create(
                username=username,
                defaults={"role": role, "password": make_password(password), "is_active": True},
            )
            if not created:
                # reset password, role and active flag
                u.password = make_password(password)
                u.role = role
                u.is_active = True
                u.save(update_fields=["password", "role", "is_active"])
            self.stdout.write(self.style.SUCCESS(f"ok: {username} ({role})"))
        if not opts["password"]:
            self.stdout.write(f"generated password: {password}")
        self.stdout.write(self.style.SUCCESS("All test users ensured."))
