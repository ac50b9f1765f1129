"""Bootstrap default roles, the admin account, and optional demo content."""

from django.conf import settings
from django.contrib.auth import get_user_model
from django.core.management.base import BaseCommand, CommandError
from django.db import transaction

from access_control.bootstrap import DEFAULT_ROLES, ensure_admin_account, ensure_default_roles
from access_control.models import Role
from access_control.policy import Principal, USER_ROLE
from blogs.models import Blog
from blogs.services import create_blog, create_comment, create_post

DEMO_USERS = {
    "alice@example.com": "alicepass",
    "bob@example.com": "bobpass12",
}


class Command(BaseCommand):
    """Management command to run the idempotent startup bootstrap."""

    help = (
        "Create the default roles and, when ADMIN_EMAIL/ADMIN_PASSWORD are set, "
        "the admin account. Safe to run on every start. Use --demo to add demo "
        "users and content, --reset to remove previously seeded demo data first."
    )

    def add_arguments(self, parser):
        parser.add_argument(
            "--demo",
            action="store_true",
            help="Create demo users with a blog, posts and comments.",
        )
        parser.add_argument(
            "--reset",
            action="store_true",
            help="Delete demo users and their content before seeding.",
        )

    def handle(self, *args, **options):
        """Entrypoint for the management command."""
        if options.get("reset"):
            self._reset_demo_data()

        self.stdout.write("Ensuring default roles...")
        ensure_default_roles()

        admin_email = getattr(settings, "ADMIN_EMAIL", None)
        admin_password = getattr(settings, "ADMIN_PASSWORD", None)
        if admin_email or admin_password:
            try:
                ensure_admin_account(admin_email, admin_password)
            except ValueError as exc:
                raise CommandError(str(exc)) from exc
            self.stdout.write(f"Admin account {admin_email} ready.")

        if options.get("demo"):
            self._create_demo_content()

        self.stdout.write(self.style.SUCCESS("Bootstrap completed."))

    def _reset_demo_data(self) -> None:
        """Remove the demo users and everything they own.

        Posts and comments protect their owners from deletion, so the demo
        users' content is removed first. Roles and the admin account are kept.
        """
        self.stdout.write("Removing demo data...")
        User = get_user_model()
        demo_users = User.objects.filter(email__in=DEMO_USERS)
        with transaction.atomic():
            Blog.objects.filter(owner__in=demo_users).delete()
            for user in demo_users:
                user.comments.all().delete()
                user.posts.all().delete()
            demo_users.delete()
        self.stdout.write(self.style.WARNING("Demo data cleared."))

    @transaction.atomic
    def _create_demo_content(self) -> None:
        """Create demo users, one blog, and a short discussion."""
        User = get_user_model()
        user_role = Role.objects.get(name=USER_ROLE)

        users = []
        for email, password in DEMO_USERS.items():
            user = User.objects.filter(email=email).first()
            if user is None:
                user = User.objects.create_user(
                    email=email, password=password, roles=[user_role], first_name=email.split("@")[0].title()
                )
            users.append(user)
        alice, bob = (Principal.from_user(user) for user in users)

        if Blog.objects.filter(owner_id=alice.id, title="Alice's notes").exists():
            self.stdout.write("Demo content already present.")
            return

        blog = create_blog(alice, title="Alice's notes", description="Demo blog.")
        post = create_post(alice, blog=blog, title="Hello", content="First post.")
        create_post(bob, blog=blog, title="Guest post", content="Bob writing in Alice's blog.")
        create_comment(bob, post=post, content="Welcome!")
        create_comment(alice, post=post, content="Thanks, Bob.")
        self.stdout.write(f"Demo content created for {', '.join(DEMO_USERS)} (roles: {', '.join(DEFAULT_ROLES)}).")
