from django.apps import AppConfig


class AuthenticationConfig(AppConfig):
    """Email accounts with bcrypt passwords, and the bearer tokens issued for them."""

    name = "authentication"
    verbose_name = "Accounts and sessions"
    default_auto_field = "django.db.models.BigAutoField"
