"""System checks for ownership-protected views."""

from django.core.checks import Error, register

from access_control.permissions import OwnershipPermission


@register()
def ownership_views_declare_owned_model(app_configs, **kwargs):
    """Ensure views guarded by OwnershipPermission declare an owned model.

    Only the known viewsets of this project are inspected. New ownership
    protected views should be added to the list below.
    """
    errors: list[Error] = []

    # Import here to avoid circular imports at module load time.
    from blogs.models import OwnedResource
    from blogs.views import BlogViewSet, CommentViewSet, PostViewSet

    ownership_views = [BlogViewSet, PostViewSet, CommentViewSet]

    for view_cls in ownership_views:
        permission_classes = getattr(view_cls, "permission_classes", [])
        if OwnershipPermission not in permission_classes:
            continue
        owned_model = getattr(view_cls, "owned_model", None)
        if not (isinstance(owned_model, type) and issubclass(owned_model, OwnedResource)):
            errors.append(
                Error(
                    f"{view_cls.__name__} uses OwnershipPermission but does not "
                    f"declare an owned_model subclassing OwnedResource.",
                    obj=view_cls,
                    id="access_control.E001",
                )
            )

    return errors
