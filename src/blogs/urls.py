"""Routing for the blog, post and comment viewsets."""

from django.urls import include, path
from rest_framework.routers import DefaultRouter

from .views import BlogViewSet, CommentViewSet, PostViewSet

router = DefaultRouter()
router.register(r"blogs", BlogViewSet, basename="blog")
router.register(r"posts", PostViewSet, basename="post")
router.register(r"comments", CommentViewSet, basename="comment")

urlpatterns = [
    path("", include(router.urls)),
]
