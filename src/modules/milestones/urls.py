"""Milestone and delay-request URL configuration."""

from __future__ import annotations

from rest_framework.routers import DefaultRouter

from modules.milestones.views import DelayRequestViewSet, MilestoneViewSet

router = DefaultRouter(trailing_slash=True)
router.register("milestones", MilestoneViewSet, basename="milestone")
router.register("delay-requests", DelayRequestViewSet, basename="delay-request")

urlpatterns = router.urls
