"""
archalley/urls/moderation_urls.py
namespace = "moderation"
"""
from django.urls import path
from ..views.moderation_views import FlagCollectionView, FlagDetailView, FlagStatsView

app_name = "moderation"

urlpatterns = [
    path("",                   FlagCollectionView.as_view(), name="flags"),
    path("stats/",             FlagStatsView.as_view(),      name="stats"),
    path("<int:flag_id>/",     FlagDetailView.as_view(),     name="flag-detail"),
]
