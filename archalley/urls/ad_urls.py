"""
archalley/urls/ad_urls.py
namespace = "ads"  (public serving + tracking)
"""
from django.urls import path
from ..views.ad_views import AdClickView, AdImpressionView, PublicAdListView

app_name = "ads"

urlpatterns = [
    path("",                          PublicAdListView.as_view(), name="list"),
    path("<int:ad_id>/click/",        AdClickView.as_view(),      name="click"),
    path("<int:ad_id>/impression/",   AdImpressionView.as_view(), name="impression"),
]
