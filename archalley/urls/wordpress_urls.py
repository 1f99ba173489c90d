"""
archalley/urls/wordpress_urls.py
namespace = "wordpress"
"""
from django.urls import path
from ..views.wordpress_views import WordPressCategoriesView, WordPressPostsView, WordPressProjectsView

app_name = "wordpress"

urlpatterns = [
    path("posts/",                 WordPressPostsView.as_view(),      name="posts"),
    path("categories/",            WordPressCategoriesView.as_view(), name="categories"),
    path("projects/<slug:keyword>/", WordPressProjectsView.as_view(), name="projects"),
]
