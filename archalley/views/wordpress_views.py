"""
views/wordpress_views.py
Read-only proxy to the WordPress content API.
"""

from __future__ import annotations

from django.http import JsonResponse
from django.views import View

from ..mixins import JsonApiMixin
from ..services.wordpress_client import WordPressClient, summarize


def _paging(request, default_per_page: int) -> tuple[int, int]:
    try:
        page     = max(1, int(request.GET.get("page", 1)))
        per_page = min(100, max(1, int(request.GET.get("per_page", default_per_page))))
    except ValueError:
        raise ValueError("page and per_page must be numbers")
    return page, per_page


class WordPressPostsView(JsonApiMixin, View):
    """GET  /api/wordpress/posts/?page=1&per_page=4&category=<id>&search=<term>"""
    http_method_names = ["get"]

    def get(self, request):
        page, per_page = _paging(request, 4)
        client   = WordPressClient()
        category = request.GET.get("category")
        search   = request.GET.get("search", "").strip()

        if category:
            posts = client.posts_by_category(int(category), page, per_page)
        elif search:
            posts = client.search(search, page, per_page)
        else:
            posts = client.latest_posts(page, per_page)
        return JsonResponse({"success": True, "posts": [summarize(p) for p in posts]})


class WordPressCategoriesView(JsonApiMixin, View):
    """GET  /api/wordpress/categories/"""
    http_method_names = ["get"]

    def get(self, request):
        categories = [
            {"id": c.get("id"), "name": c.get("name"), "slug": c.get("slug"), "count": c.get("count", 0)}
            for c in WordPressClient().categories()
        ]
        return JsonResponse({"success": True, "categories": categories})


class WordPressProjectsView(JsonApiMixin, View):
    """GET  /api/wordpress/projects/<keyword>/"""
    http_method_names = ["get"]

    def get(self, request, keyword: str):
        page, per_page = _paging(request, 20)
        posts = WordPressClient().projects(keyword, page, per_page)
        return JsonResponse({"success": True, "posts": [summarize(p) for p in posts]})
