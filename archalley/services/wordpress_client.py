"""
services/wordpress_client.py
─────────────────────────────────────────────────────────────────────
Read-only client for the archalley.com WordPress REST API.

Responses are cached through Django's cache framework. Any upstream
failure is logged and reads as an empty list; callers never see a 5xx
because WordPress was down.
"""
from __future__ import annotations

import logging
import re
from typing import List, Optional

import requests
from django.conf import settings
from django.core.cache import cache

logger = logging.getLogger(__name__)

EMBED = "wp:featuredmedia,wp:term"

PLACEHOLDER_IMAGE = "/placeholder-blog.jpg"

# project listing → words matched against category slug/name, then post text
KEYWORD_GROUPS = {
    "commercial":  ("office", "commercial", "corporate", "workplace", "business", "retail", "shop"),
    "residential": ("residential", "house", "home", "villa", "apartment", "residence"),
    "hospitality": ("hospitality", "hotel", "resort", "restaurant", "cafe"),
    "interior":    ("interior", "interiors", "furniture", "decor"),
    "landscape":   ("landscape", "garden", "park", "outdoor"),
    "education":   ("education", "school", "university", "campus", "library"),
}

_TAG_RE = re.compile(r"<[^>]*>")


# ────────────────────────────────────────────────────────────────────
#  Post helpers
# ────────────────────────────────────────────────────────────────────

def strip_html(html: str) -> str:
    return _TAG_RE.sub("", html or "").strip()


def post_excerpt(post: dict, max_length: int = 150) -> str:
    text = strip_html(post.get("excerpt", {}).get("rendered", ""))
    return text[:max_length] + "..." if len(text) > max_length else text


def featured_image(post: dict, size: str = "large") -> str:
    media = (post.get("_embedded", {}).get("wp:featuredmedia") or [None])[0]
    if not media:
        return PLACEHOLDER_IMAGE
    sized = media.get("media_details", {}).get("sizes", {}).get(size, {})
    return sized.get("source_url") or media.get("source_url") or PLACEHOLDER_IMAGE


def post_category(post: dict) -> dict:
    terms = (post.get("_embedded", {}).get("wp:term") or [[]])[0]
    primary = next((t for t in terms if t.get("taxonomy") == "category"), None)
    if not primary:
        return {"name": "Uncategorized", "slug": "uncategorized"}
    return {"name": primary.get("name", ""), "slug": primary.get("slug", "")}


def summarize(post: dict) -> dict:
    """Flat dict the frontend renders."""
    return {
        "id":        post.get("id"),
        "slug":      post.get("slug", ""),
        "title":     strip_html(post.get("title", {}).get("rendered", "")),
        "excerpt":   post_excerpt(post),
        "date":      post.get("date"),
        "link":      post.get("link", ""),
        "image":     featured_image(post),
        "category":  post_category(post),
    }


# ────────────────────────────────────────────────────────────────────
#  Client
# ────────────────────────────────────────────────────────────────────

class WordPressClient:

    def __init__(self, base_url: Optional[str] = None, timeout: Optional[int] = None,
                 session: Optional[requests.Session] = None):
        self.base_url = (base_url or settings.WORDPRESS_API_URL).rstrip("/")
        self.timeout  = timeout or settings.WORDPRESS_TIMEOUT
        self.session  = session or requests.Session()

    def _get(self, path: str, params: dict) -> list:
        cache_key = "wp:" + path + ":" + "&".join(f"{k}={params[k]}" for k in sorted(params))
        cached = cache.get(cache_key)
        if cached is not None:
            return cached

        try:
            response = self.session.get(f"{self.base_url}/{path}", params=params, timeout=self.timeout)
            response.raise_for_status()
            data = response.json()
        except (requests.RequestException, ValueError) as e:
            logger.error("WordPress request %s failed: %s", path, e)
            return []

        if not isinstance(data, list):
            logger.warning("WordPress %s returned %s, expected a list", path, type(data).__name__)
            return []
        cache.set(cache_key, data, settings.WORDPRESS_CACHE_SECONDS)
        return data

    # ── Endpoints ────────────────────────────────────────────────────

    def latest_posts(self, page: int = 1, per_page: int = 4) -> List[dict]:
        return self._get("posts", {
            "_embed": EMBED, "page": page, "per_page": per_page,
            "orderby": "date", "order": "desc",
        })

    def categories(self) -> List[dict]:
        return self._get("categories", {"per_page": 100, "hide_empty": "true"})

    def posts_by_category(self, category_id: int, page: int = 1, per_page: int = 8) -> List[dict]:
        return self._get("posts", {
            "_embed": EMBED, "categories": category_id, "page": page, "per_page": per_page,
            "status": "publish", "orderby": "date", "order": "desc",
        })

    def search(self, term: str, page: int = 1, per_page: int = 10) -> List[dict]:
        return self._get("posts", {
            "_embed": EMBED, "search": term, "page": page, "per_page": per_page,
            "status": "publish", "orderby": "relevance",
        })

    def projects(self, keyword: str, page: int = 1, per_page: int = 20) -> List[dict]:
        """
        Posts for a project listing such as ``commercial``.
        Uses a category whose slug or name contains one of the group's
        keywords; when none exists or it is empty, filters the latest
        posts by the keywords instead.
        """
        keywords = KEYWORD_GROUPS.get(keyword.lower(), (keyword.lower(),))

        category = next(
            (
                c for c in self.categories()
                if any(k in c.get("slug", "").lower() or k in c.get("name", "").lower() for k in keywords)
            ),
            None,
        )
        if category:
            posts = self.posts_by_category(category["id"], page, per_page)
            if posts:
                return posts
            logger.info("WordPress category %s is empty, falling back to keywords", category.get("slug"))

        return [
            post for post in self.latest_posts(page, per_page)
            if _mentions(post, keywords)
        ]


def _mentions(post: dict, keywords) -> bool:
    text = " ".join((
        strip_html(post.get("title", {}).get("rendered", "")),
        strip_html(post.get("excerpt", {}).get("rendered", "")),
        strip_html(post.get("content", {}).get("rendered", "")),
    )).lower()
    return any(k in text for k in keywords)
