"""
mixins.py
─────────────────────────────────────────────────────────────────────
Role-based access (RBAC) and JSON error handling for API views
"""
from __future__ import annotations

import json
import logging

from django.core.exceptions import ObjectDoesNotExist
from django.http import Http404, JsonResponse

from .exceptions import CheckoutInProgress, FormValidationError

logger = logging.getLogger(__name__)


def error_response(message: str, status: int, **extra) -> JsonResponse:
    return JsonResponse({"success": False, "error": message, **extra}, status=status)


class JsonApiMixin:
    """
    Translates service exceptions into JSON error responses.

        FormValidationError  → 400 + "fields"
        CheckoutInProgress   → 409
        ValueError           → 400
        PermissionError      → 403
        ObjectDoesNotExist   → 404
    """

    def dispatch(self, request, *args, **kwargs):
        try:
            return super().dispatch(request, *args, **kwargs)
        except FormValidationError as e:
            return error_response(str(e), 400, fields=e.fields)
        except CheckoutInProgress as e:
            return error_response(str(e), 409)
        except ValueError as e:
            return error_response(str(e), 400)
        except PermissionError as e:
            return error_response(str(e), 403)
        except (ObjectDoesNotExist, Http404) as e:
            return error_response(str(e) or "Not found", 404)
        except Exception:
            logger.exception("Unhandled error in %s", self.__class__.__name__)
            return error_response("Internal server error", 500)

    @staticmethod
    def parse_json(request) -> dict:
        try:
            payload = json.loads(request.body or b"{}")
        except (json.JSONDecodeError, UnicodeDecodeError):
            raise ValueError("Request body is not valid JSON")
        if not isinstance(payload, dict):
            raise ValueError("Request body must be a JSON object")
        return payload

    @staticmethod
    def client_ip(request) -> str:
        x_forward = request.META.get("HTTP_X_FORWARDED_FOR")
        if x_forward:
            return x_forward.split(",")[0].strip()
        return request.META.get("REMOTE_ADDR", "")


class RoleRequiredMixin(JsonApiMixin):
    """
    Checks the user is signed in and holds one of ``allowed_roles``.

    class MyView(RoleRequiredMixin, View):
        allowed_roles = [Role.ADMIN, Role.SUPER_ADMIN]

    An empty list only requires authentication.
    """
    allowed_roles: list[str] = []

    def dispatch(self, request, *args, **kwargs):
        if not request.user.is_authenticated:
            return error_response("Authentication required", 401)

        if self.allowed_roles and not (
            request.user.is_superuser or request.user.role in self.allowed_roles
        ):
            return error_response("You do not have permission to perform this action", 403)

        return super().dispatch(request, *args, **kwargs)
