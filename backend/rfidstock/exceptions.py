"""
Errors raised by the tenant resolution and access-control layer.

Authorization predicates do not raise these for "not found" or "not permitted";
they return False / []. These are raised by operations that must stop the
request, and main.py maps each to its HTTP status.
"""
from fastapi import status


class AccessLayerError(Exception):
    """Base class. detail is safe to return to the client."""
    http_status = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, detail: str = ""):
        super().__init__(detail)
        self.detail = detail or self.__class__.__name__


class TenantNotFound(AccessLayerError):
    http_status = status.HTTP_404_NOT_FOUND

    def __init__(self, client_code: str):
        super().__init__(f"Tenant not found: {client_code}")
        self.client_code = client_code


class TenantInactive(AccessLayerError):
    http_status = status.HTTP_403_FORBIDDEN

    def __init__(self, client_code: str):
        super().__init__("Account suspended. Please contact support.")
        self.client_code = client_code


class TenantUnreachable(AccessLayerError):
    """Tenant store could not be opened or queried (network, DNS, timeout)."""
    http_status = status.HTTP_503_SERVICE_UNAVAILABLE

    def __init__(self, client_code: str, reason: str = ""):
        super().__init__("Tenant database is temporarily unreachable.")
        self.client_code = client_code
        self.reason = reason


class UserNotFound(AccessLayerError):
    http_status = status.HTTP_404_NOT_FOUND

    def __init__(self, user_id):
        super().__init__("User not found.")
        self.user_id = user_id


class ValidationError(AccessLayerError):
    http_status = status.HTTP_400_BAD_REQUEST


class AuthorizationDenied(AccessLayerError):
    http_status = status.HTTP_403_FORBIDDEN

    def __init__(self, detail: str = "Access denied."):
        super().__init__(detail)
