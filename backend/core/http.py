from rest_framework import status
from rest_framework.response import Response


def failure_response(result, http_status=status.HTTP_400_BAD_REQUEST):
    """Render a failed Result as ``{"error", "code"}``."""
    return Response({"error": result.error, "code": result.error_code}, status=http_status)
