"""
System Routes - health check and metrics
"""

from flask import Blueprint, Response

from notesync.api_responses import success_response, handle_api_errors
from notesync.constants import BUILD_VERSION
from notesync.metrics import metrics_payload
from notesync.services import get_broadcaster

system_bp = Blueprint("system", __name__)


@system_bp.get("/api/health")
@handle_api_errors
def health_check_api():
    """Simple health check endpoint"""
    broadcaster = get_broadcaster()
    return success_response(
        data={
            "status": "healthy",
            "version": BUILD_VERSION,
            "realtime": {"running": broadcaster.running, "subscribers": broadcaster.subscriber_count},
        }
    )


@system_bp.get("/metrics")
def metrics_api():
    body, content_type = metrics_payload()
    return Response(body, mimetype=content_type)
