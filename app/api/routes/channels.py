"""
Channel API Routes

1. GET  /api/channels/{channel_id}/permissions - Bot access check, delegated
   to the platform permission checker
2. GET  /api/channels - Current intake filters
3. POST /api/channels/monitor - Start or stop monitoring a channel
4. POST /api/channels/monitor-all - Toggle monitoring of every channel
5. POST /api/users/exclude - Exclude or re-include an author
"""

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel
from typing import Optional
import logging

from app.api.dependencies import get_intake_filters, get_query_service
from app.models.api_responses import ChannelPermissions, IntakeFilterSettings
from app.services.intake_filters import IntakeFilters
from app.services.query_service import QueryService

logger = logging.getLogger(__name__)
router = APIRouter()


class ChannelMonitorRequest(BaseModel):
    """Monitor toggle sent from the channel settings page."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    channel_id: str
    monitor: bool


class MonitorAllRequest(BaseModel):
    enabled: bool


class UserExclusionRequest(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    user_id: str
    exclude: bool


class FilterUpdateResponse(BaseModel):
    success: bool
    message: str
    changed: bool = False
    filters: Optional[IntakeFilterSettings] = None


def _settings_of(filters: IntakeFilters) -> IntakeFilterSettings:
    return IntakeFilterSettings(
        monitor_all_channels=filters.monitor_all_channels,
        monitored_channels=filters.monitored_channels(),
        excluded_users=filters.excluded_users(),
        min_content_length=filters.min_content_length,
    )


def _require(value: str, name: str) -> str:
    value = value.strip()
    if not value:
        raise HTTPException(
            status_code=400,
            detail={"success": False, "message": f"{name} is required"},
        )
    return value


@router.get("/channels/{channel_id}/permissions", response_model=ChannelPermissions)
async def channel_permissions(
    channel_id: str,
    queries: QueryService = Depends(get_query_service),
):
    """
    Check whether the bot can read a channel.

    Example:
    - GET /api/channels/1122334455/permissions
      -> {"hasPermissions": false, "missingPermissions": ["READ_MESSAGE_HISTORY"]}
    """
    try:
        return await queries.check_channel_permissions(channel_id)
    except Exception as e:
        logger.error(f"Permission check failed for channel {channel_id}: {e}", exc_info=True)
        raise HTTPException(
            status_code=500,
            detail={"success": False, "message": f"Permission check failed: {str(e)}"},
        )


@router.get("/channels", response_model=IntakeFilterSettings)
async def list_channels(filters: IntakeFilters = Depends(get_intake_filters)):
    """Monitored channels, excluded users and the monitor-all switch."""
    return _settings_of(filters)


@router.post("/channels/monitor", response_model=FilterUpdateResponse)
async def monitor_channel(
    request: ChannelMonitorRequest,
    filters: IntakeFilters = Depends(get_intake_filters),
):
    """
    Start or stop monitoring a channel. Takes effect for the next message.

    Example body:
    {"channelId": "1122334455", "monitor": true}
    """
    channel_id = _require(request.channel_id, "channelId")
    changed = filters.set_channel_monitored(channel_id, request.monitor)
    return FilterUpdateResponse(
        success=True,
        message=f"Channel {channel_id} {'monitored' if request.monitor else 'no longer monitored'}",
        changed=changed,
        filters=_settings_of(filters),
    )


@router.post("/channels/monitor-all", response_model=FilterUpdateResponse)
async def monitor_all_channels(
    request: MonitorAllRequest,
    filters: IntakeFilters = Depends(get_intake_filters),
):
    """Ingest every channel, or only the monitored ones."""
    changed = filters.monitor_all_channels != request.enabled
    filters.set_monitor_all_channels(request.enabled)
    return FilterUpdateResponse(
        success=True,
        message=f"Monitor all channels {'enabled' if request.enabled else 'disabled'}",
        changed=changed,
        filters=_settings_of(filters),
    )


@router.post("/users/exclude", response_model=FilterUpdateResponse)
async def exclude_user(
    request: UserExclusionRequest,
    filters: IntakeFilters = Depends(get_intake_filters),
):
    """
    Exclude an author from analysis, or include them again.

    Example body:
    {"userId": "U123", "exclude": true}
    """
    user_id = _require(request.user_id, "userId")
    changed = filters.set_user_excluded(user_id, request.exclude)
    return FilterUpdateResponse(
        success=True,
        message=f"User {user_id} {'excluded from' if request.exclude else 'included in'} analysis",
        changed=changed,
        filters=_settings_of(filters),
    )
