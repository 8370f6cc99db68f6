from pydantic import BaseModel, Field
from typing import List, Optional
import uuid

from carealert.models.enums import AlertStatus, AlertStatusSource, VisibleRole


class AlertLogCreate(BaseModel):
    """アラート作成スキーマ"""
    message: str = Field(..., min_length=1)
    dedup_key: Optional[str] = Field(None, max_length=64)
    visible_roles: List[VisibleRole] = Field(
        default_factory=lambda: [VisibleRole.manager, VisibleRole.staff]
    )
    status: AlertStatus = AlertStatus.open
    status_source: AlertStatusSource = AlertStatusSource.manual
    severity: int = Field(2, ge=1, le=3)
    kaipoke_cs_id: Optional[str] = None
    user_id: Optional[str] = None
    shift_id: Optional[str] = None
    rpa_request_id: Optional[str] = None
    created_by: Optional[str] = None
    assigned_to: Optional[str] = None


class AlertLogUpdate(BaseModel):
    """アラート更新スキーマ（人による対応）"""
    status: Optional[AlertStatus] = None
    assigned_to: Optional[str] = None
    result_comment: Optional[str] = None
    result_comment_by: Optional[str] = None


class EnsureResult(BaseModel):
    """ensure_system_alert の結果"""
    created: bool
    id: Optional[uuid.UUID] = None
