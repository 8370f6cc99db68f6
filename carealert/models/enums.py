import enum

class AlertStatus(str, enum.Enum):
    open = 'open'
    in_progress = 'in_progress'
    done = 'done'
    muted = 'muted'
    cancelled = 'cancelled'

# 重複判定の対象となる（まだ人が対応を終えていない）ステータス
ACTIVE_ALERT_STATUSES = (AlertStatus.open, AlertStatus.in_progress, AlertStatus.muted)

class AlertStatusSource(str, enum.Enum):
    system = 'system'  # バッチ（ルールチェック）が作成
    manual = 'manual'  # 人が手動で作成

class VisibleRole(str, enum.Enum):
    admin = 'admin'
    manager = 'manager'
    staff = 'staff'

class BatchRunType(str, enum.Enum):
    manual = 'manual'
    scheduled = 'scheduled'

class BatchRunStatus(str, enum.Enum):
    running = 'running'
    completed = 'completed'
    failed = 'failed'

class ShiftRecordStatus(str, enum.Enum):
    """実施記録のステータス"""
    draft = 'draft'
    submitted = 'submitted'
    approved = 'approved'

class DocRequirementType(str, enum.Enum):
    """サービスコードが要求する書類の種別"""
    contract = 'contract'
    plan = 'plan'

class EventTaskStatus(str, enum.Enum):
    """イベントタスクのステータス"""
    open = 'open'
    in_progress = 'in_progress'
    done = 'done'
    cancelled = 'cancelled'
    muted = 'muted'

# 期限超過アラートの対象（cancelled / muted は対象外）
OPEN_EVENT_TASK_STATUSES = (EventTaskStatus.open, EventTaskStatus.in_progress)
