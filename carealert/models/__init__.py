# flake8: noqa
from .enums import (
    AlertStatus, AlertStatusSource, VisibleRole,
    BatchRunType, BatchRunStatus, ShiftRecordStatus, DocRequirementType,
    ACTIVE_ALERT_STATUSES, EventTaskStatus, OPEN_EVENT_TASK_STATUSES,
)
from .alert_log import AlertLog
from .alert_batch_run import AlertBatchRun
from .cs_kaipoke_info import CsKaipokeInfo
from .worker import Worker, FormEntry
from .shift import Shift, ShiftRecord, ShiftServiceCode
from .user_doc_master import UserDocMaster
from .lw_group import LwGroupChannel
from .event_task import EventTask, EventTemplate
from .fax import Fax
