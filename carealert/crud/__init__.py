from .crud_alert_log import alert_log
from .crud_alert_batch_run import alert_batch_run
from .crud_cs_kaipoke_info import cs_kaipoke_info
from .crud_worker import worker
from .crud_shift import shift
from .crud_user_doc_master import user_doc_master
from .crud_lw_group import lw_group
from .crud_event_task import event_task
from .crud_fax import fax
