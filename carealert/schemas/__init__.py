from .alert_log import AlertLogCreate, AlertLogUpdate, EnsureResult
from .alert_check import CheckResult, BatchRunResult, CheckRunResponse
from .certificate import CertificateDoc, CertificateMasterRow
from .shift import ShiftWithRecord, ShiftCertJudgement
