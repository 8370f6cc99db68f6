from datetime import date, time
from typing import List, Optional
from pydantic import BaseModel, ConfigDict, Field


class ShiftWithRecord(BaseModel):
    """シフトと実施記録を結合した1行"""
    model_config = ConfigDict(from_attributes=True)

    shift_id: int
    kaipoke_cs_id: Optional[str] = None
    client_name: Optional[str] = None

    shift_start_date: date
    shift_start_time: Optional[time] = None
    shift_end_date: Optional[date] = None
    shift_end_time: Optional[time] = None
    service_code: Optional[str] = None

    staff_01_user_id: Optional[str] = None
    staff_02_user_id: Optional[str] = None
    staff_03_user_id: Optional[str] = None
    staff_02_attend_flg: Optional[bool] = None
    staff_03_attend_flg: Optional[bool] = None

    two_person_work_flg: bool = False
    required_staff_count: Optional[int] = None

    record_status: Optional[str] = None

    def attending_staff(self) -> List[tuple[str, str]]:
        """
        実際に訪問するスタッフを (スロット番号, user_id) で返す

        スタッフ01は設定されていれば常に対象。
        スタッフ02/03は同行フラグが True の場合のみ対象。
        """
        slots = [("01", self.staff_01_user_id, True)]
        slots.append(("02", self.staff_02_user_id, self.staff_02_attend_flg is True))
        slots.append(("03", self.staff_03_user_id, self.staff_03_attend_flg is True))
        return [(slot, user_id) for slot, user_id, attending in slots if user_id and attending]


class ShiftCertJudgement(BaseModel):
    """シフト1件の資格判定結果"""
    shift_id: int
    compliant: bool
    required_keys: List[str] = Field(default_factory=list)
    missing_keys: List[str] = Field(default_factory=list)
    required_staff_count: int = 1
    ok_staff_count: int = 0
    reasons: List[str] = Field(default_factory=list)
