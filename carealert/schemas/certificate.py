from typing import Optional
from pydantic import BaseModel, ConfigDict


class CertificateDoc(BaseModel):
    """スタッフが提出した資格書類（添付ファイル）"""
    model_config = ConfigDict(from_attributes=True)

    label: Optional[str] = None
    type: Optional[str] = None


class CertificateMasterRow(BaseModel):
    """資格マスタの1行（user_doc_master）"""
    model_config = ConfigDict(from_attributes=True)

    category: str
    label: Optional[str] = None
    doc_group: Optional[str] = None
    is_active: Optional[bool] = None
    sort_order: Optional[int] = None
