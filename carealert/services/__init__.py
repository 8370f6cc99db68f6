"""
Services層

ルールチェックから使われる判定ロジックとアラート作成を担当する層。

命名規則:
- ファイル名: snake_case (例: shift_certificate_service.py)
- クラス名: PascalCase (例: ShiftCertificateService)
"""

from .service_keys import ServiceKeyTable
from .shift_certificate_service import ShiftCertificateService

__all__ = [
    "ServiceKeyTable",
    "ShiftCertificateService",
]
