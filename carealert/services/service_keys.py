"""
サービスコード → 必要資格キー 対応表

シフトのサービスコードごとに、スタッフが保有していなければならない
サービスキー（資格マスタの doc_group）を定義する。チェック間で対応表が
食い違わないよう、ここを唯一の定義とする。
"""
from typing import Dict, List, Mapping, Optional, Sequence

# サービスキー
HOME_HELP = "home_help"              # 居宅介護（初任者研修・介護福祉士 等）
HEAVY_HELP = "heavy_help"            # 重度訪問介護
MOBILITY = "mobility"                # 行動援護・移動支援
ACCOMPANY = "accompany"              # 同行援護

KODOENGO = "行動援護"

DEFAULT_SERVICE_KEYS: Dict[str, List[str]] = {
    "身体介護": [HOME_HELP],
    "家事援助": [HOME_HELP],
    "通院等介助": [HOME_HELP],
    "通院等乗降介助": [HOME_HELP],
    "重度訪問介護": [HEAVY_HELP],
    KODOENGO: [MOBILITY],
    "移動支援": [MOBILITY],
    "同行援護": [ACCOMPANY],
}


class ServiceKeyTable:
    """サービスコードから必要なサービスキーを引く対応表"""

    def __init__(self, mapping: Optional[Mapping[str, Sequence[str]]] = None):
        source = DEFAULT_SERVICE_KEYS if mapping is None else mapping
        self._mapping = {code.strip(): list(keys) for code, keys in source.items()}

    def required_keys(self, service_code: Optional[str]) -> List[str]:
        """
        必要なサービスキーを返す

        対応表に無いサービスコード（または未設定）は空リスト。
        空リストは「特定の資格を要求しない」ことを意味し、判定は常に OK となる。
        """
        if not service_code:
            return []
        return list(self._mapping.get(service_code.strip(), []))


service_key_table = ServiceKeyTable()
