"""
保有資格からの提供可能サービス判定

I/Oを持たない純粋関数のみを置く。
"""
import re
from typing import Any, Iterable, List, Optional

CERTIFICATE_CATEGORY = "certificate"

_LINE_BREAKS = re.compile(r"\r?\n")
_SPACES = re.compile(r"[ \t　]+")


def normalize_label(label: Optional[str]) -> str:
    """ラベルの正規化（改行・半角/全角空白の除去 + trim）"""
    return _SPACES.sub("", _LINE_BREAKS.sub("", label or "")).strip()


def _service_key_of(row: Any) -> Optional[str]:
    return getattr(row, "doc_group", None)


def determine_services_from_certificates(
    cert_docs: Optional[Iterable[Any]],
    master_rows: Optional[Iterable[Any]],
) -> List[str]:
    """
    保有資格と資格マスタから、提供可能なサービスキーの一覧を返す

    1. マスタを category == "certificate" かつ is_active が False でない行に絞る
    2. 正規化ラベル → サービスキー（doc_group）の対応表を作る（同名は後勝ち）
    3. 保有資格のラベルを対応表で引き、見つかったサービスキーを集める

    マスタに無いラベル、サービスキーを持たない行は無視する。
    保有資格が空なら空リスト（＝どのサービスも不可）を返す。

    Args:
        cert_docs: label 属性を持つ保有資格の一覧
        master_rows: category / label / doc_group / is_active 属性を持つマスタ行

    Returns:
        List[str]: サービスキー（順不同・重複なし）
    """
    label_to_key = {}
    for row in master_rows or []:
        if getattr(row, "category", None) != CERTIFICATE_CATEGORY:
            continue
        if getattr(row, "is_active", None) is False:
            continue
        label = normalize_label(getattr(row, "label", None))
        key = _service_key_of(row)
        if label and key:
            label_to_key[label] = key

    found = set()
    for doc in cert_docs or []:
        label = normalize_label(getattr(doc, "label", None))
        if not label:
            continue
        key = label_to_key.get(label)
        if key:
            found.add(key)

    return list(found)
