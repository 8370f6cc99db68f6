from typing import Dict, Optional
from pydantic import BaseModel, Field


class CheckResult(BaseModel):
    """ルールチェック1回分の集計"""
    scanned: int = Field(0, ge=0, description="チェック対象として検出した件数")
    created: int = Field(0, ge=0, description="新規に作成したアラート件数")
    existing: int = Field(0, ge=0, description="未対応アラートが既に存在した件数")
    failed: int = Field(0, ge=0, description="アラート作成に失敗した件数")

    def __add__(self, other: "CheckResult") -> "CheckResult":
        return CheckResult(
            scanned=self.scanned + other.scanned,
            created=self.created + other.created,
            existing=self.existing + other.existing,
            failed=self.failed + other.failed,
        )


class BatchRunResult(BaseModel):
    """バッチ実行結果"""
    ok: bool
    batch_run_id: str = ""
    stats: Dict[str, CheckResult] = Field(default_factory=dict)
    errors: Dict[str, str] = Field(default_factory=dict, description="チェック名ごとのエラー")
    error: Optional[str] = None

    @property
    def total(self) -> CheckResult:
        return self.stats.get("total", CheckResult())


class CheckRunResponse(BaseModel):
    """単体チェック実行APIのレスポンス"""
    ok: bool = True
    check: str
    dry_run: bool = False
    result: CheckResult
