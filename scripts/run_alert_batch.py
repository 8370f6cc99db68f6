"""
アラートチェックの手動実行スクリプト

使い方:
1. バッチ実行:
   python scripts/run_alert_batch.py --batch alert_check_excuse --triggered-by "山田"

2. チェックを1つだけ実行（ドライラン）:
   python scripts/run_alert_batch.py --check postal_code --dry-run

3. 登録済みのバッチ・チェック一覧:
   python scripts/run_alert_batch.py --list
"""
import argparse
import asyncio
import sys
from datetime import date

from carealert.core.exceptions import AlertCheckError
from carealert.db.session import AsyncSessionLocal
from carealert.models.enums import BatchRunType
from carealert.tasks.alert_batch import ALERT_BATCHES, ALERT_CHECKS, run_alert_batch, run_alert_check


def print_result(name: str, result) -> None:
    print(
        f"  {name}: scanned={result.scanned}, created={result.created}, "
        f"existing={result.existing}, failed={result.failed}"
    )


async def run_batch(batch_name: str, triggered_by: str, dry_run: bool) -> int:
    async with AsyncSessionLocal() as db:
        result = await run_alert_batch(
            db=db,
            batch_name=batch_name,
            run_type=BatchRunType.manual,
            triggered_by=triggered_by,
            dry_run=dry_run
        )

    print(f"\n{'='*60}")
    print(f"バッチ: {batch_name}  run_id: {result.batch_run_id or '(未作成)'}")
    print(f"{'='*60}")
    for name, stats in result.stats.items():
        print_result(name, stats)
    if result.ok:
        print("✅ 完了")
        return 0
    print(f"❌ エラー: {result.error}")
    return 1


async def run_single_check(check_name: str, dry_run: bool, from_date) -> int:
    async with AsyncSessionLocal() as db:
        try:
            result = await run_alert_check(db, check_name, dry_run=dry_run, from_date=from_date)
        except Exception as e:
            await db.rollback()
            print(f"❌ エラー: {e}")
            return 1

    print(f"\nチェック: {check_name}{' (DRY RUN)' if dry_run else ''}")
    print_result(check_name, result)
    return 0


def main() -> int:
    parser = argparse.ArgumentParser(description="アラートチェックを手動実行")
    target = parser.add_mutually_exclusive_group()
    target.add_argument('--batch', type=str, help='実行するバッチ名')
    target.add_argument('--check', type=str, help='単体で実行するチェック名')
    target.add_argument('--list', action='store_true', help='登録済みのバッチ・チェックを表示')
    parser.add_argument('--triggered-by', type=str, default=None, help='実行者（alert_batch_runs に記録）')
    parser.add_argument('--from-date', type=date.fromisoformat, default=None, help='対象期間の開始日 (YYYY-MM-DD)')
    parser.add_argument('--dry-run', action='store_true', help='アラートを作成せずに件数のみ表示')

    args = parser.parse_args()

    if args.list:
        print("バッチ:")
        for name, checks in ALERT_BATCHES.items():
            print(f"  {name}: {', '.join(checks)}")
        print("チェック:")
        for name in ALERT_CHECKS:
            print(f"  {name}")
        return 0

    try:
        if args.batch:
            return asyncio.run(run_batch(args.batch, args.triggered_by, args.dry_run))
        if args.check:
            return asyncio.run(run_single_check(args.check, args.dry_run, args.from_date))
    except AlertCheckError as e:
        print(f"❌ {e}")
        return 2

    parser.print_help()
    return 2


if __name__ == "__main__":
    sys.exit(main())
