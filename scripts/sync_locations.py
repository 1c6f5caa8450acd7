"""
오프라인 큐 동기화 스크립트

로컬 저장소(SqliteLocalStore)에 쌓인 위치 변경을 서버로 보내거나,
대기 중인 변경 수 / 캐시된 위치 목록을 확인합니다.

Usage:
    python scripts/sync_locations.py --token <access_token> sync
    python scripts/sync_locations.py pending
    python scripts/sync_locations.py --token <access_token> list <user_id>
"""

import sys
import os

sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from dependency_injector import providers

from trashdrop.config import settings
from trashdrop.containers import Container
from trashdrop.logging_config import setup_logging


def build_reconciler(token: str, store_path: str, offline: bool):
    container = Container()
    container.offline.access_token.override(providers.Object(token))
    if store_path:
        container.config.config().LOCAL_STORE_PATH = store_path
    reconciler = container.offline.reconciler()
    reconciler.connectivity.set_online(not offline)
    return reconciler


def main(argv=None):
    import argparse

    ap = argparse.ArgumentParser(description="TrashDrop offline location sync")
    ap.add_argument("--token", default=os.getenv("TRASHDROP_ACCESS_TOKEN", ""))
    ap.add_argument("--store", default=settings.LOCAL_STORE_PATH)
    ap.add_argument("--offline", action="store_true", help="treat the network as unreachable")
    sub = ap.add_subparsers(dest="command", required=True)
    sub.add_parser("sync")
    pending = sub.add_parser("pending")
    pending.add_argument("user_id", nargs="?")
    listing = sub.add_parser("list")
    listing.add_argument("user_id")
    args = ap.parse_args(argv)

    setup_logging(settings.LOG_LEVEL, settings.LOG_FORMAT)
    reconciler = build_reconciler(args.token, args.store, args.offline)

    try:
        if args.command == "sync":
            report = reconciler.sync_with_server()
            print(
                f"{'✅' if report.success else '⚠️'} 동기화 결과: "
                f"생성 {len(report.created)}, 수정 {len(report.updated)}, "
                f"삭제 {len(report.deleted)}, 오류 {len(report.errors)}, 남은 변경 {report.remaining}"
            )
            for error in report.errors:
                state = "보류" if error.retained else "폐기"
                print(f"   [{state}] {error.operation.value} {error.location_id}: {error.error}")
            return 0 if report.success else 1

        if args.command == "pending":
            print(f"대기 중인 변경: {reconciler.get_pending_sync_count(args.user_id)}")
            return 0

        result = reconciler.load_locations(args.user_id)
        print(f"📍 위치 {len(result.data)}개 ({'오프라인' if result.offline else '온라인'})")
        for record in result.data:
            marks = ("*" if record.is_default else " ") + ("~" if record.pending_sync else " ")
            print(f"  {marks} {record.id}  {record.name}  {record.address or ''}")
        return 0

    except Exception as e:
        print(f"❌ 실행 실패: {str(e)}")
        raise
    finally:
        reconciler.local_store.close()
        reconciler.gateway.close()


if __name__ == "__main__":
    sys.exit(main())
