import argparse
import json
import logging
import sys

from database.db import SessionLocal, init_db
from services.exceptions import FatalImportError
from services.import_service import ImportService


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="과목별 평점 보고서(추출된 텍스트)를 DB로 가져옵니다.")
    parser.add_argument("path", help="보고서 텍스트 파일 경로 (UTF-8)")
    args = parser.parse_args(argv)

    logging.basicConfig(level=logging.INFO)
    init_db()

    service = ImportService(SessionLocal, max_workers=1)
    try:
        report = service.import_file(args.path)
    except FatalImportError as e:
        print(f"❌ 가져오기 중단: {e}", file=sys.stderr)
        return 2
    finally:
        service.shutdown()

    print(json.dumps(report.model_dump(), ensure_ascii=False, indent=2))
    print(f"✅ {report.rows_imported}/{report.total_rows_found}건 반영")
    return 1 if report.rows_failed else 0


if __name__ == "__main__":
    sys.exit(main())
