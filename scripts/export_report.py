import argparse
import sys
from pathlib import Path

from database.db import SessionLocal
from services.exceptions import EntityNotFoundError
from services.export_service import ReportExporter, load_subject_sheet


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="그룹/과목 평점 보고서를 텍스트 또는 PDF로 내보냅니다.")
    parser.add_argument("group_code")
    parser.add_argument("subject_code")
    parser.add_argument("-o", "--output", help="출력 파일 (생략하면 표준 출력, PDF는 필수)")
    parser.add_argument("--pdf", action="store_true", help="PDF로 내보내기")
    args = parser.parse_args(argv)

    if args.pdf and not args.output:
        parser.error("--pdf 는 -o/--output 이 필요합니다")

    db = SessionLocal()
    try:
        sheet = load_subject_sheet(db, args.group_code, args.subject_code)
    except EntityNotFoundError as e:
        print(f"❌ {e}", file=sys.stderr)
        return 2
    finally:
        db.close()

    exporter = ReportExporter()
    if args.pdf:
        Path(args.output).write_bytes(exporter.render_subject_pdf(sheet))
    elif args.output:
        Path(args.output).write_text(exporter.render_subject_report(sheet), encoding="utf-8")
    else:
        sys.stdout.write(exporter.render_subject_report(sheet))
    return 0


if __name__ == "__main__":
    sys.exit(main())
