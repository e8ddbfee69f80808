"""보고서 가져오기 파이프라인 예외 계층"""


class ReportImportError(Exception):
    """가져오기 파이프라인 공통 예외"""


# =========================================================
# 치명적 오류: 쓰기 전에 전체 가져오기를 중단
# =========================================================

class FatalImportError(ReportImportError):
    code = "IMPORT_ABORTED"


class MissingFieldError(FatalImportError):
    code = "MISSING_FIELD"

    def __init__(self, field: str, message: str = None):
        self.field = field
        super().__init__(message or f"보고서에서 '{field}' 항목을 찾을 수 없습니다")


class UnsupportedReportError(FatalImportError):
    code = "UNSUPPORTED_REPORT"


class EmptyReportError(FatalImportError):
    code = "EMPTY_REPORT"


# =========================================================
# 행 단위 오류: 실패 목록에 기록하고 다음 행 계속 처리
# =========================================================

class RowValidationError(ReportImportError):
    pass


class InvalidScoreError(RowValidationError):
    pass


class InvalidNameError(RowValidationError):
    pass


class InvalidOrdinalError(RowValidationError):
    pass


# =========================================================
# 조회 오류
# =========================================================

class EntityNotFoundError(Exception):
    code = "NOT_FOUND"
