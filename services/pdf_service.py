from jinja2 import Environment, FileSystemLoader, select_autoescape
from pathlib import Path
from typing import Dict, Any

from config.settings import settings


def make_template_env(template_dir=None) -> Environment:
    """보고서 템플릿 환경 (.txt 는 그대로, .html 은 자동 이스케이프)"""
    return Environment(
        loader=FileSystemLoader(Path(template_dir or settings.TEMPLATE_DIR)),
        autoescape=select_autoescape(["html"]),
        trim_blocks=True,
        lstrip_blocks=True,
        keep_trailing_newline=True,
    )


class PDFService:
    def __init__(self, template_dir=None):
        # 템플릿 환경 설정
        self.env = make_template_env(template_dir)

    def _render_template(self, template_name: str, data: Dict[str, Any]) -> str:
        """템플릿을 렌더링하여 HTML 생성"""
        template = self.env.get_template(template_name)
        return template.render(**data)

    def _html_to_pdf(self, html_content: str) -> bytes:
        """HTML을 PDF로 변환"""
        # WeasyPrint는 시스템 라이브러리(pango)를 로드하므로 실제 변환 시점에 import
        import weasyprint

        return weasyprint.HTML(string=html_content).write_pdf()

    def generate_subject_report_pdf(self, data: Dict[str, Any]) -> bytes:
        """과목별 평점 보고서 PDF 생성"""
        html = self._render_template("subject_report.html", data)
        return self._html_to_pdf(html)
