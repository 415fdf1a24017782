"""Document renderer: lays out a document with its template and paints it to PDF.

Rendering is a pure function of the document, the issuer snapshot, the
assigned number, the issue date and the template choice. A malformed
logo never aborts a render; the logo is dropped and the result says so.
"""

import logging
import time
from dataclasses import dataclass, field
from datetime import date

from prometheus_client import Counter, Histogram

from services.documents.schema import Document, IssuerProfile, TemplateChoice
from services.rendering.base import DocumentTemplate, RenderContext
from services.rendering.classic import ClassicTemplate
from services.rendering.labels import build_file_name
from services.rendering.layout import Page
from services.rendering.logo import LogoDecodeError, LogoImage, decode_logo
from services.rendering.modern import ModernTemplate
from services.rendering.painter import paint
from services.shared.config import Settings
from services.totals.calculator import compute_totals

logger = logging.getLogger(__name__)


document_render_duration_seconds = Histogram(
    "document_render_duration_seconds",
    "Document layout and PDF painting duration in seconds",
    ["template"],
    buckets=(0.01, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5),
)

logo_render_degraded_total = Counter(
    "logo_render_degraded_total",
    "Renders that omitted an undecodable issuer logo",
)


@dataclass
class RenderResult:
    """Result of rendering a document.

    Attributes:
        content: PDF file bytes
        file_name: Suggested download name
        pages: Laid-out page sequence the PDF was painted from
        logo_omitted: True when a configured logo could not be decoded
    """

    content: bytes
    file_name: str
    pages: list[Page] = field(default_factory=list)
    logo_omitted: bool = False

    @property
    def page_count(self) -> int:
        return len(self.pages)

    def texts(self) -> list[str]:
        """Every text string across all pages, in order."""
        return [text for page in self.pages for text in page.texts()]


class TemplateRegistry:
    """Maps each template choice to its layout implementation."""

    _templates: dict[TemplateChoice, type[DocumentTemplate]] = {
        TemplateChoice.CLASSIC: ClassicTemplate,
        TemplateChoice.MODERN: ModernTemplate,
    }

    @classmethod
    def get_template(cls, choice: TemplateChoice) -> DocumentTemplate:
        """Instantiate the template for a choice.

        Raises:
            ValueError: If no template is registered for the choice
        """
        if choice not in cls._templates:
            raise ValueError(f"No template registered for '{choice.value}'")
        return cls._templates[choice]()

    @classmethod
    def list_templates(cls) -> list[TemplateChoice]:
        return list(cls._templates.keys())


class DocumentRenderer:
    """Renders documents to PDF using the configured currency."""

    def __init__(self, settings: Settings) -> None:
        """Initialize renderer.

        Args:
            settings: Application settings
        """
        self.settings = settings

    def _load_logo(self, issuer: IssuerProfile | None) -> tuple[LogoImage | None, bool]:
        if issuer is None:
            return None, False
        try:
            return decode_logo(issuer.logo), False
        except LogoDecodeError as e:
            logger.warning(f"Omitting issuer logo from render: {e}")
            logo_render_degraded_total.inc()
            return None, True

    def render(
        self,
        document: Document,
        issuer: IssuerProfile | None,
        document_number: str,
        issue_date: date | None = None,
    ) -> RenderResult:
        """Render a document.

        Args:
            document: Document to render
            issuer: Issuer snapshot, or None to print a placeholder
            document_number: Assigned number, e.g. "F-0001"
            issue_date: Date printed on the document (defaults to today)

        Returns:
            RenderResult with the PDF bytes and suggested file name
        """
        start = time.time()
        template = TemplateRegistry.get_template(document.template)
        logo, logo_omitted = self._load_logo(issuer)

        ctx = RenderContext(
            document=document,
            issuer=issuer,
            document_number=document_number,
            issue_date=issue_date or date.today(),
            totals=compute_totals(document.items, document.document_type, document.tax_rate_percent),
            logo=logo,
            currency_symbol=self.settings.currency_symbol,
        )
        pages = template.layout(ctx)
        content = paint(
            pages,
            title=f"{ctx.title} {document_number}",
            author=issuer.legal_name if issuer else self.settings.service_name,
        )

        document_render_duration_seconds.labels(template=template.name).observe(time.time() - start)
        logger.info(f"Rendered {document_number} with {template.name} template ({len(pages)} pages)")

        return RenderResult(
            content=content,
            file_name=build_file_name(document.document_type, document_number, document.customer_name),
            pages=pages,
            logo_omitted=logo_omitted,
        )
