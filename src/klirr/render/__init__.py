"""Document rendering for klirr application."""

from klirr.render.base import DocumentRenderer, Pdf, StaticLayout, save_pdf
from klirr.render.fpdf_renderer import FpdfRenderer

__all__ = ["DocumentRenderer", "FpdfRenderer", "Pdf", "StaticLayout", "save_pdf"]
