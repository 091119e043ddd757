"""Abstract document renderer interface."""

import logging
import os
from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from klirr.domain.entities import RenderInput
from klirr.domain.errors import SavePdf

logger = logging.getLogger("klirr.render")

Pdf = bytes


@dataclass(frozen=True)
class StaticLayout:
    """Page geometry and typography shared by every invoice.

    ``font_path`` points at a TrueType font covering the invoice text; the
    core Helvetica font is used when it is unset.
    """

    margin_mm: float = 15.0
    font_family: str = "Helvetica"
    font_path: Optional[Path] = None
    bold_font_path: Optional[Path] = None
    emphasize_color_hex: str = "#e6007a"
    base_font_size: float = 9.0
    title_font_size: float = 20.0


class DocumentRenderer(ABC):
    """Turns a complete render input into PDF bytes."""

    @abstractmethod
    def render(self, render_input: RenderInput, layout: StaticLayout) -> Pdf:
        """Render the invoice.

        Raises:
            PdfCompile: If the document cannot be produced
        """
        pass


def save_pdf(pdf: Pdf, path: Path) -> Path:
    """Write ``pdf`` to ``path``, creating parent directories.

    Raises:
        SavePdf: If the file cannot be written
    """
    path = Path(path)
    tmp = path.with_name(f".{path.name}.tmp")
    written = False
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(tmp, "wb") as f:
            f.write(pdf)
        os.replace(tmp, path)
        written = True
    except OSError as e:
        raise SavePdf(f"Could not save PDF to '{path}': {e}")
    finally:
        if not written and tmp.exists():
            tmp.unlink()
    logger.info("Saved invoice to %s", path)
    return path
