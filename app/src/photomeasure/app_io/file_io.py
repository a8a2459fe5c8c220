from __future__ import annotations

import json
import logging
from dataclasses import asdict, fields
from pathlib import Path
from typing import Union

import pymupdf as fitz
from PIL import Image

from ..core.config import EngineConfig
from ..core.errors import ConfigError

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]

PDF_RENDER_ZOOM: int = 2


def _pdf_page_to_image(pdf_path: PathLike, page_number: int = 0) -> Image.Image:
    """Rasterise one page of a PDF site plan at twice its nominal resolution."""
    with fitz.open(str(pdf_path)) as doc:
        if page_number < 0 or page_number >= len(doc):
            raise ValueError(f"Invalid page number {page_number} for PDF with {len(doc)} pages")
        page = doc.load_page(page_number)
        mat = fitz.Matrix(PDF_RENDER_ZOOM, PDF_RENDER_ZOOM)
        pix = page.get_pixmap(matrix=mat)
        mode = 'RGB' if pix.alpha == 0 else 'RGBA'
        return Image.frombytes(mode, (pix.width, pix.height), pix.samples)


def load_photo(path: PathLike, page_number: int = 0) -> Image.Image:
    """Open a photo, or the given page of a PDF, as an RGB(A) Pillow image."""
    path = Path(path)
    if path.suffix.lower() == '.pdf':
        img = _pdf_page_to_image(path, page_number)
    else:
        with Image.open(path) as src:
            src.load()
            img = src.convert('RGBA' if 'A' in src.getbands() else 'RGB')
    logger.info("loaded %s (%dx%d)", path.name, img.width, img.height)
    return img


def _config_from_dict(data: dict) -> EngineConfig:
    known = {f.name for f in fields(EngineConfig)}
    unknown = sorted(set(data) - known)
    if unknown:
        logger.warning("ignoring unknown config keys: %s", ", ".join(unknown))
    values = {k: v for k, v in data.items() if k in known}
    ranges = values.get('section_width_ranges_mm')
    if ranges is not None:
        try:
            values['section_width_ranges_mm'] = {str(k): (float(v[0]), float(v[1])) for k, v in ranges.items()}
        except (AttributeError, TypeError, ValueError, IndexError) as e:
            raise ConfigError(f"Invalid section_width_ranges_mm: {e}") from e
    return EngineConfig(**values)


def load_config(path: PathLike) -> EngineConfig:
    try:
        with open(path, 'r', encoding='utf-8') as f:
            data = json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        raise ConfigError(f"Failed to load configuration from {path}: {e}") from e
    if not isinstance(data, dict):
        raise ConfigError(f"Configuration in {path} must be a JSON object")
    return _config_from_dict(data)


def save_config(config: EngineConfig, path: PathLike) -> None:
    try:
        with open(path, 'w', encoding='utf-8') as f:
            json.dump(asdict(config), f, indent=2)
    except OSError as e:
        raise ConfigError(f"Failed to save configuration to {path}: {e}") from e
