from __future__ import annotations

import logging
from dataclasses import replace
from typing import Optional, Sequence, Tuple

from ...core.model import CustomCalibration, Mask

logger = logging.getLogger(__name__)

Masks = Tuple[Mask, ...]


def find_mask(masks: Sequence[Mask], mask_id: str) -> Mask:
    for m in masks:
        if m.id == mask_id:
            return m
    raise KeyError(mask_id)


def add_mask(masks: Sequence[Mask], mask: Mask) -> Masks:
    if any(m.id == mask.id for m in masks):
        raise ValueError(f"Duplicate mask id {mask.id}")
    return tuple(masks) + (mask,)


def delete_mask(masks: Sequence[Mask], mask_id: str) -> Masks:
    remaining = tuple(m for m in masks if m.id != mask_id)
    if len(remaining) == len(masks):
        raise KeyError(mask_id)
    logger.debug("mask %s deleted", mask_id)
    return remaining


def replace_mask(masks: Sequence[Mask], mask: Mask) -> Masks:
    """Swap in an edited mask with the same id, keeping order."""
    find_mask(masks, mask.id)
    return tuple(mask if m.id == mask.id else m for m in masks)


def attach_material(masks: Sequence[Mask], mask_id: str, material_id: Optional[str]) -> Masks:
    mask = find_mask(masks, mask_id)
    return replace_mask(masks, replace(mask, material_id=material_id))


def detach_material(masks: Sequence[Mask], mask_id: str) -> Masks:
    return attach_material(masks, mask_id, None)


def set_custom_calibration(masks: Sequence[Mask], mask_id: str,
                           calibration: Optional[CustomCalibration]) -> Masks:
    mask = find_mask(masks, mask_id)
    if calibration is not None:
        logger.info("mask %s: custom calibration %gm (%s)", mask_id,
                    calibration.estimated_length_m, calibration.method.value)
    return replace_mask(masks, replace(mask, custom_calibration=calibration))


def clear_custom_calibration(masks: Sequence[Mask], mask_id: str) -> Masks:
    return set_custom_calibration(masks, mask_id, None)
