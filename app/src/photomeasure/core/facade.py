from __future__ import annotations

"""
Unified facade that re-exports the engine's operations from their feature
modules, so a host UI can bind to one import.
"""

# Navigation
from ..features.navigation.coord import (
    image_to_screen as coord_to_screen,
    screen_to_image as coord_to_image,
)
from ..features.navigation.zoom import (
    zoom_at_point as zoom_at,
    zoom_in as zoom_in,
    zoom_out as zoom_out,
    fit_photo_space as zoom_fit,
)
from ..features.navigation.pan import pan_by as pan_by

# Calibration
from ..features.calibration.calibrate import (
    start_calibration as cal_start,
    place_point as cal_place_point,
    update_preview as cal_preview,
    adjust_point as cal_adjust_point,
    enter_length as cal_enter_length,
    commit_calibration as cal_commit,
    cancel_calibration as cal_cancel,
    delete_sample as cal_delete_sample,
)

# Path capture
from ..features.editing.draw import (
    start_path as draw_start,
    append_point as draw_append,
    pop_point as draw_pop,
    is_closing_click as draw_is_closing_click,
    commit_path as draw_commit,
    cancel_path as draw_cancel,
    switch_tool as draw_switch_tool,
)
from ..features.editing.snapping import apply_snapping as snap_apply
from ..features.editing.edge_map import build_edge_map as snap_build_edge_map

# Vertex editing
from ..features.editing.vertices import (
    hit_test_vertex as vertex_hit_test,
    insert_vertex as vertex_insert,
    remove_vertex as vertex_remove,
    move_vertex as vertex_move,
    toggle_vertex_kind as vertex_toggle_kind,
)

# Mask collection
from ..features.editing.masks import (
    add_mask as masks_add,
    delete_mask as masks_delete,
    replace_mask as masks_replace,
    attach_material as masks_attach_material,
    detach_material as masks_detach_material,
    set_custom_calibration as masks_set_custom_calibration,
)

# Measurement
from ..features.measurement.metrics import compute_metrics as measure_metrics
from ..features.measurement.costing import (
    cost_for_mask as measure_cost,
    project_totals as measure_project_totals,
)
from ..features.measurement.sections import generate_sections as sections_generate

# File I/O + export
from ..app_io.file_io import (
    load_photo as file_load_photo,
    load_config as file_load_config,
    save_config as file_save_config,
)
from ..app_io.export_mod import export_csv as export_csv
