"""
Value resolution - turn a field and its config into one concrete value.

An explicit spec always wins. Without one, the value is derived from the
field family: weighted option draw for choice and scale fields, one draw per
row for grids, a pick over literal options for text fields and a day drawn
from the configured range for dates. File fields are never written.
"""

import datetime
import logging
import random
from typing import Any, Dict, List, Optional

from ..config import config as app_config
from ..mapping import Field, FieldType
from ..randomization import (
    DistributionKind,
    DistributionSpec,
    PickSpec,
    RangeSpec,
    default_probabilities,
    generate,
    split_text_options,
)
from .models import FieldConfig

logger = logging.getLogger(__name__)


def _weighted_draw(options: List[str], probabilities: Dict[str, float], rng: random.Random) -> Optional[str]:
    weights = probabilities or default_probabilities(options)
    return generate(DistributionSpec(options=tuple(options), kind=DistributionKind.WEIGHTED, weights=dict(weights)), rng)


def row_probabilities(config: FieldConfig, row_index: int, row_label: str) -> Dict[str, float]:
    """Row map by index key first, then by row label."""
    grid = config.grid_probabilities or {}
    return grid.get(str(row_index)) or grid.get(row_label) or {}


def resolve_grid(field: Field, config: FieldConfig, rng: random.Random) -> Dict[str, str]:
    columns = list(field.grid_columns or [])
    result: Dict[str, str] = {}
    if not columns:
        return result
    for index, row_label in enumerate(field.grid_rows or []):
        choice = _weighted_draw(columns, row_probabilities(config, index, row_label), rng)
        if choice is not None:
            result[row_label] = choice
    return result


def parse_iso_date(value: str) -> datetime.date:
    return datetime.date.fromisoformat(str(value).strip())


def date_range_errors(config: FieldConfig) -> List[str]:
    if not config.date_range:
        return []
    try:
        start, end = (parse_iso_date(v) for v in config.date_range)
    except ValueError:
        return [f"{config.field_id}: date_range must hold two ISO dates (YYYY-MM-DD)"]
    if start > end:
        return [f"{config.field_id}: date_range start {start} is after end {end}"]
    return []


def resolve_date(config: FieldConfig, rng: random.Random) -> Optional[str]:
    if not config.date_range:
        return None
    start, end = (parse_iso_date(v) for v in config.date_range)
    ordinal = generate(RangeSpec(min=start.toordinal(), max=end.toordinal()), rng)
    return datetime.date.fromordinal(ordinal).isoformat()


def resolve_value(field: Field, config: FieldConfig, rng: Optional[random.Random] = None) -> Any:
    """
    Produce the value to write for one random-mode field.

    Args:
        field: Field from the current snapshot
        config: Its configuration
        rng: Random source

    Returns:
        The value, or None when nothing should be written
    """
    rng = rng or random.Random()

    if field.type == FieldType.FILE:
        return None

    if config.spec is not None:
        return generate(config.spec, rng)

    if field.type.is_choice:
        options = list(field.options or [])
        if not options:
            logger.debug(f"Field {field.id} has no options to draw from")
            return None
        return _weighted_draw(options, config.probabilities, rng)

    if field.type.is_grid:
        return resolve_grid(field, config, rng) or None

    if field.type == FieldType.DATE:
        return resolve_date(config, rng)

    if field.type.is_text:
        options = split_text_options(config.text_options, app_config.text_option_delimiter)
        return generate(PickSpec(options=tuple(options)), rng) if options else None

    return None
