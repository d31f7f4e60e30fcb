from typing import get_args

from reconciliation.config import Settings
from reconciliation.log import _LOG_LEVEL_MAP


def test_level_map_covers_exactly_the_configurable_levels():
    levels = get_args(Settings.model_fields["log_level"].annotation)

    assert {level.lower() for level in levels} == set(_LOG_LEVEL_MAP)
