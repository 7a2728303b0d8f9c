"""
Episode status — where a decision sits in its lifecycle.

Derived from three facts on every read and never stored, so it cannot drift
from the data it describes.
"""

from typing import Optional

from revcast.decisions.schemas import EpisodeStatus


def derive_episode_status(
    has_scenarios: bool,
    chosen_scenario_id: Optional[str],
    has_outcome: bool,
) -> EpisodeStatus:
    """
    Map (scenarios?, chosen path?, outcome?) to an episode label.

    An outcome without a chosen path cannot exist in practice; if it shows
    up anyway the chosen-path rule wins and the outcome is ignored.
    """
    chosen = bool(chosen_scenario_id)
    if has_outcome and chosen:
        return EpisodeStatus.OUTCOME_SAVED
    if chosen:
        return EpisodeStatus.PATH_CHOSEN
    if has_scenarios:
        return EpisodeStatus.EXPLORED
    return EpisodeStatus.DRAFT
