"""Block-range gating for superseded deployments."""

import logging

logger = logging.getLogger(__name__)


def is_event_block_number_lt(event_name: str, block_number: int, end_block: int | None) -> bool:
    """Should a legacy handler still process this input.

    Some vault deployments were replaced by a registry-tracked successor at a known block.
    From that block on, their custom handlers must stop to avoid double processing.

    :param event_name:
        Handler label, for the log line

    :param end_block:
        Cutover block. ``None`` means the deployment has no cutover.

    :return:
        True if ``block_number`` is before the cutover
    """
    if end_block is None:
        return True
    if block_number < end_block:
        return True
    logger.info("Skipping %s at block %d, handler ended at block %d", event_name, block_number, end_block)
    return False
