# services/alert_state.py
import logging
from collections import OrderedDict
from enum import Enum, IntEnum
from typing import Iterable, NamedTuple, Tuple

logger = logging.getLogger(__name__)


class AlertLevel(IntEnum):
    """How much has already been posted for a token. Only ever moves up."""
    NONE = 0
    PARTIAL = 1
    FULL = 2


class AlertAction(Enum):
    NOTHING = "nothing"
    SEND_PARTIAL = "send_partial"
    SEND_FULL = "send_full"


class AlertDecision(NamedTuple):
    action: AlertAction
    new_level: AlertLevel


def decide_alert(current: AlertLevel, has_full_info: bool) -> AlertDecision:
    """
    Transition table:

        FULL     -> nothing (terminal)
        PARTIAL  -> SEND_FULL if the listing is now complete, else wait
        NONE     -> SEND_FULL if complete, else SEND_PARTIAL
    """
    if current == AlertLevel.FULL:
        return AlertDecision(AlertAction.NOTHING, AlertLevel.FULL)

    if current == AlertLevel.PARTIAL:
        if has_full_info:
            return AlertDecision(AlertAction.SEND_FULL, AlertLevel.FULL)
        return AlertDecision(AlertAction.NOTHING, AlertLevel.PARTIAL)

    if has_full_info:
        return AlertDecision(AlertAction.SEND_FULL, AlertLevel.FULL)
    return AlertDecision(AlertAction.SEND_PARTIAL, AlertLevel.PARTIAL)


class AlertStateTracker:
    """
    Remembers which alert level was sent for recent token ids.

    `decide()` only reads; the caller applies the result with `commit()` after
    Telegram accepted the message, so a failed send is retried next cycle.
    Only the `max_entries` most recently touched ids are kept.
    """

    def __init__(self, max_entries: int = 500):
        if max_entries < 1:
            raise ValueError("max_entries must be >= 1")
        self.max_entries = max_entries
        self._levels: "OrderedDict[int, AlertLevel]" = OrderedDict()

    def __len__(self) -> int:
        return len(self._levels)

    def __contains__(self, token_id: int) -> bool:
        return token_id in self._levels

    def level_of(self, token_id: int) -> AlertLevel:
        return self._levels.get(token_id, AlertLevel.NONE)

    def decide(self, token_id: int, has_full_info: bool) -> AlertDecision:
        return decide_alert(self.level_of(token_id), has_full_info)

    def commit(self, token_id: int, level: AlertLevel) -> bool:
        """Records `level` for `token_id`. Returns False for no-op or backward moves."""
        current = self.level_of(token_id)
        if level <= current:
            if level < current:
                logger.warning(
                    f"⚠️ Ignoring downgrade of token {token_id}: {current.name} -> {level.name}"
                )
            return False

        self._levels[token_id] = level
        self._levels.move_to_end(token_id)
        self._evict()
        return True

    def restore(self, entries: Iterable[Tuple[int, AlertLevel]]):
        """Seeds state from storage. Entries are expected oldest first."""
        for token_id, level in entries:
            if level == AlertLevel.NONE:
                continue
            self.commit(token_id, level)
        logger.info(f"📦 Restored alert state for {len(self._levels)} tokens")

    def _evict(self):
        while len(self._levels) > self.max_entries:
            token_id, level = self._levels.popitem(last=False)
            logger.debug(f"🧹 Evicted token {token_id} ({level.name}) from alert state")
