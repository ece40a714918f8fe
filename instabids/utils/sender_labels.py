# instabids/utils/sender_labels.py
"""
Contractor sender labeling.

Homeowners see contractors as "Contractor 1", "Contractor 2", ... instead of
their real identities. Each project stores one alias per contractor, assigned
in order of first interaction (bid or message), so the contractor list and the
thread agree. For senders without a stored alias, whether a message came from
a contractor is decided by a heuristic: `classify` evaluates the named signals
below in order and stops at the first that fires.

Known false positive: a homeowner message that merely mentions the word
"contractor" is classified as a contractor message. This is kept as is.
"""
import logging
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Tuple

logger = logging.getLogger(__name__)


def _get(message: Any, key: str, default: Any = None) -> Any:
    if isinstance(message, Mapping):
        return message.get(key, default)
    return getattr(message, key, default)


def _metadata(message: Any) -> Mapping:
    return _get(message, "metadata") or {}


# --- Signals ---

def mentions_contractor(message: Any) -> bool:
    return "contractor" in (_get(message, "content") or "").lower()


def flagged_from_contractor(message: Any) -> bool:
    return _metadata(message).get("is_from_contractor") is True


def forced_contractor_display(message: Any) -> bool:
    return _metadata(message).get("force_contractor_display") is True


def explicitly_not_own(message: Any) -> bool:
    return _get(message, "is_own") is False


CONTRACTOR_SIGNALS: Tuple[Tuple[str, Callable[[Any], bool]], ...] = (
    ("mentions_contractor", mentions_contractor),
    ("is_from_contractor", flagged_from_contractor),
    ("force_contractor_display", forced_contractor_display),
    ("is_own_false", explicitly_not_own),
)


def matching_signal(message: Any) -> Optional[str]:
    """Name of the first signal that fires, or None."""
    for name, predicate in CONTRACTOR_SIGNALS:
        if predicate(message):
            return name
    return None


def classify(message: Any) -> bool:
    """True when the message is treated as coming from a contractor."""
    signal = matching_signal(message)
    if signal:
        logger.debug(f"Message {_get(message, 'id')} classified as contractor via {signal}")
    return signal is not None


def assign_labels(messages: Iterable[Any], start: int = 0) -> Dict[str, str]:
    """
    One pass in thread order: each contractor sender gets the next label
    ("1", "2", ... or counting on from `start`) the first time it is seen.
    Same input, same mapping.
    """
    labels: Dict[str, str] = {}
    for message in messages:
        sender_id = _get(message, "sender_id")
        if sender_id is None or sender_id in labels:
            continue
        if classify(message):
            labels[sender_id] = str(start + len(labels) + 1)
    return labels


def contractor_display_name(label: str) -> str:
    return f"Contractor {label}"


# --- Stored aliases ---

def last_alias_number(aliases: Mapping[str, str]) -> int:
    return max((int(a) for a in aliases.values() if str(a).isdigit()), default=0)


def extend_aliases(
    existing: Mapping[str, str], interactions: Iterable[Tuple[Optional[str], Any]]
) -> Dict[str, str]:
    """
    Aliases for contractors that have none yet. `interactions` are
    (contractor_id, timestamp) pairs from bids and messages; contractors are
    numbered after the highest existing alias in order of first interaction.
    Only the new entries are returned.
    """
    # undated interactions (e.g. legacy bids) count as earliest
    ordered = sorted(interactions, key=lambda i: (i[1] is not None, i[1]))
    number = last_alias_number(existing)
    added: Dict[str, str] = {}
    for contractor_id, _ in ordered:
        if contractor_id is None or contractor_id in existing or contractor_id in added:
            continue
        number += 1
        added[contractor_id] = str(number)
    return added


def label_messages(
    messages: List[Dict[str, Any]], aliases: Optional[Mapping[str, str]] = None
) -> List[Dict[str, Any]]:
    """
    Decorate message dicts (already carrying is_own) with is_from_contractor
    and sender_alias.

    A sender with a stored alias is a contractor under that alias. Everyone
    else goes through `classify` and gets a label counted on from the stored ones.
    """
    aliases = aliases or {}
    unaliased = [m for m in messages if m.get("sender_id") not in aliases]
    labels = {**assign_labels(unaliased, start=last_alias_number(aliases)), **aliases}
    decorated = []
    for message in messages:
        sender_id = message.get("sender_id")
        is_from_contractor = sender_id in aliases or classify(message)
        alias = labels.get(sender_id) if is_from_contractor else None
        decorated.append({**message, "is_from_contractor": is_from_contractor, "sender_alias": alias})
    return decorated
