"""
Persisted Document Codec

Converts between the live AppState and the JSON-compatible document that
storage backends read and write.

CRITICAL: Loading never substitutes defaults for missing data. A document
missing a required field, or carrying an unparsable timestamp, is rejected
with MalformedSnapshotError and the caller keeps its current state.
"""

from typing import Any

from pydantic import ValidationError

from rf_manager.errors import MalformedSnapshotError
from rf_manager.models.state import AppState, PersistedDocument


def state_to_document(state: AppState) -> dict[str, Any]:
    """Serialize the user inputs of `state`; derived values are left out."""
    document = PersistedDocument(
        transactions=state.transactions,
        short_term_goals=state.short_term_goals,
        long_term_goals=state.long_term_goals,
        settings=state.settings,
    )
    return document.model_dump(mode="json", by_alias=True)


def document_to_state(document: Any) -> PersistedDocument:
    """
    Parse a stored document.

    Raises:
        MalformedSnapshotError: wrong shape, missing fields, bad values
    """
    if not isinstance(document, dict):
        raise MalformedSnapshotError("Snapshot document must be a JSON object")
    try:
        parsed = PersistedDocument.model_validate(document)
    except ValidationError as e:
        problems = "; ".join(
            f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}"
            for err in e.errors()
        )
        raise MalformedSnapshotError(f"Snapshot document is malformed: {problems}")

    ids = [txn.id for txn in parsed.transactions]
    if len(ids) != len(set(ids)):
        raise MalformedSnapshotError("Snapshot document contains duplicate transaction ids")
    return parsed
