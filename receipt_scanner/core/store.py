"""
In-memory receipt collection with a preview cursor and inline editing.

Every transition is a pure function from one StoreState to the next;
ReceiptStore is the single owner that applies them.
"""

from dataclasses import dataclass, field, replace
from typing import Optional, Tuple

from .models import EditSession, ReceiptRecord
from .utils import parse_cost

# Editable fields, keyed by both attribute names and the web client's names
EDITABLE_FIELDS = {
    "date": "date",
    "company_name": "company_name",
    "companyName": "company_name",
    "category": "category",
    "meal_type": "meal_type",
    "mealType": "meal_type",
    "cost": "cost",
}


@dataclass(frozen=True)
class StoreState:
    records: Tuple[ReceiptRecord, ...] = ()
    cursor: int = -1
    edit: Optional[EditSession] = None
    busy: bool = False
    error: Optional[str] = None


def append_record(state: StoreState, record: ReceiptRecord) -> StoreState:
    records = state.records + (record,)
    return replace(state, records=records, cursor=len(records) - 1)


def edit_field(state: StoreState, index: int, field_name: str, raw_value) -> StoreState:
    """
    Set one field of a record.

    cost is parsed leniently (invalid input becomes 0), every other field
    stores the raw text. Bad indexes and unknown fields are ignored.
    """
    attr = EDITABLE_FIELDS.get(field_name)
    if attr is None or not 0 <= index < len(state.records):
        return state
    value = parse_cost(raw_value) if attr == "cost" else ("" if raw_value is None else str(raw_value))
    records = list(state.records)
    records[index] = replace(records[index], **{attr: value})
    return replace(state, records=tuple(records))


def delete_record(state: StoreState, index: int) -> StoreState:
    if not 0 <= index < len(state.records):
        return state
    records = state.records[:index] + state.records[index + 1:]

    cursor = state.cursor
    if cursor == index:
        cursor = min(index, len(records) - 1) if records else -1
    elif cursor > index:
        cursor -= 1

    edit = state.edit
    if edit is not None:
        if edit.record_index == index:
            edit = None
        elif edit.record_index > index:
            edit = replace(edit, record_index=edit.record_index - 1)

    return replace(state, records=records, cursor=cursor, edit=edit)


def reset(state: StoreState) -> StoreState:
    return StoreState()


def cursor_next(state: StoreState) -> StoreState:
    n = len(state.records)
    if n == 0:
        return state
    cursor = 0 if state.cursor < 0 else (state.cursor + 1) % n
    return replace(state, cursor=cursor)


def cursor_prev(state: StoreState) -> StoreState:
    n = len(state.records)
    if n == 0:
        return state
    cursor = n - 1 if state.cursor <= 0 else state.cursor - 1
    return replace(state, cursor=cursor)


def begin_edit(state: StoreState, index: int, field_name: str) -> StoreState:
    attr = EDITABLE_FIELDS.get(field_name)
    if attr is None or not 0 <= index < len(state.records):
        return state
    current = getattr(state.records[index], attr)
    return replace(state, edit=EditSession(index, field_name, str(current)))


def update_edit(state: StoreState, value) -> StoreState:
    if state.edit is None:
        return state
    return replace(state, edit=replace(state.edit, pending_value=value))


def commit_edit(state: StoreState) -> StoreState:
    if state.edit is None:
        return state
    edit = state.edit
    state = edit_field(state, edit.record_index, edit.field_name, edit.pending_value)
    return replace(state, edit=None)


def cancel_edit(state: StoreState) -> StoreState:
    return replace(state, edit=None)


def set_busy(state: StoreState, busy: bool) -> StoreState:
    return replace(state, busy=busy)


def set_error(state: StoreState, message: Optional[str]) -> StoreState:
    return replace(state, error=message)


@dataclass
class ReceiptStore:
    """Ordered collection of extracted receipts and the UI state around it."""
    state: StoreState = field(default_factory=StoreState)

    def __len__(self):
        return len(self.state.records)

    @property
    def records(self) -> Tuple[ReceiptRecord, ...]:
        return self.state.records

    @property
    def cursor(self) -> int:
        return self.state.cursor

    @property
    def current(self) -> Optional[ReceiptRecord]:
        """The record shown in the preview pane, if any."""
        if 0 <= self.state.cursor < len(self.state.records):
            return self.state.records[self.state.cursor]
        return None

    @property
    def edit(self) -> Optional[EditSession]:
        return self.state.edit

    @property
    def busy(self) -> bool:
        return self.state.busy

    @property
    def error(self) -> Optional[str]:
        return self.state.error

    def total_cost(self) -> float:
        return sum(r.cost for r in self.state.records)

    def append(self, record: ReceiptRecord):
        self.state = append_record(self.state, record)

    def edit_field(self, index: int, field_name: str, raw_value):
        self.state = edit_field(self.state, index, field_name, raw_value)

    def delete(self, index: int):
        self.state = delete_record(self.state, index)

    def reset(self):
        self.state = reset(self.state)

    def cursor_next(self):
        self.state = cursor_next(self.state)

    def cursor_prev(self):
        self.state = cursor_prev(self.state)

    def begin_edit(self, index: int, field_name: str):
        self.state = begin_edit(self.state, index, field_name)

    def update_edit(self, value):
        self.state = update_edit(self.state, value)

    def commit_edit(self):
        self.state = commit_edit(self.state)

    def cancel_edit(self):
        self.state = cancel_edit(self.state)

    def set_busy(self, busy: bool):
        self.state = set_busy(self.state, busy)

    def set_error(self, message: Optional[str]):
        self.state = set_error(self.state, message)
