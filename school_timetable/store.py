"""In-memory snapshots of events and mutations.

Every write builds a new ``TimetableSnapshot`` and swaps it in whole, so a
reader holding a snapshot never sees a half-applied change.
"""

from __future__ import annotations

import dataclasses
import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Iterable, Mapping, Optional, Tuple
from uuid import uuid4

from .models import (
    Event,
    Mutation,
    Subject,
    event_from_dict,
    mutation_from_dict,
    subject_from_dict,
)
from .validation import ACCEPTED, ValidationResult, validate_new_event, validate_new_mutation

if TYPE_CHECKING:  # pragma: no cover
    from .resolver import ScheduleResolver

EFFECT_KEYS = {"deleted", "rescheduled_start", "rescheduled_end"}


@dataclass(frozen=True)
class TimetableSnapshot:
    events: Tuple[Event, ...] = ()
    mutations: Tuple[Mutation, ...] = ()


def _find(records: Iterable[Any], value: Any, prop: str) -> Optional[Any]:
    for record in records:
        if getattr(record, prop) == value:
            return record
    return None


class TimetableStore:
    def __init__(
        self,
        events: Iterable[Event] = (),
        mutations: Iterable[Mutation] = (),
    ) -> None:
        self.snapshot = TimetableSnapshot(tuple(events), tuple(mutations))

    @classmethod
    def from_records(
        cls,
        events: Iterable[Mapping[str, Any]],
        mutations: Iterable[Mapping[str, Any]] = (),
    ) -> "TimetableStore":
        return cls(
            [event_from_dict(e) for e in events],
            [mutation_from_dict(m) for m in mutations],
        )

    @property
    def events(self) -> Tuple[Event, ...]:
        return self.snapshot.events

    @property
    def mutations(self) -> Tuple[Mutation, ...]:
        return self.snapshot.mutations

    def event(self, value: Any, prop: str = "uuid") -> Optional[Event]:
        return _find(self.events, value, prop)

    def mutation(self, value: Any, prop: str = "uuid") -> Optional[Mutation]:
        return _find(self.mutations, value, prop)

    def _commit(self, snapshot: TimetableSnapshot) -> None:
        self.snapshot = snapshot

    # Whole-collection replacement

    def replace_events(self, events: Iterable[Event]) -> None:
        events = tuple(events)
        logging.info("Loaded %d events", len(events))
        self._commit(dataclasses.replace(self.snapshot, events=events))

    def replace_mutations(self, mutations: Iterable[Mutation]) -> None:
        mutations = tuple(mutations)
        logging.info("Loaded %d event mutations", len(mutations))
        self._commit(dataclasses.replace(self.snapshot, mutations=mutations))

    # Events

    def add_event(self, event: Event) -> None:
        if self.event(event.uuid):
            raise ValueError(f"Event {event.uuid} already exists")
        self._commit(dataclasses.replace(self.snapshot, events=self.events + (event,)))

    def patch_event(
        self,
        uuid: str,
        changes: Mapping[str, Any],
        subjects: Iterable[Subject],
        *,
        force: bool = False,
    ) -> ValidationResult:
        """Apply a partial update, validated like a new event against the others."""
        current = self.event(uuid)
        if current is None:
            raise KeyError(uuid)
        record = {**dataclasses.asdict(current), "subject": current.subject, **changes}
        record["uuid"] = uuid
        others = [e for e in self.events if e.uuid != uuid]
        result = ACCEPTED if force else validate_new_event(record, others, subjects)
        if result:
            patched = event_from_dict(record)
            events = tuple(patched if e.uuid == uuid else e for e in self.events)
            self._commit(dataclasses.replace(self.snapshot, events=events))
        return result

    def delete_event(self, uuid: str) -> None:
        if self.event(uuid) is None:
            raise KeyError(uuid)
        self._commit(
            TimetableSnapshot(
                events=tuple(e for e in self.events if e.uuid != uuid),
                mutations=tuple(m for m in self.mutations if m.event != uuid),
            )
        )

    # Mutations

    def add_mutation(self, mutation: Mutation) -> None:
        if self.mutation(mutation.uuid):
            raise ValueError(f"Mutation {mutation.uuid} already exists")
        if self.event(mutation.event) is None:
            raise KeyError(mutation.event)
        self._commit(
            dataclasses.replace(self.snapshot, mutations=self.mutations + (mutation,))
        )

    def patch_mutation(self, uuid: str, changes: Mapping[str, Any]) -> Mutation:
        """Change the replacement subject of a mutation.

        The cancelled date or rescheduled window of a mutation is fixed once it
        is created: delete it and submit a new one instead.
        """
        current = self.mutation(uuid)
        if current is None:
            raise KeyError(uuid)
        if EFFECT_KEYS & changes.keys():
            raise ValueError("Delete and recreate a mutation to change its date")
        patched = current
        if "subject" in changes:
            subject = changes["subject"]
            patched = dataclasses.replace(
                current, subject=subject_from_dict(subject) if subject else None
            )
        mutations = tuple(patched if m.uuid == uuid else m for m in self.mutations)
        self._commit(dataclasses.replace(self.snapshot, mutations=mutations))
        return patched

    def delete_mutation(self, uuid: str) -> None:
        if self.mutation(uuid) is None:
            raise KeyError(uuid)
        self._commit(
            dataclasses.replace(
                self.snapshot,
                mutations=tuple(m for m in self.mutations if m.uuid != uuid),
            )
        )

    # Validated submission

    def submit_event(
        self,
        candidate: Mapping[str, Any],
        subjects: Iterable[Subject],
        *,
        force: bool = False,
    ) -> ValidationResult:
        result = ACCEPTED if force else validate_new_event(candidate, self.events, subjects)
        if result:
            self.add_event(event_from_dict({"uuid": uuid4().hex, **candidate}))
        return result

    def submit_mutation(
        self,
        candidate: Mapping[str, Any],
        resolver: "ScheduleResolver",
        subjects: Iterable[Subject],
        *,
        force: bool = False,
    ) -> ValidationResult:
        result = (
            ACCEPTED if force else validate_new_mutation(candidate, resolver, subjects)
        )
        if result:
            record = {"uuid": uuid4().hex, **candidate}
            self.add_mutation(mutation_from_dict(record, resolver.clock.tz))
        return result
