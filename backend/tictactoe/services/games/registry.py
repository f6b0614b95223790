"""Seat registry for the two participants and the role consistency check.

Every function here that mutates ``participants`` or ``role_owner`` goes
through ``_mutation`` so that ``verify`` runs before control returns to
the caller.
"""

import functools
from typing import List, Optional

from tictactoe.models import MAX_PARTICIPANTS, ROLES, Participant, Session

FULL = 'full'
DUPLICATE_NAME = 'duplicate_name'
INVALID_NAME = 'invalid_name'

MAX_NAME_LENGTH = 32


class AdmitResult:
    def __init__(self, role: Optional[str] = None, reason: Optional[str] = None, rejoined: bool = False):
        self.role = role
        self.reason = reason
        self.rejoined = rejoined

    @property
    def admitted(self) -> bool:
        return self.role is not None

    def __repr__(self):
        return f"AdmitResult(role={self.role!r}, reason={self.reason!r})"


def _mutation(fn):
    @functools.wraps(fn)
    def wrapper(session, *args, **kwargs):
        try:
            return fn(session, *args, **kwargs)
        finally:
            verify(session)
    return wrapper


def count(session: Session) -> int:
    return len(session.participants)


def free_role(session: Session) -> Optional[str]:
    for role in ROLES:
        if session.role_owner.get(role) is None:
            return role
    return None


@_mutation
def admit(session: Session, sid: str, name) -> AdmitResult:
    existing = session.participants.get(sid)
    if existing is not None:
        if existing.role is None:
            return AdmitResult(reason=FULL)
        return AdmitResult(role=existing.role, rejoined=True)

    if not isinstance(name, str) or not name.strip():
        return AdmitResult(reason=INVALID_NAME)
    name = name.strip()
    if len(name) > MAX_NAME_LENGTH:
        return AdmitResult(reason=INVALID_NAME)

    if count(session) >= MAX_PARTICIPANTS:
        return AdmitResult(reason=FULL)

    lowered = name.lower()
    if any(p.name.lower() == lowered for p in session.participants.values()):
        return AdmitResult(reason=DUPLICATE_NAME)

    role = free_role(session)
    if role is None:
        return AdmitResult(reason=FULL)

    session.participants[sid] = Participant(sid, name, role)
    session.role_owner[role] = sid
    return AdmitResult(role=role)


@_mutation
def remove(session: Session, sid: str) -> Optional[Participant]:
    participant = session.participants.pop(sid, None)
    if participant is None:
        return None
    if participant.role is not None and session.role_owner.get(participant.role) == sid:
        session.role_owner[participant.role] = None
    return participant


def verify(session: Session) -> List[str]:
    """Bring ``role_owner`` and the participants' roles back into agreement.

    Returns one message per repair made; an empty list means nothing had
    drifted. Running it twice in a row never repairs anything the second
    time. Repairs are also appended to ``session.repair_log``.
    """
    repairs = []
    owner = session.role_owner

    for role in ROLES:
        owner.setdefault(role, None)
    for role in list(owner):
        if role not in ROLES:
            repairs.append(f"dropped unknown role slot {role!r}")
            del owner[role]

    # Slots pointing at missing connections or at someone holding another role
    for role, sid in owner.items():
        if sid is None:
            continue
        participant = session.participants.get(sid)
        if participant is None:
            owner[role] = None
            repairs.append(f"cleared {role}: owner {sid} is not a participant")
        elif participant.role != role:
            owner[role] = None
            repairs.append(f"cleared {role}: owner {sid} holds {participant.role!r}")

    # Participants whose role is not reflected in the owner map
    for sid, participant in session.participants.items():
        if participant.role in ROLES and owner[participant.role] is None:
            owner[participant.role] = sid
            repairs.append(f"assigned {participant.role} to {sid} from participant record")

    # Conflicting or missing roles move to whatever is still free
    for sid, participant in session.participants.items():
        if participant.role in ROLES and owner[participant.role] == sid:
            continue
        role = free_role(session)
        if role is None:
            if participant.role is not None:
                repairs.append(f"unseated {sid}: no free role for {participant.role!r}")
                participant.role = None
            continue
        repairs.append(f"moved {sid} from {participant.role!r} to {role}")
        participant.role = role
        owner[role] = sid

    session.repair_log.extend(repairs)
    return repairs
