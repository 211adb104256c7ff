import logging
from datetime import datetime
from typing import Optional, Union

from access import AccessControl
from errors import AlreadyExists, InvalidInput, NotFound
from events import ParticipantRegistered
from schemas import Participant, Role
from utils import check_identity, check_text

logger = logging.getLogger(__name__)

def parse_role(role: Union[Role, str]) -> Role:
    if isinstance(role, Role):
        return role
    try:
        return Role(str(role).strip().lower())
    except ValueError:
        allowed = ", ".join(r.value for r in Role)
        raise InvalidInput(f"unknown role {role!r}; expected one of: {allowed}") from None

class ParticipantDirectory:
    def __init__(self, ctx):
        self.ctx = ctx
        self.access = AccessControl(ctx, self)

    def register_participant(
        self,
        caller: str,
        identity: str,
        name: str,
        role: Union[Role, str],
        now: Optional[datetime] = None,
    ) -> Participant:
        self.access.require_admin(caller)
        check_identity(identity)
        check_text(name, "participant name")
        role = parse_role(role)

        existing = self.ctx.store.get_participant(identity)
        if existing is not None and not self.ctx.allow_participant_overwrite:
            raise AlreadyExists(f"participant {identity} is already registered")

        participant = Participant(
            identity=identity,
            name=name,
            role=role,
            verified=True,
            registered_at=self.ctx.now(now),
        )
        self.ctx.store.put_participant(participant)
        if existing is not None:
            logger.warning(
                "participant %s re-registered: %s/%s -> %s/%s",
                identity, existing.name, existing.role.value, name, role.value,
            )
        else:
            logger.info("participant %s registered as %s", identity, role.value)
        self.ctx.emit(ParticipantRegistered(
            identity=identity, name=name, role=role, replaced=existing is not None,
            occurred_at=participant.registered_at,
        ))
        return participant

    def is_verified(self, identity: Optional[str]) -> bool:
        if not identity:
            return False
        participant = self.ctx.store.get_participant(identity)
        return participant is not None and participant.verified

    def get_participant(self, identity: str) -> Participant:
        participant = self.ctx.store.get_participant(identity) if identity else None
        if participant is None:
            raise NotFound(f"participant {identity!r} does not exist")
        return participant

    def display_name(self, identity: str) -> str:
        participant = self.ctx.store.get_participant(identity)
        return participant.name if participant else identity
