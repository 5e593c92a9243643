"""Stateless role -> class -> spec signup flow carried in component tokens."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Callable, List, Optional, Sequence, Union

from raidtrack.database.raid_store import RaidStore
from raidtrack.errors import ValidationError
from raidtrack.utils.class_specs import (
    CLASS_SPECS,
    is_valid_class_spec,
    list_classes,
    list_specs,
    normalize_class,
    normalize_spec,
)
from raidtrack.utils.raid_utils import ROLE_LABELS, ROLE_MAYBE


logger = logging.getLogger("raidtrack.signup_flow")


@dataclass(frozen=True)
class RolePick:
    raid_id: str
    role: str

    def encode(self) -> str:
        return f"signup:role:{self.raid_id}:{self.role}"


@dataclass(frozen=True)
class RoleMenu:
    raid_id: str

    def encode(self) -> str:
        return f"signup:changeRole:{self.raid_id}"


@dataclass(frozen=True)
class ProfileChange:
    raid_id: str

    def encode(self) -> str:
        return f"profile:change:{self.raid_id}"


@dataclass(frozen=True)
class ClassSelect:
    raid_id: str
    role: str

    def encode(self) -> str:
        return f"profile:class:{self.raid_id}:{self.role}"


@dataclass(frozen=True)
class SpecSelect:
    raid_id: str
    role: str
    class_key: str

    def encode(self) -> str:
        return f"profile:spec:{self.raid_id}:{self.role}:{self.class_key}"


Token = Union[RolePick, RoleMenu, ProfileChange, ClassSelect, SpecSelect]


def decode_token(custom_id: Optional[str]) -> Optional[Token]:
    """
    Parse a component custom ID into a token.

    Fixed fields are taken from the right so raid IDs may contain ':'.
    Returns None for IDs that do not belong to the signup flow.
    """
    if not custom_id:
        return None
    parts = custom_id.split(":", 2)
    if len(parts) != 3:
        return None
    prefix, action, rest = parts
    if not rest:
        return None

    if prefix == "signup":
        if action == "changeRole":
            return RoleMenu(rest)
        if action == "role":
            raid_id, _, role = rest.rpartition(":")
            if raid_id and role in ROLE_LABELS:
                return RolePick(raid_id, role)
        return None

    if prefix == "profile":
        if action == "change":
            return ProfileChange(rest)
        if action == "class":
            raid_id, _, role = rest.rpartition(":")
            if raid_id and role in ROLE_LABELS:
                return ClassSelect(raid_id, role)
        if action == "spec":
            head, _, class_key = rest.rpartition(":")
            raid_id, _, role = head.rpartition(":")
            if raid_id and role in ROLE_LABELS and class_key in CLASS_SPECS:
                return SpecSelect(raid_id, role, class_key)
        return None

    return None


STEP_ROLE_SELECT = "role_select"
STEP_CLASS_SELECT = "class_select"
STEP_SPEC_SELECT = "spec_select"
STEP_COMMITTED = "committed"


@dataclass
class FlowStep:
    """What to show the user after handling one interaction."""

    kind: str
    raid_id: str
    role: Optional[str] = None
    class_key: Optional[str] = None
    spec_key: Optional[str] = None
    first_time: bool = False
    options: List[str] = field(default_factory=list)


class SignupFlow:
    """
    Applies signup tokens to the store.

    ``on_commit(scope, raid_id)`` is called after every committed signup to
    request a re-render of the raid's announcement.
    """

    def __init__(
        self,
        raid_store: RaidStore,
        on_commit: Callable[[str, str], None],
    ):
        self.raid_store = raid_store
        self.on_commit = on_commit

    async def handle(
        self,
        scope: str,
        user_id: str,
        username: str,
        token: Token,
        values: Sequence[str] = (),
    ) -> FlowStep:
        """
        Advance the flow by one step.

        Raises:
            ValidationError: unknown raid or invalid class/spec; nothing is stored
        """
        raid = await self.raid_store.get_raid(token.raid_id)
        if not raid or raid.scope != scope:
            raise ValidationError("This raid is no longer available.", raid_id=token.raid_id)

        if isinstance(token, RoleMenu):
            return FlowStep(STEP_ROLE_SELECT, token.raid_id, options=list(ROLE_LABELS))

        if isinstance(token, ProfileChange):
            role = await self.raid_store.get_user_role(token.raid_id, user_id)
            return FlowStep(
                STEP_CLASS_SELECT,
                token.raid_id,
                role=role or ROLE_MAYBE,
                options=list_classes(),
            )

        if isinstance(token, RolePick):
            profile = await self.raid_store.get_profile(scope, user_id)
            if not profile:
                return FlowStep(
                    STEP_CLASS_SELECT,
                    token.raid_id,
                    role=token.role,
                    first_time=True,
                    options=list_classes(),
                )
            await self._commit(scope, token.raid_id, user_id, username, token.role)
            return FlowStep(
                STEP_COMMITTED,
                token.raid_id,
                role=token.role,
                class_key=profile.class_key,
                spec_key=profile.spec_key,
            )

        if isinstance(token, ClassSelect):
            class_key = normalize_class(values[0] if values else None)
            if class_key not in CLASS_SPECS:
                raise ValidationError("Invalid class/spec. Try again.", raid_id=token.raid_id)
            return FlowStep(
                STEP_SPEC_SELECT,
                token.raid_id,
                role=token.role,
                class_key=class_key,
                options=list_specs(class_key),
            )

        if isinstance(token, SpecSelect):
            spec_key = normalize_spec(values[0] if values else None)
            if not is_valid_class_spec(token.class_key, spec_key):
                raise ValidationError("Invalid class/spec. Try again.", raid_id=token.raid_id)
            await self.raid_store.upsert_profile(scope, user_id, token.class_key, spec_key)
            await self._commit(scope, token.raid_id, user_id, username, token.role)
            return FlowStep(
                STEP_COMMITTED,
                token.raid_id,
                role=token.role,
                class_key=token.class_key,
                spec_key=spec_key,
            )

        raise ValidationError(f"Unsupported signup action {token!r}", raid_id=token.raid_id)

    async def _commit(
        self,
        scope: str,
        raid_id: str,
        user_id: str,
        username: str,
        role: str,
    ) -> None:
        await self.raid_store.upsert_signup(raid_id, user_id, username, role)
        logger.info("User %s signed up for raid %s as %s", user_id, raid_id, role)
        self.on_commit(scope, raid_id)
