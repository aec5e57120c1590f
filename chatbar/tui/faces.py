"""Face resolution for participant lines.

A `FaceChain` runs one base resolver and then any number of layers. Each layer
sees the faces decided so far and may only add to them, so auxiliary styling
(e.g. per-nickname colors) extends the base decision instead of replacing it.
"""

from __future__ import annotations

import zlib
from typing import Callable, Iterable

from chatbar.constants import NICK_COLOR_COUNT
from chatbar.store.models import ChannelRole, ConnectionRef, SessionRef, TargetRef, UserInfo
from chatbar.store.protocol import SessionStore

Faces = tuple[str, ...]
FaceResolver = Callable[[SessionRef, UserInfo, "ChannelRole | None"], "Faces | None"]
FaceLayer = Callable[[SessionRef, UserInfo, "ChannelRole | None", Faces], "Iterable[str] | None"]

OWN_SPEAKER_FACE = "own-speaker"
MENTION_FACE = "mention"
NICK_COLOR_PREFIX = "nick-color-"


def _connection_of(container: SessionRef) -> ConnectionRef:
    if isinstance(container, TargetRef):
        return container.connection
    return container


def default_face_resolver(store: SessionStore, own_nick_face: str | None = None) -> FaceResolver:
    """Own nickname -> `own_nick_face` (or own-speaker); any elevated role -> mention."""

    def resolve(container: SessionRef, user: UserInfo, role: ChannelRole | None) -> Faces | None:
        if store.is_own_nickname(_connection_of(container), user.nickname):
            return (own_nick_face or OWN_SPEAKER_FACE,)
        if role is not None and role.is_elevated:
            return (MENTION_FACE,)
        return None

    return resolve


def nick_color_face(nickname: str) -> str:
    index = zlib.crc32(nickname.casefold().encode("utf-8")) % NICK_COLOR_COUNT
    return f"{NICK_COLOR_PREFIX}{index}"


def nick_color_layer(
    container: SessionRef,  # noqa: ARG001
    user: UserInfo,
    role: ChannelRole | None,  # noqa: ARG001
    prior: Faces,  # noqa: ARG001
) -> Faces:
    return (nick_color_face(user.nickname),)


class FaceChain:
    """Ordered chain: base resolver, then additive layers."""

    def __init__(self, base: FaceResolver, layers: Iterable[FaceLayer] = ()) -> None:
        self.base = base
        self._layers: list[FaceLayer] = list(layers)

    def add_layer(self, layer: FaceLayer) -> None:
        self._layers.append(layer)

    def resolve(self, container: SessionRef, user: UserInfo, role: ChannelRole | None) -> Faces:
        faces: Faces = tuple(self.base(container, user, role) or ())
        for layer in self._layers:
            extra = layer(container, user, role, faces)
            if extra:
                faces = faces + tuple(face for face in extra if face not in faces)
        return faces
