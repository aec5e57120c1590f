"""Unit tests for participant face resolution."""

import pytest

from chatbar.store import ChannelRole, ConnectionRef, TargetRef, UserInfo
from chatbar.tui.faces import (
    MENTION_FACE,
    NICK_COLOR_PREFIX,
    OWN_SPEAKER_FACE,
    FaceChain,
    default_face_resolver,
    nick_color_face,
    nick_color_layer,
)
from chatbar.tui.theme import face_attr

pytestmark = pytest.mark.unit

CHANNEL = TargetRef(ConnectionRef("irc.example.org"), "#test")


def test_own_nickname_gets_own_speaker_face(store):
    resolve = default_face_resolver(store)
    assert resolve(CHANNEL, UserInfo(nickname="ME"), None) == (OWN_SPEAKER_FACE,)


def test_own_nickname_face_is_configurable(store):
    resolve = default_face_resolver(store, own_nick_face="bold")
    assert resolve(CHANNEL, UserInfo(nickname="me"), ChannelRole(op=True)) == ("bold",)


def test_elevated_roles_get_mention_face(store):
    resolve = default_face_resolver(store)
    for role in (
        ChannelRole(owner=True),
        ChannelRole(admin=True),
        ChannelRole(op=True),
        ChannelRole(halfop=True),
        ChannelRole(voice=True),
    ):
        assert resolve(CHANNEL, UserInfo(nickname="alice"), role) == (MENTION_FACE,)


def test_plain_users_get_no_face(store):
    resolve = default_face_resolver(store)
    assert resolve(CHANNEL, UserInfo(nickname="bob"), ChannelRole()) is None
    assert resolve(CHANNEL, UserInfo(nickname="bob"), None) is None


def test_layers_extend_base_result(store):
    """A layer sees the prior faces and adds to them; it never replaces them."""
    seen = []

    def layer(container, user, role, prior):
        seen.append(prior)
        return ("underline",)

    chain = FaceChain(default_face_resolver(store), [layer])
    faces = chain.resolve(CHANNEL, UserInfo(nickname="alice"), ChannelRole(op=True))

    assert faces == (MENTION_FACE, "underline")
    assert seen == [(MENTION_FACE,)]


def test_layers_run_in_order_and_skip_duplicates(store):
    chain = FaceChain(default_face_resolver(store))
    chain.add_layer(lambda c, u, r, prior: ("bold",))
    chain.add_layer(lambda c, u, r, prior: ("bold", "dim"))
    assert chain.resolve(CHANNEL, UserInfo(nickname="bob"), None) == ("bold", "dim")


def test_layers_given_at_construction(store):
    chain = FaceChain(default_face_resolver(store), [nick_color_layer])
    assert chain.resolve(CHANNEL, UserInfo(nickname="bob"), None) == (nick_color_face("bob"),)


def test_nick_color_is_stable_and_case_insensitive():
    face = nick_color_face("Alice")
    assert face.startswith(NICK_COLOR_PREFIX)
    assert face == nick_color_face("alice")


def test_face_attr_without_colors_ignores_unknown_faces():
    import curses

    assert face_attr(("bold", "no-such-face")) == curses.A_BOLD
    assert face_attr(()) == 0
