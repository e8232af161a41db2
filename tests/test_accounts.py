"""
Graphico — Login-or-register Tests
"""

import pytest

from graphico.accounts import login_or_register, logout
from graphico.errors import UserInputError
from graphico.models import DEFAULT_LEVEL, DEFAULT_USER_NAME, User


def test_new_email_registers_with_defaults(gateway):
    user = login_or_register(gateway, "Sara", "a@x.com")

    assert user == User(name="Sara", email="a@x.com", avatar="", level=DEFAULT_LEVEL, xp=0)
    assert gateway.get_session() == user
    assert gateway.list_registered_users() == [user]


def test_blank_name_uses_default_display_name(gateway):
    assert login_or_register(gateway, "  ", "a@x.com").name == DEFAULT_USER_NAME
    assert login_or_register(gateway, None, "b@x.com").name == DEFAULT_USER_NAME


def test_existing_email_reuses_stored_record(gateway):
    login_or_register(gateway, "Sara", "a@x.com")
    user = login_or_register(gateway, "Someone Else", "a@x.com")

    assert user.name == "Sara"
    assert len(gateway.list_registered_users()) == 1


def test_email_is_required(gateway):
    with pytest.raises(UserInputError):
        login_or_register(gateway, "Sara", "   ")
    assert gateway.get_session() is None


def test_logout_clears_session_only(gateway):
    login_or_register(gateway, "Sara", "a@x.com")
    logout(gateway)

    assert gateway.get_session() is None
    assert gateway.find_user_by_email("a@x.com") is not None
