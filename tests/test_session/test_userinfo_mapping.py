# tests/test_session/test_userinfo_mapping.py

import pytest

from cinetrack.core.exceptions import OAuthExchangeFailed
from cinetrack.services.auth.google_oauth import identity_from_userinfo


def test_full_profile():
    ident = identity_from_userinfo({"sub": 42, "name": "Dana", "email": "d@x.io", "picture": "https://p"})
    assert ident.id == "42"
    assert ident.display_name == "Dana"
    assert ident.email == "d@x.io"
    assert ident.avatar == "https://p"


def test_missing_optional_fields_become_empty_strings():
    ident = identity_from_userinfo({"sub": "7", "name": "Eve"})
    assert ident.email == "" and ident.avatar == ""


@pytest.mark.parametrize("payload", [{}, {"name": "no subject"}, ["sub"], None])
def test_subject_is_required(payload):
    with pytest.raises(OAuthExchangeFailed):
        identity_from_userinfo(payload)
