import pytest

from oapigen.auth import (
    AuthenticationError,
    ClaimsInvalidError,
    InvalidAuthHeaderError,
    NoAuthHeaderError,
    authenticate,
    check_token_claims,
    get_claims_from_token,
    get_jws_from_headers,
)


class FakeValidator:
    def __init__(self, tokens):
        self.tokens = tokens

    def validate_jws(self, jws):
        try:
            return self.tokens[jws]
        except KeyError:
            raise ValueError("bad signature") from None


READER_CLAIMS = {}
WRITER_CLAIMS = {"perms": ["things:w"]}
VALIDATOR = FakeValidator({"token": READER_CLAIMS, "placeholder": WRITER_CLAIMS})


def test_jws_extracted_from_bearer_header():
    assert get_jws_from_headers({"Authorization": "Bearer token"}) == "token"


def test_header_name_is_case_insensitive():
    assert get_jws_from_headers({"authorization": "Bearer secret"}) == "secret"


@pytest.mark.parametrize("headers", [{}, {"Authorization": ""}])
def test_missing_header(headers):
    with pytest.raises(NoAuthHeaderError, match="Authorization header is missing"):
        get_jws_from_headers(headers)


@pytest.mark.parametrize("value", ["Basic token", "Bearertoken", "bearer token"])
def test_malformed_header(value):
    with pytest.raises(InvalidAuthHeaderError, match="Authorization header is malformed"):
        get_jws_from_headers({"Authorization": value})


def test_claims_absent_means_empty():
    assert get_claims_from_token({}) == []


def test_claims_listed():
    assert get_claims_from_token({"perms": ["things:w"]}) == ["things:w"]


def test_claims_of_wrong_type():
    with pytest.raises(AuthenticationError, match="'perms' claim is unexpected type"):
        get_claims_from_token({"perms": "things:w"})


def test_claim_element_not_string():
    with pytest.raises(AuthenticationError, match=r"perms\[1\] is not a string"):
        get_claims_from_token({"perms": ["things:w", 3]})


def test_check_claims_subset_passes():
    assert check_token_claims(["things:w"], {"perms": ["things:w"]}) == ["things:w"]


def test_check_claims_no_scopes_needed():
    assert check_token_claims([], {}) == []


def test_check_claims_missing_scope():
    with pytest.raises(ClaimsInvalidError):
        check_token_claims(["things:w"], {})


def test_check_claims_bad_token_wrapped():
    with pytest.raises(AuthenticationError, match="getting claims from token"):
        check_token_claims([], {"perms": 5})


def test_authenticate_writer_with_scope():
    claims = authenticate(
        VALIDATOR, "BearerAuth", {"Authorization": "Bearer placeholder"}, ["things:w"]
    )
    assert claims == ["things:w"]


def test_authenticate_reader_without_scope_required():
    assert authenticate(VALIDATOR, "BearerAuth", {"Authorization": "Bearer token"}, []) == []


def test_authenticate_reader_lacks_scope():
    with pytest.raises(ClaimsInvalidError, match="token claims don't match"):
        authenticate(
            VALIDATOR, "BearerAuth", {"Authorization": "Bearer token"}, ["things:w"]
        )


def test_authenticate_wrong_scheme():
    with pytest.raises(AuthenticationError, match="!= 'BearerAuth'"):
        authenticate(VALIDATOR, "ApiKey", {"Authorization": "Bearer token"}, [])


def test_authenticate_missing_header():
    with pytest.raises(NoAuthHeaderError, match="getting jws"):
        authenticate(VALIDATOR, "BearerAuth", {}, [])


def test_authenticate_invalid_jws():
    with pytest.raises(AuthenticationError, match="validating JWS"):
        authenticate(
            VALIDATOR, "BearerAuth", {"Authorization": "Bearer password"}, []
        )