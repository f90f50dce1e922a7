from __future__ import annotations

from recordmap.config import BASE_RESERVED_WORDS
from recordmap.mapping.keys import (
    build_key_mapping,
    camel_case_to_underscores,
    normalize_key,
    sanitize_key,
)
from recordmap.mapping.reflection import fields

from sample_models import Account, Customer, Escaped


def test_camel_case_to_underscores():
    assert camel_case_to_underscores("userName") == "user_name"
    assert camel_case_to_underscores("URL") == "u_r_l"
    assert camel_case_to_underscores("UserName") == "user_name"
    assert camel_case_to_underscores("already_snake") == "already_snake"
    assert camel_case_to_underscores("") == ""


def test_sanitize_replaces_illegal_characters():
    assert sanitize_key("zip-code") == "zip_code"
    assert sanitize_key("first name") == "first_name"
    assert sanitize_key("a.b,c:d;e") == "a_b_c_d_e"
    assert sanitize_key("plain") == "plain"


def test_cleanup_mode_returns_snake_case():
    assert normalize_key("userName") == "user_name"
    assert normalize_key("URL") == "u_r_l"
    assert normalize_key("name") == "name"


def test_reserved_word_unescape():
    assert normalize_key("_class", BASE_RESERVED_WORDS) == "class"
    assert normalize_key("_class", BASE_RESERVED_WORDS, document_keys=["class"]) == "class"
    # not reserved: the underscore stays
    assert normalize_key("_private", BASE_RESERVED_WORDS) == "_private"


def test_verbatim_match_wins():
    assert normalize_key("userName", document_keys=["userName", "user_name"]) == "userName"


def test_illegal_character_recovery_returns_original_document_key():
    assert normalize_key("zip_code", document_keys=["zip-code"]) == "zip-code"
    assert normalize_key("first_name", document_keys=["first name", "other"]) == "first name"


def test_snake_case_match_against_document():
    assert normalize_key("emailAddress", document_keys=["email_address"]) == "email_address"


def test_no_match_returns_none_when_document_given():
    assert normalize_key("userName", document_keys=["something_else"]) is None
    assert normalize_key("userName", document_keys=[]) is None


def test_normalization_is_idempotent():
    for candidate in ["userName", "URL", "_class", "zipCode", "plain", "HTTPServer"]:
        once = normalize_key(candidate, BASE_RESERVED_WORDS)
        assert normalize_key(once, BASE_RESERVED_WORDS) == once


def test_extra_reserved_words():
    reserved = BASE_RESERVED_WORDS | {"widget"}
    assert normalize_key("_widget", reserved) == "widget"
    assert normalize_key("_widget", BASE_RESERVED_WORDS) == "_widget"


def test_build_key_mapping_snake_document():
    document = {"user_name": "ann", "email_address": "a@x", "login_count": 3}
    mapping = build_key_mapping(fields(Account()), document)
    assert mapping == {
        "user_name": "userName",
        "email_address": "emailAddress",
        "login_count": "loginCount",
    }


def test_build_key_mapping_identity_entries_omitted():
    document = {"userName": "ann", "loginCount": 1}
    assert build_key_mapping(fields(Account()), document) == {}


def test_build_key_mapping_custom_keys_and_exclusion():
    document = {"id": 4, "displayName": "Ann", "secret": "s"}
    mapping = build_key_mapping(fields(Customer()), document)
    assert mapping["id"] == "customer_id"
    assert mapping["displayName"] == "display_name"
    assert "secret" not in mapping


def test_build_key_mapping_reserved_words():
    document = {"class": "A", "type": "B", "plain": "C"}
    mapping = build_key_mapping(fields(Escaped()), document, BASE_RESERVED_WORDS)
    assert mapping == {"class": "_class", "type": "_type"}
