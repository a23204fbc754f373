"""Bookmark link tests — delete/toggle/set syntax and the fragment format."""

import pytest

from tapboard.exceptions import ValidationError
from tapboard.views.bookmarks import (
    apply_updates,
    bookmark_settings,
    decode_fragment,
    encode_fragment,
    link_to_set,
)


def test_toggle_then_delete():
    settings = {"colour": "red", "mini": True}

    toggled = apply_updates(settings, "mini=!1")
    assert toggled == {"colour": "red", "mini": False}

    deleted = apply_updates(toggled, "colour=!")
    assert deleted == {"mini": False}


def test_toggle_of_missing_key_turns_it_on():
    assert apply_updates({}, "saved=!yes") == {"saved": True}


def test_set_values_are_strings_and_win():
    result = apply_updates({"colour": "red"}, "colour=blue, order=rating")
    assert result == {"colour": "blue", "order": "rating"}


def test_apply_updates_does_not_mutate_input():
    settings = {"mini": True}
    apply_updates(settings, "mini=!1")
    assert settings == {"mini": True}


def test_update_without_equals_is_rejected():
    with pytest.raises(ValidationError):
        apply_updates({}, "mini")


def test_fragment_format_is_bookmark_compatible():
    assert encode_fragment("session", {"colour": "red", "mini": False}) == (
        "#session[{&quot;colour&quot;:&quot;red&quot;,&quot;mini&quot;:false}]"
    )


def test_link_to_set_puts_view_keys_in_bookmark_order():
    link = link_to_set("session", {"colour": "blue", "mini": True}, "order=rating,mini=!1")
    assert link == (
        "#session[{&quot;colour&quot;:&quot;blue&quot;,&quot;order&quot;:&quot;rating&quot;,"
        "&quot;mini&quot;:false}]"
    )


def test_set_key_takes_its_slot_before_later_keys():
    link = link_to_set("session", {"colour": "red", "mini": True}, "order=rating")
    assert link == (
        "#session[{&quot;colour&quot;:&quot;red&quot;,&quot;order&quot;:&quot;rating&quot;,"
        "&quot;mini&quot;:true}]"
    )

    toggled = apply_updates({"mini": True, "colour": "red"}, "saved=!1")
    assert list(toggled) == ["colour", "saved", "mini"]


def test_deleted_then_set_key_and_unknown_keys_go_last():
    result = apply_updates({"colour": "red", "mini": True}, "colour=!,colour=blue,extra=1")
    assert list(result.items()) == [("mini", True), ("colour", "blue"), ("extra", "1")]


def test_decode_fragment():
    page, settings = decode_fragment(
        "#session[{&quot;colour&quot;:&quot;red&quot;,&quot;mini&quot;:true}]"
    )
    assert page == "session"
    assert settings == {"colour": "red", "mini": True}

    assert decode_fragment("#index") == ("index", {})


@pytest.mark.parametrize("fragment", ["#session[nope]", "#session[[1,2]]", "#[]"])
def test_decode_fragment_rejects_garbage(fragment):
    with pytest.raises(ValidationError):
        decode_fragment(fragment)


def test_bookmark_settings_picks_view_keys_in_order():
    params = {"mini": True, "page": "session", "colour": "green", "search": "ipa", "order": None}
    assert list(bookmark_settings(params).items()) == [("colour", "green"), ("mini", True)]
