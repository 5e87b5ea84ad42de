from plistlib import UID

import pytest

from mobileglue.archivetypes import (
    ClassType,
    append_class_type,
    nsarray_append_item,
    nsdictionary_add_item,
    set_class_property,
)
from mobileglue.keyedarchive import ArchiveError, KeyedArchive


def _holder():
    archive = KeyedArchive()
    uid = archive.add_top_class("Holder", "NSObject")
    return archive, uid


def _unarchive(archive, ref):
    archive.plist["$top"] = {"$0": ref}
    return archive.to_plist()


def test_dictionary_round_trip():
    archive = KeyedArchive()
    append_class_type(
        archive, ClassType.NSDICTIONARY,
        "key", ClassType.STRING, "value",
        "other", ClassType.BOOLEAN, True,
    )
    assert archive.to_plist() == {"key": "value", "other": True}
    assert archive.get_classname(1) == "NSDictionary"
    assert archive.uid == len(archive.objects()) - 1


def test_nested_array_round_trip():
    archive = KeyedArchive()
    append_class_type(
        archive, ClassType.NSMUTABLEARRAY,
        ClassType.STRING, "a",
        ClassType.NSARRAY, ClassType.STRING, "b", 0,
        ClassType.STRING, "c",
    )
    assert archive.to_plist() == ["a", ["b"], "c"]
    assert archive.get_class_by_uid(2)["$classes"] == ["NSMutableArray", "NSArray", "NSObject"]


def test_nsstring_class_type():
    archive = KeyedArchive()
    append_class_type(archive, ClassType.NSMUTABLESTRING, "hello")
    assert archive.get_classname(1) == "NSMutableString"
    assert archive.get_class_string_property(1, "NS.string") == "hello"
    assert archive.plist["$top"] == {"$0": UID(1)}


def test_plain_string_becomes_top_object():
    archive = KeyedArchive()
    append_class_type(archive, 4, "hi")
    assert archive.to_plist() == "hi"


def test_null_string_sets_top_to_zero():
    archive = KeyedArchive()
    append_class_type(archive, ClassType.STRING, "$null")
    assert archive.plist["$top"] == {"$0": UID(0)}
    assert archive.objects() == ["$null"]


@pytest.mark.parametrize("bad", [ClassType.INTEGER, ClassType.CHARS, ClassType.ARRAY])
def test_non_object_types_rejected(bad):
    with pytest.raises(ArchiveError):
        append_class_type(KeyedArchive(), bad, 1)


def test_invalid_type_value_rejected():
    with pytest.raises(ArchiveError):
        append_class_type(KeyedArchive(), 0, "x")


def test_missing_argument_raises():
    with pytest.raises(ArchiveError):
        append_class_type(KeyedArchive(), ClassType.NSSTRING)


def test_integer_and_intref_properties():
    archive, uid = _holder()
    set_class_property(archive, uid, "count", ClassType.INTEGER, 7)
    set_class_property(archive, uid, "ref", ClassType.INTREF, 9)
    assert archive.get_class_uint64_property(uid, "count") == 7
    assert archive.get_class_uint64_property(uid, "ref") == 9
    assert isinstance(archive.get_class_property(uid, "ref"), UID)
    assert archive.uid == len(archive.objects()) - 1


def test_string_chars_and_null_properties():
    archive, uid = _holder()
    set_class_property(archive, uid, "name", ClassType.STRING, "abc")
    set_class_property(archive, uid, "raw", ClassType.CHARS, "xyz")
    set_class_property(archive, uid, "nothing", ClassType.STRING, "$null")
    assert archive.get_class_string_property(uid, "name") == "abc"
    assert archive.get_class_property(uid, "raw") == "xyz"
    assert archive.get_class_property(uid, "nothing") == UID(0)


def test_boolean_property():
    archive, uid = _holder()
    set_class_property(archive, uid, "flag", ClassType.BOOLEAN, 1)
    ref = archive.get_class_property(uid, "flag")
    assert archive.get_object_by_uid(ref.data) is True


def test_date_property():
    archive, uid = _holder()
    set_class_property(archive, uid, "when", ClassType.NSDATE, 12.5)
    ref = archive.get_class_property(uid, "when").data
    assert archive.get_classname(ref) == "NSDate"
    time_ref = archive.get_class_property(ref, "NS.time")
    assert archive.get_object_by_uid(time_ref.data) == 12.5
    assert archive.uid == len(archive.objects()) - 1


def test_data_property():
    archive, uid = _holder()
    set_class_property(archive, uid, "blob", ClassType.NSDATA, b"\x00\x01")
    ref = archive.get_class_property(uid, "blob").data
    assert archive.get_classname(ref) == "NSMutableData"
    assert archive.get_class_property(ref, "NS.data") == b"\x00\x01"


def test_url_property():
    archive, uid = _holder()
    base = "https://www.example.com/"
    set_class_property(
        archive, uid, "url", ClassType.NSURL,
        ClassType.STRING, base, ClassType.STRING, "path",
    )
    ref = archive.get_class_property(uid, "url").data
    assert archive.get_classname(ref) == "NSURL"
    assert archive.get_class_string_property(ref, "NS.base") == base
    assert archive.get_class_string_property(ref, "NS.relative") == "path"


def test_from_plist_list_of_dicts():
    archive, uid = _holder()
    source = [{"a": "b", "t": True}]
    set_class_property(archive, uid, "items", ClassType.FROM_PLIST, source)
    ref = archive.get_class_property(uid, "items")
    assert archive.get_classname(ref.data) == "NSMutableArray"
    assert _unarchive(archive, ref) == source


def test_from_plist_string_element_is_mutable_string():
    archive, uid = _holder()
    set_class_property(archive, uid, "items", ClassType.FROM_PLIST, ["x"])
    ref = archive.get_class_property(uid, "items").data
    (elem,) = archive.get_class_property(ref, "NS.objects")
    assert archive.get_classname(elem.data) == "NSMutableString"
    assert archive.get_class_property(elem.data, "NS.string") == "x"


def test_from_plist_non_list_property_rejected():
    archive, uid = _holder()
    with pytest.raises(ArchiveError):
        set_class_property(archive, uid, "items", ClassType.FROM_PLIST, 5)


def test_set_property_on_non_class_raises():
    archive, _ = _holder()
    with pytest.raises(ArchiveError):
        set_class_property(archive, 0, "x", ClassType.INTEGER, 1)


def test_keyed_archive_property_merges_objects():
    other = KeyedArchive()
    append_class_type(other, ClassType.NSDICTIONARY, "k", ClassType.STRING, "v")
    archive, uid = _holder()
    set_class_property(archive, uid, "inner", ClassType.NSKEYEDARCHIVE, other)
    ref = archive.get_class_property(uid, "inner")
    assert archive.get_classname(ref.data) == "NSDictionary"
    assert archive.uid == len(archive.objects()) - 1
    assert _unarchive(archive, ref) == other.to_plist()


def test_keyed_archive_without_top_gives_null_ref():
    archive, uid = _holder()
    set_class_property(archive, uid, "inner", ClassType.NSKEYEDARCHIVE, KeyedArchive())
    assert archive.get_class_property(uid, "inner") == UID(0)


def test_nsarray_append_item():
    archive = KeyedArchive()
    append_class_type(archive, ClassType.NSARRAY, ClassType.STRING, "a")
    nsarray_append_item(archive, 1, ClassType.STRING, "b")
    assert archive.to_plist() == ["a", "b"]


def test_nsarray_append_item_requires_objects():
    archive, uid = _holder()
    with pytest.raises(ArchiveError):
        nsarray_append_item(archive, uid, ClassType.STRING, "b")


def test_nsdictionary_add_item():
    archive = KeyedArchive()
    append_class_type(archive, ClassType.NSMUTABLEDICTIONARY)
    nsdictionary_add_item(archive, 1, "k", ClassType.STRING, "v")
    nsdictionary_add_item(archive, 1, "flag", ClassType.BOOLEAN, False)
    assert archive.to_plist() == {"k": "v", "flag": False}


def test_nsdictionary_add_item_requires_keys():
    archive, uid = _holder()
    with pytest.raises(ArchiveError):
        nsdictionary_add_item(archive, uid, "k", ClassType.STRING, "v")


def test_archive_survives_xml_round_trip():
    archive = KeyedArchive()
    append_class_type(archive, ClassType.NSDICTIONARY, "key", ClassType.STRING, "value")
    restored = KeyedArchive.from_data(archive.to_xml().encode("utf-8"))
    assert restored.to_plist() == {"key": "value"}