"""Typed construction of objects inside a :class:`KeyedArchive`.

Values are passed as flat argument lists in which container types consume
their own children: an array takes ``type, value`` pairs, a dictionary takes
``key, type, value`` triples, and both stop at a ``0`` or at the end of the
arguments.  Nested containers need an explicit ``0`` to end them.
"""

from __future__ import annotations

import copy
import enum
from collections.abc import Iterator
from plistlib import UID

from .keyedarchive import ArchiveError, KeyedArchive

__all__ = [
    "ClassType",
    "append_class_type",
    "set_class_property",
    "nsarray_append_item",
    "nsdictionary_add_item",
]

_MASK64 = 0xFFFFFFFFFFFFFFFF
_MISSING = object()


class ClassType(enum.IntEnum):
    """Kinds of values that can be placed into a keyed archive."""

    INTEGER = 1
    BOOLEAN = 2
    CHARS = 3
    STRING = 4
    REAL = 5
    ARRAY = 6
    DATA = 7
    INTREF = 8
    NSMUTABLESTRING = 9
    NSSTRING = 10
    NSMUTABLEARRAY = 11
    NSARRAY = 12
    NSMUTABLEDICTIONARY = 13
    NSDICTIONARY = 14
    NSDATE = 15
    NSURL = 16
    NSMUTABLEDATA = 17
    NSDATA = 18
    NSKEYEDARCHIVE = 19
    FROM_PLIST = 20


_CLASS_CHAINS: dict[ClassType, tuple[str, ...]] = {
    ClassType.NSMUTABLESTRING: ("NSMutableString", "NSString", "NSObject"),
    ClassType.NSSTRING: ("NSString", "NSObject"),
    ClassType.NSMUTABLEARRAY: ("NSMutableArray", "NSArray", "NSObject"),
    ClassType.NSARRAY: ("NSArray", "NSObject"),
    ClassType.NSMUTABLEDICTIONARY: ("NSMutableDictionary", "NSDictionary", "NSObject"),
    ClassType.NSDICTIONARY: ("NSDictionary", "NSObject"),
    ClassType.NSDATE: ("NSDate", "NSObject"),
    ClassType.NSMUTABLEDATA: ("NSMutableData", "NSData", "NSObject"),
    ClassType.NSDATA: ("NSMutableData", "NSData", "NSObject"),
    ClassType.NSURL: ("NSURL", "NSObject"),
}

_STRING_TYPES = (ClassType.NSMUTABLESTRING, ClassType.NSSTRING)
_ARRAY_TYPES = (ClassType.NSMUTABLEARRAY, ClassType.NSARRAY)
_DICT_TYPES = (ClassType.NSMUTABLEDICTIONARY, ClassType.NSDICTIONARY)
_DATA_TYPES = (ClassType.NSMUTABLEDATA, ClassType.NSDATA)


def _as_type(value) -> ClassType:
    try:
        return ClassType(value)
    except ValueError as exc:
        raise ArchiveError(f"invalid class type {value!r}") from exc


def _take(args: Iterator, what: str):
    value = next(args, _MISSING)
    if value is _MISSING:
        raise ArchiveError(f"missing {what} argument")
    return value


def _take_str(args: Iterator) -> str:
    value = _take(args, "string")
    if not isinstance(value, str):
        raise ArchiveError(f"string expected, got {type(value).__name__}")
    return value


def _next_type(args: Iterator) -> ClassType | None:
    """Read the next type argument; None marks the end of a list."""
    value = next(args, 0)
    if value == 0:
        return None
    return _as_type(value)


def _uint(value) -> int:
    return int(value) & _MASK64


def _new_ref(archive: KeyedArchive) -> UID:
    archive.uid += 1
    return UID(archive.uid)


def _top_uid(other: KeyedArchive) -> int:
    try:
        return other.get_class_uid()
    except ArchiveError:
        return 0


def _copy_archive_top(archive: KeyedArchive, other: KeyedArchive, obj) -> None:
    obj_copy = copy.deepcopy(obj)
    archive.append_object(obj_copy)
    archive.merge_object(other, obj_copy)


def _fill_array(archive: KeyedArchive, newuid: int, args: Iterator) -> None:
    items: list = []
    while (ptype := _next_type(args)) is not None:
        _array_append(archive, items, ptype, args)
    _set_property(archive, newuid, "NS.objects", ClassType.ARRAY, iter((items,)))


def _fill_dict(archive: KeyedArchive, newuid: int, args: Iterator) -> None:
    keys: list = []
    values: list = []
    while True:
        key = next(args, None)
        if key is None:
            break
        ptype = _next_type(args)
        if ptype is None:
            break
        _array_append(archive, keys, ClassType.STRING, iter((key,)))
        _array_append(archive, values, ptype, args)
    _set_property(archive, newuid, "NS.keys", ClassType.ARRAY, iter((keys,)))
    _set_property(archive, newuid, "NS.objects", ClassType.ARRAY, iter((values,)))


def _fill_url(archive: KeyedArchive, newuid: int, args: Iterator) -> None:
    for propname in ("NS.base", "NS.relative"):
        ptype = _next_type(args)
        if ptype is None:
            return
        _set_property(archive, newuid, propname, ptype, args)


def _build_instance(archive, type_, newuid, args, string_type) -> None:
    """Append the class entries for ``type_`` and fill the instance at ``newuid``."""
    archive.append_class(*_CLASS_CHAINS[type_])
    if type_ in _STRING_TYPES:
        _set_property(archive, newuid, "NS.string", string_type, iter((_take_str(args),)))
    elif type_ in _ARRAY_TYPES:
        _fill_array(archive, newuid, args)
    elif type_ in _DICT_TYPES:
        _fill_dict(archive, newuid, args)
    elif type_ is ClassType.NSDATE:
        value = float(_take(args, "date"))
        _set_property(archive, newuid, "NS.time", ClassType.REAL, iter((value,)))
    elif type_ in _DATA_TYPES:
        value = _take(args, "data")
        _set_property(archive, newuid, "NS.data", ClassType.DATA, iter((value,)))
    else:
        _fill_url(archive, newuid, args)


def _array_append_plist_dict(archive: KeyedArchive, array: list, value: dict) -> None:
    array.append(_new_ref(archive))
    newuid = archive.uid
    archive.append_class("NSDictionary", "NSObject")
    keys: list = []
    values: list = []
    for key, item in value.items():
        _array_append(archive, keys, ClassType.STRING, iter((key,)))
        if isinstance(item, bool):
            ptype = ClassType.BOOLEAN
        elif isinstance(item, int):
            ptype = ClassType.INTEGER
        elif isinstance(item, str):
            ptype = ClassType.STRING
        else:
            raise ArchiveError(f"unhandled plist type {type(item).__name__} in dictionary")
        _array_append(archive, values, ptype, iter((item,)))
    _set_property(archive, newuid, "NS.keys", ClassType.ARRAY, iter((keys,)))
    _set_property(archive, newuid, "NS.objects", ClassType.ARRAY, iter((values,)))


def _array_append(archive: KeyedArchive, array: list, type_: ClassType, args: Iterator) -> None:
    """Append one value of ``type_`` to the uid list ``array``."""
    if type_ is ClassType.INTEGER:
        array.append(_uint(_take(args, "integer")))
    elif type_ is ClassType.INTREF:
        value = _uint(_take(args, "integer"))
        array.append(_new_ref(archive))
        archive.append_object(value)
    elif type_ is ClassType.BOOLEAN:
        value = bool(_take(args, "boolean"))
        array.append(_new_ref(archive))
        archive.append_object(value)
    elif type_ is ClassType.CHARS:
        array.append(_take_str(args))
    elif type_ is ClassType.STRING:
        value = _take_str(args)
        array.append(_new_ref(archive))
        archive.append_object(value)
    elif type_ is ClassType.REAL:
        value = float(_take(args, "real"))
        array.append(_new_ref(archive))
        archive.append_object(value)
    elif type_ in _CLASS_CHAINS:
        array.append(_new_ref(archive))
        _build_instance(archive, type_, archive.uid, args, ClassType.CHARS)
    elif type_ is ClassType.NSKEYEDARCHIVE:
        other = _take(args, "archive")
        if other is None:
            raise ArchiveError("no archive argument given for NSKEYEDARCHIVE")
        top = _top_uid(other)
        if top != 0:
            obj = other.get_object_by_uid(top)
            array.append(_new_ref(archive))
            _copy_archive_top(archive, other, obj)
    elif type_ is ClassType.FROM_PLIST:
        value = _take(args, "plist")
        if value is None:
            raise ArchiveError("no plist argument given for FROM_PLIST")
        if isinstance(value, str):
            _array_append(archive, array, ClassType.NSMUTABLESTRING, iter((value,)))
        elif isinstance(value, dict):
            _array_append_plist_dict(archive, array, value)
        else:
            raise ArchiveError(f"unhandled plist type {type(value).__name__}")
    else:
        raise ArchiveError(f"unexpected type {type_.name}")


def _append_class_type(archive: KeyedArchive, type_: ClassType, args: Iterator) -> None:
    if type_ in (ClassType.INTEGER, ClassType.CHARS, ClassType.ARRAY):
        raise ArchiveError(f"{type_.name} is not an object type, can't add it as class")
    if type_ is ClassType.INTREF:
        archive.append_object(_uint(_take(args, "integer")))
    elif type_ is ClassType.BOOLEAN:
        archive.append_object(bool(_take(args, "boolean")))
    elif type_ is ClassType.STRING:
        value = next(args, None)
        if value is not None:
            if value != "$null":
                archive.append_object(str(value))
            else:
                archive.plist.setdefault("$top", {"$0": UID(0)})
    elif type_ is ClassType.REAL:
        archive.append_object(float(_take(args, "real")))
    elif type_ in _CLASS_CHAINS:
        _build_instance(archive, type_, archive.uid, args, ClassType.STRING)
    else:
        raise ArchiveError(f"unexpected class type {type_.name}")
    archive.plist.setdefault("$top", {"$0": UID(1)})


def _set_property(archive, uid, propname, proptype: ClassType, args: Iterator) -> None:
    target = archive.get_class_by_uid(uid)
    if proptype is ClassType.INTEGER:
        target[propname] = _uint(_take(args, "integer"))
    elif proptype is ClassType.INTREF:
        value = _uint(_take(args, "integer"))
        target[propname] = _new_ref(archive)
        archive.append_object(value)
    elif proptype is ClassType.BOOLEAN:
        value = bool(_take(args, "boolean"))
        target[propname] = _new_ref(archive)
        archive.append_object(value)
    elif proptype is ClassType.CHARS:
        target[propname] = _take_str(args)
    elif proptype is ClassType.STRING:
        value = _take_str(args)
        if value == "$null":
            target[propname] = UID(0)
        else:
            target[propname] = _new_ref(archive)
            archive.append_object(value)
    elif proptype is ClassType.DATA:
        target[propname] = memoryview(_take(args, "data")).tobytes()
    elif proptype is ClassType.ARRAY:
        value = _take(args, "array")
        if not isinstance(value, list):
            raise ArchiveError("list expected for ARRAY property")
        target[propname] = copy.deepcopy(value)
    elif proptype is ClassType.REAL or proptype in _CLASS_CHAINS:
        target[propname] = _new_ref(archive)
        _append_class_type(archive, proptype, args)
    elif proptype is ClassType.NSKEYEDARCHIVE:
        other = _take(args, "archive")
        if other is None:
            raise ArchiveError("no archive argument given for NSKEYEDARCHIVE")
        top = _top_uid(other)
        if top != 0:
            obj = other.get_object_by_uid(top)
            target[propname] = _new_ref(archive)
            _copy_archive_top(archive, other, obj)
        else:
            target[propname] = UID(0)
    elif proptype is ClassType.FROM_PLIST:
        value = _take(args, "plist")
        if value is None:
            raise ArchiveError("no plist argument given for FROM_PLIST")
        if not isinstance(value, list):
            raise ArchiveError(
                f"plist type {type(value).__name__} is not implemented for conversion"
            )
        target[propname] = _new_ref(archive)
        newuid = archive.uid
        archive.append_class("NSMutableArray", "NSArray", "NSObject")
        items: list = []
        for element in value:
            _array_append(archive, items, ClassType.FROM_PLIST, iter((element,)))
        _set_property(archive, newuid, "NS.objects", ClassType.ARRAY, iter((items,)))
    else:
        raise ArchiveError(f"unexpected property type {proptype.name}")


def append_class_type(archive, type_, *args) -> None:
    """Append an object of ``type_`` built from ``args`` to the archive."""
    if archive is None:
        raise ArchiveError("invalid keyed archive")
    _append_class_type(archive, _as_type(type_), iter(args))


def set_class_property(archive, uid, propname, proptype, *args) -> None:
    """Set ``propname`` on the instance at ``uid`` to a value of ``proptype``."""
    archive.get_class_by_uid(uid)
    _set_property(archive, uid, propname, _as_type(proptype), iter(args))


def nsarray_append_item(archive, uid, type_, *args) -> None:
    """Append a value to the NSArray instance at ``uid``."""
    try:
        objects = archive.get_class_property(uid, "NS.objects")
    except ArchiveError as exc:
        raise ArchiveError(
            "invalid NSArray object in archive: missing NS.objects property"
        ) from exc
    if not isinstance(objects, list):
        raise ArchiveError("invalid NSArray object in archive: NS.objects is not a list")
    _array_append(archive, objects, _as_type(type_), iter(args))


def nsdictionary_add_item(archive, uid, key, type_, *args) -> None:
    """Add ``key`` with a value of ``type_`` to the NSDictionary instance at ``uid``."""
    try:
        keys = archive.get_class_property(uid, "NS.keys")
    except ArchiveError as exc:
        raise ArchiveError(
            "invalid NSDictionary object in archive: missing NS.keys property"
        ) from exc
    try:
        objects = archive.get_class_property(uid, "NS.objects")
    except ArchiveError as exc:
        raise ArchiveError(
            "invalid NSDictionary object in archive: missing NS.objects property"
        ) from exc
    ptype = _as_type(type_)
    _array_append(archive, keys, ClassType.STRING, iter((key,)))
    _array_append(archive, objects, ptype, iter(args))