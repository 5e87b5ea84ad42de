"""Build and read property lists in the NSKeyedArchiver object-graph layout.

Property list values are plain Python objects as produced by :mod:`plistlib`:
``dict``, ``list``, ``str``, ``int``, ``float``, ``bool``, ``bytes``,
``datetime`` and :class:`plistlib.UID` for object references.
"""

from __future__ import annotations

import copy
import plistlib
from plistlib import UID

__all__ = ["ArchiveError", "KeyedArchive"]

ARCHIVER_NAME = "NSKeyedArchiver"
ARCHIVER_VERSION = 100000

_DICT_CLASSES = ("NSMutableDictionary", "NSDictionary")
_ARRAY_CLASSES = ("NSMutableArray", "NSArray")


class ArchiveError(ValueError):
    """Raised for malformed archives and failed lookups."""


def _is_int(value) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def _uids_to_xml(value):
    """Replace UIDs with the ``{"CF$UID": n}`` form that XML plists use."""
    if isinstance(value, UID):
        return {"CF$UID": value.data}
    if isinstance(value, dict):
        return {key: _uids_to_xml(item) for key, item in value.items()}
    if isinstance(value, list):
        return [_uids_to_xml(item) for item in value]
    return value


def _uids_from_xml(value):
    """Turn ``{"CF$UID": n}`` dictionaries read from XML back into UIDs."""
    if isinstance(value, dict):
        if len(value) == 1 and _is_int(value.get("CF$UID")):
            return UID(value["CF$UID"])
        return {key: _uids_from_xml(item) for key, item in value.items()}
    if isinstance(value, list):
        return [_uids_from_xml(item) for item in value]
    return value


class KeyedArchive:
    """An NSKeyedArchiver property list together with its object uid counter.

    ``plist`` is the archive's top-level dictionary, ``uid`` the counter used
    when new objects are referenced.
    """

    def __init__(self) -> None:
        self.plist: dict = {
            "$version": ARCHIVER_VERSION,
            "$objects": ["$null"],
            "$archiver": ARCHIVER_NAME,
        }
        self.uid = 1

    @classmethod
    def from_plist(cls, plist) -> "KeyedArchive":
        """Validate ``plist`` as a keyed archive and wrap a deep copy of it."""
        if not isinstance(plist, dict):
            raise ArchiveError("invalid parameter, dictionary expected")
        if plist.get("$archiver") != ARCHIVER_NAME:
            raise ArchiveError(
                "plist is not in NSKeyedArchiver format ($archiver key not found or invalid)"
            )
        version = plist.get("$version")
        if not _is_int(version) or version != ARCHIVER_VERSION:
            raise ArchiveError(
                f"unexpected NSKeyedArchiver version encountered ({version!r} != {ARCHIVER_VERSION})"
            )
        top = plist.get("$top")
        if not isinstance(top, dict):
            raise ArchiveError("$top node not found")
        top_uid = top.get("$0")
        if top_uid is None:
            top_uid = top.get("root")
        if not isinstance(top_uid, UID):
            raise ArchiveError("uid '$0' or 'root' not found in $top dict")
        objects = plist.get("$objects")
        if not isinstance(objects, list):
            raise ArchiveError("$objects node not found")
        if top_uid.data >= len(objects):
            raise ArchiveError("can't get object node")
        archive = cls()
        archive.plist = copy.deepcopy(plist)
        archive.uid = len(objects) - 1
        return archive

    @classmethod
    def from_data(cls, data) -> "KeyedArchive":
        """Parse a binary or XML property list and wrap it as a keyed archive."""
        raw = memoryview(data).tobytes()
        if len(raw) < 8:
            raise ArchiveError("invalid parameter")
        try:
            if raw.startswith(b"bplist00"):
                plist = plistlib.loads(raw, fmt=plistlib.FMT_BINARY)
            elif raw.startswith(b"<?xml") or raw.startswith(b"<plist"):
                plist = _uids_from_xml(plistlib.loads(raw, fmt=plistlib.FMT_XML))
            else:
                raise ArchiveError("data is neither a binary nor an XML plist")
        except ArchiveError:
            raise
        except Exception as exc:
            raise ArchiveError("can't parse plist from data") from exc
        return cls.from_plist(plist)

    def set_top_ref_key_name(self, keyname) -> None:
        """Rename the first key of the ``$top`` dictionary, keeping its place."""
        top = self.plist.get("$top")
        if not isinstance(top, dict) or not top:
            return
        first, *_ = top
        renamed = {(keyname if key == first else key): value for key, value in top.items()}
        self.plist["$top"] = renamed

    def objects(self) -> list:
        """Return the ``$objects`` list itself."""
        objects = self.plist.get("$objects")
        if not isinstance(objects, list):
            raise ArchiveError("$objects node not found")
        return objects

    def get_object_by_uid(self, uid):
        """Return the object stored at index ``uid``."""
        objects = self.objects()
        if not 0 <= uid < len(objects):
            raise ArchiveError(f"unable to get object node with uid {uid}")
        return objects[uid]

    def get_class_by_uid(self, uid) -> dict:
        """Return the object at ``uid``, which must be a dictionary."""
        obj = self.get_object_by_uid(uid)
        if not isinstance(obj, dict):
            raise ArchiveError(f"the uid {uid} does not reference a valid class dictionary")
        return obj

    def append_object(self, obj) -> None:
        """Append ``obj`` to ``$objects``."""
        self.objects().append(obj)

    def append_class(self, classname, *args) -> None:
        """Append an instance referencing a new class entry.

        Extra arguments name the superclasses listed in ``$classes``.
        """
        if not classname:
            raise ArchiveError("missing classname")
        self.uid += 1
        self.append_object({"$class": UID(self.uid)})
        cls: dict = {}
        if args:
            cls["$classes"] = [classname, *args]
        cls["$classname"] = classname
        self.append_object(cls)

    def add_top_class_uid(self, uid) -> None:
        """Add a reference to ``uid`` under the next ``$N`` key of ``$top``."""
        top = self.plist.get("$top")
        if top is None:
            self.plist["$top"] = {"$0": UID(uid)}
        else:
            top[f"${len(top)}"] = UID(uid)

    def add_top_class(self, classname, *args) -> int:
        """Append a class instance, reference it from ``$top`` and return its uid."""
        if not classname:
            raise ArchiveError("missing classname")
        uid = self.uid
        self.append_class(classname, *args)
        self.add_top_class_uid(uid)
        return uid

    def merge_object(self, other, obj) -> None:
        """Copy every object that ``obj`` references in ``other`` into this archive.

        References inside ``obj`` are rewritten in place to the new uids.
        """
        if other is None or obj is None:
            return
        if isinstance(obj, dict):
            slots = list(obj.items())
        elif isinstance(obj, list):
            slots = list(enumerate(obj))
        else:
            return
        for slot, value in slots:
            if isinstance(value, UID):
                if value.data > 0:
                    target = other.get_object_by_uid(value.data)
                    self.uid += 1
                    obj[slot] = UID(self.uid)
                    target_copy = copy.deepcopy(target)
                    self.append_object(target_copy)
                    self.merge_object(other, target_copy)
            elif isinstance(value, (dict, list)):
                self.merge_object(other, value)

    def to_xml(self) -> str:
        """Return the archive as an XML property list."""
        return plistlib.dumps(
            _uids_to_xml(self.plist), fmt=plistlib.FMT_XML, sort_keys=False
        ).decode("utf-8")

    def get_class_uid(self, classref=None) -> int:
        """Return the uid referenced from ``$top`` by ``classref``.

        Without ``classref`` the ``$0`` entry is used, falling back to ``root``.
        """
        top = self.plist.get("$top")
        if not isinstance(top, dict):
            raise ArchiveError("$top node not found")
        top_uid = top.get(classref if classref else "$0")
        if top_uid is None and not classref:
            top_uid = top.get("root")
        if not isinstance(top_uid, UID):
            raise ArchiveError(f"uid for {classref!r} not found in $top dict")
        return top_uid.data

    def get_classname(self, uid) -> str:
        """Return the class name of the instance at ``uid``."""
        obj = self.get_object_by_uid(uid)
        class_uid = obj.get("$class") if isinstance(obj, dict) else None
        if not isinstance(class_uid, UID):
            raise ArchiveError("$class is not a uid node")
        if class_uid.data == 0:
            raise ArchiveError("can't get $class uid val")
        classname = self.get_class_by_uid(class_uid.data).get("$classname")
        if not isinstance(classname, str):
            raise ArchiveError("invalid $classname in class dict")
        return classname

    def get_class_property(self, uid, propname):
        """Return the raw value of ``propname`` on the instance at ``uid``."""
        obj = self.get_class_by_uid(uid)
        if propname not in obj:
            raise ArchiveError(f"no such property {propname!r}")
        return obj[propname]

    def get_class_uint64_property(self, uid, propname) -> int:
        """Return an integer property, following a uid reference if there is one."""
        prop = self.get_class_property(uid, propname)
        if isinstance(prop, UID):
            prop = self.get_object_by_uid(prop.data)
        if not _is_int(prop):
            raise ArchiveError(f"property {propname!r} is not of type integer")
        return prop

    def get_class_int_property(self, uid, propname) -> int:
        """Return an integer property narrowed to a signed 32-bit value."""
        value = self.get_class_uint64_property(uid, propname) & 0xFFFFFFFF
        return value - (1 << 32) if value >= (1 << 31) else value

    def get_class_string_property(self, uid, propname) -> str:
        """Return the string that the property ``propname`` references."""
        node = self.get_class_property(uid, propname)
        if not isinstance(node, UID):
            raise ArchiveError(f"property {propname!r} is not a reference")
        prop = self.get_object_by_uid(node.data)
        if not isinstance(prop, str):
            raise ArchiveError(f"property {propname!r} is not a string")
        return prop

    def to_plist(self):
        """Unarchive the top object into plain dictionaries, lists and scalars."""
        return self._parse_object(self.get_class_uid())

    def _parse_object(self, uid):
        obj = self.get_object_by_uid(uid)
        if isinstance(obj, (bool, int, str)):
            return copy.copy(obj)
        classname = self.get_classname(uid)
        if classname in _DICT_CLASSES:
            keys = self.get_class_property(uid, "NS.keys")
            values = self.get_class_property(uid, "NS.objects")
            if len(keys) != len(values):
                raise ArchiveError("inconsistent number of keys vs. values in dictionary object")
            result = {}
            for key_node, value_node in zip(keys, values):
                key = self._parse_object(self._ref(key_node))
                value = self._parse_object(self._ref(value_node))
                if not isinstance(key, str):
                    raise ArchiveError("key node is not of string type")
                result[key] = value
            return result
        if classname in _ARRAY_CLASSES:
            values = self.get_class_property(uid, "NS.objects")
            return [self._parse_object(self._ref(node)) for node in values]
        raise ArchiveError(f"unhandled class type {classname!r}")

    @staticmethod
    def _ref(node) -> int:
        return node.data if isinstance(node, UID) else 0

    def __repr__(self) -> str:
        return f"KeyedArchive(objects={len(self.objects())}, uid={self.uid})"