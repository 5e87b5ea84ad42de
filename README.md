# mobileglue

Pure-Python helpers for the data formats that mobile device services use.
The package needs nothing beyond the standard library.

## What is inside

- `mobileglue.sha`: streaming `Sha1`, `Sha224` and `Sha256` hashers with
  `update(data)`, `digest()`, `hexdigest()` and `copy()`. `digest()` leaves the
  hasher usable, so more data can be fed afterwards. The one-shot functions
  `sha1`, `sha224` and `sha256` return the digest of a single message.
- `mobileglue.opack`: `encode(obj)` and `decode(data)` for the compact "opack"
  binary format. The supported values are `dict` with string keys, `list` and
  `tuple`, `bool`, `int` (unsigned 64-bit; negative values wrap), `float`,
  `datetime.datetime` (naive values count as UTC), `str` and bytes-like
  objects. Unsupported values and malformed input raise `OpackError`, which is
  a subclass of `ValueError`.
- `mobileglue.keyedarchive`: `KeyedArchive` holds a property list in
  NSKeyedArchiver layout. You can build one empty, or load one with
  `KeyedArchive.from_plist(...)` or `KeyedArchive.from_data(...)` (binary or
  XML plist bytes). It can look up objects, class names and properties,
  merge objects from another archive, write itself out with `to_xml()`, and
  flatten its top object into plain dicts and lists with `to_plist()`.
  Malformed archives and failed lookups raise `ArchiveError`. Object
  references are `plistlib.UID` values.
- `mobileglue.archivetypes`: the `ClassType` enumeration and the functions
  `append_class_type`, `set_class_property`, `nsarray_append_item` and
  `nsdictionary_add_item`. These add typed values to a `KeyedArchive`:
  integers, booleans, reals, strings, NSString, NSArray, NSDictionary, NSDate,
  NSData, NSURL, nested archives and values converted from plain plists. The
  values go in as a flat argument list. An array takes `type, value` pairs
  and a dictionary takes `key, type, value` triples. Both stop at `0`, at
  `None` or at the end of the arguments.
- `mobileglue.cbuf`: `CharBuf` is a growable byte buffer. Its reserved
  capacity grows in steps of 256 bytes.
- `mobileglue.collection`: `Collection` is an unordered container that keeps
  its elements in slots and matches them by identity. A removed element frees
  its slot for reuse. `remove` raises `ValueError` when the element is
  absent, and `None` cannot be stored.
- `mobileglue.glue`: `version()` returns the library version string.

## What it does not do

The package does not open connections to devices and has no networking,
socket, threading or terminal-colour helpers. It only produces and reads
bytes and Python objects.

## Installation

```
pip install .
```

## Examples

Digests:

```python
from mobileglue.sha import Sha256, sha1

h = Sha256()
h.update(b"hello ")
h.update(b"world")
print(h.hexdigest())
print(sha1(b"abc").hex())
```

opack round trip:

```python
from mobileglue.opack import encode, decode

blob = encode({"name": "device", "count": 3, "flags": [True, False]})
assert decode(blob) == {"name": "device", "count": 3, "flags": [True, False]}
```

Keyed archives:

```python
from mobileglue.keyedarchive import KeyedArchive
from mobileglue.archivetypes import ClassType, append_class_type

archive = KeyedArchive()
append_class_type(archive, ClassType.NSMUTABLEDICTIONARY, "key", ClassType.STRING, "value", None)
print(archive.to_plist())   # {'key': 'value'}
print(archive.to_xml())
```

## Running the tests

```
pip install ".[test]"
pytest
```