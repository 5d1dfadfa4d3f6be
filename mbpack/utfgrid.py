# MBPack: a tool for MBTiles files
# Supports importing, exporting, and more
#
# (c) Development Seed 2012
# Licensed under BSD

# UTFGrid documents are stored in two halves: the zlib compressed grid and
# keys in `grids`, and every feature of the `data` member as its own row in
# `grid_data`.

import json, re, zlib

from mbpack.errors import MalformedGridJsonError
from mbpack.records import GridFeature

CALLBACK_RE = re.compile(r'[\w\s=+-/]+\(({.*})\);?\s*$', re.DOTALL)

# callback values that mean "write plain json"
NO_CALLBACK = (None, "", "false", "null")

def unwrap_jsonp(text):
    """Strip a ``callback(...);`` wrapper. Anything else is returned as is."""
    has_callback = CALLBACK_RE.match(text)
    if has_callback:
        return has_callback.group(1)
    return text

def wrap_jsonp(text, callback):
    if callback in NO_CALLBACK:
        return text
    return '%s(%s);' % (callback, text)

def parse(text, path=None):
    """Parse a grid file's content, given as bytes or text."""
    try:
        if isinstance(text, bytes):
            text = text.decode('utf-8')
        utfgrid = json.loads(unwrap_jsonp(text))
    except ValueError as e:
        raise MalformedGridJsonError('Could not parse grid %s: %s' % (path or '', e), path)
    if not isinstance(utfgrid, dict):
        raise MalformedGridJsonError('Grid %s is not a json object' % (path or ''), path)
    if not isinstance(utfgrid.get('data') or {}, dict):
        raise MalformedGridJsonError('Grid %s has a data member that is not an object' % (path or ''), path)
    return utfgrid

def split(document):
    structure = dict(document)
    data = structure.pop('data', None) or {}
    return structure, data

def recombine(structure, data):
    document = dict(structure)
    document['data'] = dict(data)
    return document

def compress(structure):
    return zlib.compress(json.dumps(structure).encode('utf-8'))

def decompress(blob):
    return json.loads(zlib.decompress(blob).decode('utf-8'))

def features(z, x, y, data):
    return [GridFeature(z, x, y, key_name, json.dumps(key_json))
        for key_name, key_json in data.items() if key_name != ""]

def dumps(structure, data, callback=None):
    return wrap_jsonp(json.dumps(recombine(structure, data)), callback)
