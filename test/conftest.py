import os
import json

import pytest


def write(path, content):
    if not os.path.isdir(os.path.dirname(path)):
        os.makedirs(os.path.dirname(path))
    mode = 'wb' if isinstance(content, bytes) else 'w'
    with open(path, mode) as f:
        f.write(content)


UTFGRID = {
    "grid": ["  !!", " !!!", "!!!!", "!!!!"],
    "keys": ["", "77"],
    "data": {"77": {"ISO_A2": "FR", "NAME": "France"}},
}


@pytest.fixture
def one_tile(tmp_path):
    tiles = str(tmp_path / 'tiles')
    write(os.path.join(tiles, 'metadata.json'), json.dumps({"name": "test"}))
    write(os.path.join(tiles, '0', '0', '0.png'), b'X')
    return tiles


@pytest.fixture
def utf8grid(tmp_path):
    tiles = str(tmp_path / 'grids')
    write(os.path.join(tiles, 'metadata.json'), json.dumps({
        "name": "countries",
        "formatter": "function(options, data) { return data.NAME; }",
    }))
    write(os.path.join(tiles, '0', '0', '0.png'), b'\x89PNG tile')
    write(os.path.join(tiles, '0', '0', '0.grid.json'),
        'grid(%s);' % json.dumps(UTFGRID))
    return tiles
