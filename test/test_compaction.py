import pytest

from mbpack.compaction import compact
from mbpack.errors import AlreadyCompactedError
from mbpack.util import mbtiles_connect, mbtiles_setup


def tileset(tmp_path, contents):
    con = mbtiles_connect(str(tmp_path / 'compact.mbtiles'))
    mbtiles_setup(con.cursor())
    for i, content in enumerate(contents):
        con.execute('insert into tiles (zoom_level, tile_column, tile_row, tile_data) values (?, ?, ?, ?)',
            (4, i, 0, content))
    return con


def tile_ids(con):
    return dict((x, tile_id) for x, tile_id in
        con.execute('select tile_column, tile_id from map'))


def test_window_dedup(tmp_path):
    con = tileset(tmp_path, [b'A', b'B', b'A', b'C'])
    stats = compact(con, 4, silent=True)
    assert stats == (4, 3, 1)
    assert con.execute('select count(*) from images').fetchone()[0] == 3
    ids = tile_ids(con)
    assert ids[0] == ids[2]
    assert len(set(ids.values())) == 3
    con.close()


def test_no_dedup_across_windows(tmp_path):
    con = tileset(tmp_path, [b'A', b'B', b'A', b'C'])
    compact(con, 2, silent=True)
    assert con.execute('select count(*) from images').fetchone()[0] == 4
    ids = tile_ids(con)
    assert ids[0] != ids[2]
    assert sorted(ids.values()) == [1, 2, 3, 4]
    con.close()


def test_view_reproduces_tiles(tmp_path):
    contents = [b'A', b'B', b'A', b'C', b'A', b'B', b'D']
    con = tileset(tmp_path, contents)
    compact(con, 3, silent=True)
    assert con.execute("select type from sqlite_master where name = 'tiles'").fetchone()[0] == 'view'
    tiles = con.execute('select tile_column, tile_data from tiles order by tile_column').fetchall()
    assert [bytes(t[1]) for t in tiles] == contents
    con.close()


def test_unique_map_index(tmp_path):
    con = tileset(tmp_path, [b'A', b'A'])
    compact(con, silent=True)
    indexes = [r[0] for r in con.execute("select name from sqlite_master where type = 'index'")]
    assert 'map_index' in indexes
    assert 'images_id' in indexes
    con.close()


def test_compact_twice(tmp_path):
    con = tileset(tmp_path, [b'A'])
    compact(con, silent=True)
    with pytest.raises(AlreadyCompactedError):
        compact(con, silent=True)
    con.close()


def test_empty_tileset(tmp_path):
    con = tileset(tmp_path, [])
    assert compact(con, silent=True) == (0, 0, 0)
    con.close()


def test_bad_window(tmp_path):
    con = tileset(tmp_path, [b'A'])
    with pytest.raises(ValueError):
        compact(con, 0, silent=True)
    con.close()
