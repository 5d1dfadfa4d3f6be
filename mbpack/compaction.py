# MBPack: a tool for MBTiles files
# Supports importing, exporting, and more
#
# (c) Development Seed 2012
# Licensed under BSD

# Deduplication of tile content. Tiles are read in insertion order, a window
# at a time, and identical blobs inside one window share a single row of the
# `images` table. Duplicates that fall in different windows are not merged.

import sqlite3, logging, time

from mbpack.errors import AlreadyCompactedError
from mbpack.records import CompactionStats

logger = logging.getLogger(__name__)

DEFAULT_WINDOW = 256

def compression_prepare(cur, silent=False):
    if not silent:
        logger.debug('Prepare database compression.')
    res = cur.execute("""select type from sqlite_master
        where name = 'tiles'""").fetchone()
    if res and res[0] == 'view':
        raise AlreadyCompactedError('tiles is already a view, database was compressed before')
    cur.execute("""
      CREATE TABLE if not exists images (
        tile_data blob,
        tile_id integer);
    """)
    cur.execute("""
      CREATE TABLE if not exists map (
        zoom_level integer,
        tile_column integer,
        tile_row integer,
        tile_id integer);
    """)

def compact_window(cur, rows, last_id):
    """
    Write `map` and `images` rows for one window of tile rows.

    ``rows`` are (zoom_level, tile_column, tile_row, tile_data) tuples and
    ``last_id`` is the highest tile_id handed out so far. Returns the new
    highest tile_id and the number of rows that reused an earlier blob.
    """
    seen = {}
    overlapping = 0
    for z, x, y, tile_data in rows:
        tile_data = bytes(tile_data)
        tile_id = seen.get(tile_data)
        if tile_id is not None:
            overlapping += 1
        else:
            last_id += 1
            tile_id = seen[tile_data] = last_id
            cur.execute("""insert into images
                (tile_id, tile_data)
                values (?, ?)""", (tile_id, sqlite3.Binary(tile_data)))
        cur.execute("""insert into map
            (zoom_level, tile_column, tile_row, tile_id)
            values (?, ?, ?, ?)""", (z, x, y, tile_id))
    return last_id, overlapping

def compression_do(cur, window=DEFAULT_WINDOW, silent=False):
    if window < 1:
        raise ValueError('compression window must be at least 1, got %r' % (window,))
    if not silent:
        logger.debug('Making database compression.')
    total_tiles = cur.execute("select count(zoom_level) from tiles").fetchone()[0]
    if not silent:
        logger.debug("%d total tiles to fetch" % total_tiles)
    total = 0
    overlapping = 0
    last_id = 0
    last_rowid = 0
    rounds = 0
    while True:
        start = time.time()
        rows = cur.execute("""select rowid, zoom_level, tile_column, tile_row, tile_data
            from tiles where rowid > ? order by rowid limit ?""",
            (last_rowid, window)).fetchall()
        if not rows:
            break
        if not silent:
            logger.debug("select: %s" % (time.time() - start))
        last_rowid = rows[-1][0]
        last_id, repeated = compact_window(cur, [r[1:] for r in rows], last_id)
        total += len(rows)
        overlapping += repeated
        rounds += 1
        if not silent:
            logger.debug("%d / %d rounds done" % (rounds, (total_tiles + window - 1) // window))
    return CompactionStats(total, last_id, overlapping)

def compression_finalize(cur, silent=False):
    if not silent:
        logger.debug('Finalizing database compression.')
    cur.execute("""drop table tiles;""")
    cur.execute("""create view tiles as
        select map.zoom_level as zoom_level,
        map.tile_column as tile_column,
        map.tile_row as tile_row,
        images.tile_data as tile_data FROM
        map JOIN images on images.tile_id = map.tile_id;""")
    cur.execute("""
          CREATE UNIQUE INDEX map_index on map
            (zoom_level, tile_column, tile_row);""")
    cur.execute("""
          CREATE UNIQUE INDEX images_id on images
            (tile_id);""")
    cur.execute("""vacuum;""")
    cur.execute("""analyze;""")

def compact(con, window=DEFAULT_WINDOW, silent=False):
    """
    Replace the `tiles` table of an open connection by `map` + `images`
    and a `tiles` view over them. The connection must be in autocommit
    mode (isolation_level None) for the final vacuum.
    """
    cur = con.cursor()
    compression_prepare(cur, silent)
    stats = compression_do(cur, window, silent)
    compression_finalize(cur, silent)
    if not silent:
        logger.info('%d tiles compressed into %d images (%d duplicates)' % stats)
    return stats
