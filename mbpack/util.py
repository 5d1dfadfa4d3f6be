#!/usr/bin/env python

# MBPack: a tool for MBTiles files
# Supports importing, exporting, and more
#
# (c) Development Seed 2012
# Licensed under BSD

# for additional reference on schema see:
# https://github.com/mapbox/node-mbtiles/blob/master/lib/schema.sql

import sqlite3, logging, time, os, json, warnings

from mbpack import utfgrid
from mbpack.compaction import compact, DEFAULT_WINDOW
from mbpack.errors import (SourceNotFoundError, StorageOpenError, IOFailure,
    MalformedMetadataError, MissingMetadataWarning)
from mbpack.records import Tile, Metadata, GridDocument
from mbpack.schemes import to_canonical, from_canonical

logger = logging.getLogger(__name__)

def mbtiles_setup(cur):
    cur.execute("""
        create table tiles (
            zoom_level integer,
            tile_column integer,
            tile_row integer,
            tile_data blob);
            """)
    cur.execute("""create table metadata
        (name text, value text);""")
    cur.execute("""CREATE TABLE grids (zoom_level integer, tile_column integer,
    tile_row integer, grid blob);""")
    cur.execute("""CREATE TABLE grid_data (zoom_level integer, tile_column
    integer, tile_row integer, key_name text, key_json text);""")
    cur.execute("""create unique index name on metadata (name);""")
    cur.execute("""create unique index tile_index on tiles
        (zoom_level, tile_column, tile_row);""")

def mbtiles_connect(mbtiles_file, silent=False, must_exist=False):
    """
    Open an MBTiles file in autocommit mode, so every insert stands on its
    own and an interrupted run leaves the rows written so far in place.
    """
    if must_exist and not os.path.isfile(mbtiles_file):
        if not silent:
            logger.error("Could not find MBTiles file %s" % mbtiles_file)
        raise StorageOpenError('MBTiles file not found: %s' % mbtiles_file)
    try:
        con = sqlite3.connect(mbtiles_file, isolation_level=None)
        try:
            # connect is lazy, a file that is not sqlite only fails here
            con.execute('select count(*) from sqlite_master').fetchone()
        except sqlite3.Error:
            con.close()
            raise
        return con
    except sqlite3.Error as e:
        if not silent:
            logger.error("Could not connect to database")
            logger.exception(e)
        raise StorageOpenError('Could not open %s: %s' % (mbtiles_file, e))

def optimize_connection(cur):
    cur.execute("""PRAGMA synchronous=0""")
    cur.execute("""PRAGMA locking_mode=EXCLUSIVE""")
    cur.execute("""PRAGMA journal_mode=DELETE""")

def optimize_database(cur, silent=False):
    if not silent:
        logger.debug('analyzing db')
    cur.execute("""ANALYZE;""")
    if not silent:
        logger.debug('cleaning db')
    cur.execute("""VACUUM;""")

def get_dirs(path):
    return sorted(name for name in os.listdir(path)
        if os.path.isdir(os.path.join(path, name)))

def read_file(path):
    try:
        with open(path, 'rb') as f:
            return f.read()
    except (IOError, OSError) as e:
        raise IOFailure('Could not read %s: %s' % (path, e), path)

def write_file(path, content):
    try:
        with open(path, 'wb') as f:
            f.write(content)
    except (IOError, OSError) as e:
        raise IOFailure('Could not write %s: %s' % (path, e), path)

def metadata_value(value):
    if isinstance(value, str):
        return value
    return json.dumps(value)

def read_metadata(directory_path, silent=False):
    """
    Metadata records from metadata.json at the root of a tileset, or an
    empty list when there is no such file.
    """
    path = os.path.join(directory_path, 'metadata.json')
    if not os.path.isfile(path):
        if not silent:
            logger.warning('metadata.json not found')
        warnings.warn('%s not found, importing without metadata' % path,
            MissingMetadataWarning)
        return []
    try:
        metadata = json.loads(read_file(path).decode('utf-8'))
    except ValueError as e:
        raise MalformedMetadataError('Could not parse %s: %s' % (path, e))
    if not isinstance(metadata, dict):
        raise MalformedMetadataError('%s does not hold a json object' % path)
    return [Metadata(name, metadata_value(value))
        for name, value in metadata.items()]

def insert_metadata(cur, records):
    for record in records:
        cur.execute('insert into metadata (name, value) values (?, ?)',
            (record.name, record.value))

def insert_tile(cur, tile):
    cur.execute("""insert into tiles (zoom_level,
        tile_column, tile_row, tile_data) values
        (?, ?, ?, ?);""",
        (tile.zoom_level, tile.tile_column, tile.tile_row,
            sqlite3.Binary(tile.tile_data)))

def insert_grid(cur, grid, data):
    cur.execute("""insert into grids (zoom_level, tile_column, tile_row, grid) values (?, ?, ?, ?) """,
        (grid.zoom_level, grid.tile_column, grid.tile_row,
            sqlite3.Binary(utfgrid.compress(grid.structure))))
    for feature in utfgrid.features(grid.zoom_level, grid.tile_column,
            grid.tile_row, data):
        cur.execute("""insert into grid_data (zoom_level, tile_column, tile_row, key_name, key_json) values (?, ?, ?, ?, ?);""",
            feature)

def walk_tiles(directory_path, silent=False):
    """
    Yield (zoom_dir, middle_dir, file_name) for every file two directory
    levels below ``directory_path``.
    """
    for zoom_dir in get_dirs(directory_path):
        for middle_dir in get_dirs(os.path.join(directory_path, zoom_dir)):
            leaf_dir = os.path.join(directory_path, zoom_dir, middle_dir)
            for current_file in sorted(os.listdir(leaf_dir)):
                if current_file == ".DS_Store":
                    if not silent:
                        logger.warning("Your OS is MacOS,and the .DS_Store file will be ignored.")
                    continue
                if '.' not in current_file:
                    if not silent:
                        logger.debug('Skipping %s, it has no extension' % current_file)
                    continue
                if os.path.isfile(os.path.join(leaf_dir, current_file)):
                    yield zoom_dir, middle_dir, current_file

def disk_to_mbtiles(directory_path, mbtiles_file, **kwargs):

    silent = kwargs.get('silent')
    image_format = kwargs.get('format') or 'png'
    scheme = kwargs.get('scheme') or 'tms'

    if not os.path.isdir(directory_path):
        raise SourceNotFoundError('Tile directory not found: %s' % directory_path)

    if not silent:
        logger.info("Importing disk to MBTiles")
        logger.debug("%s --> %s" % (directory_path, mbtiles_file))

    con = mbtiles_connect(mbtiles_file, silent)
    try:
        cur = con.cursor()
        optimize_connection(cur)
        mbtiles_setup(cur)

        metadata = read_metadata(directory_path, silent)
        insert_metadata(cur, metadata)
        if metadata and not silent:
            logger.info('metadata from metadata.json restored')

        count = 0
        start_time = time.time()

        for zoom_dir, middle_dir, current_file in walk_tiles(directory_path, silent):
            file_name, ext = current_file.split('.', 1)
            if ext != image_format and ext != 'grid.json':
                continue
            z, x, y = to_canonical(scheme, zoom_dir, middle_dir, file_name, silent)
            path = os.path.join(directory_path, zoom_dir, middle_dir, current_file)
            file_content = read_file(path)
            if ext == image_format:
                if not silent:
                    logger.debug(' Read tile from Zoom (z): %i\tCol (x): %i\tRow (y): %i' % (z, x, y))
                insert_tile(cur, Tile(z, x, y, file_content))
                count = count + 1
                if (count % 100) == 0 and not silent:
                    logger.info("%s tiles inserted (%d tiles/sec)" % (count, count / (time.time() - start_time)))
            else:
                if not silent:
                    logger.debug(' Read grid from Zoom (z): %i\tCol (x): %i\tRow (y): %i' % (z, x, y))
                structure, data = utfgrid.split(
                    utfgrid.parse(file_content, path))
                insert_grid(cur, GridDocument(z, x, y, structure), data)

        if not silent:
            logger.debug('tiles (and grids) inserted.')

        if kwargs.get('compression', False):
            window = kwargs.get('window')
            if window is None:
                window = DEFAULT_WINDOW
            compact(con, window, silent)

        optimize_database(cur, silent)
    finally:
        con.close()
    return count

def load_metadata(con):
    return dict(con.execute('select name, value from metadata;').fetchall())

def write_metadata(directory_path, metadata):
    path = os.path.join(directory_path, 'metadata.json')
    write_file(path, json.dumps(metadata, indent=4).encode('utf-8'))
    return path

def mbtiles_metadata_to_disk(mbtiles_file, directory_path='.', **kwargs):
    silent = kwargs.get('silent')
    if not silent:
        logger.debug("Exporting MBTiles metatdata from %s" % (mbtiles_file))
    con = mbtiles_connect(mbtiles_file, silent, must_exist=True)
    try:
        metadata = load_metadata(con)
    finally:
        con.close()
    if not silent:
        logger.debug(json.dumps(metadata, indent=2))
    write_metadata(directory_path, metadata)
    return metadata

def tile_file(base_path, scheme, z, x, y, ext):
    segments = from_canonical(scheme, z, x, y)
    tile_dir = os.path.join(base_path, *segments[:-1])
    if not os.path.isdir(tile_dir):
        os.makedirs(tile_dir)
    return os.path.join(tile_dir, '%s.%s' % (segments[-1], ext))

def mbtiles_to_disk(mbtiles_file, directory_path, **kwargs):
    silent = kwargs.get('silent')
    image_format = kwargs.get('format') or 'png'
    scheme = kwargs.get('scheme') or 'tms'
    if not silent:
        logger.debug("Exporting MBTiles to disk")
        logger.debug("%s --> %s" % (mbtiles_file, directory_path))
    con = mbtiles_connect(mbtiles_file, silent, must_exist=True)
    try:
        base_path = directory_path
        if not os.path.isdir(base_path):
            os.makedirs(base_path)
        metadata = load_metadata(con)
        write_metadata(base_path, metadata)
        count = con.execute('select count(zoom_level) from tiles;').fetchone()[0]
        done = 0

        # if interactivity
        formatter = metadata.get('formatter')
        if formatter:
            layer_json = os.path.join(base_path, 'layer.json')
            write_file(layer_json, json.dumps({"formatter": formatter}).encode('utf-8'))

        tiles = con.execute('select zoom_level, tile_column, tile_row, tile_data from tiles;')
        for z, x, y, tile_data in tiles:
            write_file(tile_file(base_path, scheme, z, x, y, image_format), tile_data)
            done = done + 1
            if not silent:
                logger.info('%s / %s tiles exported' % (done, count))

        # grids
        callback = kwargs.get('callback')
        done_grids = 0
        try:
            grid_count = con.execute('select count(zoom_level) from grids;').fetchone()[0]
            grids = con.execute('select zoom_level, tile_column, tile_row, grid from grids;').fetchall()
        except sqlite3.OperationalError:
            grids = [] # no grids table
        for zoom_level, tile_column, tile_row, grid in grids:
            grid_data = con.execute('''select key_name, key_json FROM
                grid_data WHERE
                zoom_level = ? and
                tile_column = ? and
                tile_row = ?;''', (zoom_level, tile_column, tile_row))
            # join up with the grid 'data' which is in pieces when stored in mbtiles file
            data = dict((key_name, json.loads(key_json)) for key_name, key_json in grid_data)
            content = utfgrid.dumps(utfgrid.decompress(grid), data, callback)
            path = tile_file(base_path, scheme, zoom_level, tile_column, tile_row, 'grid.json')
            write_file(path, content.encode('utf-8'))
            done_grids = done_grids + 1
            if not silent:
                logger.info('%s / %s grids exported' % (done_grids, grid_count))
    finally:
        con.close()
    return done
