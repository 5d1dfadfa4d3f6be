# MBPack: a tool for MBTiles files
# Supports importing, exporting, and more
#
# (c) Development Seed 2012
# Licensed under BSD

from collections import namedtuple

Tile = namedtuple('Tile', 'zoom_level tile_column tile_row tile_data')

Metadata = namedtuple('Metadata', 'name value')

# structure is the utfgrid document without its 'data' member
GridDocument = namedtuple('GridDocument',
    'zoom_level tile_column tile_row structure')

GridFeature = namedtuple('GridFeature',
    'zoom_level tile_column tile_row key_name key_json')

CompactionStats = namedtuple('CompactionStats', 'total unique overlapping')
