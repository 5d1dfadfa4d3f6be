# MBPack: a tool for MBTiles files
# Supports importing, exporting, and more
#
# (c) Development Seed 2012
# Licensed under BSD

# Directory layouts understood on disk. MBTiles itself always stores rows in
# tms order (row 0 at the bottom), so every scheme maps onto that.

import logging

logger = logging.getLogger(__name__)

SCHEMES = ('tms', 'xyz', 'ags', 'gwc', 'zyx', 'wms')

def flip_y(zoom, y):
    return (2**zoom-1) - y

def zoom_from_dir(scheme, zoom_dir, silent=False):
    if scheme == 'ags':
        if not "L" in zoom_dir and not silent:
            logger.warning("You appear to be using an ags scheme on an non-arcgis Server cache.")
        return int(zoom_dir.replace("L", ""))
    elif scheme == 'gwc':
        return int(zoom_dir[-2:])
    if "L" in zoom_dir and not silent:
        logger.warning("You appear to be using a %s scheme on an arcgis Server cache. Try using --scheme=ags instead" % scheme)
    return int(zoom_dir)

def to_canonical(scheme, zoom_dir, middle_dir, file_stem, silent=False):
    """
    Turn the names found on disk into a (zoom, column, row) address.

    ``zoom_dir`` and ``middle_dir`` are the two directory levels below the
    tileset root and ``file_stem`` is the leaf file name without extension.
    Unknown schemes (``wms`` included) are read like ``tms``.
    """
    z = zoom_from_dir(scheme, zoom_dir, silent)
    if scheme == 'xyz':
        return z, int(middle_dir), flip_y(z, int(file_stem))
    elif scheme == 'ags':
        y = flip_y(z, int(middle_dir.replace("R", ""), 16))
        x = int(file_stem.replace("C", ""), 16)
        return z, x, y
    elif scheme == 'gwc':
        # the middle directory only buckets tiles, the file name has both
        x, y = file_stem.split('_')
        return z, int(x), int(y)
    elif scheme == 'zyx':
        return z, int(file_stem), flip_y(z, int(middle_dir))
    return z, int(middle_dir), int(file_stem)

def from_canonical(scheme, z, x, y):
    """
    Path segments for a tile address, the file stem last.
    """
    if scheme == 'xyz':
        return [str(z), str(x), str(flip_y(z, y))]
    elif scheme == 'ags':
        return ["L%02d" % z, "R%08x" % flip_y(z, y), "C%08x" % x]
    elif scheme == 'gwc':
        shift = z // 2
        return ["%02d" % z, "%d_%d" % (x >> shift, y >> shift), "%d_%d" % (x, y)]
    elif scheme == 'zyx':
        return [str(z), str(flip_y(z, y)), str(x)]
    elif scheme == 'wms':
        return ["%02d" % z,
            "%03d" % (x // 1000000),
            "%03d" % ((x // 1000) % 1000),
            "%03d" % (x % 1000),
            "%03d" % (y // 1000000),
            "%03d" % ((y // 1000) % 1000),
            "%03d" % (y % 1000)]
    return [str(z), str(x), str(y)]
