from mbpack.util import (disk_to_mbtiles, mbtiles_to_disk,
    mbtiles_metadata_to_disk, mbtiles_connect)
from mbpack.compaction import compact
from mbpack.schemes import flip_y, to_canonical, from_canonical, SCHEMES
from mbpack.errors import (MBPackError, SourceNotFoundError, StorageOpenError,
    MalformedGridJsonError, MalformedMetadataError, IOFailure,
    AlreadyCompactedError, MissingMetadataWarning)
