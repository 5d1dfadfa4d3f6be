import os
import sys
import subprocess

from conftest import write

ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
SCRIPT = os.path.join(ROOT, 'mb-pack')


def mb_pack(*args):
    env = dict(os.environ)
    env['PYTHONPATH'] = os.pathsep.join(filter(None, [ROOT, env.get('PYTHONPATH')]))
    return subprocess.run([sys.executable, SCRIPT, '--silent'] + list(args),
        env=env, stdout=subprocess.PIPE, stderr=subprocess.PIPE,
        universal_newlines=True)


def test_import_and_export(one_tile, tmp_path):
    mbtiles_file = str(tmp_path / 'one.mbtiles')
    assert mb_pack(one_tile, mbtiles_file).returncode == 0
    assert os.path.isfile(mbtiles_file)
    output = str(tmp_path / 'output')
    assert mb_pack(mbtiles_file, output).returncode == 0
    assert os.path.exists(os.path.join(output, '0', '0', '0.png'))


def test_import_into_existing_mbtiles(one_tile, tmp_path):
    mbtiles_file = str(tmp_path / 'one.mbtiles')
    write(mbtiles_file, b'')
    result = mb_pack(one_tile, mbtiles_file)
    assert result.returncode == 1
    assert 'not yet supported' in result.stderr


def test_export_onto_existing_file(one_tile, tmp_path):
    mbtiles_file = str(tmp_path / 'one.mbtiles')
    mb_pack(one_tile, mbtiles_file)
    other = str(tmp_path / 'other.mbtiles')
    write(other, b'')
    result = mb_pack(mbtiles_file, other)
    assert result.returncode == 1
    assert 'does not yet exist' in result.stderr


def test_missing_source(tmp_path):
    result = mb_pack(str(tmp_path / 'nope'), str(tmp_path / 'nope.mbtiles'))
    assert result.returncode == 1
    assert 'Tile directory not found' in result.stderr
    assert not os.path.exists(str(tmp_path / 'nope.mbtiles'))


def test_not_a_database(tmp_path):
    bogus = str(tmp_path / 'bogus.mbtiles')
    write(bogus, 'not an sqlite database\n' * 20)
    result = mb_pack(bogus, str(tmp_path / 'output'))
    assert result.returncode == 1


def test_bad_window(one_tile, tmp_path):
    result = mb_pack('--do_compression', '-w', '0', one_tile, str(tmp_path / 'one.mbtiles'))
    assert result.returncode == 2
    assert '--window must be at least 1' in result.stderr
