# Encoding: utf8

import argparse
import json

import pytest
parametrize = pytest.mark.parametrize

from pkmsave.gen4 import LAYOUTS
from pkmsave.main import box_mapping, main
from pkmsave.records import BoxMapping
from pkmsave.tests import (
    make_gen4_copy, make_gen4_general, make_gen4_pokemon, make_gen4_save,
    make_gen4_storage,
)


@pytest.fixture
def save_path(tmpdir):
    layout = LAYOUTS[0]
    general = make_gen4_general(
        layout, party=[make_gen4_pokemon(0xABC, 150, party=True)])
    storage = make_gen4_storage(
        layout, {0: [(0, make_gen4_pokemon(0xDEF, 387))]})
    path = tmpdir.join('diamond.sav')
    path.write_binary(make_gen4_save(make_gen4_copy(
        layout, general, storage, 1)))
    return str(path)


def test_parse_yaml(save_path, capsys):
    main('pkmsave', 'parse', save_path)
    out, err = capsys.readouterr()
    assert u'Mewtwo' in out
    assert u'Turtwig' in out

def test_parse_json(save_path, capsys, monkeypatch):
    monkeypatch.delenv('PKMSAVE_DEBUG', raising=False)
    main('pkmsave', 'parse', save_path, '-f', 'json')
    out, err = capsys.readouterr()
    data = json.loads(out)
    assert data['trainer']['name'] == u'Roy'
    assert data['trainer']['id'] == u'01081'
    assert [p['status'] for p in data['pokemon']] == [u'Team', u'Boxed']
    assert data['debug'] is None

def test_parse_options(save_path, capsys):
    main('pkmsave', 'parse', save_path, '-f', 'json', '-g', 'DP',
         '-b', '1=Dead', '--box', '2=Alive', '-d')
    out, err = capsys.readouterr()
    data = json.loads(out)
    assert [p['status'] for p in data['pokemon']] == [u'Team', u'Dead']
    assert data['debug']['layout'] == u'DP'

def test_debug_from_environment(save_path, capsys, monkeypatch):
    monkeypatch.setenv('PKMSAVE_DEBUG', '1')
    main('pkmsave', 'parse', save_path, '-f', 'json')
    out, err = capsys.readouterr()
    assert json.loads(out)['debug']['counts']['total'] == 2

def test_verbose(save_path, capsys):
    main('pkmsave', 'parse', '-v', save_path)
    out, err = capsys.readouterr()
    assert u'Using CSV directory' in err
    assert u'Debug output is' in err

def test_bad_save(tmpdir, capsys):
    path = tmpdir.join('junk.sav')
    path.write_binary(b'\x00' * 0x1000)
    with pytest.raises(SystemExit) as excinfo:
        main('pkmsave', 'parse', str(path))
    assert excinfo.value.code == 1
    out, err = capsys.readouterr()
    assert out == u''
    assert u'Unrecognized save size' in err

def test_bad_game(save_path, capsys):
    with pytest.raises(SystemExit) as excinfo:
        main('pkmsave', 'parse', save_path, '-g', 'Crystal')
    assert excinfo.value.code == 2

def test_help(capsys):
    main('pkmsave', 'help')
    out, err = capsys.readouterr()
    assert u'parse' in out

def test_no_arguments(capsys):
    with pytest.raises(SystemExit):
        main('pkmsave')
    out, err = capsys.readouterr()
    assert u'usage' in out


def test_box_mapping():
    assert box_mapping('3=Dead') == BoxMapping(key=3, status=u'Dead')
    assert box_mapping('12=Fainted=Gone') == BoxMapping(
        key=12, status=u'Fainted=Gone')

@parametrize('value', ['Dead', '0=Dead', 'x=Dead', '3=', '=Dead'])
def test_bad_box_mapping(value):
    with pytest.raises(argparse.ArgumentTypeError):
        box_mapping(value)
