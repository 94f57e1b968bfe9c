# Encoding: utf8

import os

import pytest
parametrize = pytest.mark.parametrize

from pkmsave import detect, gen3
from pkmsave.detect import detect_generation, infer_gen3_game, parse_save
from pkmsave.gen4 import LAYOUTS
from pkmsave.records import CreatureRecord, ParserOptions
from pkmsave.savefile import SaveFileError
from pkmsave.tests import (
    make_gen3_block, make_gen3_pokemon, make_gen3_save, make_gen3_sections,
    make_gen4_copy, make_gen4_general, make_gen4_pokemon, make_gen4_save,
    make_gen4_storage,
)

# Version numbers as stored in records
SAPPHIRE, RUBY, EMERALD, FIRERED, LEAFGREEN = 1, 2, 3, 4, 5


def gen3_save(game, version, party_size=2, **kwargs):
    party = [make_gen3_pokemon(0x100 + i, 25, party=True, version=version)
             for i in range(party_size)]
    sections = make_gen3_sections(game=game, party=party, **kwargs)
    return make_gen3_save(make_gen3_block(sections, 1))

def gen4_save():
    layout = LAYOUTS[0]
    general = make_gen4_general(
        layout, party=[make_gen4_pokemon(0x100, 387, party=True)])
    return make_gen4_save(make_gen4_copy(
        layout, general, make_gen4_storage(layout), 1))

def creature(origin_game):
    fields = dict((field, None) for field in CreatureRecord._fields)
    fields['extra_data'] = dict(origin_game=origin_game)
    return CreatureRecord(**fields)


@parametrize(('size', 'generation'), [
    (0x20000, 3),
    (0x1C000, 3),
    (0x40000, 4),
    (0x80000, 4),
    (0x80010, 4),
])
def test_detect_generation(size, generation):
    assert detect_generation(b'\x00' * size) == generation

@parametrize('size', [0, 0x1000, 0x1FFFF, 0x30000])
def test_unrecognized_size(size):
    with pytest.raises(SaveFileError) as excinfo:
        detect_generation(b'\x00' * size)
    assert str(excinfo.value).startswith(u'Unrecognized save size')

def test_infer_gen3_game():
    assert infer_gen3_game([]) is None
    records = [creature(u'Emerald'), creature(u'Ruby'), creature(u'Ruby')]
    assert infer_gen3_game(records) == u'Ruby'

def test_infer_gen3_game_ignores_other_games():
    records = [creature(u'Colosseum/XD'), creature(u'Diamond'),
               creature(None)]
    assert infer_gen3_game(records) is None
    records.append(creature(u'LeafGreen'))
    assert infer_gen3_game(records) == u'LeafGreen'

def test_infer_gen3_game_tie_goes_to_first_seen():
    records = [creature(u'Sapphire'), creature(u'Ruby')]
    assert infer_gen3_game(records) == u'Sapphire'


def test_auto_emerald():
    result = parse_save(gen3_save('Emerald', EMERALD))
    assert result.trainer.game == u'Emerald'
    assert len(result.pokemon) == 2

def test_auto_firered():
    save = gen3_save('FRLG', FIRERED, money=5000)
    result = parse_save(save, ParserOptions(selected_game=detect.AUTO))
    assert result.trainer.game == u'FireRed'
    assert result.trainer.money == u'5000'
    assert [p.status for p in result.pokemon] == [u'Team', u'Team']

def test_auto_ruby():
    sections = make_gen3_sections(
        game='RS', money=777,
        party=[make_gen3_pokemon(0x100, 25, party=True, version=RUBY)])
    save = make_gen3_save(make_gen3_block(sections, 1))
    result = parse_save(save)
    assert result.trainer.game == u'Ruby'
    assert result.trainer.money == u'777'

def test_auto_without_origin_games_keeps_format():
    result = parse_save(gen3_save('FRLG', 15))
    assert result.trainer.game == u'FRLG'

def test_selected_gen3_game_is_used():
    save = gen3_save('FRLG', FIRERED)
    result = parse_save(save, ParserOptions(selected_game='FRLG'))
    assert result.trainer.game == u'FRLG'

def test_gen4_game_on_gen3_save_is_auto():
    result = parse_save(gen3_save('Emerald', EMERALD),
                        ParserOptions(selected_game='HGSS'))
    assert result.trainer.game == u'Emerald'

def test_gen4():
    result = parse_save(gen4_save(), ParserOptions(selected_game='Emerald'))
    assert result.trainer.game == u'DP'
    assert [p.species for p in result.pokemon] == [u'Turtwig']

def test_bad_size():
    with pytest.raises(SaveFileError):
        parse_save(b'\x00' * 0x1000)

def test_gen3_errors_propagate():
    with pytest.raises(SaveFileError):
        parse_save(b'\x00' * gen3.SAVE_SIZE)


### Real saves

@parametrize(('filename', 'game'), [
    ('emerald.sav', u'Emerald'),
    ('emerald2.sav', u'Emerald'),
    ('firered.sav', u'FireRed'),
])
def test_real_gen3_saves(fixture_dir, filename, game):
    path = os.path.join(fixture_dir, filename)
    if not os.path.exists(path):
        pytest.skip("%s not found" % filename)
    with open(path, 'rb') as f:
        save = f.read()
    result = parse_save(save, ParserOptions(selected_game=detect.AUTO))
    assert result.trainer.game == game
    assert result.trainer.name
    assert result.pokemon
    assert parse_save(save) == result
