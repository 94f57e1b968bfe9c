# encoding: utf8
u"""Static name tables, loaded once from the CSV files in ``data/csv``.

Everything here is built at import time and never changed afterwards.  The
helper functions fall back to placeholder names (``Item #12``) for ids the
tables don't know about.
"""

import csv
import io
import logging
import os

from pkmsave.defaults import get_default_csv_dir

log = logging.getLogger(__name__)

MAX_GEN3_SPECIES = 386
MAX_GEN4_SPECIES = 493


def load_rows(table_name, directory=None):
    """Returns the rows of a CSV table as dicts keyed by column name."""
    if directory is None:
        directory = get_default_csv_dir()
    csvpath = os.path.join(directory, '%s.csv' % table_name)
    with io.open(csvpath, 'r', encoding='utf8', newline='') as csvfile:
        rows = list(csv.DictReader(csvfile, lineterminator='\n'))
    log.debug('Loaded %d rows from %s', len(rows), csvpath)
    return rows


def _load_names(table_name):
    return dict((int(row['id']), row['name']) for row in load_rows(table_name))


species_names = _load_names('pokemon_species')
species_ids = dict(
    (name.lower(), id) for id, name in species_names.items())

species_types = {}
for _row in load_rows('pokemon_species'):
    _types = [_row['type_1']]
    if _row['type_2'] and _row['type_2'] != _row['type_1']:
        _types.append(_row['type_2'])
    species_types[int(_row['id'])] = tuple(_types)

# Gen 3 numbers its species in its own order past Celebi
gen3_species = dict(
    (int(row['internal_id']), int(row['species_id']))
    for row in load_rows('gen3_species'))

ability_names = _load_names('abilities')

species_abilities = {}
for _row in load_rows('pokemon_abilities'):
    species_abilities[int(_row['species_id'])] = tuple(
        ability_names[int(_row[column])]
        for column in ('ability_1', 'ability_2') if _row[column])

item_names = {
    3: _load_names('gen3_items'),
    4: _load_names('gen4_items'),
}

move_names = _load_names('moves')

gen3_location_names = _load_names('gen3_locations')

del _row, _types


def species_name(species_id):
    return species_names.get(species_id, u'Species %s' % species_id)


def gen3_species_id(internal_id, nickname=None):
    """Maps a gen 3 internal species number to a national dex number.

    Unknown numbers are matched against the nickname, as an unnicknamed
    Pokémon is named after its species.  Returns None if that fails too.
    """
    species_id = gen3_species.get(internal_id)
    if species_id is None and nickname:
        species_id = species_ids.get(nickname.lower())
        if species_id is not None and species_id > MAX_GEN3_SPECIES:
            return None
    return species_id


def item_name(generation, item_id):
    if not item_id:
        return None
    return item_names[generation].get(item_id, u'Item #%s' % item_id)


def move_name(move_id):
    return move_names.get(move_id)


def pokeball_name(generation, pokeball_id):
    if not pokeball_id:
        return None
    name = item_names[generation].get(pokeball_id)
    if name is None or not name.endswith(u'Ball'):
        return u'Ball #%s' % pokeball_id
    return name


def ability_name(ability_id):
    return ability_names.get(ability_id, u'Ability #%s' % ability_id)


def species_ability(species_id, slot):
    """Returns the ability in the given slot of a species' ability list.

    Species with a single ability have it in both slots.
    """
    abilities = species_abilities.get(species_id, ())
    if not abilities:
        return None
    if slot < len(abilities):
        return abilities[slot]
    return abilities[0]


def gen3_location_name(location_id):
    return gen3_location_names.get(location_id)


def gen4_location_name(location_id):
    if not location_id:
        return None
    return u'Location #%s' % location_id
