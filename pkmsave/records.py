# encoding: utf8
u"""Plain record types produced by the parsers, plus their YAML/JSON forms.

Every type here is an immutable namedtuple; the parsers build them fresh for
each call.
"""

from collections import namedtuple

import camel

from pkmsave.defaults import get_default_debug

# One 0x1000-byte section of a gen 3 save block
RawSection = namedtuple('RawSection',
    ['id', 'data', 'checksum', 'signature', 'save_index', 'order'])

# One copy of a gen 4 general or storage block, with its footer checked
ValidatedBlock = namedtuple('ValidatedBlock',
    ['buffer', 'save_count', 'link_value', 'checksum_stored',
     'checksum_computed', 'ok'])

CreatureRecord = namedtuple('CreatureRecord',
    ['species', 'nickname', 'id', 'status', 'position', 'level', 'moves',
     'shiny', 'forme', 'item', 'ability', 'types', 'met', 'met_level', 'egg',
     'pokeball', 'extra_data'])

TrainerProfile = namedtuple('TrainerProfile',
    ['name', 'id', 'money', 'time', 'badges', 'game'])

BoxMapping = namedtuple('BoxMapping', ['key', 'status'])

ParseResult = namedtuple('ParseResult', ['trainer', 'pokemon', 'debug'])

TEAM_STATUS = u'Team'
DEFAULT_BOX_STATUS = u'Boxed'


class ParserOptions(namedtuple('ParserOptions',
        ['box_mappings', 'selected_game', 'debug'])):
    u"""Options for a parse.

    `box_mappings` is a list of `BoxMapping`, giving the status of Pokémon in
    the 1-based box `key`.  `selected_game` names the game (or gen 4 layout)
    the save comes from; None picks a default.  `debug` collects diagnostics
    in the result, and defaults to the PKMSAVE_DEBUG environment variable.
    """
    __slots__ = ()

    def __new__(cls, box_mappings=(), selected_game=None, debug=None):
        if debug is None:
            debug = get_default_debug()
        # Mappings may also come as plain {'key': ..., 'status': ...} dicts
        box_mappings = tuple(
            BoxMapping(**mapping) if isinstance(mapping, dict) else mapping
            for mapping in box_mappings)
        return super(ParserOptions, cls).__new__(
            cls, box_mappings, selected_game, debug)

    def box_status(self, box_index):
        """Status for Pokémon in the 0-based box `box_index`"""
        for mapping in self.box_mappings:
            if mapping.key == box_index + 1:
                return mapping.status
        return DEFAULT_BOX_STATUS


class IdTracker(object):
    u"""Hands out record ids: the personality in hex, with a ``-N`` suffix
    for the Nth repeat of the same personality within one parse.
    """
    def __init__(self):
        self.counts = {}

    def next_id(self, personality):
        key = u'%x' % personality
        count = self.counts.get(key, 0)
        self.counts[key] = count + 1
        if count:
            return u'%s-%s' % (key, count)
        return key


def creature_as_dict(creature):
    result = creature._asdict()
    result['moves'] = list(creature.moves)
    if creature.types is not None:
        result['types'] = list(creature.types)
    return dict(result)


def trainer_as_dict(trainer):
    result = dict(trainer._asdict())
    result['badges'] = list(trainer.badges)
    return result


def result_as_dict(result):
    """Exports a parse result as a JSON-compatible dict"""
    return dict(
        trainer=trainer_as_dict(result.trainer),
        pokemon=[creature_as_dict(creature) for creature in result.pokemon],
        debug=result.debug,
    )


PKMSAVE_TYPES = camel.CamelRegistry(
    tag_prefix='tag:pkmsave,2024:', tag_shorthand='!pkmsave!')


@PKMSAVE_TYPES.dumper(CreatureRecord, 'pokemon', version=None)
def _dump_creature(creature):
    return creature_as_dict(creature)


@PKMSAVE_TYPES.dumper(TrainerProfile, 'trainer', version=None)
def _dump_trainer(trainer):
    return trainer_as_dict(trainer)


@PKMSAVE_TYPES.dumper(ParseResult, 'save', version=None)
def _dump_result(result):
    data = dict(trainer=result.trainer, pokemon=list(result.pokemon))
    if result.debug is not None:
        data['debug'] = result.debug
    return data


def dump_yaml(result):
    return camel.Camel([PKMSAVE_TYPES]).dump(result)
