# encoding: utf8
u"""Guesses where an unlabelled save file comes from, and parses it."""

import logging
from collections import Counter

from pkmsave import gen3, gen4
from pkmsave.records import ParseResult, ParserOptions, TEAM_STATUS
from pkmsave.savefile import SaveFileError

log = logging.getLogger(__name__)

AUTO = 'Auto'

# Titles that write gen 3 saves
GEN3_TITLES = (u'Ruby', u'Sapphire', u'Emerald', u'FireRed', u'LeafGreen')

# Formats tried when the gen 3 game isn't given, in order of preference
AUTO_GEN3_GAMES = ('Emerald', 'FRLG')


def detect_generation(buffer):
    """Returns 3 or 4, going by the size of the file."""
    size = len(buffer)
    if size in (gen3.SAVE_SIZE, gen3.TRIMMED_SAVE_SIZE):
        return 3
    if size >= gen4.BACKUP_OFFSET:
        return 4
    raise SaveFileError(
        "Unrecognized save size 0x%x: expected 0x%x or 0x%x for gen 3, or at "
        "least 0x%x for gen 4." % (size, gen3.SAVE_SIZE,
                                   gen3.TRIMMED_SAVE_SIZE, gen4.BACKUP_OFFSET))


def infer_gen3_game(records):
    u"""Returns the title most of the Pokémon were caught in, if any.

    Only gen 3 handheld titles count; ties go to the title seen first.
    """
    games = Counter()
    order = []
    for record in records:
        game = record.extra_data.get('origin_game')
        if game in GEN3_TITLES:
            if game not in games:
                order.append(game)
            games[game] += 1
    if not games:
        return None
    return max(order, key=lambda game: games[game])


def team_size(result):
    return sum(1 for creature in result.pokemon if creature.status == TEAM_STATUS)


def _parse_gen3_auto(buffer, options):
    results = []
    for game in AUTO_GEN3_GAMES:
        results.append(
            (game, gen3.parse_gen3_save(buffer, options._replace(selected_game=game))))

    game, result = results[0]
    for candidate_game, candidate in results[1:]:
        if team_size(candidate) > team_size(result):
            game, result = candidate_game, candidate
    log.debug('Reading as %s, with %d in the team', game, team_size(result))

    title = infer_gen3_game(result.pokemon)
    if title is None:
        return result
    log.debug('Looks like %s', title)
    return result._replace(trainer=result.trainer._replace(game=title))


def parse_save(buffer, options=None):
    """Parses a gen 3 or gen 4 save, working out which from its size.

    With no selected game (or ``Auto``), gen 3 saves are read with each
    format and the one that finds a team wins.
    """
    if options is None:
        options = ParserOptions()
    generation = detect_generation(buffer)
    log.debug('Save looks like gen %d', generation)

    auto = options.selected_game in (None, AUTO)
    if generation == 3:
        if auto or options.selected_game not in gen3.GAMES:
            result = _parse_gen3_auto(buffer, options)
        else:
            result = gen3.parse_gen3_save(buffer, options)
    else:
        if options.selected_game not in gen4.GAMES:
            options = options._replace(selected_game=None)
        result = gen4.parse_gen4_save(buffer, options)

    pokemon = [creature for creature in result.pokemon if creature.species]
    return ParseResult(trainer=result.trainer, pokemon=pokemon,
                       debug=result.debug)
