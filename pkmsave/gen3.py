# encoding: utf8
u"""Reads Ruby/Sapphire, Emerald and FireRed/LeafGreen save files.

A gen 3 save holds two copies of the game, A and B, each made of fourteen
0x1000-byte sections.  Every save writes to the older copy, so the valid
copy with the higher save index is the current one.

See: http://bulbapedia.bulbagarden.net/wiki/Save_data_structure_in_Generation_III
"""

import logging
from collections import namedtuple

from construct import Bytes, Int8ul, Int16ul, Int32ul, Padding, Struct

from pkmsave.records import (
    IdTracker, ParseResult, ParserOptions, RawSection, TEAM_STATUS,
    TrainerProfile,
)
from pkmsave.savefile import SaveFileError, section_checksum
from pkmsave.struct import Gen3Box, Gen3Party
from pkmsave.struct._pokemon_struct import (
    GEN3_BOX_SIZE, GEN3_PARTY_SIZE, decode_gen3_string, gen3_section_footer,
)

log = logging.getLogger(__name__)

SECTION_SIZE = 0x1000
SECTION_DATA_SIZE = 0xFF4
SECTION_COUNT = 14
SECTION_SIGNATURE = 0x08012025
BLOCK_SIZE = SECTION_COUNT * SECTION_SIZE
BLOCK_OFFSETS = (('A', 0x000000), ('B', 0x00E000))

SAVE_SIZE = 0x20000
TRIMMED_SAVE_SIZE = 2 * BLOCK_SIZE

# Bytes of each section covered by its checksum
SECTION_SAVE_SIZES = {0: 3884, 4: 3848, 13: 2000}
for _id in range(SECTION_COUNT):
    SECTION_SAVE_SIZES.setdefault(_id, 3968)
del _id

TRAINER_SECTION = 0
TEAM_SECTION = 1
PC_SECTIONS = range(5, 14)

TEAM_CAPACITY = 6
BOX_COUNT = 14
BOX_CAPACITY = 30
STORAGE_HEADER_SIZE = 4

GameOffsets = namedtuple('GameOffsets', ['team_size', 'team_list', 'money'])

# Team offsets are in the team section, money in the trainer section
GAME_OFFSETS = {
    'RS': GameOffsets(0x234, 0x238, 0x490),
    'Emerald': GameOffsets(0x234, 0x238, 0x490),
    'FRLG': GameOffsets(0x34, 0x38, 0x490),
}
DEFAULT_GAME = 'RS'
GAMES = tuple(GAME_OFFSETS)

trainer_info_struct = Struct(
    'name' / Bytes(7),
    Padding(1),
    'gender' / Int8ul,
    Padding(1),
    'trainer_id' / Int32ul,
    'hours' / Int16ul,
    'minutes' / Int8ul,
    'seconds' / Int8ul,
)

ActiveBlock = namedtuple('ActiveBlock', ['label', 'save_index', 'sections'])


def game_offsets(game):
    return GAME_OFFSETS.get(game, GAME_OFFSETS[DEFAULT_GAME])


def read_section(block, index):
    offset = index * SECTION_SIZE
    footer = gen3_section_footer.parse(
        block[offset + SECTION_DATA_SIZE:offset + SECTION_SIZE])
    return RawSection(
        id=footer.section_id,
        data=block[offset:offset + SECTION_DATA_SIZE],
        checksum=footer.checksum,
        signature=footer.signature,
        save_index=footer.save_index,
        order=index,
    )


def read_block(buffer, offset):
    block = buffer[offset:offset + BLOCK_SIZE]
    return [read_section(block, i) for i in range(SECTION_COUNT)]


def is_section_valid(section):
    if section.signature != SECTION_SIGNATURE:
        log.debug('Section %d has signature %08x', section.id,
                  section.signature)
        return False
    size = SECTION_SAVE_SIZES.get(section.id)
    if size is None:
        return False
    computed = section_checksum(section.data, size)
    if computed != section.checksum:
        log.debug('Section %d has checksum %04x, expected %04x',
                  section.id, computed, section.checksum)
        return False
    return True


def index_block(sections):
    """Returns the sections keyed by id, or None if the block is invalid.

    A valid block has every section id exactly once, each with a good
    signature and checksum, all with the same save index.
    """
    by_id = {}
    save_index = None
    for section in sections:
        if section.id not in SECTION_SAVE_SIZES or section.id in by_id:
            return None
        if not is_section_valid(section):
            return None
        if save_index is None:
            save_index = section.save_index
        elif section.save_index != save_index:
            return None
        by_id[section.id] = section
    if len(by_id) != SECTION_COUNT:
        return None
    return by_id


def select_active_block(buffer):
    """Picks the current copy of the save.  Ties go to block A."""
    candidates = []
    for label, offset in BLOCK_OFFSETS:
        by_id = index_block(read_block(buffer, offset))
        if by_id is None:
            log.debug('Block %s is invalid', label)
            continue
        save_index = by_id[TRAINER_SECTION].save_index
        candidates.append(ActiveBlock(label, save_index, by_id))

    if not candidates:
        raise SaveFileError(
            "Both save blocks failed validation (signature/checksum/index).")

    active = candidates[0]
    for candidate in candidates[1:]:
        if candidate.save_index > active.save_index:
            active = candidate
    log.debug('Using block %s, save index %d', active.label, active.save_index)
    return active


def format_time(hours, minutes, seconds):
    return u'%d:%02d:%02d' % (hours, minutes, seconds)


def read_money(trainer_data, offsets):
    return Int32ul.parse(trainer_data[offsets.money:offsets.money + 4])


def parse_trainer(trainer_section, options):
    offsets = game_offsets(options.selected_game)
    info = trainer_info_struct.parse(trainer_section.data)
    trainer = TrainerProfile(
        name=decode_gen3_string(info.name),
        id=u'%d' % (info.trainer_id & 0xFFFF),
        money=u'%d' % read_money(trainer_section.data, offsets),
        time=format_time(info.hours, info.minutes, info.seconds),
        badges=[],
        game=options.selected_game,
    )
    log.debug('Trainer %s (%s)', trainer.name, trainer.id)
    return trainer


def parse_party(team_section, options, id_tracker):
    offsets = game_offsets(options.selected_game)
    data = team_section.data
    size = data[offsets.team_size]
    count = min(size, TEAM_CAPACITY)
    log.debug('Team size %d', size)

    party = []
    for i in range(count):
        start = offsets.team_list + i * GEN3_PARTY_SIZE
        pokemon = Gen3Party(data[start:start + GEN3_PARTY_SIZE])
        if pokemon.is_empty or not pokemon.is_valid:
            continue
        party.append(pokemon.as_record(
            status=TEAM_STATUS,
            position=i + 1,
            id=id_tracker.next_id(pokemon.personality),
            slot_index=i,
        ))
    return party


def storage_area(sections):
    """Joins the PC sections into one buffer, minus the storage header."""
    chunks = [sections[id].data[:SECTION_SAVE_SIZES[id]]
              for id in PC_SECTIONS if id in sections]
    return b''.join(chunks)[STORAGE_HEADER_SIZE:]


def parse_boxes(sections, options, id_tracker):
    storage = storage_area(sections)
    boxed = []
    for box_index in range(BOX_COUNT):
        status = options.box_status(box_index)
        count = 0
        for slot in range(BOX_CAPACITY):
            start = (box_index * BOX_CAPACITY + slot) * GEN3_BOX_SIZE
            blob = storage[start:start + GEN3_BOX_SIZE]
            if len(blob) < GEN3_BOX_SIZE:
                break
            pokemon = Gen3Box(blob)
            if pokemon.is_empty or not pokemon.is_valid:
                continue
            # XXX this is not the slot's position in the box, but it's what
            # consumers of these records expect
            position = (slot + 1) * (box_index + 1)
            boxed.append(pokemon.as_record(
                status=status,
                position=position,
                id=id_tracker.next_id(pokemon.personality),
                box_index=box_index,
                slot_index=slot,
            ))
            count += 1
        if count:
            log.debug('Box %d: %d Pokémon', box_index + 1, count)
    return boxed


def parse_gen3_save(buffer, options=None):
    u"""Parses a gen 3 save file into a `ParseResult`.

    Raises `SaveFileError` if the file is the wrong size, if neither copy of
    the save is valid, or if the trainer or team section is missing.
    """
    if options is None:
        options = ParserOptions()
    buffer = bytes(buffer)

    if len(buffer) not in (SAVE_SIZE, TRIMMED_SAVE_SIZE):
        raise SaveFileError(
            "Unexpected Gen 3 save size: got 0x%x, expected 0x%x (typical) "
            "or 0x%x (trimmed)." % (len(buffer), SAVE_SIZE, TRIMMED_SAVE_SIZE))

    active = select_active_block(buffer)
    sections = active.sections
    trainer_section = sections.get(TRAINER_SECTION)
    team_section = sections.get(TEAM_SECTION)
    if trainer_section is None or team_section is None:
        raise SaveFileError(
            "Unable to locate trainer or party data in save file.")

    id_tracker = IdTracker()
    trainer = parse_trainer(trainer_section, options)
    party = parse_party(team_section, options, id_tracker)
    boxed = parse_boxes(sections, options, id_tracker)
    log.debug('Found %d in the team and %d in boxes', len(party), len(boxed))

    debug = None
    if options.debug:
        debug = dict(
            file_size=len(buffer),
            game=options.selected_game,
            selected_block=active.label,
            save_index=active.save_index,
            section_count=len(sections),
            counts=dict(party=len(party), boxed=len(boxed),
                        total=len(party) + len(boxed)),
        )

    return ParseResult(trainer=trainer, pokemon=party + boxed, debug=debug)
