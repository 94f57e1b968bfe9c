# encoding: utf8
u"""Reads Diamond/Pearl, Platinum and HeartGold/SoulSilver save files.

A gen 4 save is split into a general block (trainer and party) and a storage
block (PC boxes), each kept twice: once at the start of the file and once
0x40000 bytes in.  Each block ends with a footer holding its save count and
a CRC.  The three games lay these blocks out differently and the file
doesn't say which game it's from, so every layout is tried in turn.

Unlike gen 3, nothing here gives up on a bad save: a file that matches no
layout is still read with the first layout that fits.

See: http://projectpokemon.org/wiki/Pokemon_NDS_Structure
"""

import logging
from collections import namedtuple

from construct import Int16ul, Int32ul, Int8ul, Padding, Struct

from pkmsave.records import (
    IdTracker, ParseResult, ParserOptions, TEAM_STATUS, TrainerProfile,
    ValidatedBlock,
)
from pkmsave.savefile import crc16_ccitt
from pkmsave.struct import Gen4Box, Gen4Party
from pkmsave.struct._pokemon_struct import (
    GEN4_BOX_SIZE, GEN4_PARTY_SIZE, decode_gen4_string,
)

log = logging.getLogger(__name__)

BACKUP_OFFSET = 0x40000

TEAM_CAPACITY = 6
BOX_COUNT = 18
BOX_CAPACITY = 30
STORAGE_HEADER_SIZE = 4
HGSS_BOX_STRIDE = 0x1000

# Same in every layout, relative to the start of the general block
TRAINER_OFFSET = 0x64
PARTY_COUNT_OFFSET = 0x94
PARTY_OFFSET = 0x98

Layout = namedtuple('Layout', [
    'name', 'general_offset', 'general_size', 'storage_offset',
    'storage_size', 'box_stride',
])

LAYOUTS = [
    Layout('DP', 0x00000, 0x0C100, 0x0C100, 0x121E0, None),
    Layout('Platinum', 0x00000, 0x0CF2C, 0x0CF2C, 0x121E4, None),
    Layout('HGSS', 0x00000, 0x0F700, 0x0F700, 0x12311, HGSS_BOX_STRIDE),
]
GAMES = tuple(layout.name for layout in LAYOUTS)

# Trails every general and storage block
block_footer = Struct(
    'link_value' / Int32ul,
    'save_count' / Int32ul,
    Padding(10),
    'checksum' / Int16ul,
)
FOOTER_SIZE = block_footer.sizeof()

ActiveBlocks = namedtuple('ActiveBlocks', ['layout', 'general', 'storage'])


def validate_block(buffer):
    u"""Checks a block's footer CRC.

    The footer holds the save count of the general block the block belongs
    to (the link), then the block's own save count.
    """
    if len(buffer) < FOOTER_SIZE:
        return ValidatedBlock(buffer, 0, 0, 0, 0, False)
    footer_start = len(buffer) - FOOTER_SIZE
    footer = block_footer.parse(buffer[footer_start:])
    checksum_computed = crc16_ccitt(buffer[:footer_start])
    return ValidatedBlock(
        buffer=buffer,
        save_count=footer.save_count,
        link_value=footer.link_value,
        checksum_stored=footer.checksum,
        checksum_computed=checksum_computed,
        ok=footer.checksum == checksum_computed,
    )


def fits(buffer, layout, base=0):
    return (
        len(buffer) >= base + layout.general_offset + layout.general_size
        and len(buffer) >= base + layout.storage_offset + layout.storage_size
    )


def read_block(buffer, start, size):
    # Short files read as if zero-filled
    block = buffer[start:start + size].ljust(size, b'\x00')
    return validate_block(block)


def read_blocks(buffer, layout, base):
    general = read_block(buffer, base + layout.general_offset,
                         layout.general_size)
    storage = read_block(buffer, base + layout.storage_offset,
                         layout.storage_size)
    return general, storage


def select_layout_and_blocks(buffer, selected_game=None):
    """Finds the layout of a save and its current general/storage blocks.

    Prefers the valid general block with the highest save count, and the
    valid storage block linked to it.  Never fails; if nothing validates,
    the primary blocks of the first layout that fits are used as they are.
    """
    layouts = [l for l in LAYOUTS if l.name == selected_game] or LAYOUTS

    for layout in layouts:
        copies = [read_blocks(buffer, layout, base)
                  for base in (0, BACKUP_OFFSET) if fits(buffer, layout, base)]

        generals = [general for general, storage in copies if general.ok]
        if not generals:
            log.debug('No valid general block for layout %s', layout.name)
            continue
        general = generals[0]
        for candidate in generals[1:]:
            if candidate.save_count > general.save_count:
                general = candidate

        storages = sorted((storage for general_, storage in copies
                           if storage.ok),
                          key=lambda block: block.save_count, reverse=True)
        if not storages:
            log.debug('No valid storage block for layout %s', layout.name)
            continue
        for storage in storages:
            if storage.link_value == general.save_count:
                break
        else:
            storage = storages[0]
            log.debug('No storage block links to save %d; using save %d',
                      general.save_count, storage.save_count)

        log.debug('Layout %s, general save %d, storage save %d',
                  layout.name, general.save_count, storage.save_count)
        return ActiveBlocks(layout, general, storage)

    layout = next((l for l in layouts if fits(buffer, l)), layouts[0])
    log.warning('No layout matches this save; falling back to %s',
                layout.name)
    general, storage = read_blocks(buffer, layout, 0)
    return ActiveBlocks(layout, general, storage)


def title_case(name):
    return name[:1].upper() + name[1:].lower()


def popcount(value):
    return bin(value).count('1')


def format_time(hours, minutes, seconds):
    return u'%d:%d:%d' % (hours, minutes, seconds)


def parse_trainer(general, layout):
    data = general.buffer
    base = TRAINER_OFFSET

    def u8(offset):
        return Int8ul.parse(data[base + offset:base + offset + 1])

    def u16(offset):
        return Int16ul.parse(data[base + offset:base + offset + 2])

    def u32(offset):
        return Int32ul.parse(data[base + offset:base + offset + 4])

    badge_count = popcount(u8(0x1A))

    trainer = TrainerProfile(
        name=title_case(decode_gen4_string(data[base:base + 16])),
        id=u'%05d' % u16(0x10),
        money=u'%d' % u32(0x14),
        time=format_time(u16(0x22), u8(0x24), u8(0x25)),
        badges=[u'Badge %d' % (i + 1) for i in range(badge_count)],
        game=layout.name,
    )
    log.debug('Trainer %s (%s)', trainer.name, trainer.id)
    return trainer


def parse_party(general, id_tracker):
    data = general.buffer
    size = data[PARTY_COUNT_OFFSET]
    count = min(size, TEAM_CAPACITY)
    log.debug('Team size %d', size)

    party = []
    for i in range(count):
        start = PARTY_OFFSET + i * GEN4_PARTY_SIZE
        blob = data[start:start + GEN4_PARTY_SIZE]
        if len(blob) < GEN4_PARTY_SIZE:
            break
        pokemon = Gen4Party(blob)
        if pokemon.is_empty or not pokemon.is_valid:
            continue
        party.append(pokemon.as_record(
            status=TEAM_STATUS,
            position=i + 1,
            id=id_tracker.next_id(pokemon.personality),
            slot_index=i,
        ))
    return party


def box_slots(storage, layout):
    """Yields (box index, slot index, record bytes) for every PC slot."""
    data = storage.buffer
    for box_index in range(BOX_COUNT):
        if layout.box_stride:
            box_start = box_index * layout.box_stride
        else:
            box_start = (STORAGE_HEADER_SIZE
                         + box_index * BOX_CAPACITY * GEN4_BOX_SIZE)
        for slot in range(BOX_CAPACITY):
            start = box_start + slot * GEN4_BOX_SIZE
            yield box_index, slot, data[start:start + GEN4_BOX_SIZE]


def parse_boxes(storage, layout, options, id_tracker):
    boxed = []
    for box_index, slot, blob in box_slots(storage, layout):
        if len(blob) < GEN4_BOX_SIZE:
            continue
        pokemon = Gen4Box(blob)
        if pokemon.is_empty or not pokemon.is_valid:
            continue
        # XXX this is not the slot's position in the box, but it's what
        # consumers of these records expect
        position = (slot + 1) * (box_index + 1)
        boxed.append(pokemon.as_record(
            status=options.box_status(box_index),
            position=position,
            id=id_tracker.next_id(pokemon.personality),
            box_index=box_index,
            slot_index=slot,
        ))
    return boxed


def parse_gen4_save(buffer, options=None):
    u"""Parses a gen 4 save file into a `ParseResult`.

    Never raises for a save it can't make sense of; the result is simply
    emptier.
    """
    if options is None:
        options = ParserOptions()
    buffer = bytes(buffer)

    active = select_layout_and_blocks(buffer, options.selected_game)
    id_tracker = IdTracker()
    trainer = parse_trainer(active.general, active.layout)
    party = parse_party(active.general, id_tracker)
    boxed = parse_boxes(active.storage, active.layout, options, id_tracker)
    log.debug('Found %d in the team and %d in boxes', len(party), len(boxed))

    debug = None
    if options.debug:
        debug = dict(
            layout=active.layout.name,
            general_save=active.general.save_count,
            storage_save=active.storage.save_count,
            general_ok=active.general.ok,
            storage_ok=active.storage.ok,
            general_checksum=u'0x%04x' % active.general.checksum_stored,
            storage_checksum=u'0x%04x' % active.storage.checksum_stored,
            recovered=sum(1 for creature in party + boxed
                          if creature.extra_data.get('recovered')),
            counts=dict(party=len(party), boxed=len(boxed),
                        total=len(party) + len(boxed)),
        )

    return ParseResult(trainer=trainer, pokemon=party + boxed, debug=debug)
