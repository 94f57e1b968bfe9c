# Encoding: utf8
u"""Test support code: builds synthetic save files.

Each builder does what the games do when they write a save: encode text,
shuffle and encrypt records, and stamp checksums and footers, so that the
parsers can be checked against known values.
"""

import struct

from pkmsave import gen3, gen4
from pkmsave.savefile import (
    crc16_ccitt, gen4_shuffle_order, reciprocal_crypt, record_checksum,
    section_checksum, shuffle_orders, xor_payload,
)
from pkmsave.struct._pokemon_struct import (
    character_table_gen3, character_table_gen4,
)

_gen3_codes = dict((character, code)
                   for code, character in sorted(character_table_gen3.items(),
                                                 reverse=True))
_gen4_codes = dict((character, code)
                   for code, character in sorted(character_table_gen4.items(),
                                                 reverse=True))


def encode_gen3_string(text, length):
    codes = [_gen3_codes[character] for character in text] + [0xFF]
    return bytes(bytearray(codes[:length])).ljust(length, b'\xff')


def encode_gen4_string(text, length):
    codes = [_gen4_codes[character] for character in text] + [0xFFFF]
    data = struct.pack('<%dH' % len(codes), *codes)[:length]
    return data.ljust(length, b'\xff')


def _pad(values, count, fill=0):
    values = list(values)
    return values + [fill] * (count - len(values))


### Gen 3

def make_gen3_pokemon(
        personality, species, trainer_id=12345, secret_id=54321,
        nickname=u'', ot_name=u'BRENDAN', language=2, markings=0,
        item=0, exp=0, pp_bonuses=0, happiness=70,
        moves=(), pp=(), evs=(0,) * 6, contest=(0,) * 6,
        pokerus=0, met_location=16, met_level=5, version=3, pokeball=4,
        ot_gender=0, ivs=(0,) * 6, is_egg=False, ability_slot=0,
        ribbons=0, party=False, level=5, stats=(20, 20, 10, 10, 10, 10, 10)):
    u"""Returns the bytes of a gen 3 Pokémon: 100 for the party, else 80.

    `species` is the internal species number.  `ivs` and `evs` are in
    HP, Attack, Defense, Speed, Sp. Atk, Sp. Def order.
    """
    growth = struct.pack('<HHIBBH', species, item, exp, pp_bonuses,
                         happiness, 0)
    attacks = struct.pack('<4H4B', *(_pad(moves, 4) + _pad(pp, 4)))
    effort = struct.pack('<12B', *(list(evs) + list(contest)))

    origin = met_level | version << 7 | pokeball << 11 | ot_gender << 15
    iv_word = 0
    for i, iv in enumerate(ivs):
        iv_word |= iv << (5 * i)
    iv_word |= int(is_egg) << 30 | ability_slot << 31
    misc = struct.pack('<BBHII', pokerus, met_location, origin, iv_word,
                       ribbons)

    substructures = [growth, attacks, effort, misc]
    checksum = record_checksum(b''.join(substructures))
    order = shuffle_orders[personality % 24]
    shuffled = b''.join(substructures[block] for block in order)
    key = personality ^ (trainer_id | secret_id << 16)

    blob = (
        struct.pack('<IHH', personality, trainer_id, secret_id)
        + encode_gen3_string(nickname, 10)
        + struct.pack('<BB', language, 0)
        + encode_gen3_string(ot_name, 7)
        + struct.pack('<BHH', markings, checksum, 0)
        + xor_payload(shuffled, key)
    )
    if party:
        blob += struct.pack('<IBB7H', 0, level, 0, *stats)
    return blob


def make_gen3_sections(
        trainer_name=u'MAY', trainer_id=12345, secret_id=54321,
        time=(12, 34, 56), money=3000, game='Emerald',
        party=(), boxes=None):
    u"""Returns the data of all fourteen sections of a gen 3 save, by id.

    `party` is a list of 100-byte records; `boxes` maps a box index to a
    list of (slot, 80-byte record).
    """
    offsets = gen3.GAME_OFFSETS[game]
    sections = dict((id, bytearray(gen3.SECTION_DATA_SIZE))
                    for id in range(gen3.SECTION_COUNT))

    trainer = sections[gen3.TRAINER_SECTION]
    trainer[0:7] = encode_gen3_string(trainer_name, 7)
    trainer[0x0A:0x12] = struct.pack(
        '<IHBB', trainer_id | secret_id << 16, *time)
    trainer[offsets.money:offsets.money + 4] = struct.pack('<I', money)

    team = sections[gen3.TEAM_SECTION]
    team[offsets.team_size:offsets.team_size + 4] = struct.pack(
        '<I', len(party))
    for i, blob in enumerate(party):
        start = offsets.team_list + i * len(blob)
        team[start:start + len(blob)] = blob

    storage = bytearray(gen3.STORAGE_HEADER_SIZE + gen3.BOX_COUNT
                        * gen3.BOX_CAPACITY * gen3.GEN3_BOX_SIZE)
    for box_index, slots in (boxes or {}).items():
        for slot, blob in slots:
            start = (gen3.STORAGE_HEADER_SIZE
                     + (box_index * gen3.BOX_CAPACITY + slot)
                     * gen3.GEN3_BOX_SIZE)
            storage[start:start + len(blob)] = blob
    position = 0
    for id in gen3.PC_SECTIONS:
        size = gen3.SECTION_SAVE_SIZES[id]
        chunk = storage[position:position + size]
        sections[id][0:len(chunk)] = chunk
        position += size

    return dict((id, bytes(data)) for id, data in sections.items())


def make_gen3_block(sections, save_index, rotation=0,
                    signature=gen3.SECTION_SIGNATURE):
    """Returns a 14-section block, with the sections rotated like the game
    does on every save.
    """
    chunks = []
    for position in range(gen3.SECTION_COUNT):
        id = (position + rotation) % gen3.SECTION_COUNT
        data = sections[id]
        checksum = section_checksum(data, gen3.SECTION_SAVE_SIZES[id])
        chunks.append(data + struct.pack(
            '<HHII', id, checksum, signature, save_index))
    return b''.join(chunks)


def make_gen3_save(block_a, block_b=None, trimmed=False):
    if block_b is None:
        block_b = b'\x00' * gen3.BLOCK_SIZE
    save = block_a + block_b
    if not trimmed:
        save = save.ljust(gen3.SAVE_SIZE, b'\x00')
    return save


### Gen 4

def make_gen4_pokemon(
        personality, species, trainer_id=1081, secret_id=40000,
        nickname=u'', ot_name=u'Roy', language=2, markings=0,
        item=0, exp=0, happiness=70, ability=0,
        evs=(0,) * 6, contest=(0,) * 6,
        moves=(), pp=(), pp_ups=(), ivs=(0,) * 6, is_egg=False,
        form=0, gender=0, fateful_encounter=False,
        pt_met_location=0, version=10,
        date_met=(9, 2, 28), dp_met_location=16, pokerus=0,
        dppt_pokeball=4, hgss_pokeball=0, met_level=5, ot_gender=0,
        encounter_type=2, party=False, level=5,
        stats=(20, 20, 10, 10, 10, 10, 10),
        key=None, checksum=None):
    u"""Returns the bytes of a gen 4 Pokémon: 236 for the party, else 136.

    The payload is encrypted with `key` (default: its real checksum) and
    the stored checksum is `checksum` (default: the real one too).
    """
    block_a = struct.pack(
        '<HHHHIBBBB6B6BI', species, item, trainer_id, secret_id, exp,
        happiness, ability, markings, language,
        *(list(evs) + list(contest) + [0]))

    iv_word = 0
    for i, iv in enumerate(ivs):
        iv_word |= iv << (5 * i)
    iv_word |= int(is_egg) << 30 | int(bool(nickname)) << 31
    form_byte = form << 3 | gender << 1 | int(fateful_encounter)
    block_b = struct.pack(
        '<4H4B4BIIBBHHH',
        *(_pad(moves, 4) + _pad(pp, 4) + _pad(pp_ups, 4)
          + [iv_word, 0, form_byte, 0, 0, 0, pt_met_location]))

    block_c = (encode_gen4_string(nickname, 22)
               + struct.pack('<BBII', 0, version, 0, 0))

    block_d = (
        encode_gen4_string(ot_name, 16)
        + bytes(bytearray([0, 0, 0]))
        + bytes(bytearray(date_met))
        + struct.pack('<HHBBBBBB', 0, dp_met_location, pokerus,
                      dppt_pokeball, ot_gender << 7 | met_level,
                      encounter_type, hgss_pokeball, 0)
    )

    blocks = [block_a, block_b, block_c, block_d]
    real_checksum = record_checksum(b''.join(blocks))
    if key is None:
        key = real_checksum
    if checksum is None:
        checksum = real_checksum

    order = gen4_shuffle_order(personality)
    shuffled = b''.join(blocks[block] for block in order)
    blob = (struct.pack('<IHH', personality, 0, checksum)
            + reciprocal_crypt(shuffled, key))
    if party:
        battle_stats = struct.pack('<IBB7H', 0, level, 0, *stats)
        battle_stats += b'\x00' * 80
        blob += reciprocal_crypt(battle_stats, personality)
    return blob


def make_gen4_general(layout, trainer_name=u'ROY', trainer_id=1081,
                      money=120881, badges=0xFF, kanto_badges=0,
                      time=(345, 13, 7), party=()):
    """Returns the contents of a general block, minus its footer"""
    data = bytearray(layout.general_size - gen4.FOOTER_SIZE)
    base = gen4.TRAINER_OFFSET
    data[base:base + 16] = encode_gen4_string(trainer_name, 16)
    data[base + 0x10:base + 0x18] = struct.pack(
        '<HHI', trainer_id, 0, money)
    data[base + 0x1A] = badges
    data[base + 0x1F] = kanto_badges
    data[base + 0x22:base + 0x26] = struct.pack('<HBB', *time)

    data[gen4.PARTY_COUNT_OFFSET] = len(party)
    for i, blob in enumerate(party):
        start = gen4.PARTY_OFFSET + i * len(blob)
        data[start:start + len(blob)] = blob
    return bytes(data)


def make_gen4_storage(layout, boxes=None):
    u"""Returns the contents of a storage block, minus its footer.

    `boxes` maps a box index to a list of (slot, 136-byte record).
    """
    data = bytearray(layout.storage_size - gen4.FOOTER_SIZE)
    for box_index, slots in (boxes or {}).items():
        for slot, blob in slots:
            if layout.box_stride:
                start = box_index * layout.box_stride
            else:
                start = (gen4.STORAGE_HEADER_SIZE
                         + box_index * gen4.BOX_CAPACITY * len(blob))
            start += slot * len(blob)
            data[start:start + len(blob)] = blob
    return bytes(data)


def add_gen4_footer(data, save_count, link=None, corrupt=False):
    """Appends a footer with a correct CRC (unless `corrupt`)"""
    if link is None:
        link = save_count
    crc = crc16_ccitt(data)
    if corrupt:
        crc ^= 0xFFFF
    footer = struct.pack('<II10xH', link, save_count, crc)
    return data + footer


def make_gen4_copy(layout, general, storage, save_count,
                   storage_link=None, corrupt_general=False,
                   corrupt_storage=False):
    """Returns one 0x40000-byte copy of a gen 4 save"""
    if storage_link is None:
        storage_link = save_count
    copy = bytearray(gen4.BACKUP_OFFSET)
    general = add_gen4_footer(general, save_count,
                              corrupt=corrupt_general)
    storage = add_gen4_footer(storage, storage_link,
                              link=storage_link, corrupt=corrupt_storage)
    copy[layout.general_offset:layout.general_offset + len(general)] = general
    copy[layout.storage_offset:layout.storage_offset + len(storage)] = storage
    return bytes(copy)


def make_gen4_save(primary, backup=None):
    if backup is None:
        backup = b'\x00' * gen4.BACKUP_OFFSET
    return primary + backup
