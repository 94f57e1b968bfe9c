# encoding: utf8
u"""Defines the `construct` structures of single Pokémon records and save
file footers, along with the character tables used by their strings.

Gen 3 records are 80 bytes in the PC and 100 in the party; gen 4 records are
136 and 236 bytes, the same format sent back and forth over the GTS.

Docs: http://bulbapedia.bulbagarden.net/wiki/Pok%C3%A9mon_data_structure_in_Generation_III
http://projectpokemon.org/wiki/Pokemon_NDS_Structure
"""

import datetime

from construct import (
    Adapter, BitStruct, BitsInteger, Bytes, ByteSwapped, Flag, Int8ul,
    Int16ul, Int32ul, Padding, Struct,
)

pokemon_forms = {
    # Unown
    201: list(u'ABCDEFGHIJKLMNOPQRSTUVWXYZ') + [u'!', u'?'],

    # Deoxys
    386: [u'Normal', u'Attack', u'Defense', u'Speed'],

    # Burmy and Wormadam
    412: [u'Plant', u'Sandy', u'Trash'],
    413: [u'Plant', u'Sandy', u'Trash'],

    # Shellos and Gastrodon
    422: [u'West', u'East'],
    423: [u'West', u'East'],

    # Rotom
    479: [u'Normal', u'Heat', u'Wash', u'Frost', u'Fan', u'Mow'],

    # Giratina
    487: [u'Altered', u'Origin'],

    # Shaymin
    492: [u'Land', u'Sky'],
}

UNOWN = 201


def _run(first, count):
    return u''.join(chr(ord(first) + i) for i in range(count))


def _make_table(pairs):
    table = {}
    for code, characters in pairs:
        for i, character in enumerate(characters):
            table[code + i] = character
    return table


_hiragana = (u'あいうえおかきくけこさしすせそたちつてとなにぬねのはひふへほ'
             u'まみむめもやゆよらりるれろわをんぁぃぅぇぉゃゅょ'
             u'がぎぐげござじずぜぞだぢづでどばびぶべぼぱぴぷぺぽっ')
_katakana = (u'アイウエオカキクケコサシスセソタチツテトナニヌネノハヒフヘホ'
             u'マミムメモヤユヨラリルレロワヲンァィゥェォャュョ'
             u'ガギグゲゴザジズゼゾダヂヅデドバビブベボパピプペポッ')

# Western releases
character_table_gen3 = _make_table([
    (0x00, u' '),
    (0x01, u'ÀÁÂÇÈÉÊËÌ'),
    (0x0B, u'ÎÏÒÓÔŒÙÚÛÑßàá'),
    (0x19, u'çèéêëì'),
    (0x20, u'îïòóôœùúûñºª'),
    (0x2D, u'&+'),
    (0x35, u'=;'),
    (0x51, u'¿¡'),
    (0x5A, u'Í%()'),
    (0x68, u'â'),
    (0x6F, u'í'),
    (0x79, u'↑↓←→'),
    (0x85, u'<>'),
    (0xA1, _run(u'0', 10)),
    (0xAB, u'!?.-·…“”‘’♂♀¥,×/'),
    (0xBB, _run(u'A', 26)),
    (0xD5, _run(u'a', 26)),
    (0xEF, u'▶:ÄÖÜäöü'),
])

# Japanese releases
character_table_gen3_jp = _make_table([
    (0x00, u'　'),
    (0x01, _hiragana),
    (0x51, _katakana),
    (0xA1, _run(u'０', 10)),
    (0xAB, u'！？。ー・‥『』「」♂♀円．×／'),
    (0xBB, _run(u'Ａ', 26)),
    (0xD5, _run(u'ａ', 26)),
    (0xEF, u'▶：'),
])

GEN3_TERMINATOR = 0xFF

character_table_gen4 = _make_table([
    (0x0001, u'　'),
    (0x0002, _run(u'ぁ', 77)),
    (0x004F, u'わをん'),
    (0x0052, _run(u'ァ', 77)),
    (0x009F, u'ワヲン'),
    (0x00A2, _run(u'０', 10)),
    (0x00AC, _run(u'Ａ', 26)),
    (0x00C6, _run(u'ａ', 26)),
    (0x00E1, u'！？、。…・／「」『』（）♂♀＋ー×÷=~：；．，'
             u'♠♣♥♦★◎○□△◇＠♪%☀☁☂☃'),
    (0x010F, u'⤴⤵'),
    (0x0112, u'円'),
    (0x0116, u'✉'),
    (0x011B, u'←↑↓→'),
    (0x0120, u'&'),
    (0x0121, _run(u'0', 10)),
    (0x012B, _run(u'A', 26)),
    (0x0145, _run(u'a', 26)),
    (0x015F, u'ÀÁÂ'),
    (0x0163, u'Ä'),
    (0x0166, u'ÇÈÉÊËÌÍÎÏ'),
    (0x0170, u'ÑÒÓÔ'),
    (0x0175, u'Ö×'),
    (0x0178, u'ÙÚÛÜ'),
    (0x017E, u'ßàáâ'),
    (0x0183, u'ä'),
    (0x0186, u'çèéêëìíîï'),
    (0x0190, u'ñòóô'),
    (0x0195, u'ö÷'),
    (0x0198, u'ùúûü'),
    (0x019F, u'Œœ'),
    (0x01A3, u'ªºþÞʳ¥¡¿!?,.…·/‘’“”„«»()♂♀+-*#=&~:;'
             u'♠♣♥♦★◎○□△◇@♪%☀☁☂☃'),
    (0x01DB, u'⤴⤵'),
    (0x01DE, u' '),
    (0xE000, u'\n'),
    (0x25BC, u'\f'),
    (0x25BD, u'\r'),
])

GEN4_TERMINATOR = 0xFFFF


def decode_gen3_string(data, japanese=False):
    u"""Decodes an 8-bit gen 3 string, stopping at the 0xFF terminator.

    Codes missing from the table are dropped.
    """
    table = character_table_gen3_jp if japanese else character_table_gen3
    characters = []
    for code in bytearray(data):
        if code == GEN3_TERMINATOR:
            break
        characters.append(table.get(code, u''))
    return u''.join(characters).strip()


def decode_gen4_string(data):
    """Decodes a 16-bit gen 4 string, stopping at the 0xFFFF terminator."""
    data = bytes(data)
    characters = []
    for i in range(0, len(data) - 1, 2):
        code = data[i] | data[i + 1] << 8
        if code == GEN4_TERMINATOR:
            break
        characters.append(character_table_gen4.get(code, u''))
    return u''.join(characters).strip()


class PokemonStringAdapter(Adapter):
    u"""Decodes gen 4 Pokémon-formatted text stored in a Bytes field."""
    def _decode(self, obj, context, path):
        return decode_gen4_string(obj)

    def _encode(self, obj, context, path):
        raise NotImplementedError("Save files are read-only")


class DateAdapter(Adapter):
    """Converts a three-byte string to a Python date.

    Only dates in 2000 or later will work!  Zeroed or garbled dates give None.
    """
    def _decode(self, obj, context, path):
        if obj == b'\x00\x00\x00':
            return None

        y, m, d = bytearray(obj)
        try:
            return datetime.date(y + 2000, m, d)
        except ValueError:
            return None

    def _encode(self, obj, context, path):
        if obj is None:
            return b'\x00\x00\x00'

        return bytes(bytearray([obj.year - 2000, obj.month, obj.day]))


class LeakyEnum(Adapter):
    """An Enum that allows unknown values"""
    def __init__(self, sub, **values):
        super(LeakyEnum, self).__init__(sub)
        self.values = values
        self.inverted_values = dict((v, k) for k, v in values.items())
        assert len(values) == len(self.inverted_values)

    def _encode(self, obj, context, path):
        return self.values.get(obj, obj)

    def _decode(self, obj, context, path):
        return self.inverted_values.get(obj, obj)


def LittleEndianBitStruct(*subcons):
    """Construct's bit structs read a byte at a time in the order they appear,
    reading each bit from most to least significant.  Alas, this doesn't work
    at all for a 32-bit bit field, because the bytes are 'backwards' in
    little-endian files.

    So this acts as a bit struct, but reverses the order of bytes first, so
    ALL the bits are read from most to least significant.
    """
    return ByteSwapped(BitStruct(*subcons))


def Language(subcon):
    return LeakyEnum(subcon,
        jp=1,
        en=2,
        fr=3,
        it=4,
        de=5,
        es=7,
        kr=8,
    )


def Version(subcon):
    return LeakyEnum(subcon,
        sapphire=1,
        ruby=2,
        emerald=3,
        firered=4,
        leafgreen=5,
        heartgold=7,
        soulsilver=8,
        diamond=10,
        pearl=11,
        platinum=12,
        orre=15,
    )

version_names = {
    'sapphire': u'Sapphire',
    'ruby': u'Ruby',
    'emerald': u'Emerald',
    'firered': u'FireRed',
    'leafgreen': u'LeafGreen',
    'heartgold': u'HeartGold',
    'soulsilver': u'SoulSilver',
    'diamond': u'Diamond',
    'pearl': u'Pearl',
    'platinum': u'Platinum',
    'orre': u'Colosseum/XD',
}


def Gender(subcon):
    return LeakyEnum(subcon,
        male=0,
        female=1,
        genderless=2,
    )


def Markings(count):
    names = ('circle', 'triangle', 'square', 'heart', 'star', 'diamond')[:count]
    flags = [name / Flag for name in reversed(names)]
    return BitStruct(Padding(8 - count), *flags)


### Gen 3

# Header: everything in cleartext ahead of the encrypted payload
gen3_pokemon_header = Struct(
    'personality' / Int32ul,
    'original_trainer_id' / Int16ul,
    'original_trainer_secret_id' / Int16ul,
    'nickname' / Bytes(10),
    'language' / Language(Int8ul),
    'egg_flags' / Int8ul,
    'original_trainer_name' / Bytes(7),
    'markings' / Markings(4),
    'checksum' / Int16ul,
    Padding(2),
)

GEN3_PAYLOAD_OFFSET = 0x20
GEN3_PAYLOAD_SIZE = 48
GEN3_SUBSTRUCTURE_SIZE = 12

gen3_contest_ranks = ('cool', 'beauty', 'cute', 'smart', 'tough')

# The four substructures, in canonical order once unshuffled
gen3_pokemon_data = Struct(
    # Growth
    'growth' / Struct(
        'species_id' / Int16ul,
        'held_item_id' / Int16ul,
        'exp' / Int32ul,
        'pp_bonuses' / Int8ul,
        'happiness' / Int8ul,
        Padding(2),
    ),

    # Attacks
    'attacks' / Struct(
        'move1_id' / Int16ul,
        'move2_id' / Int16ul,
        'move3_id' / Int16ul,
        'move4_id' / Int16ul,
        'move1_pp' / Int8ul,
        'move2_pp' / Int8ul,
        'move3_pp' / Int8ul,
        'move4_pp' / Int8ul,
    ),

    # EVs and contest condition
    'effort' / Struct(
        'effort_hp' / Int8ul,
        'effort_attack' / Int8ul,
        'effort_defense' / Int8ul,
        'effort_speed' / Int8ul,
        'effort_special_attack' / Int8ul,
        'effort_special_defense' / Int8ul,
        'contest_cool' / Int8ul,
        'contest_beauty' / Int8ul,
        'contest_cute' / Int8ul,
        'contest_smart' / Int8ul,
        'contest_tough' / Int8ul,
        'contest_sheen' / Int8ul,
    ),

    # Miscellaneous
    'misc' / Struct(
        'pokerus' / Int8ul,
        'met_location_id' / Int8ul,
        'origin' / LittleEndianBitStruct(
            'original_trainer_gender' / LeakyEnum(Flag,
                male=False,
                female=True,
            ),
            'pokeball_id' / BitsInteger(4),
            'original_version' / Version(BitsInteger(4)),
            'met_at_level' / BitsInteger(7),
        ),
        'ivs' / LittleEndianBitStruct(
            'ability_slot' / BitsInteger(1),
            'is_egg' / Flag,
            'iv_special_defense' / BitsInteger(5),
            'iv_special_attack' / BitsInteger(5),
            'iv_speed' / BitsInteger(5),
            'iv_defense' / BitsInteger(5),
            'iv_attack' / BitsInteger(5),
            'iv_hp' / BitsInteger(5),
        ),
        'ribbons' / LittleEndianBitStruct(
            'fateful_encounter' / Flag,
            Padding(4),
            'world_ribbon' / Flag,
            'earth_ribbon' / Flag,
            'national_ribbon' / Flag,
            'country_ribbon' / Flag,
            'sky_ribbon' / Flag,
            'land_ribbon' / Flag,
            'marine_ribbon' / Flag,
            'effort_ribbon' / Flag,
            'artist_ribbon' / Flag,
            'victory_ribbon' / Flag,
            'winning_ribbon' / Flag,
            'champion_ribbon' / Flag,
            'tough_rank' / BitsInteger(3),
            'smart_rank' / BitsInteger(3),
            'cute_rank' / BitsInteger(3),
            'beauty_rank' / BitsInteger(3),
            'cool_rank' / BitsInteger(3),
        ),
    ),
)

# Live battle data following a party Pokémon's record
gen3_party_stats = Struct(
    'status_condition' / Int32ul,
    'level' / Int8ul,
    'pokerus_remaining' / Int8ul,
    'current_hp' / Int16ul,
    'max_hp' / Int16ul,
    'attack' / Int16ul,
    'defense' / Int16ul,
    'speed' / Int16ul,
    'special_attack' / Int16ul,
    'special_defense' / Int16ul,
)

GEN3_BOX_SIZE = 80
GEN3_PARTY_SIZE = 100

gen3_section_footer = Struct(
    'section_id' / Int16ul,
    'checksum' / Int16ul,
    'signature' / Int32ul,
    'save_index' / Int32ul,
)


### Gen 4

# Docs: http://projectpokemon.org/wiki/Pokemon_NDS_Structure

pokemon_struct = Struct(
    # Header
    'personality' / Int32ul,
    Padding(2),
    'checksum' / Int16ul,

    # Block A
    'national_id' / Int16ul,
    'held_item_id' / Int16ul,
    'original_trainer_id' / Int16ul,
    'original_trainer_secret_id' / Int16ul,
    'exp' / Int32ul,
    'happiness' / Int8ul,
    'ability_id' / Int8ul,
    'markings' / Markings(6),
    'language' / Language(Int8ul),

    'effort_hp' / Int8ul,
    'effort_attack' / Int8ul,
    'effort_defense' / Int8ul,
    'effort_speed' / Int8ul,
    'effort_special_attack' / Int8ul,
    'effort_special_defense' / Int8ul,

    'contest_cool' / Int8ul,
    'contest_beauty' / Int8ul,
    'contest_cute' / Int8ul,
    'contest_smart' / Int8ul,
    'contest_tough' / Int8ul,
    'contest_sheen' / Int8ul,

    'sinnoh_ribbons' / LittleEndianBitStruct(
        Padding(4),
        'premier_ribbon' / Flag,
        'classic_ribbon' / Flag,
        'carnival_ribbon' / Flag,
        'festival_ribbon' / Flag,
        'blue_ribbon' / Flag,
        'green_ribbon' / Flag,
        'red_ribbon' / Flag,
        'legend_ribbon' / Flag,
        'history_ribbon' / Flag,
        'record_ribbon' / Flag,
        'footprint_ribbon' / Flag,
        'gorgeous_royal_ribbon' / Flag,
        'royal_ribbon' / Flag,
        'gorgeous_ribbon' / Flag,
        'smile_ribbon' / Flag,
        'snooze_ribbon' / Flag,
        'relax_ribbon' / Flag,
        'careless_ribbon' / Flag,
        'downcast_ribbon' / Flag,
        'shock_ribbon' / Flag,
        'alert_ribbon' / Flag,
        'world_ability_ribbon' / Flag,
        'pair_ability_ribbon' / Flag,
        'multi_ability_ribbon' / Flag,
        'double_ability_ribbon' / Flag,
        'great_ability_ribbon' / Flag,
        'ability_ribbon' / Flag,
        'sinnoh_champ_ribbon' / Flag,
    ),

    # Block B
    'move1_id' / Int16ul,
    'move2_id' / Int16ul,
    'move3_id' / Int16ul,
    'move4_id' / Int16ul,
    'move1_pp' / Int8ul,
    'move2_pp' / Int8ul,
    'move3_pp' / Int8ul,
    'move4_pp' / Int8ul,
    'move1_pp_ups' / Int8ul,
    'move2_pp_ups' / Int8ul,
    'move3_pp_ups' / Int8ul,
    'move4_pp_ups' / Int8ul,

    'ivs' / LittleEndianBitStruct(
        'is_nicknamed' / Flag,
        'is_egg' / Flag,
        'iv_special_defense' / BitsInteger(5),
        'iv_special_attack' / BitsInteger(5),
        'iv_speed' / BitsInteger(5),
        'iv_defense' / BitsInteger(5),
        'iv_attack' / BitsInteger(5),
        'iv_hp' / BitsInteger(5),
    ),
    'hoenn_ribbons' / LittleEndianBitStruct(
        'world_ribbon' / Flag,
        'earth_ribbon' / Flag,
        'national_ribbon' / Flag,
        'country_ribbon' / Flag,
        'sky_ribbon' / Flag,
        'land_ribbon' / Flag,
        'marine_ribbon' / Flag,
        'effort_ribbon' / Flag,
        'artist_ribbon' / Flag,
        'victory_ribbon' / Flag,
        'winning_ribbon' / Flag,
        'champion_ribbon' / Flag,
        'tough_ribbon_master' / Flag,
        'tough_ribbon_hyper' / Flag,
        'tough_ribbon_super' / Flag,
        'tough_ribbon' / Flag,
        'smart_ribbon_master' / Flag,
        'smart_ribbon_hyper' / Flag,
        'smart_ribbon_super' / Flag,
        'smart_ribbon' / Flag,
        'cute_ribbon_master' / Flag,
        'cute_ribbon_hyper' / Flag,
        'cute_ribbon_super' / Flag,
        'cute_ribbon' / Flag,
        'beauty_ribbon_master' / Flag,
        'beauty_ribbon_hyper' / Flag,
        'beauty_ribbon_super' / Flag,
        'beauty_ribbon' / Flag,
        'cool_ribbon_master' / Flag,
        'cool_ribbon_hyper' / Flag,
        'cool_ribbon_super' / Flag,
        'cool_ribbon' / Flag,
    ),
    'form' / BitStruct(
        'alternate_form_id' / BitsInteger(5),
        'gender' / Gender(BitsInteger(2)),
        'fateful_encounter' / Flag,
    ),
    'shining_leaves' / BitStruct(
        Padding(2),
        'crown' / Flag,
        'leaf5' / Flag,
        'leaf4' / Flag,
        'leaf3' / Flag,
        'leaf2' / Flag,
        'leaf1' / Flag,
    ),
    Padding(2),
    'pt_egg_location_id' / Int16ul,
    'pt_met_location_id' / Int16ul,

    # Block C
    'nickname' / PokemonStringAdapter(Bytes(22)),
    Padding(1),
    'original_version' / Version(Int8ul),
    'sinnoh_contest_ribbons' / LittleEndianBitStruct(
        Padding(12),
        'sinnoh_tough_ribbon_master' / Flag,
        'sinnoh_tough_ribbon_ultra' / Flag,
        'sinnoh_tough_ribbon_great' / Flag,
        'sinnoh_tough_ribbon' / Flag,
        'sinnoh_smart_ribbon_master' / Flag,
        'sinnoh_smart_ribbon_ultra' / Flag,
        'sinnoh_smart_ribbon_great' / Flag,
        'sinnoh_smart_ribbon' / Flag,
        'sinnoh_cute_ribbon_master' / Flag,
        'sinnoh_cute_ribbon_ultra' / Flag,
        'sinnoh_cute_ribbon_great' / Flag,
        'sinnoh_cute_ribbon' / Flag,
        'sinnoh_beauty_ribbon_master' / Flag,
        'sinnoh_beauty_ribbon_ultra' / Flag,
        'sinnoh_beauty_ribbon_great' / Flag,
        'sinnoh_beauty_ribbon' / Flag,
        'sinnoh_cool_ribbon_master' / Flag,
        'sinnoh_cool_ribbon_ultra' / Flag,
        'sinnoh_cool_ribbon_great' / Flag,
        'sinnoh_cool_ribbon' / Flag,
    ),
    Padding(4),

    # Block D
    'original_trainer_name' / PokemonStringAdapter(Bytes(16)),
    'date_egg_received' / DateAdapter(Bytes(3)),
    'date_met' / DateAdapter(Bytes(3)),
    'dp_egg_location_id' / Int16ul,
    'dp_met_location_id' / Int16ul,
    'pokerus' / Int8ul,
    'dppt_pokeball' / Int8ul,
    'met' / BitStruct(
        'original_trainer_gender' / LeakyEnum(Flag,
            male=False,
            female=True,
        ),
        'met_at_level' / BitsInteger(7),
    ),
    'encounter_type' / LeakyEnum(Int8ul,
        special=0,        # egg; pal park; event; honey tree; shaymin
        grass=2,          # or darkrai
        dialga_palkia=4,
        cave=5,           # or giratina or hall of origin
        water=7,
        building=9,
        safari_zone=10,   # includes great marsh
        gift=12,          # starter; fossil; ingame trade?
        hgss_gift=24,     # starter; fossil; bebe's eevee  (pt only??)
    ),
    'hgss_pokeball' / Int8ul,
    Padding(1),
)

GEN4_PAYLOAD_OFFSET = 0x08
GEN4_PAYLOAD_SIZE = 0x80
GEN4_BOX_SIZE = 0x88
GEN4_PARTY_SIZE = 0xEC

# Live battle data following a party Pokémon's record, encrypted with the
# personality as the seed
gen4_party_stats = Struct(
    'status_condition' / Int32ul,
    'level' / Int8ul,
    'seal_capsule' / Int8ul,
    'current_hp' / Int16ul,
    'max_hp' / Int16ul,
    'attack' / Int16ul,
    'defense' / Int16ul,
    'speed' / Int16ul,
    'special_attack' / Int16ul,
    'special_defense' / Int16ul,
    Padding(80),
)
