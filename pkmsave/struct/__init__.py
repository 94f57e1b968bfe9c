# encoding: utf8
u"""
Handles reading and decryption of individual Pokémon records in save files.

Each record shape (gen 3 or 4, party or PC box) gets its own view class; the
save parsers pick one explicitly instead of guessing from the slot size.

See: http://projectpokemon.org/wiki/Pokemon_NDS_Structure
"""

import logging
import struct

from pkmsave import tables
from pkmsave.records import CreatureRecord
from pkmsave.savefile import (
    decrypt_gen4_payload, reciprocal_crypt, record_checksum,
    recover_gen4_payload, shuffle_orders, unshuffle_blocks, xor_payload,
)
from pkmsave.struct._pokemon_struct import (
    GEN3_BOX_SIZE, GEN3_PARTY_SIZE, GEN3_PAYLOAD_OFFSET, GEN3_PAYLOAD_SIZE,
    GEN3_SUBSTRUCTURE_SIZE, GEN4_BOX_SIZE, GEN4_PARTY_SIZE,
    GEN4_PAYLOAD_OFFSET, GEN4_PAYLOAD_SIZE, UNOWN, decode_gen3_string,
    gen3_contest_ranks, gen3_party_stats, gen3_pokemon_data,
    gen3_pokemon_header, gen4_party_stats, pokemon_forms, pokemon_struct,
    version_names,
)

log = logging.getLogger(__name__)

STATS = ('hp', 'attack', 'defense', 'speed', 'special_attack',
         'special_defense')
CONTEST_STATS = ('cool', 'beauty', 'cute', 'smart', 'tough', 'sheen')

# Highest internal species number; 412 is an Egg
MAX_GEN3_INTERNAL_SPECIES = 411
MAX_GEN4_SPECIES = 493

# Hatched Pokémon in the PC are shown as met at this level
HATCH_LEVEL = 5


class cached_property(object):
    def __init__(self, getter):
        self._getter = getter
        self.__doc__ = getter.__doc__

    def __get__(self, instance, owner):
        if instance is None:
            return self
        else:
            try:
                return instance._cached_properties[self]
            except AttributeError:
                instance._cached_properties = {}
            except KeyError:
                pass
            result = self._getter(instance)
            instance._cached_properties[self] = result
            return result

    def __delete__(self, instance):
        try:
            del instance._cached_properties[self]
        except (AttributeError, KeyError):
            pass


def unown_forme(personality):
    u"""Unown's letter is spread over the low two bits of each byte of its
    personality.
    """
    value = (
        ((personality & 0x3000000) >> 18)
        | ((personality & 0x30000) >> 12)
        | ((personality & 0x300) >> 6)
        | (personality & 0x3)
    )
    letters = pokemon_forms[UNOWN]
    return letters[value % len(letters)]


def is_shiny(personality, trainer_id, secret_id):
    u"""Returns true iff a Pokémon with this personality and trainer is shiny."""
    # See http://bulbapedia.bulbagarden.net/wiki/Personality#Shininess
    personality_msdw = personality >> 16
    personality_lsdw = personality & 0xffff
    return (trainer_id ^ secret_id ^ personality_msdw ^ personality_lsdw) < 8


def true_flags(bitstruct):
    """Names of the set flags in a parsed bit struct"""
    return frozenset(key for key, value in bitstruct.items()
                     if value is True and not key.startswith('_'))


def version_name(version):
    if not version:
        return None
    return version_names.get(version, u'Game #%s' % version)


class SaveFilePokemon(object):
    u"""Base class for an individual Pokémon, from the game's point of view.

    Wraps the raw bytes of one save slot.  Decoding happens lazily; call
    `as_record` to get the generation-agnostic `CreatureRecord`.
    """
    generation_id = None
    is_party = False
    size = None

    def __init__(self, blob):
        if self.generation_id is None:
            raise NotImplementedError(
                "Use generation-specific subclass of SaveFilePokemon")
        if len(blob) < self.size:
            raise ValueError('Expected %d bytes, got %d' % (self.size, len(blob)))
        self.blob = bytes(blob[:self.size])

    @property
    def personality(self):
        return struct.unpack_from('<I', self.blob)[0]

    @property
    def is_empty(self):
        return self.personality == 0

    @property
    def is_shiny(self):
        st = self.header
        return is_shiny(self.personality, st.original_trainer_id,
                        st.original_trainer_secret_id)

    @property
    def types(self):
        types = tables.species_types.get(self.species_id)
        if types is None:
            return None
        return list(types)

    def as_record(self, status, position, id, box_index=None, slot_index=None):
        """Exports the Pokémon as a `CreatureRecord`.

        Only call this on records that are neither empty nor invalid.
        """
        extra_data = self.extra_data()
        extra_data['box'] = None if box_index is None else box_index + 1
        extra_data['slot'] = slot_index
        if self.is_party:
            extra_data['stats'] = dict(
                (key, self.party_stats[key])
                for key in ('current_hp', 'max_hp') + STATS[1:])

        return CreatureRecord(
            species=self.species_name,
            nickname=self.nickname or None,
            id=id,
            status=status,
            position=position,
            level=self.level,
            moves=self.moves,
            shiny=self.is_shiny,
            forme=self.forme,
            item=self.held_item,
            ability=self.ability,
            types=self.types,
            met=self.met_location,
            met_level=self.met_at_level or None,
            egg=self.is_egg,
            pokeball=self.pokeball,
            extra_data=extra_data,
        )

    def _common_extra_data(self, st, ivs):
        return dict(
            evs=dict((stat, st['effort_' + stat]) for stat in STATS),
            contest=dict((stat, st['contest_' + stat]) for stat in CONTEST_STATS),
            ivs=dict((stat, ivs['iv_' + stat]) for stat in STATS),
        )


### Gen 3

class SaveFilePokemonGen3(SaveFilePokemon):
    generation_id = 3

    @cached_property
    def header(self):
        return gen3_pokemon_header.parse(self.blob[:GEN3_PAYLOAD_OFFSET])

    @property
    def encryption_key(self):
        st = self.header
        return self.personality ^ (
            st.original_trainer_id | st.original_trainer_secret_id << 16)

    @cached_property
    def payload(self):
        """Decrypted substructures, still in their shuffled order"""
        encrypted = self.blob[GEN3_PAYLOAD_OFFSET:
                              GEN3_PAYLOAD_OFFSET + GEN3_PAYLOAD_SIZE]
        return xor_payload(encrypted, self.encryption_key)

    @cached_property
    def checksum_computed(self):
        return record_checksum(self.payload)

    @cached_property
    def structure(self):
        order = shuffle_orders[self.personality % 24]
        return gen3_pokemon_data.parse(
            unshuffle_blocks(self.payload, order, GEN3_SUBSTRUCTURE_SIZE))

    @property
    def is_valid(self):
        if self.checksum_computed != self.header.checksum:
            log.debug('Dropping %08x: checksum %04x, expected %04x',
                      self.personality, self.checksum_computed,
                      self.header.checksum)
            return False
        internal_id = self.structure.growth.species_id
        if not 1 <= internal_id <= MAX_GEN3_INTERNAL_SPECIES:
            log.debug('Dropping %08x: internal species %d',
                      self.personality, internal_id)
            return False
        return True

    @property
    def is_japanese(self):
        return self.header.language == 'jp'

    @cached_property
    def nickname(self):
        return decode_gen3_string(self.header.nickname, self.is_japanese)

    @cached_property
    def original_trainer_name(self):
        return decode_gen3_string(
            self.header.original_trainer_name, self.is_japanese)

    @cached_property
    def species_id(self):
        """National dex number, or None if unknown"""
        return tables.gen3_species_id(
            self.structure.growth.species_id, self.nickname)

    @property
    def species_name(self):
        if self.species_id is None:
            return u'Species %s' % self.structure.growth.species_id
        return tables.species_name(self.species_id)

    @property
    def forme(self):
        if self.species_id == UNOWN:
            return unown_forme(self.personality)
        return None

    @property
    def is_egg(self):
        return self.structure.misc.ivs.is_egg

    @property
    def met_at_level(self):
        met_at_level = self.structure.misc.origin.met_at_level
        if not self.is_party and not self.is_egg and met_at_level == 0:
            return HATCH_LEVEL
        return met_at_level

    @property
    def met_location(self):
        location_id = self.structure.misc.met_location_id
        if not location_id or location_id == 0xFF:
            return None
        return tables.gen3_location_name(location_id)

    @property
    def moves(self):
        st = self.structure.attacks
        names = (tables.move_name(st['move%d_id' % i]) for i in range(1, 5))
        return [name for name in names if name]

    @property
    def held_item(self):
        return tables.item_name(3, self.structure.growth.held_item_id)

    @property
    def pokeball(self):
        return tables.pokeball_name(3, self.structure.misc.origin.pokeball_id)

    @property
    def ability(self):
        if self.species_id is None:
            return None
        return tables.species_ability(
            self.species_id, self.structure.misc.ivs.ability_slot)

    @property
    def ribbons(self):
        st = self.structure.misc.ribbons
        ribbons = set(true_flags(st))
        ribbons.discard('fateful_encounter')
        for contest in gen3_contest_ranks:
            rank = st[contest + '_rank']
            for suffix in ('', '_super', '_hyper', '_master')[:rank]:
                ribbons.add('%s_ribbon%s' % (contest, suffix))
        return ribbons

    def extra_data(self):
        header = self.header
        st = self.structure
        result = self._common_extra_data(st.effort, st.misc.ivs)
        result.update(
            language=header.language,
            markings=sorted(true_flags(header.markings)),
            checksum=header.checksum,
            checksum_computed=self.checksum_computed,
            move_pp=[st.attacks['move%d_pp' % i] for i in range(1, 5)],
            pp_bonuses=st.growth.pp_bonuses,
            friendship=st.growth.happiness,
            exp=st.growth.exp,
            pokerus=st.misc.pokerus,
            ability_slot=st.misc.ivs.ability_slot,
            ribbons=sorted(r.replace('_', ' ') for r in self.ribbons),
            fateful_encounter=st.misc.ribbons.fateful_encounter,
            ot_name=self.original_trainer_name,
            ot_id=header.original_trainer_id,
            ot_gender=st.misc.origin.original_trainer_gender,
            origin_game=version_name(st.misc.origin.original_version),
        )
        return result


class Gen3Box(SaveFilePokemonGen3):
    size = GEN3_BOX_SIZE

    @property
    def level(self):
        return self.met_at_level or None


class Gen3Party(SaveFilePokemonGen3):
    size = GEN3_PARTY_SIZE
    is_party = True

    @cached_property
    def party_stats(self):
        return gen3_party_stats.parse(self.blob[GEN3_BOX_SIZE:])

    @property
    def level(self):
        return self.party_stats.level


### Gen 4

class SaveFilePokemonGen4(SaveFilePokemon):
    generation_id = 4

    @property
    def checksum_stored(self):
        return struct.unpack_from('<H', self.blob, 6)[0]

    @property
    def encrypted(self):
        return self.blob[GEN4_PAYLOAD_OFFSET:
                         GEN4_PAYLOAD_OFFSET + GEN4_PAYLOAD_SIZE]

    @cached_property
    def decrypted(self):
        u"""Returns (payload, recovered).

        The payload is decrypted with the stored checksum.  If that gives
        nonsense, every other key is tried; payload is None if none fits.
        """
        payload = decrypt_gen4_payload(
            self.encrypted, self.checksum_stored, self.personality)
        species_id = struct.unpack_from('<H', payload)[0]
        if (1 <= species_id <= MAX_GEN4_SPECIES
                and record_checksum(payload) == self.checksum_stored):
            return payload, False

        log.debug('Record %08x does not decrypt cleanly (species %d); '
                  'searching for its key', self.personality, species_id)
        recovery = recover_gen4_payload(self.encrypted, self.personality)
        if recovery is None:
            return None, False
        key, payload = recovery
        return payload, True

    @property
    def is_valid(self):
        return self.decrypted[0] is not None

    @property
    def recovered(self):
        return self.decrypted[1]

    @cached_property
    def structure(self):
        payload, recovered = self.decrypted
        return pokemon_struct.parse(self.blob[:GEN4_PAYLOAD_OFFSET] + payload)

    header = structure

    @property
    def checksum_computed(self):
        return record_checksum(self.decrypted[0])

    @property
    def species_id(self):
        return self.structure.national_id

    @property
    def species_name(self):
        return tables.species_name(self.species_id)

    @property
    def nickname(self):
        return self.structure.nickname

    @property
    def forme(self):
        if self.species_id == UNOWN:
            return unown_forme(self.personality)
        forms = pokemon_forms.get(self.species_id)
        if not forms:
            return None
        form_id = self.structure.form.alternate_form_id
        if form_id < len(forms):
            return forms[form_id]
        return None

    @property
    def is_egg(self):
        return self.structure.ivs.is_egg

    @property
    def met_at_level(self):
        return self.structure.met.met_at_level

    @property
    def met_location(self):
        st = self.structure
        return tables.gen4_location_name(
            st.pt_met_location_id or st.dp_met_location_id)

    @property
    def moves(self):
        st = self.structure
        names = (tables.move_name(st['move%d_id' % i]) for i in range(1, 5))
        return [name for name in names if name]

    @property
    def held_item(self):
        return tables.item_name(4, self.structure.held_item_id)

    @property
    def pokeball(self):
        st = self.structure
        if st.hgss_pokeball >= 17:
            pokeball_id = st.hgss_pokeball - 17 + 492
        else:
            pokeball_id = st.dppt_pokeball
        return tables.pokeball_name(4, pokeball_id)

    @property
    def ability(self):
        ability_id = self.structure.ability_id
        if ability_id in tables.ability_names:
            return tables.ability_names[ability_id]
        ability = tables.species_ability(self.species_id, self.personality & 1)
        if ability is None and ability_id:
            return tables.ability_name(ability_id)
        return ability

    @property
    def ribbons(self):
        st = self.structure
        return frozenset(
            true_flags(st.sinnoh_ribbons) |
            true_flags(st.hoenn_ribbons) |
            true_flags(st.sinnoh_contest_ribbons))

    def extra_data(self):
        st = self.structure
        result = self._common_extra_data(st, st.ivs)
        result.update(
            language=st.language,
            markings=sorted(true_flags(st.markings)),
            checksum=self.checksum_stored,
            checksum_computed=self.checksum_computed,
            recovered=self.recovered,
            move_pp=[st['move%d_pp' % i] for i in range(1, 5)],
            pp_ups=[st['move%d_pp_ups' % i] for i in range(1, 5)],
            friendship=st.happiness,
            exp=st.exp,
            pokerus=st.pokerus,
            ribbons=sorted(r.replace('_', ' ') for r in self.ribbons),
            gender=st.form.gender,
            fateful_encounter=st.form.fateful_encounter,
            nicknamed=st.ivs.is_nicknamed,
            ot_name=st.original_trainer_name,
            ot_id=st.original_trainer_id,
            ot_gender=st.met.original_trainer_gender,
            origin_game=version_name(st.original_version),
            encounter_type=st.encounter_type,
            met_date=st.date_met and st.date_met.isoformat(),
            egg_date=(st.date_egg_received
                      and st.date_egg_received.isoformat()),
        )
        return result


class Gen4Box(SaveFilePokemonGen4):
    size = GEN4_BOX_SIZE

    @property
    def level(self):
        return self.met_at_level or None


class Gen4Party(SaveFilePokemonGen4):
    size = GEN4_PARTY_SIZE
    is_party = True

    @cached_property
    def party_stats(self):
        return gen4_party_stats.parse(
            reciprocal_crypt(self.blob[GEN4_BOX_SIZE:], self.personality))

    @property
    def level(self):
        return self.party_stats.level or None
