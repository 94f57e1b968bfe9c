# encoding: utf8
u"""Checksums, ciphers and block shuffling shared by the save file parsers.

Everything here is a pure function of bytes; nothing knows about trainers or
boxes.  The Pokémon record cipher is the usual one: gen 3 xors the payload
with a fixed 32-bit key, gen 4 xors it with the output of the main PRNG.

See: http://projectpokemon.org/wiki/Pokemon_NDS_Structure
"""

import binascii
import logging
import struct
from itertools import permutations

log = logging.getLogger(__name__)


class SaveFileError(Exception):
    pass


# Every permutation of the four record blocks, in the order the games index
# them.  Position N of the stored data holds block ``shuffle_orders[i][N]``.
shuffle_orders = list(permutations(range(4)))

PRNG_MULTIPLIER = 0x41C64E6D
PRNG_INCREMENT = 0x6073


def pokemon_prng(seed):
    u"""Creates a generator that simulates the main Pokémon PRNG."""
    while True:
        seed = PRNG_MULTIPLIER * seed + PRNG_INCREMENT
        seed &= 0xFFFFFFFF
        yield seed >> 16


def section_checksum(data, size):
    """Gen 3 section checksum: 32-bit sum of words, folded to 16 bits."""
    words = struct.unpack_from('<%dI' % (size // 4), data)
    total = sum(words) & 0xFFFFFFFF
    return ((total & 0xFFFF) + (total >> 16)) & 0xFFFF


def record_checksum(data):
    """Sum of little-endian 16-bit words, as stored in a Pokémon record."""
    words = struct.unpack('<%dH' % (len(data) // 2), bytes(data))
    return sum(words) & 0xFFFF


def crc16_ccitt(data):
    """CRC-16/CCITT (poly 0x1021, init 0xFFFF) used by the gen 4 footers."""
    return binascii.crc_hqx(bytes(data), 0xFFFF)


def xor_payload(data, key):
    """Xor each 32-bit word of a gen 3 record payload with `key`."""
    count = len(data) // 4
    words = struct.unpack('<%dI' % count, bytes(data))
    return struct.pack('<%dI' % count, *(word ^ key for word in words))


def unshuffle_blocks(data, order, block_size):
    u"""Puts shuffled record blocks back in their canonical order.

    `order` is one of `shuffle_orders`: stored block N is logical block
    ``order[N]``.
    """
    blocks = [None] * 4
    for position, block in enumerate(order):
        start = position * block_size
        blocks[block] = data[start:start + block_size]
    return b''.join(blocks)


def reciprocal_crypt(data, seed):
    u"""Applies the reciprocal gen 4 cipher to `data`, seeded with `seed`.

    Encrypting and decrypting are the same operation.
    """
    count = len(data) // 2
    words = list(struct.unpack('<%dH' % count, bytes(data)))
    prng = pokemon_prng(seed)
    for i in range(count):
        words[i] ^= next(prng)
    return struct.pack('<%dH' % count, *words)


def gen4_shuffle_order(personality):
    return shuffle_orders[((personality >> 0xD) & 0x1F) % 24]


def decrypt_gen4_payload(encrypted, checksum, personality):
    """Decrypts and unshuffles the 0x80-byte payload of a gen 4 record."""
    decrypted = reciprocal_crypt(encrypted, checksum)
    return unshuffle_blocks(decrypted, gen4_shuffle_order(personality), 32)


### Brute-force key recovery

# Species a corrupted record is most likely to be, best first.  Anything not
# listed has priority 100.
RECOVERY_PRIORITIES = {}
for _priority, _species in (
        (1, (150, 151, 249, 250, 251, 382, 383, 384, 385, 386, 483, 484, 487,
             491, 492, 493)),
        (2, (94, 477, 429, 149, 373, 445)),
        (3, (130, 131, 143, 248, 376, 448, 400)),
    ):
    for _id in _species:
        RECOVERY_PRIORITIES[_id] = _priority
del _priority, _species, _id

DEFAULT_RECOVERY_PRIORITY = 100
MAX_GEN4_SPECIES = 493


def _jump_ahead_constants(count):
    """Returns [(a, c)] such that advancing the PRNG k times from `seed`
    gives ``(a * seed + c) & 0xFFFFFFFF``, for k = 1..count.
    """
    constants = []
    a, c = PRNG_MULTIPLIER, PRNG_INCREMENT
    for _ in range(count):
        constants.append((a, c))
        a = (a * PRNG_MULTIPLIER) & 0xFFFFFFFF
        c = (c * PRNG_MULTIPLIER + PRNG_INCREMENT) & 0xFFFFFFFF
    return constants

_jump_ahead = _jump_ahead_constants(64)


def recovery_candidates(encrypted, personality):
    """Yields (key, species) for every key that decrypts the record to a
    plausible Pokémon.

    Only the species word and the three effort value words of block A are
    decrypted per key; a key is plausible if the species exists and the
    effort values are legal.
    """
    position = gen4_shuffle_order(personality).index(0)
    species_word = position * 16
    words = struct.unpack('<64H', bytes(encrypted[:0x80]))
    indices = (species_word, species_word + 8, species_word + 9,
               species_word + 10)
    targets = [(words[i],) + _jump_ahead[i] for i in indices]
    (species_enc, species_a, species_c) = targets[0]
    effort_targets = targets[1:]

    for key in range(0x10000):
        species = species_enc ^ (
            ((species_a * key + species_c) & 0xFFFFFFFF) >> 16)
        if not 1 <= species <= MAX_GEN4_SPECIES:
            continue
        total = 0
        for value, a, c in effort_targets:
            pair = value ^ (((a * key + c) & 0xFFFFFFFF) >> 16)
            low = pair & 0xFF
            high = pair >> 8
            if low > 252 or high > 252:
                break
            total += low + high
        else:
            if total <= 510:
                yield key, species


def choose_candidate(candidates):
    """Picks the (key, species) pair whose species is most likely.

    Stops at the first top-priority species; otherwise the first candidate
    of the best priority wins.  Returns None for no candidates.
    """
    best = None
    best_priority = None
    for key, species in candidates:
        priority = RECOVERY_PRIORITIES.get(species, DEFAULT_RECOVERY_PRIORITY)
        if best_priority is None or priority < best_priority:
            best = key, species
            best_priority = priority
            if priority == 1:
                break
    return best


def recover_gen4_payload(encrypted, personality):
    """Searches every possible key for one that yields sensible data.

    Returns (key, decrypted payload), or None if nothing plausible turns up.
    """
    chosen = choose_candidate(recovery_candidates(encrypted, personality))
    if chosen is None:
        log.debug('No key recovers record %08x', personality)
        return None
    key, species = chosen
    log.debug('Recovered record %08x as species %s with key %04x',
              personality, species, key)
    return key, decrypt_gen4_payload(encrypted, key, personality)
